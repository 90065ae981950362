"""API route aggregation.

All routers registered here get mounted under /api/v1 in main.py.

Auth is applied per handler rather than at include_router level: most
read routes are anonymous-capable and resolve the caller themselves.
"""

from fastapi import APIRouter

from demoshare.api.comments import router as comments_router
from demoshare.api.health import router as health_router
from demoshare.api.library import router as library_router
from demoshare.api.metrics import router as metrics_router
from demoshare.api.notifications import router as notifications_router
from demoshare.api.projects import router as projects_router
from demoshare.api.tips import router as tips_router
from demoshare.api.users import router as users_router
from demoshare.api.webhooks import router as webhooks_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(users_router, tags=["users"])
api_router.include_router(projects_router, tags=["projects"])
api_router.include_router(comments_router, tags=["comments"])
api_router.include_router(library_router, tags=["library"])
api_router.include_router(metrics_router, tags=["metrics"])
api_router.include_router(tips_router, tags=["tips"])
api_router.include_router(notifications_router, tags=["notifications"])
api_router.include_router(webhooks_router, tags=["webhooks"])
