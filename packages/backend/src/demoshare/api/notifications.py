"""Notification API routes — the caller's inbox.

- GET /notifications?unread=true → newest first
- POST /notifications/read → mark everything read
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from demoshare.auth.dependencies import get_current_user
from demoshare.db.engine import get_db
from demoshare.db.models import User
from demoshare.schemas.tip import NotificationRead
from demoshare.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications")


def _svc(db: AsyncSession = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


@router.get("", response_model=list[NotificationRead])
async def list_notifications(
    unread: bool = Query(False),
    user: User = Depends(get_current_user),
    svc: NotificationService = Depends(_svc),
):
    return await svc.list_for_user(user.id, unread_only=unread)


@router.post("/read")
async def mark_all_read(
    user: User = Depends(get_current_user),
    svc: NotificationService = Depends(_svc),
):
    updated = await svc.mark_all_read(user.id)
    return {"updated": updated}
