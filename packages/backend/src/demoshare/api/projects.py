"""Project API routes.

- POST /projects → create a project with its tracks (auth)
- GET /projects/{id} → project with tracks (anonymous-capable)
- PATCH /projects/{id} → update title/description/sharing (owner)
- GET /share/{token} → open a share link
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from demoshare.auth.dependencies import get_current_user, get_current_user_optional
from demoshare.db.engine import get_db
from demoshare.db.models import Project, User
from demoshare.schemas.project import ProjectCreate, ProjectDetail, ProjectUpdate
from demoshare.services.project_service import ProjectService
from demoshare.validation import parse_uuid

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> ProjectService:
    return ProjectService(db)


def _detail(project: Project, caller: Optional[User]) -> ProjectDetail:
    detail = ProjectDetail.model_validate(project)
    is_owner = caller is not None and caller.id == project.creator_id
    detail.is_owner = is_owner
    detail.share_token = project.share_token if is_owner else None
    return detail


@router.post("/projects", response_model=ProjectDetail, status_code=201)
async def create_project(
    body: ProjectCreate,
    user: User = Depends(get_current_user),
    svc: ProjectService = Depends(_svc),
):
    project = await svc.create_project(user, body)
    return _detail(project, user)


@router.get("/projects/{project_id}", response_model=ProjectDetail)
async def get_project(
    project_id: str,
    user: Optional[User] = Depends(get_current_user_optional),
    svc: ProjectService = Depends(_svc),
):
    project = await svc.get_project(parse_uuid(project_id, "project ID format"), user)
    return _detail(project, user)


@router.patch("/projects/{project_id}", response_model=ProjectDetail)
async def update_project(
    project_id: str,
    body: ProjectUpdate,
    user: User = Depends(get_current_user),
    svc: ProjectService = Depends(_svc),
):
    project = await svc.update_project(
        parse_uuid(project_id, "project ID format"), user, body
    )
    return _detail(project, user)


@router.get("/share/{share_token}", response_model=ProjectDetail)
async def open_share_link(
    share_token: str,
    user: Optional[User] = Depends(get_current_user_optional),
    svc: ProjectService = Depends(_svc),
):
    project = await svc.get_shared(share_token)
    return _detail(project, user)
