"""Project service — creators' projects and their tracks.

Creating a project writes the project, its tracks and its metrics row in
one transaction: either the whole release is there or none of it is.
Audio files are uploaded to object storage before this call; tracks only
carry the resulting URLs.
"""

import secrets
import uuid
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from demoshare.auth.ownership import OwnershipResolver, Target
from demoshare.db.models import Project, ProjectMetrics, Track, User
from demoshare.errors import Forbidden, NotFound
from demoshare.schemas.project import ProjectCreate, ProjectUpdate

logger = structlog.get_logger()


def new_share_token() -> str:
    return secrets.token_urlsafe(16)


class ProjectService:
    """Business logic for projects, tracks and share links."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ownership = OwnershipResolver(db)

    async def create_project(self, creator: User, body: ProjectCreate) -> Project:
        project = Project(
            creator_id=creator.id,
            title=body.title,
            description=body.description,
            cover_image_url=body.cover_image_url,
            sharing_enabled=body.sharing_enabled,
            share_token=new_share_token(),
        )
        self.db.add(project)
        await self.db.flush()

        for position, track in enumerate(body.tracks):
            self.db.add(
                Track(
                    project_id=project.id,
                    title=track.title,
                    audio_url=track.audio_url,
                    duration_seconds=track.duration_seconds,
                    position=position,
                )
            )
        self.db.add(ProjectMetrics(project_id=project.id))
        await self.db.commit()

        logger.info(
            "project.created",
            project_id=str(project.id),
            creator_id=str(creator.id),
            tracks=len(body.tracks),
        )
        return await self._load(project.id)

    async def get_project(self, project_id: uuid.UUID, caller: Optional[User]) -> Project:
        """Hidden projects are only visible to their creator."""
        await self.ownership.resolve_visible(
            Target(project_id=project_id), caller.id if caller else None
        )
        return await self._load(project_id)

    async def get_shared(self, share_token: str) -> Project:
        result = await self.db.execute(
            select(Project)
            .where(Project.share_token == share_token)
            .options(selectinload(Project.tracks))
        )
        project = result.scalars().first()
        if project is None or project.sharing_enabled is False:
            raise NotFound("Project not found")
        return project

    async def update_project(
        self, project_id: uuid.UUID, caller: User, body: ProjectUpdate
    ) -> Project:
        """Owner only. Non-owners of hidden projects get NotFound."""
        ownership = await self.ownership.resolve_visible(
            Target(project_id=project_id), caller.id
        )
        if ownership.owner_id != caller.id:
            raise Forbidden("Only the creator can update this project")

        project = await self._load(project_id)
        for name, value in body.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(project, name, value)
        await self.db.commit()
        logger.info("project.updated", project_id=str(project_id))
        return project

    async def _load(self, project_id: uuid.UUID) -> Project:
        result = await self.db.execute(
            select(Project)
            .where(Project.id == project_id)
            .options(selectinload(Project.tracks))
            .execution_options(populate_existing=True)
        )
        project = result.scalars().first()
        if project is None:
            raise NotFound("Project not found")
        return project
