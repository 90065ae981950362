"""Library service — projects a listener has saved.

Adding is idempotent: a second add of the same project returns the entry
that is already there. Only a genuinely new entry bumps the project's
``adds`` counter, in the same commit as the insert.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from demoshare.auth.ownership import OwnershipResolver, Target
from demoshare.db.models import LibraryEntry, User
from demoshare.errors import NotFound
from demoshare.services.metrics_service import MetricsService

logger = structlog.get_logger()


class LibraryService:
    """Business logic for a user's saved projects."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ownership = OwnershipResolver(db)
        self.metrics = MetricsService(db)

    async def get_entry(self, user_id: uuid.UUID, project_id: uuid.UUID) -> Optional[LibraryEntry]:
        result = await self.db.execute(
            select(LibraryEntry).where(
                LibraryEntry.user_id == user_id,
                LibraryEntry.project_id == project_id,
            )
        )
        return result.scalars().first()

    async def add(self, user: User, project_id: uuid.UUID) -> tuple[LibraryEntry, bool]:
        """Save a project. Returns (entry, created)."""
        user_id = user.id
        await self.ownership.resolve_visible(Target(project_id=project_id), user_id)

        existing = await self.get_entry(user_id, project_id)
        if existing:
            return existing, False

        entry = LibraryEntry(user_id=user_id, project_id=project_id)
        self.db.add(entry)
        try:
            await self.db.flush()
            await self.metrics.bump(project_id, "adds")
            await self.db.commit()
        except IntegrityError:
            # A concurrent add of the same project won; return its row.
            await self.db.rollback()
            existing = await self.get_entry(user_id, project_id)
            if existing is None:
                raise
            return existing, False

        logger.info("library.added", user_id=str(user_id), project_id=str(project_id))
        return entry, True

    async def remove(self, user: User, project_id: uuid.UUID) -> None:
        await self.db.execute(
            delete(LibraryEntry).where(
                LibraryEntry.user_id == user.id,
                LibraryEntry.project_id == project_id,
            )
        )
        await self.db.commit()
        logger.info("library.removed", user_id=str(user.id), project_id=str(project_id))

    async def set_pinned(
        self, user: User, project_id: uuid.UUID, pinned: bool
    ) -> LibraryEntry:
        entry = await self.get_entry(user.id, project_id)
        if entry is None:
            raise NotFound("Project is not in your library")
        entry.pinned = pinned
        await self.db.commit()
        return entry

    async def list_entries(self, user: User) -> list[LibraryEntry]:
        """Pinned first, then most recently added."""
        result = await self.db.execute(
            select(LibraryEntry)
            .where(LibraryEntry.user_id == user.id)
            .order_by(LibraryEntry.pinned.desc(), LibraryEntry.created_at.desc())
        )
        return list(result.scalars().all())
