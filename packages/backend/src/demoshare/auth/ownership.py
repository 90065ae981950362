"""Ownership resolution — who ultimately owns a comment target.

A target is either a project or a track. Projects are owned by their
creator; tracks by the creator of their parent project. There is exactly
one level of nesting.

Track targets are resolved with one joined query, so a project deleted
between "find the track" and "find its project" simply yields no row
(NotFound) instead of a half-resolved owner.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from demoshare.db.models import Project, Track
from demoshare.errors import InvalidTarget, NotFound


@dataclass(frozen=True)
class Target:
    """Exactly one of project_id / track_id."""

    project_id: Optional[uuid.UUID] = None
    track_id: Optional[uuid.UUID] = None

    def __post_init__(self):
        if (self.project_id is None) == (self.track_id is None):
            raise InvalidTarget("Provide either project_id or track_id")

    @property
    def is_track(self) -> bool:
        return self.track_id is not None

    @property
    def label(self) -> str:
        return "Track" if self.is_track else "Project"


@dataclass(frozen=True)
class Ownership:
    """Snapshot of a target's effective owner and visibility."""

    project_id: uuid.UUID
    owner_id: uuid.UUID
    sharing_enabled: Optional[bool]

    def visible_to(self, caller_id: Optional[uuid.UUID]) -> bool:
        """Visibility gate. The owner always sees their own unshared work."""
        if self.sharing_enabled is not False:
            return True
        return caller_id is not None and caller_id == self.owner_id


class OwnershipResolver:
    """Resolves targets against the database. No caching across requests."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def resolve(self, target: Target) -> Ownership:
        """Effective owner of a target, or NotFound if it does not exist."""
        if target.is_track:
            q = (
                select(Project.id, Project.creator_id, Project.sharing_enabled)
                .select_from(Track)
                .join(Project, Track.project_id == Project.id)
                .where(Track.id == target.track_id)
            )
        else:
            q = select(
                Project.id, Project.creator_id, Project.sharing_enabled
            ).where(Project.id == target.project_id)

        row = (await self.db.execute(q)).first()
        if row is None:
            raise NotFound(f"{target.label} not found")
        return Ownership(
            project_id=row.id,
            owner_id=row.creator_id,
            sharing_enabled=row.sharing_enabled,
        )

    async def resolve_visible(
        self, target: Target, caller_id: Optional[uuid.UUID]
    ) -> Ownership:
        """Resolve, then collapse "exists but hidden from you" into NotFound."""
        ownership = await self.resolve(target)
        if not ownership.visible_to(caller_id):
            raise NotFound(f"{target.label} not found")
        return ownership
