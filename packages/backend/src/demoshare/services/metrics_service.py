"""Metrics service — atomic play/share/add counters per project.

Counters are shared by every concurrent request, so they are only ever
changed with a single ``UPDATE ... SET f = f + 1`` statement executed by
the database. Reading the value, adding one in Python and writing it
back would lose updates under concurrency.

The metrics row normally exists from project creation; for older
projects it is created on demand with an insert that ignores conflicts,
so two first increments racing each other both land on the same row.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from demoshare.auth.ownership import OwnershipResolver, Target
from demoshare.db.models import Project, ProjectMetrics
from demoshare.errors import InvalidInput, NotFound

logger = structlog.get_logger()

# The only columns increment() will touch.
METRIC_FIELDS: tuple[str, ...] = ("plays", "shares", "adds")


class MetricsService:
    """Business logic for project counters."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def increment(self, project_id: uuid.UUID, field: str) -> ProjectMetrics:
        """Atomically add one to ``field`` and return the fresh counters."""
        await self.bump(project_id, field)
        await self.db.commit()
        metrics = await self.get_metrics(project_id)
        logger.info(
            "metrics.incremented",
            project_id=str(project_id),
            field=field,
            value=getattr(metrics, field),
        )
        return metrics

    async def bump(self, project_id: uuid.UUID, field: str) -> None:
        """Queue the increment in the current transaction without committing.

        Callers that write something else in the same request (library
        adds) use this so both land in one commit.
        """
        if field not in METRIC_FIELDS:
            raise InvalidInput(
                f"Invalid field. Must be one of: {', '.join(METRIC_FIELDS)}"
            )
        exists = await self.db.execute(select(Project.id).where(Project.id == project_id))
        if exists.first() is None:
            raise NotFound("Project not found")

        await self._ensure_row(project_id)
        column = getattr(ProjectMetrics, field)
        await self.db.execute(
            update(ProjectMetrics)
            .where(ProjectMetrics.project_id == project_id)
            .values({column: column + 1})
            .execution_options(synchronize_session=False)
        )

    async def read_metrics(
        self, project_id: uuid.UUID, caller_id: Optional[uuid.UUID]
    ) -> ProjectMetrics:
        """Counters for a project the caller may see. Hidden projects are NotFound."""
        await OwnershipResolver(self.db).resolve_visible(
            Target(project_id=project_id), caller_id
        )
        return await self.get_metrics(project_id)

    async def get_metrics(self, project_id: uuid.UUID) -> ProjectMetrics:
        result = await self.db.execute(
            select(ProjectMetrics)
            .where(ProjectMetrics.project_id == project_id)
            .execution_options(populate_existing=True)
        )
        metrics = result.scalars().first()
        if metrics is None:
            exists = await self.db.execute(
                select(Project.id).where(Project.id == project_id)
            )
            if exists.first() is None:
                raise NotFound("Project not found")
            return ProjectMetrics(project_id=project_id, plays=0, shares=0, adds=0)
        return metrics

    async def _ensure_row(self, project_id: uuid.UUID) -> None:
        dialect = self.db.get_bind().dialect.name
        insert = pg_insert if dialect == "postgresql" else sqlite_insert
        await self.db.execute(
            insert(ProjectMetrics)
            .values(project_id=project_id, plays=0, shares=0, adds=0)
            .on_conflict_do_nothing(index_elements=["project_id"])
        )
