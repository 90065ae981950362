"""Identity service — map a verified subject to an internal User.

The identity provider owns authentication; we own the users table. The
first authenticated request from a subject creates its row. Two first
requests racing each other both try to insert, one hits the unique
constraint on external_id, rolls back, and re-reads the winner's row.
"""

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from demoshare.db.models import User

logger = structlog.get_logger()


class IdentityService:
    """Resolves provider subjects to User rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_user(self, external_id: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.external_id == external_id)
        )
        return result.scalars().first()

    async def get_or_create_user(
        self, external_id: str, email: Optional[str] = None
    ) -> tuple[User, bool]:
        """Return (user, created). Race-tolerant on first sight."""
        user = await self.find_user(external_id)
        if user:
            return user, False

        user = User(external_id=external_id, email=email)
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost the race: another request inserted this subject first.
            await self.db.rollback()
            logger.info("identity.create_conflict", external_id=external_id)
            user = await self.find_user(external_id)
            if user is None:
                raise
            return user, False

        logger.info("identity.user_created", user_id=str(user.id))
        return user, True
