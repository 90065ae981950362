"""FastAPI auth dependencies.

Used as Depends() in route handlers to turn the Authorization header into
the calling User.

- get_current_user_optional: anonymous-capable reads. No header → None.
  Never creates a user row.
- get_current_user: writes. No header → 401. Creates the user row the
  first time a subject is seen.

A header that is present but fails verification is a 401 from both.
Public reads that must answer 404 for hidden targets regardless of
credentials use Identity.peek(), where a bad token reads as anonymous.
"""

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from demoshare.auth.jwt import TokenError, verify_token
from demoshare.db.engine import get_db
from demoshare.db.models import User
from demoshare.errors import Unauthenticated
from demoshare.services.identity_service import IdentityService


def _subject_from_header(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    if not authorization.startswith("Bearer "):
        raise Unauthenticated("Authorization header must be a Bearer token")
    token = authorization[7:].strip()
    if not token:
        raise Unauthenticated("Authentication required")
    try:
        return verify_token(token)
    except TokenError as e:
        raise Unauthenticated(str(e))


async def get_current_user_optional(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """The caller if one is authenticated and already known, else None."""
    return await Identity(authorization, db).optional()


async def get_current_user(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """The caller, created on first sight. 401 if unauthenticated."""
    return await Identity(authorization, db).require()


class Identity:
    """Deferred caller resolution.

    Routes whose validation order puts target resolution ahead of the
    authentication check (comments) take this instead of get_current_user
    and call require() at the point where a user becomes mandatory.
    """

    def __init__(self, authorization: Optional[str], db: AsyncSession):
        self._authorization = authorization
        self._service = IdentityService(db)

    def subject(self) -> Optional[str]:
        """The verified token subject, or None when no header was sent."""
        return _subject_from_header(self._authorization)

    async def optional(self) -> Optional[User]:
        subject = self.subject()

        if subject is None:
            return None
        return await self._service.find_user(subject)

    async def peek(self) -> Optional[User]:
        """Like optional(), but a bad token reads as anonymous.

        For public reads and for the owner visibility bypass ahead of
        require(), which reports the bad token itself.
        """
        header = self._authorization or ""
        if not header.startswith("Bearer "):
            return None
        try:
            subject = verify_token(header[7:].strip())
        except TokenError:
            return None
        return await self._service.find_user(subject)

    async def require(self) -> User:
        subject = self.subject()
        if subject is None:
            raise Unauthenticated("Authentication required")
        user, _ = await self._service.get_or_create_user(subject)
        return user


async def get_identity(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Identity:
    return Identity(authorization, db)
