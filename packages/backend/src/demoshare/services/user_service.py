"""User service — profile reads and updates.

The set of fields a user may change is the PROFILE_FIELDS table below:
one entry per column with its length limit and, where needed, a format
check. Anything not in the table is ignored, so the mutable surface of
the users table is visible in one place.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from demoshare.db.models import User
from demoshare.errors import Conflict, InvalidInput
from demoshare.validation import is_valid_eth_address, sanitize_text

logger = structlog.get_logger()

_USERNAME_RE = re.compile(r"^[a-zA-Z0-9_-]{3,50}$")
_WEBSITE_RE = re.compile(r"^https?://")


@dataclass(frozen=True)
class FieldRule:
    max_length: int
    check: Optional[Callable[[str], bool]] = None
    error: str = ""


PROFILE_FIELDS: dict[str, FieldRule] = {
    "username": FieldRule(
        50,
        lambda v: bool(_USERNAME_RE.match(v)),
        "Username must be 3-50 characters and only contain letters, numbers, "
        "underscores, and hyphens",
    ),
    "bio": FieldRule(500),
    "contact_email": FieldRule(254),
    "website": FieldRule(
        500,
        lambda v: bool(_WEBSITE_RE.match(v)),
        "Website must start with http:// or https://",
    ),
    "instagram": FieldRule(100),
    "twitter": FieldRule(100),
    "farcaster": FieldRule(100),
    "avatar_url": FieldRule(1000),
    "wallet_address": FieldRule(42, is_valid_eth_address, "Invalid Ethereum wallet address"),
}


def clean_profile_updates(body: dict[str, Any]) -> dict[str, Optional[str]]:
    """Validate the recognised fields of ``body``. Blank values become None."""
    updates: dict[str, Optional[str]] = {}
    for name, rule in PROFILE_FIELDS.items():
        if name not in body:
            continue
        value = body[name]
        if rule.check and value:
            text = str(value).strip()
            if text and not rule.check(text):
                raise InvalidInput(rule.error)
        updates[name] = sanitize_text(value, rule.max_length)

    if not updates:
        raise InvalidInput("No valid fields to update")
    return updates


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def set_email_if_missing(self, user: User, email: Optional[str]) -> User:
        email = sanitize_text(email, 254)
        if email and not user.email:
            user.email = email
            await self.db.commit()
        return user

    async def update_profile(self, user: User, body: dict[str, Any]) -> User:
        updates = clean_profile_updates(body)

        username = updates.get("username")
        if username:
            taken = await self.db.execute(
                select(User.id).where(User.username == username, User.id != user.id)
            )
            if taken.first() is not None:
                raise Conflict("Username is already taken")

        user_id = user.id
        for name, value in updates.items():
            setattr(user, name, value)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise Conflict("Username is already taken")

        logger.info("user.profile_updated", user_id=str(user_id), fields=sorted(updates))
        return user
