"""Comment service — feedback on projects and on moments in tracks.

Every operation runs the same sequence, and the order matters because
later steps assume earlier ones passed:

1. Shape: exactly one target, non-empty content, well-formed ids
2. Resolve the target's owner; hidden or missing → NotFound
3. Writes need an authenticated user
4. Update/delete: load the comment, check capabilities
5. Mutate, return the record annotated for the caller
"""

import math
import uuid
from typing import Any, Awaitable, Callable, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from demoshare.auth.ownership import Ownership, OwnershipResolver, Target
from demoshare.auth.permissions import evaluate
from demoshare.config import settings
from demoshare.db.models import Comment, User
from demoshare.errors import (
    Forbidden,
    InvalidContent,
    InvalidInput,
    InvalidTarget,
    NotFound,
)
from demoshare.schemas.comment import CommentRead
from demoshare.validation import parse_uuid

logger = structlog.get_logger()

UserLoader = Callable[[], Awaitable[User]]


def check_target_shape(project_id: Optional[str], track_id: Optional[str]) -> None:
    if bool(project_id) == bool(track_id):
        raise InvalidTarget("Provide either project_id or track_id")


def parse_target(project_id: Optional[str], track_id: Optional[str]) -> Target:
    """Shape-check a raw target, then parse its identifier."""
    check_target_shape(project_id, track_id)
    if project_id:
        return Target(project_id=parse_uuid(project_id, "project_id"))
    return Target(track_id=parse_uuid(track_id, "track_id"))


def clean_content(raw: Any) -> str:
    """Trimmed comment text. Empty or over-long content is rejected, never cut."""
    content = str(raw).strip() if raw is not None else ""
    if not content:
        raise InvalidContent("Comment content is required")
    if len(content) > settings.comment_max_length:
        raise InvalidContent(
            f"Comment must be {settings.comment_max_length} characters or fewer"
        )
    return content


def parse_timestamp(raw: Any) -> int:
    """Playback position for a track comment, floored to whole seconds."""
    if isinstance(raw, bool) or raw is None:
        raise InvalidInput(
            "Valid non-negative timestamp_seconds is required for track comments"
        )
    try:
        value = float(raw)
    except (TypeError, ValueError):
        value = math.nan
    if not math.isfinite(value) or value < 0:
        raise InvalidInput(
            "Valid non-negative timestamp_seconds is required for track comments"
        )
    return math.floor(value)


def to_read(
    comment: Comment, caller_id: Optional[uuid.UUID], ownership: Ownership
) -> CommentRead:
    caps = evaluate(
        caller_id=caller_id,
        author_id=comment.user_id,
        owner_id=ownership.owner_id,
        sharing_enabled=ownership.sharing_enabled,
    )
    return CommentRead(
        id=comment.id,
        user_id=comment.user_id,
        project_id=comment.project_id,
        track_id=comment.track_id,
        content=comment.content,
        timestamp_seconds=comment.timestamp_seconds,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        author_display_name=comment.author.display_name,
        can_edit=caps.can_edit,
        can_delete=caps.can_delete,
    )


class CommentService:
    """Business logic for comment CRUD and moderation."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ownership = OwnershipResolver(db)

    # ─── Read ────────────────────────────────────────────

    async def list_comments(
        self, target: Target, caller: Optional[User]
    ) -> list[CommentRead]:
        """Newest first; equal timestamps fall back to id order."""
        caller_id = caller.id if caller else None
        ownership = await self.ownership.resolve_visible(target, caller_id)

        q = select(Comment).options(selectinload(Comment.author))
        if target.is_track:
            q = q.where(Comment.track_id == target.track_id)
        else:
            q = q.where(Comment.project_id == target.project_id)
        q = q.order_by(Comment.created_at.desc(), Comment.id.desc())

        result = await self.db.execute(q)
        return [to_read(c, caller_id, ownership) for c in result.scalars().all()]

    # ─── Create ──────────────────────────────────────────

    async def create_comment(
        self,
        *,
        project_id: Optional[str],
        track_id: Optional[str],
        content: Any,
        timestamp_seconds: Any,
        load_user: UserLoader,
        caller_hint: Optional[User] = None,
    ) -> CommentRead:
        """Create a comment on a project or at a moment in a track.

        ``load_user`` is only awaited once the target has been resolved,
        so a hidden target is a 404 whether or not the caller is signed in.
        ``caller_hint`` is the caller if already known, used for the
        owner's visibility bypass.
        """
        check_target_shape(project_id, track_id)
        text = clean_content(content)
        target = parse_target(project_id, track_id)

        hint_id = caller_hint.id if caller_hint else None
        ownership = await self.ownership.resolve_visible(target, hint_id)

        seconds = parse_timestamp(timestamp_seconds) if target.is_track else None

        author = await load_user()
        comment = Comment(
            author=author,
            user_id=author.id,
            project_id=target.project_id,
            track_id=target.track_id,
            content=text,
            timestamp_seconds=seconds,
        )
        self.db.add(comment)
        await self.db.commit()

        logger.info(
            "comment.created",
            comment_id=str(comment.id),
            user_id=str(author.id),
            project_id=str(ownership.project_id),
            on_track=target.is_track,
        )
        return to_read(comment, author.id, ownership)

    # ─── Update ──────────────────────────────────────────

    async def update_comment(
        self, *, comment_id: Optional[str], content: Any, load_user: UserLoader
    ) -> CommentRead:
        """Change a comment's content. Author only."""
        if not comment_id:
            raise InvalidInput("Valid comment id is required")
        text = clean_content(content)
        cid = parse_uuid(comment_id, "comment id")

        user = await load_user()
        comment, ownership = await self._load(cid, user)

        if not evaluate(user.id, comment.user_id, ownership.owner_id).can_edit:
            logger.info("comment.edit_forbidden", comment_id=str(cid), user_id=str(user.id))
            raise Forbidden("Only the author can edit this comment")

        comment.content = text
        await self.db.commit()
        await self.db.refresh(comment, attribute_names=["updated_at"])
        logger.info("comment.updated", comment_id=str(cid))
        return to_read(comment, user.id, ownership)

    # ─── Delete ──────────────────────────────────────────

    async def delete_comment(
        self, *, comment_id: Optional[str], load_user: UserLoader
    ) -> None:
        """Delete a comment. Author or the target's owner."""
        if not comment_id:
            raise InvalidInput("Valid comment id is required")
        cid = parse_uuid(comment_id, "comment id")

        user = await load_user()
        comment, ownership = await self._load(cid, user)

        if not evaluate(user.id, comment.user_id, ownership.owner_id).can_delete:
            logger.info("comment.delete_forbidden", comment_id=str(cid), user_id=str(user.id))
            raise Forbidden("Not allowed to delete this comment")

        await self.db.delete(comment)
        await self.db.commit()
        logger.info("comment.deleted", comment_id=str(cid), by_author=comment.user_id == user.id)

    # ─── Helpers ─────────────────────────────────────────

    async def _load(self, comment_id: uuid.UUID, caller: User) -> tuple[Comment, Ownership]:
        result = await self.db.execute(
            select(Comment)
            .options(selectinload(Comment.author))
            .where(Comment.id == comment_id)
        )
        comment = result.scalars().first()
        if comment is None:
            raise NotFound("Comment not found")

        target = Target(project_id=comment.project_id, track_id=comment.track_id)
        try:
            ownership = await self.ownership.resolve_visible(target, caller.id)
        except NotFound:
            raise NotFound("Comment not found")
        return comment, ownership
