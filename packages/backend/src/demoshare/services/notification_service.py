"""Notification service — the creator's inbox.

Rows are the source of truth; the Redis publish afterwards is a
best-effort nudge for connected clients.
"""

import uuid

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from demoshare.db.models import Notification, Tip
from demoshare.realtime.pubsub import publish_notification

logger = structlog.get_logger()


class NotificationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    def add_tip_notification(self, tip: Tip) -> Notification:
        """Stage a notification for a tip. Committed with the tip."""
        notification = Notification(
            user_id=tip.creator_id,
            kind="tip",
            data={
                "amount": tip.amount,
                "currency": tip.currency,
                "tipper_username": tip.tipper_username,
                "message": tip.message,
            },
        )
        self.db.add(notification)
        return notification

    async def publish(self, notification: Notification) -> None:
        delivered = await publish_notification(
            str(notification.user_id),
            notification.kind,
            {"id": str(notification.id), **notification.data},
        )
        logger.info(
            "notification.created",
            notification_id=str(notification.id),
            user_id=str(notification.user_id),
            kind=notification.kind,
            published=delivered,
        )

    async def list_for_user(
        self, user_id: uuid.UUID, unread_only: bool = False, limit: int = 50
    ) -> list[Notification]:
        q = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            q = q.where(Notification.is_read.is_(False))
        q = q.order_by(Notification.created_at.desc()).limit(limit)
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def mark_all_read(self, user_id: uuid.UUID) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        await self.db.commit()
        return result.rowcount
