"""SQLAlchemy ORM models — single source of truth for the database schema.

Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Relationships, constraints, and indexes defined here.
Alembic migrations mirror these models.

Key concepts:
- UUID primary keys (ids appear in share links and client payloads)
- Portable column types (Uuid, JSON) so the same models run on PostgreSQL
  in production and SQLite in the test suite
- CHECK constraints back up the comment target rules the API validates
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


# ══════════════════════════════════════════════════════════════
# Identity
# ══════════════════════════════════════════════════════════════


class User(Base):
    """A person known to the identity provider.

    Created lazily the first time a verified token for ``external_id``
    reaches the API. ``external_id`` is the provider's subject claim and is
    never reassigned.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    external_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(254), nullable=True)

    # Public profile
    username: Mapped[Optional[str]] = mapped_column(String(50), unique=True, nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(254), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    instagram: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    twitter: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    farcaster: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    wallet_address: Mapped[Optional[str]] = mapped_column(String(42), nullable=True)

    # Card payouts
    stripe_account_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    stripe_onboarding_complete: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    @property
    def display_name(self) -> str:
        return self.username or self.email or "Unknown"


# ══════════════════════════════════════════════════════════════
# Projects + tracks
# ══════════════════════════════════════════════════════════════


class Project(Base):
    """A creator's collection of tracks, shared through ``share_token``.

    ``creator_id`` is the sole administrative owner. When
    ``sharing_enabled`` is false the project is hidden from everyone
    except its creator.
    """

    __tablename__ = "projects"
    __table_args__ = (
        Index("idx_projects_creator", "creator_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    creator_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cover_image_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    share_token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    sharing_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    # Relationships
    tracks: Mapped[list["Track"]] = relationship(
        back_populates="project", order_by="Track.position"
    )


class Track(Base):
    """An uploaded audio file. Its effective owner is the project's creator.

    ``project_id`` is nullable until older uploads are migrated; a track
    without a project has no owner and is treated as not found.
    """

    __tablename__ = "tracks"
    __table_args__ = (
        Index("idx_tracks_project", "project_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    project_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    audio_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    duration_seconds: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    # Relationships
    project: Mapped[Optional["Project"]] = relationship(back_populates="tracks")


class ProjectMetrics(Base):
    """Play/share/add counters, one row per project.

    Only ever changed through MetricsService.increment, which issues a
    single ``SET field = field + 1`` statement.
    """

    __tablename__ = "project_metrics"

    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True
    )
    plays: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    shares: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    adds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


# ══════════════════════════════════════════════════════════════
# Feedback
# ══════════════════════════════════════════════════════════════


class Comment(Base):
    """Feedback on a whole project or at a moment in a track.

    Exactly one of project_id / track_id is set. Track comments carry the
    playback position in whole seconds; project comments never do.
    """

    __tablename__ = "comments"
    __table_args__ = (
        CheckConstraint(
            "(project_id IS NOT NULL AND track_id IS NULL) OR "
            "(project_id IS NULL AND track_id IS NOT NULL)",
            name="comments_target_check",
        ),
        CheckConstraint(
            "(track_id IS NULL AND timestamp_seconds IS NULL) OR "
            "(track_id IS NOT NULL AND timestamp_seconds IS NOT NULL "
            "AND timestamp_seconds >= 0)",
            name="comments_track_timestamp_check",
        ),
        Index("idx_comments_project_id", "project_id"),
        Index("idx_comments_track_id", "track_id"),
        Index("idx_comments_user_id", "user_id"),
        Index("idx_comments_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    project_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=True
    )
    track_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("tracks.id", ondelete="CASCADE"), nullable=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp_seconds: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    # Relationships
    author: Mapped["User"] = relationship()


# ══════════════════════════════════════════════════════════════
# Library
# ══════════════════════════════════════════════════════════════


class LibraryEntry(Base):
    """A project saved to a listener's library."""

    __tablename__ = "user_projects"
    __table_args__ = (
        UniqueConstraint("user_id", "project_id", name="uq_user_projects"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


# ══════════════════════════════════════════════════════════════
# Tips + notifications
# ══════════════════════════════════════════════════════════════


class Tip(Base):
    """A completed tip to a creator.

    ``payment_reference`` is the Stripe checkout session id for card tips
    and the transaction hash for crypto tips. It is unique so a payment
    can only ever be recorded once.
    """

    __tablename__ = "tips"
    __table_args__ = (
        Index("idx_tips_creator", "creator_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    creator_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)  # minor units
    currency: Mapped[str] = mapped_column(String(10), nullable=False)  # usd, usdc
    tipper_username: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    message: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    payment_reference: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False
    )
    provider_payment_id: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True
    )  # Daimo payment id or Stripe payment intent
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="completed")
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class Notification(Base):
    """Something a user should see next time they open the app."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("idx_notifications_user", "user_id", "is_read"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[str] = mapped_column(String(30), nullable=False)  # tip
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
