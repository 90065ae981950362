"""Pydantic schemas for projects and tracks.

Tracks are registered with an already-uploaded audio URL; the upload
itself happens directly against object storage.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TrackCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    audio_url: str = Field(..., min_length=1, max_length=1000)
    duration_seconds: Optional[int] = Field(None, ge=0)


class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    cover_image_url: Optional[str] = Field(None, max_length=1000)
    sharing_enabled: bool = True
    tracks: list[TrackCreate] = Field(default_factory=list, max_length=100)


class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    sharing_enabled: Optional[bool] = None


class TrackRead(BaseModel):
    id: uuid.UUID
    project_id: Optional[uuid.UUID] = None
    title: str
    audio_url: str
    position: int
    duration_seconds: Optional[int] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ProjectRead(BaseModel):
    id: uuid.UUID
    creator_id: uuid.UUID
    title: str
    description: Optional[str] = None
    cover_image_url: Optional[str] = None
    sharing_enabled: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ProjectDetail(ProjectRead):
    """Project with nested tracks. share_token only shown to the owner."""
    tracks: list[TrackRead] = []
    share_token: Optional[str] = None
    is_owner: bool = False
