"""Pydantic schemas for library entries and project metrics."""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class LibraryAdd(BaseModel):
    project_id: Optional[str] = None


class LibraryPin(BaseModel):
    project_id: Optional[str] = None
    pinned: Any = None


class LibraryEntryRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    project_id: uuid.UUID
    pinned: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class LibraryEnvelope(BaseModel):
    user_project: LibraryEntryRead
    created: bool = False


class LibraryList(BaseModel):
    entries: list[LibraryEntryRead]


class MetricIncrement(BaseModel):
    project_id: Optional[str] = None
    field: Optional[str] = None


class MetricsRead(BaseModel):
    project_id: uuid.UUID
    plays: int
    shares: int
    adds: int

    model_config = {"from_attributes": True}


class MetricsEnvelope(BaseModel):
    metrics: MetricsRead
