"""Pydantic schemas for comments.

Request bodies are deliberately loose (Any / Optional[str]): the comment
service validates shape in a fixed order (target, content, identifiers)
and reports a specific error kind for each, which a strict schema would
pre-empt with a generic validation error.
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class CommentCreate(BaseModel):
    project_id: Optional[str] = None
    track_id: Optional[str] = None
    content: Any = None
    timestamp_seconds: Any = None


class CommentUpdate(BaseModel):
    id: Optional[str] = None
    content: Any = None


class CommentRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    project_id: Optional[uuid.UUID] = None
    track_id: Optional[uuid.UUID] = None
    content: str
    timestamp_seconds: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    author_display_name: str
    can_edit: bool
    can_delete: bool


class CommentList(BaseModel):
    comments: list[CommentRead]


class CommentEnvelope(BaseModel):
    comment: CommentRead
