"""Library API routes — a listener's saved projects.

- GET /library → caller's entries, pinned first
- POST /library → save a project (idempotent; 201 new, 200 existing)
- PATCH /library → pin / unpin
- DELETE /library?project_id= → remove
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from demoshare.auth.dependencies import get_current_user
from demoshare.db.engine import get_db
from demoshare.db.models import User
from demoshare.errors import InvalidIdentifier, InvalidInput
from demoshare.schemas.library import (
    LibraryAdd,
    LibraryEntryRead,
    LibraryEnvelope,
    LibraryList,
    LibraryPin,
)
from demoshare.services.library_service import LibraryService
from demoshare.validation import is_valid_uuid

router = APIRouter(prefix="/library")


def _svc(db: AsyncSession = Depends(get_db)) -> LibraryService:
    return LibraryService(db)


def _project_id(raw: Optional[str]) -> uuid.UUID:
    if not is_valid_uuid(raw):
        raise InvalidIdentifier("Valid project ID is required")
    return uuid.UUID(raw)


@router.get("", response_model=LibraryList)
async def list_library(
    user: User = Depends(get_current_user),
    svc: LibraryService = Depends(_svc),
):
    return {"entries": await svc.list_entries(user)}


@router.post("", response_model=LibraryEnvelope, status_code=201)
async def add_to_library(
    body: LibraryAdd,
    user: User = Depends(get_current_user),
    svc: LibraryService = Depends(_svc),
):
    """Save a project. Saving it again returns the existing entry."""
    entry, created = await svc.add(user, _project_id(body.project_id))
    payload = {
        "user_project": LibraryEntryRead.model_validate(entry).model_dump(mode="json"),
        "created": created,
    }
    if not created:
        return JSONResponse(status_code=200, content=payload)
    return payload


@router.patch("", response_model=LibraryEnvelope)
async def pin_library_entry(
    body: LibraryPin,
    user: User = Depends(get_current_user),
    svc: LibraryService = Depends(_svc),
):
    project_id = _project_id(body.project_id)
    if not isinstance(body.pinned, bool):
        raise InvalidInput("Pinned must be a boolean value")
    entry = await svc.set_pinned(user, project_id, body.pinned)
    return {"user_project": entry}


@router.delete("")
async def remove_from_library(
    project_id: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    svc: LibraryService = Depends(_svc),
):
    await svc.remove(user, _project_id(project_id))
    return {"success": True}
