"""Comment API routes.

- GET /comments?project_id=|track_id= → list, annotated per caller
- POST /comments → create (auth)
- PATCH /comments → edit content (auth, author only)
- DELETE /comments?id= → delete (auth, author or target owner)

Authentication is resolved lazily through Identity so that a hidden or
missing target answers 404 before the caller's credentials matter.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from demoshare.auth.dependencies import Identity, get_identity
from demoshare.db.engine import get_db
from demoshare.schemas.comment import (
    CommentCreate,
    CommentEnvelope,
    CommentList,
    CommentUpdate,
)
from demoshare.services.comment_service import CommentService, parse_target

router = APIRouter(prefix="/comments")


def _svc(db: AsyncSession = Depends(get_db)) -> CommentService:
    return CommentService(db)


@router.get("", response_model=CommentList)
async def list_comments(
    project_id: Optional[str] = Query(None),
    track_id: Optional[str] = Query(None),
    identity: Identity = Depends(get_identity),
    svc: CommentService = Depends(_svc),
):
    target = parse_target(project_id, track_id)
    caller = await identity.peek()
    comments = await svc.list_comments(target, caller)
    return {"comments": comments}


@router.post("", response_model=CommentEnvelope, status_code=201)
async def create_comment(
    body: CommentCreate,
    identity: Identity = Depends(get_identity),
    svc: CommentService = Depends(_svc),
):
    comment = await svc.create_comment(
        project_id=body.project_id,
        track_id=body.track_id,
        content=body.content,
        timestamp_seconds=body.timestamp_seconds,
        load_user=identity.require,
        caller_hint=await identity.peek(),
    )
    return {"comment": comment}


@router.patch("", response_model=CommentEnvelope)
async def update_comment(
    body: CommentUpdate,
    identity: Identity = Depends(get_identity),
    svc: CommentService = Depends(_svc),
):
    comment = await svc.update_comment(
        comment_id=body.id, content=body.content, load_user=identity.require
    )
    return {"comment": comment}


@router.delete("")
async def delete_comment(
    id: Optional[str] = Query(None),
    identity: Identity = Depends(get_identity),
    svc: CommentService = Depends(_svc),
):
    await svc.delete_comment(comment_id=id, load_user=identity.require)
    return {"success": True}
