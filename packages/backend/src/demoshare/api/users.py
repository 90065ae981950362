"""User API routes — the caller's own profile.

- GET /user → profile
- POST /user → create-or-get on login (201 when created)
- PATCH /user → update profile fields
"""

from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from demoshare.auth.dependencies import Identity, get_current_user, get_identity
from demoshare.db.engine import get_db
from demoshare.db.models import User
from demoshare.errors import InvalidInput, Unauthenticated
from demoshare.schemas.user import UserEnvelope, UserLogin, UserRead
from demoshare.services.identity_service import IdentityService
from demoshare.services.user_service import UserService
from demoshare.validation import sanitize_text

router = APIRouter(prefix="/user")


def _svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


@router.get("", response_model=UserEnvelope)
async def get_me(user: User = Depends(get_current_user)):
    return {"user": user}


@router.post("", response_model=UserEnvelope)
async def login(
    body: UserLogin,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    """Called by the client right after login. Creates the user on first call."""
    subject = identity.subject()
    if subject is None:
        raise Unauthenticated("Authentication required")

    user, created = await IdentityService(db).get_or_create_user(
        subject, email=sanitize_text(body.email, 254)
    )
    if not created:
        user = await UserService(db).set_email_if_missing(user, body.email)

    payload = {"user": UserRead.model_validate(user).model_dump(mode="json")}
    return JSONResponse(status_code=201 if created else 200, content=payload)


@router.patch("", response_model=UserEnvelope)
async def update_me(
    body: Any = Body(...),
    user: User = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    if not isinstance(body, dict):
        raise InvalidInput("Request body must be a JSON object")
    user = await svc.update_profile(user, body)
    return {"user": user}
