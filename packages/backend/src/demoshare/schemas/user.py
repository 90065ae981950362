"""Pydantic schemas for user profiles."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class UserLogin(BaseModel):
    email: Optional[str] = None


class UserRead(BaseModel):
    id: uuid.UUID
    email: Optional[str] = None
    username: Optional[str] = None
    bio: Optional[str] = None
    contact_email: Optional[str] = None
    website: Optional[str] = None
    instagram: Optional[str] = None
    twitter: Optional[str] = None
    farcaster: Optional[str] = None
    avatar_url: Optional[str] = None
    wallet_address: Optional[str] = None
    stripe_onboarding_complete: bool = False
    created_at: datetime

    model_config = {"from_attributes": True}


class UserEnvelope(BaseModel):
    user: UserRead
