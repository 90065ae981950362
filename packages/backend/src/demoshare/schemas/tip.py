"""Pydantic schemas for tips and notifications."""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class CryptoTipCreate(BaseModel):
    creator_id: Optional[str] = None
    amount: Any = None  # dollars
    tx_hash: Optional[str] = None
    payment_id: Optional[str] = None
    chain_id: Optional[int] = None
    tipper_username: Any = None
    message: Any = None


class CryptoTipCreated(BaseModel):
    success: bool = True
    tip_id: uuid.UUID


class CheckoutCreate(BaseModel):
    creator_id: Optional[str] = None
    amount: Any = None  # cents
    tipper_email: Optional[str] = None
    tipper_username: Any = None
    message: Any = None


class CheckoutCreated(BaseModel):
    url: str


class TipRead(BaseModel):
    id: uuid.UUID
    creator_id: uuid.UUID
    amount: int
    currency: str
    tipper_username: Optional[str] = None
    message: Optional[str] = None
    payment_reference: str
    status: str
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class TipUpdate(BaseModel):
    is_read: bool = True


class NotificationRead(BaseModel):
    id: uuid.UUID
    kind: str
    data: dict
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}
