"""Tip API routes.

- POST /tips/crypto → record an on-chain tip (anonymous; tx hash is the key)
- POST /tips/checkout → start a card tip, returns Stripe Checkout URL
- GET /tips → tips the caller has received (auth)
- PATCH /tips/{id} {is_read} → set a received tip's read flag (auth, recipient only)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from demoshare.auth.dependencies import get_current_user
from demoshare.db.engine import get_db
from demoshare.db.models import User
from demoshare.schemas.tip import (
    CheckoutCreate,
    CheckoutCreated,
    CryptoTipCreate,
    CryptoTipCreated,
    TipRead,
    TipUpdate,
)
from demoshare.services.payments import StripeCheckout, get_checkout
from demoshare.services.tip_service import TipService
from demoshare.validation import parse_limit, parse_uuid

router = APIRouter(prefix="/tips")


def _svc(db: AsyncSession = Depends(get_db)) -> TipService:
    return TipService(db)


@router.post("/crypto", response_model=CryptoTipCreated)
async def record_crypto_tip(body: CryptoTipCreate, svc: TipService = Depends(_svc)):
    """Record a tip paid on-chain. A transaction hash can only be used once."""
    tip = await svc.record_crypto_tip(
        creator_id=body.creator_id,
        amount=body.amount,
        tx_hash=body.tx_hash,
        payment_id=body.payment_id,
        tipper_username=body.tipper_username,
        message=body.message,
    )
    return {"success": True, "tip_id": tip.id}


@router.post("/checkout", response_model=CheckoutCreated)
async def create_checkout(
    body: CheckoutCreate,
    svc: TipService = Depends(_svc),
    checkout: StripeCheckout = Depends(get_checkout),
):
    url = await svc.create_checkout(
        checkout,
        creator_id=body.creator_id,
        amount=body.amount,
        tipper_email=body.tipper_email,
        tipper_username=body.tipper_username,
        message=body.message,
    )
    return {"url": url}


@router.get("", response_model=list[TipRead])
async def list_received_tips(
    limit: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    svc: TipService = Depends(_svc),
):
    return await svc.list_received(user, limit=parse_limit(limit))


@router.patch("/{tip_id}", response_model=TipRead)
async def mark_tip_read(
    tip_id: str,
    body: TipUpdate,
    user: User = Depends(get_current_user),
    svc: TipService = Depends(_svc),
):
    return await svc.mark_read(user, parse_uuid(tip_id, "tip id"), is_read=body.is_read)
