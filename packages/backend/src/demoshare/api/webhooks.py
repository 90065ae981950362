"""Incoming payment-provider webhooks.

POST /webhooks/stripe — Stripe calls this when a checkout session
completes. The raw body is authenticated with the Stripe-Signature header
before anything is parsed. Only tip sessions are recorded; every other
event type is acknowledged so Stripe stops retrying it.
"""

import json
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from demoshare.config import settings
from demoshare.db.engine import get_db
from demoshare.errors import InvalidInput
from demoshare.services.payments import WebhookSignatureError, verify_webhook_signature
from demoshare.services.tip_service import TipService

router = APIRouter(prefix="/webhooks")
logger = structlog.get_logger()


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
):
    payload = await request.body()
    try:
        verify_webhook_signature(payload, stripe_signature, settings.stripe_webhook_secret)
    except WebhookSignatureError as e:
        logger.warning("webhook.signature_rejected", error=str(e))
        raise InvalidInput(f"Invalid signature: {e}")

    try:
        event = json.loads(payload)
    except ValueError:
        raise InvalidInput("Webhook body is not valid JSON")

    event_type = event.get("type")
    session = (event.get("data") or {}).get("object") or {}
    if event_type != "checkout.session.completed":
        return {"received": True, "handled": False}
    if (session.get("metadata") or {}).get("type") != "tip":
        return {"received": True, "handled": False}

    tip = await TipService(db).record_card_tip(session)
    return {"received": True, "handled": True, "tip_id": str(tip.id)}
