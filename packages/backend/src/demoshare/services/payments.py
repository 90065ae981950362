"""Card payments through Stripe Checkout.

Two halves:
1. StripeCheckout creates a hosted checkout session for a tip and hands
   back its URL. The platform fee is taken as an application fee and the
   rest is transferred to the creator's connected account.
2. verify_webhook_signature checks the Stripe-Signature header on incoming
   webhook calls (HMAC-SHA256 over "{timestamp}.{payload}").

Stripe's API is form-encoded with bracketed keys for nesting, so the
session parameters are flattened before sending.
"""

import hashlib
import hmac
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx
import structlog

from demoshare.config import settings

logger = structlog.get_logger()

SIGNATURE_TOLERANCE_SECONDS = 300


class PaymentProviderError(Exception):
    """Raised when the payment provider rejects or fails a request."""


class WebhookSignatureError(Exception):
    """Raised when a webhook payload cannot be authenticated."""


@dataclass
class CheckoutRequest:
    creator_id: str
    creator_name: str
    destination_account: str
    amount: int  # cents
    tipper_username: str = ""
    message: str = ""
    tipper_email: Optional[str] = None


def platform_fee(amount: int, percent: Optional[float] = None) -> int:
    pct = settings.platform_fee_percent if percent is None else percent
    return round(amount * (pct / 100))


def flatten_params(data: Any, prefix: str = "") -> list[tuple[str, str]]:
    """Flatten nested dicts/lists into Stripe's bracketed form keys."""
    items: list[tuple[str, str]] = []
    if isinstance(data, dict):
        for key, value in data.items():
            name = f"{prefix}[{key}]" if prefix else str(key)
            items.extend(flatten_params(value, name))
    elif isinstance(data, list):
        for i, value in enumerate(data):
            items.extend(flatten_params(value, f"{prefix}[{i}]"))
    elif data is None:
        pass
    elif isinstance(data, bool):
        items.append((prefix, "true" if data else "false"))
    else:
        items.append((prefix, str(data)))
    return items


class StripeCheckout:
    """Thin async client for the one Stripe call we make."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.stripe_secret_key
        self.base_url = (base_url or settings.stripe_api_base).rstrip("/")
        self.transport = transport

    def session_params(self, req: CheckoutRequest) -> dict:
        description = (
            f"Message: {req.message}"
            if req.message
            else "Thank you for supporting this creator!"
        )
        metadata = {
            "creator_id": req.creator_id,
            "tipper_username": req.tipper_username,
            "message": req.message,
        }
        return {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": "usd",
                        "product_data": {
                            "name": f"Tip for {req.creator_name or 'Creator'}",
                            "description": description,
                        },
                        "unit_amount": req.amount,
                    },
                    "quantity": 1,
                }
            ],
            "payment_intent_data": {
                "application_fee_amount": platform_fee(req.amount),
                "transfer_data": {"destination": req.destination_account},
                "metadata": metadata,
            },
            "customer_email": req.tipper_email,
            "success_url": f"{settings.app_url}/tip/success?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{settings.app_url}/tip/cancelled",
            "metadata": {**metadata, "type": "tip"},
        }

    async def create_session(self, req: CheckoutRequest) -> str:
        """Create a checkout session and return its hosted URL."""
        if not self.api_key:
            raise PaymentProviderError("Card payments are not configured")

        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=15.0, transport=self.transport
        ) as client:
            try:
                resp = await client.post(
                    "/v1/checkout/sessions",
                    data=dict(flatten_params(self.session_params(req))),
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
            except httpx.HTTPError as e:
                raise PaymentProviderError(f"Payment provider unreachable: {e}")

        if resp.status_code >= 400:
            logger.warning(
                "payments.checkout_rejected",
                status=resp.status_code,
                body=resp.text[:500],
            )
            raise PaymentProviderError("Failed to create payment session")

        session = resp.json()
        logger.info("payments.checkout_created", session_id=session.get("id"))
        return session["url"]


def get_checkout() -> StripeCheckout:
    """FastAPI dependency; overridden in tests with a mock transport."""
    return StripeCheckout()


def sign_payload(payload: bytes, secret: str, timestamp: Optional[int] = None) -> str:
    """Build a Stripe-Signature header value for ``payload``."""
    ts = int(time.time()) if timestamp is None else timestamp
    signed = f"{ts}.".encode() + payload
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"


def verify_webhook_signature(
    payload: bytes,
    header: Optional[str],
    secret: str,
    tolerance: int = SIGNATURE_TOLERANCE_SECONDS,
    now: Optional[float] = None,
) -> None:
    """Raise WebhookSignatureError unless ``header`` signs ``payload``."""
    if not secret:
        raise WebhookSignatureError("Webhook secret is not configured")
    if not header:
        raise WebhookSignatureError("Missing signature header")

    timestamp = None
    signatures = []
    for part in header.split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            timestamp = value
        elif key == "v1":
            signatures.append(value)

    if timestamp is None or not timestamp.isdigit() or not signatures:
        raise WebhookSignatureError("Malformed signature header")

    current = time.time() if now is None else now
    if abs(current - int(timestamp)) > tolerance:
        raise WebhookSignatureError("Signature timestamp outside tolerance")

    expected = hmac.new(
        secret.encode(), f"{timestamp}.".encode() + payload, hashlib.sha256
    ).hexdigest()
    if not any(hmac.compare_digest(expected, sig) for sig in signatures):
        raise WebhookSignatureError("Signature mismatch")
