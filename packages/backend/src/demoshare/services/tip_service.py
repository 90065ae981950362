"""Tip service — card and crypto tips to creators.

Crypto tips arrive already paid: the client reports the on-chain
transaction hash and we record it. Card tips go through Stripe Checkout
and are recorded when Stripe's webhook confirms the session.

Either way the payment reference (tx hash or checkout session id) is
unique. A replayed reference is rejected with Conflict, both by an
up-front lookup and by the unique constraint if two submissions race.
"""

import math
import uuid
from typing import Any, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from demoshare.db.models import Tip, User
from demoshare.errors import Conflict, Forbidden, Internal, InvalidInput, NotFound
from demoshare.services.notification_service import NotificationService
from demoshare.services.payments import (
    CheckoutRequest,
    PaymentProviderError,
    StripeCheckout,
)
from demoshare.validation import is_valid_tx_hash, parse_uuid, sanitize_text

logger = structlog.get_logger()

# Card tips, in cents
CARD_MIN_AMOUNT = 100
CARD_MAX_AMOUNT = 50_000

# Crypto tips, in dollars
CRYPTO_MIN_AMOUNT = 0.01
CRYPTO_MAX_AMOUNT = 500.0

USERNAME_MAX_LENGTH = 100
MESSAGE_MAX_LENGTH = 500


def _dollars(raw: Any) -> float:
    if isinstance(raw, bool):
        return math.nan
    try:
        return float(raw)
    except (TypeError, ValueError):
        return math.nan


class TipService:
    """Business logic for recording and reading tips."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    # ─── Crypto ──────────────────────────────────────────

    async def record_crypto_tip(
        self,
        *,
        creator_id: Optional[str],
        amount: Any,
        tx_hash: Optional[str],
        payment_id: Optional[str],
        tipper_username: Any = None,
        message: Any = None,
    ) -> Tip:
        if not creator_id or not amount or not tx_hash or not payment_id:
            raise InvalidInput(
                "Missing required fields: creator_id, amount, tx_hash, and "
                "payment_id are required"
            )
        creator_uuid = parse_uuid(creator_id, "creator ID format")
        if not is_valid_tx_hash(tx_hash):
            raise InvalidInput("Invalid transaction hash format")
        # Hex is case-insensitive; one transaction has one reference.
        tx_hash = tx_hash.lower()

        dollars = _dollars(amount)
        if not (CRYPTO_MIN_AMOUNT <= dollars <= CRYPTO_MAX_AMOUNT):
            raise InvalidInput("Amount must be between $0.01 and $500")

        tip = Tip(
            creator_id=creator_uuid,
            amount=round(dollars * 100),
            currency="usdc",
            tipper_username=sanitize_text(tipper_username, USERNAME_MAX_LENGTH),
            message=sanitize_text(message, MESSAGE_MAX_LENGTH),
            payment_reference=tx_hash,
            provider_payment_id=str(payment_id)[:255],
            status="completed",
        )
        return await self._record(tip)

    # ─── Card ────────────────────────────────────────────

    async def create_checkout(
        self,
        checkout: StripeCheckout,
        *,
        creator_id: Optional[str],
        amount: Any,
        tipper_email: Optional[str] = None,
        tipper_username: Any = None,
        message: Any = None,
    ) -> str:
        """Start a card tip. Returns the hosted checkout URL."""
        if not creator_id or not amount:
            raise InvalidInput("Creator ID and amount are required")
        creator_uuid = parse_uuid(creator_id, "creator ID format")
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidInput("Amount must be a whole number of cents")
        if not (CARD_MIN_AMOUNT <= amount <= CARD_MAX_AMOUNT):
            raise InvalidInput("Amount must be between $1 and $500")

        creator = await self.db.get(User, creator_uuid)
        if creator is None:
            raise NotFound("Creator not found")
        if not creator.stripe_account_id or not creator.stripe_onboarding_complete:
            raise InvalidInput("Creator has not set up payments yet")

        req = CheckoutRequest(
            creator_id=str(creator_uuid),
            creator_name=creator.username or "",
            destination_account=creator.stripe_account_id,
            amount=amount,
            tipper_username=sanitize_text(tipper_username, USERNAME_MAX_LENGTH) or "",
            message=sanitize_text(message, MESSAGE_MAX_LENGTH) or "",
            tipper_email=tipper_email or None,
        )
        try:
            return await checkout.create_session(req)
        except PaymentProviderError as e:
            logger.error("tip.checkout_failed", creator_id=str(creator_uuid), error=str(e))
            raise Internal("Failed to create payment session")

    async def record_card_tip(self, session: dict) -> Tip:
        """Record a completed checkout session from the Stripe webhook."""
        metadata = session.get("metadata") or {}
        session_id = session.get("id")
        if not session_id:
            raise InvalidInput("Checkout session has no id")
        creator_uuid = parse_uuid(metadata.get("creator_id"), "creator ID format")

        amount = session.get("amount_total")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidInput("Checkout session has no amount")

        tip = Tip(
            creator_id=creator_uuid,
            amount=amount,
            currency=(session.get("currency") or "usd").lower(),
            tipper_username=sanitize_text(metadata.get("tipper_username"), USERNAME_MAX_LENGTH),
            message=sanitize_text(metadata.get("message"), MESSAGE_MAX_LENGTH),
            payment_reference=session_id,
            provider_payment_id=session.get("payment_intent"),
            status="completed",
        )
        return await self._record(tip)

    # ─── Read ────────────────────────────────────────────

    async def list_received(self, user: User, limit: int = 20) -> list[Tip]:
        result = await self.db.execute(
            select(Tip)
            .where(Tip.creator_id == user.id)
            .order_by(Tip.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def mark_read(
        self, user: User, tip_id: uuid.UUID, is_read: bool = True
    ) -> Tip:
        """Set the read flag. Only the tip's recipient can change it."""
        tip = await self.db.get(Tip, tip_id)
        if tip is None:
            raise NotFound("Tip not found")
        if tip.creator_id != user.id:
            raise Forbidden("Only the recipient can update this tip")
        tip.is_read = is_read
        await self.db.commit()
        return tip

    # ─── Helpers ─────────────────────────────────────────

    async def _record(self, tip: Tip) -> Tip:
        reference = tip.payment_reference
        existing = await self.db.execute(
            select(Tip.id).where(Tip.payment_reference == reference)
        )
        if existing.first() is not None:
            logger.warning("tip.duplicate_rejected", payment_reference=reference)
            raise Conflict("This payment has already been recorded")

        if await self.db.get(User, tip.creator_id) is None:
            raise NotFound("Creator not found")

        self.db.add(tip)
        notification = self.notifications.add_tip_notification(tip)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning("tip.duplicate_rejected", payment_reference=reference, race=True)
            raise Conflict("This payment has already been recorded")

        logger.info(
            "tip.recorded",
            tip_id=str(tip.id),
            creator_id=str(tip.creator_id),
            amount=tip.amount,
            currency=tip.currency,
        )
        await self.notifications.publish(notification)
        return tip
