"""
Stripe Event Handlers - Creator Platform

Each handler receives the ``data.object`` payload of a verified Stripe
event and applies it to our purchases through ``sales.services``.

Handled event types (idempotent):
- checkout.session.completed / payment_intent.succeeded -> purchase successful
- charge.refunded -> Refund for the newly refunded amount
- charge.dispute.created / charge.dispute.closed -> Dispute and chargeback flags

Author: CP Development Team
Version: 1.0.0
"""

import datetime
import logging
from typing import Any, Dict, Optional

from django.db.models import Q
from django.utils import timezone

from sales.models import Dispute, Purchase
from sales.services import mark_successful, record_dispute, record_refund

logger = logging.getLogger(__name__)


def _timestamp(value) -> Optional[datetime.datetime]:
    if not value:
        return None
    return datetime.datetime.fromtimestamp(int(value), tz=datetime.timezone.utc)


def find_purchase(obj: Dict[str, Any]) -> Optional[Purchase]:
    """
    Resolve the purchase a Stripe object belongs to.

    Tries ``metadata.purchase_id`` first, then the charge / PaymentIntent ids
    stored on the purchase.
    """
    metadata = obj.get("metadata") or {}
    purchase_id = metadata.get("purchase_id")
    if purchase_id:
        purchase = Purchase.objects.filter(external_id=purchase_id).first()
        if purchase is not None:
            return purchase

    ids = [value for value in (obj.get("charge"), obj.get("payment_intent"), obj.get("id")) if isinstance(value, str)]
    if not ids:
        return None
    return Purchase.objects.filter(Q(stripe_transaction_id__in=ids)).order_by("id").first()


def handle_checkout_session_completed(session: Dict[str, Any]) -> None:
    if session.get("payment_status") not in (None, "paid", "no_payment_required"):
        logger.info("Checkout session %s not paid yet (%s)", session.get("id"), session.get("payment_status"))
        return

    purchase = find_purchase(session)
    if purchase is None:
        logger.warning("checkout.session.completed without a known purchase (session=%s)", session.get("id"))
        return

    mark_successful(
        purchase,
        transaction_id=session.get("payment_intent"),
        succeeded_at=_timestamp(session.get("created")),
    )


def handle_payment_intent_succeeded(payment_intent: Dict[str, Any]) -> None:
    purchase = find_purchase(payment_intent)
    if purchase is None:
        logger.debug("payment_intent.succeeded for unknown purchase (pi=%s)", payment_intent.get("id"))
        return

    charge_id = payment_intent.get("latest_charge") or payment_intent.get("id")
    created = mark_successful(purchase, transaction_id=charge_id)

    # The checkout webhook may have stored the PaymentIntent id first.
    if not created and charge_id and purchase.stripe_transaction_id != charge_id:
        Purchase.objects.filter(pk=purchase.pk, stripe_transaction_id__startswith="pi_").update(
            stripe_transaction_id=charge_id
        )


def handle_charge_refunded(charge: Dict[str, Any]) -> None:
    purchase = find_purchase(charge)
    if purchase is None:
        logger.warning("charge.refunded for unknown purchase (charge=%s)", charge.get("id"))
        return

    if charge.get("refunded"):
        delta = purchase.gross_amount_refundable_cents
    else:
        # amount_refunded is in the charge currency.
        refunded_cents = purchase.usd_cents_from_charge(int(charge.get("amount_refunded") or 0))
        delta = min(refunded_cents - purchase.gross_amount_refunded_cents, purchase.gross_amount_refundable_cents)
    if delta <= 0:
        logger.info("Refunds of charge %s already recorded", charge.get("id"))
        return

    refunds = (charge.get("refunds") or {}).get("data") or []
    latest = refunds[0] if refunds else {}
    record_refund(
        purchase,
        delta,
        processor_refund_id=latest.get("id"),
        status=latest.get("status") or "succeeded",
    )


DISPUTE_CLOSED_STATES = {"won": Dispute.WON, "lost": Dispute.LOST}


def handle_dispute(dispute: Dict[str, Any], *, closed=False) -> None:
    purchase = find_purchase(dispute)
    if purchase is None:
        logger.warning("Dispute %s for unknown purchase (charge=%s)", dispute.get("id"), dispute.get("charge"))
        return

    if closed:
        state = DISPUTE_CLOSED_STATES.get(dispute.get("status"))
        if state is None:
            logger.info("Dispute %s closed as %s, nothing to record", dispute.get("id"), dispute.get("status"))
            return
    else:
        state = Dispute.FORMALIZED

    record_dispute(
        purchase,
        state=state,
        processor_dispute_id=dispute.get("id"),
        reason=dispute.get("reason") or "",
        amount_cents=None if dispute.get("amount") is None else purchase.usd_cents_from_charge(dispute["amount"]),
        at=timezone.now() if closed else _timestamp(dispute.get("created")),
    )


HANDLERS = {
    "checkout.session.completed": handle_checkout_session_completed,
    "payment_intent.succeeded": handle_payment_intent_succeeded,
    "charge.refunded": handle_charge_refunded,
    "charge.dispute.created": handle_dispute,
    "charge.dispute.closed": lambda obj: handle_dispute(obj, closed=True),
}


def dispatch(event_type: str, obj: Dict[str, Any]) -> bool:
    """Runs the handler for ``event_type``; returns False when there is none."""
    handler = HANDLERS.get(event_type)
    if handler is None:
        logger.debug("Unhandled event type: %s", event_type)
        return False
    handler(obj)
    return True
