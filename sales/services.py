"""
Sales Services - Creator Platform

State changes on purchases that touch money: marking a purchase
successful, issuing and recording refunds, and tracking disputes. Used by
the customer views and by the Stripe webhook handlers.

Author: CP Development Team
Version: 1.0.0
"""

import logging
import math

import stripe
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from analytics.models import UtmLinkDrivenSale
from core.models import SellerProfile
from core.money import get_rate, get_usd_cents
from sales.exceptions import RefundError
from sales.models import AffiliateCredit, AffiliatePartialRefund, Dispute, Purchase, Refund

logger = logging.getLogger(__name__)


def mark_successful(purchase, *, transaction_id=None, succeeded_at=None) -> bool:
    """
    Move an in-progress purchase to ``successful``.

    Returns False when the purchase was already successful (idempotent).
    """
    with transaction.atomic():
        purchase = Purchase.objects.select_for_update().get(pk=purchase.pk)
        if purchase.successful:
            return False

        purchase.purchase_state = Purchase.SUCCESSFUL
        purchase.succeeded_at = succeeded_at or timezone.now()
        if transaction_id:
            purchase.stripe_transaction_id = transaction_id
        purchase.save(update_fields=["purchase_state", "succeeded_at", "stripe_transaction_id", "updated_at"])

        if purchase.affiliate_id and purchase.affiliate_credit_cents > 0:
            AffiliateCredit.objects.get_or_create(
                purchase=purchase,
                defaults={
                    "affiliate": purchase.affiliate,
                    "affiliate_user_id": purchase.affiliate.affiliate_user_id,
                    "seller_id": purchase.seller_id,
                    "amount_cents": purchase.affiliate_credit_cents,
                    "basis_point": purchase.affiliate.basis_points_for(purchase.product),
                },
            )

    logger.info("Purchase %s marked successful", purchase.external_id)
    return True


def record_refund(
    purchase,
    gross_amount_cents,
    *,
    refunding_user=None,
    processor_refund_id=None,
    status="succeeded",
    retained_fee_cents=None,
):
    """
    Persist a refund of ``gross_amount_cents`` and flag the purchase.

    Returns None if the processor refund was already recorded.
    """
    with transaction.atomic():
        purchase = Purchase.objects.select_for_update().get(pk=purchase.pk)
        if processor_refund_id and Refund.objects.filter(processor_refund_id=processor_refund_id).exists():
            logger.info("Refund %s already recorded, skipping", processor_refund_id)
            return None

        already_refunded = purchase.gross_amount_refunded_cents
        refund = purchase.build_refund(
            gross_refund_amount=gross_amount_cents,
            refunding_user=refunding_user,
            previously_partially_refunded=purchase.stripe_partially_refunded,
        )
        if refund is None:
            logger.error(
                "Failed creating a refund for purchase %s (amount=%s)",
                purchase.external_id,
                gross_amount_cents,
            )
            raise RefundError("The purchase could not be refunded. Please check the refund amount.")

        refund.status = status or ""
        refund.processor_refund_id = processor_refund_id
        if not purchase.is_refund_chargeback_fee_waived:
            refund.retained_fee_cents = retained_fee_cents
        refund.save()

        purchase.stripe_refunded = (already_refunded + gross_amount_cents) >= purchase.total_transaction_cents
        purchase.stripe_partially_refunded = not purchase.stripe_refunded
        purchase.save(update_fields=["stripe_refunded", "stripe_partially_refunded", "updated_at"])

        credit = AffiliateCredit.objects.filter(purchase=purchase).first()
        if credit and purchase.stripe_partially_refunded and purchase.price_cents:
            AffiliatePartialRefund.objects.create(
                affiliate_credit=credit,
                purchase=purchase,
                refund=refund,
                amount_cents=math.floor(purchase.affiliate_credit_cents * refund.amount_cents / purchase.price_cents),
            )

    logger.info(
        "Recorded refund of %s cents for purchase %s (full=%s)",
        refund.total_transaction_cents,
        purchase.external_id,
        purchase.stripe_refunded,
    )
    return refund


def refund_purchase(purchase, *, refunding_user, amount_cents=None):
    """
    Refund a purchase through its charge processor and record it.

    ``amount_cents`` is taken out of ``price_cents``; VAT collected by the
    platform is refunded proportionally on top. Omit it for a full refund.
    """
    if not purchase.successful or purchase.stripe_refunded or purchase.amount_refundable_cents <= 0:
        raise RefundError("This purchase cannot be refunded.")

    profile = SellerProfile.objects.filter(user_id=purchase.seller_id).first()
    if profile and profile.refunds_disabled and not getattr(refunding_user, "is_staff", False):
        raise RefundError("Refunds are temporarily disabled in your account.")

    if amount_cents is not None:
        if amount_cents > purchase.amount_refundable_cents:
            raise RefundError("Refund amount cannot be greater than the purchase price.")
        if amount_cents in (purchase.price_cents, purchase.amount_refundable_cents):
            amount_cents = None

    if amount_cents is None:
        gross_amount_cents = purchase.gross_amount_refundable_cents
    else:
        tax_cents = 0
        if purchase.platform_tax_cents > 0 and purchase.price_cents:
            proportional = math.floor(amount_cents * purchase.platform_tax_cents / purchase.price_cents)
            tax_cents = min(proportional, purchase.platform_tax_refundable_cents)
        gross_amount_cents = amount_cents + tax_cents

    processor_refund_id = None
    status = "succeeded"
    if purchase.charge_processor_id == Purchase.STRIPE and purchase.stripe_transaction_id:
        stripe.api_key = settings.STRIPE_SECRET_KEY
        try:
            # Checkout stores the PaymentIntent id until the charge webhook arrives.
            target = "payment_intent" if purchase.stripe_transaction_id.startswith("pi_") else "charge"
            stripe_refund = stripe.Refund.create(
                **{target: purchase.stripe_transaction_id},
                amount=purchase.charge_cents_from_usd(gross_amount_cents),
                metadata={"purchase_id": purchase.external_id},
            )
        except stripe.StripeError as exc:
            logger.exception("Stripe refund failed for purchase %s", purchase.external_id)
            raise RefundError(
                getattr(exc, "user_message", None) or "There is a temporary problem. Try to refund later."
            ) from exc
        processor_refund_id = stripe_refund.id
        status = stripe_refund.status

    return record_refund(
        purchase,
        gross_amount_cents,
        refunding_user=refunding_user,
        processor_refund_id=processor_refund_id,
        status=status,
    )


def record_dispute(purchase, *, state, processor_dispute_id=None, reason="", amount_cents=None, at=None):
    """Create or update the dispute of a purchase and flag the chargeback."""
    at = at or timezone.now()
    with transaction.atomic():
        lookup = {"charge_processor_dispute_id": processor_dispute_id} if processor_dispute_id else {"purchase": purchase}
        dispute, created = Dispute.objects.get_or_create(
            **lookup,
            defaults={
                "purchase": purchase,
                "seller_id": purchase.seller_id,
                "reason": reason or "",
                "amount_cents": purchase.total_transaction_cents if amount_cents is None else amount_cents,
                "initiated_at": at,
            },
        )
        dispute.state = state
        if state == Dispute.FORMALIZED and not dispute.formalized_at:
            dispute.formalized_at = at
        elif state == Dispute.WON:
            dispute.won_at = at
        elif state == Dispute.LOST:
            dispute.lost_at = at
        dispute.save()

        if state in (Dispute.FORMALIZED, Dispute.LOST):
            # A formalized dispute already counts as a chargeback.
            if purchase.chargeback_date is None:
                purchase.chargeback_date = at
            purchase.chargeback_reversed = False
            purchase.save(update_fields=["chargeback_date", "chargeback_reversed", "updated_at"])
        elif state == Dispute.WON:
            purchase.chargeback_reversed = True
            purchase.save(update_fields=["chargeback_reversed", "updated_at"])

    logger.info(
        "Dispute %s for purchase %s is %s (new=%s)",
        dispute.external_id,
        purchase.external_id,
        state,
        created,
    )
    return dispute


def platform_fee_cents(price_cents, *, discover=False) -> int:
    """Platform fee for a sale; free purchases carry no fee."""
    if price_cents <= 0:
        return 0
    basis_points = settings.DISCOVER_FEE_BASIS_POINTS if discover else settings.PLATFORM_FEE_BASIS_POINTS
    fee = math.ceil(price_cents * basis_points / 10000) + settings.PLATFORM_FIXED_FEE_CENTS
    return min(fee, price_cents)


def create_in_progress_purchase(
    product,
    *,
    email,
    purchaser=None,
    variant=None,
    recurrence=None,
    affiliate=None,
    utm_link=None,
    full_name="",
):
    """
    Price an order and store it as an in-progress purchase.

    Amounts are stored in USD cents; ``displayed_price_cents`` keeps the
    product-currency price the buyer is charged. The webhook for the
    processor charge moves it to ``successful``.
    """
    currency = product.price_currency_type
    displayed_price_cents = product.price_for(recurrence=recurrence, variant=variant)
    rate = get_rate(currency)
    price_cents = get_usd_cents(currency, displayed_price_cents, rate=rate)
    fee_cents = platform_fee_cents(price_cents)
    affiliate_credit_cents = 0
    if affiliate is not None and affiliate.alive and affiliate.affiliate_user_id != product.seller_id:
        affiliate_credit_cents = math.floor((price_cents - fee_cents) * affiliate.basis_points_for(product) / 10000)
    else:
        affiliate = None

    with transaction.atomic():
        purchase = Purchase.objects.create(
            seller_id=product.seller_id,
            product=product,
            variant=variant,
            purchaser=purchaser,
            email=email,
            full_name=full_name,
            price_cents=price_cents,
            fee_cents=fee_cents,
            total_transaction_cents=price_cents,
            displayed_price_cents=displayed_price_cents,
            displayed_price_currency_type=currency,
            rate_converted_to_usd=rate,
            affiliate=affiliate,
            affiliate_credit_cents=affiliate_credit_cents,
            charge_processor_id=Purchase.STRIPE,
        )
        if utm_link is not None:
            UtmLinkDrivenSale.objects.create(utm_link=utm_link, purchase=purchase)

    logger.info(
        "Created in-progress purchase %s for product %s (%s %s, %s USD cents)",
        purchase.external_id,
        product.external_id,
        displayed_price_cents,
        currency,
        price_cents,
    )
    return purchase
