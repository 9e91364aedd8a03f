"""
Refunds & Disputes Report - Creator Platform

Money that flowed back to buyers in a date window, grouped by charge
processor and currency. "Deferred" amounts are refunds and lost disputes
the platform already paid out but has not yet debited from a seller
balance. Sales processed on the seller's own merchant account (Stripe
Connect, native PayPal) never pass through a platform balance, so they
are never deferred.

Author: CP Development Team
Version: 1.0.0
"""

import logging

from django.db.models import Count, Q, Sum
from django.db.models.functions import Coalesce

from reports.seller_stats import end_of_day, start_of_day
from sales.models import Dispute, Refund

logger = logging.getLogger(__name__)

PROCESSOR = "purchase__charge_processor_id"
CURRENCY = "purchase__displayed_price_currency_type"

# Stripe Connect and native PayPal sales settle on the seller's own merchant account.
ON_PLATFORM_ACCOUNT = Q(purchase__via_stripe_connect=False, purchase__via_paypal_connect=False)

EMPTY_ROW = {
    "refunds_count": 0,
    "refunds_gross_cents": 0,
    "refunds_amount_cents": 0,
    "refunds_fee_cents": 0,
    "refunds_creator_tax_cents": 0,
    "disputes_opened_count": 0,
    "disputes_opened_cents": 0,
    "disputes_lost_count": 0,
    "disputes_lost_cents": 0,
    "disputes_won_count": 0,
    "disputes_won_cents": 0,
    "deferred_refunds_count": 0,
    "deferred_refunds_cents": 0,
    "deferred_disputes_count": 0,
    "deferred_disputes_cents": 0,
}


def _grouped(queryset, **aggregates):
    return queryset.values(PROCESSOR, CURRENCY).annotate(**aggregates).order_by(PROCESSOR, CURRENCY)


def _merge(rows, queryset, prefix, amount_field):
    for group in _grouped(queryset, count=Count("id"), cents=Coalesce(Sum(amount_field), 0)):
        row = rows.setdefault((group[PROCESSOR], group[CURRENCY]), dict(EMPTY_ROW))
        row[f"{prefix}_count"] += group["count"]
        row[f"{prefix}_cents"] += group["cents"]


def refunds_and_disputes_report(start, end):
    """
    Aggregate refunds and disputes between ``start`` and ``end`` (dates, inclusive).

    Returns one dict per ``(charge_processor_id, currency)`` pair, sorted.
    """
    window_start, window_end = start_of_day(start), end_of_day(end)
    rows = {}

    refunds = Refund.objects.filter(created_at__gte=window_start, created_at__lte=window_end)
    for group in _grouped(
        refunds,
        count=Count("id"),
        gross=Coalesce(Sum("total_transaction_cents"), 0),
        amount=Coalesce(Sum("amount_cents"), 0),
        fee=Coalesce(Sum("fee_cents"), 0),
        creator_tax=Coalesce(Sum("creator_tax_cents"), 0),
    ):
        row = rows.setdefault((group[PROCESSOR], group[CURRENCY]), dict(EMPTY_ROW))
        row["refunds_count"] = group["count"]
        row["refunds_gross_cents"] = group["gross"]
        row["refunds_amount_cents"] = group["amount"]
        row["refunds_fee_cents"] = group["fee"]
        row["refunds_creator_tax_cents"] = group["creator_tax"]

    opened = Dispute.objects.filter(initiated_at__gte=window_start, initiated_at__lte=window_end)
    lost = Dispute.objects.filter(state=Dispute.LOST, lost_at__gte=window_start, lost_at__lte=window_end)
    won = Dispute.objects.filter(state=Dispute.WON, won_at__gte=window_start, won_at__lte=window_end)
    _merge(rows, opened, "disputes_opened", "amount_cents")
    _merge(rows, lost, "disputes_lost", "amount_cents")
    _merge(rows, won, "disputes_won", "amount_cents")

    deferred_refunds = refunds.filter(ON_PLATFORM_ACCOUNT, purchase__purchase_refund_balance__isnull=True)
    deferred_disputes = lost.filter(ON_PLATFORM_ACCOUNT, purchase__purchase_chargeback_balance__isnull=True)
    _merge(rows, deferred_refunds, "deferred_refunds", "total_transaction_cents")
    _merge(rows, deferred_disputes, "deferred_disputes", "amount_cents")

    report = [
        {"charge_processor_id": processor, "currency": currency, **values}
        for (processor, currency), values in sorted(rows.items())
    ]
    logger.info("Refunds/disputes report %s..%s: %d groups", start, end, len(report))
    return report
