"""
Balance Reconciliation Report - Creator Platform

Checks unpaid seller balances against the balance transactions booked into
them. A balance is mismatched when its ``holding_amount_cents`` differs
from the sum of its transactions' net holding amounts.

Author: CP Development Team
Version: 1.0.0
"""

import logging

from django.db.models import Count, Sum
from django.db.models.functions import Coalesce

from payouts.models import Balance, BalanceTransaction

logger = logging.getLogger(__name__)


def balance_reconciliation_report(as_of):
    """One dict per currency holding unpaid balances dated up to ``as_of``."""
    balances = Balance.objects.unpaid().filter(date__lte=as_of)

    report = []
    for group in (
        balances.values("currency")
        .annotate(
            balances_count=Count("id"),
            amount_cents=Coalesce(Sum("amount_cents"), 0),
            holding_amount_cents=Coalesce(Sum("holding_amount_cents"), 0),
        )
        .order_by("currency")
    ):
        currency_balances = balances.filter(currency=group["currency"])
        transactions_net_cents = BalanceTransaction.objects.filter(balance__in=currency_balances).aggregate(
            total=Coalesce(Sum("holding_amount_net_cents"), 0)
        )["total"]

        per_balance = currency_balances.annotate(
            transactions_cents=Coalesce(Sum("balance_transactions__holding_amount_net_cents"), 0)
        ).values_list("id", "holding_amount_cents", "transactions_cents")
        mismatched = sorted(pk for pk, holding, booked in per_balance if holding != booked)

        report.append(
            {
                "currency": group["currency"],
                "balances_count": group["balances_count"],
                "amount_cents": group["amount_cents"],
                "holding_amount_cents": group["holding_amount_cents"],
                "transactions_net_cents": transactions_net_cents,
                "difference_cents": group["holding_amount_cents"] - transactions_net_cents,
                "mismatched_balance_ids": mismatched,
            }
        )
        if mismatched:
            logger.warning(
                "%d unpaid %s balances do not match their transactions", len(mismatched), group["currency"]
            )
    return report
