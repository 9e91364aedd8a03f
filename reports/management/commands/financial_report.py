import datetime
import json

import pandas as pd
from django.core.management.base import BaseCommand, CommandError

from reports.balance_reconciliation import balance_reconciliation_report
from reports.refunds_disputes import refunds_and_disputes_report


def _date(value, option):
    try:
        return datetime.date.fromisoformat(value)
    except (TypeError, ValueError):
        raise CommandError(f"{option} expects a date in YYYY-MM-DD format, got {value!r}.")


class Command(BaseCommand):
    help = "Prints the refunds/disputes report or the balance reconciliation report as JSON or CSV."

    def add_arguments(self, parser):
        parser.add_argument("report", choices=["refunds", "balances"])
        parser.add_argument("--start", help="First day of the window (refunds).")
        parser.add_argument("--end", help="Last day of the window (refunds).")
        parser.add_argument("--as-of", dest="as_of", help="Reconcile balances dated up to this day (balances).")
        parser.add_argument("--format", choices=["json", "csv"], default="json")

    def handle(self, *args, **options):
        if options["report"] == "refunds":
            start = _date(options["start"], "--start")
            end = _date(options["end"], "--end")
            if start > end:
                raise CommandError("--start must not be after --end.")
            rows = refunds_and_disputes_report(start, end)
        else:
            as_of = _date(options["as_of"] or datetime.date.today().isoformat(), "--as-of")
            rows = balance_reconciliation_report(as_of)

        if options["format"] == "json":
            self.stdout.write(json.dumps(rows, indent=2))
            return

        df = pd.DataFrame(rows)
        if "mismatched_balance_ids" in df.columns:
            df["mismatched_balance_ids"] = df["mismatched_balance_ids"].map(
                lambda ids: ";".join(str(pk) for pk in ids)
            )
        self.stdout.write(df.to_csv(index=False))
        self.stderr.write(self.style.SUCCESS(f"{len(rows)} rows exported."))
