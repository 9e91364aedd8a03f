import datetime

from django.test import TestCase

from core.tests.factories import create_product, create_purchase, create_seller
from payouts.exports import COLUMNS, PayoutCsvExport, payout_period
from payouts.models import Balance, Credit, Payment
from sales.models import Purchase, Refund


def at_noon(day):
    return datetime.datetime(2026, 1, day, 12, 0, tzinfo=datetime.timezone.utc)


class PayoutCsvExportTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.seller = create_seller("payoutseller")
        cls.product = create_product(cls.seller, name="Brush Set")
        cls.balance = Balance.objects.create(user=cls.seller, date=datetime.date(2026, 1, 10), amount_cents=850)
        cls.sale = create_purchase(
            cls.product,
            fee_cents=150,
            full_name="Max Muster",
            email="max@example.com",
            succeeded_at=at_noon(10),
            purchase_success_balance=cls.balance,
        )

    def create_payment(self, amount_cents, **kwargs):
        payment = Payment.objects.create(
            user=self.seller,
            amount_cents=amount_cents,
            state=Payment.COMPLETED,
            payout_period_end_date=datetime.date(2026, 1, 15),
            **kwargs,
        )
        payment.balances.add(self.balance)
        return payment

    def test_sale_row_matches_payout(self):
        rows = PayoutCsvExport(self.create_payment(850)).rows()
        self.assertEqual(
            rows,
            [
                [
                    "Sale",
                    "2026-01-10",
                    self.sale.external_id,
                    "Brush Set",
                    "Max Muster",
                    "max@example.com",
                    0.0,
                    0.0,
                    10.0,
                    1.5,
                    8.5,
                ]
            ],
        )

    def test_technical_adjustment_closes_gap(self):
        rows = PayoutCsvExport(self.create_payment(900)).rows()
        self.assertEqual(rows[-1][0], "Technical Adjustment")
        self.assertEqual(rows[-1][1], "2026-01-15")
        self.assertEqual(rows[-1][10], 0.5)

    def test_no_adjustment_for_non_usd_payouts(self):
        rows = PayoutCsvExport(self.create_payment(900, currency="eur")).rows()
        self.assertNotIn("Technical Adjustment", [row[0] for row in rows])

    def test_payout_fee_row(self):
        rows = PayoutCsvExport(self.create_payment(800, platform_fee_cents=50)).rows()
        fee_row = [row for row in rows if row[0] == "Payout Fee"][0]
        self.assertEqual(fee_row[9], 0.5)
        self.assertEqual(fee_row[10], -0.5)
        self.assertNotIn("Technical Adjustment", [row[0] for row in rows])

    def test_payout_fee_row_without_period_end_date(self):
        payment = Payment.objects.create(
            user=self.seller, amount_cents=800, state=Payment.PROCESSING, platform_fee_cents=50
        )
        payment.balances.add(self.balance)

        rows = PayoutCsvExport(payment).rows()

        self.assertEqual([row[0] for row in rows], ["Sale", "Payout Fee"])
        self.assertEqual(rows[1][1], datetime.date.today().isoformat())
        dates = [datetime.date.fromisoformat(row[1]) for row in rows]
        self.assertEqual(dates, sorted(dates))

    def test_paypal_sales_are_netted_out(self):
        create_purchase(
            self.product,
            fee_cents=200,
            price_cents=2000,
            charge_processor_id=Purchase.PAYPAL,
            via_paypal_connect=True,
            succeeded_at=at_noon(12),
        )
        rows = PayoutCsvExport(self.create_payment(850)).rows()

        self.assertEqual([row[0] for row in rows], ["Sale", "Sale", "PayPal Payouts"])
        self.assertEqual(rows[2][1], "2026-01-15")
        self.assertEqual(rows[2][8], -18.0)

    def test_full_refund_and_credit_rows(self):
        refunded = create_purchase(self.product, fee_cents=150, succeeded_at=at_noon(2), stripe_refunded=True)
        refund_balance = Balance.objects.create(user=self.seller, date=datetime.date(2026, 1, 11), amount_cents=-850)
        refunded.purchase_refund_balance = refund_balance
        refunded.save()
        Refund.objects.create(
            purchase=refunded,
            seller=self.seller,
            amount_cents=1000,
            fee_cents=150,
            total_transaction_cents=1000,
            created_at=at_noon(11),
        )
        Credit.objects.create(user=self.seller, balance=refund_balance, amount_cents=500, note="Goodwill")

        payment = self.create_payment(500)
        payment.balances.add(refund_balance)
        rows = PayoutCsvExport(payment).rows()

        kinds = [row[0] for row in rows]
        self.assertEqual(kinds, ["Sale", "Full Refund", "Credit"])
        self.assertEqual(rows[1][8], -10.0)
        self.assertEqual(rows[1][10], -8.5)
        self.assertEqual(rows[2][10], 5.0)

    def test_csv_has_header(self):
        content = PayoutCsvExport(self.create_payment(850)).to_csv().getvalue().decode("utf-8")
        header, sale = content.splitlines()[:2]
        self.assertEqual(header, ",".join(COLUMNS))
        self.assertTrue(sale.startswith("Sale,2026-01-10,"))


class PayoutPeriodTests(TestCase):
    def test_period_starts_after_previous_payout(self):
        seller = create_seller("periodseller")
        Payment.objects.create(
            user=seller,
            state=Payment.COMPLETED,
            payout_period_end_date=datetime.date(2026, 1, 15),
            created_at=at_noon(16),
        )
        payment = Payment.objects.create(
            user=seller,
            state=Payment.COMPLETED,
            payout_period_end_date=datetime.date(2026, 1, 31),
            created_at=datetime.datetime(2026, 2, 1, tzinfo=datetime.timezone.utc),
        )
        self.assertEqual(payout_period(payment), (datetime.date(2026, 1, 16), datetime.date(2026, 1, 31)))

    def test_first_payout_starts_at_oldest_date(self):
        payment = Payment.objects.create(
            user=create_seller("firstpayout"), payout_period_end_date=datetime.date(2026, 1, 15)
        )
        self.assertEqual(payout_period(payment)[0], datetime.date(2012, 12, 21))
