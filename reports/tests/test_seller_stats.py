import datetime

from django.test import TestCase

from core.tests.factories import create_product, create_purchase, create_seller
from payouts.models import Balance, Credit
from reports.seller_stats import SellerStats, payout_net_cents
from sales.models import Purchase, Refund


def on(day):
    return datetime.datetime(2026, 1, day, 12, 0, tzinfo=datetime.timezone.utc)


class BalanceFiguresTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.seller = create_seller("statsseller")
        product = create_product(cls.seller)
        cls.balance = Balance.objects.create(user=cls.seller, amount_cents=0)
        create_purchase(product, fee_cents=150, affiliate_credit_cents=100, purchase_success_balance=cls.balance)
        refunded = create_purchase(
            product,
            price_cents=2000,
            fee_cents=250,
            stripe_partially_refunded=True,
            purchase_success_balance=cls.balance,
            purchase_refund_balance=cls.balance,
        )
        Refund.objects.create(
            purchase=refunded,
            seller=cls.seller,
            amount_cents=500,
            fee_cents=62,
            total_transaction_cents=500,
            retained_fee_cents=10,
        )
        Credit.objects.create(user=cls.seller, balance=cls.balance, amount_cents=-300)

    def test_sales_data_for_balances(self):
        data = SellerStats(self.seller).sales_data_for_balance_ids([self.balance.id])

        self.assertEqual(data["sales_cents"], 3000)
        self.assertEqual(data["refunds_cents"], 500)
        self.assertEqual(data["chargebacks_cents"], 0)
        self.assertEqual(data["credits_cents"], -300)
        self.assertEqual(data["fees_cents"], 400 - (62 - 10))
        self.assertEqual(data["direct_fees_cents"], data["fees_cents"])
        self.assertEqual(data["discover_fees_cents"], 0)
        self.assertEqual(data["direct_sales_count"], 2)
        self.assertEqual(data["affiliate_fees_cents"], 100)
        self.assertEqual(data["taxes_cents"], 0)

    def test_other_balances_are_ignored(self):
        other = Balance.objects.create(user=self.seller)
        data = SellerStats(self.seller).sales_data_for_balance_ids([other.id])
        self.assertEqual(data["sales_cents"], 0)
        self.assertEqual(data["fees_cents"], 0)


class DurationFiguresTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.seller = create_seller("paypalstats")
        cls.product = create_product(cls.seller)
        paypal_sale = create_purchase(
            cls.product,
            fee_cents=100,
            charge_processor_id=Purchase.PAYPAL,
            via_paypal_connect=True,
            succeeded_at=on(5),
        )
        Refund.objects.create(
            purchase=paypal_sale,
            seller=cls.seller,
            amount_cents=300,
            fee_cents=30,
            total_transaction_cents=300,
            created_at=on(6),
        )
        create_purchase(
            cls.product,
            fee_cents=100,
            charge_processor_id=Purchase.PAYPAL,
            via_paypal_connect=True,
            succeeded_at=on(20),
        )
        create_purchase(cls.product, fee_cents=100, succeeded_at=on(5))

    def test_paypal_sales_data(self):
        stats = SellerStats(self.seller)
        data = stats.paypal_sales_data_for_duration(datetime.date(2026, 1, 1), datetime.date(2026, 1, 10))

        self.assertEqual(data["sales_cents"], 1000)
        self.assertEqual(data["refunds_cents"], 300)
        self.assertEqual(data["fees_cents"], 70)
        self.assertEqual(payout_net_cents(data), 630)

    def test_stripe_connect_has_no_sales(self):
        data = SellerStats(self.seller).stripe_connect_sales_data_for_duration(
            datetime.date(2026, 1, 1), datetime.date(2026, 1, 31)
        )
        self.assertEqual(data["sales_cents"], 0)

    def test_revenue_by_product(self):
        revenue = SellerStats(self.seller).paypal_revenue_by_product_for_duration(
            datetime.date(2026, 1, 1), datetime.date(2026, 1, 10)
        )
        self.assertEqual(revenue, {self.product.id: 900 - 270})
