import datetime

from django.test import TestCase

from core.tests.factories import create_product, create_purchase, create_seller
from payouts.models import Balance, Payment
from payouts.presenters import BalancePagePresenter, formatted_payout_date


class FormattedPayoutDateTests(TestCase):
    def test_ordinals(self):
        cases = {1: "1st", 2: "2nd", 3: "3rd", 4: "4th", 11: "11th", 12: "12th", 13: "13th", 21: "21st", 22: "22nd"}
        for day, ordinal in cases.items():
            with self.subTest(day=day):
                self.assertEqual(formatted_payout_date(datetime.date(2024, 1, day)), f"January {ordinal}, 2024")


class BalancePagePresenterTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.seller = create_seller("balanceseller")
        cls.product = create_product(cls.seller, price_cents=3000)

    def test_no_unpaid_balances(self):
        props = BalancePagePresenter(self.seller).balance_page_props()
        self.assertIsNone(props["next_payout_period_data"])
        self.assertEqual(props["past_payout_period_data"], [])

    def test_next_payout_from_unpaid_balances(self):
        balance = Balance.objects.create(user=self.seller, amount_cents=2700)
        create_purchase(self.product, fee_cents=300, purchase_success_balance=balance)
        Balance.objects.create(user=self.seller, amount_cents=5000, state=Balance.PAID)

        data = BalancePagePresenter(self.seller).next_payout_period_data()

        self.assertEqual(data["payout_cents"], 2700)
        self.assertEqual(data["status"], "payable")
        self.assertEqual(data["payout_displayed_amount"], "$27.00")
        self.assertEqual(data["displayable_payout_period_range"], "Activity up to now")
        self.assertEqual(data["sales_cents"], 3000)
        self.assertEqual(data["fees_cents"], 300)

    def test_small_balance_is_not_payable(self):
        Balance.objects.create(user=self.seller, amount_cents=500)
        data = BalancePagePresenter(self.seller).next_payout_period_data()
        self.assertEqual(data["status"], "not_payable")
        self.assertFalse(data["is_user_payable"])

    def test_payout_period_ranges(self):
        first = Payment.objects.create(
            user=self.seller,
            state=Payment.COMPLETED,
            amount_cents=1000,
            payout_period_end_date=datetime.date(2026, 1, 15),
            created_at=datetime.datetime(2026, 1, 16, tzinfo=datetime.timezone.utc),
        )
        second = Payment.objects.create(
            user=self.seller,
            state=Payment.COMPLETED,
            amount_cents=2000,
            payout_period_end_date=datetime.date(2026, 1, 31),
            created_at=datetime.datetime(2026, 2, 1, tzinfo=datetime.timezone.utc),
        )
        same_day = Payment.objects.create(
            user=self.seller,
            state=Payment.PROCESSING,
            payout_period_end_date=datetime.date(2026, 1, 31),
            created_at=datetime.datetime(2026, 2, 1, 18, tzinfo=datetime.timezone.utc),
        )
        Balance.objects.create(user=self.seller, amount_cents=1500)

        presenter = BalancePagePresenter(self.seller)

        self.assertEqual(
            presenter.payout_period_data(first)["displayable_payout_period_range"],
            "Activity up to January 15th, 2026",
        )
        second_data = presenter.payout_period_data(second)
        self.assertEqual(
            second_data["displayable_payout_period_range"],
            "Activity from January 16th, 2026 to January 31st, 2026",
        )
        self.assertEqual(second_data["payout_date_formatted"], "February 1st, 2026")
        self.assertEqual(
            presenter.payout_period_data(same_day)["displayable_payout_period_range"],
            "Activity on January 31st, 2026",
        )
        self.assertEqual(
            presenter.next_payout_period_data()["displayable_payout_period_range"],
            "Activity since February 1st, 2026",
        )

        props = presenter.balance_page_props()
        self.assertEqual([p["payout_cents"] for p in props["past_payout_period_data"]], [2000, 1000])
        self.assertEqual(len(props["processing_payout_periods_data"]), 1)
