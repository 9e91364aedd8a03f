import datetime
from unittest import mock

import stripe
from django.test import TestCase
from django.utils import timezone

from analytics.models import UtmLink, UtmLinkDrivenSale
from core.money import get_usd_cents
from core.tests.factories import create_product, create_purchase, create_seller, create_user
from sales.exceptions import RefundError
from sales.models import Affiliate, AffiliateCredit, AffiliatePartialRefund, Dispute, Purchase, Refund
from sales.services import (
    create_in_progress_purchase,
    mark_successful,
    platform_fee_cents,
    record_dispute,
    record_refund,
    refund_purchase,
)


class PlatformFeeTests(TestCase):
    def test_percentage_plus_fixed_fee(self):
        self.assertEqual(platform_fee_cents(1000), 150)

    def test_free_and_tiny_prices(self):
        self.assertEqual(platform_fee_cents(0), 0)
        self.assertEqual(platform_fee_cents(30), 30)


class CreatePurchaseTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.seller = create_seller("merchant")
        cls.promoter = create_user("promoter")
        cls.product = create_product(cls.seller, price_cents=1000)
        cls.affiliate = Affiliate.objects.create(
            seller=cls.seller, affiliate_user=cls.promoter, affiliate_basis_points=2500
        )
        cls.utm_link = UtmLink.objects.create(
            seller=cls.seller, title="Spring", permalink="spring01", utm_source="x", utm_medium="y", utm_campaign="z"
        )

    def test_in_progress_purchase_with_affiliate_and_utm_link(self):
        purchase = create_in_progress_purchase(
            self.product, email="buyer@example.com", affiliate=self.affiliate, utm_link=self.utm_link
        )
        self.assertEqual(purchase.purchase_state, Purchase.IN_PROGRESS)
        self.assertEqual(purchase.price_cents, 1000)
        self.assertEqual(purchase.fee_cents, 150)
        self.assertEqual(purchase.affiliate_credit_cents, 212)
        self.assertTrue(UtmLinkDrivenSale.objects.filter(utm_link=self.utm_link, purchase=purchase).exists())

    def test_euro_product_stores_usd_amounts(self):
        product = create_product(self.seller, price_cents=1000, price_currency_type="eur")
        purchase = create_in_progress_purchase(product, email="kunde@example.com", affiliate=self.affiliate)

        self.assertEqual(purchase.displayed_price_cents, 1000)
        self.assertEqual(purchase.displayed_price_currency_type, "eur")
        self.assertEqual(purchase.rate_converted_to_usd, 0.92)
        self.assertEqual(purchase.price_cents, get_usd_cents("eur", 1000))
        self.assertEqual(purchase.price_cents, 1087)
        self.assertEqual(purchase.total_transaction_cents, 1087)
        # Fee and affiliate credit come from the USD price.
        self.assertEqual(purchase.fee_cents, 159)
        self.assertEqual(purchase.affiliate_credit_cents, 232)

    def test_seller_cannot_be_own_affiliate(self):
        own = Affiliate.objects.create(seller=self.seller, affiliate_user=self.seller)
        purchase = create_in_progress_purchase(self.product, email="buyer@example.com", affiliate=own)
        self.assertIsNone(purchase.affiliate)
        self.assertEqual(purchase.affiliate_credit_cents, 0)


class MarkSuccessfulTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.seller = create_seller("marker")
        cls.promoter = create_user("marker_promoter")
        cls.product = create_product(cls.seller)
        cls.affiliate = Affiliate.objects.create(
            seller=cls.seller, affiliate_user=cls.promoter, affiliate_basis_points=1000
        )

    def test_marks_once_and_creates_affiliate_credit(self):
        purchase = create_purchase(
            self.product, purchase_state=Purchase.IN_PROGRESS, affiliate=self.affiliate, affiliate_credit_cents=85
        )
        self.assertTrue(mark_successful(purchase, transaction_id="ch_1"))
        self.assertFalse(mark_successful(purchase, transaction_id="ch_2"))

        purchase.refresh_from_db()
        self.assertEqual(purchase.purchase_state, Purchase.SUCCESSFUL)
        self.assertEqual(purchase.stripe_transaction_id, "ch_1")
        self.assertIsNotNone(purchase.succeeded_at)
        credit = AffiliateCredit.objects.get(purchase=purchase)
        self.assertEqual(credit.amount_cents, 85)
        self.assertEqual(credit.affiliate_user, self.promoter)


class RefundServiceTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.seller = create_seller("refunder")
        cls.product = create_product(cls.seller, price_cents=1000)

    def test_partial_then_remaining_refund(self):
        purchase = create_purchase(self.product, fee_cents=150)

        first = record_refund(purchase, 400)
        self.assertEqual((first.amount_cents, first.fee_cents), (400, 60))
        purchase.refresh_from_db()
        self.assertTrue(purchase.stripe_partially_refunded)
        self.assertFalse(purchase.stripe_refunded)

        second = record_refund(purchase, 600)
        self.assertEqual((second.amount_cents, second.fee_cents), (600, 90))
        purchase.refresh_from_db()
        self.assertTrue(purchase.stripe_refunded)
        self.assertFalse(purchase.stripe_partially_refunded)

    def test_partial_refund_prorates_affiliate_credit(self):
        affiliate = Affiliate.objects.create(seller=self.seller, affiliate_user=create_user("refund_aff"))
        purchase = create_purchase(self.product, affiliate=affiliate, affiliate_credit_cents=200)
        AffiliateCredit.objects.create(
            affiliate=affiliate,
            affiliate_user=affiliate.affiliate_user,
            seller=self.seller,
            purchase=purchase,
            amount_cents=200,
        )
        record_refund(purchase, 400)
        self.assertEqual(AffiliatePartialRefund.objects.get(purchase=purchase).amount_cents, 80)

    def test_duplicate_processor_refund_is_skipped(self):
        purchase = create_purchase(self.product)
        record_refund(purchase, 100, processor_refund_id="re_dup")
        self.assertIsNone(record_refund(purchase, 100, processor_refund_id="re_dup"))
        self.assertEqual(purchase.refunds.count(), 1)

    def test_amount_above_refundable_raises(self):
        purchase = create_purchase(self.product)
        with self.assertRaises(RefundError):
            record_refund(purchase, 5000)

    @mock.patch("sales.services.stripe.Refund.create")
    def test_refund_purchase_through_stripe(self, create_refund):
        create_refund.return_value = mock.Mock(id="re_123", status="succeeded")
        purchase = create_purchase(self.product, stripe_transaction_id="ch_123")

        refund = refund_purchase(purchase, refunding_user=self.seller)

        create_refund.assert_called_once_with(
            charge="ch_123", amount=1000, metadata={"purchase_id": purchase.external_id}
        )
        self.assertEqual(refund.processor_refund_id, "re_123")
        purchase.refresh_from_db()
        self.assertTrue(purchase.stripe_refunded)

    @mock.patch("sales.services.stripe.Refund.create")
    def test_refund_targets_payment_intent_before_charge_is_known(self, create_refund):
        create_refund.return_value = mock.Mock(id="re_pi", status="pending")
        purchase = create_purchase(self.product, stripe_transaction_id="pi_123")
        refund_purchase(purchase, refunding_user=self.seller, amount_cents=300)
        self.assertEqual(create_refund.call_args.kwargs["payment_intent"], "pi_123")
        self.assertEqual(create_refund.call_args.kwargs["amount"], 300)

    @mock.patch("sales.services.stripe.Refund.create", side_effect=stripe.StripeError("card_declined"))
    def test_stripe_failure_raises_refund_error(self, create_refund):
        purchase = create_purchase(self.product, stripe_transaction_id="ch_fail")
        with self.assertRaises(RefundError):
            refund_purchase(purchase, refunding_user=self.seller)
        self.assertFalse(Refund.objects.filter(purchase=purchase).exists())

    def test_paypal_refund_is_recorded_locally(self):
        purchase = create_purchase(self.product, charge_processor_id=Purchase.PAYPAL)
        refund = refund_purchase(purchase, refunding_user=self.seller, amount_cents=250)
        self.assertEqual(refund.amount_cents, 250)
        self.assertIsNone(refund.processor_refund_id)

    def test_refunds_disabled(self):
        seller = create_seller("norefunds", refunds_disabled=True)
        purchase = create_purchase(create_product(seller), charge_processor_id=Purchase.PAYPAL)
        with self.assertRaisesMessage(RefundError, "Refunds are temporarily disabled"):
            refund_purchase(purchase, refunding_user=seller)

    def test_refunded_purchase_cannot_be_refunded_again(self):
        purchase = create_purchase(self.product, stripe_refunded=True)
        with self.assertRaises(RefundError):
            refund_purchase(purchase, refunding_user=self.seller)

    def test_amount_above_price(self):
        purchase = create_purchase(self.product, charge_processor_id=Purchase.PAYPAL)
        with self.assertRaisesMessage(RefundError, "cannot be greater"):
            refund_purchase(purchase, refunding_user=self.seller, amount_cents=1001)


class DisputeServiceTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.seller = create_seller("disputed")
        cls.product = create_product(cls.seller)

    def test_lost_dispute_sets_chargeback(self):
        purchase = create_purchase(self.product)
        record_dispute(purchase, state=Dispute.FORMALIZED, processor_dispute_id="dp_1", reason="fraudulent")
        dispute = record_dispute(purchase, state=Dispute.LOST, processor_dispute_id="dp_1")

        self.assertEqual(Dispute.objects.filter(purchase=purchase).count(), 1)
        self.assertEqual(dispute.reason, "fraudulent")
        self.assertIsNotNone(dispute.formalized_at)
        self.assertIsNotNone(dispute.lost_at)
        purchase.refresh_from_db()
        self.assertIsNotNone(purchase.chargeback_date)
        self.assertFalse(purchase.chargeback_reversed)

    def test_formalized_dispute_flags_chargeback(self):
        purchase = create_purchase(self.product)
        opened_at = timezone.now() - datetime.timedelta(days=3)
        record_dispute(purchase, state=Dispute.FORMALIZED, processor_dispute_id="dp_3", at=opened_at)
        purchase.refresh_from_db()
        self.assertEqual(purchase.chargeback_date, opened_at)
        self.assertTrue(purchase.chargedback)

        record_dispute(purchase, state=Dispute.LOST, processor_dispute_id="dp_3")
        purchase.refresh_from_db()
        self.assertEqual(purchase.chargeback_date, opened_at)

    def test_won_dispute_reverses_chargeback(self):
        purchase = create_purchase(self.product)
        record_dispute(purchase, state=Dispute.LOST, processor_dispute_id="dp_2")
        record_dispute(purchase, state=Dispute.WON, processor_dispute_id="dp_2")
        purchase.refresh_from_db()
        self.assertTrue(purchase.chargeback_reversed)
