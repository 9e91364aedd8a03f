from types import SimpleNamespace
from unittest import mock

from django.test import TestCase

from core.money import get_usd_cents
from core.stripe_integration.handlers import dispatch, find_purchase
from core.stripe_integration.signals import extract_data_object, on_djstripe_event_created
from core.tests.factories import create_product, create_purchase, create_seller
from sales.models import Dispute, Purchase


class StripeHandlerTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.seller = create_seller("webhookseller")
        cls.product = create_product(cls.seller)

    def in_progress(self, **kwargs):
        return create_purchase(self.product, purchase_state=Purchase.IN_PROGRESS, fee_cents=150, **kwargs)

    def test_checkout_session_completed_marks_purchase(self):
        purchase = self.in_progress()
        handled = dispatch(
            "checkout.session.completed",
            {
                "id": "cs_1",
                "payment_status": "paid",
                "payment_intent": "pi_1",
                "created": 1767614400,
                "metadata": {"purchase_id": purchase.external_id},
            },
        )
        self.assertTrue(handled)
        purchase.refresh_from_db()
        self.assertEqual(purchase.purchase_state, Purchase.SUCCESSFUL)
        self.assertEqual(purchase.stripe_transaction_id, "pi_1")
        self.assertEqual(purchase.succeeded_at.year, 2026)

    def test_unpaid_checkout_session_is_ignored(self):
        purchase = self.in_progress()
        dispatch(
            "checkout.session.completed",
            {"id": "cs_2", "payment_status": "unpaid", "metadata": {"purchase_id": purchase.external_id}},
        )
        purchase.refresh_from_db()
        self.assertEqual(purchase.purchase_state, Purchase.IN_PROGRESS)

    def test_payment_intent_replaces_intent_id_with_charge(self):
        purchase = create_purchase(self.product, stripe_transaction_id="pi_2")
        dispatch("payment_intent.succeeded", {"id": "pi_2", "latest_charge": "ch_2", "metadata": {}})
        purchase.refresh_from_db()
        self.assertEqual(purchase.stripe_transaction_id, "ch_2")

    def test_payment_intent_marks_in_progress_purchase(self):
        purchase = self.in_progress()
        dispatch(
            "payment_intent.succeeded",
            {"id": "pi_3", "latest_charge": "ch_3", "metadata": {"purchase_id": purchase.external_id}},
        )
        purchase.refresh_from_db()
        self.assertTrue(purchase.successful)
        self.assertEqual(purchase.stripe_transaction_id, "ch_3")

    def test_charge_refunded_records_only_new_amount(self):
        purchase = create_purchase(self.product, fee_cents=150, stripe_transaction_id="ch_4")
        charge = {
            "id": "ch_4",
            "amount_refunded": 400,
            "refunds": {"data": [{"id": "re_4", "status": "succeeded"}]},
        }
        dispatch("charge.refunded", charge)
        dispatch("charge.refunded", charge)

        refund = purchase.refunds.get()
        self.assertEqual(refund.amount_cents, 400)
        self.assertEqual(refund.processor_refund_id, "re_4")
        purchase.refresh_from_db()
        self.assertTrue(purchase.stripe_partially_refunded)

    def test_euro_charge_refund_is_converted_to_usd(self):
        euro_product = create_product(self.seller, price_cents=1000, price_currency_type="eur")
        purchase = create_purchase(euro_product, stripe_transaction_id="ch_eur")
        self.assertEqual(purchase.price_cents, 1087)

        dispatch("charge.refunded", {"id": "ch_eur", "amount_refunded": 460, "refunds": {"data": []}})
        self.assertEqual(purchase.refunds.get().amount_cents, get_usd_cents("eur", 460))

        full = {"id": "ch_eur", "amount_refunded": 1000, "refunded": True, "refunds": {"data": []}}
        dispatch("charge.refunded", full)
        purchase.refresh_from_db()
        self.assertTrue(purchase.stripe_refunded)
        self.assertEqual(purchase.gross_amount_refunded_cents, 1087)

    def test_dispute_lifecycle(self):
        purchase = create_purchase(self.product, stripe_transaction_id="ch_5")
        dispute = {"id": "dp_5", "charge": "ch_5", "reason": "fraudulent", "amount": 1000, "created": 1767614400}

        dispatch("charge.dispute.created", dispute)
        self.assertEqual(Dispute.objects.get(purchase=purchase).state, Dispute.FORMALIZED)
        purchase.refresh_from_db()
        self.assertTrue(purchase.chargedback)

        dispatch("charge.dispute.closed", {**dispute, "status": "lost"})
        purchase.refresh_from_db()
        self.assertEqual(Dispute.objects.get(purchase=purchase).state, Dispute.LOST)
        self.assertIsNotNone(purchase.chargeback_date)

        dispatch("charge.dispute.closed", {**dispute, "status": "warning_closed"})
        self.assertEqual(Dispute.objects.get(purchase=purchase).state, Dispute.LOST)

    def test_find_purchase_by_metadata_or_ids(self):
        purchase = create_purchase(self.product, stripe_transaction_id="ch_6")
        self.assertEqual(find_purchase({"metadata": {"purchase_id": purchase.external_id}}), purchase)
        self.assertEqual(find_purchase({"id": "dp_6", "charge": "ch_6"}), purchase)
        self.assertIsNone(find_purchase({"id": "ch_unknown"}))

    def test_unknown_event_type(self):
        self.assertFalse(dispatch("customer.created", {"id": "cus_1"}))


class WebhookSignalTests(TestCase):
    def test_extract_data_object(self):
        payload = {"id": "ch_1"}
        self.assertEqual(extract_data_object(SimpleNamespace(data={"object": payload})), payload)
        self.assertEqual(extract_data_object(SimpleNamespace(data={"data": {"object": payload}})), payload)
        self.assertEqual(extract_data_object(SimpleNamespace(data=None)), {})

    @mock.patch("core.stripe_integration.signals.dispatch", side_effect=RuntimeError("boom"))
    def test_handler_errors_are_logged_not_raised(self, dispatch_mock):
        event = SimpleNamespace(id="evt_1", type="charge.refunded", data={"object": {"id": "ch_1"}})
        with self.assertLogs("core.stripe_integration.signals", level="ERROR"):
            on_djstripe_event_created(sender=None, instance=event, created=True)
        dispatch_mock.assert_called_once_with("charge.refunded", {"id": "ch_1"})

    @mock.patch("core.stripe_integration.signals.dispatch")
    def test_updates_are_ignored(self, dispatch_mock):
        event = SimpleNamespace(id="evt_2", type="charge.refunded", data={})
        on_djstripe_event_created(sender=None, instance=event, created=False)
        dispatch_mock.assert_not_called()
