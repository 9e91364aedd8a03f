import datetime

from rest_framework import status
from rest_framework.test import APITestCase

from core.models import TeamMembership
from core.tests.factories import create_seller, create_user
from payouts.models import Payment


class PayoutViewTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.seller = create_seller("viewpayouts")
        cls.accountant = create_user("steuerberater")
        cls.marketing = create_user("payoutmarketing")
        TeamMembership.objects.create(seller=cls.seller, user=cls.accountant, role=TeamMembership.ROLE_ACCOUNTANT)
        TeamMembership.objects.create(seller=cls.seller, user=cls.marketing, role=TeamMembership.ROLE_MARKETING)
        cls.payment = Payment.objects.create(
            user=cls.seller,
            state=Payment.COMPLETED,
            amount_cents=0,
            payout_period_end_date=datetime.date(2026, 1, 15),
        )

    def as_member(self, user):
        self.client.force_authenticate(user=user)
        self.client.credentials(HTTP_X_SELLER_ID=str(self.seller.pk))

    def test_balance_page(self):
        self.as_member(self.accountant)
        response = self.client.get("/api/payouts/balance/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.json()["past_payout_period_data"]), 1)

    def test_marketing_cannot_see_payouts(self):
        self.as_member(self.marketing)
        response = self.client.get("/api/payouts/balance/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_payout_period(self):
        self.client.force_authenticate(user=self.seller)
        response = self.client.get(f"/api/payouts/{self.payment.external_id}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["payment_external_id"], self.payment.external_id)

    def test_export_csv(self):
        self.client.force_authenticate(user=self.seller)
        response = self.client.get(f"/api/payouts/{self.payment.external_id}/export.csv")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response["Content-Type"], "text/csv")
        self.assertIn('filename="payout-2026-01-15.csv"', response["Content-Disposition"])
        self.assertTrue(response.content.decode("utf-8").startswith("Type,Date,Purchase ID"))

    def test_other_sellers_payout_is_hidden(self):
        self.client.force_authenticate(user=create_user("andererseller"))
        response = self.client.get(f"/api/payouts/{self.payment.external_id}/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
