from unittest import mock

from rest_framework import status
from rest_framework.test import APITestCase

from core.models import TeamMembership
from core.money import get_usd_cents
from core.tests.factories import create_product, create_purchase, create_seller, create_user
from sales.models import Affiliate, ProductAffiliate, Purchase, Subscription


class CustomerViewTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.seller = create_seller("shopowner")
        cls.support = create_user("supporter")
        cls.marketing = create_user("marketer")
        TeamMembership.objects.create(seller=cls.seller, user=cls.support, role=TeamMembership.ROLE_SUPPORT)
        TeamMembership.objects.create(seller=cls.seller, user=cls.marketing, role=TeamMembership.ROLE_MARKETING)
        cls.product = create_product(cls.seller, name="Fonts")
        cls.purchase = create_purchase(cls.product, email="anna@example.com", charge_processor_id=Purchase.PAYPAL)
        create_purchase(cls.product, email="ben@example.com")
        create_purchase(cls.product, email="failed@example.com", purchase_state=Purchase.FAILED)

    def as_member(self, user):
        self.client.force_authenticate(user=user)
        self.client.credentials(HTTP_X_SELLER_ID=str(self.seller.pk))

    def test_lists_successful_customers(self):
        self.client.force_authenticate(user=self.seller)
        response = self.client.get("/api/sales/customers/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        emails = {customer["email"] for customer in response.json()["customers"]}
        self.assertEqual(emails, {"anna@example.com", "ben@example.com"})

    def test_query_filter(self):
        self.client.force_authenticate(user=self.seller)
        response = self.client.get("/api/sales/customers/", {"query": "anna"})
        self.assertEqual([c["email"] for c in response.json()["customers"]], ["anna@example.com"])

    def test_other_seller_cannot_see_customer(self):
        self.client.force_authenticate(user=create_user("fremd"))
        response = self.client.get(f"/api/sales/customers/{self.purchase.external_id}/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_customer_detail(self):
        self.as_member(self.support)
        response = self.client.get(f"/api/sales/customers/{self.purchase.external_id}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["customer"]["email"], "anna@example.com")
        self.assertEqual(response.json()["missed_posts"], [])

    def test_support_refunds_partially(self):
        self.as_member(self.support)
        response = self.client.post(
            f"/api/sales/customers/{self.purchase.external_id}/refund/", {"amount_cents": 300}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.json()["success"])
        self.assertTrue(response.json()["partially_refunded"])
        self.assertEqual(self.purchase.refunds.get().amount_cents, 300)

    @mock.patch("sales.services.stripe.Refund.create")
    def test_refund_amount_is_in_purchase_currency(self, create_refund):
        create_refund.return_value = mock.Mock(id="re_eur", status="succeeded")
        euro_product = create_product(self.seller, name="Euro Fonts", price_currency_type="eur")
        purchase = create_purchase(euro_product, stripe_transaction_id="ch_eur_view")
        self.client.force_authenticate(user=self.seller)

        response = self.client.post(
            f"/api/sales/customers/{purchase.external_id}/refund/", {"amount_cents": 460}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(create_refund.call_args.kwargs["amount"], 460)
        self.assertEqual(purchase.refunds.get().amount_cents, get_usd_cents("eur", 460))

    def test_marketing_cannot_refund(self):
        self.as_member(self.marketing)
        response = self.client.post(f"/api/sales/customers/{self.purchase.external_id}/refund/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(response.json()["success"])

    def test_invalid_amount(self):
        self.client.force_authenticate(user=self.seller)
        response = self.client.post(
            f"/api/sales/customers/{self.purchase.external_id}/refund/", {"amount_cents": "abc"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["message"], "Invalid refund amount.")

    @mock.patch("sales.services.stripe.Refund.create")
    def test_full_stripe_refund(self, create_refund):
        create_refund.return_value = mock.Mock(id="re_view", status="succeeded")
        purchase = create_purchase(self.product, stripe_transaction_id="ch_view")
        self.client.force_authenticate(user=self.seller)

        response = self.client.post(f"/api/sales/customers/{purchase.external_id}/refund/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.json()["partially_refunded"])
        purchase.refresh_from_db()
        self.assertTrue(purchase.stripe_refunded)

    def test_refund_error_is_reported(self):
        purchase = create_purchase(self.product, stripe_refunded=True)
        self.client.force_authenticate(user=self.seller)
        response = self.client.post(f"/api/sales/customers/{purchase.external_id}/refund/")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["message"], "This purchase cannot be refunded.")


class BuyerViewTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.seller = create_seller("buyerseller")
        cls.buyer = create_user("kaeufer")
        cls.product = create_product(cls.seller, name="Zine")
        cls.purchase = create_purchase(cls.product, purchaser=cls.buyer)
        cls.subscription = Subscription.objects.create(product=cls.product, subscriber=cls.buyer, price_cents=1000)
        create_purchase(cls.product, subscription=cls.subscription, is_original_subscription_purchase=True)

    def test_buyer_sees_receipt(self):
        self.client.force_authenticate(user=self.buyer)
        response = self.client.get(f"/api/sales/purchases/{self.purchase.external_id}/receipt/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["payment_info"]["today_payment_attributes"], [{"label": "Zine", "value": "$10"}])

    def test_seller_sees_receipt(self):
        self.client.force_authenticate(user=self.seller)
        response = self.client.get(f"/api/sales/purchases/{self.purchase.external_id}/receipt/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_stranger_gets_404_for_receipt(self):
        self.client.force_authenticate(user=create_user("neugierig"))
        response = self.client.get(f"/api/sales/purchases/{self.purchase.external_id}/receipt/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_subscription_manager_only_for_subscriber(self):
        self.client.force_authenticate(user=self.buyer)
        response = self.client.get(f"/api/sales/subscriptions/{self.subscription.external_id}/manage/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["subscription"]["id"], self.subscription.external_id)

        self.client.force_authenticate(user=self.seller)
        response = self.client.get(f"/api/sales/subscriptions/{self.subscription.external_id}/manage/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_checkout_product_is_public(self):
        response = self.client.get(f"/api/sales/checkout/products/{self.product.external_id}/", {"quantity": "2"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["quantity"], 2)
        self.assertEqual(response.json()["product"]["name"], "Zine")

    def test_checkout_product_rejects_bad_price(self):
        response = self.client.get(f"/api/sales/checkout/products/{self.product.external_id}/", {"price": "ten"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AffiliateViewTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.seller = create_seller("affviewseller")
        cls.promoter = create_user("affviewpromoter")
        cls.support = create_user("affviewsupport")
        TeamMembership.objects.create(seller=cls.seller, user=cls.support, role=TeamMembership.ROLE_SUPPORT)
        product = create_product(cls.seller, name="Preset Pack")
        affiliate = Affiliate.objects.create(seller=cls.seller, affiliate_user=cls.promoter)
        ProductAffiliate.objects.create(affiliate=affiliate, product=product)

    def test_affiliated_products_for_promoter(self):
        self.client.force_authenticate(user=self.promoter)
        response = self.client.get("/api/sales/affiliated/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["affiliated_products"][0]["product_name"], "Preset Pack")
        self.assertEqual(response.json()["affiliated_products"][0]["sales_count"], 0)

    def test_seller_lists_affiliates(self):
        self.client.force_authenticate(user=self.seller)
        response = self.client.get("/api/sales/affiliates/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["affiliates"][0]["email"], self.promoter.email)

    def test_support_cannot_list_affiliates(self):
        self.client.force_authenticate(user=self.support)
        self.client.credentials(HTTP_X_SELLER_ID=str(self.seller.pk))
        response = self.client.get("/api/sales/affiliates/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
