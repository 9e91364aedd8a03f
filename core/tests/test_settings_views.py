from rest_framework import status
from rest_framework.test import APITestCase
from rest_framework_simplejwt.tokens import AccessToken

from core.models import SellerProfile, TeamMembership
from core.tests.factories import create_seller, create_user


class SettingsViewTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.seller = create_seller("creator", currency_type="usd")
        cls.admin = create_user("teamadmin")
        cls.support = create_user("teamsupport")
        cls.stranger = create_user("stranger")
        TeamMembership.objects.create(seller=cls.seller, user=cls.admin, role=TeamMembership.ROLE_ADMIN)
        TeamMembership.objects.create(seller=cls.seller, user=cls.support, role=TeamMembership.ROLE_SUPPORT)

    def as_member(self, user):
        self.client.force_authenticate(user=user)
        self.client.credentials(HTTP_X_SELLER_ID=str(self.seller.pk))

    def test_owner_gets_settings(self):
        self.client.force_authenticate(user=self.seller)
        response = self.client.get("/api/settings/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertEqual(body["username"], "creator")
        self.assertEqual(body["currency"], "usd")
        self.assertEqual(body["team_role"], "owner")
        self.assertTrue(body["can_update"])

    def test_anonymous_is_rejected(self):
        response = self.client.get("/api/settings/")
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))

    def test_stranger_cannot_act_for_seller(self):
        self.as_member(self.stranger)
        response = self.client.get("/api/settings/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_support_sees_but_cannot_update(self):
        self.as_member(self.support)
        response = self.client.get("/api/settings/")
        self.assertEqual(response.json()["team_role"], "support")
        self.assertFalse(response.json()["can_update"])

        response = self.client.patch("/api/settings/", {"currency_type": "eur"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_updates_settings(self):
        self.as_member(self.admin)
        response = self.client.patch(
            "/api/settings/", {"currency_type": "eur", "refunds_disabled": True}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.json()["success"])
        profile = SellerProfile.objects.get(user=self.seller)
        self.assertEqual(profile.currency_type, "eur")
        self.assertTrue(profile.refunds_disabled)

    def test_invalid_currency_is_rejected(self):
        self.client.force_authenticate(user=self.seller)
        response = self.client.patch("/api/settings/", {"currency_type": "xyz"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("currency_type", response.json()["errors"])

    def test_taken_username_is_rejected(self):
        create_seller("taken")
        self.client.force_authenticate(user=self.seller)
        response = self.client.patch("/api/settings/", {"username": "taken"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class CookieAuthenticationTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.seller = create_seller("cookieuser")

    def test_access_token_cookie_authenticates(self):
        self.client.cookies["access_token"] = str(AccessToken.for_user(self.seller))
        response = self.client.get("/api/settings/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["username"], "cookieuser")

    def test_bearer_header_still_works(self):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(self.seller)}")
        response = self.client.get("/api/settings/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
