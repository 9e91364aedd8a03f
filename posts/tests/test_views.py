from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from core.models import TeamMembership
from core.tests.factories import create_product, create_purchase, create_seller, create_user
from posts.models import Post


class PostViewTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.seller = create_seller("postviews")
        cls.buyer = create_user("leserin")
        cls.accountant = create_user("postaccountant")
        TeamMembership.objects.create(seller=cls.seller, user=cls.accountant, role=TeamMembership.ROLE_ACCOUNTANT)
        cls.product = create_product(cls.seller, name="Guide")
        cls.post = Post.objects.create(
            seller=cls.seller,
            product=cls.product,
            name="Chapter 2",
            message="Secret",
            audience_type=Post.PRODUCT,
            published_at=timezone.now(),
        )
        Post.objects.create(seller=cls.seller, name="Unfinished", audience_type=Post.AUDIENCE)

    def test_anonymous_reader_sees_locked_post(self):
        response = self.client.get(f"/api/posts/{self.post.external_id}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.json()["can_view"])
        self.assertIsNone(response.json()["message"])

    def test_purchase_id_unlocks_post(self):
        purchase = create_purchase(self.product)
        response = self.client.get(f"/api/posts/{self.post.external_id}/", {"purchase_id": purchase.external_id})
        self.assertEqual(response.json()["message"], "Secret")

    def test_logged_in_buyer_sees_post(self):
        create_purchase(self.product, purchaser=self.buyer)
        self.client.force_authenticate(user=self.buyer)
        response = self.client.get(f"/api/posts/{self.post.external_id}/")
        self.assertTrue(response.json()["can_view"])

    def test_unpublished_post_is_not_found(self):
        draft = Post.objects.get(name="Unfinished")
        response = self.client.get(f"/api/posts/{draft.external_id}/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_dashboard_tabs(self):
        self.client.force_authenticate(user=self.seller)
        response = self.client.get("/api/posts/dashboard/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p["name"] for p in response.json()["installments"]], ["Chapter 2"])

        response = self.client.get("/api/posts/dashboard/", {"tab": "drafts"})
        self.assertEqual([p["name"] for p in response.json()["installments"]], ["Unfinished"])

    def test_accountant_cannot_open_dashboard(self):
        self.client.force_authenticate(user=self.accountant)
        self.client.credentials(HTTP_X_SELLER_ID=str(self.seller.pk))
        response = self.client.get("/api/posts/dashboard/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
