from django.test import TestCase
from django.utils import timezone

from core.models import TeamMembership
from core.seller_context import SellerContext
from core.tests.factories import create_product, create_purchase, create_seller, create_user
from posts.models import Post, PostDelivery
from posts.presenters import InstallmentPresenter, PostPresenter
from sales.models import Purchase


class PostPresenterTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.seller = create_seller("autorin")
        cls.product = create_product(cls.seller, name="Workshop")
        cls.other_product = create_product(cls.seller, name="Templates")
        now = timezone.now()
        cls.public_post = Post.objects.create(
            seller=cls.seller, name="Hello", message="Open to all", audience_type=Post.AUDIENCE, published_at=now
        )
        cls.product_post = Post.objects.create(
            seller=cls.seller,
            product=cls.product,
            name="Workshop notes",
            message="Only for buyers",
            audience_type=Post.PRODUCT,
            published_at=now,
        )

    def test_public_post_is_visible(self):
        props = PostPresenter(self.public_post).post_component_props()
        self.assertTrue(props["can_view"])
        self.assertEqual(props["message"], "Open to all")
        self.assertEqual(props["creator_profile"]["id"], self.seller.pk)
        self.assertEqual([post["id"] for post in props["other_visible_posts"]], [self.product_post.external_id])

    def test_paid_post_is_hidden_without_purchase(self):
        props = PostPresenter(self.product_post).post_component_props()
        self.assertFalse(props["can_view"])
        self.assertIsNone(props["message"])
        self.assertFalse(props["comments_enabled"])

    def test_buyer_of_the_product_can_view(self):
        purchase = create_purchase(self.product)
        self.assertTrue(PostPresenter(self.product_post, purchase=purchase).can_view)

    def test_buyer_of_another_product_cannot_view(self):
        purchase = create_purchase(self.other_product)
        self.assertFalse(PostPresenter(self.product_post, purchase=purchase).can_view)

    def test_refunded_or_chargedback_purchase_cannot_view(self):
        refunded = create_purchase(self.product, stripe_refunded=True)
        chargedback = create_purchase(self.product, chargeback_date=timezone.now())
        reversed_chargeback = create_purchase(
            self.product, chargeback_date=timezone.now(), chargeback_reversed=True
        )
        failed = create_purchase(self.product, purchase_state=Purchase.FAILED)

        self.assertFalse(PostPresenter(self.product_post, purchase=refunded).can_view)
        self.assertFalse(PostPresenter(self.product_post, purchase=chargedback).can_view)
        self.assertTrue(PostPresenter(self.product_post, purchase=reversed_chargeback).can_view)
        self.assertFalse(PostPresenter(self.product_post, purchase=failed).can_view)

    def test_team_member_can_view(self):
        support = create_user("postsupport")
        TeamMembership.objects.create(seller=self.seller, user=support, role=TeamMembership.ROLE_SUPPORT)
        presenter = PostPresenter(self.product_post, pundit_user=SellerContext(support, self.seller))
        self.assertTrue(presenter.can_view)

    def test_all_customers_audience_accepts_any_product(self):
        post = Post.objects.create(
            seller=self.seller, name="For customers", audience_type=Post.SELLER, published_at=timezone.now()
        )
        purchase = create_purchase(self.other_product)
        self.assertTrue(PostPresenter(post, purchase=purchase).can_view)

        foreign_purchase = create_purchase(create_product(create_seller("fremdseller")))
        self.assertFalse(PostPresenter(post, purchase=foreign_purchase).can_view)


class InstallmentPresenterTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.seller = create_seller("installments")
        cls.product = create_product(cls.seller, name="Course")
        cls.owner = SellerContext.for_user(cls.seller)

    def test_published_post_counts_opens(self):
        post = Post.objects.create(
            seller=self.seller,
            product=self.product,
            name="Lesson 1",
            audience_type=Post.PRODUCT,
            published_at=timezone.now(),
        )
        PostDelivery.objects.create(post=post, email="a@example.com", opened_at=timezone.now())
        PostDelivery.objects.create(post=post, email="b@example.com")
        PostDelivery.objects.create(post=post, email="c@example.com")

        props = InstallmentPresenter(self.seller, post, pundit_user=self.owner).props()

        self.assertEqual(props["recipient_description"], "Customers of Course")
        self.assertEqual(props["sent_count"], 3)
        self.assertEqual(props["open_count"], 1)
        self.assertEqual(props["open_rate"], 33.3)
        self.assertTrue(props["can_edit"])

    def test_draft_has_no_send_stats(self):
        draft = Post.objects.create(seller=self.seller, name="Draft", audience_type=Post.FOLLOWER)
        props = InstallmentPresenter(self.seller, draft).props()
        self.assertEqual(props["recipient_description"], "Your followers")
        self.assertIsNone(props["sent_count"])
        self.assertIsNone(props["open_rate"])
        self.assertFalse(props["can_edit"])
