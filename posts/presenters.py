"""
Post Presenters - Creator Platform

- PostPresenter: public post page (what a reader may see)
- InstallmentPresenter: seller dashboard row for one post

Paid audiences (customers of a product, all customers) only see the message
when the reader bought from the seller or belongs to the seller's team.

Author: CP Development Team
Version: 1.0.0
"""

from catalog.presenters import seller_props
from core.policies import PostPolicy
from posts.models import Post

OTHER_POSTS_LIMIT = 5


class PostPresenter:
    def __init__(self, post, pundit_user=None, purchase=None):
        self.post = post
        self.pundit_user = pundit_user
        self.purchase = purchase

    @property
    def can_view(self) -> bool:
        post = self.post
        if not post.requires_purchase:
            return True
        if self.pundit_user is not None and self.pundit_user.seller == post.seller and self.pundit_user.is_team_member:
            return True
        return self._purchase_grants_access()

    def _purchase_grants_access(self) -> bool:
        purchase = self.purchase
        if purchase is None or purchase.seller_id != self.post.seller_id:
            return False
        if not purchase.successful or purchase.stripe_refunded:
            return False
        if purchase.chargedback and not purchase.chargeback_reversed:
            return False
        if self.post.audience_type == Post.PRODUCT:
            return purchase.product_id == self.post.product_id
        return True

    def post_component_props(self):
        post = self.post
        can_view = self.can_view
        return {
            "id": post.external_id,
            "title": post.name,
            "message": post.message if can_view else None,
            "published_at": post.published_at.isoformat() if post.published_at else None,
            "url": post.full_url,
            "creator_profile": seller_props(post.seller),
            "comments_enabled": post.allow_comments and can_view,
            "can_view": can_view,
            "other_visible_posts": self._other_visible_posts(),
        }

    def _other_visible_posts(self):
        posts = (
            Post.objects.published()
            .filter(seller_id=self.post.seller_id, shown_on_profile=True)
            .exclude(pk=self.post.pk)
            .order_by("-published_at", "-id")[:OTHER_POSTS_LIMIT]
        )
        return [
            {
                "id": other.external_id,
                "name": other.name,
                "published_at": other.published_at.isoformat(),
                "url": other.full_url,
            }
            for other in posts
        ]


class InstallmentPresenter:
    AUDIENCE_DESCRIPTIONS = {
        Post.FOLLOWER: "Your followers",
        Post.AUDIENCE: "Your customers and followers",
        Post.AFFILIATE: "Your affiliates",
        Post.SELLER: "Your customers",
    }

    def __init__(self, seller, installment, pundit_user=None):
        self.seller = seller
        self.installment = installment
        self.pundit_user = pundit_user

    @property
    def recipient_description(self) -> str:
        installment = self.installment
        if installment.audience_type == Post.PRODUCT and installment.product_id:
            return f"Customers of {installment.product.name}"
        return self.AUDIENCE_DESCRIPTIONS.get(installment.audience_type, "Your customers")

    def props(self):
        installment = self.installment
        deliveries = installment.deliveries.all()
        sent_count = deliveries.count() if installment.is_published else None
        open_count = deliveries.filter(opened_at__isnull=False).count()
        return {
            "external_id": installment.external_id,
            "name": installment.name,
            "message": installment.message,
            "audience_type": installment.audience_type,
            "recipient_description": self.recipient_description,
            "published_at": installment.published_at.isoformat() if installment.published_at else None,
            "updated_at": installment.updated_at.isoformat(),
            "full_url": installment.full_url,
            "shown_on_profile": installment.shown_on_profile,
            "allow_comments": installment.allow_comments,
            "sent_count": sent_count,
            "open_count": open_count,
            "open_rate": round(open_count / sent_count * 100, 1) if sent_count else None,
            "can_edit": bool(self.pundit_user) and PostPolicy(self.pundit_user, installment).edit(),
        }
