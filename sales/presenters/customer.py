from core.money import format_money
from core.policies import CustomerPolicy
from posts.models import Post


class CustomerPresenter:
    def __init__(self, purchase):
        self.purchase = purchase

    def customer(self, pundit_user):
        purchase = self.purchase
        product = purchase.product
        subscription = purchase.subscription
        affiliate = purchase.affiliate
        driven_sale = getattr(purchase, "utm_link_driven_sale", None)

        return {
            "id": purchase.external_id,
            "email": purchase.email,
            "giftee_email": purchase.giftee_email or None,
            "name": purchase.full_name,
            "is_existing_user": purchase.purchaser_id is not None,
            "product": {
                "id": product.external_id,
                "name": product.name,
                "permalink": product.general_permalink,
                "native_type": product.native_type,
            },
            "variant": purchase.variant.name if purchase.variant_id else None,
            "quantity": purchase.quantity,
            "created_at": purchase.created_at.isoformat(),
            "price": {
                "cents": purchase.displayed_price_cents,
                "cents_before_offer_code": purchase.displayed_price_cents,
                "cents_refundable": purchase.charge_cents_from_usd(purchase.amount_refundable_cents),
                "currency_type": purchase.displayed_price_currency_type,
                "recurrence": subscription.recurrence if subscription else None,
                "tip_cents": purchase.tip_cents or None,
            },
            "subscription": self._subscription(subscription),
            "affiliate": self._affiliate(affiliate),
            "is_refunded": purchase.stripe_refunded,
            "is_partially_refunded": purchase.stripe_partially_refunded,
            "chargedback": purchase.chargedback and not purchase.chargeback_reversed,
            "utm_link": self._utm_link(driven_sale.utm_link) if driven_sale else None,
            "can_refund": CustomerPolicy(pundit_user, purchase).refund()
            and purchase.successful
            and purchase.amount_refundable_cents > 0,
        }

    def missed_posts(self):
        """Published posts for this purchase's product the customer never received."""
        purchase = self.purchase
        sent_post_ids = purchase.post_deliveries.values_list("post_id", flat=True)
        posts = (
            Post.objects.published()
            .filter(seller_id=purchase.seller_id, product_id=purchase.product_id, audience_type=Post.PRODUCT)
            .exclude(id__in=sent_post_ids)
            .order_by("published_at", "id")
        )
        return [
            {
                "id": post.external_id,
                "name": post.name,
                "url": post.full_url,
                "published_at": post.published_at.isoformat(),
            }
            for post in posts
        ]

    @staticmethod
    def _subscription(subscription):
        if subscription is None:
            return None
        return {
            "id": subscription.external_id,
            "status": "alive" if subscription.alive else "inactive",
            "is_installment_plan": subscription.is_installment_plan,
            "remaining_charges": subscription.remaining_charges_count,
            "end_time_of_subscription": subscription.end_time_of_subscription.isoformat(),
        }

    def _affiliate(self, affiliate):
        if affiliate is None:
            return None
        return {
            "email": affiliate.affiliate_user.email,
            "amount": format_money(self.purchase.affiliate_credit_cents, "usd"),
            "fee_percentage": affiliate.fee_percentage_for(self.purchase.product),
            "type": affiliate.affiliate_type,
        }

    @staticmethod
    def _utm_link(utm_link):
        return {
            "title": utm_link.title,
            "source": utm_link.utm_source,
            "medium": utm_link.utm_medium,
            "campaign": utm_link.utm_campaign,
            "term": utm_link.utm_term or None,
            "content": utm_link.utm_content or None,
        }
