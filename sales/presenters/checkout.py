from catalog.models import RECURRENCE_MONTHS
from catalog.presenters import ProductPresenter, seller_props
from core.models import SellerProfile


class CheckoutPresenter:
    """Props for the checkout page and the membership management page."""

    def __init__(self, logged_in_user=None):
        self.logged_in_user = logged_in_user

    def checkout_product(self, product, cart_item, params=None):
        params = params or {}
        presenter = ProductPresenter(product)
        profile = SellerProfile.for_user(product.seller)

        return {
            "product": {
                "id": product.external_id,
                "permalink": product.general_permalink,
                "name": product.name,
                "creator": seller_props(product.seller),
                "url": product.long_url,
                "native_type": product.native_type,
                "currency_code": product.price_currency_type,
                "price_cents": product.display_price_cents,
                "is_customizable_price": product.customizable_price,
                "is_tiered_membership": product.is_tiered_membership,
                "recurrences": presenter.recurrences_props(),
                "options": presenter.options_props(),
                "is_quantity_enabled": product.quantity_enabled,
                "quantity_remaining": product.remaining_for_sale_count,
                "free_trial": product.free_trial_duration,
                "has_tipping_enabled": profile.tipping_enabled,
                "require_shipping": product.require_shipping or product.is_physical,
                "archived": product.archived,
            },
            "price": int(cart_item.get("price") or product.display_price_cents),
            "option_id": cart_item.get("option"),
            "recurrence": cart_item.get("recurrence") or product.default_recurrence,
            "quantity": max(int(cart_item.get("quantity") or 1), 1),
            "affiliate_id": cart_item.get("affiliate_id") or params.get("affiliate_id"),
            "recommended_by": params.get("recommended_by"),
            "url_parameters": params.get("url_parameters") or {},
            "referrer": params.get("referrer"),
        }

    def subscription_manager_props(self, subscription):
        original = subscription.original_purchase
        if original is None:
            return None

        product = subscription.product
        presenter = ProductPresenter(product)
        recurrences = presenter.recurrences_props() or {"default": None, "enabled": []}
        recurrences["enabled"] = sorted(
            recurrences["enabled"], key=lambda item: RECURRENCE_MONTHS.get(item["recurrence"], 0)
        )

        end_time = subscription.end_time_of_subscription
        return {
            "product": {
                "name": product.name,
                "native_type": product.native_type,
                "creator": seller_props(product.seller),
                "currency_code": product.price_currency_type,
                "is_tiered_membership": product.is_tiered_membership,
                "recurrences": recurrences,
                "options": presenter.options_props(),
                "require_shipping": product.require_shipping,
            },
            "contact_info": {
                "email": original.email,
                "full_name": original.full_name,
            },
            "used_card": {
                "type": original.card_type or None,
                "visual": original.card_visual or None,
            },
            "subscription": {
                "id": subscription.external_id,
                "option_id": subscription.tier.external_id if subscription.tier_id else None,
                "recurrence": subscription.recurrence,
                "price": subscription.current_subscription_price_cents,
                "quantity": original.quantity,
                "end_time_of_subscription": end_time.isoformat() if end_time else None,
                "is_installment_plan": subscription.is_installment_plan,
                "successful_purchases_count": subscription.successful_purchases_count,
                "remaining_charges_count": subscription.remaining_charges_count,
                "alive": subscription.alive,
                "pending_cancellation": subscription.pending_cancellation,
            },
        }
