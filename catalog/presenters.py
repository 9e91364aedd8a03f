"""
Catalog Presenters - Creator Platform

Shape products into the dicts the front end renders:

- ProductPresenter.product_props(): public product page
- ProductPresenter.edit_props(): product edit page
- ProductPresenter.card_props(): compact card for listings
- DashboardProductsPagePresenter: seller dashboard tables

Author: CP Development Team
Version: 1.0.0
"""

from django.conf import settings

from catalog.models import RECURRENCE_MONTHS, Product
from core.models import SellerProfile
from core.money import format_money
from core.pagination import paginate
from core.policies import ProductPolicy


def seller_props(user):
    profile = SellerProfile.for_user(user)
    return {
        "id": user.pk,
        "name": profile.display_name,
        "profile_url": profile.profile_url,
    }


class ProductPresenter:
    def __init__(self, product, request=None):
        self.product = product
        self.request = request

    # ---------- shared blocks ----------

    def recurrences_props(self):
        product = self.product
        if not product.is_recurring_billing:
            return None
        enabled = []
        for recurrence in product.available_recurrences:
            prices = product.alive_prices().filter(recurrence=recurrence)
            base = prices.filter(variant__isnull=True).first() or prices.order_by("price_cents").first()
            enabled.append(
                {
                    "id": base.external_id if base else recurrence,
                    "recurrence": recurrence,
                    "price_cents": base.price_cents if base else product.price_cents,
                }
            )
        return {"default": product.default_recurrence, "enabled": enabled}

    def options_props(self):
        product = self.product
        options = []
        for variant in product.alive_variants():
            options.append(
                {
                    "id": variant.external_id,
                    "name": variant.name,
                    "description": variant.description,
                    "price_difference_cents": None if product.is_tiered_membership else variant.price_difference_cents,
                    "quantity_left": variant.quantity_left,
                    "recurrence_price_values": (
                        product.recurrence_price_values(variant) if product.is_tiered_membership else None
                    ),
                }
            )
        return options

    # ---------- props ----------

    def product_props(self, pundit_user=None):
        product = self.product
        can_edit = bool(pundit_user) and ProductPolicy(pundit_user, product).edit()
        return {
            "product": {
                "id": product.external_id,
                "name": product.name,
                "permalink": product.general_permalink,
                "long_url": product.long_url,
                "seller": seller_props(product.seller),
                "native_type": product.native_type,
                "description": product.description,
                "price_cents": product.display_price_cents,
                "price_formatted": product.price_formatted_verbose(),
                "currency_code": product.price_currency_type,
                "is_customizable_price": product.customizable_price,
                "suggested_price_cents": product.suggested_price_cents,
                "is_recurring_billing": product.is_recurring_billing,
                "is_tiered_membership": product.is_tiered_membership,
                "recurrences": self.recurrences_props(),
                "options": self.options_props(),
                "is_quantity_enabled": product.quantity_enabled,
                "require_shipping": product.require_shipping,
                "sales_count": product.successful_sales_count if product.should_show_sales_count else None,
                "is_sales_limited": product.is_sales_limited,
                "sales_count_for_inventory": product.sales_count_for_inventory if product.is_sales_limited else None,
                "remaining_for_sale_count": product.remaining_for_sale_count,
                "is_published": product.is_published,
                "purchase_disabled": not product.is_published,
                "free_trial": product.free_trial_duration,
                "can_edit": can_edit,
            },
        }

    def edit_props(self):
        product = self.product
        variants = []
        for variant in product.alive_variants():
            variants.append(
                {
                    "id": variant.external_id,
                    "name": variant.name,
                    "description": variant.description,
                    "price_difference_cents": variant.price_difference_cents,
                    "max_purchase_count": variant.max_purchase_count,
                    "sales_count_for_inventory": variant.sales_count_for_inventory,
                    "active_subscribers_count": (
                        variant.active_subscribers_count if product.is_tiered_membership else 0
                    ),
                    "recurrence_price_values": (
                        product.recurrence_price_values(variant) if product.is_tiered_membership else None
                    ),
                }
            )

        return {
            "id": product.external_id,
            "unique_permalink": product.unique_permalink,
            "product": {
                "name": product.name,
                "custom_permalink": product.custom_permalink or None,
                "description": product.description,
                "native_type": product.native_type,
                "price_cents": product.price_cents,
                "customizable_price": product.customizable_price,
                "suggested_price_cents": product.suggested_price_cents,
                "subscription_duration": product.subscription_duration or None,
                "is_tiered_membership": product.is_tiered_membership,
                "max_purchase_count": product.max_purchase_count,
                "quantity_enabled": product.quantity_enabled,
                "require_shipping": product.require_shipping,
                "should_show_sales_count": product.should_show_sales_count,
                "free_trial_enabled": product.free_trial_enabled,
                "free_trial_duration_amount": product.free_trial_duration_amount,
                "free_trial_duration_unit": product.free_trial_duration_unit or None,
                "is_published": product.is_published,
                "variants": variants,
            },
            "currency_type": product.price_currency_type,
            "sales_count_for_inventory": product.sales_count_for_inventory,
            "successful_sales_count": product.successful_sales_count,
            "seller": seller_props(product.seller),
        }

    def card_props(self):
        product = self.product
        return {
            "id": product.external_id,
            "permalink": product.general_permalink,
            "name": product.name,
            "seller": seller_props(product.seller),
            "url": product.long_url,
            "native_type": product.native_type,
            "price_cents": product.display_price_cents,
            "currency_code": product.price_currency_type,
            "price_formatted": product.price_formatted_verbose(),
            "recurrence": product.default_recurrence,
            "is_pay_what_you_want": product.customizable_price,
            "is_sales_limited": product.is_sales_limited,
        }


class DashboardProductsPagePresenter:
    SORT_KEYS = ("name", "successful_sales_count", "revenue", "display_price_cents", "status")

    def __init__(self, pundit_user, page=1, sort=None, query=None):
        self.pundit_user = pundit_user
        self.page = page
        self.sort = sort or {}
        self.query = (query or "").strip()

    def _products(self):
        products = Product.objects.alive().filter(
            seller=self.pundit_user.seller, archived=False
        ).select_related("seller")
        if self.query:
            products = products.filter(name__icontains=self.query)
        return products

    def _row(self, product):
        policy = ProductPolicy(self.pundit_user, product)
        revenue = product.revenue_cents
        return {
            "id": product.external_id,
            "name": product.name,
            "permalink": product.general_permalink,
            "url": product.long_url,
            "price_formatted": product.price_formatted_verbose(),
            "display_price_cents": product.display_price_cents,
            "successful_sales_count": product.successful_sales_count,
            "remaining_for_sale_count": product.remaining_for_sale_count,
            "revenue": revenue,
            "revenue_formatted": format_money(revenue, "usd"),
            "status": product.status,
            "is_membership": product.is_recurring_billing,
            "recurrence": product.default_recurrence,
            "recurrence_months": RECURRENCE_MONTHS.get(product.default_recurrence),
            "can_edit": policy.edit(),
            "can_duplicate": policy.duplicate(),
            "can_destroy": policy.destroy(),
        }

    def _sorted(self, rows):
        key = self.sort.get("key")
        if key not in self.SORT_KEYS:
            return rows
        reverse = self.sort.get("direction") == "desc"
        if key == "name":
            return sorted(rows, key=lambda row: row["name"].lower(), reverse=reverse)
        return sorted(rows, key=lambda row: row[key], reverse=reverse)

    def _table(self, products):
        rows = self._sorted([self._row(product) for product in products])
        rows, pagination = paginate(rows, self.page, settings.PRODUCTS_PER_PAGE)
        return rows, pagination

    def page_props(self):
        products = self._products()
        memberships, memberships_pagination = self._table(products.filter(is_recurring_billing=True))
        items, products_pagination = self._table(products.filter(is_recurring_billing=False))
        archived_count = (
            Product.objects.alive().filter(seller=self.pundit_user.seller, archived=True).count()
        )
        return {
            "memberships": memberships,
            "memberships_pagination": memberships_pagination,
            "products": items,
            "products_pagination": products_pagination,
            "archived_products_count": archived_count,
            "can_create_product": ProductPolicy(self.pundit_user).edit(),
        }
