from django.conf import settings
from django.db.models import Count, Sum

from catalog.models import Product
from core.money import formatted_dollar_amount
from core.pagination import paginate
from core.policies import AffiliatePolicy
from sales.models import Affiliate, ProductAffiliate, Purchase


def _credited_sales():
    """Sales that still earn their affiliate credit."""
    return (
        Purchase.objects.successful()
        .not_fully_refunded()
        .not_chargedback_or_chargedback_reversed()
    )


class AffiliatedProductsPresenter:
    """Products a user promotes as an affiliate (the "Affiliated" page)."""

    SORT_KEYS = ("product_name", "sales_count", "revenue", "fee_percentage")

    def __init__(self, user, query=None, page=1, sort=None):
        self.user = user
        self.query = (query or "").strip()
        self.page = page
        self.sort = sort or {}

    def affiliated_products_page_props(self):
        rows = self._sorted(self._rows())
        rows, pagination = paginate(rows, self.page, settings.AFFILIATED_PRODUCTS_PER_PAGE)
        return {
            "affiliated_products": rows,
            "pagination": pagination,
            "stats": self._stats(),
            "global_affiliates_data": self._global_affiliates_data(),
            "archived_tab_visible": Affiliate.objects.deleted()
            .filter(affiliate_user=self.user, affiliate_type=Affiliate.DIRECT)
            .exists(),
        }

    # ---------- rows ----------

    def _pairs(self):
        """(affiliate, product) pairs with alive, purchasable products."""
        affiliates = Affiliate.objects.alive().filter(affiliate_user=self.user).order_by("created_at", "id")
        for affiliate in affiliates:
            if affiliate.is_global:
                product_ids = (
                    _credited_sales().filter(affiliate=affiliate).values_list("product_id", flat=True).distinct()
                )
                products = Product.objects.filter(id__in=product_ids)
            else:
                links = ProductAffiliate.objects.filter(affiliate=affiliate).select_related("product")
                products = [link.product for link in links.order_by("id")]

            for product in products:
                if not product.alive or product.purchase_disabled_at is not None:
                    continue
                if self.query and self.query.lower() not in product.name.lower():
                    continue
                yield affiliate, product

    def _rows(self):
        rows = []
        for affiliate, product in self._pairs():
            totals = _credited_sales().filter(affiliate=affiliate, product=product).aggregate(
                count=Count("id"), revenue=Sum("affiliate_credit_cents")
            )
            revenue = totals["revenue"] or 0
            rows.append(
                {
                    "fee_percentage": affiliate.fee_percentage_for(product),
                    "humanized_revenue": formatted_dollar_amount(revenue),
                    "product_name": product.name,
                    "revenue": revenue,
                    "sales_count": totals["count"],
                    "affiliate_type": affiliate.affiliate_type,
                    "url": affiliate.referral_url_for_product(product),
                }
            )
        return rows

    def _sorted(self, rows):
        key = self.sort.get("key")
        if key not in self.SORT_KEYS:
            return rows
        return sorted(rows, key=lambda row: row[key], reverse=self.sort.get("direction") == "desc")

    # ---------- stats ----------

    def _stats(self):
        sales = _credited_sales().filter(affiliate__affiliate_user=self.user)
        totals = sales.aggregate(
            revenue=Sum("affiliate_credit_cents"),
            sales=Count("id"),
            products=Count("product", distinct=True),
            creators=Count("seller", distinct=True),
        )
        return {
            "total_revenue": totals["revenue"] or 0,
            "total_sales": totals["sales"],
            "total_products": totals["products"],
            "total_affiliated_creators": totals["creators"],
        }

    def _global_affiliates_data(self):
        global_affiliate = Affiliate.objects.alive().filter(
            affiliate_user=self.user, affiliate_type=Affiliate.GLOBAL
        ).first()
        if global_affiliate is None:
            return None
        revenue = (
            _credited_sales().filter(affiliate=global_affiliate).aggregate(total=Sum("affiliate_credit_cents"))["total"]
            or 0
        )
        return {
            "global_affiliate_id": global_affiliate.external_id,
            "global_affiliate_sales": formatted_dollar_amount(revenue, with_currency=False),
            "affiliate_query_param": Affiliate.QUERY_PARAM,
        }


class AffiliatesPresenter:
    """Seller-side list of direct affiliates."""

    def __init__(self, pundit_user, query=None):
        self.pundit_user = pundit_user
        self.query = (query or "").strip()

    def affiliates_props(self):
        affiliates = (
            Affiliate.objects.alive()
            .filter(seller=self.pundit_user.seller, affiliate_type=Affiliate.DIRECT)
            .select_related("affiliate_user")
            .order_by("-created_at", "-id")
        )
        if self.query:
            affiliates = affiliates.filter(affiliate_user__email__icontains=self.query)

        can_edit = AffiliatePolicy(self.pundit_user).edit()
        return {
            "affiliates": [self._affiliate(affiliate, can_edit) for affiliate in affiliates],
            "can_edit": can_edit,
        }

    @staticmethod
    def _affiliate(affiliate, can_edit):
        links = affiliate.product_affiliates.select_related("product").filter(product__deleted_at__isnull=True)
        return {
            "id": affiliate.external_id,
            "email": affiliate.affiliate_user.email,
            "affiliate_user_name": affiliate.affiliate_user.get_full_name() or affiliate.affiliate_user.username,
            "fee_percent": affiliate.affiliate_basis_points // 100,
            "apply_to_all_products": affiliate.apply_to_all_products,
            "products": [
                {
                    "id": link.product.external_id,
                    "name": link.product.name,
                    "fee_percent": affiliate.fee_percentage_for(link.product),
                    "referral_url": affiliate.referral_url_for_product(link.product),
                }
                for link in links.order_by("id")
            ],
            "can_edit": can_edit,
        }
