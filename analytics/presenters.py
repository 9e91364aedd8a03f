"""
Analytics Presenters - Creator Platform

Features:
- UtmLinkPresenter: one UTM link row (plus form context)
- PaginatedUtmLinksPresenter: dashboard table with search, sorting and pagination
- SalesAnalyticsPresenter: sales per day and per product

Author: CP Development Team
Version: 1.0.0
"""

import datetime
from collections import OrderedDict

from django.conf import settings
from django.db.models import Case, Count, F, FloatField, Q, Sum, Value, When
from django.db.models.functions import Cast, Coalesce, TruncDate

from analytics.models import UtmLink
from catalog.models import Product
from core.models import SellerProfile
from core.pagination import paginate
from posts.models import Post
from reports.seller_stats import end_of_day, start_of_day
from sales.models import Purchase

STATS_SORT_KEYS = ("sales_count", "revenue_cents", "conversion_rate")
SORT_FIELDS = {
    "link": "title",
    "date": "created_at",
    "source": "utm_source",
    "medium": "utm_medium",
    "campaign": "utm_campaign",
    "clicks": "unique_clicks",
    "sales_count": "sales_count",
    "revenue_cents": "revenue_cents",
    "conversion_rate": "conversion_rate",
}
SEARCH_FIELDS = ("title", "utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content")

# Only real sales count; test purchases have their own state.
DRIVEN_SALE_FILTER = Q(driven_sales__purchase__purchase_state=Purchase.SUCCESSFUL)


def with_stats(queryset):
    """Annotates sales_count, revenue_cents and conversion_rate on UTM links."""
    return queryset.annotate(
        sales_count=Count("driven_sales", filter=DRIVEN_SALE_FILTER),
        revenue_cents=Coalesce(Sum("driven_sales__purchase__price_cents", filter=DRIVEN_SALE_FILTER), 0),
    ).annotate(
        conversion_rate=Case(
            When(unique_clicks=0, then=Value(0.0)),
            default=Cast("sales_count", FloatField()) / Cast("unique_clicks", FloatField()),
            output_field=FloatField(),
        )
    )


class UtmLinkPresenter:
    def __init__(self, seller, utm_link=None):
        self.seller = seller
        self.utm_link = utm_link

    def utm_link_props(self):
        utm_link = self.utm_link
        props = {
            "id": utm_link.external_id,
            "title": utm_link.title,
            "short_url": utm_link.short_url,
            "utm_url": utm_link.utm_url,
            "created_at": utm_link.created_at.isoformat(),
            "source": utm_link.utm_source,
            "medium": utm_link.utm_medium,
            "campaign": utm_link.utm_campaign,
            "term": utm_link.utm_term,
            "content": utm_link.utm_content,
            "clicks": utm_link.unique_clicks,
            "destination_option": utm_link.destination_option(),
            "sales_count": None,
            "revenue_cents": None,
            "conversion_rate": None,
        }
        # Stats are only present when the queryset was annotated.
        if hasattr(utm_link, "sales_count"):
            props["sales_count"] = utm_link.sales_count
            props["revenue_cents"] = int(utm_link.revenue_cents)
            props["conversion_rate"] = round(utm_link.conversion_rate or 0.0, 4)
        return props

    def new_page_props(self, copy_from=None):
        """Context for the create form; ``copy_from`` prefills the values of an existing link."""
        utm_link = None
        if copy_from:
            source = UtmLink.objects.alive().filter(seller=self.seller, external_id=copy_from).first()
            if source is not None:
                utm_link = UtmLinkPresenter(self.seller, source).utm_link_props()
                utm_link["short_url"] = None
        return {
            "context": {
                "destination_options": self.destination_options(),
                "short_url": f"{settings.SHORT_DOMAIN}/u/{UtmLink.generate_permalink()}",
                "utm_fields_values": self.utm_fields_values(),
            },
            "utm_link": utm_link,
        }

    def destination_options(self):
        profile = SellerProfile.for_user(self.seller)
        options = [
            {"id": UtmLink.PROFILE_PAGE, "label": "Profile page", "url": profile.profile_url},
            {"id": UtmLink.SUBSCRIBE_PAGE, "label": "Subscribe page", "url": f"{profile.profile_url}/subscribe"},
        ]
        for product in Product.objects.alive().filter(seller=self.seller).order_by("created_at", "id"):
            options.append(
                {
                    "id": f"{UtmLink.PRODUCT_PAGE}-{product.external_id}",
                    "label": f"Product - {product.name}",
                    "url": product.long_url,
                }
            )
        posts = Post.objects.published().filter(seller=self.seller, shown_on_profile=True).order_by("published_at", "id")
        for post in posts:
            options.append(
                {
                    "id": f"{UtmLink.POST_PAGE}-{post.external_id}",
                    "label": f"Post - {post.name}",
                    "url": post.full_url,
                }
            )
        return options

    def utm_fields_values(self):
        links = UtmLink.objects.alive().filter(seller=self.seller)

        def distinct(field):
            return sorted(value for value in links.values_list(field, flat=True).distinct() if value)

        return {
            "campaigns": distinct("utm_campaign"),
            "mediums": distinct("utm_medium"),
            "sources": distinct("utm_source"),
            "terms": distinct("utm_term"),
            "contents": distinct("utm_content"),
        }


class PaginatedUtmLinksPresenter:
    def __init__(self, seller, query=None, page=1, sort=None):
        self.seller = seller
        self.query = (query or "").strip()
        self.page = page
        self.sort = sort or {}

    @property
    def sort_key(self):
        key = self.sort.get("key")
        return key if key in SORT_FIELDS else "date"

    @property
    def sort_descending(self) -> bool:
        if self.sort.get("key") not in SORT_FIELDS:
            return True
        return self.sort.get("direction") == "desc"

    def props(self):
        utm_links, pagination = paginate(self._queryset(), self.page, settings.UTM_LINKS_PER_PAGE)
        return {
            "utm_links": [UtmLinkPresenter(self.seller, utm_link).utm_link_props() for utm_link in utm_links],
            "pagination": pagination,
        }

    def _queryset(self):
        utm_links = UtmLink.objects.alive().filter(seller=self.seller)
        if self.query:
            condition = Q()
            for field in SEARCH_FIELDS:
                condition |= Q(**{f"{field}__icontains": self.query})
            utm_links = utm_links.filter(condition)

        if self.sort_key in STATS_SORT_KEYS:
            utm_links = with_stats(utm_links)

        field = F(SORT_FIELDS[self.sort_key])
        order = field.desc() if self.sort_descending else field.asc()
        tiebreak = "-id" if self.sort_descending else "id"
        return utm_links.order_by(order, tiebreak)


class SalesAnalyticsPresenter:
    """Daily sales of a seller, with missing days filled with zeros."""

    def __init__(self, seller, start_date, end_date):
        self.seller = seller
        self.start_date = start_date
        self.end_date = end_date

    def _sales(self):
        return Purchase.objects.successful().filter(
            seller=self.seller,
            succeeded_at__gte=start_of_day(self.start_date),
            succeeded_at__lte=end_of_day(self.end_date),
        )

    def props(self):
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "by_date": self.by_date(),
            "by_product": self.by_product(),
        }

    def by_date(self):
        days = OrderedDict()
        day = self.start_date
        while day <= self.end_date:
            days[day] = {"date": day.isoformat(), "sales_count": 0, "gross_cents": 0, "net_cents": 0}
            day += datetime.timedelta(days=1)

        rows = (
            self._sales()
            .annotate(day=TruncDate("succeeded_at"))
            .values("day")
            .annotate(
                sales_count=Count("id"),
                gross_cents=Sum("price_cents"),
                net_cents=Sum(F("price_cents") - F("fee_cents") - F("affiliate_credit_cents")),
            )
        )
        for row in rows:
            if row["day"] in days:
                days[row["day"]].update(
                    sales_count=row["sales_count"],
                    gross_cents=row["gross_cents"] or 0,
                    net_cents=row["net_cents"] or 0,
                )
        return list(days.values())

    def by_product(self):
        rows = (
            self._sales()
            .values("product__external_id", "product__name")
            .annotate(
                sales_count=Count("id"),
                gross_cents=Sum("price_cents"),
                net_cents=Sum(F("price_cents") - F("fee_cents") - F("affiliate_credit_cents")),
            )
            .order_by("-gross_cents", "product__name")
        )
        return [
            {
                "id": row["product__external_id"],
                "name": row["product__name"],
                "sales_count": row["sales_count"],
                "gross_cents": row["gross_cents"] or 0,
                "net_cents": row["net_cents"] or 0,
            }
            for row in rows
        ]
