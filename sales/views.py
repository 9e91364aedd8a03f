"""
Sales Views - Creator Platform

API Endpoints:
- GET  /api/sales/customers/                      seller's customers (paginated)
- GET  /api/sales/customers/<id>/                 one customer with missed posts
- POST /api/sales/customers/<id>/refund/          refund a purchase (full or partial)
- GET  /api/sales/purchases/<id>/receipt/         receipt payment block
- GET  /api/sales/subscriptions/<id>/manage/      membership management page
- GET  /api/sales/checkout/products/<id>/         checkout product block
- GET  /api/sales/affiliated/                     products the user promotes
- GET  /api/sales/affiliates/                     seller's direct affiliates

Author: CP Development Team
Version: 1.0.0
"""

import logging

from django.conf import settings
from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from catalog.models import Product
from core.pagination import paginate, sort_from_params
from core.permissions import IsSellerTeamMember, seller_context_for_request
from core.policies import AffiliatePolicy, CustomerPolicy
from core.seller_context import SellerContext
from sales.exceptions import RefundError
from sales.models import Purchase, Subscription
from sales.presenters import (
    AffiliatedProductsPresenter,
    AffiliatesPresenter,
    CheckoutPresenter,
    CustomerPresenter,
    ReceiptPresenter,
)
from sales.services import refund_purchase

logger = logging.getLogger(__name__)


def _seller_purchases(pundit_user):
    return Purchase.objects.filter(seller=pundit_user.seller).select_related(
        "product", "variant", "subscription", "affiliate__affiliate_user"
    )


class CustomersView(APIView):
    permission_classes = [IsSellerTeamMember]

    def get(self, request):
        pundit_user = seller_context_for_request(request)
        if not CustomerPolicy(pundit_user).index():
            return Response(status=status.HTTP_403_FORBIDDEN)

        purchases = _seller_purchases(pundit_user).filter(
            purchase_state=Purchase.SUCCESSFUL
        ).order_by("-created_at", "-id")
        query = (request.query_params.get("query") or "").strip()
        if query:
            purchases = purchases.filter(Q(email__icontains=query) | Q(full_name__icontains=query))
        product_id = request.query_params.get("product_id")
        if product_id:
            purchases = purchases.filter(product__external_id=product_id)

        page_items, pagination = paginate(
            purchases, request.query_params.get("page", 1), settings.CUSTOMERS_PER_PAGE
        )
        return Response(
            {
                "customers": [CustomerPresenter(p).customer(pundit_user) for p in page_items],
                "pagination": pagination,
            }
        )


class CustomerDetailView(APIView):
    permission_classes = [IsSellerTeamMember]

    def get(self, request, external_id):
        pundit_user = seller_context_for_request(request)
        purchase = get_object_or_404(_seller_purchases(pundit_user), external_id=external_id)
        if not CustomerPolicy(pundit_user, purchase).index():
            return Response(status=status.HTTP_403_FORBIDDEN)
        presenter = CustomerPresenter(purchase)
        return Response(
            {
                "customer": presenter.customer(pundit_user),
                "missed_posts": presenter.missed_posts(),
            }
        )


class CustomerRefundView(APIView):
    permission_classes = [IsSellerTeamMember]

    def post(self, request, external_id):
        pundit_user = seller_context_for_request(request)
        purchase = get_object_or_404(_seller_purchases(pundit_user), external_id=external_id)
        if not CustomerPolicy(pundit_user, purchase).refund():
            return Response(
                {"success": False, "message": "You are not allowed to refund this purchase."},
                status=status.HTTP_403_FORBIDDEN,
            )

        amount_cents = request.data.get("amount_cents")
        if amount_cents not in (None, ""):
            try:
                amount_cents = int(amount_cents)
            except (TypeError, ValueError):
                return Response(
                    {"success": False, "message": "Invalid refund amount."},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            if amount_cents <= 0:
                return Response(
                    {"success": False, "message": "Invalid refund amount."},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            # Sellers enter the amount in the purchase currency.
            amount_cents = purchase.usd_cents_from_charge(amount_cents)
        else:
            amount_cents = None

        try:
            refund_purchase(purchase, refunding_user=request.user, amount_cents=amount_cents)
        except RefundError as exc:
            logger.warning("Refund of purchase %s rejected: %s", purchase.external_id, exc)
            return Response({"success": False, "message": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        purchase.refresh_from_db()
        return Response(
            {
                "success": True,
                "id": purchase.external_id,
                "partially_refunded": purchase.stripe_partially_refunded,
                "message": "Purchase successfully refunded.",
            }
        )


class ReceiptView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, external_id):
        purchase = get_object_or_404(
            Purchase.objects.select_related("product", "subscription"), external_id=external_id
        )
        is_buyer = purchase.purchaser_id == request.user.pk
        if not is_buyer and not CustomerPolicy(SellerContext(request.user, purchase.seller), purchase).index():
            return Response(status=status.HTTP_404_NOT_FOUND)
        return Response(ReceiptPresenter(purchase).props())


class SubscriptionManagerView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, external_id):
        subscription = get_object_or_404(
            Subscription.objects.select_related("product__seller", "tier"), external_id=external_id
        )
        if subscription.subscriber_id != request.user.pk:
            return Response(status=status.HTTP_404_NOT_FOUND)
        props = CheckoutPresenter(logged_in_user=request.user).subscription_manager_props(subscription)
        if props is None:
            return Response(status=status.HTTP_404_NOT_FOUND)
        return Response(props)


class CheckoutProductView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, external_id):
        product = get_object_or_404(Product.objects.alive(), external_id=external_id)
        params = request.query_params
        cart_item = {
            "price": params.get("price"),
            "option": params.get("option"),
            "recurrence": params.get("recurrence"),
            "quantity": params.get("quantity"),
            "affiliate_id": params.get("affiliate_id"),
        }
        extra = {
            "recommended_by": params.get("recommended_by"),
            "referrer": request.META.get("HTTP_REFERER"),
        }
        logged_in_user = request.user if request.user.is_authenticated else None
        try:
            props = CheckoutPresenter(logged_in_user=logged_in_user).checkout_product(product, cart_item, extra)
        except ValueError:
            return Response({"detail": "Invalid cart item."}, status=status.HTTP_400_BAD_REQUEST)
        return Response(props)


class AffiliatedProductsView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        presenter = AffiliatedProductsPresenter(
            request.user,
            query=request.query_params.get("query"),
            page=request.query_params.get("page", 1),
            sort=sort_from_params(request.query_params),
        )
        return Response(presenter.affiliated_products_page_props())


class AffiliatesView(APIView):
    permission_classes = [IsSellerTeamMember]

    def get(self, request):
        pundit_user = seller_context_for_request(request)
        if not AffiliatePolicy(pundit_user).index():
            return Response(status=status.HTTP_403_FORBIDDEN)
        presenter = AffiliatesPresenter(pundit_user, query=request.query_params.get("query"))
        return Response(presenter.affiliates_props())
