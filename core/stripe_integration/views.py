"""
Stripe Integration Views - Creator Platform

API Endpoints:
- POST /api/payments/stripe/checkout-session/   start a Stripe Checkout for a product
- GET  /api/payments/stripe/config/             publishable key for Stripe.js

Checkout body: {"product_id": "...", "email": "...", "option_id": "...",
"recurrence": "monthly", "affiliate_id": "...", "utm_link": "<permalink>"}

The purchase is stored as ``in_progress`` before redirecting; the
webhook marks it successful (see handlers.py).

Author: CP Development Team
Version: 1.0.0
"""

import logging

import stripe
from django.conf import settings
from django.shortcuts import get_object_or_404
from djstripe.models import Customer
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from analytics.models import UtmLink
from catalog.models import Product, Variant
from sales.models import Affiliate, Purchase
from sales.services import create_in_progress_purchase

logger = logging.getLogger(__name__)


class CreateCheckoutSessionView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        product_id = request.data.get("product_id")
        user = request.user if request.user.is_authenticated else None
        email = request.data.get("email") or (user.email if user else None)
        if not product_id or not email:
            return Response({"detail": "product_id and email are required."}, status=status.HTTP_400_BAD_REQUEST)

        product = get_object_or_404(Product.objects.alive(), external_id=product_id)
        if not product.is_published or product.purchase_disabled_at is not None:
            return Response({"detail": "This product is not for sale."}, status=status.HTTP_400_BAD_REQUEST)
        if product.is_sales_limited and not product.remaining_for_sale_count:
            return Response({"detail": "This product is sold out."}, status=status.HTTP_400_BAD_REQUEST)

        variant = None
        option_id = request.data.get("option_id")
        if option_id:
            variant = get_object_or_404(Variant.objects.alive(), external_id=option_id, product=product)

        affiliate = None
        affiliate_id = request.data.get("affiliate_id")
        if affiliate_id:
            affiliate = Affiliate.objects.alive().filter(external_id=affiliate_id).first()

        utm_link = None
        permalink = request.data.get("utm_link")
        if permalink:
            utm_link = UtmLink.objects.alive().filter(permalink=permalink, seller_id=product.seller_id).first()

        purchase = create_in_progress_purchase(
            product,
            email=email,
            purchaser=user,
            variant=variant,
            recurrence=request.data.get("recurrence"),
            affiliate=affiliate,
            utm_link=utm_link,
            full_name=request.data.get("full_name") or "",
        )

        params = dict(
            mode="payment",
            line_items=[
                {
                    "price_data": {
                        "currency": purchase.displayed_price_currency_type,
                        "unit_amount": purchase.displayed_price_cents,
                        "product_data": {"name": product.name},
                    },
                    "quantity": 1,
                }
            ],
            success_url=(
                f"{settings.FRONTEND_URL}/checkout/success"
                f"?session_id={{CHECKOUT_SESSION_ID}}&purchase={purchase.external_id}"
            ),
            cancel_url=f"{settings.FRONTEND_URL}/checkout/cancel?purchase={purchase.external_id}",
            metadata={"purchase_id": purchase.external_id},
            payment_intent_data={"metadata": {"purchase_id": purchase.external_id}},
        )
        if user is not None:
            customer, _ = Customer.get_or_create(subscriber=user)
            params["customer"] = customer.id
        else:
            params["customer_email"] = email

        stripe.api_key = settings.STRIPE_SECRET_KEY
        try:
            session = stripe.checkout.Session.create(**params)
        except stripe.StripeError as exc:
            logger.exception("Stripe Checkout failed for purchase %s", purchase.external_id)
            purchase.purchase_state = Purchase.FAILED
            purchase.save(update_fields=["purchase_state", "updated_at"])
            return Response(
                {
                    "detail": "Stripe Checkout could not be created.",
                    "stripe_error": getattr(exc, "user_message", None) or str(exc),
                },
                status=status.HTTP_400_BAD_REQUEST,
            )

        logger.info("Checkout session %s created for purchase %s", session.id, purchase.external_id)
        return Response(
            {"checkout_url": session.url, "id": session.id, "purchase_id": purchase.external_id},
            status=status.HTTP_200_OK,
        )


class GetStripeConfigView(APIView):
    """Publishable key so the frontend can initialize Stripe.js."""

    permission_classes = [AllowAny]

    def get(self, request):
        publishable_key = (
            settings.STRIPE_LIVE_PUBLISHABLE_KEY
            if settings.STRIPE_LIVE_MODE
            else settings.STRIPE_TEST_PUBLISHABLE_KEY
        )
        return Response({"publishableKey": publishable_key}, status=status.HTTP_200_OK)
