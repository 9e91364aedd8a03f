"""
Catalog Views - Creator Platform

Thin DRF endpoints around the catalog presenters.

API Endpoints:
- GET /api/catalog/products/<id>/          public product page props
- GET /api/catalog/products/<id>/edit/     product edit page props
- GET /api/catalog/sellers/<username>/products/  product cards of a seller
- GET /api/catalog/dashboard/              seller dashboard tables

Author: CP Development Team
Version: 1.0.0
"""

from django.shortcuts import get_object_or_404
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from catalog.models import Product
from catalog.presenters import DashboardProductsPagePresenter, ProductPresenter
from core.models import SellerProfile
from core.pagination import sort_from_params
from core.permissions import IsSellerTeamMember, seller_context_for_request
from core.policies import ProductPolicy


class ProductDetailView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, external_id):
        product = get_object_or_404(Product.objects.alive(), external_id=external_id)
        pundit_user = seller_context_for_request(request) if request.user.is_authenticated else None
        if not product.is_published and not (pundit_user and ProductPolicy(pundit_user, product).edit()):
            return Response({"detail": "Not found."}, status=status.HTTP_404_NOT_FOUND)
        return Response(ProductPresenter(product, request=request).product_props(pundit_user=pundit_user))


class ProductEditView(APIView):
    permission_classes = [IsSellerTeamMember]

    def get(self, request, external_id):
        pundit_user = seller_context_for_request(request)
        product = get_object_or_404(
            Product.objects.alive(), external_id=external_id, seller=pundit_user.seller
        )
        if not ProductPolicy(pundit_user, product).edit():
            return Response({"detail": "You are not allowed to edit this product."}, status=status.HTTP_403_FORBIDDEN)
        return Response(ProductPresenter(product, request=request).edit_props())


class SellerProductCardsView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, username):
        profile = get_object_or_404(SellerProfile, username=username)
        products = Product.objects.alive().filter(
            seller=profile.user, draft=False, archived=False, purchase_disabled_at__isnull=True
        )
        return Response({"products": [ProductPresenter(p).card_props() for p in products]})


class DashboardProductsView(APIView):
    permission_classes = [IsSellerTeamMember]

    def get(self, request):
        pundit_user = seller_context_for_request(request)
        if not ProductPolicy(pundit_user).index():
            return Response(status=status.HTTP_403_FORBIDDEN)
        presenter = DashboardProductsPagePresenter(
            pundit_user,
            page=request.query_params.get("page", 1),
            sort=sort_from_params(request.query_params),
            query=request.query_params.get("query"),
        )
        return Response(presenter.page_props())
