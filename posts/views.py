"""
Post Views - Creator Platform

API Endpoints:
- GET /api/posts/<id>/            public post page (?purchase_id= unlocks paid posts)
- GET /api/posts/dashboard/       seller's posts (?tab=published|drafts&page=)

Author: CP Development Team
Version: 1.0.0
"""

from django.conf import settings
from django.shortcuts import get_object_or_404
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from core.pagination import paginate
from core.permissions import IsSellerTeamMember, seller_context_for_request
from core.policies import PostPolicy
from core.seller_context import SellerContext
from posts.models import Post
from posts.presenters import InstallmentPresenter, PostPresenter
from sales.models import Purchase


class PostDetailView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, external_id):
        post = get_object_or_404(Post.objects.published().select_related("seller", "product"), external_id=external_id)

        pundit_user = None
        if request.user.is_authenticated:
            pundit_user = SellerContext(request.user, post.seller)

        purchase = None
        purchase_id = request.query_params.get("purchase_id")
        if purchase_id:
            purchase = Purchase.objects.filter(external_id=purchase_id, seller=post.seller).first()
        elif request.user.is_authenticated:
            purchases = Purchase.objects.successful().filter(purchaser=request.user, seller=post.seller)
            if post.audience_type == Post.PRODUCT:
                purchases = purchases.filter(product_id=post.product_id)
            purchase = purchases.order_by("-created_at").first()

        return Response(PostPresenter(post, pundit_user=pundit_user, purchase=purchase).post_component_props())


class PostsDashboardView(APIView):
    permission_classes = [IsSellerTeamMember]

    def get(self, request):
        pundit_user = seller_context_for_request(request)
        if not PostPolicy(pundit_user).index():
            return Response(status=status.HTTP_403_FORBIDDEN)

        posts = Post.objects.alive().filter(seller=pundit_user.seller).select_related("product")
        if request.query_params.get("tab") == "drafts":
            posts = posts.filter(published_at__isnull=True).order_by("-updated_at")
        else:
            posts = posts.filter(published_at__isnull=False).order_by("-published_at", "-id")

        page_items, pagination = paginate(posts, request.query_params.get("page", 1), settings.POSTS_PER_PAGE)
        return Response(
            {
                "installments": [
                    InstallmentPresenter(pundit_user.seller, post, pundit_user=pundit_user).props()
                    for post in page_items
                ],
                "pagination": pagination,
            }
        )
