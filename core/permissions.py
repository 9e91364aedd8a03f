from django.contrib.auth import get_user_model
from rest_framework.permissions import BasePermission

from core.seller_context import SellerContext

SELLER_HEADER = "HTTP_X_SELLER_ID"


def seller_context_for_request(request):
    """
    Build the SellerContext for a request.

    The seller is taken from the ``X-Seller-Id`` header (user id) and
    defaults to the logged-in user.
    """
    cached = getattr(request, "_seller_context", None)
    if cached is not None:
        return cached

    user = request.user
    seller = user
    seller_id = request.META.get(SELLER_HEADER)
    if seller_id and str(seller_id) != str(user.pk):
        try:
            seller = get_user_model().objects.get(pk=int(seller_id))
        except (ValueError, get_user_model().DoesNotExist):
            seller = None

    context = SellerContext(user=user, seller=seller)
    request._seller_context = context
    return context


class IsSellerTeamMember(BasePermission):
    """Allows access only to the seller or members of the seller's team."""

    message = "You are not a member of this seller's team."

    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        return seller_context_for_request(request).is_team_member
