"""
Seller Context - Creator Platform

Every dashboard request acts on behalf of a seller. The logged-in user is
either the seller or a member of the seller's team; the resolved role
drives the policies in ``core.policies``.

Author: CP Development Team
Version: 1.0.0
"""

from core.models import TeamMembership


def resolve_role(user, seller):
    """Returns the role of ``user`` on ``seller``'s account, or None."""
    if user is None or seller is None or not getattr(user, "is_authenticated", True):
        return None
    if user.pk == seller.pk:
        return TeamMembership.ROLE_OWNER
    return (
        TeamMembership.objects.alive()
        .filter(seller=seller, user=user)
        .values_list("role", flat=True)
        .first()
    )


class SellerContext:
    def __init__(self, user, seller):
        self.user = user
        self.seller = seller
        self.role = resolve_role(user, seller)

    @classmethod
    def for_user(cls, user):
        return cls(user=user, seller=user)

    @property
    def is_team_member(self) -> bool:
        return self.role is not None

    def has_role(self, *roles) -> bool:
        return self.role in roles

    def __repr__(self):
        return f"<SellerContext user={getattr(self.user, 'pk', None)} seller={getattr(self.seller, 'pk', None)} role={self.role}>"
