"""
Role Policies - Creator Platform

Each policy answers per-action booleans for a ``SellerContext`` and an
optional record. Records must belong to the context's seller.

Roles:
- owner / admin: everything
- marketing: products, posts, affiliates, UTM links
- support: customers and refunds
- accountant: payouts and read-only sales

Author: CP Development Team
Version: 1.0.0
"""

from core.models import TeamMembership as TM

ALL_ROLES = (TM.ROLE_OWNER, TM.ROLE_ADMIN, TM.ROLE_MARKETING, TM.ROLE_SUPPORT, TM.ROLE_ACCOUNTANT)
MANAGERS = (TM.ROLE_OWNER, TM.ROLE_ADMIN)


class BasePolicy:
    def __init__(self, context, record=None):
        self.context = context
        self.record = record

    def _allowed(self, *roles) -> bool:
        if self.context is None or not self.context.has_role(*roles):
            return False
        return self._owns_record()

    def _owns_record(self) -> bool:
        if self.record is None:
            return True
        seller_id = getattr(self.record, "seller_id", None)
        return seller_id is None or seller_id == self.context.seller.pk


class ProductPolicy(BasePolicy):
    def index(self):
        return self._allowed(*ALL_ROLES)

    def edit(self):
        return self._allowed(*MANAGERS, TM.ROLE_MARKETING)

    update = edit

    def duplicate(self):
        return self._allowed(*MANAGERS, TM.ROLE_MARKETING)

    def destroy(self):
        return self._allowed(*MANAGERS)


class CustomerPolicy(BasePolicy):
    def index(self):
        return self._allowed(*ALL_ROLES)

    def refund(self):
        return self._allowed(*MANAGERS, TM.ROLE_SUPPORT)


class PayoutPolicy(BasePolicy):
    def index(self):
        return self._allowed(*MANAGERS, TM.ROLE_ACCOUNTANT)

    export = index


class PostPolicy(BasePolicy):
    def index(self):
        return self._allowed(*MANAGERS, TM.ROLE_MARKETING, TM.ROLE_SUPPORT)

    def edit(self):
        return self._allowed(*MANAGERS, TM.ROLE_MARKETING)

    update = edit
    publish = edit


class AffiliatePolicy(BasePolicy):
    def index(self):
        return self._allowed(*MANAGERS, TM.ROLE_MARKETING)

    def edit(self):
        return self._allowed(*MANAGERS, TM.ROLE_MARKETING)


class UtmLinkPolicy(BasePolicy):
    def index(self):
        return self._allowed(*MANAGERS, TM.ROLE_MARKETING)

    def edit(self):
        return self._allowed(*MANAGERS, TM.ROLE_MARKETING)


class SettingsPolicy(BasePolicy):
    def show(self):
        return self._allowed(*ALL_ROLES)

    def update(self):
        return self._allowed(*MANAGERS)
