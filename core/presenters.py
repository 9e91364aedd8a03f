"""
Settings Presenter - Creator Platform

Props for the seller settings page.

Author: CP Development Team
Version: 1.0.0
"""

from core.models import SellerProfile
from core.policies import SettingsPolicy


class SettingsPresenter:
    def __init__(self, pundit_user):
        self.pundit_user = pundit_user
        self.seller = pundit_user.seller
        self.profile = SellerProfile.for_user(self.seller)

    def main_props(self):
        profile = self.profile
        return {
            "email": self.seller.email,
            "username": profile.username,
            "name": profile.name,
            "profile_url": profile.profile_url,
            "currency": profile.currency_type,
            "currency_options": [{"code": code, "name": name} for code, name in SellerProfile.CURRENCY_CHOICES],
            "support_email": profile.support_email,
            "refunds_disabled": profile.refunds_disabled,
            "tipping_enabled": profile.tipping_enabled,
            "show_currencies_always": profile.show_currencies_always,
            "team_role": self.pundit_user.role,
            "can_update": SettingsPolicy(self.pundit_user).update(),
        }
