"""
Payouts App Configuration - Creator Platform

Django app configuration for the Payouts app.

Features:
- Balances, balance transactions, credits and payouts
- Balance page presenter and payout CSV export

Author: CP Development Team
Version: 1.0.0
"""

from django.apps import AppConfig


class PayoutsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'payouts'
    verbose_name = 'Payouts'
