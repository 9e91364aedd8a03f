"""
Sales App Configuration - Creator Platform

Django app configuration for the Sales app.

Features:
- Purchases, refunds, disputes and subscriptions
- Direct and global affiliates
- Checkout, receipt, customer and affiliate presenters

Author: CP Development Team
Version: 1.0.0
"""

from django.apps import AppConfig


class SalesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'sales'
    verbose_name = 'Sales'
