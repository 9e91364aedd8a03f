"""
Reports App Configuration - Creator Platform

Django app configuration for the Reports app.

Features:
- Seller stats for payouts
- Refund/dispute and balance reconciliation reports
- financial_report management command

Author: CP Development Team
Version: 1.0.0
"""

from django.apps import AppConfig


class ReportsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'reports'
    verbose_name = 'Reports'
