"""
Core App Configuration - Creator Platform

This module contains the Django app configuration for the core application.
The core app serves as the foundation for shared functionality across
all platform apps.

Features:
- Seller profiles and team memberships
- Seller context and role-based policies used by every presenter
- Money formatting and pagination helpers
- Houses the Stripe integration package

Author: CP Development Team
Version: 1.0.0
"""

from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'core'
    verbose_name = 'Core'
