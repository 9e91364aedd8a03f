"""
Catalog App Configuration - Creator Platform

Django app configuration for the Catalog app.

Features:
- Products, variants and recurrence prices
- Product page, edit page and dashboard presenters

Author: CP Development Team
Version: 1.0.0
"""

from django.apps import AppConfig


class CatalogConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'catalog'
    verbose_name = 'Catalog'
