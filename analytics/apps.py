"""
Analytics App Configuration - Creator Platform

Django app configuration for the Analytics app.

Features:
- UTM links and the sales they drove
- Sales analytics presenter

Author: CP Development Team
Version: 1.0.0
"""

from django.apps import AppConfig


class AnalyticsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'analytics'
    verbose_name = 'Analytics'
