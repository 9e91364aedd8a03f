"""
Stripe Integration AppConfig - Creator Platform

Importing ``.signals`` in ``ready()`` connects the post_save receiver for
dj-stripe events exactly once per process.

Author: CP Development Team
Version: 1.0.0
"""

from django.apps import AppConfig


class StripeIntegrationConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core.stripe_integration"
    label = "stripe_integration"
    verbose_name = "Stripe Integration"

    def ready(self):
        from . import signals  # noqa: F401
