"""
Stripe Webhook Signal Receiver - Creator Platform

dj-stripe verifies webhook signatures and stores every event as a
``djstripe.models.Event`` row. We react to those rows through Django's
``post_save`` signal and hand the payload to ``handlers.dispatch``.

Safety:
- Never re-raise from the receiver (Stripe would retry the webhook).
- Handlers are idempotent; replayed events do not double-book.

Author: CP Development Team
Version: 1.0.0
"""

import logging
from typing import Any, Dict

from django.db.models.signals import post_save
from django.dispatch import receiver
from djstripe.models import Event

from .handlers import dispatch

logger = logging.getLogger(__name__)


def extract_data_object(event) -> Dict[str, Any]:
    """
    Return the event's ``data.object`` payload.

    dj-stripe keeps the raw Stripe JSON in ``event.data``; depending on the
    version it is either the full ``{"object": ...}`` wrapper or nested once
    more under ``data``.
    """
    data = event.data or {}
    if not isinstance(data, dict):
        return {}
    if isinstance(data.get("data"), dict) and isinstance(data["data"].get("object"), dict):
        return data["data"]["object"]
    if isinstance(data.get("object"), dict):
        return data["object"]
    return {}


@receiver(post_save, sender=Event)
def on_djstripe_event_created(sender, instance, created, **kwargs):
    if not created:
        return

    event_type = instance.type
    logger.info("[webhook] %s (event_id=%s)", event_type, instance.id)
    try:
        dispatch(event_type, extract_data_object(instance))
    except Exception as exc:
        logger.exception("Error handling event %s: %s", event_type, exc)
