"""
Stripe Integration Package - Creator Platform

Payments through Stripe Checkout with dj-stripe as the webhook bridge.

Structure:
- apps.py      App configuration, wires the signal receiver
- handlers.py  Event payload -> purchase, refund and dispute updates
- signals.py   post_save receiver on djstripe Event
- views.py     Checkout session and publishable key endpoints
- urls.py      Routes under /api/payments/

Author: CP Development Team
Version: 1.0.0
"""
