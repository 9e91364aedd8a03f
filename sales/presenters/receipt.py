"""
Receipt Presenter - Creator Platform

Builds the payment section of a purchase receipt. A receipt covers one
charge, which may contain several purchases (multi-item checkout).

Rules:
- gift receivers see no payment lines
- free-trial purchases are shown at $0
- several items: one line per purchase, then shipping, tax and "Amount paid"
- memberships add an upcoming payment line ("$10 on Jan 5, 2026"), except
  for fixed-length plans whose last charge has been made
- PayPal payments get no card statement note

Author: CP Development Team
Version: 1.0.0
"""

from django.utils.html import format_html

from core.money import (
    formatted_dollar_amount,
    formatted_price,
    get_usd_cents,
    usd_cents_to_currency,
)
from sales.models import Purchase

PAYPAL_CARD_TYPE = "paypal"


def formatted_date_abbrev_month(moment) -> str:
    return f"{moment:%b} {moment.day}, {moment.year}"


class PaymentInfo:
    def __init__(self, purchase):
        self.orderable = purchase
        if purchase.charge_group_id:
            self.purchases = list(
                Purchase.objects.filter(charge_group_id=purchase.charge_group_id)
                .select_related("product", "subscription")
                .order_by("id")
            )
        else:
            self.purchases = [purchase]
        self.successful_purchases = [p for p in self.purchases if p.successful]
        self._upcoming = None

    # ---------- flags ----------

    @property
    def multi_item_charge(self) -> bool:
        return len(self.purchases) > 1

    @property
    def receipt_for_gift_receiver(self) -> bool:
        return self.orderable.is_gift_receiver_purchase

    @property
    def receipt_for_gift_sender(self) -> bool:
        return self.orderable.is_gift_sender_purchase

    # ---------- public ----------

    def present(self) -> bool:
        return bool(self.today_payment_attributes() or self.upcoming_payment_attributes())

    @property
    def title(self) -> str:
        if self.orderable.is_recurring_subscription_charge:
            return "Thank you for your payment!"
        return "Payment info"

    def notes(self):
        notes = self._recurring_subscription_notes()
        notes.append(
            "All charges are processed in United States Dollars. "
            "Your bank or financial institution may apply their own fees for currency conversion."
        )
        card_note = self._credit_card_note()
        if card_note:
            notes.append(card_note)
        return notes

    def today_payment_attributes(self):
        if self.receipt_for_gift_receiver:
            return []

        attributes = [self._today_payment_heading_attribute()]
        attributes.extend(self.today_price_attributes())
        attributes.append(self._today_shipping_price_attribute())
        attributes.extend(self._today_tax_price_attributes() or [])
        attributes.append(self._today_total_price_attribute())
        attributes.append(self._today_membership_paid_until_attribute())
        return [attribute for attribute in attributes if attribute]

    def today_price_attributes(self):
        return [
            attribute
            for attribute in (self._today_price_attribute(p) for p in self.successful_purchases)
            if attribute
        ]

    def upcoming_payment_attributes(self):
        if not self._any_upcoming_payments():
            return []
        if self.receipt_for_gift_receiver or self.receipt_for_gift_sender:
            return []
        lines = self._upcoming_price_attributes()
        heading = {"label": "Upcoming payment" if len(lines) == 1 else "Upcoming payments", "value": None}
        return [heading, *lines]

    def payment_method_attribute(self):
        if all(p.is_free_trial_purchase for p in self.successful_purchases):
            return None
        card_type = self.orderable.card_type
        card_visual = self.orderable.card_visual
        if not card_type and not card_visual:
            return None
        visual = (card_visual or "").replace("*", "").replace(" ", "")
        return {"label": "Payment method", "value": f"{(card_type or '').upper()} *{visual}"}

    # ---------- today ----------

    def _today_payment_heading_attribute(self):
        if not self._any_upcoming_payments():
            return None
        return {"label": "Today's payment", "value": None}

    @staticmethod
    def _price_attribute_label(purchase) -> str:
        name = purchase.product.name
        if purchase.quantity <= 1:
            return name
        return f"{name} × {purchase.quantity}"

    def _today_price_attribute(self, purchase):
        if purchase.free_purchase and not purchase.is_free_trial_purchase:
            return None
        amount_cents = 0
        if not purchase.is_free_trial_purchase:
            amount_cents = get_usd_cents(
                purchase.displayed_price_currency_type,
                purchase.displayed_price_cents,
                rate=purchase.rate_converted_to_usd,
            )
        return {
            "label": self._price_attribute_label(purchase),
            "value": formatted_dollar_amount(amount_cents),
        }

    def _today_shipping_price_attribute(self):
        if sum(p.shipping_cents for p in self.purchases) <= 0:
            return None
        amount_cents = sum(
            0 if p.is_free_trial_purchase else p.shipping_cents for p in self.successful_purchases
        )
        return {"label": "Shipping", "value": formatted_dollar_amount(amount_cents)}

    def _today_tax_price_attributes(self):
        if not any(p.taxable for p in self.purchases):
            return None
        amount_cents = sum(
            0 if p.is_free_trial_purchase else p.non_refunded_tax_amount for p in self.successful_purchases
        )
        if amount_cents == 0 and self.multi_item_charge:
            return None
        return [{"label": self.orderable.tax_label, "value": formatted_dollar_amount(amount_cents)}]

    def _today_total_price_attribute(self):
        if (
            len(self.successful_purchases) == 1
            and not self._today_shipping_price_attribute()
            and not self._today_tax_price_attributes()
        ):
            return None
        amount_cents = sum(
            0 if p.is_free_trial_purchase else p.total_transaction_cents for p in self.successful_purchases
        )
        return {"label": "Amount paid", "value": formatted_dollar_amount(amount_cents)}

    def _today_membership_paid_until_attribute(self):
        subscription = self.orderable.subscription
        if not (self.receipt_for_gift_sender and subscription):
            return None
        return {
            "label": "Membership paid for until",
            "value": formatted_date_abbrev_month(subscription.end_time_of_subscription),
        }

    # ---------- upcoming ----------

    def _any_upcoming_payments(self) -> bool:
        return bool(self._upcoming_price_attributes()) and not self.receipt_for_gift_sender

    def _upcoming_price_attributes(self):
        if self._upcoming is None:
            lines = (
                self._upcoming_price_attribute(p)
                for p in self.successful_purchases
                if p.subscription_id is not None
            )
            self._upcoming = [line for line in lines if line]
        return self._upcoming

    def _upcoming_price_attribute(self, purchase):
        subscription = purchase.subscription
        if (
            subscription.has_fixed_length
            and subscription.last_purchase == purchase
            and subscription.remaining_charges_count == 0
        ):
            return None

        currency = purchase.displayed_price_currency_type
        rate = purchase.rate_converted_to_usd
        tax_usd_cents = purchase.tax_cents + purchase.platform_tax_cents
        next_price_cents = subscription.current_subscription_price_cents
        if next_price_cents != purchase.displayed_price_cents and purchase.price_cents:
            # Plan changed since this charge: scale the tax to the new price.
            new_price_usd = get_usd_cents(currency, next_price_cents, rate=rate)
            tax_usd_cents = round(tax_usd_cents * new_price_usd / purchase.price_cents)

        next_tax_cents = usd_cents_to_currency(currency, tax_usd_cents, rate=rate)
        shipping_cents = usd_cents_to_currency(currency, purchase.shipping_cents, rate=rate)

        if purchase.is_free_trial_purchase and subscription.free_trial_ends_at:
            next_payment_date = subscription.free_trial_ends_at
        else:
            next_payment_date = purchase.created_at + subscription.period

        amount = formatted_price(currency, next_price_cents + shipping_cents + next_tax_cents)
        return {
            "label": self._price_attribute_label(purchase),
            "value": f"{amount} on {formatted_date_abbrev_month(next_payment_date)}",
        }

    # ---------- notes ----------

    def _recurring_subscription_notes(self):
        notes = []
        for purchase in self.successful_purchases:
            if not purchase.is_recurring_subscription_charge:
                continue
            product = purchase.product
            notes.append(
                format_html(
                    'We have successfully processed the payment for your recurring subscription to '
                    '<a href="{}" target="_blank">{}</a>.',
                    product.long_url,
                    product.name,
                )
            )
        return notes

    def _credit_card_note(self):
        card_type = self.orderable.card_type
        if not card_type or card_type == PAYPAL_CARD_TYPE:
            return None
        return "The charge will be listed as CREATORPLATFORM* on your credit card statement."


class ReceiptPresenter:
    PaymentInfo = PaymentInfo

    def __init__(self, purchase):
        self.purchase = purchase
        self.payment_info = PaymentInfo(purchase)

    def props(self):
        info = self.payment_info
        return {
            "id": self.purchase.external_id,
            "payment_info": {
                "present": info.present(),
                "title": info.title,
                "notes": [str(note) for note in info.notes()],
                "today_payment_attributes": info.today_payment_attributes(),
                "upcoming_payment_attributes": info.upcoming_payment_attributes(),
                "payment_method_attribute": info.payment_method_attribute(),
            },
        }
