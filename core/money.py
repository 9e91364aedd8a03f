"""
Money Helpers - Creator Platform

All amounts are integer cents (or whole units for single-unit currencies
like JPY). These helpers format them for display and convert between a
purchase currency and USD.

Author: CP Development Team
Version: 1.0.0
"""

from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings

CURRENCIES = {
    "usd": {"symbol": "$", "single_unit": False, "min_price": 99},
    "eur": {"symbol": "€", "single_unit": False, "min_price": 99},
    "gbp": {"symbol": "£", "single_unit": False, "min_price": 99},
    "jpy": {"symbol": "¥", "single_unit": True, "min_price": 100},
    "cad": {"symbol": "CA$", "single_unit": False, "min_price": 99},
    "aud": {"symbol": "A$", "single_unit": False, "min_price": 99},
}

# Units of currency per 1 USD. Overridable through settings.CURRENCY_RATES.
DEFAULT_RATES = {
    "usd": 1.0,
    "eur": 0.92,
    "gbp": 0.79,
    "jpy": 150.0,
    "cad": 1.36,
    "aud": 1.52,
}


def _currency(currency_type):
    key = (currency_type or "usd").lower()
    if key not in CURRENCIES:
        raise ValueError(f"Unsupported currency: {currency_type}")
    return key, CURRENCIES[key]


def is_single_unit(currency_type) -> bool:
    return _currency(currency_type)[1]["single_unit"]


def get_rate(currency_type) -> float:
    key, _ = _currency(currency_type)
    rates = getattr(settings, "CURRENCY_RATES", None) or DEFAULT_RATES
    return float(rates.get(key, DEFAULT_RATES[key]))


def _round(value) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_money(cents, currency_type="usd", no_cents_if_whole=True, symbol=True) -> str:
    """
    Render an amount for display.

    >>> format_money(1000, "usd")
    '$10'
    >>> format_money(236, "usd")
    '$2.36'
    >>> format_money(500, "jpy")
    '¥500'
    """
    _, currency = _currency(currency_type)
    cents = int(cents or 0)
    sign = "-" if cents < 0 else ""
    cents = abs(cents)

    if currency["single_unit"]:
        amount = f"{cents:,}"
    elif no_cents_if_whole and cents % 100 == 0:
        amount = f"{cents // 100:,}"
    else:
        amount = f"{Decimal(cents) / 100:,.2f}"

    if not symbol:
        return f"{sign}{amount}"
    return f"{sign}{currency['symbol']}{amount}"


def formatted_price(currency_type, cents) -> str:
    return format_money(cents, currency_type)


def formatted_dollar_amount(cents, with_currency=False) -> str:
    amount = format_money(cents, "usd")
    return f"{amount} USD" if with_currency else amount


def cents_to_dollars(cents) -> float:
    """Plain float dollars for CSV columns (e.g. 1050 -> 10.5)."""
    return round((cents or 0) / 100.0, 2)


def get_usd_cents(currency_type, amount_cents, rate=None) -> int:
    """Convert an amount in the purchase currency into USD cents."""
    key, currency = _currency(currency_type)
    if key == "usd":
        return int(amount_cents or 0)
    rate = float(rate) if rate else get_rate(key)
    usd = Decimal(amount_cents or 0) / Decimal(str(rate))
    if currency["single_unit"]:
        usd *= 100
    return _round(usd)


def usd_cents_to_currency(currency_type, usd_cents, rate=None) -> int:
    """Inverse of :func:`get_usd_cents`."""
    key, currency = _currency(currency_type)
    if key == "usd":
        return int(usd_cents or 0)
    rate = float(rate) if rate else get_rate(key)
    amount = Decimal(usd_cents or 0) * Decimal(str(rate))
    if currency["single_unit"]:
        amount /= 100
    return _round(amount)
