from django.test import SimpleTestCase, override_settings

from core.money import (
    cents_to_dollars,
    format_money,
    formatted_dollar_amount,
    get_usd_cents,
    is_single_unit,
    usd_cents_to_currency,
)


class FormatMoneyTests(SimpleTestCase):
    def test_whole_amounts_drop_cents(self):
        self.assertEqual(format_money(1000, "usd"), "$10")
        self.assertEqual(format_money(123400, "usd"), "$1,234")

    def test_fractional_amounts(self):
        self.assertEqual(format_money(236, "usd"), "$2.36")
        self.assertEqual(format_money(1000, "usd", no_cents_if_whole=False), "$10.00")

    def test_negative_and_single_unit(self):
        self.assertEqual(format_money(-150, "eur"), "-€1.50")
        self.assertEqual(format_money(500, "jpy"), "¥500")
        self.assertTrue(is_single_unit("JPY"))

    def test_without_symbol(self):
        self.assertEqual(format_money(250, "gbp", symbol=False), "2.50")

    def test_unknown_currency_raises(self):
        with self.assertRaises(ValueError):
            format_money(100, "xyz")

    def test_dollar_helpers(self):
        self.assertEqual(formatted_dollar_amount(1000, with_currency=True), "$10 USD")
        self.assertEqual(cents_to_dollars(1050), 10.5)
        self.assertEqual(cents_to_dollars(None), 0)


class CurrencyConversionTests(SimpleTestCase):
    def test_usd_is_unchanged(self):
        self.assertEqual(get_usd_cents("usd", 1234), 1234)
        self.assertEqual(usd_cents_to_currency("usd", 1234), 1234)

    def test_explicit_rate(self):
        self.assertEqual(get_usd_cents("eur", 920, rate=0.92), 1000)
        self.assertEqual(usd_cents_to_currency("eur", 1000, rate=0.92), 920)

    def test_single_unit_currency(self):
        self.assertEqual(usd_cents_to_currency("jpy", 1000, rate=150), 1500)
        self.assertEqual(get_usd_cents("jpy", 1500, rate=150), 1000)

    @override_settings(CURRENCY_RATES={"gbp": 0.5})
    def test_rates_from_settings(self):
        self.assertEqual(get_usd_cents("gbp", 500), 1000)
