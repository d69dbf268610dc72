"""Unit tests for money helpers."""
from decimal import Decimal

from compras.utils.calculations import calculate_totals, convert_price, number_to_words


class TestCalculateTotals:

    def test_exempt_items_add_no_tax(self):
        totals = calculate_totals([
            {'quantity': 2, 'unit_price': '10.00'},
            {'quantity': 1, 'unit_price': '5.00', 'is_exempt': True},
        ])
        assert totals['base_imponible'] == Decimal('25.00')
        assert totals['monto_iva'] == Decimal('3.20')
        assert totals['total'] == Decimal('28.20')

    def test_item_tax_rate_overrides_default(self):
        totals = calculate_totals([{'quantity': 1, 'unit_price': 100, 'tax_rate': '0.08'}])
        assert totals['monto_iva'] == Decimal('8.00')

    def test_empty(self):
        totals = calculate_totals([])
        assert totals['total'] == Decimal('0.00')


class TestConvertPrice:

    def test_same_currency(self):
        assert convert_price('12.5', 'USD', None, 'USD') == Decimal('12.5')

    def test_ves_to_usd_divides(self):
        assert convert_price('100', 'VES', '50', 'USD') == Decimal('2')

    def test_usd_to_ves_multiplies(self):
        assert convert_price('2', 'USD', '36.5', 'VES') == Decimal('73.0')

    def test_missing_rate(self):
        assert convert_price('100', 'VES', None, 'USD') is None
        assert convert_price('100', 'VES', 0, 'USD') is None


class TestNumberToWords:

    def test_hundred(self):
        assert number_to_words(100, 'VES') == 'CIEN BOLIVARES CON 00/100'

    def test_thousands_and_cents(self):
        assert number_to_words('1500.25', 'USD') == 'MIL QUINIENTOS DOLARES CON 25/100'

    def test_one(self):
        assert number_to_words(1, 'USD') == 'UN DOLAR CON 00/100'
