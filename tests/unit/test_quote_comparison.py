"""Unit tests for quote comparison in USD."""
from decimal import Decimal

from compras.services.quote_comparison_service import compare_quotes


class TestCompareQuotes:

    def test_best_price_across_currencies(self):
        result = compare_quotes(1, 'HARINA', [
            {'supplier_id': 1, 'supplier_name': 'A', 'unit_price': '12', 'currency': 'USD'},
            {'supplier_id': 2, 'supplier_name': 'B', 'unit_price': '400', 'currency': 'VES', 'exchange_rate': '40'},
        ])
        assert result.best_price == Decimal('10')
        assert [r.is_best for r in result.results] == [False, True]
        assert result.results[1].converted_price == Decimal('10')

    def test_global_rate_used_when_quote_has_none(self):
        result = compare_quotes(1, 'HARINA', [
            {'supplier_id': 2, 'unit_price': '500', 'currency': 'VES'},
        ], global_exchange_rate='50')
        assert result.results[0].is_valid
        assert result.best_price == Decimal('10')

    def test_ves_without_rate_is_invalid(self):
        result = compare_quotes(1, 'HARINA', [
            {'supplier_id': 2, 'unit_price': '500', 'currency': 'VES'},
        ])
        assert not result.results[0].is_valid
        assert result.results[0].error == 'Falta Tasa de Cambio para VES a USD.'
        assert result.best_price is None

    def test_missing_supplier_or_price_is_invalid(self):
        result = compare_quotes(1, 'HARINA', [
            {'supplier_id': None, 'unit_price': '5', 'currency': 'USD'},
            {'supplier_id': 3, 'unit_price': '0', 'currency': 'USD'},
        ])
        assert all(not r.is_valid for r in result.results)
        assert result.results[0].error == 'Datos incompletos o inválidos.'

    def test_ties_are_all_best(self):
        result = compare_quotes(1, 'HARINA', [
            {'supplier_id': 1, 'unit_price': '10', 'currency': 'USD'},
            {'supplier_id': 2, 'unit_price': '10', 'currency': 'USD'},
        ])
        assert all(r.is_best for r in result.results)

    def test_non_numeric_price_is_invalid(self):
        result = compare_quotes(1, 'HARINA', [
            {'supplier_id': 1, 'unit_price': 'abc', 'currency': 'USD'},
            {'supplier_id': 2, 'unit_price': '8', 'currency': 'USD'},
        ])
        assert not result.results[0].is_valid
        assert result.results[0].error == 'Datos incompletos o inválidos.'
        assert result.best_price == Decimal('8')

    def test_nan_price_is_invalid(self):
        result = compare_quotes(1, 'HARINA', [{'supplier_id': 1, 'unit_price': 'NaN'}])
        assert result.results[0].error == 'Datos incompletos o inválidos.'
        assert result.best_price is None

    def test_non_numeric_rate_is_invalid(self):
        result = compare_quotes(1, 'HARINA', [
            {'supplier_id': 2, 'unit_price': '500', 'currency': 'VES', 'exchange_rate': 'cuarenta'},
        ])
        assert not result.results[0].is_valid

    def test_bad_global_rate_only_affects_ves_quotes(self):
        result = compare_quotes(1, 'HARINA', [
            {'supplier_id': 1, 'unit_price': '12', 'currency': 'USD'},
            {'supplier_id': 2, 'unit_price': '500', 'currency': 'VES'},
        ], global_exchange_rate='x')
        assert result.results[0].is_valid
        assert result.results[1].error == 'Falta Tasa de Cambio para VES a USD.'
