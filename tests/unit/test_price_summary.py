"""Unit tests for per-supplier price summaries."""
from datetime import datetime
from decimal import Decimal

from compras.services.price_history_service import summarize_by_supplier


def _entry(supplier_id, price, currency='USD', rate=None, day=1, name=None):
    return {
        'supplier_id': supplier_id,
        'supplier_name': name or f'Proveedor {supplier_id}',
        'unit_price': price,
        'currency': currency,
        'exchange_rate': rate,
        'recorded_at': datetime(2024, 1, day),
    }


class TestSummarizeBySupplier:

    def test_latest_min_max_average(self):
        summaries = summarize_by_supplier([
            _entry(1, '10', day=1),
            _entry(1, '14', day=3),
            _entry(1, '12', day=2),
        ])
        assert len(summaries) == 1
        summary = summaries[0]
        assert summary.latest_price == Decimal('14')
        assert summary.min_price == Decimal('10')
        assert summary.max_price == Decimal('14')
        assert summary.average_price == Decimal('12')
        assert summary.count == 3

    def test_ves_entries_converted_with_their_rate(self):
        summaries = summarize_by_supplier([_entry(2, '400', currency='VES', rate='40')])
        assert summaries[0].latest_price == Decimal('10')

    def test_entries_without_rate_are_skipped(self):
        summaries = summarize_by_supplier([
            _entry(1, '10'),
            _entry(2, '400', currency='VES', rate=None),
        ])
        assert [s.supplier_id for s in summaries] == [1]

    def test_summary_in_ves(self):
        summaries = summarize_by_supplier([_entry(1, '2', rate='36')], base_currency='VES')
        assert summaries[0].latest_price == Decimal('72')

    def test_to_dict(self):
        data = summarize_by_supplier([_entry(1, '10')])[0].to_dict()
        assert data['supplier_name'] == 'Proveedor 1'
        assert data['latest_price'] == 10.0
        assert data['base_currency'] == 'USD'
