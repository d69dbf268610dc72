"""Unit tests for the payment terms tagged union."""
import pytest

from compras.exceptions import ValidationError
from compras.models.payment_terms import (
    Contado, Credito, Otro,
    parse_payment_terms, coerce_payment_terms, to_columns, from_columns
)


class TestParsePaymentTerms:
    """Strict parsing used by supplier and purchase order forms."""

    def test_contado(self):
        assert parse_payment_terms('Contado') == Contado()

    def test_credito_with_days(self):
        assert parse_payment_terms('Crédito', None, 30) == Credito(days=30)

    def test_credito_unaccented_label(self):
        assert parse_payment_terms('credito', None, '15') == Credito(days=15)

    def test_credito_without_days_rejected(self):
        with pytest.raises(ValidationError) as exc:
            parse_payment_terms('Crédito', None, None)
        assert exc.value.field == 'credit_days'

    def test_credito_zero_days_rejected(self):
        with pytest.raises(ValidationError):
            parse_payment_terms('Crédito', None, 0)

    def test_otro_requires_custom_text(self):
        with pytest.raises(ValidationError) as exc:
            parse_payment_terms('Otro', '', None)
        assert exc.value.field == 'custom_payment_terms'

    def test_otro_with_text(self):
        assert parse_payment_terms('Otro', '50% anticipo', None) == Otro(text='50% anticipo')

    def test_days_on_contado_rejected(self):
        with pytest.raises(ValidationError):
            parse_payment_terms('Contado', None, 10)

    def test_custom_text_on_credito_rejected(self):
        with pytest.raises(ValidationError):
            parse_payment_terms('Crédito', 'algo', 30)

    def test_unknown_label_rejected(self):
        with pytest.raises(ValidationError):
            parse_payment_terms('Trueque')

    def test_missing_label_rejected(self):
        with pytest.raises(ValidationError):
            parse_payment_terms(None)

    def test_fractional_days_rejected(self):
        with pytest.raises(ValidationError):
            parse_payment_terms('Crédito', None, '7.5')


class TestCoercePaymentTerms:
    """Lenient parsing used by the spreadsheet importer."""

    def test_missing_defaults_to_contado(self):
        assert coerce_payment_terms(None) == Contado()

    def test_unknown_label_becomes_otro(self):
        assert coerce_payment_terms('Consignación') == Otro(text='Consignación')

    def test_extraneous_fields_dropped(self):
        assert coerce_payment_terms('Contado', 'ignorado', 15) == Contado()

    def test_credito_still_needs_days(self):
        with pytest.raises(ValidationError):
            coerce_payment_terms('Crédito', None, 0)


class TestColumns:

    def test_to_columns_credito(self):
        assert to_columns(Credito(days=45)) == {
            'payment_terms': 'Crédito',
            'custom_payment_terms': None,
            'credit_days': 45,
        }

    def test_to_columns_otro_zeroes_days(self):
        assert to_columns(Otro(text='Canje'))['credit_days'] == 0

    def test_to_columns_rejects_unknown_variant(self):
        with pytest.raises(TypeError):
            to_columns('Contado')

    def test_from_columns_rebuilds_value(self):
        assert from_columns('Crédito', None, 30) == Credito(days=30)
        assert from_columns('Contado', None, 0) == Contado()
