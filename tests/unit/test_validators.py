"""Unit tests for input validators."""
from compras.utils.validators import validate_rif, is_valid_email, clean_str


class TestValidateRif:

    def test_normalizes_dashes_and_case(self):
        assert validate_rif('j-12345678-9') == 'J123456789'

    def test_accepts_eight_digits(self):
        assert validate_rif('V12345678') == 'V12345678'

    def test_strips_spaces(self):
        assert validate_rif(' G 20000000 1 ') == 'G200000001'

    def test_rejects_unknown_prefix(self):
        assert validate_rif('X123456789') is None

    def test_rejects_short_number(self):
        assert validate_rif('J1234') is None

    def test_rejects_empty(self):
        assert validate_rif('') is None
        assert validate_rif(None) is None


class TestEmailAndStrings:

    def test_valid_email(self):
        assert is_valid_email('compras@empresa.com')

    def test_invalid_email(self):
        assert not is_valid_email('compras@empresa')
        assert not is_valid_email('')

    def test_clean_str(self):
        assert clean_str('  hola ') == 'hola'
        assert clean_str('   ') is None
        assert clean_str(123) == '123'
        assert clean_str(None) is None
