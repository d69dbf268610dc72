"""Money helpers: document totals, currency conversion, amounts in words."""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

DEFAULT_TAX_RATE = Decimal('0.16')  # IVA
TWO_PLACES = Decimal('0.01')


def to_decimal(value, default=None) -> Optional[Decimal]:
    """Convert numbers/strings to Decimal without float artifacts."""
    if value is None or value == '':
        return default
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _get(item, key, default=None):
    if isinstance(item, dict):
        return item.get(key, default)
    return getattr(item, key, default)


def calculate_totals(items: Iterable, default_tax_rate=DEFAULT_TAX_RATE) -> dict:
    """
    Compute base, VAT and total for purchase order lines.

    Each item needs quantity and unit_price; tax_rate defaults to 16% and
    exempt items add to the base without tax. Works with dicts or
    PurchaseOrderItem rows.

    Returns:
        dict with base_imponible, monto_iva and total, rounded to cents.
    """
    base = Decimal('0')
    iva = Decimal('0')

    for item in items:
        quantity = to_decimal(_get(item, 'quantity'), Decimal('0'))
        unit_price = to_decimal(_get(item, 'unit_price'), Decimal('0'))
        line_total = quantity * unit_price
        base += line_total

        if not _get(item, 'is_exempt', False):
            tax_rate = to_decimal(_get(item, 'tax_rate'), to_decimal(default_tax_rate))
            iva += line_total * tax_rate

    base = base.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    iva = iva.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    return {
        'base_imponible': base,
        'monto_iva': iva,
        'total': base + iva,
    }


def convert_price(unit_price, currency: str, exchange_rate, base_currency: str) -> Optional[Decimal]:
    """
    Convert a price between USD and VES with the rate stored next to it.

    exchange_rate is always expressed as VES per USD.

    Returns:
        The converted Decimal, or None when a conversion is needed but no
        positive rate is available.
    """
    price = to_decimal(unit_price)
    if price is None:
        return None
    if currency == base_currency:
        return price

    rate = to_decimal(exchange_rate)
    if rate is None or rate <= 0:
        return None

    if currency == 'VES' and base_currency == 'USD':
        return price / rate
    if currency == 'USD' and base_currency == 'VES':
        return price * rate
    return None


_UNIDADES = ['', 'UN', 'DOS', 'TRES', 'CUATRO', 'CINCO', 'SEIS', 'SIETE', 'OCHO', 'NUEVE']
_DECENAS = ['', 'DIEZ', 'VEINTE', 'TREINTA', 'CUARENTA', 'CINCUENTA', 'SESENTA', 'SETENTA', 'OCHENTA', 'NOVENTA']
_CENTENAS = ['', 'CIENTO', 'DOSCIENTOS', 'TRESCIENTOS', 'CUATROCIENTOS', 'QUINIENTOS', 'SEISCIENTOS',
             'SETECIENTOS', 'OCHOCIENTOS', 'NOVECIENTOS']
_ESPECIALES = ['DIEZ', 'ONCE', 'DOCE', 'TRECE', 'CATORCE', 'QUINCE', 'DIECISEIS', 'DIECISIETE',
               'DIECIOCHO', 'DIECINUEVE']


def _convert_group(num: int) -> str:
    c, d, u = num // 100, (num % 100) // 10, num % 10
    words = []

    if c == 1 and d == 0 and u == 0:
        words.append('CIEN')
    elif c > 0:
        words.append(_CENTENAS[c])

    if d == 1:
        words.append(_ESPECIALES[u])
    elif d > 1:
        words.append(_DECENAS[d] + (f' Y {_UNIDADES[u]}' if u else ''))
    elif u > 0:
        words.append(_UNIDADES[u])
    return ' '.join(words)


def number_to_words(amount, currency: str = 'VES') -> str:
    """
    Spell an amount in Spanish the way fiscal documents print it.

    >>> number_to_words(100, 'VES')
    'CIEN BOLIVARES CON 00/100'
    """
    plural = 'BOLIVARES' if currency == 'VES' else 'DOLARES'
    singular = 'BOLIVAR' if currency == 'VES' else 'DOLAR'

    value = to_decimal(amount, Decimal('0')).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    entero = int(value)
    cents = int((value - entero) * 100)

    if entero == 0:
        text = f'CERO {plural}'
    elif entero == 1:
        text = f'UN {singular}'
    else:
        millones, resto = divmod(entero, 1_000_000)
        miles, unidades = divmod(resto, 1000)
        parts = []
        if millones:
            parts.append('UN MILLON' if millones == 1 else f'{_convert_group(millones)} MILLONES')
        if miles:
            parts.append('MIL' if miles == 1 else f'{_convert_group(miles)} MIL')
        if unidades:
            parts.append(_convert_group(unidades))
        text = f"{' '.join(parts)} {plural}"

    return f'{text} CON {cents:02d}/100'
