"""
Payment terms (términos de pago) as a tagged union.

A supplier or purchase order stores three columns: payment_terms,
custom_payment_terms and credit_days. Only these combinations are valid:

    Contado       -> credit_days = 0, no custom text
    Crédito(días) -> credit_days > 0, no custom text
    Otro(texto)   -> credit_days = 0, custom text required
"""
from dataclasses import dataclass
from typing import Optional, Union

from compras.exceptions import ValidationError


CONTADO = 'Contado'
CREDITO = 'Crédito'
OTRO = 'Otro'

PAYMENT_TERMS_OPTIONS = [CONTADO, CREDITO, OTRO]


@dataclass(frozen=True)
class Contado:
    pass


@dataclass(frozen=True)
class Credito:
    days: int


@dataclass(frozen=True)
class Otro:
    text: str


PaymentTerms = Union[Contado, Credito, Otro]


def _normalize_label(value) -> Optional[str]:
    if value is None:
        return None
    label = str(value).strip()
    if not label:
        return None
    # Accept the unaccented spelling used in older spreadsheets
    if label.lower() in ('credito', 'crédito'):
        return CREDITO
    if label.lower() == 'contado':
        return CONTADO
    if label.lower() == 'otro':
        return OTRO
    return label


def _parse_days(credit_days) -> Optional[int]:
    if credit_days is None or credit_days == '':
        return None
    try:
        days = float(credit_days)
    except (TypeError, ValueError):
        raise ValidationError('Días de crédito debe ser un número.', field='credit_days')
    if days != int(days):
        raise ValidationError('Días de crédito debe ser un número entero.', field='credit_days')
    return int(days)


def parse_payment_terms(payment_terms, custom_payment_terms=None, credit_days=None) -> PaymentTerms:
    """
    Build a PaymentTerms value from submitted form fields.

    Raises:
        ValidationError: when the combination breaks the credit-days or
            custom-text rules.
    """
    label = _normalize_label(payment_terms)
    custom = (custom_payment_terms or '').strip() if isinstance(custom_payment_terms, str) else custom_payment_terms
    days = _parse_days(credit_days)

    if label is None:
        raise ValidationError('Los términos de pago son requeridos.', field='payment_terms')
    if label not in PAYMENT_TERMS_OPTIONS:
        raise ValidationError(
            f"Términos de pago inválidos: {label}. Opciones: {', '.join(PAYMENT_TERMS_OPTIONS)}",
            field='payment_terms'
        )

    if label == CREDITO:
        if days is None or days <= 0:
            raise ValidationError(
                'Los días de crédito deben ser mayores a 0 para términos de "Crédito".',
                field='credit_days'
            )
        if custom:
            raise ValidationError(
                'Los términos personalizados solo aplican cuando el tipo es "Otro".',
                field='custom_payment_terms'
            )
        return Credito(days=days)

    if days:
        raise ValidationError(
            'Los días de crédito solo aplican a términos de "Crédito".',
            field='credit_days'
        )

    if label == OTRO:
        if not custom:
            raise ValidationError(
                'Términos de Pago Personalizados requeridos si el tipo es "Otro".',
                field='custom_payment_terms'
            )
        return Otro(text=str(custom))

    if custom:
        raise ValidationError(
            'Los términos personalizados solo aplican cuando el tipo es "Otro".',
            field='custom_payment_terms'
        )
    return Contado()


def coerce_payment_terms(payment_terms, custom_payment_terms=None, credit_days=None) -> PaymentTerms:
    """
    Lenient variant used by spreadsheet imports.

    Missing terms default to Contado, an unknown legacy value becomes
    Otro with that value as its text, and fields that do not apply to the
    chosen variant are dropped instead of rejected.
    """
    label = _normalize_label(payment_terms)
    if label is None:
        label = CONTADO
    elif label not in PAYMENT_TERMS_OPTIONS:
        custom_payment_terms = label
        label = OTRO

    if label == CREDITO:
        return parse_payment_terms(CREDITO, None, credit_days)
    if label == OTRO:
        return parse_payment_terms(OTRO, custom_payment_terms, None)
    return Contado()


def to_columns(terms: PaymentTerms) -> dict:
    """Flatten a PaymentTerms value into the three persisted columns."""
    if isinstance(terms, Contado):
        return {'payment_terms': CONTADO, 'custom_payment_terms': None, 'credit_days': 0}
    if isinstance(terms, Credito):
        return {'payment_terms': CREDITO, 'custom_payment_terms': None, 'credit_days': terms.days}
    if isinstance(terms, Otro):
        return {'payment_terms': OTRO, 'custom_payment_terms': terms.text, 'credit_days': 0}
    raise TypeError(f"Unknown payment terms variant: {type(terms).__name__}")


def from_columns(payment_terms, custom_payment_terms, credit_days) -> PaymentTerms:
    """Rebuild the tagged value from stored columns."""
    return parse_payment_terms(payment_terms, custom_payment_terms, credit_days)
