"""Quote comparison service - saved side-by-side supplier quotes."""
import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from compras.exceptions import ValidationError
from compras.models import QuoteComparison, QuoteComparisonItem, Material, Supplier, AuditAction
from compras.services.audit_service import log_action
from compras.services.ownership import scoped_query, get_owned, notify_error
from compras.utils.calculations import to_decimal
from compras.utils.validators import clean_str

logger = logging.getLogger(__name__)


@dataclass
class QuoteResult:
    supplier_id: Optional[int]
    supplier_name: Optional[str]
    unit_price: Optional[Decimal]
    currency: str
    exchange_rate: Optional[Decimal]
    converted_price: Optional[Decimal] = None
    is_valid: bool = False
    error: Optional[str] = None
    is_best: bool = False

    def to_dict(self):
        return {
            'supplier_id': self.supplier_id,
            'supplier_name': self.supplier_name,
            'unit_price': float(self.unit_price) if self.unit_price is not None else None,
            'currency': self.currency,
            'exchange_rate': float(self.exchange_rate) if self.exchange_rate is not None else None,
            'converted_price': float(self.converted_price) if self.converted_price is not None else None,
            'is_valid': self.is_valid,
            'error': self.error,
            'is_best': self.is_best,
        }


@dataclass
class MaterialComparison:
    material_id: Optional[int]
    material_name: Optional[str]
    results: List[QuoteResult] = field(default_factory=list)
    best_price: Optional[Decimal] = None

    def to_dict(self):
        return {
            'material_id': self.material_id,
            'material_name': self.material_name,
            'results': [r.to_dict() for r in self.results],
            'best_price': float(self.best_price) if self.best_price is not None else None,
        }


def _amount(value) -> Optional[Decimal]:
    """Decimal from user input; InvalidOperation for text, NaN or infinity."""
    amount = to_decimal(value)
    if amount is not None and not amount.is_finite():
        raise InvalidOperation(value)
    return amount


def _evaluate_quote(quote: dict, global_exchange_rate) -> QuoteResult:
    result = QuoteResult(
        supplier_id=quote.get('supplier_id'),
        supplier_name=quote.get('supplier_name'),
        unit_price=None,
        currency=(quote.get('currency') or 'USD').upper(),
        exchange_rate=None,
    )
    try:
        result.unit_price = _amount(quote.get('unit_price'))
        result.exchange_rate = _amount(quote.get('exchange_rate'))
    except InvalidOperation:
        result.error = 'Datos incompletos o inválidos.'
        return result

    unit_price = result.unit_price
    if not result.supplier_id or unit_price is None or unit_price <= 0:
        result.error = 'Datos incompletos o inválidos.'
        return result

    if result.currency == 'VES':
        try:
            rate = result.exchange_rate or _amount(global_exchange_rate)
        except InvalidOperation:
            rate = None
        if not rate or rate <= 0:
            result.error = 'Falta Tasa de Cambio para VES a USD.'
            return result
        result.converted_price = unit_price / rate
    else:
        result.converted_price = unit_price

    result.is_valid = True
    return result


def compare_quotes(material_id, material_name, quotes: list, global_exchange_rate=None) -> MaterialComparison:
    """
    Convert every quote to USD and mark the cheapest valid ones.

    A quote is invalid without a supplier, with a non-positive price, or in
    VES with neither its own nor a global exchange rate.
    """
    comparison = MaterialComparison(material_id=material_id, material_name=material_name)
    comparison.results = [_evaluate_quote(q, global_exchange_rate) for q in quotes or []]

    valid = [r.converted_price for r in comparison.results if r.is_valid]
    if valid:
        comparison.best_price = min(valid)
        for result in comparison.results:
            result.is_best = result.is_valid and result.converted_price == comparison.best_price
    return comparison


def compare_saved(comparison: QuoteComparison) -> List[MaterialComparison]:
    return [
        compare_quotes(item.material_id, item.material_name, item.quotes, comparison.global_exchange_rate)
        for item in comparison.items
    ]


def _validate(session, ctx, data: dict) -> dict:
    name = clean_str(data.get('name'))
    if not name:
        raise ValidationError('El nombre de la comparación es requerido.', field='name')

    items = []
    for entry in data.get('items') or []:
        material = get_owned(session, Material, ctx, entry.get('material_id'), label='Material')
        quotes = []
        for quote in entry.get('quotes') or []:
            supplier_id = quote.get('supplier_id')
            supplier_name = quote.get('supplier_name')
            if supplier_id:
                supplier = get_owned(session, Supplier, ctx, supplier_id, label='Proveedor')
                supplier_name = supplier.name
            try:
                unit_price = _amount(quote.get('unit_price'))
                exchange_rate = _amount(quote.get('exchange_rate'))
            except InvalidOperation:
                raise ValidationError(
                    f'Precio o tasa de cambio inválidos para {material.name}.', field='items'
                )
            quotes.append({
                'supplier_id': supplier_id,
                'supplier_name': supplier_name,
                'unit_price': str(unit_price if unit_price is not None else Decimal('0')),
                'currency': (quote.get('currency') or 'USD').upper(),
                'exchange_rate': str(exchange_rate) if exchange_rate else None,
            })
        items.append({'material_id': material.id, 'material_name': material.name, 'quotes': quotes})

    try:
        global_rate = _amount(data.get('global_exchange_rate'))
    except InvalidOperation:
        raise ValidationError('La tasa de cambio global no es válida.', field='global_exchange_rate')

    return {
        'name': name,
        'base_currency': (data.get('base_currency') or 'USD').upper(),
        'global_exchange_rate': global_rate,
        'items': items,
    }


def get_all_quote_comparisons(session, ctx) -> List[QuoteComparison]:
    try:
        return scoped_query(session, QuoteComparison, ctx).options(
            selectinload(QuoteComparison.items)
        ).order_by(QuoteComparison.created_at.desc(), QuoteComparison.id.desc()).all()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error loading quote comparisons: {e}")
        notify_error('Error al cargar las comparaciones.')
        return []


def get_quote_comparison_by_id(session, ctx, comparison_id: int) -> QuoteComparison:
    return get_owned(session, QuoteComparison, ctx, comparison_id, label='Comparación')


def create_quote_comparison(session, ctx, data: dict) -> Optional[QuoteComparison]:
    values = _validate(session, ctx, data)
    items = values.pop('items')
    try:
        comparison = QuoteComparison(account_id=ctx.account_id, **values)
        comparison.items = [QuoteComparisonItem(**item) for item in items]
        session.add(comparison)
        session.flush()
        log_action(
            session, ctx, AuditAction.CREATE_QUOTE_COMPARISON,
            table_name='quote_comparison',
            record_id=comparison.id,
            description=f'Creación de comparación {comparison.name}',
            details={'items': len(items)}
        )
        session.commit()
        return comparison
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error creating quote comparison: {e}")
        notify_error('Error al guardar la comparación.')
        return None


def update_quote_comparison(session, ctx, comparison_id: int, data: dict) -> Optional[QuoteComparison]:
    """Update the header and replace every item."""
    comparison = get_owned(session, QuoteComparison, ctx, comparison_id, label='Comparación')
    values = _validate(session, ctx, data)
    items = values.pop('items')
    try:
        for name, value in values.items():
            setattr(comparison, name, value)
        comparison.items.clear()
        session.flush()
        comparison.items.extend(QuoteComparisonItem(**item) for item in items)
        log_action(
            session, ctx, AuditAction.UPDATE_QUOTE_COMPARISON,
            table_name='quote_comparison',
            record_id=comparison.id,
            description=f'Actualización de comparación {comparison.name}',
            details={'items': len(items)}
        )
        session.commit()
        return comparison
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error updating quote comparison {comparison_id}: {e}")
        notify_error('Error al actualizar la comparación.')
        return None


def delete_quote_comparison(session, ctx, comparison_id: int) -> bool:
    comparison = get_owned(session, QuoteComparison, ctx, comparison_id, label='Comparación')
    try:
        session.delete(comparison)
        log_action(
            session, ctx, AuditAction.DELETE_QUOTE_COMPARISON,
            table_name='quote_comparison',
            record_id=comparison_id,
            description=f'Eliminación de comparación {comparison.name}',
            details={'comparison_id': comparison_id}
        )
        session.commit()
        return True
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error deleting quote comparison {comparison_id}: {e}")
        notify_error('Error al eliminar la comparación.')
        return False
