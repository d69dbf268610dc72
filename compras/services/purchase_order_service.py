"""Purchase order service (órdenes de compra)."""
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from flask import current_app, has_app_context
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from compras.exceptions import ValidationError
from compras.models import (
    PurchaseOrder, PurchaseOrderItem, PriceHistory, QuoteRequest, Supplier, Material, AuditAction
)
from compras.models.payment_terms import parse_payment_terms, to_columns
from compras.services import lifecycle, price_history_service
from compras.services.audit_service import log_action
from compras.services.lifecycle import PURCHASE_ORDER, DRAFT, SENT, APPROVED, REJECTED, ARCHIVED
from compras.services.ownership import scoped_query, get_owned, notify_error
from compras.services.quote_request_service import validate_document_header
from compras.services.sequence_service import next_po_number
from compras.utils.calculations import calculate_totals, DEFAULT_TAX_RATE, to_decimal
from compras.utils.validators import clean_str

logger = logging.getLogger(__name__)

STATUS_FILTERS = {
    'Active': [DRAFT, SENT, REJECTED],
    'Approved': [APPROVED],
    'Archived': [ARCHIVED],
    'All': None,
}


def _default_tax_rate() -> Decimal:
    if has_app_context():
        return to_decimal(current_app.config.get('DEFAULT_TAX_RATE', DEFAULT_TAX_RATE))
    return DEFAULT_TAX_RATE


def _decimal(value, field: str, message: str, minimum=Decimal('0'), allow_equal=True) -> Decimal:
    try:
        number = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(message, field=field)
    if number < minimum or (not allow_equal and number == minimum):
        raise ValidationError(message, field=field)
    return number


def _percentage(value, index: int, field: str) -> Optional[Decimal]:
    if value in (None, ''):
        return None
    number = _decimal(value, 'items', f'Ítem {index}: {field} debe estar entre 0 y 100.')
    if number > 100:
        raise ValidationError(f'Ítem {index}: {field} debe estar entre 0 y 100.', field='items')
    return number


def _parse_date(value) -> Optional[date]:
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError('Fecha de entrega inválida (use AAAA-MM-DD).', field='delivery_date')


def validate_order_items(session, ctx, items: list) -> List[dict]:
    if not items:
        raise ValidationError('Debe agregar al menos un material.', field='items')

    default_tax = _default_tax_rate()
    cleaned = []
    for index, item in enumerate(items, start=1):
        name = clean_str(item.get('material_name'))
        if not name:
            raise ValidationError(f'Ítem {index}: el nombre del material es requerido.', field='items')

        quantity = _decimal(item.get('quantity'), 'items',
                            f'Ítem {index}: la cantidad debe ser mayor a 0.', allow_equal=False)
        unit_price = _decimal(item.get('unit_price', 0), 'items',
                              f'Ítem {index}: el precio unitario no puede ser negativo.')

        material = None
        material_id = item.get('material_id')
        if material_id:
            material = get_owned(session, Material, ctx, material_id, label='Material')

        is_exempt = item.get('is_exempt')
        if is_exempt is None:
            is_exempt = material.is_exempt if material is not None else False

        tax_rate = item.get('tax_rate')
        tax_rate = default_tax if tax_rate in (None, '') else _decimal(
            tax_rate, 'items', f'Ítem {index}: tasa de impuesto inválida.'
        )

        cleaned.append({
            'material_id': int(material_id) if material_id else None,
            'material_name': name,
            'supplier_code': clean_str(item.get('supplier_code')),
            'quantity': quantity,
            'unit': clean_str(item.get('unit')),
            'description': clean_str(item.get('description')),
            'unit_price': unit_price,
            'tax_rate': tax_rate,
            'is_exempt': bool(is_exempt),
            'discount_percentage': _percentage(item.get('discount_percentage'), index, 'el descuento'),
            'sales_percentage': _percentage(item.get('sales_percentage'), index, 'el porcentaje de venta'),
        })
    return cleaned


def validate_order_header(session, ctx, data: dict) -> dict:
    """
    Header shared with quote requests plus payment terms, delivery date,
    observations and the originating quote request.

    Missing payment terms are copied from the supplier.
    """
    header = validate_document_header(session, ctx, data)

    if data.get('payment_terms'):
        terms = parse_payment_terms(
            data.get('payment_terms'),
            data.get('custom_payment_terms'),
            data.get('credit_days')
        )
    else:
        supplier = get_owned(session, Supplier, ctx, header['supplier_id'], label='Proveedor')
        terms = supplier.terms
    header.update(to_columns(terms))

    quote_request_id = data.get('quote_request_id')
    if quote_request_id:
        get_owned(session, QuoteRequest, ctx, quote_request_id, label='Solicitud de cotización')

    header.update({
        'quote_request_id': int(quote_request_id) if quote_request_id else None,
        'delivery_date': _parse_date(data.get('delivery_date')),
        'observations': clean_str(data.get('observations')),
    })
    return header


def _build_items(items: List[dict]) -> List[PurchaseOrderItem]:
    return [PurchaseOrderItem(position=position, **item) for position, item in enumerate(items)]


def get_all_purchase_orders(session, ctx, status_filter: str = 'Active') -> List[PurchaseOrder]:
    """List orders for a filter: Active (Draft/Sent/Rejected), Approved, Archived or All."""
    if status_filter not in STATUS_FILTERS:
        raise ValidationError(f'Filtro inválido: {status_filter}', field='status')

    query = scoped_query(session, PurchaseOrder, ctx).options(
        selectinload(PurchaseOrder.supplier),
        selectinload(PurchaseOrder.company)
    )
    statuses = STATUS_FILTERS[status_filter]
    if statuses is not None:
        query = query.filter(PurchaseOrder.status.in_(statuses))

    try:
        return query.order_by(PurchaseOrder.sequence_number.desc()).all()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error loading purchase orders: {e}")
        notify_error('Error al cargar las órdenes de compra.')
        return []


def get_purchase_order_by_id(session, ctx, order_id: int) -> PurchaseOrder:
    return get_owned(session, PurchaseOrder, ctx, order_id, label='Orden de compra')


def get_order_totals(order: PurchaseOrder) -> dict:
    return calculate_totals(order.items, default_tax_rate=_default_tax_rate())


def create_purchase_order(session, ctx, data: dict, items: list) -> Optional[PurchaseOrder]:
    """
    Create a Draft order with the next sequence number, then record its
    priced material lines in the price history.
    """
    header = validate_order_header(session, ctx, data)
    cleaned_items = validate_order_items(session, ctx, items)

    try:
        order = PurchaseOrder(
            account_id=ctx.account_id,
            sequence_number=next_po_number(session, ctx.account_id),
            status=DRAFT,
            created_by=ctx.user_email,
            **header
        )
        order.items = _build_items(cleaned_items)
        session.add(order)
        session.flush()

        log_action(
            session, ctx, AuditAction.CREATE_PURCHASE_ORDER,
            table_name='purchase_order',
            record_id=order.id,
            description=f'Creación de orden de compra N° {order.sequence_number}',
            details={'supplier_id': order.supplier_id, 'items': len(cleaned_items), 'currency': order.currency}
        )
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error creating purchase order: {e}")
        notify_error(f'Error al crear la orden de compra: {e}')
        return None

    logger.info(f"Purchase order {order.sequence_number} created in account {ctx.account_id}")
    price_history_service.record_for_order(session, order)
    return order


def update_purchase_order(session, ctx, order_id: int, data: dict, items: list) -> Optional[PurchaseOrder]:
    """Update header fields, replace every item, then replace the order's price history."""
    order = get_owned(session, PurchaseOrder, ctx, order_id, label='Orden de compra')
    lifecycle.ensure_editable(PURCHASE_ORDER, order)
    header = validate_order_header(session, ctx, data)
    cleaned_items = validate_order_items(session, ctx, items)

    try:
        for field, value in header.items():
            setattr(order, field, value)

        order.items.clear()
        session.flush()
        order.items.extend(_build_items(cleaned_items))

        log_action(
            session, ctx, AuditAction.UPDATE_PURCHASE_ORDER,
            table_name='purchase_order',
            record_id=order.id,
            description=f'Actualización de orden de compra N° {order.sequence_number}',
            details={'items': len(cleaned_items)}
        )
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error updating purchase order {order_id}: {e}")
        notify_error(f'Error al actualizar la orden de compra: {e}')
        return None

    price_history_service.replace_for_order(session, order)
    return order


def update_purchase_order_status(session, ctx, order_id: int, new_status: str) -> bool:
    return lifecycle.set_status(session, ctx, PURCHASE_ORDER, order_id, new_status)


def archive_purchase_order(session, ctx, order_id: int) -> bool:
    return lifecycle.archive(session, ctx, PURCHASE_ORDER, order_id)


def unarchive_purchase_order(session, ctx, order_id: int) -> bool:
    return lifecycle.unarchive(session, ctx, PURCHASE_ORDER, order_id)


def delete_purchase_order(session, ctx, order_id: int) -> bool:
    """Delete a Draft or Archived order together with its price history."""
    order = get_owned(session, PurchaseOrder, ctx, order_id, label='Orden de compra')
    lifecycle.ensure_deletable(PURCHASE_ORDER, order)

    try:
        session.query(PriceHistory).filter(
            PriceHistory.account_id == ctx.account_id,
            PriceHistory.purchase_order_id == order.id
        ).delete(synchronize_session=False)
        sequence_number = order.sequence_number
        session.delete(order)
        log_action(
            session, ctx, AuditAction.DELETE_PURCHASE_ORDER,
            table_name='purchase_order',
            record_id=order_id,
            description=f'Eliminación de orden de compra N° {sequence_number}',
            details={'order_id': order_id}
        )
        session.commit()
        return True
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error deleting purchase order {order_id}: {e}")
        notify_error('Error al eliminar la orden de compra.')
        return False
