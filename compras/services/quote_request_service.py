"""Quote request service (solicitudes de cotización)."""
import logging
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from compras.exceptions import ValidationError
from compras.models import QuoteRequest, QuoteRequestItem, Supplier, Company, Material, Currency, AuditAction
from compras.services import lifecycle
from compras.services.audit_service import log_action
from compras.services.lifecycle import QUOTE_REQUEST, DRAFT, SENT, APPROVED, ARCHIVED
from compras.services.ownership import scoped_query, get_owned, notify_error
from compras.utils.validators import clean_str

logger = logging.getLogger(__name__)

CURRENCIES = [c.value for c in Currency]

STATUS_FILTERS = {
    'Active': [DRAFT, SENT],
    'Approved': [APPROVED],
    'Archived': [ARCHIVED],
    'All': None,
}


def _positive_decimal(value, field: str, message: str) -> Decimal:
    try:
        number = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(message, field=field)
    if number <= 0:
        raise ValidationError(message, field=field)
    return number


def validate_document_header(session, ctx, data: dict) -> dict:
    """
    Validate the header shared by quote requests and purchase orders.

    Supplier and company must belong to the account. VES documents need a
    positive exchange rate.
    """
    supplier_id = data.get('supplier_id')
    if not supplier_id:
        raise ValidationError('El proveedor es requerido.', field='supplier_id')
    company_id = data.get('company_id')
    if not company_id:
        raise ValidationError('La empresa es requerida.', field='company_id')

    get_owned(session, Supplier, ctx, supplier_id, label='Proveedor')
    get_owned(session, Company, ctx, company_id, label='Empresa')

    currency = (clean_str(data.get('currency')) or Currency.USD.value).upper()
    if currency not in CURRENCIES:
        raise ValidationError(f'Moneda inválida: {currency}', field='currency')

    exchange_rate = data.get('exchange_rate')
    if currency == Currency.VES.value:
        if exchange_rate in (None, ''):
            raise ValidationError('La tasa de cambio es requerida para documentos en VES.', field='exchange_rate')
        exchange_rate = _positive_decimal(exchange_rate, 'exchange_rate', 'La tasa de cambio debe ser mayor a 0.')
    elif exchange_rate not in (None, ''):
        exchange_rate = _positive_decimal(exchange_rate, 'exchange_rate', 'La tasa de cambio debe ser mayor a 0.')
    else:
        exchange_rate = None

    return {
        'supplier_id': int(supplier_id),
        'company_id': int(company_id),
        'currency': currency,
        'exchange_rate': exchange_rate,
    }


def validate_request_items(session, ctx, items: list) -> List[dict]:
    if not items:
        raise ValidationError('Debe agregar al menos un material.', field='items')

    cleaned = []
    for index, item in enumerate(items, start=1):
        name = clean_str(item.get('material_name'))
        if not name:
            raise ValidationError(f'Ítem {index}: el nombre del material es requerido.', field='items')
        quantity = _positive_decimal(
            item.get('quantity'), 'items', f'Ítem {index}: la cantidad debe ser mayor a 0.'
        )
        material_id = item.get('material_id')
        if material_id:
            get_owned(session, Material, ctx, material_id, label='Material')
        cleaned.append({
            'material_id': int(material_id) if material_id else None,
            'material_name': name,
            'quantity': quantity,
            'unit': clean_str(item.get('unit')),
            'description': clean_str(item.get('description')),
        })
    return cleaned


def _build_items(items: List[dict]) -> List[QuoteRequestItem]:
    return [QuoteRequestItem(position=position, **item) for position, item in enumerate(items)]


def get_all_quote_requests(session, ctx, status_filter: str = 'Active') -> List[QuoteRequest]:
    """List requests for a filter: Active (Draft/Sent), Approved, Archived or All."""
    if status_filter not in STATUS_FILTERS:
        raise ValidationError(f'Filtro inválido: {status_filter}', field='status')

    query = scoped_query(session, QuoteRequest, ctx).options(
        selectinload(QuoteRequest.supplier),
        selectinload(QuoteRequest.company)
    )
    statuses = STATUS_FILTERS[status_filter]
    if statuses is not None:
        query = query.filter(QuoteRequest.status.in_(statuses))

    try:
        return query.order_by(QuoteRequest.created_at.desc(), QuoteRequest.id.desc()).all()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error loading quote requests: {e}")
        notify_error('Error al cargar las solicitudes de cotización.')
        return []


def get_quote_request_by_id(session, ctx, request_id: int) -> QuoteRequest:
    return get_owned(session, QuoteRequest, ctx, request_id, label='Solicitud de cotización')


def create_quote_request(session, ctx, data: dict, items: list) -> Optional[QuoteRequest]:
    """Create a Draft request with its items."""
    header = validate_document_header(session, ctx, data)
    cleaned_items = validate_request_items(session, ctx, items)

    try:
        quote_request = QuoteRequest(
            account_id=ctx.account_id,
            status=DRAFT,
            created_by=ctx.user_email,
            **header
        )
        quote_request.items = _build_items(cleaned_items)
        session.add(quote_request)
        session.flush()

        log_action(
            session, ctx, AuditAction.CREATE_QUOTE_REQUEST,
            table_name='quote_request',
            record_id=quote_request.id,
            description=f'Creación de solicitud de cotización {quote_request.id}',
            details={'supplier_id': quote_request.supplier_id, 'items': len(cleaned_items)}
        )
        session.commit()
        return quote_request
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error creating quote request: {e}")
        notify_error(f'Error al crear la solicitud de cotización: {e}')
        return None


def update_quote_request(session, ctx, request_id: int, data: dict, items: list) -> Optional[QuoteRequest]:
    """Update header fields and replace every item."""
    quote_request = get_owned(session, QuoteRequest, ctx, request_id, label='Solicitud de cotización')
    lifecycle.ensure_editable(QUOTE_REQUEST, quote_request)
    header = validate_document_header(session, ctx, data)
    cleaned_items = validate_request_items(session, ctx, items)

    try:
        for field, value in header.items():
            setattr(quote_request, field, value)

        quote_request.items.clear()
        session.flush()
        quote_request.items.extend(_build_items(cleaned_items))

        log_action(
            session, ctx, AuditAction.UPDATE_QUOTE_REQUEST,
            table_name='quote_request',
            record_id=quote_request.id,
            description=f'Actualización de solicitud de cotización {quote_request.id}',
            details={'items': len(cleaned_items)}
        )
        session.commit()
        return quote_request
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error updating quote request {request_id}: {e}")
        notify_error(f'Error al actualizar la solicitud de cotización: {e}')
        return None


def update_quote_request_status(session, ctx, request_id: int, new_status: str) -> bool:
    return lifecycle.set_status(session, ctx, QUOTE_REQUEST, request_id, new_status)


def archive_quote_request(session, ctx, request_id: int) -> bool:
    return lifecycle.archive(session, ctx, QUOTE_REQUEST, request_id)


def unarchive_quote_request(session, ctx, request_id: int) -> bool:
    return lifecycle.unarchive(session, ctx, QUOTE_REQUEST, request_id)


def delete_quote_request(session, ctx, request_id: int) -> bool:
    """Hard delete. Only archived requests can be deleted."""
    quote_request = get_owned(session, QuoteRequest, ctx, request_id, label='Solicitud de cotización')
    lifecycle.ensure_deletable(QUOTE_REQUEST, quote_request)

    try:
        session.delete(quote_request)
        log_action(
            session, ctx, AuditAction.DELETE_QUOTE_REQUEST,
            table_name='quote_request',
            record_id=request_id,
            description=f'Eliminación de solicitud de cotización {request_id}',
            details={'request_id': request_id}
        )
        session.commit()
        return True
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error deleting quote request {request_id}: {e}")
        notify_error('Error al eliminar la solicitud de cotización.')
        return False
