"""
Status lifecycle for quote requests and purchase orders.

    Draft -> Sent -> Approved (terminal)
      |        |
      +--------+---> Archived -> Draft (unarchive)

Purchase orders can also be Rejected once Sent. Every status change is
audited. Saving a supplier as Inactive archives its open documents in one
statement per document type.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from flask import current_app, has_app_context
from sqlalchemy.exc import SQLAlchemyError

from compras.exceptions import BusinessLogicError, IllegalTransitionError, ValidationError
from compras.models import QuoteRequest, PurchaseOrder, DocumentStatus, AuditAction
from compras.services.audit_service import log_action
from compras.services.ownership import get_owned, scoped_query, notify_error

logger = logging.getLogger(__name__)

QUOTE_REQUEST = 'quote_request'
PURCHASE_ORDER = 'purchase_order'

ARCHIVE_FAILED_MESSAGE = 'Error al archivar los documentos del proveedor.'

DRAFT = DocumentStatus.DRAFT.value
SENT = DocumentStatus.SENT.value
APPROVED = DocumentStatus.APPROVED.value
REJECTED = DocumentStatus.REJECTED.value
ARCHIVED = DocumentStatus.ARCHIVED.value


@dataclass(frozen=True)
class _DocumentType:
    model: type
    label: str
    statuses: frozenset
    status_action: AuditAction
    bulk_archive_action: AuditAction


DOCUMENT_TYPES = {
    QUOTE_REQUEST: _DocumentType(
        model=QuoteRequest,
        label='Solicitud de cotización',
        statuses=frozenset({DRAFT, SENT, APPROVED, ARCHIVED}),
        status_action=AuditAction.UPDATE_QUOTE_REQUEST_STATUS,
        bulk_archive_action=AuditAction.BULK_ARCHIVE_QUOTE_REQUESTS,
    ),
    PURCHASE_ORDER: _DocumentType(
        model=PurchaseOrder,
        label='Orden de compra',
        statuses=frozenset({DRAFT, SENT, APPROVED, REJECTED, ARCHIVED}),
        status_action=AuditAction.UPDATE_PURCHASE_ORDER_STATUS,
        bulk_archive_action=AuditAction.BULK_ARCHIVE_PURCHASE_ORDERS,
    ),
}

_COMMON_TRANSITIONS = {
    (DRAFT, SENT),
    (DRAFT, ARCHIVED),
    (SENT, APPROVED),
    (SENT, ARCHIVED),
    (ARCHIVED, DRAFT),
}

ALLOWED_TRANSITIONS = {
    QUOTE_REQUEST: frozenset(_COMMON_TRANSITIONS),
    PURCHASE_ORDER: frozenset(_COMMON_TRANSITIONS | {
        (SENT, REJECTED),
        (REJECTED, ARCHIVED),
        (REJECTED, DRAFT),
    }),
}

# Statuses a document may be hard-deleted from
DELETABLE_STATUSES = {
    QUOTE_REQUEST: frozenset({ARCHIVED}),
    PURCHASE_ORDER: frozenset({DRAFT, ARCHIVED}),
}


@dataclass
class BulkArchiveResult:
    """Rows archived by bulk_archive_by_supplier, per document type."""
    quote_requests: int = 0
    purchase_orders: int = 0
    failed: bool = False

    @property
    def total(self) -> int:
        return self.quote_requests + self.purchase_orders

    def to_dict(self):
        return {
            'quote_requests': self.quote_requests,
            'purchase_orders': self.purchase_orders,
            'total': self.total,
            'failed': self.failed,
        }


def _document_type(document_type: str) -> _DocumentType:
    try:
        return DOCUMENT_TYPES[document_type]
    except KeyError:
        raise ValidationError(f'Tipo de documento inválido: {document_type}', field='document_type')


def transitions_enforced() -> bool:
    """ENFORCE_STATUS_TRANSITIONS from the app config (on by default)."""
    if has_app_context():
        return bool(current_app.config.get('ENFORCE_STATUS_TRANSITIONS', True))
    return True


def can_transition(document_type: str, current_status: str, new_status: str) -> bool:
    """True if the (from, to) pair is in the transition table."""
    return (current_status, new_status) in ALLOWED_TRANSITIONS[document_type]


def check_transition(document_type: str, current_status: str, new_status: str) -> None:
    """
    Raises:
        ValidationError: unknown status for the document type.
        IllegalTransitionError: pair not allowed while enforcement is on.
    """
    kind = _document_type(document_type)
    if new_status not in kind.statuses:
        raise ValidationError(f'Estado inválido para {kind.label}: {new_status}', field='status')
    if current_status == new_status:
        return
    if transitions_enforced() and not can_transition(document_type, current_status, new_status):
        raise IllegalTransitionError(document_type, current_status, new_status)


def ensure_editable(document_type: str, document) -> None:
    """Approved documents are final."""
    if transitions_enforced() and document.status == APPROVED:
        label = _document_type(document_type).label
        raise BusinessLogicError(f'{label} aprobada no puede ser modificada.')


def ensure_deletable(document_type: str, document) -> None:
    if not transitions_enforced():
        return
    if document.status not in DELETABLE_STATUSES[document_type]:
        label = _document_type(document_type).label
        allowed = ', '.join(sorted(DELETABLE_STATUSES[document_type]))
        raise BusinessLogicError(
            f'{label} en estado {document.status} no puede ser eliminada (permitido: {allowed}).',
            status_code=409
        )


def set_status(session, ctx, document_type: str, document_id: int, new_status: str) -> bool:
    """
    Move a document to `new_status` and audit the change.

    Writing the current status again is a no-op (no audit entry).

    Returns:
        True on success, False if the database rejected the write.

    Raises:
        NotFoundError: document missing or owned by another account.
        IllegalTransitionError / ValidationError: see check_transition.
    """
    kind = _document_type(document_type)
    document = get_owned(session, kind.model, ctx, document_id, label=kind.label)
    current_status = document.status

    check_transition(document_type, current_status, new_status)
    if current_status == new_status:
        return True

    try:
        document.status = new_status
        log_action(
            session, ctx, kind.status_action,
            table_name=kind.model.__tablename__,
            record_id=document.id,
            description=f'{kind.label} {document.id}: {current_status} → {new_status}',
            details={'from': current_status, 'to': new_status}
        )
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error updating status of {document_type} {document_id}: {e}")
        notify_error('Error al actualizar el estado del documento.')
        return False

    logger.info(f"{document_type} {document_id} status {current_status} -> {new_status}")
    return True


def archive(session, ctx, document_type: str, document_id: int) -> bool:
    return set_status(session, ctx, document_type, document_id, ARCHIVED)


def unarchive(session, ctx, document_type: str, document_id: int) -> bool:
    """Archived documents always come back as Draft, whatever they were before."""
    return set_status(session, ctx, document_type, document_id, DRAFT)


def _bulk_archive(session, ctx, document_type: str, supplier_id: int) -> Optional[int]:
    """Archived row count, or None when the UPDATE failed (nothing audited)."""
    kind = DOCUMENT_TYPES[document_type]
    model = kind.model
    try:
        count = scoped_query(session, model, ctx).filter(
            model.supplier_id == supplier_id,
            model.status.notin_([ARCHIVED, APPROVED])
        ).update({model.status: ARCHIVED}, synchronize_session='fetch')

        if count:
            log_action(
                session, ctx, kind.bulk_archive_action,
                table_name=model.__tablename__,
                description=f'{count} documento(s) archivados por proveedor inactivo',
                details={'supplier_id': supplier_id, 'count': count}
            )
        session.commit()
        return count
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Bulk archive of {document_type} for supplier {supplier_id} failed: {e}")
        notify_error(ARCHIVE_FAILED_MESSAGE)
        return None


def bulk_archive_by_supplier(session, ctx, supplier_id: int) -> BulkArchiveResult:
    """
    Archive every quote request and purchase order of a supplier that is
    not already Archived or Approved.

    One UPDATE per document type and one audit entry per type that changed.
    Running it again archives nothing.
    """
    quote_requests = _bulk_archive(session, ctx, QUOTE_REQUEST, supplier_id)
    purchase_orders = _bulk_archive(session, ctx, PURCHASE_ORDER, supplier_id)
    result = BulkArchiveResult(
        quote_requests=quote_requests or 0,
        purchase_orders=purchase_orders or 0,
        failed=quote_requests is None or purchase_orders is None,
    )
    if result.failed:
        logger.warning(f"Bulk archive for supplier {supplier_id} did not complete")
    logger.info(f"Bulk archive for supplier {supplier_id}: {result.to_dict()}")
    return result
