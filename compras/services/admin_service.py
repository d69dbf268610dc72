"""
Destructive administrative operations, gated by the ADMIN_PIN setting.
"""
import hmac
import logging

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from compras.exceptions import ComprasError, InvalidPinError, ValidationError
from compras.models import Supplier, Material, SupplierMaterial, AuditAction
from compras.services.audit_service import log_action
from compras.services.ownership import scoped_query
from compras.services.sequence_service import set_po_sequence_start

logger = logging.getLogger(__name__)

DATA_SUPPLIER = 'supplier'
DATA_MATERIAL = 'material'
DATA_RELATION = 'supplier_material_relation'

# What each type removes, in order. Relations go first so the FK on
# supplier_material never blocks the parent delete.
_DELETE_PLAN = {
    DATA_RELATION: [(SupplierMaterial, 'Relaciones proveedor-material eliminadas.')],
    DATA_MATERIAL: [
        (SupplierMaterial, 'Relaciones proveedor-material eliminadas.'),
        (Material, 'Materiales eliminados.'),
    ],
    DATA_SUPPLIER: [
        (SupplierMaterial, 'Relaciones proveedor-material eliminadas.'),
        (Supplier, 'Proveedores eliminados.'),
    ],
}

_RESET_PLAN = [
    (SupplierMaterial, 'relaciones proveedor-material'),
    (Material, 'materiales'),
    (Supplier, 'proveedores'),
]


def check_pin(pin) -> None:
    """
    Raises:
        ComprasError: ADMIN_PIN is not configured (500).
        InvalidPinError: pin does not match (403).
    """
    admin_pin = current_app.config.get('ADMIN_PIN')
    if not admin_pin:
        logger.error("ADMIN_PIN is not configured")
        raise ComprasError('PIN de administración no configurado en el servidor.', status_code=500)

    if not hmac.compare_digest(str(pin or ''), str(admin_pin)):
        raise InvalidPinError()


def _delete_owned(session, ctx, model) -> bool:
    """Delete every row of `model` in the account; True on success."""
    try:
        count = scoped_query(session, model, ctx).delete(synchronize_session=False)
        session.commit()
        logger.info(f"Deleted {count} {model.__tablename__} rows for account {ctx.account_id}")
        return True
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error deleting {model.__tablename__} for account {ctx.account_id}: {e}")
        return False


def _audit(session, ctx, action, description, details=None):
    try:
        log_action(session, ctx, action, description=description, details=details)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Could not audit {action.value}: {e}")


def delete_all_data(session, ctx, data_type: str, pin) -> str:
    """
    Delete every supplier, material or supplier/material link of the account.

    Returns:
        User-facing success message.

    Raises:
        InvalidPinError / ComprasError: see check_pin.
        ValidationError: unknown data type.
        ComprasError: one or more deletes failed (500).
    """
    check_pin(pin)
    if data_type not in _DELETE_PLAN:
        raise ValidationError('Tipo de datos para eliminar no válido.', field='type')

    logger.warning(f"Delete all {data_type} requested by {ctx.user_email} (account {ctx.account_id})")

    error_count = 0
    messages = []
    for model, message in _DELETE_PLAN[data_type]:
        if _delete_owned(session, ctx, model):
            messages.append(message)
        else:
            error_count += 1

    if error_count:
        raise ComprasError(f'Se encontraron errores durante la eliminación de {data_type}.', status_code=500)

    _audit(session, ctx, AuditAction.DELETE_ALL_DATA, f'Eliminación total de {data_type}', {'type': data_type})
    return f"Todos los {data_type} de tu cuenta han sido eliminados exitosamente. {' '.join(messages)}"


def reset_data_and_sequences(session, ctx, pin) -> str:
    """
    Delete links, materials and suppliers of the account. Codes are derived
    from the highest existing one, so new records start again at P001/MT001.
    """
    check_pin(pin)
    logger.warning(f"Reset data requested by {ctx.user_email} (account {ctx.account_id})")

    failed = [label for model, label in _RESET_PLAN if not _delete_owned(session, ctx, model)]
    if failed:
        raise ComprasError(
            f"Error al eliminar {', '.join(failed)}. Se encontraron {len(failed)} error(es).",
            status_code=500
        )

    _audit(session, ctx, AuditAction.RESET_DATA_AND_SEQUENCES, 'Datos y secuencias reiniciados')
    return (
        'Todos los datos y secuencias han sido reiniciados exitosamente. Los nuevos proveedores '
        'y materiales comenzarán con códigos P001 y MT001 respectivamente.'
    )


def set_po_sequence(session, ctx, start_number, pin) -> str:
    """
    Set the next purchase order number. 0 restarts right after the highest
    existing order.
    """
    check_pin(pin)
    try:
        start_number = int(start_number)
    except (TypeError, ValueError):
        start_number = -1
    if start_number < 0:
        raise ValidationError('El número de inicio debe ser un entero mayor o igual a 0.', field='startNumber')

    try:
        next_number = set_po_sequence_start(session, ctx.account_id, start_number)
        log_action(
            session, ctx, AuditAction.SET_PO_SEQUENCE,
            table_name='account_sequence',
            description=f'Próximo número de orden: {next_number}',
            details={'start_number': start_number, 'next_number': next_number}
        )
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error setting PO sequence for account {ctx.account_id}: {e}")
        raise ComprasError('Error al actualizar la secuencia de órdenes de compra.', status_code=500)

    if start_number == 0:
        return f'Secuencia reiniciada exitosamente. El próximo número de orden será {next_number}.'
    return f'Secuencia actualizada exitosamente. El próximo número de orden será {start_number}.'
