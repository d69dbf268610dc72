"""Technical sheet (ficha técnica) metadata. Files live in object storage."""
import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from compras.exceptions import ValidationError
from compras.models import FichaTecnica, Supplier, AuditAction
from compras.services.audit_service import log_action
from compras.services.ownership import scoped_query, get_owned, notify_error
from compras.utils.validators import clean_str

logger = logging.getLogger(__name__)


def get_all_fichas(session, ctx, supplier_id: int = None) -> List[FichaTecnica]:
    query = scoped_query(session, FichaTecnica, ctx)
    if supplier_id:
        query = query.filter(FichaTecnica.supplier_id == supplier_id)
    try:
        return query.order_by(FichaTecnica.created_at.desc(), FichaTecnica.id.desc()).all()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error loading fichas técnicas: {e}")
        notify_error('Error al cargar las fichas técnicas.')
        return []


def get_ficha_by_supplier_and_product(session, ctx, supplier_id: int, product_name: str) -> Optional[FichaTecnica]:
    """Case-insensitive lookup by product name; None when there is no sheet."""
    name = clean_str(product_name)
    if not name:
        return None
    return scoped_query(session, FichaTecnica, ctx).filter(
        FichaTecnica.supplier_id == supplier_id,
        func.lower(FichaTecnica.product_name) == name.lower()
    ).first()


def create_ficha(session, ctx, data: dict) -> Optional[FichaTecnica]:
    """Register a sheet already uploaded to storage."""
    supplier_id = data.get('supplier_id')
    if not supplier_id:
        raise ValidationError('El proveedor es requerido.', field='supplier_id')
    get_owned(session, Supplier, ctx, supplier_id, label='Proveedor')

    product_name = clean_str(data.get('product_name'))
    if not product_name:
        raise ValidationError('El nombre del producto es requerido.', field='product_name')
    storage_url = clean_str(data.get('storage_url'))
    if not storage_url:
        raise ValidationError('La URL del archivo es requerida.', field='storage_url')

    try:
        ficha = FichaTecnica(
            account_id=ctx.account_id,
            supplier_id=int(supplier_id),
            product_name=product_name,
            storage_url=storage_url,
            original_filename=clean_str(data.get('original_filename')),
            mime_type=clean_str(data.get('mime_type')),
        )
        session.add(ficha)
        session.flush()
        log_action(
            session, ctx, AuditAction.UPLOAD_FICHA_TECNICA,
            table_name='ficha_tecnica',
            record_id=ficha.id,
            description=f'Carga de ficha técnica {product_name}',
            details={'supplier_id': ficha.supplier_id, 'storage_url': storage_url}
        )
        session.commit()
        return ficha
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error saving ficha técnica: {e}")
        notify_error('Error al guardar la ficha técnica.')
        return None


def delete_ficha(session, ctx, ficha_id: int) -> bool:
    ficha = get_owned(session, FichaTecnica, ctx, ficha_id, label='Ficha técnica')
    try:
        session.delete(ficha)
        log_action(
            session, ctx, AuditAction.DELETE_FICHA_TECNICA,
            table_name='ficha_tecnica',
            record_id=ficha_id,
            description=f'Eliminación de ficha técnica {ficha.product_name}',
            details={'storage_url': ficha.storage_url}
        )
        session.commit()
        return True
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error deleting ficha técnica {ficha_id}: {e}")
        notify_error('Error al eliminar la ficha técnica.')
        return False
