"""Supplier/material association service."""
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from compras.models import Supplier, Material, SupplierMaterial, AuditAction
from compras.services.audit_service import log_action
from compras.services.ownership import get_owned, notify_error
from compras.utils.validators import clean_str

logger = logging.getLogger(__name__)


def upsert_supplier_material(session, ctx, supplier_id: int, material_id: int, specification=None) -> SupplierMaterial:
    """
    Link a material to a supplier, or update the specification if the pair
    already exists. Adds to the session; caller commits.
    """
    relation = session.query(SupplierMaterial).filter(
        SupplierMaterial.account_id == ctx.account_id,
        SupplierMaterial.supplier_id == supplier_id,
        SupplierMaterial.material_id == material_id
    ).first()

    if relation:
        relation.specification = clean_str(specification)
    else:
        relation = SupplierMaterial(
            account_id=ctx.account_id,
            supplier_id=supplier_id,
            material_id=material_id,
            specification=clean_str(specification)
        )
        session.add(relation)
    session.flush()
    return relation


def create_supplier_material(session, ctx, supplier_id: int, material_id: int,
                             specification: str = None) -> Optional[SupplierMaterial]:
    get_owned(session, Supplier, ctx, supplier_id, label='Proveedor')
    get_owned(session, Material, ctx, material_id, label='Material')

    try:
        relation = upsert_supplier_material(session, ctx, supplier_id, material_id, specification)
        log_action(
            session, ctx, AuditAction.CREATE_SUPPLIER_MATERIAL,
            table_name='supplier_material',
            record_id=relation.id,
            description='Asociación de material a proveedor',
            details={'supplier_id': supplier_id, 'material_id': material_id}
        )
        session.commit()
        return relation
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error linking material {material_id} to supplier {supplier_id}: {e}")
        notify_error('Error al asociar el material al proveedor.')
        return None
