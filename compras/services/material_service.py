"""Material service - catalog of purchasable materials (account-scoped)."""
import logging
from typing import List, Optional

from sqlalchemy import or_, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from compras.exceptions import ValidationError
from compras.models import Material, SupplierMaterial, Supplier, MATERIAL_CATEGORIES, MATERIAL_UNITS, AuditAction
from compras.services.audit_service import log_action
from compras.services.ownership import scoped_query, get_owned, notify_error
from compras.services.sequence_service import next_material_code
from compras.utils.validators import clean_str

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 10


def validate_material_data(data: dict) -> dict:
    name = clean_str(data.get('name'))
    if not name:
        raise ValidationError('El nombre del material es requerido.', field='name')

    category = clean_str(data.get('category'))
    if category:
        category = category.upper()
        if category not in MATERIAL_CATEGORIES:
            raise ValidationError(f'Categoría inválida: {category}', field='category')

    unit = clean_str(data.get('unit'))
    if unit:
        unit = unit.upper()
        if unit not in MATERIAL_UNITS:
            raise ValidationError(f'Unidad inválida: {unit}', field='unit')

    return {
        'name': name.upper(),
        'category': category,
        'unit': unit,
        'is_exempt': bool(data.get('is_exempt', False)),
    }


def get_all_materials(session, ctx) -> List[Material]:
    try:
        return scoped_query(session, Material, ctx).order_by(Material.name).all()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error loading materials: {e}")
        notify_error('Error al cargar los materiales.')
        return []


def get_material_by_id(session, ctx, material_id: int) -> Material:
    return get_owned(session, Material, ctx, material_id, label='Material')


def search_materials(session, ctx, query: str = '', limit: int = SEARCH_LIMIT) -> List[Material]:
    """Search by name or code. Empty query returns the first materials by name."""
    base = scoped_query(session, Material, ctx)
    term = (query or '').strip()
    if term:
        pattern = f'%{term.lower()}%'
        base = base.filter(or_(
            func.lower(Material.name).like(pattern),
            func.lower(Material.code).like(pattern),
        ))
    try:
        return base.order_by(Material.name).limit(limit).all()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error searching materials: {e}")
        notify_error('Error al buscar materiales.')
        return []


def get_suppliers_for_material(session, ctx, material_id: int) -> List[dict]:
    """Suppliers offering a material, with the pair's specification."""
    get_owned(session, Material, ctx, material_id, label='Material')
    try:
        rows = session.query(SupplierMaterial, Supplier).join(
            Supplier, Supplier.id == SupplierMaterial.supplier_id
        ).filter(
            SupplierMaterial.account_id == ctx.account_id,
            SupplierMaterial.material_id == material_id
        ).order_by(Supplier.name).all()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error loading suppliers for material {material_id}: {e}")
        notify_error('Error al cargar los proveedores del material.')
        return []

    return [
        {**supplier.to_dict(), 'specification': relation.specification}
        for relation, supplier in rows
    ]


def create_material(session, ctx, data: dict) -> Optional[Material]:
    values = validate_material_data(data)
    try:
        code = clean_str(data.get('code')) or next_material_code(session, ctx.account_id)
        material = Material(account_id=ctx.account_id, code=code, **values)
        session.add(material)
        session.flush()

        log_action(
            session, ctx, AuditAction.CREATE_MATERIAL,
            table_name='material',
            record_id=material.id,
            description=f'Creación de material {material.name}',
            details={'code': material.code, 'category': material.category}
        )
        session.commit()
        return material
    except IntegrityError as e:
        session.rollback()
        logger.warning(f"Duplicate material code: {e}")
        notify_error('Ya existe un material con ese código.')
        return None
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error creating material: {e}")
        notify_error(f'Error al crear el material: {e}')
        return None


def update_material(session, ctx, material_id: int, data: dict) -> Optional[Material]:
    material = get_owned(session, Material, ctx, material_id, label='Material')
    values = validate_material_data(data)
    try:
        for field, value in values.items():
            setattr(material, field, value)
        log_action(
            session, ctx, AuditAction.UPDATE_MATERIAL,
            table_name='material',
            record_id=material.id,
            description=f'Actualización de material {material.name}',
            details=values
        )
        session.commit()
        return material
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error updating material {material_id}: {e}")
        notify_error(f'Error al actualizar el material: {e}')
        return None


def delete_material(session, ctx, material_id: int) -> bool:
    material = get_owned(session, Material, ctx, material_id, label='Material')
    try:
        session.delete(material)
        log_action(
            session, ctx, AuditAction.DELETE_MATERIAL,
            table_name='material',
            record_id=material_id,
            description=f'Eliminación de material {material.name}',
            details={'code': material.code}
        )
        session.commit()
        return True
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error deleting material {material_id}: {e}")
        notify_error('Error al eliminar el material.')
        return False
