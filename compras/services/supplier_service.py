"""Supplier service - CRUD, search and material associations (account-scoped)."""
import logging
from typing import List, Optional

from sqlalchemy import or_, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload

from compras.exceptions import NotFoundError, ValidationError
from compras.models import Supplier, SupplierStatus, SupplierMaterial, Material, AuditAction
from compras.models.payment_terms import parse_payment_terms, to_columns
from compras.services.audit_service import log_action
from compras.services.lifecycle import bulk_archive_by_supplier
from compras.services.ownership import scoped_query, get_owned, notify_error
from compras.services.sequence_service import next_supplier_code
from compras.utils.validators import validate_rif, is_valid_email, clean_str

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 10
SUPPLIER_STATUSES = [s.value for s in SupplierStatus]


def validate_supplier_data(data: dict) -> dict:
    """
    Validate a supplier form and return the column values to persist.

    Raises:
        ValidationError: on the first invalid field.
    """
    rif = validate_rif(data.get('rif'))
    if not rif:
        raise ValidationError('RIF inválido o faltante. Formato: J123456789.', field='rif')

    name = clean_str(data.get('name'))
    if not name:
        raise ValidationError('El nombre del proveedor es requerido.', field='name')

    email = clean_str(data.get('email'))
    if email and not is_valid_email(email):
        raise ValidationError('Formato de Email inválido.', field='email')

    status = clean_str(data.get('status')) or SupplierStatus.ACTIVE.value
    if status not in SUPPLIER_STATUSES:
        raise ValidationError(f'Estado inválido: {status}', field='status')

    terms = parse_payment_terms(
        data.get('payment_terms'),
        data.get('custom_payment_terms'),
        data.get('credit_days')
    )

    values = {
        'rif': rif,
        'name': name,
        'email': email,
        'phone': clean_str(data.get('phone')),
        'phone_2': clean_str(data.get('phone_2')),
        'instagram': clean_str(data.get('instagram')),
        'address': clean_str(data.get('address')),
        'status': status,
    }
    values.update(to_columns(terms))
    return values


def _normalize_materials(session, ctx, materials) -> dict:
    """material_id -> specification, checking each material is owned."""
    normalized = {}
    for entry in materials or []:
        material_id = entry.get('material_id')
        if not material_id:
            raise ValidationError('Cada material asociado requiere material_id.', field='materials')
        get_owned(session, Material, ctx, material_id, label='Material')
        normalized[int(material_id)] = clean_str(entry.get('specification'))
    return normalized


def get_all_suppliers(session, ctx) -> List[Supplier]:
    try:
        return scoped_query(session, Supplier, ctx).order_by(Supplier.name).all()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error loading suppliers: {e}")
        notify_error('Error al cargar los proveedores.')
        return []


def get_supplier_by_id(session, ctx, supplier_id: int) -> Supplier:
    """Supplier with its material associations preloaded."""
    supplier = scoped_query(session, Supplier, ctx).options(
        selectinload(Supplier.materials).selectinload(SupplierMaterial.material)
    ).filter(Supplier.id == supplier_id).first()
    if supplier is None:
        raise NotFoundError(f'Proveedor {supplier_id} no encontrado.')
    return supplier


def search_suppliers(session, ctx, query: str = '', limit: int = SEARCH_LIMIT) -> List[Supplier]:
    """
    Search by name or RIF (case-insensitive). An empty query returns the
    first suppliers by name.
    """
    base = scoped_query(session, Supplier, ctx)
    term = (query or '').strip()
    if term:
        pattern = f'%{term.lower()}%'
        base = base.filter(or_(
            func.lower(Supplier.name).like(pattern),
            func.lower(Supplier.rif).like(pattern),
        ))
    try:
        return base.order_by(Supplier.name).limit(limit).all()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error searching suppliers: {e}")
        notify_error('Error al buscar proveedores.')
        return []


def create_supplier(session, ctx, data: dict, materials: Optional[list] = None) -> Optional[Supplier]:
    """
    Create a supplier and its material associations.

    Returns:
        The new Supplier, or None if the database rejected it.
    """
    values = validate_supplier_data(data)
    material_specs = _normalize_materials(session, ctx, materials)

    try:
        code = clean_str(data.get('code')) or next_supplier_code(session, ctx.account_id)
        supplier = Supplier(account_id=ctx.account_id, code=code, **values)
        for material_id, specification in material_specs.items():
            supplier.materials.append(SupplierMaterial(
                account_id=ctx.account_id,
                material_id=material_id,
                specification=specification
            ))
        session.add(supplier)
        session.flush()

        log_action(
            session, ctx, AuditAction.CREATE_SUPPLIER,
            table_name='supplier',
            record_id=supplier.id,
            description=f'Creación de proveedor {supplier.name}',
            details={'code': supplier.code, 'rif': supplier.rif, 'materials': len(material_specs)}
        )
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.warning(f"Duplicate supplier for account {ctx.account_id}: {e}")
        notify_error('Ya existe un proveedor con ese código.')
        return None
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error creating supplier: {e}")
        notify_error(f'Error al crear el proveedor: {e}')
        return None

    logger.info(f"Supplier {supplier.code} created in account {ctx.account_id}")
    return supplier


def _sync_materials(supplier: Supplier, ctx, material_specs: dict) -> dict:
    """Delete removed associations, add new ones, update changed specifications."""
    existing = {sm.material_id: sm for sm in supplier.materials}
    removed = [sm for material_id, sm in existing.items() if material_id not in material_specs]
    for sm in removed:
        supplier.materials.remove(sm)

    added = updated = 0
    for material_id, specification in material_specs.items():
        current = existing.get(material_id)
        if current is None:
            supplier.materials.append(SupplierMaterial(
                account_id=ctx.account_id,
                material_id=material_id,
                specification=specification
            ))
            added += 1
        elif current.specification != specification:
            current.specification = specification
            updated += 1

    return {'added': added, 'removed': len(removed), 'updated': updated}


def update_supplier(session, ctx, supplier_id: int, data: dict, materials: Optional[list] = None) -> Optional[Supplier]:
    """
    Update a supplier. When `materials` is given, associations are diffed
    against it. Saving with status Inactive archives the supplier's open
    quote requests and purchase orders.
    """
    supplier = get_owned(session, Supplier, ctx, supplier_id, label='Proveedor')
    values = validate_supplier_data(data)
    material_specs = _normalize_materials(session, ctx, materials) if materials is not None else None

    try:
        code = clean_str(data.get('code'))
        if code:
            supplier.code = code
        for field, value in values.items():
            setattr(supplier, field, value)

        changes = _sync_materials(supplier, ctx, material_specs) if material_specs is not None else {}

        log_action(
            session, ctx, AuditAction.UPDATE_SUPPLIER,
            table_name='supplier',
            record_id=supplier.id,
            description=f'Actualización de proveedor {supplier.name}',
            details={'status': supplier.status, 'materials': changes}
        )
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.warning(f"Duplicate supplier code on update {supplier_id}: {e}")
        notify_error('Ya existe un proveedor con ese código.')
        return None
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error updating supplier {supplier_id}: {e}")
        notify_error(f'Error al actualizar el proveedor: {e}')
        return None

    if supplier.status == SupplierStatus.INACTIVE.value:
        # The supplier stays saved; the flashed archive error reaches the response
        if bulk_archive_by_supplier(session, ctx, supplier.id).failed:
            logger.warning(f"Supplier {supplier_id} saved as Inactive but its documents were not archived")

    return supplier


def delete_supplier(session, ctx, supplier_id: int) -> bool:
    supplier = get_owned(session, Supplier, ctx, supplier_id, label='Proveedor')
    try:
        session.delete(supplier)
        log_action(
            session, ctx, AuditAction.DELETE_SUPPLIER,
            table_name='supplier',
            record_id=supplier_id,
            description=f'Eliminación de proveedor {supplier.name}',
            details={'supplier_id': supplier_id, 'code': supplier.code}
        )
        session.commit()
        return True
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error deleting supplier {supplier_id}: {e}")
        notify_error('Error al eliminar el proveedor. Verifique que no tenga documentos asociados.')
        return False
