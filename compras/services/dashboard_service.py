"""Dashboard aggregates: most ordered materials and most used suppliers."""
import logging
from typing import List

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from compras.models import PurchaseOrder, PurchaseOrderItem, Supplier, DocumentStatus
from compras.services.ownership import notify_error

logger = logging.getLogger(__name__)


def get_top_materials_by_quantity(session, ctx, limit: int = 5) -> List[dict]:
    """Materials with the highest ordered quantity across non-archived orders."""
    try:
        rows = session.query(
            PurchaseOrderItem.material_name,
            func.sum(PurchaseOrderItem.quantity).label('total_quantity'),
        ).join(
            PurchaseOrder, PurchaseOrder.id == PurchaseOrderItem.order_id
        ).filter(
            PurchaseOrder.account_id == ctx.account_id,
            PurchaseOrder.status != DocumentStatus.ARCHIVED.value
        ).group_by(
            PurchaseOrderItem.material_name
        ).order_by(
            func.sum(PurchaseOrderItem.quantity).desc()
        ).limit(limit).all()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error loading top materials: {e}")
        notify_error('Error al cargar los materiales principales.')
        return []

    return [
        {'material_name': row.material_name, 'total_quantity': float(row.total_quantity or 0)}
        for row in rows
    ]


def get_top_suppliers_by_order_count(session, ctx, limit: int = 5) -> List[dict]:
    try:
        rows = session.query(
            Supplier.id,
            Supplier.name,
            func.count(PurchaseOrder.id).label('order_count'),
        ).join(
            PurchaseOrder, PurchaseOrder.supplier_id == Supplier.id
        ).filter(
            PurchaseOrder.account_id == ctx.account_id
        ).group_by(
            Supplier.id, Supplier.name
        ).order_by(
            func.count(PurchaseOrder.id).desc()
        ).limit(limit).all()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error loading top suppliers: {e}")
        notify_error('Error al cargar los proveedores principales.')
        return []

    return [
        {'supplier_id': row.id, 'supplier_name': row.name, 'order_count': row.order_count}
        for row in rows
    ]
