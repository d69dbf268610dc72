"""
Price history recorded from purchase orders, and per-supplier summaries.

Entries are written after the order itself is committed, in their own
transaction. A failure here is logged and never fails the order.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from compras.models import PriceHistory, PurchaseOrder, Material, Supplier
from compras.services.ownership import scoped_query, get_owned, notify_error
from compras.utils.calculations import convert_price, to_decimal

logger = logging.getLogger(__name__)


def _entries_for_order(order: PurchaseOrder) -> List[PriceHistory]:
    entries = []
    for item in order.items:
        unit_price = to_decimal(item.unit_price, Decimal('0'))
        if not item.material_id or unit_price <= 0:
            continue
        entries.append(PriceHistory(
            account_id=order.account_id,
            material_id=item.material_id,
            supplier_id=order.supplier_id,
            purchase_order_id=order.id,
            unit_price=unit_price,
            currency=order.currency,
            exchange_rate=order.exchange_rate,
        ))
    return entries


def record_for_order(session, order: PurchaseOrder) -> int:
    """
    Insert one entry per priced material line of a committed order.

    Returns:
        Number of entries written (0 on failure).
    """
    try:
        entries = _entries_for_order(order)
        session.add_all(entries)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error recording price history for order {order.id}: {e}")
        return 0

    logger.info(f"Recorded {len(entries)} price history entries for order {order.id}")
    return len(entries)


def replace_for_order(session, order: PurchaseOrder) -> int:
    """Drop the order's previous entries and record the current lines."""
    try:
        session.query(PriceHistory).filter(
            PriceHistory.account_id == order.account_id,
            PriceHistory.purchase_order_id == order.id
        ).delete(synchronize_session=False)
        entries = _entries_for_order(order)
        session.add_all(entries)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error replacing price history for order {order.id}: {e}")
        return 0

    logger.info(f"Replaced price history for order {order.id}: {len(entries)} entries")
    return len(entries)


def count_for_order(session, ctx, order_id: int) -> int:
    return scoped_query(session, PriceHistory, ctx).filter(
        PriceHistory.purchase_order_id == order_id
    ).count()


def get_price_history_by_material(session, ctx, material_id: int) -> List[PriceHistory]:
    """Entries for a material, newest first."""
    get_owned(session, Material, ctx, material_id, label='Material')
    try:
        return scoped_query(session, PriceHistory, ctx).options(
            selectinload(PriceHistory.supplier)
        ).filter(
            PriceHistory.material_id == material_id
        ).order_by(PriceHistory.recorded_at.desc(), PriceHistory.id.desc()).all()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error loading price history for material {material_id}: {e}")
        notify_error('Error al cargar el historial de precios.')
        return []


def get_price_history_by_supplier(session, ctx, supplier_id: int) -> List[PriceHistory]:
    """Entries for a supplier, newest first."""
    get_owned(session, Supplier, ctx, supplier_id, label='Proveedor')
    try:
        return scoped_query(session, PriceHistory, ctx).options(
            selectinload(PriceHistory.material)
        ).filter(
            PriceHistory.supplier_id == supplier_id
        ).order_by(PriceHistory.recorded_at.desc(), PriceHistory.id.desc()).all()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error loading price history for supplier {supplier_id}: {e}")
        notify_error('Error al cargar el historial de precios.')
        return []


@dataclass
class SupplierPriceSummary:
    """Price statistics of one supplier, in the base currency."""
    supplier_id: int
    supplier_name: Optional[str]
    base_currency: str
    latest_price: Decimal
    latest_recorded_at: Optional[datetime]
    min_price: Decimal
    max_price: Decimal
    average_price: Decimal
    count: int

    def to_dict(self):
        return {
            'supplier_id': self.supplier_id,
            'supplier_name': self.supplier_name,
            'base_currency': self.base_currency,
            'latest_price': float(self.latest_price),
            'latest_recorded_at': self.latest_recorded_at.isoformat() if self.latest_recorded_at else None,
            'min_price': float(self.min_price),
            'max_price': float(self.max_price),
            'average_price': float(self.average_price),
            'count': self.count,
        }


def _field(entry, name):
    if isinstance(entry, dict):
        return entry.get(name)
    return getattr(entry, name)


def _supplier_name(entry):
    if isinstance(entry, dict):
        return entry.get('supplier_name')
    return entry.supplier.name if entry.supplier is not None else None


def summarize_by_supplier(entries: Iterable, base_currency: str = 'USD') -> List[SupplierPriceSummary]:
    """
    Group entries by supplier and compute latest/min/max/average prices
    converted to `base_currency`.

    Entries that need a conversion but have no exchange rate are skipped;
    a supplier whose entries are all skipped is left out.
    """
    groups = {}
    for entry in entries:
        converted = convert_price(
            _field(entry, 'unit_price'),
            _field(entry, 'currency'),
            _field(entry, 'exchange_rate'),
            base_currency
        )
        if converted is None:
            continue

        supplier_id = _field(entry, 'supplier_id')
        recorded_at = _field(entry, 'recorded_at')
        group = groups.setdefault(supplier_id, {
            'name': _supplier_name(entry),
            'prices': [],
            'latest': (recorded_at, converted),
        })
        group['prices'].append(converted)

        latest_at = group['latest'][0]
        if recorded_at is not None and (latest_at is None or recorded_at > latest_at):
            group['latest'] = (recorded_at, converted)

    summaries = []
    for supplier_id, group in groups.items():
        prices = group['prices']
        summaries.append(SupplierPriceSummary(
            supplier_id=supplier_id,
            supplier_name=group['name'],
            base_currency=base_currency,
            latest_price=group['latest'][1],
            latest_recorded_at=group['latest'][0],
            min_price=min(prices),
            max_price=max(prices),
            average_price=sum(prices) / len(prices),
            count=len(prices),
        ))
    return summaries
