"""PriceHistory model - immutable price facts recorded from purchase orders."""
from datetime import datetime
from sqlalchemy import Column, BigInteger, String, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from compras.database import Base, BigIntPK


class PriceHistory(Base):
    """
    One price paid to a supplier for a material.

    Rows are only inserted or deleted (per purchase order), never updated.
    """

    __tablename__ = 'price_history'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    account_id = Column(BigInteger, ForeignKey('account.id'), nullable=False, index=True)
    material_id = Column(BigInteger, ForeignKey('material.id'), nullable=False, index=True)
    supplier_id = Column(BigInteger, ForeignKey('supplier.id'), nullable=False, index=True)
    purchase_order_id = Column(BigInteger, ForeignKey('purchase_order.id'), nullable=True, index=True)
    unit_price = Column(Numeric(14, 4), nullable=False)
    currency = Column(String(3), nullable=False)
    exchange_rate = Column(Numeric(14, 4), nullable=True)
    recorded_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    material = relationship('Material')
    supplier = relationship('Supplier')

    def to_dict(self):
        return {
            'id': self.id,
            'material_id': self.material_id,
            'material_name': self.material.name if self.material else None,
            'supplier_id': self.supplier_id,
            'supplier_name': self.supplier.name if self.supplier else None,
            'purchase_order_id': self.purchase_order_id,
            'unit_price': float(self.unit_price),
            'currency': self.currency,
            'exchange_rate': float(self.exchange_rate) if self.exchange_rate is not None else None,
            'recorded_at': self.recorded_at.isoformat() if self.recorded_at else None,
        }

    def __repr__(self):
        return f"<PriceHistory(material_id={self.material_id}, supplier_id={self.supplier_id}, price={self.unit_price} {self.currency})>"
