"""QuoteComparison models - side-by-side supplier quotes per material."""
from sqlalchemy import Column, BigInteger, String, Numeric, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from compras.database import Base, BigIntPK


class QuoteComparison(Base):
    """Saved quote comparison (comparación de cotizaciones)."""

    __tablename__ = 'quote_comparison'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    account_id = Column(BigInteger, ForeignKey('account.id'), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    base_currency = Column(String(3), nullable=False, default='USD')
    global_exchange_rate = Column(Numeric(14, 4), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    items = relationship('QuoteComparisonItem', back_populates='comparison', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'base_currency': self.base_currency,
            'global_exchange_rate': float(self.global_exchange_rate) if self.global_exchange_rate is not None else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'items': [item.to_dict() for item in self.items],
        }

    def __repr__(self):
        return f"<QuoteComparison(id={self.id}, name='{self.name}')>"


class QuoteComparisonItem(Base):
    """
    One material in a comparison.

    quotes is a list of {supplier_id, supplier_name, unit_price, currency,
    exchange_rate} dicts.
    """

    __tablename__ = 'quote_comparison_item'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    comparison_id = Column(BigInteger, ForeignKey('quote_comparison.id'), nullable=False, index=True)
    material_id = Column(BigInteger, ForeignKey('material.id'), nullable=False)
    material_name = Column(String(255), nullable=False)
    quotes = Column(JSON, nullable=False, default=list)

    comparison = relationship('QuoteComparison', back_populates='items')

    def to_dict(self):
        return {
            'id': self.id,
            'material_id': self.material_id,
            'material_name': self.material_name,
            'quotes': self.quotes or [],
        }
