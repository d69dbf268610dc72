"""PurchaseOrder models (órdenes de compra)."""
from sqlalchemy import (
    Column, BigInteger, Integer, String, Numeric, Boolean, Text, Date, DateTime, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from compras.database import Base, BigIntPK
from compras.models.document_status import DocumentStatus


class PurchaseOrder(Base):
    """
    Purchase Order (Orden de Compra).

    sequence_number is monotonic per account and can be reset by an
    administrator. Priced material lines feed the price history.
    """

    __tablename__ = 'purchase_order'
    __table_args__ = (
        UniqueConstraint('account_id', 'sequence_number', name='uq_purchase_order_sequence'),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    account_id = Column(BigInteger, ForeignKey('account.id'), nullable=False, index=True)
    sequence_number = Column(Integer, nullable=False)
    supplier_id = Column(BigInteger, ForeignKey('supplier.id'), nullable=False, index=True)
    company_id = Column(BigInteger, ForeignKey('company.id'), nullable=False)
    quote_request_id = Column(BigInteger, ForeignKey('quote_request.id'), nullable=True)
    currency = Column(String(3), nullable=False, default='USD')
    exchange_rate = Column(Numeric(14, 4), nullable=True)
    status = Column(String(20), nullable=False, default=DocumentStatus.DRAFT.value)
    delivery_date = Column(Date, nullable=True)
    payment_terms = Column(String(20), nullable=False, default='Contado')
    custom_payment_terms = Column(String(255), nullable=True)
    credit_days = Column(Integer, nullable=False, default=0)
    observations = Column(Text, nullable=True)
    created_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    supplier = relationship('Supplier')
    company = relationship('Company')
    quote_request = relationship('QuoteRequest')
    items = relationship(
        'PurchaseOrderItem',
        back_populates='order',
        cascade='all, delete-orphan',
        order_by='PurchaseOrderItem.position'
    )

    def to_dict(self, include_items=True):
        data = {
            'id': self.id,
            'sequence_number': self.sequence_number,
            'supplier_id': self.supplier_id,
            'supplier_name': self.supplier.name if self.supplier else None,
            'company_id': self.company_id,
            'company_name': self.company.name if self.company else None,
            'quote_request_id': self.quote_request_id,
            'currency': self.currency,
            'exchange_rate': float(self.exchange_rate) if self.exchange_rate is not None else None,
            'status': self.status,
            'delivery_date': self.delivery_date.isoformat() if self.delivery_date else None,
            'payment_terms': self.payment_terms,
            'custom_payment_terms': self.custom_payment_terms,
            'credit_days': self.credit_days,
            'observations': self.observations,
            'created_by': self.created_by,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if include_items:
            data['items'] = [item.to_dict() for item in self.items]
        return data

    def __repr__(self):
        return f"<PurchaseOrder(id={self.id}, number={self.sequence_number}, status='{self.status}')>"


class PurchaseOrderItem(Base):
    """Purchase Order line with price, tax and optional discount/markup."""

    __tablename__ = 'purchase_order_item'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    order_id = Column(BigInteger, ForeignKey('purchase_order.id'), nullable=False, index=True)
    material_id = Column(BigInteger, ForeignKey('material.id'), nullable=True)
    position = Column(Integer, nullable=False, default=0)
    material_name = Column(String(255), nullable=False)
    supplier_code = Column(String(50), nullable=True)
    quantity = Column(Numeric(12, 3), nullable=False)
    unit = Column(String(20), nullable=True)
    description = Column(Text, nullable=True)
    unit_price = Column(Numeric(14, 4), nullable=False, default=0)
    tax_rate = Column(Numeric(5, 4), nullable=False, default=0.16)
    is_exempt = Column(Boolean, nullable=False, default=False)
    discount_percentage = Column(Numeric(5, 2), nullable=True)
    sales_percentage = Column(Numeric(5, 2), nullable=True)

    order = relationship('PurchaseOrder', back_populates='items')
    material = relationship('Material')

    def to_dict(self):
        return {
            'id': self.id,
            'material_id': self.material_id,
            'material_name': self.material_name,
            'supplier_code': self.supplier_code,
            'quantity': float(self.quantity),
            'unit': self.unit,
            'description': self.description,
            'unit_price': float(self.unit_price),
            'tax_rate': float(self.tax_rate),
            'is_exempt': self.is_exempt,
            'discount_percentage': float(self.discount_percentage) if self.discount_percentage is not None else None,
            'sales_percentage': float(self.sales_percentage) if self.sales_percentage is not None else None,
        }

    def __repr__(self):
        return f"<PurchaseOrderItem(id={self.id}, material='{self.material_name}', price={self.unit_price})>"
