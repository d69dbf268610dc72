"""QuoteRequest models (solicitudes de cotización)."""
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from compras.database import Base, BigIntPK
from compras.models.document_status import DocumentStatus


class QuoteRequest(Base):
    """
    Quote Request (Solicitud de Cotización).

    Sent to a supplier to ask for prices. Lifecycle: Draft -> Sent ->
    Approved (terminal) or Archived (back to Draft via unarchive). Only
    archived requests may be deleted.
    """

    __tablename__ = 'quote_request'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    account_id = Column(BigInteger, ForeignKey('account.id'), nullable=False, index=True)
    supplier_id = Column(BigInteger, ForeignKey('supplier.id'), nullable=False, index=True)
    company_id = Column(BigInteger, ForeignKey('company.id'), nullable=False)
    currency = Column(String(3), nullable=False, default='USD')
    exchange_rate = Column(Numeric(14, 4), nullable=True)
    status = Column(String(20), nullable=False, default=DocumentStatus.DRAFT.value)
    created_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    supplier = relationship('Supplier')
    company = relationship('Company')
    items = relationship(
        'QuoteRequestItem',
        back_populates='quote_request',
        cascade='all, delete-orphan',
        order_by='QuoteRequestItem.position'
    )

    def to_dict(self, include_items=True):
        data = {
            'id': self.id,
            'supplier_id': self.supplier_id,
            'supplier_name': self.supplier.name if self.supplier else None,
            'company_id': self.company_id,
            'company_name': self.company.name if self.company else None,
            'currency': self.currency,
            'exchange_rate': float(self.exchange_rate) if self.exchange_rate is not None else None,
            'status': self.status,
            'created_by': self.created_by,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if include_items:
            data['items'] = [item.to_dict() for item in self.items]
        return data

    def __repr__(self):
        return f"<QuoteRequest(id={self.id}, supplier_id={self.supplier_id}, status='{self.status}')>"


class QuoteRequestItem(Base):
    """Quote Request line (material requested, no price)."""

    __tablename__ = 'quote_request_item'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    request_id = Column(BigInteger, ForeignKey('quote_request.id'), nullable=False, index=True)
    material_id = Column(BigInteger, ForeignKey('material.id'), nullable=True)
    position = Column(Integer, nullable=False, default=0)
    material_name = Column(String(255), nullable=False)
    quantity = Column(Numeric(12, 3), nullable=False)
    unit = Column(String(20), nullable=True)
    description = Column(Text, nullable=True)

    quote_request = relationship('QuoteRequest', back_populates='items')

    def to_dict(self):
        return {
            'id': self.id,
            'material_id': self.material_id,
            'material_name': self.material_name,
            'quantity': float(self.quantity),
            'unit': self.unit,
            'description': self.description,
        }

    def __repr__(self):
        return f"<QuoteRequestItem(id={self.id}, material='{self.material_name}', qty={self.quantity})>"
