"""SupplierMaterial model - which supplier offers which material."""
from sqlalchemy import Column, BigInteger, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from compras.database import Base, BigIntPK


class SupplierMaterial(Base):
    """Supplier/material pair with a free-text specification."""

    __tablename__ = 'supplier_material'
    __table_args__ = (
        UniqueConstraint('supplier_id', 'material_id', name='uq_supplier_material'),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    account_id = Column(BigInteger, ForeignKey('account.id'), nullable=False, index=True)
    supplier_id = Column(BigInteger, ForeignKey('supplier.id'), nullable=False)
    material_id = Column(BigInteger, ForeignKey('material.id'), nullable=False)
    specification = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    supplier = relationship('Supplier', back_populates='materials')
    material = relationship('Material', back_populates='suppliers')

    def to_dict(self):
        return {
            'id': self.id,
            'supplier_id': self.supplier_id,
            'material_id': self.material_id,
            'specification': self.specification,
            'material': self.material.to_dict() if self.material else None,
        }

    def __repr__(self):
        return f"<SupplierMaterial(supplier_id={self.supplier_id}, material_id={self.material_id})>"
