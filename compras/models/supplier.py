"""Supplier model."""
import enum
from sqlalchemy import Column, BigInteger, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from compras.database import Base, BigIntPK
from compras.models.payment_terms import from_columns


class SupplierStatus(enum.Enum):
    """Supplier status enum."""
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class Supplier(Base):
    """
    Supplier (proveedor).

    code is generated per account (P001, P002, ...) when not supplied.
    Saving a supplier as Inactive archives its open quote requests and
    purchase orders.
    """

    __tablename__ = 'supplier'
    __table_args__ = (
        UniqueConstraint('account_id', 'code', name='uq_supplier_account_code'),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    account_id = Column(BigInteger, ForeignKey('account.id'), nullable=False, index=True)
    code = Column(String(20), nullable=False)
    rif = Column(String(20), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    phone_2 = Column(String(50), nullable=True)
    instagram = Column(String(100), nullable=True)
    address = Column(Text, nullable=True)
    payment_terms = Column(String(20), nullable=False, default='Contado')
    custom_payment_terms = Column(String(255), nullable=True)
    credit_days = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=SupplierStatus.ACTIVE.value)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    account = relationship('Account')
    materials = relationship('SupplierMaterial', back_populates='supplier', cascade='all, delete-orphan')

    @property
    def terms(self):
        """Payment terms as a tagged value (Contado / Credito / Otro)."""
        return from_columns(self.payment_terms, self.custom_payment_terms, self.credit_days)

    @property
    def is_active(self):
        return self.status == SupplierStatus.ACTIVE.value

    def to_dict(self, include_materials=False):
        data = {
            'id': self.id,
            'code': self.code,
            'rif': self.rif,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'phone_2': self.phone_2,
            'instagram': self.instagram,
            'address': self.address,
            'payment_terms': self.payment_terms,
            'custom_payment_terms': self.custom_payment_terms,
            'credit_days': self.credit_days,
            'status': self.status,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if include_materials:
            data['materials'] = [sm.to_dict() for sm in self.materials]
        return data

    def __repr__(self):
        return f"<Supplier(id={self.id}, code='{self.code}', name='{self.name}')>"
