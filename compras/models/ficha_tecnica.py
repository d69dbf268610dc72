"""FichaTecnica model - metadata of a technical sheet kept in object storage."""
from sqlalchemy import Column, BigInteger, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from compras.database import Base, BigIntPK


class FichaTecnica(Base):
    """Technical sheet (ficha técnica) for a supplier/product pair."""

    __tablename__ = 'ficha_tecnica'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    account_id = Column(BigInteger, ForeignKey('account.id'), nullable=False, index=True)
    supplier_id = Column(BigInteger, ForeignKey('supplier.id'), nullable=False, index=True)
    product_name = Column(String(255), nullable=False)
    storage_url = Column(String(1000), nullable=False)
    original_filename = Column(String(255), nullable=True)
    mime_type = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    supplier = relationship('Supplier')

    def to_dict(self):
        return {
            'id': self.id,
            'supplier_id': self.supplier_id,
            'supplier_name': self.supplier.name if self.supplier else None,
            'product_name': self.product_name,
            'storage_url': self.storage_url,
            'original_filename': self.original_filename,
            'mime_type': self.mime_type,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
