"""Material model."""
from sqlalchemy import Column, BigInteger, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from compras.database import Base, BigIntPK


MATERIAL_CATEGORIES = [
    'SECA', 'FRESCA', 'EMPAQUE', 'FERRETERIA Y CONSTRUCCION', 'AGROPECUARIA',
    'GASES Y COMBUSTIBLE', 'ELECTRICIDAD', 'REFRIGERACION', 'INSUMOS DE OFICINA',
    'INSUMOS INDUSTRIALES', 'MECANICA Y SELLOS', 'NEUMATICA', 'INSUMOS DE LIMPIEZA',
    'FUMICACION', 'EQUIPOS DE CARNICERIA', 'FARMACIA', 'MEDICION Y MANIPULACION',
    'ENCERADOS',
]

MATERIAL_UNITS = [
    'KG', 'LT', 'ROL', 'PAQ', 'SACO', 'GAL', 'UND', 'MT', 'RESMA', 'PZA', 'TAMB', 'MILL', 'CAJA',
]


class Material(Base):
    """
    Material (insumo).

    name is stored uppercase; code is generated per account (MT001, ...).
    """

    __tablename__ = 'material'
    __table_args__ = (
        UniqueConstraint('account_id', 'code', name='uq_material_account_code'),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    account_id = Column(BigInteger, ForeignKey('account.id'), nullable=False, index=True)
    code = Column(String(20), nullable=False)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True)
    unit = Column(String(20), nullable=True)
    is_exempt = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    account = relationship('Account')
    suppliers = relationship('SupplierMaterial', back_populates='material', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'category': self.category,
            'unit': self.unit,
            'is_exempt': self.is_exempt,
        }

    def __repr__(self):
        return f"<Material(id={self.id}, code='{self.code}', name='{self.name}')>"
