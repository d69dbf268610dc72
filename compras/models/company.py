"""Company model - the buying company printed on documents."""
from sqlalchemy import Column, BigInteger, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from compras.database import Base, BigIntPK


class Company(Base):
    """Company (empresa)."""

    __tablename__ = 'company'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    account_id = Column(BigInteger, ForeignKey('account.id'), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    rif = Column(String(20), nullable=False)
    logo_url = Column(String(500), nullable=True)
    address = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    fiscal_data = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    account = relationship('Account')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'rif': self.rif,
            'logo_url': self.logo_url,
            'address': self.address,
            'phone': self.phone,
            'email': self.email,
            'fiscal_data': self.fiscal_data,
        }

    def __repr__(self):
        return f"<Company(id={self.id}, name='{self.name}')>"
