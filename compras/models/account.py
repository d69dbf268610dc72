"""Account model - the owner of every procurement record."""
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.sql import func
from compras.database import Base, BigIntPK


class Account(Base):
    """Account model - each business/organization."""

    __tablename__ = 'account'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    slug = Column(String(80), nullable=False, unique=True)  # URL-safe identifier
    name = Column(String(200), nullable=False)  # Display name
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Account(id={self.id}, slug='{self.slug}', name='{self.name}')>"
