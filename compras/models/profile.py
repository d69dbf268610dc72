"""Profile model - the user acting inside an account."""
from sqlalchemy import Column, BigInteger, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from compras.database import Base, BigIntPK


class Profile(Base):
    """
    User profile (perfil).

    Identity is managed by an external provider; this row only carries the
    data shown in audit entries and document headers.
    """

    __tablename__ = 'profile'
    __table_args__ = (
        UniqueConstraint('account_id', 'email', name='uq_profile_account_email'),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    account_id = Column(BigInteger, ForeignKey('account.id'), nullable=False, index=True)
    email = Column(String(255), nullable=False)
    username = Column(String(80), nullable=True)  # Stored lowercase
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    role = Column(String(20), nullable=False, default='user')
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    account = relationship('Account')

    @property
    def full_name(self):
        parts = [p for p in (self.first_name, self.last_name) if p]
        return ' '.join(parts) or self.email

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'username': self.username,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'full_name': self.full_name,
            'role': self.role,
        }

    def __repr__(self):
        return f"<Profile(id={self.id}, email='{self.email}')>"
