"""Per-account counters (purchase order numbering)."""
from sqlalchemy import Column, BigInteger, Integer, String, ForeignKey, UniqueConstraint
from compras.database import Base, BigIntPK


PURCHASE_ORDER_SEQUENCE = 'purchase_order'


class AccountSequence(Base):
    """Last value handed out for a named sequence in an account."""

    __tablename__ = 'account_sequence'
    __table_args__ = (
        UniqueConstraint('account_id', 'name', name='uq_account_sequence_name'),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    account_id = Column(BigInteger, ForeignKey('account.id'), nullable=False)
    name = Column(String(50), nullable=False)
    last_value = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<AccountSequence(account_id={self.account_id}, name='{self.name}', last_value={self.last_value})>"
