"""
Audit Log model for tracking every mutating action in the system.
"""
from sqlalchemy import Column, BigInteger, String, Text, DateTime, ForeignKey, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from compras.database import Base, BigIntPK


class AuditAction(enum.Enum):
    """Enumeration of auditable actions."""
    # Suppliers
    CREATE_SUPPLIER = "CREATE_SUPPLIER"
    UPDATE_SUPPLIER = "UPDATE_SUPPLIER"
    DELETE_SUPPLIER = "DELETE_SUPPLIER"
    CREATE_SUPPLIER_MATERIAL = "CREATE_SUPPLIER_MATERIAL"

    # Materials
    CREATE_MATERIAL = "CREATE_MATERIAL"
    UPDATE_MATERIAL = "UPDATE_MATERIAL"
    DELETE_MATERIAL = "DELETE_MATERIAL"

    # Companies
    CREATE_COMPANY = "CREATE_COMPANY"
    UPDATE_COMPANY = "UPDATE_COMPANY"
    DELETE_COMPANY = "DELETE_COMPANY"

    # Quote requests
    CREATE_QUOTE_REQUEST = "CREATE_QUOTE_REQUEST"
    UPDATE_QUOTE_REQUEST = "UPDATE_QUOTE_REQUEST"
    UPDATE_QUOTE_REQUEST_STATUS = "UPDATE_QUOTE_REQUEST_STATUS"
    BULK_ARCHIVE_QUOTE_REQUESTS = "BULK_ARCHIVE_QUOTE_REQUESTS"
    DELETE_QUOTE_REQUEST = "DELETE_QUOTE_REQUEST"

    # Purchase orders
    CREATE_PURCHASE_ORDER = "CREATE_PURCHASE_ORDER"
    UPDATE_PURCHASE_ORDER = "UPDATE_PURCHASE_ORDER"
    UPDATE_PURCHASE_ORDER_STATUS = "UPDATE_PURCHASE_ORDER_STATUS"
    BULK_ARCHIVE_PURCHASE_ORDERS = "BULK_ARCHIVE_PURCHASE_ORDERS"
    DELETE_PURCHASE_ORDER = "DELETE_PURCHASE_ORDER"

    # Quote comparisons
    CREATE_QUOTE_COMPARISON = "CREATE_QUOTE_COMPARISON"
    UPDATE_QUOTE_COMPARISON = "UPDATE_QUOTE_COMPARISON"
    DELETE_QUOTE_COMPARISON = "DELETE_QUOTE_COMPARISON"

    # Technical sheets
    UPLOAD_FICHA_TECNICA = "UPLOAD_FICHA_TECNICA"
    DELETE_FICHA_TECNICA = "DELETE_FICHA_TECNICA"

    # Profile
    UPDATE_PROFILE = "UPDATE_PROFILE"

    # Administration
    BULK_UPLOAD = "BULK_UPLOAD"
    DELETE_ALL_DATA = "DELETE_ALL_DATA"
    RESET_DATA_AND_SEQUENCES = "RESET_DATA_AND_SEQUENCES"
    SET_PO_SEQUENCE = "SET_PO_SEQUENCE"


class AuditLog(Base):
    """
    Audit log entry. Append-only.
    Multi-account: filtered by account_id.
    """
    __tablename__ = 'audit_log'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    account_id = Column(BigInteger, ForeignKey('account.id'), nullable=False, index=True)
    action = Column(SQLEnum(AuditAction), nullable=False, index=True)
    table_name = Column(String(50))  # e.g., 'supplier', 'purchase_order'
    record_id = Column(BigInteger)  # ID of the affected record
    description = Column(Text)
    details = Column(JSON)
    user_id = Column(BigInteger, nullable=True)
    user_email = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    account = relationship('Account')

    def to_dict(self):
        return {
            'id': self.id,
            'action': self.action.value,
            'table_name': self.table_name,
            'record_id': self.record_id,
            'description': self.description,
            'details': self.details,
            'user_email': self.user_email,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<AuditLog {self.action.value} by {self.user_email} at {self.created_at}>"
