"""Models package - exports all SQLAlchemy models."""
# Core
from compras.models.account import Account
from compras.models.profile import Profile
from compras.models.account_sequence import AccountSequence, PURCHASE_ORDER_SEQUENCE

# Catalog
from compras.models.supplier import Supplier, SupplierStatus
from compras.models.material import Material, MATERIAL_CATEGORIES, MATERIAL_UNITS
from compras.models.supplier_material import SupplierMaterial
from compras.models.company import Company

# Documents
from compras.models.document_status import DocumentStatus, Currency
from compras.models.quote_request import QuoteRequest, QuoteRequestItem
from compras.models.purchase_order import PurchaseOrder, PurchaseOrderItem
from compras.models.price_history import PriceHistory
from compras.models.quote_comparison import QuoteComparison, QuoteComparisonItem
from compras.models.ficha_tecnica import FichaTecnica

from compras.models.audit_log import AuditLog, AuditAction

__all__ = [
    'Account', 'Profile', 'AccountSequence', 'PURCHASE_ORDER_SEQUENCE',
    'Supplier', 'SupplierStatus', 'Material', 'MATERIAL_CATEGORIES', 'MATERIAL_UNITS',
    'SupplierMaterial', 'Company',
    'DocumentStatus', 'Currency',
    'QuoteRequest', 'QuoteRequestItem', 'PurchaseOrder', 'PurchaseOrderItem',
    'PriceHistory', 'QuoteComparison', 'QuoteComparisonItem', 'FichaTecnica',
    'AuditLog', 'AuditAction',
]
