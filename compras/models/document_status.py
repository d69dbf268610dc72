"""Status values shared by quote requests and purchase orders."""
import enum


class DocumentStatus(enum.Enum):
    """Document status enum."""
    DRAFT = "Draft"
    SENT = "Sent"
    APPROVED = "Approved"
    REJECTED = "Rejected"  # Purchase orders only
    ARCHIVED = "Archived"


class Currency(enum.Enum):
    """Document currency."""
    USD = "USD"
    VES = "VES"
