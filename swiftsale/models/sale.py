"""Sale status codes stored on sale records."""
import enum


class SaleStatus(enum.IntEnum):
    """Sale status enum."""
    COMPLETED = 1
    PENDING = 2
    CANCELLED = 3


class PaymentStatus(enum.IntEnum):
    """Payment status enum."""
    PAID = 1
    PARTIAL = 2
    UNPAID = 3


class PaymentType(str, enum.Enum):
    """Payment types accepted at checkout."""
    CASH = 'cash'
    CARD = 'card'
    TRANSFER = 'transfer'
    OTHER = 'other'
