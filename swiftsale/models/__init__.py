"""Models package - storage keys, the substrate table and status codes."""
from swiftsale.models.collections import Collections, INITIALIZED_KEY, SEQUENCE_PREFIX
from swiftsale.models.kv_entry import KeyValueEntry
from swiftsale.models.sale import SaleStatus, PaymentStatus, PaymentType

__all__ = [
    'Collections', 'INITIALIZED_KEY', 'SEQUENCE_PREFIX',
    'KeyValueEntry',
    'SaleStatus', 'PaymentStatus', 'PaymentType',
]
