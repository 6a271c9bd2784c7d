"""
Activity logging sink for store and sale operations.

Receives ``(category, operation, data, error)`` tuples from the core and
writes them through the ``swiftsale.activity`` logger. Failures inside the
sink never break business logic.
"""
import logging
from collections import deque

logger = logging.getLogger('swiftsale.activity')

# Log categories
DATABASE = 'DATABASE'
PRODUCTS = 'PRODUCTS'
SALES = 'SALES'
CUSTOMERS = 'CUSTOMERS'
AUTH = 'AUTH'
INIT = 'INIT'

SENSITIVE_FIELDS = ('password', 'password_hash', 'token', 'secret')
MAX_STRING_LENGTH = 200


def sanitize(data):
    """Hide sensitive fields and truncate long strings."""
    if not data:
        return None
    sanitized = dict(data)
    for field in SENSITIVE_FIELDS:
        if sanitized.get(field):
            sanitized[field] = '***HIDDEN***'
    for key, value in sanitized.items():
        if isinstance(value, str) and len(value) > MAX_STRING_LENGTH:
            sanitized[key] = value[:MAX_STRING_LENGTH] + '...'
    return sanitized


class ActivityLog:
    """Logging sink that also keeps the most recent entries in memory."""

    def __init__(self, max_entries=1000):
        self.entries = deque(maxlen=max_entries)

    def log(self, category, operation, data=None, error=None):
        try:
            entry = {
                'category': category,
                'operation': operation,
                'data': sanitize(data),
                'error': str(error) if error else None,
            }
            self.entries.append(entry)
            if error:
                logger.error(f"[{category}] {operation} {entry['data']}: {error}")
            else:
                logger.debug(f"[{category}] {operation} {entry['data']}")
        except Exception as e:
            logger.warning(f"Failed to record activity {operation}: {e}")

    def recent(self, category=None, limit=50):
        """Most recent entries, newest first."""
        entries = [e for e in reversed(self.entries) if category is None or e['category'] == category]
        return entries[:limit]

    def clear(self):
        self.entries.clear()


class NullActivityLog:
    """No-op sink."""

    def log(self, category, operation, data=None, error=None):
        pass
