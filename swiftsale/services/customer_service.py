"""Customer service: search and maintenance of the customers collection."""
import logging
from typing import Any, Dict, List

from swiftsale.exceptions import CustomerNotFoundError, ValidationError
from swiftsale.models import Collections

logger = logging.getLogger(__name__)

CUSTOMER_FIELDS = ('name', 'email', 'phone', 'address')


def _clean(data: Dict[str, Any]) -> Dict[str, Any]:
    """Keep known fields, strip strings and turn blanks into None."""
    cleaned = {}
    for field in CUSTOMER_FIELDS:
        if field in data:
            value = data[field]
            if isinstance(value, str):
                value = value.strip() or None
            cleaned[field] = value
    return cleaned


def get_customers(store, search: str = '') -> List[Dict[str, Any]]:
    """All customers sorted by name, optionally filtered on name/email/phone."""
    customers = store.get_all(Collections.CUSTOMERS)
    if search:
        customers = store.query(Collections.CUSTOMERS, search=search, search_fields=('name', 'email', 'phone'))
    return sorted(customers, key=lambda c: str(c.get('name') or '').lower())


def get_customer(store, customer_id: int) -> Dict[str, Any]:
    customer = store.get_by_id(Collections.CUSTOMERS, customer_id)
    if customer is None:
        raise CustomerNotFoundError(customer_id)
    return customer


def create_customer(store, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create a customer.

    Raises:
        ValidationError: If the name is missing
    """
    fields = _clean(data)
    if not fields.get('name'):
        raise ValidationError('Customer name is required', payload={'field': 'name'})
    customer = store.insert(Collections.CUSTOMERS, fields)
    logger.info(f"Customer #{customer['id']} created")
    return customer


def update_customer(store, customer_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    fields = _clean(data)
    if 'name' in fields and not fields['name']:
        raise ValidationError('Customer name is required', payload={'field': 'name'})
    with store.transaction():
        get_customer(store, customer_id)
        return store.update(Collections.CUSTOMERS, fields, 'id', customer_id)


def delete_customer(store, customer_id: int) -> bool:
    """Hard delete. Sales keep their customer_id and resolve it to None afterwards."""
    with store.transaction():
        get_customer(store, customer_id)
        store.delete(Collections.CUSTOMERS, 'id', customer_id)
    logger.info(f"Customer #{customer_id} deleted")
    return True
