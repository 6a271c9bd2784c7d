"""Custom exceptions for the SwiftSale application."""


def _fmt_qty(value):
    """Render a quantity without trailing zeros (5, 2.5)."""
    try:
        if float(value) % 1 == 0:
            return f"{int(value)}"
        return f"{float(value):.2f}".rstrip('0').rstrip('.')
    except (TypeError, ValueError):
        return str(value)


class SwiftSaleError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        rv['error'] = type(self).__name__
        return rv


class ValidationError(SwiftSaleError):
    """Exception raised for invalid input (fix the request and retry)."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class EmptySaleError(ValidationError):
    """Raised when a sale is submitted without line items."""
    def __init__(self, message="A sale needs at least one item"):
        super().__init__(message)


class InvalidTotalError(ValidationError):
    """Raised when the grand total is missing, non-positive or inconsistent."""
    def __init__(self, grand_total=None, message=None, expected=None):
        if message is None:
            message = f"Invalid grand total: {grand_total}"
        payload = {'grand_total': grand_total}
        if expected is not None:
            payload['expected'] = expected
        super().__init__(message, payload=payload)
        self.grand_total = grand_total
        self.expected = expected


class InsufficientStockError(ValidationError):
    """Raised when an operation fails due to lack of stock."""
    def __init__(self, product_id, available, requested, product_name=None):
        label = product_name or f"product {product_id}"
        message = (
            f"Insufficient stock for {label}. "
            f"Available: {_fmt_qty(available)}, Requested: {_fmt_qty(requested)}"
        )
        super().__init__(message, status_code=409, payload={
            'product_id': product_id,
            'available': available,
            'requested': requested,
        })
        self.product_id = product_id
        self.available = available
        self.requested = requested


class NotFoundError(SwiftSaleError):
    """Exception raised when a resource is not found."""
    def __init__(self, collection=None, operation=None, message=None, payload=None):
        if message is None:
            message = f"Record not found in {collection} ({operation})" if collection else "Resource not found"
        body = {'collection': collection, 'operation': operation}
        body.update(payload or {})
        super().__init__(message, 404, body)
        self.collection = collection
        self.operation = operation


class ProductNotFoundError(NotFoundError):
    """Raised when a referenced product is missing from the catalog."""
    def __init__(self, product_id):
        super().__init__(
            'products', 'get_by_id',
            message=f"Product {product_id} not found",
            payload={'product_id': product_id},
        )
        self.product_id = product_id


class SaleNotFoundError(NotFoundError):
    """Raised when a sale header does not exist."""
    def __init__(self, sale_id):
        super().__init__(
            'sales', 'get_by_id',
            message=f"Sale {sale_id} not found",
            payload={'sale_id': sale_id},
        )
        self.sale_id = sale_id


class CustomerNotFoundError(NotFoundError):
    """Raised when a customer does not exist."""
    def __init__(self, customer_id):
        super().__init__(
            'customers', 'get_by_id',
            message=f"Customer {customer_id} not found",
            payload={'customer_id': customer_id},
        )
        self.customer_id = customer_id


class StoreError(SwiftSaleError):
    """Raised when the document store fails to persist a collection."""
    def __init__(self, collection, operation, message=None):
        if message is None:
            message = f"Failed to {operation} {collection}"
        super().__init__(message, 500, {'collection': collection, 'operation': operation})
        self.collection = collection
        self.operation = operation


class AuthenticationError(SwiftSaleError):
    """Raised when credentials do not match a user."""
    def __init__(self, message="Invalid email or password"):
        super().__init__(message, 401)
