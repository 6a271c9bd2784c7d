import pytest
from datetime import datetime, timedelta

from swiftsale import create_app
from swiftsale.database import make_engine, make_session_factory
from swiftsale.models import Collections
from swiftsale.services.activity_log import ActivityLog
from swiftsale.services.auth_service import create_user
from swiftsale.services.document_store import DocumentStore
from swiftsale.services.product_service import ProductService
from swiftsale.services.sales_service import SaleService


class FrozenClock:
    """Callable clock for deterministic created_at values."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture(scope='function')
def clock():
    return FrozenClock(datetime(2026, 3, 14, 10, 30, 0))


@pytest.fixture(scope='function')
def engine():
    engine = make_engine('sqlite://')
    yield engine
    engine.dispose()


@pytest.fixture(scope='function')
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture(scope='function')
def activity():
    return ActivityLog()


@pytest.fixture(scope='function')
def store(session_factory, activity, clock):
    """Fresh, initialized document store on an in-memory database."""
    store = DocumentStore(session_factory, activity=activity, clock=clock)
    store.initialize()
    return store


@pytest.fixture(scope='function')
def product_service(store, activity):
    return ProductService(store, activity=activity)


@pytest.fixture(scope='function')
def sale_service(store, product_service, activity):
    return SaleService(store, products=product_service, activity=activity)


@pytest.fixture(scope='function')
def category(store):
    return store.insert(Collections.CATEGORIES, {'name': 'Electronics', 'description': 'Gadgets'})


@pytest.fixture(scope='function')
def brand(store):
    return store.insert(Collections.BRANDS, {'name': 'Acme', 'description': 'Acme Corp'})


@pytest.fixture(scope='function')
def make_product(product_service):
    """Factory for catalog products."""
    def _make(name='Widget', stock=10, price=10.0, min_stock=2, **extra):
        fields = {
            'name': name,
            'code': extra.pop('code', name.upper().replace(' ', '')[:8]),
            'price': price,
            'cost': round(price * 0.6, 2),
            'stock_quantity': stock,
            'min_stock': min_stock,
        }
        fields.update(extra)
        return product_service.add_product(fields)
    return _make


@pytest.fixture(scope='function')
def customer(store):
    return store.insert(Collections.CUSTOMERS, {
        'name': 'John Doe',
        'email': 'john.doe@example.com',
        'phone': '+1 (555) 123-4567',
    })


def build_sale_request(lines, customer_id=None, discount=0, tax_rate=0, shipping=0, received_amount=None, **extra):
    """Build a SaleRequest from (product, quantity) pairs with consistent totals."""
    sale_items = [
        {
            'product_id': product['id'],
            'quantity': quantity,
            'price': product['price'],
            'total': round(product['price'] * quantity, 2),
        }
        for product, quantity in lines
    ]
    subtotal = round(sum(item['total'] for item in sale_items), 2)
    discount_amount = subtotal * discount / 100
    taxable = subtotal - discount_amount
    tax_amount = round(taxable * tax_rate / 100, 2)
    request = {
        'customer_id': customer_id,
        'sale_items': sale_items,
        'subtotal': subtotal,
        'discount': discount,
        'tax_rate': tax_rate,
        'tax_amount': tax_amount,
        'shipping': shipping,
        'grand_total': round(taxable + tax_amount + shipping, 2),
        'payment_type': 'cash',
        'payment_status': 1,
        'status': 1,
        'note': '',
    }
    if received_amount is not None:
        request['received_amount'] = received_amount
    request.update(extra)
    return request


@pytest.fixture(scope='function')
def sale_request():
    return build_sale_request


# ----------------------------------------------------------------------
# Flask application
# ----------------------------------------------------------------------

@pytest.fixture(scope='function')
def app():
    """Create application instance for testing (fresh in-memory database)."""
    app = create_app('config.TestingConfig')
    return app


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def app_store(app):
    return app.extensions['store']


@pytest.fixture(scope='function')
def app_user(app_store):
    return create_user(app_store, 'Cashier One', 'cashier@test.com', 'password123', role='cashier')


@pytest.fixture(scope='function')
def authenticated_client(client, app_user):
    """Create authenticated client."""
    with client.session_transaction() as sess:
        sess['user_id'] = app_user['id']
    return client
