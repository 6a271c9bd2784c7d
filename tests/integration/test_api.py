"""
Integration tests for the JSON API.
"""

import pytest

from swiftsale.models import Collections


@pytest.fixture
def catalog(app):
    """Two products in one category, created through the app's services."""
    products = app.extensions['product_service']
    category = products.add_category('Peripherals')
    mouse = products.add_product({
        'name': 'Mouse', 'code': 'MS01', 'price': 25.0, 'stock_quantity': 10,
        'min_stock': 2, 'category_id': category['id'],
    })
    cable = products.add_product({
        'name': 'Cable', 'code': 'CB01', 'price': 5.0, 'stock_quantity': 3, 'min_stock': 1,
    })
    return {'category': category, 'mouse': mouse, 'cable': cable}


class TestAuthentication:
    """Test session login for the API."""

    def test_api_requires_login(self, client):
        """Anonymous requests get a JSON 401."""
        response = client.get('/api/products')

        assert response.status_code == 401
        assert response.get_json()['status'] == 'error'

    def test_login_and_logout(self, client, app_user):
        response = client.post('/auth/login', json={'email': 'cashier@test.com', 'password': 'password123'})

        assert response.status_code == 200
        assert response.get_json()['user']['email'] == 'cashier@test.com'
        assert 'password_hash' not in response.get_json()['user']
        assert client.get('/api/products').status_code == 200
        assert client.get('/auth/me').get_json()['user']['id'] == app_user['id']

        client.post('/auth/logout')
        assert client.get('/api/products').status_code == 401

    def test_login_with_wrong_password(self, client, app_user):
        response = client.post('/auth/login', json={'email': 'cashier@test.com', 'password': 'nope'})

        assert response.status_code == 401
        assert response.get_json()['error'] == 'AuthenticationError'

    def test_login_without_body(self, client):
        response = client.post('/auth/login', data='not json', content_type='text/plain')
        assert response.status_code == 400

    def test_login_not_required_when_disabled(self, app, client):
        app.config['LOGIN_REQUIRED'] = False
        assert client.get('/api/dashboard/stats').status_code == 200


class TestCatalogApi:
    """Test product endpoints."""

    def test_list_products(self, authenticated_client, catalog):
        response = authenticated_client.get('/api/products?page=1&page_size=1')

        body = response.get_json()
        assert response.status_code == 200
        assert [p['name'] for p in body['data']] == ['Cable']
        assert body['meta'] == {'current_page': 1, 'last_page': 2, 'per_page': 1, 'total': 2}

    def test_filter_by_category(self, authenticated_client, catalog):
        category_id = catalog['category']['id']
        body = authenticated_client.get(f'/api/products?category_id={category_id}').get_json()

        assert [p['name'] for p in body['data']] == ['Mouse']
        assert body['data'][0]['category']['name'] == 'Peripherals'

    def test_bad_query_argument(self, authenticated_client):
        response = authenticated_client.get('/api/products?page=two')

        assert response.status_code == 400
        assert response.get_json()['field'] == 'page'

    def test_create_product_uses_low_stock_threshold(self, app, authenticated_client):
        response = authenticated_client.post('/api/products', json={'name': 'Dock', 'price': 80})

        assert response.status_code == 201
        assert response.get_json()['min_stock'] == app.config['LOW_STOCK_THRESHOLD']

    def test_set_stock(self, authenticated_client, catalog):
        url = f"/api/products/{catalog['cable']['id']}/stock"

        assert authenticated_client.put(url, json={'stock_quantity': 40}).get_json()['stock_quantity'] == 40
        assert authenticated_client.put(url, json={}).status_code == 400
        assert authenticated_client.put(url, json={'stock_quantity': -1}).status_code == 400

    def test_missing_product(self, authenticated_client):
        response = authenticated_client.get('/api/products/999')

        assert response.status_code == 404
        assert response.get_json()['error'] == 'ProductNotFoundError'

    def test_delete_hides_product(self, authenticated_client, catalog):
        product_id = catalog['mouse']['id']
        assert authenticated_client.delete(f'/api/products/{product_id}').status_code == 200

        names = [p['name'] for p in authenticated_client.get('/api/products').get_json()['data']]
        assert names == ['Cable']


class TestSalesApi:
    """Test checkout and history endpoints."""

    def test_create_sale(self, authenticated_client, app_store, catalog, sale_request):
        request = sale_request([(catalog['mouse'], 2), (catalog['cable'], 1)], received_amount=60)

        response = authenticated_client.post('/api/sales', json=request)

        sale = response.get_json()
        assert response.status_code == 201
        assert sale['grand_total'] == 55.0
        assert sale['change_amount'] == 5.0
        assert [i['product']['code'] for i in sale['sale_items']] == ['MS01', 'CB01']
        assert app_store.get_by_id(Collections.PRODUCTS, catalog['mouse']['id'])['stock_quantity'] == 8

        fetched = authenticated_client.get(f"/api/sales/{sale['id']}").get_json()
        assert fetched == sale

    def test_insufficient_stock_is_conflict(self, authenticated_client, app_store, catalog, sale_request):
        response = authenticated_client.post('/api/sales', json=sale_request([(catalog['cable'], 4)]))

        body = response.get_json()
        assert response.status_code == 409
        assert body['error'] == 'InsufficientStockError'
        assert body['message'] == 'Insufficient stock for Cable. Available: 3, Requested: 4'
        assert body['available'] == 3
        assert app_store.get_all(Collections.SALES) == []

    def test_empty_sale(self, authenticated_client):
        response = authenticated_client.post('/api/sales', json={'sale_items': [], 'grand_total': 10})

        assert response.status_code == 400
        assert response.get_json()['error'] == 'EmptySaleError'

    def test_unknown_sale_status_is_bad_request(self, authenticated_client, app_store, catalog, sale_request):
        response = authenticated_client.post('/api/sales', json=sale_request([(catalog['mouse'], 1)], status='completed'))

        body = response.get_json()
        assert response.status_code == 400
        assert body['error'] == 'ValidationError'
        assert body['field'] == 'status'
        assert app_store.get_all(Collections.SALES) == []

    def test_list_sales(self, authenticated_client, catalog, sale_request):
        authenticated_client.post('/api/sales', json=sale_request([(catalog['mouse'], 1)]))
        authenticated_client.post('/api/sales', json=sale_request([(catalog['mouse'], 1), (catalog['cable'], 1)]))

        body = authenticated_client.get('/api/sales').get_json()

        assert [s['items_count'] for s in body['data']] == [2, 1]
        assert body['meta']['total'] == 2

    def test_list_sales_bad_date(self, authenticated_client):
        response = authenticated_client.get('/api/sales?start_date=someday')
        assert response.status_code == 400

    def test_missing_sale(self, authenticated_client):
        response = authenticated_client.get('/api/sales/77')

        assert response.status_code == 404
        assert response.get_json()['error'] == 'SaleNotFoundError'


class TestDashboardAndCustomersApi:
    """Test dashboard and customer endpoints."""

    def test_dashboard_stats(self, authenticated_client, catalog, sale_request):
        authenticated_client.post('/api/sales', json=sale_request([(catalog['cable'], 2)]))

        stats = authenticated_client.get('/api/dashboard/stats').get_json()

        assert stats['todaySales'] == 10.0
        assert stats['totalRevenue'] == 10.0
        assert stats['totalSales'] == 1
        assert stats['lowStockProducts'] == 1

    def test_low_stock_list(self, authenticated_client, catalog, sale_request):
        authenticated_client.post('/api/sales', json=sale_request([(catalog['cable'], 3)]))

        names = [p['name'] for p in authenticated_client.get('/api/dashboard/low-stock').get_json()]
        assert names == ['Cable']

    def test_customer_crud(self, authenticated_client):
        created = authenticated_client.post('/api/customers', json={'name': 'Jane Roe', 'email': 'jane@example.com'})
        customer_id = created.get_json()['id']

        assert created.status_code == 201
        assert authenticated_client.get('/api/customers?search=roe').get_json()[0]['id'] == customer_id
        updated = authenticated_client.put(f'/api/customers/{customer_id}', json={'phone': '555-1234'})
        assert updated.get_json()['phone'] == '555-1234'
        assert authenticated_client.delete(f'/api/customers/{customer_id}').status_code == 200
        assert authenticated_client.get(f'/api/customers/{customer_id}').status_code == 404

    def test_customer_name_required(self, authenticated_client):
        response = authenticated_client.post('/api/customers', json={'email': 'x@example.com'})
        assert response.status_code == 400

    def test_settings_update_and_read(self, authenticated_client):
        response = authenticated_client.put('/api/settings', json={'currency': 'EUR', 'tax_rate': '21'})

        assert response.status_code == 200
        assert response.get_json() == {'currency': 'EUR', 'tax_rate': '21'}
        assert authenticated_client.get('/api/settings').get_json()['currency'] == 'EUR'

    def test_settings_require_object_body(self, authenticated_client):
        response = authenticated_client.put('/api/settings', json=['currency'])
        assert response.status_code == 400

    def test_unknown_route_is_json(self, authenticated_client):
        response = authenticated_client.get('/api/nothing-here')

        assert response.status_code == 404
        assert response.get_json() == {'status': 'error', 'message': 'Not Found'}
