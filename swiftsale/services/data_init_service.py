"""
Sample data bootstrap.

Seeds categories, brands, products, customers, settings and the default
admin user into an empty store. Seeding is skipped when products exist.
"""
import logging

from swiftsale.models import Collections
from swiftsale.services.activity_log import NullActivityLog, INIT
from swiftsale.services.auth_service import create_default_user
from swiftsale.services.settings_service import set_setting

logger = logging.getLogger(__name__)

SAMPLE_CATEGORIES = [
    {'name': 'Electronics', 'description': 'Electronic devices and gadgets'},
    {'name': 'Computers', 'description': 'Computers and accessories'},
    {'name': 'Accessories', 'description': 'Various accessories'},
    {'name': 'Home & Garden', 'description': 'Home and garden items'},
    {'name': 'Clothing', 'description': 'Clothing and apparel'},
]

SAMPLE_BRANDS = [
    {'name': 'Apple', 'description': 'Apple Inc.'},
    {'name': 'Samsung', 'description': 'Samsung Electronics'},
    {'name': 'Dell', 'description': 'Dell Technologies'},
    {'name': 'HP', 'description': 'HP Inc.'},
    {'name': 'Sony', 'description': 'Sony Corporation'},
]

# (name, code, barcode, price, cost, stock, min_stock, category, brand, description)
SAMPLE_PRODUCTS = [
    ('iPhone 14 Pro', 'IPH14PRO', '1234567890123', 999.99, 750.00, 25, 5, 'Electronics', 'Apple',
     'Latest iPhone with Pro features'),
    ('Samsung Galaxy S23', 'SGS23', '2345678901234', 799.99, 600.00, 30, 5, 'Electronics', 'Samsung',
     'Samsung flagship smartphone'),
    ('MacBook Air M2', 'MBAM2', '3456789012345', 1199.99, 900.00, 15, 3, 'Computers', 'Apple',
     'Apple MacBook Air with M2 chip'),
    ('AirPods Pro', 'APPRO', '4567890123456', 249.99, 180.00, 50, 10, 'Accessories', 'Apple',
     'Wireless earbuds with noise cancellation'),
    ('Dell XPS 13', 'DXPS13', '5678901234567', 1099.99, 850.00, 10, 2, 'Computers', 'Dell',
     'Dell XPS 13 ultrabook'),
    ('Samsung Galaxy Buds', 'SGB', '6789012345678', 149.99, 100.00, 40, 8, 'Accessories', 'Samsung',
     'Samsung wireless earbuds'),
    ('HP Pavilion Laptop', 'HPP15', '7890123456789', 649.99, 450.00, 18, 5, 'Computers', 'HP',
     'HP Pavilion 15 inch laptop'),
    ('Sony WH-1000XM4', 'SWXM4', '8901234567890', 349.99, 250.00, 12, 3, 'Accessories', 'Sony',
     'Sony noise cancelling headphones'),
    ('Apple Watch Series 8', 'AWS8', '9012345678901', 399.99, 300.00, 22, 5, 'Electronics', 'Apple',
     'Apple Watch Series 8 smartwatch'),
    ('Samsung 4K Monitor', 'S4KM', '0123456789012', 299.99, 200.00, 8, 2, 'Computers', 'Samsung',
     '27 inch 4K monitor'),
]

SAMPLE_CUSTOMERS = [
    {'name': 'John Doe', 'email': 'john.doe@example.com', 'phone': '+1 (555) 123-4567',
     'address': '123 Main St, City, State 12345'},
    {'name': 'Jane Smith', 'email': 'jane.smith@example.com', 'phone': '+1 (555) 987-6543',
     'address': '456 Oak Ave, City, State 12345'},
    {'name': 'Bob Johnson', 'email': 'bob.johnson@example.com', 'phone': '+1 (555) 456-7890',
     'address': '789 Pine St, City, State 12345'},
    {'name': 'Alice Brown', 'email': 'alice.brown@example.com', 'phone': '+1 (555) 321-0987',
     'address': '321 Elm St, City, State 12345'},
    {'name': 'Charlie Wilson', 'email': 'charlie.wilson@example.com', 'phone': '+1 (555) 654-3210',
     'address': '654 Maple Ave, City, State 12345'},
]

SAMPLE_SETTINGS = [
    {'key': 'app_name', 'value': 'SwiftSale Mobile'},
    {'key': 'currency', 'value': 'USD'},
    {'key': 'tax_rate', 'value': '8.5'},
    {'key': 'receipt_footer', 'value': 'Thank you for your business!'},
]


def initialize_data(store, admin_email='admin@swiftsale.com', admin_password='admin123', activity=None) -> bool:
    """
    Seed sample data into an empty catalog.

    Returns:
        bool: True if data was seeded, False if products already existed
    """
    activity = activity or NullActivityLog()
    activity.log(INIT, 'initialize_data_start', {})
    store.initialize()

    try:
        with store.transaction():
            existing = store.get_all(Collections.PRODUCTS)
            if existing:
                activity.log(INIT, 'initialize_data_already_initialized', {'product_count': len(existing)})
                return False

            create_default_user(store, admin_email, admin_password, activity=activity)

            category_ids = {}
            for category in SAMPLE_CATEGORIES:
                category_ids[category['name']] = store.insert(Collections.CATEGORIES, category)['id']

            brand_ids = {}
            for brand in SAMPLE_BRANDS:
                brand_ids[brand['name']] = store.insert(Collections.BRANDS, brand)['id']

            for (name, code, barcode, price, cost, stock, min_stock,
                 category, brand, description) in SAMPLE_PRODUCTS:
                store.insert(Collections.PRODUCTS, {
                    'name': name,
                    'code': code,
                    'barcode': barcode,
                    'price': price,
                    'cost': cost,
                    'stock_quantity': stock,
                    'min_stock': min_stock,
                    'category_id': category_ids[category],
                    'brand_id': brand_ids[brand],
                    'description': description,
                    'image_url': None,
                    'is_active': 1,
                })

            for customer in SAMPLE_CUSTOMERS:
                store.insert(Collections.CUSTOMERS, customer)

            for setting in SAMPLE_SETTINGS:
                set_setting(store, setting['key'], setting['value'])
    except Exception as e:
        activity.log(INIT, 'initialize_data_failed', {}, e)
        raise

    activity.log(INIT, 'initialize_data_complete', {'products': len(SAMPLE_PRODUCTS)})
    logger.info("Sample data initialized")
    return True


def reset_data(store, admin_email='admin@swiftsale.com', admin_password='admin123', activity=None) -> bool:
    """Wipe every collection and seed the sample data again."""
    store.reset()
    return initialize_data(store, admin_email, admin_password, activity=activity)
