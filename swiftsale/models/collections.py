"""Storage keys of the document store."""


class Collections:
    """Named collections, each persisted as one JSON array."""
    USERS = 'users'
    PRODUCTS = 'products'
    CATEGORIES = 'categories'
    BRANDS = 'brands'
    CUSTOMERS = 'customers'
    SALES = 'sales'
    SALE_ITEMS = 'sale_items'
    SETTINGS = 'settings'

    ALL = (USERS, PRODUCTS, CATEGORIES, BRANDS, CUSTOMERS, SALES, SALE_ITEMS, SETTINGS)


# Sentinel key gating one-time bootstrap
INITIALIZED_KEY = 'db_initialized'

# Prefix of the per-collection id sequence keys
SEQUENCE_PREFIX = 'seq:'
