"""
Product and stock repository on top of the document store.

Read model: active products filtered by search/category/brand, sorted by
name, paginated and enriched with their category and brand records.
Write side: product CRUD, soft delete and the stock primitives used by the
sale workflow.
"""
import logging
from typing import Any, Dict, List, Optional

from swiftsale.exceptions import ProductNotFoundError, ValidationError
from swiftsale.models import Collections
from swiftsale.services.activity_log import NullActivityLog, PRODUCTS
from swiftsale.utils.pagination import paginate

logger = logging.getLogger(__name__)

PRODUCT_DEFAULTS = {
    'code': '',
    'barcode': None,
    'price': 0,
    'cost': 0,
    'stock_quantity': 0,
    'min_stock': 0,
    'category_id': None,
    'brand_id': None,
    'description': '',
    'image_url': None,
    'is_active': 1,
}

LISTED_FIELDS = (
    'id', 'name', 'code', 'barcode', 'price', 'cost', 'stock_quantity', 'min_stock',
    'description', 'image_url', 'category_id', 'brand_id', 'created_at',
)


def is_active(product: Dict[str, Any]) -> bool:
    """Products are active unless is_active is explicitly 0/False."""
    return product.get('is_active', 1) not in (0, False)


def _matches_search(product: Dict[str, Any], term: str) -> bool:
    for field in ('name', 'code', 'barcode'):
        value = product.get(field)
        if value is not None and term in str(value).lower():
            return True
    return False


def _validate_quantity(quantity, allow_zero=True):
    if isinstance(quantity, bool) or not isinstance(quantity, (int, float)):
        raise ValidationError(f'Quantity must be a number, got {quantity!r}')
    if quantity < 0 or (quantity == 0 and not allow_zero):
        raise ValidationError(f'Quantity must be {"zero or " if allow_zero else ""}positive, got {quantity}')


class ProductService:
    """Product-facing operations; the store is injected."""

    def __init__(self, store, activity=None, on_stock_change=None):
        self.store = store
        self.activity = activity or NullActivityLog()
        self._on_stock_change = on_stock_change

    def _stock_changed(self):
        if self._on_stock_change:
            self.store.after_commit(self._on_stock_change)

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------

    def list_products(self, page: int = 1, page_size: int = 20, search: str = '',
                      category_id: Optional[int] = None, brand_id: Optional[int] = None) -> Dict[str, Any]:
        """
        List active products with category/brand resolved.

        Returns:
            dict with 'data' (list of products) and 'meta'
            (current_page, last_page, per_page, total)
        """
        self.activity.log(PRODUCTS, 'list_products_start', {
            'page': page, 'page_size': page_size, 'search': search,
            'category_id': category_id, 'brand_id': brand_id,
        })

        products = self.store.get_all(Collections.PRODUCTS)
        categories = {c.get('id'): c for c in self.store.get_all(Collections.CATEGORIES)}
        brands = {b.get('id'): b for b in self.store.get_all(Collections.BRANDS)}

        filtered = [p for p in products if is_active(p)]

        if search:
            term = search.lower()
            filtered = [p for p in filtered if _matches_search(p, term)]

        if category_id:
            filtered = [p for p in filtered if p.get('category_id') == category_id]

        if brand_id:
            filtered = [p for p in filtered if p.get('brand_id') == brand_id]

        filtered.sort(key=lambda p: (str(p.get('name') or '').lower(), p.get('id') or 0))

        page_items, meta = paginate(filtered, page, page_size)

        data = []
        for product in page_items:
            item = {field: product.get(field) for field in LISTED_FIELDS}
            item['category'] = categories.get(product.get('category_id')) if product.get('category_id') else None
            item['brand'] = brands.get(product.get('brand_id')) if product.get('brand_id') else None
            data.append(item)

        return {'data': data, 'meta': meta}

    def get_product(self, product_id: int) -> Dict[str, Any]:
        """Get a product by id, including soft-deleted ones."""
        product = self.store.get_by_id(Collections.PRODUCTS, product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def get_categories(self) -> List[Dict[str, Any]]:
        return sorted(self.store.get_all(Collections.CATEGORIES), key=lambda c: str(c.get('name') or '').lower())

    def get_brands(self) -> List[Dict[str, Any]]:
        return sorted(self.store.get_all(Collections.BRANDS), key=lambda b: str(b.get('name') or '').lower())

    def add_category(self, name: str, description: str = '') -> Dict[str, Any]:
        if not name or not name.strip():
            raise ValidationError('Category name is required')
        return self.store.insert(Collections.CATEGORIES, {'name': name.strip(), 'description': description})

    def add_brand(self, name: str, description: str = '') -> Dict[str, Any]:
        if not name or not name.strip():
            raise ValidationError('Brand name is required')
        return self.store.insert(Collections.BRANDS, {'name': name.strip(), 'description': description})

    # ------------------------------------------------------------------
    # Product CRUD
    # ------------------------------------------------------------------

    def add_product(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        name = (fields.get('name') or '').strip()
        if not name:
            raise ValidationError('Product name is required')
        data = dict(PRODUCT_DEFAULTS)
        data.update(fields)
        data['name'] = name
        _validate_quantity(data['stock_quantity'])
        product = self.store.insert(Collections.PRODUCTS, data)
        self.activity.log(PRODUCTS, 'add_product', {'product_id': product['id'], 'name': name})
        self._stock_changed()
        return product

    def update_product(self, product_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        if 'stock_quantity' in fields:
            _validate_quantity(fields['stock_quantity'])
        data = {k: v for k, v in fields.items() if k != 'id'}
        with self.store.transaction():
            self.get_product(product_id)
            product = self.store.update(Collections.PRODUCTS, data, 'id', product_id)
            self._stock_changed()
        return product

    def soft_delete(self, product_id: int) -> bool:
        """Hide a product from listings; historical sales still resolve it."""
        with self.store.transaction():
            self.get_product(product_id)
            self.store.update(Collections.PRODUCTS, {'is_active': 0}, 'id', product_id)
            self._stock_changed()
        self.activity.log(PRODUCTS, 'soft_delete', {'product_id': product_id})
        return True

    delete_product = soft_delete

    # ------------------------------------------------------------------
    # Stock primitives
    # ------------------------------------------------------------------

    def set_stock(self, product_id: int, quantity) -> Dict[str, Any]:
        """Overwrite stock_quantity (manual adjustment)."""
        _validate_quantity(quantity)
        with self.store.transaction():
            self.get_product(product_id)
            product = self.store.update(Collections.PRODUCTS, {'stock_quantity': quantity}, 'id', product_id)
            self._stock_changed()
        self.activity.log(PRODUCTS, 'set_stock', {'product_id': product_id, 'quantity': quantity})
        return product

    update_stock = set_stock

    def reduce_stock(self, product_id: int, quantity) -> Optional[Dict[str, Any]]:
        """
        Reduce stock, flooring at zero.

        A reduction larger than the stock on hand clamps to 0 and logs a
        'stock_clamped' warning. A missing product is a no-op (returns None).
        """
        _validate_quantity(quantity)
        with self.store.transaction():
            product = self.store.get_by_id(Collections.PRODUCTS, product_id)
            if product is None:
                logger.warning(f"[STOCK] reduce_stock: product {product_id} not found, nothing to reduce")
                return None

            current = product.get('stock_quantity') or 0
            new_quantity = max(0, current - quantity)
            if quantity > current:
                logger.warning(
                    f"[STOCK] stock_clamped: product {product_id} had {current}, "
                    f"reduction of {quantity} floored at 0"
                )
                self.activity.log(PRODUCTS, 'stock_clamped', {
                    'product_id': product_id, 'available': current, 'requested': quantity,
                })

            updated = self.store.update(Collections.PRODUCTS, {'stock_quantity': new_quantity}, 'id', product_id)
            self._stock_changed()
        return updated

    def low_stock_products(self) -> List[Dict[str, Any]]:
        """Active products at or below their minimum stock, most critical first."""
        products = [
            p for p in self.store.get_all(Collections.PRODUCTS)
            if is_active(p) and (p.get('stock_quantity') or 0) <= (p.get('min_stock') or 0)
        ]
        return sorted(products, key=lambda p: ((p.get('stock_quantity') or 0) - (p.get('min_stock') or 0), p.get('id') or 0))
