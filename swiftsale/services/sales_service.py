"""
Sales service with transactional logic.
Handles sale creation (stock validation, header, line items, stock
reduction) and the denormalized read paths used by receipts and listings.
"""
import logging
from typing import Any, Dict, List, Optional

from swiftsale.exceptions import (
    EmptySaleError, InvalidTotalError, InsufficientStockError,
    ProductNotFoundError, SaleNotFoundError, ValidationError,
)
from swiftsale.models import Collections, PaymentStatus, PaymentType, SaleStatus
from swiftsale.services.activity_log import NullActivityLog, SALES
from swiftsale.services.dashboard_service import get_cached_dashboard_stats, invalidate_dashboard_cache
from swiftsale.services.product_service import ProductService, is_active
from swiftsale.utils.dates import parse_date, record_date
from swiftsale.utils.money import money_equal, to_decimal, to_money
from swiftsale.utils.pagination import paginate

logger = logging.getLogger(__name__)


def calculate_totals(subtotal, discount=0, tax_rate=0, shipping=0) -> Dict[str, float]:
    """
    Compute sale totals from a subtotal and percentage discount/tax.

    grand_total = (subtotal - subtotal*discount/100) * (1 + tax_rate/100) + shipping
    """
    subtotal = to_decimal(subtotal)
    discount_amount = subtotal * to_decimal(discount) / 100
    taxable = subtotal - discount_amount
    tax_amount = taxable * to_decimal(tax_rate) / 100
    grand_total = taxable + tax_amount + to_decimal(shipping)
    return {
        'subtotal': to_money(subtotal),
        'discount_amount': to_money(discount_amount),
        'tax_amount': to_money(tax_amount),
        'grand_total': to_money(grand_total),
    }


def _number(value, field: str, required: bool = False):
    """Coerce a request value to int/float; None stays None unless required."""
    if value is None or value == '':
        if required:
            raise ValidationError(f'{field} is required', payload={'field': field})
        return None
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be a number', payload={'field': field})
    if isinstance(value, (int, float)):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be a number, got {value!r}', payload={'field': field})


def _status_code(value, enum_cls, field: str, default) -> int:
    """Coerce a status code to one of enum_cls's values; missing means default."""
    if value is None or value == '':
        return int(default)
    try:
        if isinstance(value, bool):
            raise ValueError(value)
        return int(enum_cls(int(value)))
    except (TypeError, ValueError):
        allowed = ', '.join(f'{s.value} ({s.name.lower()})' for s in enum_cls)
        raise ValidationError(
            f'{field} must be one of {allowed}, got {value!r}',
            payload={'field': field, 'value': str(value)},
        )


class SaleService:
    """Sale transaction workflow over the document store."""

    def __init__(self, store, products: Optional[ProductService] = None, activity=None,
                 strict_totals: bool = False, cache=None, dashboard_ttl: Optional[int] = None):
        self.store = store
        self.activity = activity or NullActivityLog()
        self.products = products or ProductService(store, activity=self.activity)
        self.strict_totals = strict_totals
        self.cache = cache
        self.dashboard_ttl = dashboard_ttl

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def create_sale(self, sale_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a sale with full transactional processing.

        Steps:
        1. Validate structure (items present, grand_total > 0)
        2. Validate stock for every line item before any write
        3. Derive received/change amounts
        4. Insert the sale header
        5. Insert the sale items (input order)
        6. Reduce stock per item (input order)
        7. Return the complete sale

        Steps 2-6 run in one store transaction: either all of them commit or
        none does, and no other writer can touch stock in between.

        Raises:
            EmptySaleError, InvalidTotalError, ValidationError,
            ProductNotFoundError, InsufficientStockError, StoreError
        """
        items = self._normalize_items(sale_data.get('sale_items'))

        grand_total = _number(sale_data.get('grand_total'), 'grand_total')
        if grand_total is None or grand_total <= 0:
            raise InvalidTotalError(grand_total)

        if self.strict_totals:
            self._verify_totals(sale_data, items, grand_total)

        status = _status_code(sale_data.get('status'), SaleStatus, 'status', SaleStatus.COMPLETED)
        payment_status = _status_code(sale_data.get('payment_status'), PaymentStatus,
                                      'payment_status', PaymentStatus.PAID)

        self.activity.log(SALES, 'create_sale_start', {
            'item_count': len(items), 'grand_total': grand_total,
            'customer_id': sale_data.get('customer_id'),
        })

        try:
            with self.store.transaction():
                self._validate_stock(items)

                received = _number(sale_data.get('received_amount'), 'received_amount')
                received_amount = grand_total if received is None else received
                change_amount = to_money(max(0, to_decimal(received_amount) - to_decimal(grand_total)))

                sale = self.store.insert(Collections.SALES, {
                    'customer_id': sale_data.get('customer_id'),
                    'subtotal': _number(sale_data.get('subtotal'), 'subtotal') or 0,
                    'discount': _number(sale_data.get('discount'), 'discount') or 0,
                    'tax_rate': _number(sale_data.get('tax_rate'), 'tax_rate') or 0,
                    'tax_amount': _number(sale_data.get('tax_amount'), 'tax_amount') or 0,
                    'shipping': _number(sale_data.get('shipping'), 'shipping') or 0,
                    'grand_total': grand_total,
                    'received_amount': received_amount,
                    'change_amount': change_amount,
                    'payment_type': sale_data.get('payment_type') or PaymentType.CASH.value,
                    'payment_status': payment_status,
                    'status': status,
                    'note': sale_data.get('note') or '',
                })

                for item in items:
                    self.store.insert(Collections.SALE_ITEMS, {
                        'sale_id': sale['id'],
                        'product_id': item['product_id'],
                        'quantity': item['quantity'],
                        'price': item['price'],
                        'total': item['total'],
                    })

                for item in items:
                    self.products.reduce_stock(item['product_id'], item['quantity'])

                self.store.after_commit(lambda: invalidate_dashboard_cache(self.cache))
        except Exception as e:
            self.activity.log(SALES, 'create_sale_failed', {'item_count': len(items)}, e)
            raise

        self.activity.log(SALES, 'create_sale_success', {'sale_id': sale['id'], 'grand_total': grand_total})
        logger.info(f"Sale #{sale['id']} created: {len(items)} item(s), total {grand_total}")
        return self.get_sale(sale['id'])

    def _normalize_items(self, raw_items) -> List[Dict[str, Any]]:
        if not raw_items:
            raise EmptySaleError()

        items = []
        for index, raw in enumerate(raw_items):
            product_id = raw.get('product_id')
            if product_id is None:
                raise ValidationError(f'Item {index + 1} has no product_id', payload={'item': index})
            quantity = _number(raw.get('quantity'), 'quantity', required=True)
            if quantity <= 0:
                raise ValidationError(
                    f'Item {index + 1}: quantity must be greater than 0',
                    payload={'item': index, 'product_id': product_id},
                )
            price = _number(raw.get('price'), 'price') or 0
            total = _number(raw.get('total'), 'total')
            if total is None:
                total = to_money(to_decimal(quantity) * to_decimal(price))
            items.append({'product_id': product_id, 'quantity': quantity, 'price': price, 'total': total})
        return items

    def _validate_stock(self, items: List[Dict[str, Any]]) -> None:
        """Read-only pass: every product exists, is active and has enough stock."""
        requested: Dict[Any, Any] = {}
        for item in items:
            requested[item['product_id']] = requested.get(item['product_id'], 0) + item['quantity']

        for product_id, quantity in requested.items():
            product = self.store.get_by_id(Collections.PRODUCTS, product_id)
            if product is None:
                raise ProductNotFoundError(product_id)
            if not is_active(product):
                raise ValidationError(
                    f'Product "{product.get("name")}" is not active',
                    payload={'product_id': product_id},
                )
            available = product.get('stock_quantity') or 0
            if available < quantity:
                raise InsufficientStockError(product_id, available, quantity, product.get('name'))

    def _verify_totals(self, sale_data: Dict[str, Any], items: List[Dict[str, Any]], grand_total) -> None:
        """Reject sales whose caller-computed totals do not add up."""
        for index, item in enumerate(items):
            expected_line = to_decimal(item['quantity']) * to_decimal(item['price'])
            if not money_equal(item['total'], expected_line):
                raise InvalidTotalError(
                    item['total'],
                    message=f'Item {index + 1}: total {item["total"]} != quantity x price ({to_money(expected_line)})',
                    expected=to_money(expected_line),
                )

        items_total = sum((to_decimal(i['total']) for i in items), to_decimal(0))
        subtotal = _number(sale_data.get('subtotal'), 'subtotal')
        if subtotal is None:
            subtotal = to_money(items_total)
        elif not money_equal(subtotal, items_total):
            raise InvalidTotalError(
                grand_total,
                message=f'Subtotal {subtotal} does not match line items ({to_money(items_total)})',
                expected=to_money(items_total),
            )

        totals = calculate_totals(
            subtotal,
            _number(sale_data.get('discount'), 'discount') or 0,
            _number(sale_data.get('tax_rate'), 'tax_rate') or 0,
            _number(sale_data.get('shipping'), 'shipping') or 0,
        )
        if not money_equal(grand_total, totals['grand_total']):
            raise InvalidTotalError(
                grand_total,
                message=f'Grand total {grand_total} does not match computed total {totals["grand_total"]}',
                expected=totals['grand_total'],
            )

    # ------------------------------------------------------------------
    # Read paths
    # ------------------------------------------------------------------

    def get_sale(self, sale_id: int) -> Dict[str, Any]:
        """Sale header with its customer and items (each with product summary)."""
        with self.store.transaction():
            sale = self.store.get_by_id(Collections.SALES, sale_id)
            if sale is None:
                raise SaleNotFoundError(sale_id)

            customer = None
            if sale.get('customer_id'):
                customer = self.store.get_by_id(Collections.CUSTOMERS, sale['customer_id'])

            sale_items = [i for i in self.store.get_all(Collections.SALE_ITEMS) if i.get('sale_id') == sale_id]
            products = {p.get('id'): p for p in self.store.get_all(Collections.PRODUCTS)}

        items_with_products = []
        for item in sale_items:
            product = products.get(item.get('product_id'))
            items_with_products.append({
                **item,
                'product': {
                    'id': product.get('id'),
                    'name': product.get('name'),
                    'code': product.get('code'),
                } if product else None,
            })

        return {**sale, 'customer': customer, 'sale_items': items_with_products}

    def list_sales(self, page: int = 1, page_size: int = 20, start_date=None, end_date=None) -> Dict[str, Any]:
        """
        List sales newest first, optionally within an inclusive date range.

        Each sale carries its customer and the number of its items, not the
        item details.
        """
        start = parse_date(start_date)
        end = parse_date(end_date)

        with self.store.transaction():
            sales = self.store.get_all(Collections.SALES)
            customers = {c.get('id'): c for c in self.store.get_all(Collections.CUSTOMERS)}
            item_counts: Dict[Any, int] = {}
            for item in self.store.get_all(Collections.SALE_ITEMS):
                item_counts[item.get('sale_id')] = item_counts.get(item.get('sale_id'), 0) + 1

        if start or end:
            filtered = []
            for sale in sales:
                sale_day = record_date(sale.get('created_at'))
                if sale_day is None:
                    continue
                if start and sale_day < start:
                    continue
                if end and sale_day > end:
                    continue
                filtered.append(sale)
            sales = filtered

        sales.sort(key=lambda s: (str(s.get('created_at') or ''), s.get('id') or 0), reverse=True)

        page_items, meta = paginate(sales, page, page_size)

        data = []
        for sale in page_items:
            count = item_counts.get(sale.get('id'), 0)
            data.append({
                **sale,
                'customer': customers.get(sale.get('customer_id')) if sale.get('customer_id') else None,
                'items_count': count,
                'sale_items': [{'count': count}],
            })

        return {'data': data, 'meta': meta}

    def get_dashboard_stats(self) -> Dict[str, Any]:
        return get_cached_dashboard_stats(self.store, self.cache, self.dashboard_ttl)
