"""
Dashboard service.
Provides aggregated sales and stock metrics by scanning the sales and
products collections.
"""

from datetime import date
from typing import Optional

from swiftsale.models import Collections, SaleStatus
from swiftsale.services.product_service import is_active
from swiftsale.utils.dates import record_date
from swiftsale.utils.money import to_decimal, to_money

CACHE_MODULE = 'dashboard'


def get_dashboard_stats(store, today: Optional[date] = None) -> dict:
    """
    Get dashboard statistics.

    Args:
        store: DocumentStore
        today: Calendar date treated as "today" (defaults to the store clock)

    Returns:
        dict with keys:
            - todaySales: sum of grand_total of completed sales created today
            - totalRevenue: sum of grand_total of all completed sales
            - totalSales: number of completed sales
            - lowStockProducts: active products with stock_quantity <= min_stock
    """
    if today is None:
        today = store.clock().date()

    sales = store.get_all(Collections.SALES)
    products = store.get_all(Collections.PRODUCTS)

    completed = [s for s in sales if s.get('status') == SaleStatus.COMPLETED]

    today_total = sum(
        (to_decimal(s.get('grand_total')) for s in completed if record_date(s.get('created_at')) == today),
        to_decimal(0),
    )
    total_revenue = sum((to_decimal(s.get('grand_total')) for s in completed), to_decimal(0))

    low_stock = sum(
        1 for p in products
        if is_active(p) and (p.get('stock_quantity') or 0) <= (p.get('min_stock') or 0)
    )

    return {
        'todaySales': to_money(today_total),
        'totalRevenue': to_money(total_revenue),
        'totalSales': len(completed),
        'lowStockProducts': low_stock,
    }


def get_cached_dashboard_stats(store, cache=None, ttl: Optional[int] = None) -> dict:
    """Dashboard statistics through the cache when one is available."""
    if cache is None or not cache.is_available():
        return get_dashboard_stats(store)
    today = store.clock().date()
    return cache.memoize(CACHE_MODULE, f'stats:{today.isoformat()}', lambda: get_dashboard_stats(store, today), ttl)


def invalidate_dashboard_cache(cache=None) -> None:
    """Invalidate cached dashboard statistics (no-op without a cache)."""
    if cache is None:
        return
    cache.invalidate_module(CACHE_MODULE)
