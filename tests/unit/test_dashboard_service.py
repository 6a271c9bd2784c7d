"""
Unit tests for dashboard aggregation.
"""

from datetime import date

from swiftsale.models import Collections, SaleStatus
from swiftsale.services.dashboard_service import (
    CACHE_MODULE, get_cached_dashboard_stats, get_dashboard_stats, invalidate_dashboard_cache,
)
from swiftsale.services.sales_service import SaleService


def _sale(store, grand_total, created_at, status=SaleStatus.COMPLETED):
    return store.insert(Collections.SALES, {
        'grand_total': grand_total,
        'status': int(status),
        'created_at': created_at,
    })


class TestDashboardStats:
    """Tests for get_dashboard_stats."""

    def test_empty_store(self, store):
        assert get_dashboard_stats(store) == {
            'todaySales': 0.0,
            'totalRevenue': 0.0,
            'totalSales': 0,
            'lowStockProducts': 0,
        }

    def test_sums_completed_sales(self, store):
        _sale(store, 10, '2026-03-14T08:00:00')
        _sale(store, 20, '2026-03-14T12:00:00')
        _sale(store, 30, '2026-03-13T18:00:00')

        stats = get_dashboard_stats(store, today=date(2026, 3, 14))

        assert stats['todaySales'] == 30.0
        assert stats['totalRevenue'] == 60.0
        assert stats['totalSales'] == 3

    def test_today_defaults_to_store_clock(self, store):
        _sale(store, 15, '2026-03-14T23:59:59')
        _sale(store, 5, '2026-03-15T00:00:01')

        # The store clock is frozen at 2026-03-14
        assert get_dashboard_stats(store)['todaySales'] == 15.0

    def test_excludes_non_completed_sales(self, store):
        _sale(store, 10, '2026-03-14T08:00:00')
        _sale(store, 99, '2026-03-14T09:00:00', status=SaleStatus.CANCELLED)
        _sale(store, 50, '2026-03-14T09:30:00', status=SaleStatus.PENDING)

        stats = get_dashboard_stats(store, today=date(2026, 3, 14))

        assert stats['todaySales'] == 10.0
        assert stats['totalRevenue'] == 10.0
        assert stats['totalSales'] == 1

    def test_money_sums_have_no_float_drift(self, store):
        for _ in range(3):
            _sale(store, 0.1, '2026-03-14T08:00:00')

        assert get_dashboard_stats(store, today=date(2026, 3, 14))['totalRevenue'] == 0.3

    def test_timezone_suffix_accepted(self, store):
        _sale(store, 12, '2026-03-10T12:00:00.000Z')
        assert get_dashboard_stats(store, today=date(2026, 3, 14))['totalRevenue'] == 12.0

    def test_counts_low_stock_products(self, store, make_product, product_service):
        make_product(name='Fine', stock=20, min_stock=5)
        make_product(name='Equal', stock=5, min_stock=5)
        make_product(name='Out', stock=0, min_stock=1)
        inactive = make_product(name='Inactive', stock=0, min_stock=1)
        product_service.soft_delete(inactive['id'])

        assert get_dashboard_stats(store)['lowStockProducts'] == 2

    def test_reflects_sale_workflow(self, store, sale_service, make_product, sale_request):
        product = make_product(stock=3, min_stock=2, price=10.0)
        sale_service.create_sale(sale_request([(product, 1)]))
        sale_service.create_sale(sale_request([(product, 2)]))

        stats = sale_service.get_dashboard_stats()

        assert stats['todaySales'] == 30.0
        assert stats['totalSales'] == 2
        assert stats['lowStockProducts'] == 1


class TestDashboardCache:
    """Tests for the cached read path."""

    def test_without_cache_computes_directly(self, store):
        _sale(store, 10, '2026-03-14T08:00:00')
        assert get_cached_dashboard_stats(store, cache=None)['totalSales'] == 1

    def test_unavailable_cache_computes_directly(self, store, mocker):
        cache = mocker.MagicMock()
        cache.is_available.return_value = False

        assert get_cached_dashboard_stats(store, cache)['totalSales'] == 0
        cache.memoize.assert_not_called()

    def test_memoizes_under_dated_key(self, store, mocker):
        cache = mocker.MagicMock()
        cache.is_available.return_value = True
        cache.memoize.return_value = {'totalSales': 42}

        assert get_cached_dashboard_stats(store, cache, ttl=15) == {'totalSales': 42}

        module, key, loader, ttl = cache.memoize.call_args[0]
        assert (module, key, ttl) == (CACHE_MODULE, 'stats:2026-03-14', 15)
        assert loader()['totalSales'] == 0

    def test_invalidate(self, mocker):
        cache = mocker.MagicMock()
        invalidate_dashboard_cache(cache)
        cache.invalidate_module.assert_called_once_with(CACHE_MODULE)

    def test_invalidate_without_cache(self):
        invalidate_dashboard_cache(None)

    def test_sale_invalidates_after_commit(self, store, product_service, make_product, sale_request, mocker):
        cache = mocker.MagicMock()
        service = SaleService(store, products=product_service, cache=cache)
        service.create_sale(sale_request([(make_product(), 1)]))

        cache.invalidate_module.assert_called_with(CACHE_MODULE)
