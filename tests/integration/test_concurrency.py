"""
Concurrent checkouts must never oversell, in one process or across workers.
"""

import threading
import time

import pytest

from swiftsale.database import make_engine, make_session_factory
from swiftsale.exceptions import InsufficientStockError
from swiftsale.models import Collections
from swiftsale.services.document_store import DocumentStore
from swiftsale.services.sales_service import SaleService


def _run_concurrently(target, count):
    barrier = threading.Barrier(count)
    results = [None] * count

    def worker(index):
        barrier.wait()
        try:
            results[index] = ('ok', target(index))
        except Exception as e:
            results[index] = ('error', e)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return results


class TestConcurrentSales:
    """Stock validation and reduction happen as one unit per sale."""

    def test_no_oversell(self, sale_service, product_service, store, make_product, sale_request):
        """Ten cashiers race for five units: exactly five sales succeed."""
        product = make_product(name='Limited', stock=5, price=20.0)

        results = _run_concurrently(lambda _: sale_service.create_sale(sale_request([(product, 1)])), 10)

        succeeded = [r for status, r in results if status == 'ok']
        failed = [r for status, r in results if status == 'error']
        assert len(succeeded) == 5
        assert len(failed) == 5
        assert all(isinstance(e, InsufficientStockError) for e in failed)
        assert product_service.get_product(product['id'])['stock_quantity'] == 0
        assert len(store.get_all(Collections.SALES)) == 5
        assert len(store.get_all(Collections.SALE_ITEMS)) == 5

    def test_unique_sale_ids(self, sale_service, store, make_product, sale_request):
        """Parallel sales never share an id and every item points at its own header."""
        products = [make_product(name=f'Item {n}', stock=100) for n in range(4)]

        results = _run_concurrently(
            lambda i: sale_service.create_sale(sale_request([(products[i % 4], 1), (products[(i + 1) % 4], 2)])),
            12,
        )

        assert all(status == 'ok' for status, _ in results)
        sale_ids = [sale['id'] for _, sale in results]
        assert sorted(sale_ids) == list(range(1, 13))

        items = store.get_all(Collections.SALE_ITEMS)
        assert len({item['id'] for item in items}) == 24
        for _, sale in results:
            assert [i['sale_id'] for i in sale['sale_items']] == [sale['id'], sale['id']]

    def test_stock_totals_add_up(self, sale_service, product_service, make_product, sale_request):
        """Concurrent mixed-quantity sales reduce stock by exactly what was sold."""
        product = make_product(name='Bulk', stock=50)

        results = _run_concurrently(
            lambda i: sale_service.create_sale(sale_request([(product, (i % 3) + 1)])),
            15,
        )

        sold = sum(sale['sale_items'][0]['quantity'] for status, sale in results if status == 'ok')
        assert sold <= 50
        assert product_service.get_product(product['id'])['stock_quantity'] == 50 - sold


class TestMultiProcessSales:
    """Two stores on separate engines stand in for two server worker processes."""

    @pytest.fixture
    def workers(self, tmp_path):
        uri = f"sqlite:///{tmp_path / 'pos.db'}"
        engines = [make_engine(uri), make_engine(uri)]
        services = []
        for engine in engines:
            store = DocumentStore(make_session_factory(engine))
            store.initialize()
            services.append(SaleService(store))
        yield services
        for engine in engines:
            engine.dispose()

    def test_second_worker_validates_after_first_commits(self, workers, sale_request, monkeypatch):
        """A sale in another worker waits for the open sale and then sees its stock."""
        worker_a, worker_b = workers
        product = worker_a.products.add_product({'name': 'Limited', 'code': 'LIM', 'price': 10.0, 'stock_quantity': 5})
        request = sale_request([(product, 3)])

        b_started = threading.Event()
        b_result = {}

        def sell_in_b():
            b_started.set()
            try:
                b_result['sale'] = worker_b.create_sale(request)
            except Exception as e:
                b_result['error'] = e

        b_thread = threading.Thread(target=sell_in_b)
        real_validate = worker_a._validate_stock

        def validate_then_let_b_in(items):
            real_validate(items)
            b_thread.start()
            b_started.wait(timeout=5)
            # Give worker B time to reach the database while A is still open
            time.sleep(0.3)

        monkeypatch.setattr(worker_a, '_validate_stock', validate_then_let_b_in)

        worker_a.create_sale(request)
        b_thread.join(timeout=30)

        assert isinstance(b_result.get('error'), InsufficientStockError)
        assert worker_b.products.get_product(product['id'])['stock_quantity'] == 2
        assert len(worker_b.store.get_all(Collections.SALES)) == 1

    def test_sale_ids_unique_across_workers(self, workers, sale_request):
        worker_a, worker_b = workers
        product = worker_a.products.add_product({'name': 'Bulk', 'code': 'BULK', 'price': 1.0, 'stock_quantity': 100})

        results = _run_concurrently(
            lambda i: workers[i % 2].create_sale(sale_request([(product, 1)])),
            8,
        )

        assert all(status == 'ok' for status, _ in results)
        assert sorted(sale['id'] for _, sale in results) == list(range(1, 9))
        assert worker_a.products.get_product(product['id'])['stock_quantity'] == 92
