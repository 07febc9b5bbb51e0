"""Tests for InventorySyncService: catalog selection, id paging, batched details."""

import pytest

from conftest import make_product
from errors import ApiError, TransportError
from inventory_service import InventorySyncService, chunked
from models import ConnectionState
from snapshot import PROGRESS


def ids(count, start=0):
    return [str(start + i) for i in range(count)]


@pytest.fixture
def service(connector, snapshot, rate_gate):
    return InventorySyncService(
        connector,
        snapshot,
        list_page_size=1000,
        batch_size=600,
        preferred_inventory_id=None,
        rate_gate=rate_gate,
    )


class TestChunked:

    def test_splits_into_fixed_batches(self):
        assert chunked(ids(5), 2) == [['0', '1'], ['2', '3'], ['4']]

    def test_empty(self):
        assert chunked([], 600) == []


class TestFetchInventories:

    def test_selects_first_inventory(self, service, connector, snapshot, inventories):
        connector.inventories = inventories

        service.fetch_inventories()

        assert snapshot.selected_inventory_id == '11'
        assert [inventory.name for inventory in snapshot.inventories] == ['Main', 'Outlet']

    def test_keeps_existing_selection(self, service, connector, snapshot, inventories):
        connector.inventories = inventories
        snapshot.select_inventory('12')

        service.fetch_inventories()

        assert snapshot.selected_inventory_id == '12'

    def test_prefers_configured_inventory(self, connector, snapshot, rate_gate, inventories):
        connector.inventories = inventories
        service = InventorySyncService(connector, snapshot, preferred_inventory_id='12', rate_gate=rate_gate)

        service.fetch_inventories()

        assert snapshot.selected_inventory_id == '12'


class TestListProductIds:

    def test_full_page_requests_next_page(self, service, connector):
        connector.inventories = []
        connector.product_id_pages = [ids(1000), ids(999, start=1000)]

        result = service.refresh('11')

        pages = [request[1] for request in connector.product_list_requests]
        assert pages == [1, 2]
        assert result.product_ids == 1999

    def test_short_first_page_stops(self, service, connector):
        connector.product_id_pages = [ids(999), ids(5, start=5000)]

        result = service.refresh('11')

        assert len(connector.product_list_requests) == 1
        assert result.product_ids == 999

    def test_requests_use_page_limit(self, service, connector):
        connector.product_id_pages = [ids(3)]
        service.refresh('11')
        assert connector.product_list_requests == [('11', 1, 1000)]

    def test_listing_error_aborts_refresh(self, service, connector, snapshot):
        snapshot.replace_inventory_products([make_product('keep')])
        connector.product_id_pages = [TransportError("timeout")]

        result = service.refresh('11')

        assert result.error == "timeout"
        assert connector.detail_requests == []
        assert [product.id for product in snapshot.inventory_products] == ['keep']
        assert snapshot.connection_status.state is ConnectionState.FAILED


class TestProductDetails:

    def test_batches_of_fixed_size(self, service, connector):
        connector.product_id_pages = [ids(1000), ids(500, start=1000)]

        service.refresh('11')

        assert [len(batch) for batch in connector.detail_requests] == [600, 600, 300]

    def test_failed_batch_is_skipped(self, connector, snapshot, rate_gate):
        service = InventorySyncService(connector, snapshot, batch_size=2, rate_gate=rate_gate)
        connector.product_id_pages = [ids(10)]
        connector.detail_responses = {2: ApiError("Query limit exceeded")}

        result = service.refresh('11')

        assert len(connector.detail_requests) == 5
        assert result.failed_batches == [2]
        product_ids = {product.id for product in snapshot.inventory_products}
        assert product_ids == set(ids(10)) - {'4', '5'}
        assert result.ok

    def test_products_deduplicated_and_sorted_by_name(self, connector, snapshot, rate_gate):
        service = InventorySyncService(connector, snapshot, batch_size=2, rate_gate=rate_gate)
        connector.product_id_pages = [['1', '2', '3']]
        connector.detail_responses = {
            0: [make_product('1', name='Zebra'), make_product('2', name='Apple')],
            1: [make_product('3', name='Mango'), make_product('1', name='Zebra')],
        }

        service.refresh('11')

        names = [product.name for product in snapshot.inventory_products]
        assert names == ['Apple', 'Mango', 'Zebra']

    def test_delay_before_every_batch_after_first(self, connector, snapshot, sleeps, rate_gate):
        service = InventorySyncService(connector, snapshot, batch_size=2, rate_gate=rate_gate)
        connector.product_id_pages = [ids(6)]

        service.refresh('11')

        # one listing page, then 3 batches with a fresh sequence
        assert sleeps == [0.5, 0.5]

    def test_progress_reported_per_batch(self, connector, snapshot, rate_gate):
        service = InventorySyncService(connector, snapshot, batch_size=2, rate_gate=rate_gate)
        connector.product_id_pages = [ids(8)]
        progress = []
        snapshot.subscribe(lambda event: progress.append(event.payload) if event.kind == PROGRESS else None)

        service.refresh('11')

        assert progress == [0.0, 0.25, 0.5, 0.75, 1.0]
        assert snapshot.inventory_progress == 1.0

    def test_empty_inventory_publishes_empty_list(self, service, connector, snapshot):
        snapshot.replace_inventory_products([make_product('old')])

        result = service.refresh('11')

        assert snapshot.inventory_products == []
        assert result.products == 0
        assert snapshot.inventory_progress == 1.0


class TestRefresh:

    def test_discovers_inventory_when_none_selected(self, service, connector, snapshot, inventories):
        connector.inventories = inventories
        connector.product_id_pages = [ids(2)]

        result = service.refresh()

        assert result.inventory_id == '11'
        assert connector.product_list_requests[0][0] == '11'

    def test_no_inventories_is_noop(self, service, connector, snapshot):
        result = service.refresh()

        assert result.inventory_id is None
        assert connector.product_list_requests == []

    def test_catalog_error_sets_failed(self, service, connector, snapshot):
        connector.inventory_error = TransportError("dns failure")

        result = service.refresh()

        assert result.error == "dns failure"
        assert snapshot.connection_status.reason == "dns failure"

    def test_second_refresh_is_noop_while_running(self, service, connector):
        service._refresh_lock.acquire()
        try:
            assert service.refresh('11') is None
            assert service.is_refreshing
        finally:
            service._refresh_lock.release()
        assert connector.product_list_requests == []
