"""Tests for the shared in-memory snapshot"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from conftest import make_order, make_product
from models import ConnectionStatus, DailySummary, OrderStatusInfo
from snapshot import CONNECTION, INVENTORY, ORDERS, PROGRESS, STATUSES, SUMMARY, Snapshot


@pytest.fixture
def events(snapshot):
    received = []
    snapshot.subscribe(received.append)
    return received


class TestOrders:

    def test_new_snapshot_is_empty(self, snapshot):
        assert snapshot.is_empty()
        assert snapshot.cursor is None
        assert snapshot.connection_status == ConnectionStatus.not_connected()

    def test_cursor_is_max_confirmed(self, snapshot):
        snapshot.replace_orders([make_order('a', confirmed=300), make_order('b', confirmed=500)])
        assert snapshot.cursor == 500

    def test_replace_keeps_first_occurrence(self, snapshot):
        first = make_order('x', confirmed=1, total='1.00')
        second = make_order('x', confirmed=2, total='2.00')

        unique = snapshot.replace_orders([first, second])

        assert len(unique) == 1
        assert snapshot.orders[0].total_amount == Decimal('1.00')

    def test_merge_returns_only_new(self, snapshot, events):
        snapshot.replace_orders([make_order('1')])
        events.clear()

        added = snapshot.merge_orders([make_order('1'), make_order('2'), make_order('2')])

        assert [order.id for order in added] == ['2']
        assert sorted(snapshot.order_ids) == ['1', '2']
        assert [event.kind for event in events] == [ORDERS]

    def test_merge_without_new_orders_is_silent(self, snapshot, events):
        snapshot.replace_orders([make_order('1')])
        events.clear()

        assert snapshot.merge_orders([make_order('1')]) == []
        assert events == []

    def test_orders_sorted_by_creation_descending(self, snapshot):
        snapshot.replace_orders([make_order('old', created=10), make_order('new', created=30)])
        snapshot.merge_orders([make_order('mid', created=20)])
        assert snapshot.order_ids == ['new', 'mid', 'old']

    def test_remove_orders(self, snapshot):
        snapshot.replace_orders([make_order('1'), make_order('2')])

        removed = snapshot.remove_orders(['2', 'unknown'])

        assert [order.id for order in removed] == ['2']
        assert snapshot.order_ids == ['1']

    def test_readers_get_copies(self, snapshot):
        snapshot.replace_orders([make_order('1')])
        snapshot.orders.clear()
        assert snapshot.order_ids == ['1']

    def test_status_catalog_attached_to_merged_orders(self, snapshot, events):
        snapshot.set_status_catalog([OrderStatusInfo(id='7', name='Packed')])
        snapshot.replace_orders([make_order('1', status_id='7')])

        assert snapshot.orders[0].status_name == 'Packed'
        assert STATUSES in [event.kind for event in events]

    def test_mark_order_sync(self, snapshot):
        when = datetime(2026, 10, 18, tzinfo=timezone.utc)
        snapshot.mark_order_sync(when)
        assert snapshot.last_order_sync == when


class TestInventory:

    def test_products_deduplicated_and_sorted(self, snapshot, events):
        snapshot.replace_inventory_products([
            make_product('1', name='Pear'),
            make_product('2', name='Apple'),
            make_product('1', name='Pear duplicate'),
        ])

        assert [product.name for product in snapshot.inventory_products] == ['Apple', 'Pear']
        assert snapshot.inventory_progress == 1.0
        assert events[-1].kind == INVENTORY

    def test_progress_is_clamped(self, snapshot, events):
        snapshot.set_inventory_progress(1.7)
        snapshot.set_inventory_progress(-0.2)

        assert [event.payload for event in events if event.kind == PROGRESS] == [1.0, 0.0]

    def test_select_inventory(self, snapshot):
        snapshot.select_inventory('12')
        assert snapshot.selected_inventory_id == '12'


class TestStatusAndSummary:

    def test_connection_change_is_emitted_once(self, snapshot, events):
        snapshot.set_connection_status(ConnectionStatus.connected())
        snapshot.set_connection_status(ConnectionStatus.connected())

        kinds = [event.kind for event in events]
        assert kinds == [CONNECTION]
        assert snapshot.connection_status.is_connected

    def test_failed_status_description(self, snapshot):
        snapshot.set_connection_status(ConnectionStatus.failed("timeout"))
        assert snapshot.connection_status.description == "Error: timeout"

    def test_daily_summary_published(self, snapshot, events):
        summary = DailySummary(order_count=2, total_value=Decimal('30'), new_orders_count=1)

        snapshot.set_daily_summary(summary)

        assert snapshot.daily_summary is summary
        assert events[-1].kind == SUMMARY
        assert summary.average_value == Decimal('15')


class TestListeners:

    def test_failing_listener_does_not_block_others(self, snapshot):
        received = []

        def broken(event):
            raise RuntimeError("listener bug")

        snapshot.subscribe(broken)
        snapshot.subscribe(received.append)

        snapshot.replace_orders([make_order('1')])

        assert [event.kind for event in received] == [ORDERS]

    def test_unsubscribe(self, snapshot, events):
        snapshot.unsubscribe(events.append)
        snapshot.replace_orders([make_order('1')])
        assert events == []


def test_independent_instances():
    first, second = Snapshot(), Snapshot()
    first.replace_orders([make_order('1')])
    assert second.is_empty()
