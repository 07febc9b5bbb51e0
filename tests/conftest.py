"""Shared fixtures: scripted in-memory connector and order factories."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from connectors.base import OrderApiConnector
from models import Inventory, InventoryProduct, Order, OrderItem, OrderStatusInfo
from rate_gate import RateGate
from snapshot import Snapshot

# 2026-10-18 12:00 UTC
NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
TODAY_TS = int(datetime(2026, 10, 18, 6, 0, tzinfo=timezone.utc).timestamp())
YESTERDAY_TS = int(datetime(2026, 10, 17, 6, 0, tzinfo=timezone.utc).timestamp())


def make_order(order_id, confirmed=1000, created=None, status_id='1', total='10.00', items=None):
    return Order(
        id=str(order_id),
        order_number=f"BL-{order_id}",
        date_created=created if created is not None else confirmed,
        date_confirmed=confirmed,
        status_id=status_id,
        total_amount=Decimal(total),
        items=items or [],
    )


def make_item(item_id, name, quantity=1, price='5.00', sku='', image_url=None):
    return OrderItem(
        id=str(item_id),
        name=name,
        sku=sku,
        quantity=quantity,
        unit_price=Decimal(price),
        image_url=image_url,
    )


def make_product(product_id, name=None, quantity=10, sku='', image_url=None):
    return InventoryProduct(
        id=str(product_id),
        name=name or f"Product {product_id}",
        sku=sku,
        quantity=quantity,
        image_url=image_url,
    )


class FakeConnector(OrderApiConnector):
    """
    Scripted connector. Each queue entry is either a result list or an
    exception instance to raise for that call.
    """

    def __init__(self):
        super().__init__({})
        self.order_pages = []
        self.order_requests = []
        self.lookup_requests = []
        self.missing_on_lookup = set()
        self.lookup_error = None

        self.statuses = []
        self.status_error = None

        self.inventories = []
        self.inventory_error = None
        self.product_id_pages = []
        self.product_list_requests = []
        self.detail_responses = {}
        self.detail_requests = []
        self.closed = False

    def get_orders(self, date_confirmed_from=None, date_confirmed_to=None, status_id=None,
                   order_ids=None, include_product_images=True, status_catalog=None):
        if order_ids is not None:
            self.lookup_requests.append(list(order_ids))
            if self.lookup_error:
                raise self.lookup_error
            return [make_order(i) for i in order_ids if i not in self.missing_on_lookup]

        self.order_requests.append({
            'date_confirmed_from': date_confirmed_from,
            'date_confirmed_to': date_confirmed_to,
            'status_id': status_id,
        })
        if not self.order_pages:
            return []
        page = self.order_pages.pop(0)
        if isinstance(page, Exception):
            raise page
        return list(page)

    def get_order_status_list(self):
        if self.status_error:
            raise self.status_error
        return list(self.statuses)

    def get_inventories(self):
        if self.inventory_error:
            raise self.inventory_error
        return list(self.inventories)

    def get_inventory_products_list(self, inventory_id, page=1, limit=1000):
        self.product_list_requests.append((inventory_id, page, limit))
        if not self.product_id_pages:
            return []
        ids = self.product_id_pages.pop(0)
        if isinstance(ids, Exception):
            raise ids
        return list(ids)

    def get_inventory_products_data(self, inventory_id, product_ids):
        index = len(self.detail_requests)
        self.detail_requests.append(list(product_ids))
        response = self.detail_responses.get(index)
        if isinstance(response, Exception):
            raise response
        if response is not None:
            return list(response)
        return [make_product(product_id) for product_id in product_ids]

    def close(self):
        self.closed = True


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def snapshot():
    return Snapshot()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def rate_gate(sleeps):
    return RateGate(0.5, sleep=sleeps.append)


@pytest.fixture
def statuses():
    return [
        OrderStatusInfo(id='1', name='New', customer_facing_name='Received', color='#0000ff'),
        OrderStatusInfo(id='2', name='Processing', customer_facing_name='In progress', color='#ffa500'),
    ]


@pytest.fixture
def inventories():
    return [Inventory(id='11', name='Main'), Inventory(id='12', name='Outlet')]
