"""
Process-wide in-memory state: orders, inventory, sync cursor, connection status.

Only the sync services and the summary job mutate it. All mutations run under
one lock, so a merged page or a refreshed product list becomes visible in a
single step. Readers get copies. Listeners are notified after the lock is
released.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from models import (
    ConnectionStatus, DailySummary, Inventory, InventoryProduct, Order, OrderStatusInfo
)

logger = logging.getLogger(__name__)

ORDERS = 'orders'
INVENTORY = 'inventory'
CONNECTION = 'connection'
PROGRESS = 'progress'
SUMMARY = 'summary'
STATUSES = 'statuses'


@dataclass(frozen=True)
class SnapshotEvent:
    kind: str
    payload: Any = None


Listener = Callable[[SnapshotEvent], None]


def _dedup(items: Iterable, key=lambda item: item.id) -> List:
    seen = set()
    unique = []
    for item in items:
        item_key = key(item)
        if item_key in seen:
            continue
        seen.add(item_key)
        unique.append(item)
    return unique


def _sort_orders(orders: List[Order]) -> List[Order]:
    # Newest first; sort is stable so equal timestamps keep their order
    return sorted(orders, key=lambda order: order.date_created, reverse=True)


class Snapshot:
    """Authoritative in-memory copy of what the presentation layer shows"""

    def __init__(self):
        self._lock = threading.RLock()
        self._listeners: List[Listener] = []

        self._orders: List[Order] = []
        self._status_catalog: Dict[str, OrderStatusInfo] = {}
        self._last_order_sync: Optional[datetime] = None

        self._inventories: List[Inventory] = []
        self._selected_inventory_id: Optional[str] = None
        self._inventory_products: List[InventoryProduct] = []
        self._inventory_progress: float = 0.0

        self._connection_status = ConnectionStatus.not_connected()
        self._daily_summary: Optional[DailySummary] = None

    # Listeners

    def subscribe(self, listener: Listener):
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: Listener):
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _emit(self, kind: str, payload: Any = None):
        event = SnapshotEvent(kind, payload)
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(f"Snapshot listener failed on '{kind}' event")

    # Read-only views

    @property
    def orders(self) -> List[Order]:
        with self._lock:
            return list(self._orders)

    @property
    def order_ids(self) -> List[str]:
        with self._lock:
            return [order.id for order in self._orders]

    @property
    def cursor(self) -> Optional[int]:
        """Max date_confirmed in the snapshot; None means never synced"""
        with self._lock:
            if not self._orders:
                return None
            return max(order.date_confirmed for order in self._orders)

    @property
    def status_catalog(self) -> Dict[str, OrderStatusInfo]:
        with self._lock:
            return dict(self._status_catalog)

    @property
    def last_order_sync(self) -> Optional[datetime]:
        return self._last_order_sync

    @property
    def inventories(self) -> List[Inventory]:
        with self._lock:
            return list(self._inventories)

    @property
    def selected_inventory_id(self) -> Optional[str]:
        return self._selected_inventory_id

    @property
    def inventory_products(self) -> List[InventoryProduct]:
        with self._lock:
            return list(self._inventory_products)

    @property
    def inventory_progress(self) -> float:
        return self._inventory_progress

    @property
    def connection_status(self) -> ConnectionStatus:
        return self._connection_status

    @property
    def daily_summary(self) -> Optional[DailySummary]:
        return self._daily_summary

    def is_empty(self) -> bool:
        with self._lock:
            return not self._orders

    # Orders

    def _attach_status(self, order: Order):
        if order.status_id in self._status_catalog:
            order.status = self._status_catalog[order.status_id]

    def replace_orders(self, orders: Iterable[Order]) -> List[Order]:
        """Full rebuild: drop everything, keep first occurrence of each id"""
        with self._lock:
            unique = _dedup(orders)
            for order in unique:
                self._attach_status(order)
            self._orders = _sort_orders(unique)
            result = list(self._orders)
        self._emit(ORDERS, result)
        return unique

    def merge_orders(self, orders: Iterable[Order]) -> List[Order]:
        """Append orders whose id is not present yet. Returns the ones added."""
        with self._lock:
            existing_ids = {order.id for order in self._orders}
            added = [order for order in _dedup(orders) if order.id not in existing_ids]
            if not added:
                return []
            for order in added:
                self._attach_status(order)
            self._orders = _sort_orders(self._orders + added)
            result = list(self._orders)
        self._emit(ORDERS, result)
        return added

    def remove_orders(self, order_ids: Iterable[str]) -> List[Order]:
        ids = set(order_ids)
        with self._lock:
            removed = [order for order in self._orders if order.id in ids]
            if not removed:
                return []
            self._orders = [order for order in self._orders if order.id not in ids]
            result = list(self._orders)
        self._emit(ORDERS, result)
        return removed

    def set_status_catalog(self, statuses: Iterable[OrderStatusInfo]):
        """Store catalog and back-fill status info on orders already loaded"""
        with self._lock:
            self._status_catalog = {status.id: status for status in statuses}
            for order in self._orders:
                order.status = self._status_catalog.get(order.status_id)
            catalog = dict(self._status_catalog)
        self._emit(STATUSES, catalog)

    def mark_order_sync(self, when: Optional[datetime] = None):
        self._last_order_sync = when or datetime.now(timezone.utc)

    # Inventory

    def set_inventories(self, inventories: Iterable[Inventory]):
        with self._lock:
            self._inventories = list(inventories)
            result = list(self._inventories)
        self._emit(INVENTORY, result)

    def select_inventory(self, inventory_id: Optional[str]):
        with self._lock:
            self._selected_inventory_id = inventory_id

    def replace_inventory_products(self, products: Iterable[InventoryProduct]) -> List[InventoryProduct]:
        """Publish a complete refresh: dedup by id, sort by name"""
        unique = sorted(_dedup(products), key=lambda product: product.name)
        with self._lock:
            self._inventory_products = unique
            self._inventory_progress = 1.0
        self._emit(INVENTORY, list(unique))
        return unique

    def set_inventory_progress(self, progress: float):
        self._inventory_progress = min(1.0, max(0.0, progress))
        self._emit(PROGRESS, self._inventory_progress)

    # Status / aggregates

    def set_connection_status(self, status: ConnectionStatus):
        with self._lock:
            changed = status != self._connection_status
            self._connection_status = status
        if changed:
            logger.info(f"Connection status: {status.description}")
            self._emit(CONNECTION, status)

    def set_daily_summary(self, summary: DailySummary):
        self._daily_summary = summary
        self._emit(SUMMARY, summary)
