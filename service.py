"""
Core order synchronization service
"""
import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, List, Optional, Union

import config
from aggregates import daily_summary
from connectors.base import OrderApiConnector
from errors import SyncAlreadyInProgress, SyncError
from models import ConnectionStatus, Order, SyncResult
from notifications import NewOrderNotifier
from rate_gate import RateGate
from snapshot import Snapshot

logger = logging.getLogger(__name__)

Timestamp = Union[int, float, datetime]


def _as_timestamp(value: Optional[Timestamp]) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return int(value.timestamp())
    return int(value)


def _local_now() -> datetime:
    return datetime.now().astimezone()


class OrderSyncService:
    """
    Keeps the snapshot's order list in sync with the API.

    Full sync rebuilds the list from a start date; delta sync fetches only
    orders confirmed after the newest one we hold and then sweeps recently
    confirmed orders for remote deletions. At most one of them runs at a time.
    """

    def __init__(
        self,
        connector: OrderApiConnector,
        snapshot: Snapshot,
        notifier: Optional[NewOrderNotifier] = None,
        page_size: int = config.ORDER_PAGE_SIZE,
        page_delay: float = config.ORDER_PAGE_DELAY,
        delete_check_limit: int = config.DELETE_CHECK_LIMIT,
        rate_gate: Optional[RateGate] = None,
        clock: Callable[[], datetime] = _local_now
    ):
        self.connector = connector
        self.snapshot = snapshot
        self.notifier = notifier
        self.page_size = max(1, page_size)
        self.delete_check_limit = max(1, min(delete_check_limit, 100))
        self.rate_gate = rate_gate or RateGate(page_delay)
        self.clock = clock
        self._sync_lock = threading.Lock()

    @property
    def is_syncing(self) -> bool:
        return self._sync_lock.locked()

    @contextmanager
    def _exclusive(self):
        if not self._sync_lock.acquire(blocking=False):
            raise SyncAlreadyInProgress("Order sync already in progress")
        try:
            yield
        finally:
            self._sync_lock.release()

    # Connection

    def test_connection(self) -> bool:
        """Probe the API with a single getOrders call"""
        self.snapshot.set_connection_status(ConnectionStatus.connecting())

        try:
            orders = self.connector.get_orders(date_confirmed_from=0)
        except SyncError as e:
            logger.error(f"Connection test failed: {e}")
            self.snapshot.set_connection_status(ConnectionStatus.failed(str(e)))
            return False

        logger.info(f"Connection test OK ({len(orders)} orders on first page)")
        self.snapshot.set_connection_status(ConnectionStatus.connected())
        return True

    def connect(self) -> Optional[SyncResult]:
        """Test connection, load statuses, run the initial full sync"""
        if not self.test_connection():
            return None
        self.load_status_catalog()
        return self.sync()

    def load_status_catalog(self) -> bool:
        """Fetch order statuses; orders already loaded get back-filled"""
        try:
            statuses = self.connector.get_order_status_list()
        except SyncError as e:
            logger.warning(f"Could not load order statuses: {e}")
            return False

        self.snapshot.set_status_catalog(statuses)
        logger.info(f"Loaded {len(statuses)} order statuses")
        return True

    # Full sync

    def sync(
        self,
        date_from: Optional[Timestamp] = None,
        date_to: Optional[Timestamp] = None,
        status_id: Optional[str] = None
    ) -> Optional[SyncResult]:
        """Rebuild the order list from date_from (or the beginning). None if a sync is running."""
        try:
            with self._exclusive():
                return self._run_full(_as_timestamp(date_from), _as_timestamp(date_to), status_id)
        except SyncAlreadyInProgress as e:
            logger.info(f"{e}, skipping full sync")
            return None

    def _run_full(self, date_from: Optional[int], date_to: Optional[int], status_id: Optional[str]) -> SyncResult:
        cursor = date_from or 0
        logger.info(f"Full order sync from {cursor}")

        # connect() may have failed before statuses were loaded
        if not self.snapshot.status_catalog:
            self.load_status_catalog()

        result = SyncResult(mode='full')
        self._fetch_batches(result, cursor, date_to, status_id, replace_first=True)
        self._finish(result)
        return result

    # Delta sync

    def delta_sync(self) -> Optional[SyncResult]:
        """Fetch orders confirmed after the snapshot cursor. None if a sync is running."""
        try:
            with self._exclusive():
                cursor = self.snapshot.cursor
                if cursor is None:
                    logger.info("No orders yet, delta sync falls back to full sync")
                    return self._run_full(None, None, None)
                return self._run_delta(cursor + 1)
        except SyncAlreadyInProgress as e:
            logger.info(f"{e}, skipping delta sync")
            return None

    def _run_delta(self, cursor: int) -> SyncResult:
        logger.debug(f"Delta order sync from {cursor}")

        result = SyncResult(mode='delta')
        added = self._fetch_batches(result, cursor, None, None, replace_first=False)

        if result.ok:
            result.removed = len(self._detect_deleted_orders())

        self._finish(result)

        if added:
            logger.info(f"{len(added)} new orders")
            self._notify(added)
        return result

    # Batched fetch loop

    def _fetch_batches(
        self,
        result: SyncResult,
        cursor: int,
        date_to: Optional[int],
        status_id: Optional[str],
        replace_first: bool
    ) -> List[Order]:
        """
        Page through confirmed orders starting at cursor.

        A full page means there may be more: the next page starts one second
        after the newest date_confirmed of the page just fetched. A short page
        ends the run. Errors abort the remaining pages; merged pages stay.
        Returns orders that were added to a non-empty snapshot.
        """
        added: List[Order] = []
        self.rate_gate.reset()

        while True:
            self.rate_gate.wait()
            try:
                page = self.connector.get_orders(
                    date_confirmed_from=cursor,
                    date_confirmed_to=date_to,
                    status_id=status_id,
                    status_catalog=self.snapshot.status_catalog
                )
            except SyncError as e:
                logger.error(f"Order page {result.pages + 1} failed, aborting sync: {e}")
                result.error = str(e)
                break

            result.pages += 1
            result.fetched += len(page)
            result.cursor = cursor

            if replace_first and result.pages == 1:
                result.added += len(self.snapshot.replace_orders(page))
            else:
                merged = self.snapshot.merge_orders(page)
                result.added += len(merged)
                added.extend(merged)

            logger.debug(f"Page {result.pages}: {len(page)} orders from cursor {cursor}")

            if len(page) < self.page_size:
                break

            max_confirmed = max((order.date_confirmed for order in page), default=None)
            if max_confirmed is None:
                logger.warning("Full page without date_confirmed, stopping pagination")
                break

            next_cursor = max_confirmed + 1
            if next_cursor <= cursor:
                logger.warning(f"Cursor would not advance ({next_cursor} <= {cursor}), stopping pagination")
                break
            cursor = next_cursor

        return added

    def _finish(self, result: SyncResult):
        if result.ok:
            self.snapshot.mark_order_sync()
            self.snapshot.set_connection_status(ConnectionStatus.connected())
        else:
            self.snapshot.set_connection_status(ConnectionStatus.failed(result.error))

    # Deleted-order detection

    def detect_deleted_orders(self) -> Optional[List[Order]]:
        """Run the deletion sweep on its own. None if a sync is running."""
        try:
            with self._exclusive():
                self.rate_gate.reset()
                return self._detect_deleted_orders()
        except SyncAlreadyInProgress as e:
            logger.info(f"{e}, skipping deletion check")
            return None

    def _start_of_today(self) -> datetime:
        return self.clock().replace(hour=0, minute=0, second=0, microsecond=0)

    def _detect_deleted_orders(self) -> List[Order]:
        """
        Look up the most recently confirmed orders by id and drop the ones the
        API no longer returns. Orders created today are kept even when missing,
        the remote side may simply not have caught up yet.
        """
        recent = sorted(self.snapshot.orders, key=lambda order: order.date_confirmed, reverse=True)
        recent = recent[:self.delete_check_limit]
        if not recent:
            return []

        # Same call sequence as the page fetch that precedes it
        self.rate_gate.wait()
        try:
            found = self.connector.get_orders(order_ids=[order.id for order in recent])
        except SyncError as e:
            logger.warning(f"Deletion check failed, keeping all orders: {e}")
            return []

        found_ids = {order.id for order in found}
        missing = [order for order in recent if order.id not in found_ids]
        if not missing:
            return []

        start_of_today = self._start_of_today()
        stale_ids = [order.id for order in missing if order.created_at < start_of_today]

        kept = len(missing) - len(stale_ids)
        if kept:
            logger.info(f"Keeping {kept} orders from today missing in deletion check")

        removed = self.snapshot.remove_orders(stale_ids)
        for order in removed:
            logger.info(f"Order {order.order_number} deleted remotely, removed")
        return removed

    # Notifications

    def _notify(self, orders: List[Order]):
        if self.notifier is None:
            return

        summary = daily_summary(self.snapshot.orders, self.snapshot.inventory_products)
        for order in sorted(orders, key=lambda order: order.date_created):
            try:
                self.notifier.notify_new_order(order, summary)
            except Exception:
                logger.exception(f"Notifier failed for order {order.order_number}")

    def close(self):
        """Close connector session"""
        self.connector.close()
