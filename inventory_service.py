"""
Inventory synchronization service - catalog discovery, product id listing,
batched product detail enrichment
"""
import logging
import threading
from contextlib import contextmanager
from typing import List, Optional

import config
from connectors.base import OrderApiConnector
from errors import SyncAlreadyInProgress, SyncError
from models import ConnectionStatus, Inventory, InventoryProduct, InventoryRefreshResult
from rate_gate import RateGate
from snapshot import Snapshot

logger = logging.getLogger(__name__)


def chunked(items: List[str], size: int) -> List[List[str]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class InventorySyncService:
    """Refreshes the product list of one selected inventory catalog"""

    def __init__(
        self,
        connector: OrderApiConnector,
        snapshot: Snapshot,
        list_page_size: int = config.PRODUCT_LIST_PAGE_SIZE,
        batch_size: int = config.PRODUCT_BATCH_SIZE,
        batch_delay: float = config.PRODUCT_BATCH_DELAY,
        preferred_inventory_id: Optional[str] = config.INVENTORY_ID,
        rate_gate: Optional[RateGate] = None
    ):
        self.connector = connector
        self.snapshot = snapshot
        self.list_page_size = max(1, list_page_size)
        self.batch_size = max(1, batch_size)
        self.preferred_inventory_id = preferred_inventory_id
        self.rate_gate = rate_gate or RateGate(batch_delay)
        self._refresh_lock = threading.Lock()

    @property
    def is_refreshing(self) -> bool:
        return self._refresh_lock.locked()

    @contextmanager
    def _exclusive(self):
        if not self._refresh_lock.acquire(blocking=False):
            raise SyncAlreadyInProgress("Inventory refresh already in progress")
        try:
            yield
        finally:
            self._refresh_lock.release()

    # Step 1: catalogs

    def fetch_inventories(self) -> List[Inventory]:
        """
        Load catalogs and select one if nothing is selected yet.

        Raises:
            SyncError: catalog list could not be fetched
        """
        inventories = self.connector.get_inventories()
        self.snapshot.set_inventories(inventories)
        logger.info(f"Found {len(inventories)} inventories")

        if self.snapshot.selected_inventory_id is None and inventories:
            ids = [inventory.id for inventory in inventories]
            if self.preferred_inventory_id in ids:
                selected = self.preferred_inventory_id
            else:
                selected = ids[0]
            self.snapshot.select_inventory(selected)
            logger.info(f"Selected inventory {selected}")

        return inventories

    def select_inventory(self, inventory_id: str):
        self.snapshot.select_inventory(inventory_id)

    # Full refresh

    def refresh(self, inventory_id: Optional[str] = None) -> Optional[InventoryRefreshResult]:
        """Run all stages for one catalog. None if a refresh is already running."""
        try:
            with self._exclusive():
                return self._run_refresh(inventory_id)
        except SyncAlreadyInProgress as e:
            logger.info(f"{e}, skipping")
            return None

    def _run_refresh(self, inventory_id: Optional[str]) -> InventoryRefreshResult:
        result = InventoryRefreshResult()

        try:
            if inventory_id is None:
                inventory_id = self.snapshot.selected_inventory_id
            if inventory_id is None:
                self.fetch_inventories()
                inventory_id = self.snapshot.selected_inventory_id
            if inventory_id is None:
                logger.warning("No inventories available, nothing to refresh")
                return result

            self.snapshot.select_inventory(inventory_id)
            result.inventory_id = inventory_id

            product_ids = self._list_product_ids(inventory_id)
        except SyncError as e:
            logger.error(f"Inventory refresh failed: {e}")
            result.error = str(e)
            self.snapshot.set_connection_status(ConnectionStatus.failed(str(e)))
            return result

        result.product_ids = len(product_ids)
        products = self._fetch_product_details(inventory_id, product_ids, result)

        published = self.snapshot.replace_inventory_products(products)
        result.products = len(published)

        low_stock = len([product for product in published if product.is_low_stock])
        logger.info(
            f"Inventory {inventory_id}: {len(published)} products "
            f"({low_stock} low stock, {len(result.failed_batches)} failed batches)"
        )
        return result

    # Step 2: product ids

    def _list_product_ids(self, inventory_id: str) -> List[str]:
        """Page through product ids while pages come back full"""
        product_ids: List[str] = []
        page = 1
        self.rate_gate.reset()

        while True:
            self.rate_gate.wait()
            ids = self.connector.get_inventory_products_list(inventory_id, page=page, limit=self.list_page_size)
            product_ids.extend(ids)
            logger.debug(f"Inventory {inventory_id} page {page}: {len(ids)} product ids")

            if len(ids) < self.list_page_size:
                break
            page += 1

        # Keep first occurrence, pages may overlap
        return list(dict.fromkeys(product_ids))

    # Step 3: product details

    def _fetch_product_details(
        self,
        inventory_id: str,
        product_ids: List[str],
        result: InventoryRefreshResult
    ) -> List[InventoryProduct]:
        """Fetch details batch by batch; a failed batch is skipped, never fatal"""
        batches = chunked(product_ids, self.batch_size)
        total = len(batches)
        products: List[InventoryProduct] = []

        self.snapshot.set_inventory_progress(0.0)
        self.rate_gate.reset()

        for index, batch in enumerate(batches):
            self.rate_gate.wait()
            try:
                products.extend(self.connector.get_inventory_products_data(inventory_id, batch))
            except SyncError as e:
                logger.warning(f"Product batch {index + 1}/{total} failed, skipping: {e}")
                result.failed_batches.append(index)
                self.snapshot.set_connection_status(ConnectionStatus.failed(str(e)))

            self.snapshot.set_inventory_progress((index + 1) / total)

        return products

    def close(self):
        self.connector.close()
