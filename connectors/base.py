"""
Base connector interface - one implementation per order-management API
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from models import Inventory, InventoryProduct, Order, OrderStatusInfo


class OrderApiConnector(ABC):
    """Base class for all order-management API connectors"""

    def __init__(self, config: Dict):
        self.config = config

    @abstractmethod
    def get_orders(
        self,
        date_confirmed_from: Optional[int] = None,
        date_confirmed_to: Optional[int] = None,
        status_id: Optional[str] = None,
        order_ids: Optional[Sequence[str]] = None,
        include_product_images: bool = True,
        status_catalog: Optional[Dict[str, OrderStatusInfo]] = None
    ) -> List[Order]:
        """Fetch one page of confirmed orders"""
        pass

    @abstractmethod
    def get_order_status_list(self) -> List[OrderStatusInfo]:
        """Fetch the account's order statuses"""
        pass

    @abstractmethod
    def get_inventories(self) -> List[Inventory]:
        """Fetch available inventory catalogs"""
        pass

    @abstractmethod
    def get_inventory_products_list(self, inventory_id: str, page: int = 1, limit: int = 1000) -> List[str]:
        """Fetch one page of product ids from a catalog"""
        pass

    @abstractmethod
    def get_inventory_products_data(self, inventory_id: str, product_ids: Sequence[str]) -> List[InventoryProduct]:
        """Fetch detail records for a batch of product ids"""
        pass

    def close(self):
        """Release network resources"""
        pass
