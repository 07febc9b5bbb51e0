"""
BaseLinker connector implementation - single POST endpoint, method + JSON parameters
"""
import json
import logging
import requests
from typing import Any, Dict, List, Optional, Sequence

import parsers
from errors import TransportError
from models import Inventory, InventoryProduct, Order, OrderStatusInfo
from .base import OrderApiConnector

logger = logging.getLogger(__name__)

DEFAULT_API_URL = 'https://api.baselinker.com/connector.php'


def _numeric_id(value: str) -> Any:
    """API expects numeric ids where they look numeric"""
    try:
        return int(value)
    except (TypeError, ValueError):
        return value


class BaselinkerConnector(OrderApiConnector):
    """BaseLinker API connector. One attempt per call, no retries."""

    def __init__(self, config: Dict):
        super().__init__(config)

        self.api_url = config.get('api_url') or DEFAULT_API_URL
        self.api_token = config['api_token']
        self.timeout = config.get('timeout', 30)
        self.price_group_id = config.get('price_group_id')
        self.warehouse_id = config.get('warehouse_id')

        # Setup session with auth
        self.session = requests.Session()
        self.session.headers.update({
            'Content-Type': 'application/x-www-form-urlencoded',
            'X-BLToken': self.api_token
        })

    def call(self, method: str, parameters: Optional[Dict] = None) -> bytes:
        """Execute one API method, return raw response body"""
        body = {
            'method': method,
            'parameters': json.dumps(parameters or {}),
        }
        logger.debug(f"API request {method}: {body['parameters']}")

        try:
            response = self.session.post(self.api_url, data=body, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise TransportError(f"{method} failed: {e}") from e

        return response.content

    def request(self, method: str, parameters: Optional[Dict] = None) -> Dict:
        """Execute one API method, return the decoded SUCCESS payload"""
        return parsers.parse_envelope(self.call(method, parameters))

    def get_orders(
        self,
        date_confirmed_from: Optional[int] = None,
        date_confirmed_to: Optional[int] = None,
        status_id: Optional[str] = None,
        order_ids: Optional[Sequence[str]] = None,
        include_product_images: bool = True,
        status_catalog: Optional[Dict[str, OrderStatusInfo]] = None
    ) -> List[Order]:
        """Fetch one page of confirmed orders (API caps a page at 100)"""
        params = {
            'get_unconfirmed_orders': False,
            'include_product_images': include_product_images,
        }
        if date_confirmed_from is not None:
            params['date_confirmed_from'] = int(date_confirmed_from)
        if date_confirmed_to is not None:
            params['date_confirmed_to'] = int(date_confirmed_to)
        if status_id:
            params['status_id'] = _numeric_id(status_id)
        if order_ids:
            ids = [_numeric_id(order_id) for order_id in order_ids]
            params['order_id'] = ids[0] if len(ids) == 1 else ids

        payload = self.request('getOrders', params)
        return parsers.parse_orders(payload, status_catalog)

    def get_order_status_list(self) -> List[OrderStatusInfo]:
        payload = self.request('getOrderStatusList')
        return parsers.parse_statuses(payload)

    def get_inventories(self) -> List[Inventory]:
        payload = self.request('getInventories')
        return parsers.parse_inventories(payload)

    def get_inventory_products_list(self, inventory_id: str, page: int = 1, limit: int = 1000) -> List[str]:
        payload = self.request('getInventoryProductsList', {
            'inventory_id': _numeric_id(inventory_id),
            'page': page,
            'filter_limit': limit,
        })
        return parsers.parse_product_ids(payload)

    def get_inventory_products_data(self, inventory_id: str, product_ids: Sequence[str]) -> List[InventoryProduct]:
        payload = self.request('getInventoryProductsData', {
            'inventory_id': _numeric_id(inventory_id),
            'products': [_numeric_id(product_id) for product_id in product_ids],
        })
        return parsers.parse_inventory_products(payload, self.price_group_id, self.warehouse_id)

    def close(self):
        self.session.close()
