"""
In-memory records for orders, inventory products and sync state
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

LOW_STOCK_THRESHOLD = 5


def _from_timestamp(value: Optional[int]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


@dataclass
class OrderStatusInfo:
    """Entry of the account's order status list"""
    id: str
    name: str
    customer_facing_name: str = ''
    color: str = ''


@dataclass
class OrderItem:
    """Order line item"""
    id: str
    name: str
    sku: str = ''
    quantity: int = 1
    unit_price: Decimal = Decimal('0')
    image_url: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(eq=False)
class Order:
    """Order as seen by the sync engine. Identity is the API-assigned id."""
    id: str
    order_number: str
    date_created: int
    date_confirmed: int
    status_id: str = '0'
    total_amount: Decimal = Decimal('0')
    currency: str = 'PLN'
    customer_name: str = ''
    customer_email: str = ''
    items: List[OrderItem] = field(default_factory=list)

    # Attached from the status catalog after parsing
    status: Optional[OrderStatusInfo] = None

    def __eq__(self, other):
        if not isinstance(other, Order):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)

    @property
    def created_at(self) -> datetime:
        return _from_timestamp(self.date_created)

    @property
    def confirmed_at(self) -> datetime:
        return _from_timestamp(self.date_confirmed)

    @property
    def status_name(self) -> str:
        return self.status.name if self.status else self.status_id


@dataclass
class Inventory:
    """Product catalog (warehouse)"""
    id: str
    name: str


@dataclass
class InventoryProduct:
    """Product from an inventory catalog, enriched with stock, price and image"""
    id: str
    name: str
    sku: str = ''
    ean: Optional[str] = None
    price: Decimal = Decimal('0')
    quantity: int = 0
    image_url: Optional[str] = None
    last_update_date: Optional[int] = None
    description: Optional[str] = None
    category_id: Optional[str] = None
    attributes: Dict[str, str] = field(default_factory=dict)

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= LOW_STOCK_THRESHOLD

    @property
    def last_updated_at(self) -> Optional[datetime]:
        return _from_timestamp(self.last_update_date)


class ConnectionState(Enum):
    NOT_CONNECTED = 'not_connected'
    CONNECTING = 'connecting'
    CONNECTED = 'connected'
    FAILED = 'failed'


@dataclass(frozen=True)
class ConnectionStatus:
    """Result of the last connectivity probe or sync attempt"""
    state: ConnectionState = ConnectionState.NOT_CONNECTED
    reason: Optional[str] = None

    @classmethod
    def not_connected(cls) -> 'ConnectionStatus':
        return cls(ConnectionState.NOT_CONNECTED)

    @classmethod
    def connecting(cls) -> 'ConnectionStatus':
        return cls(ConnectionState.CONNECTING)

    @classmethod
    def connected(cls) -> 'ConnectionStatus':
        return cls(ConnectionState.CONNECTED)

    @classmethod
    def failed(cls, reason: str) -> 'ConnectionStatus':
        return cls(ConnectionState.FAILED, reason)

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def description(self) -> str:
        if self.state is ConnectionState.FAILED:
            return f"Error: {self.reason}"
        return {
            ConnectionState.NOT_CONNECTED: 'Not connected',
            ConnectionState.CONNECTING: 'Connecting...',
            ConnectionState.CONNECTED: 'Connected',
        }[self.state]


@dataclass
class TopProduct:
    name: str
    quantity: int
    id: str
    sku: str = ''
    image_url: Optional[str] = None


@dataclass
class DailySummary:
    """Aggregates over the last 24 hours of orders"""
    order_count: int
    total_value: Decimal
    new_orders_count: int
    top_products: List[TopProduct] = field(default_factory=list)
    generated_at: Optional[datetime] = None

    @property
    def average_value(self) -> Decimal:
        if not self.order_count:
            return Decimal('0')
        return self.total_value / self.order_count


@dataclass
class SyncResult:
    """Outcome of one full or delta order sync run"""
    mode: str
    pages: int = 0
    fetched: int = 0
    added: int = 0
    removed: int = 0
    cursor: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class InventoryRefreshResult:
    """Outcome of one inventory refresh cycle"""
    inventory_id: Optional[str] = None
    product_ids: int = 0
    products: int = 0
    failed_batches: List[int] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None
