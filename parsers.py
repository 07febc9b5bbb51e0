"""
Response decoding - API envelope plus defensive per-record field parsing.

Every scalar the API returns may come as its natural type or as a string or
number alternate (ids as ints, prices as strings, timestamps as strings...).
Helpers here accept all of those and fall back to a default instead of
failing the record. Record-level problems are logged and the record skipped;
only a broken envelope raises.
"""
import json
import logging
import time
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from errors import ApiError, DecodeError
from models import Inventory, InventoryProduct, Order, OrderItem, OrderStatusInfo

logger = logging.getLogger(__name__)

SUCCESS = 'SUCCESS'

# Seconds reach 1e11 only in the year 5138; larger values are milliseconds
MILLISECONDS_THRESHOLD = 10 ** 11


# Scalar helpers

def to_str(value: Any, default: str = '') -> str:
    """Coerce ids/labels that may arrive as str, int or float"""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    return default


def to_int(value: Any, default: Optional[int] = 0) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        if isinstance(value, str):
            value = value.strip().replace(',', '.')
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def to_decimal(value: Any, default: Decimal = Decimal('0')) -> Decimal:
    if value is None or isinstance(value, bool):
        return default
    try:
        if isinstance(value, str):
            result = Decimal(value.strip().replace(',', '.'))
        elif isinstance(value, (int, float)):
            result = Decimal(str(value))
        else:
            return default
    except InvalidOperation:
        return default
    return result if result.is_finite() else default


def _representable(seconds: int) -> bool:
    try:
        datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return False
    return True


def to_timestamp(value: Any, default: Optional[int] = None) -> int:
    """
    Unix seconds; falls back to `default`, or to now when no default is given.

    Millisecond values are scaled down to seconds. Anything that still does
    not map to a datetime is treated as missing.
    """
    result = to_int(value, default=None)
    if result is not None and result > MILLISECONDS_THRESHOLD:
        result //= 1000
    if result is None or result < 0 or not _representable(result):
        if default is not None:
            return default
        return int(time.time())
    return result


def _optional_str(value: Any) -> Optional[str]:
    return to_str(value) or None


def _pick(mapping: Any, preferred_key: Optional[str]) -> Any:
    """Value under preferred_key, else the first value of the mapping"""
    if not isinstance(mapping, Mapping) or not mapping:
        return None
    if preferred_key is not None and preferred_key in mapping:
        return mapping[preferred_key]
    return next(iter(mapping.values()))


# Envelope

def parse_envelope(raw: Union[bytes, str]) -> Dict[str, Any]:
    """
    Decode raw response body into the JSON object.

    Raises:
        DecodeError: body is not a JSON object
        ApiError: status flag is not SUCCESS
    """
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Invalid JSON in API response: {e}") from e

    if not isinstance(payload, dict):
        raise DecodeError(f"Expected JSON object, got {type(payload).__name__}")

    if payload.get('status') != SUCCESS:
        raise ApiError(
            to_str(payload.get('error_message'), 'Unknown API error'),
            code=_optional_str(payload.get('error_code'))
        )

    return payload


def _records(payload: Mapping, key: str) -> Iterable:
    value = payload.get(key)
    if value is None:
        return []
    # PHP encodes an empty object as []
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return value.items()
    raise DecodeError(f"Unexpected type for '{key}': {type(value).__name__}")


# Orders

def parse_order_item(data: Mapping) -> OrderItem:
    # Lines without any id are kept, their value still counts towards the total
    item_id = to_str(data.get('product_id')) or to_str(data.get('order_product_id'))

    quantity = to_int(data.get('quantity'), default=1)
    if quantity < 0:
        quantity = 1

    return OrderItem(
        id=item_id,
        name=to_str(data.get('name')) or 'No name',
        sku=to_str(data.get('sku')),
        quantity=quantity,
        unit_price=to_decimal(data.get('price_brutto')),
        image_url=_optional_str(data.get('image_url')),
    )


def parse_order(data: Mapping, status_catalog: Optional[Mapping[str, OrderStatusInfo]] = None) -> Optional[Order]:
    """Build an Order from an API record; None when the record has no id"""
    order_id = to_str(data.get('order_id'))
    if not order_id:
        return None

    items = []
    for product in data.get('products') or []:
        if not isinstance(product, Mapping):
            continue
        items.append(parse_order_item(product))

    total = to_decimal(data.get('price_total'))
    if total == 0:
        total = sum((item.line_total for item in items), Decimal('0'))

    date_created = to_timestamp(data.get('date_add'))
    status_id = to_str(data.get('order_status_id'), '0') or '0'

    order = Order(
        id=order_id,
        order_number=to_str(data.get('order_number')) or f"BL-{order_id}",
        date_created=date_created,
        date_confirmed=to_timestamp(data.get('date_confirmed'), default=date_created),
        status_id=status_id,
        total_amount=total,
        currency=to_str(data.get('currency')) or 'PLN',
        customer_name=(
            to_str(data.get('delivery_fullname'))
            or to_str(data.get('invoice_fullname'))
            or to_str(data.get('user_login'))
        ),
        customer_email=to_str(data.get('email')),
        items=items,
    )
    if status_catalog:
        order.status = status_catalog.get(status_id)
    return order


def parse_orders(payload: Mapping, status_catalog: Optional[Mapping[str, OrderStatusInfo]] = None) -> List[Order]:
    orders = []
    for record in _records(payload, 'orders'):
        if not isinstance(record, Mapping):
            logger.warning(f"Skipping malformed order record: {record!r}")
            continue
        try:
            order = parse_order(record, status_catalog)
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Skipping order {record.get('order_id')!r}: {e}")
            continue
        if order is None:
            logger.warning("Skipping order record without order_id")
            continue
        orders.append(order)
    return orders


def parse_statuses(payload: Mapping) -> List[OrderStatusInfo]:
    statuses = []
    for record in _records(payload, 'statuses'):
        if not isinstance(record, Mapping):
            continue
        status_id = to_str(record.get('id'))
        if not status_id:
            continue
        name = to_str(record.get('name')) or status_id
        statuses.append(OrderStatusInfo(
            id=status_id,
            name=name,
            customer_facing_name=to_str(record.get('name_for_customer')) or name,
            color=to_str(record.get('color')),
        ))
    return statuses


# Inventory

def parse_inventories(payload: Mapping) -> List[Inventory]:
    inventories = []
    for record in _records(payload, 'inventories'):
        if not isinstance(record, Mapping):
            continue
        inventory_id = to_str(record.get('inventory_id'))
        if not inventory_id:
            continue
        inventories.append(Inventory(id=inventory_id, name=to_str(record.get('name')) or inventory_id))
    return inventories


def parse_product_ids(payload: Mapping) -> List[str]:
    """Ids from getInventoryProductsList - keys of the products object"""
    ids = []
    for entry in _records(payload, 'products'):
        if isinstance(entry, tuple):
            product_id = to_str(entry[0])
        elif isinstance(entry, Mapping):
            product_id = to_str(entry.get('id'))
        else:
            continue
        if product_id:
            ids.append(product_id)
    return ids


def parse_inventory_product(
    product_id: Any,
    data: Mapping,
    price_group_id: Optional[str] = None,
    warehouse_id: Optional[str] = None
) -> Optional[InventoryProduct]:
    product_id = to_str(product_id) or to_str(data.get('id'))
    if not product_id:
        return None

    text_fields = data.get('text_fields')
    if not isinstance(text_fields, Mapping):
        text_fields = {}

    images = data.get('images')
    image_url = None
    if isinstance(images, Mapping) and images:
        image_url = _optional_str(images.get('1') or images[min(images, key=lambda key: to_int(key, 0))])
    elif isinstance(images, list) and images:
        image_url = _optional_str(images[0])

    attributes = {}
    features = text_fields.get('features')
    if isinstance(features, Mapping):
        attributes = {str(key): str(value) for key, value in features.items()}

    return InventoryProduct(
        id=product_id,
        name=to_str(text_fields.get('name')) or to_str(data.get('name')) or 'No name',
        sku=to_str(data.get('sku')),
        ean=_optional_str(data.get('ean')),
        price=to_decimal(_pick(data.get('prices'), price_group_id)),
        quantity=to_int(_pick(data.get('stock'), warehouse_id), default=0),
        image_url=image_url,
        last_update_date=to_int(data.get('date_updated'), default=None),
        description=_optional_str(text_fields.get('description_extra1') or text_fields.get('description')),
        category_id=_optional_str(data.get('category_id')),
        attributes=attributes,
    )


def parse_inventory_products(
    payload: Mapping,
    price_group_id: Optional[str] = None,
    warehouse_id: Optional[str] = None
) -> List[InventoryProduct]:
    products = []
    for entry in _records(payload, 'products'):
        if isinstance(entry, tuple):
            product_id, record = entry
        else:
            product_id, record = None, entry
        if not isinstance(record, Mapping):
            logger.warning(f"Skipping malformed product record {product_id!r}")
            continue
        try:
            product = parse_inventory_product(product_id, record, price_group_id, warehouse_id)
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Skipping product {product_id!r}: {e}")
            continue
        if product:
            products.append(product)
    return products
