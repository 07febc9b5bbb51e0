"""
Aggregations over the synchronized orders - statistics, top products, daily summary
"""
import logging
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from models import DailySummary, InventoryProduct, Order, TopProduct

logger = logging.getLogger(__name__)

NEW_ORDER_STATUS_ID = '1'


def find_inventory_image(products: Sequence[InventoryProduct], sku: str, product_id: str) -> Optional[str]:
    """
    Best-effort image lookup for an order line in the inventory.

    Matches by SKU first (only non-empty SKUs), then by product id.
    """
    match = None
    if sku:
        match = next((p for p in products if p.sku == sku), None)
    if match is None:
        match = next((p for p in products if p.id == product_id), None)
    if match is not None and match.image_url:
        return match.image_url
    return None


def order_statistics(orders: Sequence[Order]) -> Dict[str, Decimal]:
    """Total value, average value and order count per status"""
    total = sum((order.total_amount for order in orders), Decimal('0'))
    statistics = {
        'total_value': total,
        'average_order_value': total / len(orders) if orders else Decimal('0'),
    }
    for order in orders:
        key = f"status_{order.status_id}"
        statistics[key] = statistics.get(key, Decimal('0')) + 1
    return statistics


def top_selling_products(
    orders: Sequence[Order],
    products: Sequence[InventoryProduct] = (),
    limit: int = 5
) -> List[TopProduct]:
    """Products grouped by name with summed quantities, best sellers first"""
    grouped: Dict[str, TopProduct] = {}

    for order in orders:
        for item in order.items:
            existing = grouped.get(item.name)
            if existing is None:
                grouped[item.name] = TopProduct(
                    name=item.name,
                    quantity=item.quantity,
                    id=item.id,
                    sku=item.sku,
                    image_url=item.image_url,
                )
                continue
            existing.quantity += item.quantity
            # Prefer a real URL if one shows up later
            if item.image_url and item.image_url.startswith('http'):
                existing.image_url = item.image_url

    for product in grouped.values():
        image_url = find_inventory_image(products, product.sku, product.id)
        if image_url:
            product.image_url = image_url

    ranked = sorted(grouped.values(), key=lambda product: product.quantity, reverse=True)
    return ranked[:limit]


def sales_last_week(orders: Sequence[Order], today: Optional[date] = None) -> List[Tuple[date, Decimal]]:
    """Order value per local calendar day for the last 7 days, oldest first"""
    today = today or datetime.now().astimezone().date()
    days = [today - timedelta(days=offset) for offset in range(6, -1, -1)]
    totals = {day: Decimal('0') for day in days}

    for order in orders:
        order_day = order.created_at.astimezone().date()
        if order_day in totals:
            totals[order_day] += order.total_amount

    return [(day, totals[day]) for day in days]


def daily_summary(
    orders: Sequence[Order],
    products: Sequence[InventoryProduct] = (),
    now: Optional[datetime] = None
) -> DailySummary:
    """Summary of orders created in the last 24 hours"""
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(hours=24)

    recent = [order for order in orders if since <= order.created_at <= now]

    return DailySummary(
        order_count=len(recent),
        total_value=sum((order.total_amount for order in recent), Decimal('0')),
        new_orders_count=len([o for o in recent if o.status_id == NEW_ORDER_STATUS_ID]),
        top_products=top_selling_products(recent, products, limit=5),
        generated_at=now,
    )


def recompute_daily_summary(snapshot) -> DailySummary:
    """Periodic job - recompute and publish the daily summary"""
    summary = daily_summary(snapshot.orders, snapshot.inventory_products)
    snapshot.set_daily_summary(summary)
    logger.info(
        f"Daily summary: {summary.order_count} orders, total {summary.total_value:.2f}, "
        f"{summary.new_orders_count} new"
    )
    return summary
