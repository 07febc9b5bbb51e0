"""
API management script - test connection, browse inventories and statuses, sync on demand
"""
import sys
from datetime import datetime, timedelta, timezone

import config
from aggregates import daily_summary, order_statistics, sales_last_week, top_selling_products
from connectors import get_default_connector
from errors import SyncError
from inventory_service import InventorySyncService
from logging_config import setup_logging
from service import OrderSyncService
from snapshot import Snapshot


def test_connection(order_service: OrderSyncService):
    """Probe the API and show the result"""
    print("\nTesting connection...")
    ok = order_service.test_connection()
    status = order_service.snapshot.connection_status
    if ok:
        print(f"✓ {status.description}")
    else:
        print(f"✗ {status.description}")


def list_inventories(inventory_service: InventorySyncService):
    """List inventory catalogs"""
    try:
        inventories = inventory_service.fetch_inventories()
    except SyncError as e:
        print(f"✗ Could not fetch inventories: {e}")
        return

    if not inventories:
        print("No inventories found.")
        return

    selected = inventory_service.snapshot.selected_inventory_id

    print("\n" + "=" * 80)
    print("INVENTORIES")
    print("=" * 80)
    for inventory in inventories:
        marker = " (selected)" if inventory.id == selected else ""
        print(f"[{inventory.id}] {inventory.name}{marker}")
    print("=" * 80)


def select_inventory(inventory_service: InventorySyncService):
    """Pick the catalog used by product refresh"""
    inventory_id = input("\nInventory ID (or 'c' to cancel): ").strip()
    if not inventory_id or inventory_id.lower() == 'c':
        print("Cancelled.")
        return
    known = [inventory.id for inventory in inventory_service.snapshot.inventories]
    if known and inventory_id not in known:
        print("Error: Unknown inventory ID")
        return
    inventory_service.select_inventory(inventory_id)
    print(f"✓ Selected inventory {inventory_id}")


def list_statuses(order_service: OrderSyncService):
    """List order statuses"""
    if not order_service.load_status_catalog():
        print("✗ Could not fetch order statuses")
        return

    print("\n" + "=" * 80)
    print("ORDER STATUSES")
    print("=" * 80)
    for status in order_service.snapshot.status_catalog.values():
        print(f"[{status.id}] {status.name}")
        if status.customer_facing_name != status.name:
            print(f"    Customer sees: {status.customer_facing_name}")
        if status.color:
            print(f"    Color: {status.color}")
    print("=" * 80)


def sync_orders(order_service: OrderSyncService):
    """Manual 'sync now' - full rebuild of the order list"""
    days = input("\nDays back (default: all): ").strip()
    date_from = None
    if days:
        try:
            date_from = datetime.now(timezone.utc) - timedelta(days=int(days))
        except ValueError:
            print("Error: Invalid number")
            return

    print("Syncing orders...")
    result = order_service.sync(date_from=date_from)
    if result is None:
        print("⚠ Sync already running")
    elif result.ok:
        print(f"✓ {len(order_service.snapshot.orders)} orders ({result.pages} pages)")
    else:
        print(f"✗ Sync stopped after {result.pages} pages: {result.error}")


def refresh_products(inventory_service: InventorySyncService):
    """Refresh products of the selected inventory"""
    print("Refreshing products...")
    result = inventory_service.refresh()
    if result is None:
        print("⚠ Refresh already running")
    elif result.ok:
        print(f"✓ {result.products} products from inventory {result.inventory_id}")
        if result.failed_batches:
            print(f"⚠ Failed batches: {', '.join(str(i + 1) for i in result.failed_batches)}")
        low_stock = [p for p in inventory_service.snapshot.inventory_products if p.is_low_stock]
        print(f"  Low stock: {len(low_stock)}")
    else:
        print(f"✗ {result.error}")


def show_summary(snapshot: Snapshot):
    """Statistics over the orders loaded so far"""
    orders = snapshot.orders
    if not orders:
        print("No orders loaded. Sync first.")
        return

    summary = daily_summary(orders, snapshot.inventory_products)
    statistics = order_statistics(orders)

    print("\n" + "=" * 80)
    print("SUMMARY")
    print("=" * 80)
    print(f"Orders loaded: {len(orders)}")
    print(f"Total value: {statistics['total_value']:.2f}")
    print(f"Average order: {statistics['average_order_value']:.2f}")
    print(f"\nLast 24h: {summary.order_count} orders, {summary.total_value:.2f}, {summary.new_orders_count} new")

    print("\nLast 7 days:")
    for day, total in sales_last_week(orders):
        print(f"  {day.isoformat()}  {total:.2f}")

    print("\nTop products:")
    for index, product in enumerate(top_selling_products(orders, snapshot.inventory_products), start=1):
        print(f"  {index}. {product.name} ({product.quantity} pcs)")
    print("=" * 80)


def main_menu():
    """Main menu"""
    setup_logging(config.LOG_LEVEL, config.LOG_FILE)

    if not config.BASELINKER_API_TOKEN:
        print("Error: BASELINKER_API_TOKEN is not set")
        return

    snapshot = Snapshot()
    connector = get_default_connector()
    order_service = OrderSyncService(connector, snapshot)
    inventory_service = InventorySyncService(connector, snapshot)

    while True:
        print("\n" + "=" * 80)
        print("BASELINKER API")
        print("=" * 80)
        print(f"Status: {snapshot.connection_status.description}")
        print("\n1. Test connection")
        print("2. List inventories")
        print("3. Select inventory")
        print("4. List order statuses")
        print("5. Sync orders now")
        print("6. Refresh products")
        print("7. Show summary")
        print("8. Exit")

        choice = input("\nSelect option: ").strip()

        if choice == "1":
            test_connection(order_service)
        elif choice == "2":
            list_inventories(inventory_service)
        elif choice == "3":
            select_inventory(inventory_service)
        elif choice == "4":
            list_statuses(order_service)
        elif choice == "5":
            sync_orders(order_service)
        elif choice == "6":
            refresh_products(inventory_service)
        elif choice == "7":
            show_summary(snapshot)
        elif choice == "8":
            print("\nGoodbye!")
            break
        else:
            print("Invalid option")

    order_service.close()


if __name__ == '__main__':
    try:
        main_menu()
    except KeyboardInterrupt:
        print("\n\nInterrupted.")
        sys.exit(0)
