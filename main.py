"""
Main application - connect, initial sync, then timers until interrupted
"""
import threading
import time
from datetime import datetime

import config
from connectors import get_default_connector
from inventory_service import InventorySyncService
from logging_config import setup_logging
from notifications import LoggingNotifier
from scheduler import SyncScheduler
from service import OrderSyncService
from snapshot import Snapshot

print("=" * 60)
print("BASELINKER ORDER SYNC")
print("=" * 60)
print()


def main():
    """Main loop"""
    setup_logging(config.LOG_LEVEL, config.LOG_FILE)

    if not config.BASELINKER_API_TOKEN:
        print("ERROR: BASELINKER_API_TOKEN is not set")
        return

    snapshot = Snapshot()
    connector = get_default_connector()
    order_service = OrderSyncService(connector, snapshot, notifier=LoggingNotifier())
    inventory_service = InventorySyncService(connector, snapshot)
    scheduler = SyncScheduler(order_service, snapshot)

    print(f"\n[{datetime.now().strftime('%Y-%m-%d %H:%M:%S')}] Connecting")
    print("-" * 60)

    result = order_service.connect()
    if result is None:
        print(f"   {snapshot.connection_status.description}")
        print("   Will keep retrying on every sync tick")
    else:
        print(f"   Result: {len(snapshot.orders)} orders in {result.pages} pages")

    # Inventory runs alongside order sync, it touches separate snapshot fields
    if snapshot.connection_status.is_connected:
        threading.Thread(target=inventory_service.refresh, name='inventory-refresh', daemon=True).start()

    scheduler.start()
    print(f"\nDelta sync every {config.ORDER_SYNC_INTERVAL}s, summary every {config.SUMMARY_INTERVAL}s")
    print("Press Ctrl+C to stop")

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print("\n\nShutting down...")
    finally:
        scheduler.stop(timeout=5)
        order_service.close()


if __name__ == '__main__':
    main()
