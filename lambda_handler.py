import json
from connectors import get_default_connector
from service import OrderSyncService
from inventory_service import InventorySyncService
from aggregates import daily_summary, order_statistics
from snapshot import Snapshot
from datetime import datetime, timedelta, timezone
import logging

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def lambda_handler(event, context):
    """One-shot sync: snapshot lives for a single invocation"""
    logger.info("Lambda invocation started")
    event = event or {}
    snapshot = Snapshot()
    connector = get_default_connector()
    order_service = OrderSyncService(connector, snapshot)
    results = {
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'status': 'success',
        'results': {}
    }
    try:
        days = int(event.get('days', 2))
        since = datetime.now(timezone.utc) - timedelta(days=days)
        if not order_service.test_connection():
            raise RuntimeError(snapshot.connection_status.description)
        order_service.load_status_catalog()
        logger.info(f"Syncing orders confirmed since {since}")
        sync_result = order_service.sync(date_from=since)
        if sync_result is not None and not sync_result.ok:
            raise RuntimeError(sync_result.error)
        results['results']['orders'] = len(snapshot.orders)
        results['results']['pages'] = sync_result.pages if sync_result else 0
        if event.get('include_inventory'):
            refresh = InventorySyncService(connector, snapshot).refresh(event.get('inventory_id'))
            results['results']['products'] = refresh.products if refresh else 0
            results['results']['failed_batches'] = refresh.failed_batches if refresh else []
        summary = daily_summary(snapshot.orders, snapshot.inventory_products)
        statistics = order_statistics(snapshot.orders)
        results['results']['today_orders'] = summary.order_count
        results['results']['today_value'] = str(summary.total_value)
        results['results']['average_order_value'] = str(statistics['average_order_value'])
    except Exception as e:
        logger.error(f"Error: {e}", exc_info=True)
        results['status'] = 'error'
        results['error'] = str(e)
        return {'statusCode': 500, 'body': json.dumps(results)}
    finally:
        order_service.close()
    return {'statusCode': 200, 'body': json.dumps(results)}
