import os
from dotenv import load_dotenv

load_dotenv()

# API
BASELINKER_API_URL = os.getenv('BASELINKER_API_URL', 'https://api.baselinker.com/connector.php')
BASELINKER_API_TOKEN = os.getenv('BASELINKER_API_TOKEN', '')
REQUEST_TIMEOUT = float(os.getenv('REQUEST_TIMEOUT', 30))

# Polling
ORDER_SYNC_INTERVAL = int(os.getenv('ORDER_SYNC_INTERVAL', 30))
SUMMARY_INTERVAL = int(os.getenv('SUMMARY_INTERVAL', 300))

# Orders
ORDER_PAGE_SIZE = int(os.getenv('ORDER_PAGE_SIZE', 100))
ORDER_PAGE_DELAY = float(os.getenv('ORDER_PAGE_DELAY', 0.5))
DELETE_CHECK_LIMIT = min(int(os.getenv('DELETE_CHECK_LIMIT', 100)), 100)

# Inventory
PRODUCT_LIST_PAGE_SIZE = int(os.getenv('PRODUCT_LIST_PAGE_SIZE', 1000))
PRODUCT_BATCH_SIZE = int(os.getenv('PRODUCT_BATCH_SIZE', 600))
PRODUCT_BATCH_DELAY = float(os.getenv('PRODUCT_BATCH_DELAY', 0.3))
INVENTORY_ID = os.getenv('INVENTORY_ID') or None
PRICE_GROUP_ID = os.getenv('PRICE_GROUP_ID') or None
STOCK_WAREHOUSE_ID = os.getenv('STOCK_WAREHOUSE_ID') or None

# Logging
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FILE = os.getenv('LOG_FILE') or None
