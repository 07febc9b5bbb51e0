"""
Connector factory - add new order-management APIs here
"""
from .base import OrderApiConnector
from .baselinker_connector import BaselinkerConnector

# Registry of available connectors
CONNECTORS = {
    'baselinker': BaselinkerConnector,
}


def get_connector(api_type: str, config: dict) -> OrderApiConnector:
    """Get connector instance for API type"""
    connector_class = CONNECTORS.get(api_type.lower())

    if not connector_class:
        raise ValueError(f"Unsupported API type: {api_type}")

    return connector_class(config)


def get_default_connector() -> OrderApiConnector:
    """BaseLinker connector configured from environment"""
    import config

    return get_connector('baselinker', {
        'api_url': config.BASELINKER_API_URL,
        'api_token': config.BASELINKER_API_TOKEN,
        'timeout': config.REQUEST_TIMEOUT,
        'price_group_id': config.PRICE_GROUP_ID,
        'warehouse_id': config.STOCK_WAREHOUSE_ID,
    })
