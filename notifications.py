"""
New-order notification interface consumed by the presentation layer
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional

from models import DailySummary, Order

logger = logging.getLogger(__name__)


class NewOrderNotifier(ABC):
    """Receives orders that arrived through delta sync"""

    @abstractmethod
    def notify_new_order(self, order: Order, summary: Optional[DailySummary] = None) -> None:
        pass


class LoggingNotifier(NewOrderNotifier):
    """Default notifier - writes one log line per new order"""

    def notify_new_order(self, order: Order, summary: Optional[DailySummary] = None) -> None:
        message = f"New order {order.order_number}: {order.total_amount:.2f} {order.currency}"
        if order.customer_name:
            message += f" from {order.customer_name}"
        if summary is not None:
            message += (
                f" (today: {summary.order_count} orders, "
                f"{summary.total_value:.2f} total)"
            )
        logger.info(message)
