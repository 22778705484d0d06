"""
Customer notifications for shipment status changes
"""
import logging

from dnexpress.models import Shipment

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    "pending": "Your shipment has been created and is waiting for pickup",
    "pickup": "Your shipment has been picked up",
    "in-transit": "Your shipment is in transit",
    "out-for-delivery": "Your shipment is out for delivery",
    "delivered": "Your shipment has been delivered",
    "cancelled": "Your shipment has been cancelled",
}


def status_message(status: str) -> str:
    return STATUS_MESSAGES.get(status, f"Your shipment status changed to {status}")


class LogNotifier:
    """Writes the customer message to the log; no delivery channel yet"""

    def notify(self, shipment: Shipment, status: str, message: str) -> None:
        logger.info(
            f"Notify customer {shipment.customer_id} about {shipment.tracking_number}: {message}"
        )
