"""
Shipment Status Service - the shipment state machine
"""
from typing import Optional, Tuple
import logging

from dnexpress.core.exceptions import InvalidStatusError, InvalidTransitionError
from dnexpress.models import Shipment, StatusEntry, StatusUpdate, SHIPMENT_STATUSES, utcnow
from .notifier import LogNotifier, status_message

logger = logging.getLogger(__name__)


class ShipmentStatusService:
    """Applies status changes to shipments held by the entity store"""

    # Valid status transitions (repeating a transit status records another scan)
    STATUS_TRANSITIONS = {
        "pending": ["pickup", "cancelled"],
        "pickup": ["in-transit", "cancelled"],
        "in-transit": ["in-transit", "out-for-delivery", "cancelled"],
        "out-for-delivery": ["out-for-delivery", "in-transit", "delivered", "cancelled"],
        "delivered": [],
        "cancelled": [],
    }

    def __init__(self, store, notifier=None, strict: bool = True):
        self.store = store
        self.notifier = notifier or LogNotifier()
        self.strict = strict

    def can_transition(self, current: str, new_status: str) -> bool:
        if not self.strict:
            return True
        return new_status in self.STATUS_TRANSITIONS.get(current, [])

    def ensure_transition(self, current: str, new_status: str) -> None:
        if not self.can_transition(current, new_status):
            raise InvalidTransitionError(
                f"Cannot change status from {current} to {new_status}",
                current_status=current,
                allowed=self.STATUS_TRANSITIONS.get(current, []),
            )

    def advance(
        self,
        shipment: Shipment,
        new_status: str,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> Tuple[Shipment, StatusUpdate]:
        """
        Move a shipment to `new_status`.

        Appends a history entry (location defaults to the destination city),
        stamps actual_delivery on `delivered`, writes the StatusUpdate mirror
        record and notifies the customer. Notification failures are logged and
        never fail the update.
        """
        if new_status not in SHIPMENT_STATUSES:
            raise InvalidStatusError(
                f"Invalid status. Must be one of: {', '.join(SHIPMENT_STATUSES)}",
                valid_statuses=SHIPMENT_STATUSES,
            )

        self.ensure_transition(shipment.status, new_status)

        now = utcnow()
        # history and actual_delivery never precede created_at
        if now < shipment.created_at:
            now = shipment.created_at
        entry = StatusEntry(
            status=new_status,
            timestamp=now,
            location=location or shipment.destination.city,
            notes=notes or "",
        )
        delivered_at = now if new_status == "delivered" else None
        seen = []

        def guard(current: str) -> None:
            # runs under the store lock, after any concurrent change has landed
            self.ensure_transition(current, new_status)
            seen.append(current)

        shipment = self.store.record_status(shipment.id, entry, delivered_at=delivered_at, guard=guard)
        previous = seen[0]

        update = self.store.create_status_update({
            "shipment_id": shipment.id,
            "company_id": shipment.company_id,
            "status": new_status,
            "location": entry.location,
            "notes": entry.notes,
            "updated_by": actor or "system",
            "timestamp": now,
        })
        logger.info(f"Shipment {shipment.tracking_number}: {previous} -> {new_status} by {actor or 'system'}")

        try:
            self.notifier.notify(shipment, new_status, status_message(new_status))
        except Exception as e:
            logger.error(f"Notification failed for {shipment.tracking_number}: {e}")

        return shipment, update
