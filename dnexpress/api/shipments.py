"""
Shipments API - create, list, public tracking, detail, pending-only update
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
import logging

from dnexpress.core.access import require_owner_or_admin
from dnexpress.core.exceptions import ValidationError
from dnexpress.core.store import EntityStore
from dnexpress.models import Shipment, User, SHIPMENT_STATUSES
from dnexpress.schemas import ShipmentCreate, ShipmentPatch, ShipmentUpdate
from .deps import Pagination, get_current_user, get_or_404, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/shipments", tags=["shipments"])


def load_owned_shipment(shipment_id: str, current_user: User, store: EntityStore) -> Shipment:
    shipment = get_or_404(store.get_shipment_by_id, shipment_id, "Shipment not found")
    require_owner_or_admin(current_user, shipment.company_id)
    return shipment


@router.post("", status_code=status.HTTP_201_CREATED)
def create_shipment(
    data: ShipmentCreate,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    """Create a pending shipment for the caller"""
    payload = data.model_dump(exclude_none=True)
    payload["customer_id"] = current_user.id
    payload["company_id"] = current_user.id
    shipment = store.create_shipment(payload)

    logger.info(f"New shipment created: {shipment.tracking_number} - {current_user.company_name}")

    return {
        "success": True,
        "message": "Shipment created successfully",
        "shipment": shipment.model_dump(mode="json"),
    }


@router.get("")
def list_shipments(
    status: Optional[str] = Query(None),
    page: Pagination = Depends(),
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    """List the caller's shipments, newest first"""
    shipments = store.list_shipments_by_customer(current_user.id)
    if status and status != "all":
        if status not in SHIPMENT_STATUSES:
            raise ValidationError(f"Invalid status. Must be one of: {', '.join(SHIPMENT_STATUSES)}")
        shipments = [s for s in shipments if s.status == status]

    shipments = sorted(shipments, key=lambda s: s.created_at, reverse=True)
    paginated = page.apply(shipments)
    return {
        "success": True,
        "shipments": [s.model_dump(mode="json") for s in paginated],
        "pagination": page.meta(len(shipments), len(paginated)),
    }


# Must stay above /{shipment_id}
@router.get("/track/{tracking_number}")
def track_shipment(tracking_number: str, store: EntityStore = Depends(get_store)):
    """Public tracking - no authentication, no customer data"""
    shipment = get_or_404(store.get_shipment_by_tracking_number, tracking_number, "Shipment not found")
    return {"success": True, "shipment": shipment.tracking_view()}


@router.get("/{shipment_id}")
def get_shipment(
    shipment_id: str,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    shipment = load_owned_shipment(shipment_id, current_user, store)
    return {"success": True, "shipment": shipment.model_dump(mode="json")}


@router.put("/{shipment_id}")
def update_shipment(
    shipment_id: str,
    data: ShipmentUpdate,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    """Only notes, service and estimated delivery, and only while pending"""
    shipment = load_owned_shipment(shipment_id, current_user, store)
    if shipment.status != "pending":
        raise ValidationError("Cannot update shipment that is already in transit")

    updated = store.update_shipment(shipment.id, ShipmentPatch(**data.model_dump(exclude_unset=True)))
    logger.info(f"Shipment updated: {updated.tracking_number}")

    return {
        "success": True,
        "message": "Shipment updated successfully",
        "shipment": updated.model_dump(mode="json"),
    }
