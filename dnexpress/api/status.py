"""
Status API - shipment status reads and changes
"""
from fastapi import APIRouter, Depends

from dnexpress.core.access import require_owner_or_admin
from dnexpress.core.store import EntityStore
from dnexpress.models import User
from dnexpress.schemas import StatusChange
from dnexpress.services import ShipmentStatusService
from .deps import Pagination, get_current_user, get_status_service, get_store
from .shipments import load_owned_shipment

router = APIRouter(prefix="/status", tags=["status"])


@router.get("/list/{customer_id}")
def list_customer_status_history(
    customer_id: str,
    page: Pagination = Depends(),
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    """Every history entry across the customer's shipments, newest first"""
    require_owner_or_admin(current_user, customer_id)

    entries = []
    for shipment in store.list_shipments_by_customer(customer_id):
        for entry in shipment.status_history:
            entries.append({
                **entry.model_dump(),
                "shipment_id": shipment.id,
                "tracking_number": shipment.tracking_number,
            })
    entries.sort(key=lambda e: e["timestamp"], reverse=True)

    paginated = page.apply(entries)
    return {
        "success": True,
        "status_updates": [
            {**e, "timestamp": e["timestamp"].isoformat()} for e in paginated
        ],
        "pagination": page.meta(len(entries), len(paginated)),
    }


@router.get("/{shipment_id}")
def get_status(
    shipment_id: str,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    shipment = load_owned_shipment(shipment_id, current_user, store)
    return {
        "success": True,
        "status": {
            "shipment_id": shipment.id,
            "tracking_number": shipment.tracking_number,
            "current_status": shipment.status,
            "status_history": [e.model_dump(mode="json") for e in shipment.status_history],
            "estimated_delivery": shipment.estimated_delivery.isoformat() if shipment.estimated_delivery else None,
            "actual_delivery": shipment.actual_delivery.isoformat() if shipment.actual_delivery else None,
            "last_updated": shipment.updated_at.isoformat(),
        },
    }


@router.post("/{shipment_id}")
def update_status(
    shipment_id: str,
    data: StatusChange,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
    status_service: ShipmentStatusService = Depends(get_status_service),
):
    shipment = load_owned_shipment(shipment_id, current_user, store)
    updated, status_update = status_service.advance(
        shipment,
        data.status,
        location=data.location,
        notes=data.notes,
        actor=current_user.email,
    )
    return {
        "success": True,
        "message": "Status updated successfully",
        "shipment": updated.model_dump(mode="json"),
        "status_update": status_update.model_dump(mode="json"),
    }


@router.get("/{shipment_id}/updates")
def list_status_updates(
    shipment_id: str,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    """StatusUpdate records for one shipment, newest first"""
    shipment = load_owned_shipment(shipment_id, current_user, store)
    updates = store.list_status_updates_by_shipment(shipment.id)
    return {
        "success": True,
        "status_updates": [u.model_dump(mode="json") for u in updates],
        "count": len(updates),
    }
