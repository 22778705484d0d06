"""
Customer API - profile read/update, account summary, deactivation
"""
from fastapi import APIRouter, Depends
import logging

from dnexpress.core.access import require_owner_or_admin
from dnexpress.core.exceptions import ValidationError
from dnexpress.core.security import is_valid_phone
from dnexpress.core.store import EntityStore
from dnexpress.models import User
from dnexpress.schemas import CustomerUpdate, UserPatch
from dnexpress.services import ReportService
from .deps import get_current_user, get_or_404, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["customers"])

RECENT_SHIPMENTS = 5


def _load_customer(customer_id: str, current_user: User, store: EntityStore) -> User:
    require_owner_or_admin(current_user, customer_id)
    return get_or_404(store.get_user_by_id, customer_id, "Customer not found")


@router.get("/{customer_id}")
def get_customer(
    customer_id: str,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    """Get customer profile"""
    user = _load_customer(customer_id, current_user, store)
    return {"success": True, "user": user.public_dict()}


@router.put("/{customer_id}")
def update_customer(
    customer_id: str,
    data: CustomerUpdate,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    """
    Update profile fields; nested profile and settings are merged, not replaced
    """
    user = _load_customer(customer_id, current_user, store)
    changes = data.model_dump(exclude_unset=True, exclude={"profile", "settings"})
    if "phone" in changes and not is_valid_phone(changes["phone"]):
        raise ValidationError("Invalid phone number (minimum 10 digits required)")

    patch = UserPatch(**changes)
    if data.profile is not None:
        patch.profile = user.profile.model_copy(update=data.profile.model_dump(exclude_unset=True))
    if data.settings is not None:
        patch.settings = user.settings.model_copy(update=data.settings.model_dump(exclude_unset=True))

    updated = store.update_user(user.id, patch)
    logger.info(f"Customer profile updated: {updated.company_name}")

    return {
        "success": True,
        "message": "Profile updated successfully",
        "user": updated.public_dict(),
    }


@router.get("/{customer_id}/info")
def get_customer_info(
    customer_id: str,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    """Profile plus shipment/inventory summary and the latest shipments"""
    user = _load_customer(customer_id, current_user, store)
    shipments = store.list_shipments_by_customer(user.id)
    inventory = store.list_inventory_by_company(user.id)

    return {
        "success": True,
        "user": user.public_dict(),
        "summary": ReportService.customer_metrics(store, user.id),
        "recent_shipments": [
            s.model_dump(mode="json")
            for s in sorted(shipments, key=lambda s: s.created_at, reverse=True)[:RECENT_SHIPMENTS]
        ],
        "inventory_count": len(inventory),
    }


@router.delete("/{customer_id}")
def deactivate_customer(
    customer_id: str,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    """Accounts are never removed, only deactivated"""
    user = _load_customer(customer_id, current_user, store)
    store.update_user(user.id, UserPatch(status="inactive"))
    logger.info(f"Customer account deactivated: {user.company_name}")
    return {"success": True, "message": "Account deactivated successfully"}
