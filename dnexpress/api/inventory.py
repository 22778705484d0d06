"""
Inventory API - warehouse stock per company
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
import logging

from dnexpress.core.access import require_owner_or_admin
from dnexpress.core.store import EntityStore
from dnexpress.models import InventoryItem, User
from dnexpress.schemas import InventoryCreate, InventoryPatch
from .deps import Pagination, get_current_user, get_or_404, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inventory", tags=["inventory"])


def _load_item(item_id: str, current_user: User, store: EntityStore) -> InventoryItem:
    item = get_or_404(store.get_inventory_item_by_id, item_id, "Inventory item not found")
    require_owner_or_admin(current_user, item.company_id)
    return item


@router.post("", status_code=status.HTTP_201_CREATED)
def add_item(
    data: InventoryCreate,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    payload = data.model_dump()
    payload["company_id"] = current_user.id
    item = store.add_inventory_item(payload)

    logger.info(f"Inventory item added: {item.name} ({item.sku}) - {current_user.company_name}")

    return {
        "success": True,
        "message": "Item added to inventory",
        "item": item.model_dump(mode="json"),
    }


@router.get("")
def list_items(
    location: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    page: Pagination = Depends(),
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    """Caller's items, newest first, with a whole-inventory summary"""
    items = store.list_inventory_by_company(current_user.id)
    filtered = items
    if location:
        filtered = [i for i in filtered if i.location == location]
    if status:
        filtered = [i for i in filtered if i.status == status]

    filtered = sorted(filtered, key=lambda i: i.created_at, reverse=True)
    paginated = page.apply(filtered)
    return {
        "success": True,
        "items": [i.model_dump(mode="json") for i in paginated],
        "pagination": page.meta(len(filtered), len(paginated)),
        "summary": {
            "total_items": len(items),
            "total_quantity": sum(i.quantity for i in items),
            "active_items": sum(1 for i in items if i.status == "active"),
        },
    }


@router.get("/{item_id}")
def get_item(
    item_id: str,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    item = _load_item(item_id, current_user, store)
    return {"success": True, "item": item.model_dump(mode="json")}


@router.put("/{item_id}")
def update_item(
    item_id: str,
    data: InventoryPatch,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    """Partial update; a negative quantity is rejected before anything changes"""
    item = _load_item(item_id, current_user, store)
    updated = store.update_inventory(item.id, data)
    logger.info(f"Inventory item updated: {updated.name} qty={updated.quantity}")
    return {
        "success": True,
        "message": "Inventory item updated successfully",
        "item": updated.model_dump(mode="json"),
    }


@router.delete("/{item_id}")
def delete_item(
    item_id: str,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    """Soft delete: the item is marked inactive; repeating the call is harmless"""
    item = _load_item(item_id, current_user, store)
    if item.status != "inactive":
        store.update_inventory(item.id, InventoryPatch(status="inactive"))
        logger.info(f"Inventory item deactivated: {item.name} - {current_user.company_name}")
    return {"success": True, "message": "Inventory item removed successfully"}
