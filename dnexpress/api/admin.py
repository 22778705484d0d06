"""
Admin API - system dashboard, user management, system reports
"""
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
import logging

from dnexpress.core.config import Settings
from dnexpress.core.store import EntityStore
from dnexpress.models import TERMINAL_STATUSES, User
from dnexpress.schemas import UserPatch, UserStatusUpdate
from dnexpress.services import ReportService
from .deps import Pagination, get_app_settings, get_or_404, get_store, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/dashboard")
def dashboard(
    admin: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
):
    return {"success": True, "dashboard": ReportService.admin_dashboard(store)}


@router.get("/users")
def list_users(
    status: Optional[Literal["active", "inactive"]] = Query(None),
    role: Optional[Literal["customer", "admin"]] = Query(None),
    page: Pagination = Depends(),
    admin: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
):
    users = store.list_users()
    if status:
        users = [u for u in users if u.status == status]
    if role:
        users = [u for u in users if u.role == role]

    users = sorted(users, key=lambda u: u.created_at, reverse=True)
    paginated = page.apply(users)
    return {
        "success": True,
        "users": [u.public_dict() for u in paginated],
        "pagination": page.meta(len(users), len(paginated)),
    }


@router.get("/reports")
def system_report(
    type: Literal["all", "shipments", "revenue", "users", "inventory"] = Query("all"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    admin: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    report = ReportService.system_report(
        store, type, start_date, end_date, low_stock_threshold=settings.LOW_STOCK_THRESHOLD
    )
    return {"success": True, "report": report}


@router.get("/users/{user_id}")
def get_user_detail(
    user_id: str,
    admin: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
):
    """User record plus shipment and inventory activity"""
    user = get_or_404(store.get_user_by_id, user_id, "User not found")
    shipments = store.list_shipments_by_customer(user.id)
    inventory = store.list_inventory_by_company(user.id)

    return {
        "success": True,
        "user": user.public_dict(),
        "activity": {
            "shipments": {
                "total": len(shipments),
                "active": sum(1 for s in shipments if s.status not in TERMINAL_STATUSES),
                "delivered": sum(1 for s in shipments if s.status == "delivered"),
            },
            "inventory": {
                "items": len(inventory),
                "total_quantity": sum(i.quantity for i in inventory),
            },
            "metrics": ReportService.customer_metrics(store, user.id),
        },
    }


@router.put("/users/{user_id}/status")
def update_user_status(
    user_id: str,
    data: UserStatusUpdate,
    admin: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
):
    user = get_or_404(store.get_user_by_id, user_id, "User not found")
    updated = store.update_user(user.id, UserPatch(status=data.status))

    logger.info(f"User status changed by {admin.email}: {user.company_name} -> {data.status}")

    return {
        "success": True,
        "message": "User status updated successfully",
        "user": updated.public_dict(),
    }
