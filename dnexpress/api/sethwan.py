"""
Sethwan Integration API - connection management and partner calls
"""
from fastapi import APIRouter, Depends
import logging

from dnexpress.core.exceptions import IntegrationError, ValidationError
from dnexpress.core.store import EntityStore
from dnexpress.integrations import SethwanClient
from dnexpress.integrations.sethwan import FEATURES, credentials_look_valid
from dnexpress.models import SethwanLink, User, utcnow
from dnexpress.schemas import (
    DefaultWarehouseRequest, RateRequest, SethwanCredentials, ShipmentPatch, SyncShipmentRequest, UserPatch,
)
from .deps import get_current_user, get_sethwan_client, get_store
from .shipments import load_owned_shipment

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sethwan", tags=["sethwan"])


def _account_client(user: User, sethwan: SethwanClient) -> SethwanClient:
    """Client bound to the user's own Sethwan credentials"""
    if not user.sethwan.integrated:
        raise ValidationError("Sethwan integration not active")
    return sethwan.for_account(user.sethwan.api_key, user.sethwan.account_id)


@router.post("/test-connection")
def test_connection(
    data: SethwanCredentials,
    current_user: User = Depends(get_current_user),
):
    """
    Offline credential check - only the shape of the key and account id is
    verified, nothing is sent to Sethwan
    """
    valid = credentials_look_valid(data.api_key, data.account_id)
    logger.info(f"Sethwan connection test {'passed' if valid else 'failed'} for {current_user.company_name}")
    return {
        "success": True,
        "valid": valid,
        "message": "Connection successful" if valid else "Invalid credentials format",
        "account": {"id": data.account_id, "status": "active" if valid else "unknown"},
        "features": FEATURES,
    }


@router.post("/connect")
async def connect(
    data: SethwanCredentials,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
    sethwan: SethwanClient = Depends(get_sethwan_client),
):
    """Validate the credentials with Sethwan, store them and register the forwarding warehouse"""
    client = sethwan.for_account(data.api_key, data.account_id)
    check = await client.validate_connection()
    if not check.get("valid"):
        raise ValidationError("Invalid Sethwan credentials", details=check.get("error"))

    link = SethwanLink(
        customer_id=data.account_id,
        account_id=data.account_id,
        api_key=data.api_key,
        default_warehouse=None,
        integrated=True,
    )
    user = store.update_user(current_user.id, UserPatch(sethwan=link))

    warehouse_sync = await client.sync_customer_warehouse(user)
    if warehouse_sync["success"]:
        link = link.model_copy(update={"default_warehouse": warehouse_sync["warehouse_id"]})
        store.update_user(user.id, UserPatch(sethwan=link))
    else:
        logger.warning(f"Sethwan warehouse sync failed for {user.customer_number}: {warehouse_sync.get('error')}")

    logger.info(f"Sethwan integration established for {user.company_name}")

    return {
        "success": True,
        "message": "Sethwan connection established",
        "integrated": True,
        "account": check.get("account"),
        "features": check.get("features"),
        "warehouse_synced": warehouse_sync["success"],
    }


@router.get("/status")
def integration_status(current_user: User = Depends(get_current_user)):
    link = current_user.sethwan
    return {
        "success": True,
        "integration": {
            "integrated": link.integrated,
            "customer_id": link.customer_id,
            "account_id": link.account_id,
            "default_warehouse": link.default_warehouse,
            "message": "Sethwan integration active" if link.integrated else "Sethwan not integrated",
        },
    }


@router.get("/warehouses")
async def list_warehouses(
    current_user: User = Depends(get_current_user),
    sethwan: SethwanClient = Depends(get_sethwan_client),
):
    result = await _account_client(current_user, sethwan).get_warehouses()
    if not result["success"]:
        raise IntegrationError("Failed to fetch warehouses", error=result.get("error"))
    return {"success": True, "warehouses": result.get("warehouses") or []}


@router.post("/set-default-warehouse")
def set_default_warehouse(
    data: DefaultWarehouseRequest,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    if not current_user.sethwan.integrated:
        raise ValidationError("Sethwan integration not active")

    link = current_user.sethwan.model_copy(update={"default_warehouse": data.warehouse_id})
    store.update_user(current_user.id, UserPatch(sethwan=link))
    logger.info(f"Default warehouse set for {current_user.company_name}: {data.warehouse_id}")

    return {
        "success": True,
        "message": "Default warehouse updated",
        "default_warehouse": data.warehouse_id,
    }


@router.post("/disconnect")
def disconnect(
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    store.update_user(current_user.id, UserPatch(sethwan=SethwanLink()))
    logger.info(f"Sethwan integration disconnected for {current_user.company_name}")
    return {"success": True, "message": "Sethwan integration disconnected"}


@router.post("/sync-shipment")
async def sync_shipment(
    data: SyncShipmentRequest,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
    sethwan: SethwanClient = Depends(get_sethwan_client),
):
    """Push a shipment to Sethwan and remember the partner id"""
    client = _account_client(current_user, sethwan)
    shipment = load_owned_shipment(data.shipment_id, current_user, store)

    result = await client.send_shipment(shipment, shipper_name=current_user.company_name)
    if not result["success"]:
        raise IntegrationError("Failed to sync shipment with Sethwan", error=result.get("error"))

    store.update_shipment(shipment.id, ShipmentPatch(sethwan_id=result["sethwan_id"]))
    logger.info(f"Shipment synced to Sethwan: {shipment.tracking_number} -> {result['sethwan_id']}")

    return {
        "success": True,
        "message": "Shipment synced with Sethwan",
        "sethwan_id": result["sethwan_id"],
        "sethwan_tracking_number": result.get("sethwan_tracking_number"),
    }


@router.get("/track/{tracking_number}")
async def partner_tracking(
    tracking_number: str,
    current_user: User = Depends(get_current_user),
    sethwan: SethwanClient = Depends(get_sethwan_client),
):
    result = await _account_client(current_user, sethwan).get_shipment_tracking(tracking_number)
    if not result["success"]:
        raise IntegrationError("Failed to fetch tracking from Sethwan", error=result.get("error"))
    return {"success": True, "shipment": result["shipment"]}


@router.post("/rates")
async def shipping_rate(
    data: RateRequest,
    current_user: User = Depends(get_current_user),
    sethwan: SethwanClient = Depends(get_sethwan_client),
):
    result = await _account_client(current_user, sethwan).get_shipping_rate(**data.model_dump())
    if not result["success"]:
        raise IntegrationError("Failed to calculate rate", error=result.get("error"))
    return {
        "success": True,
        "rate": result["rate"],
        "currency": result["currency"],
        "estimated_delivery": result.get("estimated_delivery"),
    }


@router.get("/health-check")
async def health_check(
    current_user: User = Depends(get_current_user),
    sethwan: SethwanClient = Depends(get_sethwan_client),
):
    """API reachability, the caller's integration state and warehouse access"""
    checked_at = utcnow().isoformat()
    checks = {}

    connection = await sethwan.validate_connection()
    checks["api_connection"] = {
        "status": "healthy" if connection.get("valid") else "unhealthy",
        "message": connection.get("error") or "Connection successful",
        "timestamp": checked_at,
    }

    integrated = current_user.sethwan.integrated
    checks["user_integration"] = {
        "status": "active" if integrated else "inactive",
        "integrated": integrated,
        "timestamp": checked_at,
    }

    if integrated:
        warehouses = await _account_client(current_user, sethwan).get_warehouses()
        checks["warehouse_access"] = {
            "status": "healthy" if warehouses["success"] else "unhealthy",
            "warehouse_count": len(warehouses.get("warehouses") or []),
            "timestamp": checked_at,
        }

    all_healthy = all(c["status"] in ("healthy", "active") for c in checks.values())
    return {
        "success": True,
        "health": {
            "timestamp": checked_at,
            "overall_status": "healthy" if all_healthy else "degraded",
            "checks": checks,
        },
    }
