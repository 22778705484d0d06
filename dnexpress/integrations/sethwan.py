"""
Sethwan Warehouse Platform Client

Sethwan is the courier/warehouse platform D.N Express hands shipments,
manifests and customer warehouse records to. Mapping helpers are pure; the
async calls return {"success": bool, ...} and never raise.
"""
from typing import Optional, Dict, Any, List
import logging

from dnexpress.models import Manifest, PostalAddress, Shipment, User
from .base import BasePartnerClient

logger = logging.getLogger(__name__)

FEATURES = [
    "shipment_tracking",
    "package_management",
    "manifest_generation",
    "warehouse_management",
    "reporting",
]

# Credential shape accepted by the offline connection test
MIN_API_KEY_LENGTH = 21
MIN_ACCOUNT_ID_LENGTH = 6


def credentials_look_valid(api_key: str, account_id: str) -> bool:
    return len(api_key) >= MIN_API_KEY_LENGTH and len(account_id) >= MIN_ACCOUNT_ID_LENGTH


def _one_line(address: PostalAddress) -> str:
    return f"{address.address}, {address.city}, {address.state} {address.zip_code}"


class SethwanClient(BasePartnerClient):
    """
    Sethwan REST API Client
    """
    PLATFORM_NAME = "sethwan"

    # Service level mapping
    SERVICE_MAP = {
        "standard": "standard_shipping",
        "express": "express_shipping",
        "overnight": "overnight_shipping",
        "priority": "priority_shipping",
    }

    # Status mapping (ours -> Sethwan)
    STATUS_MAP = {
        "pending": "pending",
        "pickup": "picked_up",
        "in-transit": "in_transit",
        "out-for-delivery": "out_for_delivery",
        "delivered": "delivered",
        "cancelled": "cancelled",
    }

    REVERSE_STATUS_MAP = {v: k for k, v in STATUS_MAP.items()}

    # ========== Mapping ==========

    def map_service_type(self, service: Optional[str]) -> str:
        return self.SERVICE_MAP.get(service, "standard_shipping")

    def map_status(self, status: Optional[str]) -> str:
        return self.STATUS_MAP.get(status, "pending")

    def reverse_map_status(self, partner_status: Optional[str]) -> str:
        return self.REVERSE_STATUS_MAP.get(partner_status, "pending")

    def to_partner_shipment(self, shipment: Shipment, shipper_name: Optional[str] = None) -> Dict[str, Any]:
        dims = shipment.package.dimensions
        return {
            "tracking_number": shipment.tracking_number,
            "shipper": {
                "name": shipper_name or shipment.origin.contact_name or shipment.customer_id,
                "address": _one_line(shipment.origin),
                "country": shipment.origin.country or "USA",
            },
            "receiver": {
                "name": shipment.destination.contact_name or "Recipient",
                "address": _one_line(shipment.destination),
                "country": shipment.destination.country or "USA",
            },
            "package": {
                "weight": shipment.package.weight,
                "length": dims.length,
                "width": dims.width,
                "height": dims.height,
                "description": shipment.package.description,
                "contents": list(shipment.package.contents),
            },
            "service_type": self.map_service_type(shipment.service),
            "status": self.map_status(shipment.status),
            "created_at": shipment.created_at.isoformat(),
            "updated_at": shipment.updated_at.isoformat(),
        }

    def from_partner_shipment(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "tracking_number": raw.get("tracking_number"),
            "status": self.reverse_map_status(raw.get("status")),
            "estimated_delivery": raw.get("estimated_delivery"),
            "sethwan_id": raw.get("id"),
            "sethwan_data": raw,
        }

    def to_partner_warehouse(self, user: User) -> Dict[str, Any]:
        warehouse = user.warehouse_address
        return {
            "customer_id": user.customer_number,
            "name": user.company_name,
            "address": warehouse.street1,
            "address2": warehouse.street2,
            "city": warehouse.city,
            "state": warehouse.state,
            "zip_code": warehouse.zip_code,
            "country": warehouse.country,
            "phone": user.phone,
            "email": user.email,
        }

    def to_partner_manifest(self, manifest: Manifest, user: User) -> Dict[str, Any]:
        return {
            "manifest_number": manifest.manifest_number,
            "shipment_ids": list(manifest.shipment_ids),
            "type": manifest.manifest_type,
            "destination": manifest.destination,
            "warehouse_id": user.sethwan.default_warehouse,
        }

    # ========== Calls ==========

    async def validate_connection(self) -> Dict[str, Any]:
        result = await self._request("GET", "/v1/account/validate")
        if not result["success"]:
            return {"success": False, "valid": False, "error": result["error"]}
        data = result["data"] if isinstance(result["data"], dict) else {}
        return {
            "success": True,
            "valid": True,
            "account": data.get("account"),
            "features": data.get("features", FEATURES),
        }

    async def send_shipment(self, shipment: Shipment, shipper_name: Optional[str] = None) -> Dict[str, Any]:
        result = await self._request("POST", "/v1/shipments", json=self.to_partner_shipment(shipment, shipper_name))
        if not result["success"]:
            return result
        data = result["data"] if isinstance(result["data"], dict) else {}
        if not data.get("id"):
            logger.error(f"[{self.PLATFORM_NAME}] shipment {shipment.tracking_number} accepted without an id")
            return {"success": False, "error": "Malformed response: missing shipment id"}
        return {
            "success": True,
            "sethwan_id": str(data["id"]),
            "sethwan_tracking_number": data.get("tracking_number"),
            "data": data,
        }

    async def get_shipment_tracking(self, tracking_number: str) -> Dict[str, Any]:
        result = await self._request("GET", f"/v1/shipments/track/{tracking_number}")
        if not result["success"]:
            return result
        if not isinstance(result["data"], dict):
            return {"success": False, "error": "Malformed response: expected a shipment object"}
        return {"success": True, "shipment": self.from_partner_shipment(result["data"])}

    async def get_warehouses(self) -> Dict[str, Any]:
        result = await self._request("GET", "/v1/warehouses")
        if not result["success"]:
            return result
        data = result["data"]
        warehouses: List[Any] = data.get("data", []) if isinstance(data, dict) else data
        return {"success": True, "warehouses": warehouses}

    async def get_shipping_rate(
        self,
        from_address: str,
        to_address: str,
        to_country: str,
        weight: float,
        from_country: str = "USA",
        length: float = 0,
        width: float = 0,
        height: float = 0,
        service_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = {
            "from": {"address": from_address, "country": from_country or "USA"},
            "to": {"address": to_address, "country": to_country},
            "package": {"weight": weight, "length": length, "width": width, "height": height},
            # internal level names are mapped, partner names pass through
            "service_type": self.SERVICE_MAP.get(service_type, service_type or "standard_shipping"),
        }
        result = await self._request("POST", "/v1/rates/calculate", json=payload)
        if not result["success"]:
            return result
        data = result["data"] if isinstance(result["data"], dict) else {}
        if "rate" not in data:
            return {"success": False, "error": "Malformed response: missing rate"}
        return {
            "success": True,
            "rate": data["rate"],
            "currency": data.get("currency", "USD"),
            "estimated_delivery": data.get("estimated_delivery"),
        }

    async def sync_customer_warehouse(self, user: User) -> Dict[str, Any]:
        """Register the customer's forwarding address; returns the partner warehouse id"""
        result = await self._request("POST", "/v1/customer-warehouses", json=self.to_partner_warehouse(user))
        if not result["success"]:
            return result
        data = result["data"] if isinstance(result["data"], dict) else {}
        if not data.get("id"):
            return {"success": False, "error": "Malformed response: missing warehouse id"}
        return {"success": True, "warehouse_id": str(data["id"])}

    async def submit_manifest(self, manifest: Manifest, user: User) -> Dict[str, Any]:
        result = await self._request("POST", "/v1/manifests", json=self.to_partner_manifest(manifest, user))
        if not result["success"]:
            return result
        data = result["data"] if isinstance(result["data"], dict) else {}
        return {"success": True, "sethwan_manifest_id": data.get("id"), "data": data}
