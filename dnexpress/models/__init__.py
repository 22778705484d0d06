from .base import Entity, utcnow, ensure_utc, reject_null
from .user import User, UserRole, UserStatus, UserProfile, UserSettings, WarehouseAddress, SethwanLink
from .shipment import (
    Shipment, ShipmentStatus, ServiceLevel, PostalAddress, PackageInfo, Dimensions,
    StatusEntry, StatusUpdate, SHIPMENT_STATUSES, TERMINAL_STATUSES,
)
from .inventory import InventoryItem, InventoryStatus
from .manifest import Manifest, ManifestStatus, ManifestType

__all__ = [
    # Base
    "Entity", "utcnow", "ensure_utc", "reject_null",
    # Users
    "User", "UserRole", "UserStatus", "UserProfile", "UserSettings", "WarehouseAddress", "SethwanLink",
    # Shipments
    "Shipment", "ShipmentStatus", "ServiceLevel", "PostalAddress", "PackageInfo", "Dimensions",
    "StatusEntry", "StatusUpdate", "SHIPMENT_STATUSES", "TERMINAL_STATUSES",
    # Inventory
    "InventoryItem", "InventoryStatus",
    # Manifests
    "Manifest", "ManifestStatus", "ManifestType",
]
