from .auth import RegisterRequest, LoginRequest, RefreshRequest, TokenPair, PasswordChange, TokenClaims
from .customer import CustomerUpdate, ProfileUpdate, SettingsUpdate, UserPatch, UserStatusUpdate
from .shipment import ShipmentCreate, ShipmentUpdate, ShipmentPatch, StatusChange
from .inventory import InventoryCreate, InventoryPatch
from .manifest import ManifestCreate, ManifestPatch, ManifestStatusUpdate
from .sethwan import SethwanCredentials, DefaultWarehouseRequest, SyncShipmentRequest, RateRequest

__all__ = [
    "RegisterRequest", "LoginRequest", "RefreshRequest", "TokenPair", "PasswordChange", "TokenClaims",
    "CustomerUpdate", "ProfileUpdate", "SettingsUpdate", "UserPatch", "UserStatusUpdate",
    "ShipmentCreate", "ShipmentUpdate", "ShipmentPatch", "StatusChange",
    "InventoryCreate", "InventoryPatch",
    "ManifestCreate", "ManifestPatch", "ManifestStatusUpdate",
    "SethwanCredentials", "DefaultWarehouseRequest", "SyncShipmentRequest", "RateRequest",
]
