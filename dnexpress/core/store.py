"""
Entity Store - in-memory collections for users, shipments, inventory,
status updates and manifests

Lookups by id are dict hits; secondary keys (email, customer number, tracking
number, SKU, owner) have their own index maps kept in step with every write.
Missing ids return None - callers decide whether that is a 404.
"""
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Type, TypeVar
import logging
import threading

from pydantic import BaseModel

from dnexpress.core.config import Settings
from dnexpress.core.database import NullPersistence
from dnexpress.core.exceptions import ConflictError
from dnexpress.models import (
    Entity, User, UserProfile, WarehouseAddress, Shipment, PostalAddress, PackageInfo,
    StatusEntry, StatusUpdate, InventoryItem, Manifest, ShipmentStatus, utcnow,
)
from dnexpress.schemas import UserPatch, ShipmentPatch, InventoryPatch, ManifestPatch
from dnexpress.services.id_generator import IdentifierGenerator

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)

USERS = "users"
SHIPMENTS = "shipments"
INVENTORY = "inventory"
STATUS_UPDATES = "status_updates"
MANIFESTS = "manifests"

# Attempts at re-drawing a random identifier that collides with an index
MAX_REDRAWS = 10


class EntityStore:

    def __init__(
        self,
        generator: Optional[IdentifierGenerator] = None,
        persistence=None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or Settings()
        self.generator = generator or IdentifierGenerator(
            tracking_prefix=self.settings.TRACKING_PREFIX,
            customer_prefix=self.settings.CUSTOMER_PREFIX,
            sku_prefix=self.settings.SKU_PREFIX,
            manifest_prefix=self.settings.MANIFEST_PREFIX,
        )
        self.persistence = persistence or NullPersistence()
        self._lock = threading.RLock()

        # Primary collections (insertion ordered)
        self.users: Dict[str, User] = {}
        self.shipments: Dict[str, Shipment] = {}
        self.inventory: Dict[str, InventoryItem] = {}
        self.status_updates: Dict[str, StatusUpdate] = {}
        self.manifests: Dict[str, Manifest] = {}

        self._reset_indices()

    def _reset_indices(self) -> None:
        self._users_by_email: Dict[str, str] = {}
        self._users_by_customer_number: Dict[str, str] = {}
        self._shipments_by_tracking: Dict[str, str] = {}
        self._shipments_by_customer: Dict[str, List[str]] = {}
        self._inventory_by_sku: Dict[str, str] = {}
        self._inventory_by_company: Dict[str, List[str]] = {}
        self._updates_by_shipment: Dict[str, List[str]] = {}
        self._updates_by_company: Dict[str, List[str]] = {}
        self._manifests_by_company: Dict[str, List[str]] = {}

    # ========== Persistence ==========

    def _save(self, collection: str, entity: Entity) -> None:
        try:
            self.persistence.save_record(collection, entity.id, entity.to_record())
        except Exception as e:
            # memory stays authoritative; the mirror is best effort
            logger.error(f"Failed to persist {collection}/{entity.id}: {e}")

    def load(self) -> None:
        """Rebuild collections and indices from the persistence backend"""
        data = self.persistence.load()
        with self._lock:
            self._load_collection(data.get(USERS, []), User, self._index_user)
            self._load_collection(data.get(SHIPMENTS, []), Shipment, self._index_shipment)
            self._load_collection(data.get(INVENTORY, []), InventoryItem, self._index_inventory)
            self._load_collection(data.get(STATUS_UPDATES, []), StatusUpdate, self._index_status_update)
            self._load_collection(data.get(MANIFESTS, []), Manifest, self._index_manifest)
        if data:
            logger.info(
                f"Store loaded: {len(self.users)} users, {len(self.shipments)} shipments, "
                f"{len(self.inventory)} inventory items, {len(self.manifests)} manifests"
            )

    def _load_collection(self, rows: Iterable[Dict[str, Any]], model: Type[E], index: Callable[[E], None]) -> None:
        for row in rows:
            index(model.model_validate(row))

    def close(self) -> None:
        self.persistence.close()

    # ========== Helpers ==========

    @staticmethod
    def _apply_patch(entity: Entity, patch: BaseModel) -> None:
        """Copy the fields the caller explicitly set; None never overwrites a value"""
        for field in patch.model_fields_set:
            value = getattr(patch, field)
            if value is None:
                continue
            setattr(entity, field, value)

    @staticmethod
    def _append(index: Dict[str, List[str]], key: str, entity_id: str) -> None:
        index.setdefault(key, []).append(entity_id)

    def _redraw(self, draw: Callable[[], str], taken: Dict[str, str]) -> str:
        value = draw()
        for _ in range(MAX_REDRAWS):
            if value not in taken:
                return value
            value = draw()
        return value

    # ========== Users ==========

    def _index_user(self, user: User) -> None:
        self.users[user.id] = user
        self._users_by_email[user.email.lower()] = user.id
        self._users_by_customer_number[user.customer_number] = user.id

    def _build_warehouse_address(self, customer_number: str, customer_name: str) -> WarehouseAddress:
        s = self.settings
        return WarehouseAddress(
            customer_number=customer_number,
            recipient_name=customer_name,
            company_name=s.WAREHOUSE_COMPANY,
            street1=s.WAREHOUSE_STREET,
            street2=f"{s.WAREHOUSE_SUITE} - {customer_number}",
            city=s.WAREHOUSE_CITY,
            state=s.WAREHOUSE_STATE,
            zip_code=s.WAREHOUSE_ZIP,
            country=s.WAREHOUSE_COUNTRY,
            full_address=(
                f"{customer_name}\nAccount: {customer_number}\n{s.WAREHOUSE_COMPANY}\n"
                f"{s.WAREHOUSE_STREET}, {s.WAREHOUSE_SUITE}\n"
                f"{s.WAREHOUSE_CITY}, {s.WAREHOUSE_STATE} {s.WAREHOUSE_ZIP}\n{s.WAREHOUSE_COUNTRY}"
            ),
        )

    def create_user(self, data: Dict[str, Any]) -> User:
        """
        Create a user from registration data.

        Expects company_name, first_name, last_name, email and an already hashed
        password; address fields go into the profile. Raises ConflictError when
        the email (compared case-insensitively) is taken.
        """
        with self._lock:
            if data["email"].lower() in self._users_by_email:
                raise ConflictError("Email already registered")
            customer_number = self.generator.generate_customer_number(
                len(self.users), lambda n: n in self._users_by_customer_number
            )
            customer_name = f"{data.get('first_name', '')} {data.get('last_name', '')}".strip()
            profile = UserProfile(**{
                k: data[k] for k in UserProfile.model_fields if data.get(k) is not None
            })
            user = User(
                id=self.generator.generate_id(),
                customer_number=customer_number,
                company_name=data.get("company_name", ""),
                first_name=data.get("first_name", ""),
                last_name=data.get("last_name", ""),
                email=data["email"],
                phone=data.get("phone", ""),
                password=data.get("password"),
                role=data.get("role") or "customer",
                status=data.get("status") or "active",
                profile=profile,
                warehouse_address=self._build_warehouse_address(customer_number, customer_name),
            )
            self._index_user(user)
        self._save(USERS, user)
        return user

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        user_id = self._users_by_email.get((email or "").lower())
        return self.users.get(user_id) if user_id else None

    def get_user_by_customer_number(self, customer_number: str) -> Optional[User]:
        user_id = self._users_by_customer_number.get(customer_number)
        return self.users.get(user_id) if user_id else None

    def update_user(self, user_id: str, patch: UserPatch) -> Optional[User]:
        with self._lock:
            user = self.users.get(user_id)
            if not user:
                return None
            self._apply_patch(user, patch)
            user.updated_at = utcnow()
        self._save(USERS, user)
        return user

    def list_users(self) -> List[User]:
        return list(self.users.values())

    # ========== Shipments ==========

    def _index_shipment(self, shipment: Shipment) -> None:
        self.shipments[shipment.id] = shipment
        self._shipments_by_tracking[shipment.tracking_number] = shipment.id
        self._append(self._shipments_by_customer, shipment.customer_id, shipment.id)

    def create_shipment(self, data: Dict[str, Any]) -> Shipment:
        """Create a pending shipment; history is seeded with the pending entry"""
        with self._lock:
            origin = PostalAddress.model_validate(data["origin"])
            now = utcnow()
            shipment = Shipment(
                id=self.generator.generate_id(),
                tracking_number=self._redraw(self.generator.generate_tracking_number, self._shipments_by_tracking),
                customer_id=data["customer_id"],
                company_id=data.get("company_id") or data["customer_id"],
                origin=origin,
                destination=PostalAddress.model_validate(data["destination"]),
                package=PackageInfo.model_validate(data["package"]),
                service=data.get("service") or "standard",
                rate=data.get("rate") or 0,
                status=ShipmentStatus.PENDING.value,
                status_history=[StatusEntry(
                    status=ShipmentStatus.PENDING.value,
                    timestamp=now,
                    location=origin.city,
                    notes="Shipment created",
                )],
                created_at=now,
                updated_at=now,
                estimated_delivery=data.get("estimated_delivery"),
                notes=data.get("notes") or "",
            )
            self._index_shipment(shipment)
        self._save(SHIPMENTS, shipment)
        return shipment

    def get_shipment_by_id(self, shipment_id: str) -> Optional[Shipment]:
        return self.shipments.get(shipment_id)

    def get_shipment_by_tracking_number(self, tracking_number: str) -> Optional[Shipment]:
        shipment_id = self._shipments_by_tracking.get(tracking_number)
        return self.shipments.get(shipment_id) if shipment_id else None

    def list_shipments_by_customer(self, customer_id: str) -> List[Shipment]:
        return [self.shipments[i] for i in self._shipments_by_customer.get(customer_id, [])]

    def list_shipments(self) -> List[Shipment]:
        return list(self.shipments.values())

    def update_shipment(self, shipment_id: str, patch: ShipmentPatch) -> Optional[Shipment]:
        with self._lock:
            shipment = self.shipments.get(shipment_id)
            if not shipment:
                return None
            self._apply_patch(shipment, patch)
            shipment.updated_at = utcnow()
        self._save(SHIPMENTS, shipment)
        return shipment

    def record_status(
        self,
        shipment_id: str,
        entry: StatusEntry,
        delivered_at: Optional[datetime] = None,
        guard: Optional[Callable[[str], None]] = None,
    ) -> Optional[Shipment]:
        """
        Append a history entry and move the current status.

        History is append-only; actual_delivery is stamped only when
        delivered_at is given. `guard` is called with the current status
        under the store lock and may raise to refuse the change.
        """
        with self._lock:
            shipment = self.shipments.get(shipment_id)
            if not shipment:
                return None
            if guard is not None:
                guard(shipment.status)
            shipment.status_history.append(entry)
            shipment.status = entry.status
            shipment.updated_at = entry.timestamp
            if delivered_at is not None:
                shipment.actual_delivery = delivered_at
        self._save(SHIPMENTS, shipment)
        return shipment

    # ========== Inventory ==========

    def _index_inventory(self, item: InventoryItem) -> None:
        self.inventory[item.id] = item
        self._inventory_by_sku[item.sku] = item.id
        self._append(self._inventory_by_company, item.company_id, item.id)

    def add_inventory_item(self, data: Dict[str, Any]) -> InventoryItem:
        with self._lock:
            if data.get("sku") and data["sku"] in self._inventory_by_sku:
                raise ConflictError(f"SKU {data['sku']} already exists")
            sku = data.get("sku") or self._redraw(self.generator.generate_sku, self._inventory_by_sku)
            now = utcnow()
            item = InventoryItem(
                id=self.generator.generate_id(),
                company_id=data["company_id"],
                name=data["name"],
                description=data.get("description") or "",
                sku=sku,
                quantity=data.get("quantity") or 0,
                location=data.get("location") or "",
                status="active",
                created_at=now,
                last_updated=now,
            )
            self._index_inventory(item)
        self._save(INVENTORY, item)
        return item

    def get_inventory_item_by_id(self, item_id: str) -> Optional[InventoryItem]:
        return self.inventory.get(item_id)

    def get_inventory_by_sku(self, sku: str) -> Optional[InventoryItem]:
        item_id = self._inventory_by_sku.get(sku)
        return self.inventory.get(item_id) if item_id else None

    def list_inventory_by_company(self, company_id: str) -> List[InventoryItem]:
        return [self.inventory[i] for i in self._inventory_by_company.get(company_id, [])]

    def list_inventory(self) -> List[InventoryItem]:
        return list(self.inventory.values())

    def update_inventory(self, item_id: str, patch: InventoryPatch) -> Optional[InventoryItem]:
        with self._lock:
            item = self.inventory.get(item_id)
            if not item:
                return None
            self._apply_patch(item, patch)
            item.last_updated = utcnow()
        self._save(INVENTORY, item)
        return item

    # ========== Status Updates ==========

    def _index_status_update(self, update: StatusUpdate) -> None:
        self.status_updates[update.id] = update
        self._append(self._updates_by_shipment, update.shipment_id, update.id)
        self._append(self._updates_by_company, update.company_id, update.id)

    def create_status_update(self, data: Dict[str, Any]) -> StatusUpdate:
        with self._lock:
            update = StatusUpdate(
                id=self.generator.generate_id(),
                shipment_id=data["shipment_id"],
                company_id=data["company_id"],
                status=data["status"],
                location=data.get("location") or "",
                notes=data.get("notes") or "",
                updated_by=data.get("updated_by") or "system",
                timestamp=data.get("timestamp") or utcnow(),
            )
            self._index_status_update(update)
        self._save(STATUS_UPDATES, update)
        return update

    def list_status_updates_by_shipment(self, shipment_id: str) -> List[StatusUpdate]:
        """Newest first"""
        updates = [self.status_updates[i] for i in self._updates_by_shipment.get(shipment_id, [])]
        return sorted(updates, key=lambda u: u.timestamp, reverse=True)

    def list_status_updates_by_company(self, company_id: str) -> List[StatusUpdate]:
        updates = [self.status_updates[i] for i in self._updates_by_company.get(company_id, [])]
        return sorted(updates, key=lambda u: u.timestamp, reverse=True)

    # ========== Manifests ==========

    def _index_manifest(self, manifest: Manifest) -> None:
        self.manifests[manifest.id] = manifest
        self._append(self._manifests_by_company, manifest.company_id, manifest.id)

    def create_manifest(self, data: Dict[str, Any]) -> Manifest:
        with self._lock:
            now = utcnow()
            manifest = Manifest(
                id=self.generator.generate_id(),
                manifest_number=self.generator.generate_manifest_number(),
                company_id=data["company_id"],
                shipment_ids=list(data["shipment_ids"]),
                manifest_type=data.get("manifest_type") or "standard",
                destination=data.get("destination") or "",
                status="pending",
                created_at=now,
                updated_at=now,
            )
            self._index_manifest(manifest)
        self._save(MANIFESTS, manifest)
        return manifest

    def get_manifest_by_id(self, manifest_id: str) -> Optional[Manifest]:
        return self.manifests.get(manifest_id)

    def list_manifests_by_company(self, company_id: str) -> List[Manifest]:
        return [self.manifests[i] for i in self._manifests_by_company.get(company_id, [])]

    def update_manifest(self, manifest_id: str, patch: ManifestPatch) -> Optional[Manifest]:
        with self._lock:
            manifest = self.manifests.get(manifest_id)
            if not manifest:
                return None
            self._apply_patch(manifest, patch)
            manifest.updated_at = utcnow()
        self._save(MANIFESTS, manifest)
        return manifest
