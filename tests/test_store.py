import random
from datetime import timedelta

import pytest

from dnexpress.core import EntityStore, SqlSnapshotPersistence
from dnexpress.core.exceptions import ConflictError
from dnexpress.models import StatusEntry
from dnexpress.schemas import InventoryPatch, ShipmentPatch, UserPatch
from dnexpress.services import IdentifierGenerator



def user_data(email="owner@acme.com", **extra):
    data = {
        "company_name": "Acme Imports",
        "first_name": "Maria",
        "last_name": "Lopez",
        "email": email,
        "phone": "3055550100",
        "password": "hashed",
        "city": "Miami",
    }
    data.update(extra)
    return data


@pytest.fixture
def shipment_data(shipment_payload):
    def _data(customer_id):
        return {**shipment_payload, "customer_id": customer_id}
    return _data


def test_email_lookup_is_case_insensitive(store):
    user = store.create_user(user_data("Owner@Acme.com"))
    assert store.get_user_by_email("owner@ACME.com").id == user.id
    assert user.role == "customer"
    assert user.profile.city == "Miami"


def test_duplicate_email_is_rejected(store):
    store.create_user(user_data("owner@acme.com"))
    with pytest.raises(ConflictError):
        store.create_user(user_data("OWNER@acme.com"))
    assert len(store.list_users()) == 1


def test_customer_numbers_and_warehouse_address(store):
    first = store.create_user(user_data("a@acme.com"))
    second = store.create_user(user_data("b@acme.com"))
    assert first.customer_number == "DNX-100001"
    assert second.customer_number == "DNX-100002"
    assert store.get_user_by_customer_number("DNX-100002").id == second.id

    address = second.warehouse_address
    assert address.street2 == "Suite 101 - DNX-100002"
    assert address.recipient_name == "Maria Lopez"
    assert "Account: DNX-100002" in address.full_address


def test_missing_ids_return_none(store):
    assert store.get_user_by_id("nope") is None
    assert store.get_shipment_by_tracking_number("DNE0") is None
    assert store.update_inventory("nope", InventoryPatch(quantity=1)) is None


def test_user_patch_only_touches_set_fields(store):
    user = store.create_user(user_data())
    store.update_user(user.id, UserPatch(phone="3055550199"))
    assert user.phone == "3055550199"
    assert user.first_name == "Maria"
    assert user.password == "hashed"


def test_shipment_created_pending_with_history(store, shipment_data):
    user = store.create_user(user_data())
    shipment = store.create_shipment(shipment_data(user.id))

    assert shipment.status == "pending"
    assert shipment.company_id == user.id
    assert len(shipment.status_history) == 1
    entry = shipment.status_history[0]
    assert (entry.status, entry.location, entry.notes) == ("pending", "Miami", "Shipment created")
    assert store.get_shipment_by_tracking_number(shipment.tracking_number) is shipment
    assert store.list_shipments_by_customer(user.id) == [shipment]


def test_tracking_number_collision_is_redrawn(store, shipment_data):
    user = store.create_user(user_data())
    numbers = iter(["DNEDUP", "DNEDUP", "DNENEW"])
    store.generator.generate_tracking_number = lambda: next(numbers)

    first = store.create_shipment(shipment_data(user.id))
    second = store.create_shipment(shipment_data(user.id))
    assert first.tracking_number == "DNEDUP"
    assert second.tracking_number == "DNENEW"


def test_record_status_appends_and_stamps_delivery(store, shipment_data):
    user = store.create_user(user_data())
    shipment = store.create_shipment(shipment_data(user.id))

    entry = StatusEntry(status="pickup", location="Miami")
    store.record_status(shipment.id, entry)
    assert shipment.status == "pickup"
    assert shipment.updated_at == entry.timestamp
    assert shipment.actual_delivery is None

    done = StatusEntry(status="delivered")
    store.record_status(shipment.id, done, delivered_at=done.timestamp)
    assert shipment.actual_delivery == done.timestamp
    assert [e.status for e in shipment.status_history] == ["pending", "pickup", "delivered"]


def test_shipment_patch_keeps_unset_fields(store, shipment_data):
    user = store.create_user(user_data())
    shipment = store.create_shipment(shipment_data(user.id))
    store.update_shipment(shipment.id, ShipmentPatch(sethwan_id="SW-1"))
    assert shipment.sethwan_id == "SW-1"
    assert shipment.service == "express"
    assert shipment.rate == 25.5


def test_inventory_sku_generation_and_conflict(store):
    user = store.create_user(user_data())
    generated = store.add_inventory_item({"company_id": user.id, "name": "Shoes", "quantity": 5})
    assert generated.sku.startswith("SKU-")
    assert store.get_inventory_by_sku(generated.sku) is generated

    store.add_inventory_item({"company_id": user.id, "name": "Hats", "sku": "HAT-1", "quantity": 2})
    with pytest.raises(ConflictError):
        store.add_inventory_item({"company_id": user.id, "name": "Caps", "sku": "HAT-1", "quantity": 1})
    assert len(store.list_inventory_by_company(user.id)) == 2


def test_update_inventory_bumps_last_updated(store):
    user = store.create_user(user_data())
    item = store.add_inventory_item({"company_id": user.id, "name": "Shoes", "quantity": 5})
    before = item.last_updated
    store.update_inventory(item.id, InventoryPatch(quantity=7))
    assert item.quantity == 7
    assert item.name == "Shoes"
    assert item.last_updated >= before


def test_status_updates_listed_newest_first(store, shipment_data):
    user = store.create_user(user_data())
    shipment = store.create_shipment(shipment_data(user.id))
    first = store.create_status_update({"shipment_id": shipment.id, "company_id": user.id, "status": "pickup"})
    second = store.create_status_update({"shipment_id": shipment.id, "company_id": user.id, "status": "in-transit"})
    second.timestamp = first.timestamp + timedelta(seconds=5)

    assert store.list_status_updates_by_shipment(shipment.id) == [second, first]
    assert store.list_status_updates_by_company(user.id)[0] is second
    assert first.updated_by == "system"


def test_manifest_number_assigned(store):
    user = store.create_user(user_data())
    manifest = store.create_manifest({"company_id": user.id, "shipment_ids": ["a", "b"]})
    assert manifest.manifest_number.startswith("MNF-")
    assert manifest.status == "pending"
    assert manifest.shipment_count == 2
    assert store.list_manifests_by_company(user.id) == [manifest]


def test_sql_snapshot_reload(settings, shipment_data):
    persistence = SqlSnapshotPersistence("sqlite:///:memory:")
    generator = IdentifierGenerator(rng=random.Random(3))
    store = EntityStore(generator, persistence, settings)

    user = store.create_user(user_data())
    shipment = store.create_shipment(shipment_data(user.id))
    store.record_status(shipment.id, StatusEntry(status="pickup"))
    item = store.add_inventory_item({"company_id": user.id, "name": "Shoes", "quantity": 5})

    reloaded = EntityStore(generator, persistence, settings)
    reloaded.load()

    assert reloaded.get_user_by_email("OWNER@acme.com").customer_number == user.customer_number
    restored = reloaded.get_shipment_by_tracking_number(shipment.tracking_number)
    assert restored.status == "pickup"
    assert [e.status for e in restored.status_history] == ["pending", "pickup"]
    assert reloaded.get_inventory_by_sku(item.sku).quantity == 5
    assert reloaded.list_shipments_by_customer(user.id)[0].id == shipment.id
    persistence.close()


def test_record_status_guard_refuses_under_lock(store, shipment_data):
    user = store.create_user(user_data())
    shipment = store.create_shipment(shipment_data(user.id))

    def guard(current):
        raise ConflictError(f"already {current}")

    with pytest.raises(ConflictError, match="already pending"):
        store.record_status(shipment.id, StatusEntry(status="pickup"), guard=guard)
    assert shipment.status == "pending"
    assert len(shipment.status_history) == 1


def test_patch_never_writes_none(store, shipment_data):
    user = store.create_user(user_data())
    item = store.add_inventory_item({"company_id": user.id, "name": "Widget", "quantity": 4})
    store.update_inventory(item.id, InventoryPatch.model_construct(_fields_set={"quantity"}, quantity=None))
    assert item.quantity == 4

    store.update_user(user.id, UserPatch(first_name=None, last_name="Ruiz"))
    assert user.first_name == "Maria"
    assert user.last_name == "Ruiz"

    shipment = store.create_shipment(shipment_data(user.id))
    store.update_shipment(shipment.id, ShipmentPatch(service=None, notes="Fragile"))
    assert shipment.service == "express"
    assert shipment.notes == "Fragile"
