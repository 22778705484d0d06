from datetime import timedelta
import threading
import time

import pytest

from dnexpress.core.exceptions import InvalidStatusError, InvalidTransitionError
from dnexpress.services import ShipmentStatusService


class RecordingNotifier:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def notify(self, shipment, status, message):
        if self.fail:
            raise RuntimeError("mail server down")
        self.sent.append((shipment.tracking_number, status, message))


@pytest.fixture
def shipment(store, shipment_payload):
    user = store.create_user({
        "company_name": "Acme Imports",
        "first_name": "Maria",
        "last_name": "Lopez",
        "email": "owner@acme.com",
        "password": "hashed",
    })
    return store.create_shipment({**shipment_payload, "customer_id": user.id})


def test_advance_records_history_and_update(store, shipment):
    notifier = RecordingNotifier()
    service = ShipmentStatusService(store, notifier)

    updated, update = service.advance(shipment, "pickup", notes="Picked up at dock", actor="ops@dnexpress.com")

    assert updated.status == "pickup"
    assert [e.status for e in updated.status_history] == ["pending", "pickup"]
    # location falls back to the destination city
    assert updated.status_history[-1].location == "Kingston"
    assert update.updated_by == "ops@dnexpress.com"
    assert update.company_id == shipment.company_id
    assert store.list_status_updates_by_shipment(shipment.id) == [update]
    assert notifier.sent == [(shipment.tracking_number, "pickup", "Your shipment has been picked up")]


def test_full_delivery_path(store, shipment):
    service = ShipmentStatusService(store, RecordingNotifier())
    for status in ("pickup", "in-transit", "in-transit", "out-for-delivery", "delivered"):
        service.advance(shipment, status, location="Kingston Hub")

    assert shipment.status == "delivered"
    assert shipment.actual_delivery is not None
    assert shipment.actual_delivery >= shipment.created_at
    assert len(shipment.status_history) == 6


def test_unknown_status_rejected(store, shipment):
    service = ShipmentStatusService(store, RecordingNotifier())
    with pytest.raises(InvalidStatusError) as excinfo:
        service.advance(shipment, "lost")
    assert excinfo.value.status_code == 400
    assert "pending" in excinfo.value.extra["valid_statuses"]
    assert shipment.status == "pending"
    assert len(shipment.status_history) == 1


def test_strict_mode_blocks_skipping_ahead(store, shipment):
    service = ShipmentStatusService(store, RecordingNotifier())
    with pytest.raises(InvalidTransitionError) as excinfo:
        service.advance(shipment, "delivered")
    assert excinfo.value.status_code == 409
    assert excinfo.value.extra["allowed"] == ["pickup", "cancelled"]
    assert shipment.actual_delivery is None


def test_terminal_statuses_are_final(store, shipment):
    service = ShipmentStatusService(store, RecordingNotifier())
    service.advance(shipment, "cancelled")
    with pytest.raises(InvalidTransitionError):
        service.advance(shipment, "pickup")


def test_permissive_mode_allows_any_known_status(store, shipment):
    service = ShipmentStatusService(store, RecordingNotifier(), strict=False)
    service.advance(shipment, "delivered")
    assert shipment.status == "delivered"
    assert shipment.actual_delivery >= shipment.created_at


def test_timestamps_never_precede_creation(store, shipment):
    shipment.created_at = shipment.created_at + timedelta(hours=1)
    service = ShipmentStatusService(store, RecordingNotifier())
    service.advance(shipment, "pickup")
    assert shipment.status_history[-1].timestamp == shipment.created_at


def test_notifier_failure_does_not_fail_update(store, shipment):
    service = ShipmentStatusService(store, RecordingNotifier(fail=True))
    updated, _ = service.advance(shipment, "pickup")
    assert updated.status == "pickup"


def test_concurrent_identical_changes_record_once(store, shipment, monkeypatch):
    service = ShipmentStatusService(store, RecordingNotifier())
    record_status = store.record_status

    def slow_record_status(*args, **kwargs):
        # both requests pass the early check before either one writes
        time.sleep(0.05)
        return record_status(*args, **kwargs)

    monkeypatch.setattr(store, "record_status", slow_record_status)
    errors = []

    def worker():
        try:
            service.advance(shipment, "pickup")
        except InvalidTransitionError as e:
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert [e.status for e in shipment.status_history] == ["pending", "pickup"]
    assert len(errors) == 1
    assert errors[0].extra["current_status"] == "pickup"
    assert len(store.list_status_updates_by_shipment(shipment.id)) == 1
