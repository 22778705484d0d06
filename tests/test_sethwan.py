import asyncio

import httpx
import pytest

from dnexpress.integrations import SethwanClient
from dnexpress.integrations.sethwan import credentials_look_valid

from conftest import FakeSethwan


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def partner():
    return FakeSethwan()


@pytest.fixture
def sethwan(partner):
    return SethwanClient(
        base_url="https://sethwan.example.com/",
        api_key="customer-key-0123456789abc",
        account_id="ACME-01",
        transport=httpx.MockTransport(partner),
    )


@pytest.fixture
def customer(store):
    return store.create_user({
        "company_name": "Acme Imports",
        "first_name": "Maria",
        "last_name": "Lopez",
        "email": "owner@acme.com",
        "phone": "3055550100",
        "password": "hashed",
    })


def test_status_and_service_mapping(sethwan):
    assert sethwan.map_status("pickup") == "picked_up"
    assert sethwan.map_status("in-transit") == "in_transit"
    assert sethwan.map_status("unknown") == "pending"
    assert sethwan.reverse_map_status("out_for_delivery") == "out-for-delivery"
    assert sethwan.reverse_map_status("lost_in_space") == "pending"
    assert sethwan.map_service_type("overnight") == "overnight_shipping"
    assert sethwan.map_service_type(None) == "standard_shipping"


def test_credential_shape_check():
    assert credentials_look_valid("k" * 21, "ACME01")
    assert not credentials_look_valid("short", "ACME01")
    assert not credentials_look_valid("k" * 21, "ACME")


def test_partner_shipment_payload(sethwan, store, customer, shipment_payload):
    shipment = store.create_shipment({**shipment_payload, "customer_id": customer.id})
    payload = sethwan.to_partner_shipment(shipment, shipper_name="Acme Imports")

    assert payload["tracking_number"] == shipment.tracking_number
    assert payload["shipper"]["name"] == "Acme Imports"
    assert payload["shipper"]["address"] == "4651 NW 72nd Ave, Miami, FL 33166"
    assert payload["receiver"]["name"] == "Andre Brown"
    assert payload["package"]["length"] == 10
    assert payload["service_type"] == "express_shipping"
    assert payload["status"] == "pending"


def test_validate_connection_sends_credentials(sethwan, partner):
    result = run(sethwan.validate_connection())
    assert result["valid"] is True
    assert result["account"]["id"] == "ACME-01"

    method, path, headers, _ = partner.calls[0]
    assert (method, path) == ("GET", "/v1/account/validate")
    assert headers["authorization"] == "Bearer customer-key-0123456789abc"
    assert headers["x-account-id"] == "ACME-01"


def test_rejected_credentials(sethwan, partner):
    client = sethwan.for_account("rejected-key-000000000000", "ACME-01")
    result = run(client.validate_connection())
    assert result == {"success": False, "valid": False, "error": result["error"]}
    assert "401" in result["error"]


def test_send_shipment_and_tracking(sethwan, store, customer, shipment_payload):
    shipment = store.create_shipment({**shipment_payload, "customer_id": customer.id})

    sent = run(sethwan.send_shipment(shipment))
    assert sent["success"] is True
    assert sent["sethwan_id"] == "SW-1001"
    assert sent["sethwan_tracking_number"] == shipment.tracking_number

    tracked = run(sethwan.get_shipment_tracking(shipment.tracking_number))
    assert tracked["shipment"]["status"] == "in-transit"
    assert tracked["shipment"]["sethwan_id"] == "SW-1001"


def test_partner_outage_becomes_failure_result(sethwan, partner):
    partner.failing.add("/v1/warehouses")
    result = run(sethwan.get_warehouses())
    assert result["success"] is False
    assert result["details"] == {"error": "unavailable"}


def test_malformed_partner_body():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html>oops</html>"))
    client = SethwanClient("https://sethwan.example.com", "k" * 21, "ACME-01", transport=transport)
    result = run(client.get_warehouses())
    assert result["success"] is False
    assert result["error"].startswith("Malformed response")


def test_rate_requires_rate_field():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"currency": "USD"}))
    client = SethwanClient("https://sethwan.example.com", "k" * 21, "ACME-01", transport=transport)
    result = run(client.get_shipping_rate("Miami", "Kingston", "Jamaica", 2.0))
    assert result == {"success": False, "error": "Malformed response: missing rate"}


def test_rate_maps_service_level(sethwan, partner):
    result = run(sethwan.get_shipping_rate("Miami", "Kingston", "Jamaica", 2.0, service_type="express"))
    assert result["rate"] == 42.5
    body = partner.calls[-1][3]
    assert body["service_type"] == "express_shipping"
    assert body["from"]["country"] == "USA"


def test_transport_error_is_reported():
    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = SethwanClient("https://sethwan.example.com", "k" * 21, "ACME-01", transport=httpx.MockTransport(boom))
    result = run(client.validate_connection())
    assert result["valid"] is False
    assert "connection refused" in result["error"]


def test_sync_customer_warehouse(sethwan, partner, customer):
    result = run(sethwan.sync_customer_warehouse(customer))
    assert result == {"success": True, "warehouse_id": "WH-MIA-1"}
    body = partner.calls[-1][3]
    assert body["customer_id"] == customer.customer_number
    assert body["address2"] == f"Suite 101 - {customer.customer_number}"
