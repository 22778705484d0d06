import pytest

CREDENTIALS = {"api_key": "customer-key-0123456789abc", "account_id": "ACME-01"}


@pytest.fixture
def connected(client, register):
    """Customer with an active Sethwan integration"""
    user, headers, _ = register()
    resp = client.post("/api/sethwan/connect", headers=headers, json=CREDENTIALS)
    assert resp.status_code == 200, resp.text
    return user, headers


def test_offline_connection_test(client, register, sethwan_partner):
    _, headers, _ = register()
    ok = client.post("/api/sethwan/test-connection", headers=headers, json=CREDENTIALS).json()
    assert ok["valid"] is True
    assert ok["message"] == "Connection successful"

    bad = client.post("/api/sethwan/test-connection", headers=headers,
                      json={"api_key": "short", "account_id": "ACME-01"}).json()
    assert bad["valid"] is False
    assert bad["message"] == "Invalid credentials format"
    assert sethwan_partner.calls == []


def test_connect_stores_integration(client, connected, sethwan_partner):
    user, headers = connected
    assert "/v1/account/validate" in sethwan_partner.paths()
    assert "/v1/customer-warehouses" in sethwan_partner.paths()

    integration = client.get("/api/sethwan/status", headers=headers).json()["integration"]
    assert integration["integrated"] is True
    assert integration["account_id"] == "ACME-01"
    assert integration["default_warehouse"] == "WH-MIA-1"

    me = client.get("/api/auth/me", headers=headers).json()["user"]
    assert "api_key" not in me["sethwan"]


def test_connect_rejects_bad_credentials(client, register):
    _, headers, _ = register()
    resp = client.post("/api/sethwan/connect", headers=headers,
                       json={"api_key": "rejected-key-000000000000", "account_id": "ACME-01"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid Sethwan credentials"

    integration = client.get("/api/sethwan/status", headers=headers).json()["integration"]
    assert integration["integrated"] is False


def test_connect_survives_warehouse_sync_failure(client, register, sethwan_partner):
    _, headers, _ = register()
    sethwan_partner.failing.add("/v1/customer-warehouses")
    resp = client.post("/api/sethwan/connect", headers=headers, json=CREDENTIALS)
    assert resp.status_code == 200
    assert resp.json()["warehouse_synced"] is False
    integration = client.get("/api/sethwan/status", headers=headers).json()["integration"]
    assert integration["integrated"] is True
    assert integration["default_warehouse"] is None


def test_partner_calls_need_integration(client, register):
    _, headers, _ = register()
    resp = client.get("/api/sethwan/warehouses", headers=headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Sethwan integration not active"


def test_sync_shipment(client, connected, create_shipment, sethwan_partner):
    _, headers = connected
    shipment = create_shipment(headers)

    resp = client.post("/api/sethwan/sync-shipment", headers=headers, json={"shipment_id": shipment["id"]})
    assert resp.status_code == 200
    assert resp.json()["sethwan_id"] == "SW-1001"

    stored = client.get(f"/api/shipments/{shipment['id']}", headers=headers).json()["shipment"]
    assert stored["sethwan_id"] == "SW-1001"

    _, _, sent_headers, body = sethwan_partner.calls[-1]
    assert sent_headers["authorization"] == f"Bearer {CREDENTIALS['api_key']}"
    assert body["service_type"] == "express_shipping"


def test_sync_shipment_partner_failure(client, connected, create_shipment, sethwan_partner):
    _, headers = connected
    shipment = create_shipment(headers)
    sethwan_partner.failing.add("/v1/shipments")

    resp = client.post("/api/sethwan/sync-shipment", headers=headers, json={"shipment_id": shipment["id"]})
    assert resp.status_code == 500
    assert resp.json()["message"] == "Failed to sync shipment with Sethwan"

    stored = client.get(f"/api/shipments/{shipment['id']}", headers=headers).json()["shipment"]
    assert stored["sethwan_id"] is None


def test_warehouses_tracking_and_rates(client, connected):
    _, headers = connected
    warehouses = client.get("/api/sethwan/warehouses", headers=headers).json()["warehouses"]
    assert warehouses == [{"id": "WH-MIA-1", "name": "Miami"}]

    tracked = client.get("/api/sethwan/track/DNE123", headers=headers).json()["shipment"]
    assert tracked["status"] == "in-transit"

    rate = client.post("/api/sethwan/rates", headers=headers, json={
        "from_address": "Miami, FL",
        "to_address": "Kingston",
        "to_country": "Jamaica",
        "weight": 3,
    }).json()
    assert rate["rate"] == 42.5
    assert rate["currency"] == "USD"


def test_default_warehouse_and_disconnect(client, connected):
    _, headers = connected
    resp = client.post("/api/sethwan/set-default-warehouse", headers=headers, json={"warehouse_id": "WH-2"})
    assert resp.json()["default_warehouse"] == "WH-2"

    client.post("/api/sethwan/disconnect", headers=headers)
    integration = client.get("/api/sethwan/status", headers=headers).json()["integration"]
    assert integration == {
        "integrated": False,
        "customer_id": None,
        "account_id": None,
        "default_warehouse": None,
        "message": "Sethwan not integrated",
    }


def test_health_check(client, connected, sethwan_partner):
    _, headers = connected
    health = client.get("/api/sethwan/health-check", headers=headers).json()["health"]
    assert health["overall_status"] == "healthy"
    assert health["checks"]["warehouse_access"]["warehouse_count"] == 1

    sethwan_partner.failing.add("/v1/account/validate")
    degraded = client.get("/api/sethwan/health-check", headers=headers).json()["health"]
    assert degraded["overall_status"] == "degraded"
    assert degraded["checks"]["api_connection"]["status"] == "unhealthy"


def test_submit_manifest(client, connected, create_shipment, sethwan_partner):
    _, headers = connected
    shipment = create_shipment(headers)
    manifest = client.post("/api/manifests", headers=headers,
                           json={"shipment_ids": [shipment["id"]]}).json()["manifest"]

    sethwan_partner.failing.add("/v1/manifests")
    resp = client.post(f"/api/manifests/{manifest['id']}/submit-to-sethwan", headers=headers)
    assert resp.status_code == 500
    assert resp.json()["message"] == "Failed to submit manifest"
    detail = client.get(f"/api/manifests/{manifest['id']}", headers=headers).json()["manifest"]
    assert detail["status"] == "pending"

    sethwan_partner.failing.clear()
    resp = client.post(f"/api/manifests/{manifest['id']}/submit-to-sethwan", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["sethwan_manifest_id"] == "SWM-7"
    body = sethwan_partner.calls[-1][3]
    assert body["manifest_number"] == manifest["manifest_number"]
    assert body["warehouse_id"] == "WH-MIA-1"


def test_submit_manifest_without_integration(client, register, create_shipment):
    _, headers, _ = register()
    shipment = create_shipment(headers)
    manifest = client.post("/api/manifests", headers=headers,
                           json={"shipment_ids": [shipment["id"]]}).json()["manifest"]
    resp = client.post(f"/api/manifests/{manifest['id']}/submit-to-sethwan", headers=headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Sethwan integration not configured"
