import copy
import json
from typing import Dict, List, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient

from dnexpress.core import EntityStore, Settings
from main import create_app

ADMIN_EMAIL = "ops@dnexpress.com"
ADMIN_PASSWORD = "AdminPass123"
PASSWORD = "Secret123"


class FakeSethwan:
    """Routes partner calls in-process; tests flip `failing` to simulate outages"""

    def __init__(self):
        self.calls: List[Tuple[str, str, dict, Optional[dict]]] = []
        self.failing = set()
        self.bad_keys = {"rejected-key-000000000000"}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        body = json.loads(request.content) if request.content else None
        self.calls.append((request.method, path, dict(request.headers), body))

        if path in self.failing:
            return httpx.Response(503, json={"error": "unavailable"})
        if request.headers.get("Authorization", "").replace("Bearer ", "") in self.bad_keys:
            return httpx.Response(401, json={"error": "invalid api key"})

        if path == "/v1/account/validate":
            return httpx.Response(200, json={
                "account": {"id": request.headers.get("X-Account-ID"), "status": "active"},
                "features": ["shipment_tracking", "warehouse_management"],
            })
        if path == "/v1/customer-warehouses":
            return httpx.Response(201, json={"id": "WH-MIA-1"})
        if path == "/v1/warehouses":
            return httpx.Response(200, json={"data": [{"id": "WH-MIA-1", "name": "Miami"}]})
        if path == "/v1/shipments":
            return httpx.Response(201, json={"id": "SW-1001", "tracking_number": body["tracking_number"]})
        if path.startswith("/v1/shipments/track/"):
            return httpx.Response(200, json={
                "id": "SW-1001",
                "tracking_number": path.rsplit("/", 1)[-1],
                "status": "in_transit",
                "estimated_delivery": "2026-02-01T00:00:00Z",
            })
        if path == "/v1/rates/calculate":
            return httpx.Response(200, json={"rate": 42.5, "currency": "USD"})
        if path == "/v1/manifests":
            return httpx.Response(201, json={"id": "SWM-7"})
        return httpx.Response(404, json={"error": "not found"})

    def paths(self) -> List[str]:
        return [path for _, path, _, _ in self.calls]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        BCRYPT_ROUNDS=4,
        ADMIN_EMAIL=ADMIN_EMAIL,
        ADMIN_PASSWORD=ADMIN_PASSWORD,
        DATABASE_URL=None,
        LOGS_PATH=None,
        SETHWAN_API_URL="https://sethwan.example.com",
        SETHWAN_API_KEY="system-key-0123456789abcdef",
        SETHWAN_ACCOUNT_ID="DNEXPRESS",
        STRICT_STATUS_TRANSITIONS=True,
        DEBUG=False,
    )


@pytest.fixture
def store(settings) -> EntityStore:
    return EntityStore(settings=settings)


@pytest.fixture
def sethwan_partner() -> FakeSethwan:
    return FakeSethwan()


@pytest.fixture
def client(settings, sethwan_partner):
    app = create_app(settings, sethwan_transport=httpx.MockTransport(sethwan_partner))
    with TestClient(app) as test_client:
        yield test_client


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register(client):
    """Register a customer; returns (user json, auth headers, tokens)"""
    def _register(email: str = "owner@acme.com", company: str = "Acme Imports", **overrides):
        payload = {
            "company_name": company,
            "first_name": "Maria",
            "last_name": "Lopez",
            "email": email,
            "phone": "305-555-0100",
            "password": PASSWORD,
            "city": "Miami",
            "country": "USA",
        }
        payload.update(overrides)
        resp = client.post("/api/auth/register", json=payload)
        assert resp.status_code == 201, resp.text
        body = resp.json()
        return body["user"], auth_headers(body["tokens"]["access_token"]), body["tokens"]
    return _register


@pytest.fixture
def admin_headers(client):
    resp = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200, resp.text
    return auth_headers(resp.json()["tokens"]["access_token"])


SHIPMENT_PAYLOAD = {
    "origin": {
        "address": "4651 NW 72nd Ave",
        "city": "Miami",
        "state": "FL",
        "zip_code": "33166",
        "country": "USA",
    },
    "destination": {
        "address": "12 Harbour St",
        "city": "Kingston",
        "state": "KIN",
        "zip_code": "00001",
        "country": "Jamaica",
        "contact_name": "Andre Brown",
    },
    "package": {
        "weight": 4.5,
        "dimensions": {"length": 10, "width": 8, "height": 6},
        "description": "Clothing",
        "contents": ["shirts", "shoes"],
    },
    "service": "express",
    "rate": 25.5,
}


@pytest.fixture
def create_shipment(client):
    def _create(headers, **overrides):
        payload = {**SHIPMENT_PAYLOAD, **overrides}
        resp = client.post("/api/shipments", json=payload, headers=headers)
        assert resp.status_code == 201, resp.text
        return resp.json()["shipment"]
    return _create


@pytest.fixture
def shipment_payload():
    return copy.deepcopy(SHIPMENT_PAYLOAD)
