"""HTTP surface: payer flow, merchant endpoints, and error mapping."""

import pytest
from fastapi.testclient import TestClient

from pixlink.services.checkout import main

MERCHANT = {"x-api-key": "test-api-key"}
CUSTOMER = {"name": "Ana", "email": "ana@example.com", "document": "529.982.247-25"}


@pytest.fixture
def client():
    return TestClient(main.app)


@pytest.fixture
def gateway(monkeypatch, scripted_gateway):
    def _install(**kwargs):
        scripted = scripted_gateway(**kwargs)
        monkeypatch.setattr(main.gateway, "transport", scripted.transport)
        return scripted

    return _install


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_open_link_counts_visit(client, add_link, links):
    add_link("ABC123", amount="150.00", description="Taxa")

    resp = client.get("/pagar/ABC123")

    assert resp.status_code == 200
    assert resp.json()["description"] == "Taxa"
    assert float(resp.json()["amount"]) == 150.0
    assert links.link_stats()["total_visits"] == 1


def test_open_unknown_link_is_404(client):
    resp = client.get("/pagar/DEAD99")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "payment link invalid or expired"


def test_checkout_through_vendor_link(client, gateway, add_link, add_credentials):
    add_link("ABC123", amount="150.00", owner_id="vendor-1")
    add_credentials("vendor-1", "pk_vendor", "sk_vendor")
    scripted = gateway()

    resp = client.post("/checkout/pix", json={"link_code": "ABC123", "customer": CUSTOMER})

    assert resp.status_code == 200
    data = resp.json()
    assert data["pay_code"] == "00020126PIXCODE"
    assert data["amount_minor_units"] == 15000
    assert data["credential_source"] == "vendor"
    assert data["state"] == "ACTIVE"
    assert 0 < data["remaining_seconds"] <= 600
    assert scripted.sent_json()["customer"]["document"]["number"] == "52998224725"


def test_gateway_body_is_not_leaked(client, gateway):
    gateway(status_code=422, body={"message": "secret tenant detail"})

    resp = client.post("/checkout/pix", json={"amount": "10.00", "customer": CUSTOMER})

    assert resp.status_code == 502
    assert resp.json()["detail"] == "payment could not be generated, try again"
    assert "secret tenant detail" not in resp.text


def test_vendor_misconfiguration_looks_like_outage(client, gateway, add_link):
    add_link("VEND01", owner_id="vendor-2")
    scripted = gateway()

    resp = client.post("/checkout/pix", json={"link_code": "VEND01", "customer": CUSTOMER})

    assert resp.status_code == 503
    assert resp.json()["detail"] == "service unavailable"
    assert scripted.requests == []


def test_checkout_without_amount_is_422(client, gateway):
    gateway()
    resp = client.post("/checkout/pix", json={"customer": CUSTOMER})
    assert resp.status_code == 422
    assert resp.json()["detail"] == "invalid payment amount"


def test_sub_cent_checkout_is_422(client, gateway):
    scripted = gateway()
    resp = client.post("/checkout/pix", json={"amount": "0.004", "customer": CUSTOMER})
    assert resp.status_code == 422
    assert resp.json()["detail"] == "invalid payment amount"
    assert scripted.requests == []


def test_merchant_endpoints_require_api_key(client):
    assert client.post("/links", json={"amount": "10.00"}).status_code == 401
    assert client.get("/links/stats").status_code == 401
    assert client.put("/settings/checkout-amount", json={"amount": "5.00"}).status_code == 401


def test_create_link_then_pay(client, gateway):
    gateway(body={"transaction": {"id": "t-9", "pix": {"brcode": "BRCODE"}}})

    created = client.post("/links", json={"amount": "49.90", "description": "Frete"}, headers=MERCHANT)
    assert created.status_code == 201
    code = created.json()["code"]
    assert created.json()["url"] == f"https://pay.test/pagar/{code}"

    paid = client.post("/checkout/pix", json={"link_code": code, "customer": CUSTOMER})
    assert paid.status_code == 200
    assert paid.json()["pay_code"] == "BRCODE"
    assert paid.json()["credential_source"] == "platform"


def test_vendor_credentials_and_stats(client, add_link):
    resp = client.put(
        "/vendors/vendor-1/credentials",
        json={"public_key": "pk", "secret_key": "sk"},
        headers=MERCHANT,
    )
    assert resp.json() == {"owner_id": "vendor-1", "configured": True}

    add_link("STAT01", owner_id="vendor-1", access_count=5)
    stats = client.get("/links/stats", params={"owner_id": "vendor-1"}, headers=MERCHANT).json()
    assert stats["total_links"] == 1
    assert stats["total_visits"] == 5


def test_checkout_amount_settings(client):
    assert client.get("/settings/checkout-amount", headers=MERCHANT).status_code == 404
    client.put("/settings/checkout-amount", json={"amount": "64.90"}, headers=MERCHANT)
    assert float(client.get("/settings/checkout-amount", headers=MERCHANT).json()["amount"]) == 64.9


def test_metrics_endpoint(client):
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "gateway_latency_seconds" in resp.text
