from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from predictpool.main import _engine, app

from .conftest import ORACLE, OWNER


@pytest.fixture
def client(engine):
    """Test client wired to the fixture engine; overrides are cleared afterwards."""
    app.dependency_overrides[_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def _as(account: str) -> dict[str, str]:
    return {"X-Caller-Account": account}


def test_healthcheck(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_full_round_over_http(client, clock, ledger):
    created = client.post(
        "/markets",
        json={"start_price": 100, "start_block": 10, "end_block": 20},
        headers=_as(OWNER),
    )
    assert created.status_code == 201
    market_id = created.json()["market_id"]
    assert market_id == 0

    clock.advance_to(12)
    for account, direction in (("alice", "up"), ("bob", "down")):
        response = client.post(
            f"/markets/{market_id}/predictions",
            json={"direction": direction, "stake": 1_000_000},
            headers=_as(account),
        )
        assert response.status_code == 201

    market = client.get(f"/markets/{market_id}").json()
    assert market["phase"] == "open"
    assert market["total_pool"] == 2_000_000

    clock.advance_to(20)
    resolved = client.post(
        f"/markets/{market_id}/resolve", json={"end_price": 150}, headers=_as(ORACLE)
    )
    assert resolved.status_code == 200

    quote = client.get(f"/markets/{market_id}/quote/alice").json()
    assert quote["net_payout"] == 1_960_000

    claim = client.post(f"/markets/{market_id}/claim", headers=_as("alice"))
    assert claim.status_code == 200
    assert claim.json() == {"market_id": market_id, "net_payout": 1_960_000}

    losing = client.post(f"/markets/{market_id}/claim", headers=_as("bob"))
    assert losing.status_code == 422
    assert losing.json()["error"] == "InvalidPrediction"

    again = client.post(f"/markets/{market_id}/claim", headers=_as("alice"))
    assert again.status_code == 409
    assert again.json()["error"] == "AlreadyClaimed"

    balance = client.get("/escrow/balance").json()
    assert balance == {"account": "escrow", "balance": 0}


def test_missing_caller_header_is_unauthenticated(client):
    response = client.post(
        "/markets", json={"start_price": 100, "start_block": 10, "end_block": 20}
    )
    assert response.status_code == 401


def test_wrong_role_is_forbidden(client):
    response = client.post(
        "/markets",
        json={"start_price": 100, "start_block": 10, "end_block": 20},
        headers=_as("alice"),
    )
    assert response.status_code == 403
    assert response.json()["error"] == "Unauthorized"


def test_unknown_market_is_404(client):
    response = client.get("/markets/99")
    assert response.status_code == 404
    assert response.json()["error"] == "NotFound"


def test_prediction_outside_window_is_conflict(client):
    client.post(
        "/markets",
        json={"start_price": 100, "start_block": 10, "end_block": 20},
        headers=_as(OWNER),
    )
    response = client.post(
        "/markets/0/predictions",
        json={"direction": "up", "stake": 1_000},
        headers=_as("alice"),
    )
    assert response.status_code == 409
    assert response.json()["error"] == "MarketClosed"


def test_admin_endpoints(client, engine):
    assert client.put("/config/fee-percent", json={"fee_percent": 7}, headers=_as(OWNER)).status_code == 204
    assert client.put("/config/minimum-stake", json={"amount": 50}, headers=_as(OWNER)).status_code == 204
    assert client.put("/config/oracle", json={"account": "feed"}, headers=_as(OWNER)).status_code == 204

    config = client.get("/config").json()
    assert config["fee_percent"] == 7
    assert config["minimum_stake"] == 50
    assert config["oracle_identity"] == "feed"

    rejected = client.put("/config/fee-percent", json={"fee_percent": 101}, headers=_as(OWNER))
    assert rejected.status_code == 422
    assert rejected.json()["error"] == "InvalidParameter"

    withdraw = client.post("/fees/withdraw", json={"amount": 1}, headers=_as(OWNER))
    assert withdraw.status_code == 402
    assert withdraw.json()["error"] == "InsufficientBalance"


def test_list_markets_endpoint(client):
    for _ in range(2):
        client.post(
            "/markets",
            json={"start_price": 100, "start_block": 10, "end_block": 20},
            headers=_as(OWNER),
        )
    response = client.get("/markets", params={"limit": 1})
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert [item["market_id"] for item in body["items"]] == [0]
