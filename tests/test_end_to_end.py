"""Agent loops driven over HTTP against the development ledger gateway."""
from __future__ import annotations

import asyncio

import pytest

from conftest import HOME, KM_LAT_E7, ME
from drone_agent.ledger import HttpLedger
from drone_agent.runtime import DroneAgent


@pytest.fixture(autouse=True)
def _fresh_ledger(client):
    from ledger_gateway import state
    state.reset()
    yield


def test_agent_bids_delivers_and_reports(client, admin_headers, settings, fake_sleep):
    r = client.post("/requests", json={
        "requester": "0x9999999999999999999999999999999999999999",
        "pickup_lat_e7": HOME.lat + KM_LAT_E7, "pickup_lon_e7": HOME.lon,
        "drop_lat_e7": HOME.lat, "drop_lon_e7": HOME.lon + 100000,
        "max_price": 10 ** 18,
    }, headers=admin_headers)
    rid = r.json()["request"]["id"]

    ledger = HttpLedger("http://testserver", ME, http=client)
    agent = DroneAgent(settings, ledger, HOME, sleep=fake_sleep)

    asyncio.run(agent.scanner.cycle())
    assert agent.controller.is_pending(rid)
    req = client.get(f"/requests/{rid}").json()["request"]
    assert req["status"] == 1
    assert req["drone"] == ME
    assert 0 < req["proposed_price"] <= 10 ** 18

    # nothing changes while the requester has not decided
    asyncio.run(agent.monitor.cycle())
    assert agent.controller.is_pending(rid)

    r = client.post(f"/requests/{rid}/accept", json={"agent": ME}, headers=admin_headers)
    assert r.json().get("ok") is True

    asyncio.run(agent.monitor.cycle())
    assert not agent.controller.is_pending(rid)
    assert client.get(f"/requests/{rid}").json()["request"]["status"] == 6
    assert agent.controller.phase == "ready"

    asyncio.run(agent.heartbeat.cycle())
    asyncio.run(agent.heartbeat.cycle())
    live = client.get(f"/agents/{ME}/liveness").json()["liveness"]
    assert (live["lat"], live["lon"], live["ready"], live["reports"]) == (HOME.lat, HOME.lon, True, 2)


def test_cancelled_bid_is_forgotten(client, admin_headers, settings, fake_sleep):
    r = client.post("/requests", json={
        "pickup_lat_e7": HOME.lat + KM_LAT_E7, "pickup_lon_e7": HOME.lon,
        "drop_lat_e7": HOME.lat, "drop_lon_e7": HOME.lon,
    }, headers=admin_headers)
    rid = r.json()["request"]["id"]
    agent = DroneAgent(settings, HttpLedger("http://testserver", ME, http=client), HOME, sleep=fake_sleep)

    asyncio.run(agent.scanner.cycle())
    assert agent.controller.is_pending(rid)
    client.post(f"/requests/{rid}/cancel", headers=admin_headers)
    asyncio.run(agent.monitor.cycle())
    assert agent.controller.pending_bids() == set()
