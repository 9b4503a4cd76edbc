"""
Shared fixtures for agent and gateway tests.
Engine tests run against an in-memory ledger; gateway tests use FastAPI's TestClient.
"""
from __future__ import annotations

import os
from typing import Dict, List, Optional

import pytest

from drone_agent.config import AgentSettings
from drone_agent.errors import DroneAgentError
from drone_agent.models import ZERO_ADDRESS, Coordinate, DeliveryRequest, RequestStatus

ME = "0x1111111111111111111111111111111111111111"
OTHER = "0x2222222222222222222222222222222222222222"
HOME = Coordinate(423601000, -710589000)
# ~1.11 km of latitude
KM_LAT_E7 = 89932


@pytest.fixture(scope="session", autouse=True)
def _gateway_env():
    """Set gateway env before any ledger_gateway import."""
    os.environ["LEDGER_ADMIN_TOKEN"] = "test-admin-token"
    os.environ["LEDGER_EVENTS_PATH"] = ""
    os.environ["LEDGER_TARGET_WINDOW_SECONDS"] = "300"
    yield


class FakeLedger:
    """In-memory ledger recording every write; failures injected per method."""

    def __init__(self) -> None:
        self.requests: Dict[int, DeliveryRequest] = {}
        self.open_ids: List[int] = []
        self.targeted_ids: List[int] = []
        self.bids: List[tuple] = []
        self.acks: List[tuple] = []
        self.reports: List[tuple] = []
        self.fail: Dict[str, DroneAgentError] = {}
        self.fail_get: Dict[int, DroneAgentError] = {}
        self.get_calls: List[int] = []

    def add(self, req: DeliveryRequest, listed: str = "open") -> DeliveryRequest:
        self.requests[req.id] = req
        if listed == "open":
            self.open_ids.append(req.id)
        elif listed == "targeted":
            self.targeted_ids.append(req.id)
        return req

    def _maybe_fail(self, name: str) -> None:
        exc = self.fail.get(name)
        if exc is not None:
            raise exc

    async def list_open_requests(self) -> List[int]:
        self._maybe_fail("list_open_requests")
        return list(self.open_ids)

    async def list_targeted_requests(self, agent: str) -> List[int]:
        self._maybe_fail("list_targeted_requests")
        return list(self.targeted_ids)

    async def get_request(self, request_id: int) -> DeliveryRequest:
        self.get_calls.append(request_id)
        if request_id in self.fail_get:
            raise self.fail_get[request_id]
        return self.requests[request_id].model_copy()

    async def submit_bid(self, request_id: int, price: int) -> None:
        self._maybe_fail("submit_bid")
        self.bids.append((request_id, price))

    async def acknowledge_start(self, request_id: int) -> None:
        self.acks.append(("start", request_id))
        self._maybe_fail("acknowledge_start")

    async def acknowledge_picked_up(self, request_id: int) -> None:
        self.acks.append(("picked", request_id))
        self._maybe_fail("acknowledge_picked_up")

    async def acknowledge_dropped(self, request_id: int) -> None:
        self.acks.append(("dropped", request_id))
        self._maybe_fail("acknowledge_dropped")

    async def acknowledge_completed(self, request_id: int) -> None:
        self.acks.append(("complete", request_id))
        self._maybe_fail("acknowledge_completed")

    async def report_status(self, lat: int, lon: int, ready: int, timestamp: int) -> None:
        self._maybe_fail("report_status")
        self.reports.append((lat, lon, ready, timestamp))


def make_request(
    request_id: int,
    pickup: Coordinate,
    drop: Coordinate,
    status: RequestStatus = RequestStatus.OPEN,
    drone: str = ZERO_ADDRESS,
    targeted_device: str = ZERO_ADDRESS,
    expires_at: int = 0,
    max_price: int = 0,
) -> DeliveryRequest:
    return DeliveryRequest(
        id=request_id,
        pickup_lat_e7=pickup.lat,
        pickup_lon_e7=pickup.lon,
        drop_lat_e7=drop.lat,
        drop_lon_e7=drop.lon,
        status=status,
        drone=drone,
        targeted_device=targeted_device,
        expires_at=expires_at,
        max_price=max_price,
    )


def north_of(c: Coordinate, e7: int) -> Coordinate:
    return Coordinate(c.lat + e7, c.lon)


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def settings() -> AgentSettings:
    return AgentSettings(
        ledger_api_base="http://ledger.test",
        agent_address=ME,
        home=HOME,
        speed_mph=3600.0,
        max_trip_km=6.0,
        price_per_km=0.1,
        scan_interval_seconds=0.0,
        monitor_interval_seconds=0.0,
        heartbeat_interval_seconds=0.0,
        dwell_seconds=5.0,
    )


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)
    return _sleep


@pytest.fixture
def make_agent(settings, ledger, fake_sleep):
    from drone_agent.runtime import DroneAgent

    def _make(s: Optional[AgentSettings] = None, led=None) -> DroneAgent:
        s = s or settings
        return DroneAgent(s, led if led is not None else ledger, s.home or HOME, sleep=fake_sleep)
    return _make


@pytest.fixture(scope="session")
def client(_gateway_env):
    from fastapi.testclient import TestClient

    from ledger_gateway.main import app
    return TestClient(app)


@pytest.fixture(scope="session")
def admin_headers() -> dict:
    return {"Authorization": "Bearer test-admin-token"}
