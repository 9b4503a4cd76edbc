"""
Ledger collaborator: the interface the loops depend on, plus an HTTP client
for the ledger gateway.

Every reply is normalized into typed values here so the loops never deal
with raw payload shapes.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional, Protocol

import requests

from drone_agent.errors import MalformedResponse, RejectedCall, TransportFailure
from drone_agent.models import DeliveryRequest

_log = logging.getLogger(__name__)


class Ledger(Protocol):
    async def list_open_requests(self) -> List[int]: ...

    async def list_targeted_requests(self, agent: str) -> List[int]: ...

    async def get_request(self, request_id: int) -> DeliveryRequest: ...

    async def submit_bid(self, request_id: int, price: int) -> None: ...

    async def acknowledge_start(self, request_id: int) -> None: ...

    async def acknowledge_picked_up(self, request_id: int) -> None: ...

    async def acknowledge_dropped(self, request_id: int) -> None: ...

    async def acknowledge_completed(self, request_id: int) -> None: ...

    async def report_status(self, lat: int, lon: int, ready: int, timestamp: int) -> None: ...


def _parse_ids(data: dict) -> List[int]:
    ids = data.get("ids")
    if not isinstance(ids, list):
        raise MalformedResponse("reply has no 'ids' list")
    out: List[int] = []
    for v in ids:
        try:
            out.append(int(v))
        except (TypeError, ValueError) as e:
            raise MalformedResponse(f"bad request id {v!r}") from e
    return out


class HttpLedger:
    """
    Talks JSON over HTTP to a ledger gateway. Calls are blocking `requests`
    calls pushed onto a worker thread so the event loop keeps ticking.

    Each call is a standalone `requests.request`, so worker threads never
    share a connection pool. `http` may be any object with a
    requests-compatible `request()` (FastAPI's TestClient works).
    """

    def __init__(
        self,
        base_url: str,
        agent: str,
        token: str = "",
        timeout: float = 10.0,
        http: Optional[Any] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.agent = agent
        self.timeout = timeout
        self._http = http if http is not None else requests
        self.headers = {"Content-Type": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    # --- transport ---

    def _call(self, method: str, path: str, payload: Optional[dict] = None) -> dict:
        url = f"{self.base_url}{path}"
        try:
            r = self._http.request(method, url, json=payload, headers=self.headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportFailure(f"{method} {path}: {e}") from e
        if r.status_code >= 500:
            raise TransportFailure(f"{method} {path}: HTTP {r.status_code}")
        try:
            data = r.json()
        except ValueError as e:
            raise MalformedResponse(f"{method} {path}: reply is not JSON") from e
        if not isinstance(data, dict):
            raise MalformedResponse(f"{method} {path}: reply is not an object")
        if data.get("error"):
            raise RejectedCall(str(data["error"]), str(data.get("detail") or ""))
        if r.status_code >= 400:
            raise RejectedCall(f"http_{r.status_code}", str(data.get("detail") or ""))
        return data

    async def _acall(self, method: str, path: str, payload: Optional[dict] = None) -> dict:
        return await asyncio.to_thread(self._call, method, path, payload)

    # --- reads ---

    async def list_open_requests(self) -> List[int]:
        return _parse_ids(await self._acall("GET", "/requests/open"))

    async def list_targeted_requests(self, agent: str) -> List[int]:
        return _parse_ids(await self._acall("GET", f"/requests/targeted/{agent}"))

    async def get_request(self, request_id: int) -> DeliveryRequest:
        data = await self._acall("GET", f"/requests/{int(request_id)}")
        raw = data.get("request")
        if raw is None:
            raise MalformedResponse(f"request {request_id}: reply has no 'request'")
        return DeliveryRequest.from_wire(raw)

    # --- writes ---

    async def submit_bid(self, request_id: int, price: int) -> None:
        await self._acall("POST", f"/requests/{int(request_id)}/proposals", {"agent": self.agent, "price": int(price)})

    async def _ack(self, request_id: int, step: str) -> None:
        await self._acall("POST", f"/requests/{int(request_id)}/{step}", {"agent": self.agent})

    async def acknowledge_start(self, request_id: int) -> None:
        await self._ack(request_id, "start")

    async def acknowledge_picked_up(self, request_id: int) -> None:
        await self._ack(request_id, "picked")

    async def acknowledge_dropped(self, request_id: int) -> None:
        await self._ack(request_id, "dropped")

    async def acknowledge_completed(self, request_id: int) -> None:
        await self._ack(request_id, "complete")

    async def report_status(self, lat: int, lon: int, ready: int, timestamp: int) -> None:
        await self._acall(
            "POST",
            f"/agents/{self.agent}/liveness",
            {"lat": int(lat), "lon": int(lon), "ready": int(ready), "timestamp": int(timestamp)},
        )
