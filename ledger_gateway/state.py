"""
Global mutable ledger state and event log.

All in-memory state lives here so route modules can import it. Route handlers
are sync and run in the threadpool, so every mutation goes through `lock`.
"""
from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import asdict
from typing import Dict, List, Optional

from drone_agent.models import DeliveryRequest
from ledger_gateway.config import EVENTS_PATH
from ledger_gateway.models import LedgerEvent, LivenessState
from ledger_gateway.utils import append_jsonl

_log = logging.getLogger(__name__)

lock = threading.RLock()

requests: Dict[int, DeliveryRequest] = {}
liveness: Dict[str, LivenessState] = {}
events: List[LedgerEvent] = []
_next_id: int = 1


def now() -> int:
    return int(time.time())


def allocate_id() -> int:
    global _next_id
    rid = _next_id
    _next_id += 1
    return rid


def get_request(request_id: int) -> Optional[DeliveryRequest]:
    return requests.get(int(request_id))


def append_event(event_type: str, request_id: int, agent: str = "", data: Optional[dict] = None) -> LedgerEvent:
    ev = LedgerEvent(
        event_id=str(uuid.uuid4()),
        event_type=event_type,
        request_id=int(request_id),
        agent=agent,
        data=data or {},
        created_at=time.time(),
    )
    events.append(ev)
    if EVENTS_PATH is not None:
        append_jsonl(EVENTS_PATH, asdict(ev))
    _log.info("ledger event %s request=%s agent=%s", event_type, request_id, agent or "-")
    return ev


def reset() -> None:
    """Drop all state (used by tests and POST /admin/reset)."""
    global _next_id
    with lock:
        requests.clear()
        liveness.clear()
        events.clear()
        _next_id = 1
