"""Routes: agent liveness reports (sentinel-encoded) and their decoded view."""
from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter

from ledger_gateway import state
from ledger_gateway.models import LivenessRequest, LivenessState
from ledger_gateway.utils import decode_position, decode_ready

_log = logging.getLogger(__name__)
router = APIRouter()


@router.post("/agents/{agent}/liveness")
def agents_report_liveness(agent: str, req: LivenessRequest):
    if req.ready not in (-1, 0, 1):
        return {"error": "bad_ready", "detail": str(req.ready)}
    key = agent.lower()
    with state.lock:
        cur = state.liveness.get(key) or LivenessState(agent=agent)
        cur.lat = decode_position(req.lat, cur.lat)
        cur.lon = decode_position(req.lon, cur.lon)
        cur.ready = decode_ready(req.ready, cur.ready)
        cur.timestamp = req.timestamp
        cur.reports += 1
        state.liveness[key] = cur
    return {"ok": True, "liveness": asdict(cur)}


@router.get("/agents/{agent}/liveness")
def agents_get_liveness(agent: str):
    cur = state.liveness.get(agent.lower())
    if not cur:
        return {"error": "not_found"}
    return {"liveness": asdict(cur)}
