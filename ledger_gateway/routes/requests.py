"""Routes: delivery request lifecycle (create/propose/accept/reject/cancel/start/picked/dropped/complete)."""
from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from fastapi import APIRouter, Request

from drone_agent.models import (
    ZERO_ADDRESS, DeliveryRequest, RequestStatus, is_zero_address, same_address,
)
from ledger_gateway import state
from ledger_gateway.auth import require_admin
from ledger_gateway.config import TARGET_WINDOW_SECONDS
from ledger_gateway.models import AgentActionRequest, CreateRequest, ProposalRequest

_log = logging.getLogger(__name__)
router = APIRouter()

# step name -> (required current status, next status)
_DELIVERY_STEPS: Dict[str, Tuple[RequestStatus, RequestStatus]] = {
    "start": (RequestStatus.ACCEPTED, RequestStatus.STARTED),
    "picked": (RequestStatus.STARTED, RequestStatus.PICKED_UP),
    "dropped": (RequestStatus.PICKED_UP, RequestStatus.DROPPED),
    "complete": (RequestStatus.DROPPED, RequestStatus.COMPLETED),
}


def _exclusive(r: DeliveryRequest, now: int) -> bool:
    return not is_zero_address(r.targeted_device) and r.expires_at > now


@router.get("/requests/open")
def requests_open():
    now = state.now()
    with state.lock:
        ids: List[int] = [
            r.id for r in state.requests.values()
            if r.status == RequestStatus.OPEN and not _exclusive(r, now)
        ]
    return {"ids": sorted(ids)}


@router.get("/requests/targeted/{agent}")
def requests_targeted(agent: str):
    now = state.now()
    with state.lock:
        ids = [
            r.id for r in state.requests.values()
            if r.status == RequestStatus.OPEN and _exclusive(r, now) and same_address(r.targeted_device, agent)
        ]
    return {"ids": sorted(ids)}


@router.get("/requests/{request_id}")
def requests_get(request_id: int):
    r = state.get_request(request_id)
    if not r:
        return {"error": "not_found"}
    return {"request": r.to_wire()}


@router.post("/requests")
def requests_create(req: CreateRequest, request: Request):
    if not require_admin(request):
        return {"error": "unauthorized"}
    now = state.now()
    targeted = not is_zero_address(req.targeted_device)
    window = req.target_window_seconds if req.target_window_seconds is not None else TARGET_WINDOW_SECONDS
    with state.lock:
        rid = state.allocate_id()
        r = DeliveryRequest(
            id=rid,
            requester=req.requester,
            pickup_lat_e7=req.pickup_lat_e7,
            pickup_lon_e7=req.pickup_lon_e7,
            drop_lat_e7=req.drop_lat_e7,
            drop_lon_e7=req.drop_lon_e7,
            price=req.price,
            status=RequestStatus.OPEN,
            requested_at=now,
            targeted_device=req.targeted_device if targeted else ZERO_ADDRESS,
            expires_at=now + window if targeted else 0,
            max_price=req.max_price,
        )
        state.requests[rid] = r
        state.append_event("create", rid, req.requester, {"targeted_device": r.targeted_device, "max_price": r.max_price})
    return {"ok": True, "request": r.to_wire()}


@router.post("/requests/{request_id}/proposals")
def requests_propose(request_id: int, req: ProposalRequest):
    now = state.now()
    with state.lock:
        r = state.get_request(request_id)
        if not r:
            return {"error": "not_found"}
        if r.status != RequestStatus.OPEN:
            return {"error": "not_open", "detail": r.status.label}
        if _exclusive(r, now) and not same_address(r.targeted_device, req.agent):
            return {"error": "targeted_elsewhere", "detail": r.targeted_device}
        if r.max_price > 0 and req.price > r.max_price:
            return {"error": "over_max_price", "detail": str(r.max_price)}
        r.drone = req.agent
        r.proposed_price = req.price
        r.proposed_at = now
        r.status = RequestStatus.PROPOSED
        state.append_event("propose", r.id, req.agent, {"price": req.price})
    return {"ok": True, "request": r.to_wire()}


@router.post("/requests/{request_id}/accept")
def requests_accept(request_id: int, req: AgentActionRequest, request: Request):
    if not require_admin(request):
        return {"error": "unauthorized"}
    with state.lock:
        r = state.get_request(request_id)
        if not r:
            return {"error": "not_found"}
        if r.status != RequestStatus.PROPOSED:
            return {"error": "not_proposed", "detail": r.status.label}
        if not same_address(r.drone, req.agent):
            return {"error": "not_proposer", "detail": r.drone}
        r.status = RequestStatus.ACCEPTED
        r.price = r.proposed_price
        r.accepted_at = state.now()
        state.append_event("accept", r.id, r.drone, {"price": r.price})
    return {"ok": True, "request": r.to_wire()}


@router.post("/requests/{request_id}/reject")
def requests_reject(request_id: int, request: Request):
    if not require_admin(request):
        return {"error": "unauthorized"}
    with state.lock:
        r = state.get_request(request_id)
        if not r:
            return {"error": "not_found"}
        if r.status != RequestStatus.PROPOSED:
            return {"error": "not_proposed", "detail": r.status.label}
        rejected = r.drone
        r.drone = ZERO_ADDRESS
        r.proposed_price = 0
        r.proposed_at = 0
        r.status = RequestStatus.OPEN
        state.append_event("reject", r.id, rejected)
    return {"ok": True, "request": r.to_wire()}


@router.post("/requests/{request_id}/cancel")
def requests_cancel(request_id: int, request: Request):
    if not require_admin(request):
        return {"error": "unauthorized"}
    with state.lock:
        r = state.get_request(request_id)
        if not r:
            return {"error": "not_found"}
        if r.status not in (RequestStatus.OPEN, RequestStatus.PROPOSED, RequestStatus.ACCEPTED):
            return {"error": "not_cancellable", "detail": r.status.label}
        r.status = RequestStatus.CANCELLED
        state.append_event("cancel", r.id)
    return {"ok": True, "request": r.to_wire()}


@router.post("/requests/{request_id}/{step}")
def requests_step(request_id: int, step: str, req: AgentActionRequest):
    if step not in _DELIVERY_STEPS:
        return {"error": "unknown_step", "detail": step}
    required, nxt = _DELIVERY_STEPS[step]
    with state.lock:
        r = state.get_request(request_id)
        if not r:
            return {"error": "not_found"}
        if not same_address(r.drone, req.agent):
            return {"error": "not_assigned", "detail": r.drone}
        if r.status != required:
            return {"error": "bad_status", "detail": f"{step} needs {required.label}, request is {r.status.label}"}
        r.status = nxt
        state.append_event(step, r.id, req.agent)
    return {"ok": True, "request": r.to_wire()}
