"""
Ledger gateway app: health, admin reset, event log, and the route modules.
"""
from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import FastAPI, Request

from ledger_gateway import state
from ledger_gateway.auth import require_admin
from ledger_gateway.config import GATEWAY_VERSION, validate_config
from ledger_gateway.routes import register_routes

_log = logging.getLogger(__name__)

app = FastAPI(title="Delivery Ledger Gateway (dev)")
register_routes(app)
validate_config()


@app.get("/health")
def health():
    return {"ok": True, "version": GATEWAY_VERSION, "requests": len(state.requests)}


@app.get("/events")
def events_recent(limit: int = 100):
    limit = max(1, min(limit, 1000))
    return {"events": [asdict(e) for e in state.events[-limit:]]}


@app.post("/admin/reset")
def admin_reset(request: Request):
    if not require_admin(request):
        return {"error": "unauthorized"}
    state.reset()
    _log.info("ledger state reset")
    return {"ok": True}
