"""
Register all route modules with the FastAPI app.
"""
from __future__ import annotations

from fastapi import FastAPI


def register_routes(app: FastAPI) -> None:
    from ledger_gateway.routes import agents, requests
    app.include_router(requests.router)
    app.include_router(agents.router)
