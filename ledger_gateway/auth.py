"""
Authentication helpers for requester-only endpoints.
"""
from __future__ import annotations

from fastapi import Request

from ledger_gateway.config import ADMIN_TOKEN


def require_admin(request: Request) -> bool:
    if not ADMIN_TOKEN:
        return True
    auth = (request.headers.get("authorization") or "").strip()
    return auth == f"Bearer {ADMIN_TOKEN}"
