"""
Centralized configuration for the ledger gateway: environment variables and constants.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

_log = logging.getLogger(__name__)

ADMIN_TOKEN = os.getenv("LEDGER_ADMIN_TOKEN", "").strip()
TARGET_WINDOW_SECONDS = int(float(os.getenv("LEDGER_TARGET_WINDOW_SECONDS", "300")))
_events_path = os.getenv("LEDGER_EVENTS_PATH", "").strip()
EVENTS_PATH: Optional[Path] = Path(_events_path).resolve() if _events_path else None

HOST = os.getenv("LEDGER_HOST", "127.0.0.1").strip()
PORT = int(os.getenv("LEDGER_PORT", "8100"))

GATEWAY_VERSION = "0.3.0"


def validate_config() -> None:
    """Log warnings for missing/insecure configuration. Called once at startup."""
    if not ADMIN_TOKEN:
        _log.warning(
            "LEDGER_ADMIN_TOKEN is empty; requester endpoints (create/accept/reject/cancel) are UNPROTECTED."
        )
    if EVENTS_PATH is None:
        _log.info("LEDGER_EVENTS_PATH not set; ledger events are kept in memory only.")
