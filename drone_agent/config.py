"""
Centralized configuration: environment variables and defaults for one agent process.
"""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional

from drone_agent.errors import ConfigurationError
from drone_agent.models import Coordinate

_log = logging.getLogger(__name__)

ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")

DEFAULT_SPEED_MPH = 10.0
DEFAULT_MAX_TRIP_KM = 6.0
DEFAULT_PRICE_PER_KM = 0.1
DEFAULT_SCAN_INTERVAL_SECONDS = 5.0
DEFAULT_MONITOR_INTERVAL_SECONDS = 5.0
DEFAULT_HEARTBEAT_INTERVAL_SECONDS = 60.0
DEFAULT_DWELL_SECONDS = 5.0
DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class AgentSettings:
    ledger_api_base: str
    agent_address: str
    agent_token: str = ""
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    home: Optional[Coordinate] = None
    geolocate_home: bool = False
    speed_mph: float = DEFAULT_SPEED_MPH
    max_trip_km: float = DEFAULT_MAX_TRIP_KM
    price_per_km: float = DEFAULT_PRICE_PER_KM
    scan_interval_seconds: float = DEFAULT_SCAN_INTERVAL_SECONDS
    monitor_interval_seconds: float = DEFAULT_MONITOR_INTERVAL_SECONDS
    heartbeat_interval_seconds: float = DEFAULT_HEARTBEAT_INTERVAL_SECONDS
    dwell_seconds: float = DEFAULT_DWELL_SECONDS
    log_level: str = "INFO"


def _get(env: Mapping[str, str], name: str, default: str = "") -> str:
    return (env.get(name) or default).strip()


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = _get(env, name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


def _home(env: Mapping[str, str]) -> Optional[Coordinate]:
    lat = _get(env, "HOME_LAT_E7") or _get(env, "INIT_LAT_E7")
    lon = _get(env, "HOME_LON_E7") or _get(env, "INIT_LON_E7")
    if not lat or not lon:
        return None
    try:
        return Coordinate(int(lat), int(lon))
    except ValueError:
        raise ConfigurationError(f"home coordinates must be integers (degrees x 1e7), got {lat!r}, {lon!r}") from None


def load_settings(env: Optional[Mapping[str, str]] = None) -> AgentSettings:
    env = os.environ if env is None else env
    base = _get(env, "LEDGER_API_BASE").rstrip("/")
    if not base:
        raise ConfigurationError("LEDGER_API_BASE must be set (ledger gateway URL)")
    address = _get(env, "AGENT_ADDRESS")
    if not ADDRESS_RE.match(address):
        raise ConfigurationError("AGENT_ADDRESS must be set to a 0x-address")
    return AgentSettings(
        ledger_api_base=base,
        agent_address=address,
        agent_token=_get(env, "LEDGER_AGENT_TOKEN"),
        timeout_seconds=_float(env, "LEDGER_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        home=_home(env),
        geolocate_home=_get(env, "HOME_GEOLOCATE", "0").lower() in ("1", "true", "yes", "on"),
        speed_mph=_float(env, "SPEED_MPH", DEFAULT_SPEED_MPH),
        max_trip_km=_float(env, "MAX_TRIP_KM", DEFAULT_MAX_TRIP_KM),
        price_per_km=_float(env, "PRICE_PER_KM", DEFAULT_PRICE_PER_KM),
        scan_interval_seconds=_float(env, "SCAN_INTERVAL_SECONDS", DEFAULT_SCAN_INTERVAL_SECONDS),
        monitor_interval_seconds=_float(env, "MONITOR_INTERVAL_SECONDS", DEFAULT_MONITOR_INTERVAL_SECONDS),
        heartbeat_interval_seconds=_float(env, "HEARTBEAT_INTERVAL_SECONDS", DEFAULT_HEARTBEAT_INTERVAL_SECONDS),
        dwell_seconds=_float(env, "DWELL_SECONDS", DEFAULT_DWELL_SECONDS),
        log_level=_get(env, "LOG_LEVEL", "INFO").upper(),
    )


def validate_settings(s: AgentSettings) -> None:
    """Log warnings for suspicious but non-fatal settings. Called once at startup."""
    if not s.agent_token:
        _log.warning("LEDGER_AGENT_TOKEN is empty; ledger calls are sent unauthenticated.")
    if s.speed_mph <= 0:
        _log.warning("SPEED_MPH=%s is not positive; the navigator will fly at 1 mph.", s.speed_mph)
    if s.max_trip_km <= 0:
        _log.warning("MAX_TRIP_KM=%s; no request will ever qualify for a bid.", s.max_trip_km)
    if s.price_per_km <= 0:
        _log.warning("PRICE_PER_KM=%s; bids will be free.", s.price_per_km)
    if s.home is None and not s.geolocate_home:
        _log.info("HOME_LAT_E7/HOME_LON_E7 not set; using a fallback home derived from the agent address.")
