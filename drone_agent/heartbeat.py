"""
Heartbeat reporter: sends position and readiness, but only what changed.

Unchanged fields go out as sentinels (INT256_MIN for lat/lon, -1 for ready),
which the ledger reads as "keep the previous value". The cache only advances
after a successful send, so a failed tick is retried with real values.
"""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable

from drone_agent.errors import DroneAgentError
from drone_agent.ledger import Ledger
from drone_agent.models import E7, INT256_MIN, READY_UNCHANGED, HeartbeatCache, HeartbeatReport
from drone_agent.state import AgentController

_log = logging.getLogger(__name__)


def encode_report(cache: HeartbeatCache, lat: int, lon: int, ready: bool, timestamp: int) -> HeartbeatReport:
    first = cache.empty
    lat_arg = lat if first or lat != cache.last_lat else INT256_MIN
    lon_arg = lon if first or lon != cache.last_lon else INT256_MIN
    if first or ready != cache.last_ready:
        ready_arg = 1 if ready else 0
    else:
        ready_arg = READY_UNCHANGED
    return HeartbeatReport(lat=lat_arg, lon=lon_arg, ready=ready_arg, timestamp=timestamp)


class HeartbeatReporter:
    def __init__(self, ledger: Ledger, agent: AgentController, clock: Callable[[], float] = time.time) -> None:
        self.ledger = ledger
        self.agent = agent
        self.cache = HeartbeatCache()
        self._clock = clock

    async def cycle(self) -> None:
        pos = self.agent.position
        ready = self.agent.ready
        phase = self.agent.phase
        ts = int(self._clock())
        report = encode_report(self.cache, pos.lat, pos.lon, ready, ts)
        try:
            await self.ledger.report_status(report.lat, report.lon, report.ready, report.timestamp)
        except DroneAgentError as e:
            _log.warning("Heartbeat failed: %s", e)
            return

        _log.info(
            "%s [Heartbeat] lat: %.7f, lon: %.7f, ready: %s, status: %s, ts: %d",
            datetime.fromtimestamp(ts, tz=timezone.utc).isoformat(),
            pos.lat / E7, pos.lon / E7, "yes" if ready else "no", phase, ts,
        )
        self.cache.last_lat = pos.lat
        self.cache.last_lon = pos.lon
        self.cache.last_ready = ready
