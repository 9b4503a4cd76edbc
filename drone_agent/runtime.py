"""
Wires the agent together and runs it until a shutdown signal arrives.

    LEDGER_API_BASE=http://localhost:8100 AGENT_ADDRESS=0x... python -m drone_agent
"""
from __future__ import annotations

import asyncio
import logging
import signal
import sys
from typing import Optional

import requests

from drone_agent.config import AgentSettings, load_settings, validate_settings
from drone_agent.errors import ConfigurationError
from drone_agent.executor import DeliveryExecutor
from drone_agent.geo import fallback_home
from drone_agent.heartbeat import HeartbeatReporter
from drone_agent.ledger import HttpLedger, Ledger
from drone_agent.models import E7, AgentState, Coordinate
from drone_agent.monitor import ProposalMonitor
from drone_agent.navigator import Navigator
from drone_agent.scanner import RequestScanner
from drone_agent.scheduler import Scheduler
from drone_agent.state import AgentController

_log = logging.getLogger(__name__)

GEOLOCATION_URL = "https://ipinfo.io/json"


def geolocate(timeout: float = 5.0) -> Optional[Coordinate]:
    """Best guess of the host location from its public IP, or None."""
    try:
        r = requests.get(GEOLOCATION_URL, timeout=timeout)
        r.raise_for_status()
        loc = str(r.json().get("loc") or "")
        lat_s, lon_s = loc.split(",")
        lat, lon = float(lat_s), float(lon_s)
    except (requests.RequestException, ValueError) as e:
        _log.warning("Failed to determine home location via IP geolocation: %s", e)
        return None
    _log.info("Determined home location via IP geolocation: lat %.6f, lon %.6f", lat, lon)
    return Coordinate(round(lat * E7), round(lon * E7))


def resolve_home(settings: AgentSettings) -> Coordinate:
    if settings.home is not None:
        return settings.home
    if settings.geolocate_home:
        home = geolocate()
        if home is not None:
            return home
    return fallback_home(settings.agent_address.lower())


class DroneAgent:
    """One agent process: shared state, the four loops, and their scheduler."""

    def __init__(self, settings: AgentSettings, ledger: Ledger, home: Coordinate, sleep=asyncio.sleep) -> None:
        self.settings = settings
        self.ledger = ledger
        self.controller = AgentController(
            settings.agent_address,
            AgentState(
                position=home,
                home=home,
                speed_mph=settings.speed_mph,
                max_trip_km=settings.max_trip_km,
                price_per_km=settings.price_per_km,
            ),
        )
        self.navigator = Navigator(home, settings.speed_mph, self.controller.set_position, sleep=sleep)
        self.executor = DeliveryExecutor(ledger, self.controller, self.navigator, settings.dwell_seconds, sleep=sleep)
        self.scanner = RequestScanner(ledger, self.controller)
        self.monitor = ProposalMonitor(ledger, self.controller, self.executor.execute)
        self.heartbeat = HeartbeatReporter(ledger, self.controller)

        self.scheduler = Scheduler()
        self._stop_task: Optional[asyncio.Task] = None
        self.scheduler.every("scanner", settings.scan_interval_seconds, self.scanner.cycle)
        self.scheduler.every("monitor", settings.monitor_interval_seconds, self.monitor.cycle)
        self.scheduler.every("heartbeat", settings.heartbeat_interval_seconds, self.heartbeat.cycle)

    async def run(self) -> None:
        _log.info("Home location set to %s (degrees); status: idle", self.controller.home.degrees())
        _log.info("Device %s is now operational.", self.settings.agent_address)
        await self.scheduler.run_forever()

    async def stop(self) -> None:
        await self.scheduler.stop()

    def request_stop(self) -> asyncio.Task:
        """Schedule `stop()` from a sync context (signal handlers); the task is kept on the agent."""
        if self._stop_task is None or self._stop_task.done():
            self._stop_task = asyncio.get_running_loop().create_task(self.stop())
        return self._stop_task


async def _serve(agent: DroneAgent) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, agent.request_stop)
        except NotImplementedError:
            # add_signal_handler is unavailable on Windows event loops
            pass
    await agent.run()


def main() -> int:
    try:
        settings = load_settings()
    except ConfigurationError as e:
        logging.basicConfig(level=logging.ERROR)
        _log.error("configuration error: %s", e)
        return 2
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    validate_settings(settings)
    ledger = HttpLedger(
        settings.ledger_api_base,
        settings.agent_address,
        token=settings.agent_token,
        timeout=settings.timeout_seconds,
    )
    agent = DroneAgent(settings, ledger, resolve_home(settings))
    _log.info("starting; LEDGER_API_BASE=%s AGENT_ADDRESS=%s", settings.ledger_api_base, settings.agent_address)
    try:
        asyncio.run(_serve(agent))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
