"""
Delivery executor: flies one accepted request through pickup, dropoff and home.

Ledger acknowledgements are best-effort. The simulated physical state is
authoritative, so a failed call is logged and the flight continues.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from drone_agent.errors import DroneAgentError
from drone_agent.ledger import Ledger
from drone_agent.models import Coordinate, DeliveryRequest
from drone_agent.navigator import Navigator, SleepFn
from drone_agent.state import AgentController

_log = logging.getLogger(__name__)

DEFAULT_DWELL_SECONDS = 5.0


class DeliveryExecutor:
    def __init__(
        self,
        ledger: Ledger,
        agent: AgentController,
        navigator: Navigator,
        dwell_seconds: float = DEFAULT_DWELL_SECONDS,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.ledger = ledger
        self.agent = agent
        self.navigator = navigator
        self.dwell_seconds = dwell_seconds
        self._sleep = sleep

    async def _acknowledge(self, name: str, call: Callable[[int], Awaitable[None]], request_id: int) -> bool:
        try:
            await call(request_id)
        except DroneAgentError as e:
            _log.warning("%s failed for %s: %s", name, request_id, e)
            return False
        _log.info("%s acknowledged for %s", name, request_id)
        return True

    def _log_status(self, what: str, where: Coordinate) -> None:
        _log.info("Drone %s %s; %s, status: %s", self.agent.agent_id, what, where.degrees(), self.agent.phase)

    async def _dwell(self) -> None:
        if self.dwell_seconds > 0:
            await self._sleep(self.dwell_seconds)

    async def execute(self, req: DeliveryRequest) -> None:
        rid = req.id
        _log.info("Delivery %s accepted; pickup %s, dropoff %s", rid, req.pickup.degrees(), req.dropoff.degrees())
        try:
            self.agent.set_phase("toPickup", ready=False)
            self._log_status("heading to pickup", req.pickup)
            await self._acknowledge("startDelivery", self.ledger.acknowledge_start, rid)
            await self.navigator.move_to(req.pickup)

            await self._acknowledge("packagePicked", self.ledger.acknowledge_picked_up, rid)
            self.agent.set_phase("toDropoff", ready=False)
            self._log_status("picked up package", self.agent.position)
            await self._dwell()
            await self.navigator.move_to(req.dropoff)

            await self._acknowledge("packageDropped", self.ledger.acknowledge_dropped, rid)
            self.agent.set_phase("returning", ready=False)
            self._log_status("dropped off package", self.agent.position)
            await self._dwell()
            await self.navigator.move_to(self.agent.home)

            await self._acknowledge("completeDelivery", self.ledger.acknowledge_completed, rid)
            self.agent.set_phase("ready", ready=True)
            self._log_status("returned home", self.agent.position)
        except asyncio.CancelledError:
            raise
        except Exception:
            _log.exception("Delivery %s aborted", rid)
        finally:
            if self.agent.phase != "ready" or not self.agent.ready:
                self.agent.set_phase("ready", ready=True)
                self._log_status(f"delivery {rid} aborted; idle", self.agent.position)
