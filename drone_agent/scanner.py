"""
Request scanner: finds open jobs the agent can serve and bids on them.
"""
from __future__ import annotations

import logging
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, List, Optional

from drone_agent.errors import DroneAgentError
from drone_agent.geo import trip_distance
from drone_agent.ledger import Ledger
from drone_agent.models import PRICE_DECIMALS, DeliveryRequest, RequestStatus
from drone_agent.state import AgentController

_log = logging.getLogger(__name__)

_ATOMIC = Decimal(10) ** PRICE_DECIMALS


def bid_price(trip_km: float, price_per_km: float) -> int:
    """Price in atomic units (18 decimals), rounded half-up."""
    value = Decimal(repr(trip_km)) * Decimal(repr(price_per_km)) * _ATOMIC
    return int(value.to_integral_value(rounding=ROUND_HALF_UP))


class RequestScanner:
    def __init__(
        self,
        ledger: Ledger,
        agent: AgentController,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ledger = ledger
        self.agent = agent
        self._clock = clock

    async def _candidate_ids(self) -> List[int]:
        ids: List[int] = []
        try:
            ids.extend(await self.ledger.list_open_requests())
        except DroneAgentError as e:
            _log.warning("Failed to fetch open requests: %s", e)
        try:
            ids.extend(await self.ledger.list_targeted_requests(self.agent.agent_id))
        except DroneAgentError as e:
            _log.warning("Failed to fetch targeted requests: %s", e)
        seen = set()
        unique: List[int] = []
        for rid in ids:
            if rid not in seen:
                seen.add(rid)
                unique.append(rid)
        return unique

    def evaluate(self, req: DeliveryRequest, now: int) -> Optional[int]:
        """Bid price for an open request, or None if the agent should pass."""
        me = self.agent.agent_id
        if req.exclusive_for_other(me, now):
            _log.debug("request %s: targeted at %s until %s", req.id, req.targeted_device, req.expires_at)
            return None
        trip_km = trip_distance(self.agent.position, req.pickup, req.dropoff)
        if trip_km > self.agent.max_trip_km:
            _log.debug("request %s: trip %.2f km over limit %.2f km", req.id, trip_km, self.agent.max_trip_km)
            return None
        price = bid_price(trip_km, self.agent.price_per_km)
        if req.max_price > 0 and price > req.max_price:
            _log.debug("request %s: price %s over max %s", req.id, price, req.max_price)
            return None
        return price

    async def _process(self, request_id: int, now: int) -> None:
        if self.agent.is_pending(request_id):
            return
        try:
            req = await self.ledger.get_request(request_id)
        except DroneAgentError as e:
            _log.warning("Failed to fetch request %s: %s", request_id, e)
            return
        _log.debug("Ledger request %s: status %s", request_id, req.status.label)

        if req.status != RequestStatus.OPEN:
            if req.status == RequestStatus.PROPOSED and req.assigned_to(self.agent.agent_id):
                # our earlier bid that we lost track of (e.g. after a restart)
                self.agent.track_bid(request_id)
                _log.info("Re-tracking existing proposal on %s", request_id)
            return

        price = self.evaluate(req, now)
        if price is None:
            return
        try:
            await self.ledger.submit_bid(request_id, price)
        except DroneAgentError as e:
            _log.warning("Failed to propose delivery %s: %s", request_id, e)
            return
        self.agent.track_bid(request_id)
        _log.info("Proposed delivery %s @ %s wei", request_id, price)

    async def cycle(self) -> None:
        now = int(self._clock())
        for request_id in await self._candidate_ids():
            try:
                await self._process(request_id, now)
            except Exception:
                _log.exception("Error processing request %s", request_id)
