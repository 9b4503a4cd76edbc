"""
Proposal monitor: watches pending bids and hands accepted ones to the executor.
"""
from __future__ import annotations

import logging
from typing import Awaitable, Callable

from drone_agent.errors import DroneAgentError
from drone_agent.ledger import Ledger
from drone_agent.models import DeliveryRequest, RequestStatus
from drone_agent.state import AgentController

_log = logging.getLogger(__name__)

DeliveryHandler = Callable[[DeliveryRequest], Awaitable[None]]


class ProposalMonitor:
    def __init__(self, ledger: Ledger, agent: AgentController, on_accepted: DeliveryHandler) -> None:
        self.ledger = ledger
        self.agent = agent
        self.on_accepted = on_accepted

    async def _check(self, request_id: int) -> None:
        try:
            req = await self.ledger.get_request(request_id)
        except DroneAgentError as e:
            _log.warning("Failed to fetch request %s: %s", request_id, e)
            return

        if req.status == RequestStatus.ACCEPTED and req.assigned_to(self.agent.agent_id):
            # untrack first: whoever removes the id owns the delivery
            if self.agent.untrack_bid(request_id):
                await self.on_accepted(req)
        elif req.status != RequestStatus.PROPOSED:
            self.agent.untrack_bid(request_id)
            _log.info("Dropping proposal %s: request is %s", request_id, req.status.label)

    async def cycle(self) -> None:
        for request_id in sorted(self.agent.pending_bids()):
            try:
                await self._check(request_id)
            except Exception:
                _log.exception("Proposal status check failed for %s", request_id)
