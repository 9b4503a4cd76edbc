"""
The single in-memory agent record shared by every loop.

All loops run on one event loop and only suspend at I/O, so plain attribute
updates are atomic with respect to each other. There is no mutual exclusion
across suspension points: a heartbeat tick may observe the agent halfway
through a delivery, and the scanner keeps bidding from wherever the agent is.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Set

from drone_agent.models import AgentState, Coordinate, Phase

_log = logging.getLogger(__name__)

StateObserver = Callable[[AgentState], None]


class AgentController:
    def __init__(self, agent_id: str, state: AgentState) -> None:
        self.agent_id = agent_id
        self._state = state
        self._observers: List[StateObserver] = []

    # --- Observers (phase/readiness changes) ---

    def subscribe(self, fn: StateObserver) -> None:
        self._observers.append(fn)

    def _notify(self) -> None:
        for fn in list(self._observers):
            try:
                fn(self._state)
            except Exception:
                _log.exception("state observer failed")

    # --- Accessors ---

    @property
    def position(self) -> Coordinate:
        return self._state.position

    @property
    def home(self) -> Coordinate:
        return self._state.home

    @property
    def ready(self) -> bool:
        return self._state.ready

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def max_trip_km(self) -> float:
        return self._state.max_trip_km

    @property
    def price_per_km(self) -> float:
        return self._state.price_per_km

    # --- Mutators ---

    def set_position(self, pos: Coordinate) -> None:
        self._state.position = Coordinate(int(pos[0]), int(pos[1]))

    def set_phase(self, phase: Phase, ready: bool) -> None:
        self._state.phase = phase
        self._state.ready = ready
        self._notify()

    # --- Pending bids ---

    def pending_bids(self) -> Set[int]:
        return set(self._state.pending_bids)

    def is_pending(self, request_id: int) -> bool:
        return request_id in self._state.pending_bids

    def track_bid(self, request_id: int) -> None:
        self._state.pending_bids.add(request_id)

    def untrack_bid(self, request_id: int) -> bool:
        """Returns True if the id was tracked (callers use it as a claim)."""
        if request_id in self._state.pending_bids:
            self._state.pending_bids.discard(request_id)
            return True
        return False
