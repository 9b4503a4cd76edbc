"""Tests for pending-bid resolution and hand-off to the executor."""
from __future__ import annotations

import asyncio

from conftest import HOME, KM_LAT_E7, ME, OTHER, make_request, north_of
from drone_agent.errors import TransportFailure
from drone_agent.models import AgentState, RequestStatus
from drone_agent.monitor import ProposalMonitor
from drone_agent.state import AgentController


def _monitor(ledger, pending=()):
    agent = AgentController(ME, AgentState(position=HOME, home=HOME))
    for rid in pending:
        agent.track_bid(rid)
    handled = []

    async def on_accepted(req):
        handled.append(req.id)

    return agent, ProposalMonitor(ledger, agent, on_accepted), handled


def _proposed(rid, status=RequestStatus.PROPOSED, drone=ME):
    return make_request(rid, north_of(HOME, KM_LAT_E7), HOME, status=status, drone=drone)


def test_cancelled_is_dropped(ledger):
    ledger.add(_proposed(1, status=RequestStatus.CANCELLED))
    agent, monitor, handled = _monitor(ledger, [1])
    asyncio.run(monitor.cycle())
    assert agent.pending_bids() == set()
    assert handled == []


def test_still_proposed_is_kept(ledger):
    ledger.add(_proposed(1))
    agent, monitor, handled = _monitor(ledger, [1])
    asyncio.run(monitor.cycle())
    assert agent.pending_bids() == {1}
    assert handled == []


def test_accepted_for_me_runs_exactly_once(ledger):
    ledger.add(_proposed(1, status=RequestStatus.ACCEPTED))
    agent, monitor, handled = _monitor(ledger, [1])
    asyncio.run(monitor.cycle())
    asyncio.run(monitor.cycle())
    assert handled == [1]
    assert agent.pending_bids() == set()


def test_untracked_before_handler_runs(ledger):
    ledger.add(_proposed(1, status=RequestStatus.ACCEPTED))
    agent = AgentController(ME, AgentState(position=HOME, home=HOME))
    agent.track_bid(1)
    seen = []

    async def on_accepted(req):
        seen.append(agent.is_pending(req.id))

    asyncio.run(ProposalMonitor(ledger, agent, on_accepted).cycle())
    assert seen == [False]


def test_accepted_for_someone_else_is_dropped(ledger):
    ledger.add(_proposed(1, status=RequestStatus.ACCEPTED, drone=OTHER))
    agent, monitor, handled = _monitor(ledger, [1])
    asyncio.run(monitor.cycle())
    assert agent.pending_bids() == set()
    assert handled == []


def test_reopened_after_rejection_is_dropped(ledger):
    ledger.add(_proposed(1, status=RequestStatus.OPEN))
    agent, monitor, _ = _monitor(ledger, [1])
    asyncio.run(monitor.cycle())
    assert agent.pending_bids() == set()


def test_fetch_failure_keeps_tracking(ledger):
    ledger.add(_proposed(1, status=RequestStatus.CANCELLED))
    ledger.add(_proposed(2, status=RequestStatus.CANCELLED))
    ledger.fail_get[1] = TransportFailure("timeout")
    agent, monitor, _ = _monitor(ledger, [1, 2])
    asyncio.run(monitor.cycle())
    assert agent.pending_bids() == {1}


def test_handler_error_does_not_stop_other_ids(ledger):
    ledger.add(_proposed(1, status=RequestStatus.ACCEPTED))
    ledger.add(_proposed(2, status=RequestStatus.CANCELLED))
    agent = AgentController(ME, AgentState(position=HOME, home=HOME))
    agent.track_bid(1)
    agent.track_bid(2)

    async def on_accepted(req):
        raise RuntimeError("boom")

    asyncio.run(ProposalMonitor(ledger, agent, on_accepted).cycle())
    assert agent.pending_bids() == set()
