"""
Self-rescheduling loops as cancellable asyncio tasks.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

_log = logging.getLogger(__name__)

CycleFn = Callable[[], Awaitable[None]]


@dataclass
class Loop:
    name: str
    interval: float
    cycle: CycleFn
    cycles: int = 0


class Scheduler:
    """
    Runs each registered cycle immediately, then again `interval` seconds
    after the previous cycle finished. A cycle that raises is logged and the
    loop carries on; only `stop()` (or process exit) ends a loop.
    """

    def __init__(self) -> None:
        self._loops: List[Loop] = []
        self._tasks: Dict[str, asyncio.Task] = {}
        self._stopped: Optional[asyncio.Event] = None

    def every(self, name: str, interval: float, cycle: CycleFn) -> Loop:
        if name in {lp.name for lp in self._loops}:
            raise ValueError(f"duplicate loop name: {name}")
        lp = Loop(name=name, interval=max(0.0, float(interval)), cycle=cycle)
        self._loops.append(lp)
        return lp

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks.values())

    async def _run(self, lp: Loop) -> None:
        while True:
            try:
                await lp.cycle()
            except asyncio.CancelledError:
                raise
            except Exception:
                _log.exception("%s cycle failed", lp.name)
            lp.cycles += 1
            await asyncio.sleep(lp.interval)

    def start(self) -> None:
        for lp in self._loops:
            if lp.name in self._tasks and not self._tasks[lp.name].done():
                continue
            self._tasks[lp.name] = asyncio.create_task(self._run(lp), name=lp.name)
            _log.info("loop %s started (every %.1fs)", lp.name, lp.interval)

    async def stop(self) -> None:
        tasks = list(self._tasks.values())
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        if self._stopped is not None:
            self._stopped.set()
        _log.info("all loops stopped")

    async def run_forever(self) -> None:
        stopped = asyncio.Event()
        self._stopped = stopped
        if not self.running:
            self.start()
        await stopped.wait()
