"""
Straight-line movement simulation between two coordinates.
"""
from __future__ import annotations

import asyncio
import logging
import math
from typing import Awaitable, Callable

from drone_agent.geo import distance, km_to_miles
from drone_agent.models import Coordinate

_log = logging.getLogger(__name__)

DEFAULT_STEP_MILES = 0.01

PositionCallback = Callable[[Coordinate], None]
SleepFn = Callable[[float], Awaitable[None]]


class Navigator:
    """
    Advances along the straight line from the current position to a target
    in small increments, invoking the callback after every increment and
    sleeping long enough to match the configured speed.

    Position is tracked as float E7 internally so fractional steps do not
    accumulate rounding error; callers only ever see integer coordinates.
    """

    def __init__(
        self,
        start: Coordinate,
        speed_mph: float,
        on_update: PositionCallback,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._lat = float(start[0])
        self._lon = float(start[1])
        self.speed_mph = speed_mph if speed_mph > 0 else 1.0
        self._on_update = on_update
        self._sleep = sleep

    @property
    def position(self) -> Coordinate:
        return Coordinate(round(self._lat), round(self._lon))

    async def move_to(self, target: Coordinate, step_miles: float = DEFAULT_STEP_MILES) -> None:
        target = Coordinate(int(target[0]), int(target[1]))
        total_miles = km_to_miles(distance(self.position, target))
        if total_miles == 0:
            self._lat, self._lon = float(target.lat), float(target.lon)
            self._on_update(target)
            return

        steps = max(1, math.ceil(total_miles / step_miles))
        step_lat = (target.lat - self._lat) / steps
        step_lon = (target.lon - self._lon) / steps
        step_seconds = ((total_miles / steps) / self.speed_mph) * 3600.0
        _log.debug("moving %.3f mi in %d steps (%.2fs/step)", total_miles, steps, step_seconds)

        for i in range(1, steps + 1):
            if i == steps:
                self._lat, self._lon = float(target.lat), float(target.lon)
            else:
                self._lat += step_lat
                self._lon += step_lon
            self._on_update(self.position)
            await self._sleep(max(0.0, step_seconds))
