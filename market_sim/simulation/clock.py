"""
Game clock and composition root.

``GameClock`` is a plain observer hub: consumers register with
``subscribe(callback)`` and receive the absolute hour after every advance.
``subscribe`` returns the matching unsubscribe callable; owners must call it
on teardown.

``build_market(config)`` wires one clock to one engine and returns them
together as a ``MarketRuntime``::

    with build_market(config) as runtime:
        runtime.clock.advance(5)
        price = runtime.engine.get_price("S001")

There are no module-level singletons; every consumer receives the runtime
(or its parts) explicitly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from market_sim.config import AppConfig
from market_sim.simulation.engine import MarketEngine

logger = logging.getLogger(__name__)

HourCallback = Callable[[int], None]


class GameClock:
    """Monotonic hour counter with explicit observer registration."""

    def __init__(self, start_hour: int = 0) -> None:
        if start_hour < 0:
            raise ValueError(f"start_hour must be >= 0, got {start_hour}.")
        self._hour = start_hour
        self._subscribers: list[HourCallback] = []

    @property
    def current_hour(self) -> int:
        return self._hour

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: HourCallback) -> Callable[[], None]:
        """Register ``callback``; returns an idempotent unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def advance(self, hours: int = 1) -> int:
        """Move forward ``hours`` and notify subscribers once with the new hour.

        Raises:
            ValueError: If ``hours`` is negative.
        """
        if hours < 0:
            raise ValueError(f"hours must be >= 0, got {hours}.")
        return self.advance_to(self._hour + hours)

    def advance_to(self, hour: int) -> int:
        """Jump to absolute ``hour`` and notify subscribers.

        Raises:
            ValueError: If ``hour`` is earlier than the current hour.
        """
        if hour < self._hour:
            raise ValueError(
                f"Clock cannot move backwards: current={self._hour}, requested={hour}."
            )
        self._hour = hour
        for callback in list(self._subscribers):
            callback(hour)
        return hour


@dataclass
class MarketRuntime:
    """One clock and one engine wired together."""

    clock: GameClock
    engine: MarketEngine
    _unsubscribe: Optional[Callable[[], None]] = field(default=None, repr=False)

    def close(self) -> None:
        """Detach the engine from the clock. Safe to call more than once."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
            logger.debug("Engine unsubscribed from clock")

    def __enter__(self) -> "MarketRuntime":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def build_market(config: AppConfig, start_hour: int = 0) -> MarketRuntime:
    """Create an engine for ``config`` and subscribe it to a fresh clock.

    Raises:
        MissingSeedError: If ``config.session.seed`` is not set.
    """
    engine = MarketEngine(config)
    if start_hour:
        engine.advance_to(start_hour)
    clock = GameClock(start_hour)
    unsubscribe = clock.subscribe(engine.on_hour_advanced)
    return MarketRuntime(clock=clock, engine=engine, _unsubscribe=unsubscribe)
