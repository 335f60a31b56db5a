"""Tick sources for the session countdown.

A ticker calls a single callback once per interval while it is active.
Only one callback can be registered at a time; starting an active ticker
is refused so a session never ends up with two countdowns.
"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Ticker:
    interval: float = 1.0

    def __init__(self) -> None:
        self._callback: Optional[Callable[[], None]] = None

    @property
    def active(self) -> bool:
        return self._callback is not None

    def start(self, callback: Callable[[], None]) -> bool:
        if self.active:
            logger.debug("[timer-skip] ticker already active")
            return False
        self._callback = callback
        self._launch()
        return True

    def stop(self) -> None:
        self._callback = None

    def _launch(self) -> None:
        pass

    def _fire(self) -> None:
        callback = self._callback
        if callback is not None:
            callback()


class ManualTicker(Ticker):
    """Ticker driven explicitly by the caller; used by tests and tools."""

    def advance(self, seconds: int = 1) -> int:
        """Fire up to ``seconds`` ticks, stopping early once deactivated.

        Returns the number of ticks actually delivered.
        """
        fired = 0
        for _ in range(int(seconds)):
            if not self.active:
                break
            self._fire()
            fired += 1
        return fired


class BackgroundTicker(Ticker):
    """Ticker running a sleep loop in a background task.

    ``spawn`` and ``sleep`` are normally ``socketio.start_background_task``
    and ``socketio.sleep`` so the loop cooperates with whichever async mode
    the server runs under. Every start bumps a generation counter; a loop
    whose generation is stale exits without firing, which is what makes
    ``stop()`` cancel a pending tick.

    Ticks are delivered while holding ``lock``. Code that drives the same
    session from other tasks holds it too, so ticks and player actions never
    overlap.
    """

    def __init__(
        self,
        spawn: Callable,
        sleep: Callable[[float], object],
        interval: float = 1.0,
        lock=None,
    ):
        super().__init__()
        self._spawn = spawn
        self._sleep = sleep
        self.interval = interval
        self.lock = lock or threading.RLock()
        self._generation = 0

    def _launch(self) -> None:
        self._generation += 1
        self._spawn(self._run, self._generation)
        logger.debug(f"[timer-set] generation={self._generation} interval={self.interval}s")

    def stop(self) -> None:
        if self.active:
            logger.debug(f"[timer-stop] generation={self._generation}")
        super().stop()
        self._generation += 1

    def _run(self, generation: int) -> None:
        while True:
            self._sleep(self.interval)
            with self.lock:
                if generation != self._generation or not self.active:
                    logger.debug(f"[timer-abort] generation={generation} current={self._generation}")
                    return
                self._fire()
