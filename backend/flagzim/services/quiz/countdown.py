import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Countdown:
    """Cancellable per-question timer.

    Every tick recomputes the remaining time from the clock, so slow or
    irregular ticks never stretch the window. ``on_expire`` fires at most
    once, and never after ``cancel``.
    """

    def __init__(self, duration: float, on_expire: Callable[['Countdown'], None],
                 tick: float = 0.1, clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep, label: str = ''):
        self.duration = duration
        self.on_expire = on_expire
        self.tick = tick
        self.clock = clock
        self.sleep = sleep
        self.label = label
        self.started_at: Optional[float] = None
        self.cancelled = False
        self.fired = False

    def start(self, spawn: Optional[Callable] = None) -> 'Countdown':
        """Begin counting now; run the tick loop through ``spawn`` if given."""
        self.started_at = self.clock()
        logger.debug(f"[countdown-set] {self.label} duration={self.duration}s")
        if spawn is not None:
            spawn(self.run)
        return self

    def remaining(self) -> float:
        if self.started_at is None:
            return self.duration
        return max(0.0, self.duration - (self.clock() - self.started_at))

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def active(self) -> bool:
        return self.started_at is not None and not self.cancelled and not self.fired

    def run(self) -> None:
        if self.started_at is None:
            self.started_at = self.clock()
        while not self.cancelled:
            left = self.remaining()
            if left <= 0:
                self.fired = True
                logger.info(f"[countdown-fire] {self.label}")
                self.on_expire(self)
                return
            self.sleep(min(self.tick, left))
        logger.debug(f"[countdown-cancelled] {self.label}")
