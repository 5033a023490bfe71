"""
Display ticker.

Requests a redraw at a fixed interval with a fresh engine snapshot. The
ticker only reads; it never issues commands.
"""

import logging
import threading
from collections.abc import Callable

from fasting_water_tracker.services.engine import DisplaySnapshot, TrackerEngine

logger = logging.getLogger(__name__)

RedrawCallback = Callable[[DisplaySnapshot], None]


class DisplayTicker:
    """Daemon thread that hands engine snapshots to a redraw callback."""

    def __init__(
        self,
        engine: TrackerEngine,
        on_tick: RedrawCallback,
        interval_seconds: float = 1.0,
    ) -> None:
        self.engine = engine
        self.on_tick = on_tick
        self.interval_seconds = interval_seconds
        self.tick_count = 0
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self) -> DisplaySnapshot:
        """Take one snapshot and pass it to the callback."""
        snapshot = self.engine.snapshot()
        self.tick_count += 1
        try:
            self.on_tick(snapshot)
        except Exception:
            logger.exception("Redraw callback failed")
        return snapshot

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            try:
                self.tick()
            except Exception:
                logger.exception("Display tick failed")

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, daemon=True, name="Display-Ticker")
        self._thread.start()
        logger.debug(f"Display ticker started ({self.interval_seconds}s interval)")

    def stop(self, timeout: float | None = None) -> None:
        """Stop scheduling ticks and wait for the thread to exit."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.debug(f"Display ticker stopped after {self.tick_count} ticks")
