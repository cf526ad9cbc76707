"""
Preview rotation scheduler for unattended (kiosk) display.

In preview mode the board pages through the current direction's flights
and, after the last page, switches between departures and arrivals.

Two independent timers drive one RotationState:
- advance timer (every cycle_interval seconds): next page, or flip
  direction and go back to page 0
- countdown timer (every countdown_tick seconds): display countdown to the
  next step; it never triggers advance() itself

Each timer runs in its own daemon thread. All state changes happen under a
single lock so every tick is applied atomically.
"""

import logging
import math
import threading
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence, TypeVar

from flightboard.config import config
from flightboard.models import Direction

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass(frozen=True)
class RotationState:
    """Point-in-time copy of the rotation state."""
    current_page: int
    total_pages: int
    page_size: int
    direction: Direction
    seconds_until_next_step: int

    def to_dict(self) -> dict:
        return {
            'current_page': self.current_page,
            'total_pages': self.total_pages,
            'page_size': self.page_size,
            'direction': self.direction.value,
            'seconds_until_next_step': self.seconds_until_next_step,
        }


class PreviewRotationScheduler:
    """
    Pages through flights and alternates direction on a timer.

    advance(), tick() and recompute() can be called directly (tests, manual
    stepping); start() runs them on background timers.
    """

    def __init__(
        self,
        cycle_interval: Optional[float] = None,
        countdown_tick: Optional[float] = None,
        page_size: Optional[int] = None,
    ):
        self.cycle_interval = cycle_interval or config.preview.cycle_interval
        self.countdown_tick = countdown_tick or config.preview.countdown_tick
        # Countdown restarts at the number of ticks per cycle
        self.countdown_start = max(1, int(round(self.cycle_interval / self.countdown_tick)))

        self._state = RotationState(
            current_page=0,
            total_pages=1,
            page_size=max(1, page_size or config.preview.flights_per_page),
            direction=Direction.DEPARTURE,
            seconds_until_next_step=self.countdown_start,
        )
        self._lock = threading.RLock()

        self._stop_event: Optional[threading.Event] = None
        self._threads: List[threading.Thread] = []

        self._on_direction_change: List[Callable[[Direction], None]] = []

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> RotationState:
        with self._lock:
            return self._state

    @property
    def direction(self) -> Direction:
        return self.state.direction

    def add_direction_callback(self, callback: Callable[[Direction], None]) -> None:
        """
        Register callback invoked after each direction flip.

        Callback receives the new direction; it is expected to rebuild the
        board for that direction and call recompute().
        """
        self._on_direction_change.append(callback)

    def recompute(self, flight_count: int, page_size: Optional[int] = None) -> RotationState:
        """Recalculate pagination after the flight list changed size."""
        with self._lock:
            page_size = max(1, page_size or self._state.page_size)
            total_pages = max(1, math.ceil(max(0, flight_count) / page_size))
            current_page = self._state.current_page
            if current_page >= total_pages:
                current_page = 0

            self._state = replace(
                self._state,
                current_page=current_page,
                total_pages=total_pages,
                page_size=page_size,
            )
            return self._state

    def advance(self) -> RotationState:
        """Step to the next page, or flip direction after the last page."""
        with self._lock:
            state = self._state
            flipped = False

            if state.current_page < state.total_pages - 1:
                state = replace(state, current_page=state.current_page + 1)
            else:
                state = replace(state, direction=state.direction.flipped, current_page=0)
                flipped = True

            self._state = replace(state, seconds_until_next_step=self.countdown_start)
            new_state = self._state

        logger.debug(
            f'Preview advanced to {new_state.direction.label} page '
            f'{new_state.current_page + 1}/{new_state.total_pages}'
        )

        if flipped:
            for callback in self._on_direction_change:
                try:
                    callback(new_state.direction)
                except Exception as e:
                    logger.error(f'Direction change callback error: {e}')

        return new_state

    def tick(self) -> RotationState:
        """Decrement the display countdown, restarting it at zero."""
        with self._lock:
            remaining = self._state.seconds_until_next_step - 1
            if remaining <= 0:
                remaining = self.countdown_start
            self._state = replace(self._state, seconds_until_next_step=remaining)
            return self._state

    def page_slice(self, items: Sequence[T]) -> List[T]:
        """Return the items shown on the current page."""
        state = self.state
        start = state.current_page * state.page_size
        return list(items[start:start + state.page_size])

    @property
    def next_label(self) -> str:
        """What the next step will show: 'Page N' or the other direction."""
        state = self.state
        if state.current_page < state.total_pages - 1:
            return f'Page {state.current_page + 2}'
        return state.direction.flipped.label

    # -------------------------------------------------------------------------
    # Timers
    # -------------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return any(t.is_alive() for t in self._threads)

    def _run_timer(self, interval: float, action: Callable[[], object], stop_event: threading.Event) -> None:
        # wait() returns True once stop is requested
        while not stop_event.wait(interval):
            try:
                action()
            except Exception as e:
                logger.error(f'Preview timer error: {e}')

    def start(self) -> None:
        """Start the advance and countdown timers in background threads."""
        if self.running:
            logger.warning('Preview rotation already running')
            return

        stop_event = threading.Event()
        self._stop_event = stop_event
        self._threads = [
            threading.Thread(
                target=self._run_timer,
                args=(self.cycle_interval, self.advance, stop_event),
                name='preview-advance',
                daemon=True,
            ),
            threading.Thread(
                target=self._run_timer,
                args=(self.countdown_tick, self.tick, stop_event),
                name='preview-countdown',
                daemon=True,
            ),
        ]
        for thread in self._threads:
            thread.start()

        logger.info(
            f'Preview rotation started (cycle={self.cycle_interval}s, '
            f'countdown tick={self.countdown_tick}s)'
        )

    def stop(self) -> None:
        """Stop both timers. Safe to call when already stopped."""
        if self._stop_event is None:
            return

        self._stop_event.set()
        current = threading.current_thread()
        for thread in self._threads:
            if thread is not current:
                thread.join(timeout=5)

        self._stop_event = None
        self._threads = []
        logger.info('Preview rotation stopped')
