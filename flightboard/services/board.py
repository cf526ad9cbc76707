"""
Flight board service - ties the feed, registries and pipeline together.

Responsibilities:
- Load the airport and airline registries once, on first use
- Cache the latest traffic snapshot for the refresh interval
- Run at most one enrichment pass per (airport, direction) at a time;
  a new result replaces the previous board
- Own one preview rotation scheduler per airport in preview mode, stopping
  rotations nobody polls and capping how many run at once

Design rationale:
Boards are rebuilt from the cached snapshot on every request, which keeps
the pipeline stateless. Only the snapshot fetch touches the network, and
it happens at most once per refresh interval no matter how many kiosks
poll the API.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, Union

from flightboard.config import config
from flightboard.ingestion.airlines import AirlineRegistry
from flightboard.ingestion.airports import AirportRegistry, load_airport_registry
from flightboard.ingestion.pipeline import FlightEnrichmentPipeline
from flightboard.ingestion.vatsim_client import VatsimClient
from flightboard.models import Airport, Direction, EnrichedFlight, TrafficSnapshot
from flightboard.services.rotation import PreviewRotationScheduler, RotationState

logger = logging.getLogger(__name__)


@dataclass
class Board:
    """Enriched flight list for one airport and direction."""
    icao: str
    direction: Direction
    airport: Optional[Airport]
    flights: List[EnrichedFlight]
    update_timestamp: Optional[str] = None
    update_time_display: Optional[str] = None
    built_at: float = field(default_factory=time.time)

    def to_dict(self, flights: Optional[List[EnrichedFlight]] = None) -> dict:
        """Convert to JSON-serializable dict; `flights` overrides the list shown."""
        shown = self.flights if flights is None else flights
        return {
            'icao': self.icao,
            'airport': self.airport.to_dict() if self.airport else None,
            'direction': self.direction.value,
            'direction_label': self.direction.label,
            'route_header': self.direction.route_header,
            'flights': [f.to_dict() for f in shown],
            'count': len(self.flights),
            'update_timestamp': self.update_timestamp,
            'update_time': self.update_time_display,
        }


@dataclass
class PreviewPage:
    """One page of the preview rotation."""
    board: Board
    state: RotationState
    flights: List[EnrichedFlight]
    next_label: str

    def to_dict(self) -> dict:
        result = self.board.to_dict(flights=self.flights)
        result['preview'] = {
            **self.state.to_dict(),
            'next_label': self.next_label,
        }
        return result


class FlightBoardService:
    """
    Thread-safe flight board provider.

    Registries and the client can be injected for testing; otherwise they
    are created from configuration on first use.
    """

    def __init__(
        self,
        client: Optional[VatsimClient] = None,
        airports: Optional[AirportRegistry] = None,
        airlines: Optional[AirlineRegistry] = None,
        refresh_interval: Optional[float] = None,
        airport_loader: Optional[Callable[[], AirportRegistry]] = None,
        airline_loader: Optional[Callable[[], AirlineRegistry]] = None,
        auto_start_preview: bool = True,
        preview_idle_timeout: Optional[float] = None,
        max_preview_airports: Optional[int] = None,
    ):
        self.client = client or VatsimClient.from_config()
        self.refresh_interval = refresh_interval if refresh_interval is not None else config.vatsim.refresh_interval
        self.auto_start_preview = auto_start_preview
        self.preview_idle_timeout = (
            preview_idle_timeout if preview_idle_timeout is not None else config.preview.idle_timeout
        )
        self.max_preview_airports = max(1, max_preview_airports or config.preview.max_airports)

        self._airports = airports
        self._airlines = airlines
        self._airport_loader = airport_loader or load_airport_registry
        self._airline_loader = airline_loader or AirlineRegistry.from_file
        self._registry_lock = threading.Lock()

        # Latest snapshot and when it was fetched
        self._snapshot: Optional[TrafficSnapshot] = None
        self._snapshot_time: float = 0
        self._fetch_lock = threading.Lock()

        # One lock per (icao, direction) query context
        self._boards: Dict[Tuple[str, Direction], Board] = {}
        self._board_locks: Dict[Tuple[str, Direction], threading.Lock] = {}
        self._boards_lock = threading.Lock()

        self._schedulers: Dict[str, PreviewRotationScheduler] = {}
        # Last get_preview() call per airport
        self._preview_access: Dict[str, float] = {}

        # Statistics
        self._fetch_count = 0
        self._error_count = 0
        self._build_count = 0

    # -------------------------------------------------------------------------
    # Registries
    # -------------------------------------------------------------------------

    @property
    def airports(self) -> AirportRegistry:
        """Airport registry, loaded on first access."""
        if self._airports is None:
            with self._registry_lock:
                if self._airports is None:
                    self._airports = self._airport_loader()
        return self._airports

    @property
    def airlines(self) -> AirlineRegistry:
        """Airline registry, loaded on first access."""
        if self._airlines is None:
            with self._registry_lock:
                if self._airlines is None:
                    self._airlines = self._airline_loader()
        return self._airlines

    # -------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------

    def get_snapshot(self, force: bool = False) -> Optional[TrafficSnapshot]:
        """
        Return the cached snapshot, refetching once it is older than the
        refresh interval.

        Raises:
            requests.RequestException / ValueError if the fetch fails
        """
        with self._fetch_lock:
            age = time.time() - self._snapshot_time
            if not force and self._snapshot_time and age < self.refresh_interval:
                return self._snapshot

            try:
                snapshot = self.client.fetch_snapshot()
            except Exception:
                self._error_count += 1
                raise

            self._snapshot = snapshot
            self._snapshot_time = time.time()
            self._fetch_count += 1
            return snapshot

    # -------------------------------------------------------------------------
    # Boards
    # -------------------------------------------------------------------------

    def _board_lock(self, key: Tuple[str, Direction]) -> threading.Lock:
        with self._boards_lock:
            lock = self._board_locks.get(key)
            if lock is None:
                lock = self._board_locks[key] = threading.Lock()
            return lock

    def get_board(self, icao: str, direction: Union[Direction, str]) -> Board:
        """
        Build the board for one airport and direction from the latest snapshot.

        Raises:
            requests.RequestException / ValueError if the snapshot fetch fails
        """
        icao = icao.strip().upper()
        direction = Direction(direction)
        key = (icao, direction)

        with self._board_lock(key):
            snapshot = self.get_snapshot()
            airport = self.airports.get(icao)

            pipeline = FlightEnrichmentPipeline(self.airports, self.airlines)
            flights = pipeline.run(snapshot, icao, direction, airport)

            board = Board(
                icao=icao,
                direction=direction,
                airport=airport,
                flights=flights,
                update_timestamp=snapshot.update_timestamp if snapshot else None,
                update_time_display=snapshot.update_time_display if snapshot else None,
            )
            self._boards[key] = board
            self._build_count += 1

        logger.debug(f'Board {icao}/{direction.value}: {len(flights)} flights')
        return board

    def get_cached_board(self, icao: str, direction: Union[Direction, str]) -> Optional[Board]:
        """Return the last board built for this context without rebuilding."""
        return self._boards.get((icao.strip().upper(), Direction(direction)))

    # -------------------------------------------------------------------------
    # Preview mode
    # -------------------------------------------------------------------------

    def get_scheduler(self, icao: str) -> PreviewRotationScheduler:
        """
        Return the preview scheduler for an airport, creating it if needed.

        Once max_preview_airports rotations exist, the least recently
        polled one is stopped to make room.
        """
        icao = icao.strip().upper()
        evicted = None
        with self._boards_lock:
            scheduler = self._schedulers.get(icao)
            if scheduler is not None:
                return scheduler

            if len(self._schedulers) >= self.max_preview_airports:
                oldest = min(self._schedulers, key=lambda key: self._preview_access.get(key, 0))
                evicted = self._schedulers.pop(oldest)
                self._preview_access.pop(oldest, None)
                logger.info(f'Preview limit reached, stopping rotation for {oldest}')

            scheduler = PreviewRotationScheduler()
            scheduler.add_direction_callback(
                lambda direction: self._on_direction_change(icao, scheduler, direction)
            )
            self._schedulers[icao] = scheduler
            self._preview_access[icao] = time.time()

        if evicted is not None:
            evicted.stop()
        if self.auto_start_preview:
            scheduler.start()
        return scheduler

    def _preview_idle(self, icao: str) -> bool:
        last_access = self._preview_access.get(icao, 0)
        return time.time() - last_access > self.preview_idle_timeout

    def _on_direction_change(
        self,
        icao: str,
        scheduler: PreviewRotationScheduler,
        direction: Direction,
    ) -> None:
        """Rebuild the board for the new direction before the next render."""
        if self._preview_idle(icao):
            with self._boards_lock:
                if self._schedulers.get(icao) is scheduler:
                    del self._schedulers[icao]
                    self._preview_access.pop(icao, None)
            logger.info(f'Preview for {icao} idle, stopping rotation')
            scheduler.stop()
            return

        board = self.get_board(icao, direction)
        scheduler.recompute(len(board.flights))

    def get_preview(self, icao: str, page_size: Optional[int] = None) -> Optional[PreviewPage]:
        """
        Current page of the preview rotation for an airport.

        Returns None if the airport is not in the registry; no rotation is
        started for it.
        """
        icao = icao.strip().upper()
        if self.airports.get(icao) is None:
            return None

        scheduler = self.get_scheduler(icao)
        self._preview_access[icao] = time.time()

        board = self.get_board(icao, scheduler.direction)
        state = scheduler.recompute(len(board.flights), page_size)

        # A flip may have happened between building the board and recompute
        if state.direction is not board.direction:
            board = self.get_board(icao, state.direction)
            state = scheduler.recompute(len(board.flights), page_size)

        return PreviewPage(
            board=board,
            state=state,
            flights=scheduler.page_slice(board.flights),
            next_label=scheduler.next_label,
        )

    def stop_preview(self, icao: str) -> None:
        """Stop and forget the preview scheduler for an airport."""
        icao = icao.strip().upper()
        with self._boards_lock:
            scheduler = self._schedulers.pop(icao, None)
            self._preview_access.pop(icao, None)
        if scheduler:
            scheduler.stop()

    def stop(self) -> None:
        """Stop all preview schedulers."""
        with self._boards_lock:
            schedulers = list(self._schedulers.values())
            self._schedulers.clear()
            self._preview_access.clear()
        for scheduler in schedulers:
            scheduler.stop()

    @property
    def stats(self) -> dict:
        """Get service statistics."""
        return {
            'fetch_count': self._fetch_count,
            'error_count': self._error_count,
            'build_count': self._build_count,
            'snapshot_age_seconds': round(time.time() - self._snapshot_time, 1) if self._snapshot_time else None,
            'airports_loaded': len(self._airports) if self._airports is not None else 0,
            'airlines_loaded': len(self._airlines) if self._airlines is not None else 0,
            'preview_airports': sorted(self._schedulers),
        }
