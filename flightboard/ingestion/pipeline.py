"""
Enrichment pipeline - turns a traffic snapshot into a flight board.

Pipeline stages:
1. Validate: no snapshot or no pilot list yields an empty board
2. Filter: keep flights relevant to the queried airport and direction
3. Enrich: resolve airports and airline, compute distance, stage, route
   and estimated time enroute
4. Sort: stable, locale-aware sort on the route name

The pipeline holds no state between runs. Registries are injected and
only read.
"""

import logging
import time
import unicodedata
from typing import Any, List, Optional, Union

from flightboard.geo import haversine_distance
from flightboard.ingestion.airlines import AirlineRegistry
from flightboard.ingestion.airports import AirportRegistry
from flightboard.ingestion.stage import detect_flight_stage
from flightboard.models import (
    UNKNOWN,
    Airport,
    Direction,
    EnrichedFlight,
    PilotRecord,
    TrafficSnapshot,
)

logger = logging.getLogger(__name__)

# Flights without a filed departure are shown on the departure board when
# they sit close to the airport at low altitude (parked, taxiing, pattern work)
NEARBY_RADIUS_NM = 10
NEARBY_MAX_ALTITUDE_FT = 3000

ETE_MIN_GROUNDSPEED_KTS = 50


def route_sort_key(name: str) -> tuple:
    """
    Collation key approximating locale-aware ordering.

    Accents and case are ignored first; the raw string breaks remaining ties
    so the order is deterministic.
    """
    stripped = ''.join(
        c for c in unicodedata.normalize('NFD', name)
        if unicodedata.category(c) != 'Mn'
    )
    return (stripped.casefold(), name)


def estimate_time_enroute(distance_nm: float, groundspeed_kts: float) -> Optional[float]:
    """Minutes to cover `distance_nm` at the current groundspeed, or None."""
    if groundspeed_kts > ETE_MIN_GROUNDSPEED_KTS and distance_nm > 0:
        return (distance_nm / groundspeed_kts) * 60
    return None


class FlightEnrichmentPipeline:
    """
    Builds the departure or arrival board for one airport.

    Usage:
        pipeline = FlightEnrichmentPipeline(airports, airlines)
        flights = pipeline.run(snapshot, 'KBOS', Direction.DEPARTURE, airports.get('KBOS'))
    """

    def __init__(self, airports: AirportRegistry, airlines: AirlineRegistry):
        self.airports = airports
        self.airlines = airlines

    def run(
        self,
        snapshot: Union[TrafficSnapshot, dict, None],
        icao: str,
        direction: Union[Direction, str],
        queried_airport: Optional[Airport],
    ) -> List[EnrichedFlight]:
        """
        Execute one enrichment pass.

        Args:
            snapshot: Parsed snapshot, or the raw decoded feed
            icao: Queried airport ICAO code (any case)
            direction: Departure or arrival board
            queried_airport: Airport record for `icao`, None if unknown

        Returns list of enriched flights sorted by route name.
        """
        start_time = time.perf_counter()

        if isinstance(snapshot, dict):
            snapshot = TrafficSnapshot.from_dict(snapshot)
        if snapshot is None or not snapshot.pilots:
            logger.debug('No traffic in snapshot')
            return []

        direction = Direction(direction)
        upper_icao = (icao or '').strip().upper()

        flights = [
            self.enrich(pilot, direction, queried_airport)
            for pilot in snapshot.pilots
            if self._include(pilot, upper_icao, direction, queried_airport)
        ]

        # sort() is stable, equal route names keep feed order
        flights.sort(key=lambda f: route_sort_key(f.route_name))

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(
            f'Built {direction.label.lower()} board for {upper_icao}: '
            f'{len(flights)} of {len(snapshot.pilots)} pilots ({elapsed_ms:.1f}ms)'
        )
        return flights

    def _include(
        self,
        pilot: PilotRecord,
        icao: str,
        direction: Direction,
        queried_airport: Optional[Airport],
    ) -> bool:
        """Decide whether a pilot belongs on the board."""
        if direction is Direction.ARRIVAL:
            return pilot.arrival == icao

        if pilot.departure:
            return pilot.departure == icao

        # No filed departure: include local traffic near the airport
        if queried_airport is None:
            return False
        distance = haversine_distance(
            pilot.latitude, pilot.longitude,
            queried_airport.lat, queried_airport.lon
        )
        return distance < NEARBY_RADIUS_NM and pilot.altitude < NEARBY_MAX_ALTITUDE_FT

    def enrich(
        self,
        pilot: PilotRecord,
        direction: Direction,
        queried_airport: Optional[Airport],
    ) -> EnrichedFlight:
        """Add derived fields to a single pilot record."""
        dep_icao = pilot.departure
        arr_icao = pilot.arrival

        dep_airport = self.airports.get(dep_icao) if dep_icao else None
        arr_airport = self.airports.get(arr_icao) if arr_icao else None

        distance = 0.0
        if queried_airport is not None:
            distance = haversine_distance(
                pilot.latitude, pilot.longitude,
                queried_airport.lat, queried_airport.lon
            )

        stage = detect_flight_stage(pilot, dep_airport, arr_airport)

        # Route is the far end: destination on departures, origin on arrivals
        if direction is Direction.DEPARTURE:
            route_icao, route_airport = arr_icao, arr_airport
        else:
            route_icao, route_airport = dep_icao, dep_airport

        aircraft = pilot.flight_plan.aircraft_short if pilot.flight_plan else None

        return EnrichedFlight(
            cid=pilot.cid,
            callsign=pilot.callsign,
            name=pilot.name,
            latitude=pilot.latitude,
            longitude=pilot.longitude,
            altitude=pilot.altitude,
            groundspeed=pilot.groundspeed,
            heading=pilot.heading,
            logon_time=pilot.logon_time,
            last_updated=pilot.last_updated,
            aircraft=aircraft or UNKNOWN,
            departure_icao=dep_icao or UNKNOWN,
            arrival_icao=arr_icao or UNKNOWN,
            route_icao=route_icao or UNKNOWN,
            route_name=route_airport.name if route_airport else UNKNOWN,
            stage=stage,
            distance_from_airport=distance,
            # Uses distance to the queried airport for both boards
            ete=estimate_time_enroute(distance, pilot.groundspeed),
            airline=self.airlines.classify(pilot.callsign),
            departure_airport=dep_airport,
            arrival_airport=arr_airport,
        )


def build_board(
    snapshot: Any,
    icao: str,
    direction: Union[Direction, str],
    airports: AirportRegistry,
    airlines: AirlineRegistry,
) -> List[EnrichedFlight]:
    """Convenience wrapper: look up the queried airport and run the pipeline."""
    pipeline = FlightEnrichmentPipeline(airports, airlines)
    return pipeline.run(snapshot, icao, direction, airports.get(icao))
