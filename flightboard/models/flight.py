"""
Enriched flight model - one row on the flight board.

Produced fresh by the enrichment pipeline for every board request and
never persisted. Combines the raw pilot record with resolved airports,
airline classification, detected stage and distance/ETE figures.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from flightboard.geo import format_distance
from flightboard.models.airport import Airport, AirlineInfo

UNKNOWN = 'Unknown'


class Direction(str, Enum):
    """Which board is being shown for the queried airport."""
    DEPARTURE = 'dep'
    ARRIVAL = 'arr'

    @property
    def flipped(self) -> 'Direction':
        return Direction.ARRIVAL if self is Direction.DEPARTURE else Direction.DEPARTURE

    @property
    def label(self) -> str:
        return 'Departures' if self is Direction.DEPARTURE else 'Arrivals'

    @property
    def route_header(self) -> str:
        """Column header for the 'other end' of the route."""
        return 'Destination' if self is Direction.DEPARTURE else 'Origin'


class FlightStage(str, Enum):
    """
    Heuristic flight stage relative to the filed route.

    - GROUND: slow and low
    - DEPARTING: low and close to the departure airport
    - CRUISING: above FL250
    - ARRIVING: low and close to the arrival airport
    """
    GROUND = 'ground'
    DEPARTING = 'departing'
    CRUISING = 'cruising'
    ARRIVING = 'arriving'

    @property
    def label(self) -> str:
        return _STAGE_LABELS[self]


_STAGE_LABELS = {
    FlightStage.GROUND: 'On Ground',
    FlightStage.DEPARTING: 'Departing',
    FlightStage.CRUISING: 'Cruising',
    FlightStage.ARRIVING: 'Arriving',
}


def format_ete(ete_minutes: Optional[float]) -> str:
    """Format estimated time enroute as H:MM, or '--:--' when unknown."""
    if ete_minutes is None:
        return '--:--'
    hours = math.floor(ete_minutes / 60)
    minutes = round(ete_minutes % 60)
    # 59.6 minutes rounds up into the next hour
    if minutes == 60:
        hours, minutes = hours + 1, 0
    return f'{hours}:{minutes:02d}'


@dataclass(frozen=True)
class EnrichedFlight:
    """
    Flight board entry.

    Route fields describe the far end of the flight relative to the board:
    the arrival airport on a departure board, the departure airport on an
    arrival board.

    Units: altitude in feet, groundspeed in knots, distances in nautical
    miles, ETE in minutes.
    """
    # Pilot record
    cid: Optional[int]
    callsign: str
    name: Optional[str]
    latitude: float
    longitude: float
    altitude: float
    groundspeed: float
    heading: float
    logon_time: Optional[str]
    last_updated: Optional[str]

    # Flight plan
    aircraft: str
    departure_icao: str
    arrival_icao: str

    # Derived
    route_icao: str
    route_name: str
    stage: FlightStage
    distance_from_airport: float
    ete: Optional[float]
    airline: AirlineInfo
    departure_airport: Optional[Airport] = None
    arrival_airport: Optional[Airport] = None

    @property
    def ete_display(self) -> str:
        return format_ete(self.ete)

    @property
    def distance_display(self) -> str:
        return format_distance(self.distance_from_airport)

    @property
    def stage_label(self) -> str:
        return self.stage.label

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict for API responses."""
        return {
            'cid': self.cid,
            'callsign': self.callsign,
            'name': self.name,
            'airline': self.airline.to_dict(),
            'aircraft': self.aircraft,
            'position': {
                'latitude': self.latitude,
                'longitude': self.longitude,
                'altitude_ft': self.altitude,
                'groundspeed_kts': self.groundspeed,
                'heading': self.heading,
            },
            'departure_icao': self.departure_icao,
            'arrival_icao': self.arrival_icao,
            'departure_airport': self.departure_airport.to_dict() if self.departure_airport else None,
            'arrival_airport': self.arrival_airport.to_dict() if self.arrival_airport else None,
            'route': {
                'icao': self.route_icao,
                'name': self.route_name,
            },
            'stage': self.stage.value,
            'stage_label': self.stage_label,
            'distance_nm': round(self.distance_from_airport, 1),
            'distance_display': self.distance_display,
            'ete_minutes': round(self.ete, 1) if self.ete is not None else None,
            'ete_display': self.ete_display,
            'timestamps': {
                'logon_time': self.logon_time,
                'last_updated': self.last_updated,
            },
        }
