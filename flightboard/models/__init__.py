"""
Data models for FlightBoard.

Everything here is an in-memory dataclass: snapshots are transformed on
every request and nothing is persisted.
"""

from flightboard.models.airport import Airport, AirlineInfo
from flightboard.models.flight import (
    UNKNOWN,
    Direction,
    EnrichedFlight,
    FlightStage,
    format_ete,
)
from flightboard.models.traffic import FlightPlan, PilotRecord, TrafficSnapshot, parse_timestamp

__all__ = [
    'UNKNOWN',
    'Airport',
    'AirlineInfo',
    'Direction',
    'EnrichedFlight',
    'FlightPlan',
    'FlightStage',
    'PilotRecord',
    'TrafficSnapshot',
    'format_ete',
    'parse_timestamp',
]
