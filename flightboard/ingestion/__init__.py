"""
Data ingestion module for FlightBoard.

Handles fetching the VATSIM feed, loading the airport and airline
reference tables, and enriching traffic into flight boards.
"""

from flightboard.ingestion.airlines import AirlineRegistry
from flightboard.ingestion.airports import AirportRegistry, load_airport_registry
from flightboard.ingestion.pipeline import FlightEnrichmentPipeline, build_board
from flightboard.ingestion.stage import detect_flight_stage
from flightboard.ingestion.vatsim_client import VatsimClient

__all__ = [
    'AirlineRegistry',
    'AirportRegistry',
    'FlightEnrichmentPipeline',
    'VatsimClient',
    'build_board',
    'detect_flight_stage',
    'load_airport_registry',
]
