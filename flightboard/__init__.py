"""
FlightBoard Backend Package.

Airport departure/arrival board for the VATSIM network, built with Flask
and requests.

Modules:
    api/         REST endpoints for boards, airport search and status
    models/      Dataclasses for traffic snapshots, airports and enriched flights
    ingestion/   VATSIM client, reference registries and the enrichment pipeline
    services/    Board orchestration and the preview rotation scheduler
    geo.py       Great-circle distance helpers
    config.py    Centralized configuration from environment variables
"""

__version__ = '1.0.0'
