"""
API module for FlightBoard.

Provides REST endpoints for:
- Flight boards (departures, arrivals, preview rotation)
- Airport search and airline lookup
- System status
"""

from flightboard.api.board import board_bp
from flightboard.api.metrics import metrics_bp

__all__ = ['board_bp', 'metrics_bp']
