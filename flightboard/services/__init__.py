"""
Board services.

Orchestrates feed fetching, board building and the preview rotation.
"""

from flightboard.services.board import Board, FlightBoardService, PreviewPage
from flightboard.services.rotation import PreviewRotationScheduler, RotationState

__all__ = [
    'Board',
    'FlightBoardService',
    'PreviewPage',
    'PreviewRotationScheduler',
    'RotationState',
]
