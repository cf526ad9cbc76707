"""
Flight board API endpoints.

Provides endpoints for:
- GET /api/board/<icao>/<mode> - Departure (dep), arrival (arr) or preview (pre) board
- GET /api/airports - Search airports by ICAO, IATA or name
- GET /api/airports/<icao> - Get a single airport
- GET /api/airlines/<callsign> - Classify a callsign
"""

import logging
import re
import time

import requests
from flask import Blueprint, current_app, jsonify, request

from flightboard.models import Direction

logger = logging.getLogger(__name__)

board_bp = Blueprint('board', __name__, url_prefix='/api')

BOARD_MODES = ('dep', 'arr', 'pre')
FETCH_ERROR_MESSAGE = 'Failed to fetch flight data. Will retry...'

_ICAO_RE = re.compile(r'^[A-Z]{4}$')


def _service():
    return current_app.config['BOARD_SERVICE']


def _parse_int(name: str, default: int, maximum: int) -> int:
    """Read a positive int query parameter, clamped to `maximum`."""
    try:
        value = int(request.args.get(name, default))
    except (TypeError, ValueError):
        value = default
    return max(1, min(value, maximum))


@board_bp.route('/board/<icao>/<mode>', methods=['GET'])
def get_board(icao: str, mode: str):
    """
    Get the flight board for an airport.

    Path parameters:
    - icao: 4-letter ICAO code (any case)
    - mode: dep, arr or pre

    Query parameters (pre only):
    - per_page: flights per page (default from config)

    Returns 404 for a preview of an airport not in VATSpy, 503 when the
    VATSIM feed cannot be fetched.
    """
    start_time = time.perf_counter()

    icao = icao.strip().upper()
    mode = mode.lower()
    if not _ICAO_RE.match(icao):
        return jsonify({'error': 'ICAO code must be 4 letters'}), 400
    if mode not in BOARD_MODES:
        return jsonify({'error': f'Mode must be one of {", ".join(BOARD_MODES)}'}), 400

    service = _service()

    try:
        if mode == 'pre':
            page_size = _parse_int('per_page', 10, 100) if 'per_page' in request.args else None
            page = service.get_preview(icao, page_size)
            if page is None:
                return jsonify({'error': 'Airport not found'}), 404
            result = page.to_dict()
        else:
            result = service.get_board(icao, Direction(mode)).to_dict()
    except (requests.RequestException, ValueError) as e:
        logger.error(f'Board {icao}/{mode} unavailable: {e}')
        return jsonify({'error': FETCH_ERROR_MESSAGE}), 503

    result['mode'] = mode
    query_time_ms = (time.perf_counter() - start_time) * 1000
    result['query_time_ms'] = round(query_time_ms, 2)

    return jsonify(result)


@board_bp.route('/airports', methods=['GET'])
def search_airports():
    """
    Search airports.

    Query parameters:
    - q: substring of ICAO, IATA or name (case-insensitive)
    - limit: max results (default 10, max 50)
    """
    query = request.args.get('q', '')
    limit = _parse_int('limit', 10, 50)

    try:
        airports = _service().airports.search(query, limit)
    except requests.RequestException as e:
        logger.error(f'Airport data unavailable: {e}')
        return jsonify({'error': 'Airport data unavailable'}), 503

    return jsonify({
        'query': query,
        'airports': [a.to_dict() for a in airports],
        'count': len(airports),
    })


@board_bp.route('/airports/<icao>', methods=['GET'])
def get_airport(icao: str):
    """Get a single airport by ICAO code."""
    try:
        airport = _service().airports.get(icao)
    except requests.RequestException as e:
        logger.error(f'Airport data unavailable: {e}')
        return jsonify({'error': 'Airport data unavailable'}), 503
    if airport is None:
        return jsonify({'error': 'Airport not found'}), 404
    return jsonify(airport.to_dict())


@board_bp.route('/airlines/<callsign>', methods=['GET'])
def get_airline(callsign: str):
    """Classify a callsign into airline, private, IATA-code or unknown."""
    info = _service().airlines.classify(callsign)
    result = info.to_dict()
    result['callsign'] = callsign.upper()
    return jsonify(result)
