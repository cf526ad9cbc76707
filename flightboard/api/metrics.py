"""
Status API endpoints.

Provides endpoints for:
- GET /api/metrics/status - Service status and configuration
"""

import logging
import time
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

from flightboard.config import config

logger = logging.getLogger(__name__)

metrics_bp = Blueprint('metrics', __name__, url_prefix='/api/metrics')


@metrics_bp.route('/status', methods=['GET'])
def get_system_status():
    """
    Get system health and status information.

    Returns:
    - Board service statistics (fetches, errors, snapshot age)
    - Reference data sizes
    - Configuration info
    """
    start_time = time.perf_counter()

    service = current_app.config['BOARD_SERVICE']
    stats = service.stats

    # Degraded once the snapshot is more than two refresh intervals old
    age = stats['snapshot_age_seconds']
    fresh = age is not None and age <= 2 * max(service.refresh_interval, 1)

    query_time_ms = (time.perf_counter() - start_time) * 1000

    return jsonify({
        'status': 'healthy' if fresh else 'degraded',
        'service': stats,
        'config': {
            'refresh_interval': service.refresh_interval,
            'preview_cycle_seconds': config.preview.cycle_interval,
            'flights_per_page': config.preview.flights_per_page,
            'local_airports': config.reference.use_local_airports,
        },
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'query_time_ms': round(query_time_ms, 2),
    })
