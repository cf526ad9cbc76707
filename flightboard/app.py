"""
FlightBoard Flask Application.

Main entry point for the web application. Initializes:
- Board service (VATSIM client, reference registries)
- API routes

Usage:
    python -m flightboard.app

Or with gunicorn:
    gunicorn 'flightboard.app:create_app()'
"""

import logging
import os
from typing import Optional

from flask import Flask
from flask_cors import CORS

from flightboard.api import board_bp, metrics_bp
from flightboard.config import config
from flightboard.services import FlightBoardService

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)


def create_app(service: Optional[FlightBoardService] = None) -> Flask:
    """
    Application factory for Flask.

    Args:
        service: Board service to serve from. Created from configuration
                 if None; pass one in for testing.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = config.secret_key

    # Enable CORS for API endpoints
    CORS(app, resources={r'/api/*': {'origins': '*'}})

    app.config['BOARD_SERVICE'] = service or FlightBoardService()

    # Register API blueprints
    app.register_blueprint(board_bp)
    app.register_blueprint(metrics_bp)

    @app.route('/health')
    def health():
        """Simple health check endpoint."""
        return {'status': 'ok'}

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    @app.errorhandler(404)
    def not_found(e):
        return {'error': 'Not found'}, 404

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f'Server error: {e}')
        return {'error': 'Internal server error'}, 500

    return app


def run_development_server():
    """Run the development server."""
    app = create_app()

    # Get port from environment or default
    port = int(os.environ.get('PORT', 5000))

    logger.info(f'Starting FlightBoard on http://localhost:{port}')
    logger.info(f'Departures: http://localhost:{port}/api/board/KBOS/dep')

    try:
        app.run(
            host='0.0.0.0',
            port=port,
            debug=config.debug,
            use_reloader=False,  # Disable reloader to prevent duplicate preview timer threads
        )
    finally:
        app.config['BOARD_SERVICE'].stop()


if __name__ == '__main__':
    run_development_server()
