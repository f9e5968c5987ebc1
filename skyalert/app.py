"""
SkyAlert Flask Application.

Main entry point for the web application. Initializes:
- Alert engine (feeds, type resolver, notification sinks)
- API routes

Usage:
    python -m skyalert.app

Or with gunicorn (single worker, the engine keeps its state in memory):
    gunicorn -w 1 'skyalert.app:create_app()'
"""

import logging
from typing import Optional

from flask import Flask
from flask_cors import CORS

from skyalert.config import config
from skyalert.api import watch_bp, aircraft_bp
from skyalert.alerts import AlertEngine

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)


def create_app(start_engine: bool = True, engine: Optional[AlertEngine] = None) -> Flask:
    """
    Application factory for Flask.

    Args:
        start_engine: Whether to start polling if the configured watch
                      area is active. Set to False for testing.
        engine: Alert engine to serve (created from config if None)

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = config.secret_key

    # Enable CORS for API endpoints
    CORS(app, resources={r'/api/*': {'origins': '*'}})

    # Register API blueprints
    app.register_blueprint(watch_bp)
    app.register_blueprint(aircraft_bp)

    if engine is None:
        engine = AlertEngine(autostart=start_engine)
    app.config['ALERT_ENGINE'] = engine

    area = engine.watch_area
    if start_engine and area.active:
        engine.start()
        logger.info(
            f'Monitoring ({area.latitude}, {area.longitude}) within {area.radius_km}km '
            f'for {", ".join(sorted(area.models)) or "no models"}'
        )
    elif not area.active:
        logger.info('Watch area inactive. Configure it via /api/watch and POST /api/watch/toggle')

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

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {'error': 'Method not allowed'}, 405

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f'Server error: {e}')
        return {'error': 'Internal server error'}, 500

    return app


def run_development_server():
    """Run the development server."""
    app = create_app()

    logger.info(f'Starting SkyAlert on http://localhost:{config.port}')

    app.run(
        host='0.0.0.0',
        port=config.port,
        debug=config.debug,
        use_reloader=False,  # Disable reloader to prevent duplicate engine threads
    )


if __name__ == '__main__':
    run_development_server()
