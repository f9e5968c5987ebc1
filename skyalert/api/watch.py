"""
Watch area setup endpoints.

Provides endpoints for:
- GET /api/watch - Current watch area and engine status
- PUT /api/watch/location - Set center and radius
- PUT /api/watch/models - Set the watched aircraft models
- POST /api/watch/toggle - Switch monitoring on or off
- POST /api/watch/refresh - Poll now
- POST /api/watch/location/auto - Center the area on the IP location
"""

import logging
import time
from datetime import datetime, timezone

import geocoder
from flask import Blueprint, jsonify, request, current_app

from skyalert.config import config
from skyalert.ingestion.aircraft_db import AIRCRAFT_MODELS

logger = logging.getLogger(__name__)

watch_bp = Blueprint('watch', __name__, url_prefix='/api/watch')


def _engine():
    return current_app.config['ALERT_ENGINE']


def _watch_response(engine, **extra):
    body = {
        'watch': engine.watch_area.to_dict(),
        'status': {
            'running': engine.is_running,
            'last_error': engine.last_error,
            'last_poll_time': engine.stats['last_poll_time'],
            'aircraft_in_area': len(engine.cache),
        },
    }
    body.update(extra)
    return jsonify(body)


@watch_bp.route('', methods=['GET'])
def get_watch():
    """Get the current watch area with a short status summary."""
    return _watch_response(_engine())


@watch_bp.route('/location', methods=['PUT'])
def set_location():
    """
    Set the watch area center and radius.

    Body: {"latitude": float, "longitude": float, "radius_km": float}

    Moving the area switches monitoring off, like a fresh setup.
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'JSON body required'}), 400

    try:
        lat = float(data['latitude'])
        lon = float(data['longitude'])
        radius = float(data.get('radius_km', config.watch.radius_km))
    except KeyError:
        return jsonify({'error': 'latitude and longitude required'}), 400
    except (ValueError, TypeError):
        return jsonify({'error': 'Invalid latitude, longitude or radius'}), 400

    if not (config.watch.min_radius_km <= radius <= config.watch.max_radius_km):
        return jsonify({
            'error': f'Radius must be between {config.watch.min_radius_km:g} '
                     f'and {config.watch.max_radius_km:g} km'
        }), 400

    engine = _engine()
    try:
        engine.set_location(lat, lon, radius)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    return _watch_response(engine, message='Watch location updated')


@watch_bp.route('/models', methods=['PUT'])
def set_models():
    """
    Set the watched models.

    Body: {"models": ["B737", "A320", ...]}
    """
    data = request.get_json(silent=True)
    if not data or not isinstance(data.get('models'), list):
        return jsonify({'error': 'models list required'}), 400

    models = [str(m).strip().upper() for m in data['models']]
    unknown = sorted(m for m in models if m not in AIRCRAFT_MODELS)
    if unknown:
        return jsonify({'error': 'Unknown aircraft models', 'unknown': unknown}), 400

    engine = _engine()
    engine.set_models(models)
    return _watch_response(engine, message=f'Watching {len(set(models))} model(s)')


@watch_bp.route('/toggle', methods=['POST'])
def toggle():
    """Switch monitoring on or off."""
    engine = _engine()
    area = engine.toggle()
    return _watch_response(engine, message='Monitoring started' if area.active else 'Monitoring stopped')


@watch_bp.route('/refresh', methods=['POST'])
def refresh():
    """Run a poll immediately and return its outcome."""
    start_time = time.perf_counter()
    engine = _engine()

    if not engine.watch_area.active:
        return jsonify({'error': 'Watch area is not active'}), 409

    result = engine.refresh()
    query_time_ms = (time.perf_counter() - start_time) * 1000

    if result is None:
        return jsonify({
            'success': False,
            'error': engine.last_error or 'Poll result discarded',
            'query_time_ms': round(query_time_ms, 2),
        }), 502

    return jsonify({
        'success': True,
        'aircraft_count': len(result.aircraft),
        'alerts': [n.to_dict() for n in result.notifications],
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'query_time_ms': round(query_time_ms, 2),
    })


@watch_bp.route('/location/auto', methods=['POST'])
def auto_detect_location():
    """
    Center the watch area on the server's IP geolocation.

    Uses the geocoder library. The radius is kept.
    """
    try:
        g = geocoder.ip('me')

        if not g.ok or not g.latlng:
            return jsonify({
                'success': False,
                'error': 'Could not determine location from IP',
            }), 500

        lat, lon = g.latlng
        engine = _engine()
        engine.set_location(lat, lon, engine.watch_area.radius_km)

        logger.info(f'Auto-detected location: ({lat}, {lon}) in {g.city}, {g.country}')

        return _watch_response(
            engine,
            success=True,
            details={'city': g.city, 'region': g.state, 'country': g.country},
            message='Location auto-detected from IP',
        )

    except Exception as e:
        logger.error(f'Location auto-detect failed: {e}')
        return jsonify({
            'success': False,
            'error': str(e),
        }), 500
