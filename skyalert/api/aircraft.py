"""
Tracked aircraft, notification and catalog endpoints.

Provides endpoints for:
- GET /api/aircraft - Aircraft inside the watch area from the last poll
- GET /api/aircraft/<icao24> - Single aircraft with photo URLs
- GET /api/notifications - Recent alerts
- GET /api/models - Aircraft model catalog
- GET /api/status - Engine status and statistics
"""

import logging
import time
from datetime import datetime, timezone

from flask import Blueprint, jsonify, request, current_app

from skyalert.ingestion.aircraft_db import models_by_group, search_models

logger = logging.getLogger(__name__)

aircraft_bp = Blueprint('aircraft', __name__, url_prefix='/api')


def _engine():
    return current_app.config['ALERT_ENGINE']


def _flag(name: str, default: str = 'false') -> bool:
    return request.args.get(name, default).lower() == 'true'


def _int_arg(name: str, default: int, maximum: int, minimum: int = 0) -> int:
    try:
        return max(minimum, min(int(request.args.get(name, default)), maximum))
    except ValueError:
        return default


@aircraft_bp.route('/aircraft', methods=['GET'])
def list_aircraft():
    """
    List aircraft inside the watch area.

    Query parameters:
    - matched_only: boolean, only watched models (default false)
    - limit: int, max results to return (default 100, at least 1)

    Sorted by distance, closest first.
    """
    start_time = time.perf_counter()
    engine = _engine()

    aircraft = engine.cache.get_matched() if _flag('matched_only') else engine.cache.get_all()
    aircraft = aircraft[:_int_arg('limit', 100, 500, minimum=1)]

    query_time_ms = (time.perf_counter() - start_time) * 1000
    last_refresh = engine.cache.last_refresh

    return jsonify({
        'aircraft': [a.to_dict() for a in aircraft],
        'count': len(aircraft),
        'last_update': datetime.fromtimestamp(last_refresh, timezone.utc).isoformat() if last_refresh else None,
        'error': engine.last_error,
        'query_time_ms': round(query_time_ms, 2),
    })


@aircraft_bp.route('/aircraft/<icao24>', methods=['GET'])
def get_aircraft(icao24: str):
    """
    Get a single aircraft from the last poll.

    Query parameters:
    - check_photo: boolean, HEAD the thumbnail to confirm a photo exists
    """
    engine = _engine()
    tracked = engine.cache.get(icao24)
    if tracked is None:
        return jsonify({'error': 'Aircraft not in watch area'}), 404

    result = tracked.to_dict()
    if _flag('check_photo'):
        result['photo_available'] = engine.resolver.check_photo_exists(tracked.icao24)

    return jsonify(result)


@aircraft_bp.route('/notifications', methods=['GET'])
def list_notifications():
    """
    Recent alerts, newest first.

    Query parameters:
    - since: int, only notifications with a larger id (default 0)
    - limit: int, max results (default 20, at least 1)
    """
    toasts = _engine().toasts
    if toasts is None:
        return jsonify({'notifications': [], 'count': 0})

    notifications = toasts.recent(
        since_id=_int_arg('since', 0, 2 ** 31),
        limit=_int_arg('limit', 20, 100, minimum=1),
    )
    return jsonify({
        'notifications': [n.to_dict() for n in notifications],
        'count': len(notifications),
    })


@aircraft_bp.route('/models', methods=['GET'])
def list_models():
    """
    Aircraft model catalog grouped by category.

    Query parameters:
    - q: search term matched against model key and name
    """
    engine = _engine()
    watched = engine.watch_area.models
    models = search_models(request.args.get('q'))

    groups = [
        {
            'name': group,
            'models': [dict(m.to_dict(), selected=m.key in watched) for m in members],
        }
        for group, members in models_by_group(models).items()
    ]

    return jsonify({
        'groups': groups,
        'count': len(models),
        'selected': sorted(watched),
    })


@aircraft_bp.route('/status', methods=['GET'])
def get_status():
    """Engine health, statistics and configuration."""
    engine = _engine()
    stats = engine.stats

    healthy = stats['last_error'] is None
    return jsonify({
        'status': 'healthy' if healthy else 'degraded',
        'watch': engine.watch_area.to_dict(),
        'engine': stats,
        'cache': engine.cache.stats,
        'timestamp': datetime.now(timezone.utc).isoformat(),
    })
