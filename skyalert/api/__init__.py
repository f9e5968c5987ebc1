"""
API module for SkyAlert.

Provides REST endpoints for:
- Watch area setup (location, models, on/off, manual refresh)
- Tracked aircraft and notifications
- Model catalog and system status
"""

from skyalert.api.watch import watch_bp
from skyalert.api.aircraft import aircraft_bp

__all__ = ['watch_bp', 'aircraft_bp']
