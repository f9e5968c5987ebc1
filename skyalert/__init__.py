"""
SkyAlert Package.

Watches a circular area for selected aircraft models and raises one
notification each time a matching aircraft enters the area.

Modules:
    alerts/      Watch area, visit tracking, notification sinks and the alert engine
    ingestion/   OpenSky position feed, HexDB type lookups and the model catalog
    api/         REST endpoints for watch setup, tracked aircraft and notifications
    cache.py     Thread-safe snapshot of the latest poll for the API layer
    config.py    Centralized configuration from environment variables
"""

__version__ = '1.0.0'
