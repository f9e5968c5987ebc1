"""
Data ingestion module for SkyAlert.

Handles polling the OpenSky position feed, resolving aircraft types
through HexDB, and the static model catalog used for matching.
"""

from skyalert.ingestion.opensky_client import OpenSkyClient, BoundingBox, StateVector, FeedError, haversine_distance
from skyalert.ingestion.hexdb_client import HexDBClient, TypeCache, TypeRecord, LookupStatus

__all__ = [
    'OpenSkyClient',
    'BoundingBox',
    'StateVector',
    'FeedError',
    'haversine_distance',
    'HexDBClient',
    'TypeCache',
    'TypeRecord',
    'LookupStatus',
]
