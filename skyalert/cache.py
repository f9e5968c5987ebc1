"""
In-memory snapshot of the aircraft currently inside the watch area.

The alert engine publishes one snapshot per successful poll and the API
layer reads it. Snapshots are replaced atomically, so readers always see
the result of one complete poll, never a mix of two.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Optional, Dict, List

from skyalert.ingestion.opensky_client import StateVector
from skyalert.ingestion.hexdb_client import AircraftPhoto, TypeRecord
from skyalert.ingestion.aircraft_db import model_name

logger = logging.getLogger(__name__)


@dataclass
class TrackedAircraft:
    """
    One aircraft from the latest poll, enriched for display.

    Combines the live state vector with type metadata and
    pre-computed display values.
    """
    state: StateVector
    distance_km: float
    type_record: Optional[TypeRecord]
    model_key: Optional[str]
    matched: bool
    is_new: bool
    alerted: bool
    photo: Optional[AircraftPhoto] = None
    polled_at: float = field(default_factory=time.time)

    @property
    def icao24(self) -> str:
        return self.state.icao24

    @property
    def registration(self) -> Optional[str]:
        return self.type_record.registration if self.type_record else None

    @property
    def aircraft_type(self) -> Optional[str]:
        if not self.type_record:
            return None
        return self.type_record.type_name or self.type_record.type_code

    @property
    def speed_kmh(self) -> Optional[int]:
        if self.state.velocity is None:
            return None
        return round(self.state.velocity * 3.6)

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict for API responses."""
        altitude = self.state.baro_altitude
        return {
            'icao24': self.icao24,
            'callsign': self.state.callsign,
            'origin_country': self.state.origin_country,
            'registration': self.registration,
            'aircraft_type': self.aircraft_type,
            'type_code': self.type_record.type_code if self.type_record else None,
            'lookup_status': self.type_record.status.value if self.type_record else None,
            'model_key': self.model_key,
            'model_name': model_name(self.model_key),
            'matched': self.matched,
            'is_new': self.is_new,
            'alerted': self.alerted,
            'position': {
                'latitude': self.state.latitude,
                'longitude': self.state.longitude,
                'distance_km': round(self.distance_km, 1),
            },
            'telemetry': {
                'altitude_m': round(altitude) if altitude is not None else None,
                'speed_kmh': self.speed_kmh,
                'heading': self.state.true_track,
                'vertical_rate': self.state.vertical_rate,
                'on_ground': self.state.on_ground,
                'squawk': self.state.squawk,
            },
            'photo': {
                'full_image_url': self.photo.full_image_url,
                'thumbnail_url': self.photo.thumbnail_url,
            } if self.photo else None,
            'last_contact': self.state.last_contact,
        }


class TrackedAircraftCache:
    """
    Thread-safe holder for the latest poll snapshot.

    Provides fast read access to the aircraft list without
    touching the upstream feeds.
    """

    def __init__(self):
        self._aircraft: Dict[str, TrackedAircraft] = {}
        self._lock = threading.RLock()
        self._last_refresh: float = 0

        # Statistics
        self._hits = 0
        self._misses = 0

    def publish(self, aircraft: List[TrackedAircraft]) -> int:
        """Replace the snapshot with a new poll result."""
        snapshot = {a.icao24: a for a in aircraft}

        with self._lock:
            self._aircraft = snapshot
            self._last_refresh = time.time()

        logger.debug(f'Snapshot refreshed with {len(snapshot)} aircraft')
        return len(snapshot)

    def get(self, icao24: str) -> Optional[TrackedAircraft]:
        icao24 = icao24.lower()

        with self._lock:
            entry = self._aircraft.get(icao24)
            if entry is not None:
                self._hits += 1
                return entry
            self._misses += 1
        return None

    def get_all(self) -> List[TrackedAircraft]:
        """All aircraft in the snapshot, closest first."""
        with self._lock:
            result = list(self._aircraft.values())

        result.sort(key=lambda x: x.distance_km)
        return result

    def get_matched(self) -> List[TrackedAircraft]:
        """Only aircraft whose model is on the watch list."""
        return [a for a in self.get_all() if a.matched]

    def clear(self) -> None:
        with self._lock:
            self._aircraft = {}
            self._last_refresh = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._aircraft)

    @property
    def last_refresh(self) -> float:
        return self._last_refresh

    @property
    def stats(self) -> dict:
        """Get cache statistics."""
        with self._lock:
            lookups = self._hits + self._misses
            return {
                'entries': len(self._aircraft),
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': self._hits / lookups if lookups > 0 else 0,
                'last_refresh': self._last_refresh,
            }
