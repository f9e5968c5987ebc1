"""
Watch area - the user's circular geofence plus the models of interest.

A WatchArea is immutable. Setup actions produce a new instance, which
the engine swaps in as a whole.
"""

from dataclasses import dataclass, field, replace
from typing import FrozenSet, Iterable

from skyalert.config import config


def _validate_location(latitude: float, longitude: float, radius_km: float) -> None:
    if not (-90 <= latitude <= 90):
        raise ValueError('Latitude must be between -90 and 90')
    if not (-180 <= longitude <= 180):
        raise ValueError('Longitude must be between -180 and 180')
    if not radius_km > 0:
        raise ValueError('Radius must be greater than 0')


@dataclass(frozen=True)
class WatchArea:
    """
    Circular watch area.

    Fields:
        latitude, longitude: center of the area (WGS84 degrees)
        radius_km: radius in kilometers, any positive value
        models: model keys to alert on (see aircraft_db.AIRCRAFT_MODELS)
        active: whether monitoring is switched on
    """
    latitude: float
    longitude: float
    radius_km: float
    models: FrozenSet[str] = field(default_factory=frozenset)
    active: bool = False

    def __post_init__(self):
        _validate_location(self.latitude, self.longitude, self.radius_km)
        object.__setattr__(self, 'models', frozenset(m.strip().upper() for m in self.models))

    @classmethod
    def from_config(cls) -> 'WatchArea':
        lat, lon = config.watch.location
        return cls(
            latitude=lat,
            longitude=lon,
            radius_km=config.watch.radius_km,
            models=config.watch.models,
            active=config.watch.active,
        )

    @property
    def center(self):
        return (self.latitude, self.longitude)

    def with_location(self, latitude: float, longitude: float, radius_km: float) -> 'WatchArea':
        """Move the area. The new area starts inactive, like a fresh setup."""
        return replace(self, latitude=latitude, longitude=longitude, radius_km=radius_km, active=False)

    def with_models(self, models: Iterable[str]) -> 'WatchArea':
        return replace(self, models=frozenset(models))

    def toggled(self) -> 'WatchArea':
        return replace(self, active=not self.active)

    def same_geometry(self, other: 'WatchArea') -> bool:
        return (
            self.latitude == other.latitude
            and self.longitude == other.longitude
            and self.radius_km == other.radius_km
        )

    def watches(self, model_key) -> bool:
        return bool(model_key) and model_key in self.models

    def to_dict(self) -> dict:
        return {
            'latitude': self.latitude,
            'longitude': self.longitude,
            'radius_km': self.radius_km,
            'models': sorted(self.models),
            'active': self.active,
        }
