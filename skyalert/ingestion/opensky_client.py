"""
OpenSky Network API client.

Handles communication with the OpenSky REST API, including:
- Authentication (optional but recommended for higher rate limits)
- Bounding box queries for geographic filtering
- Trimming bounding box results down to an exact radius
- Single aircraft queries by ICAO24

OpenSky state vector format (array indices):
0: icao24          - ICAO24 hex address
1: callsign        - Callsign (8 chars max)
2: origin_country  - Country of registration
3: time_position   - Unix timestamp of last position update
4: last_contact    - Unix timestamp of last message
5: longitude       - WGS84 longitude
6: latitude        - WGS84 latitude
7: baro_altitude   - Barometric altitude (meters)
8: on_ground       - Boolean
9: velocity        - Ground speed (m/s)
10: true_track     - Track angle (degrees, 0=north)
11: vertical_rate  - Vertical rate (m/s)
12: sensors        - Sensor IDs (array)
13: geo_altitude   - Geometric altitude (meters)
14: squawk         - Transponder code
15: spi            - Special position indicator
16: position_source - 0=ADS-B, 1=ASTERIX, 2=MLAT, 3=FLARM
17: category       - Aircraft category (only with extended=1, optional)

Null fields mean "unknown", never zero.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, List, Any

import requests
from requests.auth import HTTPBasicAuth

from skyalert.config import config

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE_LAT = 111.32


class FeedError(Exception):
    """Raised by strict queries when the position feed could not be read."""


def haversine_distance(
    lat1: float, lon1: float,
    lat2: float, lon2: float
) -> float:
    """
    Calculate great-circle distance between two points in kilometers.

    Uses the Haversine formula for accuracy over short to medium distances.
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2 +
        math.cos(lat1_rad) * math.cos(lat2_rad) *
        math.sin(delta_lon / 2) ** 2
    )
    # Rounding can push a just past 1 for near-antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


@dataclass
class BoundingBox:
    """
    Geographic bounding box for API queries.

    OpenSky expects: lamin, lomin, lamax, lomax
    (latitude min, longitude min, latitude max, longitude max)
    """
    lat_min: float
    lat_max: float
    lon_min: float
    lon_max: float

    @classmethod
    def from_center_radius(
        cls,
        center_lat: float,
        center_lon: float,
        radius_km: float
    ) -> 'BoundingBox':
        """
        Create bounding box from center point and radius.

        Flat-Earth approximation: 111.32 km per degree of latitude,
        longitude degrees scaled by cos(latitude). Degrades near the poles.
        """
        lat_delta = radius_km / KM_PER_DEGREE_LAT
        lon_delta = radius_km / (KM_PER_DEGREE_LAT * math.cos(math.radians(center_lat)))

        return cls(
            lat_min=center_lat - lat_delta,
            lat_max=center_lat + lat_delta,
            lon_min=center_lon - lon_delta,
            lon_max=center_lon + lon_delta,
        )

    def to_params(self) -> dict:
        """Convert to OpenSky API query parameters."""
        return {
            'lamin': self.lat_min,
            'lamax': self.lat_max,
            'lomin': self.lon_min,
            'lomax': self.lon_max,
        }


@dataclass
class StateVector:
    """
    Parsed state vector from OpenSky API.

    Normalizes the raw array format into a typed dataclass.
    All values may be None if not reported by the aircraft.
    """
    icao24: str
    callsign: Optional[str]
    origin_country: Optional[str]
    time_position: Optional[int]
    last_contact: Optional[int]
    longitude: Optional[float]
    latitude: Optional[float]
    baro_altitude: Optional[float]
    on_ground: bool
    velocity: Optional[float]
    true_track: Optional[float]
    vertical_rate: Optional[float]
    sensors: Optional[List[int]]
    geo_altitude: Optional[float]
    squawk: Optional[str]
    spi: bool
    position_source: Optional[int]
    category: Optional[int] = None

    @classmethod
    def from_array(cls, arr: List[Any]) -> Optional['StateVector']:
        """
        Parse OpenSky state vector array into StateVector object.

        Returns None if the array is malformed or missing required fields.
        """
        if not arr or len(arr) < 17:
            return None

        icao24 = arr[0]
        if not icao24 or not isinstance(icao24, str):
            return None

        # Normalize callsign (strip whitespace, handle None)
        callsign = arr[1]
        if callsign:
            callsign = callsign.strip() or None

        return cls(
            icao24=icao24.strip().lower(),
            callsign=callsign,
            origin_country=arr[2],
            time_position=arr[3],
            last_contact=arr[4],
            longitude=arr[5],
            latitude=arr[6],
            baro_altitude=arr[7],
            on_ground=bool(arr[8]),
            velocity=arr[9],
            true_track=arr[10],
            vertical_rate=arr[11],
            sensors=arr[12],
            geo_altitude=arr[13],
            squawk=arr[14],
            spi=bool(arr[15]),
            position_source=arr[16],
            category=arr[17] if len(arr) > 17 else None,
        )

    def has_position(self) -> bool:
        """Check if this state has valid position data."""
        return self.latitude is not None and self.longitude is not None

    def distance_to(self, lat: float, lon: float) -> Optional[float]:
        """Great-circle distance in km, or None without a position fix."""
        if not self.has_position():
            return None
        return haversine_distance(lat, lon, self.latitude, self.longitude)


class OpenSkyClient:
    """
    Client for OpenSky Network API.

    Handles:
    - GET requests to /states/all endpoint
    - Optional authentication for higher rate limits
    - Bounding box and radius filtering

    Transport failures are swallowed into an empty result unless the
    caller asks for a strict query.
    """

    def __init__(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
        base_url: str = 'https://opensky-network.org/api',
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.auth = None
        if username and password:
            self.auth = HTTPBasicAuth(username, password)
            logger.info('OpenSky client initialized with authentication')
        else:
            logger.info('OpenSky client running without authentication (lower rate limits)')

        self.session = session or requests.Session()

    @classmethod
    def from_config(cls) -> 'OpenSkyClient':
        """Create client from application configuration."""
        return cls(
            username=config.opensky.username,
            password=config.opensky.password,
            base_url=config.opensky.base_url,
            timeout=config.opensky.timeout_seconds,
        )

    def _fetch(self, params: dict) -> List[StateVector]:
        """
        Run one /states/all query and parse the result.

        Raises FeedError on network, HTTP or payload errors.
        """
        url = f'{self.base_url}/states/all'
        logger.debug(f'Fetching states: {url} params={params}')

        try:
            response = self.session.get(
                url,
                params=params,
                auth=self.auth,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.Timeout as e:
            raise FeedError('OpenSky API timeout') from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else '?'
            if status == 429:
                raise FeedError('OpenSky rate limit exceeded') from e
            raise FeedError(f'OpenSky API error: {status}') from e
        except requests.exceptions.RequestException as e:
            raise FeedError(f'OpenSky request failed: {e}') from e
        except ValueError as e:
            raise FeedError('OpenSky returned invalid JSON') from e

        if not isinstance(data, dict):
            raise FeedError('Unexpected OpenSky response shape')

        states_raw = data.get('states') or []
        states = []
        for arr in states_raw:
            sv = StateVector.from_array(arr)
            if sv:
                states.append(sv)

        logger.debug(f'Parsed {len(states)} of {len(states_raw)} state vectors')
        return states

    def get_states_in(
        self,
        bbox: BoundingBox,
        strict: bool = False,
    ) -> List[StateVector]:
        """
        Fetch current state vectors inside a bounding box.

        Returns an empty list on any failure, or raises FeedError when
        strict is set.
        """
        try:
            states = self._fetch(bbox.to_params())
        except FeedError as e:
            if strict:
                raise
            logger.error(f'{e}; treating as no aircraft')
            return []

        logger.info(f'Received {len(states)} state vectors from OpenSky')
        return states

    def get_state(self, icao24: str) -> Optional[StateVector]:
        """Fetch the current state of one aircraft, or None."""
        try:
            states = self._fetch({'icao24': icao24.strip().lower()})
        except FeedError as e:
            logger.error(f'Lookup of {icao24} failed: {e}')
            return None

        return states[0] if states else None

    def get_aircraft_in_radius(
        self,
        center_lat: float,
        center_lon: float,
        radius_km: float,
        strict: bool = False,
    ) -> List[StateVector]:
        """
        Fetch aircraft within radius of a center point.

        The bounding box overfetches its corners, so results are trimmed
        to the exact great-circle radius. Aircraft without a position fix
        are dropped.
        """
        bbox = BoundingBox.from_center_radius(center_lat, center_lon, radius_km)
        states = self.get_states_in(bbox, strict=strict)

        in_radius = [
            sv for sv in states
            if sv.has_position()
            and sv.distance_to(center_lat, center_lon) <= radius_km
        ]

        logger.debug(f'{len(in_radius)} of {len(states)} aircraft inside {radius_km}km')
        return in_radius
