"""
Shared fixtures and fakes.

The feeds are faked at the HTTP session level so the real clients do the
parsing, bounding box trimming and caching under test.
"""

import math
import threading
from typing import Callable, Dict, List, Optional

import pytest
import requests

from skyalert.alerts.engine import AlertEngine
from skyalert.alerts.notifier import NotificationSink, ToastQueue
from skyalert.alerts.watch import WatchArea
from skyalert.ingestion.hexdb_client import HexDBClient
from skyalert.ingestion.opensky_client import EARTH_RADIUS_KM, OpenSkyClient

STOCKHOLM = (59.3293, 18.0686)


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, payload=None, invalid_json: bool = False):
        self.status_code = status_code
        self._payload = payload
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError('No JSON object could be decoded')
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f'{self.status_code} Error', response=self)


class FakeSession:
    """Routes GET/HEAD calls to a handler and records them."""

    def __init__(self, handler: Callable[[str, str, dict], FakeResponse]):
        self.handler = handler
        self.calls: List[tuple] = []
        self._lock = threading.Lock()

    def _call(self, method, url, params=None, **kwargs):
        with self._lock:
            self.calls.append((method, url, dict(params or {})))
        return self.handler(method, url, dict(params or {}))

    def get(self, url, params=None, **kwargs):
        return self._call('GET', url, params, **kwargs)

    def head(self, url, params=None, **kwargs):
        return self._call('HEAD', url, params, **kwargs)

    def count(self, method: str = 'GET', contains: str = '') -> int:
        with self._lock:
            return sum(1 for m, url, _ in self.calls if m == method and contains in url)


def offset(lat: float, lon: float, north_km: float = 0.0, east_km: float = 0.0):
    """Point displaced from (lat, lon); pure north/south offsets are exact great-circle distances."""
    new_lat = lat + math.degrees(north_km / EARTH_RADIUS_KM)
    new_lon = lon + math.degrees(east_km / (EARTH_RADIUS_KM * math.cos(math.radians(lat))))
    return new_lat, new_lon


def raw_state(
    icao24: str,
    lat: Optional[float],
    lon: Optional[float],
    callsign: Optional[str] = 'TEST123 ',
    baro_altitude: Optional[float] = 10000.0,
    velocity: Optional[float] = 200.0,
    on_ground: bool = False,
    category: Optional[int] = None,
) -> list:
    """Build an OpenSky state vector array."""
    state = [
        icao24, callsign, 'Sweden', 1700000000, 1700000001,
        lon, lat, baro_altitude, on_ground, velocity,
        90.0, 0.0, None, baro_altitude, '1000', False, 0,
    ]
    if category is not None:
        state.append(category)
    return state


class FakeOpenSkyFeed:
    """
    Scripted OpenSky feed.

    Holds the current raw states; answers bounding box queries the way
    the real API does, by returning states inside the box.
    """

    def __init__(self):
        self.states: List[list] = []
        self.fail_with: Optional[Exception] = None
        self.status_code = 200
        self.on_fetch: Optional[Callable[[], None]] = None
        self.session = FakeSession(self.handle)

    def handle(self, method, url, params):
        if self.on_fetch:
            self.on_fetch()
        if self.fail_with:
            raise self.fail_with
        if self.status_code != 200:
            return FakeResponse(self.status_code, {})

        if 'icao24' in params:
            wanted = params['icao24']
            states = [s for s in self.states if s[0] == wanted]
        else:
            states = [
                s for s in self.states
                if s[6] is None or s[5] is None or (
                    params['lamin'] <= s[6] <= params['lamax']
                    and params['lomin'] <= s[5] <= params['lomax']
                )
            ]
        return FakeResponse(200, {'time': 1700000000, 'states': states or None})

    def client(self) -> OpenSkyClient:
        return OpenSkyClient(session=self.session)


class FakeHexDB:
    """Scripted HexDB metadata feed keyed by ICAO24."""

    def __init__(self, records: Optional[Dict[str, dict]] = None):
        self.records: Dict[str, dict] = dict(records or {})
        self.fail_for: set = set()
        self.photos: set = set()
        self.session = FakeSession(self.handle)

    def handle(self, method, url, params):
        if method == 'HEAD':
            hex_code = url.rsplit('=', 1)[-1]
            return FakeResponse(200 if hex_code in self.photos else 404)

        icao24 = url.rsplit('/', 1)[-1]
        if icao24 in self.fail_for:
            raise requests.exceptions.ConnectionError('connection reset')
        if icao24 in self.records:
            return FakeResponse(200, self.records[icao24])
        return FakeResponse(404, {'status': '404', 'error': 'Aircraft not found'})

    def client(self, **kwargs) -> HexDBClient:
        kwargs.setdefault('batch_pause', 0)
        return HexDBClient(session=self.session, **kwargs)


class RecordingSink(NotificationSink):
    name = 'recording'

    def __init__(self):
        self.sent = []

    def send(self, notification):
        self.sent.append(notification)


def boeing_737(registration: str = 'SE-ROA') -> dict:
    return {
        'ICAOTypeCode': 'B738',
        'Manufacturer': 'Boeing',
        'Registration': registration,
        'Type': '737-8JP',
        'RegisteredOwners': 'Norwegian Air Sweden',
        'OperatorFlagCode': 'NSZ',
    }


def airbus_320(registration: str = 'SE-DOY') -> dict:
    return {
        'ICAOTypeCode': 'A20N',
        'Manufacturer': 'Airbus',
        'Registration': registration,
        'Type': 'A320 251N',
        'RegisteredOwners': 'SAS',
    }


@pytest.fixture
def opensky_feed():
    return FakeOpenSkyFeed()


@pytest.fixture
def hexdb_feed():
    return FakeHexDB()


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def watch_area():
    return WatchArea(
        latitude=STOCKHOLM[0],
        longitude=STOCKHOLM[1],
        radius_km=50,
        models={'B737'},
        active=True,
    )


@pytest.fixture
def engine(opensky_feed, hexdb_feed, recording_sink, watch_area):
    return AlertEngine(
        geo=opensky_feed.client(),
        resolver=hexdb_feed.client(),
        watch_area=watch_area,
        sinks=[ToastQueue(max_entries=50), recording_sink],
        poll_interval=30,
        autostart=False,
    )
