"""
Tests for the OpenSky geo provider: bounding boxes, distance, parsing
and radius queries.
"""

import math
import random

import pytest
import requests

from skyalert.ingestion.opensky_client import (
    BoundingBox,
    FeedError,
    StateVector,
    haversine_distance,
)

from tests.conftest import STOCKHOLM, offset, raw_state


class TestBoundingBox:
    """Radius to bounding box conversion."""

    def test_latitude_span_uses_111_32_km_per_degree(self):
        box = BoundingBox.from_center_radius(0.0, 0.0, 111.32)
        assert box.lat_min == pytest.approx(-1.0)
        assert box.lat_max == pytest.approx(1.0)
        assert box.lon_min == pytest.approx(-1.0)
        assert box.lon_max == pytest.approx(1.0)

    def test_longitude_span_widens_with_latitude(self):
        box = BoundingBox.from_center_radius(60.0, 18.0, 50)
        lat_delta = (box.lat_max - box.lat_min) / 2
        lon_delta = (box.lon_max - box.lon_min) / 2
        assert lon_delta == pytest.approx(lat_delta / math.cos(math.radians(60.0)))

    def test_to_params(self):
        box = BoundingBox(lat_min=1, lat_max=2, lon_min=3, lon_max=4)
        assert box.to_params() == {'lamin': 1, 'lamax': 2, 'lomin': 3, 'lomax': 4}


class TestHaversine:
    """Great-circle distance."""

    def test_zero_distance(self):
        assert haversine_distance(*STOCKHOLM, *STOCKHOLM) == 0

    def test_symmetric(self):
        rng = random.Random(42)
        for _ in range(50):
            a = (rng.uniform(-80, 80), rng.uniform(-180, 180))
            b = (rng.uniform(-80, 80), rng.uniform(-180, 180))
            assert haversine_distance(*a, *b) == pytest.approx(haversine_distance(*b, *a))

    def test_one_degree_of_longitude_at_equator(self):
        assert haversine_distance(0, 0, 0, 1) == pytest.approx(111.19, abs=0.01)

    def test_stockholm_to_gothenburg(self):
        assert haversine_distance(59.3293, 18.0686, 57.7089, 11.9746) == pytest.approx(398, abs=2)

    @pytest.mark.parametrize('a, b', [
        ((0.0, 0.0), (0.0, 180.0)),
        ((10.0, 20.0), (-10.0, -160.0)),
        ((59.3293, 18.0686), (-59.3293, -161.9314)),
        ((90.0, 0.0), (-90.0, 0.0)),
    ])
    def test_antipodal_points_are_half_the_circumference(self, a, b):
        assert haversine_distance(*a, *b) == pytest.approx(math.pi * 6371.0, rel=1e-6)


class TestStateVector:
    """Parsing of OpenSky state arrays."""

    def test_parses_fields(self):
        sv = StateVector.from_array(raw_state('4AC9E4', 59.5, 18.1, callsign=' SAS123  ', category=4))
        assert sv.icao24 == '4ac9e4'
        assert sv.callsign == 'SAS123'
        assert sv.latitude == 59.5
        assert sv.longitude == 18.1
        assert sv.origin_country == 'Sweden'
        assert sv.category == 4
        assert sv.has_position()

    def test_null_fields_stay_unknown(self):
        sv = StateVector.from_array(raw_state('abc123', None, None, callsign='   ', baro_altitude=None, velocity=None))
        assert sv.callsign is None
        assert sv.baro_altitude is None
        assert sv.velocity is None
        assert not sv.has_position()
        assert sv.distance_to(*STOCKHOLM) is None

    def test_zero_values_are_kept(self):
        sv = StateVector.from_array(raw_state('abc123', 0.0, 0.0, baro_altitude=0.0, velocity=0.0))
        assert sv.has_position()
        assert sv.baro_altitude == 0.0
        assert sv.velocity == 0.0

    def test_category_is_optional(self):
        sv = StateVector.from_array(raw_state('abc123', 1.0, 2.0))
        assert sv.category is None

    @pytest.mark.parametrize('arr', [None, [], ['abc123'] * 5, [None] + [0] * 16, [42] + [0] * 16])
    def test_rejects_malformed(self, arr):
        assert StateVector.from_array(arr) is None


class TestGetStatesIn:
    """Bounding box fetch and failure handling."""

    def test_sends_bbox_params(self, opensky_feed):
        client = opensky_feed.client()
        box = BoundingBox.from_center_radius(*STOCKHOLM, 20)
        client.get_states_in(box)

        method, url, params = opensky_feed.session.calls[0]
        assert url.endswith('/states/all')
        assert params == box.to_params()

    def test_null_states_is_empty(self, opensky_feed):
        assert opensky_feed.client().get_states_in(BoundingBox.from_center_radius(*STOCKHOLM, 20)) == []

    def test_transport_failure_returns_empty(self, opensky_feed):
        opensky_feed.fail_with = requests.exceptions.ConnectionError('down')
        opensky_feed.states = [raw_state('abc123', *STOCKHOLM)]
        assert opensky_feed.client().get_states_in(BoundingBox.from_center_radius(*STOCKHOLM, 20)) == []

    def test_http_error_returns_empty(self, opensky_feed):
        opensky_feed.status_code = 503
        assert opensky_feed.client().get_states_in(BoundingBox.from_center_radius(*STOCKHOLM, 20)) == []

    def test_strict_raises_feed_error(self, opensky_feed):
        opensky_feed.fail_with = requests.exceptions.Timeout('slow')
        with pytest.raises(FeedError):
            opensky_feed.client().get_states_in(BoundingBox.from_center_radius(*STOCKHOLM, 20), strict=True)

    def test_strict_raises_on_rate_limit(self, opensky_feed):
        opensky_feed.status_code = 429
        with pytest.raises(FeedError, match='rate limit'):
            opensky_feed.client().get_states_in(BoundingBox.from_center_radius(*STOCKHOLM, 20), strict=True)


class TestAircraftInRadius:
    """Radius query trims the bounding box overfetch."""

    def test_every_result_is_within_radius(self, opensky_feed):
        rng = random.Random(7)
        for radius in (1, 5, 25, 50, 200):
            box = BoundingBox.from_center_radius(*STOCKHOLM, radius)
            opensky_feed.states = [
                raw_state(f'{i:06x}', rng.uniform(box.lat_min, box.lat_max), rng.uniform(box.lon_min, box.lon_max))
                for i in range(200)
            ]
            result = opensky_feed.client().get_aircraft_in_radius(*STOCKHOLM, radius)

            assert result
            for sv in result:
                assert haversine_distance(*STOCKHOLM, sv.latitude, sv.longitude) <= radius

    def test_bounding_box_corner_is_excluded(self, opensky_feed):
        box = BoundingBox.from_center_radius(*STOCKHOLM, 50)
        opensky_feed.states = [
            raw_state('c0ffee', box.lat_max, box.lon_max),
            raw_state('a1b2c3', *offset(*STOCKHOLM, north_km=10)),
        ]
        assert haversine_distance(*STOCKHOLM, box.lat_max, box.lon_max) > 50

        result = opensky_feed.client().get_aircraft_in_radius(*STOCKHOLM, 50)
        assert [sv.icao24 for sv in result] == ['a1b2c3']

    def test_aircraft_without_position_are_dropped(self, opensky_feed):
        opensky_feed.states = [
            raw_state('nopos1', None, None),
            raw_state('a1b2c3', *offset(*STOCKHOLM, north_km=5)),
        ]
        result = opensky_feed.client().get_aircraft_in_radius(*STOCKHOLM, 50)
        assert [sv.icao24 for sv in result] == ['a1b2c3']

    def test_strict_failure_propagates(self, opensky_feed):
        opensky_feed.fail_with = requests.exceptions.ConnectionError('down')
        with pytest.raises(FeedError):
            opensky_feed.client().get_aircraft_in_radius(*STOCKHOLM, 50, strict=True)


class TestGetState:
    """Single aircraft query."""

    def test_found(self, opensky_feed):
        opensky_feed.states = [raw_state('a1b2c3', *STOCKHOLM)]
        sv = opensky_feed.client().get_state('A1B2C3')
        assert sv.icao24 == 'a1b2c3'
        assert opensky_feed.session.calls[0][2] == {'icao24': 'a1b2c3'}

    def test_missing(self, opensky_feed):
        assert opensky_feed.client().get_state('a1b2c3') is None

    def test_failure_is_none(self, opensky_feed):
        opensky_feed.fail_with = requests.exceptions.ConnectionError('down')
        assert opensky_feed.client().get_state('a1b2c3') is None
