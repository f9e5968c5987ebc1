"""
Tests for the HexDB type resolver and its cache.
"""

from skyalert.ingestion.hexdb_client import LookupStatus, TypeCache, TypeRecord

from tests.conftest import FakeHexDB, airbus_320, boeing_737


class TestResolve:
    """Single lookups and the permanent cache."""

    def test_found_record(self):
        feed = FakeHexDB({'4ac9e4': boeing_737()})
        record = feed.client().resolve('4AC9E4')

        assert record.status == LookupStatus.FOUND
        assert record.found
        assert record.icao24 == '4ac9e4'
        assert record.type_code == 'B738'
        assert record.registration == 'SE-ROA'
        assert record.type_name == '737-8JP'
        assert record.model_key == 'B737'

    def test_second_resolve_does_not_fetch(self):
        feed = FakeHexDB({'4ac9e4': boeing_737()})
        client = feed.client()

        first = client.resolve('4ac9e4')
        second = client.resolve('4ac9e4')

        assert first is second
        assert feed.session.count('GET') == 1

    def test_not_found_is_cached(self):
        feed = FakeHexDB()
        client = feed.client()

        assert client.resolve('dead00').status == LookupStatus.NOT_FOUND
        assert client.resolve('dead00').status == LookupStatus.NOT_FOUND
        assert feed.session.count('GET') == 1

    def test_transport_failure_is_cached_as_failed(self):
        feed = FakeHexDB({'4ac9e4': boeing_737()})
        feed.fail_for.add('4ac9e4')
        client = feed.client()

        record = client.resolve('4ac9e4')
        assert record.status == LookupStatus.FAILED
        assert record.model_key is None

        feed.fail_for.clear()
        assert client.resolve('4ac9e4').status == LookupStatus.FAILED
        assert feed.session.count('GET') == 1

    def test_empty_body_is_not_found(self):
        feed = FakeHexDB({'4ac9e4': {}})
        assert feed.client().resolve('4ac9e4').status == LookupStatus.NOT_FOUND

    def test_blank_fields_become_none(self):
        feed = FakeHexDB({'4ac9e4': {'ICAOTypeCode': '', 'Registration': ' SE-ABC '}})
        record = feed.client().resolve('4ac9e4')
        assert record.type_code is None
        assert record.registration == 'SE-ABC'
        assert record.model_key is None

    def test_clear_cache_forces_refetch(self):
        feed = FakeHexDB({'4ac9e4': boeing_737()})
        client = feed.client()
        client.resolve('4ac9e4')
        client.clear_cache()
        client.resolve('4ac9e4')
        assert feed.session.count('GET') == 2


class TestResolveBatch:
    """Chunked batch lookups."""

    def test_resolves_all_and_dedupes(self):
        feed = FakeHexDB({'000001': boeing_737(), '000002': airbus_320()})
        results = feed.client().resolve_batch(['000001', '000002', '000003', '000001'])

        assert set(results) == {'000001', '000002', '000003'}
        assert results['000001'].model_key == 'B737'
        assert results['000002'].model_key == 'A320'
        assert results['000003'].status == LookupStatus.NOT_FOUND
        assert feed.session.count('GET') == 3

    def test_pauses_between_chunks_only(self, monkeypatch):
        pauses = []
        monkeypatch.setattr('skyalert.ingestion.hexdb_client.time.sleep', pauses.append)

        feed = FakeHexDB()
        client = feed.client(batch_size=10, batch_pause=0.1)
        results = client.resolve_batch(f'{i:06x}' for i in range(25))

        assert len(results) == 25
        assert pauses == [0.1, 0.1]

    def test_single_chunk_has_no_pause(self, monkeypatch):
        pauses = []
        monkeypatch.setattr('skyalert.ingestion.hexdb_client.time.sleep', pauses.append)

        FakeHexDB().client(batch_size=10, batch_pause=0.1).resolve_batch(f'{i:06x}' for i in range(10))
        assert pauses == []

    def test_cached_entries_skip_network(self):
        feed = FakeHexDB({'000001': boeing_737()})
        client = feed.client()
        client.resolve('000001')
        client.resolve_batch(['000001', '000002'])
        assert feed.session.count('GET') == 2

    def test_empty_input(self):
        assert FakeHexDB().client().resolve_batch([]) == {}


class TestPhotos:
    """Photo URL construction and existence checks."""

    def test_urls_are_constructed(self):
        feed = FakeHexDB()
        photo = feed.client().photo_urls('4AC9E4')
        assert photo.full_image_url == 'https://hexdb.io/hex-image?hex=4ac9e4'
        assert photo.thumbnail_url == 'https://hexdb.io/hex-image-thumb?hex=4ac9e4'
        assert feed.session.calls == []

    def test_check_photo_exists(self):
        feed = FakeHexDB()
        feed.photos.add('4ac9e4')
        client = feed.client()

        assert client.check_photo_exists('4ac9e4') is True
        assert client.check_photo_exists('000001') is False
        assert feed.session.count('HEAD', 'hex-image-thumb') == 2


class TestTypeCache:
    """Add-only cache semantics."""

    def test_first_write_wins(self):
        cache = TypeCache()
        first = TypeRecord(icao24='abc123', status=LookupStatus.NOT_FOUND)
        second = TypeRecord(icao24='abc123', status=LookupStatus.FOUND, type_code='B738')

        assert cache.add(first) is first
        assert cache.add(second) is first
        assert cache.get('abc123') is first

    def test_stats_and_clear(self):
        cache = TypeCache()
        cache.add(TypeRecord(icao24='abc123', status=LookupStatus.NOT_FOUND))
        cache.get('abc123')
        cache.get('zzz999')

        stats = cache.stats
        assert stats['entries'] == 1
        assert stats['negative_entries'] == 1
        assert stats['hits'] == 1
        assert stats['misses'] == 1
        assert 'abc123' in cache

        cache.clear()
        assert len(cache) == 0
        assert cache.stats['hits'] == 0
