"""
HexDB aircraft metadata client.

Resolves ICAO24 transponder addresses into type designator, registration
and model name using the public HexDB API, and builds aircraft photo URLs.

Every lookup result is cached for the lifetime of the process, including
misses and failed lookups, so an address is fetched at most once. The
cache only ever grows; clear() exists for test isolation.

Batch lookups run in small chunks with a short pause between chunks to
keep bursts against the public API modest. There is no retry or backoff.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Iterable, List

import requests

from skyalert.config import config
from skyalert.ingestion.aircraft_db import type_code_to_model

logger = logging.getLogger(__name__)


class LookupStatus(str, Enum):
    """Outcome of a metadata lookup."""
    FOUND = 'found'
    NOT_FOUND = 'not_found'
    FAILED = 'failed'


@dataclass(frozen=True)
class TypeRecord:
    """Aircraft metadata for one ICAO24 address."""
    icao24: str
    status: LookupStatus
    type_code: Optional[str] = None
    manufacturer: Optional[str] = None
    registration: Optional[str] = None
    type_name: Optional[str] = None
    owner: Optional[str] = None
    operator_flag: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.status == LookupStatus.FOUND

    @property
    def model_key(self) -> Optional[str]:
        return type_code_to_model(self.type_code)

    @classmethod
    def from_response(cls, icao24: str, data: dict) -> 'TypeRecord':
        """Build a record from a HexDB JSON body."""
        def clean(key: str) -> Optional[str]:
            value = data.get(key)
            if isinstance(value, str):
                value = value.strip()
            return value or None

        return cls(
            icao24=icao24,
            status=LookupStatus.FOUND,
            type_code=clean('ICAOTypeCode'),
            manufacturer=clean('Manufacturer'),
            registration=clean('Registration'),
            type_name=clean('Type'),
            owner=clean('RegisteredOwners'),
            operator_flag=clean('OperatorFlagCode'),
        )


@dataclass(frozen=True)
class AircraftPhoto:
    """Photo URLs for an aircraft. Constructed, not fetched."""
    full_image_url: str
    thumbnail_url: str


class TypeCache:
    """
    Thread-safe, add-only cache of TypeRecords keyed by ICAO24.

    The first record stored for an address wins; later writes for the
    same address are ignored.
    """

    def __init__(self):
        self._records: Dict[str, TypeRecord] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    def get(self, icao24: str) -> Optional[TypeRecord]:
        with self._lock:
            record = self._records.get(icao24)
            if record is None:
                self._misses += 1
            else:
                self._hits += 1
            return record

    def add(self, record: TypeRecord) -> TypeRecord:
        """Store a record unless one exists; return the stored record."""
        with self._lock:
            return self._records.setdefault(record.icao24, record)

    def __contains__(self, icao24: str) -> bool:
        with self._lock:
            return icao24 in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def clear(self) -> None:
        """Drop all records and statistics."""
        with self._lock:
            self._records.clear()
            self._hits = 0
            self._misses = 0

    @property
    def stats(self) -> dict:
        with self._lock:
            lookups = self._hits + self._misses
            return {
                'entries': len(self._records),
                'negative_entries': sum(1 for r in self._records.values() if not r.found),
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': self._hits / lookups if lookups > 0 else 0,
            }


class HexDBClient:
    """
    Client for the HexDB aircraft database.

    Handles:
    - GET /aircraft/<icao24> metadata lookups with a permanent cache
    - Chunked batch lookups with a courtesy pause
    - Photo URL construction and optional existence checks
    """

    def __init__(
        self,
        cache: Optional[TypeCache] = None,
        base_url: str = 'https://hexdb.io/api/v1',
        image_base_url: str = 'https://hexdb.io',
        timeout: float = 5.0,
        photo_timeout: float = 3.0,
        batch_size: int = 10,
        batch_pause: float = 0.1,
        session: Optional[requests.Session] = None,
    ):
        self.cache = cache if cache is not None else TypeCache()
        self.base_url = base_url
        self.image_base_url = image_base_url
        self.timeout = timeout
        self.photo_timeout = photo_timeout
        self.batch_size = max(1, batch_size)
        self.batch_pause = batch_pause
        self.session = session or requests.Session()

        self._fetch_count = 0
        self._stats_lock = threading.Lock()

    @classmethod
    def from_config(cls, cache: Optional[TypeCache] = None) -> 'HexDBClient':
        """Create client from application configuration."""
        return cls(
            cache=cache,
            base_url=config.hexdb.base_url,
            image_base_url=config.hexdb.image_base_url,
            timeout=config.hexdb.timeout_seconds,
            photo_timeout=config.hexdb.photo_timeout_seconds,
            batch_size=config.hexdb.batch_size,
            batch_pause=config.hexdb.batch_pause_seconds,
        )

    def resolve(self, icao24: str) -> TypeRecord:
        """
        Look up aircraft metadata by ICAO24 address.

        Returns the cached record when present, including cached misses.
        Otherwise fetches once and caches whatever came back.
        """
        icao24 = icao24.strip().lower()

        cached = self.cache.get(icao24)
        if cached is not None:
            return cached

        record = self._fetch(icao24)
        return self.cache.add(record)

    def _fetch(self, icao24: str) -> TypeRecord:
        """Fetch one record from HexDB. Never raises."""
        with self._stats_lock:
            self._fetch_count += 1

        url = f'{self.base_url}/aircraft/{icao24}'
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f'HexDB lookup for {icao24} failed: {e}')
            return TypeRecord(icao24=icao24, status=LookupStatus.FAILED)

        if response.status_code == 404:
            logger.debug(f'HexDB has no record for {icao24}')
            return TypeRecord(icao24=icao24, status=LookupStatus.NOT_FOUND)

        if response.status_code != 200:
            logger.warning(f'HexDB API error for {icao24}: {response.status_code}')
            return TypeRecord(icao24=icao24, status=LookupStatus.FAILED)

        try:
            data = response.json()
        except ValueError:
            logger.warning(f'HexDB returned invalid JSON for {icao24}')
            return TypeRecord(icao24=icao24, status=LookupStatus.FAILED)

        if not data or not isinstance(data, dict):
            return TypeRecord(icao24=icao24, status=LookupStatus.NOT_FOUND)

        record = TypeRecord.from_response(icao24, data)
        logger.debug(f'Resolved {icao24}: {record.type_code or "?"} {record.registration or "?"}')
        return record

    def resolve_batch(self, icao24_list: Iterable[str]) -> Dict[str, TypeRecord]:
        """
        Resolve many addresses in chunks of batch_size.

        Lookups within a chunk run concurrently; chunks run one after
        another with batch_pause seconds between them.
        """
        unique: List[str] = []
        seen = set()
        for icao24 in icao24_list:
            icao24 = icao24.strip().lower()
            if icao24 not in seen:
                seen.add(icao24)
                unique.append(icao24)

        results: Dict[str, TypeRecord] = {}
        if not unique:
            return results

        chunks = [unique[i:i + self.batch_size] for i in range(0, len(unique), self.batch_size)]
        with ThreadPoolExecutor(max_workers=self.batch_size) as executor:
            for index, chunk in enumerate(chunks):
                for record in executor.map(self.resolve, chunk):
                    results[record.icao24] = record

                if index < len(chunks) - 1 and self.batch_pause > 0:
                    time.sleep(self.batch_pause)

        logger.debug(f'Resolved {len(results)} aircraft in {len(chunks)} chunk(s)')
        return results

    def photo_urls(self, icao24: str) -> AircraftPhoto:
        icao24 = icao24.strip().lower()
        return AircraftPhoto(
            full_image_url=f'{self.image_base_url}/hex-image?hex={icao24}',
            thumbnail_url=f'{self.image_base_url}/hex-image-thumb?hex={icao24}',
        )

    def check_photo_exists(self, icao24: str) -> bool:
        """HEAD the thumbnail URL. False on any error."""
        url = self.photo_urls(icao24).thumbnail_url
        try:
            response = self.session.head(url, timeout=self.photo_timeout)
        except requests.RequestException as e:
            logger.debug(f'Photo check for {icao24} failed: {e}')
            return False
        return response.status_code == 200

    def clear_cache(self) -> None:
        self.cache.clear()

    @property
    def stats(self) -> dict:
        stats = self.cache.stats
        stats['fetches'] = self._fetch_count
        return stats
