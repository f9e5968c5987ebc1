"""
Configuration management for SkyAlert.

Loads settings from environment variables with sensible defaults.
All configuration is centralized here to avoid magic strings scattered
throughout the codebase.
"""

import os
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple

from dotenv import load_dotenv

load_dotenv()


def _parse_location(value: str) -> Optional[Tuple[float, float]]:
    """Parse 'lat,lon' string into tuple, or None if empty/invalid."""
    if not value:
        return None
    try:
        lat, lon = value.split(',')
        return (float(lat.strip()), float(lon.strip()))
    except (ValueError, AttributeError):
        return None


def _parse_models(value: str) -> FrozenSet[str]:
    """Parse 'B737,A320' into a set of upper-cased model keys."""
    return frozenset(
        part.strip().upper() for part in (value or '').split(',') if part.strip()
    )


def _flag(name: str, default: str = '0') -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes')


@dataclass(frozen=True)
class OpenSkyConfig:
    """OpenSky API configuration."""
    username: Optional[str] = os.getenv('OPENSKY_USERNAME') or None
    password: Optional[str] = os.getenv('OPENSKY_PASSWORD') or None
    base_url: str = 'https://opensky-network.org/api'
    timeout_seconds: float = float(os.getenv('OPENSKY_TIMEOUT_SECONDS', '15'))


@dataclass(frozen=True)
class HexDBConfig:
    """HexDB aircraft metadata and photo feed settings."""
    base_url: str = os.getenv('HEXDB_BASE_URL', 'https://hexdb.io/api/v1')
    image_base_url: str = os.getenv('HEXDB_IMAGE_URL', 'https://hexdb.io')
    timeout_seconds: float = 5.0
    photo_timeout_seconds: float = 3.0

    # Courtesy throttle for batch lookups, not a rate limiter
    batch_size: int = 10
    batch_pause_seconds: float = 0.1


@dataclass(frozen=True)
class WatchConfig:
    """Initial watch area and polling cadence."""
    location: Tuple[float, float] = field(
        default_factory=lambda: _parse_location(os.getenv('WATCH_LOCATION', '')) or (59.3293, 18.0686)
    )
    radius_km: float = float(os.getenv('WATCH_RADIUS_KM', '50'))
    models: FrozenSet[str] = field(
        default_factory=lambda: _parse_models(os.getenv('WATCH_MODELS', ''))
    )
    active: bool = _flag('WATCH_ACTIVE')
    poll_interval: int = int(os.getenv('POLL_INTERVAL_SECONDS', '30'))

    # Bounds enforced by the setup API only; the engine accepts any radius > 0
    min_radius_km: float = 1.0
    max_radius_km: float = 200.0


@dataclass(frozen=True)
class NotificationConfig:
    """Notification sink settings."""
    toast_duration_seconds: int = int(os.getenv('TOAST_DURATION_SECONDS', '10'))
    toast_history: int = int(os.getenv('TOAST_HISTORY', '100'))

    # OS-level notifications require an explicit grant
    desktop_enabled: bool = _flag('DESKTOP_NOTIFICATIONS')
    desktop_command: str = os.getenv('DESKTOP_NOTIFY_COMMAND', 'notify-send')


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""
    opensky: OpenSkyConfig
    hexdb: HexDBConfig
    watch: WatchConfig
    notifications: NotificationConfig

    # Flask settings
    secret_key: str
    debug: bool
    port: int


def load_config() -> AppConfig:
    """Load and validate all configuration."""
    return AppConfig(
        opensky=OpenSkyConfig(),
        hexdb=HexDBConfig(),
        watch=WatchConfig(),
        notifications=NotificationConfig(),
        secret_key=os.getenv('SECRET_KEY', 'dev-key-change-in-prod'),
        debug=os.getenv('FLASK_DEBUG', '0') == '1',
        port=int(os.getenv('PORT', '5000')),
    )


# Singleton instance
config = load_config()
