"""
Notification sinks for aircraft alerts.

A Notification carries a title, a multi-line body and a display duration
hint. Sinks decide what to do with it:

- ToastQueue keeps a bounded history for the web UI to poll
- LogSink writes each alert to the application log
- DesktopNotifier raises an OS-level notification through a command
  such as notify-send, only when explicitly granted
"""

import itertools
import logging
import shutil
import subprocess
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Deque, List, Optional, Sequence

from skyalert.config import config

logger = logging.getLogger(__name__)

_ids = itertools.count(1)


@dataclass
class Notification:
    """A single alert, ready for display."""
    title: str
    body: str
    duration_seconds: int
    icao24: str
    model_key: str
    short_title: str = ''
    short_body: str = ''
    id: int = field(default_factory=lambda: next(_ids))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'title': self.title,
            'body': self.body,
            'duration_seconds': self.duration_seconds,
            'icao24': self.icao24,
            'model_key': self.model_key,
            'created_at': self.created_at.isoformat(),
        }


def format_distance(distance_km: float) -> str:
    return f'{distance_km:.1f}km'


def build_notification(
    icao24: str,
    model_key: str,
    model_name: str,
    distance_km: float,
    callsign: Optional[str] = None,
    registration: Optional[str] = None,
    type_name: Optional[str] = None,
    altitude_m: Optional[float] = None,
    duration_seconds: Optional[int] = None,
) -> Notification:
    """
    Compose the alert text for an aircraft entering the watch area.

    The long form goes to the toast; the short form is used for
    OS-level notifications.
    """
    altitude = f'{round(altitude_m)}m' if altitude_m is not None else 'Unknown'
    distance = format_distance(distance_km)

    body = '\n'.join([
        f'Flight {callsign or "Unknown"} ({registration or icao24})',
        f'Type: {type_name or "Unknown"}',
        f'Distance: {distance}',
        f'Altitude: {altitude}',
    ])

    if duration_seconds is None:
        duration_seconds = config.notifications.toast_duration_seconds

    return Notification(
        title=f'Alert: {model_name} detected!',
        body=body,
        duration_seconds=duration_seconds,
        icao24=icao24,
        model_key=model_key,
        short_title=f'Aircraft Alert: {model_name}',
        short_body=f'Flight {callsign or icao24} is {distance} away',
    )


class NotificationSink:
    """Base class for anything that can display a notification."""

    name = 'sink'

    def send(self, notification: Notification) -> None:
        raise NotImplementedError


class ToastQueue(NotificationSink):
    """Bounded in-memory history of toasts, read by the HTTP layer."""

    name = 'toast'

    def __init__(self, max_entries: Optional[int] = None):
        self._items: Deque[Notification] = deque(
            maxlen=max_entries or config.notifications.toast_history
        )
        self._lock = threading.Lock()

    def send(self, notification: Notification) -> None:
        with self._lock:
            self._items.append(notification)

    def recent(self, since_id: int = 0, limit: Optional[int] = None) -> List[Notification]:
        """Notifications newer than since_id, newest first."""
        with self._lock:
            items = [n for n in self._items if n.id > since_id]
        items.reverse()
        return items if limit is None else items[:limit]

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class LogSink(NotificationSink):
    """Writes alerts to the log."""

    name = 'log'

    def send(self, notification: Notification) -> None:
        logger.info(f'{notification.title} {notification.body.replace(chr(10), " | ")}')


class DesktopNotifier(NotificationSink):
    """
    OS-level notifications via an external command.

    Does nothing unless permission was granted and the command exists.
    """

    name = 'desktop'

    def __init__(
        self,
        granted: Optional[bool] = None,
        command: Optional[str] = None,
        timeout: float = 5.0,
    ):
        self.granted = config.notifications.desktop_enabled if granted is None else granted
        self.command = command or config.notifications.desktop_command
        self.timeout = timeout
        self._executable = shutil.which(self.command) if self.granted else None

        if self.granted and not self._executable:
            logger.warning(f'Desktop notifications enabled but {self.command!r} not found')

    @property
    def available(self) -> bool:
        return bool(self.granted and self._executable)

    def build_command(self, notification: Notification) -> List[str]:
        return [
            self._executable or self.command,
            '--expire-time', str(notification.duration_seconds * 1000),
            notification.short_title or notification.title,
            notification.short_body or notification.body,
        ]

    def send(self, notification: Notification) -> None:
        if not self.available:
            return
        subprocess.run(
            self.build_command(notification),
            check=True,
            timeout=self.timeout,
            capture_output=True,
        )


def dispatch(notification: Notification, sinks: Sequence[NotificationSink]) -> int:
    """
    Deliver a notification to every sink.

    A failing sink is logged and skipped. Returns how many sinks succeeded.
    """
    delivered = 0
    for sink in sinks:
        try:
            sink.send(notification)
            delivered += 1
        except Exception as e:
            logger.error(f'Notification sink {sink.name} failed: {e}')
    return delivered
