"""
Alerting module for SkyAlert.

Matches live aircraft against the watch list and decides when to notify:
at most once per aircraft per continuous visit to the watch area.
"""

from skyalert.alerts.watch import WatchArea
from skyalert.alerts.sightings import SightingTracker, VisitState
from skyalert.alerts.notifier import (
    Notification,
    NotificationSink,
    ToastQueue,
    LogSink,
    DesktopNotifier,
)
from skyalert.alerts.engine import AlertEngine, PollResult

__all__ = [
    'WatchArea',
    'SightingTracker',
    'VisitState',
    'Notification',
    'NotificationSink',
    'ToastQueue',
    'LogSink',
    'DesktopNotifier',
    'AlertEngine',
    'PollResult',
]
