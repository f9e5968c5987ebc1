"""
Alert engine - polls the feeds and raises one alert per aircraft visit.

Poll cycle:
1. Fetch: aircraft inside the watch radius from OpenSky
2. Resolve: type metadata for every returned address from HexDB
3. Match: model key against the watch list, novelty against the last poll
4. Commit: swap visit state, publish the snapshot, send notifications

Nothing is committed unless the whole cycle succeeds and the watch area
is still the one the poll started with. A failed poll leaves visit
tracking at the last good state; the next tick simply tries again.

Polls are serialized. A manual refresh waits for an in-flight timed poll
instead of running alongside it.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from skyalert.cache import TrackedAircraft, TrackedAircraftCache
from skyalert.config import config
from skyalert.ingestion.aircraft_db import model_name
from skyalert.ingestion.hexdb_client import HexDBClient
from skyalert.ingestion.opensky_client import OpenSkyClient
from skyalert.alerts.notifier import (
    DesktopNotifier,
    LogSink,
    Notification,
    NotificationSink,
    ToastQueue,
    build_notification,
    dispatch,
)
from skyalert.alerts.sightings import SightingPlan, SightingTracker, VisitState
from skyalert.alerts.watch import WatchArea

logger = logging.getLogger(__name__)


@dataclass
class PollResult:
    """Outcome of one committed poll."""
    aircraft: List[TrackedAircraft]
    notifications: List[Notification]
    polled_at: float = field(default_factory=time.time)
    duration_ms: float = 0.0


class AlertEngine:
    """
    Manages the polling lifecycle for a single watch area.

    Coordinates the position feed, the type resolver and the
    notification sinks. Can run as a background thread.
    """

    def __init__(
        self,
        geo: Optional[OpenSkyClient] = None,
        resolver: Optional[HexDBClient] = None,
        watch_area: Optional[WatchArea] = None,
        sinks: Optional[Sequence[NotificationSink]] = None,
        cache: Optional[TrackedAircraftCache] = None,
        poll_interval: Optional[float] = None,
        autostart: bool = True,
    ):
        """
        Initialize the alert engine.

        Args:
            geo: OpenSky client (created from config if None)
            resolver: HexDB client (created from config if None)
            watch_area: initial watch area (from config if None)
            sinks: notification sinks (toast queue, log and desktop if None)
            cache: snapshot cache for the API layer
            poll_interval: seconds between polls
            autostart: start/stop the polling thread when the area is toggled
        """
        self.geo = geo or OpenSkyClient.from_config()
        self.resolver = resolver or HexDBClient.from_config()
        self.cache = cache or TrackedAircraftCache()
        self.tracker = SightingTracker()
        self.poll_interval = poll_interval or config.watch.poll_interval
        self.autostart = autostart

        if sinks is None:
            sinks = [ToastQueue(), LogSink(), DesktopNotifier()]
        self.sinks: List[NotificationSink] = list(sinks)
        self.toasts: Optional[ToastQueue] = next(
            (s for s in self.sinks if isinstance(s, ToastQueue)), None
        )

        self._watch = watch_area or WatchArea.from_config()
        self._generation = 0
        self._state_lock = threading.RLock()
        self._poll_lock = threading.Lock()

        # Polling thread
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        # Statistics
        self._poll_count = 0
        self._error_count = 0
        self._discarded_count = 0
        self._alert_count = 0
        self._last_poll_time: float = 0
        self._last_error: Optional[str] = None

        # Callbacks for external integration
        self._on_poll_callbacks: List[Callable[[PollResult], None]] = []

    # ------------------------------------------------------------------
    # Watch area setup
    # ------------------------------------------------------------------

    @property
    def watch_area(self) -> WatchArea:
        with self._state_lock:
            return self._watch

    def set_watch_area(self, area: WatchArea) -> WatchArea:
        """
        Replace the watch area.

        Any poll in flight is discarded at commit time. Moving or resizing
        the area, or switching it off, starts visit tracking afresh.
        """
        return self._update_watch_area(lambda _: area)

    def _update_watch_area(self, change: Callable[[WatchArea], WatchArea]) -> WatchArea:
        with self._state_lock:
            previous = self._watch
            area = change(previous)
            self._watch = area
            self._generation += 1

            if not area.same_geometry(previous) or not area.active:
                self.tracker.reset()
            if not area.active:
                self.cache.clear()

        logger.info(
            f'Watch area set to ({area.latitude:.4f}, {area.longitude:.4f}) '
            f'r={area.radius_km}km models={len(area.models)} active={area.active}'
        )

        # Thread control stays outside the lock; the poll thread needs it to finish
        if self.autostart:
            if area.active and not self.is_running:
                self.start()
            elif not area.active and self.is_running:
                self.stop()

        return area

    def set_location(self, latitude: float, longitude: float, radius_km: float) -> WatchArea:
        return self._update_watch_area(lambda w: w.with_location(latitude, longitude, radius_km))

    def set_models(self, models: Iterable[str]) -> WatchArea:
        models = list(models)
        return self._update_watch_area(lambda w: w.with_models(models))

    def toggle(self) -> WatchArea:
        return self._update_watch_area(lambda w: w.toggled())

    def add_poll_callback(self, callback: Callable[[PollResult], None]) -> None:
        """Register callback to be invoked after each committed poll."""
        self._on_poll_callbacks.append(callback)

    # ------------------------------------------------------------------
    # Poll cycle
    # ------------------------------------------------------------------

    def _snapshot_watch(self) -> Tuple[WatchArea, int]:
        with self._state_lock:
            return self._watch, self._generation

    def _run_cycle(self, watch: WatchArea) -> Tuple[List[TrackedAircraft], List[Notification], SightingPlan]:
        """
        Fetch, resolve and match without changing any shared state.

        Raises FeedError when the position feed is unavailable.
        """
        states = self.geo.get_aircraft_in_radius(
            watch.latitude,
            watch.longitude,
            watch.radius_km,
            strict=True,
        )

        records = self.resolver.resolve_batch(sv.icao24 for sv in states)
        plan = self.tracker.plan(sv.icao24 for sv in states)

        tracked: List[TrackedAircraft] = []
        notifications: List[Notification] = []

        for sv in states:
            distance_km = sv.distance_to(watch.latitude, watch.longitude)
            record = records.get(sv.icao24)
            model_key = record.model_key if record else None
            matches = watch.watches(model_key)
            is_new = plan.is_new(sv.icao24)

            if plan.should_alert(sv.icao24, matches):
                plan.mark_alerted(sv.icao24)
                notifications.append(build_notification(
                    icao24=sv.icao24,
                    model_key=model_key,
                    model_name=model_name(model_key) or model_key,
                    distance_km=distance_km,
                    callsign=sv.callsign,
                    registration=record.registration if record else None,
                    type_name=record.type_name if record else None,
                    altitude_m=sv.baro_altitude,
                ))

            tracked.append(TrackedAircraft(
                state=sv,
                distance_km=distance_km,
                type_record=record,
                model_key=model_key,
                matched=matches,
                is_new=is_new,
                alerted=plan.state_of(sv.icao24) == VisitState.ALERTED,
                photo=self.resolver.photo_urls(sv.icao24),
            ))

        return tracked, notifications, plan

    def poll(self) -> Optional[PollResult]:
        """
        Execute one poll cycle.

        Returns the committed PollResult, or None when the area is
        inactive, the poll failed, or the result went stale.
        """
        with self._poll_lock:
            watch, generation = self._snapshot_watch()
            if not watch.active:
                logger.debug('Watch area inactive, skipping poll')
                return None

            start_time = time.perf_counter()
            try:
                tracked, notifications, plan = self._run_cycle(watch)
            except Exception as e:
                self._error_count += 1
                self._last_error = f'Failed to fetch aircraft data: {e}'
                logger.error(f'Poll error: {e}')
                return None

            with self._state_lock:
                if generation != self._generation or not self._watch.active:
                    self._discarded_count += 1
                    logger.info('Watch area changed during poll, discarding result')
                    return None

                self.tracker.commit(plan)
                self.cache.publish(tracked)
                self._poll_count += 1
                self._last_poll_time = time.time()
                self._last_error = None
                self._alert_count += len(notifications)

            result = PollResult(
                aircraft=tracked,
                notifications=notifications,
                duration_ms=(time.perf_counter() - start_time) * 1000,
            )

        for notification in notifications:
            dispatch(notification, self.sinks)

        logger.info(
            f'Poll complete: {len(tracked)} aircraft in area, '
            f'{sum(1 for a in tracked if a.matched)} matching, '
            f'{len(notifications)} new alert(s)'
        )

        for callback in self._on_poll_callbacks:
            try:
                callback(result)
            except Exception as e:
                logger.error(f'Poll callback error: {e}')

        return result

    def refresh(self) -> Optional[PollResult]:
        """Run a poll now, outside the regular cadence."""
        logger.debug('Manual refresh requested')
        return self.poll()

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def run_continuous(
        self,
        interval: Optional[float] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        """
        Poll immediately, then every interval seconds until stopped.

        This method blocks - use start() for non-blocking. Background
        threads each get their own stop_event; once set it is never cleared.
        """
        interval = interval or self.poll_interval
        stop_event = stop_event or self._stop_event
        logger.info(f'Starting alert polling (interval={interval}s)')

        while not stop_event.is_set():
            self.poll()
            stop_event.wait(interval)

        logger.info('Alert polling stopped')

    def start(self, interval: Optional[float] = None) -> None:
        """Start polling in a background thread."""
        if self.is_running:
            logger.warning('Alert polling already running')
            return

        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self.run_continuous,
            args=(interval, self._stop_event),
            name='alert-engine',
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Stop background polling. A poll in flight is allowed to finish."""
        self._stop_event.set()
        thread = self._thread
        if thread and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning('Alert polling thread still finishing a poll')
        self._thread = None

    @property
    def is_running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def stats(self) -> dict:
        """Get engine statistics."""
        return {
            'running': self.is_running,
            'poll_count': self._poll_count,
            'error_count': self._error_count,
            'discarded_count': self._discarded_count,
            'alert_count': self._alert_count,
            'last_poll_time': self._last_poll_time,
            'last_error': self._last_error,
            'poll_interval': self.poll_interval,
            'tracked': len(self.tracker),
            'alerted': len(self.tracker.alerted),
            'type_cache': self.resolver.stats,
        }
