"""
Per-aircraft visit tracking.

Each ICAO24 address seen inside the watch area is in one of three states:

    ABSENT     not in the latest poll (not stored)
    UNALERTED  present, no notification yet during this visit
    ALERTED    present, notified once during this visit

A visit is one continuous run of polls in which the aircraft is present.
Dropping out of a single poll ends the visit, so a later re-entry is
treated as new and may alert again.

Updates are two-phase: plan() computes the next mapping without touching
the committed one, commit() swaps it in. A poll that fails halfway never
reaches commit() and leaves tracking as it was.
"""

import threading
from enum import Enum
from typing import Dict, Iterable, Mapping, Set


class VisitState(str, Enum):
    """Visit state of one tracked aircraft."""
    ABSENT = 'absent'
    UNALERTED = 'unalerted'
    ALERTED = 'alerted'


class SightingPlan:
    """Pending next state for one poll cycle."""

    def __init__(self, previous: Mapping[str, VisitState], present: Iterable[str]):
        self._previous = previous
        self.states: Dict[str, VisitState] = {}
        for icao24 in present:
            if previous.get(icao24) == VisitState.ALERTED:
                self.states[icao24] = VisitState.ALERTED
            else:
                self.states[icao24] = VisitState.UNALERTED

    def is_new(self, icao24: str) -> bool:
        """True when the aircraft was not present in the previous poll."""
        return icao24 not in self._previous

    def state_of(self, icao24: str) -> VisitState:
        return self.states.get(icao24, VisitState.ABSENT)

    def should_alert(self, icao24: str, matches: bool) -> bool:
        """Alert on a matching aircraft that is new and not yet alerted."""
        return (
            matches
            and self.is_new(icao24)
            and self.states.get(icao24) == VisitState.UNALERTED
        )

    def mark_alerted(self, icao24: str) -> None:
        if icao24 not in self.states:
            raise KeyError(f'{icao24} is not present in this poll')
        self.states[icao24] = VisitState.ALERTED


class SightingTracker:
    """Committed visit state for all aircraft currently in the area."""

    def __init__(self):
        self._states: Dict[str, VisitState] = {}
        self._lock = threading.Lock()

    def plan(self, present: Iterable[str]) -> SightingPlan:
        with self._lock:
            previous = dict(self._states)
        return SightingPlan(previous, present)

    def commit(self, plan: SightingPlan) -> None:
        """Replace the committed state with the plan's, in one step."""
        with self._lock:
            self._states = dict(plan.states)

    def reset(self) -> None:
        with self._lock:
            self._states = {}

    def state_of(self, icao24: str) -> VisitState:
        with self._lock:
            return self._states.get(icao24, VisitState.ABSENT)

    @property
    def alerted(self) -> Set[str]:
        with self._lock:
            return {k for k, v in self._states.items() if v == VisitState.ALERTED}

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)
