"""Synthetic "live activity" markers shown on an active map view.

Each marker walks a small state machine::

    visible_with_label --(label timeout)--> visible_without_label --(dot timeout)--> removed

Pinning a marker suspends the timers until it is unpinned; closing removes it
immediately. Time is always passed in by the caller so a feed can be driven by
a real ticker or by a test clock.
"""
import logging
import random
from dataclasses import dataclass, field
from enum import StrEnum

from app.schemas.map import ALL_CATEGORIES
from app.services.geo import Bounds, random_point_in_bounds
from app.services.markers import CATEGORY_COLORS

logger = logging.getLogger(__name__)

MAX_ACTIVITIES = 10
FIRST_SPAWN_DELAY = 1.0
SPAWN_INTERVAL = 20.0
LABEL_SECONDS = 5.0
DOT_SECONDS = 15.0

SAMPLE_OFFERS = [
    {"title": "Plumbing Repair", "price": "$120", "time": "2:00 PM Today", "urgency": "high"},
    {"title": "Electrical Work", "price": "$180", "time": "Tomorrow", "urgency": "medium"},
    {"title": "House Cleaning", "price": "$90", "time": "10:00 AM Tomorrow", "urgency": "low"},
    {"title": "Furniture Assembly", "price": "$75", "time": "3:30 PM Today", "urgency": "medium"},
    {"title": "Moving Help", "price": "$200", "time": "Friday 2:00 PM", "urgency": "high"},
]


class ActivityState(StrEnum):
    VISIBLE_WITH_LABEL = "visible_with_label"
    VISIBLE_WITHOUT_LABEL = "visible_without_label"
    REMOVED = "removed"


@dataclass
class ActivityMarker:
    id: str
    lat: float
    lng: float
    category_id: str
    created_at: float
    offer: dict = field(default_factory=dict)
    state: ActivityState = ActivityState.VISIBLE_WITH_LABEL
    pinned: bool = False
    deadline: float | None = None

    def __post_init__(self):
        if self.deadline is None and self.state == ActivityState.VISIBLE_WITH_LABEL:
            self.deadline = self.created_at + LABEL_SECONDS

    def advance(self, now: float) -> bool:
        """Apply any timer transitions due at ``now``. Returns True if the state changed."""
        if self.pinned or self.deadline is None:
            return False

        changed = False
        while self.deadline is not None and now >= self.deadline:
            if self.state == ActivityState.VISIBLE_WITH_LABEL:
                self.state = ActivityState.VISIBLE_WITHOUT_LABEL
                self.deadline += DOT_SECONDS
            else:
                self.state = ActivityState.REMOVED
                self.deadline = None
            changed = True
        return changed

    def pin(self) -> None:
        if self.state == ActivityState.REMOVED:
            return
        self.pinned = True
        self.state = ActivityState.VISIBLE_WITH_LABEL
        self.deadline = None

    def unpin(self, now: float) -> None:
        if self.state == ActivityState.REMOVED or not self.pinned:
            return
        self.pinned = False
        self.state = ActivityState.VISIBLE_WITH_LABEL
        self.deadline = now + LABEL_SECONDS

    def close(self) -> None:
        self.pinned = False
        self.state = ActivityState.REMOVED
        self.deadline = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "lat": self.lat,
            "lng": self.lng,
            "category_id": self.category_id,
            "color": CATEGORY_COLORS.get(self.category_id),
            "state": self.state.value,
            "pinned": self.pinned,
            **self.offer,
        }


@dataclass(frozen=True)
class ActivityEvent:
    type: str  # spawned, updated, removed
    marker: ActivityMarker
    generation: int

    def to_dict(self) -> dict:
        return {"type": f"activity_{self.type}", "generation": self.generation, "data": self.marker.to_dict()}


class ActivityFeed:
    """Markers for one map view, spawned on a fixed cadence up to a ceiling."""

    def __init__(self, rng: random.Random | None = None, max_markers: int = MAX_ACTIVITIES):
        self.rng = rng or random.Random()
        self.max_markers = max_markers
        self.bounds: Bounds | None = None
        self.categories: frozenset[str] = frozenset()
        self.markers: dict[str, ActivityMarker] = {}
        self.generation = 0
        self.next_spawn_at: float | None = None
        self._seq = 0

    def set_bounds(self, bounds: Bounds, now: float) -> None:
        # Supersedes whatever was scheduled for the previous viewport
        self.bounds = bounds
        self.generation += 1
        self.next_spawn_at = now + FIRST_SPAWN_DELAY

    def set_categories(self, categories: set[str]) -> list[ActivityEvent]:
        # "all" selects every category, same as an empty selection
        self.categories = frozenset() if ALL_CATEGORIES in categories else frozenset(categories)
        if not self.categories:
            return []
        events = []
        for marker in list(self.markers.values()):
            if marker.category_id not in self.categories:
                marker.close()
                events.append(self._remove(marker))
        return events

    def tick(self, now: float) -> list[ActivityEvent]:
        events = []
        for marker in list(self.markers.values()):
            if marker.advance(now):
                if marker.state == ActivityState.REMOVED:
                    events.append(self._remove(marker))
                else:
                    events.append(ActivityEvent("updated", marker, self.generation))

        if self.bounds is not None and self.next_spawn_at is not None and now >= self.next_spawn_at:
            if len(self.markers) < self.max_markers:
                marker = self._spawn(now)
                if marker is not None:
                    events.append(ActivityEvent("spawned", marker, self.generation))
            self.next_spawn_at = now + SPAWN_INTERVAL

        return events

    def pin(self, marker_id: str) -> ActivityEvent | None:
        marker = self.markers.get(marker_id)
        if marker is None:
            return None
        marker.pin()
        return ActivityEvent("updated", marker, self.generation)

    def unpin(self, marker_id: str, now: float) -> ActivityEvent | None:
        marker = self.markers.get(marker_id)
        if marker is None:
            return None
        marker.unpin(now)
        return ActivityEvent("updated", marker, self.generation)

    def close(self, marker_id: str) -> ActivityEvent | None:
        marker = self.markers.get(marker_id)
        if marker is None:
            return None
        marker.close()
        return self._remove(marker)

    def _remove(self, marker: ActivityMarker) -> ActivityEvent:
        self.markers.pop(marker.id, None)
        return ActivityEvent("removed", marker, self.generation)

    def _pick_category(self) -> str:
        available = sorted(c for c in CATEGORY_COLORS if not self.categories or c in self.categories)
        if not available:
            available = sorted(CATEGORY_COLORS)
        return self.rng.choice(available)

    def _spawn(self, now: float) -> ActivityMarker | None:
        point = random_point_in_bounds(self.bounds, self.rng)
        if point is None:
            logger.debug("No land point found in viewport, skipping activity spawn")
            return None

        self._seq += 1
        marker = ActivityMarker(
            id=f"activity-{self.generation}-{self._seq}",
            lat=point[0],
            lng=point[1],
            category_id=self._pick_category(),
            created_at=now,
            offer=dict(self.rng.choice(SAMPLE_OFFERS)),
        )
        self.markers[marker.id] = marker
        return marker
