import logging
from collections.abc import Callable, Sequence
from typing import Protocol

from app.models.job import JobStatus, UrgencyLevel
from app.schemas.map import DISTANCE_UNLIMITED_KM, FilterState, JobPin
from app.services.geo import haversine_km

logger = logging.getLogger(__name__)

URGENT_LEVELS = frozenset({UrgencyLevel.HIGH, UrgencyLevel.URGENT, UrgencyLevel.EMERGENCY})

# Placeholder heuristics for the "suggested" and "newest" views
SUGGESTED_MIN_BUDGET = 50.0
NEWEST_LIMIT = 5


class ViewFilter(Protocol):
    def __call__(self, listings: list[JobPin]) -> list[JobPin]: ...


def accepted_view(listings: list[JobPin]) -> list[JobPin]:
    return [job for job in listings if job.status == JobStatus.ACCEPTED]


def suggested_view(listings: list[JobPin]) -> list[JobPin]:
    return [
        job for job in listings
        if job.is_neighbor_posted and job.budget_min is not None and job.budget_min > SUGGESTED_MIN_BUDGET
    ]


def newest_view(listings: list[JobPin]) -> list[JobPin]:
    return sorted(listings, key=lambda job: job.created_at, reverse=True)[:NEWEST_LIMIT]


# Applied in this order after the predicates; swap entries to change a view.
VIEW_FILTERS: dict[str, tuple[Callable[[FilterState], bool], ViewFilter]] = {
    "accepted": (lambda f: f.show_accepted, accepted_view),
    "suggested": (lambda f: f.show_suggested, suggested_view),
    "newest": (lambda f: f.show_newest, newest_view),
}


def _predicates(
    filters: FilterState, user_location: tuple[float, float] | None
) -> list[Callable[[JobPin], bool]]:
    predicates: list[Callable[[JobPin], bool]] = []

    if filters.show_urgent:
        predicates.append(lambda job: job.urgency_level in URGENT_LEVELS)

    if filters.show_verified_pay:
        predicates.append(lambda job: job.is_verified_payment)

    if filters.show_neighbors:
        predicates.append(lambda job: job.is_neighbor_posted)

    if filters.min_pay_rate > 0:
        threshold = filters.min_pay_rate
        predicates.append(lambda job: job.budget_min is not None and job.budget_min >= threshold)

    if user_location is not None and filters.max_distance_km < DISTANCE_UNLIMITED_KM:
        user_lat, user_lng = user_location
        max_km = filters.max_distance_km
        predicates.append(lambda job: haversine_km(user_lat, user_lng, job.lat, job.lng) <= max_km)

    if filters.category_filter_active:
        categories = filters.categories
        predicates.append(lambda job: job.category_id in categories)

    return predicates


def apply_filters(
    listings: Sequence[JobPin],
    filters: FilterState,
    user_location: tuple[float, float] | None = None,
) -> list[JobPin]:
    """Apply predicates and views without the empty-result fallback."""
    predicates = _predicates(filters, user_location)
    result = [job for job in listings if all(p(job) for p in predicates)]

    for enabled, view in VIEW_FILTERS.values():
        if enabled(filters):
            result = view(result)

    return result


def filter_listings(
    listings: Sequence[JobPin],
    filters: FilterState,
    user_location: tuple[float, float] | None = None,
) -> list[JobPin]:
    """Return the visible subset of ``listings`` for ``filters``.

    With no active filter the input is returned as-is. If the filters would
    hide every listing of a non-empty input, the unfiltered input is returned
    instead of an empty map.
    """
    if filters.is_default:
        return list(listings)

    result = apply_filters(listings, filters, user_location)
    if not result and listings:
        logger.info("Filters excluded all %d listings, falling back to unfiltered set", len(listings))
        return list(listings)
    return result
