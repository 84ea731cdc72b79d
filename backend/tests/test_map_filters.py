from datetime import datetime, timedelta, timezone

import pytest

from app.models.job import JobStatus, UrgencyLevel
from app.schemas.map import FilterState
from app.services.map_filters import NEWEST_LIMIT, apply_filters, filter_listings

SF = (37.7749, -122.4194)


class TestFilterState:
    def test_default_state(self):
        assert FilterState().is_default

    def test_all_category_is_not_a_filter(self):
        state = FilterState(categories={"all", "transport"})
        assert not state.category_filter_active
        assert state.is_default

    def test_unlimited_distance_is_default(self):
        assert FilterState(max_distance_km=100).is_default
        assert not FilterState(max_distance_km=20).is_default


class TestPredicates:
    def test_urgent_filter(self, pin_factory):
        urgent = pin_factory(title="urgent", urgency_level=UrgencyLevel.URGENT)
        high = pin_factory(title="high", urgency_level=UrgencyLevel.HIGH)
        low = pin_factory(title="low", urgency_level=UrgencyLevel.LOW)
        result = filter_listings([urgent, high, low], FilterState(show_urgent=True))
        assert {p.title for p in result} == {"urgent", "high"}

    def test_verified_and_neighbor_combine(self, pin_factory):
        both = pin_factory(title="both", is_verified_payment=True, is_neighbor_posted=True)
        verified = pin_factory(title="verified", is_verified_payment=True)
        result = filter_listings([both, verified], FilterState(show_verified_pay=True, show_neighbors=True))
        assert [p.title for p in result] == ["both"]

    def test_min_pay_requires_budget(self, pin_factory):
        rich = pin_factory(title="rich", budget_min=200)
        poor = pin_factory(title="poor", budget_min=20)
        unknown = pin_factory(title="unknown", budget_min=None)
        result = filter_listings([rich, poor, unknown], FilterState(min_pay_rate=100))
        assert [p.title for p in result] == ["rich"]

    def test_distance_filter(self, pin_factory):
        near = pin_factory(title="near", lat=37.78, lng=-122.41)
        far = pin_factory(title="far", lat=37.3382, lng=-121.8863)  # San Jose
        result = filter_listings([near, far], FilterState(max_distance_km=10), user_location=SF)
        assert [p.title for p in result] == ["near"]

    def test_distance_ignored_without_location(self, pin_factory):
        near = pin_factory(title="near")
        far = pin_factory(title="far", lat=40.7128, lng=-74.0060)
        result = filter_listings([near, far], FilterState(max_distance_km=10))
        assert len(result) == 2

    def test_category_filter(self, pin_factory):
        handy = pin_factory(title="handy", category_id="handy-man")
        ride = pin_factory(title="ride", category_id="transport")
        result = filter_listings([handy, ride], FilterState(categories={"transport"}))
        assert [p.title for p in result] == ["ride"]


class TestViews:
    def test_accepted_view(self, pin_factory):
        accepted = pin_factory(title="accepted", status=JobStatus.ACCEPTED)
        new = pin_factory(title="new")
        result = filter_listings([accepted, new], FilterState(show_accepted=True))
        assert [p.title for p in result] == ["accepted"]

    def test_suggested_view(self, pin_factory):
        good = pin_factory(title="good", is_neighbor_posted=True, budget_min=80)
        cheap = pin_factory(title="cheap", is_neighbor_posted=True, budget_min=50)
        stranger = pin_factory(title="stranger", budget_min=500)
        result = filter_listings([good, cheap, stranger], FilterState(show_suggested=True))
        assert [p.title for p in result] == ["good"]

    def test_newest_view_keeps_latest(self, pin_factory):
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        pins = [pin_factory(title=f"job-{i}", created_at=base + timedelta(hours=i)) for i in range(8)]
        result = filter_listings(pins, FilterState(show_newest=True))
        assert len(result) == NEWEST_LIMIT
        assert [p.title for p in result] == ["job-7", "job-6", "job-5", "job-4", "job-3"]


class TestFallback:
    def test_all_excluded_returns_original(self, pin_factory):
        pins = [pin_factory(title=f"job-{i}") for i in range(3)]
        result = filter_listings(pins, FilterState(show_verified_pay=True))
        assert result == pins

    @pytest.mark.parametrize(
        "filters",
        [
            FilterState(show_urgent=True),
            FilterState(min_pay_rate=10_000),
            FilterState(categories={"healthcare"}),
            FilterState(show_accepted=True, show_neighbors=True),
        ],
    )
    def test_fallback_for_any_excluding_combination(self, pin_factory, filters):
        pins = [pin_factory(title="a"), pin_factory(title="b", budget_min=10)]
        assert apply_filters(pins, filters) == []
        assert filter_listings(pins, filters) == pins

    def test_empty_input_stays_empty(self):
        assert filter_listings([], FilterState(show_urgent=True)) == []

    def test_default_filters_return_input_unchanged(self, pin_factory):
        pins = [pin_factory(title="a"), pin_factory(title="b")]
        result = filter_listings(pins, FilterState())
        assert result == pins
        assert result is not pins

    def test_input_not_mutated(self, pin_factory):
        pins = [pin_factory(title="a", is_verified_payment=True), pin_factory(title="b")]
        snapshot = list(pins)
        filter_listings(pins, FilterState(show_verified_pay=True))
        assert pins == snapshot
