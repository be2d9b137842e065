# tests/unit/test_comparison.py
"""
Unit Tests for the Period Comparison Engine
Tests aggregation, windowing, deltas and previous-period fallbacks
"""

from datetime import date

import pytest

from tiktok_analytics.domain.models import DateRange, PeriodSummary
from tiktok_analytics.services.comparison import (
    FixedSummary,
    OmitComparison,
    ProportionalEstimate,
    compare,
    compare_with_fallback,
    describe_change,
    engagement_rate,
    parse_date,
    percent_change,
    previous_window,
    resolve_fallback_policy,
    summarize,
)
from tiktok_analytics.services.exceptions import ValidationError


# ============================================================================
# Aggregation Tests
# ============================================================================


class TestSummarize:
    """Test PeriodSummary aggregation"""

    def test_empty_input_is_all_zero(self):
        """No videos yields a zero summary"""
        summary = summarize([])

        assert summary == PeriodSummary()
        assert summary.total_views == 0
        assert summary.avg_watch_time == 0
        assert summary.engagement_rate == 0

    def test_totals_are_field_sums(self, video_factory):
        """Count totals equal the per-field sums"""
        videos = [
            video_factory("a", views=1000, likes=100, comments=10, shares=5, new_followers=3),
            video_factory("b", views=2000, likes=150, comments=20, shares=15, new_followers=7),
        ]

        summary = summarize(videos)

        assert summary.total_views == 3000
        assert summary.total_likes == 250
        assert summary.total_comments == 30
        assert summary.total_shares == 20
        assert summary.total_new_followers == 10

    def test_engagement_rate_rounded(self, video_factory):
        """Engagement is (likes+comments+shares)/views*100 rounded to 2 places"""
        videos = [video_factory(views=3000, likes=100, comments=0, shares=0)]

        assert summarize(videos).engagement_rate == 3.33

    def test_zero_views_engagement_is_zero(self, video_factory):
        """No division by zero when there are no views"""
        videos = [video_factory(views=0, likes=5, comments=1, shares=1)]

        assert summarize(videos).engagement_rate == 0

    def test_watch_time_is_unweighted_mean(self, video_factory):
        """Average watch time ignores view counts"""
        videos = [
            video_factory("a", views=10, avg_watch_time=10.0),
            video_factory("b", views=100_000, avg_watch_time=20.0),
            video_factory("c", views=50, avg_watch_time=25.0),
        ]

        assert summarize(videos).avg_watch_time == pytest.approx(18.33)

    def test_idempotent(self, video_factory):
        """Summarizing the same input twice gives the same result"""
        videos = [video_factory("a"), video_factory("b", views=5000)]

        assert summarize(videos) == summarize(videos)

    def test_engagement_rate_helper(self):
        assert engagement_rate(1000, 80, 10, 10) == 10.0
        assert engagement_rate(0, 80, 10, 10) == 0.0


# ============================================================================
# Windowing Tests
# ============================================================================


class TestPreviousWindow:
    """Test previous-period window computation"""

    def test_seven_day_window(self):
        """A week maps to the week before it"""
        assert previous_window("2024-01-08", "2024-01-14") == (
            date(2024, 1, 1),
            date(2024, 1, 7),
        )

    def test_single_day_window(self):
        assert previous_window(date(2024, 3, 1), date(2024, 3, 1)) == (
            date(2024, 2, 29),
            date(2024, 2, 29),
        )

    def test_crosses_year_boundary(self):
        assert previous_window("2024-01-01", "2024-01-10") == (
            date(2023, 12, 22),
            date(2023, 12, 31),
        )

    @pytest.mark.parametrize(
        "start,end",
        [
            (date(2024, 1, 8), date(2024, 1, 14)),
            (date(2024, 3, 1), date(2024, 3, 1)),
            (date(2024, 1, 1), date(2024, 1, 10)),
        ],
    )
    def test_date_range_previous_matches(self, start, end):
        prev = DateRange(start, end).previous()

        assert (prev.start, prev.end) == previous_window(start, end)
        assert prev.days == DateRange(start, end).days

    def test_reversed_window_rejected(self):
        with pytest.raises(ValidationError):
            previous_window("2024-01-14", "2024-01-08")

    def test_invalid_date_string_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_date("14/01/2024", "start_date")

        assert exc_info.value.field == "start_date"


# ============================================================================
# Comparison Tests
# ============================================================================


class TestCompare:
    """Test delta computation"""

    def test_zero_to_zero_is_zero(self):
        assert percent_change(0, 0) == 0

    def test_growth_from_zero_is_hundred(self):
        assert percent_change(100, 0) == 100

    def test_relative_change(self):
        assert percent_change(1500, 1000) == 50.0
        assert percent_change(500, 1000) == -50.0

    def test_engagement_delta_in_percentage_points(self):
        """10% vs 8% is +2 points, not +25%"""
        current = PeriodSummary(total_views=1000, engagement_rate=10.0)
        previous = PeriodSummary(total_views=1000, engagement_rate=8.0)

        result = compare(current, previous)

        assert result.delta.engagement_rate == 2.0
        assert result.delta.total_views == 0.0

    def test_compare_all_count_fields(self):
        current = PeriodSummary(
            total_views=1500,
            total_likes=200,
            total_comments=0,
            total_shares=30,
            total_new_followers=10,
        )
        previous = PeriodSummary(
            total_views=1000,
            total_likes=100,
            total_comments=0,
            total_shares=0,
            total_new_followers=20,
        )

        delta = compare(current, previous).delta

        assert delta.total_views == 50.0
        assert delta.total_likes == 100.0
        assert delta.total_comments == 0
        assert delta.total_shares == 100
        assert delta.total_new_followers == -50.0

    def test_compare_never_raises_on_empty(self):
        result = compare(PeriodSummary(), PeriodSummary())

        assert result.delta.total_views == 0
        assert result.previous_estimated is False

    def test_to_dict_shape(self):
        data = compare(PeriodSummary(), PeriodSummary()).to_dict()

        assert set(data) == {"current", "previous", "delta", "previous_estimated"}
        assert "engagement_rate" in data["delta"]


class TestDescribeChange:
    """Test the change phrases used on period reports"""

    @pytest.mark.parametrize(
        "change,expected",
        [
            (0.05, "almost no change"),
            (-0.05, "almost no change"),
            (3, "up slightly"),
            (7, "rising gradually"),
            (12, "improving"),
            (20, "growing steadily"),
            (30, "improving markedly"),
            (80, "growing sharply"),
            (-3, "down slightly"),
            (-60, "dropping sharply"),
        ],
    )
    def test_tiers(self, change, expected):
        assert describe_change(change) == expected


# ============================================================================
# Fallback Policy Tests
# ============================================================================


class TestFallbackPolicies:
    """Test previous-period substitutes"""

    def setup_method(self):
        self.current = PeriodSummary(
            total_views=1000,
            total_likes=100,
            total_comments=10,
            total_shares=10,
            total_new_followers=5,
            avg_watch_time=21.0,
            engagement_rate=12.0,
        )

    def test_omit_produces_no_comparison(self):
        assert compare_with_fallback(self.current, OmitComparison()) is None

    def test_proportional_is_deterministic(self):
        policy = ProportionalEstimate(0.8)

        first = compare_with_fallback(self.current, policy)
        second = compare_with_fallback(self.current, policy)

        assert first == second
        assert first.previous_estimated is True
        assert first.previous.total_views == 800
        assert first.previous.total_likes == 80
        assert first.previous.total_new_followers == 4
        assert first.previous.avg_watch_time == 16.8
        assert first.delta.total_views == 25.0

    def test_proportional_recomputes_engagement(self):
        estimate = ProportionalEstimate(0.5).estimate(self.current)

        assert estimate.engagement_rate == engagement_rate(
            estimate.total_views,
            estimate.total_likes,
            estimate.total_comments,
            estimate.total_shares,
        )

    def test_proportional_rejects_non_positive_factor(self):
        with pytest.raises(ValidationError):
            ProportionalEstimate(0)

    def test_fixed_summary(self):
        baseline = PeriodSummary(total_views=500)

        result = compare_with_fallback(self.current, FixedSummary(baseline))

        assert result.previous == baseline
        assert result.delta.total_views == 100.0
        assert result.previous_estimated is True

    def test_resolve_policy_by_name(self):
        assert isinstance(resolve_fallback_policy("omit"), OmitComparison)
        policy = resolve_fallback_policy("proportional", 0.5)
        assert isinstance(policy, ProportionalEstimate)
        assert policy.factor == 0.5

        with pytest.raises(ValidationError):
            resolve_fallback_policy("random")
