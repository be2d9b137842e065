"""
Date-range presets for the dashboard
"""

from datetime import date, timedelta
from typing import Dict, Optional

from tiktok_analytics.domain.models import DateRange
from tiktok_analytics.services.comparison import DateLike, parse_date
from tiktok_analytics.services.exceptions import ValidationError

# Days subtracted from today; today stays the (inclusive) end of the window
PRESET_DAYS: Dict[str, int] = {
    "7days": 7,
    "14days": 14,
    "21days": 21,
}

CUSTOM_PRESET = "custom"


def resolve_date_range(
    preset: str,
    today: Optional[date] = None,
    custom_start: Optional[DateLike] = None,
    custom_end: Optional[DateLike] = None,
) -> DateRange:
    """
    Resolve a named preset to a concrete inclusive window

    Args:
        preset: One of 7days, 14days, 21days or custom
        today: Anchor day (defaults to the local calendar day)
        custom_start: Start date, required for the custom preset
        custom_end: End date, required for the custom preset

    Returns:
        DateRange

    Raises:
        ValidationError: Unknown preset or incomplete/reversed custom range
    """
    if preset == CUSTOM_PRESET:
        if custom_start is None or custom_end is None:
            raise ValidationError(
                "Custom range needs both start_date and end_date", "preset"
            )
        return make_date_range(custom_start, custom_end)

    if preset not in PRESET_DAYS:
        raise ValidationError(f"Unknown date range preset: {preset}", "preset")

    anchor = today or date.today()
    return DateRange(anchor - timedelta(days=PRESET_DAYS[preset]), anchor)


def make_date_range(start: DateLike, end: DateLike) -> DateRange:
    """Build a validated DateRange from dates or YYYY-MM-DD strings"""
    start_day = parse_date(start, "start_date")
    end_day = parse_date(end, "end_date")
    if end_day < start_day:
        raise ValidationError(
            f"end_date {end_day} is before start_date {start_day}", "end_date"
        )
    return DateRange(start_day, end_day)
