"""
Display helpers for dashboard metrics.
"""

from statboard.core.config import DEFAULT_SUBS_BASELINE
from statboard.models import ChangeInfo


def get_today_subscription_count(current_total: int, baseline: int = DEFAULT_SUBS_BASELINE) -> int:
    """
    Subscriptions gained since the baseline.

    The count keeps accumulating from the baseline and never goes negative:
    baseline 2513 and total 2516 gives 3.
    """
    return max(0, current_total - baseline)


def calculate_change(current: int, previous: int) -> ChangeInfo:
    """Percentage change from previous to current."""
    if previous == 0:
        return ChangeInfo(
            percentage=100.0 if current > 0 else 0.0,
            is_increase=current > 0,
            is_equal=current == 0,
            absolute_change=current,
        )

    delta = current - previous
    return ChangeInfo(
        percentage=round(abs(delta / previous * 100), 1),
        is_increase=delta > 0,
        is_equal=delta == 0,
        absolute_change=abs(delta),
    )


def _trim(value: float) -> str:
    if value % 1 == 0:
        return str(int(value))
    return f"{value:.1f}"


def format_number(num: int) -> str:
    """
    Format a count for a stat card.

    Up to four digits are shown in full with separators ("9,999"); larger
    values use K and M suffixes ("10K", "12.5K", "1.5M").
    """
    if num < 10000:
        return f"{num:,}"
    if num < 1000000:
        return f"{_trim(num / 1000)}K"
    return f"{_trim(num / 1000000)}M"
