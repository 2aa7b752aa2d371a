"""
Day-weighted proration of a budget amount into periods of any granularity.

A budget is defined in one native period type. Its amount is spread over the
days of each native period and summed over the days of the target period, so
weekly, bi-monthly and monthly allocations tiling the same span agree to the
cent. Rounding happens once, after the whole target has been walked.
"""

import calendar
import logging
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal

from ..constants import (
    BI_MONTHLY_SPLIT_DAY,
    DAYS_IN_WEEK,
    PERIOD_BI_MONTHLY,
    PERIOD_MONTHLY,
    PERIOD_TYPE_VALUES,
    PERIOD_WEEKLY,
)

# Get structured logger for this module
logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def days_in_month(day):
    """Number of days in the month containing ``day``."""
    return calendar.monthrange(day.year, day.month)[1]


def days_inclusive(start, end):
    """Number of calendar days in ``[start, end]``; zero if the range is empty."""
    if start is None or end is None or end < start:
        return 0
    return (end - start).days + 1


def round_to_cents(value):
    """Round half up to two decimal places."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def clip_to_window(start, end, window_start=None, window_end=None):
    """
    Intersect ``[start, end]`` with an optional active window.

    Returns:
        tuple: (clipped_start, clipped_end), or None when they do not overlap
    """
    if window_start is not None and window_start > start:
        start = window_start
    if window_end is not None and window_end < end:
        end = window_end
    if end < start:
        return None
    return start, end


def daily_rate(amount, native_type, day):
    """
    Share of a native-period ``amount`` that falls on ``day``.

    Monthly budgets spread over the days of their month, bi-monthly budgets
    over the days of their half (1-15 or 16-end) and weekly budgets over 7.
    """
    amount = Decimal(amount)
    if native_type == PERIOD_MONTHLY:
        return amount / days_in_month(day)
    if native_type == PERIOD_BI_MONTHLY:
        if day.day <= BI_MONTHLY_SPLIT_DAY:
            return amount / BI_MONTHLY_SPLIT_DAY
        return amount / (days_in_month(day) - BI_MONTHLY_SPLIT_DAY)
    if native_type == PERIOD_WEEKLY:
        return amount / DAYS_IN_WEEK
    raise ValueError(f"Unknown period type: {native_type}")


def calculate_allocated_amount(
    amount,
    native_type,
    target_type,
    target_start,
    target_end,
    active_start=None,
    active_end=None,
):
    """
    Prorate a budget amount into one target period.

    Args:
        amount: Budget amount for one native period
        native_type: Budget's own period type
        target_type: Period type of the target period
        target_start: First day of the target period
        target_end: Last day of the target period (inclusive)
        active_start: Optional first day the budget is active
        active_end: Optional last day the budget is active

    Returns:
        Decimal: Allocated amount rounded to cents

    Example:
        >>> calculate_allocated_amount(
        ...     Decimal("100"), "monthly", "monthly", date(2025, 3, 1), date(2025, 3, 31),
        ...     active_end=date(2025, 3, 19),
        ... )
        Decimal('61.29')
    """
    if native_type not in PERIOD_TYPE_VALUES:
        raise ValueError(f"Unknown period type: {native_type}")

    amount = Decimal(amount)
    clipped = clip_to_window(target_start, target_end, active_start, active_end)
    if clipped is None:
        return ZERO

    if native_type == target_type and clipped == (target_start, target_end):
        return round_to_cents(amount)

    start, end = clipped
    total = Decimal("0")
    day = start
    while day <= end:
        total += daily_rate(amount, native_type, day)
        day += timedelta(days=1)

    allocated = round_to_cents(total)
    logger.debug(
        "Allocated amount calculated",
        extra={
            "native_type": native_type,
            "target_type": target_type,
            "target_start": str(target_start),
            "target_end": str(target_end),
            "active_days": days_inclusive(start, end),
            "allocated": str(allocated),
            "action": "allocation_calculated",
            "component": "allocation_utils",
        },
    )
    return allocated


def allocate(budget_amount, native_type, target_period, active_start=None, active_end=None):
    """Prorate into a source period (anything with ``type``, ``start_date``, ``end_date``)."""
    return calculate_allocated_amount(
        budget_amount,
        native_type,
        target_period.type,
        target_period.start_date,
        target_period.end_date,
        active_start=active_start,
        active_end=active_end,
    )
