"""
Calendar arithmetic for source periods.

Period ids follow ``YYYYMmm`` (monthly), ``YYYYBMmmA`` / ``YYYYBMmmB``
(bi-monthly halves split after day 15) and ``YYYYWnn`` (weekly, Sunday
start). A week belongs to the year its Sunday falls in, so the days before a
year's first Sunday are covered by the previous year's last week.
"""

from datetime import date, timedelta

from ..constants import (
    BI_MONTHLY_SPLIT_DAY,
    DAYS_IN_WEEK,
    PERIOD_BI_MONTHLY,
    PERIOD_MONTHLY,
    PERIOD_WEEKLY,
)
from .allocation_utils import days_in_month

# Sunday as 0, matching the stored metadata
WEEK_START_DAY = 0


def first_sunday(year):
    jan_first = date(year, 1, 1)
    # date.weekday(): Monday is 0, Sunday is 6
    return jan_first + timedelta(days=(6 - jan_first.weekday()) % 7)


def monthly_periods(year):
    periods = []
    for month in range(1, 13):
        periods.append(
            {
                "period_id": f"{year}M{month:02d}",
                "type": PERIOD_MONTHLY,
                "start_date": date(year, month, 1),
                "end_date": date(year, month, days_in_month(date(year, month, 1))),
                "year": year,
                "index": int(f"{year}{month:02d}"),
                "metadata": {"month": month, "weekStartDay": WEEK_START_DAY},
            }
        )
    return periods


def bi_monthly_periods(year):
    periods = []
    for month in range(1, 13):
        last_day = days_in_month(date(year, month, 1))
        halves = (
            ("A", 1, date(year, month, 1), date(year, month, BI_MONTHLY_SPLIT_DAY)),
            ("B", 2, date(year, month, BI_MONTHLY_SPLIT_DAY + 1), date(year, month, last_day)),
        )
        for suffix, half, start, end in halves:
            periods.append(
                {
                    "period_id": f"{year}BM{month:02d}{suffix}",
                    "type": PERIOD_BI_MONTHLY,
                    "start_date": start,
                    "end_date": end,
                    "year": year,
                    "index": int(f"{year}{month:02d}{half}"),
                    "metadata": {
                        "month": month,
                        "biMonthlyHalf": half,
                        "weekStartDay": WEEK_START_DAY,
                    },
                }
            )
    return periods


def weekly_periods(year):
    periods = []
    week_start = first_sunday(year)
    week_number = 1
    while week_start.year == year:
        week_end = week_start + timedelta(days=DAYS_IN_WEEK - 1)
        periods.append(
            {
                "period_id": f"{year}W{week_number:02d}",
                "type": PERIOD_WEEKLY,
                "start_date": week_start,
                "end_date": week_end,
                "year": year,
                "index": int(f"{year}{week_number:02d}"),
                "metadata": {
                    "weekNumber": week_start.isocalendar()[1],
                    "weekStartDay": WEEK_START_DAY,
                },
            }
        )
        week_start += timedelta(days=DAYS_IN_WEEK)
        week_number += 1
    return periods


def build_source_periods(year):
    """All source period definitions of every type for one calendar year."""
    return monthly_periods(year) + bi_monthly_periods(year) + weekly_periods(year)
