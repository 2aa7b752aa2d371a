from datetime import date
from decimal import Decimal

import pytest

from budgeting.utils.allocation_utils import (
    allocate,
    calculate_allocated_amount,
    clip_to_window,
    daily_rate,
    days_in_month,
    days_inclusive,
    round_to_cents,
)
from budgeting.utils.source_periods import bi_monthly_periods, monthly_periods

HUNDRED = Decimal("100.00")


class TestHelpers:
    def test_days_in_month_handles_leap_years(self):
        assert days_in_month(date(2024, 2, 10)) == 29
        assert days_in_month(date(2025, 2, 10)) == 28
        assert days_in_month(date(2025, 12, 31)) == 31

    def test_days_inclusive(self):
        assert days_inclusive(date(2025, 3, 1), date(2025, 3, 19)) == 19
        assert days_inclusive(date(2025, 3, 1), date(2025, 3, 1)) == 1
        assert days_inclusive(date(2025, 3, 2), date(2025, 3, 1)) == 0

    def test_round_to_cents_rounds_half_up(self):
        assert round_to_cents(Decimal("0.005")) == Decimal("0.01")
        assert round_to_cents(Decimal("61.2903")) == Decimal("61.29")
        assert round_to_cents(Decimal("86.6666")) == Decimal("86.67")

    def test_clip_to_window(self):
        start, end = date(2025, 3, 1), date(2025, 3, 31)
        assert clip_to_window(start, end) == (start, end)
        assert clip_to_window(start, end, window_end=date(2025, 3, 19)) == (
            start,
            date(2025, 3, 19),
        )
        assert clip_to_window(start, end, window_start=date(2025, 4, 1)) is None

    def test_daily_rate_per_native_type(self):
        assert daily_rate(Decimal("70"), "weekly", date(2025, 2, 3)) == Decimal("10")
        assert daily_rate(Decimal("150"), "bi_monthly", date(2025, 3, 15)) == Decimal("10")
        assert daily_rate(Decimal("160"), "bi_monthly", date(2025, 3, 16)) == Decimal("10")
        assert daily_rate(Decimal("280"), "monthly", date(2025, 2, 1)) == Decimal("10")

    def test_unknown_period_type_raises(self):
        with pytest.raises(ValueError):
            calculate_allocated_amount(
                HUNDRED, "yearly", "monthly", date(2025, 1, 1), date(2025, 1, 31)
            )


class TestCalculateAllocatedAmount:
    def test_same_type_full_period_is_identity(self):
        result = calculate_allocated_amount(
            HUNDRED, "monthly", "monthly", date(2025, 2, 1), date(2025, 2, 28)
        )
        assert result == HUNDRED

    def test_monthly_budget_partial_march(self):
        """$100 monthly budget active Feb 1 - Mar 19 2025."""
        window = {"active_start": date(2025, 2, 1), "active_end": date(2025, 3, 19)}
        february = calculate_allocated_amount(
            HUNDRED, "monthly", "monthly", date(2025, 2, 1), date(2025, 2, 28), **window
        )
        march = calculate_allocated_amount(
            HUNDRED, "monthly", "monthly", date(2025, 3, 1), date(2025, 3, 31), **window
        )
        assert february == Decimal("100.00")
        assert march == Decimal("61.29")
        assert february + march == Decimal("161.29")

    def test_bi_monthly_budget_partial_april_half(self):
        """$100 bi-monthly budget active Feb 1 - Apr 13 2025."""
        window = {"active_start": date(2025, 2, 1), "active_end": date(2025, 4, 13)}
        halves = [
            period
            for period in bi_monthly_periods(2025)
            if date(2025, 2, 1) <= period["start_date"] <= date(2025, 4, 13)
        ]
        amounts = [
            calculate_allocated_amount(
                HUNDRED,
                "bi_monthly",
                "bi_monthly",
                period["start_date"],
                period["end_date"],
                **window,
            )
            for period in halves
        ]
        assert amounts == [HUNDRED, HUNDRED, HUNDRED, HUNDRED, Decimal("86.67")]

    def test_monthly_into_weekly_spanning_month_boundary(self):
        # 6 January days at 100/31 plus 1 February day at 100/28
        result = calculate_allocated_amount(
            HUNDRED, "monthly", "weekly", date(2025, 1, 26), date(2025, 2, 1)
        )
        assert result == Decimal("22.93")

    def test_weekly_into_monthly(self):
        result = calculate_allocated_amount(
            Decimal("70.00"), "weekly", "monthly", date(2025, 2, 1), date(2025, 2, 28)
        )
        assert result == Decimal("280.00")

    def test_bi_monthly_into_monthly(self):
        result = calculate_allocated_amount(
            HUNDRED, "bi_monthly", "monthly", date(2025, 3, 1), date(2025, 3, 31)
        )
        assert result == Decimal("200.00")

    def test_clipped_same_type_target_is_day_weighted(self):
        result = calculate_allocated_amount(
            Decimal("70.00"),
            "weekly",
            "weekly",
            date(2025, 2, 2),
            date(2025, 2, 8),
            active_start=date(2025, 2, 5),
        )
        assert result == Decimal("40.00")

    def test_target_outside_window_allocates_nothing(self):
        result = calculate_allocated_amount(
            HUNDRED,
            "monthly",
            "monthly",
            date(2025, 5, 1),
            date(2025, 5, 31),
            active_end=date(2025, 4, 30),
        )
        assert result == Decimal("0.00")

    def test_allocate_reads_source_period_attributes(self):
        class Period:
            type = "bi_monthly"
            start_date = date(2025, 3, 1)
            end_date = date(2025, 3, 15)

        assert allocate(HUNDRED, "monthly", Period()) == Decimal("48.39")


class TestCrossGranularityConsistency:
    def test_bi_monthly_halves_sum_to_monthly_amount_for_a_year(self):
        total = sum(
            calculate_allocated_amount(
                HUNDRED, "monthly", "bi_monthly", period["start_date"], period["end_date"]
            )
            for period in bi_monthly_periods(2025)
        )
        assert total == Decimal("1200.00")

    def test_weeks_and_months_over_same_window_agree_within_a_cent(self):
        window = {"active_start": date(2025, 2, 2), "active_end": date(2025, 3, 1)}
        weeks = [(date(2025, 2, d), date(2025, 2, d + 6)) for d in (2, 9, 16)]
        weeks.append((date(2025, 2, 23), date(2025, 3, 1)))
        weekly_total = sum(
            calculate_allocated_amount(HUNDRED, "monthly", "weekly", start, end, **window)
            for start, end in weeks
        )
        monthly_total = sum(
            calculate_allocated_amount(
                HUNDRED, "monthly", "monthly", period["start_date"], period["end_date"], **window
            )
            for period in monthly_periods(2025)
        )
        # Feb 2-28 plus Mar 1 in both granularities
        assert weekly_total == Decimal("99.65")
        assert monthly_total == Decimal("99.66")
        assert abs(weekly_total - monthly_total) <= Decimal("0.01")

    def test_bi_monthly_budget_weekly_and_monthly_agree_within_a_cent(self):
        budget = Decimal("150.00")
        window = {"active_start": date(2025, 3, 2), "active_end": date(2025, 3, 29)}
        weekly_total = sum(
            calculate_allocated_amount(
                budget, "bi_monthly", "weekly", date(2025, 3, d), date(2025, 3, d + 6), **window
            )
            for d in (2, 9, 16, 23)
        )
        monthly_total = calculate_allocated_amount(
            budget, "bi_monthly", "monthly", date(2025, 3, 1), date(2025, 3, 31), **window
        )
        assert monthly_total == Decimal("271.25")
        assert abs(weekly_total - monthly_total) <= Decimal("0.01")

    def test_weeks_covering_february_sum_to_monthly_amount(self):
        window = {"active_start": date(2025, 2, 1), "active_end": date(2025, 2, 28)}
        weeks = [(date(2025, 1, 26), date(2025, 2, 1))]
        weeks += [(date(2025, 2, d), date(2025, 2, d + 6)) for d in (2, 9, 16)]
        weeks.append((date(2025, 2, 23), date(2025, 3, 1)))
        weekly_total = sum(
            calculate_allocated_amount(HUNDRED, "monthly", "weekly", start, end, **window)
            for start, end in weeks
        )
        assert weekly_total == Decimal("100.00")
