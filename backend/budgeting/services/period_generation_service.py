"""
Service that materializes budget periods from calendar source periods.

Every budget gets one BudgetPeriod per overlapping source period of every
granularity, each carrying the budget amount prorated into that period.
"""

import logging
from datetime import date

from dateutil.relativedelta import relativedelta
from django.conf import settings
from django.db import transaction as db_transaction
from django.db.models import Q

from ..constants import (
    DEFAULT_BATCH_WRITE_LIMIT,
    DEFAULT_PERIOD_HORIZON_MONTHS,
    PERIOD_TYPE_VALUES,
)
from ..exceptions import BudgetNotFoundError
from ..models import Budget, BudgetPeriod
from ..repositories import BudgetPeriodRepository, SourcePeriodProvider
from ..results import GenerationResult
from ..utils.allocation_utils import allocate

# Get structured logger for this module
logger = logging.getLogger(__name__)


def budgeting_setting(name, default):
    return getattr(settings, "BUDGETING", {}).get(name, default)


class BudgetPeriodGenerator:
    """
    Creates, extends and resyncs the period allocations of budgets.

    Collaborators are injected so tests can replace the ORM-backed provider.
    """

    def __init__(self, provider=None, repository=None, batch_size=None):
        self.provider = provider or SourcePeriodProvider()
        self.repository = repository or BudgetPeriodRepository()
        self.batch_size = batch_size or budgeting_setting(
            "BATCH_WRITE_LIMIT", DEFAULT_BATCH_WRITE_LIMIT
        )

    @staticmethod
    def default_window(budget):
        """
        Date range periods are generated for when a budget is created.

        Budgets with an end date use their full window; ongoing budgets are
        generated for the configured horizon from their start date.
        """
        if budget.window_end is not None:
            return budget.start_date, budget.window_end
        horizon = budgeting_setting("PERIOD_HORIZON_MONTHS", DEFAULT_PERIOD_HORIZON_MONTHS)
        return budget.start_date, budget.start_date + relativedelta(months=horizon, days=-1)

    def _build_period(self, budget, source_period):
        allocated = allocate(
            budget.amount,
            budget.period,
            source_period,
            active_start=budget.start_date,
            active_end=budget.window_end,
        )
        return BudgetPeriod(
            budget=budget,
            source_period=source_period,
            owner_id=budget.owner_id,
            period_type=source_period.type,
            period_start=source_period.start_date,
            period_end=source_period.end_date,
            allocated_amount=allocated,
            spent=0,
            remaining=allocated,
            is_active=True,
        )

    def _overlaps_window(self, budget, source_period):
        if source_period.end_date < budget.start_date:
            return False
        window_end = budget.window_end
        return window_end is None or source_period.start_date <= window_end

    def generate(self, budget, range_start, range_end):
        """
        Create missing periods of all granularities for ``budget`` in a range.

        Source periods are selected by start date within
        ``[range_start, range_end]``. Existing (budget, source period) pairs
        are left untouched, so calling this repeatedly is safe.

        Args:
            budget: Budget instance
            range_start: First source period start date to consider
            range_end: Last source period start date to consider

        Returns:
            GenerationResult: Created/skipped counts per period type
        """
        result = GenerationResult(budget_id=budget.pk)

        source_periods = self.provider.get_source_periods(
            PERIOD_TYPE_VALUES, range_start, range_end
        )
        if not source_periods:
            logger.warning(
                "No source periods found for budget period generation",
                extra={
                    "budget_id": budget.pk,
                    "range_start": str(range_start),
                    "range_end": str(range_end),
                    "action": "generation_no_source_periods",
                    "component": "BudgetPeriodGenerator",
                    "severity": "medium",
                },
            )
            return result

        existing = set(
            BudgetPeriod.objects.filter(
                budget=budget, source_period__in=[sp.pk for sp in source_periods]
            ).values_list("source_period_id", flat=True)
        )

        new_periods = []
        for source_period in source_periods:
            if source_period.pk in existing or not self._overlaps_window(budget, source_period):
                result.periods_skipped += 1
                continue
            new_periods.append(self._build_period(budget, source_period))
            result.period_type_counts[source_period.type] += 1

        if new_periods:
            with db_transaction.atomic():
                self.repository.bulk_create(new_periods, batch_size=self.batch_size)
        result.periods_created = len(new_periods)

        logger.info(
            "Budget periods generated",
            extra={
                "budget_id": budget.pk,
                "periods_created": result.periods_created,
                "periods_skipped": result.periods_skipped,
                "period_type_counts": dict(result.period_type_counts),
                "action": "generation_completed",
                "component": "BudgetPeriodGenerator",
            },
        )
        return result

    def generate_default(self, budget):
        """Generate the default window for a budget and record the watermark."""
        range_start, range_end = self.default_window(budget)
        result = self.generate(budget, range_start, range_end)
        self._advance_watermark(budget, range_end)
        return result

    def _advance_watermark(self, budget, until):
        if budget.periods_generated_until is None or until > budget.periods_generated_until:
            Budget.objects.filter(pk=budget.pk).update(periods_generated_until=until)
            budget.periods_generated_until = until

    def _target_budgets(self, owner_id, budget_id):
        if owner_id is None and budget_id is None:
            raise ValueError("Period extension needs an owner_id or a budget_id")
        budgets = Budget.objects.filter(is_active=True)
        if owner_id is not None:
            budgets = budgets.filter(owner_id=owner_id)
        if budget_id is not None:
            budgets = budgets.filter(pk=budget_id)
            if not budgets.exists():
                raise BudgetNotFoundError(budget_id=budget_id)
        return budgets

    def _run_extension(self, budgets, bounds):
        """
        Generate periods for each budget in the range ``bounds(budget)`` returns.

        ``bounds`` yields ``(range_start, range_end, advance_watermark)`` or
        None to skip the budget. One failing budget is recorded and the
        others continue.
        """
        summary = {"budgets_processed": 0, "periods_created": 0, "errors": [], "results": []}
        for budget in budgets:
            planned = bounds(budget)
            if planned is None:
                continue
            range_start, range_end, advance = planned
            try:
                result = self.generate(budget, range_start, range_end)
                if advance:
                    self._advance_watermark(budget, range_end)
            except Exception as e:
                logger.error(
                    "Budget period extension failed",
                    extra={
                        "budget_id": budget.pk,
                        "error": str(e),
                        "action": "extension_failed",
                        "component": "BudgetPeriodGenerator",
                        "severity": "high",
                    },
                    exc_info=True,
                )
                summary["errors"].append(f"Budget {budget.pk}: {e}")
                continue
            summary["budgets_processed"] += 1
            summary["periods_created"] += result.periods_created
            summary["results"].append(result.to_dict())
        return summary

    def extend_periods(self, owner_id=None, budget_id=None, months_forward=None, today=None):
        """
        Generate periods ahead of time for active ongoing or long-running budgets.

        Each budget is extended from its generation watermark up to
        ``today + months_forward`` (clipped to its end date).

        Returns:
            dict: budgets_processed, periods_created, errors and per-budget results
        """
        budgets = self._target_budgets(owner_id, budget_id)

        if months_forward is None:
            months_forward = budgeting_setting("EXTEND_MONTHS_FORWARD", 12)
        today = today or date.today()
        horizon = today + relativedelta(months=months_forward)

        def bounds(budget):
            range_end = horizon
            if budget.window_end is not None:
                range_end = min(range_end, budget.window_end)
            range_start = budget.start_date
            if budget.periods_generated_until is not None:
                range_start = max(range_start, budget.periods_generated_until)
            if range_end < range_start:
                return None
            return range_start, range_end, True

        summary = self._run_extension(budgets, bounds)

        logger.info(
            "Budget periods extended",
            extra={
                "owner_id": owner_id,
                "budget_id": budget_id,
                "budgets_processed": summary["budgets_processed"],
                "periods_created": summary["periods_created"],
                "action": "extension_completed",
                "component": "BudgetPeriodGenerator",
            },
        )
        return summary

    def extend_periods_range(self, range_start, range_end, owner_id=None, budget_id=None):
        """
        Generate periods for an explicit date range, such as when a user pages
        to months no period has been generated for yet.

        The range is clipped to each budget's active window. The generation
        watermark only advances when the range continues from it, so a
        jump far ahead never hides an ungenerated gap from ``extend_periods``.

        Raises:
            ValueError: If the range is reversed or has no target
            BudgetNotFoundError: If ``budget_id`` names no active budget
        """
        if range_end < range_start:
            raise ValueError("Range end must not precede range start")
        budgets = self._target_budgets(owner_id, budget_id)

        def bounds(budget):
            start = max(range_start, budget.start_date)
            end = range_end
            if budget.window_end is not None:
                end = min(end, budget.window_end)
            if end < start:
                return None
            watermark = budget.periods_generated_until
            contiguous = watermark is None or start <= watermark
            return start, end, contiguous

        summary = self._run_extension(budgets, bounds)

        logger.info(
            "Budget periods extended over range",
            extra={
                "owner_id": owner_id,
                "budget_id": budget_id,
                "range_start": str(range_start),
                "range_end": str(range_end),
                "budgets_processed": summary["budgets_processed"],
                "periods_created": summary["periods_created"],
                "action": "range_extension_completed",
                "component": "BudgetPeriodGenerator",
            },
        )
        return summary

    @db_transaction.atomic
    def regenerate_periods(self, budget):
        """
        Delete every period of a budget and build its default window again.

        Checklist items of the deleted periods are removed with them.
        Spending is not restored here; callers follow up with a recalculation.

        Returns:
            GenerationResult: Periods created by the fresh generation
        """
        deleted, _ = BudgetPeriod.objects.filter(budget=budget).delete()
        Budget.objects.filter(pk=budget.pk).update(periods_generated_until=None)
        budget.periods_generated_until = None

        result = self.generate_default(budget)

        logger.info(
            "Budget periods regenerated",
            extra={
                "budget_id": budget.pk,
                "rows_deleted": deleted,
                "periods_created": result.periods_created,
                "action": "periods_regenerated",
                "component": "BudgetPeriodGenerator",
            },
        )
        return result

    @db_transaction.atomic
    def sync_budget_window(self, budget):
        """
        Align a budget's periods with its current active window.

        Periods entirely outside the window are deactivated, previously
        deactivated periods back inside are reactivated, and periods missing
        from the default window are generated. Allocations of periods that
        straddle the window edge are recomputed.

        Returns:
            dict: deactivated, reactivated and created counts
        """
        window_end = budget.window_end
        outside = Q(period_end__lt=budget.start_date)
        if window_end is not None:
            outside |= Q(period_start__gt=window_end)

        periods = BudgetPeriod.objects.filter(budget=budget)
        deactivated = periods.filter(outside, is_active=True).update(is_active=False)
        reactivated = periods.filter(~outside, is_active=False).update(is_active=True)

        result = self.generate_default(budget)
        self.regenerate_allocations(budget)

        logger.info(
            "Budget window synchronized",
            extra={
                "budget_id": budget.pk,
                "deactivated": deactivated,
                "reactivated": reactivated,
                "periods_created": result.periods_created,
                "action": "window_synced",
                "component": "BudgetPeriodGenerator",
            },
        )
        return {
            "deactivated": deactivated,
            "reactivated": reactivated,
            "created": result.periods_created,
        }

    @db_transaction.atomic
    def regenerate_allocations(self, budget):
        """
        Recompute ``allocated_amount`` of every active period of a budget.

        ``remaining`` follows the new allocation; ``spent`` is untouched.

        Returns:
            int: Number of periods whose allocation changed
        """
        changed = []
        periods = BudgetPeriod.objects.filter(budget=budget, is_active=True).select_related(
            "source_period"
        )
        for period in periods:
            allocated = allocate(
                budget.amount,
                budget.period,
                period.source_period,
                active_start=budget.start_date,
                active_end=budget.window_end,
            )
            if allocated != period.allocated_amount:
                period.allocated_amount = allocated
                period.remaining = allocated - period.spent
                changed.append(period)

        if changed:
            BudgetPeriod.objects.bulk_update(
                changed, ["allocated_amount", "remaining"], batch_size=self.batch_size
            )

        logger.info(
            "Budget period allocations regenerated",
            extra={
                "budget_id": budget.pk,
                "periods_changed": len(changed),
                "action": "allocations_regenerated",
                "component": "BudgetPeriodGenerator",
            },
        )
        return len(changed)
