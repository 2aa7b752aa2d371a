"""
ORM-backed collaborators injected into the allocation services.

Services accept these through their constructors so tests can pass fakes.
"""

import logging

from django.db.models import F

from .constants import PERIOD_TYPE_VALUES
from .models import BudgetPeriod, SourcePeriod

# Get structured logger for this module
logger = logging.getLogger(__name__)


class SourcePeriodProvider:
    """Reads calendar source periods from the ``SourcePeriod`` table."""

    def get_source_periods(self, types, start, end):
        """
        Return source periods of ``types`` whose start date lies in ``[start, end]``.

        Args:
            types: Iterable of period type values
            start: First start date to include
            end: Last start date to include

        Returns:
            list: SourcePeriod instances ordered by start date
        """
        types = [period_type for period_type in types if period_type in PERIOD_TYPE_VALUES]
        periods = list(
            SourcePeriod.objects.filter(
                type__in=types, start_date__gte=start, start_date__lte=end
            ).order_by("start_date", "type")
        )

        logger.debug(
            "Source periods loaded",
            extra={
                "types": types,
                "range_start": str(start),
                "range_end": str(end),
                "period_count": len(periods),
                "action": "source_periods_loaded",
                "component": "SourcePeriodProvider",
            },
        )
        return periods


class BudgetPeriodRepository:
    """Write primitives for ``BudgetPeriod`` rows."""

    def periods_containing(self, budget_id, owner_id, day):
        return BudgetPeriod.objects.filter(
            budget_id=budget_id,
            owner_id=owner_id,
            is_active=True,
            period_start__lte=day,
            period_end__gte=day,
        )

    def apply_spending_delta(self, budget_id, owner_id, day, delta):
        """
        Atomically add ``delta`` to every active period of a budget containing ``day``.

        Uses a single ``UPDATE ... SET spent = spent + delta`` so concurrent
        writers never lose each other's increments.

        Returns:
            dict: period type -> number of rows updated
        """
        periods = self.periods_containing(budget_id, owner_id, day)
        type_counts = {}
        for row in periods.values("period_type"):
            type_counts[row["period_type"]] = type_counts.get(row["period_type"], 0) + 1

        if type_counts:
            periods.update(spent=F("spent") + delta, remaining=F("remaining") - delta)
        return type_counts

    def bulk_create(self, periods, batch_size):
        return BudgetPeriod.objects.bulk_create(
            periods, batch_size=batch_size, ignore_conflicts=True
        )
