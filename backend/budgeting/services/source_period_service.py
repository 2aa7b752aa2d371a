"""
Service that materializes calendar source periods.
"""

import logging
from collections import Counter

from django.db import transaction as db_transaction

from ..constants import DEFAULT_BATCH_WRITE_LIMIT
from ..models import SourcePeriod
from ..utils.source_periods import build_source_periods
from .period_generation_service import budgeting_setting

# Get structured logger for this module
logger = logging.getLogger(__name__)


class SourcePeriodService:
    """Creates source periods for a range of years; existing ids are kept."""

    @staticmethod
    @db_transaction.atomic
    def generate_years(start_year, end_year):
        """
        Create monthly, bi-monthly and weekly source periods for
        ``start_year`` through ``end_year`` inclusive.

        Returns:
            dict: created and skipped counts, plus created counts per type
        """
        if end_year < start_year:
            raise ValueError("end_year must not be before start_year")

        definitions = []
        for year in range(start_year, end_year + 1):
            definitions.extend(build_source_periods(year))

        existing = set(
            SourcePeriod.objects.filter(
                period_id__in=[definition["period_id"] for definition in definitions]
            ).values_list("period_id", flat=True)
        )
        new_periods = [
            SourcePeriod(**definition)
            for definition in definitions
            if definition["period_id"] not in existing
        ]
        SourcePeriod.objects.bulk_create(
            new_periods,
            batch_size=budgeting_setting("BATCH_WRITE_LIMIT", DEFAULT_BATCH_WRITE_LIMIT),
        )

        type_counts = Counter(period.type for period in new_periods)
        logger.info(
            "Source periods generated",
            extra={
                "start_year": start_year,
                "end_year": end_year,
                "periods_created": len(new_periods),
                "periods_skipped": len(existing),
                "type_counts": dict(type_counts),
                "action": "source_periods_generated",
                "component": "SourcePeriodService",
            },
        )
        return {
            "created": len(new_periods),
            "skipped": len(existing),
            "type_counts": dict(type_counts),
        }
