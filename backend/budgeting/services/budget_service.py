"""
Service for budget lifecycle operations.

This module provides the BudgetService class for creating, updating and
soft-deleting budgets, and for maintaining each owner's system catch-all
budget. Period generation, recalculation and reassignment run from the
budget signals once the change is saved.
"""

import logging
from datetime import date

from django.core.exceptions import ValidationError
from django.db import transaction as db_transaction

from ..constants import CATCH_ALL_BUDGET_NAME, PERIOD_MONTHLY
from ..models import Budget

# Get structured logger for this module
logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "name",
    "period",
    "amount",
    "category_ids",
    "start_date",
    "is_ongoing",
    "budget_end_date",
    "alert_threshold",
)

# Fields a user may still change on the system catch-all budget
CATCH_ALL_EDITABLE_FIELDS = ("name", "alert_threshold")


class BudgetService:
    """
    Service for handling budget operations with transaction safety.
    """

    @staticmethod
    @db_transaction.atomic
    def create_budget(owner, data):
        """
        Create a regular budget for an owner.

        Args:
            owner: User instance owning the budget
            data: Dict of budget field values

        Returns:
            Budget: Saved budget instance

        Raises:
            ValidationError: If the data is invalid or requests a catch-all budget
        """
        if data.get("is_system_catch_all"):
            raise ValidationError("System catch-all budgets cannot be created directly.")

        values = {field: data[field] for field in EDITABLE_FIELDS if field in data}
        if "is_ongoing" not in values:
            values["is_ongoing"] = values.get("budget_end_date") is None
        if values["is_ongoing"]:
            values["budget_end_date"] = None

        budget = Budget(owner=owner, **values)
        budget.full_clean()
        budget.save()

        logger.info(
            "Budget created",
            extra={
                "budget_id": budget.pk,
                "owner_id": owner.pk,
                "period": budget.period,
                "category_count": len(budget.category_ids),
                "action": "budget_created",
                "component": "BudgetService",
            },
        )
        return budget

    @staticmethod
    @db_transaction.atomic
    def update_budget(budget, data):
        """
        Apply changes to an existing budget.

        The catch-all budget keeps a zero amount, no categories and its
        system flag; only its name and alert threshold can change.

        Raises:
            ValidationError: On invalid data or a forbidden catch-all change
        """
        if not budget.is_active:
            raise ValidationError("Deleted budgets cannot be updated.")

        if "is_system_catch_all" in data and bool(data["is_system_catch_all"]) != budget.is_system_catch_all:
            raise ValidationError("The system catch-all flag cannot be changed.")

        if budget.is_system_catch_all:
            forbidden = [
                field
                for field in EDITABLE_FIELDS
                if field in data
                and field not in CATCH_ALL_EDITABLE_FIELDS
                and data[field] != getattr(budget, field)
            ]
            if forbidden:
                logger.warning(
                    "Rejected change to catch-all budget",
                    extra={
                        "budget_id": budget.pk,
                        "fields": forbidden,
                        "action": "catch_all_update_rejected",
                        "component": "BudgetService",
                        "severity": "medium",
                    },
                )
                raise ValidationError(
                    f"Cannot change {', '.join(forbidden)} of the catch-all budget."
                )

        for field in EDITABLE_FIELDS:
            if field in data:
                setattr(budget, field, data[field])
        if "is_ongoing" not in data and data.get("budget_end_date") is not None:
            budget.is_ongoing = False
        if budget.is_ongoing:
            budget.budget_end_date = None

        budget.full_clean()
        budget.save()

        logger.info(
            "Budget updated",
            extra={
                "budget_id": budget.pk,
                "fields": sorted(field for field in data if field in EDITABLE_FIELDS),
                "action": "budget_updated",
                "component": "BudgetService",
            },
        )
        return budget

    @staticmethod
    @db_transaction.atomic
    def soft_delete_budget(budget):
        """
        Soft delete a budget by clearing ``is_active``.

        Its periods are deactivated and its splits reassigned by the budget
        signals.

        Raises:
            ValidationError: If the budget is the catch-all budget
        """
        if budget.is_system_catch_all:
            raise ValidationError("The catch-all budget cannot be deleted.")
        if not budget.is_active:
            logger.debug(
                "Budget already deleted",
                extra={
                    "budget_id": budget.pk,
                    "action": "budget_delete_noop",
                    "component": "BudgetService",
                },
            )
            return budget

        budget.is_active = False
        budget.save()

        logger.info(
            "Budget soft deleted",
            extra={
                "budget_id": budget.pk,
                "owner_id": budget.owner_id,
                "action": "budget_deleted",
                "component": "BudgetService",
            },
        )
        return budget

    @staticmethod
    @db_transaction.atomic
    def ensure_catch_all_budget(owner, start_date=None):
        """
        Return the owner's active catch-all budget, creating it if missing.

        The catch-all budget is monthly, ongoing, has a zero amount and no
        categories. It starts on the first day of the current month unless
        ``start_date`` is given.
        """
        existing = Budget.objects.filter(
            owner=owner, is_system_catch_all=True, is_active=True
        ).first()
        if existing is not None:
            return existing

        budget = Budget.objects.create(
            owner=owner,
            name=CATCH_ALL_BUDGET_NAME,
            period=PERIOD_MONTHLY,
            amount=0,
            category_ids=[],
            start_date=start_date or date.today().replace(day=1),
            is_ongoing=True,
            is_system_catch_all=True,
            alert_threshold=80,
        )

        logger.info(
            "Catch-all budget created",
            extra={
                "budget_id": budget.pk,
                "owner_id": owner.pk,
                "action": "catch_all_created",
                "component": "BudgetService",
            },
        )
        return budget
