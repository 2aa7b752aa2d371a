"""
Event entry points of the allocation engine.

Each trigger wires one domain event to the services that keep period
allocations consistent. They are called from the signal receivers in
``budgeting.signals`` and may be called directly by commands and views.
Triggers are safe to run more than once for the same event.
"""

import logging

from .models import BudgetPeriod
from .services.period_generation_service import BudgetPeriodGenerator
from .services.reassignment_service import TransactionReassignmentEngine
from .services.recalculation_service import HistoricalRecalculator
from .services.spending_service import SpendingReconciler

# Get structured logger for this module
logger = logging.getLogger(__name__)


def on_transaction_write(old, new, owner_id):
    """Reconcile period spending after a transaction create, update or delete."""
    return SpendingReconciler().reconcile(old=old, new=new, owner_id=owner_id)


def on_budget_created(budget):
    """Generate the new budget's periods, then pull in its historical spending."""
    generation = BudgetPeriodGenerator().generate_default(budget)
    recalculation = HistoricalRecalculator().recalculate(budget)
    logger.info(
        "Budget creation processed",
        extra={
            "budget_id": budget.pk,
            "periods_created": generation.periods_created,
            "splits_reassigned": recalculation.splits_reassigned,
            "action": "budget_created_processed",
            "component": "triggers",
        },
    )
    return generation, recalculation


def on_budget_categories_changed(budget):
    """Make sure periods exist, then rebuild spending for the new category set."""
    generation = BudgetPeriodGenerator().generate_default(budget)
    recalculation = HistoricalRecalculator().recalculate(budget)
    return generation, recalculation


def on_budget_window_changed(budget):
    """Resync periods to a changed start/end date and rebuild spending."""
    sync = BudgetPeriodGenerator().sync_budget_window(budget)
    recalculation = HistoricalRecalculator().recalculate(budget)
    return sync, recalculation


def on_budget_amount_changed(budget):
    """Recompute allocations after the native amount or period type changed."""
    return BudgetPeriodGenerator().regenerate_allocations(budget)


def on_budget_deleted(budget):
    """Deactivate a deleted budget's periods and re-home its splits."""
    deactivated = BudgetPeriod.objects.filter(budget=budget, is_active=True).update(
        is_active=False
    )
    logger.info(
        "Budget periods deactivated",
        extra={
            "budget_id": budget.pk,
            "periods_deactivated": deactivated,
            "action": "budget_periods_deactivated",
            "component": "triggers",
        },
    )
    return TransactionReassignmentEngine().reassign(budget.pk, budget.owner_id)


def extend_periods(budget_id=None, owner_id=None, months_forward=None):
    """Generate periods ahead for one budget or every budget of an owner."""
    return BudgetPeriodGenerator().extend_periods(
        owner_id=owner_id, budget_id=budget_id, months_forward=months_forward
    )


def extend_periods_range(range_start, range_end, budget_id=None, owner_id=None):
    """Generate periods over an explicit date range for one budget or an owner's budgets."""
    return BudgetPeriodGenerator().extend_periods_range(
        range_start, range_end, owner_id=owner_id, budget_id=budget_id
    )


def regenerate_budget_periods(budget):
    """Rebuild a budget's periods from scratch, then restore their spending."""
    generation = BudgetPeriodGenerator().regenerate_periods(budget)
    recalculation = HistoricalRecalculator().recalculate(budget)
    logger.info(
        "Budget periods rebuilt",
        extra={
            "budget_id": budget.pk,
            "periods_created": generation.periods_created,
            "total_spending_found": str(recalculation.total_spending_found),
            "action": "budget_periods_rebuilt",
            "component": "triggers",
        },
    )
    return generation, recalculation
