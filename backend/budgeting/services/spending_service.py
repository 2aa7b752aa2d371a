"""
Incremental reconciliation of budget period spending.

Given the state of a transaction before and after a write, the reconciler
computes the net change per (budget, transaction date) and applies it to
every active period allocation containing that date with an atomic
increment.
"""

import logging
from collections import defaultdict
from decimal import Decimal

from django.db import transaction as db_transaction

from ..repositories import BudgetPeriodRepository
from ..results import ReconciliationResult

# Get structured logger for this module
logger = logging.getLogger(__name__)


class SpendingReconciler:
    """Applies per-budget spending deltas to period allocations."""

    def __init__(self, repository=None):
        self.repository = repository or BudgetPeriodRepository()

    @staticmethod
    def spending_by_budget(snapshot):
        """
        Sum split amounts per (budget id, date) for one transaction snapshot.

        Only approved expense transactions contribute, and unassigned splits
        are ignored.
        """
        totals = defaultdict(Decimal)
        if snapshot is None or not snapshot.counts_toward_spending:
            return totals
        for split in snapshot.splits:
            if split.budget_id is None:
                continue
            totals[(split.budget_id, snapshot.transaction_date)] += split.amount
        return totals

    @classmethod
    def compute_deltas(cls, old=None, new=None):
        """
        Net spending change per (budget id, date) caused by one write.

        A missing side counts as no spending, so a create yields the new
        amounts and a delete yields their negation. Zero deltas are dropped.
        """
        old_totals = cls.spending_by_budget(old)
        new_totals = cls.spending_by_budget(new)
        deltas = {}
        for key in set(old_totals) | set(new_totals):
            delta = new_totals.get(key, Decimal("0")) - old_totals.get(key, Decimal("0"))
            if delta:
                deltas[key] = delta
        return deltas

    def reconcile(self, old=None, new=None, owner_id=None, exclude_budget_ids=()):
        """
        Reconcile period spending for one transaction write.

        Args:
            old: TransactionSnapshot before the write, or None for a create
            new: TransactionSnapshot after the write, or None for a delete
            owner_id: Owner whose periods are updated; defaults to the snapshots'
            exclude_budget_ids: Budgets whose periods must not be touched

        Returns:
            ReconciliationResult: Periods updated, budgets affected and errors
        """
        if owner_id is None:
            source = new if new is not None else old
            owner_id = source.owner_id if source is not None else None

        deltas = self.compute_deltas(old, new)
        return self.apply_deltas(deltas, owner_id, exclude_budget_ids=exclude_budget_ids)

    def apply_deltas(self, deltas, owner_id, exclude_budget_ids=()):
        """
        Apply precomputed ``{(budget_id, date): delta}`` changes.

        All writes share one database transaction; each budget runs in its
        own savepoint so a failing budget is recorded without rolling back
        the others.
        """
        result = ReconciliationResult()
        excluded = {int(budget_id) for budget_id in exclude_budget_ids}

        by_budget = defaultdict(list)
        for (budget_id, day), delta in deltas.items():
            if budget_id in excluded:
                continue
            by_budget[budget_id].append((day, delta))

        if not by_budget:
            return result

        with db_transaction.atomic():
            for budget_id, changes in sorted(by_budget.items()):
                try:
                    with db_transaction.atomic():
                        budget_counts = defaultdict(int)
                        for day, delta in changes:
                            type_counts = self.repository.apply_spending_delta(
                                budget_id, owner_id, day, delta
                            )
                            if not type_counts:
                                logger.warning(
                                    "No budget periods contain transaction date",
                                    extra={
                                        "budget_id": budget_id,
                                        "owner_id": owner_id,
                                        "transaction_date": str(day),
                                        "delta": str(delta),
                                        "action": "reconcile_no_periods",
                                        "component": "SpendingReconciler",
                                        "severity": "medium",
                                    },
                                )
                            for period_type, count in type_counts.items():
                                budget_counts[period_type] += count
                except Exception as e:
                    logger.error(
                        "Spending reconciliation failed for budget",
                        extra={
                            "budget_id": budget_id,
                            "owner_id": owner_id,
                            "error": str(e),
                            "action": "reconcile_budget_failed",
                            "component": "SpendingReconciler",
                            "severity": "high",
                        },
                        exc_info=True,
                    )
                    result.errors.append(f"Budget {budget_id}: {e}")
                    continue

                result.budgets_affected.append(str(budget_id))
                result.period_type_counts.update(budget_counts)
                result.periods_updated += sum(budget_counts.values())

        logger.info(
            "Spending reconciled",
            extra={
                "owner_id": owner_id,
                "periods_updated": result.periods_updated,
                "budgets_affected": result.budgets_affected,
                "error_count": len(result.errors),
                "action": "reconcile_completed",
                "component": "SpendingReconciler",
            },
        )
        return result
