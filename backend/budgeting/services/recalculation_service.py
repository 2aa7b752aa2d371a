"""
Full rebuild of a budget's spending from transaction history.

Used after a budget is created or its categories, window or amount change.
Splits are first moved onto or off the budget according to its current
categories, then every active period's ``spent`` is replaced with the total
of the splits that now belong to it.
"""

import logging
from collections import defaultdict
from decimal import Decimal

from django.db import transaction as db_transaction
from django.db.models import Q

from ..constants import DEFAULT_BATCH_WRITE_LIMIT
from ..exceptions import BudgetPreconditionError
from ..models import Budget, BudgetPeriod, Transaction, TransactionSplit
from ..results import RecalculationResult
from ..utils.budget_matching import match_category, select_budget_for_split
from .period_generation_service import budgeting_setting
from .spending_service import SpendingReconciler

# Get structured logger for this module
logger = logging.getLogger(__name__)


def chunked(items, size):
    for start in range(0, len(items), size):
        yield items[start:start + size]


class HistoricalRecalculator:
    """
    Rebuilds ``spent`` for every period of one budget.

    Running it twice without intervening changes leaves every period as it
    was after the first run.
    """

    def __init__(self, reconciler=None, batch_size=None):
        self.reconciler = reconciler or SpendingReconciler()
        self.batch_size = batch_size or budgeting_setting(
            "BATCH_WRITE_LIMIT", DEFAULT_BATCH_WRITE_LIMIT
        )

    def _candidate_splits(self, budget):
        if budget.is_system_catch_all:
            # The catch-all absorbs unclaimed spending on any date
            scope = Q()
        else:
            scope = Q(transaction__transaction_date__gte=budget.start_date)
            if budget.window_end is not None:
                scope &= Q(transaction__transaction_date__lte=budget.window_end)
            scope |= Q(budget=budget)
        return list(
            TransactionSplit.objects.filter(
                scope,
                transaction__owner_id=budget.owner_id,
                transaction__is_active=True,
                transaction__status=Transaction.APPROVED,
                transaction__type=Transaction.EXPENSE,
            )
            .select_related("transaction")
            .order_by("transaction__transaction_date", "transaction_id", "position", "id")
        )

    def _belongs_to(self, budget, split, day):
        if budget.is_system_catch_all:
            return split.budget_id in (None, budget.pk)
        return budget.covers_date(day) and match_category(split, budget.category_ids)

    def _plan_moves(self, budget, splits, other_budgets, catch_all):
        """Decide the new budget of each split; returns [(split, old_id, new_id)]."""
        catch_all_id = catch_all.pk if catch_all is not None else None
        moves = []
        for split in splits:
            day = split.transaction.transaction_date
            current = split.budget_id
            belongs = self._belongs_to(budget, split, day)

            if current == budget.pk:
                if belongs:
                    continue
                target = select_budget_for_split(
                    split, day, other_budgets, catch_all, exclude_ids={budget.pk}
                )
                moves.append((split, current, target.pk if target is not None else None))
            elif belongs and (current is None or current == catch_all_id):
                moves.append((split, current, budget.pk))
        return moves

    def _write_moves(self, moves, result):
        """Persist planned moves in chunks; returns the moves that committed."""
        committed = []
        for index, chunk in enumerate(chunked(moves, self.batch_size)):
            for split, _, new_id in chunk:
                split.budget_id = new_id
            try:
                with db_transaction.atomic():
                    TransactionSplit.objects.bulk_update(
                        [split for split, _, _ in chunk], ["budget"]
                    )
            except Exception as e:
                for split, old_id, _ in chunk:
                    split.budget_id = old_id
                logger.error(
                    "Split reassignment chunk failed during recalculation",
                    extra={
                        "chunk_index": index,
                        "chunk_size": len(chunk),
                        "error": str(e),
                        "action": "recalculation_chunk_failed",
                        "component": "HistoricalRecalculator",
                        "severity": "high",
                    },
                    exc_info=True,
                )
                result.errors.append(f"Chunk {index}: {e}")
                continue
            committed.extend(chunk)
        return committed

    def recalculate(self, budget):
        """
        Recalculate spending for a budget from scratch.

        Args:
            budget: Active Budget instance

        Returns:
            RecalculationResult: Transactions processed, spending found,
            periods updated, splits reassigned and collected errors

        Raises:
            BudgetPreconditionError: If the budget has been deleted
        """
        if not budget.is_active:
            raise BudgetPreconditionError(
                "Cannot recalculate a deleted budget", budget_id=budget.pk
            )

        logger.info(
            "Recalculating budget spending",
            extra={
                "budget_id": budget.pk,
                "owner_id": budget.owner_id,
                "action": "recalculation_start",
                "component": "HistoricalRecalculator",
            },
        )

        result = RecalculationResult(budget_id=budget.pk)
        owner_budgets = list(Budget.objects.filter(owner_id=budget.owner_id, is_active=True))
        catch_all = next((b for b in owner_budgets if b.is_system_catch_all), None)
        other_budgets = [b for b in owner_budgets if b.pk != budget.pk]

        with db_transaction.atomic():
            # Periods are locked before history is read so a concurrent
            # spending increment either lands in the history or waits for us
            periods = self._lock_periods(budget)
            splits = self._candidate_splits(budget)
            moves = self._plan_moves(budget, splits, other_budgets, catch_all)
            committed = self._write_moves(moves, result)
            result.splits_reassigned = len(committed)

            other_deltas = defaultdict(Decimal)
            for split, old_id, new_id in committed:
                day = split.transaction.transaction_date
                if old_id is not None and old_id != budget.pk:
                    other_deltas[(old_id, day)] -= split.amount
                if new_id is not None and new_id != budget.pk:
                    other_deltas[(new_id, day)] += split.amount

            spend_by_date = defaultdict(Decimal)
            transaction_ids = set()
            for split in splits:
                if split.budget_id != budget.pk:
                    continue
                spend_by_date[split.transaction.transaction_date] += split.amount
                transaction_ids.add(split.transaction_id)
            result.transactions_processed = len(transaction_ids)
            result.total_spending_found = sum(spend_by_date.values(), Decimal("0.00"))

            try:
                with db_transaction.atomic():
                    result.periods_updated = self._replace_period_spending(
                        periods, spend_by_date
                    )
            except Exception as e:
                logger.error(
                    "Period spending replacement failed",
                    extra={
                        "budget_id": budget.pk,
                        "error": str(e),
                        "action": "recalculation_write_failed",
                        "component": "HistoricalRecalculator",
                        "severity": "high",
                    },
                    exc_info=True,
                )
                result.errors.append(f"Budget {budget.pk}: {e}")

            if other_deltas:
                reconciliation = self.reconciler.apply_deltas(
                    {key: delta for key, delta in other_deltas.items() if delta},
                    budget.owner_id,
                    exclude_budget_ids=[budget.pk],
                )
                result.errors.extend(reconciliation.errors)

        logger.info(
            "Budget spending recalculated",
            extra={
                "budget_id": budget.pk,
                "transactions_processed": result.transactions_processed,
                "total_spending_found": str(result.total_spending_found),
                "periods_updated": result.periods_updated,
                "splits_reassigned": result.splits_reassigned,
                "error_count": len(result.errors),
                "action": "recalculation_completed",
                "component": "HistoricalRecalculator",
            },
        )
        return result

    def _lock_periods(self, budget):
        return list(
            BudgetPeriod.objects.select_for_update().filter(budget=budget, is_active=True)
        )

    def _replace_period_spending(self, periods, spend_by_date):
        """Overwrite ``spent`` on the locked periods; returns periods with spending."""
        with_spending = 0
        for period in periods:
            spent = sum(
                (amount for day, amount in spend_by_date.items() if period.contains(day)),
                Decimal("0.00"),
            )
            period.spent = spent
            period.remaining = period.allocated_amount - spent
            if spent:
                with_spending += 1

        if periods:
            BudgetPeriod.objects.bulk_update(
                periods, ["spent", "remaining"], batch_size=self.batch_size
            )
        return with_spending
