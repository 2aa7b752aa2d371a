"""
Re-homing of transaction splits that pointed at a deleted budget.
"""

import logging
from collections import defaultdict
from decimal import Decimal

from django.db import transaction as db_transaction

from ..constants import DEFAULT_BATCH_WRITE_LIMIT, UNASSIGNED_BUDGET_ID
from ..exceptions import BudgetNotFoundError, BudgetPreconditionError
from ..models import Budget, TransactionSplit
from ..results import ReassignmentResult
from ..utils.budget_matching import select_budget_for_split
from .period_generation_service import budgeting_setting
from .recalculation_service import chunked
from .spending_service import SpendingReconciler

# Get structured logger for this module
logger = logging.getLogger(__name__)


class TransactionReassignmentEngine:
    """
    Moves every split of a soft-deleted budget onto another budget.

    A split goes to the active regular budget whose window contains its
    transaction date (category matches first, then the oldest budget, then
    the lowest id), else to the owner's catch-all budget, else it becomes
    unassigned. Writes are committed in sequential batches.
    """

    def __init__(self, reconciler=None, batch_size=None):
        self.reconciler = reconciler or SpendingReconciler()
        self.batch_size = batch_size or budgeting_setting(
            "BATCH_WRITE_LIMIT", DEFAULT_BATCH_WRITE_LIMIT
        )

    def reassign(self, deleted_budget_id, owner_id):
        """
        Reassign all splits of a deleted budget.

        Args:
            deleted_budget_id: Id of the soft-deleted budget
            owner_id: Owner of the budget and its transactions

        Returns:
            ReassignmentResult: Histogram of destinations, batch count, errors

        Raises:
            BudgetNotFoundError: If the budget does not exist for the owner
            BudgetPreconditionError: If the budget is still active
        """
        budget = Budget.objects.filter(pk=deleted_budget_id, owner_id=owner_id).first()
        if budget is None:
            raise BudgetNotFoundError(budget_id=deleted_budget_id, owner_id=owner_id)
        if budget.is_active:
            raise BudgetPreconditionError(
                "Budget must be deleted before its transactions are reassigned",
                budget_id=deleted_budget_id,
            )

        logger.info(
            "Reassigning transactions from deleted budget",
            extra={
                "budget_id": deleted_budget_id,
                "owner_id": owner_id,
                "action": "reassignment_start",
                "component": "TransactionReassignmentEngine",
            },
        )

        result = ReassignmentResult(budget_id=budget.pk)
        candidates = list(
            Budget.objects.filter(owner_id=owner_id, is_active=True).exclude(pk=budget.pk)
        )
        catch_all = next((b for b in candidates if b.is_system_catch_all), None)

        splits = list(
            TransactionSplit.objects.filter(
                budget_id=budget.pk,
                transaction__owner_id=owner_id,
                transaction__is_active=True,
            )
            .select_related("transaction")
            .order_by("transaction_id", "position", "id")
        )
        if not splits:
            logger.info(
                "No transactions to reassign",
                extra={
                    "budget_id": budget.pk,
                    "action": "reassignment_nothing_to_do",
                    "component": "TransactionReassignmentEngine",
                },
            )
            return result

        committed_batches = 0
        reassigned_transactions = set()
        for index, batch in enumerate(chunked(splits, self.batch_size)):
            result.batch_count += 1
            histogram = defaultdict(int)
            deltas = defaultdict(Decimal)
            for split in batch:
                day = split.transaction.transaction_date
                target = select_budget_for_split(
                    split,
                    day,
                    candidates,
                    catch_all,
                    require_category_match=False,
                    exclude_ids={budget.pk},
                )
                split.budget_id = target.pk if target is not None else None
                histogram[split.budget_key] += 1
                if target is not None and split.transaction.counts_toward_spending:
                    deltas[(target.pk, day)] += split.amount

            try:
                with db_transaction.atomic():
                    TransactionSplit.objects.bulk_update(batch, ["budget"])
                    if deltas:
                        reconciliation = self.reconciler.apply_deltas(dict(deltas), owner_id)
                        result.errors.extend(reconciliation.errors)
            except Exception as e:
                for split in batch:
                    split.budget_id = budget.pk
                logger.error(
                    "Reassignment batch failed",
                    extra={
                        "budget_id": budget.pk,
                        "batch_index": index,
                        "batch_size": len(batch),
                        "error": str(e),
                        "action": "reassignment_batch_failed",
                        "component": "TransactionReassignmentEngine",
                        "severity": "high",
                    },
                    exc_info=True,
                )
                result.errors.append(f"Batch {index}: {e}")
                continue

            committed_batches += 1
            result.budget_assignments.update(histogram)
            reassigned_transactions.update(split.transaction_id for split in batch)

        result.transactions_reassigned = len(reassigned_transactions)
        result.success = committed_batches > 0

        logger.info(
            "Transactions reassigned from deleted budget",
            extra={
                "budget_id": budget.pk,
                "transactions_reassigned": result.transactions_reassigned,
                "budget_assignments": dict(result.budget_assignments),
                "batch_count": result.batch_count,
                "unassigned": result.budget_assignments.get(UNASSIGNED_BUDGET_ID, 0),
                "error_count": len(result.errors),
                "action": "reassignment_completed",
                "component": "TransactionReassignmentEngine",
            },
        )
        return result
