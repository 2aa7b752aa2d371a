"""
Service for transaction operations with proper error handling and logging.

This module provides the TransactionService class, the write path for
transactions and their splits. Every write captures the transaction state
before and after the change and sends ``transaction_written`` so budget
period spending can be reconciled.
"""

import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction as db_transaction

from ..models import Budget, Transaction, TransactionSplit
from ..signals import transaction_written
from ..snapshots import TransactionSnapshot
from ..utils.budget_matching import select_budget_for_split

# Get structured logger for this module
logger = logging.getLogger(__name__)

TRANSACTION_FIELDS = ("type", "status", "amount", "transaction_date", "description")


class TransactionService:
    """
    Service for handling transaction operations with transaction safety.

    Splits without an explicit budget are assigned to the best matching
    budget, falling back to the owner's catch-all budget.
    """

    @staticmethod
    def _owner_budgets(owner):
        return list(Budget.objects.filter(owner=owner, is_active=True))

    @staticmethod
    def _resolve_budget(budget_value, budgets_by_id):
        if budget_value in (None, ""):
            return None
        budget_id = getattr(budget_value, "pk", budget_value)
        try:
            return budgets_by_id[int(budget_id)]
        except (KeyError, TypeError, ValueError):
            raise ValidationError({"budget": f"Budget {budget_id} not found."})

    @staticmethod
    def _build_splits(transaction, splits_data, default_category_id=None):
        """Create split rows, auto-assigning any split without a budget."""
        if not splits_data:
            if not default_category_id:
                raise ValidationError(
                    {"splits": "At least one split or a category_id is required."}
                )
            splits_data = [{"amount": transaction.amount, "category_id": default_category_id}]

        budgets = TransactionService._owner_budgets(transaction.owner)
        budgets_by_id = {budget.pk: budget for budget in budgets}
        catch_all = next((b for b in budgets if b.is_system_catch_all), None)

        splits = []
        for position, data in enumerate(splits_data):
            split = TransactionSplit(
                transaction=transaction,
                position=position,
                amount=Decimal(str(data["amount"])),
                category_id=data.get("category_id", ""),
                detailed_category_id=data.get("detailed_category_id") or "",
            )
            split.budget = TransactionService._resolve_budget(data.get("budget"), budgets_by_id)
            if split.budget is None and transaction.type == Transaction.EXPENSE:
                split.budget = select_budget_for_split(
                    split, transaction.transaction_date, budgets, catch_all
                )
            split.full_clean()
            splits.append(split)

        TransactionSplit.objects.bulk_create(splits)

        logger.debug(
            "Transaction splits created",
            extra={
                "transaction_id": transaction.pk,
                "split_count": len(splits),
                "assigned_budgets": [split.budget_key for split in splits],
                "action": "splits_created",
                "component": "TransactionService",
            },
        )
        return splits

    @staticmethod
    def _notify(old, new, owner_id):
        transaction_written.send(sender=Transaction, old=old, new=new, owner_id=owner_id)

    @staticmethod
    @db_transaction.atomic
    def create_transaction(owner, data, splits_data=None):
        """
        Create a transaction with its splits.

        Args:
            owner: User instance owning the transaction
            data: Dict of transaction fields; ``category_id`` creates a single
                split for the full amount when ``splits_data`` is empty
            splits_data: Optional list of split dicts (amount, category_id,
                detailed_category_id, budget)

        Returns:
            Transaction: Saved transaction instance

        Raises:
            ValidationError: If transaction or split data is invalid
        """
        transaction = Transaction(
            owner=owner, **{field: data[field] for field in TRANSACTION_FIELDS if field in data}
        )
        transaction.full_clean()
        transaction.save()
        TransactionService._build_splits(transaction, splits_data, data.get("category_id"))
        new = TransactionSnapshot.from_instance(transaction)
        TransactionService._notify(None, new, owner.pk)

        logger.info(
            "Transaction created",
            extra={
                "transaction_id": transaction.pk,
                "owner_id": owner.pk,
                "type": transaction.type,
                "status": transaction.status,
                "action": "transaction_created",
                "component": "TransactionService",
            },
        )
        return transaction

    @staticmethod
    @db_transaction.atomic
    def update_transaction(transaction, data, splits_data=None):
        """
        Update a transaction and optionally replace its splits.

        Splits are kept when ``splits_data`` is None and replaced otherwise.

        Raises:
            ValidationError: If the new data is invalid
        """
        old = TransactionSnapshot.from_instance(transaction)

        for field in TRANSACTION_FIELDS:
            if field in data:
                setattr(transaction, field, data[field])
        transaction.full_clean()
        transaction.save()

        if splits_data is not None:
            transaction.splits.all().delete()
            TransactionService._build_splits(transaction, splits_data, data.get("category_id"))

        new = TransactionSnapshot.from_instance(transaction)
        TransactionService._notify(old, new, transaction.owner_id)

        logger.info(
            "Transaction updated",
            extra={
                "transaction_id": transaction.pk,
                "fields": sorted(field for field in data if field in TRANSACTION_FIELDS),
                "splits_replaced": splits_data is not None,
                "action": "transaction_updated",
                "component": "TransactionService",
            },
        )
        return transaction

    @staticmethod
    @db_transaction.atomic
    def delete_transaction(transaction):
        """Delete a transaction and remove its spending from budget periods."""
        old = TransactionSnapshot.from_instance(transaction)
        transaction_id = transaction.pk
        owner_id = transaction.owner_id
        transaction.delete()

        TransactionService._notify(old, None, owner_id)

        logger.info(
            "Transaction deleted",
            extra={
                "transaction_id": transaction_id,
                "owner_id": owner_id,
                "action": "transaction_deleted",
                "component": "TransactionService",
            },
        )
