from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from django.core.exceptions import ValidationError

from budgeting.models import Transaction, TransactionSplit
from budgeting.services.transaction_service import TransactionService
from budgeting.signals import transaction_written

from ..factories import BudgetFactory

EXPENSE = {
    "type": "expense",
    "status": "approved",
    "amount": Decimal("60.00"),
    "transaction_date": date(2025, 2, 10),
    "description": "Weekly shop",
}


@pytest.mark.django_db
class TestCreateTransaction:
    def test_single_split_from_category(self, test_user, grocery_budget):
        transaction = TransactionService.create_transaction(
            test_user, {**EXPENSE, "category_id": "groceries"}
        )

        split = transaction.splits.get()
        assert split.amount == Decimal("60.00")
        assert split.category_id == "groceries"
        assert split.budget_id == grocery_budget.pk

    def test_splits_are_auto_assigned_by_category(self, test_user, catch_all, grocery_budget):
        transaction = TransactionService.create_transaction(
            test_user,
            EXPENSE,
            [
                {"amount": Decimal("40.00"), "category_id": "groceries"},
                {"amount": Decimal("20.00"), "category_id": "household"},
            ],
        )

        splits = list(transaction.splits.order_by("position"))
        assert [split.budget_id for split in splits] == [grocery_budget.pk, catch_all.pk]
        assert [split.position for split in splits] == [0, 1]

    def test_explicit_budget_is_kept(self, test_user, grocery_budget):
        dining = BudgetFactory(owner=test_user, name="Dining", category_ids=["dining"])

        transaction = TransactionService.create_transaction(
            test_user,
            EXPENSE,
            [{"amount": Decimal("60.00"), "category_id": "groceries", "budget": dining.pk}],
        )

        assert transaction.splits.get().budget_id == dining.pk

    def test_income_splits_stay_unassigned(self, test_user, grocery_budget):
        transaction = TransactionService.create_transaction(
            test_user, {**EXPENSE, "type": "income", "category_id": "groceries"}
        )

        assert transaction.splits.get().budget_id is None

    def test_foreign_budget_is_rejected(self, test_user, test_user2):
        foreign = BudgetFactory(owner=test_user2)

        with pytest.raises(ValidationError):
            TransactionService.create_transaction(
                test_user,
                EXPENSE,
                [{"amount": Decimal("60.00"), "category_id": "groceries", "budget": foreign.pk}],
            )
        assert not Transaction.objects.filter(owner=test_user).exists()

    def test_split_or_category_is_required(self, test_user):
        with pytest.raises(ValidationError):
            TransactionService.create_transaction(test_user, EXPENSE)

    def test_non_positive_amount_is_rejected(self, test_user):
        with pytest.raises(ValidationError):
            TransactionService.create_transaction(
                test_user, {**EXPENSE, "amount": Decimal("0.00"), "category_id": "groceries"}
            )

    def test_write_sends_snapshots(self, test_user, grocery_budget):
        receiver = MagicMock()
        transaction_written.connect(receiver, weak=False, dispatch_uid="test_receiver")
        try:
            transaction = TransactionService.create_transaction(
                test_user, {**EXPENSE, "category_id": "groceries"}
            )
        finally:
            transaction_written.disconnect(dispatch_uid="test_receiver")

        kwargs = receiver.call_args.kwargs
        assert kwargs["old"] is None
        assert kwargs["new"].transaction_id == transaction.pk
        assert kwargs["new"].splits[0].budget_id == grocery_budget.pk
        assert kwargs["owner_id"] == test_user.pk


@pytest.mark.django_db
class TestUpdateAndDeleteTransaction:
    def test_replacing_splits(self, test_user, catch_all, grocery_budget):
        transaction = TransactionService.create_transaction(
            test_user, {**EXPENSE, "category_id": "groceries"}
        )

        TransactionService.update_transaction(
            transaction, {}, [{"amount": Decimal("60.00"), "category_id": "household"}]
        )

        split = TransactionSplit.objects.get(transaction=transaction)
        assert split.budget_id == catch_all.pk

    def test_update_without_splits_keeps_them(self, test_user, grocery_budget):
        transaction = TransactionService.create_transaction(
            test_user, {**EXPENSE, "category_id": "groceries"}
        )
        split_id = transaction.splits.get().pk

        TransactionService.update_transaction(transaction, {"description": "Edited"})

        transaction.refresh_from_db()
        assert transaction.description == "Edited"
        assert transaction.splits.get().pk == split_id

    def test_delete_removes_transaction_and_splits(self, test_user, grocery_budget):
        transaction = TransactionService.create_transaction(
            test_user, {**EXPENSE, "category_id": "groceries"}
        )
        transaction_id = transaction.pk

        TransactionService.delete_transaction(transaction)

        assert not Transaction.objects.filter(pk=transaction_id).exists()
        assert not TransactionSplit.objects.filter(transaction_id=transaction_id).exists()
