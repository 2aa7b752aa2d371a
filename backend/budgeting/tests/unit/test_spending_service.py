from datetime import date
from decimal import Decimal

import pytest

from budgeting.repositories import BudgetPeriodRepository
from budgeting.services.spending_service import SpendingReconciler
from budgeting.services.transaction_service import TransactionService
from budgeting.snapshots import SplitSnapshot, TransactionSnapshot

from ..factories import BudgetFactory

FEB_10 = date(2025, 2, 10)


def snapshot(amount="50.00", budget_id=1, day=FEB_10, status="approved", type="expense", splits=None):
    if splits is None:
        splits = (SplitSnapshot(amount=Decimal(amount), category_id="groceries", budget_id=budget_id),)
    return TransactionSnapshot(
        transaction_id=1,
        owner_id=1,
        type=type,
        status=status,
        transaction_date=day,
        splits=tuple(splits),
    )


class TestComputeDeltas:
    def test_create_adds_full_amount(self):
        assert SpendingReconciler.compute_deltas(None, snapshot()) == {(1, FEB_10): Decimal("50.00")}

    def test_amount_edit_adds_difference(self):
        deltas = SpendingReconciler.compute_deltas(snapshot("50.00"), snapshot("75.00"))
        assert deltas == {(1, FEB_10): Decimal("25.00")}

    def test_delete_subtracts_last_amount(self):
        assert SpendingReconciler.compute_deltas(snapshot("75.00"), None) == {
            (1, FEB_10): Decimal("-75.00")
        }

    def test_unchanged_transaction_has_no_deltas(self):
        assert SpendingReconciler.compute_deltas(snapshot(), snapshot()) == {}

    def test_budget_change_moves_spending(self):
        deltas = SpendingReconciler.compute_deltas(snapshot(budget_id=1), snapshot(budget_id=2))
        assert deltas == {(1, FEB_10): Decimal("-50.00"), (2, FEB_10): Decimal("50.00")}

    def test_date_change_moves_spending_between_dates(self):
        new_day = date(2025, 3, 5)
        deltas = SpendingReconciler.compute_deltas(snapshot(), snapshot(day=new_day))
        assert deltas == {(1, FEB_10): Decimal("-50.00"), (1, new_day): Decimal("50.00")}

    def test_pending_and_income_do_not_count(self):
        assert SpendingReconciler.compute_deltas(None, snapshot(status="pending")) == {}
        assert SpendingReconciler.compute_deltas(None, snapshot(type="income")) == {}

    def test_approval_adds_spending(self):
        deltas = SpendingReconciler.compute_deltas(snapshot(status="pending"), snapshot())
        assert deltas == {(1, FEB_10): Decimal("50.00")}

    def test_unassigned_splits_are_ignored(self):
        assert SpendingReconciler.compute_deltas(None, snapshot(budget_id=None)) == {}

    def test_splits_on_same_budget_are_summed(self):
        splits = [
            SplitSnapshot(amount=Decimal("20.00"), category_id="groceries", budget_id=1),
            SplitSnapshot(amount=Decimal("5.50"), category_id="household", budget_id=1),
        ]
        assert SpendingReconciler.compute_deltas(None, snapshot(splits=splits)) == {
            (1, FEB_10): Decimal("25.50")
        }


def create_expense(owner, budget, amount="50.00", day=FEB_10):
    return TransactionService.create_transaction(
        owner,
        {"type": "expense", "status": "approved", "amount": Decimal(amount), "transaction_date": day},
        [{"amount": Decimal(amount), "category_id": "groceries", "budget": budget.pk}],
    )


@pytest.mark.django_db
class TestReconcile:
    def test_create_updates_every_granularity(self, test_user, grocery_budget, period_lookup):
        create_expense(test_user, grocery_budget)

        for period_type in ("monthly", "bi_monthly", "weekly"):
            period = period_lookup(grocery_budget, period_type, FEB_10)
            assert period.spent == Decimal("50.00")
            assert period.remaining == period.allocated_amount - Decimal("50.00")

    def test_reconcile_reports_updated_periods(self, test_user, grocery_budget):
        transaction = create_expense(test_user, grocery_budget)
        new = TransactionSnapshot.from_instance(transaction)

        result = SpendingReconciler().reconcile(None, new, test_user.pk)

        assert result.periods_updated == 3
        assert result.budgets_affected == [str(grocery_budget.pk)]
        assert result.period_type_counts == {"monthly": 1, "bi_monthly": 1, "weekly": 1}
        assert result.errors == []

    @pytest.mark.parametrize(
        "day,period_id",
        [
            (date(2025, 2, 15), "2025BM02A"),
            (date(2025, 2, 16), "2025BM02B"),
            (date(2025, 2, 1), "2025BM02A"),
            (date(2025, 2, 28), "2025BM02B"),
        ],
    )
    def test_boundary_days_count_toward_containing_period(
        self, test_user, grocery_budget, day, period_id
    ):
        create_expense(test_user, grocery_budget, day=day)

        halves = grocery_budget.periods.filter(period_type="bi_monthly", spent__gt=0)
        assert [period.source_period.period_id for period in halves] == [period_id]

    def test_update_applies_difference(self, test_user, grocery_budget, period_lookup):
        transaction = create_expense(test_user, grocery_budget, "50.00")

        TransactionService.update_transaction(
            transaction,
            {"amount": Decimal("75.00")},
            [{"amount": Decimal("75.00"), "category_id": "groceries", "budget": grocery_budget.pk}],
        )

        assert period_lookup(grocery_budget, "monthly", FEB_10).spent == Decimal("75.00")

    def test_delete_removes_spending(self, test_user, grocery_budget, period_lookup):
        transaction = create_expense(test_user, grocery_budget, "75.00")

        TransactionService.delete_transaction(transaction)

        monthly = period_lookup(grocery_budget, "monthly", FEB_10)
        assert monthly.spent == Decimal("0.00")
        assert monthly.remaining == monthly.allocated_amount

    def test_date_change_moves_spending(self, test_user, grocery_budget, period_lookup):
        transaction = create_expense(test_user, grocery_budget)

        TransactionService.update_transaction(transaction, {"transaction_date": date(2025, 3, 5)})

        assert period_lookup(grocery_budget, "monthly", FEB_10).spent == Decimal("0.00")
        assert period_lookup(grocery_budget, "monthly", date(2025, 3, 5)).spent == Decimal("50.00")

    def test_no_matching_periods_is_a_warning(self, test_user, grocery_budget):
        old_snapshot = snapshot(budget_id=grocery_budget.pk, day=date(2024, 6, 1))

        result = SpendingReconciler().reconcile(None, old_snapshot, test_user.pk)

        assert result.periods_updated == 0
        assert result.errors == []

    def test_excluded_budgets_are_not_touched(self, test_user, grocery_budget, period_lookup):
        new = snapshot(budget_id=grocery_budget.pk)

        result = SpendingReconciler().reconcile(
            None, new, test_user.pk, exclude_budget_ids=[grocery_budget.pk]
        )

        assert result.periods_updated == 0
        assert period_lookup(grocery_budget, "monthly", FEB_10).spent == Decimal("0.00")

    def test_failing_budget_does_not_block_others(self, test_user, grocery_budget, period_lookup):
        dining = BudgetFactory(owner=test_user, name="Dining", category_ids=["dining"])

        class FailingRepository(BudgetPeriodRepository):
            def apply_spending_delta(self, budget_id, owner_id, day, delta):
                if budget_id == grocery_budget.pk:
                    raise RuntimeError("write failed")
                return super().apply_spending_delta(budget_id, owner_id, day, delta)

        splits = [
            SplitSnapshot(amount=Decimal("10.00"), category_id="groceries", budget_id=grocery_budget.pk),
            SplitSnapshot(amount=Decimal("20.00"), category_id="dining", budget_id=dining.pk),
        ]
        result = SpendingReconciler(repository=FailingRepository()).reconcile(
            None, snapshot(splits=splits), test_user.pk
        )

        assert len(result.errors) == 1
        assert result.budgets_affected == [str(dining.pk)]
        assert period_lookup(dining, "monthly", FEB_10).spent == Decimal("20.00")
        assert period_lookup(grocery_budget, "monthly", FEB_10).spent == Decimal("0.00")

    def test_other_owners_periods_are_untouched(self, test_user, test_user2, grocery_budget, period_lookup):
        result = SpendingReconciler().reconcile(
            None, snapshot(budget_id=grocery_budget.pk), test_user2.pk
        )

        assert result.periods_updated == 0
        assert period_lookup(grocery_budget, "monthly", FEB_10).spent == Decimal("0.00")
