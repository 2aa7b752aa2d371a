# budgeting/tests/unit/test_models.py

from datetime import date
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from budgeting.models import Budget, SourcePeriod, Transaction, TransactionSplit

from ..factories import BudgetFactory, TransactionFactory, TransactionSplitFactory


class TestSourcePeriodModel:
    def test_day_count_and_contains(self):
        period = SourcePeriod(
            period_id="2025M02",
            type="monthly",
            start_date=date(2025, 2, 1),
            end_date=date(2025, 2, 28),
            year=2025,
            index=2,
        )

        assert period.day_count == 28
        assert period.contains(date(2025, 2, 28))
        assert not period.contains(date(2025, 3, 1))

    def test_end_before_start_is_invalid(self):
        period = SourcePeriod(start_date=date(2025, 2, 1), end_date=date(2025, 1, 31))
        with pytest.raises(ValidationError):
            period.clean()


class TestBudgetModel:
    def build(self, **overrides):
        values = {
            "name": "Groceries",
            "period": "monthly",
            "amount": Decimal("100.00"),
            "category_ids": ["groceries"],
            "start_date": date(2025, 2, 1),
            "is_ongoing": True,
        }
        values.update(overrides)
        return Budget(**values)

    def test_ongoing_budget_has_open_window(self):
        budget = self.build()

        assert budget.window_end is None
        assert budget.covers_date(date(2030, 1, 1))
        assert not budget.covers_date(date(2025, 1, 31))

    def test_bounded_budget_window_is_inclusive(self):
        budget = self.build(is_ongoing=False, budget_end_date=date(2025, 3, 19))

        assert budget.window_end == date(2025, 3, 19)
        assert budget.covers_date(date(2025, 3, 19))
        assert not budget.covers_date(date(2025, 3, 20))

    @pytest.mark.parametrize(
        "overrides",
        [
            {"amount": Decimal("-1.00")},
            {"is_ongoing": False, "budget_end_date": None},
            {"is_ongoing": True, "budget_end_date": date(2025, 3, 1)},
            {"is_ongoing": False, "budget_end_date": date(2025, 1, 1)},
            {"category_ids": "groceries"},
            {"category_ids": ["groceries", " "]},
            {"is_system_catch_all": True},
        ],
    )
    def test_clean_rejects_invalid_budgets(self, overrides):
        with pytest.raises(ValidationError):
            self.build(**overrides).clean()

    def test_clean_accepts_empty_catch_all(self):
        self.build(is_system_catch_all=True, amount=Decimal("0"), category_ids=[]).clean()

    @pytest.mark.django_db
    def test_one_active_catch_all_per_owner(self, test_user):
        with pytest.raises(IntegrityError), transaction.atomic():
            Budget.objects.create(
                owner=test_user,
                name="Second catch-all",
                period="monthly",
                start_date=date(2025, 1, 1),
                is_system_catch_all=True,
            )

    @pytest.mark.django_db
    def test_for_owner_scopes_budgets(self, test_user, test_user2):
        own = BudgetFactory(owner=test_user)
        BudgetFactory(owner=test_user2)
        BudgetFactory(owner=test_user, is_active=False)

        active = Budget.objects.for_owner(test_user, active_only=True)

        assert own in active
        assert all(budget.owner_id == test_user.pk for budget in active)
        assert all(budget.is_active for budget in active)
        assert Budget.objects.for_owner(test_user).count() == active.count() + 1


@pytest.mark.django_db
class TestTransactionModels:
    def test_counts_toward_spending(self, test_user):
        expense = TransactionFactory(owner=test_user)
        pending = TransactionFactory(owner=test_user, status=Transaction.PENDING)
        income = TransactionFactory(owner=test_user, type=Transaction.INCOME)

        assert expense.counts_toward_spending
        assert not pending.counts_toward_spending
        assert not income.counts_toward_spending

    def test_split_budget_key(self, test_user, grocery_budget):
        split = TransactionSplitFactory(transaction__owner=test_user)

        assert split.budget_key == "unassigned"
        split.budget = grocery_budget
        assert split.budget_key == str(grocery_budget.pk)

    def test_split_category_keys(self):
        split = TransactionSplit(category_id="food", detailed_category_id="food.groceries")
        assert split.category_keys == ["food", "food.groceries"]
        assert TransactionSplit(category_id="food").category_keys == ["food"]

    def test_split_requires_positive_amount_and_category(self, test_user):
        transaction = TransactionFactory(owner=test_user)

        with pytest.raises(ValidationError):
            TransactionSplit(transaction=transaction, amount=Decimal("0"), category_id="x").full_clean()
        with pytest.raises(ValidationError):
            TransactionSplit(transaction=transaction, amount=Decimal("5"), category_id="").full_clean()

    def test_deleting_budget_row_unassigns_splits(self, test_user):
        budget = BudgetFactory(owner=test_user, start_date=date(2030, 1, 1))
        split = TransactionSplitFactory(transaction__owner=test_user, budget=budget)
        budget.periods.all().delete()

        budget.delete()

        split.refresh_from_db()
        assert split.budget_id is None
