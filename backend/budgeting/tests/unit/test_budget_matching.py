from datetime import date

from budgeting.models import Budget
from budgeting.snapshots import SplitSnapshot
from budgeting.utils.budget_matching import match_category, select_budget_for_split


def make_budget(pk, category_ids, start, end=None, catch_all=False, active=True):
    return Budget(
        id=pk,
        name=f"Budget {pk}",
        period="monthly",
        category_ids=category_ids,
        start_date=start,
        is_ongoing=end is None,
        budget_end_date=end,
        is_system_catch_all=catch_all,
        is_active=active,
    )


def split(category_id="groceries", detailed=""):
    return SplitSnapshot(amount=1, category_id=category_id, detailed_category_id=detailed)


DAY = date(2025, 3, 10)


class TestMatchCategory:
    def test_matches_primary_category(self):
        assert match_category(split("groceries"), ["groceries", "dining"])

    def test_matches_detailed_category(self):
        assert match_category(split("food", "groceries"), ["groceries"])

    def test_no_match(self):
        assert not match_category(split("fuel"), ["groceries"])

    def test_empty_category_list_never_matches(self):
        assert not match_category(split("groceries"), [])


class TestSelectBudgetForSplit:
    def test_category_match_wins_over_older_budget(self):
        older = make_budget(1, ["fuel"], date(2025, 1, 1))
        matching = make_budget(2, ["groceries"], date(2025, 3, 1))

        assert select_budget_for_split(split(), DAY, [older, matching], require_category_match=False) is matching

    def test_earliest_start_then_lowest_id(self):
        late = make_budget(1, ["groceries"], date(2025, 2, 1))
        early_high_id = make_budget(3, ["groceries"], date(2025, 1, 1))
        early_low_id = make_budget(2, ["groceries"], date(2025, 1, 1))

        chosen = select_budget_for_split(split(), DAY, [late, early_high_id, early_low_id])

        assert chosen is early_low_id

    def test_budget_window_must_contain_date(self):
        ended = make_budget(1, ["groceries"], date(2025, 1, 1), end=date(2025, 2, 28))
        future = make_budget(2, ["groceries"], date(2025, 4, 1))
        catch_all = make_budget(9, [], date(2025, 1, 1), catch_all=True)

        assert select_budget_for_split(split(), DAY, [ended, future], catch_all) is catch_all

    def test_window_end_is_inclusive(self):
        budget = make_budget(1, ["groceries"], date(2025, 1, 1), end=DAY)

        assert select_budget_for_split(split(), DAY, [budget]) is budget

    def test_category_required_by_default(self):
        fuel = make_budget(1, ["fuel"], date(2025, 1, 1))

        assert select_budget_for_split(split(), DAY, [fuel]) is None
        assert select_budget_for_split(split(), DAY, [fuel], require_category_match=False) is fuel

    def test_inactive_catch_all_and_excluded_budgets_are_skipped(self):
        inactive = make_budget(1, ["groceries"], date(2025, 1, 1), active=False)
        excluded = make_budget(2, ["groceries"], date(2025, 1, 1))
        catch_all_in_list = make_budget(3, [], date(2025, 1, 1), catch_all=True)

        chosen = select_budget_for_split(
            split(), DAY, [inactive, excluded, catch_all_in_list], exclude_ids={2}
        )

        assert chosen is None
