"""
Category matching and deterministic budget selection for splits.
"""


def match_category(split, category_ids):
    """
    Check whether a split belongs to a budget's category list.

    A split matches on its primary category id or its detailed category id.
    Works with ``TransactionSplit`` instances and ``SplitSnapshot`` objects.
    """
    if not category_ids:
        return False
    wanted = set(category_ids)
    detailed = getattr(split, "detailed_category_id", "") or ""
    return split.category_id in wanted or (bool(detailed) and detailed in wanted)


def _priority(budget, split):
    # Category match first, then the oldest budget, then the lowest id
    return (0 if match_category(split, budget.category_ids) else 1, budget.start_date, budget.pk)


def select_budget_for_split(
    split, day, budgets, catch_all=None, require_category_match=True, exclude_ids=()
):
    """
    Pick the budget a split should point at.

    Args:
        split: Split (or snapshot) being placed
        day: Transaction date of the split
        budgets: Candidate budgets; inactive and catch-all budgets are ignored
        catch_all: Owner's catch-all budget, used when nothing else qualifies
        require_category_match: When False any budget whose window contains
            ``day`` is eligible and category match only breaks ties
        exclude_ids: Budget ids that must not be chosen

    Returns:
        Budget or None: None means the split stays unassigned
    """
    eligible = [
        budget
        for budget in budgets
        if budget.is_active
        and not budget.is_system_catch_all
        and budget.pk not in exclude_ids
        and budget.covers_date(day)
        and (not require_category_match or match_category(split, budget.category_ids))
    ]
    if eligible:
        return min(eligible, key=lambda budget: _priority(budget, split))

    if catch_all is not None and catch_all.is_active and catch_all.pk not in exclude_ids:
        return catch_all
    return None
