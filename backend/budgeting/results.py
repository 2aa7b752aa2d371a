"""
Accumulating result objects returned by the allocation engine.

Bulk operations report partial failures through ``errors`` instead of
raising, so callers always receive one of these.
"""

from collections import Counter
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Dict, List


@dataclass
class GenerationResult:
    budget_id: int
    periods_created: int = 0
    periods_skipped: int = 0
    period_type_counts: Dict[str, int] = field(default_factory=Counter)
    errors: List[str] = field(default_factory=list)

    def to_dict(self):
        data = asdict(self)
        data["period_type_counts"] = dict(self.period_type_counts)
        return data


@dataclass
class ReconciliationResult:
    periods_updated: int = 0
    budgets_affected: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    period_type_counts: Dict[str, int] = field(default_factory=Counter)

    @property
    def success(self):
        return not self.errors

    def merge(self, other):
        """Fold another reconciliation into this one."""
        self.periods_updated += other.periods_updated
        for budget_id in other.budgets_affected:
            if budget_id not in self.budgets_affected:
                self.budgets_affected.append(budget_id)
        self.errors.extend(other.errors)
        self.period_type_counts.update(other.period_type_counts)
        return self

    def to_dict(self):
        data = asdict(self)
        data["period_type_counts"] = dict(self.period_type_counts)
        return data


@dataclass
class RecalculationResult:
    budget_id: int
    transactions_processed: int = 0
    total_spending_found: Decimal = Decimal("0.00")
    periods_updated: int = 0
    splits_reassigned: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def success(self):
        return not self.errors

    def to_dict(self):
        data = asdict(self)
        data["total_spending_found"] = str(self.total_spending_found)
        return data


@dataclass
class ReassignmentResult:
    budget_id: int
    success: bool = True
    transactions_reassigned: int = 0
    budget_assignments: Dict[str, int] = field(default_factory=Counter)
    batch_count: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self):
        data = asdict(self)
        data["budget_assignments"] = dict(self.budget_assignments)
        return data
