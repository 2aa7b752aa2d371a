"""
Immutable views of a transaction before and after a write.

The spending reconciler compares two snapshots of the same transaction, so
the write path captures them while the database still holds the old state.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional, Tuple

from .constants import UNASSIGNED_BUDGET_ID


@dataclass(frozen=True)
class SplitSnapshot:
    amount: Decimal
    category_id: str
    detailed_category_id: str = ""
    budget_id: Optional[int] = None

    @classmethod
    def from_instance(cls, split):
        return cls(
            amount=Decimal(split.amount),
            category_id=split.category_id,
            detailed_category_id=split.detailed_category_id or "",
            budget_id=split.budget_id,
        )

    @property
    def budget_key(self):
        if self.budget_id is None:
            return UNASSIGNED_BUDGET_ID
        return str(self.budget_id)


@dataclass(frozen=True)
class TransactionSnapshot:
    """State of a transaction and its splits at one point in time."""

    transaction_id: Optional[int]
    owner_id: int
    type: str
    status: str
    transaction_date: date
    is_active: bool = True
    splits: Tuple[SplitSnapshot, ...] = field(default_factory=tuple)

    @classmethod
    def from_instance(cls, transaction):
        """Capture a saved ``Transaction`` together with its current splits."""
        splits = tuple(
            SplitSnapshot.from_instance(split)
            for split in transaction.splits.all().order_by("position", "id")
        )
        return cls(
            transaction_id=transaction.pk,
            owner_id=transaction.owner_id,
            type=transaction.type,
            status=transaction.status,
            transaction_date=transaction.transaction_date,
            is_active=transaction.is_active,
            splits=splits,
        )

    @property
    def counts_toward_spending(self):
        # Imported lazily to keep snapshots free of model loading at import time
        from .models import Transaction

        return (
            self.is_active
            and self.status == Transaction.APPROVED
            and self.type == Transaction.EXPENSE
        )
