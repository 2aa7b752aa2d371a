"""
Database models for the budget period allocation engine.

This module defines calendar source periods, budgets, the per-period budget
allocations derived from them, and the transactions (with splits) whose
spending is reconciled against those allocations.
"""

import logging
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q

from .constants import PERIOD_TYPES, UNASSIGNED_BUDGET_ID
from .managers import OwnerScopedManager

# Get structured logger for this module
logger = logging.getLogger(__name__)

MONEY_MAX_DIGITS = 14
MONEY_DECIMAL_PLACES = 2


# -------------------------------------------------------------------
# SOURCE PERIODS
# -------------------------------------------------------------------
# Calendar boundaries shared by every budget (read-only to the engine)


class SourcePeriod(models.Model):
    """
    Calendar interval of one granularity (weekly, bi-monthly, monthly).

    Source periods are produced by the period generator command and only
    read by the allocation engine. ``end_date`` is inclusive.
    """

    period_id = models.CharField(max_length=16, unique=True)
    type = models.CharField(max_length=10, choices=PERIOD_TYPES)
    start_date = models.DateField()
    end_date = models.DateField()
    year = models.PositiveIntegerField()
    index = models.PositiveIntegerField()
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["start_date", "type"]
        indexes = [
            models.Index(fields=["type", "start_date"], name="idx_source_type_start"),
            models.Index(fields=["start_date"], name="idx_source_start"),
        ]

    def __str__(self):
        """String representation of SourcePeriod."""
        return f"{self.period_id} ({self.start_date} - {self.end_date})"

    def clean(self):
        """Validate period boundaries."""
        super().clean()
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError("Source period end date must not precede start date.")

    @property
    def day_count(self):
        return (self.end_date - self.start_date).days + 1

    def contains(self, day):
        return self.start_date <= day <= self.end_date


# -------------------------------------------------------------------
# BUDGETS
# -------------------------------------------------------------------
# Spending blueprints defined in one native cadence


class Budget(models.Model):
    """
    Recurring spending limit defined in one native period type.

    A budget tracks a set of category identifiers between ``start_date`` and
    either an explicit ``budget_end_date`` or indefinitely (``is_ongoing``).
    Each owner has exactly one active system catch-all budget
    ("Everything Else") that absorbs spending no other budget claims.
    Budgets are soft-deleted by clearing ``is_active``.
    """

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="budgets"
    )
    name = models.CharField(max_length=100)
    period = models.CharField(max_length=10, choices=PERIOD_TYPES)
    amount = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        default=Decimal("0.00"),
    )
    category_ids = models.JSONField(default=list, blank=True)
    start_date = models.DateField()
    is_ongoing = models.BooleanField(default=True)
    budget_end_date = models.DateField(null=True, blank=True)
    is_system_catch_all = models.BooleanField(default=False)
    alert_threshold = models.PositiveSmallIntegerField(
        default=80, validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    is_active = models.BooleanField(default=True)
    periods_generated_until = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = OwnerScopedManager()

    class Meta:
        ordering = ["start_date", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["owner"],
                condition=Q(is_system_catch_all=True, is_active=True),
                name="unique_active_catch_all_per_owner",
            )
        ]
        indexes = [
            models.Index(fields=["owner", "is_active"], name="idx_budget_owner_active"),
            models.Index(
                fields=["owner", "is_system_catch_all"], name="idx_budget_owner_catch_all"
            ),
        ]

    def __str__(self):
        """String representation of Budget."""
        return f"{self.name} ({self.period}, {self.amount})"

    @property
    def window_end(self):
        """Last day the budget is active, or None for ongoing budgets."""
        if self.is_ongoing:
            return None
        return self.budget_end_date

    def covers_date(self, day):
        """Check whether ``day`` falls inside the budget's active window."""
        if day < self.start_date:
            return False
        end = self.window_end
        return end is None or day <= end

    def clean(self):
        """Validate budget window, amount and category list."""
        super().clean()

        if self.amount is not None and self.amount < 0:
            raise ValidationError({"amount": "Budget amount cannot be negative."})

        if not self.is_ongoing and not self.budget_end_date:
            raise ValidationError(
                {"budget_end_date": "A budget that is not ongoing needs an end date."}
            )

        if self.is_ongoing and self.budget_end_date:
            raise ValidationError(
                {"budget_end_date": "An ongoing budget cannot have an end date."}
            )

        if (
            self.budget_end_date
            and self.start_date
            and self.budget_end_date < self.start_date
        ):
            raise ValidationError(
                {"budget_end_date": "Budget end date must not precede start date."}
            )

        if not isinstance(self.category_ids, list) or any(
            not isinstance(category_id, str) or not category_id.strip()
            for category_id in self.category_ids
        ):
            raise ValidationError(
                {"category_ids": "Category ids must be a list of non-empty strings."}
            )

        if self.is_system_catch_all and (self.amount or self.category_ids):
            raise ValidationError(
                "The catch-all budget has no amount and no categories."
            )

        logger.debug(
            "Budget validation completed",
            extra={
                "budget_id": self.id if self.id else "new",
                "period": self.period,
                "is_catch_all": self.is_system_catch_all,
                "action": "budget_validation",
                "component": "Budget",
            },
        )


# -------------------------------------------------------------------
# BUDGET PERIODS
# -------------------------------------------------------------------
# One prorated allocation per (budget, source period) pair


class BudgetPeriod(models.Model):
    """
    Materialized allocation of a budget for one source period.

    ``allocated_amount`` is the budget amount prorated into this period;
    ``spent`` is the running total of matching splits and
    ``remaining`` is always ``allocated_amount - spent``.
    """

    budget = models.ForeignKey(
        Budget, on_delete=models.RESTRICT, related_name="periods"
    )
    source_period = models.ForeignKey(
        SourcePeriod, on_delete=models.PROTECT, related_name="budget_periods"
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="budget_periods",
    )
    period_type = models.CharField(max_length=10, choices=PERIOD_TYPES)
    period_start = models.DateField()
    period_end = models.DateField()
    allocated_amount = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS, decimal_places=MONEY_DECIMAL_PLACES
    )
    spent = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        default=Decimal("0.00"),
    )
    remaining = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS, decimal_places=MONEY_DECIMAL_PLACES
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = OwnerScopedManager()

    class Meta:
        ordering = ["period_start", "period_type"]
        constraints = [
            models.UniqueConstraint(
                fields=["budget", "source_period"],
                name="unique_budget_source_period",
            )
        ]
        indexes = [
            models.Index(fields=["budget", "is_active"], name="idx_period_budget_active"),
            models.Index(
                fields=["owner", "period_start", "period_end"],
                name="idx_period_owner_range",
            ),
        ]

    def __str__(self):
        """String representation of BudgetPeriod."""
        return (
            f"{self.budget_id} | {self.period_type} {self.period_start} - "
            f"{self.period_end} | {self.spent}/{self.allocated_amount}"
        )

    def contains(self, day):
        return self.period_start <= day <= self.period_end


# -------------------------------------------------------------------
# TRANSACTIONS
# -------------------------------------------------------------------
# Spending records split across categories and budgets


class Transaction(models.Model):
    """
    Financial transaction owned by one user.

    Only approved expense transactions count toward budget spending.
    The amount attributed to budgets lives on the transaction's splits.
    """

    EXPENSE = "expense"
    INCOME = "income"
    TRANSACTION_TYPES = [
        (EXPENSE, "Expense"),
        (INCOME, "Income"),
    ]

    PENDING = "pending"
    APPROVED = "approved"
    STATUS_CHOICES = [
        (PENDING, "Pending"),
        (APPROVED, "Approved"),
    ]

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="transactions",
    )
    type = models.CharField(max_length=10, choices=TRANSACTION_TYPES)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=APPROVED)
    amount = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS, decimal_places=MONEY_DECIMAL_PLACES
    )
    transaction_date = models.DateField()
    description = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = OwnerScopedManager()

    class Meta:
        ordering = ["-transaction_date", "-created_at"]
        indexes = [
            models.Index(fields=["owner", "transaction_date"], name="idx_owner_date"),
            models.Index(
                fields=["owner", "status", "type", "transaction_date"],
                name="idx_owner_status_type_date",
            ),
        ]

    def __str__(self):
        """String representation of Transaction."""
        return f"{self.owner_id} | {self.type} | {self.amount} | {self.transaction_date}"

    @property
    def counts_toward_spending(self):
        return (
            self.is_active
            and self.status == self.APPROVED
            and self.type == self.EXPENSE
        )

    def clean(self):
        """Validate transaction amount."""
        super().clean()
        if self.amount is not None and self.amount <= 0:
            raise ValidationError({"amount": "Transaction amount must be positive."})


class TransactionSplit(models.Model):
    """
    Portion of a transaction attributed to one category and one budget.

    A NULL ``budget`` means the split is unassigned.
    """

    transaction = models.ForeignKey(
        Transaction, on_delete=models.CASCADE, related_name="splits"
    )
    position = models.PositiveSmallIntegerField(default=0)
    amount = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS, decimal_places=MONEY_DECIMAL_PLACES
    )
    category_id = models.CharField(max_length=100)
    detailed_category_id = models.CharField(max_length=100, blank=True, default="")
    budget = models.ForeignKey(
        Budget,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="splits",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["transaction", "position", "id"]
        indexes = [
            models.Index(fields=["budget"], name="idx_split_budget"),
        ]

    def __str__(self):
        """String representation of TransactionSplit."""
        return f"{self.transaction_id}#{self.position} | {self.category_id} | {self.budget_key}"

    @property
    def budget_key(self):
        """Budget id as reported in histograms, or the unassigned sentinel."""
        if self.budget_id is None:
            return UNASSIGNED_BUDGET_ID
        return str(self.budget_id)

    @property
    def category_keys(self):
        """All category identifiers this split can be matched by."""
        return [key for key in (self.category_id, self.detailed_category_id) if key]

    def clean(self):
        """Validate split amount and category id."""
        super().clean()
        if self.amount is not None and self.amount <= 0:
            raise ValidationError({"amount": "Split amount must be positive."})
        if not self.category_id or not self.category_id.strip():
            raise ValidationError({"category_id": "Split category id is required."})


# -------------------------------------------------------------------
# CHECKLIST ITEMS
# -------------------------------------------------------------------
# Planned line items tracked inside one budget period


class ChecklistItem(models.Model):
    """
    Planned expense inside a budget period, ticked off once paid.

    ``transaction_split`` optionally links the item to the split that paid it.
    """

    budget_period = models.ForeignKey(
        BudgetPeriod, on_delete=models.CASCADE, related_name="checklist_items"
    )
    name = models.CharField(max_length=100)
    transaction_split = models.ForeignKey(
        TransactionSplit,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="checklist_items",
    )
    expected_amount = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    actual_amount = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    is_checked = models.BooleanField(default=False)
    position = models.PositiveSmallIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["budget_period", "position", "id"]

    def __str__(self):
        """String representation of ChecklistItem."""
        mark = "x" if self.is_checked else " "
        return f"[{mark}] {self.name} ({self.actual_amount}/{self.expected_amount})"

    def clean(self):
        """Validate item name and split ownership."""
        super().clean()
        if not self.name or not self.name.strip():
            raise ValidationError({"name": "Checklist item name is required."})
        if self.transaction_split_id and self.budget_period_id:
            split_owner = self.transaction_split.transaction.owner_id
            if split_owner != self.budget_period.owner_id:
                raise ValidationError(
                    {"transaction_split": "Transaction split not found."}
                )
