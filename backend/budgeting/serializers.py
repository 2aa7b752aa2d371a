"""
Serializers for the budgeting API.

Serializers validate and shape data only; writes go through the services.
"""

import logging

from rest_framework import serializers

from .constants import PERIOD_TYPES
from .models import Budget, BudgetPeriod, ChecklistItem, Transaction, TransactionSplit

# Get structured logger for this module
logger = logging.getLogger(__name__)

# Five years, matching the months_forward ceiling
MAX_EXTEND_RANGE_DAYS = 5 * 366


class BudgetSerializer(serializers.ModelSerializer):
    category_ids = serializers.ListField(
        child=serializers.CharField(max_length=100, allow_blank=False),
        required=False,
        default=list,
    )

    class Meta:
        model = Budget
        fields = [
            "id",
            "name",
            "period",
            "amount",
            "category_ids",
            "start_date",
            "is_ongoing",
            "budget_end_date",
            "is_system_catch_all",
            "alert_threshold",
            "is_active",
            "periods_generated_until",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "is_system_catch_all",
            "is_active",
            "periods_generated_until",
            "created_at",
            "updated_at",
        ]

    def validate_amount(self, value):
        if value < 0:
            raise serializers.ValidationError("Budget amount cannot be negative.")
        return value

    def validate(self, attrs):
        end_date = attrs.get("budget_end_date", getattr(self.instance, "budget_end_date", None))
        if "is_ongoing" in attrs:
            is_ongoing = attrs["is_ongoing"]
        elif attrs.get("budget_end_date") is not None:
            # An explicit end date without the flag bounds the budget
            is_ongoing = False
        else:
            is_ongoing = getattr(self.instance, "is_ongoing", True)
        start_date = attrs.get("start_date", getattr(self.instance, "start_date", None))

        if not is_ongoing and end_date is None:
            raise serializers.ValidationError(
                {"budget_end_date": "A budget that is not ongoing needs an end date."}
            )
        if end_date and start_date and end_date < start_date:
            raise serializers.ValidationError(
                {"budget_end_date": "Budget end date must not precede start date."}
            )
        return attrs


class BudgetPeriodSerializer(serializers.ModelSerializer):
    budget_name = serializers.CharField(source="budget.name", read_only=True)
    source_period_id = serializers.CharField(source="source_period.period_id", read_only=True)

    class Meta:
        model = BudgetPeriod
        fields = [
            "id",
            "budget",
            "budget_name",
            "source_period_id",
            "period_type",
            "period_start",
            "period_end",
            "allocated_amount",
            "spent",
            "remaining",
            "is_active",
        ]
        read_only_fields = fields


class ChecklistItemSerializer(serializers.ModelSerializer):
    transaction_split = serializers.PrimaryKeyRelatedField(
        queryset=TransactionSplit.objects.select_related("transaction"),
        required=False,
        allow_null=True,
    )

    class Meta:
        model = ChecklistItem
        fields = [
            "id",
            "budget_period",
            "name",
            "transaction_split",
            "expected_amount",
            "actual_amount",
            "is_checked",
            "position",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "budget_period", "position", "created_at", "updated_at"]

    def validate_expected_amount(self, value):
        if value < 0:
            raise serializers.ValidationError("Expected amount cannot be negative.")
        return value

    def validate_actual_amount(self, value):
        if value < 0:
            raise serializers.ValidationError("Actual amount cannot be negative.")
        return value

    def validate_transaction_split(self, value):
        request = self.context.get("request")
        if value is not None and request is not None:
            if value.transaction.owner_id != request.user.id:
                raise serializers.ValidationError("Transaction split not found.")
        return value


class TransactionSplitSerializer(serializers.ModelSerializer):
    budget = serializers.PrimaryKeyRelatedField(
        queryset=Budget.objects.all(), required=False, allow_null=True
    )

    class Meta:
        model = TransactionSplit
        fields = ["id", "position", "amount", "category_id", "detailed_category_id", "budget"]
        read_only_fields = ["id", "position"]

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Split amount must be positive.")
        return value

    def validate_budget(self, value):
        request = self.context.get("request")
        if value is not None and request is not None:
            if value.owner_id != request.user.id or not value.is_active:
                raise serializers.ValidationError("Budget not found.")
        return value


class TransactionSerializer(serializers.ModelSerializer):
    splits = TransactionSplitSerializer(many=True, required=False)
    category_id = serializers.CharField(
        write_only=True, required=False, allow_blank=False, max_length=100
    )

    class Meta:
        model = Transaction
        fields = [
            "id",
            "type",
            "status",
            "amount",
            "transaction_date",
            "description",
            "category_id",
            "splits",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "is_active", "created_at", "updated_at"]

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Transaction amount must be positive.")
        return value

    def validate(self, attrs):
        if self.instance is None and not attrs.get("splits") and not attrs.get("category_id"):
            raise serializers.ValidationError(
                {"splits": "At least one split or a category_id is required."}
            )
        return attrs


class ExtendPeriodsSerializer(serializers.Serializer):
    months_forward = serializers.IntegerField(min_value=1, max_value=60, required=False)
    budget_id = serializers.IntegerField(required=False, allow_null=True)
    range_start = serializers.DateField(required=False)
    range_end = serializers.DateField(required=False)

    def validate(self, attrs):
        range_start = attrs.get("range_start")
        range_end = attrs.get("range_end")
        if (range_start is None) != (range_end is None):
            raise serializers.ValidationError(
                {"range_end": "range_start and range_end must be given together."}
            )
        if range_start is None:
            return attrs
        if "months_forward" in attrs:
            raise serializers.ValidationError(
                {"months_forward": "months_forward cannot be combined with a date range."}
            )
        if range_end < range_start:
            raise serializers.ValidationError(
                {"range_end": "range_end must not precede range_start."}
            )
        if (range_end - range_start).days > MAX_EXTEND_RANGE_DAYS:
            raise serializers.ValidationError(
                {"range_end": "The range may span at most five years."}
            )
        return attrs


class BudgetPeriodFilterSerializer(serializers.Serializer):
    period_type = serializers.ChoiceField(choices=PERIOD_TYPES, required=False)
    date = serializers.DateField(required=False)
    budget = serializers.IntegerField(required=False)
