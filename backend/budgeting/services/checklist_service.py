"""
Service for the checklist items planned inside a budget period.

Items are plain planning aids: they never change a period's allocation
or spending.
"""

import logging

from django.db import transaction as db_transaction
from django.db.models import Max

from ..exceptions import BudgetPreconditionError
from ..models import ChecklistItem

# Get structured logger for this module
logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "name",
    "transaction_split",
    "expected_amount",
    "actual_amount",
    "is_checked",
)


class ChecklistService:
    """
    Service for handling checklist item operations with transaction safety.
    """

    @staticmethod
    @db_transaction.atomic
    def add_item(period, data):
        """
        Append a checklist item to a budget period.

        Args:
            period: BudgetPeriod instance owned by the caller
            data: Dict of item field values

        Returns:
            ChecklistItem: Saved item, positioned after the existing ones

        Raises:
            BudgetPreconditionError: If the period is no longer active
            ValidationError: If the item data is invalid
        """
        if not period.is_active:
            raise BudgetPreconditionError(
                "Cannot add checklist items to an inactive period",
                budget_period_id=period.pk,
            )

        last_position = period.checklist_items.aggregate(last=Max("position"))["last"]
        values = {field: data[field] for field in EDITABLE_FIELDS if field in data}
        item = ChecklistItem(
            budget_period=period,
            position=0 if last_position is None else last_position + 1,
            **values,
        )
        item.full_clean()
        item.save()

        logger.info(
            "Checklist item added",
            extra={
                "budget_period_id": period.pk,
                "checklist_item_id": item.pk,
                "action": "checklist_item_added",
                "component": "ChecklistService",
            },
        )
        return item

    @staticmethod
    @db_transaction.atomic
    def update_item(item, data):
        """Apply a partial update to a checklist item."""
        for field in EDITABLE_FIELDS:
            if field in data:
                setattr(item, field, data[field])
        item.full_clean()
        item.save()

        logger.info(
            "Checklist item updated",
            extra={
                "checklist_item_id": item.pk,
                "fields": sorted(field for field in data if field in EDITABLE_FIELDS),
                "action": "checklist_item_updated",
                "component": "ChecklistService",
            },
        )
        return item

    @staticmethod
    @db_transaction.atomic
    def toggle_item(item):
        """Flip the checked state of a checklist item."""
        item.is_checked = not item.is_checked
        item.save(update_fields=["is_checked", "updated_at"])

        logger.info(
            "Checklist item toggled",
            extra={
                "checklist_item_id": item.pk,
                "is_checked": item.is_checked,
                "action": "checklist_item_toggled",
                "component": "ChecklistService",
            },
        )
        return item

    @staticmethod
    @db_transaction.atomic
    def delete_item(item):
        item_id = item.pk
        period_id = item.budget_period_id
        item.delete()

        logger.info(
            "Checklist item deleted",
            extra={
                "budget_period_id": period_id,
                "checklist_item_id": item_id,
                "action": "checklist_item_deleted",
                "component": "ChecklistService",
            },
        )
