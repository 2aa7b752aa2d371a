import logging

from django.contrib.auth import get_user_model
from django.db.models.signals import post_save, pre_save
from django.dispatch import Signal, receiver

from . import triggers
from .models import Budget
from .services.budget_service import BudgetService

logger = logging.getLogger(__name__)

# Sent by TransactionService after every write with old/new TransactionSnapshot
transaction_written = Signal()

WINDOW_FIELDS = ("start_date", "is_ongoing", "budget_end_date")
ALLOCATION_FIELDS = ("amount", "period")


@receiver(transaction_written)
def reconcile_transaction_spending(sender, old=None, new=None, owner_id=None, **kwargs):
    """
    Signal to reconcile budget period spending after a transaction write.
    """
    result = triggers.on_transaction_write(old, new, owner_id)
    if result.errors:
        logger.error(
            "Transaction spending reconciliation finished with errors",
            extra={
                "owner_id": owner_id,
                "errors": result.errors,
                "action": "reconcile_signal_errors",
                "component": "signals",
                "severity": "high",
            },
        )


@receiver(pre_save, sender=Budget)
def capture_previous_budget_state(sender, instance, **kwargs):
    """
    Signal to remember the stored state of a budget before it is saved.
    """
    instance._previous_state = None
    if instance.pk is None:
        return
    previous = (
        Budget.objects.filter(pk=instance.pk)
        .values("is_active", "category_ids", *WINDOW_FIELDS, *ALLOCATION_FIELDS)
        .first()
    )
    instance._previous_state = previous


def _changed(previous, instance, fields):
    return any(previous[field] != getattr(instance, field) for field in fields)


@receiver(post_save, sender=Budget)
def process_budget_change(sender, instance, created, raw=False, **kwargs):
    """
    Signal to keep budget periods in step with budget creation, edits and deletion.
    """
    if raw:
        return

    previous = getattr(instance, "_previous_state", None)
    logger.debug(
        f"process_budget_change signal called for budget {instance.pk}, created={created}"
    )

    if created or previous is None:
        if instance.is_active:
            triggers.on_budget_created(instance)
        return

    if previous["is_active"] and not instance.is_active:
        triggers.on_budget_deleted(instance)
        return
    if not instance.is_active:
        return

    window_changed = _changed(previous, instance, WINDOW_FIELDS)
    if _changed(previous, instance, ALLOCATION_FIELDS) and not window_changed:
        triggers.on_budget_amount_changed(instance)
    if window_changed:
        triggers.on_budget_window_changed(instance)
    elif sorted(previous["category_ids"] or []) != sorted(instance.category_ids or []):
        triggers.on_budget_categories_changed(instance)


@receiver(post_save, sender=get_user_model())
def create_catch_all_budget(sender, instance, created, raw=False, **kwargs):
    """
    Signal to automatically create the catch-all budget when a new user is created.
    """
    if created and not raw:
        logger.info(f"Creating catch-all budget for user {instance.pk}")
        BudgetService.ensure_catch_all_budget(instance)
