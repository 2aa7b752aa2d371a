import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class BudgetingConfig(AppConfig):
    """Budget period allocation engine."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "budgeting"
    verbose_name = "Budgeting"

    def ready(self):
        """Connect budget, user and transaction receivers."""
        from . import signals  # noqa: F401

        logger.debug(
            "Budgeting signal receivers connected",
            extra={"action": "signals_connected", "component": "BudgetingConfig"},
        )
