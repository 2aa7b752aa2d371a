# tests/conftest.py
import logging
from datetime import date
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from budgeting.models import Budget, BudgetPeriod
from budgeting.services.period_generation_service import BudgetPeriodGenerator
from budgeting.services.source_period_service import SourcePeriodService

User = get_user_model()

# =============================================================================
# CALENDAR FIXTURES
# =============================================================================


@pytest.fixture
def source_periods(db):
    """Source periods of every type for 2025"""
    SourcePeriodService.generate_years(2025, 2025)


# =============================================================================
# USER FIXTURES
# =============================================================================


@pytest.fixture
def test_user(db, source_periods):
    """Basic test user; the catch-all budget is created by signal"""
    return User.objects.create_user(
        username="testuser", email="test@example.com", password="testpass123"
    )


@pytest.fixture
def test_user2(db, source_periods):
    """Second test user"""
    return User.objects.create_user(
        username="testuser2", email="test2@example.com", password="testpass123"
    )


# =============================================================================
# BUDGET FIXTURES
# =============================================================================


@pytest.fixture
def catch_all(test_user):
    """Catch-all budget of test_user anchored to the start of 2025 with its periods"""
    budget = Budget.objects.get(owner=test_user, is_system_catch_all=True, is_active=True)
    Budget.objects.filter(pk=budget.pk).update(start_date=date(2025, 1, 1))
    budget.refresh_from_db()
    BudgetPeriodGenerator().generate_default(budget)
    return budget


@pytest.fixture
def grocery_budget(test_user):
    """Ongoing $100 monthly grocery budget starting 2025-02-01"""
    return Budget.objects.create(
        owner=test_user,
        name="Groceries",
        period="monthly",
        amount=Decimal("100.00"),
        category_ids=["groceries"],
        start_date=date(2025, 2, 1),
        is_ongoing=True,
    )


@pytest.fixture
def period_lookup():
    """Return the BudgetPeriod of a budget with a given type containing a day"""

    def lookup(budget, period_type, day):
        return BudgetPeriod.objects.get(
            budget=budget,
            period_type=period_type,
            period_start__lte=day,
            period_end__gte=day,
        )

    return lookup


# =============================================================================
# API FIXTURES
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated DRF API client"""
    return APIClient()


@pytest.fixture
def authenticated_client(api_client, test_user):
    """API client authenticated as test_user"""
    api_client.force_authenticate(user=test_user)
    return api_client


# =============================================================================
# LOGGING FIXTURES
# =============================================================================


@pytest.fixture
def budgeting_info_logs(caplog):
    """Capture INFO records of the budgeting logger, which does not propagate"""
    budgeting_logger = logging.getLogger("budgeting")
    previous_level = budgeting_logger.level
    budgeting_logger.setLevel(logging.INFO)
    budgeting_logger.addHandler(caplog.handler)
    try:
        yield caplog
    finally:
        budgeting_logger.removeHandler(caplog.handler)
        budgeting_logger.setLevel(previous_level)
