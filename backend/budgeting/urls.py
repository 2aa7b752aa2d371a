"""
URL configuration for the budgeting API.

RESTful routes for budgets, budget periods and transactions, including the
custom budget actions (periods, recalculate, reassign, extend-periods) and the
checklist items nested under each budget period.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

# Initialize DefaultRouter for RESTful API endpoints
router = DefaultRouter()

# Budget management with soft delete and engine actions
router.register(r"budgets", views.BudgetViewSet, basename="budget")

# Read-only budget period allocations with their checklist items
router.register(r"budget-periods", views.BudgetPeriodViewSet, basename="budget-period")

# Transactions with nested splits
router.register(r"transactions", views.TransactionViewSet, basename="transaction")

urlpatterns = [
    path("", include(router.urls)),
]
