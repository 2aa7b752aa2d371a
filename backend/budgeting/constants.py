"""
Shared constants for the budgeting app.
"""

PERIOD_WEEKLY = "weekly"
PERIOD_BI_MONTHLY = "bi_monthly"
PERIOD_MONTHLY = "monthly"

PERIOD_TYPES = [
    (PERIOD_WEEKLY, "Weekly"),
    (PERIOD_BI_MONTHLY, "Bi-monthly"),
    (PERIOD_MONTHLY, "Monthly"),
]

PERIOD_TYPE_VALUES = (PERIOD_WEEKLY, PERIOD_BI_MONTHLY, PERIOD_MONTHLY)

# Day on which the first bi-monthly half of a month ends
BI_MONTHLY_SPLIT_DAY = 15

DAYS_IN_WEEK = 7

# Reported destination for splits that have no budget
UNASSIGNED_BUDGET_ID = "unassigned"

CATCH_ALL_BUDGET_NAME = "Everything Else"

DEFAULT_BATCH_WRITE_LIMIT = 500
DEFAULT_PERIOD_HORIZON_MONTHS = 12
