"""
Domain exceptions raised by the budgeting services.

Bulk operations never raise these per record; they are reserved for
failures of the call's direct subject (missing or not-deleted budget).
"""


class BudgetServiceError(Exception):
    """Base class for budgeting service errors."""

    default_message = "Budget operation failed"

    def __init__(self, message=None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)


class BudgetNotFoundError(BudgetServiceError):
    """The budget that is the subject of the call does not exist."""

    default_message = "Budget not found"


class BudgetPreconditionError(BudgetServiceError):
    """The call's subject is in a state that does not allow the operation."""

    default_message = "Budget precondition failed"
