from .service_exception_handler import BudgetConflict, ServiceExceptionHandlerMixin

__all__ = ["BudgetConflict", "ServiceExceptionHandlerMixin"]
