"""
Service exception handler mixin.
Translates budgeting service exceptions into DRF exceptions with structured
logging, so views contain no error-handling logic of their own.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.exceptions import APIException, NotFound
from rest_framework.exceptions import PermissionDenied as DRFPermissionDenied
from rest_framework.exceptions import ValidationError as DRFValidationError

from ..exceptions import BudgetNotFoundError, BudgetPreconditionError

logger = logging.getLogger(__name__)


class BudgetConflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The budget is not in a state that allows this operation."
    default_code = "conflict"


class ServiceExceptionHandlerMixin:
    """
    Mixin for handling service layer exceptions in views.

    Translation:
    - Django / DRF ValidationError -> 400
    - PermissionError -> 403
    - BudgetNotFoundError -> 404
    - BudgetPreconditionError -> 409
    - anything else -> 500 with a generic message

    Usage:
        result = self.handle_service_call(
            BudgetService.soft_delete_budget, budget
        )
    """

    def handle_service_call(self, service_call, *args, **kwargs):
        """
        Execute service call with exception translation and logging.

        Args:
            service_call: Service method to execute
            *args: Positional arguments for service call
            **kwargs: Keyword arguments for service call

        Returns:
            Any: Result from service call

        Raises:
            DRFValidationError: For business rule violations
            DRFPermissionDenied: For authorization failures
            NotFound: When the budget being operated on does not exist
            BudgetConflict: When the budget's state forbids the operation
            APIException: For unexpected service errors
        """
        # Extract context for logging
        service_name = getattr(service_call, "__self__", self).__class__.__name__
        method_name = getattr(service_call, "__name__", str(service_call))
        request = getattr(self, "request", None)
        user_id = getattr(getattr(request, "user", None), "id", None) if request else None

        logger.debug(
            "Service call execution initiated",
            extra={
                "service_name": service_name,
                "method_name": method_name,
                "user_id": user_id,
                "args_count": len(args),
                "kwargs_keys": list(kwargs.keys()),
                "action": "service_call_start",
                "component": "ServiceExceptionHandlerMixin",
            },
        )

        try:
            result = service_call(*args, **kwargs)

            logger.debug(
                "Service call completed successfully",
                extra={
                    "service_name": service_name,
                    "method_name": method_name,
                    "user_id": user_id,
                    "result_type": type(result).__name__,
                    "action": "service_call_success",
                    "component": "ServiceExceptionHandlerMixin",
                },
            )

            return result

        except DRFValidationError as e:
            logger.warning(
                "Service validation error (DRF)",
                extra={
                    "service_name": service_name,
                    "method_name": method_name,
                    "user_id": user_id,
                    "error_type": "DRFValidationError",
                    "error_detail": e.detail,
                    "action": "service_validation_error_drf",
                    "component": "ServiceExceptionHandlerMixin",
                    "severity": "medium",
                },
            )
            raise

        except DjangoValidationError as e:
            # Keep field errors keyed by field when the service provided them
            if hasattr(e, "error_dict"):
                detail = e.message_dict
                error_messages = e.messages
            else:
                error_messages = e.messages if hasattr(e, "messages") else [str(e)]
                detail = error_messages

            logger.warning(
                "Service validation error (Django)",
                extra={
                    "service_name": service_name,
                    "method_name": method_name,
                    "user_id": user_id,
                    "error_type": "DjangoValidationError",
                    "error_messages": error_messages,
                    "action": "service_validation_error_django",
                    "component": "ServiceExceptionHandlerMixin",
                    "severity": "medium",
                },
            )

            raise DRFValidationError(detail)

        except PermissionError as e:
            logger.warning(
                "Service permission denied",
                extra={
                    "service_name": service_name,
                    "method_name": method_name,
                    "user_id": user_id,
                    "error_type": "PermissionError",
                    "error_message": str(e),
                    "action": "service_permission_denied",
                    "component": "ServiceExceptionHandlerMixin",
                    "severity": "high",
                },
            )

            raise DRFPermissionDenied(str(e))

        except BudgetNotFoundError as e:
            logger.warning(
                "Service subject not found",
                extra={
                    "service_name": service_name,
                    "method_name": method_name,
                    "user_id": user_id,
                    "error_message": e.message,
                    "error_context": e.context,
                    "action": "service_not_found",
                    "component": "ServiceExceptionHandlerMixin",
                    "severity": "medium",
                },
            )

            raise NotFound(e.message)

        except BudgetPreconditionError as e:
            logger.warning(
                "Service precondition failed",
                extra={
                    "service_name": service_name,
                    "method_name": method_name,
                    "user_id": user_id,
                    "error_message": e.message,
                    "error_context": e.context,
                    "action": "service_precondition_failed",
                    "component": "ServiceExceptionHandlerMixin",
                    "severity": "medium",
                },
            )

            raise BudgetConflict(e.message)

        except APIException as e:
            logger.error(
                "Service API exception",
                extra={
                    "service_name": service_name,
                    "method_name": method_name,
                    "user_id": user_id,
                    "error_type": "APIException",
                    "error_detail": e.detail,
                    "status_code": e.status_code,
                    "action": "service_api_exception",
                    "component": "ServiceExceptionHandlerMixin",
                    "severity": "high",
                },
            )
            raise

        except Exception as e:
            logger.error(
                "Service operation failed unexpectedly",
                extra={
                    "service_name": service_name,
                    "method_name": method_name,
                    "user_id": user_id,
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                    "args_count": len(args),
                    "kwargs_keys": list(kwargs.keys()),
                    "action": "service_unexpected_error",
                    "component": "ServiceExceptionHandlerMixin",
                    "severity": "critical",
                },
                exc_info=True,
            )

            # Generic message so internal details do not leak to clients
            raise APIException(detail="Service operation failed", code="service_error")
