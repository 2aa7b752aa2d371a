"""
THIN API views for budgets, budget periods and transactions.

Views handle request parsing and owner scoping only; all business logic is
delegated to the services through ServiceExceptionHandlerMixin.
"""

import logging

from django.shortcuts import get_object_or_404
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from . import triggers
from .mixins import ServiceExceptionHandlerMixin
from .models import Budget, BudgetPeriod, ChecklistItem, Transaction
from .permissions import IsOwner
from .serializers import (
    BudgetPeriodFilterSerializer,
    BudgetPeriodSerializer,
    BudgetSerializer,
    ChecklistItemSerializer,
    ExtendPeriodsSerializer,
    TransactionSerializer,
)
from .services.budget_service import BudgetService
from .services.checklist_service import ChecklistService
from .services.reassignment_service import TransactionReassignmentEngine
from .services.recalculation_service import HistoricalRecalculator
from .services.transaction_service import TransactionService

# Get structured logger for this module
logger = logging.getLogger(__name__)


class BudgetViewSet(ServiceExceptionHandlerMixin, viewsets.ModelViewSet):
    """
    THIN ViewSet for budget management.
    Destroy performs a soft delete; the catch-all budget cannot be deleted.
    """

    serializer_class = BudgetSerializer
    permission_classes = [IsAuthenticated, IsOwner]
    lookup_value_regex = r"[0-9]+"

    def get_queryset(self):
        """THIN queryset - only owner scoping."""
        qs = Budget.objects.for_owner(self.request.user)
        if self.action in ["list", "update", "partial_update", "destroy", "periods", "recalculate"]:
            qs = qs.filter(is_active=True)
        return qs

    def perform_create(self, serializer):
        budget = self.handle_service_call(
            BudgetService.create_budget, self.request.user, serializer.validated_data
        )
        serializer.instance = budget

    def perform_update(self, serializer):
        budget = self.handle_service_call(
            BudgetService.update_budget, serializer.instance, serializer.validated_data
        )
        serializer.instance = budget

    def perform_destroy(self, instance):
        self.handle_service_call(BudgetService.soft_delete_budget, instance)

    @action(detail=True, methods=["get"])
    def periods(self, request, pk=None):
        """List active periods of one budget, optionally filtered by period type."""
        budget = self.get_object()
        qs = BudgetPeriod.objects.filter(budget=budget, is_active=True).select_related(
            "budget", "source_period"
        )
        period_type = request.query_params.get("period_type")
        if period_type:
            qs = qs.filter(period_type=period_type)

        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(BudgetPeriodSerializer(page, many=True).data)
        return Response(BudgetPeriodSerializer(qs, many=True).data)

    @action(detail=True, methods=["post"])
    def recalculate(self, request, pk=None):
        """Rebuild this budget's spending from transaction history."""
        budget = self.get_object()
        result = self.handle_service_call(HistoricalRecalculator().recalculate, budget)
        return Response(result.to_dict())

    @action(detail=True, methods=["post"])
    def reassign(self, request, pk=None):
        """Re-home the splits of a deleted budget."""
        engine = TransactionReassignmentEngine()
        result = self.handle_service_call(engine.reassign, int(pk), request.user.id)
        return Response(result.to_dict())

    @action(detail=False, methods=["post"], url_path="extend-periods")
    def extend_periods(self, request):
        """
        Generate periods ahead for the user's budgets.

        With ``range_start`` and ``range_end`` the explicit date range is
        generated instead of the ``months_forward`` horizon.
        """
        serializer = ExtendPeriodsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        params = serializer.validated_data

        if params.get("range_start") is not None:
            summary = self.handle_service_call(
                triggers.extend_periods_range,
                params["range_start"],
                params["range_end"],
                budget_id=params.get("budget_id"),
                owner_id=request.user.id,
            )
        else:
            summary = self.handle_service_call(
                triggers.extend_periods,
                budget_id=params.get("budget_id"),
                owner_id=request.user.id,
                months_forward=params.get("months_forward"),
            )
        return Response(summary)


class BudgetPeriodViewSet(ServiceExceptionHandlerMixin, viewsets.ReadOnlyModelViewSet):
    """
    Read-only access to the user's budget periods, plus their checklist items.

    Query parameters: ``period_type``, ``date`` (periods containing the day)
    and ``budget``.
    """

    serializer_class = BudgetPeriodSerializer
    permission_classes = [IsAuthenticated, IsOwner]
    lookup_value_regex = r"[0-9]+"

    def get_queryset(self):
        filters = BudgetPeriodFilterSerializer(data=self.request.query_params)
        filters.is_valid(raise_exception=True)
        params = filters.validated_data

        qs = BudgetPeriod.objects.for_owner(self.request.user, active_only=True).select_related(
            "budget", "source_period"
        )
        if params.get("period_type"):
            qs = qs.filter(period_type=params["period_type"])
        if params.get("date"):
            qs = qs.filter(period_start__lte=params["date"], period_end__gte=params["date"])
        if params.get("budget"):
            qs = qs.filter(budget_id=params["budget"])

        logger.debug(
            "Budget periods queryset prepared",
            extra={
                "user_id": self.request.user.id,
                "filters": {key: str(value) for key, value in params.items()},
                "action": "budget_periods_queryset",
                "component": "BudgetPeriodViewSet",
            },
        )
        return qs

    def _checklist_item(self, period, item_id):
        return get_object_or_404(ChecklistItem, budget_period=period, pk=item_id)

    @action(detail=True, methods=["get", "post"], url_path="checklist-items")
    def checklist_items(self, request, pk=None):
        """List or add the checklist items of one period."""
        period = self.get_object()
        if request.method == "GET":
            items = period.checklist_items.all()
            return Response(ChecklistItemSerializer(items, many=True).data)

        serializer = ChecklistItemSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        item = self.handle_service_call(
            ChecklistService.add_item, period, serializer.validated_data
        )
        return Response(ChecklistItemSerializer(item).data, status=status.HTTP_201_CREATED)

    @action(
        detail=True,
        methods=["patch", "delete"],
        url_path=r"checklist-items/(?P<item_id>[0-9]+)",
    )
    def checklist_item(self, request, pk=None, item_id=None):
        """Update or delete one checklist item."""
        item = self._checklist_item(self.get_object(), item_id)
        if request.method == "DELETE":
            self.handle_service_call(ChecklistService.delete_item, item)
            return Response(status=status.HTTP_204_NO_CONTENT)

        serializer = ChecklistItemSerializer(
            item, data=request.data, partial=True, context={"request": request}
        )
        serializer.is_valid(raise_exception=True)
        item = self.handle_service_call(
            ChecklistService.update_item, item, serializer.validated_data
        )
        return Response(ChecklistItemSerializer(item).data)

    @action(
        detail=True,
        methods=["post"],
        url_path=r"checklist-items/(?P<item_id>[0-9]+)/toggle",
    )
    def toggle_checklist_item(self, request, pk=None, item_id=None):
        item = self._checklist_item(self.get_object(), item_id)
        item = self.handle_service_call(ChecklistService.toggle_item, item)
        return Response(ChecklistItemSerializer(item).data)


class TransactionViewSet(
    ServiceExceptionHandlerMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    THIN ViewSet for transactions with nested splits.
    Every write goes through TransactionService so budget spending stays reconciled.
    """

    serializer_class = TransactionSerializer
    permission_classes = [IsAuthenticated, IsOwner]

    def get_queryset(self):
        qs = Transaction.objects.for_owner(self.request.user).prefetch_related("splits")
        tx_type = self.request.query_params.get("type")
        if tx_type in [Transaction.EXPENSE, Transaction.INCOME]:
            qs = qs.filter(type=tx_type)
        return qs

    def _split_payload(self, validated_data):
        splits = validated_data.pop("splits", None)
        if splits is None:
            return None
        return [dict(split) for split in splits]

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        splits = self._split_payload(data)

        transaction = self.handle_service_call(
            TransactionService.create_transaction, request.user, data, splits
        )
        return Response(
            self.get_serializer(transaction).data, status=status.HTTP_201_CREATED
        )

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        splits = self._split_payload(data)

        transaction = self.handle_service_call(
            TransactionService.update_transaction, instance, data, splits
        )
        transaction = Transaction.objects.prefetch_related("splits").get(pk=transaction.pk)
        return Response(self.get_serializer(transaction).data)

    def partial_update(self, request, *args, **kwargs):
        kwargs["partial"] = True
        return self.update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        self.handle_service_call(TransactionService.delete_transaction, instance)
        return Response(status=status.HTTP_204_NO_CONTENT)
