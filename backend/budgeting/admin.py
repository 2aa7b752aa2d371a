from django.contrib import admin

from .models import (
    Budget,
    BudgetPeriod,
    ChecklistItem,
    SourcePeriod,
    Transaction,
    TransactionSplit,
)


@admin.register(SourcePeriod)
class SourcePeriodAdmin(admin.ModelAdmin):
    list_display = ("period_id", "type", "start_date", "end_date", "year", "index")
    list_filter = ("type", "year")
    search_fields = ("period_id",)


@admin.register(Budget)
class BudgetAdmin(admin.ModelAdmin):
    list_display = ("name", "owner", "period", "amount", "start_date", "is_ongoing", "is_active")
    list_filter = ("period", "is_active", "is_system_catch_all")
    search_fields = ("name", "owner__username")


class ChecklistItemInline(admin.TabularInline):
    model = ChecklistItem
    extra = 0
    raw_id_fields = ("transaction_split",)


@admin.register(BudgetPeriod)
class BudgetPeriodAdmin(admin.ModelAdmin):
    list_display = ("budget", "period_type", "period_start", "period_end", "allocated_amount", "spent", "remaining", "is_active")
    list_filter = ("period_type", "is_active")
    readonly_fields = ("spent", "remaining")
    inlines = [ChecklistItemInline]


class TransactionSplitInline(admin.TabularInline):
    model = TransactionSplit
    extra = 0


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("owner", "type", "status", "amount", "transaction_date", "is_active")
    list_filter = ("type", "status", "is_active")
    inlines = [TransactionSplitInline]
