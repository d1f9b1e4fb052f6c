"""Admin configuration for core models."""

from django.contrib import admin
from .models import (
    Budget,
    BudgetShare,
    BudgetAutoBalanceSource,
    Transaction,
    PayrollRun,
)


class BudgetShareInline(admin.TabularInline):
    model = BudgetShare
    extra = 0


@admin.register(Budget)
class BudgetAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "payroll", "payroll_run_at", "auto_balance_enabled")
    search_fields = ("name",)
    inlines = [BudgetShareInline]


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("id", "budget", "description", "credit", "amount", "created_at")
    list_filter = ("credit",)
    search_fields = ("description",)


# Register models
admin.site.register(BudgetAutoBalanceSource)
admin.site.register(PayrollRun)
