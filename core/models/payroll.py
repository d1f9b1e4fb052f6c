"""Payroll run ledger used as an idempotency key per budget and period."""

from django.db import models

from .budget import Budget
from .transaction import Transaction


class PayrollRun(models.Model):
    budget = models.ForeignKey(
        Budget, on_delete=models.CASCADE, related_name="payroll_runs"
    )
    period = models.CharField(max_length=7)  # YYYY-MM
    transaction = models.ForeignKey(
        Transaction, on_delete=models.SET_NULL, blank=True, null=True
    )
    forced = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        app_label = "core"
        ordering = ("-created_at",)
        constraints = [
            models.UniqueConstraint(
                fields=("budget", "period"),
                condition=models.Q(forced=False),
                name="unique_scheduled_payroll_run",
            ),
        ]
