"""Budget and sharing models."""

from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class Budget(models.Model):
    name = models.CharField(max_length=50)
    payroll = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    payroll_run_at = models.DateTimeField(blank=True, null=True)
    auto_balance_enabled = models.BooleanField(default=False)
    users = models.ManyToManyField(
        settings.AUTH_USER_MODEL, through="BudgetShare", related_name="budgets"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "core"
        ordering = ("id",)
        constraints = [
            models.CheckConstraint(
                condition=models.Q(payroll__gte=0), name="budget_payroll_non_negative"
            ),
        ]

    def __str__(self):
        return self.name


class BudgetShare(models.Model):
    """Membership of a user in a budget. Every member has the same rights."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="budget_shares"
    )
    budget = models.ForeignKey(Budget, on_delete=models.CASCADE, related_name="shares")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        app_label = "core"
        ordering = ("created_at", "id")
        constraints = [
            models.UniqueConstraint(
                fields=("user", "budget"), name="unique_budget_share"
            ),
        ]

    def __str__(self):
        return f"{self.user} -> {self.budget}"


class BudgetAutoBalanceSource(models.Model):
    budget = models.ForeignKey(
        Budget, on_delete=models.CASCADE, related_name="auto_balance_sources"
    )
    source_budget = models.ForeignKey(
        Budget, on_delete=models.CASCADE, related_name="auto_balance_targets"
    )
    weight = models.PositiveSmallIntegerField()

    class Meta:
        app_label = "core"
        ordering = ("source_budget_id",)
        constraints = [
            models.UniqueConstraint(
                fields=("budget", "source_budget"), name="unique_auto_balance_source"
            ),
            models.CheckConstraint(
                condition=models.Q(weight__gte=1) & models.Q(weight__lte=100),
                name="auto_balance_weight_range",
            ),
        ]
