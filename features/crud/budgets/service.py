import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.contrib.auth.models import User
from django.db import transaction as db_transaction

from core.exceptions import AuthorizationError, NotFoundError, ValidationError
from core.models import Budget, BudgetAutoBalanceSource, BudgetShare
from features.ledger.calculator import BudgetSummary

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 50


def get_budget_for_user(budget_id: int, user: User) -> Budget:
    """
    Fetch a budget the caller may act on.

    Raises NotFoundError when the budget does not exist and
    AuthorizationError when ``user`` is not one of its members.
    """
    budget = Budget.objects.filter(id=budget_id).first()
    if budget is None:
        raise NotFoundError("Budget not found")
    if not BudgetShare.objects.filter(budget_id=budget_id, user_id=user.id).exists():
        raise AuthorizationError("You do not have access to this budget")
    return budget


def get_budgets_for_user(budget_ids: List[int], user: User) -> Dict[int, Budget]:
    return {bid: get_budget_for_user(bid, user) for bid in dict.fromkeys(budget_ids)}


def list_budgets(user: User) -> List[Budget]:
    return list(Budget.objects.filter(shares__user_id=user.id).order_by("id"))


def _clean_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name is required")
    if len(name) > NAME_MAX_LENGTH:
        raise ValidationError(f"Name must be at most {NAME_MAX_LENGTH} characters")
    return name


def _clean_payroll(payroll: Any) -> Decimal:
    payroll = Decimal(str(payroll if payroll is not None else 0))
    if payroll < 0:
        raise ValidationError("Payroll must be >= 0")
    return payroll.quantize(Decimal("0.01"))


def create_budget(user: User, name: str, payroll: Any = 0) -> Budget:
    """Create a budget with ``user`` as its first member."""
    with db_transaction.atomic():
        budget = Budget.objects.create(name=_clean_name(name), payroll=_clean_payroll(payroll))
        BudgetShare.objects.create(budget=budget, user=user)
    logger.info("User %s created budget %s", user.id, budget.id)
    return budget


def update_budget(budget: Budget, updates: Dict[str, Any]) -> Budget:
    fields = []
    if "name" in updates:
        budget.name = _clean_name(updates["name"])
        fields.append("name")
    if "payroll" in updates:
        budget.payroll = _clean_payroll(updates["payroll"])
        fields.append("payroll")
    if not fields:
        raise ValidationError("No fields provided for update")
    budget.save(update_fields=fields + ["updated_at"])
    return budget


def delete_budget(budget: Budget) -> None:
    """Delete a budget; transactions, shares and sources cascade with it."""
    budget_id = budget.id
    budget.delete()
    logger.info("Deleted budget %s", budget_id)


def get_auto_balance_sources(budget: Budget) -> List[BudgetAutoBalanceSource]:
    return list(budget.auto_balance_sources.order_by("source_budget_id"))


def update_auto_balance(
    budget: Budget, user: User, enabled: bool, sources: List[Dict[str, int]]
) -> Budget:
    """Replace the auto-balance configuration of ``budget``."""
    seen = set()
    for source in sources:
        source_id = source["source_budget_id"]
        weight = source["weight"]
        if source_id == budget.id:
            raise ValidationError("Source budget cannot match target")
        if weight < 0 or weight > 100:
            raise ValidationError("Weight must be between 0 and 100")
        if source_id in seen:
            raise ValidationError("Duplicate source budget")
        seen.add(source_id)
        get_budget_for_user(source_id, user)

    with db_transaction.atomic():
        budget.auto_balance_enabled = enabled
        budget.save(update_fields=["auto_balance_enabled", "updated_at"])
        budget.auto_balance_sources.all().delete()
        BudgetAutoBalanceSource.objects.bulk_create(
            [
                BudgetAutoBalanceSource(
                    budget=budget,
                    source_budget_id=source["source_budget_id"],
                    weight=source["weight"],
                )
                for source in sources
                if source["weight"] > 0
            ]
        )
    return budget


def format_budget(budget: Budget, summary: BudgetSummary) -> Dict[str, Any]:
    """Budget row plus its freshly computed summary, ready for JSON."""
    return {
        "id": budget.id,
        "name": budget.name,
        "payroll": float(budget.payroll),
        "payroll_run_at": budget.payroll_run_at,
        "auto_balance_enabled": budget.auto_balance_enabled,
        "balance": float(summary.balance),
        "credits": float(summary.credits),
        "debits": float(summary.debits),
        "avg_debit": float(summary.avg_debit),
        "max_debit": float(summary.max_debit),
        "credits_this_month": float(summary.credits_this_month),
        "debits_this_month": float(summary.debits_this_month),
        "window_days": summary.window_days,
        "created_at": budget.created_at,
        "updated_at": budget.updated_at,
    }
