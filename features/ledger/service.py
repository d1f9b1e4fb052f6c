"""Loads transaction sets from the ledger store and runs the calculator on them."""

from collections import defaultdict
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Iterable, Optional

from django.conf import settings
from django.utils import timezone

from core.models import Budget, Transaction

from . import calculator
from .calculator import BudgetSummary


def default_window() -> timedelta:
    return timedelta(days=getattr(settings, "DEFAULT_WINDOW_DAYS", 30))


def budget_summary(
    budget: Budget,
    now: Optional[datetime] = None,
    window: Optional[timedelta] = None,
) -> BudgetSummary:
    """Freshly computed summary for one budget."""
    txns = Transaction.objects.filter(budget_id=budget.id).only(
        "amount", "credit", "created_at"
    )
    return calculator.summarize(txns, now or timezone.now(), window or default_window())


def budget_summaries(
    budgets: Iterable[Budget],
    now: Optional[datetime] = None,
    window: Optional[timedelta] = None,
) -> Dict[int, BudgetSummary]:
    """Summaries for several budgets from a single transaction query."""
    now = now or timezone.now()
    window = window or default_window()
    ids = [b.id for b in budgets]
    grouped = defaultdict(list)
    for txn in Transaction.objects.filter(budget_id__in=ids).only(
        "budget", "amount", "credit", "created_at"
    ):
        grouped[txn.budget_id].append(txn)
    return {bid: calculator.summarize(grouped[bid], now, window) for bid in ids}


def balance_snapshot(budget_ids: Iterable[int]) -> Dict[int, Decimal]:
    """All-time balances for ``budget_ids`` read in one query."""
    ids = list(dict.fromkeys(budget_ids))
    grouped = defaultdict(list)
    for txn in Transaction.objects.filter(budget_id__in=ids).only(
        "budget", "amount", "credit"
    ):
        grouped[txn.budget_id].append(txn)
    return {bid: calculator.balance(grouped[bid]) for bid in ids}
