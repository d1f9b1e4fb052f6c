"""
Recurring payroll credits.

A payroll run credits ``budget.payroll`` to the budget once per calendar
month. ``PayrollRun`` rows keyed by (budget, period) make a repeated or
concurrent run for the same month a no-op instead of a double credit.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction as db_transaction
from django.db.models import Q
from django.utils import timezone

from core.exceptions import NotFoundError
from core.models import Budget, PayrollRun
from features.allocation.engine import WeightedSource, plan_auto_balance
from features.crud.shares.service import first_member
from features.crud.transactions.service import create_transaction
from features.ledger.calculator import month_start
from features.ledger.service import balance_snapshot

logger = logging.getLogger(__name__)

PAYROLL_DESCRIPTION = "PAYROLL"
SKIPPED_NO_PAYROLL = "no payroll configured"
SKIPPED_ALREADY_RAN = "already ran this period"


@dataclass
class PayrollOutcome:
    budget_id: int
    transaction_id: Optional[int] = None
    skipped: Optional[str] = None
    auto_balance_transaction_ids: List[int] = field(default_factory=list)

    @property
    def created(self) -> bool:
        return self.transaction_id is not None


@dataclass
class PayrollSummary:
    created: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)


def payroll_period(now: datetime) -> str:
    return month_start(now).strftime("%Y-%m")


def _apply_auto_balance(budget: Budget) -> List[int]:
    sources = [
        WeightedSource(s.source_budget_id, s.weight)
        for s in budget.auto_balance_sources.order_by("source_budget_id")
    ]
    balance = balance_snapshot([budget.id])[budget.id]
    postings = plan_auto_balance(budget.id, budget.name, balance, sources)
    created = [
        create_transaction(p.budget_id, None, p.description, p.credit, p.amount)
        for p in postings
    ]
    if created:
        logger.info("Auto-balanced budget %s with %d posting(s)", budget.id, len(created))
    return [txn.id for txn in created]


class _DuplicateRun(Exception):
    """Another run recorded this budget and period first."""


def _already_ran(budget: Budget, now: datetime, period: str) -> bool:
    if budget.payroll_run_at and budget.payroll_run_at >= month_start(now):
        return True
    return PayrollRun.objects.filter(budget=budget, period=period, forced=False).exists()


def run_budget_payroll(
    budget_id: int, now: Optional[datetime] = None, force: bool = False
) -> PayrollOutcome:
    """
    Credit one budget's payroll for the month containing ``now``.

    ``force`` posts even if this month's payroll already ran.
    """
    now = now or timezone.now()
    period = payroll_period(now)
    try:
        with db_transaction.atomic():
            budget = Budget.objects.select_for_update().filter(id=budget_id).first()
            if budget is None:
                raise NotFoundError("Budget not found")
            if budget.payroll <= 0:
                return PayrollOutcome(budget_id, skipped=SKIPPED_NO_PAYROLL)
            if not force and _already_ran(budget, now, period):
                return PayrollOutcome(budget_id, skipped=SKIPPED_ALREADY_RAN)

            auto_ids = _apply_auto_balance(budget) if budget.auto_balance_enabled else []
            txn = create_transaction(
                budget.id,
                first_member(budget),
                PAYROLL_DESCRIPTION,
                True,
                budget.payroll,
            )
            budget.payroll_run_at = now
            budget.save(update_fields=["payroll_run_at", "updated_at"])
            try:
                with db_transaction.atomic():
                    PayrollRun.objects.create(
                        budget=budget, period=period, transaction=txn, forced=force
                    )
            except IntegrityError:
                # Unwinds the credit and auto-balance postings above
                raise _DuplicateRun() from None
    except _DuplicateRun:
        logger.info("Payroll for budget %s in %s was posted by another run", budget_id, period)
        return PayrollOutcome(budget_id, skipped=SKIPPED_ALREADY_RAN)

    logger.info("Posted payroll %s to budget %s for %s", txn.amount, budget_id, period)
    return PayrollOutcome(budget_id, transaction_id=txn.id, auto_balance_transaction_ids=auto_ids)


def due_budget_ids(now: datetime) -> List[int]:
    """Budgets with a payroll that has not run yet this month."""
    return list(
        Budget.objects.filter(payroll__gt=0)
        .filter(Q(payroll_run_at__isnull=True) | Q(payroll_run_at__lt=month_start(now)))
        .order_by("id")
        .values_list("id", flat=True)
    )


def run_with_retry(
    budget_id: int,
    now: datetime,
    delays: Optional[Sequence[float]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> PayrollOutcome:
    """Retry a budget's payroll on database errors, then give up loudly."""
    delays = list(delays if delays is not None else settings.PAYROLL_RETRY_DELAYS) or [0]
    for attempt, delay in enumerate(delays, start=1):
        if delay > 0:
            sleep(delay)
        try:
            return run_budget_payroll(budget_id, now)
        except DatabaseError as exc:
            logger.warning(
                "Payroll attempt %d/%d for budget %s failed: %s",
                attempt,
                len(delays),
                budget_id,
                exc,
            )
            if attempt == len(delays):
                raise


def run_monthly_payroll(
    now: Optional[datetime] = None,
    delays: Optional[Sequence[float]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> PayrollSummary:
    """
    Post payroll for every due budget. A budget that keeps failing is left
    without a PayrollRun row so the next scheduled run picks it up again.
    """
    now = now or timezone.now()
    summary = PayrollSummary()
    for budget_id in due_budget_ids(now):
        try:
            outcome = run_with_retry(budget_id, now, delays=delays, sleep=sleep)
        except Exception:
            logger.exception("Failed to run payroll for budget %s", budget_id)
            summary.failed.append(budget_id)
            continue
        if outcome.created:
            summary.created.append(budget_id)
        else:
            summary.skipped.append(budget_id)
    logger.info(
        "Payroll %s: created %d, skipped %d, failed %d",
        payroll_period(now),
        len(summary.created),
        len(summary.skipped),
        len(summary.failed),
    )
    return summary
