"""
Allocation use cases backed by the ledger store.

Callers (the API layer) check budget membership before calling in; these
functions take the caller explicitly and attribute every posting to them.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from django.contrib.auth.models import User
from django.utils import timezone

from features.crud.transactions.service import create_transaction
from features.ledger.service import balance_snapshot

from . import engine
from .engine import BudgetBalance, LineItem, Posting
from .posting import PostingReport, execute_postings

logger = logging.getLogger(__name__)


@dataclass
class AllocationResult:
    report: PostingReport
    budget_ids: List[int]
    warnings: List[str] = field(default_factory=list)

    @property
    def transaction_ids(self) -> List[int]:
        return self.report.transaction_ids


def _poster(user: Optional[User]):
    def create(posting: Posting):
        return create_transaction(
            budget_id=posting.budget_id,
            user=user,
            description=posting.description,
            credit=posting.credit,
            amount=posting.amount,
        )

    return create


def _run(user: Optional[User], postings: Sequence[Posting], label: str) -> PostingReport:
    report = execute_postings(postings, _poster(user))
    if not report.ok:
        logger.error(
            "%s stopped after %d of %d postings: %s",
            label,
            len(report.succeeded),
            len(postings),
            report.failed[0][1],
        )
    report.raise_for_failure()
    logger.info("%s posted %d transaction(s)", label, len(report.succeeded))
    return report


def post_itemized_receipt(
    user: User,
    total,
    description: str,
    lines: Sequence[LineItem],
    catch_all_budget_id: int,
) -> AllocationResult:
    plan = engine.plan_itemized_receipt(total, description, lines, catch_all_budget_id)
    report = _run(user, plan.postings, "Itemized receipt")
    return AllocationResult(report=report, budget_ids=plan.budget_ids)


def post_rebalance(
    user: User,
    deficit_budget_ids: Sequence[int],
    surplus_budget_ids: Sequence[int],
    description: Optional[str] = None,
    now: Optional[datetime] = None,
) -> AllocationResult:
    """
    Balance wizard. Balances are read once, up front, for every referenced
    budget; two wizards running at the same time are not coordinated.
    """
    balances = balance_snapshot(list(deficit_budget_ids) + list(surplus_budget_ids))
    deficits = [BudgetBalance(bid, balances[bid]) for bid in deficit_budget_ids]
    surpluses = [BudgetBalance(bid, balances[bid]) for bid in surplus_budget_ids]
    if not description:
        description = engine.rebalance_description(timezone.localdate(now or timezone.now()))

    plan = engine.plan_rebalance(deficits, surpluses, description)
    for warning in plan.warnings:
        logger.warning("Balance wizard: %s", warning)
    report = _run(user, plan.postings, "Balance wizard")
    return AllocationResult(
        report=report,
        budget_ids=plan.deficit_ids + plan.surplus_ids,
        warnings=plan.warnings,
    )


def post_transfer(
    user: User,
    source_budget_id: int,
    target_budget_id: int,
    amount,
    description: str,
) -> AllocationResult:
    postings = engine.plan_transfer(source_budget_id, target_budget_id, amount, description)
    report = _run(user, postings, "Transfer")
    return AllocationResult(report=report, budget_ids=[source_budget_id, target_budget_id])
