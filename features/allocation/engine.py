"""
Allocation planning for the itemize-receipt, balance wizard, transfer and
auto-balance flows.

Everything in this module is pure: it turns inputs into a list of pending
``Posting`` values and never touches the ledger store. Money moves through
integer cents wherever it is split so that outputs always add back up to the
input total.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence, Tuple, Union

from core.exceptions import ValidationError

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
# Rounding slack when comparing allocations against a total (under one cent)
SLACK = Decimal("0.009")

DEFAULT_RECEIPT_DESCRIPTION = "Itemized receipt"
CATCH_ALL_SUFFIX = "catch-all"
DESCRIPTION_MAX_LENGTH = 500


def round2(value: Number) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(value: Number) -> int:
    return int(round2(value) * 100)


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)


@dataclass(frozen=True)
class Posting:
    """A transaction waiting to be written."""

    budget_id: int
    description: str
    credit: bool
    amount: Decimal


@dataclass(frozen=True)
class LineItem:
    budget_id: Optional[int]
    amount: Decimal
    description: str = ""


@dataclass(frozen=True)
class BudgetBalance:
    budget_id: int
    balance: Decimal


@dataclass(frozen=True)
class WeightedSource:
    budget_id: int
    weight: int


@dataclass
class ItemizePlan:
    postings: List[Posting]
    budget_ids: List[int]
    allocated: Decimal
    remainder: Decimal


@dataclass
class RebalancePlan:
    postings: List[Posting]
    total: Decimal
    coverage: Decimal
    deficit_ids: List[int]
    surplus_ids: List[int]
    warnings: List[str] = field(default_factory=list)

    @property
    def shortfall(self) -> Decimal:
        return max(self.total - self.coverage, Decimal("0.00"))


def split_evenly(total_cents: int, buckets: int) -> List[int]:
    """
    Split ``total_cents`` across ``buckets`` so the parts sum exactly to the
    total. The first ``total_cents % buckets`` buckets get one extra cent.

    Returns an empty list when there are no buckets.
    """
    if buckets <= 0:
        return []
    if total_cents < 0:
        raise ValidationError("Cannot split a negative amount")
    base, remainder = divmod(total_cents, buckets)
    return [base + 1 if i < remainder else base for i in range(buckets)]


def allocate_weighted_cents(total_cents: int, weights: Sequence[int]) -> List[int]:
    """
    Largest-remainder split of ``total_cents`` proportional to ``weights``.

    Non-positive weights get nothing. Leftover cents go to the largest
    fractional parts first, ties broken by input order.
    """
    allocations = [0] * len(weights)
    total_weight = sum(w for w in weights if w > 0)
    if total_cents <= 0 or total_weight <= 0:
        return allocations

    fractions: List[Tuple[Decimal, int]] = []
    for i, weight in enumerate(weights):
        if weight <= 0:
            continue
        exact = Decimal(total_cents) * weight / total_weight
        base = int(exact.to_integral_value(rounding=ROUND_FLOOR))
        allocations[i] = base
        fractions.append((exact - base, i))

    leftover = total_cents - sum(allocations)
    fractions.sort(key=lambda item: (-item[0], item[1]))
    for _, i in fractions[:leftover]:
        allocations[i] += 1
    return allocations


def _check_description(description: str) -> str:
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters."
        )
    return description


def _unique(balances: Sequence[BudgetBalance]) -> List[BudgetBalance]:
    """First occurrence of each budget, in the order given."""
    seen = {}
    for b in balances:
        seen.setdefault(b.budget_id, b)
    return list(seen.values())


def plan_itemized_receipt(
    total: Number,
    description: str,
    lines: Sequence[LineItem],
    catch_all_budget_id: int,
) -> ItemizePlan:
    """
    Debit each line item against its budget and drop whatever the lines do
    not cover into the catch-all budget.
    """
    total = round2(total)
    if total <= 0:
        raise ValidationError("Total must be greater than zero.")

    base_description = (description or "").strip() or DEFAULT_RECEIPT_DESCRIPTION
    # Lines that round to less than a cent have nothing to post
    active = [
        (line, round2(line.amount))
        for line in lines
        if line.budget_id is not None and round2(line.amount) > 0
    ]
    if not active:
        raise ValidationError("Add at least one line item with a budget and amount.")

    allocated = sum((amount for _, amount in active), Decimal("0.00"))
    remainder = total - allocated
    if remainder < -SLACK:
        raise ValidationError("Allocations exceed the receipt total.")

    postings: List[Posting] = []
    touched: List[int] = []
    for line, amount in active:
        line_description = (line.description or "").strip()
        postings.append(
            Posting(
                budget_id=line.budget_id,
                description=_check_description(
                    f"{base_description} - {line_description}"
                    if line_description
                    else base_description
                ),
                credit=False,
                amount=amount,
            )
        )
        if line.budget_id not in touched:
            touched.append(line.budget_id)

    if remainder > SLACK:
        postings.append(
            Posting(
                budget_id=catch_all_budget_id,
                description=_check_description(f"{base_description} - {CATCH_ALL_SUFFIX}"),
                credit=False,
                amount=remainder,
            )
        )
        if catch_all_budget_id not in touched:
            touched.append(catch_all_budget_id)

    return ItemizePlan(
        postings=postings,
        budget_ids=touched,
        allocated=allocated,
        remainder=max(remainder, Decimal("0.00")),
    )


def rebalance_description(today: date) -> str:
    return f"Balance wizard {today.isoformat()}"


def plan_rebalance(
    deficits: Sequence[BudgetBalance],
    surpluses: Sequence[BudgetBalance],
    description: str,
) -> RebalancePlan:
    """
    Cover every deficit in full and take the total evenly out of the surplus
    budgets, in the order given. Each budget is used once; a budget listed
    as a deficit is never also drawn from. Under-coverage is reported as a
    warning.
    """
    description = (description or "").strip()
    if not description:
        raise ValidationError("Description is required.")
    _check_description(description)

    negatives = [b for b in _unique(deficits) if round2(b.balance) < 0]
    deficit_ids = {b.budget_id for b in negatives}
    positives = [
        b
        for b in _unique(surpluses)
        if round2(b.balance) > 0 and b.budget_id not in deficit_ids
    ]
    if not negatives or not positives:
        raise ValidationError("Select at least one negative and one positive budget.")

    total = sum((abs(round2(b.balance)) for b in negatives), Decimal("0.00"))

    allocations = split_evenly(to_cents(total), len(positives))
    postings: List[Posting] = []
    for budget, cents in zip(positives, allocations):
        if cents <= 0:
            continue
        postings.append(
            Posting(budget.budget_id, description, credit=False, amount=from_cents(cents))
        )
    for budget in negatives:
        postings.append(
            Posting(budget.budget_id, description, credit=True, amount=abs(round2(budget.balance)))
        )

    coverage = sum((round2(b.balance) for b in positives), Decimal("0.00"))
    plan = RebalancePlan(
        postings=postings,
        total=total,
        coverage=coverage,
        deficit_ids=[b.budget_id for b in negatives],
        surplus_ids=[b.budget_id for b in positives],
    )
    if plan.shortfall > 0:
        plan.warnings.append(
            f"Surplus budgets only cover {coverage} of {total}; "
            "some of them will go negative."
        )
    return plan


def plan_transfer(
    source_budget_id: int,
    target_budget_id: int,
    amount: Number,
    description: str,
) -> List[Posting]:
    """A debit on the source paired with a credit on the target."""
    if source_budget_id == target_budget_id:
        raise ValidationError("Cannot transfer to the same budget.")
    amount = round2(amount)
    if amount <= 0:
        raise ValidationError("Amount must be greater than zero.")
    description = (description or "").strip()
    if not description:
        raise ValidationError("Description is required.")
    _check_description(description)
    return [
        Posting(source_budget_id, description, credit=False, amount=amount),
        Posting(target_budget_id, description, credit=True, amount=amount),
    ]


def plan_auto_balance(
    budget_id: int,
    budget_name: str,
    balance: Number,
    sources: Sequence[WeightedSource],
) -> List[Posting]:
    """
    Pull a negative balance back to zero from weighted source budgets: one
    debit per source and a single credit for what was actually allocated.
    """
    balance = round2(balance)
    if balance >= 0 or not sources:
        return []

    allocations = allocate_weighted_cents(to_cents(abs(balance)), [s.weight for s in sources])
    description = f"Auto-balance for {budget_name}"
    postings = [
        Posting(source.budget_id, description, credit=False, amount=from_cents(cents))
        for source, cents in zip(sources, allocations)
        if cents > 0
    ]
    allocated = sum(allocations)
    if allocated <= 0:
        return []
    postings.append(Posting(budget_id, description, credit=True, amount=from_cents(allocated)))
    return postings
