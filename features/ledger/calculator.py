"""
Balance calculations over a budget's transactions.

Every function here is a pure function of an iterable of transaction-like
objects (anything exposing ``amount``, ``credit`` and ``created_at``) and an
explicit ``now``. ORM rows and plain dataclasses both work. Nothing is cached:
callers recompute on every read.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable, List, Optional, Protocol

from django.utils import timezone

DEFAULT_WINDOW = timedelta(days=30)
ZERO = Decimal("0.00")
CENT = Decimal("0.01")


class TransactionLike(Protocol):
    amount: Decimal
    credit: bool
    created_at: datetime


Predicate = Callable[[TransactionLike], bool]


@dataclass(frozen=True)
class BudgetSummary:
    balance: Decimal
    credits: Decimal
    debits: Decimal
    avg_debit: Decimal
    max_debit: Decimal
    credits_this_month: Decimal
    debits_this_month: Decimal
    window_days: int


def _amount(txn: TransactionLike) -> Decimal:
    return Decimal(str(txn.amount))


def _sum(txns: Iterable[TransactionLike], predicate: Predicate) -> Decimal:
    return sum((_amount(t) for t in txns if predicate(t)), ZERO)


def is_credit(txn: TransactionLike) -> bool:
    return bool(txn.credit)


def is_debit(txn: TransactionLike) -> bool:
    return not txn.credit


def within(now: datetime, window: timedelta = DEFAULT_WINDOW) -> Predicate:
    """Rolling window: strictly newer than ``now - window``."""
    cutoff = now - window
    return lambda t: t.created_at > cutoff


def since(start: datetime) -> Predicate:
    return lambda t: t.created_at >= start


def both(*predicates: Predicate) -> Predicate:
    return lambda t: all(p(t) for p in predicates)


def month_start(now: datetime) -> datetime:
    """First instant of ``now``'s calendar month in the active timezone."""
    if timezone.is_aware(now):
        now = timezone.localtime(now)
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def balance(txns: Iterable[TransactionLike]) -> Decimal:
    """All-time credits minus debits. Never windowed."""
    total = ZERO
    for t in txns:
        total += _amount(t) if t.credit else -_amount(t)
    return total


def credits(
    txns: Iterable[TransactionLike], now: datetime, window: timedelta = DEFAULT_WINDOW
) -> Decimal:
    return _sum(txns, both(is_credit, within(now, window)))


def debits(
    txns: Iterable[TransactionLike], now: datetime, window: timedelta = DEFAULT_WINDOW
) -> Decimal:
    return _sum(txns, both(is_debit, within(now, window)))


def _window_debits(
    txns: Iterable[TransactionLike], now: datetime, window: timedelta
) -> List[Decimal]:
    predicate = both(is_debit, within(now, window))
    return [_amount(t) for t in txns if predicate(t)]


def avg_debit(
    txns: Iterable[TransactionLike], now: datetime, window: timedelta = DEFAULT_WINDOW
) -> Decimal:
    """Average debit in the window, 0.00 when there are none."""
    amounts = _window_debits(txns, now, window)
    if not amounts:
        return ZERO
    return (sum(amounts, ZERO) / len(amounts)).quantize(CENT, rounding=ROUND_HALF_UP)


def max_debit(
    txns: Iterable[TransactionLike], now: datetime, window: timedelta = DEFAULT_WINDOW
) -> Decimal:
    """Largest debit in the window, 0.00 when there are none."""
    amounts = _window_debits(txns, now, window)
    return max(amounts) if amounts else ZERO


def credits_this_month(txns: Iterable[TransactionLike], now: datetime) -> Decimal:
    return _sum(txns, both(is_credit, since(month_start(now))))


def debits_this_month(txns: Iterable[TransactionLike], now: datetime) -> Decimal:
    return _sum(txns, both(is_debit, since(month_start(now))))


def summarize(
    txns: Iterable[TransactionLike],
    now: Optional[datetime] = None,
    window: timedelta = DEFAULT_WINDOW,
) -> BudgetSummary:
    now = now or timezone.now()
    txns = list(txns)
    return BudgetSummary(
        balance=balance(txns),
        credits=credits(txns, now, window),
        debits=debits(txns, now, window),
        avg_debit=avg_debit(txns, now, window),
        max_debit=max_debit(txns, now, window),
        credits_this_month=credits_this_month(txns, now),
        debits_this_month=debits_this_month(txns, now),
        window_days=window.days,
    )
