from dataclasses import dataclass
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

from django.test import SimpleTestCase

from features.ledger import calculator


@dataclass
class Txn:
    amount: Decimal
    credit: bool
    created_at: datetime


NOW = datetime(2024, 5, 15, 12, 0, tzinfo=dt_timezone.utc)


def txn(amount, credit, when=NOW):
    return Txn(Decimal(amount), credit, when)


class BalanceCalculatorTests(SimpleTestCase):
    def test_balance_is_credits_minus_debits(self):
        txns = [txn("100.00", True), txn("40.00", False)]
        self.assertEqual(calculator.balance(txns), Decimal("60.00"))

    def test_balance_is_never_windowed(self):
        old = NOW - timedelta(days=400)
        txns = [txn("100.00", True, old), txn("10.00", False)]
        self.assertEqual(calculator.balance(txns), Decimal("90.00"))
        self.assertEqual(calculator.credits(txns, NOW), Decimal("0.00"))

    def test_no_debits_gives_zero_average_and_max(self):
        txns = [txn("100.00", True)]
        self.assertEqual(calculator.avg_debit(txns, NOW), Decimal("0.00"))
        self.assertEqual(calculator.max_debit(txns, NOW), Decimal("0.00"))
        self.assertEqual(calculator.avg_debit([], NOW), Decimal("0"))

    def test_window_aggregates(self):
        txns = [
            txn("10.00", False, NOW - timedelta(days=1)),
            txn("25.00", False, NOW - timedelta(days=2)),
            txn("5.00", False, NOW - timedelta(days=3)),
            txn("500.00", False, NOW - timedelta(days=45)),
            txn("70.00", True, NOW - timedelta(days=5)),
        ]
        self.assertEqual(calculator.debits(txns, NOW), Decimal("40.00"))
        self.assertEqual(calculator.credits(txns, NOW), Decimal("70.00"))
        self.assertEqual(calculator.avg_debit(txns, NOW), Decimal("13.33"))
        self.assertEqual(calculator.max_debit(txns, NOW), Decimal("25.00"))
        self.assertEqual(
            calculator.debits(txns, NOW, window=timedelta(days=60)), Decimal("540.00")
        )

    def test_rolling_window_cutoff_is_exclusive(self):
        edge = txn("8.00", False, NOW - timedelta(days=30))
        self.assertEqual(calculator.debits([edge], NOW), Decimal("0.00"))

    def test_this_month_uses_calendar_boundary(self):
        first_of_month = datetime(2024, 5, 1, 0, 0, tzinfo=dt_timezone.utc)
        last_of_previous = datetime(2024, 4, 30, 23, 59, tzinfo=dt_timezone.utc)
        txns = [
            txn("11.00", True, first_of_month),
            txn("7.00", True, last_of_previous),
            txn("3.00", False, first_of_month),
            txn("2.00", False, last_of_previous),
        ]
        self.assertEqual(calculator.credits_this_month(txns, NOW), Decimal("11.00"))
        self.assertEqual(calculator.debits_this_month(txns, NOW), Decimal("3.00"))
        # Both fall inside the rolling 30 days
        self.assertEqual(calculator.credits(txns, NOW), Decimal("18.00"))

    def test_summarize(self):
        summary = calculator.summarize([txn("100.00", True), txn("40.00", False)], NOW)
        self.assertEqual(summary.balance, Decimal("60.00"))
        self.assertEqual(summary.credits, Decimal("100.00"))
        self.assertEqual(summary.debits, Decimal("40.00"))
        self.assertEqual(summary.avg_debit, Decimal("40.00"))
        self.assertEqual(summary.max_debit, Decimal("40.00"))
        self.assertEqual(summary.window_days, 30)
