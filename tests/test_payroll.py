from datetime import datetime, timezone as dt_timezone
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.db import IntegrityError, OperationalError
from django.test import TestCase

from core.models import BudgetAutoBalanceSource, BudgetShare, PayrollRun, Transaction
from features.ledger.service import balance_snapshot
from features.payroll import service
from features.payroll.service import (
    SKIPPED_ALREADY_RAN,
    SKIPPED_NO_PAYROLL,
    run_budget_payroll,
    run_monthly_payroll,
)

from .factories import make_budget, make_user, post

MAY = datetime(2024, 5, 10, 9, 0, tzinfo=dt_timezone.utc)
LATE_MAY = datetime(2024, 5, 28, 9, 0, tzinfo=dt_timezone.utc)
JUNE = datetime(2024, 6, 1, 0, 5, tzinfo=dt_timezone.utc)


class RunBudgetPayrollTests(TestCase):
    def setUp(self):
        self.first = make_user("first@example.com")
        self.second = make_user("second@example.com")
        self.budget = make_budget("Rent", [self.first, self.second], payroll="1200.00")

    def test_posts_one_credit_attributed_to_earliest_member(self):
        outcome = run_budget_payroll(self.budget.id, now=MAY)

        self.assertTrue(outcome.created)
        txn = Transaction.objects.get(id=outcome.transaction_id)
        self.assertEqual(txn.description, "PAYROLL")
        self.assertTrue(txn.credit)
        self.assertEqual(txn.amount, Decimal("1200.00"))
        self.assertEqual(txn.user_id, self.first.id)
        self.budget.refresh_from_db()
        self.assertEqual(self.budget.payroll_run_at, MAY)
        self.assertEqual(PayrollRun.objects.get(budget=self.budget).period, "2024-05")

    def test_second_run_in_same_month_is_skipped(self):
        run_budget_payroll(self.budget.id, now=MAY)
        outcome = run_budget_payroll(self.budget.id, now=LATE_MAY)

        self.assertEqual(outcome.skipped, SKIPPED_ALREADY_RAN)
        self.assertEqual(Transaction.objects.filter(description="PAYROLL").count(), 1)

    def test_next_month_runs_again(self):
        run_budget_payroll(self.budget.id, now=MAY)
        outcome = run_budget_payroll(self.budget.id, now=JUNE)
        self.assertTrue(outcome.created)
        self.assertEqual(
            sorted(PayrollRun.objects.values_list("period", flat=True)), ["2024-05", "2024-06"]
        )

    def test_recorded_run_blocks_even_if_timestamp_was_cleared(self):
        run_budget_payroll(self.budget.id, now=MAY)
        self.budget.refresh_from_db()
        self.budget.payroll_run_at = None
        self.budget.save()

        outcome = run_budget_payroll(self.budget.id, now=LATE_MAY)
        self.assertEqual(outcome.skipped, SKIPPED_ALREADY_RAN)
        self.assertEqual(Transaction.objects.count(), 1)

    def test_run_recorded_by_another_worker_rolls_back_the_credit(self):
        txn = post(self.budget, "1200.00", True, description="PAYROLL")
        PayrollRun.objects.create(budget=self.budget, period="2024-05", transaction=txn)

        with mock.patch.object(service, "_already_ran", return_value=False):
            outcome = run_budget_payroll(self.budget.id, now=MAY)

        self.assertEqual(outcome.skipped, SKIPPED_ALREADY_RAN)
        self.assertEqual(Transaction.objects.filter(description="PAYROLL").count(), 1)
        self.budget.refresh_from_db()
        self.assertIsNone(self.budget.payroll_run_at)

    def test_other_integrity_errors_are_not_reported_as_already_ran(self):
        with mock.patch.object(
            service, "create_transaction", side_effect=IntegrityError("budget missing")
        ):
            with self.assertRaises(IntegrityError):
                run_budget_payroll(self.budget.id, now=MAY)
        self.assertFalse(PayrollRun.objects.exists())

    def test_force_posts_again(self):
        run_budget_payroll(self.budget.id, now=MAY)
        outcome = run_budget_payroll(self.budget.id, now=LATE_MAY, force=True)
        self.assertTrue(outcome.created)
        self.assertEqual(Transaction.objects.filter(description="PAYROLL").count(), 2)
        self.assertTrue(PayrollRun.objects.filter(forced=True).exists())

    def test_zero_payroll_is_skipped(self):
        budget = make_budget("Fun", [self.first])
        outcome = run_budget_payroll(budget.id, now=MAY)
        self.assertEqual(outcome.skipped, SKIPPED_NO_PAYROLL)
        self.assertIsNone(outcome.transaction_id)
        self.assertFalse(Transaction.objects.filter(budget=budget).exists())

    def test_membership_order_not_user_id_decides_attribution(self):
        BudgetShare.objects.filter(budget=self.budget, user=self.first).delete()
        BudgetShare.objects.create(budget=self.budget, user=self.first)
        outcome = run_budget_payroll(self.budget.id, now=MAY)
        self.assertEqual(Transaction.objects.get(id=outcome.transaction_id).user_id, self.second.id)

    def test_auto_balance_runs_before_the_credit(self):
        savings = make_budget("Savings", [self.first])
        post(savings, "500.00", True)
        post(self.budget, "50.00", False)
        BudgetAutoBalanceSource.objects.create(budget=self.budget, source_budget=savings, weight=100)
        self.budget.auto_balance_enabled = True
        self.budget.save()

        outcome = run_budget_payroll(self.budget.id, now=MAY)

        self.assertEqual(len(outcome.auto_balance_transaction_ids), 2)
        balances = balance_snapshot([self.budget.id, savings.id])
        self.assertEqual(balances[savings.id], Decimal("450.00"))
        self.assertEqual(balances[self.budget.id], Decimal("1200.00"))
        self.assertTrue(
            Transaction.objects.filter(description="Auto-balance for Rent", credit=True).exists()
        )


class RunMonthlyPayrollTests(TestCase):
    def setUp(self):
        self.user = make_user()
        self.rent = make_budget("Rent", [self.user], payroll="100.00")
        self.food = make_budget("Food", [self.user], payroll="50.00")
        self.fun = make_budget("Fun", [self.user])

    def test_runs_every_due_budget_once(self):
        summary = run_monthly_payroll(now=MAY, delays=[0])
        self.assertEqual(summary.created, [self.rent.id, self.food.id])
        self.assertEqual(summary.failed, [])

        again = run_monthly_payroll(now=LATE_MAY, delays=[0])
        self.assertEqual(again.created, [])
        self.assertEqual(Transaction.objects.count(), 2)

    def test_retries_database_errors_then_succeeds(self):
        real = service.run_budget_payroll
        calls = []

        def flaky(budget_id, now=None, force=False):
            calls.append(budget_id)
            if calls.count(budget_id) == 1:
                raise OperationalError("connection reset")
            return real(budget_id, now, force)

        sleep = mock.Mock()
        with mock.patch.object(service, "run_budget_payroll", side_effect=flaky):
            summary = run_monthly_payroll(now=MAY, delays=[0, 0.5], sleep=sleep)

        self.assertEqual(summary.created, [self.rent.id, self.food.id])
        sleep.assert_has_calls([mock.call(0.5), mock.call(0.5)])

    def test_budget_that_keeps_failing_is_left_for_next_run(self):
        real = service.run_budget_payroll

        def broken_rent(budget_id, now=None, force=False):
            if budget_id == self.rent.id:
                raise OperationalError("database is down")
            return real(budget_id, now, force)

        with mock.patch.object(service, "run_budget_payroll", side_effect=broken_rent):
            summary = run_monthly_payroll(now=MAY, delays=[0, 0], sleep=mock.Mock())

        self.assertEqual(summary.failed, [self.rent.id])
        self.assertEqual(summary.created, [self.food.id])
        self.assertFalse(PayrollRun.objects.filter(budget=self.rent).exists())

        retry = run_monthly_payroll(now=LATE_MAY, delays=[0])
        self.assertEqual(retry.created, [self.rent.id])


class RunPayrollCommandTests(TestCase):
    def setUp(self):
        self.user = make_user()
        self.rent = make_budget("Rent", [self.user], payroll="100.00")

    def test_command_posts_due_payroll(self):
        out = StringIO()
        call_command("run_payroll", stdout=out)
        self.assertIn("1 created", out.getvalue())
        self.assertEqual(Transaction.objects.filter(description="PAYROLL").count(), 1)

    def test_command_for_single_budget(self):
        out = StringIO()
        call_command("run_payroll", budget=self.rent.id, stdout=out)
        call_command("run_payroll", budget=self.rent.id, stdout=out)
        self.assertIn("Skipped budget", out.getvalue())
        self.assertEqual(Transaction.objects.count(), 1)
