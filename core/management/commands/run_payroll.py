import logging

from django.core.management.base import BaseCommand, CommandError

from core.exceptions import BudgetAppError
from features.payroll.service import run_budget_payroll, run_monthly_payroll

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Post this month's payroll credit to every budget that has not had it yet."

    def add_arguments(self, parser):
        parser.add_argument(
            "--budget",
            type=int,
            help="Only run payroll for this budget id.",
        )
        parser.add_argument(
            "--force",
            action="store_true",
            help="Post even if payroll already ran this month (requires --budget).",
        )

    def handle(self, *args, **options):
        budget_id = options.get("budget")
        force = options.get("force", False)
        if force and budget_id is None:
            raise CommandError("--force requires --budget")

        if budget_id is not None:
            try:
                outcome = run_budget_payroll(budget_id, force=force)
            except BudgetAppError as e:
                raise CommandError(str(e)) from e
            if outcome.created:
                self.stdout.write(
                    f"Posted payroll transaction {outcome.transaction_id} to budget {budget_id}"
                )
            else:
                self.stdout.write(f"Skipped budget {budget_id}: {outcome.skipped}")
            return

        summary = run_monthly_payroll()
        self.stdout.write(
            f"Processed payroll: {len(summary.created)} created, "
            f"{len(summary.skipped)} skipped, {len(summary.failed)} failed"
        )
        if summary.failed:
            logger.error("Payroll failed for budgets %s", summary.failed)
            raise CommandError(
                "Payroll failed for budgets: " + ", ".join(map(str, summary.failed))
            )
