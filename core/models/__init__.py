"""Core models package."""

from .budget import Budget, BudgetShare, BudgetAutoBalanceSource
from .transaction import Transaction
from .payroll import PayrollRun

__all__ = [
    "Budget",
    "BudgetShare",
    "BudgetAutoBalanceSource",
    "Transaction",
    "PayrollRun",
]
