"""Budget endpoints: CRUD, auto-balance configuration and on-demand payroll."""

import logging

from ninja import Query, Router

from core.exceptions import BudgetAppError
from core.utils.responses import ERROR_CODES, ErrorResponse, error_for, success_response
from features.auth.api import AuthBearer
from features.ledger.service import budget_summaries, budget_summary
from features.payroll.service import run_budget_payroll

from . import service
from .schemas import (
    AutoBalanceResponse,
    AutoBalanceUpdateSchema,
    BudgetCreateSchema,
    BudgetListResponse,
    BudgetResponse,
    BudgetUpdateSchema,
    PayrollResponse,
)

logger = logging.getLogger(__name__)
router = Router(auth=AuthBearer())


def _budget_with_stats(budget):
    return service.format_budget(budget, budget_summary(budget))


def _auto_balance_data(budget):
    return {
        "budget_id": budget.id,
        "enabled": budget.auto_balance_enabled,
        "sources": [
            {"source_budget_id": s.source_budget_id, "weight": s.weight}
            for s in service.get_auto_balance_sources(budget)
        ],
    }


@router.get("/", response=BudgetListResponse)
def get_budgets(request):
    """List the caller's budgets with freshly computed balances."""
    budgets = service.list_budgets(request.user)
    summaries = budget_summaries(budgets)
    result = [service.format_budget(b, summaries[b.id]) for b in budgets]
    return success_response(result)


@router.get("/{budget_id}", response={200: BudgetResponse, ERROR_CODES: ErrorResponse})
def get_budget(request, budget_id: int):
    try:
        budget = service.get_budget_for_user(budget_id, request.user)
    except BudgetAppError as e:
        return error_for(e)
    return success_response(_budget_with_stats(budget))


@router.post("/", response={200: BudgetResponse, ERROR_CODES: ErrorResponse})
def create_budget(request, payload: BudgetCreateSchema):
    """Create a budget; the caller becomes its first member."""
    try:
        budget = service.create_budget(request.user, payload.name, payload.payroll)
    except BudgetAppError as e:
        return error_for(e)
    return success_response(_budget_with_stats(budget), "Budget created successfully")


@router.put("/{budget_id}", response={200: BudgetResponse, ERROR_CODES: ErrorResponse})
def update_budget(request, budget_id: int, payload: BudgetUpdateSchema):
    updates = payload.dict(exclude_unset=True)
    try:
        budget = service.get_budget_for_user(budget_id, request.user)
        budget = service.update_budget(budget, updates)
    except BudgetAppError as e:
        return error_for(e)
    return success_response(_budget_with_stats(budget), "Budget updated successfully")


@router.delete("/{budget_id}", response={200: BudgetResponse, ERROR_CODES: ErrorResponse})
def delete_budget(request, budget_id: int):
    """Delete a budget together with its transactions and shares."""
    try:
        budget = service.get_budget_for_user(budget_id, request.user)
        service.delete_budget(budget)
    except BudgetAppError as e:
        return error_for(e)
    return success_response(None, "Budget deleted successfully")


@router.get(
    "/{budget_id}/auto-balance",
    response={200: AutoBalanceResponse, ERROR_CODES: ErrorResponse},
)
def get_auto_balance(request, budget_id: int):
    try:
        budget = service.get_budget_for_user(budget_id, request.user)
    except BudgetAppError as e:
        return error_for(e)
    return success_response(_auto_balance_data(budget))


@router.put(
    "/{budget_id}/auto-balance",
    response={200: AutoBalanceResponse, ERROR_CODES: ErrorResponse},
)
def update_auto_balance(request, budget_id: int, payload: AutoBalanceUpdateSchema):
    """Replace which budgets cover this one's deficit when payroll runs."""
    try:
        budget = service.get_budget_for_user(budget_id, request.user)
        budget = service.update_auto_balance(
            budget,
            request.user,
            payload.enabled,
            [source.dict() for source in payload.sources],
        )
    except BudgetAppError as e:
        return error_for(e)
    return success_response(_auto_balance_data(budget), "Auto-balance updated")


@router.post(
    "/{budget_id}/payroll",
    response={200: PayrollResponse, ERROR_CODES: ErrorResponse},
)
def run_payroll(request, budget_id: int, force: bool = Query(False)):
    """Post this month's payroll credit now instead of waiting for the schedule."""
    try:
        service.get_budget_for_user(budget_id, request.user)
        outcome = run_budget_payroll(budget_id, force=force)
    except BudgetAppError as e:
        return error_for(e)

    data = {
        "budget_id": outcome.budget_id,
        "transaction_id": outcome.transaction_id,
        "skipped": outcome.skipped,
        "auto_balance_transaction_ids": outcome.auto_balance_transaction_ids,
    }
    if outcome.created:
        return success_response(data, "Payroll posted")
    return success_response(data, f"Skipped: {outcome.skipped}")
