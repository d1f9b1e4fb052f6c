"""Itemize-receipt, balance wizard and transfer endpoints."""

import logging
from decimal import Decimal

from ninja import Router

from core.exceptions import BudgetAppError
from core.utils.responses import ERROR_CODES, ErrorResponse, error_for, success_response
from features.auth.api import AuthBearer
from features.crud.budgets.service import get_budgets_for_user

from . import service
from .engine import LineItem
from .schemas import AllocationResponse, ItemizeSchema, RebalanceSchema, TransferSchema

logger = logging.getLogger(__name__)
router = Router(auth=AuthBearer())


def _result_data(result):
    return {
        "transaction_ids": result.transaction_ids,
        "budget_ids": result.budget_ids,
        "warnings": result.warnings,
    }


@router.post("/itemize", response={200: AllocationResponse, ERROR_CODES: ErrorResponse})
def itemize_receipt(request, payload: ItemizeSchema):
    """Split one receipt across budgets, sending any remainder to the catch-all."""
    lines = [
        LineItem(
            budget_id=line.budget_id,
            amount=Decimal(str(line.amount)),
            description=line.description,
        )
        for line in payload.lines
    ]
    budget_ids = [line.budget_id for line in lines if line.budget_id is not None]
    try:
        get_budgets_for_user(budget_ids + [payload.catch_all_budget_id], request.user)
        result = service.post_itemized_receipt(
            request.user,
            Decimal(str(payload.total)),
            payload.description,
            lines,
            payload.catch_all_budget_id,
        )
    except BudgetAppError as e:
        return error_for(e)
    return success_response(_result_data(result), "Receipt itemized")


@router.post("/rebalance", response={200: AllocationResponse, ERROR_CODES: ErrorResponse})
def rebalance(request, payload: RebalanceSchema):
    """
    Balance wizard: cover the deficit budgets in full out of the surplus
    budgets. Answers 200 with warnings when the surplus falls short.
    """
    try:
        get_budgets_for_user(
            payload.deficit_budget_ids + payload.surplus_budget_ids, request.user
        )
        result = service.post_rebalance(
            request.user,
            payload.deficit_budget_ids,
            payload.surplus_budget_ids,
            description=payload.description,
        )
    except BudgetAppError as e:
        return error_for(e)
    message = "Budgets balanced"
    if result.warnings:
        message = "Budgets balanced with warnings"
    return success_response(_result_data(result), message)


@router.post("/transfer", response={200: AllocationResponse, ERROR_CODES: ErrorResponse})
def transfer(request, payload: TransferSchema):
    try:
        get_budgets_for_user(
            [payload.source_budget_id, payload.target_budget_id], request.user
        )
        result = service.post_transfer(
            request.user,
            payload.source_budget_id,
            payload.target_budget_id,
            Decimal(str(payload.amount)),
            payload.description,
        )
    except BudgetAppError as e:
        return error_for(e)
    return success_response(_result_data(result), "Transfer posted")
