"""Transaction endpoints, nested under a budget."""

import logging
from typing import Optional

from django.conf import settings
from ninja import Query, Router

from core.exceptions import BudgetAppError
from core.utils.responses import ERROR_CODES, ErrorResponse, error_for, success_response
from features.auth.api import AuthBearer
from features.crud.budgets.service import get_budget_for_user

from . import service
from .schemas import (
    TransactionCreateSchema,
    TransactionListResponse,
    TransactionResponse,
    TransactionUpdateSchema,
)

logger = logging.getLogger(__name__)
router = Router(auth=AuthBearer())


@router.get(
    "/{budget_id}/transactions",
    response={200: TransactionListResponse, ERROR_CODES: ErrorResponse},
)
def get_transactions(
    request,
    budget_id: int,
    q: Optional[str] = Query(None),
    window_days: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
):
    """Newest first. ``q`` matches the description or the amount text."""
    limit = min(limit or settings.TRANSACTION_PAGE_SIZE, settings.TRANSACTION_PAGE_MAX)
    try:
        budget = get_budget_for_user(budget_id, request.user)
    except BudgetAppError as e:
        return error_for(e)

    txns, meta = service.list_transactions(
        budget, query=q, window_days=window_days, limit=limit, offset=offset
    )
    response = success_response(
        [service.format_transaction(t) for t in txns], count=meta["count"]
    )
    response["meta"] = meta
    return response


@router.get(
    "/{budget_id}/transactions/{transaction_id}",
    response={200: TransactionResponse, ERROR_CODES: ErrorResponse},
)
def get_transaction(request, budget_id: int, transaction_id: int):
    try:
        budget = get_budget_for_user(budget_id, request.user)
        txn = service.get_transaction(budget, transaction_id)
    except BudgetAppError as e:
        return error_for(e)
    return success_response(service.format_transaction(txn))


@router.post(
    "/{budget_id}/transactions",
    response={200: TransactionResponse, ERROR_CODES: ErrorResponse},
)
def create_transaction(request, budget_id: int, payload: TransactionCreateSchema):
    """Record a credit or debit against the budget."""
    try:
        get_budget_for_user(budget_id, request.user)
        txn = service.create_transaction(
            budget_id=budget_id,
            user=request.user,
            description=payload.description,
            credit=payload.credit,
            amount=payload.amount,
        )
    except BudgetAppError as e:
        return error_for(e)
    logger.info("User %s posted transaction %s to budget %s", request.user.id, txn.id, budget_id)
    return success_response(service.format_transaction(txn), "Transaction created successfully")


@router.put(
    "/{budget_id}/transactions/{transaction_id}",
    response={200: TransactionResponse, ERROR_CODES: ErrorResponse},
)
def update_transaction(
    request, budget_id: int, transaction_id: int, payload: TransactionUpdateSchema
):
    updates = payload.dict(exclude_unset=True)
    try:
        budget = get_budget_for_user(budget_id, request.user)
        txn = service.get_transaction(budget, transaction_id)
        txn = service.update_transaction(txn, updates)
    except BudgetAppError as e:
        return error_for(e)
    return success_response(service.format_transaction(txn), "Transaction updated successfully")


@router.delete(
    "/{budget_id}/transactions/{transaction_id}",
    response={200: TransactionResponse, ERROR_CODES: ErrorResponse},
)
def delete_transaction(request, budget_id: int, transaction_id: int):
    try:
        budget = get_budget_for_user(budget_id, request.user)
        txn = service.get_transaction(budget, transaction_id)
        service.delete_transaction(txn)
    except BudgetAppError as e:
        return error_for(e)
    return success_response(None, "Transaction deleted successfully")
