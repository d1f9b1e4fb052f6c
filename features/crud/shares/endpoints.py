"""Budget membership endpoints."""

import logging

from ninja import Query, Router

from core.exceptions import BudgetAppError
from core.utils.responses import ERROR_CODES, ErrorResponse, error_for, success_response
from features.auth.api import AuthBearer
from features.crud.budgets.service import get_budget_for_user

from . import service
from .schemas import MemberListResponse, MemberResponse, ShareCreateSchema

logger = logging.getLogger(__name__)
router = Router(auth=AuthBearer())


def _format_member(user):
    return {"user_id": user.id, "email": user.email}


@router.get(
    "/{budget_id}/shares",
    response={200: MemberListResponse, ERROR_CODES: ErrorResponse},
)
def get_members(request, budget_id: int):
    try:
        budget = get_budget_for_user(budget_id, request.user)
    except BudgetAppError as e:
        return error_for(e)
    return success_response([_format_member(u) for u in service.list_members(budget)])


@router.post(
    "/{budget_id}/shares",
    response={200: MemberResponse, ERROR_CODES: ErrorResponse},
)
def add_member(request, budget_id: int, payload: ShareCreateSchema):
    """Share the budget with a user by email, creating the user if needed."""
    try:
        budget = get_budget_for_user(budget_id, request.user)
        user = service.add_share(budget, payload.email)
    except BudgetAppError as e:
        return error_for(e)
    logger.info("User %s shared budget %s with user %s", request.user.id, budget_id, user.id)
    return success_response(_format_member(user), "Budget shared successfully")


@router.delete(
    "/{budget_id}/shares",
    response={200: MemberResponse, ERROR_CODES: ErrorResponse},
)
def remove_member(request, budget_id: int, email: str = Query(...)):
    """Any member may remove any other member, or themselves."""
    try:
        budget = get_budget_for_user(budget_id, request.user)
        service.remove_share(budget, email)
    except BudgetAppError as e:
        return error_for(e)
    return success_response(None, "Member removed successfully")
