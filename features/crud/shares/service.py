import logging
from typing import List

from django.contrib.auth.models import User

from core.exceptions import NotFoundError, ValidationError
from core.models import Budget, BudgetShare

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    email = (email or "").strip().lower()
    if not email:
        raise ValidationError("Email required")
    return email


def get_or_create_user(email: str) -> User:
    """Find a user by email, creating a password-less placeholder if needed."""
    user = User.objects.filter(email__iexact=email).order_by("id").first()
    if user:
        return user
    user = User(username=email, email=email)
    user.set_unusable_password()
    user.save()
    logger.info("Created placeholder user %s for budget share", user.id)
    return user


def list_members(budget: Budget) -> List[User]:
    """Members in the order they joined."""
    return [share.user for share in budget.shares.select_related("user").order_by("created_at", "id")]


def first_member(budget: Budget):
    share = budget.shares.select_related("user").order_by("created_at", "id").first()
    return share.user if share else None


def add_share(budget: Budget, email: str) -> User:
    user = get_or_create_user(_normalize_email(email))
    BudgetShare.objects.get_or_create(budget=budget, user=user)
    return user


def remove_share(budget: Budget, email: str) -> None:
    """
    Remove a member by email. Any member may remove any other, themselves
    included, but the last member cannot leave.
    """
    email = _normalize_email(email)
    share = (
        BudgetShare.objects.filter(budget=budget, user__email__iexact=email)
        .select_related("user")
        .first()
    )
    if share is None:
        raise NotFoundError("Budget member not found")
    if budget.shares.count() <= 1:
        raise ValidationError("A budget must keep at least one member")
    share.delete()
    logger.info("Removed user %s from budget %s", share.user_id, budget.id)
