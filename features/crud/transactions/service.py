"""Transaction writes and queries against the ledger store."""

import logging
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from django.contrib.auth.models import User
from django.db.models import CharField, Q
from django.db.models.functions import Cast
from django.utils import timezone

from core.exceptions import NotFoundError, ValidationError
from core.models import Budget, Transaction

logger = logging.getLogger(__name__)

DESCRIPTION_MAX_LENGTH = 500


def _clean_description(description: Optional[str]) -> str:
    description = (description or "").strip()
    if not description:
        raise ValidationError("Description is required")
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters"
        )
    return description


def _clean_amount(amount: Any) -> Decimal:
    try:
        amount = Decimal(str(amount)).quantize(Decimal("0.01"))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError("Amount must be a number") from None
    if amount <= 0:
        raise ValidationError("Amount must be greater than 0")
    return amount


def create_transaction(
    budget_id: int,
    user: Optional[User],
    description: str,
    credit: bool,
    amount: Any,
) -> Transaction:
    """Insert one transaction. ``credit`` is required and never inferred."""
    if credit is None:
        raise ValidationError("Credit flag is required")
    description = _clean_description(description)
    amount = _clean_amount(amount)
    if not Budget.objects.filter(id=budget_id).exists():
        raise NotFoundError("Budget not found")
    return Transaction.objects.create(
        budget_id=budget_id,
        user=user,
        description=description,
        credit=bool(credit),
        amount=amount,
    )


def get_transaction(budget: Budget, transaction_id: int) -> Transaction:
    txn = Transaction.objects.filter(id=transaction_id, budget_id=budget.id).first()
    if txn is None:
        raise NotFoundError("Transaction not found")
    return txn


def update_transaction(txn: Transaction, updates: Dict[str, Any]) -> Transaction:
    """Edit description, credit and amount. ``created_at`` never changes."""
    fields = []
    if "description" in updates:
        txn.description = _clean_description(updates["description"])
        fields.append("description")
    if "credit" in updates:
        if updates["credit"] is None:
            raise ValidationError("Credit flag is required")
        txn.credit = bool(updates["credit"])
        fields.append("credit")
    if "amount" in updates:
        txn.amount = _clean_amount(updates["amount"])
        fields.append("amount")
    if not fields:
        raise ValidationError("No fields provided for update")
    txn.save(update_fields=fields + ["updated_at"])
    return txn


def delete_transaction(txn: Transaction) -> None:
    txn.delete()


def list_transactions(
    budget: Budget,
    query: Optional[str] = None,
    window_days: Optional[int] = None,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[Transaction], Dict[str, Any]]:
    """Newest-first page of a budget's transactions plus paging metadata."""
    queryset = Transaction.objects.filter(budget_id=budget.id)
    if window_days:
        queryset = queryset.filter(created_at__gt=timezone.now() - timedelta(days=window_days))
    query = (query or "").strip()
    if query:
        queryset = queryset.annotate(
            amount_text=Cast("amount", output_field=CharField())
        ).filter(Q(description__icontains=query) | Q(amount_text__icontains=query))

    offset = max(offset, 0)
    txns = list(queryset.order_by("-created_at", "-id")[offset : offset + limit])
    meta = {
        "count": len(txns),
        "offset": offset,
        "nextOffset": offset + len(txns),
        "hasMore": len(txns) == limit,
    }
    return txns, meta


def format_transaction(txn: Transaction) -> Dict[str, Any]:
    """Format transaction for JSON response."""
    return {
        "id": txn.id,
        "budget_id": txn.budget_id,
        "user_id": txn.user_id,
        "description": txn.description,
        "credit": txn.credit,
        "amount": float(txn.amount),
        "created_at": txn.created_at,
        "updated_at": txn.updated_at,
    }
