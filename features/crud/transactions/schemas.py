from typing import Any, Optional

from ninja import Schema
from pydantic import Field, model_validator


class TransactionCreateSchema(Schema):
    description: str = Field(..., max_length=500)
    credit: bool
    amount: float = Field(..., gt=0)


class TransactionUpdateSchema(Schema):
    description: Optional[str] = Field(default=None, max_length=500)
    credit: Optional[bool] = None
    amount: Optional[float] = Field(default=None, gt=0)

    @model_validator(mode="before")
    @classmethod
    def at_least_one_field(cls, values):
        if not values:
            raise ValueError("At least one field must be provided for update.")
        return values


class TransactionOutSchema(Schema):
    id: int
    budget_id: int
    user_id: Optional[int] = None
    description: str
    credit: bool
    amount: float
    created_at: Any
    updated_at: Any


class TransactionPageMeta(Schema):
    count: int
    offset: int
    nextOffset: int
    hasMore: bool


class TransactionResponse(Schema):
    status: str
    message: str
    data: Optional[TransactionOutSchema] = None


class TransactionListResponse(Schema):
    status: str
    message: str
    data: list[TransactionOutSchema]
    count: Optional[int] = None
    meta: TransactionPageMeta
