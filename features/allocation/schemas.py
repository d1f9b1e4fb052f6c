from typing import List, Optional

from ninja import Schema
from pydantic import Field


class LineItemSchema(Schema):
    budget_id: Optional[int] = None
    amount: float = 0.0
    description: str = Field(default="", max_length=500)


class ItemizeSchema(Schema):
    total: float
    description: str = Field(default="", max_length=500)
    catch_all_budget_id: int
    lines: List[LineItemSchema]


class RebalanceSchema(Schema):
    deficit_budget_ids: List[int]
    surplus_budget_ids: List[int]
    description: Optional[str] = Field(default=None, max_length=500)


class TransferSchema(Schema):
    source_budget_id: int
    target_budget_id: int
    amount: float = Field(..., gt=0)
    description: str = Field(..., max_length=500)


class AllocationOutSchema(Schema):
    transaction_ids: List[int]
    budget_ids: List[int]
    warnings: List[str] = []


class AllocationResponse(Schema):
    status: str
    message: str
    data: Optional[AllocationOutSchema] = None
