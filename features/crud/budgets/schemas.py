from typing import Any, List, Optional

from ninja import Schema
from pydantic import Field, model_validator


class BudgetCreateSchema(Schema):
    name: str = Field(..., max_length=50)
    payroll: float = Field(default=0.0, ge=0)


class BudgetUpdateSchema(Schema):
    name: Optional[str] = Field(default=None, max_length=50)
    payroll: Optional[float] = Field(default=None, ge=0)

    @model_validator(mode="before")
    @classmethod
    def at_least_one_field(cls, values):
        if not values:
            raise ValueError("At least one field must be provided for update.")
        return values


class BudgetOutSchema(Schema):
    id: int
    name: str
    payroll: float
    payroll_run_at: Any = None
    auto_balance_enabled: bool
    # Computed on every read
    balance: float
    credits: float
    debits: float
    avg_debit: float
    max_debit: float
    credits_this_month: float
    debits_this_month: float
    window_days: int
    created_at: Any
    updated_at: Any


class BudgetResponse(Schema):
    status: str
    message: str
    data: Optional[BudgetOutSchema] = None


class BudgetListResponse(Schema):
    status: str
    message: str
    data: list[BudgetOutSchema]


class AutoBalanceSourceSchema(Schema):
    source_budget_id: int
    weight: int = Field(..., ge=0, le=100)


class AutoBalanceUpdateSchema(Schema):
    enabled: bool
    sources: List[AutoBalanceSourceSchema] = []


class AutoBalanceOutSchema(Schema):
    budget_id: int
    enabled: bool
    sources: List[AutoBalanceSourceSchema]


class AutoBalanceResponse(Schema):
    status: str
    message: str
    data: Optional[AutoBalanceOutSchema] = None


class PayrollOutSchema(Schema):
    budget_id: int
    transaction_id: Optional[int] = None
    skipped: Optional[str] = None
    auto_balance_transaction_ids: List[int] = []


class PayrollResponse(Schema):
    status: str
    message: str
    data: Optional[PayrollOutSchema] = None
