"""
Pydantic schemas for Expense and installment purchase endpoints.

All monetary amounts are in integer cents, except the raw import rows,
whose amounts are taken as-is and coerced on the server.
"""

import uuid
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, model_validator


class ExpenseCreateRequest(BaseModel):
    """Request body for POST /accounts/{id}/expenses."""
    date: date
    amount_cents: int = Field(0, ge=0, description="Primary currency amount in cents")
    secondary_amount_cents: int = Field(0, ge=0, description="Secondary currency amount in cents")
    category_label: str = Field("", max_length=100)
    note: str | None = Field(None, max_length=255)

    @model_validator(mode="after")
    def some_amount(self):
        if self.amount_cents == 0 and self.secondary_amount_cents == 0:
            raise ValueError("An expense needs a primary or a secondary amount")
        return self


class ExpenseResponse(BaseModel):
    """Public representation of an expense."""
    id: uuid.UUID
    account_id: uuid.UUID
    date: date
    amount_cents: int
    secondary_amount_cents: int
    category_label: str
    note: str | None
    installment_purchase_id: uuid.UUID | None
    installment_number: int | None
    total_installments: int | None
    installment_label: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class RawExpenseRow(BaseModel):
    """One loosely-typed row of POST /accounts/{id}/expenses/import."""
    date: date
    amount: Any = None
    secondary_amount: Any = None
    category: str | None = None
    note: str | None = None


class ExpenseImportRequest(BaseModel):
    rows: list[RawExpenseRow] = Field(min_length=1)


class InstallmentPurchaseCreateRequest(BaseModel):
    """Request body for POST /accounts/{id}/installment-purchases."""
    description: str = Field(min_length=1, max_length=200)
    total_amount_cents: int = Field(gt=0)
    installments: int = Field(ge=1, le=120)
    start_date: date
    category_label: str = Field("", max_length=100)


class InstallmentPurchaseResponse(BaseModel):
    id: uuid.UUID
    account_id: uuid.UUID
    description: str
    total_amount_cents: int
    installments: int
    category_label: str
    start_date: date

    model_config = {"from_attributes": True}


class InstallmentPurchaseDetailResponse(BaseModel):
    """A purchase followed by its installments, ordered by number."""
    purchase: InstallmentPurchaseResponse
    installment_expenses: list[ExpenseResponse]
