"""
Pydantic schemas for Account endpoints.

All monetary amounts are in integer cents (e.g., $10.50 = 1050).
"""

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator


class AccountCreateRequest(BaseModel):
    """Request body for POST /accounts."""
    name: str = Field(min_length=1, max_length=100)
    account_type: Literal["checking", "savings", "cash", "credit_card"] = "checking"
    currency: str = Field("ARS", min_length=3, max_length=3)
    closing_day: int | None = Field(
        None, ge=1, le=31, description="Day-of-month the billing cycle closes (credit cards)"
    )
    initial_balance_cents: int = 0


class AccountUpdateRequest(BaseModel):
    """Request body for PATCH /accounts/{id}."""
    name: str | None = Field(None, min_length=1, max_length=100)
    closing_day: int | None = Field(None, ge=1, le=31)

    @model_validator(mode="after")
    def something_to_update(self):
        if self.name is None and self.closing_day is None:
            raise ValueError("Provide a name or a closing_day")
        return self


class AccountResponse(BaseModel):
    """Public representation of an account."""
    id: uuid.UUID
    name: str
    account_type: str
    currency: str
    is_credit_card: bool
    closing_day: int | None
    initial_balance_cents: int
    created_at: datetime

    model_config = {"from_attributes": True}


class BalanceResponse(BaseModel):
    """Computed balance of an account and the figures it is built from."""
    account_id: uuid.UUID
    currency: str
    initial_balance_cents: int
    transfers_in_cents: int
    transfers_out_cents: int
    expenses_cents: int
    balance_cents: int
