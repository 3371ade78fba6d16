"""
Pydantic schemas for Transfer endpoints.

All monetary amounts are in integer cents (e.g., $10.50 = 1050).
"""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator


class TransferRequest(BaseModel):
    """Request body for POST /transfers."""
    from_account_id: uuid.UUID
    to_account_id: uuid.UUID
    amount_cents: int = Field(gt=0, description="Amount in cents (must be positive)")
    transfer_date: date | None = Field(None, description="Defaults to today")
    note: str | None = Field(None, max_length=255)

    @model_validator(mode="after")
    def accounts_must_differ(self):
        """Cannot transfer money to the same account."""
        if self.from_account_id == self.to_account_id:
            raise ValueError("Cannot transfer to the same account")
        return self


class TransferResponse(BaseModel):
    """Public representation of a transfer."""
    id: uuid.UUID
    from_account_id: uuid.UUID
    to_account_id: uuid.UUID
    amount_cents: int
    currency: str
    date: date
    note: str | None
    statement_period: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
