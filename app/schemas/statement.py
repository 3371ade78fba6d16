"""
Pydantic schemas for credit card statement endpoints.

A statement response puts its header first (period, close date,
lifecycle, per-currency totals), then the line items: all of them in
date order, and the same items split by currency side.
"""

import uuid
from datetime import date
from typing import Literal

from pydantic import BaseModel, Field

from app.engine.records import Currency, Direction, LifecycleState


class StatementItemResponse(BaseModel):
    """One expense as it appears on a statement."""
    id: uuid.UUID
    date: date
    primary_amount_cents: int
    secondary_amount_cents: int
    category_label: str
    note: str | None
    is_secondary: bool
    purchase_group_id: uuid.UUID | None
    installment_label: str | None

    model_config = {"from_attributes": True}


class StatementResponse(BaseModel):
    """A billing statement rebuilt from the card's expenses."""
    # --- Header ---
    period_key: str
    year: int
    month: int
    label: str
    close_date: date
    lifecycle_state: LifecycleState

    # --- Aggregates ---
    total_primary_cents: int
    total_secondary_cents: int
    item_count: int
    has_tax_line: bool
    tax_amount_cents: int

    # --- Line items ---
    items: list[StatementItemResponse]
    primary_items: list[StatementItemResponse]
    secondary_items: list[StatementItemResponse]

    model_config = {"from_attributes": True}


class TaxLineRequest(BaseModel):
    """Request body for POST .../statements/{period}/tax."""
    amount_cents: int = Field(gt=0, description="Stamp duty amount in cents")


class PaymentRequest(BaseModel):
    """Request body for POST .../statements/{period}/payment."""
    currency: Currency = Currency.PRIMARY
    from_account_id: uuid.UUID


class MoveItemsRequest(BaseModel):
    """Request body for POST .../statements/{period}/move."""
    expense_ids: list[uuid.UUID] = Field(min_length=1)
    direction: Direction
    propagate_installments: bool = False


class MutationResponse(BaseModel):
    """Result of an accepted statement operation."""
    operation: Literal["add_tax_line", "pay_statement", "move_items"]
    period_key: str
    accepted: bool
    expense: StatementItemResponse | None = None
    transfer_id: uuid.UUID | None = None
    amount_cents: int | None = None
    currency: str | None = None
    target_period_key: str | None = None
    new_date: date | None = None
    moved_expense_ids: list[uuid.UUID] = []
    propagated_expense_ids: list[uuid.UUID] = []

    model_config = {"from_attributes": True}
