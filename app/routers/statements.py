"""
Statements router — credit card statements rebuilt from expenses.

Endpoints (mounted under /accounts):
  GET  /{account_id}/statements                       — all statements
  GET  /{account_id}/statements/{period_key}          — one statement
  POST /{account_id}/statements/{period_key}/tax      — add stamp duty line
  POST /{account_id}/statements/{period_key}/payment  — pay one currency side
  POST /{account_id}/statements/{period_key}/move     — move items to a neighbour
  GET  /{account_id}/statements/{period_key}/payments — transfers that paid it

`today` defaults to the server date and decides the past/current/future tag.
A rejected operation answers 409 with error_type "operation_rejected" and
the reason as detail; nothing was written in that case.
"""

import uuid
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.statement import (
    MoveItemsRequest,
    MutationResponse,
    PaymentRequest,
    StatementResponse,
    TaxLineRequest,
)
from app.schemas.transfer import TransferResponse
from app.services import statement_service, transfer_service
from app.services.statement_service import MutationOutcome

router = APIRouter()

PERIOD_KEY_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"

# "YYYY-MM"; anything else is a 422 before the handler runs
PeriodKey = Annotated[str, Path(pattern=PERIOD_KEY_PATTERN)]


def _respond(outcome: MutationOutcome):
    """Accepted outcomes become a MutationResponse, rejected ones a 409."""
    if not outcome.accepted:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={
                "detail": outcome.reason,
                "error_type": "operation_rejected",
                "operation": outcome.operation,
                "period_key": outcome.period_key,
            },
        )
    return MutationResponse.model_validate(outcome)


@router.get(
    "/{account_id}/statements",
    response_model=list[StatementResponse],
    summary="List credit card statements",
)
async def list_statements(
    account_id: uuid.UUID,
    today: date | None = Query(None, description="Reference date (defaults to today)"),
    db: AsyncSession = Depends(get_db),
):
    """
    Rebuild every statement of a credit card, oldest close date first.

    Only periods with at least one expense appear.
    """
    statements = await statement_service.get_statements(db, account_id, today or date.today())
    # Statement is a dataclass; validate from attributes so properties are read
    return [StatementResponse.model_validate(s) for s in statements]


@router.get(
    "/{account_id}/statements/{period_key}",
    response_model=StatementResponse,
    summary="Get one credit card statement",
)
async def get_statement(
    account_id: uuid.UUID,
    period_key: PeriodKey,
    today: date | None = Query(None, description="Reference date (defaults to today)"),
    db: AsyncSession = Depends(get_db),
):
    statement = await statement_service.get_statement(
        db, account_id, period_key, today or date.today()
    )
    return StatementResponse.model_validate(statement)


@router.post(
    "/{account_id}/statements/{period_key}/tax",
    response_model=MutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a stamp duty line to a statement",
)
async def add_tax_line(
    account_id: uuid.UUID,
    period_key: PeriodKey,
    request: TaxLineRequest,
    today: date | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """
    Insert a stamp duty expense in the statement's period.

    The line counts toward the primary currency total from then on.
    """
    outcome = await statement_service.get_mutator(db).add_tax_line(
        account_id, period_key, request.amount_cents, today or date.today()
    )
    return _respond(outcome)


@router.post(
    "/{account_id}/statements/{period_key}/payment",
    response_model=MutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Pay a statement",
)
async def pay_statement(
    account_id: uuid.UUID,
    period_key: PeriodKey,
    request: PaymentRequest,
    today: date | None = Query(None, description="Payment date (defaults to today)"),
    db: AsyncSession = Depends(get_db),
):
    """
    Transfer the selected currency side's total from a settlement account.

    - **currency**: "primary" (card currency) or "secondary"
    - **from_account_id**: a non-card account holding that currency
    """
    outcome = await statement_service.get_mutator(db).pay_statement(
        account_id,
        period_key,
        request.currency,
        request.from_account_id,
        today or date.today(),
    )
    return _respond(outcome)


@router.post(
    "/{account_id}/statements/{period_key}/move",
    response_model=MutationResponse,
    summary="Move expenses to the previous or next statement",
)
async def move_items(
    account_id: uuid.UUID,
    period_key: PeriodKey,
    request: MoveItemsRequest,
    today: date | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    outcome = await statement_service.get_mutator(db).move_items(
        account_id,
        period_key,
        request.expense_ids,
        request.direction,
        today or date.today(),
        propagate_installments=request.propagate_installments,
    )
    return _respond(outcome)


@router.get(
    "/{account_id}/statements/{period_key}/payments",
    response_model=list[TransferResponse],
    summary="List payments made against a statement",
)
async def list_statement_payments(
    account_id: uuid.UUID,
    period_key: PeriodKey,
    db: AsyncSession = Depends(get_db),
):
    return await transfer_service.list_statement_payments(db, account_id, period_key)
