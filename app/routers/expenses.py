"""
Expenses router — expenses and installment purchases.

Endpoints:
  POST   /accounts/{account_id}/expenses               — Record an expense
  GET    /accounts/{account_id}/expenses               — List expenses (newest first)
  POST   /accounts/{account_id}/expenses/import        — Import loosely-typed rows
  DELETE /expenses/{expense_id}                        — Delete an expense
  POST   /accounts/{account_id}/installment-purchases  — Create an installment purchase
  GET    /accounts/{account_id}/installments/pending   — Installments still to come
  GET    /installment-purchases/{purchase_id}          — A purchase and its installments
  DELETE /installment-purchases/{purchase_id}          — Delete a purchase and its installments
"""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.expense import (
    ExpenseCreateRequest,
    ExpenseImportRequest,
    ExpenseResponse,
    InstallmentPurchaseCreateRequest,
    InstallmentPurchaseDetailResponse,
    InstallmentPurchaseResponse,
)
from app.services import expense_service, installment_service

router = APIRouter()


# ---------------------------------------------------------------------------
# Expenses
# ---------------------------------------------------------------------------

@router.post(
    "/accounts/{account_id}/expenses",
    response_model=ExpenseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record an expense",
)
async def create_expense(
    account_id: uuid.UUID,
    request: ExpenseCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Record an expense.

    An expense with only a secondary amount is shown on the secondary
    currency side of card statements.
    """
    return await expense_service.create_expense(
        db,
        account_id=account_id,
        expense_date=request.date,
        amount_cents=request.amount_cents,
        secondary_amount_cents=request.secondary_amount_cents,
        category_label=request.category_label,
        note=request.note,
    )


@router.get(
    "/accounts/{account_id}/expenses",
    response_model=list[ExpenseResponse],
    summary="List expenses of an account",
)
async def list_expenses(
    account_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    return await expense_service.get_expenses(db, account_id)


@router.post(
    "/accounts/{account_id}/expenses/import",
    response_model=list[ExpenseResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Import expenses from loosely-typed rows",
)
async def import_expenses(
    account_id: uuid.UUID,
    request: ExpenseImportRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Import rows such as a spreadsheet export.

    Amounts may be numbers or strings with a currency marker
    ("USD $3,33"); anything unreadable is stored as 0.
    """
    return await expense_service.import_raw_expenses(
        db, account_id, [row.model_dump() for row in request.rows]
    )


@router.delete(
    "/expenses/{expense_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an expense",
)
async def delete_expense(
    expense_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    await expense_service.delete_expense(db, expense_id)


# ---------------------------------------------------------------------------
# Installment purchases
# ---------------------------------------------------------------------------

@router.post(
    "/accounts/{account_id}/installment-purchases",
    response_model=InstallmentPurchaseDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an installment purchase",
)
async def create_installment_purchase(
    account_id: uuid.UUID,
    request: InstallmentPurchaseCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Split a purchase into monthly installments.

    Installment 1 is dated on start_date, each following one a month
    later. The cent remainder of the split is added to installment 1.
    """
    purchase, installment_expenses = await installment_service.create_purchase(
        db,
        account_id=account_id,
        description=request.description,
        total_amount_cents=request.total_amount_cents,
        installments=request.installments,
        start_date=request.start_date,
        category_label=request.category_label,
    )
    return InstallmentPurchaseDetailResponse(
        purchase=InstallmentPurchaseResponse.model_validate(purchase),
        installment_expenses=[ExpenseResponse.model_validate(e) for e in installment_expenses],
    )


@router.get(
    "/accounts/{account_id}/installments/pending",
    response_model=list[ExpenseResponse],
    summary="List installments still to come",
)
async def list_pending_installments(
    account_id: uuid.UUID,
    today: date | None = Query(None, description="Reference date (defaults to today)"),
    db: AsyncSession = Depends(get_db),
):
    return await installment_service.get_pending_installments(
        db, account_id, today or date.today()
    )


@router.get(
    "/installment-purchases/{purchase_id}",
    response_model=InstallmentPurchaseDetailResponse,
    summary="Get an installment purchase",
)
async def get_installment_purchase(
    purchase_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    purchase = await installment_service.get_purchase(db, purchase_id)
    installment_expenses = await installment_service.get_installments(db, purchase_id)
    return InstallmentPurchaseDetailResponse(
        purchase=InstallmentPurchaseResponse.model_validate(purchase),
        installment_expenses=[ExpenseResponse.model_validate(e) for e in installment_expenses],
    )


@router.delete(
    "/installment-purchases/{purchase_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an installment purchase",
)
async def delete_installment_purchase(
    purchase_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Deletes the purchase together with every one of its installments."""
    await installment_service.delete_purchase(db, purchase_id)
