"""
Transfers router — money moved between accounts.

Endpoints:
  POST /transfers — Transfer money from one account to another

The amount is booked in the source account's currency. Statement
payments go through POST /accounts/{id}/statements/{period}/payment,
which records the same kind of transfer tagged with the period.
"""

from datetime import date

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.transfer import TransferRequest, TransferResponse
from app.services import transfer_service

router = APIRouter()


@router.post(
    "",
    response_model=TransferResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Transfer money between accounts",
)
async def create_transfer(
    request: TransferRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Transfer money from one account to another.

    - **from_account_id** / **to_account_id**: must both exist and differ
    - **amount_cents**: Positive integer in cents (e.g., $50.00 = 5000)
    - **transfer_date**: defaults to today
    """
    return await transfer_service.post_transfer(
        db,
        from_account_id=request.from_account_id,
        to_account_id=request.to_account_id,
        amount_cents=request.amount_cents,
        transfer_date=request.transfer_date or date.today(),
        note=request.note,
    )
