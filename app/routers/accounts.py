"""
Accounts router — account management endpoints.

Endpoints:
  POST   /accounts                      — Create an account
  GET    /accounts                      — List accounts
  GET    /accounts/{account_id}         — Get account details
  PATCH  /accounts/{account_id}         — Rename / change closing day
  GET    /accounts/{account_id}/balance — Balance computed from history
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.account import (
    AccountCreateRequest,
    AccountResponse,
    AccountUpdateRequest,
    BalanceResponse,
)
from app.services import account_service

router = APIRouter()


@router.post(
    "",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
async def create_account(
    request: AccountCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Create a checking, savings, cash or credit card account.

    closing_day is only stored for credit cards. A card without one
    closes its statements on the 1st.
    """
    return await account_service.create_account(
        db,
        name=request.name,
        account_type=request.account_type,
        currency=request.currency,
        closing_day=request.closing_day,
        initial_balance_cents=request.initial_balance_cents,
    )


@router.get(
    "",
    response_model=list[AccountResponse],
    summary="List accounts",
)
async def list_accounts(db: AsyncSession = Depends(get_db)):
    return await account_service.get_accounts(db)


@router.get(
    "/{account_id}",
    response_model=AccountResponse,
    summary="Get account details",
)
async def get_account(
    account_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    return await account_service.get_account(db, account_id)


@router.patch(
    "/{account_id}",
    response_model=AccountResponse,
    summary="Update an account",
)
async def update_account(
    account_id: uuid.UUID,
    request: AccountUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Rename an account or change a card's closing day.

    Changing the closing day reshapes every statement of the card on the
    next read, since statements are rebuilt from expenses each time.
    """
    return await account_service.update_account(
        db, account_id, name=request.name, closing_day=request.closing_day
    )


@router.get(
    "/{account_id}/balance",
    response_model=BalanceResponse,
    summary="Get account balance",
)
async def get_balance(
    account_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """
    Balance in the account's currency: initial balance plus transfers
    received, minus transfers sent and primary-currency expenses.
    """
    return await account_service.compute_balance(db, account_id)
