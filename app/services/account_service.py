"""
Account service — business logic for account operations.

This module handles:
  - Account creation (checking, savings, cash, credit card)
  - Account retrieval (single or list)
  - Closing day / name updates
  - Balance computation from history

Balances are computed, not cached:
  balance = initial balance
            + transfers received in the account's currency
            - transfers sent in the account's currency
            - primary-currency expenses
  The same "derive from the records" approach the statement engine uses.
"""

import logging
import uuid

from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import AccountNotFoundError
from app.models.account import Account
from app.models.expense import Expense
from app.models.transfer import Transfer

logger = logging.getLogger(__name__)


async def create_account(
    db: AsyncSession,
    name: str,
    account_type: str = "checking",
    currency: str = "ARS",
    closing_day: int | None = None,
    initial_balance_cents: int = 0,
) -> Account:
    """
    Create a new account.

    Credit card accounts are flagged from their type; closing_day is only
    kept for credit cards.
    """
    is_credit_card = account_type == "credit_card"
    account = Account(
        name=name,
        account_type=account_type,
        currency=currency.upper(),
        is_credit_card=is_credit_card,
        closing_day=closing_day if is_credit_card else None,
        initial_balance_cents=initial_balance_cents,
    )
    db.add(account)
    await db.flush()
    logger.info("account_created: id=%s type=%s", account.id, account_type)
    return account


async def get_accounts(db: AsyncSession) -> list[Account]:
    """List all accounts ordered by name."""
    result = await db.execute(select(Account).order_by(Account.name.asc()))
    return list(result.scalars().all())


async def get_account(db: AsyncSession, account_id: uuid.UUID) -> Account:
    """
    Get a single account.

    Raises:
        AccountNotFoundError: If the account doesn't exist.
    """
    result = await db.execute(select(Account).where(Account.id == account_id))
    account = result.scalar_one_or_none()
    if account is None:
        raise AccountNotFoundError(account_id)
    return account


async def update_account(
    db: AsyncSession,
    account_id: uuid.UUID,
    name: str | None = None,
    closing_day: int | None = None,
) -> Account:
    """Rename an account and/or change a credit card's closing day."""
    account = await get_account(db, account_id)
    if name is not None:
        account.name = name
    if closing_day is not None and account.is_credit_card:
        account.closing_day = closing_day
    await db.flush()
    return account


async def compute_balance(db: AsyncSession, account_id: uuid.UUID) -> dict:
    """
    Compute the balance of an account from its history.

    Returns:
        Dictionary matching BalanceResponse schema.
    """
    account = await get_account(db, account_id)

    incoming = await db.execute(
        select(func.coalesce(func.sum(Transfer.amount_cents), 0)).where(
            and_(
                Transfer.to_account_id == account_id,
                Transfer.currency == account.currency,
            )
        )
    )
    outgoing = await db.execute(
        select(func.coalesce(func.sum(Transfer.amount_cents), 0)).where(
            and_(
                Transfer.from_account_id == account_id,
                Transfer.currency == account.currency,
            )
        )
    )
    spent = await db.execute(
        select(func.coalesce(func.sum(Expense.amount_cents), 0)).where(
            Expense.account_id == account_id
        )
    )

    transfers_in = incoming.scalar()
    transfers_out = outgoing.scalar()
    expenses_total = spent.scalar()

    return {
        "account_id": account.id,
        "currency": account.currency,
        "initial_balance_cents": account.initial_balance_cents,
        "transfers_in_cents": transfers_in,
        "transfers_out_cents": transfers_out,
        "expenses_cents": expenses_total,
        "balance_cents": (
            account.initial_balance_cents + transfers_in - transfers_out - expenses_total
        ),
    }
