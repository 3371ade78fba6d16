"""
Expense service — storage of expenses, including the calls the statement
engine's mutator makes.

Plain CRUD:
  - create_expense / get_expenses / delete_expense
  - import_raw_expenses: rows with loosely-typed amounts, coerced on entry

Statement storage contract:
  - list_expense_records: snapshots (ExpenseRecord) of an account's expenses
  - insert_expense: add one expense (the stamp-duty line)
  - update_expense_date / update_expense_dates_batch / update_expense_dates:
    rewrite dates. Each call is one unit: all rows change or none do.

Every write wraps SQLAlchemyError in PersistenceError so callers can tell
a storage failure apart from a rejected operation.
"""

import logging
import uuid
from datetime import date
from typing import Any, Mapping

from sqlalchemy import case, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.engine.records import ExpenseRecord
from app.exceptions import ExpenseNotFoundError, PersistenceError
from app.models.expense import Expense
from app.services.account_service import get_account

logger = logging.getLogger(__name__)


async def create_expense(
    db: AsyncSession,
    account_id: uuid.UUID,
    expense_date: date,
    amount_cents: int = 0,
    secondary_amount_cents: int = 0,
    category_label: str = "",
    note: str | None = None,
) -> Expense:
    """Record an expense against an account."""
    await get_account(db, account_id)
    expense = Expense(
        account_id=account_id,
        date=expense_date,
        amount_cents=amount_cents,
        secondary_amount_cents=secondary_amount_cents,
        category_label=category_label,
        note=note,
    )
    db.add(expense)
    try:
        await db.flush()
    except SQLAlchemyError as exc:
        logger.exception("insert_expense failed for account %s", account_id)
        raise PersistenceError("insert_expense") from exc
    return expense


async def get_expenses(db: AsyncSession, account_id: uuid.UUID) -> list[Expense]:
    """List an account's expenses, newest first."""
    await get_account(db, account_id)
    result = await db.execute(
        select(Expense)
        .where(Expense.account_id == account_id)
        .order_by(Expense.date.desc(), Expense.created_at.desc())
    )
    return list(result.scalars().all())


async def get_expense(db: AsyncSession, expense_id: uuid.UUID) -> Expense:
    result = await db.execute(select(Expense).where(Expense.id == expense_id))
    expense = result.scalar_one_or_none()
    if expense is None:
        raise ExpenseNotFoundError(expense_id)
    return expense


async def delete_expense(db: AsyncSession, expense_id: uuid.UUID) -> None:
    expense = await get_expense(db, expense_id)
    await db.delete(expense)
    await db.flush()


async def import_raw_expenses(
    db: AsyncSession,
    account_id: uuid.UUID,
    rows: list[Mapping[str, Any]],
) -> list[Expense]:
    """
    Import loosely-typed rows (spreadsheet exports and the like).

    Amounts go through coerce_cents: currency markers are stripped and
    unreadable values become 0. Negative inputs are stored as magnitudes.
    """
    await get_account(db, account_id)
    expenses = []
    for row in rows:
        record = ExpenseRecord.from_raw(row, account_id)
        expenses.append(
            Expense(
                account_id=account_id,
                date=record.date,
                amount_cents=abs(record.primary_amount_cents),
                secondary_amount_cents=abs(record.secondary_amount_cents),
                category_label=record.category_label,
                note=record.note,
            )
        )
    db.add_all(expenses)
    try:
        await db.flush()
    except SQLAlchemyError as exc:
        logger.exception("import_raw_expenses failed for account %s", account_id)
        raise PersistenceError("import_expenses") from exc
    logger.info("expenses_imported: account=%s count=%d", account_id, len(expenses))
    return expenses


# ---------------------------------------------------------------------------
# Statement storage contract
# ---------------------------------------------------------------------------

async def list_expense_records(
    db: AsyncSession,
    account_id: uuid.UUID,
) -> list[ExpenseRecord]:
    """Snapshot every expense of an account for the statement engine."""
    account = await get_account(db, account_id)
    result = await db.execute(
        select(Expense)
        .where(Expense.account_id == account_id)
        .order_by(Expense.date.asc(), Expense.created_at.asc())
    )
    return [
        ExpenseRecord.from_model(expense, account_name=account.name)
        for expense in result.scalars().all()
    ]


async def insert_expense(
    db: AsyncSession,
    account_id: uuid.UUID,
    expense_date: date,
    amount_cents: int,
    category_label: str,
    note: str | None = None,
) -> ExpenseRecord:
    """Insert a primary-currency expense and return its snapshot."""
    expense = await create_expense(
        db,
        account_id=account_id,
        expense_date=expense_date,
        amount_cents=amount_cents,
        category_label=category_label,
        note=note,
    )
    return ExpenseRecord.from_model(expense)


async def update_expense_date(
    db: AsyncSession,
    expense_id: uuid.UUID,
    new_date: date,
) -> None:
    await update_expense_dates(db, {expense_id: new_date})


async def update_expense_dates_batch(
    db: AsyncSession,
    expense_ids: list[uuid.UUID],
    new_date: date,
) -> None:
    """Set the same date on every listed expense in one statement."""
    try:
        await db.execute(
            update(Expense)
            .where(Expense.id.in_(expense_ids))
            .values(date=new_date)
        )
        await db.flush()
    except SQLAlchemyError as exc:
        logger.exception("update_expense_dates_batch failed (%d ids)", len(expense_ids))
        raise PersistenceError("update_expense_dates_batch") from exc


async def update_expense_dates(
    db: AsyncSession,
    new_dates: Mapping[uuid.UUID, date],
) -> None:
    """
    Set a per-expense date for several expenses as one unit of work.

    A single UPDATE with a CASE over the ids, so a failure leaves no row
    changed.
    """
    if not new_dates:
        return
    try:
        await db.execute(
            update(Expense)
            .where(Expense.id.in_(list(new_dates)))
            .values(
                date=case(
                    *[(Expense.id == expense_id, new_date) for expense_id, new_date in new_dates.items()]
                )
            )
            .execution_options(synchronize_session="fetch")
        )
        await db.flush()
    except SQLAlchemyError as exc:
        logger.exception("update_expense_dates failed (%d ids)", len(new_dates))
        raise PersistenceError("update_expense_dates") from exc
