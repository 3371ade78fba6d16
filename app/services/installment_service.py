"""
Installment service — purchases paid across several monthly installments.

Creating a purchase writes the group header (InstallmentPurchase) and one
Expense per installment in the same flush:
  - installment k is dated k-1 months after the start date, with the day
    clamped to the month's length (Jan 31 -> Feb 28 -> Mar 31)
  - the total is split in whole cents; the remainder goes to installment 1
  - each installment's note reads "<description> - Installment k/N"
"""

import logging
import uuid
from datetime import date

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.engine.periods import add_months
from app.exceptions import InstallmentPurchaseNotFoundError
from app.models.expense import Expense
from app.models.installment_purchase import InstallmentPurchase
from app.services.account_service import get_account

logger = logging.getLogger(__name__)


def split_amount(total_cents: int, installments: int) -> list[int]:
    """Split total_cents into `installments` parts that sum back to the total."""
    base, remainder = divmod(total_cents, installments)
    return [base + remainder] + [base] * (installments - 1)


async def create_purchase(
    db: AsyncSession,
    account_id: uuid.UUID,
    description: str,
    total_amount_cents: int,
    installments: int,
    start_date: date,
    category_label: str = "",
) -> tuple[InstallmentPurchase, list[Expense]]:
    """
    Create an installment purchase and all of its installment expenses.

    Returns:
        Tuple of (purchase, installments ordered by number).
    """
    await get_account(db, account_id)

    purchase = InstallmentPurchase(
        account_id=account_id,
        description=description,
        total_amount_cents=total_amount_cents,
        installments=installments,
        category_label=category_label,
        start_date=start_date,
    )
    db.add(purchase)
    await db.flush()

    expenses = [
        Expense(
            account_id=account_id,
            date=add_months(start_date, number - 1),
            amount_cents=amount,
            category_label=category_label,
            note=f"{description} - Installment {number}/{installments}",
            installment_purchase_id=purchase.id,
            installment_number=number,
            total_installments=installments,
        )
        for number, amount in enumerate(split_amount(total_amount_cents, installments), start=1)
    ]
    db.add_all(expenses)
    await db.flush()

    logger.info(
        "installment_purchase_created: id=%s account=%s installments=%d",
        purchase.id, account_id, installments,
    )
    return purchase, expenses


async def get_purchase(db: AsyncSession, purchase_id: uuid.UUID) -> InstallmentPurchase:
    result = await db.execute(
        select(InstallmentPurchase).where(InstallmentPurchase.id == purchase_id)
    )
    purchase = result.scalar_one_or_none()
    if purchase is None:
        raise InstallmentPurchaseNotFoundError(purchase_id)
    return purchase


async def get_installments(db: AsyncSession, purchase_id: uuid.UUID) -> list[Expense]:
    """List a purchase's installments ordered by installment number."""
    await get_purchase(db, purchase_id)
    result = await db.execute(
        select(Expense)
        .where(Expense.installment_purchase_id == purchase_id)
        .order_by(Expense.installment_number.asc())
    )
    return list(result.scalars().all())


async def get_pending_installments(
    db: AsyncSession,
    account_id: uuid.UUID,
    today: date,
) -> list[Expense]:
    """Installments of an account dated today or later, soonest first."""
    await get_account(db, account_id)
    result = await db.execute(
        select(Expense)
        .where(Expense.account_id == account_id)
        .where(Expense.installment_purchase_id.is_not(None))
        .where(Expense.date >= today)
        .order_by(Expense.date.asc(), Expense.installment_number.asc())
    )
    return list(result.scalars().all())


async def delete_purchase(db: AsyncSession, purchase_id: uuid.UUID) -> int:
    """
    Delete a purchase together with all of its installments.

    Returns:
        Number of installment expenses removed.
    """
    purchase = await get_purchase(db, purchase_id)
    result = await db.execute(
        delete(Expense)
        .where(Expense.installment_purchase_id == purchase_id)
        .execution_options(synchronize_session="fetch")
    )
    await db.delete(purchase)
    await db.flush()
    logger.info("installment_purchase_deleted: id=%s", purchase_id)
    return result.rowcount
