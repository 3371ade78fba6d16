"""
Transfer service — moving money between accounts.

A transfer is one row holding both legs. Balances are derived from the
transfer history (see account_service.compute_balance), so recording the
row is the whole operation.

Statement payments are ordinary transfers into the card account, tagged
with the statement's period key. list_statement_payments() reads them
back; the statement itself never carries a paid flag.
"""

import logging
import uuid
from datetime import date

from sqlalchemy import select, and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import PersistenceError
from app.models.transfer import Transfer
from app.services.account_service import get_account

logger = logging.getLogger(__name__)


async def post_transfer(
    db: AsyncSession,
    from_account_id: uuid.UUID,
    to_account_id: uuid.UUID,
    amount_cents: int,
    transfer_date: date,
    note: str | None = None,
    currency: str | None = None,
    statement_period: str | None = None,
) -> Transfer:
    """
    Record a transfer between two existing accounts.

    Args:
        db: Database session.
        from_account_id: Account the money leaves.
        to_account_id: Account the money arrives in.
        amount_cents: Positive integer amount in cents.
        transfer_date: Booking date.
        note: Optional memo.
        currency: ISO code of the amount; defaults to the source account's.
        statement_period: "YYYY-MM" when this transfer pays a statement.

    Raises:
        AccountNotFoundError: If either account doesn't exist.
        PersistenceError: If the row cannot be written.
    """
    source = await get_account(db, from_account_id)
    await get_account(db, to_account_id)

    transfer = Transfer(
        from_account_id=from_account_id,
        to_account_id=to_account_id,
        amount_cents=amount_cents,
        currency=(currency or source.currency).upper(),
        date=transfer_date,
        note=note,
        statement_period=statement_period,
    )
    db.add(transfer)
    try:
        await db.flush()
    except SQLAlchemyError as exc:
        logger.exception("post_transfer failed %s -> %s", from_account_id, to_account_id)
        raise PersistenceError("post_transfer") from exc

    logger.info(
        "transfer_posted: id=%s from=%s to=%s amount_cents=%d",
        transfer.id, from_account_id, to_account_id, amount_cents,
    )
    return transfer


async def list_statement_payments(
    db: AsyncSession,
    card_account_id: uuid.UUID,
    period_key: str,
) -> list[Transfer]:
    """Transfers into the card that were tagged as paying `period_key`."""
    await get_account(db, card_account_id)
    result = await db.execute(
        select(Transfer)
        .where(
            and_(
                Transfer.to_account_id == card_account_id,
                Transfer.statement_period == period_key,
            )
        )
        .order_by(Transfer.date.asc(), Transfer.created_at.asc())
    )
    return list(result.scalars().all())
