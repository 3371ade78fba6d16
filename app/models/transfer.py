"""
Transfer model — money moved from one account to another.

A transfer is a single row with both legs: from_account_id loses
amount_cents, to_account_id gains it. Transfers that settle a credit card
statement carry the statement's period key in statement_period. That tag
is the only record of a statement being paid; the statement itself is
always recomputed from expenses and never stores a paid flag.

amount_cents is always positive, the direction is given by from/to.
"""

import uuid
import datetime as dt
from datetime import datetime, timezone

from sqlalchemy import String, Integer, Date, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Transfer(Base):
    __tablename__ = "transfers"

    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="ck_transfers_positive_amount"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    from_account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=False,
        index=True,
    )

    to_account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=False,
        index=True,
    )

    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    # ISO 4217 code of the amount
    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)

    note: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # "YYYY-MM" of the statement this transfer paid (NULL for plain transfers)
    statement_period: Mapped[str | None] = mapped_column(
        String(7),
        nullable=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
