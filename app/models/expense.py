"""
Expense model — one dated charge against an account.

Amount fields:
  - amount_cents: magnitude in the account's primary currency (may be 0)
  - secondary_amount_cents: magnitude in the secondary currency (may be 0)

An expense recorded only in the secondary currency has amount_cents == 0
and secondary_amount_cents > 0. The statement engine relies on exactly
that shape to put it on the secondary side of a statement.

Installments:
  When an expense is one portion of a multi-month purchase it carries the
  purchase id plus its position (installment_number of total_installments).
  The display label ("3/12") is derived from those two columns.
"""

import uuid
import datetime as dt
from datetime import datetime, timezone

from sqlalchemy import String, Integer, Date, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Expense(Base):
    __tablename__ = "expenses"

    __table_args__ = (
        CheckConstraint("amount_cents >= 0", name="ck_expenses_non_negative_amount"),
        CheckConstraint(
            "secondary_amount_cents >= 0",
            name="ck_expenses_non_negative_secondary_amount",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=False,
        index=True,
    )

    # Indexed for period lookups
    date: Mapped[dt.date] = mapped_column(
        Date,
        nullable=False,
        index=True,
    )

    amount_cents: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    secondary_amount_cents: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    category_label: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="",
    )

    note: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    installment_purchase_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("installment_purchases.id"),
        nullable=True,
        index=True,
    )
    installment_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_installments: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # --- Relationships ---
    account: Mapped["Account"] = relationship(back_populates="expenses")

    @property
    def installment_label(self) -> str | None:
        """"k/N" for installments, None for ordinary expenses."""
        if self.installment_number and self.total_installments:
            return f"{self.installment_number}/{self.total_installments}"
        return None
