"""
Account model — a money container: checking, savings, cash, or credit card.

Each account has:
  - A unique display name
  - A primary currency code (ISO 4217)
  - An initial balance in integer cents
  - For credit cards: a closing day (1-31) that ends each billing cycle

Balances are never cached on the row. They are computed from the initial
balance plus the transfer and expense history (see account_service), so
they always agree with the records they summarize.

Why integer cents?
  Floating-point numbers introduce rounding errors (0.1 + 0.2 != 0.3).
  Storing cents keeps every sum exact; the frontend divides by 100.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Boolean, Integer, DateTime, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Account(Base):
    __tablename__ = "accounts"

    __table_args__ = (
        # NULL is allowed: the statement engine falls back to the default day
        CheckConstraint(
            "closing_day IS NULL OR (closing_day >= 1 AND closing_day <= 31)",
            name="ck_accounts_closing_day_range",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
    )

    # "checking", "savings", "cash" or "credit_card"
    account_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="checking",
    )

    # ISO 4217 currency code of the primary side
    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        default="ARS",
    )

    is_credit_card: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    # Day-of-month that ends a billing cycle (credit cards only)
    closing_day: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
    )

    initial_balance_cents: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    # Audit timestamps
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
    expenses: Mapped[list["Expense"]] = relationship(
        back_populates="account",
        cascade="all, delete-orphan",
    )
