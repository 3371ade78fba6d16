"""
InstallmentPurchase model — a purchase split across monthly installments.

The purchase row is the group header. Each installment is an ordinary
Expense pointing back here through installment_purchase_id, so statements
see installments exactly like any other charge.
"""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import String, Integer, Date, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class InstallmentPurchase(Base):
    __tablename__ = "installment_purchases"

    __table_args__ = (
        CheckConstraint("total_amount_cents > 0", name="ck_purchases_positive_amount"),
        CheckConstraint("installments >= 1", name="ck_purchases_installments"),
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

    description: Mapped[str] = mapped_column(String(255), nullable=False)
    total_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    installments: Mapped[int] = mapped_column(Integer, nullable=False)
    category_label: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    start_date: Mapped[date] = mapped_column(Date, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
