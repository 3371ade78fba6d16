"""
Immutable inputs and outputs of the statement engine.

ExpenseRecord and AccountConfig are snapshots taken from storage (or from
raw imported rows). Statement is a derived view: it is rebuilt from
scratch on every call to build_statements() and has no identity beyond
its period key.

Raw amounts are coerced here, at the boundary, by coerce_cents(). Past
this point every amount is an int number of cents.
"""

import enum
import re
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Mapping

from app.engine.periods import is_secondary_denominated, normalize_closing_day

# Everything except digits, separators and sign is a currency marker
_NON_NUMERIC = re.compile(r"[^\d,.\-]")
_LEADING_NUMBER = re.compile(r"-?(\d+(\.\d*)?|\.\d+)")


class Currency(str, enum.Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


class LifecycleState(str, enum.Enum):
    FUTURE = "future"
    CURRENT = "current"
    PAST = "past"


class Direction(str, enum.Enum):
    PREVIOUS = "previous"
    NEXT = "next"


def coerce_cents(value: Any) -> int:
    """
    Convert a raw amount in major units to integer cents.

    Accepts ints, floats, Decimals and strings. Strings may embed a
    currency marker and use a decimal comma ("USD $3,33" -> 333).
    Anything that cannot be read as a number becomes 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, str):
        cleaned = _NON_NUMERIC.sub("", value).replace(",", ".", 1)
        match = _LEADING_NUMBER.match(cleaned)
        if match is None:
            return 0
        value = match.group(0)
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return 0
    if not amount.is_finite():
        return 0
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _coerce_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


@dataclass(frozen=True)
class ExpenseRecord:
    """One expense as the engine sees it."""

    id: uuid.UUID
    account_id: uuid.UUID
    date: date
    primary_amount_cents: int = 0
    secondary_amount_cents: int = 0
    category_label: str = ""
    note: str | None = None
    account_name: str = ""
    purchase_group_id: uuid.UUID | None = None
    installment_number: int | None = None
    total_installments: int | None = None

    @property
    def is_secondary(self) -> bool:
        return is_secondary_denominated(
            self.primary_amount_cents, self.secondary_amount_cents
        )

    @property
    def installment_label(self) -> str | None:
        if self.installment_number and self.total_installments:
            return f"{self.installment_number}/{self.total_installments}"
        return None

    @classmethod
    def from_model(cls, expense, account_name: str = "") -> "ExpenseRecord":
        """Snapshot an Expense ORM row."""
        return cls(
            id=expense.id,
            account_id=expense.account_id,
            date=expense.date,
            primary_amount_cents=expense.amount_cents or 0,
            secondary_amount_cents=expense.secondary_amount_cents or 0,
            category_label=expense.category_label or "",
            note=expense.note,
            account_name=account_name,
            purchase_group_id=expense.installment_purchase_id,
            installment_number=expense.installment_number,
            total_installments=expense.total_installments,
        )

    @classmethod
    def from_raw(cls, row: Mapping[str, Any], account_id: uuid.UUID) -> "ExpenseRecord":
        """
        Build a record from a loosely-typed row (spreadsheet export, JSON).

        "primary_amount" falls back to "amount" when absent or zero.
        Raises ValueError only for an unreadable date.
        """
        primary = coerce_cents(row.get("primary_amount")) or coerce_cents(row.get("amount"))
        return cls(
            id=row.get("id") or uuid.uuid4(),
            account_id=account_id,
            date=_coerce_date(row.get("date")),
            primary_amount_cents=primary,
            secondary_amount_cents=coerce_cents(row.get("secondary_amount")),
            category_label=str(row.get("category") or ""),
            note=row.get("note") or None,
        )


@dataclass(frozen=True)
class AccountConfig:
    """Billing configuration of an account."""

    account_id: uuid.UUID
    closing_day: int = 1
    currency: str = "ARS"
    name: str = ""
    is_credit_card: bool = True

    def __post_init__(self):
        # frozen dataclass: bypass __setattr__ to store the normalized day
        object.__setattr__(self, "closing_day", normalize_closing_day(self.closing_day))

    @classmethod
    def from_model(cls, account) -> "AccountConfig":
        return cls(
            account_id=account.id,
            closing_day=account.closing_day,
            currency=account.currency,
            name=account.name,
            is_credit_card=account.is_credit_card,
        )


@dataclass(frozen=True)
class Statement:
    """A billing statement derived from the expenses of one period."""

    period_key: str
    year: int
    month: int
    label: str
    close_date: date
    lifecycle_state: LifecycleState
    items: tuple[ExpenseRecord, ...] = field(default_factory=tuple)
    primary_items: tuple[ExpenseRecord, ...] = field(default_factory=tuple)
    secondary_items: tuple[ExpenseRecord, ...] = field(default_factory=tuple)
    total_primary_cents: int = 0
    total_secondary_cents: int = 0
    has_tax_line: bool = False
    tax_amount_cents: int = 0

    @property
    def item_count(self) -> int:
        return len(self.items)

    def total_for(self, currency: Currency) -> int:
        if currency == Currency.SECONDARY:
            return self.total_secondary_cents
        return self.total_primary_cents
