"""
Statement service — credit card statements and the operations on them.

Reading:
  get_statements / get_statement rebuild the statement list from the
  account's expenses on every call (engine.build_statements). Nothing is
  cached between calls.

Mutating (StatementMutator):
  - add_tax_line:  insert a stamp-duty expense inside the statement's period
  - pay_statement: transfer a statement's total into the card
  - move_items:    re-date selected expenses so they fall in the adjacent
                   statement, optionally dragging later installments along

Failure modes stay distinct:
  - unreadable input was already coerced to defaults at the boundary
  - a violated precondition returns MutationOutcome(accepted=False, reason=...)
    and issues no storage call
  - a storage failure raises PersistenceError, unchanged, with no retry

Concurrency:
  Each operation runs under a per-account asyncio.Lock, so two operations
  on the same card never interleave their read-build-write steps.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.engine.aggregator import adjacent_statement, build_statements, find_statement
from app.engine.periods import (
    add_months,
    classify_period,
    last_date_in_period,
    months_between,
    representative_date,
    shift_period,
)
from app.engine.records import AccountConfig, Currency, Direction, ExpenseRecord, Statement
from app.exceptions import NotACreditCardError, StatementNotFoundError
from app.services import account_service, expense_service, transfer_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MutationOutcome:
    """Result of a statement operation, accepted or rejected."""

    operation: str
    period_key: str
    accepted: bool = True
    reason: str | None = None
    # add_tax_line
    expense: ExpenseRecord | None = None
    # pay_statement
    transfer_id: uuid.UUID | None = None
    amount_cents: int | None = None
    currency: str | None = None
    # move_items
    target_period_key: str | None = None
    new_date: date | None = None
    moved_expense_ids: tuple[uuid.UUID, ...] = ()
    propagated_expense_ids: tuple[uuid.UUID, ...] = ()

    @classmethod
    def rejected(cls, operation: str, period_key: str, reason: str) -> "MutationOutcome":
        return cls(operation=operation, period_key=period_key, accepted=False, reason=reason)


class StatementStore(Protocol):
    """Storage and transfer calls the mutator depends on."""

    async def get_account(self, account_id: uuid.UUID) -> AccountConfig: ...

    async def list_expenses(self, account_id: uuid.UUID) -> list[ExpenseRecord]: ...

    async def insert_expense(
        self,
        account_id: uuid.UUID,
        expense_date: date,
        amount_cents: int,
        category_label: str,
        note: str | None,
    ) -> ExpenseRecord: ...

    async def update_expense_dates_batch(
        self, expense_ids: list[uuid.UUID], new_date: date
    ) -> None: ...

    async def update_expense_dates(self, new_dates: dict[uuid.UUID, date]) -> None: ...

    async def post_transfer(
        self,
        from_account_id: uuid.UUID,
        to_account_id: uuid.UUID,
        amount_cents: int,
        transfer_date: date,
        note: str,
        currency: str,
        statement_period: str,
    ) -> uuid.UUID: ...


class SqlStatementStore:
    """StatementStore backed by the request's database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_account(self, account_id):
        return AccountConfig.from_model(await account_service.get_account(self.db, account_id))

    async def list_expenses(self, account_id):
        return await expense_service.list_expense_records(self.db, account_id)

    async def insert_expense(self, account_id, expense_date, amount_cents, category_label, note):
        return await expense_service.insert_expense(
            self.db, account_id, expense_date, amount_cents, category_label, note
        )

    async def update_expense_dates_batch(self, expense_ids, new_date):
        await expense_service.update_expense_dates_batch(self.db, expense_ids, new_date)

    async def update_expense_dates(self, new_dates):
        await expense_service.update_expense_dates(self.db, new_dates)

    async def post_transfer(
        self, from_account_id, to_account_id, amount_cents, transfer_date, note, currency, statement_period
    ):
        transfer = await transfer_service.post_transfer(
            self.db,
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            amount_cents=amount_cents,
            transfer_date=transfer_date,
            note=note,
            currency=currency,
            statement_period=statement_period,
        )
        return transfer.id


_account_locks: dict[uuid.UUID, asyncio.Lock] = {}


def _lock_for(account_id: uuid.UUID) -> asyncio.Lock:
    return _account_locks.setdefault(account_id, asyncio.Lock())


class StatementMutator:
    """
    Operations that change what a card's statements contain.

    Every operation reloads the account and its expenses, rebuilds the
    statements, checks its preconditions against that fresh view, and then
    writes through the store. Callers rebuild statements afterwards to see
    the effect.
    """

    def __init__(
        self,
        store: StatementStore,
        *,
        tax_category_label: str = settings.TAX_CATEGORY_LABEL,
        secondary_currency: str = settings.SECONDARY_CURRENCY,
        anchor_day: int = settings.STATEMENT_MOVE_ANCHOR_DAY,
    ):
        self.store = store
        self.tax_category_label = tax_category_label
        self.secondary_currency = secondary_currency.upper()
        self.anchor_day = anchor_day

    async def _load(
        self, account_id: uuid.UUID, today: date
    ) -> tuple[AccountConfig, list[ExpenseRecord], list[Statement]]:
        account = await self.store.get_account(account_id)
        if not account.is_credit_card:
            raise NotACreditCardError(account_id)
        expenses = await self.store.list_expenses(account_id)
        statements = build_statements(
            expenses, account, today, tax_category_label=self.tax_category_label
        )
        return account, expenses, statements

    async def _load_statement(self, account_id, period_key, today):
        account, expenses, statements = await self._load(account_id, today)
        statement = find_statement(statements, period_key)
        if statement is None:
            raise StatementNotFoundError(account_id, period_key)
        return account, expenses, statements, statement

    def _reject(self, operation: str, period_key: str, reason: str) -> MutationOutcome:
        logger.warning("%s rejected for %s: %s", operation, period_key, reason)
        return MutationOutcome.rejected(operation, period_key, reason)

    # ------------------------------------------------------------------
    # Add tax line
    # ------------------------------------------------------------------

    async def add_tax_line(
        self,
        account_id: uuid.UUID,
        period_key: str,
        amount_cents: int,
        today: date,
    ) -> MutationOutcome:
        """
        Add a stamp-duty expense to a statement.

        The line is dated on the last day that still classifies into the
        statement's period: the close date itself belongs to the next
        period whenever the closing day was not clamped.

        A statement that already has a tax line simply gets another one.
        """
        operation = "add_tax_line"
        async with _lock_for(account_id):
            account, _, _, statement = await self._load_statement(account_id, period_key, today)
            if amount_cents <= 0:
                return self._reject(operation, period_key, "Tax amount must be positive")

            expense = await self.store.insert_expense(
                account_id,
                last_date_in_period(period_key, account.closing_day),
                amount_cents,
                self.tax_category_label,
                f"{self.tax_category_label} - Statement {statement.label}",
            )

        logger.info("tax_line_added: account=%s period=%s amount_cents=%d",
                    account_id, period_key, amount_cents)
        return MutationOutcome(operation=operation, period_key=period_key, expense=expense)

    # ------------------------------------------------------------------
    # Pay statement
    # ------------------------------------------------------------------

    async def pay_statement(
        self,
        account_id: uuid.UUID,
        period_key: str,
        currency: Currency,
        from_account_id: uuid.UUID,
        today: date,
    ) -> MutationOutcome:
        """
        Pay one currency side of a statement from a settlement account.

        Rejected when the selected side totals zero, or when the settlement
        account is a credit card, is the card itself, or holds a different
        currency than the side being paid.
        """
        operation = "pay_statement"
        currency = Currency(currency)
        async with _lock_for(account_id):
            account, _, _, statement = await self._load_statement(account_id, period_key, today)

            total = statement.total_for(currency)
            if total <= 0:
                return self._reject(
                    operation, period_key, f"Statement has no {currency.value} amount to pay"
                )

            if from_account_id == account_id:
                return self._reject(operation, period_key, "A card cannot pay its own statement")
            source = await self.store.get_account(from_account_id)
            if source.is_credit_card:
                return self._reject(
                    operation, period_key, "Statements must be paid from a non-card account"
                )
            currency_code = (
                self.secondary_currency if currency == Currency.SECONDARY else account.currency
            )
            if source.currency.upper() != currency_code.upper():
                return self._reject(
                    operation,
                    period_key,
                    f"Settlement account holds {source.currency}, statement side is {currency_code}",
                )

            transfer_id = await self.store.post_transfer(
                from_account_id,
                account_id,
                total,
                today,
                f"Statement payment {statement.label} ({currency_code})",
                currency_code,
                period_key,
            )

        logger.info("statement_paid: account=%s period=%s amount_cents=%d currency=%s",
                    account_id, period_key, total, currency_code)
        return MutationOutcome(
            operation=operation,
            period_key=period_key,
            transfer_id=transfer_id,
            amount_cents=total,
            currency=currency_code,
        )

    # ------------------------------------------------------------------
    # Move items to an adjacent statement
    # ------------------------------------------------------------------

    async def move_items(
        self,
        account_id: uuid.UUID,
        period_key: str,
        expense_ids: list[uuid.UUID],
        direction: Direction,
        today: date,
        propagate_installments: bool = False,
    ) -> MutationOutcome:
        """
        Move selected expenses of a statement into its neighbour.

        The neighbour is the adjacent statement in the sorted list, which
        may be several calendar months away when periods in between have
        no expenses. Selected expenses get one representative date inside
        the neighbour's period.

        With propagate_installments, every later installment (by number)
        of a moved installment's purchase is shifted by the same number of
        periods. All date rewrites go to the store in a single call.
        """
        operation = "move_items"
        direction = Direction(direction)
        selected_ids = list(dict.fromkeys(expense_ids))

        async with _lock_for(account_id):
            account, expenses, statements, source = await self._load_statement(
                account_id, period_key, today
            )

            if not selected_ids:
                return self._reject(operation, period_key, "No expenses selected")

            on_statement = {record.id: record for record in source.items}
            missing = [expense_id for expense_id in selected_ids if expense_id not in on_statement]
            if missing:
                return self._reject(
                    operation,
                    period_key,
                    f"{len(missing)} selected expense(s) are not on statement {period_key}",
                )

            target = adjacent_statement(statements, period_key, direction)
            if target is None:
                return self._reject(
                    operation, period_key, f"There is no {direction.value} statement"
                )

            new_date = representative_date(target.period_key, account.closing_day, self.anchor_day)
            selected = [on_statement[expense_id] for expense_id in selected_ids]

            propagated = {}
            if propagate_installments:
                shift = months_between(period_key, target.period_key)
                propagated = self._propagate(selected, expenses, shift, account.closing_day)

            if propagated:
                new_dates = {record.id: new_date for record in selected}
                new_dates.update(propagated)
                await self.store.update_expense_dates(new_dates)
            else:
                await self.store.update_expense_dates_batch(selected_ids, new_date)

        logger.info("items_moved: account=%s from=%s to=%s moved=%d propagated=%d",
                    account_id, period_key, target.period_key, len(selected_ids), len(propagated))
        return MutationOutcome(
            operation=operation,
            period_key=period_key,
            target_period_key=target.period_key,
            new_date=new_date,
            moved_expense_ids=tuple(selected_ids),
            propagated_expense_ids=tuple(propagated),
        )

    def _propagate(
        self,
        selected: list[ExpenseRecord],
        expenses: list[ExpenseRecord],
        shift: int,
        closing_day: int,
    ) -> dict[uuid.UUID, date]:
        """
        New dates for the later installments of every moved installment.

        "Later" is decided by installment number, never by date. Each
        installment moves by `shift` periods: the date keeps its day when
        that lands in the right period, otherwise it takes the period's
        representative date.
        """
        selected_ids = {record.id for record in selected}
        earliest: dict[uuid.UUID, int] = {}
        for record in selected:
            if record.purchase_group_id is None or record.installment_number is None:
                continue
            current = earliest.get(record.purchase_group_id)
            if current is None or record.installment_number < current:
                earliest[record.purchase_group_id] = record.installment_number

        new_dates = {}
        for record in expenses:
            if record.id in selected_ids or record.installment_number is None:
                continue
            moved_from = earliest.get(record.purchase_group_id)
            if moved_from is None or record.installment_number <= moved_from:
                continue
            expected_key = shift_period(classify_period(record.date, closing_day), shift)
            candidate = add_months(record.date, shift)
            if classify_period(candidate, closing_day) != expected_key:
                candidate = representative_date(expected_key, closing_day, self.anchor_day)
            new_dates[record.id] = candidate
        return new_dates


# ---------------------------------------------------------------------------
# Session-bound entry points used by the routers
# ---------------------------------------------------------------------------

async def get_statements(
    db: AsyncSession,
    account_id: uuid.UUID,
    today: date,
) -> list[Statement]:
    """
    Rebuild every statement of a credit card account.

    Raises:
        AccountNotFoundError: If the account doesn't exist.
        NotACreditCardError: If the account is not a credit card.
    """
    account = AccountConfig.from_model(await account_service.get_account(db, account_id))
    if not account.is_credit_card:
        raise NotACreditCardError(account_id)
    expenses = await expense_service.list_expense_records(db, account_id)
    return build_statements(
        expenses, account, today, tax_category_label=settings.TAX_CATEGORY_LABEL
    )


async def get_statement(
    db: AsyncSession,
    account_id: uuid.UUID,
    period_key: str,
    today: date,
) -> Statement:
    statement = find_statement(await get_statements(db, account_id, today), period_key)
    if statement is None:
        raise StatementNotFoundError(account_id, period_key)
    return statement


def get_mutator(db: AsyncSession) -> StatementMutator:
    return StatementMutator(SqlStatementStore(db))
