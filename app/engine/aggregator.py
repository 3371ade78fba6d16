"""
Statement aggregation — expenses + account config -> ordered statements.

build_statements() is a pure function. It:
  1. Keeps only the expenses of the target account
  2. Buckets them by billing period (see periods.classify_period)
  3. For each populated period, splits items by currency, sums the
     magnitudes per side, detects the stamp-duty line, and tags the
     statement as past, current or future relative to `today`
  4. Returns the statements sorted by close date, oldest first

Periods without expenses never produce a statement, and an account with
no expenses produces an empty list.
"""

import calendar
from datetime import date

from app.engine.periods import classify_period, close_date_for, parse_period_key
from app.engine.records import AccountConfig, Direction, ExpenseRecord, LifecycleState, Statement

DEFAULT_TAX_CATEGORY_LABEL = "Stamp duty"


def lifecycle_for(close_date: date, today: date) -> LifecycleState:
    """
    Classify a close date against today.

    The month boundary wins over the day boundary: a statement that closes
    in the current month is CURRENT even if its close date already passed.
    """
    if (close_date.year, close_date.month) == (today.year, today.month):
        return LifecycleState.CURRENT
    if close_date < today:
        return LifecycleState.PAST
    return LifecycleState.FUTURE


def _is_tax_line(record: ExpenseRecord, tax_category_label: str) -> bool:
    # Category labels may carry a decorative prefix ("⬇️ Stamp duty")
    return tax_category_label.casefold() in record.category_label.casefold()


def _build_statement(
    key: str,
    records: list[ExpenseRecord],
    account: AccountConfig,
    today: date,
    tax_category_label: str,
) -> Statement:
    year, month = parse_period_key(key)
    close_date = close_date_for(key, account.closing_day)

    # sorted() is stable: same-day items keep their input order
    items = tuple(sorted(records, key=lambda r: r.date))
    primary_items = tuple(r for r in items if not r.is_secondary)
    secondary_items = tuple(r for r in items if r.is_secondary)

    tax_lines = [r for r in items if _is_tax_line(r, tax_category_label)]

    return Statement(
        period_key=key,
        year=year,
        month=month,
        label=f"{calendar.month_name[month]} {year}",
        close_date=close_date,
        lifecycle_state=lifecycle_for(close_date, today),
        items=items,
        primary_items=primary_items,
        secondary_items=secondary_items,
        total_primary_cents=sum(abs(r.primary_amount_cents) for r in primary_items),
        total_secondary_cents=sum(abs(r.secondary_amount_cents) for r in secondary_items),
        has_tax_line=bool(tax_lines),
        tax_amount_cents=abs(tax_lines[0].primary_amount_cents) if tax_lines else 0,
    )


def build_statements(
    expenses: list[ExpenseRecord],
    account: AccountConfig,
    today: date,
    *,
    tax_category_label: str = DEFAULT_TAX_CATEGORY_LABEL,
) -> list[Statement]:
    """
    Reconstruct the statements of a credit card account.

    Args:
        expenses: Expense snapshots; records of other accounts are ignored.
        account: Billing configuration (closing day, currency).
        today: Reference date for the lifecycle tag. Never read from a clock.
        tax_category_label: Category label that marks a stamp-duty line.

    Returns:
        Statements for every period holding at least one expense,
        ordered by close date ascending.
    """
    buckets: dict[str, list[ExpenseRecord]] = {}
    for record in expenses:
        if record.account_id != account.account_id:
            continue
        key = classify_period(record.date, account.closing_day)
        buckets.setdefault(key, []).append(record)

    statements = [
        _build_statement(key, records, account, today, tax_category_label)
        for key, records in buckets.items()
    ]
    statements.sort(key=lambda s: s.close_date)
    return statements


def find_statement(statements: list[Statement], key: str) -> Statement | None:
    for statement in statements:
        if statement.period_key == key:
            return statement
    return None


def adjacent_statement(
    statements: list[Statement],
    key: str,
    direction: Direction,
) -> Statement | None:
    """
    The statement right before or after `key` in the sorted list.

    Returns None when `key` is not in the list or sits at the end the
    direction points past.
    """
    for index, statement in enumerate(statements):
        if statement.period_key != key:
            continue
        target = index - 1 if direction == Direction.PREVIOUS else index + 1
        if 0 <= target < len(statements):
            return statements[target]
        return None
    return None

