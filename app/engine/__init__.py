"""
Credit card statement engine.

Pure, synchronous code with no I/O:

  periods     — closing-day arithmetic: which billing period a date falls in,
                when a period closes, date shifting between periods
  records     — immutable inputs and outputs (ExpenseRecord, AccountConfig,
                Statement) plus the boundary coercion of raw amounts
  aggregator  — build_statements(): expenses + account config + today
                -> ordered list of Statement views

Nothing here reads the clock, the database, or the settings object.
Callers pass "today" and labels in explicitly.
"""

from app.engine.aggregator import adjacent_statement, build_statements, find_statement, lifecycle_for  # noqa: F401
from app.engine.periods import classify_period, close_date_for, normalize_closing_day  # noqa: F401
from app.engine.records import (  # noqa: F401
    AccountConfig,
    Currency,
    Direction,
    ExpenseRecord,
    LifecycleState,
    Statement,
    coerce_cents,
)
