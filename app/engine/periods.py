"""
Billing period arithmetic.

A card that closes on day D collects every charge dated before day D of a
month into that month's statement. Charges dated on day D or later belong
to the statement that closes the following month. Periods are identified
by a "YYYY-MM" key naming the month the statement closes in.

Dates are plain calendar dates. No timezone conversion happens here.
"""

import calendar
from datetime import date, timedelta

# A full calendar-month cycle closing on the 1st
DEFAULT_CLOSING_DAY = 1


def normalize_closing_day(closing_day) -> int:
    """Return closing_day as an int in [1, 31], or DEFAULT_CLOSING_DAY."""
    try:
        day = int(closing_day)
    except (TypeError, ValueError):
        return DEFAULT_CLOSING_DAY
    if 1 <= day <= 31:
        return day
    return DEFAULT_CLOSING_DAY


def is_secondary_denominated(primary_cents: int, secondary_cents: int) -> bool:
    """
    True when an expense was recorded in the secondary currency only.

    An expense that carries both a primary amount and a secondary amount
    counts as primary: the secondary figure is then a reference value.
    """
    return secondary_cents > 0 and primary_cents == 0


def period_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def parse_period_key(key: str) -> tuple[int, int]:
    """
    Split a "YYYY-MM" key into (year, month).

    Raises:
        ValueError: If the key is not a valid period key.
    """
    try:
        year_text, month_text = key.split("-")
        year, month = int(year_text), int(month_text)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid period key: {key!r}")
    if len(year_text) != 4 or len(month_text) != 2 or not 1 <= month <= 12:
        raise ValueError(f"Invalid period key: {key!r}")
    return year, month


def shift_period(key: str, months: int) -> str:
    """Return the key `months` periods after (or before, if negative) `key`."""
    year, month = parse_period_key(key)
    index = year * 12 + (month - 1) + months
    return period_key(index // 12, index % 12 + 1)


def months_between(from_key: str, to_key: str) -> int:
    """Signed number of periods from `from_key` to `to_key`."""
    from_year, from_month = parse_period_key(from_key)
    to_year, to_month = parse_period_key(to_key)
    return (to_year - from_year) * 12 + (to_month - from_month)


def classify_period(expense_date: date, closing_day) -> str:
    """
    Map an expense date to the key of the statement it belongs to.

    A date on or after the closing day rolls into the next month's period
    (December rolls into January of the next year).

        >>> classify_period(date(2025, 12, 28), 25)
        '2026-01'
        >>> classify_period(date(2025, 1, 14), 15)
        '2025-01'
    """
    closing_day = normalize_closing_day(closing_day)
    year, month = expense_date.year, expense_date.month
    if expense_date.day >= closing_day:
        month += 1
        if month > 12:
            month = 1
            year += 1
    return period_key(year, month)


def clamp_day(year: int, month: int, day: int) -> date:
    """date(year, month, day) with the day clamped to the month's length."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def close_date_for(key: str, closing_day) -> date:
    """
    The calendar date the statement identified by `key` closes on.

    A closing day past the end of the month closes on the month's last
    day (closing day 31 in February closes on the 28th or 29th).
    """
    year, month = parse_period_key(key)
    return clamp_day(year, month, normalize_closing_day(closing_day))


def add_months(value: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the target month."""
    index = value.year * 12 + (value.month - 1) + months
    return clamp_day(index // 12, index % 12 + 1, value.day)


def representative_date(key: str, closing_day, anchor_day: int = 15) -> date:
    """
    A date that classifies into the period `key` for this closing day.

    Uses min(anchor_day, closing_day - 1) in the period's month, which is
    always strictly before the closing day. A card closing on the 1st has
    no such day in that month; its period covers the whole previous month,
    so the anchor day of the previous month is used instead.
    """
    closing_day = normalize_closing_day(closing_day)
    year, month = parse_period_key(key)
    if closing_day == 1:
        previous = add_months(date(year, month, 1), -1)
        return clamp_day(previous.year, previous.month, anchor_day)
    return clamp_day(year, month, max(1, min(anchor_day, closing_day - 1)))


def last_date_in_period(key: str, closing_day) -> date:
    """
    The latest date that still classifies into `key`.

    This is the day before the closing day, or the close date itself when
    the closing day was clamped to a short month.
    """
    close_date = close_date_for(key, closing_day)
    if classify_period(close_date, closing_day) == key:
        return close_date
    return close_date - timedelta(days=1)
