"""
Tests for billing period arithmetic.

These tests verify:
  - A date on the closing day goes to the next period, the day before stays
  - December rolls into January of the next year
  - Out-of-range or missing closing days fall back to the 1st
  - Close dates clamp to the month's length
  - Representative and last-in-period dates classify back into their period
"""

from datetime import date

import pytest

from app.engine.periods import (
    add_months,
    classify_period,
    close_date_for,
    last_date_in_period,
    months_between,
    normalize_closing_day,
    parse_period_key,
    representative_date,
    shift_period,
)


class TestClassifyPeriod:

    def test_closing_day_goes_to_next_period(self):
        assert classify_period(date(2025, 1, 15), 15) == "2025-02"

    def test_day_before_closing_day_stays(self):
        assert classify_period(date(2025, 1, 14), 15) == "2025-01"

    def test_december_rolls_over(self):
        assert classify_period(date(2025, 12, 28), 25) == "2026-01"

    def test_repeated_calls_agree(self):
        first = classify_period(date(2025, 6, 9), 10)
        assert first == classify_period(date(2025, 6, 9), 10) == "2025-06"

    @pytest.mark.parametrize("closing_day", [0, 32, -5, None, "abc"])
    def test_invalid_closing_day_means_first(self, closing_day):
        # Closing on the 1st: every day of the month rolls to the next period
        assert classify_period(date(2025, 3, 1), closing_day) == "2025-04"
        assert classify_period(date(2025, 3, 31), closing_day) == "2025-04"

    def test_closing_day_first_covers_previous_month(self):
        assert classify_period(date(2025, 2, 5), 1) == "2025-03"

    def test_closing_day_31_in_short_month(self):
        # No day reaches 31 in April, so the whole month stays in April
        assert classify_period(date(2025, 4, 30), 31) == "2025-04"


class TestNormalizeClosingDay:

    @pytest.mark.parametrize("value,expected", [(1, 1), (31, 31), ("20", 20), (0, 1), (40, 1), (None, 1)])
    def test_normalize(self, value, expected):
        assert normalize_closing_day(value) == expected


class TestCloseDate:

    def test_plain_close_date(self):
        assert close_date_for("2025-03", 20) == date(2025, 3, 20)

    def test_february_clamps(self):
        assert close_date_for("2025-02", 31) == date(2025, 2, 28)

    def test_leap_february_clamps(self):
        assert close_date_for("2024-02", 31) == date(2024, 2, 29)

    def test_invalid_key_rejected(self):
        with pytest.raises(ValueError):
            parse_period_key("2025-13")
        with pytest.raises(ValueError):
            parse_period_key("March")


class TestPeriodShifting:

    def test_shift_period_across_years(self):
        assert shift_period("2025-12", 1) == "2026-01"
        assert shift_period("2025-01", -1) == "2024-12"

    def test_months_between(self):
        assert months_between("2024-11", "2025-02") == 3
        assert months_between("2025-02", "2024-11") == -3

    def test_add_months_clamps(self):
        assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
        assert add_months(date(2025, 1, 31), 2) == date(2025, 3, 31)
        assert add_months(date(2025, 1, 10), -1) == date(2024, 12, 10)


class TestRepresentativeDate:

    @pytest.mark.parametrize("closing_day", [1, 2, 10, 15, 16, 28, 31])
    def test_classifies_into_its_period(self, closing_day):
        for key in ("2025-01", "2025-02", "2025-03", "2024-02"):
            result = representative_date(key, closing_day)
            assert classify_period(result, closing_day) == key

    def test_uses_anchor_day_when_closing_late(self):
        assert representative_date("2025-04", 25) == date(2025, 4, 15)

    def test_uses_day_before_close_when_closing_early(self):
        assert representative_date("2025-04", 10) == date(2025, 4, 9)

    def test_closing_on_first_uses_previous_month(self):
        assert representative_date("2025-01", 1) == date(2024, 12, 15)


class TestLastDateInPeriod:

    def test_day_before_close(self):
        assert last_date_in_period("2025-03", 20) == date(2025, 3, 19)

    def test_clamped_close_date_is_inside(self):
        assert last_date_in_period("2025-02", 31) == date(2025, 2, 28)

    @pytest.mark.parametrize("closing_day", [1, 15, 30, 31])
    def test_always_in_period(self, closing_day):
        for key in ("2025-01", "2025-02", "2025-12"):
            assert classify_period(last_date_in_period(key, closing_day), closing_day) == key
