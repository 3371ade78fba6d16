"""
Tests for statement aggregation (build_statements).

These tests verify:
  - Expenses are bucketed into the right periods (closing-day semantics)
  - Every expense lands on exactly one statement
  - Primary and secondary items partition each statement
  - Totals are sums of magnitudes per currency side
  - Close dates clamp, lifecycle tags are exclusive
  - Output is deterministic and sorted by close date
  - Raw rows are coerced to integer cents at the boundary
"""

import uuid
from datetime import date

import pytest

from app.engine.aggregator import adjacent_statement, build_statements, find_statement, lifecycle_for
from app.engine.records import AccountConfig, Direction, ExpenseRecord, LifecycleState, coerce_cents

CARD_ID = uuid.uuid4()
OTHER_ID = uuid.uuid4()
TODAY = date(2025, 3, 10)


def make_expense(day, primary=0, secondary=0, category="", account_id=CARD_ID, **kwargs):
    return ExpenseRecord(
        id=kwargs.pop("id", uuid.uuid4()),
        account_id=account_id,
        date=day,
        primary_amount_cents=primary,
        secondary_amount_cents=secondary,
        category_label=category,
        **kwargs,
    )


def card_config(closing_day=15, currency="ARS"):
    return AccountConfig(account_id=CARD_ID, closing_day=closing_day, currency=currency)


class TestBuildStatements:

    def test_two_periods_split_on_closing_day(self):
        """Jan 10 closes in January, Jan 20 rolls into February."""
        early = make_expense(date(2025, 1, 10), primary=1000)
        late = make_expense(date(2025, 1, 20), primary=500)

        statements = build_statements([early, late], card_config(15), TODAY)

        assert [s.period_key for s in statements] == ["2025-01", "2025-02"]
        assert statements[0].items == (early,)
        assert statements[0].total_primary_cents == 1000
        assert statements[1].items == (late,)
        assert statements[1].total_primary_cents == 500

    def test_secondary_only_expense(self):
        expense = make_expense(date(2025, 3, 5), primary=0, secondary=50)

        statements = build_statements([expense], card_config(1), TODAY)

        assert len(statements) == 1
        statement = statements[0]
        # Closing on the 1st: March charges close in April
        assert statement.period_key == "2025-04"
        assert statement.total_secondary_cents == 50
        assert statement.total_primary_cents == 0
        assert statement.secondary_items == (expense,)
        assert statement.primary_items == ()

    def test_expense_with_both_amounts_is_primary(self):
        expense = make_expense(date(2025, 3, 5), primary=4500, secondary=300)

        statement = build_statements([expense], card_config(20), TODAY)[0]

        assert statement.primary_items == (expense,)
        assert statement.secondary_items == ()
        assert statement.total_primary_cents == 4500
        assert statement.total_secondary_cents == 0

    def test_empty_input_gives_no_statements(self):
        assert build_statements([], card_config(), TODAY) == []

    def test_other_accounts_are_ignored(self):
        mine = make_expense(date(2025, 2, 1), primary=100)
        theirs = make_expense(date(2025, 2, 1), primary=999, account_id=OTHER_ID)

        statements = build_statements([mine, theirs], card_config(), TODAY)

        assert len(statements) == 1
        assert statements[0].items == (mine,)

    def test_only_other_accounts_gives_no_statements(self):
        theirs = make_expense(date(2025, 2, 1), primary=999, account_id=OTHER_ID)
        assert build_statements([theirs], card_config(), TODAY) == []

    def test_totals_use_magnitudes(self):
        refund_like = make_expense(date(2025, 2, 1), primary=-300)
        charge = make_expense(date(2025, 2, 2), primary=700)

        statement = build_statements([refund_like, charge], card_config(), TODAY)[0]

        assert statement.total_primary_cents == 1000

    def test_every_expense_on_exactly_one_statement(self):
        expenses = [
            make_expense(date(2024, 11, 30), primary=100),
            make_expense(date(2024, 12, 15), primary=200),
            make_expense(date(2025, 1, 1), secondary=300),
            make_expense(date(2025, 1, 14), primary=400),
            make_expense(date(2025, 1, 15), primary=500),
            make_expense(date(2025, 2, 28), secondary=600),
        ]

        statements = build_statements(expenses, card_config(15), TODAY)

        seen = [item.id for s in statements for item in s.items]
        assert sorted(seen, key=str) == sorted((e.id for e in expenses), key=str)
        assert len(seen) == len(set(seen))

    def test_currency_sides_partition_items(self):
        expenses = [
            make_expense(date(2025, 2, 3), primary=100),
            make_expense(date(2025, 2, 1), secondary=200),
            make_expense(date(2025, 2, 2), primary=300, secondary=5),
        ]

        statement = build_statements(expenses, card_config(20), TODAY)[0]

        primary_ids = {r.id for r in statement.primary_items}
        secondary_ids = {r.id for r in statement.secondary_items}
        assert primary_ids.isdisjoint(secondary_ids)
        assert primary_ids | secondary_ids == {r.id for r in statement.items}
        assert statement.item_count == 3

    def test_items_sorted_by_date(self):
        later = make_expense(date(2025, 2, 10), primary=1)
        earlier = make_expense(date(2025, 2, 2), secondary=1)
        middle = make_expense(date(2025, 2, 5), primary=1)

        statement = build_statements([later, earlier, middle], card_config(20), TODAY)[0]

        assert statement.items == (earlier, middle, later)
        assert statement.primary_items == (middle, later)
        assert statement.secondary_items == (earlier,)

    def test_statements_sorted_by_close_date(self):
        expenses = [
            make_expense(date(2025, 6, 1), primary=1),
            make_expense(date(2024, 12, 1), primary=1),
            make_expense(date(2025, 2, 1), primary=1),
        ]

        statements = build_statements(expenses, card_config(20), TODAY)

        close_dates = [s.close_date for s in statements]
        assert close_dates == sorted(close_dates)
        assert [s.period_key for s in statements] == ["2024-12", "2025-02", "2025-06"]

    def test_close_date_clamped_in_february(self):
        expense = make_expense(date(2025, 2, 10), primary=1)

        statement = build_statements([expense], card_config(31), TODAY)[0]

        assert statement.period_key == "2025-02"
        assert statement.close_date == date(2025, 2, 28)

    def test_tax_line_detected(self):
        tax = make_expense(date(2025, 2, 14), primary=1200, category="⬇️ Stamp duty")
        other = make_expense(date(2025, 2, 1), primary=100, category="Groceries")

        statement = build_statements([tax, other], card_config(15), TODAY)[0]

        assert statement.has_tax_line is True
        assert statement.tax_amount_cents == 1200
        assert statement.total_primary_cents == 1300

    def test_no_tax_line(self):
        statement = build_statements(
            [make_expense(date(2025, 2, 1), primary=100)], card_config(), TODAY
        )[0]
        assert statement.has_tax_line is False
        assert statement.tax_amount_cents == 0

    def test_custom_tax_label(self):
        tax = make_expense(date(2025, 2, 1), primary=50, category="Impuesto de sellos")

        statement = build_statements(
            [tax], card_config(), TODAY, tax_category_label="Impuesto de sellos"
        )[0]

        assert statement.has_tax_line is True

    def test_label_and_installment_label(self):
        expense = make_expense(
            date(2025, 2, 1),
            primary=100,
            purchase_group_id=uuid.uuid4(),
            installment_number=3,
            total_installments=12,
        )

        statement = build_statements([expense], card_config(15), TODAY)[0]

        assert statement.label == "February 2025"
        assert statement.items[0].installment_label == "3/12"

    def test_identical_inputs_identical_output(self):
        expenses = [
            make_expense(date(2025, 1, 10), primary=1000),
            make_expense(date(2025, 1, 20), secondary=500),
        ]

        first = build_statements(expenses, card_config(15), TODAY)
        second = build_statements(expenses, card_config(15), TODAY)

        assert first == second

    def test_invalid_closing_day_defaults_to_first(self):
        config = AccountConfig(account_id=CARD_ID, closing_day=0)
        assert config.closing_day == 1

        statement = build_statements(
            [make_expense(date(2025, 2, 10), primary=1)], config, TODAY
        )[0]

        assert statement.period_key == "2025-03"
        assert statement.close_date == date(2025, 3, 1)


class TestLifecycle:

    def test_past(self):
        assert lifecycle_for(date(2025, 2, 15), TODAY) == LifecycleState.PAST

    def test_current_when_close_date_later_this_month(self):
        assert lifecycle_for(date(2025, 3, 15), TODAY) == LifecycleState.CURRENT

    def test_current_even_if_close_date_already_passed(self):
        assert lifecycle_for(date(2025, 3, 1), TODAY) == LifecycleState.CURRENT

    def test_future(self):
        assert lifecycle_for(date(2025, 4, 15), TODAY) == LifecycleState.FUTURE

    def test_year_boundary(self):
        assert lifecycle_for(date(2024, 3, 20), TODAY) == LifecycleState.PAST
        assert lifecycle_for(date(2026, 3, 1), TODAY) == LifecycleState.FUTURE

    @pytest.mark.parametrize(
        "today",
        [date(2025, 1, 1), date(2025, 2, 14), date(2025, 2, 15), date(2025, 2, 28), date(2025, 3, 1)],
    )
    def test_exactly_one_state(self, today):
        states = {lifecycle_for(date(2025, 2, 15), today)}
        assert len(states) == 1
        assert states <= set(LifecycleState)

    def test_statements_tagged(self):
        expenses = [
            make_expense(date(2025, 1, 10), primary=1),
            make_expense(date(2025, 2, 20), primary=1),
            make_expense(date(2025, 3, 20), primary=1),
        ]

        statements = build_statements(expenses, card_config(15), TODAY)

        assert [s.lifecycle_state for s in statements] == [
            LifecycleState.PAST,
            LifecycleState.CURRENT,
            LifecycleState.FUTURE,
        ]


class TestNavigation:

    def setup_method(self):
        expenses = [
            make_expense(date(2024, 11, 1), primary=1),
            make_expense(date(2025, 2, 1), primary=1),
            make_expense(date(2025, 3, 1), primary=1),
        ]
        self.statements = build_statements(expenses, card_config(20), TODAY)

    def test_find_statement(self):
        assert find_statement(self.statements, "2025-02").period_key == "2025-02"
        assert find_statement(self.statements, "2025-01") is None

    def test_adjacent_skips_empty_periods(self):
        previous = adjacent_statement(self.statements, "2025-02", Direction.PREVIOUS)
        assert previous.period_key == "2024-11"

    def test_adjacent_next(self):
        assert adjacent_statement(self.statements, "2025-02", Direction.NEXT).period_key == "2025-03"

    def test_no_neighbour_past_the_ends(self):
        assert adjacent_statement(self.statements, "2025-03", Direction.NEXT) is None
        assert adjacent_statement(self.statements, "2024-11", Direction.PREVIOUS) is None


class TestRawRecords:
    """Coercion of loosely-typed rows into ExpenseRecord."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (12.5, 1250),
            ("USD $3,33", 333),
            ("$ -45.678", -4568),
            ("abc", 0),
            (None, 0),
            (True, 0),
            (float("nan"), 0),
        ],
    )
    def test_coerce_cents(self, raw, expected):
        assert coerce_cents(raw) == expected

    def test_from_raw_falls_back_to_amount(self):
        record = ExpenseRecord.from_raw(
            {"date": "2025-01-05", "amount": "1.50", "category": "Food"}, CARD_ID
        )
        assert record.primary_amount_cents == 150
        assert record.secondary_amount_cents == 0
        assert record.category_label == "Food"
        assert record.date == date(2025, 1, 5)
        assert record.account_id == CARD_ID

    def test_from_raw_secondary_only(self):
        record = ExpenseRecord.from_raw(
            {"date": "2025-01-05", "secondary_amount": "USD 7"}, CARD_ID
        )
        assert record.is_secondary
        assert record.secondary_amount_cents == 700

    def test_from_raw_unreadable_date(self):
        with pytest.raises(ValueError):
            ExpenseRecord.from_raw({"date": "not a date", "amount": 1}, CARD_ID)
