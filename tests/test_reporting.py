"""Unit tests for the transaction ledger and the reporting engine.

Run with: pytest tests/test_reporting.py -v
"""

import calendar
from datetime import date, datetime
from decimal import Decimal

import pytest

from pisonet_system.domain import TransactionKind
from pisonet_system.reporting import ReportingEngine, start_of_week
from pisonet_system.repository import TransactionLedger

SESSION = TransactionKind.SESSION
PRODUCT = TransactionKind.PRODUCT


@pytest.fixture
def ledger() -> TransactionLedger:
    ledger = TransactionLedger()
    rows = [
        (SESSION, "10.00", datetime(2023, 12, 31, 22, 0)),
        (PRODUCT, "20.00", datetime(2024, 4, 30, 23, 59)),
        (SESSION, "15.50", datetime(2024, 5, 12, 9, 0)),  # Sunday
        (SESSION, "5.00", datetime(2024, 5, 13, 9, 0)),  # Monday
        (PRODUCT, "35.00", datetime(2024, 5, 15, 8, 30)),  # Wednesday
        (SESSION, "12.25", datetime(2024, 5, 15, 11, 0)),
        (SESSION, "3.00", datetime(2024, 5, 15, 23, 59, 59)),
        (PRODUCT, "40.00", datetime(2024, 5, 16, 0, 0)),  # Thursday
    ]
    for kind, amount, timestamp in rows:
        ledger.record(kind, Decimal(amount), f"{kind.value} {amount}", timestamp)
    return ledger


@pytest.fixture
def engine(ledger) -> ReportingEngine:
    return ReportingEngine(ledger, first_weekday=calendar.MONDAY)


class TestLedger:
    def test_keeps_insertion_order(self, ledger):
        amounts = [entry.amount for entry in ledger]
        assert amounts[0] == Decimal("10.00")
        assert amounts[-1] == Decimal("40.00")
        assert len(ledger) == 8

    def test_filters_by_kind_and_predicate(self, ledger):
        sessions = ledger.entries(kind=SESSION)
        assert len(sessions) == 5
        may = ledger.entries(lambda entry: entry.timestamp.month == 5, kind=PRODUCT)
        assert [entry.amount for entry in may] == [Decimal("35.00"), Decimal("40.00")]

    def test_exposes_no_mutation_besides_append(self, ledger):
        assert not hasattr(ledger, "remove")
        assert not hasattr(ledger, "clear")
        snapshot = list(ledger)
        ledger.record(PRODUCT, Decimal("1.00"), "late", datetime(2024, 6, 1))
        assert len(snapshot) == 8
        assert len(ledger) == 9


class TestDaily:
    def test_income_and_session_count(self, engine):
        traffic = engine.daily_income_and_session_count(date(2024, 5, 15))
        assert traffic.income == Decimal("50.25")
        assert traffic.session_count == 2

    def test_empty_day(self, engine):
        assert engine.daily_income_and_session_count(date(2024, 5, 14)) == (0, 0)

    def test_empty_ledger(self):
        engine = ReportingEngine(TransactionLedger())
        assert engine.daily_income_and_session_count(date(2024, 5, 15)) == (0, 0)


class TestWindows:
    def test_week_starting_monday(self, engine):
        # Monday 13th through Wednesday 15th, the Thursday sale is excluded
        assert engine.week_income(date(2024, 5, 15)) == Decimal("55.25")

    def test_week_starting_sunday(self, ledger):
        engine = ReportingEngine(ledger, first_weekday=calendar.SUNDAY)
        assert engine.week_income(date(2024, 5, 15)) == Decimal("70.75")

    def test_week_on_first_day_only_covers_that_day(self, engine):
        assert engine.week_income(date(2024, 5, 13)) == Decimal("5.00")

    def test_month(self, engine):
        assert engine.month_income(date(2024, 5, 1)) == Decimal("110.75")
        assert engine.month_income(date(2024, 4, 15)) == Decimal("20.00")

    def test_year(self, engine):
        assert engine.year_income(date(2024, 1, 1)) == Decimal("130.75")
        assert engine.year_income(date(2023, 6, 1)) == Decimal("10.00")

    def test_all_time_is_order_independent(self, ledger, engine):
        reversed_ledger = TransactionLedger()
        for entry in reversed(list(ledger)):
            reversed_ledger.append(entry)
        expected = sum(entry.amount for entry in ledger)
        assert engine.all_time_income() == expected == Decimal("140.75")
        assert ReportingEngine(reversed_ledger).all_time_income() == expected

    def test_reports_follow_new_entries(self, ledger, engine):
        ledger.record(SESSION, Decimal("2.00"), "late", datetime(2024, 5, 15, 12, 0))
        assert engine.daily_income_and_session_count(date(2024, 5, 15)) == (
            Decimal("52.25"),
            3,
        )


class TestRecent:
    def test_newest_first(self, engine):
        recent = engine.recent_transactions(3)
        assert [entry.timestamp for entry in recent] == [
            datetime(2024, 5, 16, 0, 0),
            datetime(2024, 5, 15, 23, 59, 59),
            datetime(2024, 5, 15, 11, 0),
        ]

    def test_ties_keep_ledger_order(self):
        ledger = TransactionLedger()
        stamp = datetime(2024, 5, 15, 12, 0)
        first = ledger.record(PRODUCT, Decimal("1"), "first", stamp)
        second = ledger.record(PRODUCT, Decimal("2"), "second", stamp)
        older = ledger.record(PRODUCT, Decimal("3"), "older", datetime(2024, 5, 15, 11, 0))
        assert ReportingEngine(ledger).recent_transactions(10) == [first, second, older]

    def test_limit_larger_than_ledger(self, engine):
        assert len(engine.recent_transactions(100)) == 8

    def test_non_positive_limit(self, engine):
        assert engine.recent_transactions(0) == []


def test_summary_bundles_every_figure(ledger):
    engine = ReportingEngine(ledger, recent_limit=2)
    summary = engine.summary(date(2024, 5, 15))
    assert summary.today == (Decimal("50.25"), 2)
    assert summary.week_income == Decimal("55.25")
    assert summary.month_income == Decimal("110.75")
    assert summary.year_income == Decimal("130.75")
    assert summary.all_time_income == Decimal("140.75")
    assert len(summary.recent) == 2


@pytest.mark.parametrize(
    "day, first_weekday, expected",
    [
        (date(2024, 5, 15), calendar.MONDAY, date(2024, 5, 13)),
        (date(2024, 5, 15), calendar.SUNDAY, date(2024, 5, 12)),
        (date(2024, 5, 12), calendar.MONDAY, date(2024, 5, 6)),
        (date(2024, 5, 13), calendar.MONDAY, date(2024, 5, 13)),
        (date(2024, 1, 2), calendar.SATURDAY, date(2023, 12, 30)),
    ],
)
def test_start_of_week(day, first_weekday, expected):
    assert start_of_week(day, first_weekday) == expected


def test_shop_summary_uses_clock(shop, clock):
    session = shop.start_session(1)
    clock.advance(minutes=60)
    shop.stop_session(session.id)
    shop.sell_product(1, 1)
    summary = shop.summary()
    assert summary.day == date(2024, 5, 15)
    assert summary.today == (Decimal("50.00"), 1)
    assert shop.daily_traffic() == summary.today
