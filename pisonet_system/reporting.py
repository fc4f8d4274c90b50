"""Income and traffic reports computed from the transaction ledger."""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, NamedTuple

from .domain import Transaction, TransactionKind
from .repository import TransactionLedger

ZERO = Decimal("0")


class DailyTraffic(NamedTuple):
    """Income and completed-session count for one calendar day."""

    income: Decimal
    session_count: int


@dataclass(slots=True)
class IncomeSummary:
    """All report figures for a reference day."""

    day: date
    today: DailyTraffic
    week_income: Decimal
    month_income: Decimal
    year_income: Decimal
    all_time_income: Decimal
    recent: List[Transaction] = field(default_factory=list)


def start_of_week(day: date, first_weekday: int = calendar.MONDAY) -> date:
    """Return the first day of the week containing ``day``."""

    diff = (day.weekday() - first_weekday) % 7
    return day - timedelta(days=diff)


def _total(transactions: Iterable[Transaction]) -> Decimal:
    return sum((entry.amount for entry in transactions), ZERO)


class ReportingEngine:
    """Read-only aggregation over the ledger.

    Every figure is recomputed from the full ledger on each call; nothing is
    cached between calls.
    """

    def __init__(
        self,
        ledger: TransactionLedger,
        *,
        first_weekday: int = calendar.MONDAY,
        recent_limit: int = 20,
    ) -> None:
        self._ledger = ledger
        self.first_weekday = first_weekday
        self.recent_limit = recent_limit

    def daily_income_and_session_count(self, day: date) -> DailyTraffic:
        entries = self._ledger.entries(lambda entry: entry.timestamp.date() == day)
        sessions = sum(1 for entry in entries if entry.kind == TransactionKind.SESSION)
        return DailyTraffic(_total(entries), sessions)

    def week_income(self, day: date) -> Decimal:
        week_start = start_of_week(day, self.first_weekday)
        return _total(
            self._ledger.entries(
                lambda entry: week_start <= entry.timestamp.date() <= day
            )
        )

    def month_income(self, day: date) -> Decimal:
        return _total(
            self._ledger.entries(
                lambda entry: (entry.timestamp.year, entry.timestamp.month)
                == (day.year, day.month)
            )
        )

    def year_income(self, day: date) -> Decimal:
        return _total(self._ledger.entries(lambda entry: entry.timestamp.year == day.year))

    def all_time_income(self) -> Decimal:
        return _total(self._ledger)

    def recent_transactions(self, limit: int) -> List[Transaction]:
        """Return the ``limit`` newest entries, newest first.

        Entries sharing a timestamp keep their ledger order.
        """

        if limit <= 0:
            return []
        ordered = sorted(self._ledger, key=lambda entry: entry.timestamp, reverse=True)
        return ordered[:limit]

    def summary(self, day: date) -> IncomeSummary:
        return IncomeSummary(
            day=day,
            today=self.daily_income_and_session_count(day),
            week_income=self.week_income(day),
            month_income=self.month_income(day),
            year_income=self.year_income(day),
            all_time_income=self.all_time_income(),
            recent=self.recent_transactions(self.recent_limit),
        )


__all__ = [
    "DailyTraffic",
    "IncomeSummary",
    "ReportingEngine",
    "start_of_week",
]
