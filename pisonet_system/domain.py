"""Core data structures for the pisonet shop system."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_EVEN, Decimal
from enum import Enum
from typing import Optional

CENT = Decimal("0.01")
ONE_MINUTE = timedelta(minutes=1)
MINUTES_PER_HOUR = Decimal(60)


class TransactionKind(str, Enum):
    """Source of realised income recorded in the ledger."""

    SESSION = "Session"
    PRODUCT = "Product"


class UserRole(str, Enum):
    """Roles of the shop accounts."""

    ADMIN = "Admin"
    STAFF = "Staff"


def billable_minutes(duration: timedelta) -> int:
    """Return the elapsed minutes rounded up; partial minutes count in full."""

    if duration <= timedelta(0):
        return 0
    return -(-duration // ONE_MINUTE)


def compute_charge(duration: timedelta, rate_per_hour: Decimal) -> Decimal:
    """Price a usage interval at an hourly rate.

    The per-minute rate is applied to the billable minutes and the result is
    rounded to cents using banker's rounding (ROUND_HALF_EVEN).
    """

    minutes = billable_minutes(duration)
    amount = Decimal(minutes) * (rate_per_hour / MINUTES_PER_HOUR)
    return amount.quantize(CENT, rounding=ROUND_HALF_EVEN)


@dataclass(slots=True)
class User:
    """Shop account. Authentication happens outside the core."""

    id: int
    name: str
    username: str
    password: str
    role: UserRole = UserRole.STAFF


@dataclass(slots=True)
class Station:
    """A rentable computer billed by the hour."""

    id: int
    name: str
    rate_per_hour: Decimal
    is_occupied: bool = False


@dataclass(slots=True)
class Product:
    """Retail item sold over the counter."""

    id: int
    name: str
    price: Decimal
    stock: int = 0


@dataclass(slots=True)
class Session:
    """One continuous occupancy of a station by a customer.

    ``rate_per_hour`` is copied from the station when the session starts so
    later rate edits never change what the session costs.
    """

    id: str
    station_id: int
    customer_name: str
    started_at: datetime
    rate_per_hour: Decimal
    ended_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.ended_at is None

    def duration(self, now: Optional[datetime] = None) -> timedelta:
        end = self.ended_at or now or datetime.now()
        return end - self.started_at

    def compute_amount(self, now: Optional[datetime] = None) -> Decimal:
        return compute_charge(self.duration(now), self.rate_per_hour)


@dataclass(frozen=True, slots=True)
class Transaction:
    """Immutable ledger entry for a closed session or a completed sale."""

    id: str
    timestamp: datetime
    kind: TransactionKind
    amount: Decimal
    details: str = ""


__all__ = [
    "CENT",
    "TransactionKind",
    "UserRole",
    "billable_minutes",
    "compute_charge",
    "User",
    "Station",
    "Product",
    "Session",
    "Transaction",
]
