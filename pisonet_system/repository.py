"""In-memory repositories and the aggregate state they make up."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import (
    Callable,
    Dict,
    Generic,
    Hashable,
    Iterator,
    List,
    MutableMapping,
    Optional,
    TypeVar,
)
from uuid import uuid4

from .domain import Product, Session, Station, Transaction, TransactionKind, User
from .errors import ConflictError, NotFoundError

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


class DuplicateRecordError(ConflictError):
    """Raised when attempting to insert a record that already exists."""


class RecordNotFoundError(NotFoundError):
    """Raised when a requested record is missing."""


class InMemoryRepository(Generic[K, T]):
    """Generic repository backed by an insertion-ordered dictionary."""

    def __init__(self) -> None:
        self._items: MutableMapping[K, T] = {}

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items.values()))

    def add(self, item_id: K, item: T) -> None:
        if item_id in self._items:
            raise DuplicateRecordError(f"Record with id {item_id!r} already exists")
        self._items[item_id] = item

    def upsert(self, item_id: K, item: T) -> None:
        self._items[item_id] = item

    def get(self, item_id: K) -> T:
        try:
            return self._items[item_id]
        except KeyError as exc:
            raise RecordNotFoundError(f"Record with id {item_id!r} not found") from exc

    def remove(self, item_id: K) -> T:
        if item_id not in self._items:
            raise RecordNotFoundError(f"Record with id {item_id!r} not found")
        return self._items.pop(item_id)

    def list(self) -> List[T]:
        return list(self._items.values())

    def next_id(self) -> int:
        """Return max existing integer id + 1, or 1 when empty."""

        numeric = [item_id for item_id in self._items if isinstance(item_id, int)]
        return max(numeric) + 1 if numeric else 1


class TransactionLedger:
    """Append-only record of realised income.

    Entries keep insertion order and are never edited or removed.
    """

    def __init__(self) -> None:
        self._entries: List[Transaction] = []

    def __iter__(self) -> Iterator[Transaction]:
        return iter(tuple(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, transaction: Transaction) -> Transaction:
        self._entries.append(transaction)
        return transaction

    def record(
        self,
        kind: TransactionKind,
        amount: Decimal,
        details: str,
        timestamp: datetime,
    ) -> Transaction:
        transaction = Transaction(
            id=str(uuid4()),
            timestamp=timestamp,
            kind=kind,
            amount=amount,
            details=details,
        )
        return self.append(transaction)

    def entries(
        self,
        predicate: Optional[Callable[[Transaction], bool]] = None,
        *,
        kind: Optional[TransactionKind] = None,
    ) -> List[Transaction]:
        return [
            entry
            for entry in self._entries
            if (kind is None or entry.kind == kind)
            and (predicate is None or predicate(entry))
        ]


@dataclass(slots=True)
class ShopState:
    """Everything the shop persists, loaded and saved as a single document."""

    users: InMemoryRepository[int, User] = field(default_factory=InMemoryRepository)
    stations: InMemoryRepository[int, Station] = field(
        default_factory=InMemoryRepository
    )
    products: InMemoryRepository[int, Product] = field(
        default_factory=InMemoryRepository
    )
    sessions: InMemoryRepository[str, Session] = field(
        default_factory=InMemoryRepository
    )
    ledger: TransactionLedger = field(default_factory=TransactionLedger)

    def active_sessions(self) -> List[Session]:
        return [session for session in self.sessions if session.is_active]

    def check_invariants(self) -> List[str]:
        """Return a description of every violated consistency rule."""

        problems: List[str] = []
        active_per_station: Dict[int, int] = Counter(
            session.station_id for session in self.active_sessions()
        )
        for station in self.stations:
            active = active_per_station.get(station.id, 0)
            if station.is_occupied and active != 1:
                problems.append(
                    f"Station {station.id} is occupied with {active} active sessions"
                )
            if not station.is_occupied and active:
                problems.append(
                    f"Station {station.id} is free but has {active} active sessions"
                )
        closed = sum(1 for session in self.sessions if not session.is_active)
        billed = len(self.ledger.entries(kind=TransactionKind.SESSION))
        if closed != billed:
            problems.append(
                f"{closed} closed sessions but {billed} session transactions"
            )
        for product in self.products:
            if product.stock < 0:
                problems.append(f"Product {product.id} has negative stock")
        return problems


__all__ = [
    "InMemoryRepository",
    "TransactionLedger",
    "ShopState",
    "DuplicateRecordError",
    "RecordNotFoundError",
]
