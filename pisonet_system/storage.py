"""Whole-document persistence for the shop state.

The state is always written and read as one JSON-compatible document. A
missing document is bootstrapped with defaults and saved; an unreadable or
corrupt one falls back to defaults without failing startup.
"""

from __future__ import annotations

import copy
import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional

from .config import ShopOptions
from .domain import (
    Product,
    Session,
    Station,
    Transaction,
    TransactionKind,
    User,
    UserRole,
)
from .repository import DuplicateRecordError, ShopState

logger = logging.getLogger(__name__)

Document = Dict[str, Any]


class CorruptDocumentError(ValueError):
    """Raised when a stored document cannot be turned back into state."""


# ----------------------------------------------------------------------
# Document codec
# ----------------------------------------------------------------------
def _optional_datetime(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _amount(value: Any) -> Decimal:
    amount = Decimal(value)
    if not amount.is_finite() or amount < 0:
        raise CorruptDocumentError(f"Invalid amount {value!r}")
    return amount


def _count(value: Any) -> int:
    count = int(value)
    if count < 0:
        raise CorruptDocumentError(f"Invalid count {value!r}")
    return count


def to_document(state: ShopState) -> Document:
    return {
        "users": [
            {
                "id": user.id,
                "name": user.name,
                "username": user.username,
                "password": user.password,
                "role": user.role.value,
            }
            for user in state.users
        ],
        "computers": [
            {
                "id": station.id,
                "name": station.name,
                "is_occupied": station.is_occupied,
                "rate_per_hour": str(station.rate_per_hour),
            }
            for station in state.stations
        ],
        "products": [
            {
                "id": product.id,
                "name": product.name,
                "price": str(product.price),
                "stock": product.stock,
            }
            for product in state.products
        ],
        "sessions": [
            {
                "id": session.id,
                "station_id": session.station_id,
                "customer_name": session.customer_name,
                "started_at": session.started_at.isoformat(),
                "ended_at": session.ended_at.isoformat() if session.ended_at else None,
                "rate_per_hour": str(session.rate_per_hour),
            }
            for session in state.sessions
        ],
        "transactions": [
            {
                "id": entry.id,
                "timestamp": entry.timestamp.isoformat(),
                "type": entry.kind.value,
                "amount": str(entry.amount),
                "details": entry.details,
            }
            for entry in state.ledger
        ],
    }


def from_document(document: Document) -> ShopState:
    """Rebuild state from a document, raising CorruptDocumentError on bad data."""

    if not isinstance(document, dict):
        raise CorruptDocumentError("Shop document must be a JSON object")
    state = ShopState()
    try:
        for raw in document.get("users", []):
            user = User(
                id=int(raw["id"]),
                name=raw["name"],
                username=raw["username"],
                password=raw["password"],
                role=UserRole(raw["role"]),
            )
            state.users.add(user.id, user)
        for raw in document.get("computers", []):
            station = Station(
                id=int(raw["id"]),
                name=raw["name"],
                rate_per_hour=_amount(raw["rate_per_hour"]),
                is_occupied=bool(raw["is_occupied"]),
            )
            state.stations.add(station.id, station)
        for raw in document.get("products", []):
            product = Product(
                id=int(raw["id"]),
                name=raw["name"],
                price=_amount(raw["price"]),
                stock=_count(raw["stock"]),
            )
            state.products.add(product.id, product)
        for raw in document.get("sessions", []):
            session = Session(
                id=raw["id"],
                station_id=int(raw["station_id"]),
                customer_name=raw["customer_name"],
                started_at=datetime.fromisoformat(raw["started_at"]),
                ended_at=_optional_datetime(raw.get("ended_at")),
                rate_per_hour=_amount(raw["rate_per_hour"]),
            )
            state.sessions.add(session.id, session)
        for raw in document.get("transactions", []):
            state.ledger.append(
                Transaction(
                    id=raw["id"],
                    timestamp=datetime.fromisoformat(raw["timestamp"]),
                    kind=TransactionKind(raw["type"]),
                    amount=_amount(raw["amount"]),
                    details=raw.get("details", ""),
                )
            )
    except (
        KeyError, TypeError, ValueError, ArithmeticError, DuplicateRecordError
    ) as exc:
        raise CorruptDocumentError(f"Invalid shop document: {exc}") from exc
    problems = state.check_invariants()
    if problems:
        raise CorruptDocumentError("Inconsistent shop document: " + "; ".join(problems))
    return state


def bootstrap_state(options: Optional[ShopOptions] = None) -> ShopState:
    """Create the default state used when nothing has been stored yet."""

    options = options or ShopOptions()
    state = ShopState()
    state.users.add(
        1, User(id=1, name="admin", username="admin", password="admin123", role=UserRole.ADMIN)
    )
    state.users.add(
        2, User(id=2, name="staff", username="staff", password="staff123", role=UserRole.STAFF)
    )
    for index in range(1, options.station_count + 1):
        state.stations.add(
            index,
            Station(id=index, name=f"PC-{index:02d}", rate_per_hour=options.default_rate),
        )
    state.products.add(
        1, Product(id=1, name="Bottled Water", price=Decimal("20.00"), stock=30)
    )
    state.products.add(2, Product(id=2, name="Snack", price=Decimal("35.00"), stock=20))
    return state


# ----------------------------------------------------------------------
# Gateways
# ----------------------------------------------------------------------
class PersistenceGateway(ABC):
    """Load and save the complete shop state as one unit."""

    def __init__(self, options: Optional[ShopOptions] = None) -> None:
        self.options = options or ShopOptions()

    @abstractmethod
    def load(self) -> ShopState:
        """Return the stored state, or bootstrapped defaults."""
        ...

    @abstractmethod
    def save(self, state: ShopState) -> None:
        """Overwrite the stored document with ``state``."""
        ...


class MemoryGateway(PersistenceGateway):
    """Keeps the last saved document in memory."""

    def __init__(
        self,
        options: Optional[ShopOptions] = None,
        document: Optional[Document] = None,
    ) -> None:
        super().__init__(options)
        self.document = copy.deepcopy(document)
        self.save_count = 0

    def load(self) -> ShopState:
        if self.document is None:
            state = bootstrap_state(self.options)
            self.save(state)
            return state
        try:
            return from_document(copy.deepcopy(self.document))
        except CorruptDocumentError:
            logger.warning("Stored document is corrupt; using defaults", exc_info=True)
            return bootstrap_state(self.options)

    def save(self, state: ShopState) -> None:
        self.document = to_document(state)
        self.save_count += 1


class JsonFileGateway(PersistenceGateway):
    """Stores the document as an indented JSON file."""

    def __init__(
        self, path: Optional[str] = None, options: Optional[ShopOptions] = None
    ) -> None:
        super().__init__(options)
        self.path = Path(path or self.options.data_path)

    def load(self) -> ShopState:
        if not self.path.exists():
            logger.info("No data file at %s; bootstrapping defaults", self.path)
            state = bootstrap_state(self.options)
            self.save(state)
            return state
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
            return from_document(document)
        except (OSError, ValueError):
            logger.warning(
                "Could not read %s; falling back to defaults", self.path, exc_info=True
            )
            return bootstrap_state(self.options)

    def save(self, state: ShopState) -> None:
        payload = json.dumps(to_document(state), indent=2)
        self.path.write_text(payload, encoding="utf-8")
        logger.debug("Saved shop state to %s", self.path)


class SQLiteGateway(PersistenceGateway):
    """Stores the document as a single row inside SQLite."""

    DOCUMENT_KEY = "shop"

    def __init__(self, path: str, options: Optional[ShopOptions] = None) -> None:
        super().__init__(options)
        self.path = path
        self._connection = sqlite3.connect(path, check_same_thread=False)
        try:
            self._connection.execute(
                "CREATE TABLE IF NOT EXISTS documents ("
                "id TEXT PRIMARY KEY, payload TEXT NOT NULL)"
            )
            self._connection.commit()
        except sqlite3.DatabaseError:
            logger.warning("Could not prepare SQLite store at %s", path, exc_info=True)

    def load(self) -> ShopState:
        try:
            cursor = self._connection.execute(
                "SELECT payload FROM documents WHERE id = ?", (self.DOCUMENT_KEY,)
            )
            row = cursor.fetchone()
        except sqlite3.DatabaseError:
            logger.warning(
                "Could not read %s; falling back to defaults", self.path, exc_info=True
            )
            return bootstrap_state(self.options)
        if row is None:
            state = bootstrap_state(self.options)
            self.save(state)
            return state
        try:
            return from_document(json.loads(row[0]))
        except (TypeError, ValueError):
            logger.warning("Stored document is corrupt; using defaults", exc_info=True)
            return bootstrap_state(self.options)

    def save(self, state: ShopState) -> None:
        payload = json.dumps(to_document(state))
        self._connection.execute(
            "INSERT INTO documents (id, payload) VALUES (?, ?) "
            "ON CONFLICT(id) DO UPDATE SET payload = excluded.payload",
            (self.DOCUMENT_KEY, payload),
        )
        self._connection.commit()
        logger.debug("Saved shop state to SQLite")

    @property
    def connection(self) -> sqlite3.Connection:
        return self._connection

    def close(self) -> None:
        self._connection.close()

    def __enter__(self) -> "SQLiteGateway":
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        traceback: Optional[BaseException],
    ) -> None:
        self.close()


__all__ = [
    "PersistenceGateway",
    "MemoryGateway",
    "JsonFileGateway",
    "SQLiteGateway",
    "CorruptDocumentError",
    "bootstrap_state",
    "to_document",
    "from_document",
]
