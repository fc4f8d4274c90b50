"""Service layer that implements the shop use-cases."""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional, Union
from uuid import uuid4

from .config import ShopOptions
from .domain import Product, Session, Station, Transaction, TransactionKind
from .errors import ConflictError, NotFoundError, ValidationError
from .reporting import DailyTraffic, IncomeSummary, ReportingEngine
from .repository import RecordNotFoundError, ShopState
from .storage import MemoryGateway, PersistenceGateway

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
NumberInput = Union[Decimal, int, float, str]


class StationOccupiedError(ConflictError):
    """Raised when a busy station is started or removed."""


class StationUnavailableError(NotFoundError, ConflictError):
    """Raised when a session is started on a station that does not exist."""


class SessionNotFoundError(NotFoundError):
    """Raised when a session is unknown or already closed."""


class InsufficientStockError(ValidationError):
    """Raised when a sale asks for more units than are in stock."""


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_money(value: NumberInput, label: str) -> Decimal:
    """Convert user input into a non-negative, finite Decimal."""

    if isinstance(value, bool):
        raise ValidationError(f"Invalid {label}: {value!r}")
    try:
        if isinstance(value, Decimal):
            amount = value
        elif isinstance(value, (int, str)):
            amount = Decimal(value.strip() if isinstance(value, str) else value)
        elif isinstance(value, float):
            amount = Decimal(str(value))
        else:
            raise ValidationError(f"Invalid {label}: {value!r}")
    except InvalidOperation as exc:
        raise ValidationError(f"Invalid {label}: {value!r}") from exc
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"Invalid {label}: {value!r}")
    return amount


def _parse_count(value: Union[int, str], label: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {label}: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            raise ValidationError(f"Invalid {label}: {value!r}") from exc
    raise ValidationError(f"Invalid {label}: {value!r}")


def _require_name(name: str, label: str) -> str:
    if _is_blank(name):
        raise ValidationError(f"{label} name must not be blank")
    return name.strip()


class StationRegistry:
    """Creates, edits and removes stations."""

    def __init__(self, state: ShopState) -> None:
        self._state = state

    def get(self, station_id: int) -> Station:
        return self._state.stations.get(station_id)

    def list(self) -> List[Station]:
        return self._state.stations.list()

    def available(self) -> List[Station]:
        return [station for station in self._state.stations if not station.is_occupied]

    def add(self, name: str, rate: NumberInput) -> Station:
        station = Station(
            id=self._state.stations.next_id(),
            name=_require_name(name, "Station"),
            rate_per_hour=_parse_money(rate, "rate"),
        )
        self._state.stations.add(station.id, station)
        logger.info("Added station %s (%s)", station.id, station.name)
        return station

    def edit(
        self,
        station_id: int,
        *,
        name: Optional[str] = None,
        rate: Optional[NumberInput] = None,
    ) -> Station:
        """Apply only the supplied fields.

        A blank name or rate counts as not supplied. An invalid rate raises
        before anything is changed.
        """

        station = self._state.stations.get(station_id)
        new_rate = None if _is_blank(rate) else _parse_money(rate, "rate")
        if new_rate is not None:
            station.rate_per_hour = new_rate
        if not _is_blank(name):
            station.name = name.strip()
        logger.info("Updated station %s", station.id)
        return station

    def remove(self, station_id: int) -> Station:
        station = self._state.stations.get(station_id)
        if station.is_occupied:
            raise StationOccupiedError(f"Cannot remove occupied station {station.name!r}")
        self._state.stations.remove(station_id)
        logger.info("Removed station %s", station_id)
        return station


class SessionBillingEngine:
    """Opens and closes usage sessions and prices them."""

    def __init__(
        self,
        state: ShopState,
        *,
        walk_in_label: str = "Walk-in",
        clock: Clock = datetime.now,
    ) -> None:
        self._state = state
        self._walk_in_label = walk_in_label
        self._clock = clock

    def active_sessions(self) -> List[Session]:
        return sorted(self._state.active_sessions(), key=lambda session: session.started_at)

    def start(self, station_id: int, customer_name: str = "") -> Session:
        try:
            station = self._state.stations.get(station_id)
        except RecordNotFoundError as exc:
            raise StationUnavailableError(f"Station {station_id!r} does not exist") from exc
        if station.is_occupied:
            raise StationOccupiedError(f"Station {station.name!r} is already occupied")
        session = Session(
            id=str(uuid4()),
            station_id=station.id,
            customer_name=self._walk_in_label
            if _is_blank(customer_name)
            else customer_name.strip(),
            started_at=self._clock(),
            rate_per_hour=station.rate_per_hour,
        )
        self._state.sessions.add(session.id, session)
        station.is_occupied = True
        logger.info("Session %s started on %s", session.id, station.name)
        return session

    def stop(self, session_id: str) -> Decimal:
        """Close an active session and record its charge in the ledger."""

        if session_id not in self._state.sessions:
            raise SessionNotFoundError(f"Session {session_id!r} not found")
        session = self._state.sessions.get(session_id)
        if not session.is_active:
            raise SessionNotFoundError(f"Session {session_id!r} is already closed")
        ended_at = self._clock()
        session.ended_at = ended_at
        station_name = f"Station {session.station_id}"
        if session.station_id in self._state.stations:
            station = self._state.stations.get(session.station_id)
            station.is_occupied = False
            station_name = station.name
        amount = session.compute_amount()
        self._state.ledger.record(
            TransactionKind.SESSION,
            amount,
            f"{station_name} - {session.customer_name}",
            ended_at,
        )
        logger.info("Session %s stopped, charged %s", session.id, amount)
        return amount


class InventoryService:
    """Maintains the product catalogue and applies sales."""

    def __init__(self, state: ShopState, *, clock: Clock = datetime.now) -> None:
        self._state = state
        self._clock = clock

    def get(self, product_id: int) -> Product:
        return self._state.products.get(product_id)

    def list(self) -> List[Product]:
        return self._state.products.list()

    def add(self, name: str, price: NumberInput, stock: Union[int, str] = 0) -> Product:
        product = Product(
            id=self._state.products.next_id(),
            name=_require_name(name, "Product"),
            price=_parse_money(price, "price"),
            stock=self._parse_stock(stock),
        )
        self._state.products.add(product.id, product)
        logger.info("Added product %s (%s)", product.id, product.name)
        return product

    def edit(
        self,
        product_id: int,
        *,
        name: Optional[str] = None,
        price: Optional[NumberInput] = None,
        stock: Optional[Union[int, str]] = None,
    ) -> Product:
        product = self._state.products.get(product_id)
        new_price = None if _is_blank(price) else _parse_money(price, "price")
        new_stock = None if _is_blank(stock) else self._parse_stock(stock)
        if new_price is not None:
            product.price = new_price
        if new_stock is not None:
            product.stock = new_stock
        if not _is_blank(name):
            product.name = name.strip()
        logger.info("Updated product %s", product.id)
        return product

    def remove(self, product_id: int) -> Product:
        product = self._state.products.remove(product_id)
        logger.info("Removed product %s", product_id)
        return product

    def sell(self, product_id: int, quantity: Union[int, str]) -> Transaction:
        product = self._state.products.get(product_id)
        count = _parse_count(quantity, "quantity")
        if count <= 0:
            raise ValidationError("Quantity must be positive")
        if count > product.stock:
            raise InsufficientStockError(
                f"Only {product.stock} of {product.name!r} in stock"
            )
        product.stock -= count
        amount = product.price * count
        transaction = self._state.ledger.record(
            TransactionKind.PRODUCT, amount, f"{count}x {product.name}", self._clock()
        )
        logger.info("Sold %sx %s for %s", count, product.name, amount)
        return transaction

    @staticmethod
    def _parse_stock(value: Union[int, str]) -> int:
        stock = _parse_count(value, "stock")
        if stock < 0:
            raise ValidationError("Stock cannot be negative")
        return stock


class ShopService:
    """Facade that exposes the shop use-cases to clients.

    Owns the loaded state and writes it back through the gateway after every
    successful change.
    """

    def __init__(
        self,
        gateway: Optional[PersistenceGateway] = None,
        *,
        options: Optional[ShopOptions] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.options = options or (gateway.options if gateway else ShopOptions())
        self.gateway = gateway or MemoryGateway(self.options)
        # defaults must be bootstrapped from the same options the service uses
        self.gateway.options = self.options
        self._clock = clock or datetime.now
        self.state = self.gateway.load()
        self.stations = StationRegistry(self.state)
        self.billing = SessionBillingEngine(
            self.state, walk_in_label=self.options.walk_in_label, clock=self._clock
        )
        self.inventory = InventoryService(self.state, clock=self._clock)
        self.reports = ReportingEngine(
            self.state.ledger,
            first_weekday=self.options.first_weekday,
            recent_limit=self.options.recent_transaction_limit,
        )

    def save(self) -> None:
        self.gateway.save(self.state)

    # ------------------------------------------------------------------
    # Stations
    # ------------------------------------------------------------------
    def add_station(self, name: str, rate: NumberInput) -> Station:
        station = self.stations.add(name, rate)
        self.save()
        return station

    def edit_station(
        self,
        station_id: int,
        *,
        name: Optional[str] = None,
        rate: Optional[NumberInput] = None,
    ) -> Station:
        station = self.stations.edit(station_id, name=name, rate=rate)
        self.save()
        return station

    def remove_station(self, station_id: int) -> Station:
        station = self.stations.remove(station_id)
        self.save()
        return station

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------
    def add_product(
        self, name: str, price: NumberInput, stock: Union[int, str] = 0
    ) -> Product:
        product = self.inventory.add(name, price, stock)
        self.save()
        return product

    def edit_product(
        self,
        product_id: int,
        *,
        name: Optional[str] = None,
        price: Optional[NumberInput] = None,
        stock: Optional[Union[int, str]] = None,
    ) -> Product:
        product = self.inventory.edit(product_id, name=name, price=price, stock=stock)
        self.save()
        return product

    def remove_product(self, product_id: int) -> Product:
        product = self.inventory.remove(product_id)
        self.save()
        return product

    def sell_product(self, product_id: int, quantity: Union[int, str]) -> Transaction:
        transaction = self.inventory.sell(product_id, quantity)
        self.save()
        return transaction

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------
    def start_session(self, station_id: int, customer_name: str = "") -> Session:
        session = self.billing.start(station_id, customer_name)
        self.save()
        return session

    def stop_session(self, session_id: str) -> Decimal:
        amount = self.billing.stop(session_id)
        self.save()
        return amount

    def active_sessions(self) -> List[Session]:
        return self.billing.active_sessions()

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------
    def today(self) -> date:
        return self._clock().date()

    def daily_traffic(self, day: Optional[date] = None) -> DailyTraffic:
        return self.reports.daily_income_and_session_count(day or self.today())

    def summary(self, day: Optional[date] = None) -> IncomeSummary:
        return self.reports.summary(day or self.today())


__all__ = [
    "ShopService",
    "StationRegistry",
    "SessionBillingEngine",
    "InventoryService",
    "StationOccupiedError",
    "StationUnavailableError",
    "SessionNotFoundError",
    "InsufficientStockError",
]
