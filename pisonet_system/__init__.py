"""Station and retail management for a small pisonet shop.

This package tracks rented computers (stations) and counter stock
(products), bills usage sessions by the minute, records every session and
sale in an append-only ledger, and summarises income over calendar windows.
"""

from .config import ShopOptions
from .domain import (
    Product,
    Session,
    Station,
    Transaction,
    TransactionKind,
    User,
    UserRole,
    compute_charge,
)
from .errors import ConflictError, NotFoundError, ShopError, ValidationError
from .reporting import DailyTraffic, IncomeSummary, ReportingEngine
from .services import ShopService
from .storage import JsonFileGateway, MemoryGateway, PersistenceGateway, SQLiteGateway

__all__ = [
    "ShopOptions",
    "Product",
    "Session",
    "Station",
    "Transaction",
    "TransactionKind",
    "User",
    "UserRole",
    "compute_charge",
    "ShopError",
    "ValidationError",
    "ConflictError",
    "NotFoundError",
    "DailyTraffic",
    "IncomeSummary",
    "ReportingEngine",
    "ShopService",
    "PersistenceGateway",
    "MemoryGateway",
    "JsonFileGateway",
    "SQLiteGateway",
]
