"""Error taxonomy shared by every layer of the shop system."""

from __future__ import annotations


class ShopError(RuntimeError):
    """Base exception for all shop errors."""


class ValidationError(ShopError, ValueError):
    """Raised for malformed or out-of-range input."""


class ConflictError(ShopError):
    """Raised when an operation would violate a state invariant."""


class NotFoundError(ShopError):
    """Raised when an identifier does not resolve to a record."""


__all__ = [
    "ShopError",
    "ValidationError",
    "ConflictError",
    "NotFoundError",
]
