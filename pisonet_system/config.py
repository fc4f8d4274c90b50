"""Runtime configuration for the shop system."""

from __future__ import annotations

import calendar
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional

from .errors import ValidationError

ENV_PREFIX = "PISONET_"
DEFAULT_RATE = Decimal("30")

_WEEKDAY_NAMES = {name.lower(): index for index, name in enumerate(calendar.day_name)}


def parse_weekday(value: str) -> int:
    """Accept ``0``-``6`` (Monday is 0) or an English weekday name."""

    text = value.strip().lower()
    if text in _WEEKDAY_NAMES:
        return _WEEKDAY_NAMES[text]
    try:
        weekday = int(text)
    except ValueError as exc:
        raise ValidationError(f"Unknown weekday {value!r}") from exc
    if weekday < 0 or weekday > 6:
        raise ValidationError("Weekday indices must be in range 0..6")
    return weekday


@dataclass(slots=True)
class ShopOptions:
    """Configuration values shared by the core components."""

    data_path: str = "pisonet_data.json"
    default_rate: Decimal = field(default_factory=lambda: DEFAULT_RATE)
    station_count: int = 8
    first_weekday: int = calendar.MONDAY
    walk_in_label: str = "Walk-in"
    recent_transaction_limit: int = 20

    def __post_init__(self) -> None:
        if self.first_weekday < 0 or self.first_weekday > 6:
            raise ValidationError("Weekday indices must be in range 0..6")
        if self.station_count < 0:
            raise ValidationError("Station count cannot be negative")
        if not self.default_rate.is_finite() or self.default_rate < 0:
            raise ValidationError("Default rate must be a non-negative number")
        if self.recent_transaction_limit < 0:
            raise ValidationError("Recent transaction limit cannot be negative")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ShopOptions":
        """Build options from ``PISONET_*`` environment variables."""

        env = os.environ if environ is None else environ
        values = {}
        if f"{ENV_PREFIX}DATA_PATH" in env:
            values["data_path"] = env[f"{ENV_PREFIX}DATA_PATH"]
        if f"{ENV_PREFIX}WALK_IN_LABEL" in env:
            values["walk_in_label"] = env[f"{ENV_PREFIX}WALK_IN_LABEL"]
        if f"{ENV_PREFIX}FIRST_WEEKDAY" in env:
            values["first_weekday"] = parse_weekday(env[f"{ENV_PREFIX}FIRST_WEEKDAY"])
        if f"{ENV_PREFIX}DEFAULT_RATE" in env:
            raw = env[f"{ENV_PREFIX}DEFAULT_RATE"]
            try:
                values["default_rate"] = Decimal(raw.strip())
            except InvalidOperation as exc:
                raise ValidationError(f"Invalid default rate {raw!r}") from exc
        for key, name in (
            ("STATION_COUNT", "station_count"),
            ("RECENT_LIMIT", "recent_transaction_limit"),
        ):
            raw = env.get(f"{ENV_PREFIX}{key}")
            if raw is None:
                continue
            try:
                values[name] = int(raw)
            except ValueError as exc:
                raise ValidationError(f"{ENV_PREFIX}{key} must be an integer") from exc
        return cls(**values)


__all__ = ["ShopOptions", "parse_weekday", "DEFAULT_RATE"]
