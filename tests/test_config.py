"""Tests for ShopOptions.

Run with: pytest tests/test_config.py -v
"""

import calendar
from decimal import Decimal

import pytest

from pisonet_system.config import ShopOptions, parse_weekday
from pisonet_system.errors import ValidationError


def test_defaults():
    options = ShopOptions()
    assert options.data_path == "pisonet_data.json"
    assert options.default_rate == Decimal("30")
    assert options.station_count == 8
    assert options.first_weekday == calendar.MONDAY
    assert options.walk_in_label == "Walk-in"
    assert options.recent_transaction_limit == 20


def test_from_env_reads_prefixed_values():
    options = ShopOptions.from_env(
        {
            "PISONET_DATA_PATH": "/tmp/shop.json",
            "PISONET_DEFAULT_RATE": "25.5",
            "PISONET_STATION_COUNT": "4",
            "PISONET_FIRST_WEEKDAY": "Sunday",
            "PISONET_WALK_IN_LABEL": "Guest",
            "PISONET_RECENT_LIMIT": "5",
            "UNRELATED": "ignored",
        }
    )
    assert options.data_path == "/tmp/shop.json"
    assert options.default_rate == Decimal("25.5")
    assert options.station_count == 4
    assert options.first_weekday == calendar.SUNDAY
    assert options.walk_in_label == "Guest"
    assert options.recent_transaction_limit == 5


def test_from_env_without_values_uses_defaults():
    assert ShopOptions.from_env({}) == ShopOptions()


@pytest.mark.parametrize(
    "environ",
    [
        {"PISONET_DEFAULT_RATE": "cheap"},
        {"PISONET_DEFAULT_RATE": "-1"},
        {"PISONET_STATION_COUNT": "eight"},
        {"PISONET_FIRST_WEEKDAY": "Funday"},
        {"PISONET_FIRST_WEEKDAY": "7"},
    ],
)
def test_from_env_rejects_invalid_values(environ):
    with pytest.raises(ValidationError):
        ShopOptions.from_env(environ)


@pytest.mark.parametrize(
    "value, expected",
    [("0", 0), ("6", 6), ("monday", 0), (" Saturday ", 5)],
)
def test_parse_weekday(value, expected):
    assert parse_weekday(value) == expected
