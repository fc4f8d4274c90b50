"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta

import pytest

from pisonet_system import ShopOptions, ShopService
from pisonet_system.storage import MemoryGateway


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    # Wednesday
    return FakeClock(datetime(2024, 5, 15, 10, 0, 0))


@pytest.fixture
def options() -> ShopOptions:
    return ShopOptions()


@pytest.fixture
def gateway(options: ShopOptions) -> MemoryGateway:
    return MemoryGateway(options)


@pytest.fixture
def shop(gateway: MemoryGateway, options: ShopOptions, clock: FakeClock) -> ShopService:
    return ShopService(gateway, options=options, clock=clock)
