"""Demonstration script for the pisonet shop system."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from pprint import pprint

from . import ShopService


class _SteppingClock:
    """Advances by a fixed step on every reading so the demo bills real time."""

    def __init__(self, start: datetime, step: timedelta) -> None:
        self._current = start
        self._step = step

    def __call__(self) -> datetime:
        value = self._current
        self._current += self._step
        return value


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    clock = _SteppingClock(datetime.now().replace(microsecond=0), timedelta(minutes=47))
    shop = ShopService(clock=clock)

    # Stations
    gaming = shop.add_station("PC-09 Gaming", "45")
    shop.edit_station(1, rate="25")

    # Sessions
    first = shop.start_session(1, "Juan")
    second = shop.start_session(gaming.id)
    print("Active sessions")
    for session in shop.active_sessions():
        station = shop.stations.get(session.station_id)
        print(f" - {station.name}: {session.customer_name} at {session.rate_per_hour}/hr")

    print(f"\n{first.customer_name} pays {shop.stop_session(first.id)}")
    print(f"{second.customer_name} pays {shop.stop_session(second.id)}")

    # Counter sales
    shop.sell_product(1, 3)
    shop.sell_product(2, 1)
    for product in shop.inventory.list():
        print(f" - {product.name}: {product.stock} left")

    summary = shop.summary()
    print("\nIncome summary")
    pprint(
        {
            "today": summary.today.income,
            "sessions_today": summary.today.session_count,
            "week": summary.week_income,
            "month": summary.month_income,
            "year": summary.year_income,
            "all_time": summary.all_time_income,
        }
    )
    print("\nRecent transactions")
    for entry in summary.recent:
        print(f" - {entry.timestamp:%m/%d/%Y %H:%M} {entry.kind.value:<8} {entry.amount} {entry.details}")


if __name__ == "__main__":  # pragma: no cover - manual execution
    main()
