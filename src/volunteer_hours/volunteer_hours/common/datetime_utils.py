from __future__ import annotations

from datetime import date, datetime, time, timedelta


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def trailing_days(today: date, days: int) -> list[date]:
    """Calendar dates of the last `days` days, oldest first, ending with `today`."""
    return [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
