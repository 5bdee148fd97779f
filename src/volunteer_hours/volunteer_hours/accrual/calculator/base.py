from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from ...events.model import AttendanceRecord, Event


class HoursCalculator(ABC):
    """Calculator interface (Strategy Pattern for hour credit)."""

    @abstractmethod
    def credited_hours(self, event: Event, record: AttendanceRecord) -> Decimal:
        raise NotImplementedError
