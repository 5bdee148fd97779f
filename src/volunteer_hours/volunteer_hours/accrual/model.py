from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class HoursFilter:
    department: Optional[str] = None
    academic_year: Optional[str] = None
    year_level: Optional[str] = None
    section: Optional[str] = None
    hours_min: Optional[Decimal] = None
    hours_max: Optional[Decimal] = None
    only_complete: bool = False


@dataclass(frozen=True)
class HoursReport:
    """Read-model for the student hours export (rows + summary)."""

    rows: list[dict] = field(default_factory=list)
    summary: dict = field(default_factory=dict)
