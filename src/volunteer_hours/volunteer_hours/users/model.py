from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: a participant.

    Note: total hours are never cached here; they are always derived from
    approved attendance records.
    """

    user_id: int
    full_name: str
    email: str
    role: Role
    department: Optional[str] = None
    academic_year: Optional[str] = None
    year_level: Optional[str] = None
    section: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class UserFilter:
    role: Optional[Role] = None
    department: Optional[str] = None
    academic_year: Optional[str] = None
    year_level: Optional[str] = None
    section: Optional[str] = None
    created_since: Optional[datetime] = None
    created_before: Optional[datetime] = None
