from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Participant role."""

    STUDENT = "Student"
    STAFF = "Staff"
    ADMIN = "Admin"


class EventStatus(str, Enum):
    """Operator-driven event status, independent of attendance records."""

    ACTIVE = "Active"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    DISABLED = "Disabled"


class RegistrationStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    DISAPPROVED = "Disapproved"


class AttendanceStatus(str, Enum):
    """Attendance state of a record, from registration through approval."""

    NOT_STARTED = "NotStarted"
    PENDING = "Pending"
    APPROVED = "Approved"
    DISAPPROVED = "Disapproved"


class NotificationKind(str, Enum):
    REGISTRATION_APPROVED = "RegistrationApproved"
    REGISTRATION_DISAPPROVED = "RegistrationDisapproved"
    ATTENDANCE_APPROVED = "AttendanceApproved"
    ATTENDANCE_DISAPPROVED = "AttendanceDisapproved"
