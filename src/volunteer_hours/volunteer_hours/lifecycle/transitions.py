"""Attendance record state machine.

Each guard inspects the current record and either raises a specific error
or returns the conditional write that performs the transition. The write's
`expected` columns are the preconditions re-checked atomically by the store,
so a concurrent request that got there first makes the write miss.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional

from ..core.enums import AttendanceStatus, RegistrationStatus
from ..core.exceptions import AlreadyProcessed, InvalidTransition, ValidationError
from ..events.model import AttendanceRecord


@dataclass(frozen=True)
class Transition:
    name: str
    expected: Mapping[str, object]
    changes: Mapping[str, object]


_REGISTRATION_DECIDED = {
    RegistrationStatus.PENDING: None,
    RegistrationStatus.APPROVED: "Registration already approved",
    RegistrationStatus.DISAPPROVED: "Registration already disapproved",
}

_REGISTRATION_NOT_APPROVED = {
    RegistrationStatus.PENDING: "Registration is still pending approval",
    RegistrationStatus.APPROVED: None,
    RegistrationStatus.DISAPPROVED: "Registration was disapproved",
}

_ATTENDANCE_UNDECIDABLE = {
    AttendanceStatus.NOT_STARTED: ("Attendance is not ready for review: participant has not timed out yet", False),
    AttendanceStatus.PENDING: (None, False),
    AttendanceStatus.APPROVED: ("Attendance already approved", True),
    AttendanceStatus.DISAPPROVED: ("Attendance already disapproved", True),
}


def decide_registration(
    record: AttendanceRecord,
    *,
    approve: bool,
    actor_id: int,
    at: datetime,
    reason: Optional[str] = None,
) -> Transition:
    message = _REGISTRATION_DECIDED[record.registration_status]
    if message:
        raise AlreadyProcessed(message)

    changes: dict[str, object] = {
        "registration_status": RegistrationStatus.APPROVED if approve else RegistrationStatus.DISAPPROVED,
        "registration_decided_by": int(actor_id),
        "registration_decided_at": at,
    }
    if not approve:
        changes["disapproval_reason"] = reason
    return Transition(
        name="approve_registration" if approve else "disapprove_registration",
        expected={"registration_status": RegistrationStatus.PENDING},
        changes=changes,
    )


def start_attendance(record: AttendanceRecord, *, at: datetime) -> Transition:
    message = _REGISTRATION_NOT_APPROVED[record.registration_status]
    if message:
        raise InvalidTransition(message)
    if record.time_in is not None:
        raise InvalidTransition("Already timed in")

    return Transition(
        name="time_in",
        expected={"registration_status": RegistrationStatus.APPROVED, "time_in": None},
        changes={"time_in": at, "attendance_status": AttendanceStatus.NOT_STARTED},
    )


def finish_attendance(record: AttendanceRecord, *, at: datetime) -> Transition:
    if record.time_in is None:
        raise InvalidTransition("Must time in before timing out")
    if record.time_out is not None:
        raise InvalidTransition("Already timed out")
    if at < record.time_in:
        raise ValidationError("Time out cannot be earlier than time in")

    return Transition(
        name="time_out",
        expected={
            "registration_status": RegistrationStatus.APPROVED,
            "attendance_status": AttendanceStatus.NOT_STARTED,
            "time_out": None,
        },
        changes={"time_out": at, "attendance_status": AttendanceStatus.PENDING},
    )


def decide_attendance(
    record: AttendanceRecord,
    *,
    approve: bool,
    actor_id: int,
    at: datetime,
    reason: Optional[str] = None,
) -> Transition:
    message, processed = _ATTENDANCE_UNDECIDABLE[record.attendance_status]
    if message:
        raise AlreadyProcessed(message) if processed else InvalidTransition(message)
    if record.registration_status != RegistrationStatus.APPROVED:
        raise InvalidTransition("Attendance requires an approved registration")

    changes: dict[str, object] = {
        "attendance_status": AttendanceStatus.APPROVED if approve else AttendanceStatus.DISAPPROVED,
        "attendance_decided_by": int(actor_id),
        "attendance_decided_at": at,
    }
    if not approve:
        changes["disapproval_reason"] = reason
    return Transition(
        name="approve_attendance" if approve else "disapprove_attendance",
        expected={
            "registration_status": RegistrationStatus.APPROVED,
            "attendance_status": AttendanceStatus.PENDING,
        },
        changes=changes,
    )


def withdraw(record: AttendanceRecord) -> Transition:
    """Unregister: only before time in, and never over a disapproval."""

    if record.time_in is not None:
        raise InvalidTransition("Cannot unregister after timing in")
    if record.registration_status == RegistrationStatus.DISAPPROVED:
        raise InvalidTransition("Registration was disapproved")

    return Transition(
        name="unregister",
        expected={"registration_status": record.registration_status, "time_in": None},
        changes={},
    )
