class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFound(DomainError):
    """Raised when an event, user or attendance record does not exist."""


class InvalidTransition(DomainError):
    """Raised when an operation is not legal from the record's current state."""


class AlreadyProcessed(InvalidTransition):
    """Raised when the record was already decided, or a concurrent update won the race."""


class AlreadyRegistered(DomainError):
    """Raised when the participant already has a record on the event."""


class EventNotOpen(DomainError):
    """Raised when the event status forbids new registrations."""


class EventFull(DomainError):
    """Raised when the event reached its participant limit."""


class NotEligible(DomainError):
    """Raised when the event is not open to the participant's department."""


class StoreUnavailable(RuntimeError):
    """Raised when the record store cannot be reached."""
