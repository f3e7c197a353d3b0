class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InvalidDateRange(ValidationError):
    """End date lies before the start date."""


class InvalidTimeRange(ValidationError):
    """Requested logout is not after the requested login."""


class MissingReason(ValidationError):
    """A required free-text reason is empty."""


class StateConflictError(DomainError):
    """The transition is not valid in the current state."""


class AlreadyClockedIn(StateConflictError):
    pass


class BreakAlreadyActive(StateConflictError):
    pass


class NoActiveSession(StateConflictError):
    pass


class NoActiveBreak(StateConflictError):
    pass


class RequestNotPending(StateConflictError):
    """The request was already approved or rejected."""


class NotFoundError(DomainError):
    """A referenced entity does not exist."""


class RecordNotFound(NotFoundError):
    pass


class RequestNotFound(NotFoundError):
    pass


class UserNotFound(NotFoundError):
    pass


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""
