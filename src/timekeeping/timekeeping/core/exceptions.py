class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class ExceededDailyHoursAmountError(DomainError):
    """Raised when a new time entry would push a day past 24 hours."""

    def __init__(self, message: str = "Exceeded number of hours in a day on this time entry"):
        super().__init__(message)


class ContractViolationError(Exception):
    """Programmer error: the caller broke a precondition of the store."""


class EmployeeNotRegisteredError(ContractViolationError):
    """Raised when asking about an employee the store does not know."""


class SessionAlreadyExistsError(ContractViolationError):
    pass


class SessionNotFoundError(ContractViolationError):
    pass


class DatabaseStoppedError(ContractViolationError):
    """Raised on a write after the database began shutting down."""


class AttemptToAddToStoppingQueueError(ContractViolationError):
    """Raised when enqueuing an action on a queue that is stopping."""


class DeserializationError(Exception):
    """Raised when serialized text cannot be turned back into an entity."""


class DatabaseCorruptedError(Exception):
    """Raised at startup when the files on disk are not internally consistent."""


class PersistenceFailedError(Exception):
    """Raised on shutdown when one or more queued disk writes failed."""
