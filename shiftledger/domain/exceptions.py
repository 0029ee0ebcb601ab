"""
Typed exceptions for the shift ledger.

    ShiftLedgerError
    +-- ValidationError          malformed or missing input
    +-- PreconditionViolation    operation not allowed in the current state
    |   +-- NoActiveShiftError
    |   +-- ShiftAlreadyOpenError
    |   +-- ShiftClosedError
    |   +-- IncompleteConfigurationError
    +-- NotFoundError
    |   +-- AccountNotFoundError
    |   +-- ShiftNotFoundError
    +-- PersistenceFailure       the store rejected or could not perform a write

Each class carries a machine-readable ``code``; the API layer maps the
families to HTTP status codes.
"""

from collections.abc import Iterable


class ShiftLedgerError(Exception):
    code: str = "SHIFT_LEDGER_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(ShiftLedgerError, ValueError):
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class PreconditionViolation(ShiftLedgerError):
    code = "PRECONDITION_VIOLATION"


class NoActiveShiftError(PreconditionViolation):
    code = "NO_ACTIVE_SHIFT"

    def __init__(self, message: str = "No shift is currently open"):
        super().__init__(message)


class ShiftAlreadyOpenError(PreconditionViolation):
    code = "SHIFT_ALREADY_OPEN"

    def __init__(self, shift_id: str):
        self.shift_id = shift_id
        super().__init__(f"Shift {shift_id} is still open; close it before starting a new one")


class ShiftClosedError(PreconditionViolation):
    code = "SHIFT_CLOSED"

    def __init__(self, shift_id: str):
        self.shift_id = shift_id
        super().__init__(f"Shift {shift_id} is closed and can no longer be modified")


class IncompleteConfigurationError(PreconditionViolation):
    code = "INCOMPLETE_CONFIGURATION"

    def __init__(self, missing_roles: Iterable[str]):
        self.missing_roles = [str(getattr(r, "value", r)) for r in missing_roles]
        super().__init__(
            "Shift flow configuration is incomplete; map these accounts first: "
            + ", ".join(self.missing_roles)
        )


class NotFoundError(ShiftLedgerError):
    code = "NOT_FOUND"


class AccountNotFoundError(NotFoundError):
    code = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account {account_id!r} does not exist")


class ShiftNotFoundError(NotFoundError):
    code = "SHIFT_NOT_FOUND"

    def __init__(self, shift_id: str):
        self.shift_id = shift_id
        super().__init__(f"Shift {shift_id!r} does not exist")


class PersistenceFailure(ShiftLedgerError):
    code = "PERSISTENCE_FAILURE"

    def __init__(self, message: str, operation: str | None = None):
        self.operation = operation
        super().__init__(message)
