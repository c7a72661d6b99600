"""
Ledger exceptions.

Every failure the ledger reports to a caller is one of these.
Each carries a stable error code and the HTTP status the API
layer should answer with, so routers never have to guess.

They subclass ValueError: a rejected request is bad input or
a misuse of the state machine, never an internal fault.
"""

from typing import Any


class LedgerError(ValueError):
    """Base class for all ledger errors."""

    error_code = "LEDGER_ERROR"
    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# --- Validation errors ---

class ValidationFailedError(LedgerError):
    """
    A journal entry failed validation.

    `reason` is the tagged result from the journal validator
    (Unbalanced, TooFewLines, UnknownAccount, MixedSidedLine,
    InactiveAccount). Nothing has been written.
    """

    error_code = "VALIDATION_FAILED"
    status_code = 422

    def __init__(self, reason):
        self.reason = reason
        super().__init__(reason.message, details=reason.to_dict())


# --- Lookup errors ---

class NotFoundError(LedgerError):
    error_code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            f"{resource} {identifier} not found",
            details={"resource": resource, "id": str(identifier)},
        )


# --- State errors ---

class DuplicateCodeError(LedgerError):
    error_code = "DUPLICATE_CODE"
    status_code = 409

    def __init__(self, code: str):
        super().__init__(
            f"Account with code '{code}' already exists",
            details={"code": code},
        )


class CycleError(LedgerError):
    """Parent assignment would break the account tree."""

    error_code = "ACCOUNT_CYCLE"
    status_code = 409


class ParentTypeMismatchError(CycleError):
    """Parent has an incompatible account type and cross-type rollups are off."""

    error_code = "PARENT_TYPE_MISMATCH"


class InUseError(LedgerError):
    error_code = "ACCOUNT_IN_USE"
    status_code = 409


class InvalidTransitionError(LedgerError):
    error_code = "INVALID_TRANSITION"
    status_code = 409


class NotApprovedError(InvalidTransitionError):
    error_code = "NOT_APPROVED"


class NotPostedError(InvalidTransitionError):
    error_code = "NOT_POSTED"


class AlreadyVoidedError(InvalidTransitionError):
    error_code = "ALREADY_VOIDED"


class InvalidVoidDateError(LedgerError):
    """The reversal would take effect before the entry it reverses."""

    error_code = "INVALID_VOID_DATE"
    status_code = 422


# --- Concurrency errors ---

class LockTimeoutError(LedgerError):
    """The posting lock could not be acquired in time. Safe to retry."""

    error_code = "LOCK_TIMEOUT"
    status_code = 503
