"""Custom exceptions for the lending core, repositories and document stores."""


class ModelError(Exception):
    """Base class for lending-related failures."""


class LendingRejection(ModelError):
    """Recoverable business rejection reported back to the caller."""


class ModelValidationError(LendingRejection):
    """Raised when an amount or payload fails business validation."""


class ModelNotFoundError(LendingRejection):
    """Raised when a requested group, loan or user does not exist."""


class LimitExceededError(LendingRejection):
    """Raised when a borrow request exceeds the collateral-derived limit."""


class AlreadyRepaidError(LendingRejection):
    """Raised when a repayment targets a loan that is already closed."""


class NotInGroupError(LendingRejection):
    """Raised when a group-scoped action is attempted by a groupless user."""


class NoCollateralError(LendingRejection):
    """Raised when auto-roll is requested without any pledged portfolio."""


class PersistenceError(ModelError):
    """Raised when the underlying document store fails."""
