"""Reusable enums for lending domain models."""

from enum import Enum


class StringEnum(str, Enum):
    """Base enum class with string behavior for JSON serialization."""


class LoanOrigin(StringEnum):
    """Use case that created a loan record."""

    BORROW = "BORROW"
    AUTO_ROLL = "AUTO_ROLL"
    SUBMIT = "SUBMIT"


class RepaymentOutcome(StringEnum):
    """Result of applying a repayment to an open loan."""

    FULL = "FULL"
    PARTIAL = "PARTIAL"
