"""Public model package exports for the lending service."""

from .base import BaseDocumentModel, Money
from .enums import LoanOrigin, RepaymentOutcome
from .exceptions import (
    AlreadyRepaidError,
    LendingRejection,
    LimitExceededError,
    ModelError,
    ModelNotFoundError,
    ModelValidationError,
    NoCollateralError,
    NotInGroupError,
    PersistenceError,
)
from .groups import GroupModel
from .loans import LoanModel
from .portfolios import HoldingModel, PortfolioModel
from .repositories import GroupRepository, LoanRepository, PortfolioRepository, UserRepository
from .users import UserModel, badge_label

__all__ = [
    "BaseDocumentModel",
    "Money",
    "UserModel",
    "GroupModel",
    "HoldingModel",
    "PortfolioModel",
    "LoanModel",
    "LoanOrigin",
    "RepaymentOutcome",
    "badge_label",
    "ModelError",
    "LendingRejection",
    "ModelValidationError",
    "ModelNotFoundError",
    "LimitExceededError",
    "AlreadyRepaidError",
    "NotInGroupError",
    "NoCollateralError",
    "PersistenceError",
    "UserRepository",
    "GroupRepository",
    "PortfolioRepository",
    "LoanRepository",
]
