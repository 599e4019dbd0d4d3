"""Document-store backed repository implementations."""

from .group_repository import DocumentGroupRepository
from .loan_repository import DocumentLoanRepository
from .portfolio_repository import DocumentPortfolioRepository
from .user_repository import DocumentUserRepository

__all__ = [
    "DocumentUserRepository",
    "DocumentGroupRepository",
    "DocumentPortfolioRepository",
    "DocumentLoanRepository",
]
