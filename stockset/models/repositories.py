"""Repository interfaces for datastore-agnostic model access.

Every method accepts an optional ``transaction`` handle produced by the
document store's ``run_transaction`` so that multi-document use cases commit
all-or-nothing.
"""

from abc import ABC, abstractmethod
import logging
from typing import Any, List, Optional

from .exceptions import ModelNotFoundError
from .groups import GroupModel
from .loans import LoanModel
from .portfolios import PortfolioModel
from .users import UserModel


logger = logging.getLogger(__name__)


class UserRepository(ABC):
    """User data access abstraction."""

    @abstractmethod
    def find(self, user_id: str, transaction: Optional[Any] = None) -> Optional[UserModel]:
        """Return the user or None."""

    @abstractmethod
    def save(self, model: UserModel, transaction: Optional[Any] = None) -> UserModel:
        """Create or replace a user document."""

    def get_or_default(self, user_id: str, transaction: Optional[Any] = None) -> UserModel:
        """Return the stored user, or a fresh default profile that is not yet persisted."""
        user = self.find(user_id, transaction=transaction)
        if user is None:
            logger.info("Provisioning default profile user_id=%s", user_id)
            return UserModel(user_id=user_id)
        return user


class GroupRepository(ABC):
    """Group data access abstraction with atomic counters."""

    @abstractmethod
    def create(self, model: GroupModel, transaction: Optional[Any] = None) -> GroupModel:
        """Persist a new group."""

    @abstractmethod
    def find(self, group_id: str, transaction: Optional[Any] = None) -> Optional[GroupModel]:
        """Return the group or None."""

    @abstractmethod
    def add_member(self, group_id: str, user_id: str, transaction: Optional[Any] = None) -> None:
        """Add a member with set semantics."""

    @abstractmethod
    def remove_member(self, group_id: str, user_id: str, transaction: Optional[Any] = None) -> None:
        """Remove a member if present."""

    @abstractmethod
    def increment_pool(self, group_id: str, amount_minor: int, transaction: Optional[Any] = None) -> None:
        """Atomically add to the insurance pool."""

    @abstractmethod
    def increment_trust(self, group_id: str, delta: int, transaction: Optional[Any] = None) -> None:
        """Atomically adjust the trust score."""

    def get_by_id(self, group_id: str, transaction: Optional[Any] = None) -> GroupModel:
        """Fetch a group by identifier.

        Raises:
            ModelNotFoundError: If the group does not exist.
        """
        group = self.find(group_id, transaction=transaction)
        if group is None:
            raise ModelNotFoundError("Group not found: {0}".format(group_id))
        return group


class PortfolioRepository(ABC):
    """Portfolio data access abstraction; one portfolio per user."""

    @abstractmethod
    def upsert(self, model: PortfolioModel) -> PortfolioModel:
        """Create or replace the user's portfolio."""

    @abstractmethod
    def find_by_user(self, user_id: str) -> Optional[PortfolioModel]:
        """Return the user's portfolio or None."""


class LoanRepository(ABC):
    """Loan data access abstraction."""

    @abstractmethod
    def create(self, model: LoanModel, transaction: Optional[Any] = None) -> LoanModel:
        """Persist a new loan."""

    @abstractmethod
    def find(self, loan_id: str, transaction: Optional[Any] = None) -> Optional[LoanModel]:
        """Return the loan or None."""

    @abstractmethod
    def mark_repaid(self, loan_id: str, transaction: Optional[Any] = None) -> None:
        """Flip the repaid flag to True."""

    @abstractmethod
    def list_by_user(self, user_id: str) -> List[LoanModel]:
        """Return the user's loans, newest first."""

    def get_by_id(self, loan_id: str, transaction: Optional[Any] = None) -> LoanModel:
        """Fetch a loan by identifier.

        Raises:
            ModelNotFoundError: If the loan does not exist.
        """
        loan = self.find(loan_id, transaction=transaction)
        if loan is None:
            raise ModelNotFoundError("Loan not found: {0}".format(loan_id))
        return loan


__all__ = [
    "ModelNotFoundError",
    "UserRepository",
    "GroupRepository",
    "PortfolioRepository",
    "LoanRepository",
]
