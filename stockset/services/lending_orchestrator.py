"""Lending orchestrator: the façade request handlers use for every lending use case."""

from dataclasses import replace
from decimal import Decimal
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from stockset.common.common_functions import simulate_hedged_conversion
from stockset.core.config import AppSettings
from stockset.core.document_store import DocumentStore
from stockset.models.enums import LoanOrigin
from stockset.models.exceptions import ModelValidationError, NoCollateralError, NotInGroupError
from stockset.models.groups import GroupModel
from stockset.models.loans import LoanModel
from stockset.models.portfolios import PortfolioModel
from stockset.models.repositories import PortfolioRepository, UserRepository
from stockset.models.users import UserModel
from stockset.repositories import (
    DocumentGroupRepository,
    DocumentLoanRepository,
    DocumentPortfolioRepository,
    DocumentUserRepository,
)

from .collateral_valuator import CollateralValuator
from .group_trust_engine import GroupTrustEngine
from .liquidation_signal import LiquidationSignal
from .loan_ledger import LoanLedger, RepaymentResult


logger = logging.getLogger(__name__)


class LendingOrchestrator:
    """Sequences valuator, ledger and trust engine per use case.

    Use cases that write more than one document run inside a single store
    transaction, so a failure leaves no partial state behind.
    """

    def __init__(
        self,
        store: DocumentStore,
        user_repository: UserRepository,
        portfolio_repository: PortfolioRepository,
        valuator: CollateralValuator,
        ledger: LoanLedger,
        trust_engine: GroupTrustEngine,
        liquidation_signal: LiquidationSignal,
        fx_rates: Mapping[str, Decimal],
        hedge_spread: Decimal,
        rebalance_suggestion: str = "",
    ) -> None:
        self._store = store
        self._users = user_repository
        self._portfolios = portfolio_repository
        self._valuator = valuator
        self._ledger = ledger
        self._trust = trust_engine
        self._liquidation_signal = liquidation_signal
        self._fx_rates = dict(fx_rates)
        self._hedge_spread = hedge_spread
        self._rebalance_suggestion = rebalance_suggestion

    # -- profile ------------------------------------------------------------

    def register(self, user_id: str, display_name: Optional[str] = None) -> UserModel:
        """Create the caller's profile or update its display name."""

        def _apply(transaction: Any) -> UserModel:
            user = self._users.get_or_default(user_id, transaction=transaction)
            if display_name is not None:
                user = user.model_copy(update={"display_name": display_name})
            return self._users.save(user, transaction=transaction)

        return self._store.run_transaction(_apply)

    def profile(self, user_id: str) -> Dict[str, Any]:
        """Return the caller's profile, provisioning a default one on first sight."""
        user = self._users.find(user_id)
        if user is None:
            user = self.register(user_id)
        return {
            "userId": user.user_id,
            "name": user.display_name,
            "creditScore": user.credit_score,
            "nftBadge": user.badge,
            "groupId": user.group_id,
        }

    # -- groups -------------------------------------------------------------

    def create_group(self, user_id: str, name: str) -> GroupModel:
        return self._store.run_transaction(
            lambda transaction: self._trust.create_group(name, user_id, transaction=transaction)
        )

    def join_group(self, user_id: str, group_id: str) -> GroupModel:
        return self._store.run_transaction(
            lambda transaction: self._trust.join_group(group_id, user_id, transaction=transaction)
        )

    def leave_group(self, user_id: str) -> str:
        return self._store.run_transaction(
            lambda transaction: self._trust.leave_group(user_id, transaction=transaction)
        )

    def _caller_group_id(self, user_id: str, transaction: Optional[Any] = None) -> str:
        user = self._users.find(user_id, transaction=transaction)
        if user is None or not user.group_id:
            raise NotInGroupError("Not in a group")
        return user.group_id

    def contribute(self, user_id: str, amount: Any) -> Decimal:
        """Add to the caller's group pool and return the new balance.

        Raises:
            NotInGroupError: If the caller has no group.
        """

        def _apply(transaction: Any) -> Decimal:
            group_id = self._caller_group_id(user_id, transaction=transaction)
            return self._trust.contribute(group_id, amount, transaction=transaction)

        return self._store.run_transaction(_apply)

    def group_info(self, user_id: str) -> Dict[str, Any]:
        """Raises NotInGroupError if the caller has no group."""
        return self._trust.get_info(self._caller_group_id(user_id))

    # -- portfolio ----------------------------------------------------------

    def upsert_portfolio(self, user_id: str, holdings: Sequence[Mapping[str, Any]]) -> PortfolioModel:
        """Replace the caller's holdings.

        Raises:
            ModelValidationError: If a holding is malformed.
        """
        try:
            portfolio = PortfolioModel(user_id=user_id, holdings=[dict(item) for item in holdings])
        except ValidationError as exc:
            raise ModelValidationError(str(exc))
        stored = self._portfolios.upsert(portfolio)
        logger.info("Portfolio updated user_id=%s holdings=%s", user_id, len(stored.holdings))
        return stored

    def get_portfolio(self, user_id: str) -> Optional[PortfolioModel]:
        return self._portfolios.find_by_user(user_id)

    def rebalance(self, user_id: str) -> Dict[str, str]:
        """Return the static advisory rebalance suggestion."""
        return {"suggestion": self._rebalance_suggestion}

    # -- loans --------------------------------------------------------------

    def list_loans(self, user_id: str) -> List[LoanModel]:
        return self._ledger.list_loans(user_id)

    def borrowing_power(self, user_id: str) -> Decimal:
        """Borrowing limit from the caller's portfolio; zero when there is none."""
        return self._valuator.borrowing_limit(self._portfolios.find_by_user(user_id))

    def borrow(self, user_id: str, amount: Any) -> LoanModel:
        """Borrow against the caller's portfolio; no portfolio means a zero limit.

        Raises:
            LimitExceededError: If amount exceeds the borrowing limit.
        """
        limit = self.borrowing_power(user_id)
        return self._ledger.borrow(user_id, amount, limit, origin=LoanOrigin.BORROW)

    def auto_roll(self, user_id: str, amount: Any) -> LoanModel:
        """Borrow like :meth:`borrow` but refuse outright when nothing is pledged.

        Raises:
            NoCollateralError: If the caller has no portfolio.
            LimitExceededError: If amount exceeds the borrowing limit.
        """
        portfolio = self._portfolios.find_by_user(user_id)
        if portfolio is None:
            logger.warning("Auto-roll rejected, no portfolio user_id=%s", user_id)
            raise NoCollateralError("No portfolio")
        limit = self._valuator.borrowing_limit(portfolio)
        return self._ledger.borrow(user_id, amount, limit, origin=LoanOrigin.AUTO_ROLL)

    def submit_loan(self, user_id: str, amount: Any, reason: Optional[str] = None) -> LoanModel:
        """Record a requested loan without any collateral check."""
        return self._ledger.request_loan(user_id, amount, reason=reason)

    def repay(self, user_id: str, loan_id: str, amount: Any) -> RepaymentResult:
        """Repay a loan and reward the owner's group on full repayment.

        Closing the loan and raising the trust score commit together.
        """

        def _apply(transaction: Any) -> RepaymentResult:
            loan = self._ledger.get_loan(loan_id, transaction=transaction)
            owner = self._users.find(loan.user_id, transaction=transaction)
            group = None
            if owner is not None and owner.group_id:
                group = self._trust.find_group(owner.group_id, transaction=transaction)

            result = self._ledger.repay(loan_id, amount, loan=loan, transaction=transaction)
            if result.is_full and group is not None:
                self._trust.on_full_repayment(group.group_id, transaction=transaction)
                return replace(result, trust_rewarded=True)
            return result

        result = self._store.run_transaction(_apply)
        logger.info(
            "Repayment processed loan_id=%s caller=%s outcome=%s",
            loan_id,
            user_id,
            result.outcome.value,
        )
        return result

    def liquidation_check(self, user_id: str) -> Dict[str, Any]:
        return self._liquidation_signal.check(user_id)

    def fx_simulate(self, amount: Any, currency: str) -> Dict[str, Any]:
        return simulate_hedged_conversion(amount, currency, self._fx_rates, self._hedge_spread)


def build_lending_orchestrator(settings: AppSettings, store: DocumentStore) -> LendingOrchestrator:
    """Wire repositories and services over `store` using the lending settings."""
    users = DocumentUserRepository(store, collection_name=settings.users_collection)
    groups = DocumentGroupRepository(store, collection_name=settings.groups_collection)
    portfolios = DocumentPortfolioRepository(store, collection_name=settings.portfolios_collection)
    loans = DocumentLoanRepository(store, collection_name=settings.loans_collection)
    return LendingOrchestrator(
        store=store,
        user_repository=users,
        portfolio_repository=portfolios,
        valuator=CollateralValuator(loan_to_value=settings.loan_to_value),
        ledger=LoanLedger(loans),
        trust_engine=GroupTrustEngine(groups, users, trust_reward=settings.trust_reward),
        liquidation_signal=LiquidationSignal(probability=settings.liquidation_probability),
        fx_rates=settings.fx_rates,
        hedge_spread=settings.hedge_spread,
        rebalance_suggestion=settings.rebalance_suggestion,
    )
