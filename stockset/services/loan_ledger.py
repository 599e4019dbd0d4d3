"""Loan ledger: creation, limit enforcement, listing and repayment of loans."""

from dataclasses import dataclass
from decimal import Decimal
import logging
from typing import Any, Callable, List, Optional
from uuid import uuid4

from stockset.common.common_functions import parse_amount, to_minor_units
from stockset.models.enums import LoanOrigin, RepaymentOutcome
from stockset.models.exceptions import AlreadyRepaidError, LimitExceededError, ModelValidationError
from stockset.models.loans import LoanModel
from stockset.models.repositories import LoanRepository


logger = logging.getLogger(__name__)


def _new_loan_id() -> str:
    """Generate a prefixed unique loan identifier."""
    return "loan_{0}".format(uuid4().hex[:16])


@dataclass(frozen=True)
class RepaymentResult:
    """Outcome of one repay call together with the loan state after it."""

    outcome: RepaymentOutcome
    loan: LoanModel
    amount: Decimal
    trust_rewarded: bool = False

    @property
    def is_full(self) -> bool:
        return self.outcome == RepaymentOutcome.FULL


class LoanLedger:
    """Creates, records and closes loans."""

    def __init__(
        self,
        loan_repository: LoanRepository,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self._loans = loan_repository
        self._new_id = id_factory or _new_loan_id

    def _positive_amount(self, amount: Any) -> Decimal:
        """Validate a loan or repayment amount; it must be worth at least one cent."""
        decimal_amount = parse_amount(amount)
        if decimal_amount <= 0:
            raise ModelValidationError("Amount must be greater than 0.")
        if to_minor_units(decimal_amount) <= 0:
            raise ModelValidationError("Amount must be at least 0.01.")
        return decimal_amount

    def _record(
        self,
        user_id: str,
        amount_minor: int,
        origin: LoanOrigin,
        reason: Optional[str] = None,
        transaction: Optional[Any] = None,
    ) -> LoanModel:
        loan = LoanModel(
            loan_id=self._new_id(),
            user_id=user_id,
            amount_minor=amount_minor,
            approved=True,
            reason=reason,
            origin=origin,
        )
        stored = self._loans.create(loan, transaction=transaction)
        logger.info(
            "Loan recorded loan_id=%s user_id=%s amount_minor=%s origin=%s",
            stored.loan_id,
            user_id,
            amount_minor,
            stored.origin,
        )
        return stored

    def request_loan(
        self,
        user_id: str,
        amount: Any,
        reason: Optional[str] = None,
        transaction: Optional[Any] = None,
    ) -> LoanModel:
        """Record an approved loan without any collateral check.

        This is the submit fast-path: the loan is marked approved immediately
        even though it is meant for manual follow-up.

        Raises:
            ModelValidationError: If amount is not positive.
        """
        amount_minor = to_minor_units(self._positive_amount(amount))
        return self._record(user_id, amount_minor, LoanOrigin.SUBMIT, reason=reason, transaction=transaction)

    def borrow(
        self,
        user_id: str,
        amount: Any,
        limit: Decimal,
        origin: LoanOrigin = LoanOrigin.BORROW,
        transaction: Optional[Any] = None,
    ) -> LoanModel:
        """Record an approved loan when `amount` does not exceed `limit`.

        Raises:
            ModelValidationError: If amount is not positive.
            LimitExceededError: If amount is above the borrowing limit; nothing is persisted.
        """
        decimal_amount = self._positive_amount(amount)
        if decimal_amount > limit:
            logger.warning(
                "Borrow rejected user_id=%s amount=%s limit=%s origin=%s",
                user_id,
                decimal_amount,
                limit,
                origin.value,
            )
            raise LimitExceededError(
                "Requested amount {0} exceeds borrowable limit {1}.".format(decimal_amount, limit)
            )
        return self._record(user_id, to_minor_units(decimal_amount), origin, transaction=transaction)

    def list_loans(self, user_id: str) -> List[LoanModel]:
        """Return the user's loans, most recent first."""
        return self._loans.list_by_user(user_id)

    def get_loan(self, loan_id: str, transaction: Optional[Any] = None) -> LoanModel:
        """Raises ModelNotFoundError if the loan does not exist."""
        return self._loans.get_by_id(loan_id, transaction=transaction)

    def repay(
        self,
        loan_id: str,
        amount: Any,
        loan: Optional[LoanModel] = None,
        transaction: Optional[Any] = None,
    ) -> RepaymentResult:
        """Apply a repayment to an open loan.

        A payment at or above the original principal closes the loan. Smaller
        payments are acknowledged as partial and leave the loan untouched;
        no outstanding balance is tracked, so only a single payment covering
        the full principal can ever close it.

        Args:
            loan_id: Loan identifier.
            amount: Payment in major units.
            loan: Loan already read inside the same transaction, if any.
            transaction: Optional store transaction handle.

        Raises:
            ModelNotFoundError: If the loan does not exist.
            AlreadyRepaidError: If the loan is already closed.
            ModelValidationError: If amount is not positive.
        """
        payment = self._positive_amount(amount)
        current = loan if loan is not None else self.get_loan(loan_id, transaction=transaction)
        if current.repaid:
            logger.warning("Repayment rejected for closed loan_id=%s", loan_id)
            raise AlreadyRepaidError("Loan {0} is already repaid.".format(loan_id))

        if payment < current.amount:
            logger.info(
                "Partial repayment loan_id=%s paid=%s principal=%s",
                loan_id,
                payment,
                current.amount,
            )
            return RepaymentResult(outcome=RepaymentOutcome.PARTIAL, loan=current, amount=payment)

        self._loans.mark_repaid(loan_id, transaction=transaction)
        closed = current.model_copy(update={"repaid": True})
        logger.info("Loan closed loan_id=%s user_id=%s", loan_id, closed.user_id)
        return RepaymentResult(outcome=RepaymentOutcome.FULL, loan=closed, amount=payment)
