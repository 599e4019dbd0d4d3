"""Lending router exposing profile, group, portfolio and loan APIs."""

from decimal import Decimal
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Header, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from stockset.models.exceptions import (
    AlreadyRepaidError,
    LendingRejection,
    LimitExceededError,
    ModelNotFoundError,
    ModelValidationError,
    NoCollateralError,
    NotInGroupError,
)
from stockset.models.groups import GroupModel
from stockset.models.loans import LoanModel
from stockset.services.lending_orchestrator import LendingOrchestrator


logger = logging.getLogger(__name__)

_REJECTION_STATUS = (
    (ModelValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ModelNotFoundError, status.HTTP_404_NOT_FOUND),
    (AlreadyRepaidError, status.HTTP_409_CONFLICT),
    (LimitExceededError, status.HTTP_400_BAD_REQUEST),
    (NoCollateralError, status.HTTP_400_BAD_REQUEST),
    (NotInGroupError, status.HTTP_400_BAD_REQUEST),
)


class RegisterRequest(BaseModel):
    """Request payload for profile registration."""

    name: Optional[str] = Field(default=None, max_length=120)


class GroupCreateRequest(BaseModel):
    """Request payload for group creation."""

    name: str = Field(..., min_length=1, max_length=120)


class AmountRequest(BaseModel):
    """Request payload carrying a single amount."""

    amount: Decimal


class SubmitLoanRequest(BaseModel):
    """Request payload for the unconditional submit path."""

    amount: Decimal
    reason: Optional[str] = Field(default=None, max_length=500)


class RepayRequest(BaseModel):
    """Request payload for loan repayment."""

    model_config = ConfigDict(populate_by_name=True)

    loan_id: str = Field(..., min_length=1, alias="loanId")
    amount: Decimal


class FxSimulateRequest(BaseModel):
    """Request payload for hedged FX simulation."""

    amount: Decimal
    currency: str = Field(default="USD", max_length=8)


class StockHoldingPayload(BaseModel):
    """One portfolio line as submitted by the client."""

    model_config = ConfigDict(populate_by_name=True)

    symbol: str = Field(..., min_length=1)
    quantity: float = Field(..., ge=0.0)
    market_price: float = Field(..., ge=0.0, alias="marketPrice")


class PortfolioUpsertRequest(BaseModel):
    """Request payload replacing the caller's holdings."""

    stocks: List[StockHoldingPayload] = Field(default_factory=list)


def _require_caller(user_id: Optional[str]) -> str:
    """Validate the identity forwarded by the session provider."""
    normalized = (user_id or "").strip()
    if not normalized:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user identity.")
    return normalized


def _rejection(exc: LendingRejection) -> HTTPException:
    """Translate a business rejection into an HTTP error."""
    for exc_type, status_code in _REJECTION_STATUS:
        if isinstance(exc, exc_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _internal_error(action: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal error while processing {0}.".format(action),
    )


def _loan_payload(loan: LoanModel) -> Dict[str, Any]:
    return {
        "id": loan.loan_id,
        "userId": loan.user_id,
        "amount": float(loan.amount),
        "approved": loan.approved,
        "repaid": loan.repaid,
        "reason": loan.reason,
        "origin": loan.origin,
        "createdAt": loan.created_at.isoformat(),
    }


def _group_payload(group: GroupModel) -> Dict[str, Any]:
    return {
        "id": group.group_id,
        "name": group.name,
        "members": list(group.members),
        "trustScore": group.trust_score,
        "insurancePool": float(group.insurance_pool_minor) / 100,
    }


def build_lending_router(orchestrator: LendingOrchestrator) -> APIRouter:
    """Build the lending router around one orchestrator instance."""
    router = APIRouter(tags=["lending"])

    @router.post("/users/register", summary="Register or rename the caller")
    def register(payload: RegisterRequest, x_user_id: Optional[str] = Header(default=None)) -> Dict[str, Any]:
        """Create the caller's lending profile."""
        caller = _require_caller(x_user_id)
        try:
            orchestrator.register(caller, display_name=payload.name)
            return orchestrator.profile(caller)
        except LendingRejection as exc:
            raise _rejection(exc)
        except Exception:
            logger.exception("Register endpoint failed user_id=%s", caller)
            raise _internal_error("registration")

    @router.get("/users/profile", summary="Caller profile")
    def profile(x_user_id: Optional[str] = Header(default=None)) -> Dict[str, Any]:
        """Return credit score, badge and group reference."""
        caller = _require_caller(x_user_id)
        try:
            return orchestrator.profile(caller)
        except LendingRejection as exc:
            raise _rejection(exc)
        except Exception:
            logger.exception("Profile endpoint failed user_id=%s", caller)
            raise _internal_error("profile lookup")

    @router.post("/groups", summary="Create a trust group")
    def create_group(payload: GroupCreateRequest, x_user_id: Optional[str] = Header(default=None)) -> Dict[str, Any]:
        """Create a group with the caller as founder."""
        caller = _require_caller(x_user_id)
        try:
            group = orchestrator.create_group(caller, payload.name)
            return {"message": "Group created", "group": _group_payload(group)}
        except LendingRejection as exc:
            raise _rejection(exc)
        except Exception:
            logger.exception("Create group endpoint failed user_id=%s", caller)
            raise _internal_error("group creation")

    @router.post("/groups/leave", summary="Leave the current group")
    def leave_group(x_user_id: Optional[str] = Header(default=None)) -> Dict[str, Any]:
        """Remove the caller from their group."""
        caller = _require_caller(x_user_id)
        try:
            group_id = orchestrator.leave_group(caller)
            return {"message": "Left group", "groupId": group_id}
        except LendingRejection as exc:
            raise _rejection(exc)
        except Exception:
            logger.exception("Leave group endpoint failed user_id=%s", caller)
            raise _internal_error("group leave")

    @router.post("/groups/contribute", summary="Contribute to the insurance pool")
    def contribute(payload: AmountRequest, x_user_id: Optional[str] = Header(default=None)) -> Dict[str, Any]:
        """Add the caller's contribution to their group pool."""
        caller = _require_caller(x_user_id)
        try:
            balance = orchestrator.contribute(caller, payload.amount)
            return {
                "message": "Contributed ${0}".format(payload.amount),
                "insurancePool": float(balance),
            }
        except LendingRejection as exc:
            raise _rejection(exc)
        except Exception:
            logger.exception("Contribute endpoint failed user_id=%s", caller)
            raise _internal_error("contribution")

    @router.get("/groups/info", summary="Caller's group metrics")
    def group_info(x_user_id: Optional[str] = Header(default=None)) -> Dict[str, Any]:
        """Return trust score, pool balance and members."""
        caller = _require_caller(x_user_id)
        try:
            info = orchestrator.group_info(caller)
            info["insurancePool"] = float(info["insurancePool"])
            return info
        except LendingRejection as exc:
            raise _rejection(exc)
        except Exception:
            logger.exception("Group info endpoint failed user_id=%s", caller)
            raise _internal_error("group lookup")

    @router.post("/groups/{group_id}/join", summary="Join a trust group")
    def join_group(group_id: str, x_user_id: Optional[str] = Header(default=None)) -> Dict[str, Any]:
        """Join a group; joining twice is harmless."""
        caller = _require_caller(x_user_id)
        try:
            orchestrator.join_group(caller, group_id)
            return {"message": "Joined group", "groupId": group_id}
        except LendingRejection as exc:
            raise _rejection(exc)
        except Exception:
            logger.exception("Join group endpoint failed user_id=%s group_id=%s", caller, group_id)
            raise _internal_error("group join")

    @router.put("/portfolio", summary="Connect or replace portfolio")
    def upsert_portfolio(
        payload: PortfolioUpsertRequest,
        x_user_id: Optional[str] = Header(default=None),
    ) -> Dict[str, Any]:
        """Replace the caller's declared holdings."""
        caller = _require_caller(x_user_id)
        try:
            orchestrator.upsert_portfolio(caller, [stock.model_dump() for stock in payload.stocks])
            return {"message": "Portfolio updated"}
        except LendingRejection as exc:
            raise _rejection(exc)
        except Exception:
            logger.exception("Portfolio upsert endpoint failed user_id=%s", caller)
            raise _internal_error("portfolio update")

    @router.get("/portfolio", summary="Caller portfolio")
    def get_portfolio(x_user_id: Optional[str] = Header(default=None)) -> Dict[str, Any]:
        """Return declared holdings, or an empty list."""
        caller = _require_caller(x_user_id)
        try:
            portfolio = orchestrator.get_portfolio(caller)
            holdings = portfolio.holdings if portfolio is not None else []
            return {
                "stocks": [
                    {"symbol": item.symbol, "quantity": item.quantity, "marketPrice": item.market_price}
                    for item in holdings
                ]
            }
        except LendingRejection as exc:
            raise _rejection(exc)
        except Exception:
            logger.exception("Portfolio endpoint failed user_id=%s", caller)
            raise _internal_error("portfolio lookup")

    @router.get("/portfolio/rebalance", summary="Rebalance suggestion")
    def rebalance(x_user_id: Optional[str] = Header(default=None)) -> Dict[str, str]:
        """Return the advisory rebalance suggestion."""
        caller = _require_caller(x_user_id)
        try:
            return orchestrator.rebalance(caller)
        except Exception:
            logger.exception("Rebalance endpoint failed user_id=%s", caller)
            raise _internal_error("rebalance suggestion")

    @router.get("/loans", summary="Caller loans, newest first")
    def list_loans(x_user_id: Optional[str] = Header(default=None)) -> List[Dict[str, Any]]:
        """List every loan owned by the caller."""
        caller = _require_caller(x_user_id)
        try:
            return [_loan_payload(loan) for loan in orchestrator.list_loans(caller)]
        except LendingRejection as exc:
            raise _rejection(exc)
        except Exception:
            logger.exception("List loans endpoint failed user_id=%s", caller)
            raise _internal_error("loan listing")

    @router.get("/loans/power", summary="Borrowing power")
    def borrowing_power(x_user_id: Optional[str] = Header(default=None)) -> Dict[str, float]:
        """Return half of the caller's portfolio market value."""
        caller = _require_caller(x_user_id)
        try:
            return {"borrowable": float(orchestrator.borrowing_power(caller))}
        except LendingRejection as exc:
            raise _rejection(exc)
        except Exception:
            logger.exception("Borrowing power endpoint failed user_id=%s", caller)
            raise _internal_error("borrowing power")

    @router.post("/loans/borrow", summary="Borrow against collateral")
    def borrow(payload: AmountRequest, x_user_id: Optional[str] = Header(default=None)) -> Dict[str, Any]:
        """Approve a loan when it fits within the borrowing limit."""
        caller = _require_caller(x_user_id)
        try:
            loan = orchestrator.borrow(caller, payload.amount)
            return {"message": "Loan approved", "loan": _loan_payload(loan)}
        except LendingRejection as exc:
            raise _rejection(exc)
        except Exception:
            logger.exception("Borrow endpoint failed user_id=%s", caller)
            raise _internal_error("borrow")

    @router.post("/loans/auto-roll", summary="Auto-roll micro-loan")
    def auto_roll(payload: AmountRequest, x_user_id: Optional[str] = Header(default=None)) -> Dict[str, Any]:
        """Issue a micro-loan; requires a pledged portfolio."""
        caller = _require_caller(x_user_id)
        try:
            loan = orchestrator.auto_roll(caller, payload.amount)
            return {"message": "Micro-loan issued", "loan": _loan_payload(loan)}
        except LendingRejection as exc:
            raise _rejection(exc)
        except Exception:
            logger.exception("Auto-roll endpoint failed user_id=%s", caller)
            raise _internal_error("auto-roll")

    @router.post("/loans/submit", summary="Submit loan request")
    def submit_loan(payload: SubmitLoanRequest, x_user_id: Optional[str] = Header(default=None)) -> Dict[str, Any]:
        """Record a loan request; it is approved without a collateral check."""
        caller = _require_caller(x_user_id)
        try:
            loan = orchestrator.submit_loan(caller, payload.amount, reason=payload.reason)
            return {"message": "Loan requested", "loan": _loan_payload(loan)}
        except LendingRejection as exc:
            raise _rejection(exc)
        except Exception:
            logger.exception("Submit loan endpoint failed user_id=%s", caller)
            raise _internal_error("loan submission")

    @router.post("/loans/repay", summary="Repay a loan")
    def repay(payload: RepayRequest, x_user_id: Optional[str] = Header(default=None)) -> Dict[str, Any]:
        """Apply a full or partial repayment."""
        caller = _require_caller(x_user_id)
        try:
            result = orchestrator.repay(caller, payload.loan_id, payload.amount)
            if result.is_full:
                message = "Repaid ${0}".format(payload.amount)
                if result.trust_rewarded:
                    message += ". Trust score updated"
            else:
                message = "Partial repayment of ${0}".format(payload.amount)
            return {"message": message, "outcome": result.outcome.value, "loan": _loan_payload(result.loan)}
        except LendingRejection as exc:
            raise _rejection(exc)
        except Exception:
            logger.exception("Repay endpoint failed user_id=%s loan_id=%s", caller, payload.loan_id)
            raise _internal_error("repayment")

    @router.get("/loans/liquidation-check", summary="Liquidation risk signal")
    def liquidation_check(x_user_id: Optional[str] = Header(default=None)) -> Dict[str, Any]:
        """Return the placeholder liquidation risk flag."""
        caller = _require_caller(x_user_id)
        try:
            return orchestrator.liquidation_check(caller)
        except Exception:
            logger.exception("Liquidation check endpoint failed user_id=%s", caller)
            raise _internal_error("liquidation check")

    @router.post("/loans/fx-simulate", summary="Hedged FX simulation")
    def fx_simulate(payload: FxSimulateRequest, x_user_id: Optional[str] = Header(default=None)) -> Dict[str, Any]:
        """Convert an amount at the static rate less the hedge spread."""
        caller = _require_caller(x_user_id)
        try:
            result = orchestrator.fx_simulate(payload.amount, payload.currency)
            return {"hedgedAmount": float(result["hedged_amount"]), "currency": result["currency"]}
        except LendingRejection as exc:
            raise _rejection(exc)
        except Exception:
            logger.exception("FX simulation endpoint failed user_id=%s", caller)
            raise _internal_error("fx simulation")

    return router
