"""Service layer exports."""

from .collateral_valuator import CollateralValuator
from .group_trust_engine import GroupTrustEngine
from .lending_orchestrator import LendingOrchestrator, build_lending_orchestrator
from .liquidation_signal import LiquidationSignal
from .loan_ledger import LoanLedger, RepaymentResult

__all__ = [
    "CollateralValuator",
    "GroupTrustEngine",
    "LendingOrchestrator",
    "LiquidationSignal",
    "LoanLedger",
    "RepaymentResult",
    "build_lending_orchestrator",
]
