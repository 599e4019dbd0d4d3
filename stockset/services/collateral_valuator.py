"""Collateral valuation: portfolio snapshot to borrowing limit."""

from decimal import Decimal
from typing import Optional

from stockset.models.portfolios import PortfolioModel


DEFAULT_LOAN_TO_VALUE = Decimal("0.5")


class CollateralValuator:
    """Applies a loan-to-value haircut to a portfolio's market value.

    A missing or empty portfolio is worth nothing and yields a zero limit;
    it is never treated as an error here.
    """

    def __init__(self, loan_to_value: Decimal = DEFAULT_LOAN_TO_VALUE) -> None:
        if not Decimal("0") <= loan_to_value <= Decimal("1"):
            raise ValueError("loan_to_value must be between 0 and 1.")
        self._loan_to_value = loan_to_value

    def market_value(self, portfolio: Optional[PortfolioModel]) -> Decimal:
        if portfolio is None:
            return Decimal("0")
        return portfolio.market_value

    def borrowing_limit(self, portfolio: Optional[PortfolioModel]) -> Decimal:
        return self._loan_to_value * self.market_value(portfolio)
