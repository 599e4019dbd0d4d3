"""Portfolio read model: a user's declared holdings pledged as collateral."""

from decimal import Decimal
from typing import List

from pydantic import BaseModel, Field, field_validator

from .base import BaseDocumentModel


class HoldingModel(BaseModel):
    """One line of a portfolio."""

    symbol: str = Field(..., min_length=1)
    quantity: float = Field(..., ge=0.0)
    market_price: float = Field(..., ge=0.0)

    @field_validator("symbol")
    @classmethod
    def _uppercase_symbol(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def market_value(self) -> Decimal:
        return Decimal(str(self.quantity)) * Decimal(str(self.market_price))


class PortfolioModel(BaseDocumentModel):
    """Holdings owned by exactly one user; stored under the user id."""

    user_id: str = Field(..., min_length=1)
    holdings: List[HoldingModel] = Field(default_factory=list)

    @property
    def market_value(self) -> Decimal:
        """Sum of quantity times market price over all holdings."""
        return sum((holding.market_value for holding in self.holdings), Decimal("0"))
