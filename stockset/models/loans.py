"""Loan domain model for collateral-backed micro-loans."""

from decimal import Decimal
import logging
from typing import Optional

from pydantic import Field, model_validator

from .base import BaseDocumentModel, Money
from .enums import LoanOrigin


logger = logging.getLogger(__name__)


class LoanModel(BaseDocumentModel):
    """Represents a loan; `repaid` only ever moves from False to True."""

    loan_id: str = Field(..., min_length=3)
    user_id: str = Field(..., min_length=1)
    amount_minor: Money = Field(..., gt=0)
    approved: bool = Field(default=True)
    repaid: bool = Field(default=False)
    reason: Optional[str] = Field(default=None)
    origin: LoanOrigin = Field(default=LoanOrigin.BORROW)

    @model_validator(mode="after")
    def _validate_business_rules(self) -> "LoanModel":
        """Only approved loans can be repaid."""
        if self.repaid and not self.approved:
            logger.error("Loan validation failed loan_id=%s user_id=%s", self.loan_id, self.user_id)
            raise ValueError("an unapproved loan cannot be repaid")
        return self

    @property
    def amount(self) -> Decimal:
        """Principal in major units."""
        return (Decimal(self.amount_minor) / 100).quantize(Decimal("0.01"))
