"""User domain model for borrower profiles and group membership."""

import logging
from typing import Optional

from pydantic import Field, field_validator

from .base import BaseDocumentModel


logger = logging.getLogger(__name__)

DEFAULT_CREDIT_SCORE = 600


def badge_label(credit_score: int) -> str:
    """Derive the display badge for a credit score."""
    return "NFT-{0}".format(int(credit_score))


class UserModel(BaseDocumentModel):
    """Represents a borrower known to the lending core."""

    user_id: str = Field(..., min_length=1)
    display_name: str = Field(default="Member")
    credit_score: int = Field(default=DEFAULT_CREDIT_SCORE, ge=0)
    group_id: Optional[str] = Field(default=None)

    @field_validator("display_name", mode="before")
    @classmethod
    def _default_display_name(cls, value: Optional[str]) -> str:
        """Replace blank display names with the generic member label."""
        if value is None or not str(value).strip():
            return "Member"
        return str(value)

    @property
    def badge(self) -> str:
        """Badge label derived from the current credit score."""
        return badge_label(self.credit_score)
