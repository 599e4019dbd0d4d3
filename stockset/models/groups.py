"""Group domain model for trust circles and their insurance pool."""

import logging
from typing import List

from pydantic import Field, field_validator

from .base import BaseDocumentModel, Money


logger = logging.getLogger(__name__)

DEFAULT_TRUST_SCORE = 100


class GroupModel(BaseDocumentModel):
    """Represents a trust group whose members share a pool and a trust score."""

    group_id: str = Field(..., min_length=3)
    name: str = Field(..., min_length=1)
    members: List[str] = Field(default_factory=list)
    trust_score: int = Field(default=DEFAULT_TRUST_SCORE)
    insurance_pool_minor: Money = Field(default=0, ge=0)

    @field_validator("members", mode="before")
    @classmethod
    def _unique_members(cls, value: List[str]) -> List[str]:
        """Keep the first occurrence of each member id, preserving join order."""
        members: List[str] = []
        for member in value or []:
            member_id = str(member).strip()
            if member_id and member_id not in members:
                members.append(member_id)
        return members

    def has_member(self, user_id: str) -> bool:
        """Return whether `user_id` belongs to this group."""
        return user_id in self.members
