"""Group trust engine: membership, insurance pool and trust score."""

from decimal import Decimal
import logging
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

from stockset.common.common_functions import from_minor_units, parse_amount, to_minor_units
from stockset.models.exceptions import ModelValidationError, NotInGroupError
from stockset.models.groups import GroupModel
from stockset.models.repositories import GroupRepository, UserRepository
from stockset.models.users import UserModel


logger = logging.getLogger(__name__)

DEFAULT_TRUST_REWARD = 2


def _new_group_id() -> str:
    """Generate a prefixed unique group identifier."""
    return "grp_{0}".format(uuid4().hex[:16])


class GroupTrustEngine:
    """Maintains group membership and the shared group metrics.

    Each user belongs to at most one group. Joining or founding a group first
    removes the user from the group they were in, so no stale membership is
    left behind. Every method reads before it writes so it can run inside a
    single store transaction.
    """

    def __init__(
        self,
        group_repository: GroupRepository,
        user_repository: UserRepository,
        trust_reward: int = DEFAULT_TRUST_REWARD,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self._groups = group_repository
        self._users = user_repository
        self._trust_reward = trust_reward
        self._new_id = id_factory or _new_group_id

    def _previous_group(self, user: UserModel, transaction: Optional[Any]) -> Optional[GroupModel]:
        if not user.group_id:
            return None
        return self._groups.find(user.group_id, transaction=transaction)

    def find_group(self, group_id: str, transaction: Optional[Any] = None) -> Optional[GroupModel]:
        return self._groups.find(group_id, transaction=transaction)

    def create_group(self, name: str, founder_id: str, transaction: Optional[Any] = None) -> GroupModel:
        """Create a group with the founder as its only member.

        Raises:
            ModelValidationError: If the name is blank.
        """
        normalized_name = (name or "").strip()
        if not normalized_name:
            raise ModelValidationError("Group name is required.")

        founder = self._users.get_or_default(founder_id, transaction=transaction)
        previous = self._previous_group(founder, transaction)

        group = self._groups.create(
            GroupModel(group_id=self._new_id(), name=normalized_name, members=[founder_id]),
            transaction=transaction,
        )
        if previous is not None:
            self._groups.remove_member(previous.group_id, founder_id, transaction=transaction)
        self._users.save(founder.model_copy(update={"group_id": group.group_id}), transaction=transaction)
        logger.info("Group created group_id=%s founder_id=%s", group.group_id, founder_id)
        return group

    def join_group(self, group_id: str, user_id: str, transaction: Optional[Any] = None) -> GroupModel:
        """Add `user_id` to the group; a no-op when already a member.

        Raises:
            ModelNotFoundError: If the group does not exist.
        """
        group = self._groups.get_by_id(group_id, transaction=transaction)
        if group.has_member(user_id):
            logger.info("Join skipped, already a member group_id=%s user_id=%s", group_id, user_id)
            return group

        user = self._users.get_or_default(user_id, transaction=transaction)
        previous = self._previous_group(user, transaction)

        if previous is not None and previous.group_id != group_id:
            self._groups.remove_member(previous.group_id, user_id, transaction=transaction)
            logger.info("Member left group_id=%s user_id=%s", previous.group_id, user_id)
        self._groups.add_member(group_id, user_id, transaction=transaction)
        self._users.save(user.model_copy(update={"group_id": group_id}), transaction=transaction)
        logger.info("Member joined group_id=%s user_id=%s", group_id, user_id)
        return group.model_copy(update={"members": group.members + [user_id]})

    def leave_group(self, user_id: str, transaction: Optional[Any] = None) -> str:
        """Remove the user from their group and clear the reference.

        Returns:
            str: Identifier of the group that was left.

        Raises:
            NotInGroupError: If the user has no group.
        """
        user = self._users.find(user_id, transaction=transaction)
        if user is None or not user.group_id:
            raise NotInGroupError("Not in a group")
        group_id = user.group_id
        previous = self._groups.find(group_id, transaction=transaction)

        if previous is not None:
            self._groups.remove_member(group_id, user_id, transaction=transaction)
        self._users.save(user.model_copy(update={"group_id": None}), transaction=transaction)
        logger.info("Member left group_id=%s user_id=%s", group_id, user_id)
        return group_id

    def contribute(self, group_id: str, amount: Any, transaction: Optional[Any] = None) -> Decimal:
        """Atomically add a contribution to the group's insurance pool.

        Returns:
            Decimal: Pool balance after the contribution.

        Raises:
            ModelValidationError: If amount is not positive.
            ModelNotFoundError: If the group does not exist.
        """
        decimal_amount = parse_amount(amount)
        amount_minor = to_minor_units(decimal_amount)
        if decimal_amount <= 0 or amount_minor <= 0:
            raise ModelValidationError("Contribution must be greater than 0.")

        group = self._groups.get_by_id(group_id, transaction=transaction)
        self._groups.increment_pool(group_id, amount_minor, transaction=transaction)
        logger.info("Contribution recorded group_id=%s amount_minor=%s", group_id, amount_minor)
        return from_minor_units(group.insurance_pool_minor + amount_minor)

    def on_full_repayment(self, group_id: str, transaction: Optional[Any] = None) -> None:
        """Reward the group for a member's full repayment.

        Defaults carry no matching penalty; an unpaid loan simply stays open.
        """
        self._groups.increment_trust(group_id, self._trust_reward, transaction=transaction)
        logger.info("Trust score increased group_id=%s delta=%s", group_id, self._trust_reward)

    def get_info(self, group_id: str, transaction: Optional[Any] = None) -> Dict[str, Any]:
        """Raises ModelNotFoundError if the group does not exist."""
        group = self._groups.get_by_id(group_id, transaction=transaction)
        return {
            "groupId": group.group_id,
            "name": group.name,
            "trustScore": group.trust_score,
            "insurancePool": from_minor_units(group.insurance_pool_minor),
            "members": list(group.members),
        }
