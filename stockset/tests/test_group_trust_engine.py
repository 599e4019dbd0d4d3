"""Unit tests for group membership, insurance pool and trust score."""

from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from itertools import count
import unittest

from stockset.core import InMemoryDocumentStore
from stockset.models.exceptions import ModelNotFoundError, ModelValidationError, NotInGroupError
from stockset.repositories import DocumentGroupRepository, DocumentUserRepository
from stockset.services import GroupTrustEngine


class GroupTrustEngineTests(unittest.TestCase):
    """Validate group flows against the in-memory store."""

    def setUp(self) -> None:
        """Build an engine with predictable group ids."""
        self.store = InMemoryDocumentStore()
        self.groups = DocumentGroupRepository(self.store)
        self.users = DocumentUserRepository(self.store)
        sequence = count(1)
        self.engine = GroupTrustEngine(
            self.groups,
            self.users,
            id_factory=lambda: "grp_{0}".format(next(sequence)),
        )

    def test_create_group_sets_founder(self) -> None:
        """The founder is the only member and points at the group."""
        group = self.engine.create_group("Circle", "usr_1")
        self.assertEqual(group.group_id, "grp_1")
        self.assertEqual(group.members, ["usr_1"])
        self.assertEqual(group.trust_score, 100)
        self.assertEqual(group.insurance_pool_minor, 0)
        self.assertEqual(self.users.find("usr_1").group_id, "grp_1")

    def test_blank_group_name_rejected(self) -> None:
        """Group names are required."""
        with self.assertRaises(ModelValidationError):
            self.engine.create_group("  ", "usr_1")

    def test_join_is_idempotent(self) -> None:
        """Joining twice leaves one membership entry."""
        self.engine.create_group("Circle", "usr_1")
        self.engine.join_group("grp_1", "usr_2")
        self.engine.join_group("grp_1", "usr_2")
        self.assertEqual(self.groups.get_by_id("grp_1").members, ["usr_1", "usr_2"])

    def test_join_unknown_group(self) -> None:
        """Joining a missing group raises not found."""
        with self.assertRaises(ModelNotFoundError):
            self.engine.join_group("grp_missing", "usr_1")

    def test_switching_groups_removes_old_membership(self) -> None:
        """A user belongs to at most one group's member list."""
        self.engine.create_group("First", "usr_1")
        self.engine.create_group("Second", "usr_2")
        self.engine.join_group("grp_1", "usr_3")
        self.engine.join_group("grp_2", "usr_3")
        self.assertEqual(self.groups.get_by_id("grp_1").members, ["usr_1"])
        self.assertEqual(self.groups.get_by_id("grp_2").members, ["usr_2", "usr_3"])
        self.assertEqual(self.users.find("usr_3").group_id, "grp_2")

    def test_founding_a_group_leaves_the_previous_one(self) -> None:
        """Creating a group also removes the founder from the old group."""
        self.engine.create_group("First", "usr_1")
        self.engine.join_group("grp_1", "usr_2")
        self.engine.create_group("Second", "usr_2")
        self.assertEqual(self.groups.get_by_id("grp_1").members, ["usr_1"])

    def test_leave_group(self) -> None:
        """Leaving clears both sides of the membership."""
        self.engine.create_group("Circle", "usr_1")
        self.assertEqual(self.engine.leave_group("usr_1"), "grp_1")
        self.assertEqual(self.groups.get_by_id("grp_1").members, [])
        self.assertIsNone(self.users.find("usr_1").group_id)
        with self.assertRaises(NotInGroupError):
            self.engine.leave_group("usr_1")

    def test_contribution_returns_new_balance(self) -> None:
        """Contributions add to the pool in cents."""
        self.engine.create_group("Circle", "usr_1")
        self.assertEqual(self.engine.contribute("grp_1", "12.50"), Decimal("12.50"))
        self.assertEqual(self.engine.contribute("grp_1", 7.5), Decimal("20.00"))
        self.assertEqual(self.groups.get_by_id("grp_1").insurance_pool_minor, 2000)

    def test_non_positive_contribution_rejected(self) -> None:
        """Zero and negative contributions are refused."""
        self.engine.create_group("Circle", "usr_1")
        for amount in (0, -5, "0.004"):
            with self.subTest(amount=amount):
                with self.assertRaises(ModelValidationError):
                    self.engine.contribute("grp_1", amount)

    def test_oversized_contribution_rejected(self) -> None:
        """Contributions beyond the storable range leave the pool untouched."""
        self.engine.create_group("Circle", "usr_1")
        with self.assertRaises(ModelValidationError):
            self.engine.contribute("grp_1", "1e27")
        self.assertEqual(self.groups.get_by_id("grp_1").insurance_pool_minor, 0)

    def test_concurrent_contributions_sum_exactly(self) -> None:
        """Parallel contributions never lose an update."""
        self.engine.create_group("Circle", "usr_1")
        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(lambda _: self.engine.contribute("grp_1", "1.25"), range(200)))
        self.assertEqual(self.groups.get_by_id("grp_1").insurance_pool_minor, 25000)

    def test_full_repayment_reward(self) -> None:
        """Each full repayment raises trust by the configured reward."""
        self.engine.create_group("Circle", "usr_1")
        self.engine.on_full_repayment("grp_1")
        self.engine.on_full_repayment("grp_1")
        self.assertEqual(self.groups.get_by_id("grp_1").trust_score, 104)

    def test_get_info(self) -> None:
        """Info exposes the shared metrics in major units."""
        self.engine.create_group("Circle", "usr_1")
        self.engine.contribute("grp_1", 10)
        info = self.engine.get_info("grp_1")
        self.assertEqual(info["groupId"], "grp_1")
        self.assertEqual(info["trustScore"], 100)
        self.assertEqual(info["insurancePool"], Decimal("10.00"))
        self.assertEqual(info["members"], ["usr_1"])


if __name__ == "__main__":
    unittest.main()
