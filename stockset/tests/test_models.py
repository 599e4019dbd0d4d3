"""Unit tests for store-ready lending domain models."""

from decimal import Decimal
import unittest

from pydantic import ValidationError

from stockset.models.enums import LoanOrigin
from stockset.models.exceptions import ModelValidationError
from stockset.models.groups import DEFAULT_TRUST_SCORE, GroupModel
from stockset.models.loans import LoanModel
from stockset.models.portfolios import PortfolioModel
from stockset.models.users import DEFAULT_CREDIT_SCORE, UserModel, badge_label


class ModelValidationTests(unittest.TestCase):
    """Test model happy paths and business rules."""

    def test_user_defaults(self) -> None:
        """New users start at the default credit score with no group."""
        user = UserModel(user_id="usr_1")
        self.assertEqual(user.credit_score, DEFAULT_CREDIT_SCORE)
        self.assertEqual(user.display_name, "Member")
        self.assertIsNone(user.group_id)
        self.assertEqual(user.badge, "NFT-600")

    def test_blank_display_name_falls_back(self) -> None:
        """Blank names are replaced with the member label."""
        self.assertEqual(UserModel(user_id="usr_1", display_name="   ").display_name, "Member")

    def test_badge_follows_score(self) -> None:
        """Badge is derived from the score and never stored."""
        self.assertEqual(badge_label(712), "NFT-712")
        user = UserModel(user_id="usr_1", credit_score=640)
        self.assertEqual(user.badge, "NFT-640")
        self.assertNotIn("badge", user.to_firestore())

    def test_group_members_are_unique(self) -> None:
        """Duplicate member ids collapse, keeping join order."""
        group = GroupModel(group_id="grp_1", name="Circle", members=["a", "b", "a", " "])
        self.assertEqual(group.members, ["a", "b"])
        self.assertEqual(group.trust_score, DEFAULT_TRUST_SCORE)
        self.assertTrue(group.has_member("b"))

    def test_group_pool_cannot_be_negative(self) -> None:
        """Reject a negative insurance pool."""
        with self.assertRaises(ValidationError):
            GroupModel(group_id="grp_1", name="Circle", insurance_pool_minor=-1)

    def test_portfolio_market_value(self) -> None:
        """Market value sums quantity times price and upper-cases symbols."""
        portfolio = PortfolioModel(
            user_id="usr_1",
            holdings=[
                {"symbol": "aapl", "quantity": 10, "market_price": 150},
                {"symbol": "MSFT", "quantity": 0.5, "market_price": 300.1},
            ],
        )
        self.assertEqual(portfolio.holdings[0].symbol, "AAPL")
        self.assertEqual(portfolio.market_value, Decimal("1650.05"))
        self.assertEqual(PortfolioModel(user_id="usr_1").market_value, Decimal("0"))

    def test_loan_amount_in_major_units(self) -> None:
        """Minor units convert back to two-place decimals."""
        loan = LoanModel(loan_id="loan_1", user_id="usr_1", amount_minor=70050, origin=LoanOrigin.AUTO_ROLL)
        self.assertEqual(loan.amount, Decimal("700.50"))
        self.assertEqual(loan.origin, "AUTO_ROLL")

    def test_loan_requires_positive_amount(self) -> None:
        """Zero-amount loans are invalid."""
        with self.assertRaises(ValidationError):
            LoanModel(loan_id="loan_1", user_id="usr_1", amount_minor=0)

    def test_unapproved_loan_cannot_be_repaid(self) -> None:
        """Reject repaid loans that were never approved."""
        with self.assertRaises(ValidationError):
            LoanModel(loan_id="loan_1", user_id="usr_1", amount_minor=100, approved=False, repaid=True)

    def test_from_firestore_wraps_errors(self) -> None:
        """Malformed stored payloads raise the domain validation error."""
        with self.assertRaises(ModelValidationError):
            LoanModel.from_firestore({"user_id": "usr_1"}, doc_id="loan_1")

    def test_round_trip_keeps_document_id(self) -> None:
        """Stored payloads rebuild the same model."""
        user = UserModel(user_id="usr_9", group_id="grp_1")
        restored = UserModel.from_firestore(user.to_firestore(), doc_id="usr_9")
        self.assertEqual(restored.id, "usr_9")
        self.assertEqual(restored.group_id, "grp_1")


if __name__ == "__main__":
    unittest.main()
