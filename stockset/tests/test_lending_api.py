"""API tests for the lending routes using FastAPI's TestClient."""

import unittest
from unittest import mock

from fastapi.testclient import TestClient

from stockset.core import AppSettings, InMemoryDocumentStore
from stockset.main import create_app


class LendingApiTests(unittest.TestCase):
    """Exercise HTTP contracts and error mapping."""

    def setUp(self) -> None:
        """Build an app over a fresh in-memory store."""
        self.client = TestClient(create_app(settings=AppSettings(), store=InMemoryDocumentStore()))

    def _headers(self, user_id: str = "usr_1") -> dict:
        return {"X-User-Id": user_id}

    def _pledge(self, user_id: str = "usr_1") -> None:
        response = self.client.put(
            "/portfolio",
            json={"stocks": [{"symbol": "AAPL", "quantity": 10, "marketPrice": 150}]},
            headers=self._headers(user_id),
        )
        self.assertEqual(response.status_code, 200)

    def test_service_endpoints(self) -> None:
        """Root, health and settings respond without identity."""
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})
        self.assertIn("running", self.client.get("/").json()["message"])
        snapshot = self.client.get("/settings").json()
        self.assertEqual(snapshot["storage"], "InMemoryDocumentStore")
        self.assertIn("EUR", snapshot["supported_currencies"])

    def test_missing_identity_is_unauthorized(self) -> None:
        """Lending routes require the caller header."""
        self.assertEqual(self.client.get("/users/profile").status_code, 401)
        self.assertEqual(self.client.get("/loans", headers={"X-User-Id": "  "}).status_code, 401)

    def test_register_and_profile(self) -> None:
        """Profiles carry score, badge and group."""
        response = self.client.post("/users/register", json={"name": "Asha"}, headers=self._headers())
        self.assertEqual(response.status_code, 200)
        profile = self.client.get("/users/profile", headers=self._headers()).json()
        self.assertEqual(profile["name"], "Asha")
        self.assertEqual(profile["creditScore"], 600)
        self.assertEqual(profile["nftBadge"], "NFT-600")
        self.assertIsNone(profile["groupId"])

    def test_borrow_and_repay_flow(self) -> None:
        """Borrow within the limit, repay in full, trust rises by two."""
        group = self.client.post("/groups", json={"name": "Circle"}, headers=self._headers()).json()["group"]
        self._pledge()
        self.assertEqual(self.client.get("/loans/power", headers=self._headers()).json(), {"borrowable": 750.0})

        rejected = self.client.post("/loans/borrow", json={"amount": 800}, headers=self._headers())
        self.assertEqual(rejected.status_code, 400)

        approved = self.client.post("/loans/borrow", json={"amount": 700}, headers=self._headers())
        self.assertEqual(approved.status_code, 200)
        self.assertEqual(approved.json()["message"], "Loan approved")
        loan_id = approved.json()["loan"]["id"]

        partial = self.client.post("/loans/repay", json={"loanId": loan_id, "amount": 100}, headers=self._headers())
        self.assertEqual(partial.json()["outcome"], "PARTIAL")
        self.assertFalse(partial.json()["loan"]["repaid"])

        full = self.client.post("/loans/repay", json={"loanId": loan_id, "amount": 700}, headers=self._headers())
        self.assertEqual(full.status_code, 200)
        self.assertEqual(full.json()["outcome"], "FULL")
        self.assertIn("Trust score updated", full.json()["message"])

        again = self.client.post("/loans/repay", json={"loanId": loan_id, "amount": 700}, headers=self._headers())
        self.assertEqual(again.status_code, 409)

        info = self.client.get("/groups/info", headers=self._headers()).json()
        self.assertEqual(info["groupId"], group["id"])
        self.assertEqual(info["trustScore"], 102)

    def test_repay_unknown_loan(self) -> None:
        """Unknown loans map to 404."""
        response = self.client.post("/loans/repay", json={"loanId": "loan_x", "amount": 10}, headers=self._headers())
        self.assertEqual(response.status_code, 404)

    def test_auto_roll_without_portfolio(self) -> None:
        """Auto-roll without collateral is a client error."""
        response = self.client.post("/loans/auto-roll", json={"amount": 10}, headers=self._headers())
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "No portfolio")

    def test_submit_and_list_loans(self) -> None:
        """Submitted loans appear in the caller's list only."""
        response = self.client.post(
            "/loans/submit",
            json={"amount": 250, "reason": "rent"},
            headers=self._headers(),
        )
        self.assertEqual(response.json()["message"], "Loan requested")
        self.assertEqual(len(self.client.get("/loans", headers=self._headers()).json()), 1)
        self.assertEqual(self.client.get("/loans", headers=self._headers("usr_2")).json(), [])

    def test_invalid_amount_is_unprocessable(self) -> None:
        """Non-positive amounts map to 422."""
        response = self.client.post("/loans/submit", json={"amount": 0}, headers=self._headers())
        self.assertEqual(response.status_code, 422)

    def test_oversized_amounts_are_unprocessable(self) -> None:
        """Amounts beyond the storable range map to 422, not 500."""
        self.client.post("/groups", json={"name": "Circle"}, headers=self._headers())
        for path in ("/loans/submit", "/loans/borrow", "/groups/contribute"):
            with self.subTest(path=path):
                response = self.client.post(path, json={"amount": "1e27"}, headers=self._headers())
                self.assertEqual(response.status_code, 422)
        fx = self.client.post(
            "/loans/fx-simulate",
            json={"amount": "1e400", "currency": "USD"},
            headers=self._headers(),
        )
        self.assertEqual(fx.status_code, 422)
        self.assertEqual(self.client.get("/loans", headers=self._headers()).json(), [])

    def test_unexpected_fx_failure_is_internal_error(self) -> None:
        """Unexpected faults are logged and answered with 500."""
        with mock.patch(
            "stockset.services.lending_orchestrator.simulate_hedged_conversion",
            side_effect=RuntimeError("rate table unavailable"),
        ):
            response = self.client.post("/loans/fx-simulate", json={"amount": 1}, headers=self._headers())
        self.assertEqual(response.status_code, 500)

    def test_group_membership_routes(self) -> None:
        """Join, contribute, and leave through HTTP."""
        group_id = self.client.post("/groups", json={"name": "Circle"}, headers=self._headers()).json()["group"]["id"]
        joined = self.client.post("/groups/{0}/join".format(group_id), headers=self._headers("usr_2"))
        self.assertEqual(joined.json()["message"], "Joined group")

        contributed = self.client.post("/groups/contribute", json={"amount": 20}, headers=self._headers("usr_2"))
        self.assertEqual(contributed.json()["insurancePool"], 20.0)

        info = self.client.get("/groups/info", headers=self._headers()).json()
        self.assertEqual(info["members"], ["usr_1", "usr_2"])
        self.assertEqual(info["insurancePool"], 20.0)

        self.assertEqual(self.client.post("/groups/leave", headers=self._headers("usr_2")).status_code, 200)
        self.assertEqual(self.client.get("/groups/info", headers=self._headers("usr_2")).status_code, 400)
        self.assertEqual(self.client.post("/groups/grp_missing/join", headers=self._headers()).status_code, 404)

    def test_portfolio_and_advisory_routes(self) -> None:
        """Portfolio round trip, rebalance, liquidation and fx."""
        self.assertEqual(self.client.get("/portfolio", headers=self._headers()).json(), {"stocks": []})
        self._pledge()
        stocks = self.client.get("/portfolio", headers=self._headers()).json()["stocks"]
        self.assertEqual(stocks, [{"symbol": "AAPL", "quantity": 10.0, "marketPrice": 150.0}])

        self.assertIn("suggestion", self.client.get("/portfolio/rebalance", headers=self._headers()).json())
        self.assertIn(
            self.client.get("/loans/liquidation-check", headers=self._headers()).json()["message"],
            {"Safe", "Low collateral ratio!"},
        )

        fx = self.client.post(
            "/loans/fx-simulate",
            json={"amount": 100, "currency": "eur"},
            headers=self._headers(),
        ).json()
        self.assertEqual(fx, {"hedgedAmount": 83.3, "currency": "EUR"})


class AppFactoryTests(unittest.TestCase):
    """Validate application wiring."""

    def test_debug_setting_reaches_logging(self) -> None:
        """The debug flag configures the log level."""
        with mock.patch("stockset.main.setup_logging") as setup_logging:
            create_app(settings=AppSettings(debug=True), store=InMemoryDocumentStore())
        setup_logging.assert_called_once_with(debug=True)


if __name__ == "__main__":
    unittest.main()
