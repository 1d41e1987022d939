from datetime import date, datetime, timedelta
from decimal import Decimal
import uuid

from app.core.auth import User
from app.models.account import Account


class TestApi:
    async def _setup(self, client, balance="100.00"):
        account = (await client.post("/api/v1/accounts", json={"name": "Main", "balance": balance})).json()
        category = (await client.post(
            "/api/v1/categories", json={"name": "Groceries", "category_type": "expense"}
        )).json()
        return account, category

    async def test_account_and_transaction_flow(self, client):
        account, category = await self._setup(client)
        assert account["is_default"] is True

        response = await client.post("/api/v1/transactions", json={
            "category_id": category["id"],
            "amount": "30.00",
            "transaction_type": "expense",
        })

        assert response.status_code == 201
        body = response.json()
        assert body["transaction"]["status"] == "completed"
        assert body["budget_warning"] is None
        account = (await client.get(f"/api/v1/accounts/{account['id']}")).json()
        assert Decimal(account["balance"]) == Decimal("70.00")

        tx_id = body["transaction"]["id"]
        assert (await client.delete(f"/api/v1/transactions/{tx_id}")).status_code == 204
        account = (await client.get(f"/api/v1/accounts/{account['id']}")).json()
        assert Decimal(account["balance"]) == Decimal("100.00")

    async def test_ledger_errors_map_to_status_and_code(self, client):
        _, category = await self._setup(client, balance="10.00")

        response = await client.post("/api/v1/transactions", json={
            "category_id": category["id"],
            "amount": "30.00",
            "transaction_type": "expense",
        })

        assert response.status_code == 400
        assert response.json()["code"] == "INSUFFICIENT_FUNDS"

    async def test_budget_warning_and_conflicts(self, client):
        _, category = await self._setup(client, balance="500.00")
        budget = await client.post("/api/v1/budgets", json={"category_id": category["id"], "limit_amount": "100.00"})
        assert budget.status_code == 201

        duplicate = await client.post("/api/v1/budgets", json={"category_id": category["id"], "limit_amount": "50.00"})
        assert duplicate.status_code == 409
        assert duplicate.json()["code"] == "DUPLICATE_BUDGET"

        response = await client.post("/api/v1/transactions", json={
            "category_id": category["id"],
            "amount": "95.00",
            "transaction_type": "expense",
        })
        assert response.json()["budget_warning"]

        exceeded = await client.post("/api/v1/transactions", json={
            "category_id": category["id"],
            "amount": "10.00",
            "transaction_type": "expense",
        })
        assert exceeded.status_code == 400
        assert exceeded.json()["code"] == "BUDGET_EXCEEDED"

        notifications = (await client.get("/api/v1/notification/")).json()
        assert [n["type"] for n in notifications] == ["budget_warning"]
        assert (await client.get("/api/v1/notification/unread-count")).json() == 1

    async def test_future_transaction_is_pending(self, client):
        _, category = await self._setup(client)
        tomorrow = (datetime.utcnow() + timedelta(days=1)).isoformat()

        response = await client.post("/api/v1/transactions", json={
            "category_id": category["id"],
            "amount": "30.00",
            "transaction_type": "expense",
            "transaction_date": tomorrow,
        })

        assert response.json()["transaction"]["status"] == "pending"
        pending = (await client.get("/api/v1/transactions", params={"status": "pending"})).json()
        assert len(pending) == 1

    async def test_unknown_resources_are_404(self, client):
        missing = "00000000-0000-0000-0000-000000000000"
        assert (await client.get(f"/api/v1/transactions/{missing}")).status_code == 404
        assert (await client.get(f"/api/v1/goals/{missing}")).status_code == 404
        response = await client.post("/api/v1/transactions", json={
            "category_id": missing,
            "amount": "1.00",
            "transaction_type": "expense",
        })
        assert response.status_code == 404
        assert response.json()["code"] == "NO_DEFAULT_ACCOUNT"

    async def test_goal_and_report(self, client):
        await self._setup(client, balance="1000.00")
        goal = await client.post("/api/v1/goals", json={
            "name": "Bike",
            "total_amount": "300.00",
            "contribution_amount": "100.00",
            "contribution_interval": "weekly",
        })
        assert goal.status_code == 201
        assert goal.json()["contribution_interval"] == "weekly"
        assert goal.json()["current_installment"] == 1

        today = date.today()
        report = await client.get("/api/v1/reports", params={
            "start_date": (today - timedelta(days=1)).isoformat(),
            "end_date": (today + timedelta(days=1)).isoformat(),
        })
        assert report.status_code == 200
        assert report.json()["goal_progress"][0]["name"] == "Bike"

    async def test_report_needs_a_valid_range(self, client):
        assert (await client.get("/api/v1/reports")).status_code == 400
        inverted = await client.get("/api/v1/reports", params={"start_date": "2026-03-10", "end_date": "2026-03-01"})
        assert inverted.status_code == 400

    async def test_bad_interval_is_rejected(self, client):
        await self._setup(client)
        response = await client.post("/api/v1/goals", json={
            "name": "Bike",
            "total_amount": "300.00",
            "contribution_amount": "100.00",
            "contribution_interval": "hourly",
        })
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_INTERVAL"


class TestProfileApi:
    async def test_read_and_update_profile(self, client, user):
        me = await client.get("/api/v1/users/me")
        assert me.status_code == 200
        assert me.json()["email"] == user.email

        updated = await client.patch("/api/v1/users/me", json={"full_name": "Renamed User"})
        assert updated.status_code == 200
        assert updated.json()["full_name"] == "Renamed User"

    async def test_profile_update_rejects_passwords_and_empty_payloads(self, client):
        assert (await client.patch("/api/v1/users/me", json={"password": "hunter22"})).status_code == 422
        assert (await client.patch("/api/v1/users/me", json={})).status_code == 400

    async def test_delete_deactivates_but_keeps_data(self, client, db, user):
        account = (await client.post("/api/v1/accounts", json={"name": "Main", "balance": "10.00"})).json()

        assert (await client.delete("/api/v1/users/me")).status_code == 204

        stored = await db.get(User, user.id, populate_existing=True)
        assert stored.is_active is False
        assert await db.get(Account, uuid.UUID(account["id"])) is not None


async def test_health_reports_idle_locks(client):
    body = (await client.get("/health")).json()
    assert body["status"] == "healthy"
    assert body["ledger_locks_held"] == 0
