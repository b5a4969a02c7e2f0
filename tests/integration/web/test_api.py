"""
Web API 통합 테스트

httpx AsyncClient + ASGITransport로 라우터, 에러 매핑, 인증 헤더 검증.
"""

from decimal import Decimal
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from web.app import app
from web.dependencies import get_db

HEADERS = {"X-User-Id": "user-1"}
OTHER = {"X-User-Id": "user-2"}


@pytest_asyncio.fixture
async def client(db: SQLiteAdapter) -> AsyncGenerator[httpx.AsyncClient, None]:
    """임시 DB를 주입한 테스트 클라이언트"""

    async def override_get_db() -> AsyncGenerator[SQLiteAdapter, None]:
        yield db

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


async def _create_wallet(client: httpx.AsyncClient, name: str, balance: str = "0") -> str:
    response = await client.post(
        "/api/wallets",
        json={"name": name, "kind": "cash", "opening_balance": balance},
        headers=HEADERS,
    )
    assert response.status_code == 201
    return response.json()["wallet_id"]


async def _create_category(client: httpx.AsyncClient, name: str, category_type: str) -> str:
    response = await client.post(
        "/api/categories",
        json={"name": name, "type": category_type},
        headers=HEADERS,
    )
    assert response.status_code == 201
    return response.json()["category_id"]


class TestHealthAndAuth:
    """헬스 체크와 사용자 헤더"""

    @pytest.mark.asyncio
    async def test_health(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    @pytest.mark.asyncio
    async def test_missing_user_header(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/wallets")

        assert response.status_code == 401


class TestTransactionFlow:
    """거래 기록 흐름"""

    @pytest.mark.asyncio
    async def test_income_expense_transfer(self, client: httpx.AsyncClient) -> None:
        cash = await _create_wallet(client, "Cash", "1000")
        bank = await _create_wallet(client, "Bank")
        salary = await _create_category(client, "Salary", "income")
        food = await _create_category(client, "Food", "expense")

        response = await client.post(
            "/api/transactions",
            json={"type": "income", "amount": "500", "wallet_id": cash, "category_id": salary},
            headers=HEADERS,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["affected_wallets"][0]["current_balance"] == "1500.00"
        assert len(body["transaction"]["entries"]) == 1

        response = await client.post(
            "/api/transactions",
            json={"type": "expense", "amount": "100", "wallet_id": cash, "category_id": food},
            headers=HEADERS,
        )
        assert response.json()["affected_wallets"][0]["current_balance"] == "1400.00"

        response = await client.post(
            "/api/transactions",
            json={"type": "transfer", "amount": "200", "from_wallet_id": cash, "to_wallet_id": bank},
            headers=HEADERS,
        )
        assert response.status_code == 201
        balances = [w["current_balance"] for w in response.json()["affected_wallets"]]
        assert balances == ["1200.00", "200.00"]

        listing = await client.get("/api/transactions", headers=HEADERS)
        assert listing.json()["pagination"]["total"] == 3

        drift = await client.get("/api/wallets/drift", headers=HEADERS)
        assert drift.json() == []

    @pytest.mark.asyncio
    async def test_soft_delete_keeps_balance(self, client: httpx.AsyncClient) -> None:
        cash = await _create_wallet(client, "Cash", "100")
        food = await _create_category(client, "Food", "expense")
        posted = await client.post(
            "/api/transactions",
            json={"type": "expense", "amount": "30", "wallet_id": cash, "category_id": food},
            headers=HEADERS,
        )
        transaction_id = posted.json()["transaction"]["transaction_id"]

        response = await client.delete(f"/api/transactions/{transaction_id}", headers=HEADERS)
        assert response.status_code == 200

        wallet = await client.get(f"/api/wallets/{cash}", headers=HEADERS)
        assert wallet.json()["current_balance"] == "70.00"

        missing = await client.get(f"/api/transactions/{transaction_id}", headers=HEADERS)
        assert missing.status_code == 404

        entries = await client.get(f"/api/wallets/{cash}/entries", headers=HEADERS)
        assert entries.json()[0]["is_deleted"] is True

    @pytest.mark.asyncio
    async def test_post_from_template(self, client: httpx.AsyncClient) -> None:
        cash = await _create_wallet(client, "Cash", "100")
        food = await _create_category(client, "Food", "expense")
        template = await client.post(
            "/api/templates",
            json={"name": "Lunch", "type": "expense", "wallet_id": cash,
                  "category_id": food, "amount": "12"},
            headers=HEADERS,
        )
        assert template.status_code == 201

        response = await client.post(
            "/api/transactions",
            json={"template_id": template.json()["template_id"], "amount": "15"},
            headers=HEADERS,
        )

        assert response.status_code == 201
        assert response.json()["transaction"]["amount"] == "15.00"
        assert response.json()["affected_wallets"][0]["current_balance"] == "85.00"


class TestErrorMapping:
    """도메인 에러 → HTTP 상태 코드"""

    @pytest.mark.asyncio
    async def test_not_found_is_404(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/wallets/missing", headers=HEADERS)

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "code": "WALLET_NOT_FOUND",
            "message": response.json()["message"],
        }

    @pytest.mark.asyncio
    async def test_unknown_goal_is_404(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/goals/missing", headers=HEADERS)

        assert response.status_code == 404
        assert response.json()["code"] == "GOAL_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_other_users_wallet_is_404(self, client: httpx.AsyncClient) -> None:
        cash = await _create_wallet(client, "Cash")

        response = await client.get(f"/api/wallets/{cash}", headers=OTHER)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_state_is_400(self, client: httpx.AsyncClient) -> None:
        cash = await _create_wallet(client, "Cash", "100")

        response = await client.post(
            "/api/transactions",
            json={"type": "transfer", "amount": "10", "from_wallet_id": cash, "to_wallet_id": cash},
            headers=HEADERS,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "SAME_WALLET_TRANSFER"

    @pytest.mark.asyncio
    async def test_bad_precision_is_400(self, client: httpx.AsyncClient) -> None:
        cash = await _create_wallet(client, "Cash", "100")
        food = await _create_category(client, "Food", "expense")

        response = await client.post(
            "/api/transactions",
            json={"type": "expense", "amount": "1.005", "wallet_id": cash, "category_id": food},
            headers=HEADERS,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_AMOUNT"

    @pytest.mark.asyncio
    async def test_category_mismatch_is_400(self, client: httpx.AsyncClient) -> None:
        cash = await _create_wallet(client, "Cash", "100")
        salary = await _create_category(client, "Salary", "income")

        response = await client.post(
            "/api/transactions",
            json={"type": "expense", "amount": "5", "wallet_id": cash, "category_id": salary},
            headers=HEADERS,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_CATEGORY_TYPE_FOR_EXPENSE"

    @pytest.mark.asyncio
    async def test_transfer_with_category_is_400(self, client: httpx.AsyncClient) -> None:
        cash = await _create_wallet(client, "Cash", "100")
        bank = await _create_wallet(client, "Bank")
        food = await _create_category(client, "Food", "expense")

        response = await client.post(
            "/api/transactions",
            json={"type": "transfer", "amount": "10", "from_wallet_id": cash,
                  "to_wallet_id": bank, "category_id": food},
            headers=HEADERS,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "TRANSFER_WITH_CATEGORY"

    @pytest.mark.asyncio
    async def test_duplicate_name_is_409(self, client: httpx.AsyncClient) -> None:
        await _create_wallet(client, "Cash")

        response = await client.post(
            "/api/wallets",
            json={"name": "Cash", "kind": "bank"},
            headers=HEADERS,
        )

        assert response.status_code == 409
        assert response.json()["code"] == "WALLET_NAME_EXISTS"

    @pytest.mark.asyncio
    async def test_archive_with_entries_is_400(self, client: httpx.AsyncClient) -> None:
        cash = await _create_wallet(client, "Cash", "100")
        food = await _create_category(client, "Food", "expense")
        await client.post(
            "/api/transactions",
            json={"type": "expense", "amount": "5", "wallet_id": cash, "category_id": food},
            headers=HEADERS,
        )

        response = await client.delete(f"/api/wallets/{cash}", headers=HEADERS)

        assert response.status_code == 400
        assert response.json()["code"] == "WALLET_HAS_ENTRIES"

    @pytest.mark.asyncio
    async def test_schema_violation_is_422(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/wallets",
            json={"name": "Cash", "kind": "piggy_bank"},
            headers=HEADERS,
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_missing_type_is_400(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/transactions",
            json={"amount": "5"},
            headers=HEADERS,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "MISSING_TYPE"


class TestOtherResources:
    """카테고리/대출/목표 엔드포인트"""

    @pytest.mark.asyncio
    async def test_category_crud(self, client: httpx.AsyncClient) -> None:
        food = await _create_category(client, "Food", "expense")

        renamed = await client.patch(
            f"/api/categories/{food}", json={"name": "Groceries"}, headers=HEADERS
        )
        assert renamed.json()["name"] == "Groceries"

        listing = await client.get("/api/categories?type=expense", headers=HEADERS)
        assert [c["name"] for c in listing.json()] == ["Groceries"]

        deleted = await client.delete(f"/api/categories/{food}", headers=HEADERS)
        assert deleted.status_code == 200

        missing = await client.get(f"/api/categories/{food}", headers=HEADERS)
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_category_presets(self, client: httpx.AsyncClient) -> None:
        presets = await client.get("/api/categories/templates?type=income", headers=HEADERS)
        assert presets.status_code == 200
        assert presets.json()[0] == {
            "preset_id": "income-salary", "type": "income", "name": "Salary", "sort_order": 1,
        }

        created = await client.post(
            "/api/categories/from-template",
            json={"preset_id": "expense-food", "name": "Groceries"},
            headers=HEADERS,
        )
        assert created.status_code == 201
        assert created.json()["name"] == "Groceries"
        assert created.json()["type"] == "expense"

        missing = await client.post(
            "/api/categories/from-template", json={"preset_id": "nope"}, headers=HEADERS
        )
        assert missing.status_code == 404
        assert missing.json()["code"] == "CATEGORY_TEMPLATE_NOT_FOUND"

        seeded = await client.post("/api/categories/seed", headers=HEADERS)
        assert seeded.json() == {"success": True, "created": 13}

        again = await client.post("/api/categories/seed", headers=HEADERS)
        assert again.json()["created"] == 0

    @pytest.mark.asyncio
    async def test_loan_payment(self, client: httpx.AsyncClient) -> None:
        cash = await _create_wallet(client, "Cash", "100")
        loan = await client.post(
            "/api/loans",
            json={"kind": "you_owe", "counterparty_name": "Alice", "principal": "80",
                  "wallet_id": cash, "start_date": "2024-01-01"},
            headers=HEADERS,
        )
        assert loan.status_code == 201
        loan_id = loan.json()["loan_id"]

        payment = await client.post(
            f"/api/loans/{loan_id}/payments",
            json={"wallet_id": cash, "amount": "80", "payment_date": "2024-02-01"},
            headers=HEADERS,
        )
        assert payment.status_code == 201
        assert payment.json()["loan"]["status"] == "closed"
        assert payment.json()["loan"]["outstanding"] == "0.00"

        again = await client.post(
            f"/api/loans/{loan_id}/payments",
            json={"wallet_id": cash, "amount": "1", "payment_date": "2024-03-01"},
            headers=HEADERS,
        )
        assert again.status_code == 400
        assert again.json()["code"] == "LOAN_CLOSED"

    @pytest.mark.asyncio
    async def test_goal_aggregation(self, client: httpx.AsyncClient) -> None:
        parent = await client.post(
            "/api/goals",
            json={"title": "Save", "period_type": "yearly", "tracking_type": "value",
                  "target_value": "100", "auto_calculate": True, "year": 2024},
            headers=HEADERS,
        )
        assert parent.status_code == 201
        parent_id = parent.json()["goal_id"]

        for month, value in ((1, "10"), (2, "20"), (3, "30")):
            child = await client.post(
                "/api/goals",
                json={"title": f"M{month}", "period_type": "monthly", "tracking_type": "value",
                      "parent_goal_id": parent_id, "month": month, "year": 2024},
                headers=HEADERS,
            )
            await client.patch(
                f"/api/goals/{child.json()['goal_id']}",
                json={"current_value": value},
                headers=HEADERS,
            )

        refreshed = await client.get(f"/api/goals/{parent_id}", headers=HEADERS)

        assert refreshed.status_code == 200
        assert Decimal(refreshed.json()["current_value"]) == Decimal("60")
        assert refreshed.json()["status"] == "in_progress"
        assert len(refreshed.json()["sub_goals"]) == 3
