"""
Integration test for the full stock flow over a real SQLite database.

Receive, simulate, sell, adjust, then read the ledger back through the API
and check the stored balance against a replay of every entry.
"""

import csv
import io
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from stockledger.api.main import app
from stockledger.core.services import StockLedger
from stockledger.infrastructure.storage.sqlite.migrations.migrator import (
    verify_schema_integrity,
)


@pytest.fixture
async def client(stock_store):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _receive(client: AsyncClient) -> dict:
    response = await client.post(
        "/api/stock/receive",
        json={
            "name": "Aceite 1L",
            "brand": "Acme",
            "cases": 2,
            "units_per_case": 12,
            "loose_units": 6,
            "unit_price": 10000,
            "case_price": 110000,
            "load_code": "CARGA-1",
            "actor": "ana",
        },
    )
    assert response.status_code == 201
    return response.json()


class TestStockFlow:
    async def test_receive_sell_adjust_and_trace(
        self,
        client: AsyncClient,
        ledger: StockLedger,
        initialized_db: Path,
    ):
        received = await _receive(client)
        item_id = received["stock_item"]["id"]
        case = next(p for p in received["presentations"] if p["conversion_factor"] == 12)

        assert received["created"] is True
        assert received["stock_item"]["total_units_available"] == 30
        assert case["is_default"] is True

        # Loose sale breaks one case
        sale = {"stock_item_id": item_id, "sale_type": "loose_units", "quantity": 5, "actor": "ana"}
        simulated = (await client.post("/api/sales/simulate", json=sale)).json()
        assert simulated["feasible"] is True
        assert simulated["opens_new_case"] is True
        assert simulated["resulting_open_box_remainder"] == 7

        response = await client.post(
            "/api/sales/commit",
            json={**sale, "expected_balance": simulated["balance_before"]},
        )
        assert response.status_code == 201
        committed = response.json()
        assert committed["stock_item"]["total_units_available"] == 25
        assert committed["open_box"]["units_remaining"] == 7

        # A stale simulation is refused
        response = await client.post("/api/sales/commit", json={**sale, "expected_balance": 30})
        assert response.status_code == 409
        assert response.json()["error_code"] == "CONCURRENT_MODIFICATION"

        # Whole cases come from sealed stock only
        case_sale = {
            "stock_item_id": item_id,
            "sale_type": "case_complete",
            "presentation_id": case["id"],
            "quantity": 1,
        }
        response = await client.post("/api/sales/commit", json=case_sale)
        assert response.status_code == 201
        assert response.json()["stock_item"]["total_units_available"] == 13

        response = await client.post("/api/sales/commit", json=case_sale)
        assert response.status_code == 409
        assert response.json()["error_code"] == "INSUFFICIENT_STOCK"

        response = await client.post(
            "/api/movements",
            json={
                "stock_item_id": item_id,
                "movement_type": "Ajuste",
                "quantity_delta": -3,
                "actor": "luis",
                "reason": "Rotura",
            },
        )
        assert response.status_code == 201
        assert response.json()["balance_after"] == 10

        # Ledger, most recent first
        listed = (await client.get("/api/movements", params={"stock_item_id": item_id})).json()
        assert [m["movement_type"] for m in listed["movements"]] == [
            "Ajuste",
            "Salida",
            "Salida",
            "Entrada",
        ]
        assert [m["balance_after"] for m in listed["movements"]] == [10, 13, 25, 30]

        searched = (await client.get("/api/movements", params={"search_text": "rotura"})).json()
        assert searched["total"] == 1

        export = await client.get("/api/movements/export", params={"stock_item_id": item_id})
        assert export.status_code == 200
        rows = list(csv.reader(io.StringIO(export.text)))
        assert len(rows) == 5
        assert rows[1][1] == "Ajuste"

        stats = (await client.get("/api/movements/stats")).json()
        assert stats["total_movements"] == 4
        assert stats["by_type"]["Salida"]["count"] == 2

        summary = (await client.get(f"/api/stock/{item_id}/summary")).json()
        assert summary["total_units_available"] == 10
        assert summary["has_open_box"] is True
        assert summary["open_box_remaining"] == 7
        assert summary["sealed_cases"] == 0
        assert summary["level"] == "BAJO"

        critical = (await client.get("/api/stock/critical")).json()
        assert [a["stock_item_id"] for a in critical["alerts"]] == [item_id]

        assert await ledger.replay_balance(item_id) == 10
        checks = await verify_schema_integrity(initialized_db)
        assert all(c["status"] == "PASS" for c in checks)

    async def test_restock_existing_item(self, client: AsyncClient):
        received = await _receive(client)
        item_id = received["stock_item"]["id"]

        response = await client.post(
            "/api/stock/receive",
            json={"stock_item_id": item_id, "cases": 1, "units_per_case": 12},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["created"] is False
        assert data["stock_item"]["total_units_available"] == 42
        assert data["movement"]["reason"] == "Ingreso de mercaderia"
        # No second case presentation of the same size
        assert len(data["presentations"]) == 2

    async def test_receive_unknown_item(self, client: AsyncClient):
        response = await client.post(
            "/api/stock/receive",
            json={"stock_item_id": 999, "loose_units": 1},
        )

        assert response.status_code == 404
