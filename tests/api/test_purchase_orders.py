"""API tests for purchase order endpoints."""

from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient

from src.core.entities.inventory import ItemKind


@pytest.fixture
async def box(make_item):
    return await make_item(ItemKind.PACKAGING, "Small box")


async def create_order(client: AsyncClient, box_id: int, **body) -> dict:
    body.setdefault(
        "items",
        [{"packaging_item_id": box_id, "quantity": 50, "unit_cost": "0.75"}],
    )
    response = await client.post("/api/purchase-orders", json=body)
    assert response.status_code == 201, response.text
    return response.json()


async def move(client: AsyncClient, po_id: int, status: str):
    return await client.post(f"/api/purchase-orders/{po_id}/status", json={"status": status})


async def ship(client: AsyncClient, po_id: int) -> None:
    for status in ("confirmed", "shipped"):
        response = await move(client, po_id, status)
        assert response.status_code == 200, response.text


class TestPurchaseOrderCrud:
    async def test_create_generates_number(self, api_client: AsyncClient, box):
        order = await create_order(api_client, box.id, supplier="Uline")

        assert order["po_number"] == f"PO-{date.today().year}-000001"
        assert order["status"] == "pending"
        assert order["total_cost"] == "37.50"
        assert order["items"][0]["total_cost"] == "37.50"
        assert order["received_side_effects_applied"] is False

    async def test_duplicate_number(self, api_client: AsyncClient, box):
        await create_order(api_client, box.id, po_number="PO-CUSTOM")

        response = await api_client.post(
            "/api/purchase-orders", json={"po_number": "PO-CUSTOM", "items": []}
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "DUPLICATE_PURCHASE_ORDER"

    async def test_line_must_be_packaging(self, api_client: AsyncClient, make_item):
        mug = await make_item(ItemKind.PRODUCT, "Mug")

        response = await api_client.post(
            "/api/purchase-orders",
            json={"items": [{"packaging_item_id": mug.id, "quantity": 1, "unit_cost": "1.00"}]},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_ITEM_KIND"

    async def test_unknown_order(self, api_client: AsyncClient):
        response = await api_client.get("/api/purchase-orders/404")
        assert response.status_code == 404
        assert response.json()["error_code"] == "ORDER_NOT_FOUND"

    async def test_line_edits_recompute_total(self, api_client: AsyncClient, box):
        order = await create_order(api_client, box.id)
        line_id = order["items"][0]["id"]

        response = await api_client.patch(
            f"/api/purchase-orders/{order['id']}/items/{line_id}", json={"quantity": 10}
        )
        assert response.json()["total_cost"] == "7.50"

        response = await api_client.post(
            f"/api/purchase-orders/{order['id']}/items",
            json={"packaging_item_id": box.id, "quantity": 2, "unit_cost": "1.25"},
        )
        assert response.status_code == 201
        assert response.json()["total_cost"] == "10.00"

        response = await api_client.delete(f"/api/purchase-orders/{order['id']}/items/{line_id}")
        assert response.json()["total_cost"] == "2.50"

    async def test_lines_locked_after_shipping(self, api_client: AsyncClient, box):
        order = await create_order(api_client, box.id)
        await move(api_client, order["id"], "confirmed")
        await move(api_client, order["id"], "shipped")

        response = await api_client.post(
            f"/api/purchase-orders/{order['id']}/items",
            json={"packaging_item_id": box.id, "quantity": 1, "unit_cost": "1.00"},
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "ORDER_LOCKED"

    async def test_delete_pending_order(self, api_client: AsyncClient, box):
        order = await create_order(api_client, box.id)

        response = await api_client.delete(f"/api/purchase-orders/{order['id']}")

        assert response.status_code == 204
        assert (await api_client.get(f"/api/purchase-orders/{order['id']}")).status_code == 404

    async def test_list_by_status(self, api_client: AsyncClient, box):
        first = await create_order(api_client, box.id)
        await create_order(api_client, box.id)
        await move(api_client, first["id"], "cancelled")

        response = await api_client.get("/api/purchase-orders", params={"status": "cancelled"})

        assert [o["id"] for o in response.json()["orders"]] == [first["id"]]


class TestStatusTransitions:
    async def test_forward_chain(self, api_client: AsyncClient, box):
        order = await create_order(api_client, box.id)

        response = await move(api_client, order["id"], "confirmed")

        assert response.status_code == 200
        data = response.json()
        assert data["previous_status"] == "pending"
        assert data["order"]["status"] == "confirmed"
        assert data["changed"] is True

    async def test_illegal_transition(self, api_client: AsyncClient, box):
        order = await create_order(api_client, box.id)

        response = await move(api_client, order["id"], "completed")

        assert response.status_code == 409
        assert response.json()["error_code"] == "INVALID_TRANSITION"
        assert (await api_client.get(f"/api/purchase-orders/{order['id']}")).json()["status"] == "pending"

    async def test_unknown_status_value(self, api_client: AsyncClient, box):
        order = await create_order(api_client, box.id)
        response = await move(api_client, order["id"], "lost")
        assert response.status_code == 422


class TestReceive:
    async def test_receive_credits_stock_and_books_expense(
        self, api_client: AsyncClient, box, gateway
    ):
        order = await create_order(api_client, box.id)
        await ship(api_client, order["id"])

        response = await move(api_client, order["id"], "received")

        assert response.status_code == 200
        data = response.json()
        assert data["changed"] is True
        assert data["order"]["status"] == "received"
        assert data["order"]["received_side_effects_applied"] is True
        assert data["order"]["actual_delivery"] == date.today().isoformat()
        assert len(data["events"]) == 1
        assert data["events"][0]["bookkeeping_entry_id"] == "ENTRY-1"
        assert data["reconciliation_tasks"] == []

        item = (await api_client.get(f"/api/inventory/{box.id}")).json()
        assert item["quantity"] == 50
        assert Decimal(item["unit_cost"]) == Decimal("0.75")
        [entry] = gateway.entries.values()
        assert entry.amount == Decimal("37.50")
        assert entry.category == "Packaging Materials"

    async def test_second_receive_is_a_no_op(self, api_client: AsyncClient, box, gateway):
        order = await create_order(api_client, box.id)
        await ship(api_client, order["id"])
        await move(api_client, order["id"], "received")

        response = await move(api_client, order["id"], "received")

        assert response.status_code == 200
        assert response.json()["changed"] is False
        assert response.json()["events"] == []
        assert (await api_client.get(f"/api/inventory/{box.id}")).json()["quantity"] == 50
        assert len(gateway.entries) == 1

    async def test_receive_with_gateway_down_queues_reconciliation(
        self, api_client: AsyncClient, box, gateway
    ):
        gateway.fail_next = 3
        order = await create_order(api_client, box.id)
        await ship(api_client, order["id"])

        response = await move(api_client, order["id"], "received")

        assert response.status_code == 200
        data = response.json()
        assert data["events"][0]["bookkeeping_entry_id"] is None
        assert len(data["reconciliation_tasks"]) == 1
        assert data["reconciliation_tasks"][0]["amount"] == "37.50"
        assert (await api_client.get(f"/api/inventory/{box.id}")).json()["quantity"] == 50

    async def test_rejected_receipt_applies_nothing(self, api_client: AsyncClient, box, gateway):
        gateway.reject = True
        order = await create_order(api_client, box.id)
        await ship(api_client, order["id"])

        response = await move(api_client, order["id"], "received")

        assert response.status_code == 422
        assert response.json()["error_code"] == "INVALID_ENTRY"
        stored = (await api_client.get(f"/api/purchase-orders/{order['id']}")).json()
        assert stored["status"] == "shipped"
        assert (await api_client.get(f"/api/inventory/{box.id}")).json()["quantity"] == 0

    async def test_cannot_cancel_after_receipt(self, api_client: AsyncClient, box):
        order = await create_order(api_client, box.id)
        await ship(api_client, order["id"])
        await move(api_client, order["id"], "received")

        response = await move(api_client, order["id"], "cancelled")

        assert response.status_code == 409
        assert response.json()["error_code"] == "INVALID_TRANSITION"

    async def test_received_order_cannot_be_deleted(self, api_client: AsyncClient, box):
        order = await create_order(api_client, box.id)
        await ship(api_client, order["id"])
        await move(api_client, order["id"], "received")

        response = await api_client.delete(f"/api/purchase-orders/{order['id']}")

        assert response.status_code == 409
