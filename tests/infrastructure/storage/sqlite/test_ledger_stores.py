"""Tests for the ledger stores behind SQLiteUnitOfWork."""

from datetime import date
from decimal import Decimal

import pytest

from src.core.entities.bookkeeping import (
    BookkeepingEntry,
    ReconciliationStatus,
    ReconciliationTask,
)
from src.core.entities.inventory import InventoryItem, ItemKind
from src.core.entities.purchase_order import (
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)
from src.core.entities.replenishment import ReplenishmentEvent
from src.core.exceptions import DatabaseError, DuplicateBookkeepingLinkError
from src.infrastructure.storage.sqlite.rows import parse_decimal


@pytest.fixture
async def box(uow):
    async with uow.transaction() as session:
        return await session.items.create_item(
            InventoryItem(kind=ItemKind.PACKAGING, name="Mailer box", sku="MB-1")
        )


class TestInventoryStore:
    async def test_create_and_get(self, uow, box):
        async with uow.read() as session:
            stored = await session.items.get_item(box.id)
            by_sku = await session.items.get_item_by_sku("MB-1")

        assert stored.name == "Mailer box"
        assert stored.kind == ItemKind.PACKAGING
        assert by_sku.id == box.id

    async def test_unit_cost_round_trips_exactly(self, uow, box):
        cost = Decimal("50") / Decimal("30")
        box.quantity = 30
        box.unit_cost = cost
        async with uow.transaction() as session:
            await session.items.update_item(box)

        async with uow.read() as session:
            stored = await session.items.get_item(box.id)
        assert stored.unit_cost == cost
        assert stored.quantity == 30

    async def test_corrupt_unit_cost_is_an_error(self, pool, uow, box):
        async with pool.transaction() as conn:
            await conn.execute(
                "UPDATE inventory_items SET unit_cost = ? WHERE id = ?", ("0.4o", box.id)
            )

        async with uow.read() as session:
            with pytest.raises(DatabaseError) as exc_info:
                await session.items.get_item(box.id)
        assert "0.4o" in exc_info.value.details["error"]

    async def test_missing_item(self, uow):
        async with uow.read() as session:
            assert await session.items.get_item(999) is None

    async def test_count_linked_products(self, uow, box):
        async with uow.transaction() as session:
            await session.items.create_item(
                InventoryItem(kind=ItemKind.PRODUCT, name="Mug", linked_packaging_id=box.id)
            )
            assert await session.items.count_linked_products(box.id) == 1

    async def test_rolled_back_session_writes_nothing(self, uow):
        with pytest.raises(RuntimeError):
            async with uow.transaction() as session:
                await session.items.create_item(InventoryItem(kind=ItemKind.PRODUCT, name="Mug"))
                raise RuntimeError("abort")

        async with uow.read() as session:
            assert await session.items.list_items() == []


class TestPurchaseOrderStore:
    async def test_order_with_lines(self, uow, box):
        order = PurchaseOrder(
            po_number="PO-2026-000001",
            supplier="Uline",
            order_date=date(2026, 2, 1),
            items=[PurchaseOrderItem(packaging_item_id=box.id, quantity=5, unit_cost=Decimal("0.35"))],
        )
        order.recompute_total()

        async with uow.transaction() as session:
            created = await session.orders.create_order(order)

        async with uow.read() as session:
            stored = await session.orders.get_order(created.id)
            by_number = await session.orders.get_order_by_number("PO-2026-000001")

        assert stored.total_cost == Decimal("1.75")
        assert stored.items[0].unit_cost == Decimal("0.35")
        assert stored.items[0].purchase_order_id == created.id
        assert by_number.id == created.id

    async def test_last_order_number_ignores_custom_numbers(self, uow):
        async with uow.transaction() as session:
            for number in ("PO-2026-000002", "PO-2026-000010", "PO-2026-custom", "PO-2025-000099"):
                await session.orders.create_order(PurchaseOrder(po_number=number))
            assert await session.orders.last_order_number("PO-2026-") == "PO-2026-000010"
            assert await session.orders.last_order_number("PO-2024-") is None

    async def test_count_lines_open_only(self, uow, box):
        async with uow.transaction() as session:
            await session.orders.create_order(
                PurchaseOrder(
                    po_number="A",
                    status=PurchaseOrderStatus.COMPLETED,
                    items=[PurchaseOrderItem(packaging_item_id=box.id, quantity=1, unit_cost=Decimal("1"))],
                )
            )
            assert await session.orders.count_lines_for_item(box.id) == 1
            assert await session.orders.count_lines_for_item(box.id, open_only=True) == 0

    async def test_delete_cascades_lines(self, uow, box):
        async with uow.transaction() as session:
            order = await session.orders.create_order(
                PurchaseOrder(
                    po_number="A",
                    items=[PurchaseOrderItem(packaging_item_id=box.id, quantity=1, unit_cost=Decimal("1"))],
                )
            )
            assert await session.orders.delete_order(order.id)
            assert await session.orders.count_lines_for_item(box.id) == 0


class TestReplenishmentStore:
    def _event(self, item_id: int, event_id: str, entry_id: str | None = None) -> ReplenishmentEvent:
        return ReplenishmentEvent(
            id=event_id,
            inventory_item_id=item_id,
            quantity=2,
            batch_cost=Decimal("3.00"),
            shipping=Decimal("0.50"),
            event_date=date(2026, 1, 5),
            bookkeeping_entry_id=entry_id,
        )

    async def test_add_and_list(self, uow, box):
        async with uow.transaction() as session:
            await session.events.add_event(self._event(box.id, "evt-1", "EXP-1"))
            await session.events.add_event(self._event(box.id, "evt-2"))

        async with uow.read() as session:
            events = await session.events.list_for_item(box.id)
            linked = await session.events.find_by_bookkeeping_entry("EXP-1")
            count = await session.events.count_for_item(box.id)

        assert [e.id for e in events] == ["evt-1", "evt-2"]
        assert events[0].shipping == Decimal("0.50")
        assert events[0].event_date == date(2026, 1, 5)
        assert linked.id == "evt-1"
        assert count == 2

    async def test_unique_bookkeeping_link(self, uow, box):
        async with uow.transaction() as session:
            await session.events.add_event(self._event(box.id, "evt-1", "EXP-1"))

        with pytest.raises(DuplicateBookkeepingLinkError) as exc_info:
            async with uow.transaction() as session:
                await session.events.add_event(self._event(box.id, "evt-2", "EXP-1"))
        assert exc_info.value.details["existing_event_id"] == "evt-1"


class TestReconciliationStore:
    async def test_enqueue_and_update(self, uow, box):
        entry = BookkeepingEntry(
            reference_id="evt-1", category="Packaging Materials", amount=Decimal("3.00"), memo="m"
        )
        async with uow.transaction() as session:
            await session.events.add_event(
                ReplenishmentEvent(id="evt-1", inventory_item_id=box.id, quantity=1, batch_cost=Decimal("3"))
            )
            task = await session.reconciliation.enqueue(
                ReconciliationTask(event_id="evt-1", entry=entry, attempts=3, last_error="offline")
            )

        async with uow.read() as session:
            pending = await session.reconciliation.list_tasks(status=ReconciliationStatus.PENDING)
        assert [t.id for t in pending] == [task.id]
        assert pending[0].entry == entry

        task.status = ReconciliationStatus.RESOLVED
        task.resolved_entry_id = "EXP-9"
        async with uow.transaction() as session:
            await session.reconciliation.update_task(task)
            stored = await session.reconciliation.get_task(task.id)

        assert stored.status == ReconciliationStatus.RESOLVED
        assert stored.resolved_entry_id == "EXP-9"


class TestParseDecimal:
    def test_text_and_numeric_values(self):
        assert parse_decimal("1.6666666666666666666666666667") == Decimal(
            "1.6666666666666666666666666667"
        )
        assert parse_decimal(3) == Decimal("3")
        assert parse_decimal(None) == Decimal("0")

    def test_garbage_raises(self):
        with pytest.raises(DatabaseError):
            parse_decimal("twelve")
