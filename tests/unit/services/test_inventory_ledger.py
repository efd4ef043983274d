"""Tests for InventoryLedger against a migrated SQLite database."""

import asyncio
from decimal import Decimal

import pytest

from src.core.entities.inventory import ItemKind, StockStatus
from src.core.entities.purchase_order import PurchaseOrderItem
from src.core.exceptions import (
    InsufficientStockError,
    InvalidCostError,
    InvalidItemKindError,
    InvalidQuantityError,
    ItemInUseError,
    UnknownItemError,
    ValidationError,
)
from src.core.services.inventory_ledger import validate_cost, validate_quantity


class TestValidation:
    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "3", True, None])
    def test_invalid_quantities(self, quantity):
        with pytest.raises(InvalidQuantityError):
            validate_quantity(quantity)

    def test_valid_quantity(self):
        assert validate_quantity(3) == 3

    @pytest.mark.parametrize("cost", [-0.01, "abc", None, Decimal("NaN"), Decimal("Infinity"), False])
    def test_invalid_costs(self, cost):
        with pytest.raises(InvalidCostError):
            validate_cost(cost)

    def test_zero_cost_is_allowed(self):
        assert validate_cost(0) == Decimal("0")

    def test_float_cost_keeps_printed_value(self):
        assert validate_cost(0.1) == Decimal("0.1")


class TestCredit:
    """Tests for credit and the weighted average."""

    async def test_first_credit_takes_batch_cost(self, ledger, make_item):
        item = await make_item()
        assert await ledger.credit(item.id, 10, Decimal("2.00")) == (10, Decimal("2.00"))

    async def test_weighted_average(self, ledger, make_item):
        item = await make_item()
        await ledger.credit(item.id, 10, Decimal("2.00"))
        quantity, unit_cost = await ledger.credit(item.id, 5, Decimal("5.00"))

        assert quantity == 15
        assert unit_cost == Decimal("3")

    async def test_cost_is_persisted_unrounded(self, ledger, make_item):
        item = await make_item()
        await ledger.credit(item.id, 20, Decimal("1.5"))
        await ledger.credit(item.id, 10, Decimal("2"))

        stored = await ledger.get_item(item.id)
        assert stored.unit_cost == Decimal("50") / Decimal("30")
        assert stored.total_value == Decimal("50.00")

    async def test_sets_last_replenished(self, ledger, make_item):
        item = await make_item()
        await ledger.credit(item.id, 1, Decimal("1"))
        assert (await ledger.get_item(item.id)).last_replenished_at is not None

    async def test_concurrent_credits(self, ledger, make_item):
        item = await make_item()

        await asyncio.gather(
            ledger.credit(item.id, 20, Decimal("1.5")),
            ledger.credit(item.id, 10, Decimal("2")),
        )

        stored = await ledger.get_item(item.id)
        assert stored.quantity == 30
        # Order of application does not change the blended cost
        assert stored.unit_cost.quantize(Decimal("0.0001")) == Decimal("1.6667")

    async def test_many_concurrent_credits_lose_nothing(self, ledger, make_item):
        item = await make_item()

        await asyncio.gather(*(ledger.credit(item.id, 1, Decimal("1.00")) for _ in range(25)))

        stored = await ledger.get_item(item.id)
        assert stored.quantity == 25
        assert stored.unit_cost == Decimal("1.00")

    async def test_unknown_item(self, ledger):
        with pytest.raises(UnknownItemError):
            await ledger.credit(999, 1, Decimal("1"))

    async def test_invalid_input_changes_nothing(self, ledger, make_item):
        item = await make_item()
        await ledger.credit(item.id, 5, Decimal("1"))

        with pytest.raises(InvalidQuantityError):
            await ledger.credit(item.id, 0, Decimal("1"))
        with pytest.raises(InvalidCostError):
            await ledger.credit(item.id, 1, Decimal("-1"))

        stored = await ledger.get_item(item.id)
        assert (stored.quantity, stored.unit_cost) == (5, Decimal("1"))


class TestDebit:
    async def test_debit_keeps_cost(self, ledger, make_item):
        item = await make_item()
        await ledger.credit(item.id, 10, Decimal("2.50"))

        assert await ledger.debit(item.id, 4) == (6, Decimal("2.50"))

    async def test_debit_to_zero(self, ledger, make_item):
        item = await make_item()
        await ledger.credit(item.id, 3, Decimal("1"))
        await ledger.debit(item.id, 3)

        stored = await ledger.get_item(item.id)
        assert stored.quantity == 0
        assert stored.stock_status == StockStatus.OUT_OF_STOCK

    async def test_insufficient_stock(self, ledger, make_item):
        item = await make_item()
        await ledger.credit(item.id, 3, Decimal("1"))

        with pytest.raises(InsufficientStockError) as exc_info:
            await ledger.debit(item.id, 4)

        assert exc_info.value.details["available"] == 3
        assert (await ledger.get_item(item.id)).quantity == 3

    async def test_concurrent_debits_never_go_negative(self, ledger, make_item):
        item = await make_item()
        await ledger.credit(item.id, 5, Decimal("1"))

        results = await asyncio.gather(
            *(ledger.debit(item.id, 2) for _ in range(4)),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, InsufficientStockError)]
        assert len(failures) == 2
        assert (await ledger.get_item(item.id)).quantity == 1

    async def test_credit_after_emptying_uses_new_cost(self, ledger, make_item):
        item = await make_item()
        await ledger.credit(item.id, 2, Decimal("10"))
        await ledger.debit(item.id, 2)

        _, unit_cost = await ledger.credit(item.id, 4, Decimal("3"))
        assert unit_cost == Decimal("3")


class TestItemDefinition:
    async def test_define_defaults(self, make_item):
        item = await make_item(ItemKind.PRODUCT, "Ceramic mug")
        assert item.id is not None
        assert item.quantity == 0
        assert item.unit_cost == Decimal("0")
        assert item.reorder_point == 25

    async def test_name_is_required(self, make_item):
        with pytest.raises(ValidationError):
            await make_item(name="   ")

    async def test_duplicate_sku(self, make_item):
        await make_item(sku="BOX-S")
        with pytest.raises(ValidationError) as exc_info:
            await make_item(name="Other box", sku="BOX-S")
        assert exc_info.value.details["field"] == "sku"

    async def test_link_packaging(self, make_item):
        box = await make_item()
        product = await make_item(ItemKind.PRODUCT, "Mug", linked_packaging_id=box.id)
        assert product.linked_packaging_id == box.id

    async def test_link_requires_packaging_kind(self, make_item):
        other = await make_item(ItemKind.PRODUCT, "Plate")
        with pytest.raises(InvalidItemKindError):
            await make_item(ItemKind.PRODUCT, "Mug", linked_packaging_id=other.id)

    async def test_packaging_cannot_link_packaging(self, make_item):
        box = await make_item()
        with pytest.raises(ValidationError):
            await make_item(name="Inner box", linked_packaging_id=box.id)

    async def test_update_details(self, ledger, make_item):
        item = await make_item()
        updated = await ledger.update_item_details(item.id, name="Large box", reorder_point=5)
        assert updated.name == "Large box"
        assert updated.reorder_point == 5

    async def test_update_refuses_quantity_and_cost(self, ledger, make_item):
        item = await make_item()
        with pytest.raises(ValidationError):
            await ledger.update_item_details(item.id, quantity=100)
        with pytest.raises(ValidationError):
            await ledger.update_item_details(item.id, unit_cost=Decimal("1"))

    async def test_list_and_filter(self, ledger, make_item):
        await make_item()
        await make_item(ItemKind.PRODUCT, "Mug")

        assert len(await ledger.list_items()) == 2
        products = await ledger.list_items(kind=ItemKind.PRODUCT)
        assert [p.name for p in products] == ["Mug"]

    async def test_low_stock(self, ledger, make_item):
        low = await make_item(name="Low", reorder_point=10)
        ok = await make_item(name="Ok", reorder_point=10)
        await ledger.credit(low.id, 3, Decimal("1"))
        await ledger.credit(ok.id, 20, Decimal("1"))

        names = {i.name for i in await ledger.list_low_stock()}
        assert names == {"Low"}


class TestDeleteItem:
    async def test_delete_unused(self, ledger, make_item):
        item = await make_item()
        await ledger.delete_item(item.id)
        with pytest.raises(UnknownItemError):
            await ledger.get_item(item.id)

    async def test_delete_with_history(self, ledger, recorder, make_item):
        item = await make_item()
        await recorder.record(item.id, 1, Decimal("1"))
        with pytest.raises(ItemInUseError):
            await ledger.delete_item(item.id)

    async def test_delete_on_purchase_order(self, ledger, engine, make_item):
        item = await make_item()
        await engine.create_order(
            [PurchaseOrderItem(packaging_item_id=item.id, quantity=1, unit_cost=Decimal("1"))]
        )
        with pytest.raises(ItemInUseError) as exc_info:
            await ledger.delete_item(item.id)
        assert "open purchase order" in exc_info.value.details["reason"]

    async def test_delete_linked_packaging(self, ledger, make_item):
        box = await make_item()
        await make_item(ItemKind.PRODUCT, "Mug", linked_packaging_id=box.id)
        with pytest.raises(ItemInUseError):
            await ledger.delete_item(box.id)


class TestCompositeCost:
    async def test_includes_packaging(self, ledger, make_item):
        box = await make_item()
        mug = await make_item(
            ItemKind.PRODUCT, "Mug", linked_packaging_id=box.id, packaging_quantity_per_unit=2
        )
        await ledger.credit(box.id, 10, Decimal("0.25"))
        await ledger.credit(mug.id, 10, Decimal("4.00"))

        assert await ledger.composite_unit_cost(mug.id) == Decimal("4.50")

    async def test_inclusion_turned_off(self, ledger, make_item):
        box = await make_item()
        mug = await make_item(
            ItemKind.PRODUCT, "Mug", linked_packaging_id=box.id, include_packaging_cost=False
        )
        await ledger.credit(box.id, 10, Decimal("0.25"))
        await ledger.credit(mug.id, 10, Decimal("4.00"))

        assert await ledger.composite_unit_cost(mug.id) == Decimal("4.00")

    async def test_requires_product(self, ledger, make_item):
        box = await make_item()
        with pytest.raises(InvalidItemKindError):
            await ledger.composite_unit_cost(box.id)
