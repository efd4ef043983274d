"""Tests for inventory entities."""

from decimal import Decimal

import pytest

from src.core.entities.inventory import InventoryItem, ItemKind, StockStatus


class TestInventoryItem:
    """Tests for InventoryItem entity."""

    def test_defaults(self):
        """Test default values."""
        item = InventoryItem(kind=ItemKind.PACKAGING, name="Poly mailer")
        assert item.id is None
        assert item.quantity == 0
        assert item.unit_cost == Decimal("0")
        assert item.reorder_point == 25
        assert item.is_active is True
        assert item.last_replenished_at is None

    def test_total_value_rounds_to_cents(self):
        item = InventoryItem(
            kind=ItemKind.PACKAGING,
            name="Tape",
            quantity=30,
            unit_cost=Decimal("50") / Decimal("30"),
        )
        assert item.total_value == Decimal("50.00")

    def test_total_value_zero_quantity(self):
        item = InventoryItem(kind=ItemKind.PRODUCT, name="Mug", unit_cost=Decimal("4"))
        assert item.total_value == Decimal("0.00")

    def test_has_linked_packaging(self):
        product = InventoryItem(kind=ItemKind.PRODUCT, name="Mug", linked_packaging_id=3)
        assert product.has_linked_packaging
        assert not InventoryItem(kind=ItemKind.PRODUCT, name="Mug").has_linked_packaging


class TestStockStatus:
    """Quantity-derived states win over the manual flag."""

    @pytest.mark.parametrize(
        ("quantity", "is_active", "expected"),
        [
            (0, True, StockStatus.OUT_OF_STOCK),
            (0, False, StockStatus.OUT_OF_STOCK),
            (10, True, StockStatus.LOW_STOCK),
            (10, False, StockStatus.LOW_STOCK),
            (25, True, StockStatus.ACTIVE),
            (100, False, StockStatus.INACTIVE),
        ],
    )
    def test_status(self, quantity, is_active, expected):
        item = InventoryItem(
            kind=ItemKind.PACKAGING,
            name="Box",
            quantity=quantity,
            reorder_point=25,
            is_active=is_active,
        )
        assert item.stock_status == expected

    def test_zero_reorder_point(self):
        item = InventoryItem(kind=ItemKind.PACKAGING, name="Box", quantity=1, reorder_point=0)
        assert item.stock_status == StockStatus.ACTIVE
