"""
Purchase Order Engine.

Drives purchase orders through their lifecycle and applies the side effects
of receiving exactly once.

Receiving runs in two phases:

1. Bookkeeping: one expense entry per line, keyed by a deterministic event id
   derived from the line id. The gateway is idempotent on that key, so a
   retried receive reuses the entries it already created.
2. Stock: under the item locks and a single write transaction, the order is
   re-read, the guard flag re-checked, every line credited through the
   replenishment recorder and the order marked received. Any failure rolls
   the whole batch back.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from src.config import get_logger
from src.core.entities.bookkeeping import BookkeepingEntry, ReconciliationTask
from src.core.entities.inventory import ItemKind
from src.core.entities.purchase_order import (
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
    can_transition,
)
from src.core.entities.replenishment import ReplenishmentEvent
from src.core.exceptions import (
    DuplicatePurchaseOrderError,
    InvalidEntryError,
    InvalidItemKindError,
    InvalidTransitionError,
    OrderLineNotFoundError,
    OrderLockedError,
    OrderNotFoundError,
    UnknownItemError,
    ValidationError,
)
from src.core.interfaces.persistence import ILedgerSession, IUnitOfWork
from src.core.services.bookkeeping import BookkeepingDispatcher, DispatchOutcome
from src.core.services.inventory_ledger import InventoryLedger, validate_cost, validate_quantity
from src.core.services.replenishment_recorder import ReplenishmentRecorder

logger = get_logger(__name__)

# Namespace for receipt event ids; never change it or retries stop matching
RECEIPT_NAMESPACE = uuid.UUID("6f1c2b8e-3d4a-5e6f-9a0b-1c2d3e4f5a6b")

ORDER_DETAIL_FIELDS = frozenset({"supplier", "expected_delivery", "notes"})
LINE_FIELDS = frozenset({"packaging_item_id", "quantity", "unit_cost", "supplier", "notes"})


def receipt_event_id(line_id: int) -> str:
    """Deterministic replenishment event id for a purchase order line."""
    return str(uuid.uuid5(RECEIPT_NAMESPACE, f"purchase-order-item:{line_id}"))


@dataclass
class StatusChangeResult:
    """Result of an ``advance_status`` call."""

    order: PurchaseOrder
    previous_status: PurchaseOrderStatus
    changed: bool
    events: list[ReplenishmentEvent] = field(default_factory=list)
    reconciliation_tasks: list[ReconciliationTask] = field(default_factory=list)


@dataclass
class _LineBooking:
    line: PurchaseOrderItem
    event_id: str
    entry: BookkeepingEntry
    outcome: DispatchOutcome


class PurchaseOrderEngine:
    """
    Service for purchase order management.

    Handles:
    - Order creation with generated PO numbers
    - Line edits while the order is pending or confirmed
    - The status state machine
    - Exactly-once stock and bookkeeping side effects on receipt
    """

    def __init__(
        self,
        uow: IUnitOfWork,
        ledger: InventoryLedger,
        recorder: ReplenishmentRecorder,
        dispatcher: BookkeepingDispatcher,
        packaging_category: str = "Packaging Materials",
        po_number_prefix: str = "PO",
    ):
        self._uow = uow
        self._ledger = ledger
        self._recorder = recorder
        self._dispatcher = dispatcher
        self._packaging_category = packaging_category
        self._po_number_prefix = po_number_prefix

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def create_order(
        self,
        items: list[PurchaseOrderItem] | None = None,
        supplier: str | None = None,
        po_number: str | None = None,
        order_date: date | None = None,
        expected_delivery: date | None = None,
        notes: str | None = None,
    ) -> PurchaseOrder:
        """
        Create a pending purchase order.

        Generates ``<prefix>-<year>-<sequence>`` when no PO number is given.
        """
        order_date = order_date or date.today()
        lines = list(items or [])
        for line in lines:
            self._validate_line_values(line)

        async with self._uow.transaction() as session:
            for line in lines:
                await self._require_packaging(session, line.packaging_item_id)

            if po_number:
                po_number = po_number.strip()
                if await session.orders.get_order_by_number(po_number) is not None:
                    raise DuplicatePurchaseOrderError(po_number)
            else:
                po_number = await self._next_po_number(session, order_date.year)

            order = PurchaseOrder(
                po_number=po_number,
                supplier=supplier,
                order_date=order_date,
                expected_delivery=expected_delivery,
                notes=notes,
                items=[line.model_copy(update={"id": None, "purchase_order_id": None}) for line in lines],
            )
            order.recompute_total()
            order = await session.orders.create_order(order)

        logger.info(
            "purchase_order_created",
            po_id=order.id,
            po_number=order.po_number,
            lines=len(order.items),
            total_cost=order.total_cost,
        )
        return order

    async def get_order(self, po_id: int) -> PurchaseOrder:
        async with self._uow.read() as session:
            return await self._require_order(session, po_id)

    async def list_orders(
        self,
        status: PurchaseOrderStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[PurchaseOrder]:
        async with self._uow.read() as session:
            return await session.orders.list_orders(status=status, limit=limit, offset=offset)

    async def update_details(self, po_id: int, **changes: Any) -> PurchaseOrder:
        """Change supplier, expected delivery or notes. Refused once cancelled."""
        unknown = set(changes) - ORDER_DETAIL_FIELDS
        if unknown:
            name = sorted(unknown)[0]
            raise ValidationError(name, "field cannot be changed directly", changes[name])

        async with self._uow.transaction() as session:
            order = await self._require_order(session, po_id)
            if order.status == PurchaseOrderStatus.CANCELLED:
                raise OrderLockedError(po_id, order.status.value, "update details")
            for name, value in changes.items():
                setattr(order, name, value)
            order.updated_at = datetime.utcnow()
            order = await session.orders.update_order(order)

        logger.info("purchase_order_updated", po_id=po_id, fields=sorted(changes))
        return order

    async def delete_order(self, po_id: int) -> None:
        """Hard-delete a pending or cancelled order together with its lines."""
        async with self._uow.transaction() as session:
            order = await self._require_order(session, po_id)
            if not order.is_deletable:
                raise OrderLockedError(po_id, order.status.value, "delete")
            await session.orders.delete_order(po_id)

        logger.info("purchase_order_deleted", po_id=po_id, po_number=order.po_number)

    # ------------------------------------------------------------------
    # Lines
    # ------------------------------------------------------------------

    async def add_item(
        self,
        po_id: int,
        packaging_item_id: int,
        quantity: int,
        unit_cost: Decimal,
        supplier: str | None = None,
        notes: str | None = None,
    ) -> PurchaseOrder:
        """Add a line and recompute the order total."""
        line = PurchaseOrderItem(
            purchase_order_id=po_id,
            packaging_item_id=packaging_item_id,
            quantity=validate_quantity(quantity, packaging_item_id),
            unit_cost=validate_cost(unit_cost, packaging_item_id),
            supplier=supplier,
            notes=notes,
        )

        async with self._uow.transaction() as session:
            order = await self._require_editable(session, po_id, "add item")
            await self._require_packaging(session, packaging_item_id)
            line = await session.orders.add_line(line)
            order.items.append(line)
            order = await self._save_total(session, order)

        logger.info("purchase_order_line_added", po_id=po_id, line_id=line.id, total_cost=order.total_cost)
        return order

    async def update_item(self, po_id: int, line_id: int, **changes: Any) -> PurchaseOrder:
        """Change a line's item, quantity, unit cost, supplier or notes."""
        unknown = set(changes) - LINE_FIELDS
        if unknown:
            name = sorted(unknown)[0]
            raise ValidationError(name, "field cannot be changed on a line", changes[name])

        async with self._uow.transaction() as session:
            order = await self._require_editable(session, po_id, "update item")
            line = order.get_line(line_id)
            if line is None:
                raise OrderLineNotFoundError(po_id, line_id)

            for name, value in changes.items():
                setattr(line, name, value)
            self._validate_line_values(line)
            if "packaging_item_id" in changes:
                await self._require_packaging(session, line.packaging_item_id)

            await session.orders.update_line(line)
            order = await self._save_total(session, order)

        logger.info("purchase_order_line_updated", po_id=po_id, line_id=line_id, total_cost=order.total_cost)
        return order

    async def remove_item(self, po_id: int, line_id: int) -> PurchaseOrder:
        async with self._uow.transaction() as session:
            order = await self._require_editable(session, po_id, "remove item")
            if order.get_line(line_id) is None:
                raise OrderLineNotFoundError(po_id, line_id)

            await session.orders.delete_line(line_id)
            order.items = [line for line in order.items if line.id != line_id]
            order = await self._save_total(session, order)

        logger.info("purchase_order_line_removed", po_id=po_id, line_id=line_id, total_cost=order.total_cost)
        return order

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    async def advance_status(
        self,
        po_id: int,
        new_status: PurchaseOrderStatus | str,
    ) -> StatusChangeResult:
        """
        Move an order to ``new_status``.

        Requesting ``received`` on an order whose receipt side effects were
        already applied succeeds without doing anything.

        Raises:
            OrderNotFoundError: Order does not exist
            InvalidTransitionError: Not an allowed edge; status unchanged
            InvalidEntryError: Bookkeeping rejected a receipt entry; nothing applied
        """
        try:
            requested = PurchaseOrderStatus(new_status)
        except ValueError:
            raise ValidationError("status", "unknown purchase order status", new_status) from None

        async with self._uow.read() as session:
            order = await self._require_order(session, po_id)

        if requested == PurchaseOrderStatus.RECEIVED:
            if order.received_side_effects_applied:
                logger.info("purchase_order_receive_skipped", po_id=po_id, status=order.status.value)
                return StatusChangeResult(order=order, previous_status=order.status, changed=False)
            self._check_transition(order, requested)
            return await self._receive(order)

        self._check_transition(order, requested)

        async with self._uow.transaction() as session:
            order = await self._require_order(session, po_id)
            previous = order.status
            self._check_transition(order, requested)
            order.status = requested
            order.updated_at = datetime.utcnow()
            order = await session.orders.update_order(order)

        logger.info(
            "purchase_order_status_changed",
            po_id=po_id,
            po_number=order.po_number,
            from_status=previous.value,
            to_status=requested.value,
        )
        return StatusChangeResult(order=order, previous_status=previous, changed=True)

    async def _receive(self, order: PurchaseOrder) -> StatusChangeResult:
        po_id = order.id
        try:
            bookings = await self._book_receipt(order)
        except InvalidEntryError as e:
            logger.error("purchase_order_receive_rejected", po_id=po_id, error=e.message)
            raise
        item_ids = [line.packaging_item_id for line in order.items]

        async with self._ledger.locked(*item_ids):
            async with self._uow.transaction() as session:
                current = await self._require_order(session, po_id)

                if current.received_side_effects_applied:
                    # Another request finished the receipt first
                    logger.info("purchase_order_receive_skipped", po_id=po_id, status=current.status.value)
                    return StatusChangeResult(
                        order=current, previous_status=current.status, changed=False
                    )

                entry_ids = [b.outcome.entry_id for b in bookings.values() if b.outcome.recorded]
                if not can_transition(current.status, PurchaseOrderStatus.RECEIVED) or {
                    line.id for line in current.items
                } != set(bookings):
                    if entry_ids:
                        logger.error(
                            "bookkeeping_entries_orphaned",
                            po_id=po_id,
                            status=current.status.value,
                            entry_ids=entry_ids,
                        )
                    error = InvalidTransitionError(
                        po_id,
                        current.status.value,
                        PurchaseOrderStatus.RECEIVED.value,
                        reason="order changed while it was being received",
                    )
                    error.details["orphaned_entry_ids"] = entry_ids
                    raise error

                previous = current.status
                received_on = date.today()
                events: list[ReplenishmentEvent] = []
                tasks: list[ReconciliationTask] = []

                for line in current.items:
                    booking = bookings[line.id]
                    event = await self._recorder.record_in(
                        session,
                        ReplenishmentEvent(
                            id=booking.event_id,
                            inventory_item_id=line.packaging_item_id,
                            quantity=line.quantity,
                            batch_cost=line.total_cost,
                            event_date=received_on,
                            source_purchase_order_item_id=line.id,
                            bookkeeping_entry_id=booking.outcome.entry_id,
                            comments=f"Received on {current.po_number}",
                        ),
                        unit_cost=line.unit_cost,
                    )
                    events.append(event)

                    if not booking.outcome.recorded:
                        task = await session.reconciliation.enqueue(
                            ReconciliationTask(
                                event_id=event.id,
                                entry=booking.entry,
                                attempts=booking.outcome.attempts,
                                last_error=booking.outcome.error,
                            )
                        )
                        tasks.append(task)
                        logger.warning(
                            "bookkeeping_reconciliation_queued",
                            po_id=po_id,
                            line_id=line.id,
                            event_id=event.id,
                        )

                await self._reactivate_packaging(session, item_ids)

                current.actual_delivery = received_on
                current.received_side_effects_applied = True
                current.status = PurchaseOrderStatus.RECEIVED
                current.updated_at = datetime.utcnow()
                current = await session.orders.update_order(current)

        logger.info(
            "purchase_order_received",
            po_id=po_id,
            po_number=current.po_number,
            lines=len(events),
            total_cost=current.total_cost,
            pending_reconciliation=len(tasks),
        )
        return StatusChangeResult(
            order=current,
            previous_status=previous,
            changed=True,
            events=events,
            reconciliation_tasks=tasks,
        )

    async def _book_receipt(self, order: PurchaseOrder) -> dict[int, _LineBooking]:
        """Create (or find) the bookkeeping entry for every line."""
        async with self._uow.read() as session:
            names = {}
            for line in order.items:
                item = await session.items.get_item(line.packaging_item_id)
                names[line.id] = item.name if item else f"item {line.packaging_item_id}"

        bookings: dict[int, _LineBooking] = {}
        for line in order.items:
            event_id = receipt_event_id(line.id)
            entry = BookkeepingEntry(
                reference_id=event_id,
                category=self._packaging_category,
                amount=line.total_cost,
                entry_date=date.today(),
                memo=f"{order.po_number}: {line.quantity} x {names[line.id]}",
            )
            outcome = await self._dispatcher.deliver(entry)
            bookings[line.id] = _LineBooking(line=line, event_id=event_id, entry=entry, outcome=outcome)
        return bookings

    @staticmethod
    async def _reactivate_packaging(session: ILedgerSession, item_ids: list[int]) -> None:
        for item_id in sorted(set(item_ids)):
            item = await session.items.get_item(item_id)
            if item is not None and item.kind == ItemKind.PACKAGING and not item.is_active:
                item.is_active = True
                await session.items.update_item(item)
                logger.info("packaging_reactivated", item_id=item_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_transition(order: PurchaseOrder, requested: PurchaseOrderStatus) -> None:
        if not can_transition(order.status, requested):
            raise InvalidTransitionError(order.id, order.status.value, requested.value)

    @staticmethod
    async def _require_order(session: ILedgerSession, po_id: int) -> PurchaseOrder:
        order = await session.orders.get_order(po_id)
        if order is None:
            raise OrderNotFoundError(po_id)
        return order

    async def _require_editable(
        self, session: ILedgerSession, po_id: int, operation: str
    ) -> PurchaseOrder:
        order = await self._require_order(session, po_id)
        if not order.is_editable:
            raise OrderLockedError(po_id, order.status.value, operation)
        return order

    @staticmethod
    async def _require_packaging(session: ILedgerSession, item_id: int) -> None:
        item = await session.items.get_item(item_id)
        if item is None:
            raise UnknownItemError(item_id)
        if item.kind != ItemKind.PACKAGING:
            raise InvalidItemKindError(item_id, expected=ItemKind.PACKAGING.value, actual=item.kind.value)

    @staticmethod
    def _validate_line_values(line: PurchaseOrderItem) -> None:
        validate_quantity(line.quantity, line.packaging_item_id)
        line.unit_cost = validate_cost(line.unit_cost, line.packaging_item_id)

    @staticmethod
    async def _save_total(session: ILedgerSession, order: PurchaseOrder) -> PurchaseOrder:
        order.recompute_total()
        order.updated_at = datetime.utcnow()
        return await session.orders.update_order(order)

    async def _next_po_number(self, session: ILedgerSession, year: int) -> str:
        prefix = f"{self._po_number_prefix}-{year}-"
        last = await session.orders.last_order_number(prefix)
        sequence = int(last[len(prefix):]) + 1 if last else 1
        return f"{prefix}{sequence:06d}"
