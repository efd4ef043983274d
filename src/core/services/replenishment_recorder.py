"""
Replenishment Recorder.

Append-only stock-in log. Each recorded event credits the inventory ledger in
the same transaction, so the event history always explains the current
quantity and weighted average cost of an item.
"""

import uuid
from datetime import date
from decimal import Decimal

from src.config import get_logger
from src.core import cost_math
from src.core.entities.bookkeeping import BookkeepingEntry, ReconciliationTask
from src.core.entities.inventory import ItemKind
from src.core.entities.replenishment import ReplenishmentEvent
from src.core.exceptions import (
    DuplicateBookkeepingLinkError,
    UnknownItemError,
    ValidationError,
)
from src.core.interfaces.persistence import ILedgerSession, IUnitOfWork
from src.core.services.bookkeeping import BookkeepingDispatcher, DispatchOutcome
from src.core.services.inventory_ledger import InventoryLedger, validate_cost, validate_quantity

logger = get_logger(__name__)


class ReplenishmentRecorder:
    """Records stock-in events and applies them to the ledger."""

    def __init__(
        self,
        uow: IUnitOfWork,
        ledger: InventoryLedger,
        dispatcher: BookkeepingDispatcher | None = None,
        packaging_category: str = "Packaging Materials",
        product_category: str = "Stock Purchases",
    ):
        self._uow = uow
        self._ledger = ledger
        self._dispatcher = dispatcher
        self._categories = {
            ItemKind.PACKAGING: packaging_category,
            ItemKind.PRODUCT: product_category,
        }

    async def record(
        self,
        item_id: int,
        quantity: int,
        batch_cost: Decimal,
        *,
        shipping: Decimal = Decimal("0"),
        vat: Decimal = Decimal("0"),
        event_date: date | None = None,
        source_purchase_order_item_id: int | None = None,
        bookkeeping_entry_id: str | None = None,
        book_expense: bool = False,
        invoice_link: str | None = None,
        comments: str | None = None,
    ) -> ReplenishmentEvent:
        """
        Record a manual replenishment.

        Args:
            item_id: Inventory item receiving stock
            quantity: Units received
            batch_cost: Landed cost of the batch (shipping and VAT included)
            shipping: Shipping share of ``batch_cost``
            vat: VAT share of ``batch_cost``
            bookkeeping_entry_id: Link an expense that already exists
            book_expense: Create a new expense entry for this batch

        Returns:
            The appended event, carrying its bookkeeping entry id if one was linked
        """
        event = self._build_event(
            event_id=str(uuid.uuid4()),
            item_id=item_id,
            quantity=quantity,
            batch_cost=batch_cost,
            shipping=shipping,
            vat=vat,
            event_date=event_date,
            source_purchase_order_item_id=source_purchase_order_item_id,
            bookkeeping_entry_id=bookkeeping_entry_id,
            invoice_link=invoice_link,
            comments=comments,
        )
        if book_expense and bookkeeping_entry_id:
            raise ValidationError(
                "book_expense",
                "cannot book a new expense and link an existing one",
                bookkeeping_entry_id,
            )

        entry: BookkeepingEntry | None = None
        outcome: DispatchOutcome | None = None
        if book_expense:
            if self._dispatcher is None:
                raise ValidationError("book_expense", "no bookkeeping gateway configured", True)
            async with self._uow.read() as session:
                item = await session.items.get_item(item_id)
            if item is None:
                raise UnknownItemError(item_id)
            entry = BookkeepingEntry(
                reference_id=event.id,
                category=self._categories[item.kind],
                amount=cost_math.to_money(event.batch_cost),
                entry_date=event.event_date,
                memo=f"Replenishment: {event.quantity} x {item.name}",
            )
            outcome = await self._dispatcher.deliver(entry)
            event.bookkeeping_entry_id = outcome.entry_id

        async with self._ledger.locked(item_id):
            async with self._uow.transaction() as session:
                event = await self.record_in(session, event)
                if entry is not None and outcome is not None and not outcome.recorded:
                    await session.reconciliation.enqueue(
                        ReconciliationTask(
                            event_id=event.id,
                            entry=entry,
                            attempts=outcome.attempts,
                            last_error=outcome.error,
                        )
                    )
                    logger.warning(
                        "bookkeeping_reconciliation_queued",
                        event_id=event.id,
                        item_id=item_id,
                    )

        return event

    async def record_in(
        self,
        session: ILedgerSession,
        event: ReplenishmentEvent,
        unit_cost: Decimal | None = None,
    ) -> ReplenishmentEvent:
        """
        Append ``event`` and credit its item inside an open session.

        The caller must hold the ledger lock for ``event.inventory_item_id``.
        ``unit_cost`` replaces the event's rounded ``batch_unit_cost`` as the
        credit cost when the caller knows the exact per-unit price.
        """
        validate_quantity(event.quantity, event.inventory_item_id)
        validate_cost(event.batch_cost, event.inventory_item_id, field="batch_cost")

        if event.bookkeeping_entry_id:
            linked = await session.events.find_by_bookkeeping_entry(event.bookkeeping_entry_id)
            if linked is not None:
                raise DuplicateBookkeepingLinkError(event.bookkeeping_entry_id, linked.id)

        await self._ledger.apply_credit(
            session,
            event.inventory_item_id,
            event.quantity,
            event.batch_unit_cost if unit_cost is None else unit_cost,
            received_on=event.event_date,
        )
        event = await session.events.add_event(event)

        logger.info(
            "replenishment_recorded",
            event_id=event.id,
            item_id=event.inventory_item_id,
            quantity=event.quantity,
            batch_cost=event.batch_cost,
            source_purchase_order_item_id=event.source_purchase_order_item_id,
            bookkeeping_entry_id=event.bookkeeping_entry_id,
        )
        return event

    async def history(self, item_id: int) -> list[ReplenishmentEvent]:
        """Events for an item, oldest first."""
        async with self._uow.read() as session:
            if await session.items.get_item(item_id) is None:
                raise UnknownItemError(item_id)
            return await session.events.list_for_item(item_id)

    @staticmethod
    def _build_event(
        event_id: str,
        item_id: int,
        quantity: int,
        batch_cost: Decimal,
        shipping: Decimal,
        vat: Decimal,
        event_date: date | None,
        source_purchase_order_item_id: int | None,
        bookkeeping_entry_id: str | None,
        invoice_link: str | None,
        comments: str | None,
    ) -> ReplenishmentEvent:
        validate_quantity(quantity, item_id)
        total = validate_cost(batch_cost, item_id, field="batch_cost")
        shipping = validate_cost(shipping, item_id, field="shipping")
        vat = validate_cost(vat, item_id, field="vat")
        if shipping + vat > total:
            raise ValidationError(
                "batch_cost",
                "shipping and VAT are part of the batch cost and cannot exceed it",
                total,
            )

        return ReplenishmentEvent(
            id=event_id,
            inventory_item_id=item_id,
            quantity=quantity,
            batch_cost=total,
            shipping=shipping,
            vat=vat,
            event_date=event_date or date.today(),
            source_purchase_order_item_id=source_purchase_order_item_id,
            bookkeeping_entry_id=bookkeeping_entry_id or None,
            invoice_link=invoice_link,
            comments=comments,
        )
