# inbound_desk/services/order_detail.py
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from inbound_desk.clients.base import DataApi, DataApiError
from inbound_desk.schemas.damage_report import DamageReport
from inbound_desk.schemas.inbound import InboundLineItem, InboundOrder, Location, OrderStatus, RejectionReason
from inbound_desk.schemas.pallet import Pallet
from inbound_desk.schemas.workflow_rules import WorkflowRules
from inbound_desk.services import damage_reports as damage_svc
from inbound_desk.services.order_status import OrderStatusTracker, TransitionResult
from inbound_desk.services.putaway_service import PutAwaySession
from inbound_desk.services.receive_modal import (
    ReceiveMode,
    ReceiveModal,
    ReceiveOutcome,
    is_lot_tracking_required,
)
from inbound_desk.services.reconciliation import OrderReconciliation, reconcile_order
from inbound_desk.services.workflow_errors import ReceiveValidationError, RecordNotFound

logger = logging.getLogger(__name__)

ORDER_NOT_FOUND = "Order not found"
ORDER_LOAD_FAILED = "Failed to load order"


class OrderDetailPage:
    """
    Controller of the inbound order detail screen.

    Owns the loaded order plus everything hanging off it: locations,
    damage reports, client workflow rules, the status tracker, the open
    receive dialog (at most one) and the put-away session.

    Every write is followed by a refetch; the page never patches the
    order locally.
    """

    def __init__(self, api: DataApi, order_id: str, *, enforce_qty_invariant: bool = True) -> None:
        self.api = api
        self.order_id = order_id
        self.enforce_qty_invariant = enforce_qty_invariant

        self.order: Optional[InboundOrder] = None
        self.locations: List[Location] = []
        self.damage_reports: List[DamageReport] = []
        self.rules: WorkflowRules = WorkflowRules.disabled()
        self.receive_location_id: Optional[str] = None

        self.tracker: Optional[OrderStatusTracker] = None
        self.modal: Optional[ReceiveModal] = None
        self.putaway: Optional[PutAwaySession] = None

        self.loading = False
        self.error: Optional[str] = None
        self.message: Optional[str] = None

    # ------------------------------------------------------------------ #
    # loading
    # ------------------------------------------------------------------ #
    async def load(self) -> "OrderDetailPage":
        self.loading = True
        self.error = None
        try:
            order, locations, reports = await asyncio.gather(
                self.api.get_inbound_order(self.order_id),
                self.api.get_locations(),
                damage_svc.list_for_order(self.api, self.order_id),
            )
        except DataApiError as e:
            logger.error("failed to load inbound order %s: %s", self.order_id, e.message)
            self.error = ORDER_LOAD_FAILED
            return self
        finally:
            self.loading = False

        if order is None:
            self.error = ORDER_NOT_FOUND
            return self

        self._set_order(order)
        self.locations = [loc for loc in locations if loc.active]
        self.damage_reports = reports
        if len(self.locations) == 1 and not self.receive_location_id:
            self.receive_location_id = self.locations[0].id

        if order.has_client:
            try:
                self.rules = await self.api.get_inbound_workflow_rules_for_order(order.id)
            except DataApiError as e:
                # rules are optional; receiving proceeds unconstrained
                logger.error("failed to fetch workflow rules for %s: %s", order.id, e.message)
                self.rules = WorkflowRules.disabled()
        return self

    def _set_order(self, order: InboundOrder) -> None:
        self.order = order
        if self.tracker is None:
            self.tracker = OrderStatusTracker(self.api, order, refetch=self.refetch)
        else:
            self.tracker.order = order

    async def refetch(self) -> Optional[InboundOrder]:
        order, reports = await asyncio.gather(
            self.api.get_inbound_order(self.order_id),
            damage_svc.list_for_order(self.api, self.order_id),
        )
        self.damage_reports = reports
        if order is None:
            self.error = ORDER_NOT_FOUND
            return None
        self._set_order(order)
        return order

    @property
    def found(self) -> bool:
        return self.order is not None

    def require_order(self) -> InboundOrder:
        if self.order is None:
            raise RecordNotFound(self.error or ORDER_NOT_FOUND)
        return self.order

    def require_tracker(self) -> OrderStatusTracker:
        self.require_order()
        if self.tracker is None:
            raise RecordNotFound(self.error or ORDER_NOT_FOUND)
        return self.tracker

    def require_item(self, item_id: str) -> InboundLineItem:
        item = self.require_order().find_item(item_id)
        if item is None:
            raise RecordNotFound(f"line item {item_id} not found on order {self.order_id}")
        return item

    # ------------------------------------------------------------------ #
    # read model
    # ------------------------------------------------------------------ #
    @property
    def reconciliation(self) -> OrderReconciliation:
        return reconcile_order(self.require_order(), self.damage_reports)

    def damaged_qty(self, item: InboundLineItem) -> int:
        order = self.require_order()
        return damage_svc.damaged_for_order(self.damage_reports, order.id).get(item.product_id, 0)

    def open_qty(self, item: InboundLineItem) -> int:
        """Quantity that can still be received, rejected or reported damaged."""
        return max(0, item.qty_expected - item.qty_received - (item.qty_rejected or 0) - self.damaged_qty(item))

    def select_location(self, location_id: str) -> None:
        if self.locations and not any(loc.id == location_id for loc in self.locations):
            raise ReceiveValidationError(f"unknown receiving location {location_id}", code="unknown_location")
        self.receive_location_id = location_id
        if self.modal is not None:
            self.modal.location_id = location_id

    # ------------------------------------------------------------------ #
    # status
    # ------------------------------------------------------------------ #
    async def transition(self, target: OrderStatus) -> TransitionResult:
        result = await self.require_tracker().transition(OrderStatus(target))
        self.message = result.error
        return result

    async def mark_complete(self) -> TransitionResult:
        result = await self.require_tracker().mark_complete()
        self.message = result.error
        return result

    async def _after_receive(self, order: Optional[InboundOrder], location_id: Optional[str]) -> None:
        """Auto-complete check; put-away starts once the order flips to received."""
        if order is None or self.tracker is None:
            return
        result = await self.tracker.auto_complete(order)
        if result is not None and result.ok and location_id:
            await self.start_putaway(location_id)

    # ------------------------------------------------------------------ #
    # receive
    # ------------------------------------------------------------------ #
    def prepare_receive(self, item_id: str) -> ReceiveModal:
        """Bind a blank receive dialog to the line without loading defaults."""
        order = self.require_order()
        item = self.require_item(item_id)
        self.modal = ReceiveModal(
            self.api,
            order,
            item,
            self.rules,
            location_id=self.receive_location_id,
            qty_damaged=self.damaged_qty(item),
            enforce_qty_invariant=self.enforce_qty_invariant,
        )
        return self.modal

    async def open_receive(self, item_id: str) -> ReceiveModal:
        return await self.prepare_receive(item_id).open()

    def close_receive(self) -> None:
        if self.modal is not None:
            self.modal.close()
        self.modal = None

    async def submit_receive(self) -> ReceiveOutcome:
        if self.modal is None:
            raise ReceiveValidationError("No receive dialog is open", code="no_receive_dialog")
        modal = self.modal
        location_id = modal.location_id

        try:
            outcome = await modal.submit()
        except ReceiveValidationError as e:
            self.message = e.message
            raise

        if outcome.applied_any:
            fresh = await self.refetch()
            if outcome.ok:
                await self._after_receive(fresh, location_id)

        if outcome.ok:
            if outcome.mode == ReceiveMode.PALLET:
                await modal.load_pallets()
            self.close_receive()
        self.message = outcome.message
        return outcome

    async def receive_all(self, item_id: str) -> Optional[ReceiveModal]:
        """
        One-click receive of the whole line.

        Returns the opened receive dialog when one is needed instead (lot
        tracked item, or no receiving location yet); None when received.
        """
        item = self.require_item(item_id)
        if is_lot_tracking_required(item, self.rules) or not self.receive_location_id:
            return await self.open_receive(item_id)

        target = item.qty_expected
        if self.enforce_qty_invariant:
            target = item.qty_received + self.open_qty(item)
            if target <= item.qty_received:
                raise ReceiveValidationError("Nothing left to receive on this line", code="nothing_to_receive")

        location_id = self.receive_location_id
        try:
            await self.api.receive_inbound_item(item.id, target, location_id)
        except DataApiError as e:
            logger.error("receive all failed for item %s: %s", item.id, e.message)
            self.message = e.message
            raise
        logger.info("received item %s in full: %s", item.id, target)

        fresh = await self.refetch()
        await self._after_receive(fresh, location_id)
        return None

    # ------------------------------------------------------------------ #
    # reject / damage / pallets
    # ------------------------------------------------------------------ #
    def _check_adjustment(self, item: InboundLineItem, qty: int, what: str) -> None:
        if qty <= 0:
            raise ReceiveValidationError(f"Enter a quantity to {what}", code="quantity_required")
        if self.enforce_qty_invariant and qty > self.open_qty(item):
            raise ReceiveValidationError(
                f"Cannot {what} {qty}: only {self.open_qty(item)} of {item.qty_expected} still open",
                code="qty_exceeds_expected",
                context={"item_id": item.id, "open_qty": self.open_qty(item)},
            )

    async def reject(
        self, item_id: str, qty: int, reason: RejectionReason, notes: Optional[str] = None
    ) -> InboundOrder:
        item = self.require_item(item_id)
        self._check_adjustment(item, qty, "reject")
        try:
            await self.api.reject_inbound_item(item.id, qty, RejectionReason(reason).value, notes or None)
        except DataApiError as e:
            logger.error("reject failed for item %s: %s", item.id, e.message)
            self.message = e.message
            raise
        logger.info("rejected %s of item %s (%s)", qty, item.id, RejectionReason(reason).value)
        await self.refetch()
        return self.require_order()

    async def report_damage(
        self,
        item_id: str,
        qty: int,
        damage_type: str = "physical",
        description: Optional[str] = None,
    ) -> DamageReport:
        item = self.require_item(item_id)
        self._check_adjustment(item, qty, "report damaged")
        try:
            report = await damage_svc.report_damage(
                self.api,
                order_id=self.order_id,
                product_id=item.product_id,
                quantity=qty,
                damage_type=damage_type,
                description=description or None,
            )
        except DataApiError as e:
            logger.error("damage report failed for item %s: %s", item.id, e.message)
            self.message = e.message
            raise
        await self.refetch()
        return report

    async def create_pallet(self) -> Pallet:
        order = self.require_order()
        if self.modal is not None:
            return await self.modal.create_pallet()
        if not self.receive_location_id:
            raise ReceiveValidationError("Select a receiving location first", code="location_required")
        try:
            pallet = await self.api.create_pallet_for_receiving(
                location_id=self.receive_location_id,
                inbound_order_id=order.id,
                notes=f"Created for inbound {order.po_number or order.id}",
            )
        except DataApiError as e:
            logger.error("failed to create pallet for order %s: %s", order.id, e.message)
            self.message = e.message
            raise
        return pallet

    # ------------------------------------------------------------------ #
    # put-away
    # ------------------------------------------------------------------ #
    async def start_putaway(self, location_id: Optional[str] = None) -> PutAwaySession:
        order = self.require_order()
        loc = location_id or self.receive_location_id
        if not loc:
            raise ReceiveValidationError("Select a receiving location first", code="location_required")
        self.putaway = await PutAwaySession(self.api, order, loc).initialize()
        return self.putaway
