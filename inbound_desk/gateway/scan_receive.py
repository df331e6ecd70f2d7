# inbound_desk/gateway/scan_receive.py
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Dict, Optional

from inbound_desk.clients.base import DataApi, DataApiError
from inbound_desk.gateway.audio import AudioFeedback
from inbound_desk.gateway.barcode import NotFound, ResolvedProduct, parse_gs1
from inbound_desk.gateway.scan_events import ScanEventLogger
from inbound_desk.gateway.scanner_base import Scanner, ScanStatus
from inbound_desk.schemas.inbound import InboundLineItem, InboundOrder
from inbound_desk.schemas.scan import ScanEventIn, ScanResult, ScanType, WorkflowStage
from inbound_desk.schemas.workflow_rules import WorkflowRules
from inbound_desk.services.receive_modal import is_lot_tracking_required
from inbound_desk.services.workflow_errors import RecordNotFound, ScanStateError

logger = logging.getLogger(__name__)

INBOUND_ORDER_REFERENCE = "inbound_order"


def default_expiration(item: InboundLineItem, today: Optional[date] = None) -> Optional[date]:
    days = item.product.default_expiration_days if item.product else None
    if not days:
        return None
    return (today or date.today()) + timedelta(days=days)


class ReceivingScanner(Scanner):
    """
    Scan-to-receive against one inbound order.

    A product scan picks the matching line (not_found / not_expected
    otherwise). Lot-tracked lines go through lot entry first. The pending
    quantity never exceeds what is still open on the line.
    """

    stage = WorkflowStage.RECEIVING

    def __init__(
        self,
        api: DataApi,
        order_id: str,
        *,
        location_id: Optional[str] = None,
        events: Optional[ScanEventLogger] = None,
        audio: Optional[AudioFeedback] = None,
    ) -> None:
        super().__init__(api, events=events, audio=audio)
        self.order_id = order_id
        self.location_id = location_id
        self.order: Optional[InboundOrder] = None
        self.rules = WorkflowRules.disabled()
        self._clear()

    def _clear(self) -> None:
        self.item: Optional[InboundLineItem] = None
        self.scanned_code: Optional[str] = None
        self.pending_qty = 0
        self.lot_number = ""
        self.expiration_date: Optional[date] = None

    def reset(self) -> None:
        self._clear()
        self.status = ScanStatus.IDLE
        self.message = None

    async def load(self) -> "ReceivingScanner":
        order = await self.api.get_inbound_order(self.order_id)
        if order is None:
            raise RecordNotFound(f"inbound order {self.order_id} not found")
        self.order = order
        if order.has_client:
            try:
                self.rules = await self.api.get_inbound_workflow_rules_for_order(order.id)
            except DataApiError as e:
                logger.error("failed to fetch workflow rules for %s: %s", order.id, e.message)
        return self

    def _require_order(self) -> InboundOrder:
        if self.order is None:
            raise ScanStateError("Receiving scanner is not loaded", code="not_loaded")
        return self.order

    # ------------------------------------------------------------------ #
    # derived
    # ------------------------------------------------------------------ #
    @property
    def lot_tracked(self) -> bool:
        return self.item is not None and is_lot_tracking_required(self.item, self.rules)

    def open_qty(self, item: InboundLineItem) -> int:
        return max(0, item.qty_expected - item.qty_received - (item.qty_rejected or 0))

    @property
    def total_expected(self) -> int:
        return sum(i.qty_expected for i in self.order.items) if self.order else 0

    @property
    def running_total(self) -> int:
        received = sum(i.qty_received for i in self.order.items) if self.order else 0
        return received + self.pending_qty

    @property
    def all_received(self) -> bool:
        return self.order is not None and all(i.qty_received >= i.qty_expected for i in self.order.items)

    # ------------------------------------------------------------------ #
    # scanning
    # ------------------------------------------------------------------ #
    def _select(self, item: InboundLineItem, code: str) -> None:
        self.item = item
        self.scanned_code = code
        if is_lot_tracking_required(item, self.rules):
            self.lot_number = ""
            self.expiration_date = default_expiration(item)
            self.pending_qty = min(1, self.open_qty(item))
            self.status = ScanStatus.LOT_ENTRY
        else:
            self.pending_qty = 0
            self.status = ScanStatus.FOUND

    async def scan(self, code: str) -> None:
        order = self._require_order()
        self._clear()
        self.scanned_code = code
        ref = {"reference_type": INBOUND_ORDER_REFERENCE, "reference_id": order.id}

        resolved = await self._resolve(code, **ref)
        if resolved is None:
            return
        match resolved:
            case ResolvedProduct(id=product_id):
                item = next((i for i in order.items if i.product_id == product_id), None)
                if item is None:
                    await self._log(
                        resolved, result=ScanResult.ERROR, error_message="Product not expected on this order", **ref
                    )
                    self._fail("This product is not expected in this inbound order", ScanStatus.NOT_EXPECTED)
                    return
                await self._log(resolved, **ref)
                self._select(item, code)
                label = parse_gs1(code)
                if label and self.status == ScanStatus.LOT_ENTRY:
                    self.lot_number = label.lot or self.lot_number
                    self.expiration_date = label.expiry or self.expiration_date
                self._ok(f"{item.product.name if item.product else item.product_id} found")

            case NotFound():
                await self._log(resolved, result=ScanResult.ERROR, error_message="Barcode not found", **ref)
                self._fail(f"Barcode not found: {resolved.code}", ScanStatus.NOT_FOUND)

            case _:
                await self._log(resolved, result=ScanResult.ERROR, error_message="Expected a product", **ref)
                self._fail("Please scan a product barcode", ScanStatus.NOT_FOUND)

    async def scan_lot(self, code: str) -> None:
        if self.status != ScanStatus.LOT_ENTRY or self.item is None:
            raise ScanStateError("Scan a lot-tracked product first", code="no_lot_entry")
        value = (code or "").strip()
        label = parse_gs1(value)
        if label and label.lot:
            self.lot_number = label.lot
            self.expiration_date = label.expiry or self.expiration_date
        else:
            self.lot_number = value
        await self.events.log(
            ScanEventIn(
                scan_type=ScanType.LOT,
                barcode=value,
                workflow_stage=self.stage,
                product_id=self.item.product_id,
                reference_type=INBOUND_ORDER_REFERENCE,
                reference_id=self.item.order_id,
            )
        )
        self.audio.beep(True)

    def manual_select(self, item_id: str) -> InboundLineItem:
        order = self._require_order()
        item = order.find_item(item_id)
        if item is None:
            raise ScanStateError(f"line item {item_id} not on this order", code="item_not_found")
        self._select(item, item.product.sku if item.product else item.product_id)
        self.audio.beep(True)
        self.message = None
        return item

    def set_lot(self, lot_number: Optional[str] = None, expiration_date: Optional[date] = None) -> None:
        if lot_number is not None:
            self.lot_number = lot_number
        if expiration_date is not None:
            self.expiration_date = expiration_date

    def add_qty(self, qty: int) -> int:
        if self.item is None:
            raise ScanStateError("Scan a product first", code="no_item")
        to_add = min(qty, self.open_qty(self.item) - self.pending_qty)
        if to_add > 0:
            self.pending_qty += to_add
        return self.pending_qty

    def add_all(self) -> int:
        if self.item is None:
            raise ScanStateError("Scan a product first", code="no_item")
        self.pending_qty = self.open_qty(self.item)
        return self.pending_qty

    # ------------------------------------------------------------------ #
    # confirm
    # ------------------------------------------------------------------ #
    async def confirm(self) -> bool:
        item = self.item
        if item is None or self.pending_qty <= 0:
            raise ScanStateError("Nothing to receive", code="nothing_to_receive")
        lot_tracked = self.lot_tracked
        if lot_tracked and not self.lot_number.strip():
            raise ScanStateError("Lot number is required", code="lot_number_required")
        if not self.location_id:
            raise ScanStateError("Location is required to receive", code="location_required")

        qty = self.pending_qty
        new_total = item.qty_received + qty
        self.saving = True
        self.message = None
        try:
            if lot_tracked:
                await self.api.receive_with_lot(
                    item.id, new_total, self.location_id, self.lot_number.strip(), self.expiration_date
                )
            else:
                await self.api.receive_inbound_item(item.id, new_total, self.location_id)
        except DataApiError as e:
            logger.error("scan receive failed for item %s: %s", item.id, e.message)
            self._fail("Failed to update received quantity", ScanStatus.ERROR)
            return False
        finally:
            self.saving = False

        name = item.product.name if item.product else item.product_id
        lot_info = f" (Lot: {self.lot_number.strip()})" if lot_tracked else ""
        logger.info("scan received item %s: total %s", item.id, new_total)

        fresh = await self.api.get_inbound_order(self.order_id)
        if fresh is not None:
            self.order = fresh
        self._clear()
        self._ok(f"Received {qty} x {name}{lot_info}", ScanStatus.IDLE)
        return True

    def snapshot(self) -> Dict[str, Any]:
        out = self.base_snapshot()
        out.update(
            {
                "order_id": self.order_id,
                "location_id": self.location_id,
                "item_id": self.item.id if self.item else None,
                "scanned_code": self.scanned_code,
                "lot_tracked": self.lot_tracked,
                "pending_qty": self.pending_qty,
                "lot_number": self.lot_number,
                "expiration_date": self.expiration_date.isoformat() if self.expiration_date else None,
                "running_total": self.running_total,
                "total_expected": self.total_expected,
                "all_received": self.all_received,
            }
        )
        return out
