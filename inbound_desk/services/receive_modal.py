# inbound_desk/services/receive_modal.py
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional

from inbound_desk.clients.base import DataApi, DataApiError
from inbound_desk.obs.metrics import receive_submissions_total
from inbound_desk.schemas.inbound import InboundLineItem, InboundOrder
from inbound_desk.schemas.pallet import Pallet
from inbound_desk.schemas.workflow_rules import WorkflowRules
from inbound_desk.services.step_runner import StepReport, run_sequential
from inbound_desk.services.workflow_errors import ReceiveValidationError

logger = logging.getLogger(__name__)

INSPECTION_HOLD_REASON = "Quality inspection required per workflow rules"


class ReceiveMode(str, Enum):
    PLAIN = "plain"
    LOT = "lot"
    PALLET = "pallet"


@dataclass
class LotEntry:
    """One lot being received in this action. UI-only, never persisted as such."""

    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    lot_number: str = ""
    expiration_date: Optional[date] = None
    batch_number: str = ""
    quantity: int = 0


@dataclass(frozen=True)
class ReceiveCall:
    """
    One planned data API write. qty_received is the ABSOLUTE new total for
    the line item, never a delta.
    """

    mode: ReceiveMode
    qty_received: int
    lot_number: Optional[str] = None
    expiration_date: Optional[date] = None
    pallet_id: Optional[str] = None

    @property
    def key(self) -> str:
        if self.mode == ReceiveMode.LOT:
            return f"lot:{self.lot_number}@{self.qty_received}"
        return f"{self.mode.value}@{self.qty_received}"


@dataclass
class ReceiveOutcome:
    mode: ReceiveMode
    report: StepReport[ReceiveCall]
    inspection_hold: bool = False
    inspection_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.report.ok

    @property
    def applied_any(self) -> bool:
        return bool(self.report.applied)

    @property
    def message(self) -> Optional[str]:
        if not self.report.ok:
            failed = self.report.failed
            if self.report.partial:
                return f"Received {self.report.summary()}"
            return failed.error if failed else None
        if self.inspection_error:
            return f"Received, but the inspection hold was not recorded: {self.inspection_error}"
        return None


def is_lot_tracking_required(item: InboundLineItem, rules: WorkflowRules) -> bool:
    """Product-level flag, or client rules asking for lots (required or auto-created)."""
    if item.product and item.product.lot_tracking_enabled:
        return True
    return rules.lots_required


class ReceiveModal:
    """
    View-model of the Receive dialog for a single line item.

    Branches (checked in this order):
    - pallet mode (toggled): one receive against the selected pallet; lot
      capture is bypassed even for lot-tracked items
    - lot mode (lot-tracked item): one receive-with-lot per entry with
      quantity > 0, sequential, each carrying the running absolute total
    - plain mode: one receive with the absolute total

    Inspection hold is logged after whichever path completes when the
    client rules require inspection.

    Validation runs in a fixed order before any call; see `validate`.
    """

    def __init__(
        self,
        api: DataApi,
        order: InboundOrder,
        item: InboundLineItem,
        rules: Optional[WorkflowRules] = None,
        *,
        location_id: Optional[str] = None,
        qty_damaged: int = 0,
        enforce_qty_invariant: bool = True,
    ) -> None:
        self.api = api
        self.order = order
        self.item = item
        self.rules = rules or WorkflowRules.disabled()
        self.location_id = location_id
        self.qty_damaged = qty_damaged
        self.enforce_qty_invariant = enforce_qty_invariant

        self.quantity = 0
        self.lot_entries: List[LotEntry] = []
        self.to_pallet = False
        self.selected_pallet_id = ""
        self.pallets: List[Pallet] = []

        self.submitting = False
        self.creating_pallet = False
        self.message: Optional[str] = None

    # ------------------------------------------------------------------ #
    # derived
    # ------------------------------------------------------------------ #
    @property
    def is_lot_tracked(self) -> bool:
        return is_lot_tracking_required(self.item, self.rules)

    @property
    def mode(self) -> ReceiveMode:
        if self.to_pallet:
            return ReceiveMode.PALLET
        if self.is_lot_tracked:
            return ReceiveMode.LOT
        return ReceiveMode.PLAIN

    @property
    def remaining_to_receive(self) -> int:
        return max(0, self.item.qty_expected - self.item.qty_received)

    @property
    def total_lot_quantity(self) -> int:
        return sum(e.quantity for e in self.lot_entries)

    @property
    def pending_quantity(self) -> int:
        return self.total_lot_quantity if self.mode == ReceiveMode.LOT else self.quantity

    @property
    def pallet_preview(self) -> Optional[Pallet]:
        if not self.selected_pallet_id:
            return None
        for p in self.pallets:
            if p.id == self.selected_pallet_id:
                return p
        return None

    # ------------------------------------------------------------------ #
    # lifecycle
    # ------------------------------------------------------------------ #
    async def open(self) -> "ReceiveModal":
        remaining = self.remaining_to_receive
        self.quantity = remaining
        self.message = None

        if self.is_lot_tracked:
            lot_number = ""
            if self.rules.lot_numbers_generated:
                product = self.item.product
                try:
                    lot_number = await self.api.generate_lot_number(
                        lot_format=self.rules.lot_format,
                        sku=product.sku if product else None,
                        supplier=self.order.supplier,
                    )
                except DataApiError as e:
                    # operator types one in by hand
                    logger.warning("lot number generation failed for item %s: %s", self.item.id, e.message)
            self.lot_entries = [LotEntry(lot_number=lot_number, quantity=remaining)]
        else:
            self.lot_entries = []

        await self.load_pallets()
        return self

    def close(self) -> None:
        self.quantity = 0
        self.lot_entries = []
        self.to_pallet = False
        self.selected_pallet_id = ""
        self.message = None

    # ------------------------------------------------------------------ #
    # lot entries
    # ------------------------------------------------------------------ #
    def add_lot_entry(self) -> LotEntry:
        entry = LotEntry()
        self.lot_entries.append(entry)
        return entry

    def remove_lot_entry(self, entry_id: str) -> None:
        self.lot_entries = [e for e in self.lot_entries if e.id != entry_id]

    def update_lot_entry(self, entry_id: str, **changes) -> LotEntry:
        for entry in self.lot_entries:
            if entry.id == entry_id:
                for name, value in changes.items():
                    if not hasattr(entry, name) or name == "id":
                        raise AttributeError(f"unknown lot entry field: {name}")
                    setattr(entry, name, value)
                return entry
        raise KeyError(entry_id)

    # ------------------------------------------------------------------ #
    # pallets
    # ------------------------------------------------------------------ #
    def set_pallet_mode(self, on: bool) -> None:
        self.to_pallet = bool(on)
        if not self.to_pallet:
            self.selected_pallet_id = ""

    def select_pallet(self, pallet_id: str) -> None:
        self.selected_pallet_id = pallet_id or ""

    async def load_pallets(self) -> List[Pallet]:
        try:
            self.pallets = await self.api.get_pallet_lpns()
        except DataApiError as e:
            logger.error("failed to load pallets: %s", e.message)
        return self.pallets

    async def create_pallet(self) -> Pallet:
        if not self.location_id:
            raise ReceiveValidationError("Select a receiving location first", code="location_required")
        self.creating_pallet = True
        try:
            pallet = await self.api.create_pallet_for_receiving(
                location_id=self.location_id,
                inbound_order_id=self.order.id,
                notes=f"Created for inbound {self.order.po_number or self.order.id}",
            )
        except DataApiError as e:
            logger.error("failed to create pallet for order %s: %s", self.order.id, e.message)
            self.message = e.message
            raise
        finally:
            self.creating_pallet = False

        self.selected_pallet_id = pallet.id
        await self.load_pallets()
        return pallet

    # ------------------------------------------------------------------ #
    # validation
    # ------------------------------------------------------------------ #
    def validate(self) -> None:
        """
        Order:
        1) receiving reference (item + location)
        2) lot information required by client rules
        3) expiration dates required by client rules
        4) quantities: lot total > 0 and lot number on every entry with
           quantity > 0 (lot mode) / quantity > 0 (plain mode)
        5) pallet selected (pallet mode), then quantity > 0
        6) received + rejected + damaged <= expected (when enforced)
        """
        if not self.item or not self.location_id:
            raise ReceiveValidationError("Select a receiving location first", code="location_required")

        lot_mode = self.is_lot_tracked and not self.to_pallet

        if self.rules.enabled:
            if self.rules.requires_lot_tracking and not self.is_lot_tracked and not self.to_pallet:
                raise ReceiveValidationError(
                    "Lot information is required by workflow rules for this client",
                    code="lot_required",
                )
            if self.rules.requires_expiration_dates and lot_mode:
                if any(e.quantity > 0 and not e.expiration_date for e in self.lot_entries):
                    raise ReceiveValidationError(
                        "Expiration date is required by workflow rules for this client",
                        code="expiration_required",
                    )

        if lot_mode:
            if any(e.quantity < 0 for e in self.lot_entries):
                raise ReceiveValidationError("Lot quantities cannot be negative", code="invalid_quantity")
            if self.total_lot_quantity <= 0:
                raise ReceiveValidationError("Enter a quantity to receive", code="quantity_required")
            if any(e.quantity > 0 and not e.lot_number.strip() for e in self.lot_entries):
                raise ReceiveValidationError(
                    "Lot number required for every lot entry with quantity > 0",
                    code="lot_number_required",
                )
        elif not self.to_pallet and self.quantity <= 0:
            raise ReceiveValidationError("Enter a quantity to receive", code="quantity_required")

        if self.to_pallet:
            if not self.selected_pallet_id:
                raise ReceiveValidationError("Select or create a pallet first", code="pallet_required")
            if self.quantity <= 0:
                raise ReceiveValidationError("Enter a quantity to receive", code="quantity_required")

        if self.enforce_qty_invariant:
            accounted = (
                self.item.qty_received
                + self.pending_quantity
                + (self.item.qty_rejected or 0)
                + self.qty_damaged
            )
            if accounted > self.item.qty_expected:
                open_qty = max(
                    0,
                    self.item.qty_expected
                    - self.item.qty_received
                    - (self.item.qty_rejected or 0)
                    - self.qty_damaged,
                )
                raise ReceiveValidationError(
                    f"Receiving {self.pending_quantity} would exceed the expected quantity "
                    f"(open {open_qty} of {self.item.qty_expected})",
                    code="qty_exceeds_expected",
                    context={"item_id": self.item.id, "open_qty": open_qty},
                )

    # ------------------------------------------------------------------ #
    # submission
    # ------------------------------------------------------------------ #
    def plan(self) -> List[ReceiveCall]:
        base = self.item.qty_received
        mode = self.mode

        if mode == ReceiveMode.PALLET:
            return [ReceiveCall(mode=mode, qty_received=base + self.quantity, pallet_id=self.selected_pallet_id)]

        if mode == ReceiveMode.LOT:
            calls: List[ReceiveCall] = []
            running = base
            for entry in self.lot_entries:
                if entry.quantity > 0 and entry.lot_number.strip():
                    running += entry.quantity
                    calls.append(
                        ReceiveCall(
                            mode=mode,
                            qty_received=running,
                            lot_number=entry.lot_number.strip(),
                            expiration_date=entry.expiration_date,
                        )
                    )
            return calls

        return [ReceiveCall(mode=mode, qty_received=base + self.quantity)]

    async def _apply(self, call: ReceiveCall) -> None:
        if not self.location_id:
            raise ReceiveValidationError("Select a receiving location first", code="location_required")
        if call.mode == ReceiveMode.PALLET:
            await self.api.receive_inbound_item_to_pallet(
                item_id=self.item.id,
                qty_received=call.qty_received,
                location_id=self.location_id,
                pallet_id=call.pallet_id or "",
            )
        elif call.mode == ReceiveMode.LOT:
            await self.api.receive_with_lot(
                self.item.id,
                call.qty_received,
                self.location_id,
                call.lot_number or "",
                call.expiration_date,
            )
        else:
            await self.api.receive_inbound_item(self.item.id, call.qty_received, self.location_id)

    async def submit(self) -> ReceiveOutcome:
        """
        Validate, then run the planned calls sequentially.

        Raises ReceiveValidationError before any call. Data API failures
        do not raise: the outcome carries the step report (lots applied
        before the failure stay applied).
        """
        self.message = None
        try:
            self.validate()
        except ReceiveValidationError as e:
            self.message = e.message
            receive_submissions_total.labels(self.mode.value, "invalid").inc()
            raise

        mode = self.mode
        calls = self.plan()

        self.submitting = True
        try:
            report = await run_sequential(calls, self._apply, key=lambda c: c.key, label=f"receive[{mode.value}]")
            outcome = ReceiveOutcome(mode=mode, report=report)

            if report.ok and self.rules.inspection_required:
                try:
                    await self.api.place_on_inspection_hold(self.item.id, self.order.id, INSPECTION_HOLD_REASON)
                    outcome.inspection_hold = True
                except DataApiError as e:
                    logger.error("inspection hold failed for item %s: %s", self.item.id, e.message)
                    outcome.inspection_error = e.message
        finally:
            self.submitting = False

        receive_submissions_total.labels(mode.value, "ok" if outcome.ok else "failed").inc()
        self.message = outcome.message
        if outcome.ok:
            logger.info(
                "received item %s (%s): %s",
                self.item.id,
                mode.value,
                ", ".join(str(c.qty_received) for c in calls),
            )
        return outcome
