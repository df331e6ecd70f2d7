# tests/helpers/fake_data_api.py
from __future__ import annotations

import itertools
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from inbound_desk.clients.base import DataApiError
from inbound_desk.schemas.damage_report import DamageReport, DamageReportCreate, DamageReportFilters
from inbound_desk.schemas.inbound import InboundOrder, Location, OrderStatus, Sublocation
from inbound_desk.schemas.pallet import Pallet
from inbound_desk.schemas.putaway import SuggestedPutAway
from inbound_desk.schemas.scan import ScanEventIn
from inbound_desk.schemas.workflow_rules import WorkflowRules


class FakeDataApi:
    """
    In-memory DataApi.

    - every call is recorded in `calls` as (op, kwargs)
    - writes mutate the stored orders the way the real data API does
      (absolute qty_received, additive qty_rejected)
    - `fail(op, ...)` makes an op raise DataApiError, optionally only
      after the first `after` calls went through
    """

    def __init__(self) -> None:
        self.orders: Dict[str, InboundOrder] = {}
        self.locations: List[Location] = []
        self.sublocations: Dict[str, List[Sublocation]] = {}
        self.rules: Dict[str, WorkflowRules] = {}
        self.pallets: List[Pallet] = []
        self.lpns: Dict[str, Pallet] = {}
        self.barcodes: Dict[str, Dict[str, Any]] = {}
        self.outbound: Dict[str, Dict[str, Any]] = {}
        self.cartons: Dict[str, List[Pallet]] = {}
        self.damage_reports: List[DamageReport] = []
        self.suggestions: Dict[str, SuggestedPutAway] = {}
        self.lot_number = "LOT-20260101-001"

        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self._failures: Dict[str, Tuple[str, int, int]] = {}
        self._ids = itertools.count(1)

    # ------------------------------------------------------------------ #
    # test controls
    # ------------------------------------------------------------------ #
    def add_order(self, order: InboundOrder) -> InboundOrder:
        self.orders[order.id] = order
        return order

    def fail(self, op: str, message: str = "Data API unavailable", *, after: int = 0, status_code: int = 500) -> None:
        self._failures[op] = (message, after, status_code)

    def heal(self, op: str) -> None:
        self._failures.pop(op, None)

    def count(self, op: str) -> int:
        return sum(1 for name, _ in self.calls if name == op)

    def calls_to(self, op: str) -> List[Dict[str, Any]]:
        return [kw for name, kw in self.calls if name == op]

    def _hit(self, op: str, **kwargs: Any) -> None:
        self.calls.append((op, kwargs))
        rule = self._failures.get(op)
        if rule is not None:
            message, after, status_code = rule
            if self.count(op) > after:
                raise DataApiError(message, status_code=status_code, op=op)

    def _item(self, item_id: str):
        for order in self.orders.values():
            for item in order.items:
                if item.id == item_id:
                    return item
        raise DataApiError(f"inbound item {item_id} not found", status_code=404)

    # ------------------------------------------------------------------ #
    # inbound orders
    # ------------------------------------------------------------------ #
    async def get_inbound_order(self, order_id: str) -> Optional[InboundOrder]:
        self._hit("get_inbound_order", order_id=order_id)
        order = self.orders.get(order_id)
        return order.model_copy(deep=True) if order else None

    async def update_inbound_order_status(self, order_id: str, status: OrderStatus) -> None:
        self._hit("update_inbound_order_status", order_id=order_id, status=OrderStatus(status))
        self.orders[order_id].status = OrderStatus(status)

    async def receive_inbound_item(self, item_id: str, qty_received: int, location_id: str) -> None:
        self._hit("receive_inbound_item", item_id=item_id, qty_received=qty_received, location_id=location_id)
        self._item(item_id).qty_received = qty_received

    async def receive_with_lot(
        self,
        item_id: str,
        qty_received: int,
        location_id: str,
        lot_number: str,
        expiration_date: Optional[date],
    ) -> None:
        self._hit(
            "receive_with_lot",
            item_id=item_id,
            qty_received=qty_received,
            location_id=location_id,
            lot_number=lot_number,
            expiration_date=expiration_date,
        )
        self._item(item_id).qty_received = qty_received

    async def receive_inbound_item_to_pallet(
        self, *, item_id: str, qty_received: int, location_id: str, pallet_id: str
    ) -> None:
        self._hit(
            "receive_inbound_item_to_pallet",
            item_id=item_id,
            qty_received=qty_received,
            location_id=location_id,
            pallet_id=pallet_id,
        )
        self._item(item_id).qty_received = qty_received

    async def reject_inbound_item(self, item_id: str, qty: int, reason: str, notes: Optional[str] = None) -> None:
        self._hit("reject_inbound_item", item_id=item_id, qty=qty, reason=reason, notes=notes)
        item = self._item(item_id)
        item.qty_rejected = (item.qty_rejected or 0) + qty
        item.rejection_reason = reason

    # ------------------------------------------------------------------ #
    # pallets / LPNs
    # ------------------------------------------------------------------ #
    async def create_pallet_for_receiving(
        self,
        *,
        location_id: Optional[str] = None,
        sublocation_id: Optional[str] = None,
        inbound_order_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Pallet:
        self._hit(
            "create_pallet_for_receiving",
            location_id=location_id,
            sublocation_id=sublocation_id,
            inbound_order_id=inbound_order_id,
            notes=notes,
        )
        n = next(self._ids)
        pallet = Pallet(id=f"plt-new-{n}", lpn_number=f"LPN-NEW-{n:04d}", location_id=location_id)
        self.pallets.append(pallet)
        return pallet

    async def get_pallet_lpns(self, location_id: Optional[str] = None) -> List[Pallet]:
        self._hit("get_pallet_lpns", location_id=location_id)
        return list(self.pallets)

    async def get_lpn_by_number(self, lpn_number: str) -> Optional[Pallet]:
        self._hit("get_lpn_by_number", lpn_number=lpn_number)
        return self.lpns.get(lpn_number)

    async def move_lpn(self, lpn_id: str, location_id: str, sublocation_id: Optional[str] = None) -> None:
        self._hit("move_lpn", lpn_id=lpn_id, location_id=location_id, sublocation_id=sublocation_id)

    async def update_lpn_status(self, lpn_id: str, status: str, stage: Optional[str] = None) -> None:
        self._hit("update_lpn_status", lpn_id=lpn_id, status=status, stage=stage)

    # ------------------------------------------------------------------ #
    # workflow rules / lots / inspection
    # ------------------------------------------------------------------ #
    async def get_inbound_workflow_rules_for_order(self, order_id: str) -> WorkflowRules:
        self._hit("get_inbound_workflow_rules_for_order", order_id=order_id)
        return self.rules.get(order_id, WorkflowRules.disabled())

    async def generate_lot_number(
        self, *, lot_format: Optional[str], sku: Optional[str] = None, supplier: Optional[str] = None
    ) -> str:
        self._hit("generate_lot_number", lot_format=lot_format, sku=sku, supplier=supplier)
        return self.lot_number

    async def place_on_inspection_hold(self, item_id: str, order_id: str, reason: str) -> None:
        self._hit("place_on_inspection_hold", item_id=item_id, order_id=order_id, reason=reason)

    # ------------------------------------------------------------------ #
    # put-away / locations
    # ------------------------------------------------------------------ #
    async def get_suggested_put_away(self, product_id: str, location_id: str, qty: int) -> SuggestedPutAway:
        self._hit("get_suggested_put_away", product_id=product_id, location_id=location_id, qty=qty)
        return self.suggestions.get(product_id, SuggestedPutAway())

    async def confirm_put_away(self, product_id: str, location_id: str, sublocation_id: str) -> None:
        self._hit(
            "confirm_put_away", product_id=product_id, location_id=location_id, sublocation_id=sublocation_id
        )

    async def put_away_inventory(
        self,
        *,
        product_id: str,
        location_id: str,
        qty: int,
        sublocation_id: Optional[str] = None,
        performed_by: Optional[str] = None,
    ) -> None:
        self._hit(
            "put_away_inventory",
            product_id=product_id,
            location_id=location_id,
            qty=qty,
            sublocation_id=sublocation_id,
            performed_by=performed_by,
        )

    async def get_sublocations(self, location_id: str) -> List[Sublocation]:
        self._hit("get_sublocations", location_id=location_id)
        return list(self.sublocations.get(location_id, []))

    async def get_locations(self) -> List[Location]:
        self._hit("get_locations")
        return list(self.locations)

    # ------------------------------------------------------------------ #
    # scanning
    # ------------------------------------------------------------------ #
    async def log_scan_event(self, event: ScanEventIn) -> None:
        self._hit("log_scan_event", event=event)

    async def resolve_barcode(self, code: str) -> Optional[Dict[str, Any]]:
        self._hit("resolve_barcode", code=code)
        return self.barcodes.get(code)

    def scan_events(self) -> List[ScanEventIn]:
        return [kw["event"] for kw in self.calls_to("log_scan_event")]

    # ------------------------------------------------------------------ #
    # outbound
    # ------------------------------------------------------------------ #
    async def get_outbound_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        self._hit("get_outbound_order", order_id=order_id)
        return self.outbound.get(order_id)

    async def get_shipment_cartons(self, order_id: str) -> List[Pallet]:
        self._hit("get_shipment_cartons", order_id=order_id)
        return list(self.cartons.get(order_id, []))

    async def update_outbound_order_status(
        self,
        order_id: str,
        status: str,
        *,
        carrier: Optional[str] = None,
        tracking_number: Optional[str] = None,
    ) -> None:
        self._hit(
            "update_outbound_order_status",
            order_id=order_id,
            status=status,
            carrier=carrier,
            tracking_number=tracking_number,
        )
        self.outbound[order_id]["status"] = status

    # ------------------------------------------------------------------ #
    # damage reports / checklists
    # ------------------------------------------------------------------ #
    async def get_damage_reports(self, filters: Optional[DamageReportFilters] = None) -> List[DamageReport]:
        self._hit("get_damage_reports", filters=filters)
        out = list(self.damage_reports)
        if filters is not None:
            for name, value in filters.as_params().items():
                if name in ("start_date", "end_date"):
                    continue
                out = [r for r in out if getattr(r, name) == value]
        return out

    async def create_damage_report(self, report: DamageReportCreate) -> DamageReport:
        self._hit("create_damage_report", report=report)
        created = DamageReport(id=f"dr-new-{next(self._ids)}", **report.model_dump())
        self.damage_reports.append(created)
        return created

    async def complete_checklist_item(self, checklist_id: str, item_id: str) -> None:
        self._hit("complete_checklist_item", checklist_id=checklist_id, item_id=item_id)
