# inbound_desk/clients/base.py
from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Protocol

from inbound_desk.schemas.damage_report import DamageReport, DamageReportCreate, DamageReportFilters
from inbound_desk.schemas.inbound import InboundOrder, Location, OrderStatus, Sublocation
from inbound_desk.schemas.pallet import Pallet
from inbound_desk.schemas.putaway import SuggestedPutAway
from inbound_desk.schemas.scan import ScanEventIn
from inbound_desk.schemas.workflow_rules import WorkflowRules


class DataApiError(Exception):
    """
    A rejected data API call.

    - message:     human readable, shown to the operator as-is
    - status_code: HTTP status of the failed call (None for transport errors)
    - op:          the data API operation name, for logs and metrics
    """

    def __init__(self, message: str, *, status_code: Optional[int] = None, op: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.op = op


class DataApi(Protocol):
    """
    Warehouse data API, consumed and never redefined here.

    Every write takes ABSOLUTE quantities (qty_received is the new total,
    not a delta). Lookups return None on 404; everything else raises
    DataApiError.
    """

    # ---------- inbound orders ----------
    async def get_inbound_order(self, order_id: str) -> Optional[InboundOrder]: ...

    async def update_inbound_order_status(self, order_id: str, status: OrderStatus) -> None: ...

    async def receive_inbound_item(self, item_id: str, qty_received: int, location_id: str) -> None: ...

    async def receive_with_lot(
        self,
        item_id: str,
        qty_received: int,
        location_id: str,
        lot_number: str,
        expiration_date: Optional[date],
    ) -> None: ...

    async def receive_inbound_item_to_pallet(
        self, *, item_id: str, qty_received: int, location_id: str, pallet_id: str
    ) -> None: ...

    async def reject_inbound_item(
        self, item_id: str, qty: int, reason: str, notes: Optional[str] = None
    ) -> None: ...

    # ---------- pallets / LPNs ----------
    async def create_pallet_for_receiving(
        self,
        *,
        location_id: Optional[str] = None,
        sublocation_id: Optional[str] = None,
        inbound_order_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Pallet: ...

    async def get_pallet_lpns(self, location_id: Optional[str] = None) -> List[Pallet]: ...

    async def get_lpn_by_number(self, lpn_number: str) -> Optional[Pallet]: ...

    async def move_lpn(self, lpn_id: str, location_id: str, sublocation_id: Optional[str] = None) -> None: ...

    async def update_lpn_status(self, lpn_id: str, status: str, stage: Optional[str] = None) -> None: ...

    # ---------- workflow rules / lots / inspection ----------
    async def get_inbound_workflow_rules_for_order(self, order_id: str) -> WorkflowRules: ...

    async def generate_lot_number(
        self, *, lot_format: Optional[str], sku: Optional[str] = None, supplier: Optional[str] = None
    ) -> str: ...

    async def place_on_inspection_hold(self, item_id: str, order_id: str, reason: str) -> None: ...

    # ---------- put-away / locations ----------
    async def get_suggested_put_away(self, product_id: str, location_id: str, qty: int) -> SuggestedPutAway: ...

    async def confirm_put_away(self, product_id: str, location_id: str, sublocation_id: str) -> None: ...

    async def put_away_inventory(
        self,
        *,
        product_id: str,
        location_id: str,
        qty: int,
        sublocation_id: Optional[str] = None,
        performed_by: Optional[str] = None,
    ) -> None: ...

    async def get_sublocations(self, location_id: str) -> List[Sublocation]: ...

    async def get_locations(self) -> List[Location]: ...

    # ---------- scanning ----------
    async def log_scan_event(self, event: ScanEventIn) -> None: ...

    async def resolve_barcode(self, code: str) -> Optional[Dict[str, Any]]: ...

    # ---------- outbound (ship scanner) ----------
    async def get_outbound_order(self, order_id: str) -> Optional[Dict[str, Any]]: ...

    async def get_shipment_cartons(self, order_id: str) -> List[Pallet]: ...

    async def update_outbound_order_status(
        self,
        order_id: str,
        status: str,
        *,
        carrier: Optional[str] = None,
        tracking_number: Optional[str] = None,
    ) -> None: ...

    # ---------- damage reports / checklists ----------
    async def get_damage_reports(self, filters: Optional[DamageReportFilters] = None) -> List[DamageReport]: ...

    async def create_damage_report(self, report: DamageReportCreate) -> DamageReport: ...

    async def complete_checklist_item(self, checklist_id: str, item_id: str) -> None: ...
