# inbound_desk/schemas/order_view.py
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel

from inbound_desk.schemas.damage_report import DamageReport
from inbound_desk.schemas.inbound import InboundOrder, Location
from inbound_desk.schemas.workflow_rules import WorkflowRules


class StatusStepOut(BaseModel):
    key: str
    label: str
    completed: bool
    current: bool


class StatusActionOut(BaseModel):
    label: str
    target: str


class LineOut(BaseModel):
    item_id: str
    product_id: str
    product_sku: str
    product_name: str
    qty_expected: int
    qty_received: int
    qty_rejected: int
    qty_damaged: int
    remaining: int
    is_complete: bool
    is_partial: bool
    is_pending: bool
    badge: Optional[str] = None


class OrderDetailOut(BaseModel):
    order: InboundOrder
    status_label: str
    steps: List[StatusStepOut]
    action: Optional[StatusActionOut] = None
    progress_pct: float
    lines: List[LineOut]
    total_expected: int
    total_received: int
    locations: List[Location]
    receive_location_id: Optional[str] = None
    damage_reports: List[DamageReport]
    rules: WorkflowRules
