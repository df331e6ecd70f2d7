# inbound_desk/schemas/receive.py
from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field

from inbound_desk.schemas.inbound import InboundOrder, OrderStatus, RejectionReason
from inbound_desk.schemas.pallet import Pallet


class LotEntryIn(BaseModel):
    lot_number: str = ""
    expiration_date: Optional[date] = None
    batch_number: str = ""
    quantity: int = 0


class LotEntryOut(LotEntryIn):
    id: str


class ReceiveIn(BaseModel):
    """
    Receive dialog submission.

    quantity is what arrives now (plain and pallet mode); lot mode uses
    lot_entries. The service turns both into absolute totals.
    """

    location_id: Optional[str] = None
    quantity: int = 0
    lot_entries: List[LotEntryIn] = Field(default_factory=list)
    to_pallet: bool = False
    pallet_id: Optional[str] = None


class ReceiveFormOut(BaseModel):
    order_id: str
    item_id: str
    mode: str
    lot_tracked: bool
    quantity: int
    remaining: int
    lot_entries: List[LotEntryOut]
    pallets: List[Pallet]
    location_id: Optional[str] = None
    expiration_required: bool = False
    inspection_required: bool = False


class StepOut(BaseModel):
    key: str
    status: str
    error: Optional[str] = None


class ReceiveOut(BaseModel):
    ok: bool
    mode: str
    steps: List[StepOut]
    inspection_hold: bool = False
    message: Optional[str] = None
    order: Optional[InboundOrder] = None
    putaway_session_id: Optional[str] = None


class ReceiveAllIn(BaseModel):
    location_id: Optional[str] = None


class ReceiveAllOut(BaseModel):
    received: bool
    form: Optional[ReceiveFormOut] = None
    order: Optional[InboundOrder] = None
    putaway_session_id: Optional[str] = None


class RejectIn(BaseModel):
    qty: int = Field(..., gt=0)
    reason: RejectionReason = RejectionReason.DAMAGED
    notes: Optional[str] = None


class DamageIn(BaseModel):
    qty: int = Field(..., gt=0)
    damage_type: str = "physical"
    description: Optional[str] = None


class CreatePalletForOrderIn(BaseModel):
    location_id: str


class StatusIn(BaseModel):
    status: OrderStatus


class StatusOut(BaseModel):
    ok: bool
    status: OrderStatus
    error: Optional[str] = None
    order: Optional[InboundOrder] = None
