# inbound_desk/schemas/scanner.py
from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel

from inbound_desk.schemas.putaway import PutAwayItemOut
from inbound_desk.schemas.inbound import Sublocation


class PutawaySessionIn(BaseModel):
    order_id: str
    location_id: str


class PutawaySessionOut(BaseModel):
    session_id: str
    order_id: str
    location_id: str
    items: List[PutAwayItemOut]
    sublocations: List[Sublocation]
    all_confirmed: bool
    message: Optional[str] = None


class SelectSublocationIn(BaseModel):
    sublocation_id: str


class ScannerIn(BaseModel):
    """
    kind = putaway | ship | receiving.
    ship needs outbound_order_id; receiving needs order_id.
    """

    kind: str
    order_id: Optional[str] = None
    outbound_order_id: Optional[str] = None
    location_id: Optional[str] = None
    audio_enabled: Optional[bool] = None


class ScanIn(BaseModel):
    code: str


class ScannerUpdateIn(BaseModel):
    audio_enabled: Optional[bool] = None
    qty: Optional[int] = None
    add_qty: Optional[int] = None
    add_all: bool = False
    item_id: Optional[str] = None
    location_id: Optional[str] = None
    lot_number: Optional[str] = None
    expiration_date: Optional[date] = None
    carrier: Optional[str] = None
    tracking_number: Optional[str] = None
