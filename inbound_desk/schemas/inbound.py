# inbound_desk/schemas/inbound.py
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class OrderStatus(str, Enum):
    ORDERED = "ordered"
    IN_TRANSIT = "in_transit"
    ARRIVED = "arrived"
    RECEIVED = "received"


class RejectionReason(str, Enum):
    DAMAGED = "damaged"
    WRONG_ITEM = "wrong_item"
    EXPIRED = "expired"
    QUALITY_ISSUE = "quality_issue"
    OTHER = "other"


class ProductRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    sku: str
    name: str
    lot_tracking_enabled: bool = False
    default_expiration_days: Optional[int] = None


class ClientRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    company_name: str = ""


class InboundLineItem(BaseModel):
    """
    One product line of an inbound order.

    Damaged quantity is not carried here: it lives in damage reports
    keyed by (product_id, order_id) and is joined in by the reconciliation
    view.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    order_id: str
    product_id: str
    product: Optional[ProductRef] = None

    qty_expected: int = Field(..., ge=0)
    qty_received: int = Field(0, ge=0)
    qty_rejected: int = Field(0, ge=0)
    rejection_reason: Optional[str] = None


class InboundOrder(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    po_number: str
    supplier: Optional[str] = None
    status: OrderStatus
    client_id: Optional[str] = None
    client: Optional[ClientRef] = None

    expected_date: Optional[datetime] = None
    received_date: Optional[datetime] = None
    received_by: Optional[str] = None
    notes: Optional[str] = None

    items: List[InboundLineItem] = Field(default_factory=list)

    def find_item(self, item_id: str) -> Optional[InboundLineItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    @property
    def has_client(self) -> bool:
        return bool((self.client and self.client.id) or self.client_id)


class Location(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    code: Optional[str] = None
    active: bool = True


class Sublocation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    code: str
    name: Optional[str] = None
    location_id: str
    is_active: bool = True

    @property
    def label(self) -> str:
        return f"{self.code} - {self.name}" if self.name else self.code
