# inbound_desk/schemas/pallet.py
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LpnStatus(str, Enum):
    ACTIVE = "active"
    IN_TRANSIT = "in_transit"
    SHIPPED = "shipped"
    EMPTY = "empty"
    DAMAGED = "damaged"
    DISPOSED = "disposed"


class LpnStage(str, Enum):
    RECEIVING = "receiving"
    PUTAWAY = "putaway"
    STORAGE = "storage"
    PICKING = "picking"
    PACKING = "packing"
    STAGED = "staged"
    SHIPPED = "shipped"


class LpnContentProduct(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    sku: str = ""
    name: str = ""


class LpnContent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    product_id: Optional[str] = None
    product: Optional[LpnContentProduct] = None
    qty: int = 0


class Pallet(BaseModel):
    """A license-plate container (pallet, carton, ...) and what sits on it."""

    model_config = ConfigDict(extra="ignore")

    id: str
    lpn_number: str
    container_type: str = "pallet"
    status: Optional[str] = None
    stage: Optional[str] = None
    location_id: Optional[str] = None
    sublocation_id: Optional[str] = None
    contents: List[LpnContent] = Field(default_factory=list)

    @property
    def total_qty(self) -> int:
        return sum(c.qty for c in self.contents)


class CreatePalletIn(BaseModel):
    location_id: Optional[str] = None
    sublocation_id: Optional[str] = None
    inbound_order_id: Optional[str] = None
    notes: Optional[str] = None
    container_type: str = "pallet"
