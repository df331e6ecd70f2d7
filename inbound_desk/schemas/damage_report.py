# inbound_desk/schemas/damage_report.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

INBOUND_ORDER_REFERENCE = "inbound_order"


class DamageReportProduct(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    sku: str = ""
    name: str = ""


class DamageReport(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    reference_type: str
    reference_id: str
    product_id: str
    product: Optional[DamageReportProduct] = None
    quantity: int = Field(..., ge=0)
    damage_type: str = "physical"
    description: Optional[str] = None
    resolution: str = "pending"
    reported_at: Optional[datetime] = None


class DamageReportCreate(BaseModel):
    reference_type: str = INBOUND_ORDER_REFERENCE
    reference_id: str
    product_id: str
    quantity: int = Field(..., gt=0)
    damage_type: str = "physical"
    description: Optional[str] = None


class DamageReportFilters(BaseModel):
    reference_type: Optional[str] = None
    reference_id: Optional[str] = None
    product_id: Optional[str] = None
    resolution: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    def as_params(self) -> dict:
        return {k: v for k, v in self.model_dump().items() if v is not None}
