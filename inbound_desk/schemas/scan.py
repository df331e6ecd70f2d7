# inbound_desk/schemas/scan.py
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ScanType(str, Enum):
    PRODUCT = "product"
    LPN = "lpn"
    LOCATION = "location"
    SUBLOCATION = "sublocation"
    LOT = "lot"


class WorkflowStage(str, Enum):
    RECEIVING = "receiving"
    PUTAWAY = "putaway"
    PICKING = "picking"
    PACKING = "packing"
    SHIPPING = "shipping"
    CYCLE_COUNT = "cycle_count"
    TRANSFER = "transfer"
    RETURN_PROCESSING = "return_processing"
    DAMAGE_INSPECTION = "damage_inspection"


class ScanResult(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"


class ScanEventIn(BaseModel):
    """Payload for the data API scan-event log. Unset ids are sent as null."""

    scan_type: ScanType
    barcode: str
    workflow_stage: WorkflowStage
    scan_result: ScanResult = ScanResult.SUCCESS

    product_id: Optional[str] = None
    lpn_id: Optional[str] = None
    location_id: Optional[str] = None
    sublocation_id: Optional[str] = None
    lot_id: Optional[str] = None

    reference_type: Optional[str] = None
    reference_id: Optional[str] = None
    scanner_id: Optional[str] = None
    station_id: Optional[str] = None

    error_message: Optional[str] = None
    qty_scanned: Optional[int] = None
    scanned_by: Optional[str] = None


class ScanEvent(ScanEventIn):
    model_config = ConfigDict(extra="ignore")

    id: str
    scanned_at: Optional[datetime] = None
