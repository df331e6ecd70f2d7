# inbound_desk/gateway/scan_events.py
from __future__ import annotations

import logging
from typing import Optional

from inbound_desk.clients.base import DataApi, DataApiError
from inbound_desk.gateway.barcode import (
    NotFound,
    Resolution,
    ResolvedLocation,
    ResolvedLpn,
    ResolvedProduct,
    ResolvedSublocation,
)
from inbound_desk.obs.metrics import scan_events_total
from inbound_desk.schemas.scan import ScanEventIn, ScanResult, ScanType, WorkflowStage

logger = logging.getLogger(__name__)


def scan_type_for(resolution: Resolution, fallback: ScanType = ScanType.PRODUCT) -> ScanType:
    match resolution:
        case ResolvedProduct():
            return ScanType.PRODUCT
        case ResolvedLpn():
            return ScanType.LPN
        case ResolvedLocation():
            return ScanType.LOCATION
        case ResolvedSublocation():
            return ScanType.SUBLOCATION
        case _:
            return fallback


def event_for(
    resolution: Resolution,
    stage: WorkflowStage,
    *,
    result: ScanResult = ScanResult.SUCCESS,
    error_message: Optional[str] = None,
    expected: ScanType = ScanType.PRODUCT,
    **extra,
) -> ScanEventIn:
    """Build the scan-event payload; ids come from the resolution."""
    ids = {}
    match resolution:
        case ResolvedProduct(id=pid):
            ids["product_id"] = pid
        case ResolvedLpn(id=lid):
            ids["lpn_id"] = lid
        case ResolvedLocation(id=loc):
            ids["location_id"] = loc
        case ResolvedSublocation(id=sub, location_id=loc):
            ids["sublocation_id"] = sub
            ids["location_id"] = loc or None
        case NotFound():
            pass
    ids.update({k: v for k, v in extra.items() if v is not None})
    return ScanEventIn(
        scan_type=scan_type_for(resolution, expected),
        barcode=resolution.code,
        workflow_stage=stage,
        scan_result=result,
        error_message=error_message,
        **ids,
    )


class ScanEventLogger:
    """
    Writes every scan to the data API scan-event log, found or not.

    A failed write does not stop the operator: it is logged, counted and
    the scanner carries on.
    """

    def __init__(
        self,
        api: DataApi,
        *,
        scanner_id: Optional[str] = None,
        station_id: Optional[str] = None,
        scanned_by: Optional[str] = None,
    ) -> None:
        self.api = api
        self.scanner_id = scanner_id
        self.station_id = station_id
        self.scanned_by = scanned_by

    async def log(self, event: ScanEventIn) -> bool:
        event = event.model_copy(
            update={
                "scanner_id": event.scanner_id or self.scanner_id,
                "station_id": event.station_id or self.station_id,
                "scanned_by": event.scanned_by or self.scanned_by,
            }
        )
        scan_events_total.labels(event.workflow_stage.value, event.scan_result.value).inc()
        logger.info(
            "scan %s %s [%s] %s",
            event.workflow_stage.value,
            event.scan_type.value,
            event.scan_result.value,
            event.barcode,
        )
        try:
            await self.api.log_scan_event(event)
        except DataApiError as e:
            logger.error("scan event not recorded (%s): %s", event.barcode, e.message)
            scan_events_total.labels(event.workflow_stage.value, "log_failed").inc()
            return False
        return True
