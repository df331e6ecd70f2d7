# inbound_desk/gateway/scan_putaway.py
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from inbound_desk.clients.base import DataApi, DataApiError
from inbound_desk.gateway.audio import AudioFeedback
from inbound_desk.gateway.barcode import (
    NotFound,
    ResolvedLocation,
    ResolvedLpn,
    ResolvedProduct,
    ResolvedSublocation,
)
from inbound_desk.gateway.scan_events import ScanEventLogger
from inbound_desk.gateway.scanner_base import Scanner, ScanStatus
from inbound_desk.schemas.pallet import LpnStage, LpnStatus, Pallet
from inbound_desk.schemas.scan import ScanResult, ScanType, WorkflowStage
from inbound_desk.services.workflow_errors import ScanStateError

logger = logging.getLogger(__name__)

PHASE_ITEM = "product_or_lpn"
PHASE_LOCATION = "location"


@dataclass
class ScannedLocation:
    id: str
    name: str
    code: str = ""


@dataclass
class RecentPutaway:
    item: str
    location: str
    qty: int
    time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class PutawayScanner(Scanner):
    """
    Two scans, one move:

    1) product or LPN
    2) location or sublocation (a sublocation also fills its parent
       location)

    confirm moves the LPN (move + active/storage) or puts a product
    quantity away, records it in the recent list and resets to phase 1.
    """

    stage = WorkflowStage.PUTAWAY

    def __init__(
        self,
        api: DataApi,
        *,
        events: Optional[ScanEventLogger] = None,
        audio: Optional[AudioFeedback] = None,
        recent_limit: int = 10,
        performed_by: Optional[str] = None,
    ) -> None:
        super().__init__(api, events=events, audio=audio)
        self.recent_limit = recent_limit
        self.performed_by = performed_by
        self.recent: List[RecentPutaway] = []
        self._clear()

    def _clear(self) -> None:
        self.phase = PHASE_ITEM
        self.product: Optional[ResolvedProduct] = None
        self.lpn: Optional[Pallet] = None
        self.location: Optional[ScannedLocation] = None
        self.sublocation: Optional[ResolvedSublocation] = None
        self.qty = 1

    def reset(self) -> None:
        self._clear()
        self.status = ScanStatus.IDLE
        self.message = None

    @property
    def can_confirm(self) -> bool:
        return (self.product is not None or self.lpn is not None) and self.location is not None

    def set_qty(self, qty: int) -> None:
        if qty <= 0:
            raise ScanStateError("Quantity must be at least 1", code="invalid_quantity")
        self.qty = int(qty)

    # ------------------------------------------------------------------ #
    # scanning
    # ------------------------------------------------------------------ #
    async def scan(self, code: str) -> None:
        if self.phase == PHASE_ITEM:
            await self._scan_item(code)
        else:
            await self._scan_location(code)

    async def _scan_item(self, code: str) -> None:
        resolved = await self._resolve(code)
        if resolved is None:
            return
        match resolved:
            case NotFound():
                await self._log(resolved, result=ScanResult.ERROR, error_message="Barcode not found")
                self._fail(f"Barcode not found: {resolved.code}", ScanStatus.NOT_FOUND)

            case ResolvedProduct():
                await self._log(resolved)
                self.product = resolved
                self.lpn = None
                self.phase = PHASE_LOCATION
                self._ok("Product found. Now scan destination location.", ScanStatus.FOUND)

            case ResolvedLpn():
                try:
                    lpn = await self.api.get_lpn_by_number(resolved.lpn_number)
                except DataApiError as e:
                    await self._log(resolved, result=ScanResult.ERROR, error_message=e.message)
                    self._fail(e.message, ScanStatus.ERROR)
                    return
                if lpn is None:
                    await self._log(resolved, result=ScanResult.ERROR, error_message="LPN not found")
                    self._fail(f"LPN not found: {resolved.lpn_number}", ScanStatus.NOT_FOUND)
                    return
                await self._log(resolved)
                self.lpn = lpn
                self.product = None
                self.phase = PHASE_LOCATION
                self._ok("LPN found. Now scan destination location.", ScanStatus.FOUND)

            case _:
                await self._log(resolved, result=ScanResult.ERROR, error_message="Expected a product or LPN")
                self._fail("Please scan a product or LPN first.", ScanStatus.ERROR)

    async def _scan_location(self, code: str) -> None:
        resolved = await self._resolve(code, expected=ScanType.LOCATION)
        if resolved is None:
            return
        match resolved:
            case NotFound():
                await self._log(
                    resolved,
                    result=ScanResult.ERROR,
                    error_message="Location not found",
                    expected=ScanType.LOCATION,
                )
                self._fail(f"Location not found: {resolved.code}")

            case ResolvedLocation(id=loc_id, name=name, location_code=loc_code):
                await self._log(resolved)
                self.location = ScannedLocation(id=loc_id, name=name, code=loc_code)
                self.sublocation = None
                self._ok("Location scanned. Ready to confirm putaway.")

            case ResolvedSublocation(location_id=parent_id):
                await self._log(resolved)
                self.sublocation = resolved
                self.location = await self._parent_location(parent_id)
                self._ok("Sublocation scanned. Ready to confirm putaway.")

            case _:
                await self._log(
                    resolved,
                    result=ScanResult.ERROR,
                    error_message="Expected a location or bin",
                    expected=ScanType.LOCATION,
                )
                self._fail("Please scan a location or bin code.")

    async def _parent_location(self, location_id: str) -> ScannedLocation:
        for loc in await self.api.get_locations():
            if loc.id == location_id:
                return ScannedLocation(id=loc.id, name=loc.name, code=loc.code or "")
        return ScannedLocation(id=location_id, name=location_id)

    # ------------------------------------------------------------------ #
    # confirm
    # ------------------------------------------------------------------ #
    async def confirm(self) -> Optional[RecentPutaway]:
        if self.location is None:
            raise ScanStateError("Please scan a destination location.", code="location_required")
        if self.product is None and self.lpn is None:
            raise ScanStateError("Please scan a product or LPN first.", code="item_required")

        location = self.location
        sub_id = self.sublocation.id if self.sublocation else None
        where = self.sublocation.sublocation_code if self.sublocation else location.name

        self.saving = True
        self.message = None
        try:
            if self.lpn is not None:
                lpn = self.lpn
                await self.api.move_lpn(lpn.id, location.id, sub_id)
                await self.api.update_lpn_status(lpn.id, LpnStatus.ACTIVE.value, LpnStage.STORAGE.value)
                entry = RecentPutaway(item=f"LPN {lpn.lpn_number}", location=where, qty=lpn.total_qty)
                text = f"LPN {lpn.lpn_number} put away successfully!"
            elif self.product is not None:
                product = self.product
                await self.api.put_away_inventory(
                    product_id=product.id,
                    location_id=location.id,
                    qty=self.qty,
                    sublocation_id=sub_id,
                    performed_by=self.performed_by,
                )
                entry = RecentPutaway(item=product.name or product.sku, location=where, qty=self.qty)
                text = f"Put away {self.qty} x {product.name or product.sku}"
        except DataApiError as e:
            logger.error("putaway scan confirm failed: %s", e.message)
            self._fail(e.message, ScanStatus.ERROR)
            return None
        finally:
            self.saving = False

        self.recent = [entry, *self.recent][: self.recent_limit]
        logger.info("putaway: %s -> %s (%s)", entry.item, entry.location, entry.qty)
        self._clear()
        self._ok(text, ScanStatus.SUCCESS)
        return entry

    def snapshot(self) -> Dict[str, Any]:
        out = self.base_snapshot()
        out.update(
            {
                "phase": self.phase,
                "product": asdict(self.product) if self.product else None,
                "lpn": self.lpn.model_dump(mode="json") if self.lpn else None,
                "location": asdict(self.location) if self.location else None,
                "sublocation": asdict(self.sublocation) if self.sublocation else None,
                "qty": self.qty,
                "can_confirm": self.can_confirm,
                "recent": [
                    {"item": r.item, "location": r.location, "qty": r.qty, "time": r.time.isoformat()}
                    for r in self.recent
                ],
            }
        )
        return out
