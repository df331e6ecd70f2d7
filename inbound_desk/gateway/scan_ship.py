# inbound_desk/gateway/scan_ship.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from inbound_desk.clients.base import DataApi, DataApiError
from inbound_desk.gateway.audio import AudioFeedback
from inbound_desk.gateway.barcode import NotFound, ResolvedLpn
from inbound_desk.gateway.scan_events import ScanEventLogger
from inbound_desk.gateway.scanner_base import Scanner, ScanStatus
from inbound_desk.schemas.pallet import LpnStage, LpnStatus, Pallet
from inbound_desk.schemas.scan import ScanResult, ScanType, WorkflowStage
from inbound_desk.services.workflow_errors import RecordNotFound, ScanStateError

logger = logging.getLogger(__name__)

OUTBOUND_ORDER_REFERENCE = "outbound_order"


class ShipmentCarton:
    def __init__(self, lpn: Pallet) -> None:
        self.lpn = lpn
        self.scanned = False

    @property
    def id(self) -> str:
        return self.lpn.id

    @property
    def lpn_number(self) -> str:
        return self.lpn.lpn_number


class ShipScanner(Scanner):
    """
    Carton verification before handing an outbound order to the carrier.

    Every carton of the order must be scanned once; shipping also needs a
    carrier and a tracking number. Confirm marks each carton shipped, then
    the order.
    """

    stage = WorkflowStage.SHIPPING

    def __init__(
        self,
        api: DataApi,
        outbound_order_id: str,
        *,
        events: Optional[ScanEventLogger] = None,
        audio: Optional[AudioFeedback] = None,
    ) -> None:
        super().__init__(api, events=events, audio=audio)
        self.outbound_order_id = outbound_order_id
        self.order_number = ""
        self.carrier = ""
        self.tracking_number = ""
        self.cartons: List[ShipmentCarton] = []
        self.shipped = False

    async def load(self) -> "ShipScanner":
        order = await self.api.get_outbound_order(self.outbound_order_id)
        if order is None:
            raise RecordNotFound(f"outbound order {self.outbound_order_id} not found")
        self.order_number = str(order.get("order_number") or "")
        self.carrier = order.get("carrier") or ""
        self.tracking_number = order.get("tracking_number") or ""
        try:
            lpns = await self.api.get_shipment_cartons(self.outbound_order_id)
        except DataApiError as e:
            logger.error("failed to fetch cartons for %s: %s", self.outbound_order_id, e.message)
            lpns = []
        self.cartons = [ShipmentCarton(lpn) for lpn in lpns]
        return self

    @property
    def all_scanned(self) -> bool:
        return bool(self.cartons) and all(c.scanned for c in self.cartons)

    @property
    def scanned_count(self) -> int:
        return sum(1 for c in self.cartons if c.scanned)

    def set_shipping_details(self, *, carrier: Optional[str] = None, tracking_number: Optional[str] = None) -> None:
        if carrier is not None:
            self.carrier = carrier.strip()
        if tracking_number is not None:
            self.tracking_number = tracking_number.strip()

    def _carton(self, lpn_id: str) -> Optional[ShipmentCarton]:
        for c in self.cartons:
            if c.id == lpn_id:
                return c
        return None

    async def scan(self, code: str) -> None:
        ref = {"reference_type": OUTBOUND_ORDER_REFERENCE, "reference_id": self.outbound_order_id}
        resolved = await self._resolve(code, expected=ScanType.LPN, **ref)
        if resolved is None:
            return

        match resolved:
            case NotFound():
                await self._log(
                    resolved, result=ScanResult.ERROR, error_message="Barcode not found", expected=ScanType.LPN, **ref
                )
                self._fail(f"Carton not found: {resolved.code}", ScanStatus.NOT_FOUND)

            case ResolvedLpn(id=lpn_id):
                carton = self._carton(lpn_id)
                if carton is None:
                    await self._log(
                        resolved, result=ScanResult.ERROR, error_message="Carton belongs to another order", **ref
                    )
                    self._fail("This carton does not belong to this order", ScanStatus.WRONG_ORDER)
                    return
                if carton.scanned:
                    await self._log(resolved, result=ScanResult.WARNING, error_message="Already scanned", **ref)
                    self._warn(f"Carton {carton.lpn_number} already scanned")
                    return
                await self._log(resolved, **ref)
                carton.scanned = True
                self._ok(f"Carton {carton.lpn_number} verified", ScanStatus.FOUND)

            case _:
                await self._log(
                    resolved, result=ScanResult.ERROR, error_message="Expected a carton", expected=ScanType.LPN, **ref
                )
                self._fail("Please scan a carton/LPN barcode")

    async def confirm(self) -> bool:
        if not self.all_scanned:
            raise ScanStateError("Please scan all cartons before shipping", code="cartons_pending")
        if not self.carrier or not self.tracking_number:
            raise ScanStateError("Please enter carrier and tracking information", code="shipping_details_required")

        self.saving = True
        self.message = None
        try:
            for carton in self.cartons:
                await self.api.update_lpn_status(carton.id, LpnStatus.SHIPPED.value, LpnStage.SHIPPED.value)
            await self.api.update_outbound_order_status(
                self.outbound_order_id,
                "shipped",
                carrier=self.carrier,
                tracking_number=self.tracking_number,
            )
        except DataApiError as e:
            logger.error("ship confirm failed for %s: %s", self.outbound_order_id, e.message)
            self._fail(e.message, ScanStatus.ERROR)
            return False
        finally:
            self.saving = False

        self.shipped = True
        logger.info("outbound order %s shipped: %s cartons via %s", self.outbound_order_id, len(self.cartons), self.carrier)
        self._ok("Shipment confirmed!", ScanStatus.SUCCESS)
        return True

    def snapshot(self) -> Dict[str, Any]:
        out = self.base_snapshot()
        out.update(
            {
                "outbound_order_id": self.outbound_order_id,
                "order_number": self.order_number,
                "carrier": self.carrier,
                "tracking_number": self.tracking_number,
                "cartons": [{"id": c.id, "lpn_number": c.lpn_number, "scanned": c.scanned} for c in self.cartons],
                "scanned": self.scanned_count,
                "all_scanned": self.all_scanned,
                "shipped": self.shipped,
            }
        )
        return out
