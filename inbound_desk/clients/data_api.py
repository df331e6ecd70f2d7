# inbound_desk/clients/data_api.py
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional

import httpx

from inbound_desk.clients.base import DataApiError
from inbound_desk.core.config import AppSettings
from inbound_desk.obs.metrics import data_api_calls_total
from inbound_desk.schemas.damage_report import DamageReport, DamageReportCreate, DamageReportFilters
from inbound_desk.schemas.inbound import InboundOrder, Location, OrderStatus, Sublocation
from inbound_desk.schemas.pallet import Pallet
from inbound_desk.schemas.putaway import SuggestedPutAway
from inbound_desk.schemas.scan import ScanEventIn
from inbound_desk.schemas.workflow_rules import WorkflowRules

logger = logging.getLogger(__name__)


def _error_message(resp: httpx.Response) -> str:
    """
    Pull a readable message out of a failed response.
    Tolerates {"message"}, {"detail"}, {"error": {"message"}} and plain text.
    """
    try:
        body = resp.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        if body.get("message"):
            return str(body["message"])
        detail = body.get("detail")
        if isinstance(detail, dict) and detail.get("message"):
            return str(detail["message"])
        if isinstance(detail, str) and detail:
            return detail
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])

    text = (resp.text or "").strip()
    return text or f"HTTP {resp.status_code}"


class HttpDataApi:
    """
    httpx implementation of the DataApi protocol.

    - one AsyncClient per instance (inject one for tests / custom transports)
    - bearer token from settings; auth itself lives on the data API side
    - timeout None by default: no client-side timeout, no retry
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
        )

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "HttpDataApi":
        return cls(
            settings.DATA_API_BASE_URL,
            token=settings.DATA_API_TOKEN,
            timeout=settings.DATA_API_TIMEOUT,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------ #
    # transport
    # ------------------------------------------------------------------ #
    async def _request(
        self,
        op: str,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        allow_404: bool = False,
    ) -> Any:
        try:
            resp = await self._client.request(method, path, json=json, params=params)
        except httpx.HTTPError as e:
            data_api_calls_total.labels(op, "transport_error").inc()
            logger.error("data api %s %s failed: %s", method, path, e)
            raise DataApiError(str(e) or "network error", op=op) from e

        if resp.status_code == 404 and allow_404:
            data_api_calls_total.labels(op, "not_found").inc()
            return None

        if resp.status_code >= 400:
            data_api_calls_total.labels(op, "error").inc()
            message = _error_message(resp)
            logger.warning("data api %s -> %s: %s", op, resp.status_code, message)
            raise DataApiError(message, status_code=resp.status_code, op=op)

        data_api_calls_total.labels(op, "ok").inc()
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    # ------------------------------------------------------------------ #
    # inbound orders
    # ------------------------------------------------------------------ #
    async def get_inbound_order(self, order_id: str) -> Optional[InboundOrder]:
        data = await self._request("getInboundOrder", "GET", f"/inbound-orders/{order_id}", allow_404=True)
        return InboundOrder.model_validate(data) if data else None

    async def update_inbound_order_status(self, order_id: str, status: OrderStatus) -> None:
        await self._request(
            "updateInboundOrderStatus",
            "PATCH",
            f"/inbound-orders/{order_id}/status",
            json={"status": OrderStatus(status).value},
        )

    async def receive_inbound_item(self, item_id: str, qty_received: int, location_id: str) -> None:
        await self._request(
            "receiveInboundItem",
            "POST",
            f"/inbound-items/{item_id}/receive",
            json={"qty_received": qty_received, "location_id": location_id},
        )

    async def receive_with_lot(
        self,
        item_id: str,
        qty_received: int,
        location_id: str,
        lot_number: str,
        expiration_date: Optional[date],
    ) -> None:
        await self._request(
            "receiveWithLot",
            "POST",
            f"/inbound-items/{item_id}/receive-lot",
            json={
                "qty_received": qty_received,
                "location_id": location_id,
                "lot_number": lot_number,
                "expiration_date": expiration_date.isoformat() if expiration_date else None,
            },
        )

    async def receive_inbound_item_to_pallet(
        self, *, item_id: str, qty_received: int, location_id: str, pallet_id: str
    ) -> None:
        await self._request(
            "receiveInboundItemToPallet",
            "POST",
            f"/inbound-items/{item_id}/receive-pallet",
            json={"qty_received": qty_received, "location_id": location_id, "pallet_id": pallet_id},
        )

    async def reject_inbound_item(
        self, item_id: str, qty: int, reason: str, notes: Optional[str] = None
    ) -> None:
        await self._request(
            "rejectInboundItem",
            "POST",
            f"/inbound-items/{item_id}/reject",
            json={"qty": qty, "reason": reason, "notes": notes},
        )

    # ------------------------------------------------------------------ #
    # pallets / LPNs
    # ------------------------------------------------------------------ #
    async def create_pallet_for_receiving(
        self,
        *,
        location_id: Optional[str] = None,
        sublocation_id: Optional[str] = None,
        inbound_order_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Pallet:
        data = await self._request(
            "createPalletForReceiving",
            "POST",
            "/lpns",
            json={
                "container_type": "pallet",
                "location_id": location_id,
                "sublocation_id": sublocation_id,
                "reference_type": "inbound_order" if inbound_order_id else None,
                "reference_id": inbound_order_id,
                "notes": notes or "Created during receiving",
            },
        )
        return Pallet.model_validate(data)

    async def get_pallet_lpns(self, location_id: Optional[str] = None) -> List[Pallet]:
        params: Dict[str, Any] = {"container_type": "pallet"}
        if location_id:
            params["location_id"] = location_id
        data = await self._request("getPalletLPNs", "GET", "/lpns", params=params)
        return [Pallet.model_validate(row) for row in data or []]

    async def get_lpn_by_number(self, lpn_number: str) -> Optional[Pallet]:
        data = await self._request(
            "getLpnByNumber", "GET", f"/lpns/by-number/{lpn_number}", allow_404=True
        )
        return Pallet.model_validate(data) if data else None

    async def move_lpn(self, lpn_id: str, location_id: str, sublocation_id: Optional[str] = None) -> None:
        await self._request(
            "moveLpn",
            "POST",
            f"/lpns/{lpn_id}/move",
            json={"location_id": location_id, "sublocation_id": sublocation_id},
        )

    async def update_lpn_status(self, lpn_id: str, status: str, stage: Optional[str] = None) -> None:
        await self._request(
            "updateLpnStatus",
            "PATCH",
            f"/lpns/{lpn_id}/status",
            json={"status": status, "stage": stage},
        )

    # ------------------------------------------------------------------ #
    # workflow rules / lots / inspection
    # ------------------------------------------------------------------ #
    async def get_inbound_workflow_rules_for_order(self, order_id: str) -> WorkflowRules:
        data = await self._request(
            "getInboundWorkflowRulesForOrder",
            "GET",
            f"/inbound-orders/{order_id}/workflow-rules",
            allow_404=True,
        )
        return WorkflowRules.load(data)

    async def generate_lot_number(
        self, *, lot_format: Optional[str], sku: Optional[str] = None, supplier: Optional[str] = None
    ) -> str:
        data = await self._request(
            "generateLotNumber",
            "POST",
            "/lots/generate-number",
            json={"format": lot_format, "sku": sku, "supplier": supplier},
        )
        if isinstance(data, dict):
            return str(data.get("lot_number") or "")
        return str(data or "")

    async def place_on_inspection_hold(self, item_id: str, order_id: str, reason: str) -> None:
        await self._request(
            "placeOnInspectionHold",
            "POST",
            f"/inbound-items/{item_id}/inspection-hold",
            json={"order_id": order_id, "reason": reason},
        )

    # ------------------------------------------------------------------ #
    # put-away / locations
    # ------------------------------------------------------------------ #
    async def get_suggested_put_away(self, product_id: str, location_id: str, qty: int) -> SuggestedPutAway:
        data = await self._request(
            "getSuggestedPutAway",
            "GET",
            "/putaway/suggestion",
            params={"product_id": product_id, "location_id": location_id, "quantity": qty},
        )
        return SuggestedPutAway.model_validate(data or {})

    async def confirm_put_away(self, product_id: str, location_id: str, sublocation_id: str) -> None:
        await self._request(
            "confirmPutAway",
            "POST",
            "/putaway/confirm",
            json={
                "product_id": product_id,
                "location_id": location_id,
                "sublocation_id": sublocation_id,
            },
        )

    async def put_away_inventory(
        self,
        *,
        product_id: str,
        location_id: str,
        qty: int,
        sublocation_id: Optional[str] = None,
        performed_by: Optional[str] = None,
    ) -> None:
        await self._request(
            "putAwayInventory",
            "POST",
            "/inventory/transactions",
            json={
                "transaction_type": "putaway",
                "product_id": product_id,
                "location_id": location_id,
                "sublocation_id": sublocation_id,
                "qty_change": qty,
                "performed_by": performed_by,
            },
        )

    async def get_sublocations(self, location_id: str) -> List[Sublocation]:
        data = await self._request("getSublocations", "GET", f"/locations/{location_id}/sublocations")
        return [Sublocation.model_validate(row) for row in data or []]

    async def get_locations(self) -> List[Location]:
        data = await self._request("getLocations", "GET", "/locations")
        return [Location.model_validate(row) for row in data or []]

    # ------------------------------------------------------------------ #
    # scanning
    # ------------------------------------------------------------------ #
    async def log_scan_event(self, event: ScanEventIn) -> None:
        await self._request("logScanEvent", "POST", "/scan-events", json=event.model_dump(mode="json"))

    async def resolve_barcode(self, code: str) -> Optional[Dict[str, Any]]:
        return await self._request(
            "resolveBarcode", "GET", "/barcodes/resolve", params={"code": code}, allow_404=True
        )

    # ------------------------------------------------------------------ #
    # outbound (ship scanner)
    # ------------------------------------------------------------------ #
    async def get_outbound_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        return await self._request(
            "getOutboundOrder", "GET", f"/outbound-orders/{order_id}", allow_404=True
        )

    async def get_shipment_cartons(self, order_id: str) -> List[Pallet]:
        data = await self._request("getShipmentCartons", "GET", f"/outbound-orders/{order_id}/cartons")
        return [Pallet.model_validate(row) for row in data or []]

    async def update_outbound_order_status(
        self,
        order_id: str,
        status: str,
        *,
        carrier: Optional[str] = None,
        tracking_number: Optional[str] = None,
    ) -> None:
        await self._request(
            "updateOutboundOrderStatus",
            "PATCH",
            f"/outbound-orders/{order_id}/status",
            json={"status": status, "carrier": carrier, "tracking_number": tracking_number},
        )

    # ------------------------------------------------------------------ #
    # damage reports / checklists
    # ------------------------------------------------------------------ #
    async def get_damage_reports(self, filters: Optional[DamageReportFilters] = None) -> List[DamageReport]:
        params = filters.as_params() if filters else None
        data = await self._request("getDamageReports", "GET", "/damage-reports", params=params)
        return [DamageReport.model_validate(row) for row in data or []]

    async def create_damage_report(self, report: DamageReportCreate) -> DamageReport:
        data = await self._request(
            "createDamageReport", "POST", "/damage-reports", json=report.model_dump(mode="json")
        )
        return DamageReport.model_validate(data)

    async def complete_checklist_item(self, checklist_id: str, item_id: str) -> None:
        await self._request(
            "completeChecklistItem",
            "POST",
            f"/checklists/{checklist_id}/items/{item_id}/toggle",
        )
