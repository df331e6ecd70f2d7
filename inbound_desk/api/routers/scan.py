# inbound_desk/api/routers/scan.py
from __future__ import annotations

from typing import Any, Dict, Union

from fastapi import APIRouter, Depends, Response

from inbound_desk.api.deps import get_app_settings, get_data_api, get_sessions
from inbound_desk.api.problem import raise_422
from inbound_desk.api.sessions import SessionRegistry
from inbound_desk.clients.base import DataApi
from inbound_desk.core.config import AppSettings
from inbound_desk.gateway.audio import AudioFeedback
from inbound_desk.gateway.scan_events import ScanEventLogger
from inbound_desk.gateway.scan_putaway import PutawayScanner
from inbound_desk.gateway.scan_receive import ReceivingScanner
from inbound_desk.gateway.scan_ship import ShipScanner
from inbound_desk.gateway.scanner_base import Scanner
from inbound_desk.schemas.scanner import ScanIn, ScannerIn, ScannerUpdateIn
from inbound_desk.services.workflow_errors import ScanStateError

router = APIRouter(prefix="/scanners", tags=["scan"])

AnyScanner = Union[PutawayScanner, ShipScanner, ReceivingScanner]


def _out(sid: str, scanner: AnyScanner) -> Dict[str, Any]:
    out = scanner.snapshot()
    out["session_id"] = sid
    return out


@router.post("", status_code=201)
async def open_scanner(
    payload: ScannerIn,
    api: DataApi = Depends(get_data_api),
    sessions: SessionRegistry = Depends(get_sessions),
    settings: AppSettings = Depends(get_app_settings),
) -> Dict[str, Any]:
    """
    Open a scanner session.

    - putaway:   product/LPN → location/bin
    - ship:      verify every carton of outbound_order_id
    - receiving: scan products of inbound order_id
    """
    events = ScanEventLogger(api, scanner_id=settings.SCANNER_ID, station_id=settings.STATION_ID)
    audio = AudioFeedback(
        enabled=settings.AUDIO_FEEDBACK_DEFAULT if payload.audio_enabled is None else payload.audio_enabled
    )

    scanner: AnyScanner
    if payload.kind == "putaway":
        scanner = PutawayScanner(api, events=events, audio=audio, recent_limit=settings.RECENT_PUTAWAYS_LIMIT)
    elif payload.kind == "ship":
        if not payload.outbound_order_id:
            raise_422("outbound_order_required", "outbound_order_id is required for the ship scanner")
        scanner = await ShipScanner(api, payload.outbound_order_id, events=events, audio=audio).load()
    elif payload.kind == "receiving":
        if not payload.order_id:
            raise_422("order_required", "order_id is required for the receiving scanner")
        scanner = await ReceivingScanner(
            api, payload.order_id, location_id=payload.location_id, events=events, audio=audio
        ).load()
    else:
        raise_422("unknown_scanner_kind", f"unknown scanner kind: {payload.kind}")

    sid = sessions.add(scanner, prefix="sc")
    return _out(sid, scanner)


@router.get("/{sid}")
async def get_scanner(sid: str, sessions: SessionRegistry = Depends(get_sessions)) -> Dict[str, Any]:
    return _out(sid, sessions.get(sid, Scanner))


@router.post("/{sid}/scan")
async def scan(sid: str, payload: ScanIn, sessions: SessionRegistry = Depends(get_sessions)) -> Dict[str, Any]:
    scanner = sessions.get(sid, Scanner)
    await scanner.scan(payload.code)
    return _out(sid, scanner)


@router.post("/{sid}/lot")
async def scan_lot(sid: str, payload: ScanIn, sessions: SessionRegistry = Depends(get_sessions)) -> Dict[str, Any]:
    scanner = sessions.get(sid, ReceivingScanner)
    await scanner.scan_lot(payload.code)
    return _out(sid, scanner)


@router.patch("/{sid}")
async def update_scanner(
    sid: str,
    payload: ScannerUpdateIn,
    sessions: SessionRegistry = Depends(get_sessions),
) -> Dict[str, Any]:
    """Operator inputs between scans: quantity, lot, shipping details, sound on/off."""
    scanner = sessions.get(sid, Scanner)
    if payload.audio_enabled is not None:
        scanner.audio.toggle(payload.audio_enabled)

    if isinstance(scanner, PutawayScanner):
        if payload.qty is not None:
            scanner.set_qty(payload.qty)
    elif isinstance(scanner, ShipScanner):
        scanner.set_shipping_details(carrier=payload.carrier, tracking_number=payload.tracking_number)
    elif isinstance(scanner, ReceivingScanner):
        if payload.location_id:
            scanner.location_id = payload.location_id
        if payload.item_id:
            scanner.manual_select(payload.item_id)
        scanner.set_lot(payload.lot_number, payload.expiration_date)
        if payload.add_all:
            scanner.add_all()
        elif payload.add_qty:
            scanner.add_qty(payload.add_qty)
    return _out(sid, scanner)


@router.post("/{sid}/confirm")
async def confirm(sid: str, sessions: SessionRegistry = Depends(get_sessions)) -> Dict[str, Any]:
    scanner = sessions.get(sid, Scanner)
    await scanner.confirm()
    return _out(sid, scanner)


@router.post("/{sid}/reset")
async def reset(sid: str, sessions: SessionRegistry = Depends(get_sessions)) -> Dict[str, Any]:
    scanner = sessions.get(sid, Scanner)
    if not isinstance(scanner, (PutawayScanner, ReceivingScanner)):
        raise ScanStateError("This scanner has nothing to reset", code="not_resettable")
    scanner.reset()
    return _out(sid, scanner)


@router.delete("/{sid}", status_code=204)
async def close_scanner(sid: str, sessions: SessionRegistry = Depends(get_sessions)) -> Response:
    sessions.discard(sid)
    return Response(status_code=204)
