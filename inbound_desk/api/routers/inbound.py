# inbound_desk/api/routers/inbound.py
from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends

from inbound_desk.api.deps import get_sessions, load_order_page
from inbound_desk.api.problem import raise_502
from inbound_desk.api.sessions import SessionRegistry
from inbound_desk.schemas.damage_report import DamageReport
from inbound_desk.schemas.order_view import LineOut, OrderDetailOut, StatusActionOut, StatusStepOut
from inbound_desk.schemas.pallet import Pallet
from inbound_desk.schemas.receive import (
    CreatePalletForOrderIn,
    DamageIn,
    LotEntryOut,
    ReceiveAllIn,
    ReceiveAllOut,
    ReceiveFormOut,
    ReceiveIn,
    ReceiveOut,
    RejectIn,
    StatusIn,
    StatusOut,
    StepOut,
)
from inbound_desk.services.order_detail import OrderDetailPage
from inbound_desk.services.order_status import (
    TransitionResult,
    available_action,
    format_status,
    progress_pct,
    status_steps,
)
from inbound_desk.services.receive_modal import LotEntry, ReceiveModal, ReceiveOutcome

router = APIRouter(prefix="/inbound-orders", tags=["inbound"])


def _detail_out(page: OrderDetailPage) -> OrderDetailOut:
    order = page.require_order()
    recon = page.reconciliation
    action = available_action(order.status)
    return OrderDetailOut(
        order=order,
        status_label=format_status(order.status),
        steps=[StatusStepOut(**asdict(s)) for s in status_steps(order.status)],
        action=StatusActionOut(label=action.label, target=action.target.value) if action else None,
        progress_pct=progress_pct(order.status),
        lines=[
            LineOut(
                item_id=ln.item_id,
                product_id=ln.product_id,
                product_sku=ln.product_sku,
                product_name=ln.product_name,
                qty_expected=ln.qty_expected,
                qty_received=ln.qty_received,
                qty_rejected=ln.qty_rejected,
                qty_damaged=ln.qty_damaged,
                remaining=ln.remaining,
                is_complete=ln.is_complete,
                is_partial=ln.is_partial,
                is_pending=ln.is_pending,
                badge=ln.badge.value if ln.badge else None,
            )
            for ln in recon.lines
        ],
        total_expected=recon.total_expected,
        total_received=recon.total_received,
        locations=page.locations,
        receive_location_id=page.receive_location_id,
        damage_reports=page.damage_reports,
        rules=page.rules,
    )


def _form_out(page: OrderDetailPage, modal: ReceiveModal) -> ReceiveFormOut:
    return ReceiveFormOut(
        order_id=page.order_id,
        item_id=modal.item.id,
        mode=modal.mode.value,
        lot_tracked=modal.is_lot_tracked,
        quantity=modal.quantity,
        remaining=modal.remaining_to_receive,
        lot_entries=[
            LotEntryOut(
                id=e.id,
                lot_number=e.lot_number,
                expiration_date=e.expiration_date,
                batch_number=e.batch_number,
                quantity=e.quantity,
            )
            for e in modal.lot_entries
        ],
        pallets=modal.pallets,
        location_id=modal.location_id,
        expiration_required=modal.rules.expiration_required,
        inspection_required=modal.rules.inspection_required,
    )


def _register_putaway(page: OrderDetailPage, sessions: SessionRegistry) -> Optional[str]:
    if page.putaway is None:
        return None
    return sessions.add(page.putaway, prefix="pa")


def _status_out(result: TransitionResult) -> StatusOut:
    if not result.ok:
        raise_502("status_update_failed", result.error or "Status update failed")
    return StatusOut(ok=result.ok, status=result.status, error=result.error, order=result.order)


def _use_location(page: OrderDetailPage, location_id: Optional[str]) -> None:
    if location_id:
        page.select_location(location_id)


# ---------------------------------------------------------------------------
# order view / status
# ---------------------------------------------------------------------------


@router.get("/{order_id}", response_model=OrderDetailOut)
async def get_order_detail(page: OrderDetailPage = Depends(load_order_page)) -> OrderDetailOut:
    """Order header, status tracker, reconciliation lines, damage and rules in one view."""
    return _detail_out(page)


@router.post("/{order_id}/status", response_model=StatusOut)
async def update_status(payload: StatusIn, page: OrderDetailPage = Depends(load_order_page)) -> StatusOut:
    """One step forward only; 409 otherwise."""
    return _status_out(await page.transition(payload.status))


@router.post("/{order_id}/mark-complete", response_model=StatusOut)
async def mark_complete(page: OrderDetailPage = Depends(load_order_page)) -> StatusOut:
    return _status_out(await page.mark_complete())


# ---------------------------------------------------------------------------
# receive
# ---------------------------------------------------------------------------


@router.post("/{order_id}/items/{item_id}/receive-form", response_model=ReceiveFormOut)
async def open_receive_form(
    item_id: str,
    payload: ReceiveAllIn,
    page: OrderDetailPage = Depends(load_order_page),
) -> ReceiveFormOut:
    """Receive dialog defaults: remaining qty, first lot entry (auto-numbered if configured), pallets."""
    _use_location(page, payload.location_id)
    modal = await page.open_receive(item_id)
    return _form_out(page, modal)


@router.post("/{order_id}/items/{item_id}/receive", response_model=ReceiveOut)
async def receive_item(
    item_id: str,
    payload: ReceiveIn,
    page: OrderDetailPage = Depends(load_order_page),
    sessions: SessionRegistry = Depends(get_sessions),
) -> ReceiveOut:
    _use_location(page, payload.location_id)
    modal = page.prepare_receive(item_id)
    modal.quantity = payload.quantity
    modal.lot_entries = [
        LotEntry(
            lot_number=e.lot_number,
            expiration_date=e.expiration_date,
            batch_number=e.batch_number,
            quantity=e.quantity,
        )
        for e in payload.lot_entries
    ]
    modal.set_pallet_mode(payload.to_pallet)
    if payload.pallet_id:
        modal.select_pallet(payload.pallet_id)

    outcome: ReceiveOutcome = await page.submit_receive()
    return ReceiveOut(
        ok=outcome.ok,
        mode=outcome.mode.value,
        steps=[StepOut(key=s.key, status=s.status, error=s.error) for s in outcome.report.steps],
        inspection_hold=outcome.inspection_hold,
        message=outcome.message,
        order=page.order,
        putaway_session_id=_register_putaway(page, sessions),
    )


@router.post("/{order_id}/items/{item_id}/receive-all", response_model=ReceiveAllOut)
async def receive_all(
    item_id: str,
    payload: ReceiveAllIn,
    page: OrderDetailPage = Depends(load_order_page),
    sessions: SessionRegistry = Depends(get_sessions),
) -> ReceiveAllOut:
    """Whole line in one click; lot-tracked lines (or no location) get the receive dialog instead."""
    _use_location(page, payload.location_id)
    modal = await page.receive_all(item_id)
    if modal is not None:
        return ReceiveAllOut(received=False, form=_form_out(page, modal), order=page.order)
    return ReceiveAllOut(
        received=True,
        order=page.order,
        putaway_session_id=_register_putaway(page, sessions),
    )


@router.post("/{order_id}/items/{item_id}/reject", response_model=OrderDetailOut)
async def reject_item(
    item_id: str,
    payload: RejectIn,
    page: OrderDetailPage = Depends(load_order_page),
) -> OrderDetailOut:
    await page.reject(item_id, payload.qty, payload.reason, payload.notes)
    return _detail_out(page)


@router.post("/{order_id}/items/{item_id}/damage", response_model=DamageReport)
async def report_damage(
    item_id: str,
    payload: DamageIn,
    page: OrderDetailPage = Depends(load_order_page),
) -> DamageReport:
    return await page.report_damage(item_id, payload.qty, payload.damage_type, payload.description)


@router.post("/{order_id}/pallets", response_model=Pallet)
async def create_pallet(
    payload: CreatePalletForOrderIn,
    page: OrderDetailPage = Depends(load_order_page),
) -> Pallet:
    _use_location(page, payload.location_id)
    return await page.create_pallet()

