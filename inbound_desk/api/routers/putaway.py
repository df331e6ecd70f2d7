# inbound_desk/api/routers/putaway.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from inbound_desk.api.deps import get_data_api, get_sessions
from inbound_desk.api.problem import raise_404
from inbound_desk.api.sessions import SessionRegistry
from inbound_desk.clients.base import DataApi
from inbound_desk.schemas.receive import StepOut
from inbound_desk.schemas.scanner import PutawaySessionIn, PutawaySessionOut, SelectSublocationIn
from inbound_desk.services.putaway_service import PutAwaySession

router = APIRouter(prefix="/putaway-sessions", tags=["putaway"])


def _out(sid: str, session: PutAwaySession) -> PutawaySessionOut:
    return PutawaySessionOut(session_id=sid, **session.snapshot())


@router.post("", response_model=PutawaySessionOut, status_code=201)
async def open_session(
    payload: PutawaySessionIn,
    api: DataApi = Depends(get_data_api),
    sessions: SessionRegistry = Depends(get_sessions),
) -> PutawaySessionOut:
    order = await api.get_inbound_order(payload.order_id)
    if order is None:
        raise_404("inbound_order_not_found", "Order not found", context={"order_id": payload.order_id})
    session = await PutAwaySession(api, order, payload.location_id).initialize()
    sid = sessions.add(session, prefix="pa")
    return _out(sid, session)


@router.get("/{sid}", response_model=PutawaySessionOut)
async def get_session(sid: str, sessions: SessionRegistry = Depends(get_sessions)) -> PutawaySessionOut:
    return _out(sid, sessions.get(sid, PutAwaySession))


@router.put("/{sid}/items/{item_id}", response_model=PutawaySessionOut)
async def select_sublocation(
    sid: str,
    item_id: str,
    payload: SelectSublocationIn,
    sessions: SessionRegistry = Depends(get_sessions),
) -> PutawaySessionOut:
    session = sessions.get(sid, PutAwaySession)
    session.select(item_id, payload.sublocation_id)
    return _out(sid, session)


@router.post("/{sid}/items/{item_id}/confirm", response_model=PutawaySessionOut)
async def confirm_item(
    sid: str,
    item_id: str,
    sessions: SessionRegistry = Depends(get_sessions),
) -> PutawaySessionOut:
    """Irreversible."""
    session = sessions.get(sid, PutAwaySession)
    await session.confirm(item_id)
    return _out(sid, session)


@router.post("/{sid}/confirm-all")
async def confirm_all(sid: str, sessions: SessionRegistry = Depends(get_sessions)) -> dict:
    """
    Confirm every selected, unconfirmed line in order; stops at the first
    failure. Lines confirmed before the failure stay confirmed.
    """
    session = sessions.get(sid, PutAwaySession)
    report = await session.confirm_all()
    return {
        "ok": report.ok,
        "summary": report.summary(),
        "steps": [StepOut(key=s.key, status=s.status, error=s.error).model_dump() for s in report.steps],
        "session": _out(sid, session).model_dump(mode="json"),
    }


@router.delete("/{sid}", status_code=204)
async def close_session(sid: str, sessions: SessionRegistry = Depends(get_sessions)) -> Response:
    sessions.discard(sid)
    return Response(status_code=204)
