# inbound_desk/api/routers/checklists.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from inbound_desk.api.deps import get_data_api
from inbound_desk.clients.base import DataApi
from inbound_desk.schemas.checklist import ChecklistToggleIn, ChecklistToggleOut
from inbound_desk.services.checklists import ChecklistView

router = APIRouter(prefix="/checklists", tags=["checklists"])


@router.post("/{checklist_id}/items/{item_id}/toggle", response_model=ChecklistToggleOut)
async def toggle_item(
    checklist_id: str,
    item_id: str,
    payload: ChecklistToggleIn,
    api: DataApi = Depends(get_data_api),
) -> ChecklistToggleOut:
    """
    The caller sends the completed set it currently shows; the answer is
    the set to show next (the previous one when the data API refused).
    """
    view = ChecklistView(api, checklist_id, payload.completed_item_ids, submitted=payload.submitted)
    return await view.toggle(item_id)
