# inbound_desk/schemas/checklist.py
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class ChecklistToggleIn(BaseModel):
    completed_item_ids: List[str] = Field(default_factory=list)
    submitted: bool = False


class ChecklistToggleOut(BaseModel):
    checklist_id: str
    item_id: str
    completed_item_ids: List[str]
    ok: bool
    error: Optional[str] = None
