# inbound_desk/schemas/putaway.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SuggestedPutAway(BaseModel):
    """
    Data API suggestion for where received stock should go.

    `reason` is human readable, e.g. "Same product already stored here".
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    suggested_location_id: Optional[str] = Field(None, alias="suggestedLocationId")
    suggested_location_name: Optional[str] = Field(None, alias="suggestedLocationName")
    suggested_sublocation_id: Optional[str] = Field(None, alias="suggestedSublocationId")
    suggested_sublocation_code: Optional[str] = Field(None, alias="suggestedSublocationCode")
    reason: str = ""


class PutAwayItemOut(BaseModel):
    item_id: str
    product_id: str
    product_name: str
    product_sku: str
    qty_received: int
    location_id: str
    suggestion: Optional[SuggestedPutAway] = None
    selected_sublocation_id: str = ""
    confirmed: bool = False
