# inbound_desk/api/routers/damage_reports.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends

from inbound_desk.api.deps import get_data_api
from inbound_desk.clients.base import DataApi
from inbound_desk.schemas.damage_report import DamageReport, DamageReportCreate, DamageReportFilters

router = APIRouter(prefix="/damage-reports", tags=["damage-reports"])


@router.get("", response_model=List[DamageReport])
async def list_damage_reports(
    reference_type: Optional[str] = None,
    reference_id: Optional[str] = None,
    product_id: Optional[str] = None,
    resolution: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    api: DataApi = Depends(get_data_api),
) -> List[DamageReport]:
    return await api.get_damage_reports(
        DamageReportFilters(
            reference_type=reference_type,
            reference_id=reference_id,
            product_id=product_id,
            resolution=resolution,
            start_date=start_date,
            end_date=end_date,
        )
    )


@router.post("", response_model=DamageReport, status_code=201)
async def create_damage_report(payload: DamageReportCreate, api: DataApi = Depends(get_data_api)) -> DamageReport:
    return await api.create_damage_report(payload)
