# inbound_desk/services/damage_reports.py
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from inbound_desk.clients.base import DataApi
from inbound_desk.schemas.damage_report import (
    INBOUND_ORDER_REFERENCE,
    DamageReport,
    DamageReportCreate,
    DamageReportFilters,
)
from inbound_desk.services.reconciliation import damaged_qty_by_product

logger = logging.getLogger(__name__)


async def list_for_order(api: DataApi, order_id: str) -> List[DamageReport]:
    return await api.get_damage_reports(
        DamageReportFilters(reference_type=INBOUND_ORDER_REFERENCE, reference_id=order_id)
    )


async def report_damage(
    api: DataApi,
    *,
    order_id: str,
    product_id: str,
    quantity: int,
    damage_type: str = "physical",
    description: Optional[str] = None,
) -> DamageReport:
    report = await api.create_damage_report(
        DamageReportCreate(
            reference_type=INBOUND_ORDER_REFERENCE,
            reference_id=order_id,
            product_id=product_id,
            quantity=quantity,
            damage_type=damage_type,
            description=description,
        )
    )
    logger.info("damage reported on order %s: product %s x%s (%s)", order_id, product_id, quantity, damage_type)
    return report


def damaged_for_order(reports: List[DamageReport], order_id: str) -> Dict[str, int]:
    """Damaged quantity per product, counting only reports filed against this order."""
    return damaged_qty_by_product(
        r for r in reports if r.reference_type == INBOUND_ORDER_REFERENCE and r.reference_id == order_id
    )
