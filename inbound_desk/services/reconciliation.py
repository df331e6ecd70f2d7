# inbound_desk/services/reconciliation.py
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional

from inbound_desk.schemas.damage_report import DamageReport
from inbound_desk.schemas.inbound import InboundLineItem, InboundOrder


class ItemBadge(str, Enum):
    COMPLETE_WITH_REJECTIONS = "Partial (Rejected)"
    COMPLETE = "Complete"
    PARTIAL = "Partial"
    PENDING = "Pending"


@dataclass(frozen=True)
class LineReconciliation:
    """
    Read model of one line item.

    - remaining:   expected - received - rejected - damaged, floored at 0
    - is_complete: raw remaining <= 0
    - is_partial:  received > 0 and remaining > 0
    - is_pending:  nothing received, rejected or damaged yet
    - badge:       Partial (Rejected) > Complete > Partial > Pending
    """

    item_id: str
    product_id: str
    product_sku: str
    product_name: str

    qty_expected: int
    qty_received: int
    qty_rejected: int
    qty_damaged: int

    remaining: int
    is_complete: bool
    is_partial: bool
    is_pending: bool
    has_rejections: bool
    has_damage: bool
    badge: Optional[ItemBadge]


@dataclass(frozen=True)
class OrderReconciliation:
    lines: List[LineReconciliation]
    total_expected: int
    total_received: int

    def line(self, item_id: str) -> Optional[LineReconciliation]:
        for ln in self.lines:
            if ln.item_id == item_id:
                return ln
        return None


def raw_remaining(qty_expected: int, qty_received: int, qty_rejected: int, qty_damaged: int) -> int:
    return qty_expected - qty_received - qty_rejected - qty_damaged


def badge_for(
    qty_expected: int, qty_received: int, qty_rejected: int, qty_damaged: int
) -> Optional[ItemBadge]:
    rem = raw_remaining(qty_expected, qty_received, qty_rejected, qty_damaged)
    if rem <= 0:
        return ItemBadge.COMPLETE_WITH_REJECTIONS if qty_rejected > 0 else ItemBadge.COMPLETE
    if qty_received > 0:
        return ItemBadge.PARTIAL
    if qty_rejected == 0 and qty_damaged == 0:
        return ItemBadge.PENDING
    # something rejected/damaged, nothing received, not yet complete
    return None


def damaged_qty_by_product(reports: Iterable[DamageReport]) -> Dict[str, int]:
    out: Dict[str, int] = defaultdict(int)
    for r in reports:
        out[r.product_id] += int(r.quantity)
    return dict(out)


def reconcile_line(item: InboundLineItem, qty_damaged: int = 0) -> LineReconciliation:
    rejected = item.qty_rejected or 0
    rem = raw_remaining(item.qty_expected, item.qty_received, rejected, qty_damaged)
    product = item.product
    return LineReconciliation(
        item_id=item.id,
        product_id=item.product_id,
        product_sku=product.sku if product else "",
        product_name=product.name if product else "",
        qty_expected=item.qty_expected,
        qty_received=item.qty_received,
        qty_rejected=rejected,
        qty_damaged=qty_damaged,
        remaining=max(0, rem),
        is_complete=rem <= 0,
        is_partial=item.qty_received > 0 and rem > 0,
        is_pending=item.qty_received == 0 and rejected == 0 and qty_damaged == 0,
        has_rejections=rejected > 0,
        has_damage=qty_damaged > 0,
        badge=badge_for(item.qty_expected, item.qty_received, rejected, qty_damaged),
    )


def reconcile_order(order: InboundOrder, damage_reports: Iterable[DamageReport] = ()) -> OrderReconciliation:
    damaged = damaged_qty_by_product(damage_reports)
    lines = [reconcile_line(item, damaged.get(item.product_id, 0)) for item in order.items]
    return OrderReconciliation(
        lines=lines,
        total_expected=sum(i.qty_expected for i in order.items),
        total_received=sum(i.qty_received for i in order.items),
    )
