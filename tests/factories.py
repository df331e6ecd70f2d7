# tests/factories.py
from typing import Optional

from inbound_desk.schemas.damage_report import DamageReport
from inbound_desk.schemas.inbound import (
    ClientRef,
    InboundLineItem,
    InboundOrder,
    Location,
    OrderStatus,
    ProductRef,
    Sublocation,
)
from inbound_desk.schemas.pallet import LpnContent, Pallet
from inbound_desk.schemas.workflow_rules import WorkflowRules


def make_item(
    item_id: str = "it-1",
    *,
    order_id: str = "o-1",
    product_id: Optional[str] = None,
    expected: int = 10,
    received: int = 0,
    rejected: int = 0,
    lot_tracked: bool = False,
    sku: Optional[str] = None,
    name: Optional[str] = None,
    default_expiration_days: Optional[int] = None,
) -> InboundLineItem:
    pid = product_id or f"p-{item_id}"
    return InboundLineItem(
        id=item_id,
        order_id=order_id,
        product_id=pid,
        product=ProductRef(
            id=pid,
            sku=sku or f"SKU-{item_id}",
            name=name or f"Item {item_id}",
            lot_tracking_enabled=lot_tracked,
            default_expiration_days=default_expiration_days,
        ),
        qty_expected=expected,
        qty_received=received,
        qty_rejected=rejected,
    )


def make_order(
    order_id: str = "o-1",
    *,
    status: OrderStatus = OrderStatus.ARRIVED,
    items=None,
    client_id: Optional[str] = None,
    supplier: str = "Acme Supply",
) -> InboundOrder:
    return InboundOrder(
        id=order_id,
        po_number=f"PO-{order_id}",
        supplier=supplier,
        status=status,
        client_id=client_id,
        client=ClientRef(id=client_id, company_name="Client Co") if client_id else None,
        items=list(items) if items is not None else [make_item(order_id=order_id)],
    )


def make_location(location_id: str = "loc-1", name: str = "Receiving Dock", active: bool = True) -> Location:
    return Location(id=location_id, name=name, code=location_id.upper(), active=active)


def make_sublocation(sub_id: str, location_id: str = "loc-1", code: Optional[str] = None) -> Sublocation:
    return Sublocation(id=sub_id, code=code or sub_id.upper(), location_id=location_id)


def make_pallet(pallet_id: str = "plt-1", lpn_number: str = "LPN-0001", *, qty: int = 0, **kw) -> Pallet:
    contents = [LpnContent(product_id="p-x", qty=qty)] if qty else []
    return Pallet(id=pallet_id, lpn_number=lpn_number, contents=contents, **kw)


def make_damage(
    product_id: str,
    quantity: int,
    *,
    order_id: str = "o-1",
    report_id: str = "dr-1",
    reference_type: str = "inbound_order",
) -> DamageReport:
    return DamageReport(
        id=report_id,
        reference_type=reference_type,
        reference_id=order_id,
        product_id=product_id,
        quantity=quantity,
    )


def rules(**flags) -> WorkflowRules:
    """Enabled client rules with the given flags switched on."""
    return WorkflowRules(enabled=True, **flags)
