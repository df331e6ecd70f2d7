# inbound_desk/gateway/barcode.py
from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional, Union

from inbound_desk.clients.base import DataApi


@dataclass(frozen=True)
class ResolvedProduct:
    """
    A product, matched by SKU, product barcode or a unit-of-measure barcode.
    For a UOM barcode, qty_per_uom says how many units one scan stands for.
    """

    code: str
    id: str
    sku: str
    name: str
    uom: Optional[str] = None
    qty_per_uom: int = 1


@dataclass(frozen=True)
class ResolvedLpn:
    code: str
    id: str
    lpn_number: str
    container_type: str = "pallet"
    status: Optional[str] = None
    stage: Optional[str] = None


@dataclass(frozen=True)
class ResolvedLocation:
    code: str
    id: str
    name: str
    location_code: str = ""


@dataclass(frozen=True)
class ResolvedSublocation:
    code: str
    id: str
    sublocation_code: str
    location_id: str
    name: Optional[str] = None


@dataclass(frozen=True)
class NotFound:
    code: str


Resolution = Union[ResolvedProduct, ResolvedLpn, ResolvedLocation, ResolvedSublocation, NotFound]


@dataclass(frozen=True)
class Gs1Label:
    """
    The GS1 application identifiers a receiving label usually carries:
    (01) GTIN, (10) lot, (17) expiry YYMMDD.
    """

    gtin: Optional[str]
    lot: Optional[str]
    expiry: Optional[date]


_re_gs1_ai = re.compile(r"\((\d{2})\)([^\(]+)")


def _gs1_expiry(raw: Optional[str]) -> Optional[date]:
    if not raw or len(raw) != 6 or not raw.isdigit():
        return None
    yy, mm, dd = int(raw[0:2]), int(raw[2:4]), int(raw[4:6])
    try:
        if dd == 0:
            # day 00 = last day of the month
            dd = calendar.monthrange(2000 + yy, mm)[1]
        return date(2000 + yy, mm, dd)
    except ValueError:
        return None


def parse_gs1(code: str) -> Optional[Gs1Label]:
    """Bracketed GS1 only, e.g. "(01)09506000134352(17)261231(10)L42"."""
    s = (code or "").strip()
    if "(" not in s or ")" not in s:
        return None
    pairs = _re_gs1_ai.findall(s)
    if not pairs:
        return None
    ai = {k: v.strip() for k, v in pairs}
    gtin = ai.get("01")
    if gtin and len(gtin) == 14 and gtin.startswith("0"):
        gtin = gtin[1:]
    return Gs1Label(gtin=gtin or None, lot=ai.get("10") or None, expiry=_gs1_expiry(ai.get("17")))


def from_payload(code: str, payload: Optional[Dict[str, Any]]) -> Resolution:
    """Turn the data API's {type, id, data} answer into a Resolution."""
    if not payload:
        return NotFound(code)
    kind = payload.get("type")
    rid = str(payload.get("id") or "")
    data = payload.get("data") or {}
    if not rid:
        return NotFound(code)

    if kind == "product":
        return ResolvedProduct(
            code=code,
            id=rid,
            sku=str(data.get("sku") or ""),
            name=str(data.get("name") or ""),
            uom=data.get("uom"),
            qty_per_uom=int(data.get("qty_per_uom") or 1),
        )
    if kind == "lpn":
        return ResolvedLpn(
            code=code,
            id=rid,
            lpn_number=str(data.get("lpn_number") or code),
            container_type=str(data.get("container_type") or "pallet"),
            status=data.get("status"),
            stage=data.get("stage"),
        )
    if kind == "location":
        return ResolvedLocation(
            code=code,
            id=rid,
            name=str(data.get("name") or ""),
            location_code=str(data.get("code") or ""),
        )
    if kind == "sublocation":
        return ResolvedSublocation(
            code=code,
            id=rid,
            sublocation_code=str(data.get("code") or code),
            location_id=str(data.get("location_id") or ""),
            name=data.get("name"),
        )
    return NotFound(code)


async def resolve(api: DataApi, code: str) -> Resolution:
    """
    Resolve a scanned value: product → LPN → location → sublocation.

    A GS1 label is looked up by its GTIN. Blank input never reaches the
    data API.
    """
    raw = (code or "").strip()
    if not raw:
        return NotFound(code or "")
    lookup = raw
    label = parse_gs1(raw)
    if label and label.gtin:
        lookup = label.gtin
    return from_payload(raw, await api.resolve_barcode(lookup))
