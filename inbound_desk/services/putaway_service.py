# inbound_desk/services/putaway_service.py
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from inbound_desk.clients.base import DataApi, DataApiError
from inbound_desk.obs.metrics import putaway_confirm_total
from inbound_desk.schemas.inbound import InboundLineItem, InboundOrder, Sublocation
from inbound_desk.schemas.putaway import PutAwayItemOut, SuggestedPutAway
from inbound_desk.services.step_runner import StepReport, run_sequential
from inbound_desk.services.workflow_errors import PutAwayError

logger = logging.getLogger(__name__)


class PutAwayItem:
    """One received line waiting for a storage sublocation."""

    def __init__(self, item: InboundLineItem, location_id: str) -> None:
        self.item = item
        self.location_id = location_id
        self.suggestion: Optional[SuggestedPutAway] = None
        self.selected_sublocation_id = ""
        self.confirmed = False
        self.confirming = False

    @property
    def item_id(self) -> str:
        return self.item.id

    @property
    def product_id(self) -> str:
        return self.item.product_id

    @property
    def pending(self) -> bool:
        return not self.confirmed and bool(self.selected_sublocation_id)

    def to_out(self) -> PutAwayItemOut:
        product = self.item.product
        return PutAwayItemOut(
            item_id=self.item.id,
            product_id=self.item.product_id,
            product_name=product.name if product else "",
            product_sku=product.sku if product else "",
            qty_received=self.item.qty_received,
            location_id=self.location_id,
            suggestion=self.suggestion,
            selected_sublocation_id=self.selected_sublocation_id,
            confirmed=self.confirmed,
        )


class PutAwaySession:
    """
    Put-away assignment for an order's received lines at one location.

    - initialize: one suggestion per line with qty_received > 0; the
      suggested sublocation is pre-selected
    - select: any sublocation of the location
    - confirm: irreversible, a confirmed line cannot be re-selected
    - confirm_all: sequential over lines that are not confirmed and have a
      selection; stops at the first failure, earlier lines stay confirmed
    """

    def __init__(self, api: DataApi, order: InboundOrder, location_id: str) -> None:
        self.api = api
        self.order = order
        self.location_id = location_id
        self.items: List[PutAwayItem] = []
        self.sublocations: List[Sublocation] = []
        self.message: Optional[str] = None

    async def initialize(self) -> "PutAwaySession":
        try:
            self.sublocations = await self.api.get_sublocations(self.location_id)
        except DataApiError as e:
            logger.error("failed to load sublocations for %s: %s", self.location_id, e.message)
            self.sublocations = []

        self.items = []
        for line in self.order.items:
            if line.qty_received <= 0:
                continue
            row = PutAwayItem(line, self.location_id)
            try:
                row.suggestion = await self.api.get_suggested_put_away(
                    line.product_id, self.location_id, line.qty_received
                )
            except DataApiError as e:
                # no suggestion; the operator picks by hand
                logger.warning("no put-away suggestion for item %s: %s", line.id, e.message)
            if row.suggestion and row.suggestion.suggested_sublocation_id:
                row.selected_sublocation_id = row.suggestion.suggested_sublocation_id
            self.items.append(row)
        return self

    def get(self, item_id: str) -> PutAwayItem:
        for row in self.items:
            if row.item_id == item_id:
                return row
        raise PutAwayError(f"item {item_id} is not awaiting put-away", code="item_not_found")

    def select(self, item_id: str, sublocation_id: str) -> PutAwayItem:
        row = self.get(item_id)
        if row.confirmed:
            raise PutAwayError("Put-away already confirmed for this item", code="already_confirmed")
        if sublocation_id and self.sublocations and not any(s.id == sublocation_id for s in self.sublocations):
            raise PutAwayError(
                f"sublocation {sublocation_id} does not belong to this location",
                code="unknown_sublocation",
            )
        row.selected_sublocation_id = sublocation_id or ""
        return row

    async def _confirm_row(self, row: PutAwayItem) -> None:
        row.confirming = True
        try:
            await self.api.confirm_put_away(row.product_id, row.location_id, row.selected_sublocation_id)
        except DataApiError:
            putaway_confirm_total.labels("failed").inc()
            raise
        finally:
            row.confirming = False
        row.confirmed = True
        putaway_confirm_total.labels("ok").inc()
        logger.info("put-away confirmed: item %s -> %s", row.item_id, row.selected_sublocation_id)

    async def confirm(self, item_id: str) -> PutAwayItem:
        row = self.get(item_id)
        if row.confirmed:
            raise PutAwayError("Put-away already confirmed for this item", code="already_confirmed")
        if not row.selected_sublocation_id:
            raise PutAwayError("Select a sublocation first", code="sublocation_required")
        self.message = None
        try:
            await self._confirm_row(row)
        except DataApiError as e:
            logger.error("put-away confirm failed for item %s: %s", row.item_id, e.message)
            self.message = e.message
            raise
        return row

    async def confirm_all(self) -> StepReport[PutAwayItem]:
        pending = [row for row in self.items if row.pending]
        report = await run_sequential(pending, self._confirm_row, key=lambda r: r.item_id, label="putaway")
        self.message = None if report.ok else f"Confirmed {report.summary()}"
        return report

    @property
    def all_confirmed(self) -> bool:
        return bool(self.items) and all(row.confirmed for row in self.items)

    def snapshot(self) -> Dict[str, object]:
        return {
            "order_id": self.order.id,
            "location_id": self.location_id,
            "items": [row.to_out() for row in self.items],
            "sublocations": self.sublocations,
            "all_confirmed": self.all_confirmed,
            "message": self.message,
        }
