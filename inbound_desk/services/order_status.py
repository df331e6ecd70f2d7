# inbound_desk/services/order_status.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from inbound_desk.clients.base import DataApi, DataApiError
from inbound_desk.obs.metrics import status_transitions_total
from inbound_desk.schemas.inbound import InboundOrder, OrderStatus
from inbound_desk.services.workflow_errors import TransitionError

logger = logging.getLogger(__name__)

STATUS_STEPS: List[tuple] = [
    (OrderStatus.ORDERED, "Ordered"),
    (OrderStatus.IN_TRANSIT, "In Transit"),
    (OrderStatus.ARRIVED, "Arrived"),
    (OrderStatus.RECEIVED, "Received"),
]

# the single operator button shown per state
_ACTIONS = {
    OrderStatus.ORDERED: ("Mark In Transit", OrderStatus.IN_TRANSIT),
    OrderStatus.IN_TRANSIT: ("Mark Arrived", OrderStatus.ARRIVED),
    OrderStatus.ARRIVED: ("Mark Complete", OrderStatus.RECEIVED),
}


@dataclass(frozen=True)
class StatusStep:
    key: str
    label: str
    completed: bool
    current: bool


@dataclass(frozen=True)
class StatusAction:
    label: str
    target: OrderStatus


@dataclass
class TransitionResult:
    ok: bool
    status: OrderStatus
    order: Optional[InboundOrder] = None
    error: Optional[str] = None


def status_index(status: OrderStatus) -> int:
    for idx, (key, _) in enumerate(STATUS_STEPS):
        if key == status:
            return idx
    return -1


def format_status(status: OrderStatus) -> str:
    return STATUS_STEPS[status_index(status)][1]


def next_status(status: OrderStatus) -> Optional[OrderStatus]:
    idx = status_index(status)
    if idx < 0 or idx + 1 >= len(STATUS_STEPS):
        return None
    return STATUS_STEPS[idx + 1][0]


def available_action(status: OrderStatus) -> Optional[StatusAction]:
    hit = _ACTIONS.get(OrderStatus(status))
    if not hit:
        return None
    return StatusAction(label=hit[0], target=hit[1])


def is_forward_step(current: OrderStatus, target: OrderStatus) -> bool:
    """Exactly one step forward. arrived→received is the Mark Complete shortcut."""
    return next_status(OrderStatus(current)) == OrderStatus(target)


def all_items_received(order: InboundOrder) -> bool:
    return all(item.qty_received >= item.qty_expected for item in order.items)


def status_steps(status: OrderStatus) -> List[StatusStep]:
    cur = status_index(status)
    return [
        StatusStep(key=key.value, label=label, completed=idx <= cur, current=idx == cur)
        for idx, (key, label) in enumerate(STATUS_STEPS)
    ]


def progress_pct(status: OrderStatus) -> float:
    return status_index(status) / (len(STATUS_STEPS) - 1) * 100


class OrderStatusTracker:
    """
    Forward-only status machine for one inbound order.

        ordered → in_transit → arrived → received

    - manual transitions: one button per state (see available_action)
    - Mark Complete: arrived → received without item verification
    - auto-complete: arrived → received once every line has
      qty_received >= qty_expected (the only non-operator transition)

    Every transition = update call + refetch. A failed call leaves the
    tracker on the pre-transition state; no retry.
    """

    def __init__(
        self,
        api: DataApi,
        order: InboundOrder,
        *,
        refetch: Callable[[], Awaitable[Optional[InboundOrder]]],
    ) -> None:
        self.api = api
        self.order = order
        self._refetch = refetch
        self.updating = False
        self.last_error: Optional[str] = None

    @property
    def status(self) -> OrderStatus:
        return self.order.status

    def check_transition(self, target: OrderStatus) -> None:
        target = OrderStatus(target)
        if not is_forward_step(self.status, target):
            raise TransitionError(
                f"cannot move inbound order from {self.status.value} to {target.value}",
                context={"order_id": self.order.id, "from": self.status.value, "to": target.value},
            )

    async def transition(self, target: OrderStatus, *, kind: str = "manual") -> TransitionResult:
        self.check_transition(target)
        target = OrderStatus(target)
        before = self.status

        self.updating = True
        self.last_error = None
        try:
            await self.api.update_inbound_order_status(self.order.id, target)
        except DataApiError as e:
            logger.error("status update %s -> %s failed for %s: %s", before.value, target.value, self.order.id, e.message)
            status_transitions_total.labels(target.value, "failed").inc()
            self.last_error = e.message
            return TransitionResult(ok=False, status=before, order=self.order, error=e.message)
        finally:
            self.updating = False

        status_transitions_total.labels(target.value, kind).inc()
        logger.info("inbound order %s: %s -> %s (%s)", self.order.id, before.value, target.value, kind)

        fresh = await self._refetch()
        if fresh is not None:
            self.order = fresh
        return TransitionResult(ok=True, status=self.status, order=self.order)

    async def mark_complete(self) -> TransitionResult:
        if self.status != OrderStatus.ARRIVED:
            raise TransitionError(
                "Mark Complete is only available once the order has arrived",
                context={"order_id": self.order.id, "from": self.status.value},
            )
        return await self.transition(OrderStatus.RECEIVED, kind="mark_complete")

    def should_auto_complete(self, order: Optional[InboundOrder] = None) -> bool:
        o = order or self.order
        return o.status == OrderStatus.ARRIVED and all_items_received(o)

    async def auto_complete(self, order: InboundOrder) -> Optional[TransitionResult]:
        """
        Run after a successful receive + refetch. Returns None when the
        order does not qualify.
        """
        self.order = order
        if not self.should_auto_complete(order):
            return None
        return await self.transition(OrderStatus.RECEIVED, kind="auto")
