import pytest

from inbound_desk.schemas.inbound import OrderStatus
from inbound_desk.services.order_status import (
    OrderStatusTracker,
    available_action,
    format_status,
    is_forward_step,
    progress_pct,
    status_steps,
)
from inbound_desk.services.workflow_errors import TransitionError
from tests.factories import make_item, make_order

pytestmark = pytest.mark.grp_receive


def _tracker(api, order):
    api.add_order(order)
    return OrderStatusTracker(api, order.model_copy(deep=True), refetch=lambda: api.get_inbound_order(order.id))


def test_status_steps_mark_completed_and_current():
    steps = status_steps(OrderStatus.IN_TRANSIT)
    assert [s.key for s in steps] == ["ordered", "in_transit", "arrived", "received"]
    assert [s.completed for s in steps] == [True, True, False, False]
    assert [s.current for s in steps] == [False, True, False, False]


def test_progress_and_labels():
    assert progress_pct(OrderStatus.ORDERED) == 0
    assert progress_pct(OrderStatus.RECEIVED) == 100
    assert round(progress_pct(OrderStatus.ARRIVED), 2) == 66.67
    assert format_status(OrderStatus.IN_TRANSIT) == "In Transit"


def test_one_action_per_state():
    assert available_action(OrderStatus.ORDERED).label == "Mark In Transit"
    assert available_action(OrderStatus.IN_TRANSIT).target == OrderStatus.ARRIVED
    assert available_action(OrderStatus.ARRIVED).label == "Mark Complete"
    assert available_action(OrderStatus.RECEIVED) is None


def test_only_single_forward_steps_are_legal():
    assert is_forward_step(OrderStatus.ORDERED, OrderStatus.IN_TRANSIT)
    assert not is_forward_step(OrderStatus.ORDERED, OrderStatus.ARRIVED)
    assert not is_forward_step(OrderStatus.ARRIVED, OrderStatus.IN_TRANSIT)
    assert not is_forward_step(OrderStatus.RECEIVED, OrderStatus.RECEIVED)


@pytest.mark.asyncio
async def test_transition_updates_and_refetches(api):
    t = _tracker(api, make_order(status=OrderStatus.ORDERED))

    result = await t.transition(OrderStatus.IN_TRANSIT)

    assert result.ok is True
    assert t.status == OrderStatus.IN_TRANSIT
    assert api.calls_to("update_inbound_order_status") == [{"order_id": "o-1", "status": OrderStatus.IN_TRANSIT}]
    assert api.count("get_inbound_order") == 1
    assert t.updating is False


@pytest.mark.asyncio
async def test_skipping_a_state_is_refused_before_any_call(api):
    t = _tracker(api, make_order(status=OrderStatus.ORDERED))

    with pytest.raises(TransitionError):
        await t.transition(OrderStatus.RECEIVED)
    assert api.count("update_inbound_order_status") == 0


@pytest.mark.asyncio
async def test_failed_update_keeps_previous_state(api):
    t = _tracker(api, make_order(status=OrderStatus.IN_TRANSIT))
    api.fail("update_inbound_order_status", "Order is locked")

    result = await t.transition(OrderStatus.ARRIVED)

    assert result.ok is False
    assert result.error == "Order is locked"
    assert t.status == OrderStatus.IN_TRANSIT
    assert t.last_error == "Order is locked"
    assert api.count("get_inbound_order") == 0


@pytest.mark.asyncio
async def test_mark_complete_skips_item_verification(api):
    order = make_order(status=OrderStatus.ARRIVED, items=[make_item(expected=10, received=3)])
    t = _tracker(api, order)

    result = await t.mark_complete()

    assert result.ok is True
    assert t.status == OrderStatus.RECEIVED


@pytest.mark.asyncio
async def test_mark_complete_needs_arrived(api):
    t = _tracker(api, make_order(status=OrderStatus.IN_TRANSIT))
    with pytest.raises(TransitionError):
        await t.mark_complete()


@pytest.mark.asyncio
async def test_auto_complete_only_when_every_line_is_received(api):
    order = make_order(
        status=OrderStatus.ARRIVED,
        items=[make_item("a", expected=5, received=5), make_item("b", expected=4, received=3)],
    )
    t = _tracker(api, order)

    assert await t.auto_complete(order) is None
    assert api.count("update_inbound_order_status") == 0

    order.items[1].qty_received = 4
    api.orders[order.id] = order.model_copy(deep=True)
    result = await t.auto_complete(order)

    assert result is not None and result.ok
    assert api.calls_to("update_inbound_order_status")[0]["status"] == OrderStatus.RECEIVED


@pytest.mark.asyncio
async def test_auto_complete_ignores_orders_not_yet_arrived(api):
    order = make_order(status=OrderStatus.IN_TRANSIT, items=[make_item(expected=5, received=5)])
    t = _tracker(api, order)
    assert await t.auto_complete(order) is None
