import pytest

from inbound_desk.clients.base import DataApiError
from inbound_desk.schemas.putaway import SuggestedPutAway
from inbound_desk.services.putaway_service import PutAwaySession
from inbound_desk.services.workflow_errors import PutAwayError
from tests.factories import make_item, make_order, make_sublocation

pytestmark = pytest.mark.grp_receive


def _seed(api, *items):
    api.add_order(make_order(items=items))
    api.sublocations["loc-1"] = [make_sublocation("bin-a"), make_sublocation("bin-b"), make_sublocation("bin-c")]


async def _session(api):
    order = await api.get_inbound_order("o-1")
    return await PutAwaySession(api, order, "loc-1").initialize()


@pytest.mark.asyncio
async def test_only_received_lines_get_rows_with_preselected_suggestion(api):
    _seed(
        api,
        make_item("a", product_id="p-a", received=5),
        make_item("b", product_id="p-b", received=0),
    )
    api.suggestions["p-a"] = SuggestedPutAway(
        suggested_sublocation_id="bin-b", suggested_sublocation_code="BIN-B", reason="Same product already stored here"
    )

    s = await _session(api)

    assert [row.item_id for row in s.items] == ["a"]
    assert s.get("a").selected_sublocation_id == "bin-b"
    assert api.calls_to("get_suggested_put_away") == [{"product_id": "p-a", "location_id": "loc-1", "qty": 5}]


@pytest.mark.asyncio
async def test_suggestion_failure_leaves_row_unselected(api):
    _seed(api, make_item("a", received=5))
    api.fail("get_suggested_put_away")

    s = await _session(api)

    assert s.get("a").suggestion is None
    assert s.get("a").selected_sublocation_id == ""
    assert s.get("a").pending is False


@pytest.mark.asyncio
async def test_select_rules(api):
    _seed(api, make_item("a", received=5))
    s = await _session(api)

    with pytest.raises(PutAwayError) as ei:
        s.select("a", "bin-zzz")
    assert ei.value.code == "unknown_sublocation"

    with pytest.raises(PutAwayError) as ei:
        s.select("nope", "bin-a")
    assert ei.value.code == "item_not_found"

    s.select("a", "bin-c")
    await s.confirm("a")
    with pytest.raises(PutAwayError) as ei:
        s.select("a", "bin-a")
    assert ei.value.code == "already_confirmed"


@pytest.mark.asyncio
async def test_confirm_needs_selection_and_is_irreversible(api):
    _seed(api, make_item("a", product_id="p-a", received=5))
    s = await _session(api)

    with pytest.raises(PutAwayError) as ei:
        await s.confirm("a")
    assert ei.value.code == "sublocation_required"

    s.select("a", "bin-a")
    row = await s.confirm("a")

    assert row.confirmed is True
    assert s.all_confirmed is True
    assert api.calls_to("confirm_put_away") == [{"product_id": "p-a", "location_id": "loc-1", "sublocation_id": "bin-a"}]
    with pytest.raises(PutAwayError):
        await s.confirm("a")


@pytest.mark.asyncio
async def test_confirm_failure_keeps_row_pending(api):
    _seed(api, make_item("a", received=5))
    s = await _session(api)
    s.select("a", "bin-a")
    api.fail("confirm_put_away", "Bin is full")

    with pytest.raises(DataApiError):
        await s.confirm("a")

    row = s.get("a")
    assert row.confirmed is False
    assert row.confirming is False
    assert s.message == "Bin is full"


@pytest.mark.asyncio
async def test_confirm_all_stops_at_first_failure(api):
    _seed(
        api,
        make_item("a", product_id="p-a", received=1),
        make_item("b", product_id="p-b", received=2),
        make_item("c", product_id="p-c", received=3),
    )
    s = await _session(api)
    for item_id in ("a", "b", "c"):
        s.select(item_id, "bin-a")
    api.fail("confirm_put_away", "Bin is full", after=1)

    report = await s.confirm_all()

    assert [st.status for st in report.steps] == ["applied", "failed", "skipped"]
    assert api.count("confirm_put_away") == 2
    assert [row.confirmed for row in s.items] == [True, False, False]
    assert s.message.startswith("Confirmed 1/3 applied")
    assert s.all_confirmed is False


@pytest.mark.asyncio
async def test_confirm_all_only_touches_pending_rows(api):
    _seed(
        api,
        make_item("a", received=1),
        make_item("b", received=2),
        make_item("c", received=3),
    )
    s = await _session(api)
    s.select("a", "bin-a")
    await s.confirm("a")
    s.select("b", "bin-b")

    report = await s.confirm_all()

    assert [st.key for st in report.steps] == ["b"]
    assert report.ok
    assert s.message is None
    assert s.get("c").confirmed is False


@pytest.mark.asyncio
async def test_snapshot_shape(api):
    _seed(api, make_item("a", received=5, sku="SKU-A", name="Cat Food"))
    s = await _session(api)

    snap = s.snapshot()

    assert snap["order_id"] == "o-1"
    assert snap["all_confirmed"] is False
    assert snap["items"][0].product_sku == "SKU-A"
    assert len(snap["sublocations"]) == 3
