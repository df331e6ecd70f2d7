# tests/api/test_inbound_api.py
from __future__ import annotations

import pytest

from inbound_desk.schemas.inbound import OrderStatus
from inbound_desk.schemas.putaway import SuggestedPutAway
from tests.factories import make_damage, make_item, make_location, make_order, make_sublocation, rules

pytestmark = pytest.mark.asyncio


def _seed(api, order=None):
    api.add_order(order or make_order(items=[make_item(expected=10, received=2)]))
    api.locations = [make_location("loc-1")]
    api.sublocations["loc-1"] = [make_sublocation("bin-a"), make_sublocation("bin-b")]


async def test_order_detail_view(client, api):
    _seed(api)
    api.damage_reports = [make_damage("p-it-1", 1)]

    r = await client.get("/inbound-orders/o-1")

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["status_label"] == "Arrived"
    assert body["action"] == {"label": "Mark Complete", "target": "received"}
    assert [s["current"] for s in body["steps"]] == [False, False, True, False]
    line = body["lines"][0]
    assert (line["remaining"], line["qty_damaged"], line["badge"]) == (7, 1, "Partial")
    assert body["receive_location_id"] == "loc-1"


async def test_unknown_order_is_404(client):
    r = await client.get("/inbound-orders/nope")
    assert r.status_code == 404
    body = r.json()
    assert body["error_code"] == "inbound_order_not_found"
    assert body["trace_id"]


async def test_data_api_down_is_502(client, api):
    _seed(api)
    api.fail("get_inbound_order")
    r = await client.get("/inbound-orders/o-1")
    assert r.status_code == 502
    assert r.json()["error_code"] == "data_api_unavailable"


async def test_status_steps_forward_only(client, api):
    _seed(api, make_order(status=OrderStatus.ORDERED))

    r = await client.post("/inbound-orders/o-1/status", json={"status": "arrived"})
    assert r.status_code == 409
    assert r.json()["error_code"] == "illegal_status_transition"

    r = await client.post("/inbound-orders/o-1/status", json={"status": "in_transit"})
    assert r.status_code == 200
    assert r.json()["status"] == "in_transit"


async def test_status_update_failure_is_502(client, api):
    _seed(api, make_order(status=OrderStatus.ORDERED))
    api.fail("update_inbound_order_status", "Order is locked")

    r = await client.post("/inbound-orders/o-1/status", json={"status": "in_transit"})

    assert r.status_code == 502
    assert r.json()["message"] == "Order is locked"


async def test_mark_complete(client, api):
    _seed(api)
    r = await client.post("/inbound-orders/o-1/mark-complete")
    assert r.status_code == 200
    assert r.json()["order"]["status"] == "received"


async def test_receive_form_defaults(client, api):
    _seed(api, make_order(client_id="c-1", items=[make_item(expected=10, received=2)]))
    api.rules["o-1"] = rules(auto_create_lots=True, requires_expiration_dates=True)

    r = await client.post("/inbound-orders/o-1/items/it-1/receive-form", json={})

    assert r.status_code == 200, r.text
    form = r.json()
    assert form["mode"] == "lot"
    assert form["remaining"] == 8
    assert form["expiration_required"] is True
    assert form["lot_entries"][0]["lot_number"] == api.lot_number
    assert form["lot_entries"][0]["quantity"] == 8


async def test_receive_plain(client, api):
    _seed(api)

    r = await client.post("/inbound-orders/o-1/items/it-1/receive", json={"quantity": 3})

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["ok"] is True
    assert body["steps"] == [{"key": "plain@5", "status": "applied", "error": None}]
    assert body["order"]["items"][0]["qty_received"] == 5
    assert body["putaway_session_id"] is None


async def test_receive_over_expected_is_422(client, api):
    _seed(api)

    r = await client.post("/inbound-orders/o-1/items/it-1/receive", json={"quantity": 9})

    assert r.status_code == 422
    body = r.json()
    assert body["error_code"] == "qty_exceeds_expected"
    assert body["context"]["open_qty"] == 8
    assert api.count("receive_inbound_item") == 0


async def test_receive_unknown_item_is_404(client, api):
    _seed(api)
    r = await client.post("/inbound-orders/o-1/items/zzz/receive", json={"quantity": 1})
    assert r.status_code == 404
    assert r.json()["error_code"] == "not_found"


async def test_lot_partial_failure_reports_steps(client, api):
    _seed(api, make_order(items=[make_item(expected=10, lot_tracked=True)]))
    api.fail("receive_with_lot", "Lot B is quarantined", after=1)

    r = await client.post(
        "/inbound-orders/o-1/items/it-1/receive",
        json={"lot_entries": [{"lot_number": "A", "quantity": 3}, {"lot_number": "B", "quantity": 2}]},
    )

    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is False
    assert [s["status"] for s in body["steps"]] == ["applied", "failed"]
    assert body["order"]["items"][0]["qty_received"] == 3


async def test_receiving_last_line_opens_putaway(client, api):
    _seed(api, make_order(items=[make_item(expected=4, product_id="p-1")]))
    api.suggestions["p-1"] = SuggestedPutAway(suggested_sublocation_id="bin-b")

    r = await client.post("/inbound-orders/o-1/items/it-1/receive-all", json={})

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["received"] is True
    assert body["order"]["status"] == "received"
    sid = body["putaway_session_id"]
    assert sid

    r = await client.get(f"/putaway-sessions/{sid}")
    assert r.status_code == 200
    assert r.json()["items"][0]["selected_sublocation_id"] == "bin-b"

    r = await client.post(f"/putaway-sessions/{sid}/confirm-all")
    assert r.status_code == 200
    assert r.json()["ok"] is True
    assert r.json()["session"]["all_confirmed"] is True


async def test_receive_all_for_lot_line_returns_form(client, api):
    _seed(api, make_order(items=[make_item(lot_tracked=True)]))

    r = await client.post("/inbound-orders/o-1/items/it-1/receive-all", json={})

    body = r.json()
    assert body["received"] is False
    assert body["form"]["mode"] == "lot"


async def test_reject_and_damage(client, api):
    _seed(api)

    r = await client.post("/inbound-orders/o-1/items/it-1/reject", json={"qty": 2, "reason": "expired"})
    assert r.status_code == 200
    assert r.json()["lines"][0]["qty_rejected"] == 2

    r = await client.post("/inbound-orders/o-1/items/it-1/damage", json={"qty": 1, "damage_type": "crushed"})
    assert r.status_code == 200
    assert r.json()["reference_id"] == "o-1"

    r = await client.post("/inbound-orders/o-1/items/it-1/reject", json={"qty": 6})
    assert r.status_code == 422
    assert r.json()["error_code"] == "qty_exceeds_expected"


async def test_reject_needs_positive_qty(client, api):
    _seed(api)
    r = await client.post("/inbound-orders/o-1/items/it-1/reject", json={"qty": 0})
    assert r.status_code == 422
    assert r.json()["error_code"] == "request_validation_error"


async def test_create_pallet(client, api):
    _seed(api)
    r = await client.post("/inbound-orders/o-1/pallets", json={"location_id": "loc-1"})
    assert r.status_code == 200
    assert r.json()["lpn_number"].startswith("LPN-NEW-")
    assert api.calls_to("create_pallet_for_receiving")[0]["inbound_order_id"] == "o-1"
