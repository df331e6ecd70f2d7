import pytest

from inbound_desk.services.checklists import ChecklistSubmittedError, ChecklistView


@pytest.mark.asyncio
async def test_toggle_adds_then_removes(api):
    view = ChecklistView(api, "cl-1", ["step-1"])

    out = await view.toggle("step-2")
    assert out.ok is True
    assert out.completed_item_ids == ["step-1", "step-2"]

    out = await view.toggle("step-1")
    assert out.completed_item_ids == ["step-2"]
    assert api.count("complete_checklist_item") == 2


@pytest.mark.asyncio
async def test_failed_toggle_rolls_back(api):
    view = ChecklistView(api, "cl-1", ["step-1"])
    api.fail("complete_checklist_item", "Checklist is locked")

    out = await view.toggle("step-2")

    assert out.ok is False
    assert out.error == "Checklist is locked"
    assert out.completed_item_ids == ["step-1"]
    assert view.completed == {"step-1"}


@pytest.mark.asyncio
async def test_submitted_checklist_is_read_only(api):
    view = ChecklistView(api, "cl-1", [], submitted=True)

    with pytest.raises(ChecklistSubmittedError):
        await view.toggle("step-1")
    assert api.count("complete_checklist_item") == 0
