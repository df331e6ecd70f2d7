import pytest

from inbound_desk.clients.base import DataApiError
from inbound_desk.services.optimistic import optimistic_mutation


class _Box:
    def __init__(self, value):
        self.value = value

    def get(self):
        return self.value

    def set(self, v):
        self.value = v


@pytest.mark.asyncio
async def test_new_value_is_visible_while_call_is_in_flight():
    box = _Box({"a"})
    during = []

    async def call():
        during.append(set(box.value))

    result = await optimistic_mutation(box.get, box.set, {"a", "b"}, call)

    assert during == [{"a", "b"}]
    assert result.ok is True
    assert box.value == {"a", "b"}


@pytest.mark.asyncio
async def test_failure_restores_snapshot():
    box = _Box({"a"})

    async def call():
        raise DataApiError("checklist locked")

    result = await optimistic_mutation(box.get, box.set, {"a", "b"}, call)

    assert result.ok is False
    assert result.error == "checklist locked"
    assert box.value == {"a"}
    assert result.value == {"a"}
