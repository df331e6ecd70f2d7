# tests/api/test_session_registry.py
import pytest

from inbound_desk.api.sessions import SessionRegistry
from inbound_desk.services.workflow_errors import RecordNotFound


class Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class Scanner:
    pass


class Session:
    pass


def test_idle_sessions_expire():
    clock = Clock()
    reg = SessionRegistry(idle_ttl_s=60, clock=clock)
    old = reg.add(Session(), prefix="pa")
    clock.now += 30
    kept = reg.add(Scanner(), prefix="sc")

    clock.now += 45
    with pytest.raises(RecordNotFound):
        reg.get(old, Session)
    assert isinstance(reg.get(kept, Scanner), Scanner)
    assert len(reg) == 1


def test_use_keeps_a_session_alive():
    clock = Clock()
    reg = SessionRegistry(idle_ttl_s=60, clock=clock)
    sid = reg.add(Session())
    for _ in range(5):
        clock.now += 50
        reg.get(sid, Session)
    assert sid in reg


def test_abandoned_sessions_are_evicted_oldest_first():
    clock = Clock()
    reg = SessionRegistry(max_sessions=3, clock=clock)
    sids = []
    for _ in range(3):
        sids.append(reg.add(Session(), prefix="pa"))
        clock.now += 1
    reg.get(sids[0], Session)

    newest = reg.add(Session(), prefix="pa")

    assert len(reg) == 3
    assert sids[1] not in reg
    assert sids[0] in reg and sids[2] in reg and newest in reg


def test_wrong_kind_and_double_close():
    reg = SessionRegistry()
    sid = reg.add(Session())
    with pytest.raises(RecordNotFound):
        reg.get(sid, Scanner)
    reg.discard(sid)
    with pytest.raises(RecordNotFound):
        reg.discard(sid)
