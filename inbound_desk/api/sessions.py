# inbound_desk/api/sessions.py
from __future__ import annotations

import logging
import time
import uuid
from collections import OrderedDict
from typing import Any, Callable, Tuple, Type, TypeVar

from inbound_desk.services.workflow_errors import RecordNotFound

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionRegistry:
    """
    App-scoped holder of the stateful view-models (put-away sessions and
    scanners) between operator requests.

    In-process only: a restart drops every open session, the operator
    starts over. Sessions nobody touched for idle_ttl_s seconds are
    dropped, and past max_sessions the least recently used one goes.
    """

    def __init__(
        self,
        *,
        idle_ttl_s: float = 4 * 3600,
        max_sessions: int = 500,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.idle_ttl_s = idle_ttl_s
        self.max_sessions = max(1, max_sessions)
        self._clock = clock
        # sid -> (last_used, obj), oldest first
        self._items: "OrderedDict[str, Tuple[float, Any]]" = OrderedDict()

    def _expire(self) -> None:
        cutoff = self._clock() - self.idle_ttl_s
        while self._items:
            sid, (last_used, _) = next(iter(self._items.items()))
            if last_used > cutoff:
                break
            self._items.popitem(last=False)
            logger.info("session expired: %s", sid)

    def add(self, obj: Any, *, prefix: str = "s") -> str:
        self._expire()
        while len(self._items) >= self.max_sessions:
            sid, _ = self._items.popitem(last=False)
            logger.warning("session evicted (registry full): %s", sid)
        sid = f"{prefix}_{uuid.uuid4().hex[:12]}"
        self._items[sid] = (self._clock(), obj)
        logger.info("session opened: %s (%s)", sid, type(obj).__name__)
        return sid

    def get(self, sid: str, kind: Type[T]) -> T:
        self._expire()
        entry = self._items.get(sid)
        if entry is None or not isinstance(entry[1], kind):
            raise RecordNotFound(f"session {sid} not found")
        self._items[sid] = (self._clock(), entry[1])
        self._items.move_to_end(sid)
        return entry[1]

    def discard(self, sid: str) -> None:
        self._expire()
        if self._items.pop(sid, None) is None:
            raise RecordNotFound(f"session {sid} not found")
        logger.info("session closed: %s", sid)

    def __contains__(self, sid: object) -> bool:
        return sid in self._items

    def __len__(self) -> int:
        return len(self._items)
