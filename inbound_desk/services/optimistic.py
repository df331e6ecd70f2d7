# inbound_desk/services/optimistic.py
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from inbound_desk.clients.base import DataApiError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class OptimisticResult(Generic[T]):
    ok: bool
    value: T
    error: Optional[str] = None


async def optimistic_mutation(
    get: Callable[[], T],
    set_: Callable[[T], None],
    new_value: T,
    call: Callable[[], Awaitable[None]],
) -> OptimisticResult[T]:
    """
    Snapshot → apply → call → restore on failure.

    The new value is visible through `get` while `call` is in flight. A
    DataApiError puts the snapshot back and is reported, not raised.
    """
    snapshot = copy.deepcopy(get())
    set_(new_value)
    try:
        await call()
    except DataApiError as e:
        logger.warning("optimistic update rolled back: %s", e.message)
        set_(snapshot)
        return OptimisticResult(ok=False, value=snapshot, error=e.message)
    return OptimisticResult(ok=True, value=get())
