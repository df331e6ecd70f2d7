# inbound_desk/services/step_runner.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar

from inbound_desk.clients.base import DataApiError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class StepOutcome(Generic[T]):
    """
    One step of a sequential multi-write flow.

    - status: "applied" | "failed" | "skipped"
      skipped = never attempted because an earlier step failed
    """

    key: str
    payload: T
    status: str
    error: Optional[str] = None


@dataclass
class StepReport(Generic[T]):
    steps: List[StepOutcome[T]] = field(default_factory=list)

    @property
    def applied(self) -> List[StepOutcome[T]]:
        return [s for s in self.steps if s.status == "applied"]

    @property
    def failed(self) -> Optional[StepOutcome[T]]:
        for s in self.steps:
            if s.status == "failed":
                return s
        return None

    @property
    def skipped(self) -> List[StepOutcome[T]]:
        return [s for s in self.steps if s.status == "skipped"]

    @property
    def ok(self) -> bool:
        return self.failed is None

    @property
    def partial(self) -> bool:
        return not self.ok and bool(self.applied)

    def summary(self) -> str:
        total = len(self.steps)
        failed = self.failed
        if failed is None:
            return f"{total}/{total} applied"
        return f"{len(self.applied)}/{total} applied; stopped at {failed.key}: {failed.error}"


async def run_sequential(
    items: Sequence[T],
    action: Callable[[T], Awaitable[None]],
    *,
    key: Callable[[T], str],
    label: str = "step",
) -> StepReport[T]:
    """
    Await `action` for each item in order; stop at the first DataApiError.

    Already applied steps are NOT reverted: the report says exactly which
    ones went through so the caller can tell the operator.
    """
    report: StepReport[T] = StepReport()
    stopped = False
    for item in items:
        k = key(item)
        if stopped:
            report.steps.append(StepOutcome(key=k, payload=item, status="skipped"))
            continue
        try:
            await action(item)
        except DataApiError as e:
            logger.error("%s %s failed: %s", label, k, e.message)
            report.steps.append(StepOutcome(key=k, payload=item, status="failed", error=e.message))
            stopped = True
            continue
        report.steps.append(StepOutcome(key=k, payload=item, status="applied"))
    return report
