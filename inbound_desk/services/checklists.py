# inbound_desk/services/checklists.py
from __future__ import annotations

from typing import List, Optional, Set

from inbound_desk.clients.base import DataApi
from inbound_desk.schemas.checklist import ChecklistToggleOut
from inbound_desk.services.optimistic import optimistic_mutation
from inbound_desk.services.workflow_errors import WorkflowError


class ChecklistSubmittedError(WorkflowError):
    code = "checklist_submitted"
    http_status = 409


class ChecklistView:
    """
    Completed-item set of one checklist run.

    Toggling is optimistic: the set changes before the data API answers
    and is restored from a snapshot when the call fails. A submitted
    checklist is read-only.
    """

    def __init__(
        self,
        api: DataApi,
        checklist_id: str,
        completed_item_ids: Optional[List[str]] = None,
        *,
        submitted: bool = False,
    ) -> None:
        self.api = api
        self.checklist_id = checklist_id
        self.completed: Set[str] = set(completed_item_ids or [])
        self.submitted = submitted
        self.error: Optional[str] = None

    def _get(self) -> Set[str]:
        return self.completed

    def _set(self, value: Set[str]) -> None:
        self.completed = value

    async def toggle(self, item_id: str) -> ChecklistToggleOut:
        if self.submitted:
            raise ChecklistSubmittedError("Checklist already submitted", context={"checklist_id": self.checklist_id})

        new_value = set(self.completed)
        if item_id in new_value:
            new_value.discard(item_id)
        else:
            new_value.add(item_id)

        result = await optimistic_mutation(
            self._get,
            self._set,
            new_value,
            lambda: self.api.complete_checklist_item(self.checklist_id, item_id),
        )
        self.error = result.error
        return ChecklistToggleOut(
            checklist_id=self.checklist_id,
            item_id=item_id,
            completed_item_ids=sorted(self.completed),
            ok=result.ok,
            error=result.error,
        )
