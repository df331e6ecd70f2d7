# inbound_desk/gateway/scanner_base.py
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional

from inbound_desk.clients.base import DataApi, DataApiError
from inbound_desk.gateway import barcode
from inbound_desk.gateway.audio import AudioFeedback
from inbound_desk.gateway.scan_events import ScanEventLogger, event_for
from inbound_desk.schemas.scan import ScanResult, ScanType, WorkflowStage

logger = logging.getLogger(__name__)


class ScanStatus(str, Enum):
    IDLE = "idle"
    FOUND = "found"
    NOT_FOUND = "not_found"
    NOT_EXPECTED = "not_expected"
    WRONG_ORDER = "wrong_order"
    LOT_ENTRY = "lot_entry"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class ScanMessage:
    kind: str  # success | warning | error
    text: str


class Scanner:
    """Shared plumbing of the scanner view-models: resolve, log, beep, message."""

    stage: WorkflowStage

    def __init__(
        self,
        api: DataApi,
        *,
        events: Optional[ScanEventLogger] = None,
        audio: Optional[AudioFeedback] = None,
    ) -> None:
        self.api = api
        self.events = events or ScanEventLogger(api)
        self.audio = audio or AudioFeedback()
        self.status = ScanStatus.IDLE
        self.message: Optional[ScanMessage] = None
        self.saving = False

    async def _resolve(
        self, code: str, *, expected: ScanType = ScanType.PRODUCT, **extra: Any
    ) -> Optional[barcode.Resolution]:
        """
        None when the lookup itself failed. The scan is still logged as an
        error and the operator hears the failure tone.
        """
        try:
            return await barcode.resolve(self.api, code)
        except DataApiError as e:
            logger.error("barcode lookup failed (%s): %s", code, e.message)
            await self._log(
                barcode.NotFound((code or "").strip()),
                result=ScanResult.ERROR,
                error_message=e.message,
                expected=expected,
                **extra,
            )
            self._fail(f"Lookup failed: {e.message}", ScanStatus.ERROR)
            return None

    async def _log(
        self,
        resolution: barcode.Resolution,
        *,
        result: ScanResult = ScanResult.SUCCESS,
        error_message: Optional[str] = None,
        expected: ScanType = ScanType.PRODUCT,
        **extra: Any,
    ) -> None:
        await self.events.log(
            event_for(resolution, self.stage, result=result, error_message=error_message, expected=expected, **extra)
        )

    def _ok(self, text: str, status: Optional[ScanStatus] = None) -> None:
        self.audio.beep(True)
        self.message = ScanMessage("success", text)
        if status is not None:
            self.status = status

    def _warn(self, text: str) -> None:
        self.audio.beep(True)
        self.message = ScanMessage("warning", text)

    def _fail(self, text: str, status: Optional[ScanStatus] = None) -> None:
        self.audio.beep(False)
        self.message = ScanMessage("error", text)
        if status is not None:
            self.status = status

    def base_snapshot(self) -> Dict[str, Any]:
        tone = self.audio.last_tone
        return {
            "stage": self.stage.value,
            "status": self.status.value,
            "message": asdict(self.message) if self.message else None,
            "audio_enabled": self.audio.enabled,
            "tone": asdict(tone) if tone else None,
            "saving": self.saving,
        }

    async def scan(self, code: str) -> None:
        raise NotImplementedError

    async def confirm(self) -> Any:
        raise NotImplementedError

    def snapshot(self) -> Dict[str, Any]:
        raise NotImplementedError
