# inbound_desk/gateway/audio.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tone:
    frequency_hz: int
    duration_s: float
    waveform: str


SUCCESS_TONE = Tone(frequency_hz=880, duration_s=0.15, waveform="sine")
FAILURE_TONE = Tone(frequency_hz=220, duration_s=0.3, waveform="square")


class AudioFeedback:
    """
    Scan beeps. Advisory only: the scanners call `beep` after deciding an
    outcome, and nothing here feeds back into scanner state.

    `sink` plays a tone on the operator's device (the HTTP surface hands
    `last_tone` to the browser instead). A failing sink is logged and
    ignored.
    """

    def __init__(self, enabled: bool = True, sink: Optional[Callable[[Tone], None]] = None) -> None:
        self.enabled = enabled
        self.sink = sink
        self.last_tone: Optional[Tone] = None

    def toggle(self, enabled: Optional[bool] = None) -> bool:
        self.enabled = (not self.enabled) if enabled is None else bool(enabled)
        return self.enabled

    def beep(self, success: bool) -> Optional[Tone]:
        if not self.enabled:
            self.last_tone = None
            return None
        tone = SUCCESS_TONE if success else FAILURE_TONE
        self.last_tone = tone
        if self.sink is not None:
            try:
                self.sink(tone)
            except Exception as e:  # noqa: BLE001
                logger.warning("audio playback failed: %s", e)
        return tone
