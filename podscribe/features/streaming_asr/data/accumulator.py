# File: podscribe/features/streaming_asr/data/accumulator.py
import logging
from typing import Any, Dict, List, Optional

from podscribe.core.shared_types import Segment

logger = logging.getLogger(__name__)


class UtteranceAccumulator:
    """
    Folds the server's full-result responses into a stable segment list.

    Definite utterances are kept for good. The one utterance the server is still
    refining is held as `pending` and replaced by every newer version of it.
    Server times are milliseconds relative to the stream; segments come out in
    seconds on the global timeline (shifted by `time_offset`).
    """

    def __init__(self, time_offset: float = 0.0):
        self.time_offset = time_offset
        self.confirmed: List[Segment] = []
        self.pending: Optional[Segment] = None
        self._last_confirmed_start_ms = -1

    def feed(self, response: Dict[str, Any]) -> bool:
        """Returns True when the visible segment list changed."""
        result = response.get("result") or {}
        if isinstance(result, list):
            # some deployments wrap the result in a one-element list
            result = result[0] if result else {}
        utterances = result.get("utterances") or []

        changed = False
        newest_pending: Optional[Segment] = None

        for utt in utterances:
            text = (utt.get("text") or "").strip()
            if not text:
                continue
            start_ms = int(utt.get("start_time", 0) or 0)
            end_ms = int(utt.get("end_time", start_ms) or start_ms)
            if end_ms < start_ms:
                end_ms = start_ms

            if utt.get("definite"):
                if start_ms > self._last_confirmed_start_ms:
                    self.confirmed.append(self._segment(start_ms, end_ms, text))
                    self._last_confirmed_start_ms = start_ms
                    changed = True
            elif start_ms > self._last_confirmed_start_ms:
                newest_pending = self._segment(start_ms, end_ms, text)

        if newest_pending is not None and newest_pending != self.pending:
            self.pending = newest_pending
            changed = True
        elif newest_pending is None and self.pending is not None and self._pending_confirmed():
            self.pending = None
            changed = True

        return changed

    def finalize(self) -> List[Segment]:
        """The stream is over: whatever is still pending becomes final."""
        if self.pending is not None and not self._pending_confirmed():
            self.confirmed.append(self.pending)
        self.pending = None
        return list(self.confirmed)

    def snapshot(self) -> List[Segment]:
        if self.pending is None or self._pending_confirmed():
            return list(self.confirmed)
        return self.confirmed + [self.pending]

    def _pending_confirmed(self) -> bool:
        # a pending utterance is superseded once a definite one starts at or after it
        offset_ms = round((self.pending.start - self.time_offset) * 1000)
        return offset_ms <= self._last_confirmed_start_ms

    def _segment(self, start_ms: int, end_ms: int, text: str) -> Segment:
        return Segment(
            start=self.time_offset + start_ms / 1000.0,
            end=self.time_offset + end_ms / 1000.0,
            text=text,
        )
