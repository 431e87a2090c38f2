from dataclasses import dataclass, replace
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Segment:
    """
    One timestamped span of recognized text.
    Times are seconds on the timeline of the audio the provider was given,
    until shifted() places them on the source file's global timeline.
    """
    start: float
    end: float
    text: str
    speaker_id: Optional[str] = None

    def __post_init__(self):
        if self.start < 0 or self.end < 0:
            raise ValueError("Timestamps cannot be negative.")
        if self.end < self.start:
            raise ValueError(f"Segment end ({self.end}) precedes its start ({self.start}).")

    def shifted(self, offset: float) -> "Segment":
        if not offset:
            return self
        return replace(self, start=self.start + offset, end=self.end + offset)

    def to_dict(self) -> Dict[str, Any]:
        data = {"start": self.start, "end": self.end, "text": self.text}
        if self.speaker_id is not None:
            data["speaker_id"] = self.speaker_id
        return data
