# File: podscribe/core/events/models.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

from podscribe.core.common.enums import AsrChannel
from podscribe.core.shared_types import Segment


@dataclass(frozen=True)
class ProgressEvent:
    content_id: str
    chunk_index: int
    total_chunks: int
    chunk_progress: float
    overall_progress: float

    channel = AsrChannel.PROGRESS

    def to_payload(self) -> Dict[str, Any]:
        return {
            "content_id": self.content_id,
            "chunk_index": self.chunk_index,
            "total_chunks": self.total_chunks,
            "chunk_progress": self.chunk_progress,
            "overall_progress": self.overall_progress,
        }


@dataclass(frozen=True)
class SegmentEvent:
    """Always carries the full accumulated list, never a delta, so listeners stay stateless."""
    content_id: str
    segments: List[Segment] = field(default_factory=list)

    channel = AsrChannel.SEGMENT

    def to_payload(self) -> Dict[str, Any]:
        return {"content_id": self.content_id, "segments": [s.to_dict() for s in self.segments]}


@dataclass(frozen=True)
class CompleteEvent:
    content_id: str
    segments: List[Segment] = field(default_factory=list)
    # Chunk indices whose recognition failed; non-empty means the result is partial.
    failed_chunks: List[int] = field(default_factory=list)

    channel = AsrChannel.COMPLETE

    @property
    def is_partial(self) -> bool:
        return bool(self.failed_chunks)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "content_id": self.content_id,
            "segments": [s.to_dict() for s in self.segments],
            "failed_chunks": list(self.failed_chunks),
        }


@dataclass(frozen=True)
class ErrorEvent:
    """Task-level failure only. Per-chunk transient errors are logged, not published."""
    content_id: str
    message: str

    channel = AsrChannel.ERROR

    def to_payload(self) -> Dict[str, Any]:
        return {"content_id": self.content_id, "message": self.message}


AsrEvent = Union[ProgressEvent, SegmentEvent, CompleteEvent, ErrorEvent]
