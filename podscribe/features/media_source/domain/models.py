# File: podscribe/features/media_source/domain/models.py
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from podscribe.core.common.enums import SourceKind


@dataclass(frozen=True)
class ContentMedia:
    """
    What the content store knows about one item's media.
    `downloaded_audio_path` is set once the download manager has a ready file.
    """
    content_id: str
    media_type: Optional[str] = None  # 'podcast', 'video', ...
    audio_url: Optional[str] = None
    url: Optional[str] = None
    video_id: Optional[str] = None
    downloaded_audio_path: Optional[str] = None


@dataclass(frozen=True)
class SourceDescriptor:
    kind: SourceKind
    file_path: Optional[Path] = None
    audio_url: Optional[str] = None
    video_id: Optional[str] = None

    @property
    def requires_extraction(self) -> bool:
        return self.kind == SourceKind.LOCAL_VIDEO_FILE


@dataclass
class PreparedAudio:
    """A readable local audio file. The caller removes cleanup_paths when done."""
    file_path: Path
    source_kind: SourceKind
    cleanup_paths: List[Path] = field(default_factory=list)
