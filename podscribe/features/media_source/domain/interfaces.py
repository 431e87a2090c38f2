# File: podscribe/features/media_source/domain/interfaces.py
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from .models import ContentMedia, PreparedAudio


class IContentCatalog(ABC):
    """
    Read-only view of the external content store.
    """
    @abstractmethod
    def get(self, content_id: str) -> Optional[ContentMedia]:
        """Returns the item's media fields, or None when the content id is unknown."""
        pass


class IAudioExtractor(ABC):
    @abstractmethod
    def extract_audio(self, video_path: Path, output_dir: Path) -> Path:
        """
        Pulls the audio track out of a video file as 16 kHz mono PCM WAV.

        Returns:
            Path of the written WAV inside output_dir.
        """
        pass


class IAudioSourceResolver(ABC):
    @abstractmethod
    def prepare(self, content_id: str) -> PreparedAudio:
        """
        Produces a readable local audio file for content_id.

        Raises:
            NotFoundError: If no local audio can be produced.
        """
        pass
