# File: podscribe/features/transcription/domain/interfaces.py
from abc import ABC, abstractmethod
from typing import List, Optional

from podscribe.core.shared_types import Segment
from .models import Transcript


class ITranscriptRepository(ABC):
    """
    Storage contract for transcripts. One live transcript per content id.
    """

    @abstractmethod
    def replace(self, content_id: str, segments: List[Segment], language: str,
                provider_id: Optional[str] = None, is_partial: bool = False) -> Transcript:
        """
        Deletes any existing transcript for content_id and inserts the new one,
        in one transaction. Readers never observe a mix of old and new segments.

        Returns:
            The stored Transcript.
        """
        pass

    @abstractmethod
    def get(self, content_id: str) -> Optional[Transcript]:
        pass
