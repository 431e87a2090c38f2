# File: podscribe/features/transcription/domain/models.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from podscribe.core.shared_types import Segment


@dataclass(frozen=True)
class Transcript:
    """
    The persisted result of one completed transcription.
    """
    id: UUID
    content_id: str
    language: str
    segments: List[Segment] = field(default_factory=list)
    provider_id: Optional[str] = None
    full_text: str = ""
    is_partial: bool = False
    created_at: Optional[datetime] = None
