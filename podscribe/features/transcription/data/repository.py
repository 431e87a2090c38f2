import logging
from typing import List, Optional

from podscribe.core.shared_types import Segment
from .sql_models import TranscriptModel, TranscriptSegmentModel
from ..domain.interfaces import ITranscriptRepository
from ..domain.models import Transcript

logger = logging.getLogger(__name__)


class SqlTranscriptRepository(ITranscriptRepository):
    def __init__(self, session_factory=None):
        if session_factory is None:
            from podscribe.core.database.connection import SessionLocal
            session_factory = SessionLocal
        self.session_factory = session_factory

    def replace(self, content_id: str, segments: List[Segment], language: str,
                provider_id: Optional[str] = None, is_partial: bool = False) -> Transcript:
        """
        Transactional logic:
        1. Delete the previous transcript (segments cascade).
        2. Insert the header.
        3. Insert segments in order.
        """
        with self.session_factory() as db:
            try:
                # 1. Drop the old version
                existing = db.query(TranscriptModel).filter(TranscriptModel.content_id == content_id).first()
                if existing:
                    db.delete(existing)
                    db.flush()  # unique content_id must be free before the insert

                # 2. Header
                transcript = TranscriptModel(
                    content_id=content_id,
                    language=language,
                    provider_id=provider_id,
                    full_text=" ".join(s.text for s in segments if s.text),
                    is_partial=is_partial,
                )
                db.add(transcript)
                db.flush()  # Flush to generate ID

                # 3. Segments
                for position, segment in enumerate(segments):
                    db.add(TranscriptSegmentModel(
                        transcript_id=transcript.id,
                        position=position,
                        start_time=segment.start,
                        end_time=segment.end,
                        text=segment.text,
                        speaker_id=segment.speaker_id,
                    ))

                db.commit()
                db.refresh(transcript)
                logger.info(f"Saved transcript {transcript.id} for {content_id} ({len(segments)} segments)")
                return _to_domain(transcript)
            except Exception as e:
                db.rollback()
                raise e

    def get(self, content_id: str) -> Optional[Transcript]:
        with self.session_factory() as db:
            transcript = db.query(TranscriptModel).filter(TranscriptModel.content_id == content_id).first()
            return _to_domain(transcript) if transcript else None


def _to_domain(model: TranscriptModel) -> Transcript:
    return Transcript(
        id=model.id,
        content_id=model.content_id,
        language=model.language,
        segments=[
            Segment(start=s.start_time, end=s.end_time, text=s.text, speaker_id=s.speaker_id)
            for s in model.segments
        ],
        provider_id=model.provider_id,
        full_text=model.full_text,
        is_partial=model.is_partial,
        created_at=model.created_at,
    )
