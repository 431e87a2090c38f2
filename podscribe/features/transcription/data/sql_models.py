import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, Float, Integer, Boolean, ForeignKey, DateTime, Uuid
from sqlalchemy.orm import relationship
from podscribe.core.database.base import Base


def utc_now():
    return datetime.now(timezone.utc)


class TranscriptModel(Base):
    """
    The Header record for a transcript. At most one per content item;
    re-transcription replaces it wholesale.
    """
    __tablename__ = "transcripts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    content_id = Column(String, nullable=False, unique=True, index=True)

    language = Column(String, default="zh-CN")
    provider_id = Column(String, nullable=True)

    # The Full Text Blob (Useful for basic "CTRL+F" search)
    full_text = Column(Text, nullable=False, default="")

    # Some chunks failed; the transcript has gaps
    is_partial = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), default=utc_now)

    segments = relationship(
        "TranscriptSegmentModel",
        back_populates="transcript",
        cascade="all, delete-orphan",
        order_by="TranscriptSegmentModel.position",
    )


class TranscriptSegmentModel(Base):
    """
    The Atomic Unit. `position` keeps the recognizer's order.
    """
    __tablename__ = "transcript_segments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    transcript_id = Column(Uuid(as_uuid=True), ForeignKey("transcripts.id", ondelete="CASCADE"), nullable=False)

    position = Column(Integer, nullable=False)
    start_time = Column(Float, nullable=False)
    end_time = Column(Float, nullable=False)
    text = Column(Text, nullable=False)

    # Backend-assigned label ("0", "1", ...), not a link to a speaker table
    speaker_id = Column(String, nullable=True)

    transcript = relationship("TranscriptModel", back_populates="segments")
