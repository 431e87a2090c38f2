import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Float, DateTime, Enum as SQLEnum, JSON, Uuid
from podscribe.core.database.base import Base
from podscribe.core.common.enums import JobStatus


def utc_now():
    return datetime.now(timezone.utc)


class JobModel(Base):
    """
    One row per orchestrated transcription run.
    The in-memory TaskRegistry enforces single-flight; this table is the audit trail.
    """
    __tablename__ = "asr_jobs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    content_id = Column(String, nullable=False, index=True)
    provider_id = Column(String, nullable=True)

    status = Column(SQLEnum(JobStatus), default=JobStatus.PENDING, nullable=False, index=True)
    progress = Column(Float, default=0.0, nullable=False)
    detail = Column(String, nullable=True)

    result_meta = Column(JSON, default=dict)  # Output pointers (transcript id, counts)
    error_message = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now)
    started_at = Column(DateTime(timezone=True), nullable=True)
    finished_at = Column(DateTime(timezone=True), nullable=True)
