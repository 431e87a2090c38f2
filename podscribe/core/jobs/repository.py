# File: podscribe/core/jobs/repository.py

import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from podscribe.core.common.enums import JobStatus
from .models import JobModel

logger = logging.getLogger(__name__)

_TERMINAL = {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED}


class JobRepository:
    """
    Persists the lifecycle of transcription runs:
    PENDING -> PROCESSING -> COMPLETED | FAILED | CANCELLED.
    """

    def __init__(self, session_factory=None):
        if session_factory is None:
            from podscribe.core.database.connection import SessionLocal
            session_factory = SessionLocal
        self.session_factory = session_factory

    def create_job(self, content_id: str) -> UUID:
        """Create a Job Record in PENDING state."""
        with self.session_factory() as db:
            job = JobModel(content_id=content_id, status=JobStatus.PENDING, progress=0.0)
            db.add(job)
            db.commit()
            db.refresh(job)
            logger.info(f"Job Submitted: {job.id} [content={content_id}]")
            return job.id

    def mark_processing(self, job_id: UUID, provider_id: Optional[str] = None, detail: Optional[str] = None):
        with self.session_factory() as db:
            job = db.get(JobModel, job_id)
            if not job:
                logger.error(f"Job {job_id} not found.")
                return
            job.status = JobStatus.PROCESSING
            job.started_at = datetime.now(timezone.utc)
            job.provider_id = provider_id
            job.detail = detail
            db.commit()

    def update_progress(self, job_id: UUID, progress: float, detail: Optional[str] = None):
        with self.session_factory() as db:
            job = db.get(JobModel, job_id)
            if not job or job.status in _TERMINAL:
                return
            job.progress = max(job.progress or 0.0, min(progress, 1.0))
            if detail:
                job.detail = detail
            db.commit()

    def finish(self, job_id: UUID, status: JobStatus, detail: Optional[str] = None,
               error_message: Optional[str] = None, result_meta: Optional[dict] = None):
        if status not in _TERMINAL:
            raise ValueError(f"{status} is not a terminal job status.")

        with self.session_factory() as db:
            job = db.get(JobModel, job_id)
            if not job:
                logger.error(f"Job {job_id} not found.")
                return
            job.status = status
            job.finished_at = datetime.now(timezone.utc)
            job.detail = detail
            job.error_message = error_message
            job.result_meta = result_meta or {}
            if status == JobStatus.COMPLETED:
                job.progress = 1.0
            db.commit()
            logger.info(f"Job {job_id} -> {status.value}")

    def get(self, job_id: UUID) -> Optional[JobModel]:
        with self.session_factory() as db:
            job = db.get(JobModel, job_id)
            if job:
                db.expunge(job)
            return job

    def latest_for(self, content_id: str) -> Optional[JobModel]:
        with self.session_factory() as db:
            job = (
                db.query(JobModel)
                .filter(JobModel.content_id == content_id)
                .order_by(JobModel.created_at.desc())
                .first()
            )
            if job:
                db.expunge(job)
            return job
