import pytest
from podscribe.core.common.enums import JobStatus
from podscribe.core.jobs.models import JobModel
from podscribe.core.jobs.repository import JobRepository


def test_job_submission_flow(session_factory):
    """
    Verifies that a job can be created and stored in the database.
    """
    repo = JobRepository(session_factory)

    # 1. EXECUTE: Submit Job
    job_id = repo.create_job("ep-jobs")
    assert job_id is not None

    # 2. VERIFY
    with session_factory() as db:
        job = db.get(JobModel, job_id)
        assert job is not None
        assert job.content_id == "ep-jobs"
        assert job.status == JobStatus.PENDING
        assert job.progress == 0.0


def test_job_lifecycle_to_completed(session_factory):
    repo = JobRepository(session_factory)
    job_id = repo.create_job("ep-life")

    repo.mark_processing(job_id, provider_id="volcengine", detail="Preparing audio")
    repo.update_progress(job_id, 0.5, detail="Chunk 2/4")
    repo.update_progress(job_id, 0.25)  # stale update must not move progress back

    job = repo.get(job_id)
    assert job.status == JobStatus.PROCESSING
    assert job.provider_id == "volcengine"
    assert job.progress == 0.5
    assert job.started_at is not None

    repo.finish(job_id, JobStatus.COMPLETED, result_meta={"segment_count": 3})
    job = repo.get(job_id)
    assert job.status == JobStatus.COMPLETED
    assert job.progress == 1.0
    assert job.result_meta == {"segment_count": 3}
    assert job.finished_at is not None


def test_failed_job_keeps_error_and_ignores_late_progress(session_factory):
    repo = JobRepository(session_factory)
    job_id = repo.create_job("ep-fail")
    repo.mark_processing(job_id)

    repo.finish(job_id, JobStatus.FAILED, error_message="credentials missing")
    repo.update_progress(job_id, 0.9)

    job = repo.latest_for("ep-fail")
    assert job.id == job_id
    assert job.status == JobStatus.FAILED
    assert job.error_message == "credentials missing"
    assert job.progress == 0.0


def test_finish_rejects_non_terminal_status(session_factory):
    repo = JobRepository(session_factory)
    job_id = repo.create_job("ep-bad")
    with pytest.raises(ValueError):
        repo.finish(job_id, JobStatus.PROCESSING)
