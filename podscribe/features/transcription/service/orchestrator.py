# File: podscribe/features/transcription/service/orchestrator.py
import logging
import threading
from typing import List, Optional, Tuple
from uuid import UUID

from podscribe.core.common.enums import AsrCommand, JobStatus
from podscribe.core.common.errors import AsrError, ConfigurationError, FatalProviderError
from podscribe.core.common.fs import remove_path
from podscribe.core.events.bus import EventBus
from podscribe.core.events.models import CompleteEvent, ErrorEvent, ProgressEvent, SegmentEvent
from podscribe.core.jobs.repository import JobRepository
from podscribe.core.shared_types import Segment
from podscribe.core.tasks.registry import TaskEntry, TaskRegistry
from podscribe.features.asr_providers.domain.interfaces import IAsrProvider, ISettingsStore
from podscribe.features.asr_providers.domain.models import (
    AsrSettings,
    ProviderError,
    ProviderProgress,
    ProviderSegments,
)
from podscribe.features.asr_providers.service.registry import ProviderRegistry
from podscribe.features.audio_pipeline.domain.interfaces import IAudioPipeline
from podscribe.features.media_source.domain.interfaces import IAudioSourceResolver
from podscribe.features.media_source.domain.models import PreparedAudio
from ..domain.interfaces import ITranscriptRepository
from ..domain.models import Transcript

logger = logging.getLogger(__name__)


class _ProgressTracker:
    """Publishes progress for one task; overall progress never goes backwards."""

    def __init__(self, events: EventBus, content_id: str):
        self.events = events
        self.content_id = content_id
        self.overall = 0.0

    def report(self, chunk_index: int, total_chunks: int, chunk_progress: float) -> float:
        chunk_progress = min(max(chunk_progress, 0.0), 1.0)
        total_chunks = max(total_chunks, 1)
        self.overall = max(self.overall, min((chunk_index + chunk_progress) / total_chunks, 1.0))
        self.events.publish(ProgressEvent(
            content_id=self.content_id,
            chunk_index=chunk_index,
            total_chunks=total_chunks,
            chunk_progress=chunk_progress,
            overall_progress=self.overall,
        ))
        return self.overall


class TranscriptionOrchestrator:
    """
    The single coordination point per content item.

    1. Picks the active provider and checks its credentials.
    2. Prepares a local audio file.
    3. Raw-audio providers get the file once; the others get normalized chunks in order.
    4. Fans provider events out as content-scoped asr:* events.
    5. Replaces the stored transcript when a non-empty, non-cancelled result comes back.

    At most one task per content id. Cancellation is cooperative.
    """

    def __init__(self, providers: ProviderRegistry, pipeline: IAudioPipeline, sources: IAudioSourceResolver,
                 repository: ITranscriptRepository, settings_store: ISettingsStore, events: EventBus,
                 registry: Optional[TaskRegistry] = None, jobs: Optional[JobRepository] = None):
        self.providers = providers
        self.pipeline = pipeline
        self.sources = sources
        self.repository = repository
        self.settings_store = settings_store
        self.events = events
        self.registry = registry or TaskRegistry()
        self.jobs = jobs

    # --- Commands ---

    def start(self, content_id: str) -> threading.Thread:
        """
        Claims the slot synchronously (TaskBusyError if taken), then works in the background.
        """
        entry = self.registry.acquire(content_id)
        thread = threading.Thread(target=self._worker, args=(entry,), name=f"asr-{content_id}", daemon=True)
        thread.start()
        logger.info(f"Transcription started for {content_id}")
        return thread

    def run(self, content_id: str) -> List[Segment]:
        """Same job as start(), on the calling thread. Failures are raised after asr:error is published."""
        entry = self.registry.acquire(content_id)
        return self._execute(entry)

    def cancel(self, content_id: str) -> bool:
        return self.registry.cancel(content_id)

    def handle_command(self, channel: str, content_id: str):
        command = AsrCommand(channel)
        if command == AsrCommand.START:
            return self.start(content_id)
        return self.cancel(content_id)

    def get_transcript(self, content_id: str) -> Optional[Transcript]:
        return self.repository.get(content_id)

    def active_tasks(self) -> List[str]:
        return self.registry.active_ids()

    # --- Job body ---

    def _worker(self, entry: TaskEntry) -> None:
        try:
            self._execute(entry)
        except AsrError as e:
            logger.info(f"Transcription task for {entry.content_id} ended with {e.code}")
        except Exception:
            logger.exception(f"Unexpected failure in transcription worker for {entry.content_id}")

    def _execute(self, entry: TaskEntry) -> List[Segment]:
        content_id = entry.content_id
        job_id: Optional[UUID] = None
        segments: List[Segment] = []

        try:
            if self.jobs:
                job_id = self.jobs.create_job(content_id)
            tracker = _ProgressTracker(self.events, content_id)

            # 1. Provider
            settings = self.settings_store.load()
            provider = self._resolve_provider(settings)
            if job_id:
                self.jobs.mark_processing(job_id, provider_id=provider.id, detail="Preparing audio")

            # 2. Source audio
            prepared = self.sources.prepare(content_id)
            if not self.registry.attach_cleanup_paths(entry, prepared.cleanup_paths):
                self.sources.cleanup_paths(prepared.cleanup_paths)
                return self._finish_cancelled(job_id, content_id, segments)

            tracker.report(0, 1, 0.0)

            # 3. Recognize
            if provider.supports_raw_audio:
                segments, failed_chunks = self._transcribe_raw(entry, provider, settings, prepared, tracker)
            else:
                segments, failed_chunks = self._transcribe_chunked(entry, provider, settings, prepared, tracker,
                                                                   job_id)

            if entry.cancelled:
                return self._finish_cancelled(job_id, content_id, segments)

            if failed_chunks and not segments:
                raise FatalProviderError(
                    f"Every chunk failed ({len(failed_chunks)} of them); nothing was transcribed.",
                    provider_name=provider.id,
                )

            # 4. Persist
            transcript = None
            if segments:
                transcript = self.repository.replace(
                    content_id, segments, settings.language,
                    provider_id=provider.id,
                    is_partial=bool(failed_chunks),
                )

            # 5. Done
            self.events.publish(CompleteEvent(content_id=content_id, segments=list(segments),
                                              failed_chunks=list(failed_chunks)))
            if job_id:
                self.jobs.finish(job_id, JobStatus.COMPLETED, detail="Transcribed", result_meta={
                    "transcript_id": str(transcript.id) if transcript else None,
                    "segment_count": len(segments),
                    "failed_chunks": list(failed_chunks),
                })
            logger.info(
                f"Transcription complete for {content_id}: {len(segments)} segment(s), "
                f"{len(failed_chunks)} failed chunk(s)"
            )
            return segments

        except Exception as e:
            if entry.cancelled:
                # failures caused by cancel() pulling temp files away are not errors
                logger.info(f"Transcription for {content_id} stopped after cancellation ({e})")
                return self._finish_cancelled(job_id, content_id, segments)

            message = e.message if isinstance(e, AsrError) else str(e)
            logger.error(f"Transcription failed for {content_id}: {message}")
            self.events.publish(ErrorEvent(content_id=content_id, message=message))
            if job_id:
                self.jobs.finish(job_id, JobStatus.FAILED, detail="Failed", error_message=message)
            raise

        finally:
            # temp files go before the slot is freed
            temp_directory = self.registry.take_temp_directory(entry)
            if temp_directory:
                remove_path(temp_directory)
            self.sources.cleanup_paths(self.registry.take_cleanup_paths(entry))
            self.registry.release(entry)

    def _resolve_provider(self, settings: AsrSettings) -> IAsrProvider:
        provider = self.providers.get_active(settings)
        if provider is None:
            raise ConfigurationError(f"No speech recognition provider named '{settings.asr_provider}'.")
        if not provider.is_configured(settings):
            raise ConfigurationError(
                f"{provider.name} speech recognition credentials are not configured.",
                provider_name=provider.id,
            )
        return provider

    def _finish_cancelled(self, job_id: Optional[UUID], content_id: str, segments: List[Segment]) -> List[Segment]:
        # accumulated segments stay in memory only; nothing is persisted and no completion is sent
        logger.info(f"Transcription cancelled for {content_id} ({len(segments)} segment(s) discarded)")
        if job_id:
            self.jobs.finish(job_id, JobStatus.CANCELLED, detail="Cancelled")
        return segments

    # --- Branches ---

    def _transcribe_raw(self, entry: TaskEntry, provider: IAsrProvider, settings: AsrSettings,
                        prepared: PreparedAudio, tracker: _ProgressTracker) -> Tuple[List[Segment], List[int]]:
        content_id = entry.content_id

        def on_event(event):
            if entry.cancelled:
                return
            if isinstance(event, ProviderProgress):
                tracker.report(0, 1, event.fraction)
            elif isinstance(event, ProviderSegments):
                self.events.publish(SegmentEvent(content_id=content_id, segments=list(event.segments)))
            elif isinstance(event, ProviderError):
                logger.warning(f"[{provider.id}] {content_id}: {event.message}")

        try:
            segments = provider.transcribe_file(prepared.file_path, settings, on_event, entry.token)
        except (ConfigurationError, FatalProviderError):
            raise
        except Exception as e:
            raise FatalProviderError(f"{provider.name} transcription failed: {e}", provider_name=provider.id) from e

        if entry.cancelled:
            return segments, []

        tracker.report(0, 1, 1.0)
        self.events.publish(SegmentEvent(content_id=content_id, segments=list(segments)))
        return list(segments), []

    def _transcribe_chunked(self, entry: TaskEntry, provider: IAsrProvider, settings: AsrSettings,
                            prepared: PreparedAudio, tracker: _ProgressTracker,
                            job_id: Optional[UUID]) -> Tuple[List[Segment], List[int]]:
        content_id = entry.content_id
        segments: List[Segment] = []
        failed_chunks: List[int] = []

        # 1. Normalize + chunk (PipelineError is fatal)
        result = self.pipeline.process(prepared.file_path)
        if not self.registry.attach_temp_directory(entry, result.temp_directory):
            remove_path(result.temp_directory)
            return segments, failed_chunks

        total = len(result.chunks)
        logger.info(f"Transcribing {content_id} in {total} chunk(s) with {provider.id}")

        # 2. Strictly in order; offsets and UI state depend on it
        for index, chunk in enumerate(result.chunks):
            if entry.cancelled:
                break

            tracker.report(index, total, 0.0)

            def on_event(event, index=index):
                if entry.cancelled:
                    return
                if isinstance(event, ProviderProgress):
                    tracker.report(index, total, event.fraction)
                elif isinstance(event, ProviderSegments):
                    self.events.publish(SegmentEvent(content_id=content_id,
                                                     segments=segments + list(event.segments)))
                elif isinstance(event, ProviderError):
                    logger.warning(f"[{provider.id}] {content_id} chunk {index}: {event.message}")

            try:
                audio = chunk.file_path.read_bytes()
                chunk_segments = provider.transcribe_stream(
                    audio, settings, on_event, chunk.start_time_offset, entry.token
                )
            except ConfigurationError:
                raise
            except Exception as e:
                if entry.cancelled:
                    break
                logger.warning(f"Chunk {index + 1}/{total} of {content_id} failed, skipping: {e}")
                failed_chunks.append(index)
                continue

            # a result that lands after cancellation is discarded
            if entry.cancelled:
                break

            segments.extend(chunk_segments)
            overall = tracker.report(index, total, 1.0)
            self.events.publish(SegmentEvent(content_id=content_id, segments=list(segments)))
            if job_id:
                self.jobs.update_progress(job_id, overall, detail=f"Chunk {index + 1}/{total}")

        return segments, failed_chunks
