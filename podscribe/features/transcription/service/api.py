from typing import Optional

from podscribe.core.events.bus import EventBus
from podscribe.core.jobs.repository import JobRepository
from podscribe.features.asr_providers.data.env_settings_store import EnvSettingsStore
from podscribe.features.asr_providers.domain.interfaces import ISettingsStore
from podscribe.features.asr_providers.service.registry import build_default_registry
from podscribe.features.audio_pipeline.data.ffmpeg_adapter import FFmpegPipelineAdapter
from podscribe.features.media_source.domain.interfaces import IContentCatalog
from podscribe.features.media_source.service.resolver import MediaSourceResolver
from ..data.repository import SqlTranscriptRepository
from .orchestrator import TranscriptionOrchestrator


def build_orchestrator(catalog: IContentCatalog, settings_store: Optional[ISettingsStore] = None,
                       events: Optional[EventBus] = None, session_factory=None) -> TranscriptionOrchestrator:
    """
    Standard wiring: built-in providers, ffmpeg pipeline, SQL persistence with job tracking.
    The host application supplies its content catalog and subscribes to `orchestrator.events`.
    """
    return TranscriptionOrchestrator(
        providers=build_default_registry(),
        pipeline=FFmpegPipelineAdapter(),
        sources=MediaSourceResolver(catalog),
        repository=SqlTranscriptRepository(session_factory),
        settings_store=settings_store or EnvSettingsStore(),
        events=events or EventBus(),
        jobs=JobRepository(session_factory),
    )
