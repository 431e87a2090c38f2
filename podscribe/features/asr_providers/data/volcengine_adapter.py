# File: podscribe/features/asr_providers/data/volcengine_adapter.py
import logging
from pathlib import Path
from typing import List, Optional

from podscribe.core.common.errors import ConfigurationError, FatalProviderError, TransientProviderError
from podscribe.core.config.settings import settings as app_settings
from podscribe.core.shared_types import Segment
from podscribe.core.tasks.cancellation import CancellationToken
from podscribe.features.audio_pipeline.data.ffmpeg_adapter import FFmpegPipelineAdapter
from podscribe.features.audio_pipeline.domain.interfaces import IAudioPipeline
from podscribe.features.audio_pipeline.service.api import cleanup_temp_dir
from podscribe.features.streaming_asr.data.ws_client import StreamingAsrClient
from podscribe.features.streaming_asr.domain.models import StreamOptions
from ..domain.interfaces import IAsrProvider
from ..domain.models import (
    AsrSettings,
    EmitFn,
    ProviderComplete,
    ProviderError,
    ProviderProgress,
    ProviderSegments,
)

logger = logging.getLogger(__name__)


class VolcengineProvider(IAsrProvider):
    """
    Streaming websocket backend. Only understands normalized PCM/WAV,
    so whole files go through the audio pipeline first.
    """
    id = "volcengine"
    name = "Volcengine"
    supports_raw_audio = False

    def __init__(self, client: Optional[StreamingAsrClient] = None, pipeline: Optional[IAudioPipeline] = None):
        self.client = client or StreamingAsrClient()
        self.pipeline = pipeline

    def is_configured(self, settings: AsrSettings) -> bool:
        return bool(settings.volc_app_key and settings.volc_access_key)

    def _options(self, settings: AsrSettings, interval_ms: int) -> StreamOptions:
        if not self.is_configured(settings):
            raise ConfigurationError("Volcengine ASR credentials are not configured.", provider_name=self.id)
        return StreamOptions(
            app_key=settings.volc_app_key,
            access_key=settings.volc_access_key,
            language=settings.language,
            send_interval=interval_ms / 1000.0,
            packet_bytes=app_settings.VOLC_ASR_PACKET_BYTES,
            idle_timeout=app_settings.VOLC_ASR_IDLE_TIMEOUT,
            connect_timeout=app_settings.VOLC_ASR_CONNECT_TIMEOUT,
        )

    def transcribe_stream(self, audio_bytes: bytes, settings: AsrSettings, emit: EmitFn,
                          time_offset: float = 0.0,
                          token: Optional[CancellationToken] = None) -> List[Segment]:
        options = self._options(settings, app_settings.VOLC_ASR_REALTIME_INTERVAL_MS)
        segments = self._stream(audio_bytes, options, emit, time_offset, token)
        emit(ProviderComplete(segments=segments))
        return segments

    def _stream(self, audio_bytes: bytes, options: StreamOptions, emit: EmitFn,
                time_offset: float, token: Optional[CancellationToken]) -> List[Segment]:
        try:
            return self.client.transcribe(
                audio_bytes, options,
                time_offset=time_offset,
                token=token,
                on_progress=lambda fraction: emit(ProviderProgress(fraction)),
                on_segments=lambda segments: emit(ProviderSegments(segments=segments)),
            )
        except TransientProviderError as e:
            e.provider_name = e.provider_name or self.id
            emit(ProviderError(message=str(e)))
            raise

    def transcribe_file(self, path: Path, settings: AsrSettings, emit: EmitFn,
                        token: Optional[CancellationToken] = None) -> List[Segment]:
        options = self._options(settings, app_settings.VOLC_ASR_BACKGROUND_INTERVAL_MS)
        token = token or CancellationToken()
        pipeline = self.pipeline or FFmpegPipelineAdapter()

        # 1. Normalize + chunk
        emit(ProviderProgress(0.02))
        result = pipeline.process(Path(path))

        try:
            # 2. Stream each chunk, positioned on the file's timeline
            total = len(result.chunks)
            segments: List[Segment] = []
            failures = 0
            for index, chunk in enumerate(result.chunks):
                if token.is_cancelled():
                    break

                def on_chunk_event(event, index=index):
                    if isinstance(event, ProviderProgress):
                        overall = 0.05 + (index + event.fraction) / total * 0.9
                        emit(ProviderProgress(min(overall, 0.95)))
                    elif isinstance(event, ProviderError):
                        emit(ProviderError(message=f"Chunk {index}: {event.message}"))

                try:
                    chunk_segments = self._stream(
                        chunk.file_path.read_bytes(), options, on_chunk_event, chunk.start_time_offset, token
                    )
                except (TransientProviderError, OSError) as e:
                    failures += 1
                    logger.warning(f"Chunk {index}/{total} of {Path(path).name} failed: {e}")
                    continue

                segments.extend(chunk_segments)
                emit(ProviderSegments(segments=list(segments)))

            if total and failures == total:
                raise FatalProviderError(f"All {total} chunk(s) failed to transcribe.", provider_name=self.id)
            return segments
        finally:
            cleanup_temp_dir(result.temp_directory)

    def cancel(self) -> None:
        closed = self.client.close_all()
        if closed:
            logger.info(f"Closing {closed} open streaming session(s)")
