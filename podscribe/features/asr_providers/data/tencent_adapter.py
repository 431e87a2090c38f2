# File: podscribe/features/asr_providers/data/tencent_adapter.py
import logging
import tempfile
from pathlib import Path
from typing import Callable, List, Optional

from podscribe.core.common.errors import ConfigurationError, FatalProviderError
from podscribe.core.common.fs import remove_path
from podscribe.core.config.settings import settings as app_settings
from podscribe.core.shared_types import Segment
from podscribe.core.tasks.cancellation import CancellationToken
from podscribe.features.flash_asr.data.http_client import FlashAsrClient
from podscribe.features.flash_asr.data.signer import guess_voice_format
from podscribe.features.flash_asr.domain.models import FlashCredentials
from ..domain.interfaces import IAsrProvider
from ..domain.models import AsrSettings, EmitFn, ProviderComplete, ProviderProgress, ProviderSegments

logger = logging.getLogger(__name__)

ClientFactory = Callable[[FlashCredentials], FlashAsrClient]


class TencentFlashProvider(IAsrProvider):
    """
    Flash (one-shot HTTP) backend. Accepts compressed formats directly,
    so the orchestrator hands it the source file untouched.
    """
    id = "tencent"
    name = "Tencent Cloud"
    supports_raw_audio = True

    def __init__(self, client_factory: ClientFactory = FlashAsrClient):
        self.client_factory = client_factory

    def is_configured(self, settings: AsrSettings) -> bool:
        return bool(settings.tencent_app_id and settings.tencent_secret_id and settings.tencent_secret_key)

    def _client(self, settings: AsrSettings) -> FlashAsrClient:
        if not self.is_configured(settings):
            raise ConfigurationError("Tencent ASR credentials are not configured.", provider_name=self.id)
        return self.client_factory(FlashCredentials(
            app_id=settings.tencent_app_id,
            secret_id=settings.tencent_secret_id,
            secret_key=settings.tencent_secret_key,
        ))

    def transcribe_file(self, path: Path, settings: AsrSettings, emit: EmitFn,
                        token: Optional[CancellationToken] = None) -> List[Segment]:
        client = self._client(settings)
        path = Path(path)

        if token and token.is_cancelled():
            return []

        # 1. Read
        emit(ProviderProgress(0.05))
        try:
            audio = path.read_bytes()
        except OSError as e:
            raise FatalProviderError(f"Cannot read {path}: {e}", provider_name=self.id) from e

        if token and token.is_cancelled():
            return []

        # 2. One signed request; cannot be interrupted once sent
        emit(ProviderProgress(0.1))
        segments = client.recognize(audio, guess_voice_format(path))
        emit(ProviderProgress(1.0))
        return segments

    def transcribe_stream(self, audio_bytes: bytes, settings: AsrSettings, emit: EmitFn,
                          time_offset: float = 0.0,
                          token: Optional[CancellationToken] = None) -> List[Segment]:
        # No real streaming here: spool the buffer to a WAV file and send it whole
        app_settings.ASR_TEMP_ROOT.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(prefix="podscribe-flash-", suffix=".wav",
                                         dir=str(app_settings.ASR_TEMP_ROOT), delete=False) as tmp:
            tmp.write(audio_bytes)
            tmp_path = Path(tmp.name)

        try:
            segments = self.transcribe_file(tmp_path, settings, emit, token)
        finally:
            remove_path(tmp_path)

        segments = [s.shifted(time_offset) for s in segments]
        emit(ProviderSegments(segments=segments))
        emit(ProviderComplete(segments=segments))
        return segments

    def cancel(self) -> None:
        # single-shot requests; nothing to close
        logger.debug("Tencent flash requests cannot be cancelled once sent")
