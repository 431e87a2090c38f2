# File: podscribe/features/flash_asr/domain/models.py
from dataclasses import dataclass

from podscribe.core.common.errors import FatalProviderError

FLASH_PATH = "/asr/flash/v1/"

SUPPORTED_VOICE_FORMATS = ("wav", "pcm", "ogg-opus", "speex", "silk", "mp3", "m4a", "aac", "amr")
DEFAULT_VOICE_FORMAT = "mp3"


class FlashAsrError(FatalProviderError):
    """The flash endpoint rejected the request or answered something unusable."""
    code = "flash_error"


@dataclass(frozen=True)
class FlashCredentials:
    app_id: str
    secret_id: str
    secret_key: str
