# File: podscribe/features/asr_providers/domain/models.py
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Union

from podscribe.core.config.settings import settings as app_settings
from podscribe.core.shared_types import Segment


@dataclass(frozen=True)
class ProviderDescriptor:
    id: str
    name: str
    # True when the backend takes compressed files as-is (no pipeline needed)
    supports_raw_audio: bool


@dataclass(frozen=True)
class AsrSettings:
    """
    The user-facing slice of application settings that ASR needs.
    Credentials are plain strings; empty means "not configured".
    """
    asr_provider: Optional[str] = None
    volc_app_key: str = ""
    volc_access_key: str = ""
    tencent_app_id: str = ""
    tencent_secret_id: str = ""
    tencent_secret_key: str = ""
    language: str = app_settings.ASR_DEFAULT_LANGUAGE


# --- Provider events ---
# One tagged union replaces per-mode callback structs.

@dataclass(frozen=True)
class ProviderProgress:
    fraction: float


@dataclass(frozen=True)
class ProviderSegments:
    """Full accumulated list for the current call, never a delta."""
    segments: List[Segment] = field(default_factory=list)


@dataclass(frozen=True)
class ProviderComplete:
    segments: List[Segment] = field(default_factory=list)


@dataclass(frozen=True)
class ProviderError:
    """Non-fatal notice; the call may still return (partial) segments."""
    message: str


ProviderEvent = Union[ProviderProgress, ProviderSegments, ProviderComplete, ProviderError]
EmitFn = Callable[[ProviderEvent], None]
