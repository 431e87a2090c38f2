# File: podscribe/core/common/errors.py
from typing import Optional


class AsrError(RuntimeError):
    """
    Base class for every failure the ASR subsystem raises on purpose.
    Carries a machine-readable code and the provider that produced it (if any).
    """

    code = "asr_error"

    def __init__(self, message: str, provider_name: Optional[str] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.provider_name = provider_name
        if code:
            self.code = code


class ConfigurationError(AsrError):
    """No active provider, or the active provider lacks credentials. Never retried."""
    code = "not_configured"


class NotFoundError(AsrError):
    """No ready, readable local audio for the requested content."""
    code = "not_found"


class TaskBusyError(AsrError):
    """A transcription is already running for this content id."""
    code = "busy"


class TransientProviderError(AsrError):
    """A single chunk/request failed. The orchestrator skips it and moves on."""
    code = "transient_provider_error"


class FatalProviderError(AsrError):
    """The whole task cannot produce a result."""
    code = "fatal_provider_error"


class PipelineError(FatalProviderError):
    """Transcoding or chunking of the source audio failed."""
    code = "pipeline_error"
