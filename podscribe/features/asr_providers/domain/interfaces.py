# File: podscribe/features/asr_providers/domain/interfaces.py
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from podscribe.core.shared_types import Segment
from podscribe.core.tasks.cancellation import CancellationToken
from .models import AsrSettings, EmitFn, ProviderDescriptor


class IAsrProvider(ABC):
    """
    Contract for any cloud speech-recognition backend.
    Lets the orchestrator swap the streaming backend for the flash backend (or a fake in tests).
    """
    id: str = ""
    name: str = ""
    supports_raw_audio: bool = False

    @property
    def descriptor(self) -> ProviderDescriptor:
        return ProviderDescriptor(id=self.id, name=self.name, supports_raw_audio=self.supports_raw_audio)

    @abstractmethod
    def is_configured(self, settings: AsrSettings) -> bool:
        """True when every credential this backend needs is present."""
        pass

    @abstractmethod
    def transcribe_file(self, path: Path, settings: AsrSettings, emit: EmitFn,
                        token: Optional[CancellationToken] = None) -> List[Segment]:
        """
        Transcribes a whole local audio file.

        Args:
            path: Readable local audio file (any format for raw-audio backends).
            settings: Credentials and language.
            emit: Sink for ProviderProgress / ProviderSegments / ProviderError events.
            token: Checked cooperatively; a cancelled call returns what it has.

        Returns:
            Segments on the file's own timeline.
        """
        pass

    @abstractmethod
    def transcribe_stream(self, audio_bytes: bytes, settings: AsrSettings, emit: EmitFn,
                          time_offset: float = 0.0,
                          token: Optional[CancellationToken] = None) -> List[Segment]:
        """
        Transcribes one normalized chunk (16 kHz / mono / 16-bit WAV or PCM).

        Args:
            audio_bytes: The chunk's bytes.
            time_offset: Seconds added to every returned timestamp.

        Returns:
            Segments on the global timeline. Emits ProviderComplete before returning.
        """
        pass

    def cancel(self) -> None:
        """Best-effort stop of whatever this provider has in flight. Default: nothing to stop."""
        pass


class ISettingsStore(ABC):
    @abstractmethod
    def load(self) -> AsrSettings:
        """Returns the current ASR settings snapshot."""
        pass
