# File: podscribe/features/audio_pipeline/domain/models.py
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from podscribe.core.config.settings import settings


@dataclass(frozen=True)
class PipelineConfig:
    """
    Target format for backends that need bounded, normalized input.
    Defaults to 16 kHz / mono / 16-bit PCM in 60 second slices.
    """
    chunk_seconds: int = settings.ASR_CHUNK_SECONDS
    sample_rate_hz: int = settings.ASR_SAMPLE_RATE
    channels: int = settings.ASR_CHANNELS
    timeout_seconds: int = settings.ASR_FFMPEG_TIMEOUT

    def __post_init__(self):
        if self.chunk_seconds <= 0:
            raise ValueError(f"chunk_seconds must be positive, got {self.chunk_seconds}")


@dataclass(frozen=True)
class PipelineChunk:
    file_path: Path
    # Position of this chunk on the source timeline; chunk n starts at n * chunk_seconds.
    start_time_offset: float
    duration: float = 0.0


@dataclass
class PipelineResult:
    """
    The caller owns temp_directory and must remove it on every exit path.
    """
    temp_directory: Path
    chunks: List[PipelineChunk] = field(default_factory=list)
    total_duration: float = 0.0
