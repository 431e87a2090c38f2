from pathlib import Path
from typing import Optional

from podscribe.core.common.fs import remove_path
from ..data.ffmpeg_adapter import FFmpegPipelineAdapter
from ..domain.models import PipelineConfig, PipelineResult


def run_pipeline(audio_path: str, chunk_seconds: Optional[int] = None) -> PipelineResult:
    """
    Standalone API: normalizes and chunks an audio file.
    Does NOT interact with the database. The caller must call cleanup_temp_dir().
    """
    config = PipelineConfig(chunk_seconds=chunk_seconds) if chunk_seconds else PipelineConfig()
    adapter = FFmpegPipelineAdapter(config)
    return adapter.process(Path(audio_path))


def cleanup_temp_dir(temp_directory: Path) -> None:
    """Idempotent; never raises."""
    remove_path(Path(temp_directory))
