# File: podscribe/features/media_source/data/ffmpeg_extractor.py
import subprocess
import logging
from pathlib import Path

from podscribe.core.common.errors import NotFoundError, PipelineError
from podscribe.core.config.settings import settings
from ..domain.interfaces import IAudioExtractor

logger = logging.getLogger(__name__)


class FFmpegAudioExtractor(IAudioExtractor):
    def __init__(self, runner=subprocess.run):
        self.runner = runner

    def extract_audio(self, video_path: Path, output_dir: Path) -> Path:
        if not video_path.exists():
            raise NotFoundError(f"Video not found: {video_path}")

        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / "audio.wav"

        # FFmpeg command
        # -vn: Disable video
        # -y: Overwrite output
        # -ar/-ac/-acodec: the recognizers' native format, so the pipeline transcode is near free
        cmd = [
            settings.FFMPEG_BINARY,
            "-y",
            "-i", str(video_path),
            "-vn",
            "-ar", str(settings.ASR_SAMPLE_RATE),
            "-ac", str(settings.ASR_CHANNELS),
            "-acodec", "pcm_s16le",
            "-f", "wav",
            str(output_path)
        ]

        logger.info(f"Extracting audio: {' '.join(cmd)}")

        try:
            self.runner(
                cmd,
                check=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=settings.ASR_FFMPEG_TIMEOUT
            )
        except subprocess.CalledProcessError as e:
            error_msg = e.stderr.decode(errors="replace") if e.stderr else str(e)
            logger.error(f"FFmpeg failed: {error_msg}")
            raise PipelineError(f"Audio extraction failed: {error_msg}") from e
        except (subprocess.TimeoutExpired, OSError) as e:
            raise PipelineError(f"Audio extraction failed: {e}") from e

        return output_path
