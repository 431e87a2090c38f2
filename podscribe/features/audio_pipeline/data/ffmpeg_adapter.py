# File: podscribe/features/audio_pipeline/data/ffmpeg_adapter.py
import logging
import re
import subprocess
import tempfile
import wave
from pathlib import Path
from typing import List, Optional, Tuple

from podscribe.core.config.settings import settings
from podscribe.core.common.errors import PipelineError
from podscribe.core.common.fs import remove_path
from ..domain.interfaces import IAudioPipeline
from ..domain.models import PipelineChunk, PipelineConfig, PipelineResult

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"Duration:\s*(\d+):(\d+):(\d+(?:\.\d+)?)")
_PROBE_TIMEOUT = 60


class FFmpegPipelineAdapter(IAudioPipeline):
    """
    Normalizes audio with ffmpeg and slices the result into fixed-length WAV chunks.
    Every call mints its own temp directory, so concurrent tasks never collide.
    """

    def __init__(self, config: Optional[PipelineConfig] = None, runner=subprocess.run,
                 ffmpeg_binary: Optional[str] = None, ffprobe_binary: Optional[str] = None,
                 temp_root: Optional[Path] = None):
        self.config = config or PipelineConfig()
        self.runner = runner
        self.ffmpeg_binary = ffmpeg_binary or settings.FFMPEG_BINARY
        self.ffprobe_binary = ffprobe_binary or settings.FFPROBE_BINARY
        self.temp_root = temp_root or settings.ASR_TEMP_ROOT

    def process(self, input_path: Path) -> PipelineResult:
        input_path = Path(input_path)
        if not input_path.exists():
            raise PipelineError(f"Audio not found: {input_path}")

        Path(self.temp_root).mkdir(parents=True, exist_ok=True)
        temp_dir = Path(tempfile.mkdtemp(prefix="podscribe-asr-", dir=str(self.temp_root)))

        try:
            probed_duration = self.probe_duration(input_path)

            # 1. Transcode the whole input into one normalized PCM stream
            normalized = temp_dir / "normalized.wav"
            self._transcode(input_path, normalized)

            # 2. Slice it into bounded chunks
            chunks, pcm_duration = self._split(normalized, temp_dir)
            normalized.unlink()
        except BaseException:
            remove_path(temp_dir)
            raise

        total_duration = probed_duration if probed_duration > 0 else pcm_duration
        logger.info(
            f"Pipeline ready for {input_path.name}: {len(chunks)} chunk(s), "
            f"{total_duration:.1f}s total, dir={temp_dir}"
        )
        return PipelineResult(temp_directory=temp_dir, chunks=chunks, total_duration=total_duration)

    # --- Duration detection ---

    def probe_duration(self, input_path: Path) -> float:
        """
        Asks ffprobe for the container duration. When ffprobe is missing or
        answers garbage, parses the banner ffmpeg prints instead. Never raises.
        """
        cmd = [
            self.ffprobe_binary,
            "-v", "quiet",
            "-show_entries", "format=duration",
            "-of", "default=noprint_wrappers=1:nokey=1",
            str(input_path)
        ]
        try:
            proc = self.runner(cmd, check=True, capture_output=True, text=True, timeout=_PROBE_TIMEOUT)
            duration = float(proc.stdout.strip())
            if duration > 0:
                return duration
        except (OSError, subprocess.SubprocessError, ValueError) as e:
            logger.warning(f"ffprobe unavailable for {input_path.name} ({e}); falling back to ffmpeg banner")

        return self._duration_from_banner(input_path)

    def _duration_from_banner(self, input_path: Path) -> float:
        # `ffmpeg -i` without an output exits non-zero but still prints "Duration: HH:MM:SS.xx"
        cmd = [self.ffmpeg_binary, "-hide_banner", "-i", str(input_path)]
        try:
            proc = self.runner(cmd, check=False, capture_output=True, text=True, timeout=_PROBE_TIMEOUT)
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"Duration fallback failed for {input_path.name}: {e}")
            return 0.0

        match = _DURATION_RE.search(proc.stderr or "")
        if not match:
            return 0.0
        hours, minutes, seconds = match.groups()
        return int(hours) * 3600 + int(minutes) * 60 + float(seconds)

    # --- Transcoding ---

    def _transcode(self, input_path: Path, output_path: Path) -> None:
        # -vn: drop any video stream
        # -ar/-ac/-acodec: 16 kHz mono signed 16-bit little-endian PCM
        cmd = [
            self.ffmpeg_binary,
            "-y",
            "-v", "error",
            "-i", str(input_path),
            "-vn",
            "-ar", str(self.config.sample_rate_hz),
            "-ac", str(self.config.channels),
            "-acodec", "pcm_s16le",
            "-f", "wav",
            str(output_path)
        ]

        logger.info(f"Normalizing audio: {' '.join(cmd)}")

        try:
            self.runner(cmd, check=True, capture_output=True, timeout=self.config.timeout_seconds)
        except subprocess.CalledProcessError as e:
            error_msg = _decode(e.stderr) or str(e)
            logger.error(f"FFmpeg failed: {error_msg}")
            raise PipelineError(f"Audio transcoding failed: {error_msg}") from e
        except subprocess.TimeoutExpired as e:
            raise PipelineError(f"Audio transcoding timed out after {self.config.timeout_seconds}s") from e
        except OSError as e:
            raise PipelineError(f"Cannot run ffmpeg ({self.ffmpeg_binary}): {e}") from e

        if not output_path.exists():
            raise PipelineError("Audio transcoding produced no output.")

    # --- Chunking ---

    def _split(self, normalized: Path, temp_dir: Path) -> Tuple[List[PipelineChunk], float]:
        chunk_seconds = self.config.chunk_seconds
        chunks: List[PipelineChunk] = []

        try:
            with wave.open(str(normalized), "rb") as src:
                channels = src.getnchannels()
                sample_width = src.getsampwidth()
                rate = src.getframerate()
                total_frames = src.getnframes()

                if total_frames == 0:
                    raise PipelineError("Normalized audio contains no samples.")

                frames_per_chunk = int(chunk_seconds * rate)
                index = 0
                while True:
                    data = src.readframes(frames_per_chunk)
                    if not data:
                        break

                    frame_count = len(data) // (sample_width * channels)
                    chunk_path = temp_dir / f"chunk_{index}.wav"
                    with wave.open(str(chunk_path), "wb") as dst:
                        dst.setnchannels(channels)
                        dst.setsampwidth(sample_width)
                        dst.setframerate(rate)
                        dst.writeframes(data)

                    chunks.append(PipelineChunk(
                        file_path=chunk_path,
                        start_time_offset=float(index * chunk_seconds),
                        duration=frame_count / rate
                    ))
                    index += 1
        except (wave.Error, EOFError) as e:
            raise PipelineError(f"Normalized audio is unreadable: {e}") from e

        return chunks, total_frames / rate


def _decode(stderr) -> str:
    if not stderr:
        return ""
    if isinstance(stderr, bytes):
        return stderr.decode(errors="replace").strip()
    return str(stderr).strip()
