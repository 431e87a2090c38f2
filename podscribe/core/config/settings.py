# File: podscribe/core/config/settings.py

import os
import shutil
import tempfile
from pathlib import Path


def _ffprobe_next_to(ffmpeg_binary: str) -> str:
    # ffprobe usually ships alongside ffmpeg; fall back to PATH lookup
    ffmpeg_path = Path(ffmpeg_binary)
    if ffmpeg_path.parent != Path("."):
        candidate = ffmpeg_path.with_name(ffmpeg_path.name.replace("ffmpeg", "ffprobe"))
        if candidate.exists():
            return str(candidate)
    return shutil.which("ffprobe") or "ffprobe"


class Settings:
    # --- Paths ---
    # podscribe/core/config/settings.py -> podscribe/core/config -> podscribe/core -> podscribe -> ROOT
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent.parent
    DATA_DIR: Path = Path(os.getenv("PODSCRIBE_DATA_DIR", str(BASE_DIR / "data")))
    ASR_TEMP_ROOT: Path = Path(os.getenv("ASR_TEMP_ROOT", tempfile.gettempdir()))

    # --- Database ---
    @property
    def DATABASE_URL(self) -> str:
        # Desktop deployments use a local SQLite file; servers point this at Postgres.
        return os.getenv("DATABASE_URL", f"sqlite:///{self.DATA_DIR / 'podscribe.db'}")

    # --- External Tools ---
    # Auto-detect ffmpeg or use env var
    FFMPEG_BINARY: str = os.getenv("FFMPEG_BINARY_PATH", shutil.which("ffmpeg") or "ffmpeg")
    FFPROBE_BINARY: str = os.getenv("FFPROBE_BINARY_PATH", _ffprobe_next_to(FFMPEG_BINARY))
    ASR_FFMPEG_TIMEOUT: int = int(os.getenv("ASR_FFMPEG_TIMEOUT", "600"))

    # --- Audio Pipeline ---
    ASR_CHUNK_SECONDS: int = int(os.getenv("ASR_CHUNK_SECONDS", "60"))
    ASR_SAMPLE_RATE: int = 16000
    ASR_CHANNELS: int = 1
    ASR_SAMPLE_WIDTH: int = 2  # bytes, 16-bit PCM

    # --- Volcengine streaming backend ---
    VOLC_ASR_WS_URL: str = os.getenv("VOLC_ASR_WS_URL", "wss://openspeech.bytedance.com/api/v3/sauc/bigmodel_async")
    VOLC_ASR_RESOURCE_ID: str = os.getenv("VOLC_ASR_RESOURCE_ID", "volc.seedasr.sauc.duration")
    VOLC_ASR_PACKET_BYTES: int = int(os.getenv("VOLC_ASR_PACKET_BYTES", "6400"))  # ~200ms of 16k/16bit/mono
    VOLC_ASR_REALTIME_INTERVAL_MS: int = int(os.getenv("VOLC_ASR_REALTIME_INTERVAL_MS", "200"))
    VOLC_ASR_BACKGROUND_INTERVAL_MS: int = int(os.getenv("VOLC_ASR_BACKGROUND_INTERVAL_MS", "20"))
    VOLC_ASR_IDLE_TIMEOUT: float = float(os.getenv("VOLC_ASR_IDLE_TIMEOUT", "60"))
    VOLC_ASR_CONNECT_TIMEOUT: float = float(os.getenv("VOLC_ASR_CONNECT_TIMEOUT", "10"))

    # --- Tencent flash backend ---
    TENCENT_ASR_HOST: str = os.getenv("TENCENT_ASR_HOST", "asr.cloud.tencent.com")
    TENCENT_ASR_ENGINE_TYPE: str = os.getenv("TENCENT_ASR_ENGINE_TYPE", "16k_zh")
    TENCENT_ASR_TIMEOUT: float = float(os.getenv("TENCENT_ASR_TIMEOUT", "600"))
    TENCENT_ASR_MAX_BYTES: int = 100 * 1024 * 1024

    # --- Provider selection ---
    ASR_DEFAULT_PROVIDER: str = "volcengine"
    ASR_DEFAULT_LANGUAGE: str = os.getenv("ASR_LANGUAGE", "zh-CN")

    def ensure_dirs(self):
        """Creates necessary data directories if they don't exist."""
        self.DATA_DIR.mkdir(parents=True, exist_ok=True)
        self.ASR_TEMP_ROOT.mkdir(parents=True, exist_ok=True)


settings = Settings()
