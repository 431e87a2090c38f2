# File: podscribe/core/common/enums.py

from enum import Enum, unique


@unique
class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@unique
class AsrChannel(str, Enum):
    """Event channels pushed to the UI layer."""
    PROGRESS = "asr:progress"
    SEGMENT = "asr:segment"
    COMPLETE = "asr:complete"
    ERROR = "asr:error"


@unique
class AsrCommand(str, Enum):
    """Commands accepted from the UI layer."""
    START = "asr:start"
    CANCEL = "asr:cancel"


@unique
class SourceKind(str, Enum):
    LOCAL_AUDIO_FILE = "local-audio-file"
    LOCAL_VIDEO_FILE = "local-video-file"
    DOWNLOADED_AUDIO_FILE = "downloaded-audio-file"
    REMOTE_AUDIO_URL = "remote-audio-url"
    YOUTUBE_VIDEO = "youtube-video"
