# File: podscribe/features/streaming_asr/domain/models.py
import json
from dataclasses import dataclass
from enum import Enum, IntEnum, unique
from typing import Any, Dict, Optional

from podscribe.core.common.errors import TransientProviderError

PROTOCOL_VERSION = 0b0001
HEADER_WORDS = 0b0001  # header length in 4-byte words


@unique
class MessageType(IntEnum):
    FULL_CLIENT_REQUEST = 0b0001
    AUDIO_ONLY = 0b0010
    FULL_SERVER_RESPONSE = 0b1001
    ERROR = 0b1111


class MessageFlags(IntEnum):
    NONE = 0b0000
    SEQUENCE = 0b0001  # a 4-byte sequence number follows the header
    LAST_AUDIO = 0b0010
    LAST_RESPONSE = 0b0011  # negative sequence: the server's final answer


@unique
class Serialization(IntEnum):
    NONE = 0b0000
    JSON = 0b0001


@unique
class Compression(IntEnum):
    NONE = 0b0000
    GZIP = 0b0001


@unique
class SessionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    SENDING = "sending"
    AWAITING_FINAL = "awaiting_final"
    CLOSED = "closed"
    ERRORED = "errored"


# Legal forward moves; anything may move to ERRORED, and a cancellation may close early.
ALLOWED_TRANSITIONS = {
    SessionState.IDLE: {SessionState.CONNECTING},
    SessionState.CONNECTING: {SessionState.SENDING, SessionState.CLOSED},
    SessionState.SENDING: {SessionState.AWAITING_FINAL, SessionState.CLOSED},
    SessionState.AWAITING_FINAL: {SessionState.CLOSED},
    SessionState.CLOSED: set(),
    SessionState.ERRORED: set(),
}


class StreamingAsrError(TransientProviderError):
    """A streaming session failed: socket error, bad handshake, error frame or silence timeout."""
    code = "streaming_error"


class FrameDecodeError(StreamingAsrError):
    """Bytes on the wire do not form a valid frame."""
    code = "malformed_frame"


@dataclass(frozen=True)
class Frame:
    """
    One binary protocol message. `payload` is always the uncompressed body;
    compression is applied/removed by the codec.
    """
    message_type: int
    flags: int = MessageFlags.NONE
    serialization: int = Serialization.NONE
    compression: int = Compression.NONE
    payload: bytes = b""
    sequence: Optional[int] = None
    error_code: Optional[int] = None

    @property
    def has_sequence(self) -> bool:
        return bool(self.flags & MessageFlags.SEQUENCE)

    @property
    def is_last_response(self) -> bool:
        if self.message_type != MessageType.FULL_SERVER_RESPONSE:
            return False
        # the "last" bit, or a negative sequence number, marks the final answer
        return bool(self.flags & MessageFlags.LAST_AUDIO) or (self.sequence is not None and self.sequence < 0)

    @property
    def text(self) -> str:
        return self.payload.decode("utf-8", errors="replace")

    def json(self) -> Dict[str, Any]:
        if self.serialization != Serialization.JSON:
            raise FrameDecodeError(f"Unsupported serialization: {self.serialization}")
        try:
            return json.loads(self.payload.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise FrameDecodeError(f"JSON parse error: {e}") from e


@dataclass(frozen=True)
class StreamOptions:
    """Per-session knobs. Background jobs send fast; live input is paced at real time."""
    app_key: str
    access_key: str
    language: str = "zh-CN"
    send_interval: float = 0.2  # seconds between audio packets
    packet_bytes: int = 6400  # ~200ms of 16 kHz / 16-bit / mono
    idle_timeout: float = 60.0  # seconds without any server frame while awaiting the result
    connect_timeout: float = 10.0
