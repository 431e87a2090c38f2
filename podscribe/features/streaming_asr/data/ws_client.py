# File: podscribe/features/streaming_asr/data/ws_client.py
import logging
import threading
import time
import uuid
from typing import Callable, List, Optional, Set

from websockets.exceptions import ConnectionClosedOK, WebSocketException
from websockets.sync.client import connect as ws_connect

from podscribe.core.config.settings import settings
from podscribe.core.shared_types import Segment
from podscribe.core.tasks.cancellation import CancellationToken
from ..domain.models import (
    ALLOWED_TRANSITIONS,
    FrameDecodeError,
    MessageType,
    SessionState,
    StreamingAsrError,
    StreamOptions,
)
from .accumulator import UtteranceAccumulator
from .frame_codec import build_audio_frame, build_config_frame, decode_frame

logger = logging.getLogger(__name__)

_POLL_SECONDS = 0.5

ProgressCallback = Callable[[float], None]
SegmentsCallback = Callable[[List[Segment]], None]


class StreamingSession:
    """
    One websocket conversation: config frame, paced audio packets, then drain until
    the server's last response. Not reusable; build a new session per audio buffer.
    """

    def __init__(self, url: str, resource_id: str, options: StreamOptions, connect=ws_connect,
                 time_offset: float = 0.0, token: Optional[CancellationToken] = None,
                 on_progress: Optional[ProgressCallback] = None,
                 on_segments: Optional[SegmentsCallback] = None):
        self.url = url
        self.resource_id = resource_id
        self.options = options
        self.connect = connect
        self.token = token or CancellationToken()
        self._stop = threading.Event()
        self.on_progress = on_progress
        self.on_segments = on_segments
        self.accumulator = UtteranceAccumulator(time_offset=time_offset)
        self.connect_id = str(uuid.uuid4())
        self.state = SessionState.IDLE
        self._closed_by_cancel = False

    # --- State machine ---

    def _move(self, target: SessionState) -> None:
        if target != SessionState.ERRORED and target not in ALLOWED_TRANSITIONS[self.state]:
            raise StreamingAsrError(f"Illegal session transition {self.state.value} -> {target.value}")
        logger.debug(f"[{self.connect_id}] {self.state.value} -> {target.value}")
        self.state = target

    def close(self) -> None:
        """Cooperative stop. The sending loop notices at the next packet boundary."""
        self._stop.set()

    def _stopping(self) -> bool:
        return self._stop.is_set() or self.token.is_cancelled()

    # --- Protocol ---

    def headers(self) -> dict:
        return {
            "X-Api-App-Key": self.options.app_key,
            "X-Api-Access-Key": self.options.access_key,
            "X-Api-Resource-Id": self.resource_id,
            "X-Api-Connect-Id": self.connect_id,
        }

    def request_config(self) -> dict:
        return {
            "user": {"uid": self.connect_id},
            "audio": {
                "format": "wav",
                "codec": "raw",
                "rate": settings.ASR_SAMPLE_RATE,
                "bits": settings.ASR_SAMPLE_WIDTH * 8,
                "channel": settings.ASR_CHANNELS,
                "language": self.options.language,
            },
            "request": {
                "model_name": "bigmodel",
                "enable_itn": True,
                "enable_punc": True,
                "enable_ddc": False,
                "show_utterances": True,
                "result_type": "full",
            },
        }

    def run(self, pcm: bytes) -> List[Segment]:
        if self.state != SessionState.IDLE:
            raise StreamingAsrError("A streaming session can only be run once")

        packet_size = max(1, self.options.packet_bytes)
        packets = [pcm[i:i + packet_size] for i in range(0, len(pcm), packet_size)] or [b""]

        self._move(SessionState.CONNECTING)
        try:
            ws = self.connect(
                self.url,
                additional_headers=self.headers(),
                open_timeout=self.options.connect_timeout,
            )
        except (WebSocketException, OSError, TimeoutError) as e:
            self._move(SessionState.ERRORED)
            raise StreamingAsrError(f"Cannot open recognition socket: {e}") from e

        try:
            with ws:
                return self._converse(ws, packets)
        except StreamingAsrError:
            self._move(SessionState.ERRORED)
            raise
        except ConnectionClosedOK:
            # server hung up cleanly without a final frame; keep what we have
            return self._finish()
        except (WebSocketException, OSError, TimeoutError) as e:
            self._move(SessionState.ERRORED)
            raise StreamingAsrError(f"Recognition socket failed: {e}") from e

    def _converse(self, ws, packets: List[bytes]) -> List[Segment]:
        # 1. Session config
        ws.send(build_config_frame(self.request_config()))
        if self._stopping():
            return self._cancelled()
        self._move(SessionState.SENDING)

        # 2. Paced audio, draining server frames during each pause
        total = len(packets)
        for index, packet in enumerate(packets):
            if self._stopping():
                return self._cancelled()

            is_last = index == total - 1
            ws.send(build_audio_frame(packet, is_last=is_last))
            self._report_progress((index + 1) / (total + 1))

            if not is_last and self._drain(ws, self.options.send_interval):
                return self._finish()

        # 3. Wait for the final answer
        self._move(SessionState.AWAITING_FINAL)
        last_frame_at = time.monotonic()
        while True:
            if self._stopping():
                return self._cancelled()
            try:
                message = ws.recv(timeout=_POLL_SECONDS)
            except TimeoutError:
                if time.monotonic() - last_frame_at > self.options.idle_timeout:
                    raise StreamingAsrError(
                        f"No result from server within {self.options.idle_timeout:.0f}s"
                    )
                continue
            last_frame_at = time.monotonic()
            if self._handle(message):
                return self._finish()

    def _drain(self, ws, seconds: float) -> bool:
        """Reads frames for `seconds`. Returns True if the final response arrived."""
        deadline = time.monotonic() + max(0.0, seconds)
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            try:
                message = ws.recv(timeout=remaining)
            except TimeoutError:
                return False
            if self._handle(message):
                return True

    def _handle(self, message) -> bool:
        if self._stopping():
            return False
        if isinstance(message, str):
            raise FrameDecodeError("Expected a binary frame, got text")

        frame = decode_frame(message)

        if frame.message_type == MessageType.ERROR:
            raise StreamingAsrError(f"Server error {frame.error_code}: {frame.text}")

        if frame.message_type != MessageType.FULL_SERVER_RESPONSE:
            logger.debug(f"[{self.connect_id}] Ignoring frame type {frame.message_type}")
            return False

        if frame.payload:
            try:
                changed = self.accumulator.feed(frame.json())
            except (ValueError, TypeError, AttributeError) as e:
                raise FrameDecodeError(f"Malformed recognition result: {e}") from e
            if changed and self.on_segments:
                self.on_segments(self.accumulator.snapshot())

        return frame.is_last_response

    def _report_progress(self, fraction: float) -> None:
        if self.on_progress:
            self.on_progress(min(1.0, fraction))

    def _finish(self) -> List[Segment]:
        segments = self.accumulator.finalize()
        self._move(SessionState.CLOSED)
        self._report_progress(1.0)
        if self.on_segments:
            self.on_segments(segments)
        return segments

    def _cancelled(self) -> List[Segment]:
        logger.info(f"[{self.connect_id}] Session cancelled in state {self.state.value}")
        self._move(SessionState.CLOSED)
        self._closed_by_cancel = True
        return list(self.accumulator.confirmed)

    @property
    def cancelled(self) -> bool:
        return self._closed_by_cancel


class StreamingAsrClient:
    """
    Factory for streaming sessions against one endpoint. Remembers which sessions
    are open so they can all be closed cooperatively.
    """

    def __init__(self, url: Optional[str] = None, resource_id: Optional[str] = None, connect=ws_connect):
        self.url = url or settings.VOLC_ASR_WS_URL
        self.resource_id = resource_id or settings.VOLC_ASR_RESOURCE_ID
        self.connect = connect
        self._lock = threading.Lock()
        self._open: Set[StreamingSession] = set()

    def transcribe(self, pcm: bytes, options: StreamOptions, time_offset: float = 0.0,
                   token: Optional[CancellationToken] = None,
                   on_progress: Optional[ProgressCallback] = None,
                   on_segments: Optional[SegmentsCallback] = None) -> List[Segment]:
        session = StreamingSession(
            self.url, self.resource_id, options,
            connect=self.connect,
            time_offset=time_offset,
            token=token,
            on_progress=on_progress,
            on_segments=on_segments,
        )
        if token is not None and token.is_cancelled():
            return []

        with self._lock:
            self._open.add(session)
        try:
            logger.info(f"Streaming {len(pcm)} bytes to {self.url} (connect_id={session.connect_id})")
            return session.run(pcm)
        finally:
            with self._lock:
                self._open.discard(session)

    def close_all(self) -> int:
        with self._lock:
            sessions = list(self._open)
        for session in sessions:
            session.close()
        return len(sessions)

