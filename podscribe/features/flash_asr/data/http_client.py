# File: podscribe/features/flash_asr/data/http_client.py
import logging
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from podscribe.core.config.settings import settings
from podscribe.core.shared_types import Segment
from ..domain.models import FlashAsrError, FlashCredentials
from .signer import build_query_params, build_request_url, sign

logger = logging.getLogger(__name__)


class FlashAsrClient:
    """
    One-shot recognition over a signed HTTP POST. The whole file goes up in the
    request body and the complete transcript comes back in the response.
    """

    def __init__(self, credentials: FlashCredentials, host: Optional[str] = None,
                 engine_type: Optional[str] = None, timeout: Optional[float] = None,
                 max_bytes: Optional[int] = None, session: Optional[requests.Session] = None,
                 clock: Callable[[], float] = time.time):
        self.credentials = credentials
        self.host = host or settings.TENCENT_ASR_HOST
        self.engine_type = engine_type or settings.TENCENT_ASR_ENGINE_TYPE
        self.timeout = timeout or settings.TENCENT_ASR_TIMEOUT
        self.max_bytes = max_bytes or settings.TENCENT_ASR_MAX_BYTES
        self.session = session or requests.Session()
        self.clock = clock

    def recognize(self, audio_bytes: bytes, voice_format: str) -> List[Segment]:
        if len(audio_bytes) > self.max_bytes:
            raise FlashAsrError(
                f"Audio is {len(audio_bytes)} bytes; the flash endpoint accepts at most {self.max_bytes}",
                provider_name="tencent",
            )

        # 1. Sign
        params = build_query_params(
            self.credentials.secret_id, self.engine_type, voice_format, int(self.clock())
        )
        signature = sign(self.credentials.app_id, self.credentials.secret_key, params, self.host)
        url = build_request_url(self.credentials.app_id, params, self.host)

        headers = {
            "Host": self.host,
            "Authorization": signature,
            "Content-Type": "application/octet-stream",
        }

        # 2. Send
        logger.info(f"Flash recognition: {len(audio_bytes)} bytes ({voice_format}) -> {self.host}")
        try:
            resp = self.session.post(url, headers=headers, data=audio_bytes, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise FlashAsrError(f"Flash recognition request failed: {exc}", provider_name="tencent") from exc

        try:
            body = resp.json()
        except ValueError as exc:
            raise FlashAsrError("Flash recognition returned a non-JSON body", provider_name="tencent") from exc

        # 3. Parse
        code = body.get("code", -1)
        if code != 0:
            raise FlashAsrError(
                f"Flash recognition error [{code}]: {body.get('message', '')}",
                provider_name="tencent",
            )

        segments = parse_sentences(body)
        logger.info(f"Flash recognition done: {len(segments)} sentence(s), request_id={body.get('request_id')}")
        return segments


def parse_sentences(body: Dict[str, Any]) -> List[Segment]:
    results = body.get("flash_result") or []
    if not results:
        return []

    segments = []
    for index, sentence in enumerate(results[0].get("sentence_list") or []):
        speaker = sentence.get("speaker_id")
        try:
            segments.append(Segment(
                start=sentence["start_time"] / 1000.0,
                end=sentence["end_time"] / 1000.0,
                text=sentence.get("text", ""),
                speaker_id=str(speaker) if speaker is not None else None,
            ))
        except (KeyError, TypeError, ValueError) as exc:
            raise FlashAsrError(
                f"Flash recognition returned an invalid sentence #{index}: {exc!r}",
                provider_name="tencent",
            ) from exc
    return segments
