# File: podscribe/features/flash_asr/data/signer.py
"""
Request signing for the flash recognition endpoint.

The signature covers the method, host, path and the query string with keys in
lexicographic order and values NOT percent-encoded. The URL actually sent uses
the same order with encoded values.
"""
import base64
import hashlib
import hmac
from pathlib import Path
from typing import Dict, Union
from urllib.parse import quote

from ..domain.models import DEFAULT_VOICE_FORMAT, FLASH_PATH, SUPPORTED_VOICE_FORMATS

# characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


def guess_voice_format(path: Union[str, Path]) -> str:
    ext = Path(path).suffix.lower().lstrip(".")
    if ext in ("ogg", "opus"):
        return "ogg-opus"
    if ext in SUPPORTED_VOICE_FORMATS:
        return ext
    return DEFAULT_VOICE_FORMAT


def build_query_params(secret_id: str, engine_type: str, voice_format: str, timestamp: int) -> Dict[str, str]:
    # appid goes in the path, never in the query
    return {
        "convert_num_mode": "1",
        "engine_type": engine_type,
        "filter_dirty": "0",
        "filter_modal": "0",
        "filter_punc": "0",
        "first_channel_only": "1",
        "secretid": secret_id,
        "speaker_diarization": "1",
        "timestamp": str(timestamp),
        "voice_format": voice_format,
        "word_info": "0",
    }


def canonical_query(params: Dict[str, str]) -> str:
    return "&".join(f"{key}={params[key]}" for key in sorted(params))


def string_to_sign(app_id: str, params: Dict[str, str], host: str) -> str:
    return f"POST{host}{FLASH_PATH}{app_id}?{canonical_query(params)}"


def sign(app_id: str, secret_key: str, params: Dict[str, str], host: str) -> str:
    digest = hmac.new(
        secret_key.encode("utf-8"),
        string_to_sign(app_id, params, host).encode("utf-8"),
        hashlib.sha1,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def build_request_url(app_id: str, params: Dict[str, str], host: str) -> str:
    query = "&".join(f"{key}={quote(str(params[key]), safe=_URI_COMPONENT_SAFE)}" for key in sorted(params))
    return f"https://{host}{FLASH_PATH}{app_id}?{query}"
