# File: podscribe/features/streaming_asr/data/frame_codec.py
"""
Binary framing for the streaming recognition socket.

    byte 0   version (4 bits) | header size in 4-byte words (4 bits)
    byte 1   message type (4 bits) | flags (4 bits)
    byte 2   serialization (4 bits) | compression (4 bits)
    byte 3   reserved
    [int32]  sequence, big-endian, only when flags & 0b0001
    uint32   payload length, big-endian
    payload  JSON (control) or little-endian 16-bit PCM (audio), gzip'd when compression == 1

Error frames replace the length/payload with uint32 code, uint32 length, UTF-8 message.
"""
import gzip
import json
import struct
import zlib
from typing import Any, Dict, Union

from ..domain.models import (
    HEADER_WORDS,
    PROTOCOL_VERSION,
    Compression,
    Frame,
    FrameDecodeError,
    MessageFlags,
    MessageType,
    Serialization,
)

_U32 = struct.Struct(">I")
_I32 = struct.Struct(">i")


def _header(message_type: int, flags: int, serialization: int, compression: int) -> bytes:
    return bytes([
        ((PROTOCOL_VERSION & 0x0F) << 4) | (HEADER_WORDS & 0x0F),
        ((message_type & 0x0F) << 4) | (flags & 0x0F),
        ((serialization & 0x0F) << 4) | (compression & 0x0F),
        0,
    ])


def encode_frame(frame: Frame) -> bytes:
    header = _header(frame.message_type, frame.flags, frame.serialization, frame.compression)

    if frame.message_type == MessageType.ERROR:
        return header + _U32.pack(frame.error_code or 0) + _U32.pack(len(frame.payload)) + frame.payload

    body = frame.payload
    if frame.compression == Compression.GZIP:
        body = gzip.compress(body, mtime=0)

    sequence = b""
    if frame.has_sequence:
        sequence = _I32.pack(frame.sequence or 0)

    return header + sequence + _U32.pack(len(body)) + body


def decode_frame(data: Union[bytes, bytearray, memoryview]) -> Frame:
    data = bytes(data)
    if len(data) < 4:
        raise FrameDecodeError(f"Frame too short ({len(data)} bytes)")

    header_len = (data[0] & 0x0F) * 4
    if header_len < 4 or len(data) < header_len:
        raise FrameDecodeError(f"Bad header size {header_len}")

    raw_type = (data[1] >> 4) & 0x0F
    flags = data[1] & 0x0F
    serialization = (data[2] >> 4) & 0x0F
    compression = data[2] & 0x0F
    try:
        message_type: int = MessageType(raw_type)
    except ValueError:
        message_type = raw_type

    offset = header_len

    if message_type == MessageType.ERROR:
        if len(data) < offset + 8:
            raise FrameDecodeError("Error frame truncated")
        (code,) = _U32.unpack_from(data, offset)
        (size,) = _U32.unpack_from(data, offset + 4)
        message = data[offset + 8:offset + 8 + size]
        return Frame(message_type=message_type, flags=flags, serialization=serialization,
                     compression=Compression.NONE, payload=message, error_code=code)

    sequence = None
    if flags & MessageFlags.SEQUENCE:
        if len(data) < offset + 4:
            raise FrameDecodeError("Frame truncated before sequence number")
        (sequence,) = _I32.unpack_from(data, offset)
        offset += 4

    if len(data) < offset + 4:
        raise FrameDecodeError(f"Frame truncated before payload size (len={len(data)}, offset={offset})")
    (size,) = _U32.unpack_from(data, offset)
    offset += 4

    if len(data) < offset + size:
        raise FrameDecodeError(f"Payload truncated (need={offset + size}, got={len(data)})")
    payload = data[offset:offset + size]

    if compression == Compression.GZIP:
        try:
            payload = gzip.decompress(payload)
        except (OSError, EOFError, zlib.error) as e:
            raise FrameDecodeError(f"Gzip decompress error: {e}") from e

    return Frame(message_type=message_type, flags=flags, serialization=serialization,
                 compression=compression, payload=payload, sequence=sequence)


def build_config_frame(config: Dict[str, Any]) -> bytes:
    """Full client request: gzip'd JSON describing the audio and session options."""
    payload = json.dumps(config, ensure_ascii=False).encode("utf-8")
    return encode_frame(Frame(
        message_type=MessageType.FULL_CLIENT_REQUEST,
        flags=MessageFlags.NONE,
        serialization=Serialization.JSON,
        compression=Compression.GZIP,
        payload=payload,
    ))


def build_audio_frame(pcm: bytes, is_last: bool = False) -> bytes:
    """Audio-only request. The last packet doubles as the end-of-audio marker."""
    return encode_frame(Frame(
        message_type=MessageType.AUDIO_ONLY,
        flags=MessageFlags.LAST_AUDIO if is_last else MessageFlags.NONE,
        serialization=Serialization.NONE,
        compression=Compression.GZIP,
        payload=pcm,
    ))
