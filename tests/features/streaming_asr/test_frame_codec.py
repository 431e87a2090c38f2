import gzip
import json
import struct

import pytest
from podscribe.features.streaming_asr.data.frame_codec import (
    build_audio_frame,
    build_config_frame,
    decode_frame,
    encode_frame,
)
from podscribe.features.streaming_asr.domain.models import (
    Compression,
    Frame,
    FrameDecodeError,
    MessageFlags,
    MessageType,
    Serialization,
)


def test_config_frame_round_trips_byte_identical_json():
    config = {"user": {"uid": "u-1"}, "audio": {"rate": 16000, "language": "zh-CN"}, "text": "你好"}
    wire = build_config_frame(config)

    assert wire[:4] == bytes([0x11, 0x10, 0x11, 0x00])

    frame = decode_frame(wire)
    assert frame.message_type == MessageType.FULL_CLIENT_REQUEST
    assert frame.serialization == Serialization.JSON
    assert frame.compression == Compression.GZIP
    assert frame.payload == json.dumps(config, ensure_ascii=False).encode("utf-8")
    assert frame.json() == config


def test_audio_payload_is_gzip_on_the_wire():
    pcm = bytes(range(256)) * 10
    wire = build_audio_frame(pcm, is_last=False)

    (size,) = struct.unpack(">I", wire[4:8])
    body = wire[8:]
    assert size == len(body)
    assert gzip.decompress(body) == pcm
    assert decode_frame(wire).payload == pcm


def test_last_audio_frame_sets_flag():
    assert build_audio_frame(b"\x00\x01", is_last=True)[:3] == bytes([0x11, 0x22, 0x01])
    assert build_audio_frame(b"\x00\x01", is_last=False)[:3] == bytes([0x11, 0x20, 0x01])


def test_negative_sequence_marks_last_response():
    payload = json.dumps({"result": {"text": "ok"}}).encode()
    wire = encode_frame(Frame(
        message_type=MessageType.FULL_SERVER_RESPONSE,
        flags=MessageFlags.LAST_RESPONSE,
        serialization=Serialization.JSON,
        compression=Compression.GZIP,
        payload=payload,
        sequence=-7,
    ))

    frame = decode_frame(wire)
    assert frame.sequence == -7
    assert frame.is_last_response
    assert frame.json() == {"result": {"text": "ok"}}


def test_positive_sequence_is_not_last():
    wire = encode_frame(Frame(message_type=MessageType.FULL_SERVER_RESPONSE, flags=MessageFlags.SEQUENCE,
                              serialization=Serialization.JSON, payload=b"{}", sequence=3))
    frame = decode_frame(wire)
    assert frame.sequence == 3
    assert not frame.is_last_response


def test_error_frame_carries_code_and_message():
    message = "quota exceeded".encode()
    wire = bytes([0x11, 0xF0, 0x10, 0x00]) + struct.pack(">I", 45000001) + struct.pack(">I", len(message)) + message

    frame = decode_frame(wire)
    assert frame.message_type == MessageType.ERROR
    assert frame.error_code == 45000001
    assert frame.text == "quota exceeded"
    assert encode_frame(frame) == wire


def test_unknown_message_type_is_kept_raw():
    wire = bytes([0x11, 0xB0, 0x00, 0x00]) + struct.pack(">I", 2) + b"hi"
    frame = decode_frame(wire)
    assert frame.message_type == 0b1011
    assert frame.payload == b"hi"


@pytest.mark.parametrize("wire", [
    b"\x11\x90",                                              # shorter than the header
    bytes([0x11, 0x90, 0x10, 0x00]) + b"\x00\x00",            # truncated length
    bytes([0x11, 0x90, 0x10, 0x00]) + struct.pack(">I", 10) + b"short",
    bytes([0x11, 0x91, 0x10, 0x00]) + b"\x00\x00",            # truncated sequence
    bytes([0x11, 0xF0, 0x10, 0x00]) + b"\x00\x00\x00\x01",    # truncated error frame
])
def test_malformed_frames_raise(wire):
    with pytest.raises(FrameDecodeError):
        decode_frame(wire)


def test_corrupt_gzip_raises():
    wire = bytes([0x11, 0x90, 0x11, 0x00]) + struct.pack(">I", 4) + b"nope"
    with pytest.raises(FrameDecodeError):
        decode_frame(wire)


def test_non_json_payload_raises_on_json():
    frame = Frame(message_type=MessageType.FULL_SERVER_RESPONSE, serialization=Serialization.JSON, payload=b"{oops")
    with pytest.raises(FrameDecodeError):
        frame.json()
