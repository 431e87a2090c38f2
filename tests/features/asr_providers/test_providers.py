import wave
from pathlib import Path

import pytest
from podscribe.core.common.errors import ConfigurationError, FatalProviderError
from podscribe.core.shared_types import Segment
from podscribe.core.tasks.cancellation import CancellationToken
from podscribe.features.asr_providers.data.env_settings_store import EnvSettingsStore
from podscribe.features.asr_providers.data.tencent_adapter import TencentFlashProvider
from podscribe.features.asr_providers.data.volcengine_adapter import VolcengineProvider
from podscribe.features.asr_providers.domain.models import (
    AsrSettings,
    ProviderComplete,
    ProviderError,
    ProviderProgress,
    ProviderSegments,
)
from podscribe.features.asr_providers.service.registry import ProviderRegistry, build_default_registry
from podscribe.features.audio_pipeline.domain.models import PipelineChunk, PipelineResult
from podscribe.features.streaming_asr.domain.models import StreamingAsrError

VOLC = AsrSettings(asr_provider="volcengine", volc_app_key="app", volc_access_key="key")
TENCENT = AsrSettings(asr_provider="tencent", tencent_app_id="1", tencent_secret_id="sid", tencent_secret_key="sk")


class FakeStreamingClient:
    def __init__(self, results=None):
        # results: list of segment lists or exceptions, consumed per call
        self.results = list(results or [])
        self.calls = []
        self.closed = 0

    def transcribe(self, pcm, options, time_offset=0.0, token=None, on_progress=None, on_segments=None):
        self.calls.append({"pcm": pcm, "options": options, "time_offset": time_offset, "token": token})
        result = self.results.pop(0) if self.results else []
        if isinstance(result, BaseException):
            raise result
        if on_progress:
            on_progress(0.5)
            on_progress(1.0)
        if on_segments:
            on_segments(result)
        return result

    def close_all(self):
        self.closed += 1
        return 1


class FakePipeline:
    def __init__(self, root: Path, count: int):
        self.root = root
        self.count = count

    def process(self, input_path):
        temp = self.root / "pipe"
        temp.mkdir()
        chunks = []
        for i in range(self.count):
            path = temp / f"chunk_{i}.wav"
            path.write_bytes(f"pcm-{i}".encode())
            chunks.append(PipelineChunk(file_path=path, start_time_offset=i * 60.0, duration=60.0))
        return PipelineResult(temp_directory=temp, chunks=chunks, total_duration=self.count * 60.0)


class FakeFlashClient:
    def __init__(self, segments):
        self.segments = segments
        self.calls = []

    def recognize(self, audio_bytes, voice_format):
        self.calls.append((audio_bytes, voice_format))
        return list(self.segments)


# --- Registry ---

def test_registry_resolves_active_provider_with_default():
    volc, tencent = VolcengineProvider(client=FakeStreamingClient()), TencentFlashProvider()
    registry = ProviderRegistry([volc, tencent])

    assert registry.get_active(AsrSettings()) is volc
    assert registry.get_active(TENCENT) is tencent
    assert registry.get_active(AsrSettings(asr_provider="whisper")) is None
    assert [p.id for p in registry.all()] == ["volcengine", "tencent"]


def test_is_asr_configured_checks_the_active_provider_only():
    registry = build_default_registry()

    assert registry.is_asr_configured(VOLC)
    assert not registry.is_asr_configured(AsrSettings(asr_provider="tencent", volc_app_key="a", volc_access_key="b"))
    assert registry.is_asr_configured(TENCENT)
    assert not registry.is_asr_configured(AsrSettings(asr_provider="unknown"))


def test_descriptors():
    registry = build_default_registry()
    descriptors = {p.id: p.descriptor for p in registry.all()}
    assert descriptors["volcengine"].supports_raw_audio is False
    assert descriptors["tencent"].supports_raw_audio is True


def test_env_settings_store(monkeypatch):
    monkeypatch.setenv("ASR_PROVIDER", "tencent")
    monkeypatch.setenv("TENCENT_ASR_APP_ID", "125")
    monkeypatch.setenv("TENCENT_ASR_SECRET_ID", "sid")
    monkeypatch.setenv("TENCENT_ASR_SECRET_KEY", "sk")
    monkeypatch.delenv("VOLC_ASR_APP_KEY", raising=False)
    monkeypatch.setenv("ASR_LANGUAGE", "en-US")

    settings = EnvSettingsStore().load()
    assert settings.asr_provider == "tencent"
    assert settings.tencent_app_id == "125"
    assert settings.volc_app_key == ""
    assert settings.language == "en-US"


# --- Volcengine ---

def test_volcengine_stream_uses_realtime_pacing_and_emits_complete():
    seg = Segment(60.0, 61.0, "hi")
    client = FakeStreamingClient([[seg]])
    events = []

    result = VolcengineProvider(client=client).transcribe_stream(b"pcm", VOLC, events.append, time_offset=60.0)

    assert result == [seg]
    call = client.calls[0]
    assert call["time_offset"] == 60.0
    assert call["options"].send_interval == pytest.approx(0.2)
    assert call["options"].app_key == "app"
    assert events == [ProviderProgress(0.5), ProviderProgress(1.0), ProviderSegments([seg]), ProviderComplete([seg])]


def test_volcengine_requires_credentials():
    provider = VolcengineProvider(client=FakeStreamingClient())
    assert not provider.is_configured(AsrSettings())
    with pytest.raises(ConfigurationError):
        provider.transcribe_stream(b"pcm", AsrSettings(), lambda e: None)


def test_volcengine_stream_failure_emits_error_then_raises():
    client = FakeStreamingClient([StreamingAsrError("socket reset")])
    events = []

    with pytest.raises(StreamingAsrError) as exc_info:
        VolcengineProvider(client=client).transcribe_stream(b"pcm", VOLC, events.append)

    assert exc_info.value.provider_name == "volcengine"
    assert events == [ProviderError("socket reset")]


def test_volcengine_file_runs_pipeline_with_background_pacing_and_cleans_up(tmp_path):
    segs = [[Segment(0.0, 1.0, "a")], StreamingAsrError("flaky"), [Segment(120.0, 121.0, "c")]]
    client = FakeStreamingClient(segs)
    events = []
    provider = VolcengineProvider(client=client, pipeline=FakePipeline(tmp_path, 3))

    result = provider.transcribe_file(tmp_path / "ep.mp3", VOLC, events.append)

    assert [s.text for s in result] == ["a", "c"]
    assert [c["time_offset"] for c in client.calls] == [0.0, 60.0, 120.0]
    assert [c["pcm"] for c in client.calls] == [b"pcm-0", b"pcm-1", b"pcm-2"]
    assert client.calls[0]["options"].send_interval == pytest.approx(0.02)
    assert not (tmp_path / "pipe").exists()
    progress = [e.fraction for e in events if isinstance(e, ProviderProgress)]
    assert progress == sorted(progress)
    assert max(progress) <= 0.95
    assert any(isinstance(e, ProviderError) and e.message.startswith("Chunk 1") for e in events)


def test_volcengine_file_all_chunks_failing_is_fatal(tmp_path):
    client = FakeStreamingClient([StreamingAsrError("x"), StreamingAsrError("y")])
    provider = VolcengineProvider(client=client, pipeline=FakePipeline(tmp_path, 2))

    with pytest.raises(FatalProviderError):
        provider.transcribe_file(tmp_path / "ep.mp3", VOLC, lambda e: None)
    assert not (tmp_path / "pipe").exists()


def test_volcengine_file_stops_at_cancellation(tmp_path):
    token = CancellationToken()
    token.cancel()
    client = FakeStreamingClient()
    provider = VolcengineProvider(client=client, pipeline=FakePipeline(tmp_path, 2))

    assert provider.transcribe_file(tmp_path / "ep.mp3", VOLC, lambda e: None, token) == []
    assert client.calls == []
    assert not (tmp_path / "pipe").exists()


def test_volcengine_cancel_closes_sessions():
    client = FakeStreamingClient()
    VolcengineProvider(client=client).cancel()
    assert client.closed == 1


# --- Tencent ---

def test_tencent_file_sends_original_bytes_with_guessed_format(tmp_path):
    audio = tmp_path / "episode.m4a"
    audio.write_bytes(b"m4a-bytes")
    fake = FakeFlashClient([Segment(0.0, 1.5, "hello", speaker_id="0")])
    created = []

    def factory(credentials):
        created.append(credentials)
        return fake

    events = []
    result = TencentFlashProvider(client_factory=factory).transcribe_file(audio, TENCENT, events.append)

    assert fake.calls == [(b"m4a-bytes", "m4a")]
    assert created[0].secret_key == "sk"
    assert [s.text for s in result] == ["hello"]
    assert [e.fraction for e in events] == [0.05, 0.1, 1.0]


def test_tencent_stream_spools_wav_shifts_and_removes_temp(tmp_path):
    fake = FakeFlashClient([Segment(0.5, 1.0, "x")])
    events = []

    result = TencentFlashProvider(client_factory=lambda c: fake).transcribe_stream(
        b"RIFF....", TENCENT, events.append, time_offset=120.0
    )

    assert [(s.start, s.end) for s in result] == [(120.5, 121.0)]
    audio_bytes, voice_format = fake.calls[0]
    assert audio_bytes == b"RIFF...."
    assert voice_format == "wav"
    assert isinstance(events[-1], ProviderComplete)
    assert events[-1].segments == result


def test_tencent_requires_all_three_credentials():
    provider = TencentFlashProvider(client_factory=lambda c: FakeFlashClient([]))
    partial = AsrSettings(tencent_app_id="1", tencent_secret_id="sid")
    assert not provider.is_configured(partial)
    with pytest.raises(ConfigurationError):
        provider.transcribe_file(Path("/tmp/x.mp3"), partial, lambda e: None)
