import shutil
import subprocess
from pathlib import Path

import pytest
from podscribe.core.common.enums import SourceKind
from podscribe.core.common.errors import NotFoundError, PipelineError
from podscribe.features.media_source.data.ffmpeg_extractor import FFmpegAudioExtractor
from podscribe.features.media_source.data.static_catalog import InMemoryContentCatalog
from podscribe.features.media_source.domain.models import ContentMedia
from podscribe.features.media_source.service.resolver import MediaSourceResolver, to_local_path


class FakeExtractor:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def extract_audio(self, video_path, output_dir):
        self.calls.append((video_path, output_dir))
        if self.error:
            raise self.error
        out = output_dir / "audio.wav"
        out.write_bytes(b"RIFF")
        return out


def _resolver(tmp_path, *items, extractor=None):
    return MediaSourceResolver(InMemoryContentCatalog(items), extractor=extractor or FakeExtractor(),
                               temp_root=tmp_path / "work")


def test_file_url_becomes_local_path():
    assert to_local_path("file:///tmp/sample%20one.mp3") == Path("/tmp/sample one.mp3")
    assert to_local_path("/abs/episode.mp3") == Path("/abs/episode.mp3")
    assert to_local_path("relative/episode.mp3") is None
    assert to_local_path("https://cdn.example.com/a.mp3") is None
    assert to_local_path("  ") is None


@pytest.mark.parametrize("media,kind", [
    (ContentMedia("a", "podcast", audio_url="file:///tmp/ep.mp3", downloaded_audio_path="/tmp/dl.mp3"),
     SourceKind.LOCAL_AUDIO_FILE),
    (ContentMedia("b", "podcast", audio_url="https://cdn.example.com/ep.mp3", downloaded_audio_path="/tmp/dl.mp3"),
     SourceKind.DOWNLOADED_AUDIO_FILE),
    (ContentMedia("c", "video", url="file:///tmp/demo.mp4"), SourceKind.LOCAL_VIDEO_FILE),
    (ContentMedia("d", "podcast", audio_url="https://cdn.example.com/ep.mp3"), SourceKind.REMOTE_AUDIO_URL),
    (ContentMedia("e", "video", url="https://www.youtube.com/watch?v=abc123", video_id="abc123"),
     SourceKind.YOUTUBE_VIDEO),
])
def test_descriptor_priority(tmp_path, media, kind):
    descriptor = _resolver(tmp_path).resolve_descriptor(media)
    assert descriptor.kind == kind
    assert descriptor.requires_extraction is (kind == SourceKind.LOCAL_VIDEO_FILE)


def test_no_usable_media_resolves_to_none(tmp_path):
    assert _resolver(tmp_path).resolve_descriptor(ContentMedia("z", "video")) is None


def test_prepare_local_audio_has_nothing_to_clean(tmp_path):
    audio = tmp_path / "ep.mp3"
    audio.write_bytes(b"ID3")
    resolver = _resolver(tmp_path, ContentMedia("ep-1", "podcast", audio_url=audio.as_uri()))

    prepared = resolver.prepare("ep-1")
    assert prepared.file_path == audio
    assert prepared.source_kind == SourceKind.LOCAL_AUDIO_FILE
    assert prepared.cleanup_paths == []


def test_prepare_local_video_extracts_into_owned_temp_dir(tmp_path):
    video = tmp_path / "demo.mp4"
    video.write_bytes(b"mp4")
    extractor = FakeExtractor()
    resolver = _resolver(tmp_path, ContentMedia("v-1", "video", url=str(video)), extractor=extractor)

    prepared = resolver.prepare("v-1")

    assert extractor.calls[0][0] == video
    assert prepared.source_kind == SourceKind.LOCAL_VIDEO_FILE
    assert prepared.file_path.name == "audio.wav"
    assert prepared.cleanup_paths == [prepared.file_path.parent]

    resolver.cleanup_paths(prepared.cleanup_paths)
    assert not prepared.file_path.parent.exists()


def test_failed_extraction_leaves_no_temp_dir(tmp_path):
    video = tmp_path / "demo.mp4"
    video.write_bytes(b"mp4")
    resolver = _resolver(tmp_path, ContentMedia("v-2", "video", url=str(video)),
                         extractor=FakeExtractor(error=PipelineError("bad video")))

    with pytest.raises(PipelineError):
        resolver.prepare("v-2")
    assert list((tmp_path / "work").iterdir()) == []


@pytest.mark.parametrize("media", [
    ContentMedia("r", "podcast", audio_url="https://cdn.example.com/ep.mp3"),
    ContentMedia("r", "video", video_id="abc123"),
    ContentMedia("r", "video"),
])
def test_remote_or_missing_media_is_not_found(tmp_path, media):
    with pytest.raises(NotFoundError):
        _resolver(tmp_path, media).prepare("r")


def test_unknown_content_is_not_found(tmp_path):
    with pytest.raises(NotFoundError):
        _resolver(tmp_path).prepare("ghost")


def test_unreadable_local_audio_is_not_found(tmp_path):
    resolver = _resolver(tmp_path, ContentMedia("ep-x", "podcast", audio_url=str(tmp_path / "missing.mp3")))
    with pytest.raises(NotFoundError):
        resolver.prepare("ep-x")


def test_extractor_reports_ffmpeg_stderr(tmp_path):
    video = tmp_path / "demo.mp4"
    video.write_bytes(b"mp4")

    def failing_runner(cmd, **kwargs):
        raise subprocess.CalledProcessError(1, cmd, stderr=b"moov atom not found")

    with pytest.raises(PipelineError, match="moov atom not found"):
        FFmpegAudioExtractor(runner=failing_runner).extract_audio(video, tmp_path / "out")


@pytest.mark.skipif(shutil.which("ffmpeg") is None, reason="ffmpeg not installed")
def test_extractor_with_real_ffmpeg(tmp_path):
    video = tmp_path / "src_video.mp4"
    cmd = [
        "ffmpeg", "-y",
        "-f", "lavfi", "-i", "testsrc=duration=2:size=320x240:rate=30",
        "-f", "lavfi", "-i", "sine=frequency=1000:duration=2",
        "-c:v", "mpeg4", "-c:a", "aac",
        str(video)
    ]
    subprocess.run(cmd, check=True, capture_output=True)

    out = FFmpegAudioExtractor().extract_audio(video, tmp_path / "out")
    assert out.exists()
    assert out.stat().st_size > 0
