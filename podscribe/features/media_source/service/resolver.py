# File: podscribe/features/media_source/service/resolver.py
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import unquote, urlparse

from podscribe.core.common.enums import SourceKind
from podscribe.core.common.errors import NotFoundError
from podscribe.core.common.fs import remove_path
from podscribe.core.config.settings import settings
from ..data.ffmpeg_extractor import FFmpegAudioExtractor
from ..domain.interfaces import IAudioExtractor, IAudioSourceResolver, IContentCatalog
from ..domain.models import ContentMedia, PreparedAudio, SourceDescriptor

logger = logging.getLogger(__name__)

_HTTP_RE = re.compile(r"^https?://", re.IGNORECASE)


def to_local_path(raw: Optional[str]) -> Optional[Path]:
    """`file://` URLs and absolute paths become local paths; anything else is None."""
    if not raw:
        return None
    value = raw.strip()
    if not value:
        return None

    if value.startswith("file://"):
        parsed = urlparse(value)
        if parsed.netloc not in ("", "localhost"):
            return None
        return Path(unquote(parsed.path))

    if os.path.isabs(value):
        return Path(value)
    return None


def _readable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.R_OK)


class MediaSourceResolver(IAudioSourceResolver):
    """
    Turns a content id into a local audio file the recognizers can read.
    Only local media is accepted; remote media must be downloaded first by the host app.
    """

    def __init__(self, catalog: IContentCatalog, extractor: Optional[IAudioExtractor] = None,
                 temp_root: Optional[Path] = None):
        self.catalog = catalog
        self.extractor = extractor or FFmpegAudioExtractor()
        self.temp_root = temp_root or settings.ASR_TEMP_ROOT

    def resolve_descriptor(self, media: ContentMedia) -> Optional[SourceDescriptor]:
        # Priority: local audio, ready download, local video, remote audio, online video
        local_audio = to_local_path(media.audio_url)
        if local_audio:
            return SourceDescriptor(kind=SourceKind.LOCAL_AUDIO_FILE, file_path=local_audio)

        if media.downloaded_audio_path:
            return SourceDescriptor(kind=SourceKind.DOWNLOADED_AUDIO_FILE,
                                    file_path=Path(media.downloaded_audio_path))

        local_video = to_local_path(media.url) if media.media_type == "video" else None
        if local_video:
            return SourceDescriptor(kind=SourceKind.LOCAL_VIDEO_FILE, file_path=local_video)

        if media.audio_url and _HTTP_RE.match(media.audio_url.strip()):
            return SourceDescriptor(kind=SourceKind.REMOTE_AUDIO_URL, audio_url=media.audio_url.strip())

        if media.media_type == "video" and media.video_id:
            return SourceDescriptor(kind=SourceKind.YOUTUBE_VIDEO, video_id=media.video_id)

        return None

    def prepare(self, content_id: str) -> PreparedAudio:
        # 1. Look up the item
        media = self.catalog.get(content_id)
        if media is None:
            raise NotFoundError(f"Content {content_id} does not exist.")

        # 2. Classify
        descriptor = self.resolve_descriptor(media)
        if descriptor is None:
            raise NotFoundError(f"Content {content_id} has no usable media to transcribe.")

        # 3. Materialize local kinds only
        prepared = self._materialize(content_id, descriptor)

        if not _readable(prepared.file_path):
            self.cleanup_paths(prepared.cleanup_paths)
            raise NotFoundError(f"Audio for {content_id} is not readable: {prepared.file_path}")

        logger.info(f"Prepared {descriptor.kind.value} for {content_id}: {prepared.file_path}")
        return prepared

    def _materialize(self, content_id: str, descriptor: SourceDescriptor) -> PreparedAudio:
        if descriptor.kind in (SourceKind.LOCAL_AUDIO_FILE, SourceKind.DOWNLOADED_AUDIO_FILE):
            return PreparedAudio(file_path=descriptor.file_path, source_kind=descriptor.kind)

        if descriptor.requires_extraction:
            Path(self.temp_root).mkdir(parents=True, exist_ok=True)
            temp_dir = Path(tempfile.mkdtemp(prefix="podscribe-asr-video-", dir=str(self.temp_root)))
            try:
                audio_path = self.extractor.extract_audio(descriptor.file_path, temp_dir)
            except BaseException:
                remove_path(temp_dir)
                raise
            return PreparedAudio(file_path=audio_path, source_kind=descriptor.kind, cleanup_paths=[temp_dir])

        # remote kinds: downloading belongs to the host application
        raise NotFoundError(
            f"No local audio for {content_id} ({descriptor.kind.value}); download it before transcribing."
        )

    def cleanup_paths(self, paths: Iterable[Path]) -> None:
        for path in paths:
            remove_path(path)
