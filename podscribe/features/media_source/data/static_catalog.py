# File: podscribe/features/media_source/data/static_catalog.py
from threading import Lock
from typing import Dict, Iterable, Optional

from ..domain.interfaces import IContentCatalog
from ..domain.models import ContentMedia


class InMemoryContentCatalog(IContentCatalog):
    """
    Catalog backed by a dict. Used when the host application pushes items in
    directly instead of exposing its own store.
    """

    def __init__(self, items: Iterable[ContentMedia] = ()):
        self._lock = Lock()
        self._items: Dict[str, ContentMedia] = {item.content_id: item for item in items}

    def put(self, item: ContentMedia) -> None:
        with self._lock:
            self._items[item.content_id] = item

    def get(self, content_id: str) -> Optional[ContentMedia]:
        with self._lock:
            return self._items.get(content_id)
