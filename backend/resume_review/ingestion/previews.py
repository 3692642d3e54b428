"""Revocable references to rendered preview images.

A preview reference is a URL under ``/api/previews/`` that stays
resolvable until it is revoked. Whoever creates a reference owns it and
must revoke it once the image has been persisted or discarded. The store
keeps at most ``max_previews`` live references, evicting the oldest.
"""

import uuid
from collections import OrderedDict

from resume_review.config import load_settings
from resume_review.core.constants import PREVIEW_URL_PREFIX
from resume_review.core.logger import logger


class PreviewStore:
    """In-memory map of live preview references."""

    def __init__(self, max_items: int | None = None) -> None:
        self.max_items = max_items or load_settings().max_previews
        self._items: OrderedDict[str, tuple[bytes, str]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, ref: str) -> bool:
        return _token(ref) in self._items

    def create(self, data: bytes, media_type: str) -> str:
        """Register image bytes and return their preview URL."""
        while len(self._items) >= self.max_items:
            evicted, _ = self._items.popitem(last=False)
            logger.warning(f"Preview store full, evicted unreleased preview {evicted[:8]}...")
        token = uuid.uuid4().hex
        self._items[token] = (data, media_type)
        return f"{PREVIEW_URL_PREFIX}{token}"

    def resolve(self, ref: str) -> tuple[bytes, str] | None:
        return self._items.get(_token(ref))

    def revoke(self, ref: str) -> bool:
        """Drop a reference. Unknown or already revoked references are a no-op."""
        return self._items.pop(_token(ref), None) is not None

    def clear(self) -> None:
        self._items.clear()


def _token(ref: str) -> str:
    if ref.startswith(PREVIEW_URL_PREFIX):
        return ref[len(PREVIEW_URL_PREFIX):]
    return ref


_store: PreviewStore | None = None


def get_preview_store() -> PreviewStore:
    """Get or create the process-wide preview store."""
    global _store
    if _store is None:
        _store = PreviewStore()
    return _store


def cleanup_preview(image_url: str, store: PreviewStore | None = None) -> bool:
    """Revoke a preview URL produced by the rasterizer.

    Anything that is not a preview URL (including "") is ignored.
    """
    if not image_url or not image_url.startswith(PREVIEW_URL_PREFIX):
        return False
    return (store or get_preview_store()).revoke(image_url)
