"""Object storage for uploaded resumes and their preview images.

Files land under ``<storage_dir>/<bucket>/[<owner>/]<timestamp>-<random>-<name>``.
The returned path is relative to the storage root so it can be served from
the ``/output`` static mount.
"""

import asyncio
import re
import time
import uuid
from pathlib import Path

from resume_review.config import load_settings
from resume_review.core.constants import FILENAME_MAX_SLUG_LENGTH
from resume_review.core.logger import logger


def _safe_name(name: str, max_len: int = FILENAME_MAX_SLUG_LENGTH) -> str:
    """Sanitize a filename — strict allowlist, extension kept."""
    stem, dot, ext = name.rpartition(".")
    if not dot:
        stem, ext = name, ""
    stem = re.sub(r"[^a-zA-Z0-9_-]", "", stem.replace(" ", "_"))[:max_len] or "file"
    ext = re.sub(r"[^a-zA-Z0-9]", "", ext)[:8]
    return f"{stem}.{ext}" if ext else stem


class LocalObjectStorage:
    """Bucketed file storage on local disk."""

    def __init__(self, root: str | Path | None = None) -> None:
        self.root = Path(root or load_settings().storage_dir).resolve()

    def _write(self, bucket: str, filename: str, data: bytes, owner: str | None) -> str:
        parts = [_safe_name(bucket)]
        if owner:
            parts.append(_safe_name(owner))
        directory = self.root.joinpath(*parts)
        directory.mkdir(parents=True, exist_ok=True)

        stamp = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"
        target = directory / f"{stamp}-{_safe_name(filename)}"
        target.write_bytes(data)
        return target.relative_to(self.root).as_posix()

    async def upload(
        self,
        bucket: str,
        filename: str,
        data: bytes,
        owner: str | None = None,
    ) -> str:
        """Store ``data`` in ``bucket`` and return the stored path.

        Raises OSError if the file cannot be written.
        """
        if not bucket:
            raise ValueError("bucket is required")
        path = await asyncio.to_thread(self._write, bucket, filename, data, owner)
        logger.info(f"Stored {len(data)} bytes at {bucket}:{path}")
        return path


_storage: LocalObjectStorage | None = None


def get_storage() -> LocalObjectStorage:
    global _storage
    if _storage is None:
        _storage = LocalObjectStorage()
    return _storage
