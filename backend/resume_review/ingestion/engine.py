"""PDF engine loader + thin async wrappers around pypdfium2.

The engine module is imported on first use and cached for the life of the
process. Concurrent first callers share a single in-flight load; a failed
load is forgotten so the next call retries.

PDFium is not thread-safe, so every engine call is funnelled through one
dedicated worker executor (``pdf_engine_workers`` threads, 1 by default)
instead of the default asyncio thread pool.
"""

import asyncio
import functools
import importlib
from concurrent.futures import ThreadPoolExecutor
from types import ModuleType

from resume_review.config import Settings, load_settings
from resume_review.core.logger import logger
from resume_review.ingestion.errors import (
    DocumentParseError,
    EncodeError,
    EngineUnavailableError,
    RenderError,
)


class RenderSurface:
    """Pixel buffer for one rendered page. Release it as soon as it is encoded."""

    def __init__(self, bitmap, width: int, height: int) -> None:
        self._bitmap = bitmap
        self.width = width
        self.height = height

    @property
    def released(self) -> bool:
        return self._bitmap is None

    def to_image(self):
        """Return a Pillow image view of the surface."""
        if self._bitmap is None:
            raise EncodeError("The render surface was already released.")
        return self._bitmap.to_pil()

    def release(self) -> None:
        if self._bitmap is not None:
            self._bitmap.close()
            self._bitmap = None
        self.width = 0
        self.height = 0


class EngineDocument:
    """An open PDF document. All methods run on the engine worker."""

    def __init__(self, engine: "PdfEngine", pdf) -> None:
        self._engine = engine
        self._pdf = pdf

    @property
    def page_count(self) -> int:
        return len(self._pdf)

    async def page_size(self, index: int) -> tuple[float, float]:
        """Intrinsic page size in points."""
        return await self._engine.run(self._page_size, index)

    async def render_to_bytes(self, index: int, scale: float, encode) -> bytes:
        """Render a page and hand the surface to ``encode`` in one worker call.

        Only the encoded bytes come back, so a caller that stops waiting
        never leaves a surface behind.
        """
        return await self._engine.run(self._render_encode, index, scale, encode)

    async def page_tokens(self, index: int) -> list[str]:
        """Text runs of one page in the engine's native order."""
        return await self._engine.run(self._page_tokens, index)

    def close(self) -> None:
        """Queue the close behind any work still running for this document."""
        self._engine.submit(self._pdf.close)

    # -- worker-side ------------------------------------------------------

    def _page_size(self, index: int) -> tuple[float, float]:
        page = self._pdf[index]
        try:
            width, height = page.get_size()
        finally:
            page.close()
        return width, height

    def _render_page(self, index: int, scale: float) -> RenderSurface:
        page = self._pdf[index]
        try:
            bitmap = page.render(scale=scale)
        except self._engine.pdfium.PdfiumError as e:
            raise RenderError(f"Page {index + 1} could not be rendered: {e}") from e
        finally:
            page.close()
        return RenderSurface(bitmap, bitmap.width, bitmap.height)

    def _render_encode(self, index: int, scale: float, encode) -> bytes:
        surface = self._render_page(index, scale)
        try:
            return encode(surface)
        finally:
            surface.release()

    def _page_tokens(self, index: int) -> list[str]:
        page = self._pdf[index]
        try:
            textpage = page.get_textpage()
            try:
                raw = textpage.get_text_range()
            finally:
                textpage.close()
        finally:
            page.close()
        return [line.strip() for line in raw.splitlines() if line.strip()]


def _log_worker_error(future) -> None:
    if not future.cancelled() and future.exception() is not None:
        logger.warning(f"PDF engine background task failed: {future.exception()}")


class PdfEngine:
    """Loaded engine capability: the pypdfium2 module plus its worker."""

    def __init__(self, pdfium: ModuleType, executor: ThreadPoolExecutor) -> None:
        self.pdfium = pdfium
        self._executor = executor

    async def run(self, fn, *args, **kwargs):
        """Run a blocking engine call on the worker and await its result."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor, functools.partial(fn, *args, **kwargs)
        )

    def submit(self, fn, *args) -> None:
        """Fire-and-forget a blocking call on the worker."""
        self._executor.submit(fn, *args).add_done_callback(_log_worker_error)

    async def open_document(self, data: bytes) -> EngineDocument:
        future = self._executor.submit(self.pdfium.PdfDocument, data)
        try:
            pdf = await asyncio.wrap_future(future)
        except asyncio.CancelledError:
            # The worker may still finish the open; close what nobody will use
            future.add_done_callback(self._close_abandoned)
            raise
        except self.pdfium.PdfiumError as e:
            raise DocumentParseError(f"This file is not a valid PDF ({e}).") from e
        return EngineDocument(self, pdf)

    def _close_abandoned(self, future) -> None:
        if future.cancelled() or future.exception() is not None:
            return
        logger.debug("Closing a document whose open was abandoned")
        self.submit(future.result().close)

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=not wait)


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

_engine: PdfEngine | None = None
_load_task: asyncio.Task | None = None


def _import_engine_module(name: str) -> ModuleType:
    return importlib.import_module(name)


async def _load_engine(settings: Settings) -> PdfEngine:
    global _engine, _load_task
    logger.info(f"Loading PDF engine '{settings.pdf_engine_module}'...")
    try:
        module = await asyncio.to_thread(_import_engine_module, settings.pdf_engine_module)
        executor = ThreadPoolExecutor(
            max_workers=settings.pdf_engine_workers,
            thread_name_prefix=settings.pdf_engine_thread_name,
        )
    except Exception as e:
        logger.error(f"PDF engine failed to load: {type(e).__name__}: {e}", exc_info=True)
        raise EngineUnavailableError() from e
    finally:
        # Success or failure, the next call must not await this attempt again
        _load_task = None

    _engine = PdfEngine(module, executor)
    logger.info("PDF engine ready")
    return _engine


async def acquire_engine(settings: Settings | None = None) -> PdfEngine:
    """Get the shared engine, loading it on first use (single-flight)."""
    global _load_task
    if _engine is not None:
        return _engine
    if _load_task is None:
        _load_task = asyncio.ensure_future(_load_engine(settings or load_settings()))
    # Shielded: a waiter that times out must not cancel the shared load.
    return await asyncio.shield(_load_task)


def engine_status() -> str:
    """Loader state: ready, loading, or idle (not loaded yet / last load failed)."""
    if _engine is not None:
        return "ready"
    if _load_task is not None:
        return "loading"
    return "idle"


def reset_engine() -> None:
    """Drop the cached engine and stop its worker."""
    global _engine, _load_task
    if _engine is not None:
        _engine.shutdown()
    _engine = None
    _load_task = None
