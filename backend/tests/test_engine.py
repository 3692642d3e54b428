"""Tests for resume_review/ingestion/engine.py — lazy single-flight loader."""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
import importlib
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch

import pytest

from resume_review.ingestion import engine
from resume_review.ingestion.engine import (
    EngineDocument,
    PdfEngine,
    RenderSurface,
    acquire_engine,
    engine_status,
)
from resume_review.ingestion.errors import DocumentParseError, EngineUnavailableError
from tests.fakes import HELLO_WORLD_PDF, FakeBitmap, SlowPdf, SlowPdfium

pdfium = pytest.importorskip("pypdfium2")


def _slow_import(name):
    time.sleep(0.05)
    return importlib.import_module(name)


# ===========================================================================
# acquire_engine — caching and single-flight
# ===========================================================================


@pytest.mark.asyncio
class TestAcquireEngine:

    async def test_returns_engine_wrapping_pdfium(self):
        handle = await acquire_engine()
        assert isinstance(handle, PdfEngine)
        assert handle.pdfium is pdfium
        assert engine_status() == "ready"

    async def test_second_call_reuses_cached_handle(self):
        with patch.object(engine, "_import_engine_module", wraps=engine._import_engine_module) as spy:
            first = await acquire_engine()
            second = await acquire_engine()
        assert first is second
        assert spy.call_count == 1

    async def test_concurrent_first_calls_share_one_load(self):
        with patch.object(engine, "_import_engine_module", side_effect=_slow_import) as spy:
            handles = await asyncio.gather(*(acquire_engine() for _ in range(8)))
        assert spy.call_count == 1
        assert all(h is handles[0] for h in handles)

    async def test_status_is_loading_while_in_flight(self):
        with patch.object(engine, "_import_engine_module", side_effect=_slow_import):
            task = asyncio.ensure_future(acquire_engine())
            await asyncio.sleep(0)
            assert engine_status() == "loading"
            await task
        assert engine_status() == "ready"

    async def test_failed_load_reaches_every_waiter(self):
        with patch.object(engine, "_import_engine_module", side_effect=ImportError("no pdfium")) as spy:
            results = await asyncio.gather(
                *(acquire_engine() for _ in range(4)), return_exceptions=True
            )
        assert spy.call_count == 1
        assert all(isinstance(r, EngineUnavailableError) for r in results)
        assert engine_status() == "idle"

    async def test_next_call_after_failure_retries(self):
        with patch.object(
            engine, "_import_engine_module",
            side_effect=[OSError("libpdfium.so missing"), pdfium],
        ) as spy:
            with pytest.raises(EngineUnavailableError):
                await acquire_engine()
            handle = await acquire_engine()
        assert spy.call_count == 2
        assert handle.pdfium is pdfium

    async def test_unexpected_import_error_does_not_poison_loader(self):
        with patch.object(
            engine, "_import_engine_module",
            side_effect=[RuntimeError("engine init blew up"), pdfium],
        ) as spy:
            with pytest.raises(EngineUnavailableError):
                await acquire_engine()
            assert engine_status() == "idle"
            handle = await acquire_engine()
        assert spy.call_count == 2
        assert handle.pdfium is pdfium

    async def test_worker_creation_failure_does_not_poison_loader(self):
        with patch.object(
            engine, "ThreadPoolExecutor", side_effect=RuntimeError("can't start new thread")
        ):
            with pytest.raises(EngineUnavailableError):
                await acquire_engine()
        assert engine_status() == "idle"
        assert isinstance(await acquire_engine(), PdfEngine)

    async def test_cancelled_waiter_does_not_cancel_shared_load(self):
        with patch.object(engine, "_import_engine_module", side_effect=_slow_import) as spy:
            impatient = asyncio.ensure_future(acquire_engine())
            patient = asyncio.ensure_future(acquire_engine())
            await asyncio.sleep(0)
            impatient.cancel()
            handle = await patient
        assert isinstance(handle, PdfEngine)
        assert spy.call_count == 1

    async def test_engine_module_is_configurable(self, settings):
        settings.pdf_engine_module = "definitely_not_a_pdf_engine"
        with pytest.raises(EngineUnavailableError):
            await acquire_engine(settings)


# ===========================================================================
# PdfEngine / EngineDocument against real pypdfium2
# ===========================================================================


@pytest.mark.asyncio
class TestEngineDocument:

    async def test_open_reports_page_count(self):
        handle = await acquire_engine()
        pdf = await handle.open_document(HELLO_WORLD_PDF)
        try:
            assert pdf.page_count == 2
        finally:
            pdf.close()

    async def test_page_size_is_in_points(self):
        handle = await acquire_engine()
        pdf = await handle.open_document(HELLO_WORLD_PDF)
        try:
            width, height = await pdf.page_size(0)
        finally:
            pdf.close()
        assert (round(width), round(height)) == (612, 792)

    async def test_page_tokens_in_page_order(self):
        handle = await acquire_engine()
        pdf = await handle.open_document(HELLO_WORLD_PDF)
        try:
            assert await pdf.page_tokens(0) == ["Hello"]
            assert await pdf.page_tokens(1) == ["World"]
        finally:
            pdf.close()

    async def test_render_to_bytes_hands_scaled_surface_to_encoder(self):
        seen = []

        def encode(surface):
            seen.append((surface.width, surface.height))
            return b"encoded"

        handle = await acquire_engine()
        pdf = await handle.open_document(HELLO_WORLD_PDF)
        try:
            data = await pdf.render_to_bytes(0, 0.5, encode)
        finally:
            pdf.close()
        assert data == b"encoded"
        assert seen == [(306, 396)]

    async def test_page_tokens_close_page_when_textpage_fails(self):
        page = MagicMock()
        page.get_textpage.side_effect = RuntimeError("no text layer")
        pdf = MagicMock()
        pdf.__getitem__.return_value = page
        document = EngineDocument(await acquire_engine(), pdf)

        with pytest.raises(RuntimeError):
            await document.page_tokens(0)
        page.close.assert_called_once()

    async def test_corrupt_bytes_raise_parse_error(self):
        handle = await acquire_engine()
        with pytest.raises(DocumentParseError):
            await handle.open_document(b"this is not a pdf")


# ===========================================================================
# Worker-side cleanup
# ===========================================================================


@pytest.mark.asyncio
class TestWorkerCleanup:

    async def test_surface_released_when_encoder_raises(self):
        pdf = SlowPdf()
        worker = PdfEngine(SlowPdfium(pdf), ThreadPoolExecutor(max_workers=1))

        def encode(surface):
            raise ValueError("cannot encode")

        try:
            with pytest.raises(ValueError):
                await EngineDocument(worker, pdf).render_to_bytes(0, 1.0, encode)
        finally:
            worker.shutdown(wait=True)
        assert len(pdf.bitmaps) == 1
        assert pdf.bitmaps[0].closed

    async def test_document_closed_when_open_is_abandoned(self):
        pdf = SlowPdf()
        worker = PdfEngine(SlowPdfium(pdf, open_delay=0.3), ThreadPoolExecutor(max_workers=1))
        try:
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(worker.open_document(b"%PDF"), timeout=0.05)
            # FIFO worker: the second no-op runs after the queued close
            await worker.run(lambda: None)
            await worker.run(lambda: None)
        finally:
            worker.shutdown(wait=True)
        assert pdf.closed


# ===========================================================================
# RenderSurface
# ===========================================================================


class TestRenderSurface:

    def test_release_closes_bitmap_and_zeroes_dimensions(self):
        bitmap = FakeBitmap(10, 20)
        surface = RenderSurface(bitmap, 10, 20)
        surface.release()
        assert bitmap.closed
        assert surface.released
        assert (surface.width, surface.height) == (0, 0)

    def test_release_twice_is_harmless(self):
        surface = RenderSurface(FakeBitmap(10, 20), 10, 20)
        surface.release()
        surface.release()
        assert surface.released
