"""Tests for resume_review/ingestion/extractor.py — chunked page text extraction."""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from unittest.mock import AsyncMock, patch

import pytest

from resume_review.ingestion import engine
from resume_review.ingestion.errors import (
    DocumentParseError,
    EngineUnavailableError,
    StageTimeoutError,
    UnsupportedMediaTypeError,
)
from resume_review.ingestion.extractor import extract_page_texts, extract_text, page_groups
from resume_review.ingestion.types import SourceDocument
from tests.fakes import HELLO_WORLD_PDF, FakeEngine, make_pdf

pytest.importorskip("pypdfium2")

PDF = "application/pdf"
FIVE_PAGES = ["Page one", "Page two", "Page three", "Page four", "Page five"]


def _patched_engine(fake):
    return patch(
        "resume_review.ingestion.extractor.acquire_engine",
        new=AsyncMock(return_value=fake),
    )


# ===========================================================================
# page_groups
# ===========================================================================


class TestPageGroups:

    def test_even_split(self):
        assert page_groups(6, 3) == [range(0, 3), range(3, 6)]

    def test_last_group_is_short(self):
        assert page_groups(5, 2) == [range(0, 2), range(2, 4), range(4, 5)]

    def test_chunk_larger_than_document(self):
        assert page_groups(2, 10) == [range(0, 2)]

    def test_no_pages(self):
        assert page_groups(0, 3) == []

    def test_rejects_non_positive_chunk(self):
        with pytest.raises(ValueError):
            page_groups(5, 0)


# ===========================================================================
# extract_text against real PDFs
# ===========================================================================


@pytest.mark.asyncio
class TestExtractText:

    async def test_pages_joined_with_newlines(self):
        doc = SourceDocument(HELLO_WORLD_PDF, PDF, "hello.pdf")
        assert await extract_text(doc) == "Hello\nWorld"

    async def test_repeated_extraction_is_identical(self):
        doc = SourceDocument(HELLO_WORLD_PDF, PDF, "hello.pdf")
        first = await extract_text(doc)
        second = await extract_text(doc)
        assert first == second

    @pytest.mark.parametrize("chunk_size", [1, 2, 3, 10])
    async def test_chunk_size_does_not_change_output(self, settings, chunk_size):
        settings.extract_chunk_size = chunk_size
        doc = SourceDocument(make_pdf(FIVE_PAGES), PDF, "five.pdf")
        text = await extract_text(doc, settings=settings)
        assert text == "\n".join(FIVE_PAGES)

    async def test_media_type_parameters_are_ignored(self):
        doc = SourceDocument(HELLO_WORLD_PDF, "Application/PDF; charset=binary", "hello.pdf")
        assert await extract_text(doc) == "Hello\nWorld"

    async def test_corrupt_pdf_raises_parse_error(self):
        doc = SourceDocument(b"%PDF-1.4\nthis is garbage", PDF, "broken.pdf")
        with pytest.raises(DocumentParseError):
            await extract_text(doc)


# ===========================================================================
# Page order, failure isolation and timeouts with a scripted engine
# ===========================================================================


@pytest.mark.asyncio
class TestExtractPageTexts:

    async def test_order_kept_when_later_pages_finish_first(self, settings):
        settings.extract_chunk_size = 5
        fake = FakeEngine(FIVE_PAGES, page_delays={0: 0.05, 1: 0.03, 2: 0.01})
        with _patched_engine(fake):
            pages = await extract_page_texts(SourceDocument(b"%PDF", PDF), settings=settings)
        assert pages == FIVE_PAGES

    async def test_failing_page_contributes_empty_string(self, settings):
        fake = FakeEngine(["Alpha one", "Beta two", "Gamma three"], failing_pages={1})
        with _patched_engine(fake):
            text = await extract_text(SourceDocument(b"%PDF", PDF), settings=settings)
        assert text == "Alpha one\n\nGamma three"

    async def test_document_closed_after_extraction(self, settings):
        fake = FakeEngine(["Alpha", "Beta"], failing_pages={0})
        with _patched_engine(fake):
            await extract_page_texts(SourceDocument(b"%PDF", PDF), settings=settings)
        assert fake.closed == 1

    async def test_no_pages_returns_empty_text(self, settings):
        fake = FakeEngine([])
        with _patched_engine(fake):
            assert await extract_text(SourceDocument(b"%PDF", PDF), settings=settings) == ""

    async def test_unsupported_type_does_no_engine_work(self):
        fake = FakeEngine()
        with _patched_engine(fake) as acquire:
            with pytest.raises(UnsupportedMediaTypeError):
                await extract_page_texts(SourceDocument(b"\x89PNG", "image/png", "photo.png"))
        acquire.assert_not_called()
        assert fake.open_calls == 0

    async def test_empty_bytes_rejected_before_engine(self):
        with _patched_engine(FakeEngine()) as acquire:
            with pytest.raises(DocumentParseError):
                await extract_page_texts(SourceDocument(b"", PDF))
        acquire.assert_not_called()

    async def test_load_timeout_names_loading_stage(self, settings):
        settings.pdf_load_timeout = 0.05
        with _patched_engine(FakeEngine(hang_open=True)):
            with pytest.raises(StageTimeoutError) as exc_info:
                await extract_page_texts(SourceDocument(b"%PDF", PDF), settings=settings)
        assert exc_info.value.stage == "PDF loading"

    async def test_whole_extraction_is_bounded(self, settings):
        settings.text_extract_timeout = 0.05
        fake = FakeEngine(["slow page"], page_delays={0: 5})
        with _patched_engine(fake):
            with pytest.raises(StageTimeoutError) as exc_info:
                await extract_page_texts(SourceDocument(b"%PDF", PDF), settings=settings)
        assert exc_info.value.stage == "Text extraction"
        assert fake.closed == 1

    async def test_engine_unavailable_propagates(self):
        with patch(
            "resume_review.ingestion.extractor.acquire_engine",
            new=AsyncMock(side_effect=EngineUnavailableError()),
        ):
            with pytest.raises(EngineUnavailableError):
                await extract_page_texts(SourceDocument(b"%PDF", PDF))

    async def test_engine_init_failure_is_not_reported_as_bad_pdf(self):
        with patch.object(
            engine, "_import_engine_module", side_effect=RuntimeError("engine init blew up")
        ):
            with pytest.raises(EngineUnavailableError) as exc_info:
                await extract_page_texts(SourceDocument(HELLO_WORLD_PDF, PDF))
        assert not isinstance(exc_info.value, DocumentParseError)
        assert exc_info.value.status_code == 503

    async def test_unexpected_error_becomes_parse_error(self, settings):
        fake = FakeEngine()
        fake.open_document = AsyncMock(side_effect=RuntimeError("engine exploded"))
        with _patched_engine(fake):
            with pytest.raises(DocumentParseError, match="engine exploded"):
                await extract_page_texts(SourceDocument(b"%PDF", PDF), settings=settings)
