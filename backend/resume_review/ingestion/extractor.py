"""Plain-text extraction from PDF resumes.

Pages are read in fixed-size groups: pages inside a group are fetched
concurrently, groups run one after another with a short pause so a large
document never monopolises the event loop. A page that fails contributes
an empty string; the rest of the document is still returned.
"""

import asyncio
import time

from resume_review.config import Settings, load_settings
from resume_review.core.logger import logger
from resume_review.ingestion.bounded import bounded
from resume_review.ingestion.engine import EngineDocument, acquire_engine
from resume_review.ingestion.errors import (
    DocumentParseError,
    IngestionError,
    UnsupportedMediaTypeError,
)
from resume_review.ingestion.types import SourceDocument


def page_groups(page_count: int, chunk_size: int) -> list[range]:
    """Split ``range(page_count)`` into consecutive groups of ``chunk_size``."""
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
    return [
        range(start, min(start + chunk_size, page_count))
        for start in range(0, page_count, chunk_size)
    ]


async def _page_text(pdf: EngineDocument, index: int) -> str:
    try:
        tokens = await pdf.page_tokens(index)
    except Exception as e:
        logger.warning(f"Failed to extract text from page {index + 1}: {e}")
        return ""
    return " ".join(tokens)


async def _read_pages(pdf: EngineDocument, settings: Settings) -> list[str]:
    groups = page_groups(pdf.page_count, settings.extract_chunk_size)
    texts: list[str] = []
    for n, group in enumerate(groups):
        logger.debug(f"Extracting pages {group.start + 1}-{group.stop} of {pdf.page_count}")
        # gather keeps argument order, so pages stay in document order
        texts.extend(await asyncio.gather(*(_page_text(pdf, i) for i in group)))
        if n < len(groups) - 1:
            await asyncio.sleep(settings.extract_chunk_pause)
    return texts


async def _extract_pages(document: SourceDocument, settings: Settings) -> list[str]:
    engine = await acquire_engine(settings)
    pdf = await bounded(
        engine.open_document(document.data), settings.pdf_load_timeout, "PDF loading"
    )
    try:
        return await _read_pages(pdf, settings)
    finally:
        pdf.close()


async def extract_page_texts(
    document: SourceDocument,
    *,
    settings: Settings | None = None,
) -> list[str]:
    """Return the text of every page, in document order.

    Raises:
        UnsupportedMediaTypeError: the document is not a PDF (no engine work).
        DocumentParseError: the bytes are empty or not a readable PDF.
        StageTimeoutError: loading or the whole extraction took too long.
        EngineUnavailableError: the PDF engine could not be loaded.
    """
    settings = settings or load_settings()
    if not document.is_pdf:
        raise UnsupportedMediaTypeError(document.media_type)
    if not document.data:
        raise DocumentParseError("The uploaded file is empty.")

    try:
        return await bounded(
            _extract_pages(document, settings),
            settings.text_extract_timeout,
            "Text extraction",
        )
    except IngestionError:
        raise
    except Exception as e:
        logger.error(f"Unexpected text extraction error for '{document.filename}': {e}", exc_info=True)
        raise DocumentParseError(f"Failed to extract text from PDF: {e}") from e


async def extract_text(document: SourceDocument, *, settings: Settings | None = None) -> str:
    """Extract the document's text: pages joined by newlines, trimmed.

    An empty or near-empty result is not an error here; callers decide
    whether there is enough text to work with.
    """
    start = time.perf_counter()
    pages = await extract_page_texts(document, settings=settings)
    text = "\n".join(pages).strip()
    elapsed_ms = int((time.perf_counter() - start) * 1000)
    logger.info(
        f"Text extracted from '{document.filename}': {len(pages)} page(s), "
        f"{len(text)} chars in {elapsed_ms}ms"
    )
    return text
