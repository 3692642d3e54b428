"""Run preview rendering and text extraction side by side.

Both stages read the same immutable bytes and share nothing else, so they
run concurrently; total latency is that of the slower stage. Neither stage
can fail the other. The preview is cosmetic; whether missing text is fatal
is for the caller to decide.
"""

import asyncio
import time

from resume_review.config import Settings, load_settings
from resume_review.core.logger import logger
from resume_review.ingestion.errors import IngestionError
from resume_review.ingestion.extractor import extract_text
from resume_review.ingestion.previews import PreviewStore
from resume_review.ingestion.rasterizer import rasterize_page
from resume_review.ingestion.types import ExtractionFailure, PipelineOutcome, SourceDocument


async def _text_or_failure(
    document: SourceDocument, settings: Settings
) -> str | ExtractionFailure:
    try:
        return await extract_text(document, settings=settings)
    except IngestionError as e:
        return ExtractionFailure(code=e.code, message=e.message, status_code=e.status_code)


async def process_document(
    document: SourceDocument,
    *,
    settings: Settings | None = None,
    store: PreviewStore | None = None,
) -> PipelineOutcome:
    """Render the first page and extract all text from ``document``.

    Always returns both outcomes. Call ``outcome.release(store)`` on every
    exit path once the preview has been persisted or discarded.
    """
    settings = settings or load_settings()
    start = time.perf_counter()

    image, text = await asyncio.gather(
        rasterize_page(document, 0, settings=settings, store=store),
        _text_or_failure(document, settings),
    )

    if isinstance(text, ExtractionFailure):
        outcome = PipelineOutcome(image=image, text=None, text_error=text)
    else:
        outcome = PipelineOutcome(image=image, text=text)

    elapsed_ms = int((time.perf_counter() - start) * 1000)
    logger.info(
        f"Ingestion of '{document.filename}' finished in {elapsed_ms}ms: "
        f"preview={'ok' if image.ok else 'failed'}, "
        f"text={'ok' if outcome.has_text else outcome.text_error.code}"
    )
    return outcome
