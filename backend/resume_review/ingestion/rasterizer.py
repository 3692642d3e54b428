"""Render one page of a PDF to a compressed preview image.

Failures never escape: every expected failure mode (engine unavailable,
unsupported type, corrupt file, bad page, oversized surface, render or
encode error, timeout) is reported through ``ConversionResult.error`` so
callers can treat a missing preview as degraded-but-continuable.
"""

import functools
import io
import re
import time

from resume_review.config import Settings, load_settings
from resume_review.core.constants import IMAGE_EXTENSIONS, IMAGE_MEDIA_TYPES
from resume_review.core.logger import logger
from resume_review.ingestion.bounded import bounded
from resume_review.ingestion.engine import EngineDocument, RenderSurface, acquire_engine
from resume_review.ingestion.errors import (
    DocumentParseError,
    EncodeError,
    IngestionError,
    PageOutOfRangeError,
    SurfaceAllocationError,
    UnsupportedMediaTypeError,
)
from resume_review.ingestion.previews import PreviewStore, get_preview_store
from resume_review.ingestion.types import ConversionResult, DerivedFile, SourceDocument


def preview_filename(source_name: str, image_format: str) -> str:
    """``resume.pdf`` -> ``resume.jpg``."""
    stem = re.sub(r"\.pdf$", "", source_name or "", flags=re.IGNORECASE) or "document"
    return f"{stem}{IMAGE_EXTENSIONS[image_format]}"


def viewport_size(page_size: tuple[float, float], scale: float) -> tuple[int, int]:
    """Pixel dimensions of a page in points rendered at ``scale``."""
    width, height = page_size
    return max(1, round(width * scale)), max(1, round(height * scale))


def encode_surface(surface: RenderSurface, image_format: str, quality: float) -> bytes:
    """Encode a render surface as JPEG or PNG bytes, then release it.

    Runs on the engine worker, inside the render call. ``quality`` is
    0.0-1.0 and only applies to JPEG. The surface is released whether
    encoding succeeds or not.
    """
    try:
        image = surface.to_image()
        try:
            buf = io.BytesIO()
            if image_format == "jpeg":
                if image.mode not in ("RGB", "L"):
                    image = image.convert("RGB")
                image.save(buf, format="JPEG", quality=max(1, round(quality * 100)))
            else:
                image.save(buf, format="PNG", optimize=True)
        finally:
            image.close()
    except (OSError, ValueError) as e:
        raise EncodeError(f"Failed to encode the preview image: {e}") from e
    finally:
        surface.release()

    data = buf.getvalue()
    if not data:
        raise EncodeError()
    return data


async def _render_and_encode(
    pdf: EngineDocument,
    page_index: int,
    scale: float,
    settings: Settings,
) -> bytes:
    page_size = await pdf.page_size(page_index)
    width, height = viewport_size(page_size, scale)
    if width * height > settings.max_surface_pixels:
        raise SurfaceAllocationError(
            f"The page is too large to preview at scale {scale:g} "
            f"({width}x{height} pixels). Try a lower scale."
        )

    encode = functools.partial(
        encode_surface,
        image_format=settings.preview_format,
        quality=settings.preview_quality,
    )
    return await pdf.render_to_bytes(page_index, scale, encode)


async def rasterize_page(
    document: SourceDocument,
    page_index: int = 0,
    scale: float | None = None,
    *,
    settings: Settings | None = None,
    store: PreviewStore | None = None,
) -> ConversionResult:
    """Render ``page_index`` of the document and register the preview.

    The returned ``image_url`` is a revocable reference; the caller must
    release it with ``cleanup_preview`` once it is no longer needed.
    """
    settings = settings or load_settings()
    scale = scale if scale is not None else settings.preview_scale
    start = time.perf_counter()

    try:
        if not document.is_pdf:
            raise UnsupportedMediaTypeError(document.media_type)
        if not document.data:
            raise DocumentParseError("The uploaded file is empty.")
        if scale <= 0:
            raise ValueError(f"scale must be positive, got {scale}")

        engine = await acquire_engine(settings)
        pdf = await bounded(
            engine.open_document(document.data), settings.pdf_load_timeout, "PDF loading"
        )
        try:
            if not 0 <= page_index < pdf.page_count:
                raise PageOutOfRangeError(page_index, pdf.page_count)
            data = await bounded(
                _render_and_encode(pdf, page_index, scale, settings),
                settings.pdf_render_timeout,
                "PDF rendering",
            )
        finally:
            pdf.close()

    except IngestionError as e:
        logger.warning(f"Preview conversion failed for '{document.filename}': {e.message}")
        return ConversionResult.failure(e.message)
    except Exception as e:
        logger.error(f"Unexpected preview conversion error for '{document.filename}': {e}", exc_info=True)
        return ConversionResult.failure(f"PDF conversion failed: {e}")

    media_type = IMAGE_MEDIA_TYPES[settings.preview_format]
    derived = DerivedFile(
        name=preview_filename(document.filename, settings.preview_format),
        media_type=media_type,
        data=data,
    )
    image_url = (store or get_preview_store()).create(data, media_type)

    elapsed_ms = int((time.perf_counter() - start) * 1000)
    logger.info(f"Preview rendered: {derived.name} ({derived.size} bytes) in {elapsed_ms}ms")
    return ConversionResult(image_url=image_url, file=derived)
