"""Error taxonomy for the document ingestion pipeline.

Every error carries a stable ``code`` for API clients, an HTTP
``status_code`` for the routes, and a human-readable ``message`` that can
be shown to the user as-is.
"""


class IngestionError(Exception):
    """Base exception for all ingestion failures."""

    code = "ingestion_failed"
    status_code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def default_message(self) -> str:
        return "The document could not be processed."


class EngineUnavailableError(IngestionError):
    """Raised when the PDF engine module fails to load."""

    code = "engine_unavailable"
    status_code = 503

    @property
    def default_message(self) -> str:
        return "The PDF engine is unavailable right now. Please try again in a moment."


class UnsupportedMediaTypeError(IngestionError):
    """Raised before any engine work when the upload is not a PDF."""

    code = "unsupported_type"
    status_code = 415

    def __init__(self, media_type: str = "") -> None:
        self.media_type = media_type
        message = (
            f"Unsupported file type: {media_type}. Please upload a PDF file."
            if media_type
            else ""
        )
        super().__init__(message)

    @property
    def default_message(self) -> str:
        return "Unsupported file type. Please upload a PDF file."


class DocumentParseError(IngestionError):
    """Raised when the engine rejects the bytes as a PDF document."""

    code = "parse_error"
    status_code = 422

    @property
    def default_message(self) -> str:
        return "This file is not a valid PDF or is corrupted."


class PageOutOfRangeError(DocumentParseError):
    """Raised when the requested page does not exist in the document."""

    code = "page_out_of_range"

    def __init__(self, page_index: int, page_count: int) -> None:
        self.page_index = page_index
        self.page_count = page_count
        super().__init__(
            f"Page {page_index + 1} does not exist (document has {page_count} page(s))."
        )


class StageTimeoutError(IngestionError):
    """Raised when a bounded stage exceeds its allotted duration."""

    code = "timeout"
    status_code = 504

    def __init__(self, stage: str, seconds: float) -> None:
        self.stage = stage
        self.seconds = seconds
        super().__init__(
            f"{stage} timed out after {seconds:g} seconds. Try a smaller or simpler PDF."
        )


class SurfaceAllocationError(IngestionError):
    """Raised when the render surface for a page would be too large."""

    code = "surface_allocation"
    status_code = 422

    @property
    def default_message(self) -> str:
        return "The page is too large to render a preview."


class RenderError(IngestionError):
    """Raised when the engine fails while drawing a page."""

    code = "render_failed"

    @property
    def default_message(self) -> str:
        return "The page could not be rendered."


class EncodeError(IngestionError):
    """Raised when the rendered surface cannot be encoded to an image."""

    code = "encode_failed"

    @property
    def default_message(self) -> str:
        return "Failed to encode the preview image."
