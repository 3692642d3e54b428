"""Value types passed through the ingestion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field

from resume_review.core.constants import PDF_MEDIA_TYPE
from resume_review.ingestion.previews import PreviewStore, cleanup_preview


def normalize_media_type(media_type: str) -> str:
    """Lower-case a media type and drop parameters (``; charset=...``)."""
    return (media_type or "").split(";", 1)[0].strip().lower()


@dataclass(frozen=True)
class SourceDocument:
    """An uploaded file, owned by the caller for one pipeline run."""

    data: bytes = field(repr=False)
    media_type: str
    filename: str = "document.pdf"

    @property
    def is_pdf(self) -> bool:
        return normalize_media_type(self.media_type) == PDF_MEDIA_TYPE

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class DerivedFile:
    """A named image blob derived from a source document."""

    name: str
    media_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of rasterizing one page.

    Either ``image_url`` and ``file`` are both set, or ``error`` is.
    """

    image_url: str = ""
    file: DerivedFile | None = None
    error: str | None = None

    @classmethod
    def failure(cls, message: str) -> ConversionResult:
        return cls(image_url="", file=None, error=message)

    @property
    def ok(self) -> bool:
        return self.error is None and self.file is not None and bool(self.image_url)


@dataclass(frozen=True)
class ExtractionFailure:
    """Text extraction error converted into a value by the coordinator."""

    code: str
    message: str
    status_code: int = 500


@dataclass
class PipelineOutcome:
    """Both pipeline results; the preview reference must be released."""

    image: ConversionResult
    text: str | None = None
    text_error: ExtractionFailure | None = None

    @property
    def has_text(self) -> bool:
        return self.text_error is None and self.text is not None

    def release(self, store: PreviewStore | None = None) -> bool:
        """Revoke the preview reference. Safe to call more than once."""
        if not self.image.image_url:
            return False
        return cleanup_preview(self.image.image_url, store)
