"""Resume endpoints — PDF upload in, preview + text + AI review out."""

import mimetypes
import time

from fastapi import APIRouter, File, Form, HTTPException, Request, Response, UploadFile
from slowapi import Limiter
from slowapi.util import get_remote_address

from resume_review.core.constants import (
    IMAGE_BUCKET,
    MAX_UPLOAD_SIZE,
    MIN_JD_LENGTH,
    MIN_RESUME_TEXT_LENGTH,
    RATE_LIMIT_PER_MINUTE,
    RESUME_BUCKET,
)
from resume_review.core.langfuse_client import flush
from resume_review.core.logger import logger
from resume_review.ingestion.coordinator import process_document
from resume_review.ingestion.previews import get_preview_store
from resume_review.ingestion.types import PipelineOutcome, SourceDocument
from resume_review.models import AnalyzeResponse, IngestResponse
from resume_review.services.analyzer import analyze_resume
from resume_review.services.storage import get_storage

router = APIRouter(prefix="/api", tags=["Review"])
limiter = Limiter(key_func=get_remote_address)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _read_upload(resume_file: UploadFile) -> SourceDocument:
    """Read the upload into a SourceDocument.

    Only size and emptiness are checked here; the media type is checked by
    the pipeline so unsupported files get the pipeline's 415 message.
    """
    raw_bytes = await resume_file.read()
    if len(raw_bytes) > MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=413,
            detail=f"File too large (max {MAX_UPLOAD_SIZE // (1024 * 1024)}MB) — try a smaller file",
        )
    if not raw_bytes:
        raise HTTPException(status_code=400, detail="The uploaded file is empty")

    filename = resume_file.filename or "resume.pdf"
    media_type = resume_file.content_type or ""
    if media_type in ("", "application/octet-stream"):
        # Some clients send no type; fall back to the extension
        media_type = mimetypes.guess_type(filename)[0] or media_type

    return SourceDocument(data=raw_bytes, media_type=media_type, filename=filename)


def _require_text(outcome: PipelineOutcome) -> str:
    """Return the extracted text or raise the matching HTTP error."""
    if not outcome.has_text:
        failure = outcome.text_error
        raise HTTPException(status_code=failure.status_code, detail=failure.message)
    return outcome.text


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/ingest", response_model=IngestResponse)
@limiter.limit(f"{RATE_LIMIT_PER_MINUTE}/minute")
async def ingest_resume(
    request: Request,
    resume_file: UploadFile = File(...),
):
    """Render a preview and extract text from an uploaded PDF.

    The preview stays available at ``preview_url`` until the client sends
    DELETE to it.
    """
    start = time.time()
    document = await _read_upload(resume_file)
    logger.info(f"Ingesting '{document.filename}' ({document.size} bytes)")

    outcome = await process_document(document)
    try:
        text = _require_text(outcome)
    except HTTPException:
        outcome.release()
        raise

    image = outcome.image
    return IngestResponse(
        filename=document.filename,
        text=text,
        text_length=len(text),
        preview_url=image.image_url,
        preview_name=image.file.name if image.file else "",
        preview_size=image.file.size if image.file else 0,
        preview_error=image.error,
        processing_time_ms=int((time.time() - start) * 1000),
    )


@router.post("/analyze", response_model=AnalyzeResponse)
@limiter.limit(f"{RATE_LIMIT_PER_MINUTE}/minute")
async def analyze_uploaded_resume(
    request: Request,
    job_description: str = Form(..., min_length=MIN_JD_LENGTH),
    job_title: str = Form(default=""),
    company_name: str = Form(default=""),
    resume_file: UploadFile = File(...),
):
    """Full workflow: ingest, store the PDF and preview, review with the LLM.

    A missing preview is tolerated; missing or insufficient text is not.
    """
    start = time.time()
    document = await _read_upload(resume_file)
    logger.info(f"Analyzing resume for: {company_name or 'unknown'} / {job_title or 'unknown'}")

    outcome = await process_document(document)
    try:
        text = _require_text(outcome)
        if len(text) < MIN_RESUME_TEXT_LENGTH:
            raise HTTPException(
                status_code=422,
                detail=(
                    "Could not extract enough text from this PDF. Scanned or image-only "
                    "resumes are not supported — please upload a text-based PDF."
                ),
            )

        storage = get_storage()
        try:
            resume_path = await storage.upload(RESUME_BUCKET, document.filename, document.data)
            image_path = None
            if outcome.image.ok:
                image_file = outcome.image.file
                image_path = await storage.upload(IMAGE_BUCKET, image_file.name, image_file.data)
        except OSError as e:
            logger.error(f"Storage upload failed: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail="Failed to store the uploaded file")

        feedback = await analyze_resume(text, job_description, job_title, company_name)
        if not feedback:
            raise HTTPException(status_code=502, detail="AI analysis failed — please try again")
    finally:
        # Preview is persisted or discarded by now
        outcome.release()
        flush()

    elapsed_ms = int((time.time() - start) * 1000)
    logger.info(f"Review complete in {elapsed_ms}ms: score={feedback.overall_score}")

    return AnalyzeResponse(
        resume_path=resume_path,
        image_path=image_path,
        preview_error=outcome.image.error,
        company_name=company_name,
        job_title=job_title,
        text_length=len(text),
        feedback=feedback,
        processing_time_ms=elapsed_ms,
    )


@router.get("/previews/{token}")
async def get_preview(token: str):
    """Serve a live preview image."""
    item = get_preview_store().resolve(token)
    if item is None:
        raise HTTPException(status_code=404, detail="Preview not found or already released")
    data, media_type = item
    return Response(content=data, media_type=media_type, headers={"Cache-Control": "no-store"})


@router.delete("/previews/{token}")
async def release_preview(token: str):
    """Release a preview. Releasing twice is harmless."""
    return {"revoked": get_preview_store().revoke(token)}
