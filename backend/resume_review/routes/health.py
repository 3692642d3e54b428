"""Health check endpoint."""

import time

from fastapi import APIRouter

from resume_review.ingestion.engine import engine_status

router = APIRouter(tags=["System"])

_start_time = time.monotonic()


@router.get("/api/health")
async def health():
    return {
        "status": "ok",
        "service": "resume-review",
        "version": "1.0.0",
        "pdf_engine": engine_status(),
        "uptime_seconds": round(time.monotonic() - _start_time),
    }
