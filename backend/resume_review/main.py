"""Resume Review API — PDF resume in, preview + extracted text + AI feedback out.

Run: uvicorn resume_review.main:app --reload --port 8002
Docs: http://localhost:8002/docs
"""

import traceback
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from resume_review.config import load_settings  # noqa: E402
from resume_review.core.logger import logger  # noqa: E402
from resume_review.ingestion.engine import reset_engine  # noqa: E402
from resume_review.middleware import RequestIdMiddleware, request_id_var  # noqa: E402
from resume_review.routes import health, review  # noqa: E402

settings = load_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Stop the PDF engine worker thread
    reset_engine()


# Rate limiter
limiter = Limiter(key_func=get_remote_address)

app = FastAPI(
    title="Resume Review API",
    version="1.0.0",
    description="Renders a preview, extracts text and reviews PDF resumes against a job description.",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

ALLOWED_ORIGINS = settings.allowed_origins.split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)

# Request ID middleware (runs after CORS, before route handlers)
app.add_middleware(RequestIdMiddleware)


# ── Global exception handlers ────────────────────────────────────────


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    rid = request_id_var.get("-")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "request_id": rid},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    rid = request_id_var.get("-")
    logger.error(f"Unhandled exception [{rid}]: {exc}\n{traceback.format_exc()}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "request_id": rid},
    )


output_dir = Path(settings.storage_dir).resolve()
output_dir.mkdir(parents=True, exist_ok=True)
app.mount("/output", StaticFiles(directory=str(output_dir)), name="output")

app.include_router(health.router)
app.include_router(review.router)
