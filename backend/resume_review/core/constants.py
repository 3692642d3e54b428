"""Centralized constants — no magic numbers in service code."""

# Upload limits
MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10 MB
MIN_JD_LENGTH = 50  # chars — minimum job description length
MIN_RESUME_TEXT_LENGTH = 50  # chars — below this the analysis is meaningless

# Media types
PDF_MEDIA_TYPE = "application/pdf"
IMAGE_MEDIA_TYPES = {"jpeg": "image/jpeg", "png": "image/png"}
IMAGE_EXTENSIONS = {"jpeg": ".jpg", "png": ".png"}

# PDF engine
DEFAULT_PDF_ENGINE_MODULE = "pypdfium2"
DEFAULT_PDF_ENGINE_WORKERS = 1  # PDFium is not thread-safe
DEFAULT_PDF_ENGINE_THREAD_NAME = "pdf-engine"

# Preview rendering
DEFAULT_PREVIEW_SCALE = 1.0  # 72 DPI; 1 point == 1 pixel
DEFAULT_PREVIEW_FORMAT = "jpeg"
DEFAULT_PREVIEW_QUALITY = 0.8
MAX_SURFACE_PIXELS = 25_000_000  # ~ A4 at scale 6
PREVIEW_URL_PREFIX = "/api/previews/"
MAX_PREVIEWS = 100

# Timeouts (seconds)
PDF_LOAD_TIMEOUT = 10.0
PDF_RENDER_TIMEOUT = 15.0
TEXT_EXTRACT_TIMEOUT = 20.0

# Text extraction
EXTRACT_CHUNK_SIZE = 3  # pages per concurrent group
EXTRACT_CHUNK_PAUSE = 0.01  # seconds yielded to the event loop between groups

# Truncation
RESUME_TRUNCATE_LENGTH = 12_000  # chars sent to LLM for review
JD_TRUNCATE_LENGTH = 4_000  # chars sent to LLM for review

# LLM
DEFAULT_LLM_MODEL = "gpt-4o-mini"
GEMINI_MODEL = "gemini-2.0-flash"
MAX_OPENAI_FAILURES = 5

# Storage buckets
RESUME_BUCKET = "resumes"
IMAGE_BUCKET = "images"

# Rate limiting
RATE_LIMIT_PER_MINUTE = 10

# Filename
FILENAME_MAX_SLUG_LENGTH = 80
