"""Shared fixtures for resume-review backend tests."""

import os
import sys
import tempfile

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Keep stored uploads out of the working tree
os.environ.setdefault("STORAGE_DIR", tempfile.mkdtemp(prefix="resume_review_test_"))

import pytest

from resume_review.config import Settings
from resume_review.ingestion.engine import reset_engine
from resume_review.ingestion.previews import PreviewStore, get_preview_store
from resume_review.main import app
from resume_review.routes import review as review_route


@pytest.fixture(autouse=True)
def _disable_rate_limiter():
    """Disable slowapi rate limiting for all tests."""
    app.state.limiter.enabled = False
    review_route.limiter.enabled = False
    yield
    app.state.limiter.enabled = True
    review_route.limiter.enabled = True


@pytest.fixture(autouse=True)
def _reset_engine():
    """Every test starts with an unloaded PDF engine."""
    reset_engine()
    yield
    reset_engine()


@pytest.fixture(autouse=True)
def _clear_caches():
    """Clear in-memory caches between tests to prevent interference."""
    from resume_review.services.analyzer import _feedback_cache
    _feedback_cache.clear()
    get_preview_store().clear()
    yield
    _feedback_cache.clear()
    get_preview_store().clear()


@pytest.fixture()
def settings():
    """Default settings, isolated from the process-wide singleton."""
    return Settings()


@pytest.fixture()
def store():
    return PreviewStore(max_items=10)
