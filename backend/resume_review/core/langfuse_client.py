"""Langfuse prompt management + tracing.

Prompts are fetched by name at runtime and compiled with template
variables. When keys are missing or Langfuse is unreachable,
``get_prompt_messages`` returns None and callers use the embedded
fallback prompts instead.

Env vars: LANGFUSE_PUBLIC_KEY, LANGFUSE_SECRET_KEY, LANGFUSE_HOST
"""

import threading

from langfuse import Langfuse, observe

from resume_review.config import load_settings
from resume_review.core.logger import logger

__all__ = ["observe", "get_prompt_messages", "flush"]

_client: Langfuse | None = None
_initialized = False
_lock = threading.Lock()


def _get_client() -> Langfuse | None:
    """Get or create the Langfuse client singleton. Returns None if not configured."""
    global _client, _initialized

    if _initialized:
        return _client

    with _lock:
        if _initialized:
            return _client

        _initialized = True
        settings = load_settings()

        if not settings.langfuse_public_key or not settings.langfuse_secret_key:
            logger.info("Langfuse: no keys configured — using embedded prompts")
            return None

        try:
            _client = Langfuse(
                public_key=settings.langfuse_public_key,
                secret_key=settings.langfuse_secret_key,
                host=settings.langfuse_host,
            )
            logger.info("Langfuse: client initialized")
        except (ValueError, TypeError, RuntimeError) as e:
            logger.warning(f"Langfuse: failed to initialize client: {e}")
            _client = None
        return _client


def get_prompt_messages(prompt_name: str, variables: dict) -> tuple[str, str, dict] | None:
    """Fetch a chat prompt and compile it.

    Returns:
        (system_content, user_content, config_dict) or None if unavailable.
    """
    client = _get_client()
    if not client:
        return None

    try:
        prompt = client.get_prompt(prompt_name, type="chat", cache_ttl_seconds=300)
        messages = prompt.compile(**variables)
    except (ValueError, KeyError, TypeError, RuntimeError) as e:
        logger.warning(f"Langfuse: failed to fetch prompt '{prompt_name}': {e}")
        return None

    by_role = {msg.get("role", ""): msg.get("content", "") for msg in messages}
    logger.debug(f"Langfuse: fetched prompt '{prompt_name}' (v{prompt.version})")
    return by_role.get("system", ""), by_role.get("user", ""), prompt.config or {}


def flush() -> None:
    """Flush pending Langfuse traces at the end of a request."""
    client = _get_client()
    if not client:
        return
    try:
        client.flush()
        logger.debug("Langfuse: traces flushed")
    except (RuntimeError, OSError) as e:
        logger.warning(f"Langfuse: flush failed: {e}")
