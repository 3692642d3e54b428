"""LLM review of extracted resume text against a job description.

Fetches prompt from Langfuse ("resume-review-analyze") at runtime, with the
embedded fallback when Langfuse is unavailable.
"""

import hashlib

from pydantic import ValidationError

from resume_review.core.constants import JD_TRUNCATE_LENGTH, RESUME_TRUNCATE_LENGTH
from resume_review.core.fallback_prompts import FALLBACK_PROMPTS
from resume_review.core.langfuse_client import get_prompt_messages, observe
from resume_review.core.llm import get_llm_client
from resume_review.core.logger import logger
from resume_review.models import ResumeFeedback

PROMPT_NAME = "resume-review-analyze"

# In-memory cache: SHA-256(resume + JD + title + company) → ResumeFeedback
_feedback_cache: dict[str, ResumeFeedback] = {}
_MAX_CACHE = 50


def _review_hash(*parts: str) -> str:
    return hashlib.sha256("|".join(parts).encode()).hexdigest()


@observe(name=PROMPT_NAME)
async def analyze_resume(
    resume_text: str,
    job_description: str,
    job_title: str = "",
    company_name: str = "",
) -> ResumeFeedback | None:
    """Ask the LLM for structured feedback on a resume.

    Results are cached by content hash. Returns None if the LLM call fails
    or its output does not match ResumeFeedback.
    """
    content_hash = _review_hash(resume_text, job_description, job_title, company_name)
    if content_hash in _feedback_cache:
        logger.info(f"Review cache HIT (hash={content_hash[:8]}...)")
        return _feedback_cache[content_hash]

    template_vars = {
        "resume_text": resume_text[:RESUME_TRUNCATE_LENGTH],
        "job_description": job_description[:JD_TRUNCATE_LENGTH],
        "job_title": job_title or "not specified",
        "company_name": company_name or "not specified",
    }

    langfuse_result = get_prompt_messages(PROMPT_NAME, template_vars)
    if langfuse_result:
        system_prompt, user_prompt, config = langfuse_result
        config = config or FALLBACK_PROMPTS[PROMPT_NAME]["config"]
    else:
        fb = FALLBACK_PROMPTS[PROMPT_NAME]
        system_prompt = fb["system"]
        user_prompt = fb["user"].format(**template_vars)
        config = fb["config"]
        logger.warning(f"Langfuse unavailable — using embedded fallback for {PROMPT_NAME}")

    llm = await get_llm_client()
    result = await llm.call_json(
        prompt=user_prompt,
        system_prompt=system_prompt,
        temperature=config.get("temperature", 0.2),
        max_tokens=config.get("max_tokens", 2500),
        name="resume-review",
    )

    if not result:
        logger.warning("Resume review returned no result")
        return None

    try:
        feedback = ResumeFeedback.model_validate(result)
    except ValidationError as e:
        logger.warning(f"Failed to parse review result: {e}")
        return None

    if len(_feedback_cache) >= _MAX_CACHE:
        oldest_key = next(iter(_feedback_cache))
        del _feedback_cache[oldest_key]
    _feedback_cache[content_hash] = feedback
    return feedback
