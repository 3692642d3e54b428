"""Central LLM client — OpenAI primary, Gemini fallback.

All calls are async and return parsed JSON. The OpenAI client comes from
``langfuse.openai`` so every call is traced when Langfuse keys are set.
Transient network failures are retried via tenacity.
"""

import asyncio
import json

import httpx
import openai as openai_errors
from langfuse.openai import AsyncOpenAI
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from resume_review.config import load_settings
from resume_review.core.constants import MAX_OPENAI_FAILURES
from resume_review.core.logger import logger

# Transient errors worth retrying
_RETRYABLE = (httpx.TimeoutException, httpx.ConnectError, openai_errors.APITimeoutError)


def _build_messages(prompt: str, system_prompt: str) -> list[dict]:
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": prompt})
    return messages


class LLMClient:
    """OpenAI primary, Gemini fallback.

    After MAX_OPENAI_FAILURES consecutive OpenAI errors, calls go straight
    to Gemini until one succeeds.
    """

    def __init__(self):
        settings = load_settings()
        self.openai_client = AsyncOpenAI(api_key=settings.openai_api_key) if settings.openai_api_key else None
        self.gemini_available = bool(settings.google_ai_api_key)
        self._gemini_api_key = settings.google_ai_api_key
        self._gemini_model = settings.gemini_model
        self.model = settings.llm_model
        self.openai_failures = 0

    async def call_json(
        self,
        prompt: str,
        system_prompt: str = "",
        temperature: float = 0.2,
        max_tokens: int = 2000,
        name: str | None = None,
    ) -> dict | None:
        """Make an LLM call that returns a JSON object, or None if every provider failed."""
        if self.openai_client and self.openai_failures < MAX_OPENAI_FAILURES:
            try:
                result = await self._openai_json(prompt, system_prompt, temperature, max_tokens, name)
                self.openai_failures = 0
                return result
            except (openai_errors.APIError, httpx.HTTPError, ValueError) as e:
                self.openai_failures += 1
                logger.warning(f"OpenAI JSON failed ({self.openai_failures}x): {e}")

        if self.gemini_available:
            try:
                result = await self._gemini_json(prompt, system_prompt)
                self.openai_failures = 0
                return result
            except (httpx.HTTPError, ValueError, RuntimeError) as e:
                logger.warning(f"Gemini JSON fallback failed: {e}")

        logger.error("All LLM providers failed for JSON call.")
        return None

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(min=1, max=5),
        retry=retry_if_exception_type(_RETRYABLE),
    )
    async def _openai_json(
        self,
        prompt: str,
        system_prompt: str,
        temperature: float,
        max_tokens: int,
        name: str | None,
    ) -> dict:
        kwargs = dict(
            model=self.model,
            messages=_build_messages(prompt, system_prompt),
            temperature=temperature,
            max_tokens=max_tokens,
            response_format={"type": "json_object"},
        )
        if name:
            kwargs["name"] = name

        response = await self.openai_client.chat.completions.create(**kwargs)
        if not response.choices:
            raise ValueError("LLM returned no choices")

        content = response.choices[0].message.content or ""
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            # ValueError subclass: counted as a provider failure by call_json
            logger.error(f"LLM returned invalid JSON: {e}\nContent: {content[:200]}")
            raise

    async def _gemini_json(self, prompt: str, system_prompt: str) -> dict:
        """Fallback to Google Gemini in JSON mode."""
        import google.generativeai as genai

        genai.configure(api_key=self._gemini_api_key)
        model = genai.GenerativeModel(
            self._gemini_model,
            generation_config={"response_mime_type": "application/json"},
        )

        full_prompt = f"{system_prompt}\n\n{prompt}" if system_prompt else prompt
        response = await model.generate_content_async(full_prompt)
        return json.loads(response.text)


_client: LLMClient | None = None
_lock = asyncio.Lock()


async def get_llm_client() -> LLMClient:
    """Get or create the singleton LLM client."""
    global _client
    if _client is None:
        async with _lock:
            if _client is None:
                _client = LLMClient()
    return _client
