"""Generative-text client – Anthropic messages API.

Any Anthropic-compatible endpoint works; point LLM_BASE_URL at it and set
LLM_MODEL. An empty LLM_API_KEY means the client is not configured, which
callers treat as an infrastructure failure rather than a bad response.
"""

import asyncio
import logging
from typing import Optional

from anthropic import AsyncAnthropic

from app.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# Respect provider rate limits
_semaphore = asyncio.Semaphore(settings.LLM_MAX_CONCURRENCY)

_client: Optional[AsyncAnthropic] = None


class LLMNotConfiguredError(RuntimeError):
    """Raised when no API key is configured for the generative API."""


def get_client() -> AsyncAnthropic:
    global _client
    if not settings.llm_configured:
        raise LLMNotConfiguredError("LLM_API_KEY not configured")
    if _client is None:
        _client = AsyncAnthropic(
            api_key=settings.LLM_API_KEY,
            base_url=settings.LLM_BASE_URL,
            timeout=settings.LLM_TIMEOUT_SECONDS,
            max_retries=0,
        )
    return _client


def _split_messages(
    messages: list[dict[str, str]],
) -> tuple[Optional[str], list[dict[str, str]]]:
    """Extract leading system message for the Anthropic API's `system` parameter."""
    if messages and messages[0]["role"] == "system":
        return messages[0]["content"], messages[1:]
    return None, messages


async def chat_complete(
    messages: list[dict[str, str]],
    model: Optional[str] = None,
    temperature: float = 0.7,
    max_tokens: int = 2048,
    retries: int = 1,
    timeout: Optional[float] = None,
) -> tuple[str, int, int]:
    """
    Call the generative API with rate limiting, a bounded timeout and optional retry.

    Returns:
        (content, prompt_tokens, completion_tokens)
    """
    client = get_client()
    model = model or settings.LLM_MODEL
    timeout = timeout or settings.LLM_TIMEOUT_SECONDS

    system, user_messages = _split_messages(messages)

    kwargs = {
        "model": model,
        "messages": user_messages,
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    if system:
        kwargs["system"] = system

    last_exc: Optional[Exception] = None
    for attempt in range(retries):
        try:
            async with _semaphore:
                response = await asyncio.wait_for(
                    client.messages.create(**kwargs), timeout=timeout
                )
            content = response.content[0].text if response.content else ""
            input_tokens = response.usage.input_tokens if response.usage else 0
            output_tokens = response.usage.output_tokens if response.usage else 0
            return content, input_tokens, output_tokens
        except Exception as exc:
            logger.warning("LLM API error (attempt %d/%d): %s", attempt + 1, retries, exc)
            last_exc = exc
            if attempt < retries - 1:
                await asyncio.sleep(2**attempt)

    raise RuntimeError(f"LLM API failed after {retries} attempt(s): {last_exc}")
