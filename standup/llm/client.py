"""
LLM transports: one request to one model, returning the generated text or
None. Retrying is the ladder's job, so SDK-level retries are turned off.
"""

from google.genai import Client as GoogleGenaiClient
from google.genai.types import GenerateContentResponse, HttpOptions
from openai import AsyncOpenAI
from structlog import get_logger

from standup.core.config import settings
from standup.models.config import LLMProvider

logger = get_logger()


class OpenAITransport:
    """Chat-completions transport for ChatGPT models."""

    def __init__(self, api_key: str, client: AsyncOpenAI | None = None):
        self._client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=settings.OPENAI_BASE_URL,
            max_retries=0,
        )

    async def generate(self, model: str, prompt: str) -> str | None:
        logger.info("llm_call_start", provider="chatgpt", model=model, prompt_len=len(prompt))

        response = await self._client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            temperature=0.7,
        )

        usage = getattr(response, "usage", None)
        logger.info(
            "llm_call_complete",
            provider="chatgpt",
            model=model,
            tokens_prompt=usage.prompt_tokens if usage else None,
            tokens_completion=usage.completion_tokens if usage else None,
        )
        return _chat_completion_text(response)


class GeminiTransport:
    """generateContent transport for Gemini models."""

    def __init__(self, api_key: str, client: GoogleGenaiClient | None = None):
        self._client = client or GoogleGenaiClient(
            api_key=api_key,
            http_options=HttpOptions(api_version="v1beta"),
        )

    async def generate(self, model: str, prompt: str) -> str | None:
        logger.info("llm_call_start", provider="gemini", model=model, prompt_len=len(prompt))

        response: GenerateContentResponse = await self._client.aio.models.generate_content(
            model=model,
            contents=prompt,
        )

        logger.info("llm_call_complete", provider="gemini", model=model)
        return _first_candidate_text(response)


def build_transport(provider: LLMProvider, api_key: str) -> OpenAITransport | GeminiTransport:
    if provider is LLMProvider.CHATGPT:
        return OpenAITransport(api_key)
    return GeminiTransport(api_key)


def _chat_completion_text(response) -> str | None:
    """choices[0].message.content, or None anywhere along the path."""
    choices = getattr(response, "choices", None) or []
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    return content or None


def _first_candidate_text(response) -> str | None:
    """candidates[0].content.parts[0].text, or None anywhere along the path."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    if not parts:
        return None
    return getattr(parts[0], "text", None) or None
