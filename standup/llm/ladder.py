"""
Retry ladder: a fixed sequence of (model, attempt) rungs tried in order
until one returns text.

The runner is provider-agnostic: each provider supplies its rungs, an error
classifier and a delay. The classifier maps a failure to one of three
verdicts:

- ABORT: quota/billing exhausted, bad credentials, rate limited. Stop the
  whole ladder at once and raise LadderAbortedError.
- FALLBACK: the model itself is unknown/unavailable. Skip the remaining
  consecutive rungs for that model and go to the next distinct one.
- RETRY: anything else (network, 5xx, timeouts). Wait, then next rung.

An empty response is treated as a RETRY-class failure without an exception.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from structlog import get_logger

from standup.core.errors import LadderAbortedError, LadderExhaustedError

logger = get_logger()


class Verdict(str, Enum):
    ABORT = "abort"
    FALLBACK = "fallback"
    RETRY = "retry"


@dataclass(frozen=True)
class Rung:
    model: str
    attempt: int
    label: str = ""

    def describe(self) -> str:
        return self.label or f"model: {self.model} (Attempt {self.attempt})"


@dataclass(frozen=True)
class ErrorDetail:
    """The parts of a provider exception the classifier looks at."""

    message: str
    codes: tuple[str, ...] = ()
    status_message: str | None = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorDetail":
        """Read message/code/status off SDK exceptions without importing them.

        openai.APIStatusError carries .message, .code and .status_code;
        google.genai.errors.APIError carries .message, .status and .code.
        """
        message = getattr(exc, "message", None) or str(exc) or type(exc).__name__
        codes = []
        for attr in ("code", "status", "type"):
            value = getattr(exc, attr, None)
            if isinstance(value, str) and value:
                codes.append(value.lower())
        status_message = None
        status_code = getattr(exc, "status_code", None)
        if status_code is None and isinstance(getattr(exc, "code", None), int):
            status_code = exc.code
        status_text = getattr(exc, "status", None)
        if status_code is not None:
            status_message = str(status_code)
            if isinstance(status_text, str) and status_text:
                status_message += f" {status_text}"
        return cls(message=str(message), codes=tuple(codes), status_message=status_message)


@dataclass(frozen=True)
class ErrorClassifier:
    """Case-insensitive substring / structured-code classification.

    Rules are checked in order: quota, auth, rate limit (all ABORT), then
    model (FALLBACK). Anything unmatched is RETRY.
    """

    quota_terms: tuple[str, ...] = ("quota", "billing")
    quota_codes: tuple[str, ...] = ("insufficient_quota",)
    auth_terms: tuple[str, ...] = ("invalid api key", "unauthorized", "authentication")
    auth_codes: tuple[str, ...] = ("invalid_api_key",)
    rate_limit_terms: tuple[str, ...] = ("rate limit",)
    rate_limit_codes: tuple[str, ...] = ("rate_limit_exceeded",)
    model_terms: tuple[str, ...] = ("model",)
    model_codes: tuple[str, ...] = ("model_not_found",)

    def category(self, detail: ErrorDetail) -> str | None:
        message = detail.message.lower()
        codes = set(detail.codes)

        def hit(terms: tuple[str, ...], known_codes: tuple[str, ...]) -> bool:
            return any(t in message for t in terms) or bool(codes & set(known_codes))

        if hit(self.quota_terms, self.quota_codes):
            return "quota"
        if hit(self.auth_terms, self.auth_codes):
            return "auth"
        if hit(self.rate_limit_terms, self.rate_limit_codes):
            return "rate_limit"
        if hit(self.model_terms, self.model_codes):
            return "model"
        return None

    def classify(self, detail: ErrorDetail) -> Verdict:
        category = self.category(detail)
        if category in ("quota", "auth", "rate_limit"):
            return Verdict.ABORT
        if category == "model":
            return Verdict.FALLBACK
        return Verdict.RETRY


class Transport(Protocol):
    """Anything that can send one prompt to one model."""

    async def generate(self, model: str, prompt: str) -> str | None: ...


Sleep = Callable[[float], Awaitable[None]]


@dataclass
class RetryLadder:
    provider: str
    rungs: list[Rung]
    classifier: ErrorClassifier = field(default_factory=ErrorClassifier)
    delay: float = 0.5

    @property
    def display_name(self) -> str:
        return {"gemini": "Gemini", "chatgpt": "ChatGPT"}.get(self.provider, self.provider)

    async def run(
        self,
        transport: Transport,
        prompt: str,
        sleep: Sleep = asyncio.sleep,
        on_event: Callable[[str], None] | None = None,
    ) -> str:
        """Try the rungs in order and return the first non-empty text.

        Args:
            transport: Provider transport; exceptions it raises are classified.
            prompt: Fully rendered prompt.
            sleep: Delay function between rungs.
            on_event: Receives short human-readable progress lines.

        Raises:
            LadderAbortedError: On a non-retryable error (after one attempt).
            LadderExhaustedError: If no rung produced text.
        """
        notify = on_event or (lambda _msg: None)
        total = len(self.rungs)
        last_error: ErrorDetail | None = None
        skip_model: str | None = None
        attempts = 0

        for index, rung in enumerate(self.rungs):
            is_last = index == total - 1

            if skip_model is not None and rung.model == skip_model:
                logger.info("ladder_rung_skipped", provider=self.provider, model=rung.model)
                continue
            skip_model = None

            if attempts > 0:
                notify(f"🔄 Retrying with {rung.describe()}...")

            attempts += 1
            logger.info(
                "ladder_attempt",
                provider=self.provider,
                rung=index + 1,
                model=rung.model,
                attempt=rung.attempt,
            )

            try:
                text = await transport.generate(rung.model, prompt)
            except Exception as e:
                detail = ErrorDetail.from_exception(e)
                verdict = self.classifier.classify(detail)
                logger.warning(
                    "ladder_attempt_failed",
                    provider=self.provider,
                    model=rung.model,
                    verdict=verdict.value,
                    error=detail.message,
                )
                if verdict is Verdict.ABORT:
                    raise LadderAbortedError(
                        f"{self.display_name} API error: {detail.message}",
                        category=self.classifier.category(detail) or "unknown",
                        attempts=attempts,
                    ) from e

                last_error = detail
                notify(f"⚠️  Attempt {index + 1} failed with {rung.model}: {detail.message}")
                if verdict is Verdict.FALLBACK:
                    skip_model = rung.model
                if not is_last:
                    await sleep(self.delay)
                continue

            if text:
                if attempts > 1:
                    notify(f"✅ Successfully generated summary with {rung.model}")
                logger.info("ladder_success", provider=self.provider, model=rung.model)
                return text

            logger.warning("ladder_empty_response", provider=self.provider, model=rung.model)
            notify(f"⚠️  Attempt {index + 1} with {rung.model} returned no text")
            if not is_last:
                await sleep(self.delay)

        raise LadderExhaustedError(
            self._exhausted_message(last_error, attempts), attempts=attempts
        )

    def _exhausted_message(self, last_error: ErrorDetail | None, attempts: int) -> str:
        """Skipped rungs are not counted as attempts."""
        if last_error is None:
            return "Failed to generate AI summary: No response received"
        if last_error.status_message:
            return (
                f"{self.display_name} API error after {attempts} attempts: "
                f"{last_error.status_message} - {last_error.message}"
            )
        return f"Failed to generate AI summary after {attempts} attempts: {last_error.message}"


# ── Provider ladders ────────────────────────────────────

GEMINI_LADDER = RetryLadder(
    provider="gemini",
    rungs=[
        Rung("gemini-2.5-pro", 1),
        Rung("gemini-2.5-pro", 2),
        Rung("gemini-2.5-flash", 1),
        Rung("gemini-2.5-flash", 2),
        Rung("gemini-2.5-pro", 3),
    ],
    classifier=ErrorClassifier(
        quota_codes=("insufficient_quota", "resource_exhausted"),
        auth_terms=("invalid api key", "api key not valid", "unauthorized", "authentication"),
        auth_codes=("unauthenticated",),
    ),
    delay=0.5,
)

CHATGPT_LADDER = RetryLadder(
    provider="chatgpt",
    rungs=[
        Rung("gpt-4o-mini", 1, "GPT-4o Mini (Cost-effective)"),
        Rung("gpt-4o-mini", 2, "GPT-4o Mini (Retry)"),
        Rung("gpt-3.5-turbo", 1, "GPT-3.5 Turbo (Fallback)"),
        Rung("gpt-3.5-turbo", 2, "GPT-3.5 Turbo (Retry)"),
        Rung("gpt-4o-mini", 3, "GPT-4o Mini (Final attempt)"),
    ],
    classifier=ErrorClassifier(),
    delay=1.0,
)

LADDERS = {
    "gemini": GEMINI_LADDER,
    "chatgpt": CHATGPT_LADDER,
}
