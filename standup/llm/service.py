"""
Summary service: renders the standup prompt and runs the provider's retry
ladder over it.
"""

from pathlib import Path

from structlog import get_logger

from standup.cli.console import Console
from standup.core.config import settings
from standup.core.errors import ConfigurationError
from standup.llm.client import build_transport
from standup.llm.ladder import LADDERS, Sleep, Transport
from standup.llm.prompts import DEFAULT_BLOCKER, load_prompt_template, render_prompt
from standup.models.config import LLMProvider, StandupConfig
from standup.models.tickets import AggregateResult

logger = get_logger()


def require_api_key(config: StandupConfig) -> str:
    """Return the selected provider's key or raise ConfigurationError."""
    provider = config.llm_provider
    api_key = config.api_key_for(provider)
    if not api_key:
        name = "ChatGPT" if provider is LLMProvider.CHATGPT else "Gemini"
        raise ConfigurationError(
            f"{name} API key is not configured",
            hint="Run 'git-standup --setup' or 'git-standup --switch-llm' to configure it.",
        )
    return api_key


async def summarize_with_llm(
    result: AggregateResult,
    config: StandupConfig,
    console: Console,
    blocker_text: str = DEFAULT_BLOCKER,
    transport: Transport | None = None,
    template_path: Path | None = None,
    sleep: Sleep | None = None,
) -> str:
    """Generate the standup text for an aggregated run.

    Raises:
        ConfigurationError: If the provider's API key is missing.
        LLMError: If the ladder aborts or is exhausted.
    """
    provider = config.llm_provider
    api_key = require_api_key(config)

    console.print("📊 Data Summary:")
    console.print(f"   - Projects: {len(result.bundles)}")
    console.print(f"   - Total Commits: {result.total_commits}")
    console.print(f"   - Total Active Tickets: {result.total_active_tickets}")
    console.print(f"   - Blocker: {blocker_text}")
    console.print()
    console.print(f"🤖 Using LLM Provider: {provider.value.upper()}")
    console.print("🤖 Generating AI summary...")
    console.print()

    template = load_prompt_template(
        template_path or settings.prompt_path, on_warning=console.warn
    )
    prompt = render_prompt(template, result.bundles, blocker_text)
    logger.info("prompt_rendered", provider=provider.value, length=len(prompt))

    ladder = LADDERS[provider.value]
    transport = transport or build_transport(provider, api_key)
    kwargs = {"sleep": sleep} if sleep is not None else {}
    return await ladder.run(transport, prompt, on_event=console.print, **kwargs)


def display_summary(console: Console, summary: str, provider: LLMProvider) -> None:
    console.print()
    console.rule()
    console.print(f"🤖 {provider.value.upper()} Summary")
    console.rule()
    console.print(summary)
    console.rule()
    console.print()
