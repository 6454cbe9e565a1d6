"""Interactive CLI commands: setup wizard, project management, provider switch,
and the standalone active-ticket listing."""

from __future__ import annotations

import textwrap
from datetime import datetime, timezone
from pathlib import Path

from structlog import get_logger

from standup.cli.console import Console
from standup.core.config import load_config, save_config, settings
from standup.core.errors import ConfigurationError, TrackerError
from standup.llm.prompts import create_default_prompt_file
from standup.models.config import (
    JiraCredentials,
    LLMProvider,
    Project,
    StandupConfig,
    ZohoCredentials,
)
from standup.trackers.fetcher import list_active_tickets

logger = get_logger()

PROVIDER_CHOICES = ("1", "2")
DESCRIPTION_INDENT = " " * 9
DESCRIPTION_WIDTH = 80


def require_config(config_path: Path | None = None) -> StandupConfig:
    config = load_config(config_path)
    if config is None:
        raise ConfigurationError(
            "No configuration found. Please run initial setup first.",
            hint="Run: git-standup --setup",
        )
    return config


def prompt_path_for(config_path: Path | None = None) -> Path:
    """The prompt template lives beside the config file."""
    if config_path is None:
        return settings.prompt_path
    return config_path.parent / settings.PROMPT_FILE_NAME


def persist(console: Console, config: StandupConfig, config_path: Path | None = None) -> None:
    """Save the config, then make sure a prompt template exists beside it."""
    save_config(config, config_path)
    console.success("Configuration saved successfully!")
    prompt_path = prompt_path_for(config_path)
    if create_default_prompt_file(prompt_path):
        console.success(f"Created custom prompt template at: {prompt_path}")
        console.info("You can edit this file to customize the AI prompt")


# ── Setup wizard ───────────────────────────────────────


def ask_provider(console: Console) -> LLMProvider:
    console.print("Choose your preferred LLM provider:")
    console.print("1. Gemini (Google)")
    console.print("2. ChatGPT (OpenAI)")
    choice = console.choose("Enter your choice (1 or 2): ", PROVIDER_CHOICES)
    return LLMProvider.GEMINI if choice == "1" else LLMProvider.CHATGPT


def ask_api_key(console: Console, provider: LLMProvider) -> str:
    if provider is LLMProvider.GEMINI:
        return console.ask_required(
            "Enter your Gemini API key: ",
            "Gemini API key is required. Please provide a valid key.",
        )
    return console.ask_required(
        "Enter your OpenAI API key: ",
        "OpenAI API key is required. Please provide a valid key.",
    )


def set_api_key(config: StandupConfig, provider: LLMProvider, api_key: str) -> None:
    if provider is LLMProvider.GEMINI:
        config.gemini_api_key = api_key
    else:
        config.chatgpt_api_key = api_key


def setup_project(console: Console) -> Project:
    name = console.ask_required("Enter project name: ", "Project name is required.")
    path = console.ask_required("Enter the path to your project: ", "Project path is required.")

    jira = None
    console.print()
    if console.confirm("Do you use Jira for this project?"):
        console.print()
        console.header("📋 Jira Configuration:")
        jira = JiraCredentials(
            domain=console.ask_required(
                "Enter Jira domain (e.g., your-domain.atlassian.net): ",
                "Jira domain is required.",
            ),
            api_email=console.ask(
                "Enter Jira API email (email of user who created the API token): "
            ).strip(),
            api_token=console.ask("Enter Jira API token: ").strip(),
            assignee_email=console.ask(
                "Enter assignee email (email to fetch assigned tickets for): "
            ).strip(),
        )

    zoho = None
    if jira is None and console.confirm("Do you use Zoho Desk for this project?"):
        console.print()
        console.header("📊 Zoho Configuration:")
        console.info("Generate an OAuth access token in the Zoho API Console first.")
        domain = console.ask("Enter Zoho Desk domain (default desk.zoho.com): ").strip()
        zoho = ZohoCredentials(
            domain=domain or "desk.zoho.com",
            access_token=console.ask_required(
                "Enter Zoho access token: ", "Zoho access token is required."
            ),
            org_id=console.ask("Enter Zoho organization ID: ").strip(),
        )

    return Project(name=name, path=path, jira=jira, zoho=zoho)


def run_setup_wizard(console: Console, config_path: Path | None = None) -> StandupConfig:
    console.print()
    console.header("🔧 First-time setup - Let's configure your environment")
    console.print()

    config = StandupConfig()
    config.author = console.ask("Enter your git author name: ").strip()

    console.print()
    console.header("🤖 AI Configuration:")
    provider = ask_provider(console)
    config.llm_provider = provider
    console.success(f"Selected: {'Gemini' if provider is LLMProvider.GEMINI else 'ChatGPT'}")
    set_api_key(config, provider, ask_api_key(console, provider))

    console.print()
    console.rule()
    console.header("📁 Project Configuration:")
    console.rule()
    if console.confirm("Are you working on multiple projects?"):
        count = 1
        while True:
            console.rule(thin=True)
            console.print(f"📦 Project #{count}:")
            console.rule(thin=True)
            config.projects.append(setup_project(console))
            count += 1
            console.print()
            if not console.confirm("Do you want to add another project?"):
                break
        console.success(f"Added {len(config.projects)} projects successfully!")
    else:
        config.projects.append(setup_project(console))

    config.setup_date = datetime.now(timezone.utc).isoformat()
    persist(console, config, config_path)
    return config


# ── Project management ─────────────────────────────────


def add_project(console: Console, config_path: Path | None = None) -> Project:
    config = require_config(config_path)

    console.print()
    console.rule()
    console.header("➕ Adding a new project")
    console.rule()

    project = setup_project(console)
    config.projects.append(project)
    persist(console, config, config_path)
    console.success(f'Project "{project.name}" added successfully!')
    return project


def list_projects(console: Console, config_path: Path | None = None) -> None:
    config = require_config(config_path)

    if not config.projects:
        console.info("No projects configured.")
        return

    console.print()
    console.header("📋 Configured Projects:")
    console.print()
    for index, project in enumerate(config.projects, 1):
        console.print(f"{index}. {project.name}")
        console.print(f"   Path: {project.path}")
        console.print(f"   Jira: {'✓ Enabled' if project.jira else '✗ Disabled'}")
        console.print(f"   Zoho: {'✓ Enabled' if project.zoho else '✗ Disabled'}")
        console.print()


def switch_llm(console: Console, config_path: Path | None = None) -> LLMProvider:
    config = require_config(config_path)

    console.print()
    console.print(f"🔄 Current LLM Provider: {config.llm_provider.value.upper()}")
    console.print()

    provider = ask_provider(console)
    config.llm_provider = provider
    name = "Gemini" if provider is LLMProvider.GEMINI else "OpenAI"
    console.success(f"Switched to: {'Gemini' if provider is LLMProvider.GEMINI else 'ChatGPT'}")

    if config.api_key_for(provider):
        console.success(f"Using existing {name} API key")
    else:
        console.warn(f"{name} API key not found in config")
        set_api_key(config, provider, ask_api_key(console, provider))

    persist(console, config, config_path)
    console.success(f"LLM provider switched to {provider.value.upper()}!")
    return provider


# ── Active tickets ─────────────────────────────────────


async def fetch_all_tickets(console: Console, config_path: Path | None = None) -> None:
    """Print every Jira project's active tickets in detail."""
    config = require_config(config_path)
    jira_projects = [p for p in config.projects if p.jira]

    if not jira_projects:
        console.warn("No projects with Jira configuration found.")
        console.info("Run: git-standup --add-project (to add a project with Jira)")
        return

    console.print()
    console.header("📋 Fetching Jira Tickets for All Projects")
    console.rule()

    for project in jira_projects:
        assignee = project.jira.assignee
        console.print()
        console.print(f"📁 Project: {project.name}")
        console.print(f"   Assignee: {assignee}")
        console.rule(thin=True)

        try:
            tickets = await list_active_tickets(project.jira, assignee)
        except TrackerError as e:
            logger.warning("fetch_tickets_failed", project=project.name, error=str(e))
            console.error(f"Error: {e}")
            continue

        if not tickets:
            console.info('No "To Do" or "In Progress" tickets found for this assignee')
            continue

        console.print(f"   ✨ Found {len(tickets)} active ticket(s) (sorted by priority):")
        console.print()
        for index, ticket in enumerate(tickets, 1):
            console.print(f"   {index}. {ticket.key}: {ticket.title}")
            console.print(f"      {'─' * 37}")
            console.print(f"      Status: {ticket.status}")
            console.print(f"      Priority: {ticket.priority}")
            console.print(f"      Type: {ticket.type}")
            console.print(f"      Reporter: {ticket.reporter}")
            console.print(f"      Created: {_short_date(ticket.created)}")
            console.print(f"      Updated: {_short_date(ticket.updated)}")
            if ticket.labels:
                console.print(f"      Labels: {', '.join(ticket.labels)}")
            if ticket.components:
                console.print(f"      Components: {', '.join(ticket.components)}")
            console.print("      Description:")
            for line in wrap_description(ticket.description):
                console.print(line)
            console.print()

    console.rule()


def wrap_description(text: str) -> list[str]:
    return textwrap.wrap(
        text,
        width=DESCRIPTION_WIDTH,
        initial_indent=DESCRIPTION_INDENT,
        subsequent_indent=DESCRIPTION_INDENT,
    ) or [DESCRIPTION_INDENT]


def _short_date(value: str | None) -> str:
    """Jira timestamps look like 2025-11-14T09:12:33.000+0000."""
    if not value:
        return "Unknown"
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d").date().isoformat()
    except ValueError:
        return value
