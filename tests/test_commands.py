"""Tests for the interactive CLI commands and the console handle."""

import io
import json
from unittest.mock import AsyncMock, patch

import pytest

from standup.cli import commands
from standup.cli.console import Console
from standup.core.config import load_config, save_config, settings
from standup.core.errors import ConfigurationError, TrackerError
from standup.models.config import JiraCredentials, LLMProvider, Project, StandupConfig
from standup.models.tickets import ActiveTicket


@pytest.fixture
def home(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "STANDUP_HOME", str(tmp_path))
    return tmp_path


def _console(*answers: str) -> tuple[Console, io.StringIO]:
    out = io.StringIO()
    stdin = io.StringIO("".join(f"{a}\n" for a in answers))
    return Console(stdin=stdin, stdout=out), out


class TestConsole:
    def test_glyphs_without_tty(self):
        console, out = _console()
        console.success("saved")
        console.info("note")
        console.error("failed")
        assert out.getvalue() == "✓ saved\n• note\n✗ failed\n"

    def test_ask_strips_newline(self):
        console, out = _console("Jane")
        assert console.ask("Name: ") == "Jane"
        assert out.getvalue() == "Name: "

    def test_ask_raises_on_eof(self):
        console, _ = _console()
        with pytest.raises(EOFError):
            console.ask("Name: ")

    def test_closed_console(self):
        console, _ = _console("x")
        with console:
            pass
        assert console.closed
        with pytest.raises(RuntimeError):
            console.ask("?")

    def test_confirm(self):
        console, _ = _console("Y", "nope")
        assert console.confirm("Ok?") is True
        assert console.confirm("Ok?") is False

    def test_ask_required_repeats(self):
        console, out = _console("", "  ", "value")
        assert console.ask_required("Key: ", "Key is required.") == "value"
        assert out.getvalue().count("Key is required.") == 2

    def test_choose_repeats_until_valid(self):
        console, out = _console("3", "2")
        assert console.choose("Pick: ", ("1", "2")) == "2"
        assert "Invalid choice" in out.getvalue()


class TestSetupWizard:
    def test_single_project_with_jira(self, home):
        console, out = _console(
            "Jane",  # author
            "2",  # ChatGPT
            "sk-test",
            "no",  # multiple projects
            "Web",
            "/src/web",
            "yes",  # jira
            "team.atlassian.net",
            "bot@team.com",
            "tok",
            "me@team.com",
        )

        config = commands.run_setup_wizard(console)

        assert config.llm_provider is LLMProvider.CHATGPT
        assert config.chatgpt_api_key == "sk-test"
        assert config.projects[0].jira.assignee == "me@team.com"
        assert config.setup_date

        raw = json.loads((home / "config.json").read_text())
        assert raw["llmProvider"] == "chatgpt"
        assert raw["projects"][0]["jira"]["apiEmail"] == "bot@team.com"
        assert (home / "custom-prompt.txt").exists()

    def test_multiple_projects_with_zoho(self, home):
        console, _ = _console(
            "Jane",
            "1",  # Gemini
            "",  # blank key is re-asked
            "g-key",
            "yes",  # multiple projects
            "Web",
            "/src/web",
            "no",  # jira
            "no",  # zoho
            "yes",  # another
            "Desk",
            "/src/desk",
            "no",  # jira
            "yes",  # zoho
            "",  # default domain
            "zoho-token",
            "777",
            "no",  # another
        )

        config = commands.run_setup_wizard(console)

        assert config.gemini_api_key == "g-key"
        assert [p.name for p in config.projects] == ["Web", "Desk"]
        assert config.projects[0].jira is None and config.projects[0].zoho is None
        assert config.projects[1].zoho.domain == "desk.zoho.com"
        assert config.projects[1].zoho.org_id == "777"
        assert load_config().projects[1].zoho.access_token == "zoho-token"


class TestProjectCommands:
    def test_add_project(self, home):
        save_config(StandupConfig(projects=[Project(name="Web", path="/web")]))
        console, out = _console("Api", "/api", "no", "no")

        commands.add_project(console)

        assert [p.name for p in load_config().projects] == ["Web", "Api"]
        assert 'Project "Api" added successfully!' in out.getvalue()

    def test_add_project_without_config(self, home):
        console, _ = _console()
        with pytest.raises(ConfigurationError, match="No configuration found"):
            commands.add_project(console)

    def test_list_projects_markers(self, home):
        save_config(
            StandupConfig(
                projects=[
                    Project(
                        name="Web",
                        path="/web",
                        jira=JiraCredentials(domain="team.atlassian.net"),
                    )
                ]
            )
        )
        console, out = _console()

        commands.list_projects(console)

        text = out.getvalue()
        assert "1. Web" in text
        assert "Jira: ✓ Enabled" in text
        assert "Zoho: ✗ Disabled" in text

    def test_switch_llm_reuses_existing_key(self, home):
        save_config(StandupConfig(gemini_api_key="g", chatgpt_api_key="sk"))
        console, out = _console("2")

        assert commands.switch_llm(console) is LLMProvider.CHATGPT
        assert load_config().llm_provider is LLMProvider.CHATGPT
        assert "Using existing OpenAI API key" in out.getvalue()

    def test_switch_llm_asks_for_missing_key(self, home):
        save_config(StandupConfig(gemini_api_key="g"))
        console, _ = _console("2", "sk-new")

        commands.switch_llm(console)

        assert load_config().chatgpt_api_key == "sk-new"

    def test_persist_writes_prompt_beside_custom_config(self, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "STANDUP_HOME", str(tmp_path / "home"))
        config_path = tmp_path / "custom" / "config.json"
        console, out = _console()

        commands.persist(console, StandupConfig(), config_path)

        prompt_path = tmp_path / "custom" / settings.PROMPT_FILE_NAME
        assert config_path.exists()
        assert prompt_path.exists()
        assert not settings.prompt_path.exists()
        assert f"Created custom prompt template at: {prompt_path}" in out.getvalue()

    def test_prompt_path_defaults_to_home(self, home):
        assert commands.prompt_path_for() == settings.prompt_path
        assert commands.prompt_path_for(home / "elsewhere" / "config.json") == (
            home / "elsewhere" / settings.PROMPT_FILE_NAME
        )


class TestFetchAllTickets:
    @pytest.mark.asyncio
    async def test_no_jira_projects(self, home):
        save_config(StandupConfig(projects=[Project(name="Web", path="/web")]))
        console, out = _console()

        await commands.fetch_all_tickets(console)

        assert "No projects with Jira configuration found." in out.getvalue()

    @pytest.mark.asyncio
    @patch("standup.cli.commands.list_active_tickets", new_callable=AsyncMock)
    async def test_lists_tickets(self, mock_list, home):
        jira = JiraCredentials(domain="team.atlassian.net", email="me@team.com")
        save_config(StandupConfig(projects=[Project(name="Web", path="/web", jira=jira)]))
        mock_list.return_value = [
            ActiveTicket(
                key="KAN-1",
                title="Login page",
                description="word " * 40,
                status="To Do",
                priority="High",
                reporter="Bob",
                created="2025-01-10T09:00:00.000+0000",
                labels=["ui"],
            )
        ]
        console, out = _console()

        await commands.fetch_all_tickets(console)

        text = out.getvalue()
        assert "1. KAN-1: Login page" in text
        assert "Created: 2025-01-10" in text
        assert "Updated: Unknown" in text
        assert "Labels: ui" in text
        assert mock_list.await_args.args[1] == "me@team.com"

    @pytest.mark.asyncio
    @patch("standup.cli.commands.list_active_tickets", new_callable=AsyncMock)
    async def test_tracker_error_is_reported(self, mock_list, home):
        jira = JiraCredentials(domain="team.atlassian.net", email="me@team.com")
        save_config(StandupConfig(projects=[Project(name="Web", path="/web", jira=jira)]))
        mock_list.side_effect = TrackerError("Failed to fetch Jira tickets: 401")
        console, out = _console()

        await commands.fetch_all_tickets(console)

        assert "Error: Failed to fetch Jira tickets: 401" in out.getvalue()

    def test_wrap_description(self):
        lines = commands.wrap_description("word " * 40)
        assert len(lines) > 1
        assert all(len(line) <= 80 for line in lines)
        assert all(line.startswith(" " * 9) for line in lines)
