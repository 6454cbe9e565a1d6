"""End-to-end tests for the git-standup command line."""

import io
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from standup.cli.console import Console
from standup.core.config import settings
from standup.main import ask_blocker, main, parse_args, parse_day
from standup.models.tickets import TicketRecord


class RateLimited(Exception):
    def __init__(self):
        super().__init__("Rate limit reached for requests")
        self.message = "Rate limit reached for requests"
        self.status_code = 429


class RecordingTransport:
    def __init__(self, outcome):
        self.outcome = outcome
        self.prompts: list[str] = []

    async def generate(self, model, prompt):
        self.prompts.append(prompt)
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome


@pytest.fixture
def home(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "STANDUP_HOME", str(tmp_path))
    return tmp_path


def _write_config(home, **overrides):
    config = {
        "author": "Jane",
        "llmProvider": "chatgpt",
        "chatgptApiKey": "sk-test",
        "projects": [{"name": "Web", "path": str(home)}],
    }
    config.update(overrides)
    (home / "config.json").write_text(json.dumps(config))


def _git_output(stdout):
    return MagicMock(stdout=stdout)


async def _fetch_known_ticket(ticket_id, tracker, http=None, on_warning=None):
    if ticket_id == "KAN-1":
        return TicketRecord(
            key="KAN-1", title="Login page", status="In Progress", priority="High"
        )
    return None


class TestParseDay:
    def test_valid(self):
        assert parse_day("2025-01-15").isoformat() == "2025-01-15"

    @pytest.mark.parametrize("value", ["2025/01/15", "15-01-2025", "2025-1-5", "2025-02-30"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_day(value)


class TestAskBlocker:
    def test_no_blocker(self):
        console = Console(stdin=io.StringIO("no\n"), stdout=io.StringIO())
        assert ask_blocker(console) == "None"

    def test_blocker_text(self):
        console = Console(stdin=io.StringIO("yes\nWaiting on design\n"), stdout=io.StringIO())
        assert ask_blocker(console) == "Waiting on design"

    def test_closed_input_means_none(self):
        console = Console(stdin=io.StringIO(""), stdout=io.StringIO())
        assert ask_blocker(console) == "None"


class TestParseArgs:
    def test_blocker_omitted(self):
        assert parse_args([]).blocker is None

    def test_blocker_text(self):
        assert parse_args(["-b", "Waiting on API"]).blocker == "Waiting on API"

    def test_bare_blocker(self):
        assert parse_args(["--blocker"]).blocker == "None"

    def test_unknown_option_after_blocker_is_dropped(self):
        args = parse_args(["-b", "-x"])
        assert args.blocker == "None"

    def test_known_option_after_blocker_still_applies(self):
        args = parse_args(["-b", "-d", "2025-01-15"])
        assert args.blocker == "None"
        assert args.date == "2025-01-15"

    @pytest.mark.parametrize("argv", [["-d"], ["--bogus"], ["-x"], ["extra"]])
    def test_usage_errors_exit_1(self, argv, capsys):
        with pytest.raises(SystemExit) as exc_info:
            parse_args(argv)
        assert exc_info.value.code == 1
        assert "usage: git-standup" in capsys.readouterr().err


class TestMain:
    @patch("standup.services.aggregator.fetch_ticket", side_effect=_fetch_known_ticket)
    @patch("standup.llm.service.build_transport")
    @patch("standup.git.scanner.subprocess.run")
    def test_standup_report(self, mock_run, mock_build, mock_fetch, home, capsys):
        _write_config(home)
        mock_run.return_value = _git_output("abc123 KAN-1 fix login\ndef456 update readme\n")
        transport = RecordingTransport("Blocker:\n   None")
        mock_build.return_value = transport

        code = main(["--blocker"])

        assert code == 0
        out = capsys.readouterr().out
        assert "Login page" in out
        assert "No ticket ID | def456 update readme" in out
        assert "Total Commits: 2" in out
        assert "CHATGPT Summary" in out
        assert "Blocker:\n   None" in out

        prompt = transport.prompts[0]
        assert (
            "KAN-1 [In Progress] [Priority: High] | Login page - abc123 KAN-1 fix login"
            in prompt
        )
        assert "No ticket ID | def456 update readme" in prompt
        mock_build.assert_called_once()

    @patch("standup.llm.service.build_transport")
    @patch("standup.git.scanner.subprocess.run")
    def test_no_commits_skips_llm(self, mock_run, mock_build, home, capsys):
        _write_config(home)
        mock_run.return_value = _git_output("")

        code = main([])

        assert code == 0
        assert "No commits found across all projects." in capsys.readouterr().out
        mock_build.assert_not_called()

    @patch("standup.llm.service.build_transport")
    @patch("standup.git.scanner.subprocess.run")
    def test_rate_limit_degrades(self, mock_run, mock_build, home, capsys):
        _write_config(home)
        mock_run.return_value = _git_output("abc123 fix typo\n")
        transport = RecordingTransport(RateLimited())
        mock_build.return_value = transport

        code = main(["-b", "Waiting on review"])

        assert code == 0
        assert len(transport.prompts) == 1
        assert "Waiting on review" in transport.prompts[0]
        out = capsys.readouterr().out
        assert "Could not generate AI summary" in out
        assert "abc123 fix typo" in out

    @patch("standup.services.aggregator.list_active_tickets", new_callable=AsyncMock)
    @patch("standup.services.aggregator.fetch_ticket", side_effect=_fetch_known_ticket)
    @patch("standup.llm.service.build_transport")
    @patch("standup.git.scanner.subprocess.run")
    def test_footer_shown_when_summary_fails(
        self, mock_run, mock_build, mock_fetch, mock_active, home, capsys
    ):
        jira = {"domain": "team.atlassian.net", "apiToken": "t", "email": "me@team.com"}
        _write_config(home, projects=[{"name": "Web", "path": str(home), "jira": jira}])
        mock_run.return_value = _git_output("abc123 KAN-1 fix login\n")
        mock_active.return_value = []
        mock_build.return_value = RecordingTransport(RateLimited())

        code = main(["-b"])

        assert code == 0
        out = capsys.readouterr().out
        assert "Could not generate AI summary" in out
        assert "Jira Integration: Enabled for Web" in out
        assert "💡 Tips:" in out
        assert str(home / "custom-prompt.txt") in out

    @patch("standup.git.scanner.subprocess.run")
    def test_date_is_a_single_day(self, mock_run, home):
        _write_config(home)
        mock_run.return_value = _git_output("")

        assert main(["--date", "2025-01-15"]) == 0

        command = mock_run.call_args.args[0]
        assert "--since=2025-01-15 00:00:00" in command
        assert "--until=2025-01-15 23:59:59" in command
        assert "--author=Jane" in command

    @patch("standup.git.scanner.subprocess.run")
    def test_invalid_date(self, mock_run, home, capsys):
        assert main(["-d", "01/15/2025"]) == 1
        assert "Invalid date format" in capsys.readouterr().out
        mock_run.assert_not_called()

    def test_no_projects(self, home, capsys):
        _write_config(home, projects=[])
        assert main([]) == 1
        assert "No projects configured." in capsys.readouterr().out

    def test_missing_api_key(self, home, capsys):
        _write_config(home, chatgptApiKey="")
        assert main([]) == 1
        assert "ChatGPT API key is not configured" in capsys.readouterr().out

    def test_malformed_config(self, home, capsys):
        (home / "config.json").write_text("{broken")
        assert main([]) == 1
        assert "Could not read config file" in capsys.readouterr().out

    def test_list_projects_without_config(self, home, capsys):
        assert main(["--list-projects"]) == 1
        assert "No configuration found" in capsys.readouterr().out

    def test_list_projects(self, home, capsys):
        _write_config(home)
        assert main(["-l"]) == 0
        out = capsys.readouterr().out
        assert "1. Web" in out
        assert "Jira: ✗ Disabled" in out

    @patch("standup.cli.commands.fetch_all_tickets", new_callable=AsyncMock)
    def test_fetch_tickets_flag(self, mock_fetch, home):
        _write_config(home)
        assert main(["-t"]) == 0
        mock_fetch.assert_awaited_once()

