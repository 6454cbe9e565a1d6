"""Tests for the git commit scanner and ticket-id extraction."""

import subprocess
from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from standup.core.errors import GitScanError
from standup.git.scanner import (
    DateRange,
    build_ticket_patterns,
    extract_ticket_id,
    git_log_command,
    scan_commits,
)
from standup.models.tickets import NO_TICKET_ID


class TestExtractTicketId:
    def test_jira_key(self):
        patterns = build_ticket_patterns()
        assert extract_ticket_id("a1b2c3 KAN-123 fix login", patterns) == "KAN-123"

    def test_key_with_digits_in_project(self):
        patterns = build_ticket_patterns()
        assert extract_ticket_id("a1b2c3 M3-3633 tweak", patterns) == "M3-3633"

    def test_no_match_is_sentinel(self):
        patterns = build_ticket_patterns()
        assert extract_ticket_id("a1b2c3 update readme", patterns) == NO_TICKET_ID

    def test_first_occurrence_in_line(self):
        patterns = build_ticket_patterns()
        assert extract_ticket_id("abc KAN-1 and KAN-2", patterns) == "KAN-1"

    def test_built_in_pattern_wins_over_custom(self):
        patterns = build_ticket_patterns([r"#\d+"])
        assert extract_ticket_id("abc #42 KAN-7", patterns) == "KAN-7"

    def test_custom_pattern_used_when_built_in_misses(self):
        patterns = build_ticket_patterns([r"#\d+"])
        assert extract_ticket_id("abc fixes #42", patterns) == "#42"

    def test_custom_patterns_in_config_order(self):
        patterns = build_ticket_patterns([r"TKT\d+", r"\d{5}"])
        assert extract_ticket_id("abc 12345 TKT9", patterns) == "TKT9"


class TestGitLogCommand:
    def test_default_is_today(self):
        command = git_log_command("Jane", None)
        assert command == ["git", "log", "--oneline", "--since=midnight", "--author=Jane"]

    def test_single_day(self):
        command = git_log_command(None, DateRange.for_day(date(2025, 1, 15)))
        assert command == [
            "git",
            "log",
            "--oneline",
            "--since=2025-01-15 00:00:00",
            "--until=2025-01-15 23:59:59",
        ]


class TestScanCommits:
    @patch("standup.git.scanner.subprocess.run")
    def test_returns_non_blank_lines(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(stdout="abc KAN-1 one\n\ndef two\n")

        commits = scan_commits(str(tmp_path), author="Jane")

        assert commits == ["abc KAN-1 one", "def two"]
        args, kwargs = mock_run.call_args
        assert args[0][:3] == ["git", "log", "--oneline"]
        assert kwargs["cwd"] == tmp_path.resolve()
        assert kwargs["check"] is True

    @patch("standup.git.scanner.subprocess.run")
    def test_empty_output(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(stdout="")
        assert scan_commits(str(tmp_path)) == []

    @patch("standup.git.scanner.subprocess.run")
    def test_git_failure(self, mock_run, tmp_path):
        mock_run.side_effect = subprocess.CalledProcessError(
            128, ["git", "log"], stderr="fatal: not a git repository"
        )
        with pytest.raises(GitScanError, match="not a git repository"):
            scan_commits(str(tmp_path))

    @patch("standup.git.scanner.subprocess.run")
    def test_missing_directory(self, mock_run, tmp_path):
        mock_run.side_effect = FileNotFoundError("No such file or directory")
        with pytest.raises(GitScanError):
            scan_commits(str(tmp_path / "missing"))
