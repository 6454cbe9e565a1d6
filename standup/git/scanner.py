"""
Commit scanner: runs `git log --oneline` in a project and pulls ticket ids
out of the commit subjects.
"""

import re
import subprocess
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from structlog import get_logger

from standup.core.config import settings
from standup.core.errors import GitScanError
from standup.models.tickets import NO_TICKET_ID

logger = get_logger()

# Jira keys: PROJ-123, M3-3633
BUILT_IN_TICKET_PATTERNS = [re.compile(r"[A-Z]+\d*-\d+")]


@dataclass(frozen=True)
class DateRange:
    """Inclusive git --since/--until bounds."""

    since: str
    until: str | None = None

    @classmethod
    def for_day(cls, day: date) -> "DateRange":
        iso = day.isoformat()
        return cls(since=f"{iso} 00:00:00", until=f"{iso} 23:59:59")


def build_ticket_patterns(custom_patterns: list[str] | None = None) -> list[re.Pattern]:
    """Built-in tracker formats first, then user patterns in config order."""
    patterns = list(BUILT_IN_TICKET_PATTERNS)
    for source in custom_patterns or []:
        patterns.append(re.compile(source))
    return patterns


def extract_ticket_id(commit_line: str, patterns: list[re.Pattern]) -> str:
    """First pattern (in list order) that matches wins."""
    for pattern in patterns:
        match = pattern.search(commit_line)
        if match:
            return match.group(0)
    return NO_TICKET_ID


def git_log_command(author: str | None, date_range: DateRange | None) -> list[str]:
    command = ["git", "log", "--oneline"]
    if date_range is None:
        date_range = DateRange(since=settings.GIT_DEFAULT_SINCE)
    command.append(f"--since={date_range.since}")
    if date_range.until:
        command.append(f"--until={date_range.until}")
    if author:
        command.append(f"--author={author}")
    return command


def scan_commits(
    repo_path: str,
    author: str | None = None,
    date_range: DateRange | None = None,
) -> list[str]:
    """Return commit lines (newest first) for one repository.

    Raises:
        GitScanError: If the path is not usable or git fails.
    """
    cwd = Path(repo_path).expanduser().resolve()
    command = git_log_command(author, date_range)
    logger.debug("git_log", cwd=str(cwd), command=command)

    try:
        result = subprocess.run(
            command,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or "").strip()
        raise GitScanError(stderr or f"git log exited with status {e.returncode}") from e
    except OSError as e:
        # Missing directory, not a directory, or git not installed
        raise GitScanError(str(e)) from e

    return [line for line in result.stdout.strip().splitlines() if line.strip()]
