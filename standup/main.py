"""
git-standup — command-line entry point.

Collects today's commits across the configured projects, joins them with
tracker tickets and asks an LLM for a standup summary.
"""

import argparse
import asyncio
import re
import sys
from datetime import date, datetime
from pathlib import Path

from structlog import get_logger

from standup.cli import commands
from standup.cli.console import Console
from standup.core.config import delete_config, load_config, settings
from standup.core.errors import ConfigurationError, LLMError, StandupError
from standup.core.logging import setup_logging
from standup.git.scanner import DateRange
from standup.llm.prompts import DEFAULT_BLOCKER
from standup.llm.service import display_summary, require_api_key, summarize_with_llm
from standup.models.config import StandupConfig
from standup.services.aggregator import ProjectAggregator

logger = get_logger()

DATE_FORMAT = re.compile(r"^\d{4}-\d{2}-\d{2}$")
BLOCKER_FLAGS = ("-b", "--blocker")


class StandupArgumentParser(argparse.ArgumentParser):
    """Usage errors exit 1 like every other failure."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = StandupArgumentParser(
        prog="git-standup",
        description="Generate a daily standup from git commits, tracker tickets and an LLM.",
        epilog=(
            "Examples:\n"
            "  git-standup                     Generate today's standup\n"
            '  git-standup -b "Waiting on API" Include a blocker\n'
            "  git-standup -d 2025-01-15       Standup for a specific day\n"
            "  git-standup --fetch-tickets     List active Jira tickets"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-s", "--setup", action="store_true", help="Reset and re-run the setup wizard"
    )
    parser.add_argument(
        "-a", "--add-project", action="store_true", help="Add a new project"
    )
    parser.add_argument(
        "-l", "--list-projects", action="store_true", help="List configured projects"
    )
    parser.add_argument(
        "-t",
        "--fetch-tickets",
        action="store_true",
        help="Show To Do / In Progress Jira tickets for every project",
    )
    parser.add_argument(
        "-llm", "--switch-llm", action="store_true", help="Switch LLM provider"
    )
    parser.add_argument(
        "-b",
        "--blocker",
        nargs="?",
        const=DEFAULT_BLOCKER,
        default=None,
        metavar="TEXT",
        help='Blocker text (bare flag means "None"; omitted means ask)',
    )
    parser.add_argument(
        "-d", "--date", metavar="YYYY-MM-DD", help="Report a single calendar day"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="More log output on stderr (-vv for debug)",
    )
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse the command line.

    An unknown dash-prefixed token right after -b/--blocker is dropped, which
    leaves -b as a bare flag. Any other unknown argument is a usage error.
    """
    parser = build_parser()
    argv = sys.argv[1:] if argv is None else list(argv)
    args, extras = parser.parse_known_args(argv)

    dropped = {
        index
        for index in range(1, len(argv))
        if argv[index - 1] in BLOCKER_FLAGS
        and argv[index].startswith("-")
        and argv[index] in extras
    }
    leftover = [arg for arg in extras if arg not in {argv[i] for i in dropped}]
    if leftover:
        parser.error(f"unrecognized arguments: {' '.join(leftover)}")
    return args


def parse_day(value: str) -> date:
    """Parse a YYYY-MM-DD string into a real calendar date.

    Raises:
        ValueError: If the format or the date itself is invalid.
    """
    if not DATE_FORMAT.match(value):
        raise ValueError(f"Invalid date format: {value}. Use YYYY-MM-DD.")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as e:
        raise ValueError(f"Invalid date: {value}. Use YYYY-MM-DD.") from e


def ask_blocker(console: Console) -> str:
    """Interactive blocker prompt. Closed input means no blocker."""
    try:
        if not console.confirm("Do you have any blockers?"):
            return DEFAULT_BLOCKER
        text = console.ask("Describe your blocker(s): ").strip()
    except EOFError:
        return DEFAULT_BLOCKER
    return text or DEFAULT_BLOCKER


def show_footer(
    console: Console, config: StandupConfig, config_path: Path | None = None
) -> None:
    jira_projects = [p.name for p in config.projects if p.jira]
    if jira_projects:
        console.info(f"Jira Integration: Enabled for {', '.join(jira_projects)}")
    console.print()
    console.print("💡 Tips:")
    console.print("   git-standup --blocker \"text\"   Add a blocker")
    console.print("   git-standup --date YYYY-MM-DD   Standup for another day")
    console.print("   git-standup --add-project       Add another project")
    console.print("   git-standup --switch-llm        Change LLM provider")
    console.print(f"   Edit {commands.prompt_path_for(config_path)} to customize the prompt")


async def run_cli(
    args: argparse.Namespace,
    console: Console,
    config_path: Path | None = None,
) -> int:
    if args.setup:
        if delete_config(config_path):
            console.success("Configuration reset. Starting fresh setup...")

    if args.add_project:
        commands.add_project(console, config_path)
        return 0
    if args.list_projects:
        commands.list_projects(console, config_path)
        return 0
    if args.switch_llm:
        commands.switch_llm(console, config_path)
        return 0
    if args.fetch_tickets:
        await commands.fetch_all_tickets(console, config_path)
        return 0

    date_range = None
    if args.date:
        try:
            date_range = DateRange.for_day(parse_day(args.date))
        except ValueError as e:
            console.error(str(e))
            return 1

    config = load_config(config_path)
    if config is None:
        config = commands.run_setup_wizard(console, config_path)

    if not config.projects:
        console.error("No projects configured.")
        console.info("Run: git-standup --add-project")
        return 1

    require_api_key(config)

    console.print()
    console.rule()
    console.header("📅 Git Standup Report")
    if args.date:
        console.print(f"   Date: {args.date}")
    if config.author:
        console.print(f"   Author: {config.author}")
    console.rule()

    result = await ProjectAggregator(config, console, date_range=date_range).run()

    console.print()
    console.rule()
    if result.total_commits == 0:
        console.info("No commits found across all projects.")
        return 0

    blocker = args.blocker if args.blocker is not None else ask_blocker(console)

    try:
        summary = await summarize_with_llm(
            result,
            config,
            console,
            blocker_text=blocker,
            template_path=commands.prompt_path_for(config_path),
        )
    except LLMError as e:
        logger.warning("summary_unavailable", error=str(e))
        console.warn(f"Could not generate AI summary: {e}")
    else:
        display_summary(console, summary, config.llm_provider)

    show_footer(console, config, config_path)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(settings.LOG_LEVEL, args.verbose)
    logger.debug("cli_start", args=vars(args))

    with Console() as console:
        try:
            return asyncio.run(run_cli(args, console))
        except ConfigurationError as e:
            console.error(str(e))
            if e.hint:
                console.info(e.hint)
            return 1
        except StandupError as e:
            logger.error("run_failed", error=str(e))
            console.error(str(e))
            return 1
        except (EOFError, KeyboardInterrupt):
            console.print()
            console.error("Input closed. Exiting.")
            return 1


if __name__ == "__main__":
    raise SystemExit(main())
