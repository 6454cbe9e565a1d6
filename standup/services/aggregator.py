"""
Project aggregator: walks every configured project, joins its commits with
tracker tickets and collects the active-ticket list.

Projects are processed one at a time, in declaration order. Per-project
failures (git, tracker) are reported and degrade that project only.
"""

import re
from collections.abc import Callable

import httpx
from structlog import get_logger

from standup.cli.console import Console
from standup.core.config import settings
from standup.core.errors import GitScanError, TrackerError
from standup.git.scanner import (
    DateRange,
    build_ticket_patterns,
    extract_ticket_id,
    scan_commits,
)
from standup.models.config import Project, StandupConfig
from standup.models.tickets import (
    ActiveTicket,
    AggregateResult,
    CommitDetail,
    ProjectBundle,
)
from standup.trackers.fetcher import fetch_ticket, list_active_tickets

logger = get_logger()

CommitScanner = Callable[[str, str | None, DateRange | None], list[str]]


class ProjectAggregator:
    """Builds one ProjectBundle per project and the overall commit total."""

    def __init__(
        self,
        config: StandupConfig,
        console: Console,
        date_range: DateRange | None = None,
        scanner: CommitScanner = scan_commits,
        patterns: list[re.Pattern] | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self.console = console
        self.date_range = date_range
        self.scanner = scanner
        self.patterns = patterns or build_ticket_patterns(config.custom_ticket_patterns)
        self._http = http

    async def run(self) -> AggregateResult:
        result = AggregateResult()

        owns_http = self._http is None
        http = self._http or httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT)
        try:
            for project in self.config.projects:
                bundle = await self._process_project(project, http)
                result.total_commits += len(bundle.commit_details)
                if bundle.is_empty:
                    logger.debug("bundle_dropped", project=project.name)
                    continue
                result.bundles.append(bundle)
        finally:
            if owns_http:
                await http.aclose()

        logger.info(
            "aggregation_complete",
            projects=len(self.config.projects),
            bundles=len(result.bundles),
            total_commits=result.total_commits,
        )
        return result

    async def _process_project(
        self, project: Project, http: httpx.AsyncClient
    ) -> ProjectBundle:
        console = self.console
        console.print()
        console.header(f"📁 Project: {project.name}")
        console.print(f"   Path: {project.path}")
        console.rule(thin=True)

        bundle = ProjectBundle(project_name=project.name)

        try:
            commits = self.scanner(project.path, self.config.author or None, self.date_range)
        except GitScanError as e:
            logger.warning("git_scan_failed", project=project.name, error=str(e))
            console.warn(f"Error fetching git log: {e}")
            commits = []

        if commits:
            console.print("   ✨ Commits:")
            tracker = self.config.tracker_for(project)
            for commit in commits:
                ticket_id = extract_ticket_id(commit, self.patterns)
                ticket = await fetch_ticket(
                    ticket_id, tracker, http=http, on_warning=console.warn
                )
                detail = CommitDetail(commit=commit, ticket_id=ticket_id, ticket=ticket)
                bundle.commit_details.append(detail)
                self._show_commit(detail)
        else:
            console.info("No commits found for this project.")

        if project.jira:
            bundle.active_tickets = await self._active_tickets(project, http)

        return bundle

    async def _active_tickets(
        self, project: Project, http: httpx.AsyncClient
    ) -> list[ActiveTicket]:
        console = self.console
        console.print("   🔍 Fetching active Jira tickets (To Do & In Progress)...")
        try:
            tickets = await list_active_tickets(
                project.jira, project.jira.assignee, http=http
            )
        except TrackerError as e:
            logger.warning("active_tickets_failed", project=project.name, error=str(e))
            console.warn(f"Could not fetch active tickets: {e}")
            return []

        if tickets:
            console.print(
                f"   ✨ Found {len(tickets)} active ticket(s) (sorted by priority):"
            )
            for ticket in tickets:
                console.print(
                    f"      {ticket.key} [{ticket.status}] [Priority: {ticket.priority}]"
                )
                console.print(f"      {ticket.title}")
        return tickets

    def _show_commit(self, detail: CommitDetail) -> None:
        console = self.console
        ticket = detail.ticket
        if ticket is None:
            console.print(f"      {detail.ticket_id} | {detail.commit}")
            return
        console.print(f"      {detail.ticket_id} | {ticket.title}")
        console.print(f"      Status: {ticket.status} | Priority: {ticket.priority}")
        console.print(f"      Description: {ticket.description}")
        console.print(f"      Commit: {detail.commit}")
