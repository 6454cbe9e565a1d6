"""
Tracker-agnostic entry points used by the aggregator.

fetch_ticket never raises for ordinary failures: one bad ticket must not stop
the commit loop. The reason is handed to `on_warning` so the caller can show
it. list_active_tickets raises TrackerError and leaves the degradation
decision to the caller.
"""

from collections.abc import Callable

import httpx
from structlog import get_logger

from standup.core.errors import TrackerError
from standup.models.config import JiraCredentials, ZohoCredentials
from standup.models.tickets import NO_TICKET_ID, ActiveTicket, TicketRecord
from standup.trackers.jira import (
    JiraClient,
    issue_to_active_ticket,
    issue_to_record,
    sort_by_priority,
)
from standup.trackers.zoho import ZohoClient

logger = get_logger()

Tracker = JiraCredentials | ZohoCredentials
Warn = Callable[[str], None]


def _ignore(_message: str) -> None:
    pass


async def fetch_ticket(
    ticket_id: str,
    tracker: Tracker | None,
    http: httpx.AsyncClient | None = None,
    on_warning: Warn | None = None,
) -> TicketRecord | None:
    """Fetch one ticket's metadata, or None if it cannot be had.

    Args:
        ticket_id: Identifier extracted from a commit line, or the
            NO_TICKET_ID sentinel (short-circuits without network access).
        tracker: Resolved credentials for the commit's project.
        http: Shared client for the run; a private one is used if omitted.
        on_warning: Receives a readable reason when a lookup fails.
    """
    if ticket_id == NO_TICKET_ID:
        return None

    warn = on_warning or _ignore
    if isinstance(tracker, JiraCredentials):
        return await _fetch_jira(ticket_id, tracker, http, warn)
    if isinstance(tracker, ZohoCredentials):
        return await _fetch_zoho(ticket_id, tracker, http, warn)

    logger.info("ticket_fetch_skipped", ticket=ticket_id, reason="no tracker configured")
    return None


async def list_active_tickets(
    credentials: JiraCredentials,
    assignee_email: str,
    http: httpx.AsyncClient | None = None,
) -> list[ActiveTicket]:
    """List "To Do" / "In Progress" tickets for an assignee, most urgent first.

    Raises:
        TrackerError: If the search request fails for any reason.
    """
    try:
        async with JiraClient(credentials, http=http) as jira:
            issues = await jira.search_active(assignee_email)
        tickets = [issue_to_active_ticket(issue) for issue in issues]
    except httpx.HTTPError as e:
        logger.warning("jira_search_failed", domain=credentials.domain, error=str(e))
        raise TrackerError(f"Error fetching Jira tickets: {e}") from e
    except ValueError as e:
        raise TrackerError(f"Error fetching Jira tickets: invalid response ({e})") from e

    logger.info("jira_active_tickets", assignee=assignee_email, count=len(tickets))
    return sort_by_priority(tickets)


async def _fetch_jira(
    ticket_id: str,
    credentials: JiraCredentials,
    http: httpx.AsyncClient | None,
    warn: Warn,
) -> TicketRecord | None:
    try:
        async with JiraClient(credentials, http=http) as jira:
            issue = await jira.get_issue(ticket_id)
        return issue_to_record(issue, key=ticket_id)
    except TrackerError as e:
        if e.status_code == 404:
            logger.warning(
                "jira_ticket_not_found",
                ticket=ticket_id,
                detail="not found or no permission to view it",
            )
            warn(
                f"Jira ticket {ticket_id} not found (404), "
                "or you do not have permission to view it"
            )
        else:
            logger.warning("jira_ticket_failed", ticket=ticket_id, error=str(e))
            warn(str(e))
    except httpx.HTTPError as e:
        logger.warning("jira_ticket_error", ticket=ticket_id, error=str(e))
        warn(f"Could not reach Jira for {ticket_id}: {str(e) or type(e).__name__}")
    except ValueError as e:
        logger.warning("jira_ticket_error", ticket=ticket_id, error=str(e))
        warn(f"Jira returned an unusable record for {ticket_id}")
    return None


async def _fetch_zoho(
    ticket_id: str,
    credentials: ZohoCredentials,
    http: httpx.AsyncClient | None,
    warn: Warn,
) -> TicketRecord | None:
    try:
        async with ZohoClient(credentials, http=http) as zoho:
            subject = await zoho.get_ticket_subject(ticket_id)
        return TicketRecord(key=ticket_id, title=subject)
    except TrackerError as e:
        logger.warning("zoho_ticket_failed", ticket=ticket_id, error=str(e))
        warn(str(e))
    except httpx.HTTPError as e:
        logger.warning("zoho_ticket_error", ticket=ticket_id, error=str(e))
        warn(f"Could not reach Zoho Desk for {ticket_id}: {str(e) or type(e).__name__}")
    except ValueError as e:
        logger.warning("zoho_ticket_error", ticket=ticket_id, error=str(e))
        warn(f"Zoho Desk returned an unusable record for {ticket_id}")
    return None
