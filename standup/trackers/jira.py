"""
Jira REST client — single-issue reads and the active-ticket JQL search.
"""

from __future__ import annotations

import base64

import httpx
from structlog import get_logger

from standup.core.config import settings
from standup.core.errors import TrackerError
from standup.models.config import JiraCredentials
from standup.models.tickets import NO_DESCRIPTION, ActiveTicket, TicketRecord

logger = get_logger()

ACTIVE_STATUSES = ("To Do", "In Progress")
SEARCH_MAX_RESULTS = 100
SEARCH_FIELDS = [
    "summary",
    "description",
    "status",
    "priority",
    "assignee",
    "updated",
    "issuetype",
    "created",
    "reporter",
    "labels",
    "components",
]

# Most urgent first; anything unrecognised sorts last
PRIORITY_RANK = {
    "Highest": 1,
    "High": 2,
    "Medium": 3,
    "Low": 4,
    "None": 5,
}
UNKNOWN_PRIORITY_RANK = 999


class JiraClient:
    """Async Jira Cloud REST client using basic auth with an API token."""

    def __init__(
        self,
        credentials: JiraCredentials,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.credentials = credentials
        self.base_url = f"https://{credentials.domain}"
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> JiraClient:
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    @property
    def headers(self) -> dict[str, str]:
        creds = self.credentials
        auth = base64.b64encode(
            f"{creds.auth_email}:{creds.api_token}".encode()
        ).decode()
        return {
            "Authorization": f"Basic {auth}",
            "Accept": "application/json",
        }

    async def get_issue(self, key: str) -> dict:
        """Fetch one issue.

        Raises:
            TrackerError: On a non-success status or a malformed body.
            httpx.HTTPError: On transport failure.
        """
        url = f"{self.base_url}/rest/api/3/issue/{key}"
        logger.debug("jira_get_issue", key=key)
        response = await self._http.get(url, headers=self.headers)
        if not response.is_success:
            raise TrackerError(
                f"Failed to fetch Jira ticket {key}: {response.status_code}"
                f" - {_error_messages(response)}",
                status_code=response.status_code,
            )
        return json_object(response, f"Jira ticket {key}")

    async def search_active(self, assignee_email: str) -> list[dict]:
        """Run the active-ticket JQL search for an assignee.

        Raises:
            TrackerError: On a non-success status or a malformed body.
            httpx.HTTPError: On transport failure.
        """
        url = f"{self.base_url}/rest/api/3/search/jql"
        body = {
            "jql": active_tickets_jql(assignee_email),
            "maxResults": SEARCH_MAX_RESULTS,
            "fields": SEARCH_FIELDS,
        }
        logger.debug("jira_search", assignee=assignee_email)
        response = await self._http.post(
            url,
            headers={**self.headers, "Content-Type": "application/json"},
            json=body,
        )
        if not response.is_success:
            raise TrackerError(
                f"Failed to fetch Jira tickets: {response.status_code}"
                f" - {_error_messages(response)}",
                status_code=response.status_code,
            )
        data = json_object(response, "Jira search")
        issues = data.get("issues") or []
        if not isinstance(issues, list) or not all(isinstance(i, dict) for i in issues):
            raise TrackerError("Failed to fetch Jira tickets: malformed issues list in response")
        return issues


def active_tickets_jql(assignee_email: str) -> str:
    statuses = ", ".join(f'"{s}"' for s in ACTIVE_STATUSES)
    return (
        f'assignee = "{assignee_email}" AND status IN ({statuses}) '
        f"ORDER BY priority DESC, updated DESC"
    )


def flatten_adf(document: dict | None) -> str:
    """Flatten an Atlassian Document Format tree into plain text.

    Every text leaf is collected in document order and joined with single
    spaces. Nodes without text contribute nothing.
    """
    parts: list[str] = []

    def walk(node) -> None:
        if not isinstance(node, dict):
            return
        text = node.get("text")
        if isinstance(text, str) and text:
            parts.append(text)
        for child in node.get("content") or []:
            walk(child)

    walk(document)
    return " ".join(parts).strip()


def priority_rank(priority: str | None) -> int:
    return PRIORITY_RANK.get(priority or "", UNKNOWN_PRIORITY_RANK)


def sort_by_priority(tickets: list[ActiveTicket]) -> list[ActiveTicket]:
    """Most urgent first. sorted() is stable, so ties keep tracker order."""
    return sorted(tickets, key=lambda t: priority_rank(t.priority))


def issue_to_record(issue: dict, key: str) -> TicketRecord:
    fields = _fields(issue)
    return TicketRecord(
        key=key,
        title=fields.get("summary") or "",
        description=flatten_adf(fields.get("description")) or NO_DESCRIPTION,
        status=_name(fields.get("status")) or "Unknown",
        priority=_name(fields.get("priority")) or "None",
        type=_name(fields.get("issuetype")) or "Task",
        assignee=_display_name(fields.get("assignee")) or "Unassigned",
    )


def issue_to_active_ticket(issue: dict) -> ActiveTicket:
    fields = _fields(issue)
    priority = fields.get("priority")
    if not isinstance(priority, dict):
        priority = {}
    return ActiveTicket(
        key=issue.get("key", ""),
        title=fields.get("summary") or "",
        description=flatten_adf(fields.get("description")) or NO_DESCRIPTION,
        status=_name(fields.get("status")) or "Unknown",
        priority=priority.get("name") or "None",
        priority_id=str(priority.get("id") or "999"),
        type=_name(fields.get("issuetype")) or "Task",
        reporter=_display_name(fields.get("reporter")) or "Unknown",
        created=fields.get("created"),
        updated=fields.get("updated"),
        labels=[str(label) for label in _list(fields.get("labels"))],
        components=[_name(c) or "" for c in _list(fields.get("components"))],
    )


def _fields(issue: dict) -> dict:
    fields = issue.get("fields")
    return fields if isinstance(fields, dict) else {}


def _list(value) -> list:
    return value if isinstance(value, list) else []


def _name(obj: dict | None) -> str | None:
    return obj.get("name") if isinstance(obj, dict) else None


def _display_name(obj: dict | None) -> str | None:
    return obj.get("displayName") if isinstance(obj, dict) else None


def json_object(response: httpx.Response, what: str) -> dict:
    """Decode a success body that must be a JSON object.

    Raises:
        TrackerError: If the body is not JSON or not an object.
    """
    try:
        data = response.json()
    except ValueError as e:
        raise TrackerError(f"{what}: response is not valid JSON ({e})") from e
    if not isinstance(data, dict):
        raise TrackerError(
            f"{what}: expected a JSON object, got {type(data).__name__}"
        )
    return data


def _error_messages(response: httpx.Response) -> str:
    """Best-effort error text from a Jira error body."""
    try:
        data = response.json()
    except ValueError:
        return response.reason_phrase or "Unknown error"
    if isinstance(data, dict):
        if data.get("errorMessages"):
            return ", ".join(str(m) for m in data["errorMessages"])
        if data.get("message"):
            return str(data["message"])
    return response.reason_phrase or "Unknown error"
