"""
Zoho Desk client — ticket subject lookup with an OAuth access token.

Only the subject is read; Zoho tickets carry no status/priority here.
Obtaining and refreshing the token is out of scope.
"""

from __future__ import annotations

import httpx
from structlog import get_logger

from standup.core.config import settings
from standup.core.errors import TrackerError
from standup.models.config import ZohoCredentials
from standup.trackers.jira import json_object

logger = get_logger()


class ZohoClient:
    def __init__(
        self,
        credentials: ZohoCredentials,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.credentials = credentials
        self.base_url = f"https://{credentials.domain}"
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> ZohoClient:
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Zoho-oauthtoken {self.credentials.access_token}",
            "orgId": self.credentials.org_id,
        }

    async def get_ticket_subject(self, ticket_id: str) -> str:
        """Fetch a ticket's subject line.

        Raises:
            TrackerError: On a non-success status or a malformed body.
            httpx.HTTPError: On transport failure.
        """
        url = f"{self.base_url}/api/v1/tickets/{ticket_id}"
        logger.debug("zoho_get_ticket", ticket=ticket_id)
        response = await self._http.get(url, headers=self.headers)
        if not response.is_success:
            detail = ""
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                detail = str(body.get("message") or "")
            raise TrackerError(
                f"Failed to fetch Zoho ticket {ticket_id}: {response.status_code}"
                + (f" - {detail}" if detail else ""),
                status_code=response.status_code,
            )
        data = json_object(response, f"Zoho ticket {ticket_id}")
        return str(data.get("subject") or "No subject")
