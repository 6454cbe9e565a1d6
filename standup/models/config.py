"""
Persisted configuration model: the JSON file written by the setup wizard.

Every field's optionality and default is declared here; the rest of the code
never reads raw dicts. Keys are camelCase on disk, snake_case in Python.
"""

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class LLMProvider(str, Enum):
    GEMINI = "gemini"
    CHATGPT = "chatgpt"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class JiraCredentials(_CamelModel):
    """Jira Cloud credentials (basic auth with an API token)."""

    domain: str = Field(..., description="e.g. your-domain.atlassian.net")
    api_email: str | None = Field(
        default=None, description="Email of the user who created the API token"
    )
    api_token: str = ""
    assignee_email: str | None = Field(
        default=None, description="Email whose assigned tickets are listed"
    )
    # Older configs stored a single email for both roles
    email: str | None = None

    @property
    def auth_email(self) -> str:
        return self.api_email or self.email or ""

    @property
    def assignee(self) -> str:
        return self.assignee_email or self.email or ""


class ZohoCredentials(_CamelModel):
    """Zoho Desk credentials. Token exchange happens outside this tool."""

    domain: str = "desk.zoho.com"
    access_token: str = ""
    org_id: str = ""


class Project(_CamelModel):
    name: str
    path: str
    jira: JiraCredentials | None = None
    zoho: ZohoCredentials | None = None

    @property
    def tracker_label(self) -> str:
        if self.jira:
            return "jira"
        if self.zoho:
            return "zoho"
        return "none"


class StandupConfig(_CamelModel):
    """Top-level config file contents."""

    author: str = ""
    llm_provider: LLMProvider = LLMProvider.GEMINI
    gemini_api_key: str = ""
    chatgpt_api_key: str = ""

    projects: list[Project] = Field(default_factory=list)
    custom_ticket_patterns: list[str] = Field(default_factory=list)

    # Global tracker credentials, used by projects without their own
    jira: JiraCredentials | None = None
    zoho: ZohoCredentials | None = None

    setup_date: str | None = None

    @field_validator("llm_provider", mode="before")
    @classmethod
    def _normalize_provider(cls, value):
        if isinstance(value, str):
            return value.strip().lower() or LLMProvider.GEMINI.value
        return value

    @field_validator("custom_ticket_patterns")
    @classmethod
    def _patterns_compile(cls, value: list[str]) -> list[str]:
        for pattern in value:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"invalid ticket pattern {pattern!r}: {e}") from e
        return value

    def api_key_for(self, provider: LLMProvider | None = None) -> str:
        provider = provider or self.llm_provider
        if provider is LLMProvider.CHATGPT:
            return self.chatgpt_api_key.strip()
        return self.gemini_api_key.strip()

    def tracker_for(self, project: Project) -> JiraCredentials | ZohoCredentials | None:
        """Project-level tracker credentials win over the global ones."""
        return project.jira or project.zoho or self.jira or self.zoho
