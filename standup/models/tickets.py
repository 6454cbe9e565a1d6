"""
Pydantic models for tracker tickets and the per-project bundles handed to
prompt rendering.
"""

from pydantic import BaseModel, Field

NO_TICKET_ID = "No ticket ID"
NO_DESCRIPTION = "No description"


# ── Tracker records ─────────────────────────────────────


class TicketRecord(BaseModel):
    """Metadata for one ticket referenced by a commit."""

    key: str
    title: str
    description: str = NO_DESCRIPTION
    status: str = "Unknown"
    priority: str = "None"
    type: str = "Task"
    assignee: str | None = None
    reporter: str | None = None
    created: str | None = None
    updated: str | None = None
    labels: list[str] = Field(default_factory=list)
    components: list[str] = Field(default_factory=list)


class ActiveTicket(TicketRecord):
    """An open ticket assigned to the user ("To Do" / "In Progress")."""

    priority_id: str = "999"


# ── Aggregation ─────────────────────────────────────────


class CommitDetail(BaseModel):
    """A commit line joined with the ticket it references, if any."""

    commit: str
    ticket_id: str = NO_TICKET_ID
    ticket: TicketRecord | None = None

    @property
    def display_line(self) -> str:
        if self.ticket is None:
            return f"{self.ticket_id} | {self.commit}"
        t = self.ticket
        return (
            f"{self.ticket_id} [{t.status}] [Priority: {t.priority}] "
            f"| {t.title} - {self.commit}"
        )


class ProjectBundle(BaseModel):
    """Everything collected for one project during a run."""

    project_name: str
    commit_details: list[CommitDetail] = Field(default_factory=list)
    active_tickets: list[ActiveTicket] = Field(default_factory=list)

    @property
    def commit_lines(self) -> list[str]:
        return [d.display_line for d in self.commit_details]

    @property
    def is_empty(self) -> bool:
        return not self.commit_details and not self.active_tickets


class AggregateResult(BaseModel):
    bundles: list[ProjectBundle] = Field(default_factory=list)
    total_commits: int = 0

    @property
    def total_active_tickets(self) -> int:
        return sum(len(b.active_tickets) for b in self.bundles)
