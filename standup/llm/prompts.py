"""
Standup prompt template: default body, user-editable file, and placeholder
substitution.

Substitution is literal first-occurrence replacement. A placeholder missing
from a custom template simply drops that data; nothing is validated. The
output style (plain text, • bullets, no bold) is asked of the model in the
template and never enforced afterwards.
"""

from collections.abc import Callable
from pathlib import Path

from structlog import get_logger

from standup.models.tickets import ProjectBundle

logger = get_logger()

PROJECT_DATA = "{PROJECT_DATA}"
COMMITS = "{COMMITS}"
PROJECT_NAMES = "{PROJECT_NAMES}"
BLOCKERS = "{BLOCKERS}"
BLOCKER_SECTION = "{BLOCKER_SECTION}"

DEFAULT_BLOCKER = "None"

# ── Default template ───────────────────────────────────

DEFAULT_PROMPT = """\
You are a technical assistant helping create a daily standup update. Analyze \
git commits, Jira ticket details, active tickets, and blocker information to \
provide a comprehensive summary.

You will receive for each project:
1. Git commits with associated Jira ticket details (ticket ID, title, description, status, priority)
2. List of all active "To Do" and "In Progress" Jira tickets assigned to the user \
(sorted by priority: Highest → High → Medium → Low → None)
3. Blocker information

Provide a summary in the EXACT following format:

Blocker:
   None (or bullet points if blockers exist)

Today's Update:
   PROJECT_NAME:
   • Ticket-ID: Description of work done

Tomorrow's Plan:
   PROJECT_NAME:
   • Ticket-ID: Suggested next steps based on today's work and jira ticket priority

DETAILED INSTRUCTIONS:

1. BLOCKER SECTION:
   - If no blockers: Write exactly "   None"
   - If blockers exist: Add bullet points with project context if needed
   - Do NOT create project sections unless there are actual blockers

2. TODAY'S UPDATE SECTION:
   - For EACH project that has commits, create a section with project name
   - Format: PROJECT_NAME:
   - Each bullet point must start with Ticket-ID followed by description
   - Example: • KAN-123: Implemented user authentication logic
   - Be concise and clear about what was accomplished

3. TOMORROW'S PLAN SECTION:
   - For EACH project, create a section with project name
   - Format: PROJECT_NAME:
   - PRIORITIZE by ticket priority (Highest → High → Medium → Low → None)
   - Each bullet point must start with Ticket-ID followed by next action
   - Consider both: work from today AND other active To Do/In Progress tickets
   - Example: • KAN-456: Complete API integration and add error handling

Data provided (includes git commits with Jira ticket details and active tickets):
{PROJECT_DATA}

Blocker information provided by user:
{BLOCKERS}

IMPORTANT RULES:
- DO NOT use bold formatting (no ** or __) anywhere
- Use plain text only with proper indentation (3 spaces before content)
- Use bullet point character (•) for all lists, NOT asterisks (*)
- Always start bullet points with Ticket-ID
- Keep descriptions concise and actionable
- Follow the EXACT structure shown above
- Use exact project names from the data provided
- For Blocker: Write "   None" if no blockers (NOT "• None")
- Indentation: Project names have 3 spaces, bullet points have 3 spaces"""


# ── Template file ──────────────────────────────────────


def load_prompt_template(path: Path, on_warning: Callable[[str], None] | None = None) -> str:
    """Return the user's template if present and non-blank, else the default.

    An unreadable file falls back to the default and reports why through
    `on_warning`.
    """
    try:
        if path.exists():
            custom = path.read_text(encoding="utf-8")
            if custom.strip():
                return custom
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("prompt_template_unreadable", path=str(path), error=str(e))
        if on_warning:
            on_warning(f"Could not read prompt template {path}: {e}. Using the default prompt.")
    return DEFAULT_PROMPT


def create_default_prompt_file(path: Path) -> bool:
    """Write the default template if none exists. Returns True if created."""
    if path.exists():
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_PROMPT, encoding="utf-8")
    logger.info("prompt_template_created", path=str(path))
    return True


# ── Rendering ──────────────────────────────────────────


def build_project_data(bundles: list[ProjectBundle]) -> str:
    """Format every bundle's commits and active tickets into one text block."""
    text = ""
    for bundle in bundles:
        text += f"\n=== PROJECT: {bundle.project_name} ===\n\n"

        if bundle.commit_details:
            text += "GIT COMMITS WITH TICKET DETAILS:\n"
            text += "\n".join(bundle.commit_lines)
            text += "\n\n"

        if bundle.active_tickets:
            text += "ACTIVE JIRA TICKETS (To Do & In Progress - Sorted by Priority):\n"
            for ticket in bundle.active_tickets:
                text += f"{ticket.key} [Status: {ticket.status}] [Priority: {ticket.priority}]\n"
                text += f"  Title: {ticket.title}\n"
                text += f"  Description: {ticket.description}\n"
                text += f"  Type: {ticket.type}\n\n"

        text += "=" * 50 + "\n"
    return text


def build_commits_text(bundles: list[ProjectBundle]) -> str:
    """Commit lines only, grouped by project (for {COMMITS} templates)."""
    text = ""
    for bundle in bundles:
        text += f"\n=== {bundle.project_name} ===\n"
        text += "\n".join(bundle.commit_lines)
        text += "\n"
    return text


def render_prompt(
    template: str,
    bundles: list[ProjectBundle],
    blocker_text: str = DEFAULT_BLOCKER,
) -> str:
    """Fill the template's placeholders. Absent placeholders are skipped."""
    blocker_text = blocker_text or DEFAULT_BLOCKER
    replacements = [
        (PROJECT_DATA, lambda: build_project_data(bundles)),
        (COMMITS, lambda: build_commits_text(bundles)),
        (PROJECT_NAMES, lambda: ", ".join(b.project_name for b in bundles)),
        (BLOCKERS, lambda: blocker_text),
        (
            BLOCKER_SECTION,
            lambda: f"Blocker information provided by user:\n{blocker_text}",
        ),
    ]

    prompt = template
    for placeholder, value in replacements:
        if placeholder in prompt:
            prompt = prompt.replace(placeholder, value(), 1)
    return prompt
