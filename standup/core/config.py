"""
Application configuration — runtime settings from environment variables,
plus load/save helpers for the persisted JSON config file.
"""

import json
from pathlib import Path

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
from structlog import get_logger

from standup.core.errors import ConfigurationError
from standup.models.config import StandupConfig

logger = get_logger()


class Settings(BaseSettings):
    """Application settings loaded from .env / environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        env_parse_none_str="",
        extra="ignore",
    )

    # ── Files ───────────────────────────────────────────
    STANDUP_HOME: str = str(Path.home() / ".git-standup")
    CONFIG_FILE_NAME: str = "config.json"
    PROMPT_FILE_NAME: str = "custom-prompt.txt"

    # ── LLM ─────────────────────────────────────────────
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"

    # ── Trackers ────────────────────────────────────────
    HTTP_TIMEOUT: float | None = 30.0

    # ── Git ─────────────────────────────────────────────
    GIT_DEFAULT_SINCE: str = "midnight"

    # ── App ─────────────────────────────────────────────
    LOG_LEVEL: str = "WARNING"

    # ── Derived helpers ─────────────────────────────────
    @property
    def config_path(self) -> Path:
        return Path(self.STANDUP_HOME).expanduser() / self.CONFIG_FILE_NAME

    @property
    def prompt_path(self) -> Path:
        return Path(self.STANDUP_HOME).expanduser() / self.PROMPT_FILE_NAME


settings = Settings()


def load_config(path: Path | None = None) -> StandupConfig | None:
    """Load and validate the persisted config.

    Returns None when no config file exists yet. A file that exists but
    cannot be parsed is a configuration error, never silently replaced.
    """
    path = path or settings.config_path
    if not path.exists():
        return None

    try:
        with path.open(encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(
            f"Could not read config file {path}: {e}",
            hint="Fix the file by hand or run with --setup to recreate it.",
        ) from e

    try:
        return StandupConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid config file {path}: {e.error_count()} problem(s)\n{e}",
            hint="Fix the file by hand or run with --setup to recreate it.",
        ) from e


def save_config(config: StandupConfig, path: Path | None = None) -> Path:
    """Write the config as pretty-printed camelCase JSON."""
    path = path or settings.config_path
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = config.model_dump(mode="json", by_alias=True, exclude_none=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
        f.write("\n")
    logger.info("config_saved", path=str(path), projects=len(config.projects))
    return path


def delete_config(path: Path | None = None) -> bool:
    """Remove the config file. Returns True if something was deleted."""
    path = path or settings.config_path
    if not path.exists():
        return False
    path.unlink()
    logger.info("config_deleted", path=str(path))
    return True
