"""
Exception hierarchy shared by the pipeline stages.
"""


class StandupError(Exception):
    """Base exception for git-standup errors."""

    pass


class ConfigurationError(StandupError):
    """Missing or invalid configuration. Fatal to the run."""

    def __init__(self, message: str, hint: str | None = None):
        super().__init__(message)
        self.hint = hint


class GitScanError(StandupError):
    """git log could not be run for a project."""

    pass


class TrackerError(StandupError):
    """An issue tracker request failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class LLMError(StandupError):
    """No summary could be generated. Degrades the run, never fails it."""

    pass


class LadderAbortedError(LLMError):
    """A non-retryable provider error stopped the retry ladder."""

    def __init__(self, message: str, category: str, attempts: int):
        super().__init__(message)
        self.category = category
        self.attempts = attempts


class LadderExhaustedError(LLMError):
    """Every rung of the retry ladder failed."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts
