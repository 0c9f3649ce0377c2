"""Error taxonomy shared by the engine and its collaborators."""
from typing import Optional


class GitHubAPIError(Exception):
    """Raised by the GitHub client for any failed or unreadable response.

    Carries the HTTP status and repository identifier when known, so the
    failure can be logged meaningfully.
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        repository: Optional[str] = None
    ):
        super().__init__(message)
        self.status = status
        self.repository = repository

    def __str__(self) -> str:
        message = super().__str__()
        details = []
        if self.repository:
            details.append(f"repository={self.repository}")
        if self.status is not None:
            details.append(f"status={self.status}")
        if details:
            return f"{message} ({', '.join(details)})"
        return message


class RateLimitException(GitHubAPIError):
    """Exception raised when rate limit is hit."""
    pass


class StatsPendingException(GitHubAPIError):
    """Raised when GitHub answers 202 while it computes repository statistics."""
    pass


class ConfigurationError(Exception):
    """Raised for missing or malformed settings, before any network activity."""
    pass


class AggregationError(Exception):
    """Single run-aborting error; no snapshot is produced when it is raised."""
    pass
