"""Failure taxonomy for the GitHub analysis pipeline.

Only identity resolution, the user lookup and repository listing are allowed to
raise out of ``process_github_account``. Everything else is caught close to the
call site and turned into an empty/default sub-result.
"""
from datetime import datetime
from typing import Optional


class GitHubError(Exception):
    """Base class for failures talking to GitHub."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        username: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.endpoint = endpoint
        self.username = username
        self.status_code = status_code


class InvalidIdentity(GitHubError):
    """The input could not be resolved to a GitHub username."""


class UserNotFound(GitHubError):
    """404 on a user endpoint."""


class ResourceNotFound(GitHubError):
    """404 on a repository file, directory, protection rule or profile.

    This is the expected outcome for optional artifacts and is never logged as
    a warning.
    """


class GitHubForbidden(GitHubError):
    """403 from GitHub that is not a rate-limit exhaustion."""


class RateLimitExceeded(GitHubForbidden):
    """The rate limit for the current credential is exhausted."""

    def __init__(self, message: str, reset_at: Optional[datetime] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.reset_at = reset_at


class GitHubAPIError(GitHubError):
    """Any other HTTP, transport or payload failure."""


class AnalysisCancelled(Exception):
    """Raised when the caller aborts a running account scan."""
