import base64
import enum
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, Generic, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from credscan import config
from credscan.errors import (
    GitHubAPIError,
    GitHubError,
    GitHubForbidden,
    RateLimitExceeded,
    ResourceNotFound,
    UserNotFound,
)
from credscan.services.github_payloads import (
    RawBranchProtection,
    RawCommunityProfile,
    RawContentItem,
    RawContributor,
    RawEvent,
    RawFileContent,
    RawIssue,
    RawOrganization,
    RawOrganizationSummary,
    RawRepository,
    RawUser,
)
from credscan.services.usage_tracker import ApiUsageTracker

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


class FetchStatus(str, enum.Enum):
    PRESENT = "present"
    ABSENT = "absent"
    FAILED = "failed"


@dataclass
class FetchResult(Generic[T]):
    """Outcome of fetching an optional artifact.

    ``ABSENT`` means GitHub confirmed the artifact does not exist (404).
    ``FAILED`` means the lookup itself went wrong and the answer is unknown.
    """
    status: FetchStatus
    value: Optional[T] = None
    error: Optional[GitHubError] = None

    @classmethod
    def present(cls, value: T) -> "FetchResult[T]":
        return cls(FetchStatus.PRESENT, value=value)

    @classmethod
    def absent(cls) -> "FetchResult[T]":
        return cls(FetchStatus.ABSENT)

    @classmethod
    def failed(cls, error: GitHubError) -> "FetchResult[T]":
        return cls(FetchStatus.FAILED, error=error)

    @property
    def is_present(self) -> bool:
        return self.status is FetchStatus.PRESENT

    def value_or(self, default: T) -> T:
        return self.value if self.is_present and self.value is not None else default


class GitHubClient:
    """
    A client for the GitHub REST API (v3).

    Every response is recorded on the ``ApiUsageTracker`` given at construction
    time, and HTTP failures are raised as the typed errors in ``credscan.errors``.
    Transport failures (timeouts, dropped connections) are retried; HTTP status
    failures are not.

    Attributes:
        base_url (str): API root, ``https://api.github.com`` unless overridden.
        tracker (ApiUsageTracker): Telemetry for the current scan.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        tracker: Optional[ApiUsageTracker] = None,
        base_url: str = config.GITHUB_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = config.GITHUB_TIMEOUT_SECONDS,
    ):
        self.base_url = base_url.rstrip("/")
        self.tracker = tracker if tracker is not None else ApiUsageTracker()
        self._token = token
        self._transport = transport
        self._timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": config.GITHUB_USER_AGENT,
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    def with_tracker(self, tracker: ApiUsageTracker) -> "GitHubClient":
        """
        Returns a client that shares this one's connection pool but records
        usage into ``tracker``. Closing the original closes both.
        """
        view = GitHubClient(
            token=self._token,
            tracker=tracker,
            base_url=self.base_url,
            transport=self._transport,
            timeout=self._timeout,
        )
        view._client = self._http()
        return view

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(config.GITHUB_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=0.5, min=1, max=8),
        reraise=True,
    )
    async def _send(self, endpoint: str) -> httpx.Response:
        return await self._http().get(endpoint)

    async def get(self, endpoint: str, username: Optional[str] = None) -> Any:
        """
        Performs a GET against the API and returns the decoded JSON body.

        Args:
            endpoint (str): Path relative to the API root, e.g. ``/users/octocat``.
            username (Optional[str]): Account being analyzed, used in error messages.
        Returns:
            Any: The decoded JSON response, or None for an empty (204) response.
        Raises:
            UserNotFound, ResourceNotFound, RateLimitExceeded, GitHubForbidden, GitHubAPIError
        """
        logger.debug("Fetching: %s%s", self.base_url, endpoint)
        try:
            response = await self._send(endpoint)
        except httpx.TransportError as e:
            raise GitHubAPIError(
                f"GitHub API request failed: {e}", endpoint=endpoint, username=username
            ) from e

        self.tracker.record(endpoint, response.headers)

        if response.status_code >= 400:
            raise self._error_for(response, endpoint, username)

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise GitHubAPIError(
                f"GitHub API returned an invalid JSON body for {endpoint}",
                endpoint=endpoint, username=username, status_code=response.status_code,
            ) from e

    def _error_for(self, response: httpx.Response, endpoint: str, username: Optional[str]) -> GitHubError:
        status = response.status_code
        context = {"endpoint": endpoint, "username": username, "status_code": status}
        path = endpoint.split("?", 1)[0]

        if status == 404:
            if path.startswith("/users/"):
                return UserNotFound(f"GitHub user '{username or 'unknown'}' not found", **context)
            return ResourceNotFound(f"Resource not found: {endpoint}", **context)

        detail = _error_detail(response)
        if status == 429 or (status == 403 and response.headers.get("x-ratelimit-remaining") == "0"):
            reset_at = self.tracker.rate_limit_reset
            when = f" (resets at {reset_at.isoformat()})" if reset_at else ""
            return RateLimitExceeded(f"GitHub API rate limit exceeded{when}", reset_at=reset_at, **context)
        if status == 403:
            return GitHubForbidden(f"GitHub API error: 403 {detail}", **context)
        return GitHubAPIError(f"GitHub API error: {status} {detail}", **context)

    async def fetch_optional(self, awaitable: Awaitable[T], what: str) -> FetchResult[T]:
        """
        Awaits a lookup for an artifact that may legitimately be missing.

        A 404 becomes ``ABSENT`` and is only logged at debug level; any other
        GitHub failure becomes ``FAILED`` and is logged as a warning.
        """
        try:
            return FetchResult.present(await awaitable)
        except ResourceNotFound as e:
            logger.debug("%s not present (%s)", what, e.endpoint)
            return FetchResult.absent()
        except GitHubError as e:
            logger.warning("Unexpected error fetching %s: %s", what, e)
            return FetchResult.failed(e)

    # Typed endpoints

    async def _get_model(self, model: Type[M], endpoint: str, username: Optional[str]) -> M:
        data = await self.get(endpoint, username)
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise GitHubAPIError(
                f"Unexpected payload from {endpoint}: {e.error_count()} validation errors",
                endpoint=endpoint, username=username,
            ) from e

    async def _get_list(self, model: Type[M], endpoint: str, username: Optional[str]) -> List[M]:
        data = await self.get(endpoint, username)
        if data is None:
            return []
        try:
            return TypeAdapter(List[model]).validate_python(data)
        except ValidationError as e:
            raise GitHubAPIError(
                f"Unexpected payload from {endpoint}: {e.error_count()} validation errors",
                endpoint=endpoint, username=username,
            ) from e

    async def get_user(self, username: str) -> RawUser:
        return await self._get_model(RawUser, f"/users/{username}", username)

    async def list_user_repos(self, username: str, page: int, per_page: int) -> List[RawRepository]:
        endpoint = f"/users/{username}/repos?page={page}&per_page={per_page}&sort=updated&direction=desc"
        return await self._get_list(RawRepository, endpoint, username)

    async def list_user_events(self, username: str, page: int, per_page: int) -> List[RawEvent]:
        endpoint = f"/users/{username}/events?page={page}&per_page={per_page}"
        return await self._get_list(RawEvent, endpoint, username)

    async def list_user_orgs(self, username: str) -> List[RawOrganizationSummary]:
        return await self._get_list(RawOrganizationSummary, f"/users/{username}/orgs", username)

    async def get_org(self, login: str, username: Optional[str] = None) -> RawOrganization:
        return await self._get_model(RawOrganization, f"/orgs/{login}", username)

    async def list_contents(self, full_name: str, path: str = "") -> List[RawContentItem]:
        """
        Lists a repository directory. A path that resolves to a file yields an empty list.
        """
        endpoint = f"/repos/{full_name}/contents/{path}"
        data = await self.get(endpoint)
        if not isinstance(data, list):
            return []
        try:
            return TypeAdapter(List[RawContentItem]).validate_python(data)
        except ValidationError as e:
            raise GitHubAPIError(f"Unexpected payload from {endpoint}", endpoint=endpoint) from e

    async def get_file_text(self, full_name: str, path: str) -> Optional[str]:
        """
        Fetches and decodes a file from a repository.

        Returns:
            Optional[str]: The decoded text, or None if the path is not a file.
        """
        item = await self._get_model(RawFileContent, f"/repos/{full_name}/contents/{path}", None)
        if item.type != "file" or not item.content:
            return None
        if item.encoding and item.encoding != "base64":
            return item.content
        return base64.b64decode(item.content).decode("utf-8", errors="replace")

    async def list_issues(self, full_name: str, username: Optional[str] = None) -> List[RawIssue]:
        return await self._get_list(RawIssue, f"/repos/{full_name}/issues?state=all&per_page=100", username)

    async def list_contributors(self, full_name: str, username: Optional[str] = None) -> List[RawContributor]:
        return await self._get_list(RawContributor, f"/repos/{full_name}/contributors?per_page=100", username)

    async def get_branch_protection(self, full_name: str, branch: str) -> RawBranchProtection:
        return await self._get_model(RawBranchProtection, f"/repos/{full_name}/branches/{branch}/protection", None)

    async def get_community_profile(self, full_name: str) -> RawCommunityProfile:
        return await self._get_model(RawCommunityProfile, f"/repos/{full_name}/community/profile", None)


def _error_detail(response: httpx.Response) -> str:
    try:
        message = response.json().get("message")
    except (ValueError, AttributeError):
        message = None
    return message or response.reason_phrase
