"""Tests for the GitHub API client, its error mapping and usage telemetry."""
import asyncio
import logging

import httpx
import pytest

from credscan.errors import (
    GitHubAPIError,
    GitHubForbidden,
    RateLimitExceeded,
    ResourceNotFound,
    UserNotFound,
)
from credscan.services.github_client import FetchStatus, GitHubClient
from credscan.services.usage_tracker import ApiUsageTracker, categorize_endpoint

from tests.fakes import FakeGitHub, file_json, user_json


def run(coro):
    return asyncio.run(coro)


async def _call(fake, method, *args):
    async with fake.client() as client:
        return await getattr(client, method)(*args)


def test_headers_carry_token_and_user_agent():
    client = GitHubClient(token="abc")
    assert client.headers["Authorization"] == "Bearer abc"
    assert client.headers["Accept"] == "application/vnd.github.v3+json"
    assert client.headers["User-Agent"]


def test_unauthenticated_client_sends_no_authorization():
    assert "Authorization" not in GitHubClient(token=None).headers


def test_get_user_parses_payload_and_coerces_nulls():
    fake = FakeGitHub({"/users/dev": (200, user_json(bio=None, email=None))})
    user = run(_call(fake, "get_user", "dev"))
    assert user.login == "dev"
    assert user.bio == ""
    assert user.email == ""


def test_404_on_user_path_is_user_not_found():
    fake = FakeGitHub()
    with pytest.raises(UserNotFound) as exc_info:
        run(_call(fake, "get_user", "ghost"))
    assert "not found" in str(exc_info.value)
    assert exc_info.value.username == "ghost"
    assert exc_info.value.endpoint == "/users/ghost"


def test_404_on_repository_path_is_resource_not_found():
    fake = FakeGitHub()
    with pytest.raises(ResourceNotFound):
        run(_call(fake, "list_contents", "dev/app", ".github/workflows"))


def test_exhausted_rate_limit_is_typed():
    headers = {"x-ratelimit-remaining": "0", "x-ratelimit-reset": "1700000000"}
    fake = FakeGitHub({"/users/dev": lambda request: httpx.Response(403, headers=headers, json={"message": "API rate limit exceeded"})})
    with pytest.raises(RateLimitExceeded) as exc_info:
        run(_call(fake, "get_user", "dev"))
    assert exc_info.value.reset_at is not None
    assert exc_info.value.reset_at.timestamp() == 1700000000
    assert isinstance(exc_info.value, GitHubForbidden)


def test_plain_403_is_forbidden_not_rate_limited():
    fake = FakeGitHub({"/users/dev": (403, {"message": "Resource not accessible"})})
    with pytest.raises(GitHubForbidden) as exc_info:
        run(_call(fake, "get_user", "dev"))
    assert not isinstance(exc_info.value, RateLimitExceeded)
    assert "Resource not accessible" in str(exc_info.value)


def test_server_error_is_api_error():
    fake = FakeGitHub({"/users/dev": (502, {"message": "Bad Gateway"})})
    with pytest.raises(GitHubAPIError) as exc_info:
        run(_call(fake, "get_user", "dev"))
    assert exc_info.value.status_code == 502


def test_unexpected_payload_shape_is_api_error():
    fake = FakeGitHub({"/users/dev": (200, ["not", "a", "user"])})
    with pytest.raises(GitHubAPIError):
        run(_call(fake, "get_user", "dev"))


def test_empty_repository_contributors_is_empty_list():
    fake = FakeGitHub({"/repos/dev/empty/contributors": (204, None)})
    assert run(_call(fake, "list_contributors", "dev/empty")) == []


def test_file_text_is_base64_decoded():
    fake = FakeGitHub({"/repos/dev/app/contents/README.md": (200, file_json("README.md", "# Hello\n"))})
    assert run(_call(fake, "get_file_text", "dev/app", "README.md")) == "# Hello\n"


def test_issues_distinguish_pull_requests():
    issues = [
        {"state": "open", "labels": []},
        {"state": "closed", "labels": [{"name": "bug"}], "pull_request": {"url": "x"}},
    ]
    fake = FakeGitHub({"/repos/dev/app/issues": (200, issues)})
    parsed = run(_call(fake, "list_issues", "dev/app"))
    assert [issue.is_pull_request for issue in parsed] == [False, True]


def test_fetch_optional_absent_is_quiet(caplog):
    caplog.set_level(logging.DEBUG)
    fake = FakeGitHub()

    async def scenario():
        async with fake.client() as client:
            return await client.fetch_optional(client.get_community_profile("dev/app"), "community profile")

    result = run(scenario())
    assert result.status is FetchStatus.ABSENT
    assert result.value_or("default") == "default"
    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]


def test_fetch_optional_failure_is_logged(caplog):
    fake = FakeGitHub({"/repos/dev/app/community/profile": (500, {"message": "boom"})})

    async def scenario():
        async with fake.client() as client:
            return await client.fetch_optional(client.get_community_profile("dev/app"), "community profile")

    result = run(scenario())
    assert result.status is FetchStatus.FAILED
    assert isinstance(result.error, GitHubAPIError)
    assert any(r.levelno == logging.WARNING for r in caplog.records)


def test_every_response_is_recorded_including_errors():
    headers = {"x-ratelimit-remaining": "4999", "x-ratelimit-reset": "1700000000"}
    fake = FakeGitHub({"/users/dev": lambda request: httpx.Response(200, headers=headers, json=user_json())})
    tracker = ApiUsageTracker()

    async def scenario():
        async with fake.client(tracker=tracker) as client:
            await client.get_user("dev")
            with pytest.raises(ResourceNotFound):
                await client.list_contents("dev/app")

    run(scenario())
    assert tracker.total_calls == 2
    assert tracker.calls_by_category == {"user-info": 1, "repository-content": 1}
    assert tracker.rate_limit_remaining == 4999
    assert tracker.summary()["rateLimitReset"].startswith("2023-11-14")


def test_separate_trackers_do_not_share_counts():
    fake = FakeGitHub({"/users/dev": (200, user_json())})
    first, second = ApiUsageTracker(), ApiUsageTracker()

    async def scenario():
        async with fake.client(tracker=first) as a, fake.client(tracker=second) as b:
            await asyncio.gather(a.get_user("dev"), a.get_user("dev"), b.get_user("dev"))

    run(scenario())
    assert first.total_calls == 2
    assert second.total_calls == 1


def test_with_tracker_shares_connection_but_not_counts():
    fake = FakeGitHub({"/users/dev": (200, user_json())})
    scan_tracker = ApiUsageTracker()

    async def scenario():
        async with fake.client() as client:
            view = client.with_tracker(scan_tracker)
            await view.get_user("dev")
            return client, view, view._client is client._client

    client, view, shared = asyncio.run(scenario())
    assert shared
    assert scan_tracker.total_calls == 1
    assert client.tracker.total_calls == 0
    assert view.headers == client.headers


def test_malformed_rate_limit_headers_never_raise():
    tracker = ApiUsageTracker()
    tracker.record("/users/dev", {"x-ratelimit-remaining": "lots", "x-ratelimit-reset": "soon"})
    assert tracker.total_calls == 1
    assert tracker.rate_limit_remaining is None


@pytest.mark.parametrize("endpoint, category", [
    ("/users/dev", "user-info"),
    ("/users/dev/repos?page=1&per_page=100", "repositories"),
    ("/users/reposman", "user-info"),
    ("/users/dev/orgs", "organizations"),
    ("/users/dev/events?page=2", "events"),
    ("/orgs/acme", "organization-details"),
    ("/repos/dev/app/contents/", "repository-content"),
    ("/repos/dev/app/contents/.github/workflows", "repository-content"),
    ("/repos/dev/app/contributors?per_page=100", "contributors"),
    ("/repos/dev/app/issues?state=all", "issues"),
    ("/repos/dev/app/branches/main/protection", "branch-protection"),
    ("/repos/dev/app/community/profile", "community"),
    ("/rate_limit", "other"),
])
def test_categorize_endpoint(endpoint, category):
    assert categorize_endpoint(endpoint) == category
