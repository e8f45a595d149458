"""End-to-end tests for ``process_github_account`` against a fake GitHub."""
import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from credscan.errors import AnalysisCancelled, InvalidIdentity, RateLimitExceeded, UserNotFound
from credscan.processor import process_github_account
from credscan.schemas import ProcessingOptions

from tests.fakes import FakeGitHub, paged, repo_json, user_json

NOW = datetime(2024, 6, 15, tzinfo=timezone.utc)


def _scan(fake, identity, options=None, **kwargs):
    async def scenario():
        async with fake.client() as client:
            return await process_github_account(identity, options, client=client, now=NOW, **kwargs)
    return asyncio.run(scenario())


def three_repo_account():
    return FakeGitHub({
        "/users/dev": (200, user_json()),
        "/users/dev/repos": paged([
            repo_json("upstream-fork", fork=True, language="C", size=0),
            repo_json("web", stargazers_count=5, language="TypeScript", size=1000),
            repo_json("tool", stargazers_count=0, language="Python", size=500),
        ]),
        "/users/dev/orgs": (200, []),
    })


def test_profile_for_small_account():
    fake = three_repo_account()
    options = ProcessingOptions(include_activity=False, analyze_content=False)

    profile = _scan(fake, "https://github.com/dev", options)

    assert [(lang.language, round(lang.percentage, 1)) for lang in profile.languages] == [
        ("TypeScript", 66.7), ("Python", 33.3),
    ]
    assert profile.forked_repos == 1
    assert profile.starred_repos == 5
    assert profile.activity_analysis is None
    assert profile.repository_content is None
    assert profile.overall_quality_score is None
    assert profile.contributions.total_repositories == 3
    assert profile.contributions.most_used_language == "TypeScript"

    dumped = profile.model_dump(by_alias=True)
    assert dumped["forkedRepos"] == 1
    assert dumped["activityAnalysis"] is None
    assert dumped["other"]["repositoriesAnalyzed"] == 0
    assert dumped["other"]["processingOptions"]["maxRepos"] == 100


def test_usage_telemetry_is_per_call():
    fake = three_repo_account()
    options = ProcessingOptions(include_activity=False)

    first = _scan(fake, "dev", options)
    second = _scan(fake, "dev", options)

    for profile in (first, second):
        assert profile.other["apiUsage"]["totalCalls"] == 3
        assert profile.other["apiUsage"]["callsByCategory"] == {
            "user-info": 1, "repositories": 1, "organizations": 1,
        }


def test_overlapping_scans_on_one_client_keep_separate_counts():
    fake = three_repo_account()
    options = ProcessingOptions(include_activity=False)

    async def scenario():
        async with fake.client() as client:
            shared_tracker = client.tracker
            profiles = await asyncio.gather(
                process_github_account("dev", options, client=client, now=NOW),
                process_github_account("dev", options, client=client, now=NOW),
            )
            return profiles, client.tracker is shared_tracker, shared_tracker.total_calls

    profiles, tracker_kept, shared_calls = asyncio.run(scenario())
    assert [p.other["apiUsage"]["totalCalls"] for p in profiles] == [3, 3]
    assert tracker_kept
    assert shared_calls == 0


def test_unknown_user_is_fatal():
    fake = FakeGitHub()
    with pytest.raises(UserNotFound) as exc_info:
        _scan(fake, "ghost", ProcessingOptions())
    assert "ghost" in str(exc_info.value)
    assert "not found" in str(exc_info.value)


def test_invalid_identity_makes_no_requests():
    fake = FakeGitHub()
    with pytest.raises(InvalidIdentity):
        _scan(fake, "   ")
    assert fake.requests == []


def test_rate_limited_repository_listing_is_fatal():
    fake = FakeGitHub({
        "/users/dev": (200, user_json()),
        "/users/dev/repos": lambda request: httpx.Response(
            403, headers={"x-ratelimit-remaining": "0"}, json={"message": "API rate limit exceeded"}
        ),
    })
    with pytest.raises(RateLimitExceeded):
        _scan(fake, "dev")


def test_content_sample_respects_cap_and_order():
    fake = FakeGitHub({
        "/users/dev": (200, user_json()),
        "/users/dev/repos": paged(
            [repo_json("forked", fork=True)] + [repo_json(f"r{i}") for i in range(5)]
        ),
    })
    options = ProcessingOptions(
        include_activity=False, include_organizations=False, analyze_content=True, max_content_analysis=2,
    )

    profile = _scan(fake, "dev", options)

    assert [c.repository for c in profile.repository_content] == ["dev/r0", "dev/r1"]
    assert profile.overall_quality_score is not None
    assert profile.other["repositoriesAnalyzed"] == 2
    assert not any(path.startswith("/repos/dev/forked") for path in fake.requests)


def test_activity_failures_degrade_to_defaults():
    fake = three_repo_account()
    fake.routes["/users/dev/events"] = (500, {"message": "boom"})
    fake.routes["/repos/dev/web/issues"] = (500, {"message": "boom"})
    fake.routes["/repos/dev/web/contributors"] = (502, {"message": "boom"})

    profile = _scan(fake, "dev", ProcessingOptions())

    activity = profile.activity_analysis
    assert activity is not None
    assert activity.commit_frequency.commit_message_quality == 50
    assert activity.pull_request_metrics.maintainer_merge_rate == 0
    assert activity.collaboration_signals.unique_contributors == 0
    assert activity.collaboration_signals.fork_to_star_ratio == 0
    assert profile.contributions.total_commits == 0
    assert profile.other["eventsAnalyzed"] == 0


def test_cancellation_between_steps():
    fake = three_repo_account()

    async def scenario():
        cancel = asyncio.Event()
        cancel.set()
        async with fake.client() as client:
            return await process_github_account("dev", client=client, cancel_event=cancel, now=NOW)

    with pytest.raises(AnalysisCancelled):
        asyncio.run(scenario())
    assert fake.requests == ["/users/dev"]
