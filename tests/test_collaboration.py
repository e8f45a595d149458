"""Tests for collaboration signals."""
import asyncio

from credscan.analysis.collaboration import (
    collaboration_signals,
    community_engagement,
    count_outside_contributions,
)
from credscan.schemas import Repository
from credscan.services.github_payloads import RawEvent

from tests.fakes import FakeGitHub


def _event(kind, repo):
    return RawEvent.model_validate({"type": kind, "repo": {"name": repo}})


def _repo(name, stars=0, forks=0, fork=False):
    return Repository(name=name, full_name=f"dev/{name}", stars=stars, forks=forks, is_fork=fork)


def test_outside_contributions_ignore_own_repositories():
    events = [
        _event("PullRequestEvent", "other/project"),
        _event("IssuesEvent", "Other/thing"),
        _event("PullRequestReviewEvent", "team/service"),
        _event("PullRequestEvent", "Dev/app"),
        _event("PushEvent", "other/project"),
    ]
    assert count_outside_contributions("dev", events) == 3


def test_engagement_is_mean_of_capped_factors():
    assert community_engagement(0, 0, 0.0, False, False) == 0
    assert community_engagement(20, 10, 0.5, True, True) == 100
    assert community_engagement(5, 0, 0.0, False, True) == 30


def test_collaboration_signals():
    fake = FakeGitHub({
        "/repos/dev/app/contributors": (200, [
            {"login": "dev", "contributions": 90},
            {"login": "alice", "contributions": 5},
            {"login": "bob", "contributions": 2},
        ]),
        "/repos/dev/app/community/profile": (200, {
            "health_percentage": 70,
            "files": {"code_of_conduct": {"name": "Contributor Covenant"}, "contributing": None, "security": None},
        }),
        "/repos/dev/lib/contributors": (204, None),
        "/repos/dev/lib/community/profile": (200, {"files": {"contributing": {"url": "x"}}}),
    })
    repositories = [
        _repo("app", stars=8, forks=2),
        _repo("lib", stars=2),
        _repo("unstarred"),
        _repo("forked", stars=50, forks=1, fork=True),
    ]
    events = [_event("PullRequestEvent", "octo/hello")]

    async def scenario():
        async with fake.client() as client:
            return await collaboration_signals(client, "DEV", repositories, events)

    signals = asyncio.run(scenario())
    assert signals.unique_contributors == 2
    assert signals.core_team_size == 2
    assert signals.outside_contributions == 1
    assert signals.fork_to_star_ratio == 0.05
    assert signals.has_code_of_conduct
    assert signals.has_contributing_guide
    assert not signals.has_security_policy
    assert "/repos/dev/unstarred/contributors" not in fake.requests
    assert "/repos/dev/forked/contributors" not in fake.requests


def test_collaboration_without_stars():
    fake = FakeGitHub()

    async def scenario():
        async with fake.client() as client:
            return await collaboration_signals(client, "dev", [_repo("app")], [])

    signals = asyncio.run(scenario())
    assert signals.fork_to_star_ratio == 0
    assert signals.community_engagement == 0
    assert fake.requests == []
