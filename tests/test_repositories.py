"""Tests for repository collection, language aggregation and organizations."""
import asyncio

import httpx
import pytest

from credscan.analysis.repositories import language_stats, list_organizations, list_repositories
from credscan.errors import RateLimitExceeded
from credscan.schemas import Repository

from tests.fakes import FakeGitHub, paged, repo_json


async def _collect(fake, username, max_repos):
    async with fake.client() as client:
        return await list_repositories(client, username, max_repos)


def test_max_repos_bounds_collection_and_keeps_api_order():
    repos = [repo_json(f"repo-{i}") for i in range(12)]
    fake = FakeGitHub({"/users/dev/repos": paged(repos)})

    collected = asyncio.run(_collect(fake, "dev", 5))

    assert [r.name for r in collected] == [f"repo-{i}" for i in range(5)]
    assert fake.requests == ["/users/dev/repos"]


def test_collection_follows_pages_until_short_page():
    repos = [repo_json(f"repo-{i}") for i in range(250)]
    fake = FakeGitHub({"/users/dev/repos": paged(repos)})

    collected = asyncio.run(_collect(fake, "dev", 1000))

    assert len(collected) == 250
    assert len(fake.requests) == 3


def test_account_without_repositories_is_valid():
    fake = FakeGitHub({"/users/dev/repos": (200, [])})
    assert asyncio.run(_collect(fake, "dev", 100)) == []


def test_listing_failure_propagates():
    fake = FakeGitHub({"/users/dev/repos": lambda request: httpx.Response(
        403, headers={"x-ratelimit-remaining": "0"}, json={"message": "API rate limit exceeded"}
    )})
    with pytest.raises(RateLimitExceeded):
        asyncio.run(_collect(fake, "dev", 10))


def test_repository_fields_are_normalized():
    fake = FakeGitHub({"/users/dev/repos": (200, [
        repo_json("app", language="Go", stargazers_count=4, license={"name": "MIT License"}, default_branch=None),
    ])})
    repo = asyncio.run(_collect(fake, "dev", 10))[0]
    assert repo.full_name == "dev/app"
    assert repo.stars == 4
    assert repo.license == "MIT License"
    assert repo.description == ""
    assert repo.default_branch == "main"


def _repo(name, language, size):
    return Repository(name=name, full_name=f"dev/{name}", language=language, size=size)


def test_language_percentages_sum_to_100():
    stats = language_stats([
        _repo("a", "Python", 300),
        _repo("b", "Go", 120),
        _repo("c", "Python", 80),
        _repo("d", "Rust", 7),
    ])
    assert sum(s.percentage for s in stats) == pytest.approx(100, abs=0.01)
    assert [s.language for s in stats] == ["Python", "Go", "Rust"]
    assert stats[0].bytes == 380


def test_repositories_without_language_or_size_contribute_nothing():
    stats = language_stats([_repo("a", "", 5000), _repo("b", "Ruby", 0), _repo("c", "C", 10)])
    assert [(s.language, s.percentage) for s in stats] == [("C", 100.0)]


def test_no_languages_yields_empty_list():
    assert language_stats([_repo("a", "", 0)]) == []


def test_organization_detail_failure_falls_back_to_listing():
    fake = FakeGitHub({
        "/users/dev/orgs": (200, [
            {"login": "acme", "url": "https://api.github.com/orgs/acme", "avatar_url": "a.png"},
            {"login": "initech", "url": "https://api.github.com/orgs/initech"},
        ]),
        "/orgs/acme": (200, {"login": "acme", "name": "Acme Corp", "public_repos": 12, "html_url": "https://github.com/acme"}),
        "/orgs/initech": (500, {"message": "boom"}),
    })

    async def scenario():
        async with fake.client() as client:
            return await list_organizations(client, "dev")

    orgs = asyncio.run(scenario())
    assert [(o.login, o.name) for o in orgs] == [("acme", "Acme Corp"), ("initech", "initech")]
    assert orgs[0].public_repos == 12
    assert orgs[1].url == "https://api.github.com/orgs/initech"


def test_organization_listing_failure_is_empty():
    fake = FakeGitHub({"/users/dev/orgs": (500, {"message": "boom"})})

    async def scenario():
        async with fake.client() as client:
            return await list_organizations(client, "dev")

    assert asyncio.run(scenario()) == []
