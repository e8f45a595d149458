import logging
from typing import Dict, List

from credscan.errors import GitHubError
from credscan.schemas import LanguageStat, Organization, Repository
from credscan.services.github_client import GitHubClient
from credscan.services.github_payloads import RawRepository

logger = logging.getLogger(__name__)

GITHUB_MAX_PER_PAGE = 100


def to_repository(raw: RawRepository) -> Repository:
    return Repository(
        name=raw.name,
        full_name=raw.full_name,
        description=raw.description,
        language=raw.language,
        stars=raw.stargazers_count,
        forks=raw.forks_count,
        watchers=raw.watchers_count,
        size=raw.size,
        is_private=raw.private,
        is_fork=raw.fork,
        created_at=raw.created_at,
        updated_at=raw.updated_at,
        topics=raw.topics,
        url=raw.html_url,
        clone_url=raw.clone_url,
        license=raw.license.name if raw.license else "",
        has_issues=raw.has_issues,
        has_projects=raw.has_projects,
        has_wiki=raw.has_wiki,
        has_pages=raw.has_pages,
        open_issues=raw.open_issues_count,
        default_branch=raw.default_branch or "main",
    )


async def list_repositories(client: GitHubClient, username: str, max_repos: int = 100) -> List[Repository]:
    """
    Collects a user's repositories, most recently updated first.

    Pages through ``/users/{username}/repos`` until ``max_repos`` records are
    collected or GitHub returns a short (last) page. API errors propagate.

    Args:
        client (GitHubClient): API client for the current scan.
        username (str): GitHub username.
        max_repos (int): Upper bound on repositories returned.
    Returns:
        List[Repository]: Repositories in API order.
    """
    repositories: List[Repository] = []
    per_page = min(max_repos, GITHUB_MAX_PER_PAGE)
    page = 1

    while len(repositories) < max_repos:
        batch = await client.list_user_repos(username, page=page, per_page=per_page)
        if not batch:
            break

        for raw in batch:
            if len(repositories) >= max_repos:
                break
            repositories.append(to_repository(raw))

        if len(batch) < per_page:
            break
        page += 1

    logger.info("Collected %d repositories for %s", len(repositories), username)
    return repositories


def language_stats(repositories: List[Repository]) -> List[LanguageStat]:
    """
    Approximates a language breakdown from repository sizes.

    Each repository's whole size counts towards its primary language.
    Repositories without a language or with zero size are left out entirely.
    """
    language_bytes: Dict[str, int] = {}
    total = 0
    for repo in repositories:
        if repo.language and repo.size > 0:
            language_bytes[repo.language] = language_bytes.get(repo.language, 0) + repo.size
            total += repo.size

    stats = [
        LanguageStat(language=language, bytes=size, percentage=(size / total) * 100 if total else 0.0)
        for language, size in language_bytes.items()
    ]
    return sorted(stats, key=lambda s: s.percentage, reverse=True)


async def list_organizations(client: GitHubClient, username: str) -> List[Organization]:
    """
    Fetches the user's public organizations with their details.

    A failed detail lookup falls back to what the listing already provides;
    a failed listing yields an empty list.
    """
    try:
        summaries = await client.list_user_orgs(username)
    except GitHubError as e:
        logger.warning("Could not list organizations for %s: %s", username, e)
        return []

    organizations: List[Organization] = []
    for summary in summaries:
        try:
            org = await client.get_org(summary.login, username)
        except GitHubError as e:
            logger.warning("Could not fetch details for organization %s: %s", summary.login, e)
            organizations.append(Organization(
                login=summary.login,
                name=summary.login,
                url=summary.url,
                avatar_url=summary.avatar_url,
            ))
            continue

        organizations.append(Organization(
            login=org.login,
            name=org.name or org.login,
            description=org.description,
            url=org.html_url,
            avatar_url=org.avatar_url,
            public_repos=org.public_repos,
            location=org.location,
            blog=org.blog,
            email=org.email,
            created_at=org.created_at,
        ))
    return organizations
