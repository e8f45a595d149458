import logging
from typing import List, Set

from credscan.constants import OUTSIDE_CONTRIBUTION_EVENTS
from credscan.errors import GitHubError
from credscan.schemas import CollaborationSignals, Repository
from credscan.services.github_client import GitHubClient
from credscan.services.github_payloads import RawEvent
from credscan.analysis.utils import round_half_up

logger = logging.getLogger(__name__)

CONTRIBUTOR_SAMPLE_SIZE = 3


def count_outside_contributions(username: str, events: List[RawEvent]) -> int:
    """PR, issue and review events on repositories owned by someone else."""
    own = username.lower()
    count = 0
    for event in events:
        if event.type not in OUTSIDE_CONTRIBUTION_EVENTS:
            continue
        owner = event.repo.name.split("/", 1)[0]
        if owner and owner.lower() != own:
            count += 1
    return count


def community_engagement(
    outside_contributions: int,
    unique_contributors: int,
    fork_to_star_ratio: float,
    has_code_of_conduct: bool,
    has_contributing_guide: bool,
) -> int:
    factors = [
        min(outside_contributions / 10, 1.0),
        min(unique_contributors / 5, 1.0),
        min(fork_to_star_ratio * 10, 1.0),
        1.0 if has_code_of_conduct else 0.0,
        1.0 if has_contributing_guide else 0.0,
    ]
    return round_half_up(sum(factors) / len(factors) * 100)


async def collaboration_signals(
    client: GitHubClient,
    username: str,
    repositories: List[Repository],
    events: List[RawEvent],
    sample_size: int = CONTRIBUTOR_SAMPLE_SIZE,
) -> CollaborationSignals:
    """
    Derives collaboration signals from starred original repositories and events.

    Contributors and community files come from the first ``sample_size``
    non-fork repositories with at least one star; the fork/star ratio covers
    every collected repository.
    """
    contributors: Set[str] = set()
    has_code_of_conduct = has_contributing_guide = has_security_policy = False
    own = username.lower()

    sample = [repo for repo in repositories if not repo.is_fork and repo.stars > 0][:sample_size]
    for repo in sample:
        try:
            for contributor in await client.list_contributors(repo.full_name, username):
                if contributor.login and contributor.login.lower() != own:
                    contributors.add(contributor.login)
        except GitHubError as e:
            logger.warning("Failed to analyze collaboration for %s: %s", repo.name, e)
            continue

        profile = await client.fetch_optional(
            client.get_community_profile(repo.full_name), f"community profile of {repo.full_name}"
        )
        if profile.is_present:
            files = profile.value.files
            has_code_of_conduct = has_code_of_conduct or files.code_of_conduct is not None
            has_contributing_guide = has_contributing_guide or files.contributing is not None
            has_security_policy = has_security_policy or files.security is not None

    total_stars = sum(repo.stars for repo in repositories)
    total_forks = sum(repo.forks for repo in repositories)
    ratio = total_forks / total_stars if total_stars else 0.0
    outside = count_outside_contributions(username, events)

    return CollaborationSignals(
        unique_contributors=len(contributors),
        core_team_size=min(5, len(contributors)),
        outside_contributions=outside,
        fork_to_star_ratio=round(ratio, 2),
        community_engagement=community_engagement(
            outside, len(contributors), ratio, has_code_of_conduct, has_contributing_guide
        ),
        has_code_of_conduct=has_code_of_conduct,
        has_contributing_guide=has_contributing_guide,
        has_security_policy=has_security_policy,
    )
