"""Orchestrates a full GitHub account scan.

Identity resolution, the user lookup and repository listing are fatal; every
later step is best effort and degrades to an empty or default sub-result.
"""
import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from credscan import config
from credscan.errors import AnalysisCancelled
from credscan.schemas import (
    ActivityAnalysis,
    GitHubProfile,
    Organization,
    ProcessingOptions,
    RepositoryContent,
)
from credscan.services.github_client import GitHubClient
from credscan.services.github_payloads import RawEvent
from credscan.services.usage_tracker import ApiUsageTracker
from credscan.analysis.activity import (
    commit_frequency,
    contribution_stats,
    fetch_events,
    repository_stats,
)
from credscan.analysis.collaboration import collaboration_signals
from credscan.analysis.content import analyze_repository_content
from credscan.analysis.identity import resolve_username
from credscan.analysis.quality import aggregate_quality
from credscan.analysis.repositories import language_stats, list_organizations, list_repositories
from credscan.analysis.utils import utcnow

logger = logging.getLogger(__name__)


def _check_cancelled(cancel_event: Optional[asyncio.Event], step: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise AnalysisCancelled(f"GitHub analysis cancelled before {step}")


async def process_github_account(
    identity_input: str,
    options: Optional[ProcessingOptions] = None,
    *,
    client: Optional[GitHubClient] = None,
    token: Optional[str] = None,
    cancel_event: Optional[asyncio.Event] = None,
    now: Optional[datetime] = None,
) -> GitHubProfile:
    """
    Collects and scores everything the credibility check needs from one GitHub account.

    Args:
        identity_input (str): Profile URL or bare username.
        options (Optional[ProcessingOptions]): What to collect and how much of it.
        client (Optional[GitHubClient]): Client to share connections with. The scan
            records into its own tracker, so one client can serve overlapping
            scans. When omitted a client is created (and closed) with ``token``.
        token (Optional[str]): GitHub token; defaults to ``GITHUB_TOKEN``.
        cancel_event (Optional[asyncio.Event]): Set it to abort between steps.
        now (Optional[datetime]): Reference time for recency windows.
    Returns:
        GitHubProfile: The assembled profile. API usage is under ``other["apiUsage"]``.
    Raises:
        InvalidIdentity, UserNotFound, RateLimitExceeded, GitHubForbidden, GitHubAPIError:
            only from identity resolution, user lookup or repository listing.
        AnalysisCancelled: if ``cancel_event`` was set.
    """
    options = options or ProcessingOptions()
    now = now or utcnow()

    tracker = ApiUsageTracker()
    owns_client = client is None
    if client is None:
        client = GitHubClient(token=token if token is not None else config.GITHUB_TOKEN, tracker=tracker)
    else:
        client = client.with_tracker(tracker)

    try:
        return await _process(client, identity_input, options, cancel_event, now)
    finally:
        tracker.log_summary()
        if owns_client:
            await client.close()


async def _process(
    client: GitHubClient,
    identity_input: str,
    options: ProcessingOptions,
    cancel_event: Optional[asyncio.Event],
    now: datetime,
) -> GitHubProfile:
    logger.info("Processing GitHub account: %s", identity_input)
    username = resolve_username(identity_input)
    logger.info("Extracted username: %s", username)

    user = await client.get_user(username)

    _check_cancelled(cancel_event, "repository collection")
    repositories = await list_repositories(client, username, options.max_repos)

    events: List[RawEvent] = []
    activity_analysis: Optional[ActivityAnalysis] = None
    if options.include_activity:
        _check_cancelled(cancel_event, "activity analysis")
        events = await fetch_events(client, username, options.max_events)
        frequency = commit_frequency(events, now=now)
        issue_metrics, pull_request_metrics = await repository_stats(client, username, repositories)
        _check_cancelled(cancel_event, "collaboration analysis")
        collaboration = await collaboration_signals(client, username, repositories, events)
        activity_analysis = ActivityAnalysis(
            commit_frequency=frequency,
            issue_metrics=issue_metrics,
            pull_request_metrics=pull_request_metrics,
            collaboration_signals=collaboration,
        )
        logger.info("Activity analysis completed for %s (%d events)", username, len(events))

    repository_content: Optional[List[RepositoryContent]] = None
    if options.analyze_content and repositories:
        sample = [repo for repo in repositories if not repo.is_fork][:options.max_content_analysis]
        repository_content = []
        for repo in sample:
            _check_cancelled(cancel_event, f"content analysis of {repo.full_name}")
            try:
                repository_content.append(await analyze_repository_content(client, repo, now=now))
            except Exception:
                logger.warning("Failed to analyze repository %s", repo.full_name, exc_info=True)
        logger.info("Analyzed content of %d repositories", len(repository_content))

    languages = language_stats(repositories)

    organizations: List[Organization] = []
    if options.include_organizations:
        _check_cancelled(cancel_event, "organization lookup")
        organizations = await list_organizations(client, username)

    contributions = contribution_stats(repositories, languages, events, now=now)

    profile = GitHubProfile(
        username=user.login or username,
        name=user.name,
        bio=user.bio,
        location=user.location,
        email=user.email,
        blog=user.blog,
        company=user.company,
        profile_url=user.html_url or f"https://github.com/{username}",
        avatar_url=user.avatar_url,
        followers=user.followers,
        following=user.following,
        public_repos=user.public_repos,
        public_gists=user.public_gists,
        account_creation_date=user.created_at,
        last_activity_date=user.updated_at or None,
        repositories=repositories,
        repository_content=repository_content,
        languages=languages,
        contributions=contributions,
        activity_analysis=activity_analysis,
        starred_repos=sum(repo.stars for repo in repositories),
        forked_repos=sum(1 for repo in repositories if repo.is_fork),
        organizations=organizations,
        overall_quality_score=aggregate_quality([c.quality_score for c in repository_content or []]),
        other={
            "processingDate": now.isoformat(),
            "apiVersion": "v3",
            "processingOptions": options.model_dump(by_alias=True),
            "contentAnalysisEnabled": options.analyze_content,
            "activityAnalysisEnabled": options.include_activity,
            "repositoriesAnalyzed": len(repository_content or []),
            "eventsAnalyzed": len(events),
            "apiUsage": client.tracker.summary(),
        },
    )
    logger.info("GitHub account processing completed for %s", username)
    return profile
