import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from credscan.constants import CONVENTIONAL_COMMIT_PATTERN, TEMPLATE_FILE_NAMES
from credscan.errors import GitHubError
from credscan.schemas import (
    CommitFrequency,
    ContributionStats,
    IssueMetrics,
    LanguageStat,
    PullRequestMetrics,
    Repository,
)
from credscan.services.github_client import GitHubClient
from credscan.services.github_payloads import RawEvent
from credscan.analysis.repositories import GITHUB_MAX_PER_PAGE
from credscan.analysis.utils import parse_timestamp, round_half_up, utcnow

logger = logging.getLogger(__name__)

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
STATS_SAMPLE_SIZE = 5
# GitHub answers 422 when paging past its public event window
GITHUB_MAX_EVENTS = 300
DESCRIPTIVE_MESSAGE_LENGTH = 20


async def fetch_events(client: GitHubClient, username: str, max_events: int = 300) -> List[RawEvent]:
    """
    Fetches the user's recent public events, newest first.

    GitHub only serves the last 300 events, so everything derived from them is
    a snapshot rather than full history. A failing page ends the fetch and the
    events from earlier pages are kept.
    """
    max_events = min(max_events, GITHUB_MAX_EVENTS)
    if max_events <= 0:
        return []

    events: List[RawEvent] = []
    per_page = min(max_events, GITHUB_MAX_PER_PAGE)
    page = 1
    while len(events) < max_events:
        try:
            batch = await client.list_user_events(username, page=page, per_page=per_page)
        except GitHubError as e:
            logger.warning("Error fetching events page %d for %s: %s", page, username, e)
            break
        if not batch:
            break
        events.extend(batch)
        if len(batch) < per_page:
            break
        page += 1

    return events[:max_events]


def _commit_count(event: RawEvent) -> int:
    return len(event.payload.commits) or event.payload.size


def commit_frequency(events: List[RawEvent], now: Optional[datetime] = None) -> CommitFrequency:
    """
    Derives commit volume and commit message quality from push events.

    Message quality (0-100) blends average length (up to 30 points), the share
    of descriptive messages longer than 20 characters (40 points) and a 30 point
    bonus when most messages follow Conventional Commits. With no messages the
    score stays neutral at 50.
    """
    now = now or utcnow()
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)
    year_ago = now - timedelta(days=365)

    last_week = last_month = last_year = 0
    messages: List[str] = []

    for event in events:
        if event.type != "PushEvent":
            continue
        messages.extend(commit.message for commit in event.payload.commits if commit.message)

        created = parse_timestamp(event.created_at)
        if created is None:
            continue
        count = _commit_count(event)
        if created > week_ago:
            last_week += count
        if created > month_ago:
            last_month += count
        if created > year_ago:
            last_year += count

    quality, conventional = commit_message_quality(messages)
    return CommitFrequency(
        last_week=last_week,
        last_month=last_month,
        last_year=last_year,
        average_per_week=round_half_up(last_year / 52),
        commit_message_quality=quality,
        conventional_commits=conventional,
    )


def commit_message_quality(messages: List[str]) -> Tuple[int, bool]:
    if not messages:
        return 50, False

    conventional_count = sum(1 for msg in messages if CONVENTIONAL_COMMIT_PATTERN.match(msg))
    conventional = conventional_count / len(messages) > 0.5

    average_length = sum(len(msg) for msg in messages) / len(messages)
    descriptive = sum(1 for msg in messages if len(msg) > DESCRIPTIVE_MESSAGE_LENGTH) / len(messages)

    if average_length > DESCRIPTIVE_MESSAGE_LENGTH:
        length_points = 30.0
    else:
        length_points = average_length / DESCRIPTIVE_MESSAGE_LENGTH * 30

    score = length_points + descriptive * 40 + (30 if conventional else 0)
    return min(100, round_half_up(score)), conventional


async def repository_stats(
    client: GitHubClient,
    username: str,
    repositories: List[Repository],
    sample_size: int = STATS_SAMPLE_SIZE,
) -> Tuple[IssueMetrics, PullRequestMetrics]:
    """
    Estimates issue and pull request discipline from a sample of repositories.

    Samples the first ``sample_size`` non-fork repositories in the given order,
    so callers control determinism through ordering. The counts describe the
    sample, not the whole account.
    """
    open_issues = closed_issues = open_prs = merged_prs = 0
    has_labels = has_templates = requires_reviews = False

    sample = [repo for repo in repositories if not repo.is_fork][:sample_size]
    for repo in sample:
        try:
            issues = await client.list_issues(repo.full_name, username)
        except GitHubError as e:
            logger.warning("Failed to analyze repository %s: %s", repo.name, e)
            continue

        for issue in issues:
            if issue.is_pull_request:
                if issue.state == "open":
                    open_prs += 1
                elif issue.state == "closed":
                    merged_prs += 1
            elif issue.state == "open":
                open_issues += 1
            elif issue.state == "closed":
                closed_issues += 1
            if issue.labels:
                has_labels = True

        github_dir = await client.fetch_optional(
            client.list_contents(repo.full_name, ".github"), f".github directory of {repo.full_name}"
        )
        if any(_is_template(item.name) for item in github_dir.value_or([])):
            has_templates = True

        protection = await client.fetch_optional(
            client.get_branch_protection(repo.full_name, repo.default_branch),
            f"branch protection for {repo.full_name}@{repo.default_branch}",
        )
        if protection.is_present and protection.value.required_pull_request_reviews:
            requires_reviews = True

    merge_denominator = merged_prs + open_prs
    issue_metrics = IssueMetrics(
        total_open=open_issues,
        total_closed=closed_issues,
        has_labels=has_labels,
        has_templates=has_templates,
    )
    pull_request_metrics = PullRequestMetrics(
        total_open=open_prs,
        total_merged=merged_prs,
        has_templates=has_templates,
        requires_reviews=requires_reviews,
        maintainer_merge_rate=round_half_up(merged_prs / merge_denominator * 100) if merge_denominator else 0,
    )
    return issue_metrics, pull_request_metrics


def _is_template(file_name: str) -> bool:
    return "template" in file_name.lower() or file_name in TEMPLATE_FILE_NAMES


def contribution_stats(
    repositories: List[Repository],
    languages: List[LanguageStat],
    events: List[RawEvent],
    now: Optional[datetime] = None,
) -> ContributionStats:
    """
    Aggregate contribution counters from repositories and the recent event window.
    """
    stats = ContributionStats(
        total_repositories=len(repositories),
        most_used_language=languages[0].language if languages else "",
    )
    if not events:
        return stats

    now = now or utcnow()
    year_ago = now - timedelta(days=365)
    active_dates = set()
    weekdays: Counter = Counter()

    for event in events:
        if event.type == "PushEvent":
            stats.total_commits += _commit_count(event)
        elif event.type == "PullRequestEvent":
            stats.total_pull_requests += 1
        elif event.type == "IssuesEvent":
            stats.total_issues += 1

        created = parse_timestamp(event.created_at)
        if created is None:
            continue
        active_dates.add(created.date())
        weekdays[WEEKDAYS[created.weekday()]] += 1
        if created > year_ago:
            stats.contributions_last_year += 1

    stats.streak_days = current_streak(active_dates, now)
    if weekdays:
        # ties go to the day seen last among the busiest
        busiest = max(weekdays.values())
        stats.most_active_day = [day for day, count in weekdays.items() if count == busiest][-1]
    return stats


def current_streak(active_dates, now: datetime) -> int:
    """Consecutive active days ending today, or yesterday if today has no activity yet."""
    day = now.date()
    if day not in active_dates:
        day -= timedelta(days=1)
    streak = 0
    while day in active_dates:
        streak += 1
        day -= timedelta(days=1)
    return streak
