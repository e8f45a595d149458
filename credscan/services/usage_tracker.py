import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional, Mapping

logger = logging.getLogger(__name__)

# (category, first path segment, later path segment). Ordered: the first matching rule wins.
_CATEGORY_RULES = (
    ("repositories", "users", "repos"),
    ("organizations", "users", "orgs"),
    ("events", "users", "events"),
    ("repository-content", "repos", "contents"),
    ("contributors", "repos", "contributors"),
    ("issues", "repos", "issues"),
    ("branch-protection", "repos", "protection"),
    ("community", "repos", "community"),
)


def categorize_endpoint(endpoint: str) -> str:
    """Map an API path to a telemetry category."""
    path = endpoint.split("?", 1)[0]
    segments = [s for s in path.split("/") if s]
    for category, root, segment in _CATEGORY_RULES:
        if segments[:1] == [root] and segment in segments[2:]:
            return category
    if len(segments) == 2 and segments[0] == "users":
        return "user-info"
    if segments and segments[0] == "orgs":
        return "organization-details"
    return "other"


@dataclass
class ApiUsageTracker:
    """Per-invocation GitHub API usage counters.

    One tracker is created for each ``process_github_account`` call and passed
    to the client, so overlapping scans never share counts.
    """
    total_calls: int = 0
    calls_by_category: Dict[str, int] = field(default_factory=dict)
    rate_limit_remaining: Optional[int] = None
    rate_limit_reset: Optional[datetime] = None

    def record(self, endpoint: str, headers: Optional[Mapping[str, str]] = None) -> None:
        self.total_calls += 1
        category = categorize_endpoint(endpoint)
        self.calls_by_category[category] = self.calls_by_category.get(category, 0) + 1
        if headers:
            self._update_rate_limit(headers)

    def _update_rate_limit(self, headers: Mapping[str, str]) -> None:
        remaining = headers.get("x-ratelimit-remaining")
        reset = headers.get("x-ratelimit-reset")
        try:
            if remaining is not None:
                self.rate_limit_remaining = int(remaining)
            if reset is not None:
                self.rate_limit_reset = datetime.fromtimestamp(int(reset), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError):
            logger.debug("Ignoring malformed rate-limit headers: %s / %s", remaining, reset)

    def summary(self) -> Dict[str, object]:
        return {
            "totalCalls": self.total_calls,
            "callsByCategory": dict(self.calls_by_category),
            "rateLimitRemaining": self.rate_limit_remaining,
            "rateLimitReset": self.rate_limit_reset.isoformat() if self.rate_limit_reset else None,
        }

    def log_summary(self) -> None:
        logger.info("=== GitHub API Usage Summary ===")
        logger.info("Total API calls made: %d", self.total_calls)
        for category, count in sorted(self.calls_by_category.items()):
            logger.info("  %s: %d calls", category, count)
        if self.rate_limit_remaining is not None:
            logger.info("Rate limit remaining: %d", self.rate_limit_remaining)
        if self.rate_limit_reset is not None:
            logger.info("Rate limit resets at: %s", self.rate_limit_reset.isoformat())
