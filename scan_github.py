"""Command-line entry point: scan one GitHub account and print the profile JSON.

Usage:
    python scan_github.py octocat --content 3
"""
import argparse
import asyncio
import logging
import sys

from credscan import config
from credscan.errors import AnalysisCancelled, GitHubError
from credscan.processor import process_github_account
from credscan.schemas import ProcessingOptions

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Aggregate GitHub credibility signals for one account.")
    parser.add_argument("github", help="GitHub username or profile URL")
    parser.add_argument("--max-repos", type=int, default=100, help="maximum repositories to collect")
    parser.add_argument("--content", type=int, default=0, metavar="N",
                        help="analyze README/CI/layout of the first N original repositories")
    parser.add_argument("--no-activity", action="store_true", help="skip event and collaboration analysis")
    parser.add_argument("--no-orgs", action="store_true", help="skip organization lookup")
    return parser.parse_args(argv)


async def main(argv=None) -> int:
    args = parse_args(argv)
    options = ProcessingOptions(
        max_repos=args.max_repos,
        analyze_content=args.content > 0,
        max_content_analysis=args.content,
        include_activity=not args.no_activity,
        include_organizations=not args.no_orgs,
    )
    try:
        profile = await process_github_account(args.github, options)
    except (GitHubError, AnalysisCancelled) as e:
        logger.error("Could not analyze this GitHub account: %s", e)
        return 1

    print(profile.model_dump_json(by_alias=True, indent=2))
    return 0


if __name__ == "__main__":
    config.configure_logging()
    sys.exit(asyncio.run(main()))
