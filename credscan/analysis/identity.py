import re

from credscan.errors import InvalidIdentity

_PROFILE_URL_PATTERN = re.compile(r"github\.com/([^/?#]+)", re.IGNORECASE)
_BARE_SEGMENT_PATTERN = re.compile(r"^([^/?#]+)/?$")


def resolve_username(value: str) -> str:
    """
    Extracts a GitHub username from a profile URL or a bare handle.

    ``"octocat"``, ``"https://github.com/octocat"`` and
    ``"github.com/octocat?tab=repositories"`` all resolve to ``"octocat"``.
    Resolving an already-canonical username returns it unchanged.

    Args:
        value (str): Free-form user input.
    Returns:
        str: The username.
    Raises:
        InvalidIdentity: If no username can be extracted.
    """
    text = (value or "").strip()
    if not text:
        raise InvalidIdentity(f"Invalid GitHub URL format: {value!r}")

    if "/" not in text and "." not in text:
        return text

    for pattern in (_PROFILE_URL_PATTERN, _BARE_SEGMENT_PATTERN):
        match = pattern.search(text)
        if match and match.group(1):
            return match.group(1)

    raise InvalidIdentity(f"Invalid GitHub URL format: {value!r}")
