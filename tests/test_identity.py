"""Tests for GitHub username resolution."""
import pytest

from credscan.analysis.identity import resolve_username
from credscan.errors import InvalidIdentity


def test_bare_username_and_profile_url_resolve_the_same():
    assert resolve_username("octocat") == resolve_username("https://github.com/octocat") == "octocat"


@pytest.mark.parametrize("value", [
    "  octocat  ",
    "github.com/octocat",
    "http://www.github.com/octocat/",
    "https://GitHub.com/octocat?tab=repositories",
    "https://github.com/octocat/hello-world",
    "octocat/",
])
def test_url_variants(value):
    assert resolve_username(value) == "octocat"


def test_resolution_is_idempotent():
    username = resolve_username("https://github.com/some-dev")
    assert resolve_username(username) == username


@pytest.mark.parametrize("value", ["", "   ", None, "https://gitlab.com/octocat/repo"])
def test_invalid_input_raises(value):
    with pytest.raises(InvalidIdentity) as exc_info:
        resolve_username(value)
    assert "Invalid GitHub URL format" in str(exc_info.value)
