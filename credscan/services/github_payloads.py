"""Response schemas for the GitHub REST endpoints the analyzer consumes.

Only the fields the analyzers read are declared; everything else GitHub sends
is ignored. ``None`` values coming back from the API are coerced to the field
default so downstream code never has to re-check them.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GitHubPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _none_to_default(cls, value, info):
        if value is None:
            field = cls.model_fields[info.field_name]
            if field.is_required():
                return value
            if field.default_factory is not None:
                return field.default_factory()
            return field.default
        return value


class RawUser(GitHubPayload):
    login: str
    name: str = ""
    bio: str = ""
    location: str = ""
    email: str = ""
    blog: str = ""
    company: str = ""
    html_url: str = ""
    avatar_url: str = ""
    followers: int = 0
    following: int = 0
    public_repos: int = 0
    public_gists: int = 0
    created_at: str = ""
    updated_at: str = ""


class RawLicense(GitHubPayload):
    name: str = ""


class RawRepository(GitHubPayload):
    name: str
    full_name: str
    description: str = ""
    language: str = ""
    stargazers_count: int = 0
    forks_count: int = 0
    watchers_count: int = 0
    size: int = 0
    private: bool = False
    fork: bool = False
    created_at: str = ""
    updated_at: str = ""
    topics: List[str] = Field(default_factory=list)
    html_url: str = ""
    clone_url: str = ""
    license: Optional[RawLicense] = None
    has_issues: bool = False
    has_projects: bool = False
    has_wiki: bool = False
    has_pages: bool = False
    open_issues_count: int = 0
    default_branch: str = "main"


class RawCommit(GitHubPayload):
    message: str = ""


class RawEventPayload(GitHubPayload):
    commits: List[RawCommit] = Field(default_factory=list)
    size: int = 0


class RawEventRepo(GitHubPayload):
    name: str = ""


class RawEvent(GitHubPayload):
    type: str = ""
    created_at: str = ""
    repo: RawEventRepo = Field(default_factory=RawEventRepo)
    payload: RawEventPayload = Field(default_factory=RawEventPayload)


class RawOrganizationSummary(GitHubPayload):
    login: str
    url: str = ""
    avatar_url: str = ""


class RawOrganization(GitHubPayload):
    login: str
    name: str = ""
    description: str = ""
    html_url: str = ""
    avatar_url: str = ""
    public_repos: int = 0
    location: str = ""
    blog: str = ""
    email: str = ""
    created_at: str = ""


class RawContentItem(GitHubPayload):
    name: str
    path: str = ""
    type: str = ""
    size: int = 0


class RawFileContent(GitHubPayload):
    name: str = ""
    type: str = ""
    content: str = ""
    encoding: str = ""


class RawLabel(GitHubPayload):
    name: str = ""


class RawIssue(GitHubPayload):
    state: str = ""
    labels: List[RawLabel] = Field(default_factory=list)
    pull_request: Optional[Dict[str, Any]] = None

    @property
    def is_pull_request(self) -> bool:
        return self.pull_request is not None


class RawContributor(GitHubPayload):
    login: str = ""
    contributions: int = 0


class RawBranchProtection(GitHubPayload):
    required_pull_request_reviews: Optional[Dict[str, Any]] = None


class RawCommunityFiles(GitHubPayload):
    code_of_conduct: Optional[Dict[str, Any]] = None
    contributing: Optional[Dict[str, Any]] = None
    security: Optional[Dict[str, Any]] = None


class RawCommunityProfile(GitHubPayload):
    health_percentage: int = 0
    files: RawCommunityFiles = Field(default_factory=RawCommunityFiles)
