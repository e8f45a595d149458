from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    """Base for every profile record; dumps with camelCase keys when ``by_alias=True``."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProcessingOptions(Record):
    max_repos: int = Field(default=100, ge=1)
    include_organizations: bool = True
    analyze_content: bool = False
    max_content_analysis: int = Field(default=10, ge=0)
    include_activity: bool = True
    max_events: int = Field(default=300, ge=0, le=300)


class Repository(Record):
    name: str
    full_name: str
    description: str = ""
    language: str = ""
    stars: int = 0
    forks: int = 0
    watchers: int = 0
    size: int = 0  # KB, as reported by GitHub
    is_private: bool = False
    is_fork: bool = False
    created_at: str = ""
    updated_at: str = ""
    topics: List[str] = Field(default_factory=list)
    url: str = ""
    clone_url: str = ""
    license: str = ""
    has_issues: bool = False
    has_projects: bool = False
    has_wiki: bool = False
    has_pages: bool = False
    open_issues: int = 0
    default_branch: str = "main"


class LanguageStat(Record):
    language: str
    bytes: int
    percentage: float


class ContributionStats(Record):
    total_commits: int = 0
    total_pull_requests: int = 0
    total_issues: int = 0
    total_repositories: int = 0
    streak_days: int = 0
    contributions_last_year: int = 0
    most_active_day: str = ""
    most_used_language: str = ""


class Organization(Record):
    login: str
    name: str = ""
    description: str = ""
    url: str = ""
    avatar_url: str = ""
    public_repos: int = 0
    location: str = ""
    blog: str = ""
    email: str = ""
    created_at: str = ""


# Activity

class CommitFrequency(Record):
    last_week: int = 0
    last_month: int = 0
    last_year: int = 0
    average_per_week: int = 0
    commit_message_quality: int = 50
    conventional_commits: bool = False


class IssueMetrics(Record):
    total_open: int = 0
    total_closed: int = 0
    average_response_time: float = 0  # hours
    average_resolution_time: float = 0  # hours
    has_labels: bool = False
    has_templates: bool = False
    maintainer_response_rate: int = 0


class PullRequestMetrics(Record):
    total_open: int = 0
    total_merged: int = 0
    average_review_time: float = 0  # hours
    average_merge_time: float = 0  # hours
    has_templates: bool = False
    requires_reviews: bool = False
    maintainer_merge_rate: int = 0


class CollaborationSignals(Record):
    unique_contributors: int = 0
    core_team_size: int = 0
    outside_contributions: int = 0
    fork_to_star_ratio: float = 0
    community_engagement: int = 0
    has_code_of_conduct: bool = False
    has_contributing_guide: bool = False
    has_security_policy: bool = False


class ActivityAnalysis(Record):
    commit_frequency: CommitFrequency
    issue_metrics: IssueMetrics
    pull_request_metrics: PullRequestMetrics
    collaboration_signals: CollaborationSignals


# Repository content

class ReadmeAnalysis(Record):
    exists: bool = False
    length: int = 0
    sections: List[str] = Field(default_factory=list)
    has_badges: bool = False
    has_install_instructions: bool = False
    has_usage_examples: bool = False
    has_contributing: bool = False
    has_license: bool = False
    image_count: int = 0
    link_count: int = 0
    code_block_count: int = 0
    quality_score: int = 0


class PackageAnalysis(Record):
    exists: bool = False
    has_scripts: bool = False
    script_count: int = 0
    dependency_count: int = 0
    dev_dependency_count: int = 0
    has_linting: bool = False
    has_testing: bool = False
    has_type_script: bool = False
    has_documentation: bool = False
    has_valid_license: bool = False
    frameworks: List[str] = Field(default_factory=list)
    build_tools: List[str] = Field(default_factory=list)
    testing_frameworks: List[str] = Field(default_factory=list)
    linting_tools: List[str] = Field(default_factory=list)
    # No registry lookup is made; None means "not assessed".
    outdated_dependencies: Optional[int] = None
    security_vulnerabilities: Optional[int] = None


class WorkflowAnalysis(Record):
    name: str
    file_name: str
    triggers: List[str] = Field(default_factory=list)
    jobs: List[str] = Field(default_factory=list)
    has_test_job: bool = False
    has_lint_job: bool = False
    has_build_job: bool = False
    has_deploy_job: bool = False
    uses_secrets: bool = False
    matrix_strategy: bool = False
    complexity: int = 0


class CodeStructure(Record):
    file_count: int = 0
    directory_count: int = 0
    language_files: Dict[str, int] = Field(default_factory=dict)
    has_tests: bool = False
    test_frameworks: List[str] = Field(default_factory=list)
    has_documentation: bool = False
    has_examples: bool = False
    has_config_files: bool = False
    organization_score: int = 0


class QualityBreakdown(Record):
    readme_quality: int = 0
    has_ci: int = Field(default=0, alias="hasCI")
    has_tests: int = 0
    has_linting: int = 0
    dependency_health: int = 0
    community_files: int = 0
    recent_activity: int = 0


class QualityScore(Record):
    overall: int = 0
    readme: int = 0
    code_organization: int = 0
    cicd: int = 0
    documentation: int = 0
    maintenance: int = 0
    community: int = 0
    breakdown: QualityBreakdown = Field(default_factory=QualityBreakdown)


class RepositoryContent(Record):
    repository: str
    readme: ReadmeAnalysis
    package_json: Optional[PackageAnalysis] = None
    workflows: List[WorkflowAnalysis] = Field(default_factory=list)
    code_structure: CodeStructure
    quality_score: QualityScore


class GitHubProfile(Record):
    """Aggregate root handed to the credibility oracle."""
    username: str
    name: str = ""
    bio: str = ""
    location: str = ""
    email: str = ""
    blog: str = ""
    company: str = ""
    profile_url: str = ""
    avatar_url: str = ""
    followers: int = 0
    following: int = 0
    public_repos: int = 0
    public_gists: int = 0
    account_creation_date: str = ""
    last_activity_date: Optional[str] = None
    repositories: List[Repository] = Field(default_factory=list)
    repository_content: Optional[List[RepositoryContent]] = None
    languages: List[LanguageStat] = Field(default_factory=list)
    contributions: ContributionStats = Field(default_factory=ContributionStats)
    activity_analysis: Optional[ActivityAnalysis] = None
    starred_repos: int = 0
    forked_repos: int = 0
    organizations: List[Organization] = Field(default_factory=list)
    overall_quality_score: Optional[QualityScore] = None
    other: Dict[str, Any] = Field(default_factory=dict)


# Credibility oracle

class AnalysisFlag(Record):
    type: Literal["red", "yellow"] = "yellow"
    category: Literal["consistency", "verification", "completeness", "authenticity", "activity"] = "verification"
    message: str
    details: Optional[str] = None
    severity: int = Field(default=5, ge=1, le=10)


class AnalysisSource(Record):
    type: Literal["cv", "linkedin", "github"]
    available: bool = False
    score: int = Field(default=0, ge=0, le=100)
    flags: List[AnalysisFlag] = Field(default_factory=list)
    analysis_details: Dict[str, Any] = Field(default_factory=dict)


class AnalysisResult(Record):
    credibility_score: int = Field(default=50, ge=0, le=100)
    summary: str = ""
    flags: List[AnalysisFlag] = Field(default_factory=list)
    suggested_questions: List[str] = Field(default_factory=list)
    analysis_date: str = ""
    sources: List[AnalysisSource] = Field(default_factory=list)
