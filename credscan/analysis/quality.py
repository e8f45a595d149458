from datetime import datetime
from typing import List, Optional

from credscan.constants import QUALITY_WEIGHTS
from credscan.schemas import (
    CodeStructure,
    PackageAnalysis,
    QualityBreakdown,
    QualityScore,
    ReadmeAnalysis,
    Repository,
    WorkflowAnalysis,
)
from credscan.analysis.utils import clamp_score, parse_timestamp, utcnow


def dependency_health(package: Optional[PackageAnalysis]) -> int:
    """
    100 minus 10 per outdated dependency; 50 when there is no manifest.

    Outdated dependencies are not looked up in any registry, so a manifest
    whose count is unknown scores as fully healthy.
    """
    if package is None:
        return 50
    return max(0, 100 - (package.outdated_dependencies or 0) * 10)


def recent_activity(updated_at: str, now: Optional[datetime] = None) -> int:
    """100 minus the number of whole weeks since the last update."""
    updated = parse_timestamp(updated_at)
    if updated is None:
        return 0
    weeks = ((now or utcnow()) - updated).days // 7
    return clamp_score(100 - weeks)


def score_repository(
    readme: ReadmeAnalysis,
    package: Optional[PackageAnalysis],
    workflows: List[WorkflowAnalysis],
    code_structure: CodeStructure,
    repository: Repository,
    now: Optional[datetime] = None,
) -> QualityScore:
    """
    Combines the per-repository signals into a 0-100 quality score.

    Args:
        readme (ReadmeAnalysis): README analysis.
        package (Optional[PackageAnalysis]): package.json analysis, if the repo has one.
        workflows (List[WorkflowAnalysis]): CI workflow analyses.
        code_structure (CodeStructure): Root layout analysis.
        repository (Repository): Repository metadata (stars, last update).
        now (Optional[datetime]): Reference time, defaults to the current UTC time.
    Returns:
        QualityScore: Overall score, per-area scores and the weighted breakdown.
    """
    breakdown = QualityBreakdown(
        readme_quality=clamp_score(readme.quality_score),
        has_ci=100 if workflows else 0,
        has_tests=100 if code_structure.has_tests else 0,
        has_linting=100 if package is not None and package.has_linting else 0,
        dependency_health=dependency_health(package),
        community_files=(50 if readme.has_contributing else 0) + (50 if readme.has_license else 0),
        recent_activity=recent_activity(repository.updated_at, now),
    )
    overall = sum(getattr(breakdown, key) * weight for key, weight in QUALITY_WEIGHTS.items())

    if code_structure.has_documentation:
        documentation = 80
    elif readme.exists:
        documentation = 60
    else:
        documentation = 0

    cicd = sum(w.complexity for w in workflows) / len(workflows) if workflows else 0

    return QualityScore(
        overall=clamp_score(overall),
        readme=clamp_score(readme.quality_score),
        code_organization=clamp_score(code_structure.organization_score),
        cicd=clamp_score(cicd),
        documentation=documentation,
        maintenance=clamp_score((breakdown.recent_activity + breakdown.dependency_health) / 2),
        community=clamp_score((breakdown.community_files + (20 if repository.stars > 10 else 0)) / 2),
        breakdown=breakdown,
    )


def aggregate_quality(scores: List[QualityScore]) -> Optional[QualityScore]:
    """Averages per-repository scores field by field; None when nothing was analyzed."""
    if not scores:
        return None

    def mean(values):
        return clamp_score(sum(values) / len(values))

    breakdown = QualityBreakdown(**{
        field: mean([getattr(s.breakdown, field) for s in scores])
        for field in QualityBreakdown.model_fields
    })
    return QualityScore(
        breakdown=breakdown,
        **{
            field: mean([getattr(s, field) for s in scores])
            for field in QualityScore.model_fields
            if field != "breakdown"
        },
    )
