import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from credscan import constants
from credscan.schemas import (
    CodeStructure,
    PackageAnalysis,
    ReadmeAnalysis,
    Repository,
    RepositoryContent,
    WorkflowAnalysis,
)
from credscan.services.github_client import GitHubClient
from credscan.services.github_payloads import RawContentItem
from credscan.analysis.quality import score_repository

logger = logging.getLogger(__name__)


def analyze_readme(text: Optional[str]) -> ReadmeAnalysis:
    """
    Scores a README on length and on the sections a newcomer needs.

    Length earns up to 25 points (tiers at 500/1500/3000 characters, plus 5
    while under 10000), content up to 75 (sections, badges, install, usage,
    contributing, license, images, code blocks).
    """
    if not text:
        return ReadmeAnalysis()

    lowered = text.lower()
    sections = [
        line.strip().lstrip("#").strip()
        for line in text.split("\n")
        if line.strip().startswith("#")
    ]
    image_count = len(constants.README_IMAGE_PATTERN.findall(text))
    link_count = len(constants.README_LINK_PATTERN.findall(text))
    code_block_count = text.count("```") // 2

    has_badges = bool(constants.README_BADGE_PATTERN.search(text))
    has_install = bool(constants.README_KEYWORDS["install"].search(lowered))
    has_usage = bool(constants.README_KEYWORDS["usage"].search(lowered)) and code_block_count > 0
    has_contributing = bool(constants.README_KEYWORDS["contributing"].search(lowered))
    has_license = bool(constants.README_KEYWORDS["license"].search(lowered))

    length = len(text)
    score = 0
    if length > 500:
        score += 5
    if length > 1500:
        score += 5
    if length > 3000:
        score += 10
    if length < 10000:
        score += 5

    if len(sections) >= 3:
        score += 10
    if has_badges:
        score += 10
    if has_install:
        score += 15
    if has_usage:
        score += 15
    if has_contributing:
        score += 10
    if has_license:
        score += 5
    if image_count > 0:
        score += 5
    if code_block_count >= 2:
        score += 5

    return ReadmeAnalysis(
        exists=True,
        length=length,
        sections=sections,
        has_badges=has_badges,
        has_install_instructions=has_install,
        has_usage_examples=has_usage,
        has_contributing=has_contributing,
        has_license=has_license,
        image_count=image_count,
        link_count=link_count,
        code_block_count=code_block_count,
        quality_score=min(100, score),
    )


def _mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def analyze_package_json(manifest: Dict[str, Any]) -> PackageAnalysis:
    """Detects frameworks and tooling from a parsed ``package.json``."""
    dependencies = _mapping(manifest.get("dependencies"))
    dev_dependencies = _mapping(manifest.get("devDependencies"))
    scripts = _mapping(manifest.get("scripts"))
    all_deps = {**dependencies, **dev_dependencies}

    frameworks = [
        framework
        for framework, packages in constants.FRAMEWORK_DEPENDENCIES.items()
        if any(pkg in all_deps for pkg in packages)
    ]
    linting_tools = [tool for tool in constants.LINTING_TOOLS if tool in all_deps]
    testing_tools = [tool for tool in constants.TESTING_TOOLS if tool in all_deps]
    build_tools = [tool for tool in constants.BUILD_TOOLS if tool in all_deps]

    return PackageAnalysis(
        exists=True,
        has_scripts=bool(scripts),
        script_count=len(scripts),
        dependency_count=len(dependencies),
        dev_dependency_count=len(dev_dependencies),
        has_linting=bool(linting_tools) or any("lint" in name for name in scripts),
        has_testing=bool(testing_tools) or any("test" in name for name in scripts),
        has_type_script=any(marker in all_deps for marker in constants.TYPESCRIPT_MARKERS),
        has_documentation="docs" in scripts or any(tool in all_deps for tool in constants.DOCUMENTATION_TOOLS),
        has_valid_license=bool(manifest.get("license")),
        frameworks=frameworks,
        build_tools=build_tools,
        testing_frameworks=testing_tools,
        linting_tools=linting_tools,
    )


def analyze_workflow(file_name: str, text: str) -> WorkflowAnalysis:
    """
    Classifies a GitHub Actions workflow by plain text inspection.

    Complexity = 10 per job + 5 per trigger + bonuses for test/lint/build/deploy
    jobs, secrets and matrix builds, capped at 100.
    """
    lowered = text.lower()

    name_match = constants.WORKFLOW_NAME_PATTERN.search(text)
    name = name_match.group(1).strip().replace('"', "").replace("'", "") if name_match else file_name

    triggers: List[str] = []
    if "on:" in lowered:
        triggers = [
            trigger for trigger, keyword in constants.WORKFLOW_TRIGGERS.items() if keyword in lowered
        ]

    jobs = constants.WORKFLOW_JOB_PATTERN.findall(text)
    job_types = {kind: bool(pattern.search(text)) for kind, pattern in constants.WORKFLOW_JOB_TYPES.items()}
    uses_secrets = bool(constants.WORKFLOW_SECRETS_PATTERN.search(text))
    matrix = bool(constants.WORKFLOW_MATRIX_PATTERN.search(text))

    bonus = constants.WORKFLOW_COMPLEXITY_BONUS
    complexity = len(jobs) * 10 + len(triggers) * 5
    complexity += sum(bonus[kind] for kind, present in job_types.items() if present)
    if uses_secrets:
        complexity += bonus["secrets"]
    if matrix:
        complexity += bonus["matrix"]

    return WorkflowAnalysis(
        name=name,
        file_name=file_name,
        triggers=triggers,
        jobs=jobs,
        has_test_job=job_types["test"],
        has_lint_job=job_types["lint"],
        has_build_job=job_types["build"],
        has_deploy_job=job_types["deploy"],
        uses_secrets=uses_secrets,
        matrix_strategy=matrix,
        complexity=min(100, complexity),
    )


def analyze_code_structure(listing: List[RawContentItem]) -> CodeStructure:
    """
    Judges repository layout from its root directory listing only.
    """
    structure = CodeStructure()

    for item in listing:
        if item.type == "file":
            structure.file_count += 1
            if "." in item.name:
                ext = "." + item.name.rsplit(".", 1)[-1].lower()
                structure.language_files[ext] = structure.language_files.get(ext, 0) + 1
            if (constants.CONFIG_EXTENSION_PATTERN.search(item.name.lower())
                    or constants.CONFIG_NAME_PATTERN.search(item.name)):
                structure.has_config_files = True
        elif item.type == "dir":
            structure.directory_count += 1
            dir_name = item.name.lower()
            if constants.TEST_DIR_PATTERN.search(dir_name):
                structure.has_tests = True
            if constants.DOCS_DIR_PATTERN.search(dir_name):
                structure.has_documentation = True
            if constants.EXAMPLES_DIR_PATTERN.search(dir_name):
                structure.has_examples = True

    score = 0
    # structure
    if structure.has_tests:
        score += 20
    if structure.has_documentation:
        score += 10
    if structure.has_examples:
        score += 10
    # file organization
    if structure.directory_count >= 3:
        score += 10
    if structure.has_config_files:
        score += 10
    if 5 < structure.file_count < 100:
        score += 10
    # language diversity
    language_count = len(structure.language_files)
    if language_count >= 2:
        score += 10
    if language_count >= 4:
        score += 10
    if language_count <= 8:
        score += 10

    structure.organization_score = min(100, score)
    return structure


async def analyze_workflows(client: GitHubClient, full_name: str) -> List[WorkflowAnalysis]:
    """Analyzes every YAML workflow; a repository without workflows yields an empty list."""
    listing = await client.fetch_optional(
        client.list_contents(full_name, ".github/workflows"), f"workflows of {full_name}"
    )
    workflows: List[WorkflowAnalysis] = []
    for item in listing.value_or([]):
        if item.type != "file" or not item.name.endswith((".yml", ".yaml")):
            continue
        text = await client.fetch_optional(
            client.get_file_text(full_name, f".github/workflows/{item.name}"),
            f"workflow {item.name} of {full_name}",
        )
        if text.value:
            workflows.append(analyze_workflow(item.name, text.value))
    return workflows


async def _package_manifest(client: GitHubClient, full_name: str) -> Optional[Dict[str, Any]]:
    text = await client.fetch_optional(
        client.get_file_text(full_name, "package.json"), f"package.json of {full_name}"
    )
    if not text.value:
        return None
    try:
        manifest = json.loads(text.value)
    except ValueError as e:
        logger.warning("Ignoring malformed package.json in %s: %s", full_name, e)
        return None
    return manifest if isinstance(manifest, dict) else None


async def analyze_repository_content(
    client: GitHubClient,
    repository: Repository,
    now: Optional[datetime] = None,
) -> RepositoryContent:
    """
    Analyzes README, package.json, workflows and layout of one repository.

    The root listing is fetched once and reused for README detection,
    package.json detection and code structure, so files that are not there
    are never requested.
    """
    full_name = repository.full_name
    logger.info("Analyzing content for repository: %s", repository.name)

    root = await client.fetch_optional(client.list_contents(full_name, ""), f"root listing of {full_name}")
    listing = root.value_or([])

    readme_item = next(
        (item for item in listing if item.type == "file" and constants.README_FILE_PATTERN.match(item.name)),
        None,
    )
    readme_text = None
    if readme_item is not None:
        fetched = await client.fetch_optional(
            client.get_file_text(full_name, readme_item.name), f"README of {full_name}"
        )
        readme_text = fetched.value
    readme = analyze_readme(readme_text)

    package = None
    if any(item.type == "file" and item.name == "package.json" for item in listing):
        manifest = await _package_manifest(client, full_name)
        if manifest is not None:
            package = analyze_package_json(manifest)

    workflows = await analyze_workflows(client, full_name)
    code_structure = analyze_code_structure(listing)

    return RepositoryContent(
        repository=full_name,
        readme=readme,
        package_json=package,
        workflows=workflows,
        code_structure=code_structure,
        quality_score=score_repository(readme, package, workflows, code_structure, repository, now=now),
    )
