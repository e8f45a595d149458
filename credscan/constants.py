import re

# Detection rules for repository content analysis. Kept as data so the rules
# can be tested and extended without touching the analyzers.

# framework -> dependency names that indicate it
FRAMEWORK_DEPENDENCIES = {
    "react": ["react", "@types/react", "react-dom"],
    "vue": ["vue", "@vue/cli", "vue-router", "vuex"],
    "angular": ["@angular/core", "@angular/cli", "angular"],
    "express": ["express", "fastify", "koa"],
    "nestjs": ["@nestjs/core", "@nestjs/common"],
    "nextjs": ["next"],
    "nuxt": ["nuxt"],
    "svelte": ["svelte", "sveltekit"],
    "gatsby": ["gatsby"],
    "flutter": ["flutter"],
    "django": ["django"],
    "rails": ["rails"],
}

LINTING_TOOLS = ["eslint", "tslint", "jshint", "prettier", "stylelint"]
TESTING_TOOLS = ["jest", "mocha", "jasmine", "karma", "cypress", "playwright", "vitest"]
BUILD_TOOLS = ["webpack", "rollup", "parcel", "vite", "esbuild"]
TYPESCRIPT_MARKERS = ["typescript", "@types/node"]
DOCUMENTATION_TOOLS = ["typedoc", "jsdoc"]

# README
README_FILE_PATTERN = re.compile(r"^readme\.(md|rst|txt)$", re.IGNORECASE)
README_BADGE_PATTERN = re.compile(
    r"!\[.*?\]\(https?://.*?(shields\.io|badge|travis|circleci|github\.com/.*/workflows)",
    re.IGNORECASE,
)
README_IMAGE_PATTERN = re.compile(r"!\[.*?\]\(.*?\)")
README_LINK_PATTERN = re.compile(r"\[.*?\]\(.*?\)")
README_KEYWORDS = {
    "install": re.compile(r"install|npm i|yarn add|pip install|composer install|go get", re.IGNORECASE),
    "usage": re.compile(r"usage|example|getting started|quick start", re.IGNORECASE),
    "contributing": re.compile(r"contributing|contribution", re.IGNORECASE),
    "license": re.compile(r"license|mit|apache|gpl", re.IGNORECASE),
}

# Workflows: reported trigger -> keyword searched in the workflow text
WORKFLOW_TRIGGERS = {
    "push": "push",
    "pull_request": "pull_request",
    "schedule": "schedule",
    "manual": "workflow_dispatch",
}
WORKFLOW_JOB_PATTERN = re.compile(r"^ {2}([A-Za-z0-9_-]+):", re.MULTILINE)
WORKFLOW_NAME_PATTERN = re.compile(r"name:\s*(.+)", re.IGNORECASE)
WORKFLOW_JOB_TYPES = {
    "test": re.compile(r"test|spec|jest|mocha|cypress|playwright", re.IGNORECASE),
    "lint": re.compile(r"lint|format|eslint|prettier", re.IGNORECASE),
    "build": re.compile(r"build|compile|webpack|rollup|vite", re.IGNORECASE),
    "deploy": re.compile(r"deploy|publish|release", re.IGNORECASE),
}
WORKFLOW_SECRETS_PATTERN = re.compile(r"secrets\.", re.IGNORECASE)
WORKFLOW_MATRIX_PATTERN = re.compile(r"strategy:\s*matrix:", re.IGNORECASE)
WORKFLOW_COMPLEXITY_BONUS = {
    "test": 15,
    "lint": 10,
    "build": 10,
    "deploy": 15,
    "secrets": 10,
    "matrix": 20,
}

# Code structure
TEST_DIR_PATTERN = re.compile(r"test|spec|__tests__|tests")
DOCS_DIR_PATTERN = re.compile(r"docs?|documentation|wiki")
EXAMPLES_DIR_PATTERN = re.compile(r"examples?|demo|samples?")
CONFIG_EXTENSION_PATTERN = re.compile(r"\.(json|yml|yaml|toml|ini|conf|config)$")
CONFIG_NAME_PATTERN = re.compile(r"^(\..*rc|\..*ignore|.*\.config\.|dockerfile)", re.IGNORECASE)

# Templates under .github
TEMPLATE_FILE_NAMES = {"PULL_REQUEST_TEMPLATE.md", "ISSUE_TEMPLATE.md"}

# Commit messages
CONVENTIONAL_COMMIT_PATTERN = re.compile(
    r"^(feat|fix|docs|style|refactor|test|chore|build|ci|perf|revert)(\(.+\))?: .+"
)

# Quality score weights (must sum to 1)
QUALITY_WEIGHTS = {
    "readme_quality": 0.25,
    "has_ci": 0.15,
    "has_tests": 0.15,
    "has_linting": 0.10,
    "dependency_health": 0.10,
    "community_files": 0.15,
    "recent_activity": 0.10,
}

OUTSIDE_CONTRIBUTION_EVENTS = {"PullRequestEvent", "IssuesEvent", "PullRequestReviewEvent"}


# Credibility oracle prompt
CREDIBILITY_SYSTEM_PROMPT = """
You are a credibility-checking assistant for technical hiring.
You receive up to three evidence bundles about one candidate: structured CV data,
structured LinkedIn data, and an aggregated GitHub profile (repositories, languages,
activity analysis and repository quality scores).

Cross-reference them and judge how credible the candidate's claims are.
Missing bundles are neutral, not negative.

You MUST return a JSON object with this EXACT structure:
{
  "credibilityScore": <int 0-100>,
  "summary": "1-2 sentence judgment",
  "flags": [
    {
      "type": "red" | "yellow",
      "category": "consistency" | "verification" | "completeness" | "authenticity" | "activity",
      "message": "<short statement>",
      "details": "<optional evidence>",
      "severity": <int 1-10>
    }
  ],
  "suggestedQuestions": ["2-4 interview questions that would verify the weakest claims"]
}
"""
