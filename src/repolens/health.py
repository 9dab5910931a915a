"""Repository health scoring.

The local scorer runs six presence checks over the file tree and turns each
into a sub-score, a one-line summary and, when it fails, canned remediation
tips. A model-supplied score can be coerced into the same shape with
``health_from_model``.
"""

from __future__ import annotations

import datetime
import math
from dataclasses import dataclass, field
from typing import Any, Mapping

from .patterns import contains_file_named, contains_path
from .techstack import TechStackResult
from .tree import FileTree

MAX_TIPS = 8

BREAKDOWN_KEYS = (
    "testCoverage", "readmeQuality", "linterPresence",
    "ciCdPresence", "codeQuality", "security",
)
SUMMARY_KEYS = ("testCoverage", "readme", "linter", "ciCd", "codeQuality", "security")

TEST_PATTERNS = ("test", "spec", "__tests__", "cypress", "e2e")
README_FILES = ("README.md", "readme.md", "README.txt")
LINTER_FILES = (
    ".eslintrc", ".eslintrc.js", ".eslintrc.json", ".eslintrc.yml",
    ".prettierrc", ".prettierrc.js", ".prettierrc.json",
    "tslint.json", ".jshintrc",
)
CI_PATTERNS = (".github/workflows", ".gitlab-ci", "azure-pipelines", "jenkins", ".circleci")
SECURITY_FILES = (
    ".nvmrc", "SECURITY.md", ".snyk", "dependabot.yml",
    ".github/dependabot.yml", ".github/security.yml",
)


@dataclass(frozen=True)
class HealthCheck:
    """One presence check and what it means either way."""

    key: str
    summary_key: str
    passed_score: int
    failed_score: int
    passed_summary: str
    failed_summary: str
    tips: tuple[str, ...] = ()


TESTS = HealthCheck(
    "testCoverage", "testCoverage", 75, 25,
    "Good - Test files detected in project structure",
    "Low - No test files found, consider adding unit tests",
    (
        "Add unit tests using Jest, Vitest, or your preferred testing framework",
        "Aim for at least 70% code coverage on critical business logic",
    ),
)
README = HealthCheck(
    "readmeQuality", "readme", 85, 30,
    "Excellent - README.md found with project documentation",
    "Poor - No README.md found, add project documentation",
    (
        "Create a comprehensive README.md with setup instructions and usage examples",
        "Include badges for build status, coverage, and version information",
    ),
)
LINTER = HealthCheck(
    "linterPresence", "linter", 90, 40,
    "Excellent - Code linting configuration detected",
    "Missing - Add ESLint or similar linting tools",
    (
        "Set up ESLint and Prettier for consistent code formatting",
        "Add pre-commit hooks to enforce code quality standards",
    ),
)
CI_CD = HealthCheck(
    "ciCdPresence", "ciCd", 95, 20,
    "Excellent - CI/CD pipeline configuration found",
    "Missing - Set up GitHub Actions or similar CI/CD",
    (
        "Implement GitHub Actions for automated testing and deployment",
        "Set up branch protection rules requiring CI checks to pass",
    ),
)
TYPE_SAFETY = HealthCheck(
    "codeQuality", "codeQuality", 80, 60,
    "Good - TypeScript provides type safety",
    "Fair - Consider TypeScript for better type safety",
    ("Consider migrating to TypeScript for better type safety and developer experience",),
)
SECURITY = HealthCheck(
    "security", "security", 70, 50,
    "Good - Security configurations detected",
    "Fair - Consider adding security scanning and policies",
    (
        "Enable Dependabot for automated dependency updates",
        "Add security scanning with tools like Snyk or GitHub Security",
    ),
)

REACT_TIPS = (
    "Consider using React Testing Library for component testing",
    "Implement error boundaries for better error handling",
)
BACKEND_TIPS = (
    "Add API documentation using OpenAPI/Swagger",
    "Implement proper error handling and logging",
)

GRADES = (
    (90, "A+", "Excellent - Production ready with best practices"),
    (80, "A", "Very Good - Well maintained with minor improvements needed"),
    (70, "B", "Good - Solid foundation with some areas for improvement"),
    (60, "C", "Fair - Basic setup with several improvement opportunities"),
    (50, "D", "Poor - Needs significant improvements for production use"),
    (0, "F", "Critical - Major issues that need immediate attention"),
)


@dataclass(frozen=True)
class HealthScore:
    """Composite health rating of a repository."""

    overall: int
    breakdown: dict[str, int]
    summary: dict[str, str]
    ai_tips: tuple[str, ...]
    last_updated: datetime.datetime
    source: str = "local"
    passed: dict[str, bool] = field(default_factory=dict)

    @property
    def grade(self) -> str:
        return grade(self.overall)

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall": self.overall,
            "breakdown": dict(self.breakdown),
            "summary": dict(self.summary),
            "aiTips": list(self.ai_tips),
            "lastUpdated": self.last_updated.isoformat(),
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "HealthScore":
        return health_from_model(data, source=str(data.get("source") or "ai"))


def score_repo_health(
    tree: FileTree,
    tech_stack: TechStackResult,
    now: datetime.datetime | None = None,
) -> HealthScore:
    """Score a repository offline from its file tree and detected stack."""
    results = [
        (TESTS, contains_path(tree, TEST_PATTERNS)),
        (README, contains_file_named(tree, README_FILES)),
        (LINTER, contains_file_named(tree, LINTER_FILES)),
        (CI_CD, contains_path(tree, CI_PATTERNS)),
        (TYPE_SAFETY, tech_stack.language == "TypeScript"),
        (SECURITY, contains_file_named(tree, SECURITY_FILES)),
    ]

    breakdown = {}
    summary = {}
    passed = {}
    for check, ok in results:
        breakdown[check.key] = check.passed_score if ok else check.failed_score
        summary[check.summary_key] = check.passed_summary if ok else check.failed_summary
        passed[check.key] = ok

    overall = _round_half_up(sum(breakdown.values()) / len(breakdown))

    return HealthScore(
        overall=overall,
        breakdown=breakdown,
        summary=summary,
        ai_tips=tuple(_tips(passed, tech_stack)),
        last_updated=now or _utcnow(),
        source="local",
        passed=passed,
    )


def _tips(passed: dict[str, bool], tech_stack: TechStackResult) -> list[str]:
    tips: list[str] = []
    for check in (TESTS, README, LINTER, CI_CD):
        if not passed[check.key]:
            tips.extend(check.tips)
    if tech_stack.language == "JavaScript":
        tips.extend(TYPE_SAFETY.tips)
    if not passed[SECURITY.key]:
        tips.extend(SECURITY.tips)
    if tech_stack.frontend == "React":
        tips.extend(REACT_TIPS)
    if tech_stack.backend:
        tips.extend(BACKEND_TIPS)
    return tips[:MAX_TIPS]


def health_from_model(
    raw: Any,
    now: datetime.datetime | None = None,
    source: str = "ai",
) -> HealthScore:
    """Coerce a model's health JSON, clamping every score to [0, 100]."""
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected a JSON object, got {type(raw).__name__}")

    raw_breakdown = raw.get("breakdown") if isinstance(raw.get("breakdown"), Mapping) else {}
    raw_summary = raw.get("summary") if isinstance(raw.get("summary"), Mapping) else {}
    tips = raw.get("aiTips") if isinstance(raw.get("aiTips"), list) else []

    breakdown = {key: _clamp_score(raw_breakdown.get(key)) for key in BREAKDOWN_KEYS}
    summary = {key: str(raw_summary.get(key) or "") for key in SUMMARY_KEYS}
    if raw.get("overall") is None:
        overall = _round_half_up(sum(breakdown.values()) / len(breakdown))
    else:
        overall = _clamp_score(raw.get("overall"))

    return HealthScore(
        overall=overall,
        breakdown=breakdown,
        summary=summary,
        ai_tips=tuple(str(t) for t in tips if t)[:MAX_TIPS],
        last_updated=_parse_timestamp(raw.get("lastUpdated")) or now or _utcnow(),
        source=source,
    )


def grade(score: int) -> str:
    """Letter grade for a 0-100 score."""
    return next((letter for floor, letter, _ in GRADES if score >= floor), "F")


def describe(score: int) -> str:
    """One-line description of a 0-100 score."""
    return next((text for floor, _, text in GRADES if score >= floor), GRADES[-1][2])


def _clamp_score(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number):
        return 0
    return _round_half_up(max(0.0, min(100.0, number)))


def _parse_timestamp(value: Any) -> datetime.datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
