"""Prompt templates for the model-backed analyses.

Each template takes the analysis request built from the heuristic pass and
returns a focused prompt that asks for a single JSON object.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Sequence

SYSTEM_PROMPT = """You are a senior software architect analyzing codebases.
You never answer "Unknown": when evidence is thin, give the most likely answer
and say what it is based on. Respond with a single JSON object and nothing else."""

# Per-file character budgets for key file excerpts
CONTENT_LIMITS = {
    "package.json": 3000,
    "requirements.txt": 2000,
    "go.mod": 2000,
    "cargo.toml": 2000,
    "readme.md": 1500,
}
DEFAULT_CONTENT_LIMIT = 1000
MAX_KEY_FILES = 15
MAX_PROMPT_PATHS = 300


def tech_stack_prompt(request: Mapping[str, Any]) -> str:
    """Build the tech-stack prompt from an analysis request payload."""
    repo = request.get("repoInfo") or {}
    stats = request.get("languageStats") or {}
    paths = list(request.get("filePaths") or [])[:MAX_PROMPT_PATHS]
    key_files = list(request.get("keyFiles") or [])[:MAX_KEY_FILES]

    languages = ", ".join(
        f"{lang}: {pct}%" for lang, pct in sorted(stats.items(), key=lambda x: -x[1])
    ) or "Mixed/Multiple languages detected"

    files_block = "\n".join(
        f"=== {kf.get('fileName', '')} ===\n{_excerpt(kf.get('fileName', ''), kf.get('content', ''))}\n"
        for kf in key_files
    ) or "No configuration files available - analyze from structure"

    description = repo.get("description") or "No description provided"

    return f"""Analyze this repository and identify its technology stack.

REPOSITORY:
Project: {repo.get("name", "")} by {repo.get("owner", "")}
Description: {description}

LANGUAGE COMPOSITION:
{languages}

PROJECT STRUCTURE ({len(paths)} paths):
{_structure_summary(paths)}

CONFIGURATION FILES:
{files_block}

RULES:
1. Never use "Unknown" for any field.
2. Base each conclusion on specific files and patterns listed above.
3. If no backend framework is clear, infer from the language (Express for JS, FastAPI for Python).
4. If no frontend framework is clear, infer from file patterns (React for JSX/TSX, Vue for .vue files).

Respond with this JSON object:
{{
  "language": "primary language",
  "techStack": "one-line stack description, e.g. React + TypeScript + PostgreSQL",
  "frontend": "frontend framework or null",
  "backend": "backend framework or null",
  "database": "database or null",
  "projectType": "project classification",
  "architecture": "architecture pattern",
  "purpose": "inferred purpose",
  "frameworks": ["..."],
  "databases": ["..."],
  "tools": ["build, test and infrastructure tools"],
  "confidence": 85,
  "reasoning": "evidence behind each conclusion"
}}"""


def health_prompt(payload: Mapping[str, Any]) -> str:
    """Build the repository health prompt."""
    tech_stack = json.dumps(payload.get("techStackDetailed") or {}, indent=2)
    paths = list(payload.get("filePaths") or [])[:MAX_PROMPT_PATHS]

    return f"""Assess the engineering health of this repository.

REPOSITORY: {payload.get("name", "")} by {payload.get("owner", "")}
Description: {payload.get("description") or "No description provided"}

DETECTED STACK:
{tech_stack}

FILES:
{_structure_summary(paths)}

Score each area from 0 to 100: test coverage, README quality, linter presence,
CI/CD presence, code quality and security. Give at most 8 concrete tips.

Respond with this JSON object:
{{
  "overall": 0,
  "breakdown": {{"testCoverage": 0, "readmeQuality": 0, "linterPresence": 0,
                "ciCdPresence": 0, "codeQuality": 0, "security": 0}},
  "summary": {{"testCoverage": "", "readme": "", "linter": "", "ciCd": "",
              "codeQuality": "", "security": ""}},
  "aiTips": ["..."]
}}"""


def _structure_summary(paths: Sequence[str]) -> str:
    if not paths:
        return "No files listed"
    top: dict[str, int] = {}
    for path in paths:
        head = path.split("/", 1)[0] if "/" in path else "."
        top[head] = top.get(head, 0) + 1
    dirs = ", ".join(f"{d}/ ({c})" if d != "." else f"root ({c})" for d, c in sorted(top.items(), key=lambda x: -x[1])[:12])
    sample = "\n".join(f"- {p}" for p in paths[:60])
    return f"Top-level: {dirs}\n{sample}"


def _excerpt(file_name: str, content: str) -> str:
    name = file_name.rsplit("/", 1)[-1].lower()
    limit = CONTENT_LIMITS.get(name, DEFAULT_CONTENT_LIMIT)
    if len(content) <= limit:
        return content
    return content[:limit] + "\n... (truncated)"
