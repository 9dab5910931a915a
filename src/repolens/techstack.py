"""Tech-stack inference.

Two entry paths share one result type:

- AI-assisted: a model already answered; its JSON is validated and every
  missing, empty or "Unknown" field is filled through an ordered cascade of
  fallback strategies (first strategy that yields a value wins).
- Local: no model answer; the primary language comes from the language
  statistics and everything else from manifests, marker files and paths.

No field of the result is ever left as "Unknown". Everything here is pure
and deterministic.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Union

from .languages import DEFAULT_LANGUAGE, EXT_LANG, file_extension, primary_language

UNKNOWN = "Unknown"
MIN_CONFIDENCE = 70
MAX_INFRA = 10
MAX_RATIONALE = 6

DEFAULT_PROJECT_TYPE = "Web Application"
DEFAULT_ARCHITECTURE = "Standard Application"
DEFAULT_PURPOSE = "Software Application"
GENERIC_RATIONALE = "Analysis completed using intelligent pattern recognition and framework detection"


@dataclass(frozen=True)
class KeyFile:
    """A configuration/manifest file sampled for inference."""

    file_name: str
    content: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "KeyFile":
        return cls(file_name=str(data.get("fileName", "")), content=str(data.get("content") or ""))

    def to_dict(self) -> dict[str, str]:
        return {"fileName": self.file_name, "content": self.content}


@dataclass(frozen=True)
class RepoInfo:
    """Repository identity passed along to the model and purpose detection."""

    name: str
    owner: str = ""
    description: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "owner": self.owner, "description": self.description}


@dataclass(frozen=True)
class TechStackResult:
    """Best-effort description of a repository's stack."""

    language: str
    frontend: Optional[str] = None
    backend: Optional[str] = None
    database: Optional[str] = None
    infra: tuple[str, ...] = ()
    confidence: int = MIN_CONFIDENCE
    rationale: tuple[str, ...] = ()
    project_type: str = DEFAULT_PROJECT_TYPE
    architecture: str = DEFAULT_ARCHITECTURE
    purpose: str = DEFAULT_PURPOSE

    def labels(self) -> list[str]:
        """Flat list of the detected technologies, blanks dropped."""
        items = [self.language, self.frontend, self.backend, self.database, *self.infra]
        return [item for item in items if item]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"language": self.language}
        for key in ("frontend", "backend", "database"):
            value = getattr(self, key)
            if value:
                data[key] = value
        data.update({
            "infra": list(self.infra),
            "confidence": self.confidence,
            "rationale": list(self.rationale),
            "projectType": self.project_type,
            "architecture": self.architecture,
            "purpose": self.purpose,
        })
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TechStackResult":
        return cls(
            language=_clean(data.get("language")) or DEFAULT_LANGUAGE,
            frontend=_clean(data.get("frontend")),
            backend=_clean(data.get("backend")),
            database=_clean(data.get("database")),
            infra=tuple(_string_list(data.get("infra")))[:MAX_INFRA],
            confidence=_clamp(_to_int(data.get("confidence"), MIN_CONFIDENCE)),
            rationale=tuple(_string_list(data.get("rationale")))[:MAX_RATIONALE],
            project_type=_clean(data.get("projectType")) or DEFAULT_PROJECT_TYPE,
            architecture=_clean(data.get("architecture")) or DEFAULT_ARCHITECTURE,
            purpose=_clean(data.get("purpose")) or DEFAULT_PURPOSE,
        )


@dataclass
class AIAnalysisResult:
    """Validated model answer. Sentinels and blanks are already ``None``."""

    language: Optional[str] = None
    tech_stack: str = ""
    project_type: Optional[str] = None
    architecture: Optional[str] = None
    purpose: Optional[str] = None
    reasoning: str = ""
    confidence: int = MIN_CONFIDENCE
    frameworks: list[str] = field(default_factory=list)
    databases: list[str] = field(default_factory=list)
    tools: list[str] = field(default_factory=list)
    frontend: Optional[str] = None
    backend: Optional[str] = None
    database: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "AIAnalysisResult":
        """Coerce a raw JSON object. Raises ValueError if it is not an object."""
        if not isinstance(data, Mapping):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
        return cls(
            language=_clean(data.get("language")),
            tech_stack=_clean(data.get("techStack")) or "",
            project_type=_clean(data.get("projectType")),
            architecture=_clean(data.get("architecture")),
            purpose=_clean(data.get("purpose")),
            reasoning=_clean(data.get("reasoning")) or "",
            confidence=_to_int(data.get("confidence"), MIN_CONFIDENCE),
            frameworks=_string_list(data.get("frameworks")),
            databases=_string_list(data.get("databases")),
            tools=_string_list(data.get("tools")),
            frontend=_clean(data.get("frontend")),
            backend=_clean(data.get("backend")),
            database=_clean(data.get("database")),
        )


def infer_tech_stack(
    language_stats: Mapping[str, int],
    key_files: Sequence[KeyFile] = (),
    ai_result: Union[AIAnalysisResult, Mapping[str, Any], None] = None,
    file_paths: Sequence[str] = (),
    repo_info: RepoInfo | None = None,
) -> TechStackResult:
    """Produce a TechStackResult from a model answer or from local evidence."""
    if ai_result is not None:
        if not isinstance(ai_result, AIAnalysisResult):
            ai_result = AIAnalysisResult.from_dict(ai_result)
        return _from_ai(ai_result)
    return _from_local(language_stats, key_files, file_paths, repo_info or RepoInfo(name=""))


# --- AI-assisted path ---

TEXT_LANGUAGES = (
    "TypeScript", "JavaScript", "Python", "Java", "Go",
    "Rust", "PHP", "Ruby", "Dart", "Swift",
)

FRAMEWORK_LANGUAGE = (
    (("react", "vue", "angular"), "JavaScript"),
    (("django", "flask", "fastapi"), "Python"),
    (("spring",), "Java"),
    (("gin", "echo"), "Go"),
    (("actix", "rocket"), "Rust"),
    (("laravel", "symfony"), "PHP"),
    (("rails",), "Ruby"),
    (("flutter",), "Dart"),
)

FRONTEND_FRAMEWORKS = ("Next.js", "Nuxt.js", "Gatsby", "React", "Vue.js", "Vue", "Angular", "Svelte")
BACKEND_FRAMEWORKS = ("Express", "NestJS", "Fastify", "Django", "FastAPI", "Flask", "Gin", "Echo", "Spring Boot")
DATABASES = ("PostgreSQL", "MySQL", "MongoDB", "Redis", "SQLite", "Supabase", "Firebase")

FRONTEND_PROJECT_HINTS = ("frontend", "spa", "web app")
BACKEND_PROJECT_HINTS = ("backend", "api", "service")

DEFAULT_BACKEND = {"Python": "FastAPI", "Go": "Gin", "Java": "Spring Boot"}

DEFAULT_INFRA = {
    "JavaScript": ("Node.js", "NPM"),
    "TypeScript": ("Node.js", "NPM"),
    "Python": ("Python Package Manager",),
    "Go": ("Go Modules",),
}
# The offline detector also knows Cargo
LOCAL_DEFAULT_INFRA = {**DEFAULT_INFRA, "Rust": ("Cargo",)}
GENERIC_INFRA = ("Standard Development Tools",)

# A strategy looks at the model answer (and the already resolved language)
# and returns a value or None to pass to the next strategy.
Strategy = Callable[[AIAnalysisResult, str], Optional[str]]


def _explicit(attr: str) -> Strategy:
    return lambda ai, _language: getattr(ai, attr)


def _language_in_text(ai: AIAnalysisResult, _language: str) -> Optional[str]:
    return next((lang for lang in TEXT_LANGUAGES if _mentions(ai.tech_stack, lang)), None)


def _language_from_frameworks(ai: AIAnalysisResult, _language: str) -> Optional[str]:
    for framework in ai.frameworks:
        for keywords, language in FRAMEWORK_LANGUAGE:
            if any(_mentions(framework, kw) for kw in keywords):
                return language
    return None


def _constant(value: str) -> Strategy:
    return lambda ai, _language: value


def _named_in_list(candidates: Sequence[str], attr: str) -> Strategy:
    def strategy(ai: AIAnalysisResult, _language: str) -> Optional[str]:
        items = getattr(ai, attr)
        for candidate in candidates:
            if any(_mentions(item, candidate) for item in items):
                return candidate
        return None

    return strategy


def _named_in_text(candidates: Sequence[str]) -> Strategy:
    def strategy(ai: AIAnalysisResult, _language: str) -> Optional[str]:
        return next((c for c in candidates if _mentions(ai.tech_stack, c)), None)

    return strategy


def _first_database(ai: AIAnalysisResult, _language: str) -> Optional[str]:
    return ai.databases[0] if ai.databases else None


def _frontend_from_project_type(ai: AIAnalysisResult, _language: str) -> Optional[str]:
    project_type = (ai.project_type or DEFAULT_PROJECT_TYPE).lower()
    if any(hint in project_type for hint in FRONTEND_PROJECT_HINTS):
        return "React"
    return None


def _backend_from_project_type(ai: AIAnalysisResult, language: str) -> Optional[str]:
    project_type = (ai.project_type or DEFAULT_PROJECT_TYPE).lower()
    if any(hint in project_type for hint in BACKEND_PROJECT_HINTS):
        return DEFAULT_BACKEND.get(language, "Express")
    return None


CASCADES: dict[str, tuple[Strategy, ...]] = {
    "language": (
        _explicit("language"),
        _language_in_text,
        _language_from_frameworks,
        _constant(DEFAULT_LANGUAGE),
    ),
    "frontend": (
        _explicit("frontend"),
        _named_in_list(FRONTEND_FRAMEWORKS, "frameworks"),
        _named_in_text(FRONTEND_FRAMEWORKS),
        _frontend_from_project_type,
    ),
    "backend": (
        _explicit("backend"),
        _named_in_list(BACKEND_FRAMEWORKS, "frameworks"),
        _named_in_text(BACKEND_FRAMEWORKS),
        _backend_from_project_type,
    ),
    "database": (
        _explicit("database"),
        _first_database,
        _named_in_list(DATABASES, "tools"),
        _named_in_text(DATABASES),
    ),
    "project_type": (_explicit("project_type"), _constant(DEFAULT_PROJECT_TYPE)),
    "architecture": (_explicit("architecture"), _constant(DEFAULT_ARCHITECTURE)),
    "purpose": (_explicit("purpose"), _constant(DEFAULT_PURPOSE)),
}


def resolve_field(name: str, ai: AIAnalysisResult, language: str = DEFAULT_LANGUAGE) -> Optional[str]:
    """Run the cascade for one field; None only for optional fields."""
    for strategy in CASCADES[name]:
        value = _clean(strategy(ai, language))
        if value:
            return value
    return None


def _from_ai(ai: AIAnalysisResult) -> TechStackResult:
    language = resolve_field("language", ai) or DEFAULT_LANGUAGE
    confidence = _clamp(max(ai.confidence or MIN_CONFIDENCE, MIN_CONFIDENCE))

    infra = tuple(ai.tools[:MAX_INFRA]) or DEFAULT_INFRA.get(language, GENERIC_INFRA)

    return TechStackResult(
        language=language,
        frontend=resolve_field("frontend", ai, language),
        backend=resolve_field("backend", ai, language),
        database=resolve_field("database", ai, language),
        infra=infra,
        confidence=confidence,
        rationale=tuple(_ai_rationale(ai, confidence)),
        project_type=resolve_field("project_type", ai, language) or DEFAULT_PROJECT_TYPE,
        architecture=resolve_field("architecture", ai, language) or DEFAULT_ARCHITECTURE,
        purpose=resolve_field("purpose", ai, language) or DEFAULT_PURPOSE,
    )


def _ai_rationale(ai: AIAnalysisResult, confidence: int) -> list[str]:
    rationale = []
    if ai.reasoning:
        sentences = [s.strip() for s in re.split(r"[.!?]+", ai.reasoning)]
        rationale.extend([s for s in sentences if len(s) > 10][:4])
    if ai.frameworks:
        rationale.append(f"Frameworks detected: {', '.join(ai.frameworks[:3])}")
    if ai.databases:
        rationale.append(f"Database technologies: {', '.join(ai.databases)}")
    rationale.append(f"Analysis confidence: {confidence}% based on comprehensive pattern detection")
    return rationale[:MAX_RATIONALE] or [GENERIC_RATIONALE]


# --- Local path ---

FRONTEND_DEPS = (
    ("Next.js", ("next", "@next/core")),
    ("Nuxt.js", ("nuxt", "@nuxt/core")),
    ("Gatsby", ("gatsby",)),
    ("React", ("react", "@types/react")),
    ("Vue.js", ("vue", "@vue/core")),
    ("Angular", ("@angular/core",)),
    ("Svelte", ("svelte",)),
)
BACKEND_DEPS = (
    ("NestJS", ("@nestjs/core",)),
    ("Express", ("express",)),
    ("Fastify", ("fastify",)),
    ("Koa", ("koa",)),
)
DATABASE_DEPS = (
    ("MongoDB", ("mongoose", "mongodb")),
    ("PostgreSQL", ("pg", "postgres")),
    ("MySQL", ("mysql", "mysql2")),
    ("SQLite", ("sqlite3", "better-sqlite3")),
    ("Supabase", ("@supabase/supabase-js",)),
    ("Firebase", ("firebase",)),
)
PYTHON_BACKENDS = (("django", "Django"), ("fastapi", "FastAPI"), ("flask", "Flask"))
GO_BACKENDS = (("gin-gonic/gin", "Gin"), ("labstack/echo", "Echo"), ("gofiber/fiber", "Fiber"))

# Marker files override dependency-based frontend detection; first match wins.
FRONTEND_MARKERS = (
    (("svelte.config.js",), "Svelte"),
    (("next.config.js", "next.config.ts"), "Next.js"),
    (("nuxt.config.js", "nuxt.config.ts"), "Nuxt.js"),
    (("angular.json",), "Angular"),
)

MANIFEST_LANGUAGES = (
    ("requirements.txt", "Python"),
    ("pyproject.toml", "Python"),
    ("go.mod", "Go"),
    ("cargo.toml", "Rust"),
    ("pubspec.yaml", "Dart"),
)

INFRA_DEPS = (
    ("jest", "Jest"), ("vitest", "Vitest"), ("cypress", "Cypress"),
    ("playwright", "Playwright"), ("@testing-library/react", "React Testing Library"),
    ("tailwindcss", "Tailwind CSS"), ("bootstrap", "Bootstrap"),
    ("@mui/material", "Material-UI"), ("styled-components", "Styled Components"),
    ("redux", "Redux"), ("zustand", "Zustand"), ("recoil", "Recoil"),
    ("eslint", "ESLint"), ("prettier", "Prettier"), ("typescript", "TypeScript"),
)
INFRA_BUILD_FILES = (
    (("vite.config.js", "vite.config.ts"), "Vite"),
    (("webpack.config.js", "webpack.config.ts"), "Webpack"),
    (("rollup.config.js",), "Rollup"),
    (("esbuild.config.js",), "ESBuild"),
)
INFRA_DEPLOY_FILES = (
    (("Dockerfile",), "Docker"),
    (("docker-compose.yml",), "Docker Compose"),
    ((".github/workflows",), "GitHub Actions"),
    ((".gitlab-ci.yml",), "GitLab CI"),
    (("azure-pipelines.yml",), "Azure Pipelines"),
    (("vercel.json",), "Vercel"),
    (("netlify.toml",), "Netlify"),
    (("serverless.yml",), "Serverless Framework"),
)

PURPOSE_PATTERNS = (
    ("E-commerce Platform", 3, ("shop", "store", "cart", "payment", "product", "order", "checkout", "ecommerce", "commerce")),
    ("Blog Platform", 3, ("blog", "post", "article", "cms", "content", "publish", "wordpress", "ghost")),
    ("Dashboard Application", 3, ("dashboard", "admin", "panel", "analytics", "chart", "graph", "metrics", "data", "visualization")),
    ("Social Media Application", 3, ("social", "feed", "post", "follow", "like", "comment", "share", "user", "profile")),
    ("Task Management System", 3, ("todo", "task", "project", "kanban", "productivity", "organize", "management", "workflow")),
    ("Chat Application", 3, ("chat", "message", "conversation", "socket", "real-time", "messaging", "communication")),
    ("File Management System", 3, ("file", "upload", "storage", "document", "media", "cloud", "drive", "share")),
    ("Learning Management System", 3, ("learn", "course", "education", "student", "teacher", "lesson", "quiz", "lms")),
    ("Portfolio Website", 2, ("portfolio", "personal", "resume", "cv", "showcase", "work", "project")),
    ("API Service", 2, ("api", "service", "endpoint", "rest", "graphql", "microservice", "backend")),
    ("Documentation Site", 2, ("docs", "documentation", "guide", "manual", "wiki", "help")),
    ("Landing Page", 2, ("landing", "marketing", "promo", "campaign", "business", "company")),
    ("Game Application", 3, ("game", "play", "player", "score", "level", "gaming")),
    ("Financial Application", 3, ("finance", "money", "bank", "payment", "transaction", "wallet", "crypto")),
    ("Health & Fitness App", 3, ("health", "fitness", "medical", "doctor", "patient", "exercise", "workout")),
    ("Real Estate Platform", 3, ("real estate", "property", "house", "rent", "buy", "listing")),
    ("Event Management System", 3, ("event", "booking", "reservation", "calendar", "schedule", "meeting")),
)


class _Evidence:
    """Lookup helpers over key file contents and the flat path list."""

    def __init__(self, key_files: Sequence[KeyFile], file_paths: Sequence[str]):
        self.files = {kf.file_name.lower(): kf.content for kf in key_files}
        self.paths = [p.lower() for p in file_paths]
        self.package_json_error = False
        self.package = self._load_package_json()
        self.dependencies: dict[str, Any] = {
            **(self.package.get("dependencies") or {}),
            **(self.package.get("devDependencies") or {}),
        }

    def has_file(self, name: str) -> bool:
        lower = name.lower()
        return lower in self.files or any(lower in path for path in self.paths)

    def content(self, name: str) -> str:
        return self.files.get(name.lower(), "")

    def has_extension(self, *exts: str) -> bool:
        return any(path.endswith(exts) for path in self.paths)

    def any_path(self, needle: str) -> bool:
        return any(needle in path for path in self.paths)

    def _load_package_json(self) -> dict[str, Any]:
        content = self.content("package.json")
        if not content:
            return {}
        try:
            pkg = json.loads(content)
        except (json.JSONDecodeError, ValueError):
            self.package_json_error = True
            return {}
        if not isinstance(pkg, dict):
            self.package_json_error = True
            return {}
        for key in ("dependencies", "devDependencies"):
            if not isinstance(pkg.get(key) or {}, dict):
                pkg[key] = {}
        return pkg


def _from_local(
    language_stats: Mapping[str, int],
    key_files: Sequence[KeyFile],
    file_paths: Sequence[str],
    repo_info: RepoInfo,
) -> TechStackResult:
    evidence = _Evidence(key_files, file_paths)
    rationale: list[str] = []

    language = _local_language(dict(language_stats), evidence)
    matching = sum(1 for p in file_paths if EXT_LANG.get(file_extension(p)) == language)
    rationale.append(f"Primary language: {language} (detected from {matching} files and configuration)")

    frontend, backend, database = _local_frameworks(language, evidence, rationale)

    architecture, why = _local_architecture(frontend, backend, evidence)
    rationale.append(why)

    purpose, score = _local_purpose(language, frontend, backend, evidence, repo_info)
    suffix = f" (confidence score: {score})" if score > 0 else " (inferred from structure)"
    rationale.append(f"Purpose identified as {purpose}{suffix}")

    infra = _local_infra(language, evidence)
    rationale.append(f"Infrastructure tools: {', '.join(infra)}")

    if frontend and backend:
        project_type = "Full-stack Web Application"
    elif frontend:
        project_type = "Frontend Web Application"
    elif backend:
        project_type = "Backend API Service"
    else:
        project_type = "Software Development Project"

    confidence = 30
    confidence += 15 if language != DEFAULT_LANGUAGE else 10
    confidence += 20 if frontend else 0
    confidence += 20 if backend else 0
    confidence += 15 if database else 0
    confidence += min(len(infra) * 2, 20)
    confidence += min(len(rationale) * 2, 15)
    confidence += 10 if key_files else 0
    confidence += 5 if len(file_paths) > 10 else 0

    return TechStackResult(
        language=language,
        frontend=frontend,
        backend=backend,
        database=database,
        infra=tuple(infra[:MAX_INFRA]),
        confidence=max(min(confidence, 95), MIN_CONFIDENCE),
        rationale=tuple(rationale[:MAX_RATIONALE]),
        project_type=project_type,
        architecture=architecture,
        purpose=purpose,
    )


def _local_language(stats: dict[str, int], evidence: _Evidence) -> str:
    language = primary_language(stats)
    if language != DEFAULT_LANGUAGE:
        return language
    if "typescript" in evidence.dependencies or evidence.has_extension(".ts", ".tsx"):
        return "TypeScript"
    if evidence.package or evidence.has_extension(".js", ".jsx", ".mjs", ".cjs"):
        return language
    for marker, manifest_language in MANIFEST_LANGUAGES:
        if evidence.has_file(marker):
            return manifest_language
    return language


def _local_frameworks(
    language: str, evidence: _Evidence, rationale: list[str]
) -> tuple[Optional[str], Optional[str], Optional[str]]:
    frontend = backend = database = None
    deps = evidence.dependencies

    def from_deps(table: Iterable[tuple[str, tuple[str, ...]]]) -> Optional[str]:
        for name, packages in table:
            if any(pkg in deps for pkg in packages):
                rationale.append(f"{name} detected from package.json dependencies")
                return name
        return None

    if evidence.package_json_error:
        rationale.append("Could not parse package.json, using file structure analysis")
    elif deps:
        frontend = from_deps(FRONTEND_DEPS)
        backend = from_deps(BACKEND_DEPS)
        database = from_deps(DATABASE_DEPS)

    if language == "Python":
        requirements = evidence.content("requirements.txt").lower()
        for needle, name in PYTHON_BACKENDS:
            if needle in requirements:
                backend = name
                rationale.append(f"{name} detected from requirements.txt")
                break
        if evidence.has_file("manage.py") or evidence.has_file("settings.py"):
            backend = "Django"
            rationale.append("Django detected from project structure (manage.py/settings.py)")

    if language == "Go":
        go_mod = evidence.content("go.mod")
        for needle, name in GO_BACKENDS:
            if needle in go_mod:
                backend = name
                rationale.append(f"{name} framework detected from go.mod")
                break

    for markers, name in FRONTEND_MARKERS:
        if any(evidence.has_file(m) for m in markers):
            frontend = name
            rationale.append(f"{name} detected from configuration file")
            break

    if not frontend and not backend:
        if evidence.has_extension(".jsx", ".tsx") or evidence.any_path("component"):
            frontend = "React (TypeScript)" if language == "TypeScript" else "React"
            rationale.append("React inferred from JSX/TSX files and component structure")
        elif evidence.has_extension(".vue"):
            frontend = "Vue.js"
            rationale.append("Vue.js inferred from .vue files")
        elif evidence.any_path("api") or evidence.any_path("route"):
            backend = "Node.js (TypeScript)" if language == "TypeScript" else "Node.js"
            rationale.append("Node.js backend inferred from API/route structure")

    return frontend, backend, database


def _local_architecture(
    frontend: Optional[str], backend: Optional[str], evidence: _Evidence
) -> tuple[str, str]:
    rules = (
        (
            any(evidence.any_path(d) for d in ("packages/", "apps/", "libs/")),
            "Monorepo", "Monorepo architecture detected from packages/apps structure",
        ),
        (
            evidence.any_path("k8s") or evidence.any_path("kubernetes"),
            "Kubernetes Microservices", "Kubernetes microservices architecture detected",
        ),
        (
            any(evidence.has_file(f) for f in ("serverless.yml", "vercel.json", "netlify.toml")),
            "Serverless", "Serverless architecture detected from deployment configuration",
        ),
        (
            sum(1 for p in evidence.paths if "service" in p) > 2,
            "Microservices", "Microservices architecture inferred from multiple service directories",
        ),
        (
            evidence.has_file("docker-compose.yml"),
            "Containerized Application", "Containerized architecture detected from Docker Compose",
        ),
        (
            bool(frontend and backend),
            "Full-stack Application", "Full-stack architecture with separate frontend and backend",
        ),
        (bool(frontend), "Single Page Application", "SPA architecture - frontend only application"),
        (bool(backend), "API Service", "API-first architecture - backend service"),
    )
    for matched, architecture, why in rules:
        if matched:
            return architecture, why
    return "Standard Web Application", "Standard web application architecture"


def _local_purpose(
    language: str,
    frontend: Optional[str],
    backend: Optional[str],
    evidence: _Evidence,
    repo_info: RepoInfo,
) -> tuple[str, int]:
    name = repo_info.name.lower()
    description = repo_info.description.lower()
    readme = evidence.content("README.md").lower()

    best, best_score = "Web Application", 0
    for purpose, weight, keywords in PURPOSE_PATTERNS:
        score = 0
        for kw in keywords:
            if kw in name:
                score += weight * 3
            if kw in description:
                score += weight * 2
            score += readme.count(kw) * weight
            score += sum(1 for p in evidence.paths if kw in p) * 2
        if score > best_score:
            best, best_score = purpose, score

    if best_score > 0:
        return best, best_score

    if frontend and not backend:
        return "Frontend Web Application", 0
    if backend and not frontend:
        return "Backend API Service", 0
    if language == "Python" and (evidence.any_path("model") or evidence.any_path("data")):
        return "Data Science Project", 0
    if evidence.has_file("Dockerfile") or evidence.has_file("docker-compose.yml"):
        return "Containerized Application", 0
    return "Software Development Project", 0


def _local_infra(language: str, evidence: _Evidence) -> list[str]:
    infra = [tool for files, tool in INFRA_BUILD_FILES if any(evidence.has_file(f) for f in files)]
    infra.extend(tool for dep, tool in INFRA_DEPS if dep in evidence.dependencies)
    infra.extend(tool for files, tool in INFRA_DEPLOY_FILES if any(evidence.has_file(f) for f in files))
    return infra or list(LOCAL_DEFAULT_INFRA.get(language, GENERIC_INFRA))


# --- helpers ---

def _mentions(text: str, name: str) -> bool:
    """Case-insensitive match of ``name`` starting at a word boundary."""
    return re.search(r"\b" + re.escape(name.lower()), text.lower()) is not None


def _clean(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value or value.lower() == UNKNOWN.lower():
        return None
    return value


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in (_clean(v) for v in value) if item]


def _to_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return default


def _clamp(value: int, low: int = 0, high: int = 100) -> int:
    return max(low, min(high, value))
