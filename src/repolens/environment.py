"""Development environment requirements.

Works out what a contributor has to install before the repository runs:
the language runtime and its package tool, a database server, a ``.env``
file, Docker and Git. Everything is a presence check over the file tree
plus the detected tech stack, so the result is available offline.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Any, Optional

from .patterns import contains_file_named
from .techstack import RepoInfo, TechStackResult
from .tree import FileTree

REQUIRED = "required"
OPTIONAL = "optional"
DETECTED = "detected"
MISSING = "missing"
STATUSES = (REQUIRED, OPTIONAL, DETECTED, MISSING)

NODE_LANGUAGES = ("JavaScript", "TypeScript")
DEFAULT_NODE_VERSION = "18.x"
NVMRC_NODE_VERSION = "v18.17.0"

PIP_FILES = ("requirements.txt", "pyproject.toml")
ENV_FILES = (".env.example", ".env")
DOCKER_FILES = ("docker-compose.yml", "Dockerfile")
DOCKER_INSTRUCTIONS = "Run `docker-compose up` to start all services automatically"

# (max required count, estimate); anything above falls through to the last
SETUP_TIMES = ((3, "10-15 minutes"), (6, "20-30 minutes"))
LONG_SETUP_TIME = "30-45 minutes"


@dataclass(frozen=True)
class Requirement:
    """Something that has to be installed or configured."""

    id: str
    name: str
    status: str
    category: str
    description: str
    detection_source: str
    priority: str
    version: Optional[str] = None
    install_command: Optional[str] = None
    verify_command: Optional[str] = None
    documentation: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "status": self.status,
            "category": self.category,
            "description": self.description,
            "installCommand": self.install_command,
            "verifyCommand": self.verify_command,
            "detectionSource": self.detection_source,
            "priority": self.priority,
            "documentation": self.documentation,
        }
        return {k: v for k, v in data.items() if v is not None}


NPM = Requirement(
    "npm", "npm", REQUIRED, "tool",
    "Node.js package manager",
    "Bundled with Node.js", "high",
    version="8.x+",
    verify_command="npm --version",
)
PYTHON = Requirement(
    "python", "Python", REQUIRED, "runtime",
    "Python programming language",
    "Tech stack analysis", "high",
    version="3.8+",
    install_command="Download from https://python.org/",
    verify_command="python --version",
    documentation="https://docs.python.org/",
)
PIP = Requirement(
    "pip", "pip", REQUIRED, "tool",
    "Python package installer",
    "requirements.txt detected", "high",
    verify_command="pip --version",
)
ENV_FILE = Requirement(
    "env-file", ".env file", REQUIRED, "env_var",
    "Environment configuration file with required variables",
    ".env.example or .env file detected", "high",
)
DOCKER = Requirement(
    "docker", "Docker", OPTIONAL, "tool",
    "Containerization platform (alternative to manual setup)",
    "Docker configuration files detected", "medium",
    install_command="Download from https://docker.com/",
    verify_command="docker --version",
    documentation="https://docs.docker.com/",
)
GIT = Requirement(
    "git", "Git", REQUIRED, "tool",
    "Version control system",
    "Required for repository cloning", "high",
    install_command="Download from https://git-scm.com/",
    verify_command="git --version",
    documentation="https://git-scm.com/doc",
)

# Database -> (install, verify, documentation)
DATABASE_SERVERS = {
    "MongoDB": (
        "Download from https://mongodb.com/try/download/community",
        "mongod --version",
        "https://docs.mongodb.com/",
    ),
    "PostgreSQL": (
        "Download from https://postgresql.org/download/",
        "psql --version",
        "https://postgresql.org/docs/",
    ),
    "MySQL": (
        "Download from https://mysql.com/downloads/",
        "mysql --version",
        "https://dev.mysql.com/doc/",
    ),
    "Redis": (
        "Download from https://redis.io/download",
        "redis-server --version",
        "https://redis.io/documentation",
    ),
}

SETUP_COMMANDS = {
    "JavaScript": (
        "# Install dependencies",
        "npm install",
        "",
        "# Start development server",
        "npm run dev",
    ),
    "Python": (
        "# Create virtual environment",
        "python -m venv venv",
        "source venv/bin/activate  # On Windows: venv\\Scripts\\activate",
        "",
        "# Install dependencies",
        "pip install -r requirements.txt",
        "",
        "# Start development server",
        "python manage.py runserver  # Django",
        "# OR",
        "flask run  # Flask",
    ),
}
SETUP_COMMANDS["TypeScript"] = SETUP_COMMANDS["JavaScript"]


@dataclass(frozen=True)
class EnvironmentReport:
    """Requirements, setup guide and time estimate for one repository."""

    requirements: tuple[Requirement, ...]
    setup_instructions: str
    docker_available: bool
    estimated_setup_time: str
    last_analyzed: datetime.datetime

    @property
    def summary(self) -> dict[str, int]:
        counts = {status: 0 for status in STATUSES}
        for req in self.requirements:
            counts[req.status] = counts.get(req.status, 0) + 1
        return {
            "totalRequirements": len(self.requirements),
            "requiredCount": counts[REQUIRED],
            "optionalCount": counts[OPTIONAL],
            "detectedCount": counts[DETECTED],
            "missingCount": counts[MISSING],
        }

    @property
    def docker_instructions(self) -> str:
        return DOCKER_INSTRUCTIONS if self.docker_available else ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "requirements": [req.to_dict() for req in self.requirements],
            "summary": self.summary,
            "setupInstructions": self.setup_instructions,
            "dockerAlternative": {
                "available": self.docker_available,
                "instructions": self.docker_instructions,
            },
            "estimatedSetupTime": self.estimated_setup_time,
            "lastAnalyzed": self.last_analyzed.isoformat(),
        }


def detect_environment(
    tree: FileTree,
    tech_stack: TechStackResult,
    repo: RepoInfo,
    url: str = "",
    now: datetime.datetime | None = None,
) -> EnvironmentReport:
    """List what a contributor needs to run the repository locally."""
    requirements: list[Requirement] = []

    if tech_stack.language in NODE_LANGUAGES:
        requirements.append(_node_requirement(tree))
        requirements.append(NPM)

    if tech_stack.language == "Python":
        requirements.append(PYTHON)
        if contains_file_named(tree, PIP_FILES):
            requirements.append(PIP)

    database = database_requirement(tech_stack.database)
    if database is not None:
        requirements.append(database)

    if contains_file_named(tree, ENV_FILES):
        requirements.append(ENV_FILE)

    docker_available = contains_file_named(tree, DOCKER_FILES)
    if docker_available:
        requirements.append(DOCKER)

    requirements.append(GIT)

    return EnvironmentReport(
        requirements=tuple(requirements),
        setup_instructions=setup_instructions(requirements, tech_stack, repo, url),
        docker_available=docker_available,
        estimated_setup_time=estimate_setup_time(requirements),
        last_analyzed=now or _utcnow(),
    )


def database_requirement(database: Optional[str]) -> Optional[Requirement]:
    """Server requirement for a known database, None for anything else."""
    if not database or database not in DATABASE_SERVERS:
        return None
    install, verify, docs = DATABASE_SERVERS[database]
    return Requirement(
        database.lower(), database, REQUIRED, "database",
        f"{database} database server",
        "Tech stack analysis", "high",
        install_command=install,
        verify_command=verify,
        documentation=docs,
    )


def setup_instructions(
    requirements: list[Requirement],
    tech_stack: TechStackResult,
    repo: RepoInfo,
    url: str = "",
) -> str:
    """Markdown setup guide: prerequisite checklist, then shell commands."""
    lines = [f"# {repo.name} - Development Environment Setup", "", "## Prerequisites Checklist", ""]

    required = [req for req in requirements if req.status == REQUIRED]
    for index, req in enumerate(required, 1):
        version = f" ({req.version})" if req.version else ""
        lines.append(f"{index}. **{req.name}**{version}")
        if req.install_command:
            lines.append(f"   - Install: {req.install_command}")
        if req.verify_command:
            lines.append(f"   - Verify: `{req.verify_command}`")
        lines.append(f"   - {req.description}")
        lines.append("")

    clone_from = url or f"https://github.com/{repo.owner}/{repo.name}"
    lines += [
        "## Quick Setup Commands",
        "",
        "```bash",
        "# Clone the repository",
        f"git clone {clone_from}",
        f"cd {repo.name}",
        "",
    ]
    lines.extend(SETUP_COMMANDS.get(tech_stack.language, ()))
    lines.append("```")
    return "\n".join(lines) + "\n"


def estimate_setup_time(requirements: list[Requirement]) -> str:
    required = sum(1 for req in requirements if req.status == REQUIRED)
    for limit, estimate in SETUP_TIMES:
        if required <= limit:
            return estimate
    return LONG_SETUP_TIME


def _node_requirement(tree: FileTree) -> Requirement:
    pinned = contains_file_named(tree, [".nvmrc"])
    return Requirement(
        "nodejs", "Node.js", REQUIRED, "runtime",
        "JavaScript runtime environment",
        ".nvmrc or package.json engines" if pinned else "Tech stack analysis", "high",
        version=NVMRC_NODE_VERSION if pinned else DEFAULT_NODE_VERSION,
        install_command="Download from https://nodejs.org/",
        verify_command="node --version",
        documentation="https://nodejs.org/en/docs/",
    )


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)
