"""Repository retrieval.

Resolves a GitHub URL (or ``owner/repo`` shorthand) to a shallow clone and
scans a local checkout into the inputs the detectors need: the file tree,
the flat file path list and a small sample of key configuration files.
"""

from __future__ import annotations

import json
import os
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from .log import get_logger
from .techstack import KeyFile, RepoInfo
from .tree import FileTree, build_tree

logger = get_logger(__name__)

IGNORE_DIRS = {
    ".git", "node_modules", "__pycache__", ".venv", "venv",
    ".tox", ".mypy_cache", ".pytest_cache", ".ruff_cache",
    "target", "build", "dist", ".next", ".nuxt", ".output",
    "vendor", "Pods", ".build", ".swiftpm", "DerivedData",
    "coverage", "htmlcov", ".nyc_output",
    ".idea", ".vscode", ".vs", ".gradle",
}

# Files sampled for inference, most telling first
KEY_FILES = (
    "README.md",
    "package.json",
    "requirements.txt",
    "Pipfile",
    "poetry.lock",
    "pyproject.toml",
    "go.mod",
    "Cargo.toml",
    "Dockerfile",
    "docker-compose.yml",
    "tsconfig.json",
    "next.config.js",
    "next.config.ts",
    "vite.config.js",
    "vite.config.ts",
    "webpack.config.js",
    "angular.json",
    "svelte.config.js",
    "nuxt.config.js",
    "nuxt.config.ts",
    ".github/workflows/ci.yml",
    ".github/workflows/deploy.yml",
    ".gitlab-ci.yml",
)
MAX_KEY_FILES = 15
MAX_KEY_FILE_CHARS = 8000
MAX_FILES = 5000
CLONE_TIMEOUT = 120

_URL_PATTERNS = (
    re.compile(r"github\.com/([A-Za-z0-9][A-Za-z0-9-]*)/([^/\s#?]+)(?:/tree/([^/\s#?]+))?"),
    re.compile(r"^([A-Za-z0-9][A-Za-z0-9-]*)/([^/\s#?]+)(?:/tree/([^/\s#?]+))?$"),
)


class SourceError(Exception):
    """The repository could not be retrieved."""


@dataclass(frozen=True)
class RepoRef:
    """A GitHub repository reference."""

    owner: str
    name: str
    branch: str | None = None

    @property
    def url(self) -> str:
        return f"https://github.com/{self.owner}/{self.name}"

    @property
    def clone_url(self) -> str:
        return f"{self.url}.git"


@dataclass
class RepoSnapshot:
    """Everything the detectors read about one repository."""

    root: str
    info: RepoInfo
    tree: FileTree = field(default_factory=dict)
    file_paths: list[str] = field(default_factory=list)
    key_files: list[KeyFile] = field(default_factory=list)
    url: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.file_paths and not self.key_files


def parse_repo_url(target: str) -> RepoRef:
    """Parse ``https://github.com/o/r``, ``github.com/o/r/tree/b`` or ``o/r``."""
    cleaned = re.sub(r"^https?://", "", target.strip())
    cleaned = re.sub(r"^www\.", "", cleaned)
    for pattern in _URL_PATTERNS:
        match = pattern.match(cleaned)
        if match:
            name = match.group(2)
            if name.endswith(".git"):
                name = name[: -len(".git")]
            if name:
                return RepoRef(owner=match.group(1), name=name, branch=match.group(3))
    raise ValueError("Invalid GitHub repository URL")


def clone_repo(ref: RepoRef, dest: Path, depth: int = 50) -> Path:
    """Shallow-clone ``ref`` under ``dest``. Returns the clone path."""
    clone_dir = Path(dest) / ref.name
    cmd = ["git", "clone", f"--depth={depth}", "--single-branch"]
    if ref.branch:
        cmd += ["--branch", ref.branch]
    cmd += [ref.clone_url, str(clone_dir)]

    logger.debug("Cloning %s into %s", ref.clone_url, clone_dir)
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=CLONE_TIMEOUT)
    except FileNotFoundError:
        raise SourceError("git is not installed")
    except subprocess.TimeoutExpired:
        raise SourceError(f"Git clone timed out after {CLONE_TIMEOUT}s")
    if result.returncode != 0:
        raise SourceError(f"Git clone failed: {result.stderr.strip()[:200]}")
    return clone_dir


def scan_repo(
    root: str | Path,
    info: RepoInfo | None = None,
    max_depth: int | None = 4,
) -> RepoSnapshot:
    """Walk a local checkout into a RepoSnapshot."""
    root = Path(root).resolve()
    if not root.is_dir():
        raise SourceError(f"Not a directory: {root}")

    paths = _collect_paths(root)
    key_files = _read_key_files(root, set(paths))

    if info is None:
        info = RepoInfo(name=root.name, description=_detect_description(key_files))
    elif not info.description:
        info = RepoInfo(name=info.name, owner=info.owner, description=_detect_description(key_files))

    return RepoSnapshot(
        root=str(root),
        info=info,
        tree=build_tree(paths, max_depth=max_depth),
        file_paths=paths,
        key_files=key_files,
    )


def _collect_paths(root: Path) -> list[str]:
    paths: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        # Skip ignored directories
        dirnames[:] = sorted(d for d in dirnames if d not in IGNORE_DIRS)
        rel = os.path.relpath(dirpath, root)
        for fname in sorted(filenames):
            rel_file = fname if rel == "." else f"{Path(rel).as_posix()}/{fname}"
            paths.append(rel_file)
            if len(paths) >= MAX_FILES:
                logger.warning("Stopped scanning %s after %d files", root, MAX_FILES)
                return paths
    return paths


def _read_key_files(root: Path, present: set[str]) -> list[KeyFile]:
    key_files: list[KeyFile] = []
    for name in KEY_FILES:
        if name not in present:
            continue
        try:
            content = (root / name).read_text(errors="replace")
        except OSError as e:
            logger.debug("Skipping unreadable key file %s: %s", name, e)
            continue
        key_files.append(KeyFile(file_name=name, content=content[:MAX_KEY_FILE_CHARS]))
        if len(key_files) >= MAX_KEY_FILES:
            break
    return key_files


def _detect_description(key_files: list[KeyFile]) -> str:
    """Pull a description out of the first manifest that has one."""
    for kf in key_files:
        if kf.file_name == "package.json":
            try:
                pkg = json.loads(kf.content)
            except (json.JSONDecodeError, ValueError):
                continue
            if isinstance(pkg, dict) and isinstance(pkg.get("description"), str) and pkg["description"]:
                return pkg["description"]
        elif kf.file_name in ("Cargo.toml", "pyproject.toml"):
            desc_match = re.search(r'^description\s*=\s*"([^"]+)"', kf.content, re.MULTILINE)
            if desc_match:
                return desc_match.group(1)
    return ""
