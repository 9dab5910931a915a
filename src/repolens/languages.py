"""Weighted language statistics from a flat list of file paths."""

from __future__ import annotations

import math
from collections import Counter
from typing import Iterable

DEFAULT_LANGUAGE = "JavaScript"

# Extension -> Language mapping
EXT_LANG = {
    "js": "JavaScript", "jsx": "JavaScript", "mjs": "JavaScript", "cjs": "JavaScript",
    "ts": "TypeScript", "tsx": "TypeScript",
    "py": "Python", "pyw": "Python", "pyi": "Python",
    "go": "Go",
    "rs": "Rust",
    "java": "Java", "kt": "Kotlin",
    "php": "PHP",
    "rb": "Ruby",
    "cs": "C#",
    "cpp": "C++", "cc": "C++", "cxx": "C++", "hpp": "C++",
    "c": "C", "h": "C/C++",
    "html": "HTML", "htm": "HTML",
    "css": "CSS", "scss": "SCSS", "sass": "Sass", "less": "Less",
    "vue": "Vue.js",
    "svelte": "Svelte",
    "dart": "Dart",
    "swift": "Swift",
    "yaml": "YAML", "yml": "YAML",
    "json": "JSON",
    "xml": "XML",
    "sql": "SQL",
    "sh": "Shell", "bash": "Shell",
    "dockerfile": "Docker",
    "makefile": "Makefile",
}

DATA_FORMATS = {
    "JSON", "YAML", "XML", "HTML", "CSS", "SCSS", "Sass", "Less", "Docker", "Makefile",
}

# Files whose presence says the most about the stack
MANIFEST_FILES = ("package.json", "requirements.txt", "go.mod", "cargo.toml")
CONFIG_HINTS = ("config", "settings", "env")

EXT_WEIGHT = {
    "ts": 3, "tsx": 3, "js": 3, "jsx": 3,
    "py": 3, "go": 3, "rs": 3, "java": 3,
    "vue": 3, "svelte": 3,
    "css": 2, "scss": 2, "less": 2,
    "html": 2, "json": 2, "yaml": 2, "yml": 2,
    "md": 1, "txt": 1,
}


def file_extension(path: str) -> str:
    """Lowercase extension of the file name, or a pseudo-extension.

    Extension-less Dockerfiles and Makefiles map to ``dockerfile`` and
    ``makefile``; anything else without a dot yields an empty string.
    """
    name = path.replace("\\", "/").rsplit("/", 1)[-1].lower()
    if "." in name:
        return name.rsplit(".", 1)[-1]
    if "dockerfile" in name:
        return "dockerfile"
    if "makefile" in name:
        return "makefile"
    return ""


def file_weight(path: str, ext: str) -> int:
    """How much a single file counts towards its language."""
    lower = path.lower()
    if any(name in lower for name in MANIFEST_FILES):
        return 10
    if any(hint in lower for hint in CONFIG_HINTS):
        return 5
    return EXT_WEIGHT.get(ext, 1)


def estimate_language_stats(file_paths: Iterable[str]) -> dict[str, int]:
    """Convert file paths into integer language percentages.

    Always returns at least one entry; with nothing recognizable the result
    is ``{"JavaScript": 100}``.
    """
    totals: Counter = Counter()
    for path in file_paths:
        if not path or path.endswith("/"):
            continue
        ext = file_extension(path)
        lang = EXT_LANG.get(ext)
        if lang:
            totals[lang] += file_weight(path, ext)

    grand_total = sum(totals.values())
    if grand_total == 0:
        return {DEFAULT_LANGUAGE: 100}

    shares = {lang: total / grand_total * 100 for lang, total in totals.items()}
    stats = {lang: _round_half_up(share) for lang, share in shares.items()}

    # Independent rounding can overshoot; take points back from the entries
    # that gained most from rounding, one at a time, never below zero
    excess = sum(stats.values()) - 100
    by_gain = sorted(stats, key=lambda lang: (stats[lang] - shares[lang], stats[lang]), reverse=True)
    while excess > 0:
        for lang in by_gain:
            if excess == 0:
                break
            if stats[lang] > 0:
                stats[lang] -= 1
                excess -= 1
    return stats


def primary_language(stats: dict[str, int]) -> str:
    """Dominant language; the first one seen wins ties.

    Data and markup formats only win when nothing else is present, so a
    heavy ``package.json`` does not make a TypeScript repo "JSON".
    """
    if not stats:
        return DEFAULT_LANGUAGE
    candidates = {k: v for k, v in stats.items() if k not in DATA_FORMATS} or stats
    return max(candidates.items(), key=lambda item: item[1])[0]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
