"""Saved analyses, keyed by repository URL.

The store holds plain dict records and delegates persistence to injected
``load``/``save`` callables, so callers decide where history lives. The CLI
uses ``json_file_backend``; tests pass in-memory functions.
"""

from __future__ import annotations

import datetime
import json
from pathlib import Path
from typing import Any, Callable, Mapping

from .log import get_logger

logger = get_logger(__name__)

Records = dict[str, dict[str, Any]]
Loader = Callable[[], Records]
Saver = Callable[[Records], None]


class AnalysisStore:
    """History of analyzed repositories."""

    def __init__(
        self,
        load: Loader,
        save: Saver,
        clock: Callable[[], datetime.datetime] | None = None,
    ):
        self._load = load
        self._save = save
        self._clock = clock or _utcnow
        self._records: Records | None = None

    @property
    def records(self) -> Records:
        if self._records is None:
            self._records = dict(self._load())
        return self._records

    def put(self, url: str, report: Any) -> dict[str, Any]:
        """Save a report (an AnalysisReport or its dict) under ``url``."""
        data = report.to_dict() if hasattr(report, "to_dict") else dict(report)
        now = self._clock().isoformat()
        previous = self.records.get(url, {})
        record = {
            "url": url,
            "name": data.get("name", ""),
            "owner": data.get("owner", ""),
            "description": data.get("description", ""),
            "techStack": list(data.get("techStack") or []),
            "analyzedAt": now,
            "lastAccessedAt": now,
            "isFavorite": bool(previous.get("isFavorite", False)),
            "report": data,
        }
        self.records[url] = record
        self._save(self.records)
        logger.debug("Saved analysis for %s", url)
        return record

    def get(self, url: str) -> dict[str, Any] | None:
        record = self.records.get(url)
        if record is not None:
            record["lastAccessedAt"] = self._clock().isoformat()
            self._save(self.records)
        return record

    def list(self) -> list[dict[str, Any]]:
        """All records, most recently analyzed first."""
        return sorted(self.records.values(), key=lambda r: r.get("analyzedAt", ""), reverse=True)

    def delete(self, url: str) -> bool:
        if url not in self.records:
            return False
        del self.records[url]
        self._save(self.records)
        return True

    def toggle_favorite(self, url: str) -> bool:
        """Flip the favorite flag. Raises KeyError for an unknown URL."""
        record = self.records[url]
        record["isFavorite"] = not record.get("isFavorite", False)
        record["lastAccessedAt"] = self._clock().isoformat()
        self._save(self.records)
        return record["isFavorite"]

    def search(self, query: str) -> list[dict[str, Any]]:
        """Records whose name, description or technologies mention ``query``."""
        needle = query.lower()
        return [
            record for record in self.list()
            if needle in record.get("name", "").lower()
            or needle in record.get("description", "").lower()
            or any(needle in tech.lower() for tech in record.get("techStack", []))
        ]


def json_file_backend(path: str | Path) -> tuple[Loader, Saver]:
    """Load/save functions over a single JSON file."""
    path = Path(path).expanduser()

    def load() -> Records:
        if not path.exists():
            return {}
        with open(path) as f:
            data = json.load(f)
        if not isinstance(data, Mapping):
            raise ValueError(f"{path} does not contain a JSON object")
        return {str(k): v for k, v in data.items() if isinstance(v, dict)}

    def save(records: Records) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(records, indent=2))

    return load, save


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)
