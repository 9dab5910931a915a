"""Analysis session - combines the local detectors with the model.

Runs language estimation, tech-stack inference, health scoring and
development environment detection over a RepoSnapshot. When a model client
is configured its answers are preferred; any ModelError drops that step back
to the deterministic local path.
"""

from __future__ import annotations

import datetime
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .environment import EnvironmentReport, detect_environment
from .health import HealthScore, health_from_model, score_repo_health
from .languages import estimate_language_stats
from .log import get_logger
from .model import AnalysisRequest, ModelError, OllamaClient
from .source import RepoSnapshot
from .techstack import AIAnalysisResult, RepoInfo, TechStackResult, infer_tech_stack

AI_POWERED = "ai-powered"
LOCAL_HEURISTIC = "local-heuristic"

logger = get_logger(__name__)

ProgressCallback = Callable[[str, int, int], None]


class EmptyRepositoryError(ValueError):
    """The repository has no files to analyze."""


@dataclass
class AnalysisReport:
    """Complete analysis output for one repository."""

    repo: RepoInfo
    language_stats: dict[str, int]
    tech_stack: TechStackResult
    health: HealthScore
    environment: Optional[EnvironmentReport] = None
    source: str = LOCAL_HEURISTIC
    url: str = ""
    model_used: str = ""
    analysis_time_seconds: float = 0.0
    errors: list[str] = field(default_factory=list)

    @property
    def tech_stack_labels(self) -> list[str]:
        return self.tech_stack.labels()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.repo.name,
            "owner": self.repo.owner,
            "description": self.repo.description,
            "url": self.url,
            "languageStats": dict(self.language_stats),
            "techStack": self.tech_stack_labels,
            "techStackDetailed": self.tech_stack.to_dict(),
            "health": self.health.to_dict(),
            "environment": self.environment.to_dict() if self.environment else None,
            "analysisSource": self.source,
            "modelUsed": self.model_used,
            "analysisTimeSeconds": round(self.analysis_time_seconds, 1),
            "errors": list(self.errors),
        }


class RepoAnalyzer:
    """Runs the analysis pipeline, with or without a model."""

    def __init__(self, client: OllamaClient | None = None):
        self.client = client

    def analyze(
        self,
        snapshot: RepoSnapshot,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> AnalysisReport:
        """Analyze a scanned repository. Raises EmptyRepositoryError if it has no files."""
        if snapshot.is_empty:
            raise EmptyRepositoryError(f"Repository {snapshot.info.name or snapshot.root} has no files")

        start = time.time()
        errors: list[str] = []
        total = 4

        def report(status: str, step: int) -> None:
            logger.debug(status)
            if progress_callback:
                progress_callback(status, step, total)

        report("Estimating language composition...", 1)
        stats = estimate_language_stats(snapshot.file_paths)

        report("Detecting tech stack...", 2)
        ai_result = self._ai_tech_stack(snapshot, stats, errors)
        tech_stack = infer_tech_stack(
            stats,
            snapshot.key_files,
            ai_result=ai_result,
            file_paths=snapshot.file_paths,
            repo_info=snapshot.info,
        )

        report("Scoring repository health...", 3)
        health = self._ai_health(snapshot, tech_stack, errors)
        if health is None:
            health = score_repo_health(snapshot.tree, tech_stack)

        report("Detecting development environment...", 4)
        environment = detect_environment(snapshot.tree, tech_stack, snapshot.info, url=snapshot.url)

        return AnalysisReport(
            repo=snapshot.info,
            language_stats=stats,
            tech_stack=tech_stack,
            health=health,
            environment=environment,
            source=AI_POWERED if ai_result is not None else LOCAL_HEURISTIC,
            url=snapshot.url,
            model_used=self.client.model if self.client else "",
            analysis_time_seconds=time.time() - start,
            errors=errors,
        )

    def _ai_tech_stack(
        self,
        snapshot: RepoSnapshot,
        stats: dict[str, int],
        errors: list[str],
    ) -> AIAnalysisResult | None:
        if self.client is None:
            return None
        request = AnalysisRequest(
            language_stats=stats,
            key_files=list(snapshot.key_files),
            file_paths=list(snapshot.file_paths),
            repo_info=snapshot.info,
        )
        try:
            return self.client.analyze_tech_stack(request)
        except ModelError as e:
            logger.warning("AI tech-stack analysis failed, using local detection: %s", e)
            errors.append(f"tech stack: {e}")
            return None

    def _ai_health(
        self,
        snapshot: RepoSnapshot,
        tech_stack: TechStackResult,
        errors: list[str],
    ) -> HealthScore | None:
        if self.client is None:
            return None
        payload = {
            "name": snapshot.info.name,
            "owner": snapshot.info.owner,
            "description": snapshot.info.description,
            "techStackDetailed": tech_stack.to_dict(),
            "filePaths": list(snapshot.file_paths),
        }
        try:
            raw = self.client.analyze_health(payload)
            return health_from_model(raw, now=_utcnow())
        except (ModelError, ValueError) as e:
            logger.warning("AI health analysis failed, using local scoring: %s", e)
            errors.append(f"health: {e}")
            return None


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)
