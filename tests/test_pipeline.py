"""Tests for the analysis pipeline."""

from unittest.mock import MagicMock, patch

import pytest

from repolens.model import AnalysisRequest, ModelError, OllamaClient
from repolens.pipeline import (
    AI_POWERED,
    LOCAL_HEURISTIC,
    AnalysisReport,
    EmptyRepositoryError,
    RepoAnalyzer,
)
from repolens.source import RepoSnapshot
from repolens.techstack import AIAnalysisResult, KeyFile, RepoInfo
from repolens.tree import build_tree

PATHS = ["src/index.ts", "src/App.tsx", "package.json"]


@pytest.fixture
def snapshot():
    return RepoSnapshot(
        root="/tmp/demo",
        info=RepoInfo(name="demo", owner="acme"),
        tree=build_tree(PATHS),
        file_paths=list(PATHS),
        key_files=[],
        url="https://github.com/acme/demo",
    )


@pytest.fixture
def mock_client():
    """Create a mock OllamaClient that returns structured responses."""
    client = MagicMock(spec=OllamaClient)
    client.model = "qwen2.5-coder:7b"
    client.analyze_tech_stack.return_value = AIAnalysisResult.from_dict({
        "language": "TypeScript",
        "frontend": "React",
        "tools": ["Vite", "Vitest"],
        "confidence": 92,
    })
    client.analyze_health.return_value = {
        "overall": 77,
        "breakdown": {"testCoverage": 70, "readmeQuality": 60},
        "aiTips": ["Add a README"],
    }
    return client


class TestRepoAnalyzerLocal:
    """Test the pipeline without a model."""

    def test_local_analysis(self, snapshot):
        report = RepoAnalyzer().analyze(snapshot)
        assert report.source == LOCAL_HEURISTIC
        assert report.language_stats == {"TypeScript": 38, "JSON": 62}
        assert report.tech_stack.language == "TypeScript"
        assert report.tech_stack.infra == ("Node.js", "NPM")
        assert report.health.overall == 41
        assert report.health.source == "local"
        assert report.errors == []
        assert report.model_used == ""

    def test_empty_repository(self):
        empty = RepoSnapshot(root="/tmp/empty", info=RepoInfo(name="empty"))
        with pytest.raises(EmptyRepositoryError, match="no files"):
            RepoAnalyzer().analyze(empty)

    def test_key_files_only_is_not_empty(self):
        snap = RepoSnapshot(
            root="/tmp/x",
            info=RepoInfo(name="x"),
            key_files=[KeyFile("go.mod", "module x\n")],
        )
        report = RepoAnalyzer().analyze(snap)
        assert report.language_stats == {"JavaScript": 100}

    def test_progress_callback(self, snapshot):
        calls = []
        RepoAnalyzer().analyze(snapshot, progress_callback=lambda *args: calls.append(args))
        assert [c[1:] for c in calls] == [(1, 4), (2, 4), (3, 4), (4, 4)]

    def test_environment_detected(self, snapshot):
        report = RepoAnalyzer().analyze(snapshot)
        assert [req.name for req in report.environment.requirements] == ["Node.js", "npm", "Git"]
        assert report.environment.estimated_setup_time == "10-15 minutes"
        assert "git clone https://github.com/acme/demo" in report.environment.setup_instructions


class TestRepoAnalyzerWithModel:
    """Test the model-backed pipeline and its fallbacks."""

    def test_ai_powered(self, snapshot, mock_client):
        report = RepoAnalyzer(mock_client).analyze(snapshot)
        assert report.source == AI_POWERED
        assert report.tech_stack.frontend == "React"
        assert report.tech_stack.infra == ("Vite", "Vitest")
        assert report.tech_stack.confidence == 92
        assert report.health.overall == 77
        assert report.health.source == "ai"
        assert report.model_used == "qwen2.5-coder:7b"

        request = mock_client.analyze_tech_stack.call_args.args[0]
        assert isinstance(request, AnalysisRequest)
        assert request.file_paths == PATHS
        assert request.repo_info.owner == "acme"

        payload = mock_client.analyze_health.call_args.args[0]
        assert payload["name"] == "demo"
        assert payload["techStackDetailed"]["language"] == "TypeScript"

    def test_tech_stack_failure_falls_back(self, snapshot, mock_client):
        mock_client.analyze_tech_stack.side_effect = ModelError("Ollama returned 503: busy")
        report = RepoAnalyzer(mock_client).analyze(snapshot)
        assert report.source == LOCAL_HEURISTIC
        assert report.tech_stack.frontend == "React (TypeScript)"
        assert report.errors == ["tech stack: Ollama returned 503: busy"]

    def test_health_failure_falls_back(self, snapshot, mock_client):
        mock_client.analyze_health.side_effect = ModelError("Model returned invalid JSON: nope")
        report = RepoAnalyzer(mock_client).analyze(snapshot)
        assert report.source == AI_POWERED
        assert report.health.source == "local"
        assert report.errors == ["health: Model returned invalid JSON: nope"]

    def test_fallback_is_logged(self, snapshot, mock_client):
        mock_client.analyze_tech_stack.side_effect = ModelError("down")
        with patch("repolens.pipeline.logger") as mock_logger:
            RepoAnalyzer(mock_client).analyze(snapshot)
        assert "using local detection" in mock_logger.warning.call_args.args[0]


class TestAnalysisReport:
    def test_to_dict(self, snapshot):
        report = RepoAnalyzer().analyze(snapshot)
        data = report.to_dict()
        assert data["name"] == "demo"
        assert data["url"] == "https://github.com/acme/demo"
        assert data["techStack"] == report.tech_stack_labels
        assert data["techStackDetailed"]["language"] == "TypeScript"
        assert data["health"]["overall"] == 41
        assert data["analysisSource"] == "local-heuristic"
        assert data["environment"]["summary"]["requiredCount"] == 3

    def test_labels_skip_blanks(self, snapshot):
        report = RepoAnalyzer().analyze(snapshot)
        assert report.tech_stack_labels == ["TypeScript", "React (TypeScript)", "Node.js", "NPM"]
        assert isinstance(report, AnalysisReport)
