"""Tests for tech-stack inference."""

import json

import pytest

from repolens.techstack import (
    AIAnalysisResult,
    KeyFile,
    RepoInfo,
    TechStackResult,
    infer_tech_stack,
    resolve_field,
)


def _package_json(deps=None, dev_deps=None, **extra):
    return KeyFile("package.json", json.dumps({
        "dependencies": deps or {},
        "devDependencies": dev_deps or {},
        **extra,
    }))


class TestAIAnalysisResult:
    """Test coercion of raw model answers."""

    def test_unknown_and_blank_become_none(self):
        ai = AIAnalysisResult.from_dict({
            "language": "Unknown",
            "frontend": "  ",
            "backend": "unknown",
            "frameworks": ["React", "Unknown", "", 3],
        })
        assert ai.language is None
        assert ai.frontend is None
        assert ai.backend is None
        assert ai.frameworks == ["React"]

    def test_confidence_coerced(self):
        assert AIAnalysisResult.from_dict({"confidence": "88"}).confidence == 88
        assert AIAnalysisResult.from_dict({"confidence": "high"}).confidence == 70
        assert AIAnalysisResult.from_dict({"confidence": float("inf")}).confidence == 70

    def test_rejects_non_object(self):
        with pytest.raises(ValueError):
            AIAnalysisResult.from_dict(["React"])


class TestAIPath:
    """Test the fallback cascade over model answers."""

    def test_explicit_fields_win(self):
        result = infer_tech_stack({}, ai_result={
            "language": "Python",
            "frontend": "Vue.js",
            "backend": "Django",
            "database": "PostgreSQL",
            "projectType": "Full-stack Web Application",
            "architecture": "Monolith",
            "purpose": "Blog Platform",
            "tools": ["Docker", "GitHub Actions"],
            "confidence": 90,
        })
        assert result.language == "Python"
        assert result.frontend == "Vue.js"
        assert result.backend == "Django"
        assert result.database == "PostgreSQL"
        assert result.infra == ("Docker", "GitHub Actions")
        assert result.confidence == 90
        assert result.project_type == "Full-stack Web Application"
        assert result.architecture == "Monolith"
        assert result.purpose == "Blog Platform"

    def test_fields_recovered_from_tech_stack_text(self):
        result = infer_tech_stack({}, ai_result={"techStack": "React + TypeScript + PostgreSQL"})
        assert result.language == "TypeScript"
        assert result.frontend == "React"
        assert result.database == "PostgreSQL"
        assert result.backend is None
        assert result.infra == ("Node.js", "NPM")

    def test_language_from_frameworks(self):
        result = infer_tech_stack({}, ai_result={"frameworks": ["Django REST framework"]})
        assert result.language == "Python"
        assert result.backend == "Django"

    def test_backend_from_project_type(self):
        result = infer_tech_stack({}, ai_result={"language": "Go", "projectType": "Backend API"})
        assert result.backend == "Gin"
        assert result.frontend is None
        assert result.infra == ("Go Modules",)

    def test_frontend_from_project_type(self):
        result = infer_tech_stack({}, ai_result={"projectType": "Frontend SPA"})
        assert result.frontend == "React"

    def test_missing_project_type_counts_as_web_application(self):
        result = infer_tech_stack({}, ai_result={"language": "TypeScript"})
        assert result.project_type == "Web Application"
        assert result.frontend == "React"
        assert result.backend is None

    def test_rust_gets_generic_infra(self):
        result = infer_tech_stack({}, ai_result={"language": "Rust", "projectType": "CLI tool"})
        assert result.infra == ("Standard Development Tools",)
        assert result.frontend is None

    def test_database_from_lists(self):
        assert infer_tech_stack({}, ai_result={"databases": ["MongoDB", "Redis"]}).database == "MongoDB"
        assert infer_tech_stack({}, ai_result={"tools": ["Docker", "Redis"]}).database == "Redis"

    def test_word_start_matching(self):
        result = infer_tech_stack({}, ai_result={"techStack": "Django app"})
        assert result.language != "Go"

    def test_all_unknown_gets_defaults(self):
        result = infer_tech_stack({}, ai_result={
            "language": "Unknown",
            "projectType": "Unknown",
            "architecture": "Unknown",
            "purpose": "Unknown",
            "confidence": "Unknown",
        })
        assert result.language == "JavaScript"
        assert result.project_type == "Web Application"
        assert result.architecture == "Standard Application"
        assert result.purpose == "Software Application"
        assert result.confidence == 70

    @pytest.mark.parametrize("raw,expected", [(40, 70), (0, 70), (85, 85), (150, 100)])
    def test_confidence_floor_and_cap(self, raw, expected):
        assert infer_tech_stack({}, ai_result={"confidence": raw}).confidence == expected

    def test_rationale(self):
        result = infer_tech_stack({}, ai_result={
            "reasoning": "Uses React. Found a react dependency in the manifest! ok",
            "frameworks": ["React", "Redux", "Jest", "Vite"],
            "databases": ["SQLite"],
            "confidence": 80,
        })
        assert result.rationale == (
            "Found a react dependency in the manifest",
            "Frameworks detected: React, Redux, Jest",
            "Database technologies: SQLite",
            "Analysis confidence: 80% based on comprehensive pattern detection",
        )

    def test_rationale_truncated(self):
        reasoning = ". ".join(f"Sentence number {i} is long enough" for i in range(10))
        result = infer_tech_stack({}, ai_result={
            "reasoning": reasoning, "frameworks": ["React"], "databases": ["Redis"],
        })
        assert len(result.rationale) == 6

    def test_resolve_field_optional(self):
        assert resolve_field("backend", AIAnalysisResult()) is None
        assert resolve_field("language", AIAnalysisResult()) == "JavaScript"

    def test_deterministic(self):
        answer = {"techStack": "Vue + Express + MongoDB", "confidence": 75}
        assert infer_tech_stack({}, ai_result=answer) == infer_tech_stack({}, ai_result=answer)


class TestLocalPath:
    """Test inference from local evidence only."""

    def test_typescript_sources(self):
        paths = ["src/index.ts", "src/App.tsx", "package.json"]
        result = infer_tech_stack({"TypeScript": 38, "JSON": 62}, file_paths=paths)
        assert result.language == "TypeScript"
        assert result.frontend == "React (TypeScript)"
        assert result.infra == ("Node.js", "NPM")

    def test_next_app_from_package_json(self):
        paths = ["package.json", "next.config.js", "pages/index.tsx", "tsconfig.json"]
        result = infer_tech_stack(
            {"JSON": 65, "JavaScript": 22, "TypeScript": 13},
            key_files=[_package_json(
                deps={"next": "14.0.0", "react": "18.2.0", "pg": "8.11.0"},
                dev_deps={"typescript": "5.3.0", "jest": "29.0.0"},
            )],
            file_paths=paths,
        )
        assert result.language == "TypeScript"
        assert result.frontend == "Next.js"
        assert result.backend is None
        assert result.database == "PostgreSQL"
        assert result.project_type == "Frontend Web Application"
        assert result.architecture == "Single Page Application"
        assert result.infra == ("Jest", "TypeScript")

    def test_django_project(self):
        paths = ["manage.py", "requirements.txt", "app/models.py", "app/views.py"]
        result = infer_tech_stack(
            {"Python": 100},
            key_files=[KeyFile("requirements.txt", "Django==4.2\npsycopg2-binary\n")],
            file_paths=paths,
        )
        assert result.language == "Python"
        assert result.backend == "Django"
        assert result.project_type == "Backend API Service"
        assert result.architecture == "API Service"
        assert result.infra == ("Python Package Manager",)

    def test_go_gin_service(self):
        result = infer_tech_stack(
            {"Go": 100},
            key_files=[KeyFile("go.mod", "module x\n\nrequire github.com/gin-gonic/gin v1.9.1\n")],
            file_paths=["main.go", "go.mod"],
        )
        assert result.language == "Go"
        assert result.backend == "Gin"

    def test_manifest_decides_language_without_sources(self):
        result = infer_tech_stack({"JavaScript": 100}, file_paths=["Cargo.toml", "README.md"])
        assert result.language == "Rust"
        assert result.infra == ("Cargo",)

    def test_malformed_package_json(self):
        result = infer_tech_stack(
            {"JavaScript": 100},
            key_files=[KeyFile("package.json", "{not json")],
            file_paths=["package.json", "index.js"],
        )
        assert any("Could not parse package.json" in line for line in result.rationale)
        assert result.language == "JavaScript"

    def test_containerized_architecture(self):
        result = infer_tech_stack(
            {"Python": 100},
            file_paths=["app.py", "docker-compose.yml", "Dockerfile"],
        )
        assert result.architecture == "Containerized Application"
        assert "Docker" in result.infra
        assert "Docker Compose" in result.infra

    def test_monorepo(self):
        result = infer_tech_stack({"TypeScript": 100}, file_paths=["packages/ui/index.ts"])
        assert result.architecture == "Monorepo"

    def test_purpose_from_repo_info(self):
        result = infer_tech_stack(
            {"JavaScript": 100},
            file_paths=["src/index.js"],
            repo_info=RepoInfo(name="my-shop", description="online store with cart"),
        )
        assert result.purpose == "E-commerce Platform"

    def test_empty_evidence(self):
        result = infer_tech_stack({"JavaScript": 100})
        assert result.language == "JavaScript"
        assert result.project_type == "Software Development Project"
        assert result.architecture == "Standard Web Application"
        assert result.purpose == "Software Development Project"
        assert result.confidence == 70

    @pytest.mark.parametrize("stats,paths", [
        ({}, []),
        ({"JavaScript": 100}, ["index.js"]),
        ({"Python": 60, "YAML": 40}, ["a.py", "ci.yml"]),
        ({"C#": 100}, ["Program.cs"]),
    ])
    def test_never_unknown(self, stats, paths):
        result = infer_tech_stack(stats, file_paths=paths)
        for value in (result.language, result.project_type, result.architecture, result.purpose):
            assert value and value != "Unknown"
        assert 70 <= result.confidence <= 95
        assert result.infra
        assert 1 <= len(result.rationale) <= 6


class TestTechStackResult:
    def test_labels_skip_blanks(self):
        result = TechStackResult(language="Python", backend="FastAPI", infra=("Docker",))
        assert result.labels() == ["Python", "FastAPI", "Docker"]

    def test_to_dict_round_trip(self):
        result = TechStackResult(
            language="Go", backend="Gin", infra=("Docker",), confidence=80,
            rationale=("go.mod found",), project_type="Backend API Service",
        )
        data = result.to_dict()
        assert "frontend" not in data
        assert data["projectType"] == "Backend API Service"
        assert TechStackResult.from_dict(data) == result


class TestKeyFile:
    def test_from_dict(self):
        kf = KeyFile.from_dict({"fileName": "go.mod", "content": None})
        assert kf == KeyFile("go.mod", "")
        assert kf.to_dict() == {"fileName": "go.mod", "content": ""}
