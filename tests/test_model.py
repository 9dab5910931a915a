"""Tests for the Ollama model client."""

import json
from unittest.mock import MagicMock, patch

import pytest

from repolens.model import DEFAULT_MODEL, AnalysisRequest, ModelError, OllamaClient
from repolens.techstack import AIAnalysisResult, KeyFile, RepoInfo


def _response(status_code=200, body=None, text=""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = body
    resp.text = text
    return resp


@pytest.fixture
def request_payload():
    return AnalysisRequest(
        language_stats={"TypeScript": 80, "JSON": 20},
        key_files=[KeyFile("package.json", '{"dependencies": {"react": "18"}}')],
        file_paths=["src/App.tsx", "package.json"],
        repo_info=RepoInfo(name="demo", owner="acme", description="Demo app"),
    )


class TestOllamaClient:
    """Test OllamaClient methods."""

    def test_default_config(self):
        client = OllamaClient()
        assert client.model == DEFAULT_MODEL
        assert "11434" in client.base_url

    def test_custom_model_and_url(self):
        client = OllamaClient(model="codellama:13b", base_url="http://gpu-box:11434/")
        assert client.model == "codellama:13b"
        assert client.base_url == "http://gpu-box:11434"

    @patch("httpx.Client.get")
    def test_is_ollama_running_true(self, mock_get):
        mock_get.return_value = _response(200)
        client = OllamaClient()
        assert client.is_ollama_running() is True

    @patch("httpx.Client.get")
    def test_is_ollama_running_false(self, mock_get):
        from httpx import ConnectError

        mock_get.side_effect = ConnectError("connection refused")
        client = OllamaClient()
        assert client.is_ollama_running() is False

    @patch("httpx.Client.get")
    def test_is_model_available_true(self, mock_get):
        mock_get.return_value = _response(200, {
            "models": [
                {"name": "qwen2.5-coder:7b"},
                {"name": "llama3:latest"},
            ]
        })
        client = OllamaClient(model="qwen2.5-coder:7b")
        assert client.is_model_available() is True

    @patch("httpx.Client.get")
    def test_is_model_available_latest_suffix(self, mock_get):
        mock_get.return_value = _response(200, {"models": [{"name": "llama3:latest"}]})
        client = OllamaClient(model="llama3")
        assert client.is_model_available() is True

    @patch("httpx.Client.get")
    def test_is_model_available_false(self, mock_get):
        mock_get.return_value = _response(200, {"models": [{"name": "llama3:latest"}]})
        client = OllamaClient(model="qwen2.5-coder:7b")
        assert client.is_model_available() is False

    @pytest.mark.parametrize("body", [
        [],
        "qwen2.5-coder:7b",
        {"models": "qwen2.5-coder:7b"},
        {"models": ["qwen2.5-coder:7b", None, {"name": 7}]},
    ])
    @patch("httpx.Client.get")
    def test_is_model_available_unexpected_tags_body(self, mock_get, body):
        mock_get.return_value = _response(200, body)
        client = OllamaClient(model="qwen2.5-coder:7b")
        assert client.is_model_available() is False

    @patch("httpx.Client.get")
    def test_is_model_available_skips_bad_entries(self, mock_get):
        mock_get.return_value = _response(200, {"models": ["junk", {"name": "qwen2.5-coder:7b"}]})
        client = OllamaClient(model="qwen2.5-coder:7b")
        assert client.is_model_available() is True

    @patch("httpx.Client.get")
    def test_ensure_ready_unexpected_tags_body(self, mock_get):
        mock_get.return_value = _response(200, [])
        client = OllamaClient()
        with pytest.raises(ModelError, match="ollama pull"):
            client.ensure_ready()

    @patch("httpx.Client.get")
    def test_ensure_ready_server_down(self, mock_get):
        from httpx import ConnectError

        mock_get.side_effect = ConnectError("connection refused")
        client = OllamaClient()
        with pytest.raises(ModelError, match="Cannot connect"):
            client.ensure_ready()

    @patch("httpx.Client.get")
    def test_ensure_ready_model_missing(self, mock_get):
        mock_get.return_value = _response(200, {"models": []})
        client = OllamaClient()
        with pytest.raises(ModelError, match="ollama pull"):
            client.ensure_ready()


class TestGenerateJson:
    """Test JSON generation and its failure modes."""

    @patch("httpx.Client.post")
    def test_success(self, mock_post):
        mock_post.return_value = _response(200, {"response": '{"language": "Go", "confidence": 90}'})
        client = OllamaClient()
        result = client.generate_json("test")
        assert result == {"language": "Go", "confidence": 90}
        payload = mock_post.call_args.kwargs["json"]
        assert payload["format"] == "json"
        assert payload["stream"] is False
        assert payload["system"]

    @patch("httpx.Client.post")
    def test_non_2xx(self, mock_post):
        mock_post.return_value = _response(500, text="Internal server error")
        client = OllamaClient()
        with pytest.raises(ModelError, match="500"):
            client.generate_json("test prompt")

    @patch("httpx.Client.post")
    def test_timeout(self, mock_post):
        from httpx import TimeoutException

        mock_post.side_effect = TimeoutException("timed out")
        client = OllamaClient()
        with pytest.raises(ModelError, match="timed out"):
            client.generate_json("test prompt")

    @patch("httpx.Client.post")
    def test_connect_error(self, mock_post):
        from httpx import ConnectError

        mock_post.side_effect = ConnectError("refused")
        client = OllamaClient()
        with pytest.raises(ModelError, match="Cannot connect"):
            client.generate_json("test prompt")

    @patch("httpx.Client.post")
    def test_malformed_json(self, mock_post):
        mock_post.return_value = _response(200, {"response": "Sure! Here is the stack: React"})
        client = OllamaClient()
        with pytest.raises(ModelError, match="invalid JSON"):
            client.generate_json("test prompt")


class TestAnalyses:
    """Test the tech-stack and health calls."""

    @patch("httpx.Client.post")
    def test_analyze_tech_stack(self, mock_post, request_payload):
        answer = {"language": "TypeScript", "frontend": "React", "backend": "Unknown", "confidence": 88}
        mock_post.return_value = _response(200, {"response": json.dumps(answer)})
        client = OllamaClient()
        result = client.analyze_tech_stack(request_payload)
        assert isinstance(result, AIAnalysisResult)
        assert result.language == "TypeScript"
        assert result.frontend == "React"
        assert result.backend is None
        assert result.confidence == 88
        prompt = mock_post.call_args.kwargs["json"]["prompt"]
        assert "demo by acme" in prompt
        assert "TypeScript: 80%" in prompt
        assert "=== package.json ===" in prompt

    def test_analyze_tech_stack_requires_paths(self, request_payload):
        request_payload.file_paths = []
        client = OllamaClient()
        with pytest.raises(ModelError, match="No file structure provided for analysis"):
            client.analyze_tech_stack(request_payload)

    @patch("httpx.Client.post")
    def test_analyze_tech_stack_non_object(self, mock_post, request_payload):
        mock_post.return_value = _response(200, {"response": '["React"]'})
        client = OllamaClient()
        with pytest.raises(ModelError, match="Malformed"):
            client.analyze_tech_stack(request_payload)

    @patch("httpx.Client.post")
    def test_analyze_health(self, mock_post):
        mock_post.return_value = _response(200, {"response": '{"overall": 72, "aiTips": []}'})
        client = OllamaClient()
        raw = client.analyze_health({"name": "demo", "filePaths": ["README.md"]})
        assert raw["overall"] == 72

    @patch("httpx.Client.post")
    def test_analyze_health_non_object(self, mock_post):
        mock_post.return_value = _response(200, {"response": "42"})
        client = OllamaClient()
        with pytest.raises(ModelError, match="Malformed health response"):
            client.analyze_health({"name": "demo"})


class TestAnalysisRequest:
    def test_to_dict_limits(self):
        request = AnalysisRequest(
            language_stats={"Python": 100},
            key_files=[KeyFile(f"f{i}.txt", "x") for i in range(20)],
            file_paths=[f"src/m{i}.py" for i in range(400)],
            repo_info=RepoInfo(name="big"),
        )
        data = request.to_dict()
        assert len(data["keyFiles"]) == 15
        assert len(data["filePaths"]) == 300
        assert data["repoInfo"] == {"name": "big", "owner": "", "description": ""}
        assert data["keyFiles"][0] == {"fileName": "f0.txt", "content": "x"}
