"""Ollama model client - the AI-assisted half of the analysis.

Sends the tech-stack and health prompts to a local Ollama server and returns
their JSON answers. Every failure (server down, non-2xx, timeout, malformed
JSON) surfaces as ModelError so the caller can switch to the local path.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import httpx

from .log import get_logger
from .prompts import SYSTEM_PROMPT, health_prompt, tech_stack_prompt
from .techstack import AIAnalysisResult, KeyFile, RepoInfo

DEFAULT_MODEL = "qwen2.5-coder:7b"
OLLAMA_BASE_URL = "http://localhost:11434"
GENERATE_TIMEOUT = 300  # 5 minutes per generation (CI runners are slow)

logger = get_logger(__name__)


class ModelError(Exception):
    """Error communicating with the model."""


@dataclass
class AnalysisRequest:
    """Payload the model sees for tech-stack inference."""

    language_stats: dict[str, int]
    key_files: list[KeyFile]
    file_paths: list[str]
    repo_info: RepoInfo
    max_key_files: int = field(default=15, repr=False)
    max_paths: int = field(default=300, repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "languageStats": dict(self.language_stats),
            "keyFiles": [kf.to_dict() for kf in self.key_files[: self.max_key_files]],
            "filePaths": list(self.file_paths[: self.max_paths]),
            "repoInfo": self.repo_info.to_dict(),
        }


class OllamaClient:
    """Client for Ollama REST API."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: str = OLLAMA_BASE_URL,
        timeout: float = GENERATE_TIMEOUT,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.Client(timeout=timeout)

    def is_ollama_running(self) -> bool:
        """Check if Ollama server is reachable."""
        try:
            resp = self._client.get(f"{self.base_url}/api/tags", timeout=5)
            return resp.status_code == 200
        except (httpx.ConnectError, httpx.TimeoutException):
            return False

    def is_model_available(self) -> bool:
        """Check if the configured model is downloaded."""
        try:
            resp = self._client.get(f"{self.base_url}/api/tags", timeout=10)
            if resp.status_code != 200:
                return False
            data = resp.json()
        except (httpx.HTTPError, json.JSONDecodeError):
            return False
        if not isinstance(data, dict) or not isinstance(data.get("models"), list):
            return False
        models = [
            m["name"] for m in data["models"]
            if isinstance(m, dict) and isinstance(m.get("name"), str)
        ]
        # Check exact match or with :latest suffix
        return any(
            self.model == m
            or self.model == m.split(":")[0]
            or f"{self.model}:latest" == m
            for m in models
        )

    def ensure_ready(self) -> None:
        """Raise ModelError unless the server is up and the model is pulled."""
        if not self.is_ollama_running():
            raise ModelError(
                f"Cannot connect to Ollama at {self.base_url}. Is it running? Try: ollama serve"
            )
        if not self.is_model_available():
            raise ModelError(f"Model {self.model} is not available. Run: ollama pull {self.model}")

    def generate_json(
        self,
        prompt: str,
        system: str = SYSTEM_PROMPT,
        temperature: float = 0.2,
    ) -> Any:
        """Generate and parse a JSON response."""
        payload: dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "format": "json",
            "options": {
                "temperature": temperature,
                "num_predict": 4096,
            },
        }
        if system:
            payload["system"] = system

        try:
            resp = self._client.post(
                f"{self.base_url}/api/generate",
                json=payload,
                timeout=self.timeout,
            )
        except httpx.TimeoutException:
            raise ModelError(f"Model generation timed out after {self.timeout}s")
        except httpx.ConnectError:
            raise ModelError("Cannot connect to Ollama. Is it running? Try: ollama serve")
        except httpx.HTTPError as e:
            raise ModelError(f"Request to Ollama failed: {e}")

        if not 200 <= resp.status_code < 300:
            raise ModelError(f"Ollama returned {resp.status_code}: {resp.text[:200]}")

        text = ""
        try:
            text = resp.json().get("response", "")
            return json.loads(text)
        except (json.JSONDecodeError, AttributeError, TypeError):
            raise ModelError(f"Model returned invalid JSON: {str(text)[:200]}")

    def analyze_tech_stack(self, request: AnalysisRequest) -> AIAnalysisResult:
        """Ask the model for the tech stack and validate its answer."""
        if not request.file_paths:
            raise ModelError("No file structure provided for analysis")

        logger.debug("Requesting tech-stack analysis from %s", self.model)
        raw = self.generate_json(tech_stack_prompt(request.to_dict()))
        try:
            return AIAnalysisResult.from_dict(raw)
        except ValueError as e:
            raise ModelError(f"Malformed tech-stack response: {e}")

    def analyze_health(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Ask the model for a health assessment; returns its raw JSON object."""
        logger.debug("Requesting health analysis from %s", self.model)
        raw = self.generate_json(health_prompt(payload))
        if not isinstance(raw, dict):
            raise ModelError(f"Malformed health response: expected an object, got {type(raw).__name__}")
        return raw

    def close(self) -> None:
        self._client.close()
