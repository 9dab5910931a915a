"""Runtime settings read from the environment.

The CLI exposes the same values as options (``envvar=`` on each click option);
this module is for callers that use repolens as a library.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .model import DEFAULT_MODEL, GENERATE_TIMEOUT, OLLAMA_BASE_URL

ENV_MODEL = "REPOLENS_MODEL"
ENV_OLLAMA_URL = "REPOLENS_OLLAMA_URL"
ENV_TIMEOUT = "REPOLENS_TIMEOUT"
ENV_STORE = "REPOLENS_STORE"
ENV_SKIP_MODEL = "REPOLENS_SKIP_MODEL"

DEFAULT_STORE = Path.home() / ".repolens" / "analyses.json"


@dataclass(frozen=True)
class Settings:
    model: str = DEFAULT_MODEL
    ollama_url: str = OLLAMA_BASE_URL
    timeout: float = GENERATE_TIMEOUT
    store_path: Path = DEFAULT_STORE
    skip_model: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        timeout = env.get(ENV_TIMEOUT)
        try:
            timeout_value = float(timeout) if timeout else GENERATE_TIMEOUT
        except ValueError:
            raise ValueError(f"{ENV_TIMEOUT} must be a number, got {timeout!r}")
        return cls(
            model=env.get(ENV_MODEL) or DEFAULT_MODEL,
            ollama_url=env.get(ENV_OLLAMA_URL) or OLLAMA_BASE_URL,
            timeout=timeout_value,
            store_path=Path(env[ENV_STORE]).expanduser() if env.get(ENV_STORE) else DEFAULT_STORE,
            skip_model=env.get(ENV_SKIP_MODEL, "").lower() in ("1", "true", "yes"),
        )
