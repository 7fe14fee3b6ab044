from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_LLM_ENDPOINT = "https://models.github.ai/inference"
DEFAULT_LLM_MODEL = "openai/gpt-4.1"


def _strip_or_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def _float_env(name: str, default: float) -> float:
    raw = _strip_or_none(os.getenv(name))
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from exc


def _int_env(name: str, default: int) -> int:
    raw = _strip_or_none(os.getenv(name))
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise RuntimeError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class LLMSettings:
    api_key: Optional[str]
    model: str
    endpoint: str
    temperature: float
    top_p: float
    completion_api_url: Optional[str]
    timeout_seconds: float


class Settings:

    def __init__(self) -> None:
        api_key = (
            _strip_or_none(os.getenv("LLM_API_KEY"))
            or _strip_or_none(os.getenv("GITHUB_TOKEN"))
            or _strip_or_none(os.getenv("OPENAI_API_KEY"))
        )
        model_name = _strip_or_none(os.getenv("LLM_MODEL")) or DEFAULT_LLM_MODEL
        endpoint = _strip_or_none(os.getenv("LLM_ENDPOINT")) or DEFAULT_LLM_ENDPOINT

        completion_url = _strip_or_none(os.getenv("COMPLETION_API_URL"))
        if completion_url:
            completion_url = completion_url.rstrip("/")

        self.llm = LLMSettings(
            api_key=api_key,
            model=model_name,
            endpoint=endpoint,
            temperature=_float_env("LLM_TEMPERATURE", 1.0),
            top_p=_float_env("LLM_TOP_P", 1.0),
            completion_api_url=completion_url,
            timeout_seconds=_float_env("COMPLETION_TIMEOUT", 60.0),
        )

        survey_path = _strip_or_none(os.getenv("SURVEY_FILE_PATH"))
        self.survey_file_path: Optional[Path] = (
            Path(survey_path).expanduser().resolve() if survey_path else None
        )
        self.mock_response_count = _int_env("MOCK_RESPONSE_COUNT", 500)

        self.log_level = (_strip_or_none(os.getenv("LOG_LEVEL")) or "INFO").upper()


settings = Settings()
