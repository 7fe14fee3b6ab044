from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Sequence

import requests
from openai import OpenAI, OpenAIError

from survey_insights.core.config import LLMSettings, settings
from survey_insights.models.analysis import ChatMessage

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "Sorry, I couldn't understand that."
CHAT_PATH = "/api/chat"


class CompletionServiceError(RuntimeError):
    """Raised when the text-completion service cannot produce a reply."""


class LLMInterface(ABC):
    """Defines the expected behaviour for chat-completion wrappers."""

    @abstractmethod
    def __call__(self, messages: Sequence[ChatMessage]) -> str:
        """Send ``messages`` and return the assistant's reply text."""
        raise NotImplementedError


class CompletionEndpointLLM(LLMInterface):
    """Client for the chat relay that accepts ``POST {"messages": [...]}``."""

    def __init__(
        self,
        *,
        api_url: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
        llm_settings: LLMSettings | None = None,
    ) -> None:
        config = llm_settings or settings.llm
        base_url = api_url or config.completion_api_url
        if not base_url:
            raise ValueError("A completion API URL must be configured (COMPLETION_API_URL).")

        self._url = f"{base_url.rstrip('/')}{CHAT_PATH}"
        self._timeout = timeout if timeout is not None else config.timeout_seconds
        self._session = session or requests.Session()

    def __call__(self, messages: Sequence[ChatMessage]) -> str:
        payload = {"messages": [message.to_payload() for message in messages]}
        try:
            response = self._session.post(self._url, json=payload, timeout=self._timeout)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as exc:
            logger.warning("Completion request to %s failed: %s", self._url, exc)
            raise CompletionServiceError(f"Completion request failed: {exc}") from exc
        except ValueError as exc:
            raise CompletionServiceError("Completion service returned invalid JSON.") from exc

        return extract_reply_text(body)


class OpenAIChatLLM(LLMInterface):
    """Stateless wrapper around an OpenAI-compatible chat-completions endpoint."""

    def __init__(
        self,
        *,
        model_name: str | None = None,
        temperature: float | None = None,
        top_p: float | None = None,
        api_key: str | None = None,
        endpoint: str | None = None,
        client: Any | None = None,
        llm_settings: LLMSettings | None = None,
    ) -> None:
        config = llm_settings or settings.llm
        self._model_name = model_name or config.model
        self._temperature = temperature if temperature is not None else config.temperature
        self._top_p = top_p if top_p is not None else config.top_p

        if client is not None:
            self._client = client
            return

        resolved_api_key = api_key or config.api_key
        if not resolved_api_key:
            raise ValueError("An API key must be configured (LLM_API_KEY or GITHUB_TOKEN).")
        self._client = OpenAI(
            api_key=resolved_api_key,
            base_url=endpoint or config.endpoint,
            timeout=config.timeout_seconds,
        )

    def __call__(self, messages: Sequence[ChatMessage]) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self._model_name,
                messages=[message.to_payload() for message in messages],
                temperature=self._temperature,
                top_p=self._top_p,
            )
        except OpenAIError as exc:
            logger.warning("Chat completion with %s failed: %s", self._model_name, exc)
            raise CompletionServiceError(f"Chat completion failed: {exc}") from exc

        if hasattr(response, "model_dump"):
            return extract_reply_text(response.model_dump())
        return extract_reply_text(response)


def extract_reply_text(body: Any) -> str:
    """Read the reply from ``choices[0]``: ``message.content``, then ``content``, then ``text``."""

    if not isinstance(body, dict):
        return FALLBACK_REPLY

    choices = body.get("choices")
    first = choices[0] if isinstance(choices, list) and choices else None
    if not isinstance(first, dict):
        return FALLBACK_REPLY

    message = first.get("message")
    candidates = (
        message.get("content") if isinstance(message, dict) else None,
        first.get("content"),
        first.get("text"),
    )
    for candidate in candidates:
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()

    return FALLBACK_REPLY


def build_default_llm(llm_settings: LLMSettings | None = None) -> LLMInterface:
    """Return the relay client when a relay URL is configured, else the direct client."""

    config = llm_settings or settings.llm
    if config.completion_api_url:
        return CompletionEndpointLLM(llm_settings=config)
    return OpenAIChatLLM(llm_settings=config)
