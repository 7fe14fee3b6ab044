from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Dict, List

from survey_insights.API.survey_data_provider import SurveyDataProvider
from survey_insights.models.analysis import ChatMessage, CrossTabResult, DemographicSplitResult
from survey_insights.services.demographic_split import DEMOGRAPHIC_LABELS, detect_demographic
from survey_insights.services.LLM import CompletionServiceError, LLMInterface, build_default_llm
from survey_insights.services.query_engine import StructuredAnswer
from survey_insights.services.survey_context import build_messages, build_survey_context

logger = logging.getLogger(__name__)

GREETING = "Hello! Ask me anything about the travel survey data."
ERROR_REPLY = "Failed to get response. Please try again."


class ConversationLog:
    """Thread-safe message log that appends replies in submission order.

    User messages are appended immediately. Each one reserves a ticket, and a
    reply that completes early is held back until every earlier ticket has
    been answered.
    """

    def __init__(self, greeting: str | None = GREETING) -> None:
        self._lock = threading.Lock()
        self._messages: List[ChatMessage] = []
        if greeting:
            self._messages.append(ChatMessage(role="assistant", content=greeting))
        self._next_ticket = 0
        self._next_to_flush = 0
        self._pending: Dict[int, ChatMessage] = {}

    @property
    def messages(self) -> List[ChatMessage]:
        with self._lock:
            return list(self._messages)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return self._next_ticket - self._next_to_flush

    def open_turn(self, user_message: ChatMessage) -> tuple[int, List[ChatMessage]]:
        """Append ``user_message`` and return its ticket plus the prior history."""

        with self._lock:
            history = list(self._messages)
            self._messages.append(user_message)
            ticket = self._next_ticket
            self._next_ticket += 1
            return ticket, history

    def complete_turn(self, ticket: int, reply: ChatMessage) -> None:
        with self._lock:
            self._pending[ticket] = reply
            while self._next_to_flush in self._pending:
                self._messages.append(self._pending.pop(self._next_to_flush))
                self._next_to_flush += 1


class SurveyAnalysisAgent:
    """Answer free-text questions about the filtered survey data.

    Cross-tab and demographic-split questions are answered locally from the
    data. Anything else goes to the completion service together with an
    aggregate summary of the current view.
    """

    def __init__(
        self,
        data_provider: SurveyDataProvider,
        *,
        llm: LLMInterface | None = None,
        log: ConversationLog | None = None,
        max_workers: int = 4,
    ) -> None:
        if data_provider is None:
            raise ValueError("data_provider must be provided")

        self._provider = data_provider
        self._llm = llm
        self._log = log or ConversationLog()
        self._max_workers = max_workers
        self._executor: ThreadPoolExecutor | None = None

    @property
    def messages(self) -> List[ChatMessage]:
        """Visible conversation (system messages are never stored)."""

        return self._log.messages

    def answer(
        self,
        query: str,
        *,
        status_callback: Callable[[str, str], None] | None = None,
    ) -> ChatMessage:
        """Answer ``query`` synchronously and return the assistant message."""

        ticket, history, cleaned = self._open(query)

        def notify(step: str, message: str) -> None:
            if status_callback:
                status_callback(step, message)

        return self._complete(ticket, cleaned, history, notify)

    def submit(self, query: str) -> Future[ChatMessage]:
        """Answer ``query`` on a worker thread; the reply lands in the log in order."""

        ticket, history, cleaned = self._open(query)

        def _run() -> ChatMessage:
            return self._complete(ticket, cleaned, history, lambda step, message: None)

        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="analysis-agent")
        return self._executor.submit(_run)

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None

    def _open(self, query: str) -> tuple[int, List[ChatMessage], str]:
        cleaned = (query or "").strip()
        if not cleaned:
            raise ValueError("query must be a non-empty string")
        ticket, history = self._log.open_turn(ChatMessage(role="user", content=cleaned))
        return ticket, history, cleaned

    def _complete(
        self,
        ticket: int,
        query: str,
        history: List[ChatMessage],
        notify: Callable[[str, str], None],
    ) -> ChatMessage:
        reply = ChatMessage(role="assistant", content=ERROR_REPLY, is_error=True)
        try:
            reply = self._respond(query, history, notify)
        finally:
            self._log.complete_turn(ticket, reply)
        return reply

    def _respond(
        self,
        query: str,
        history: List[ChatMessage],
        notify: Callable[[str, str], None],
    ) -> ChatMessage:
        notify("resolving", "Matching the question against survey answers...")
        filtered = self._provider.filtered_responses
        structured = self._provider.query_engine.resolve(
            query,
            filtered,
            self._provider.all_responses,
        )
        if structured is not None:
            notify("completed", "Analysis complete.")
            return ChatMessage(role="assistant", content=format_structured_answer(structured))

        notify("thinking", "Thinking through the survey responses...")
        context = build_survey_context(self._provider.questions, filtered, detect_demographic(query))
        messages = build_messages(history, query, context)

        try:
            text = self._get_llm()(messages)
        except CompletionServiceError as exc:
            logger.warning("Completion fallback failed: %s", exc)
            return self._error_reply(notify)
        except Exception:
            logger.exception("Completion fallback raised an unexpected error")
            return self._error_reply(notify)

        notify("completed", "Analysis complete.")
        return ChatMessage(role="assistant", content=text)

    @staticmethod
    def _error_reply(notify: Callable[[str, str], None]) -> ChatMessage:
        notify("completed", "Unable to complete analysis.")
        return ChatMessage(role="assistant", content=ERROR_REPLY, is_error=True)

    def _get_llm(self) -> LLMInterface:
        if self._llm is None:
            self._llm = build_default_llm()
        return self._llm


def format_structured_answer(result: StructuredAnswer) -> str:
    """Render a cross-tab or demographic split as markdown."""

    if isinstance(result, CrossTabResult):
        return _format_crosstab(result)
    return _format_split(result)


def _format_crosstab(result: CrossTabResult) -> str:
    criteria = " and ".join(f'"{label}"' for label in result.intersection_labels)
    lines = [
        f'Respondents who chose "{result.base_label}": {result.base_count}',
        f"Of those, respondents who also chose {criteria}: {result.intersection_count} "
        f"({result.percent_of_base}% of the group)",
        f"That is {result.percent_of_all}% of all {result.total_responses} responses in the current view.",
        "",
        result.insight,
    ]
    return "\n".join(lines)


def _format_split(result: DemographicSplitResult) -> str:
    label = DEMOGRAPHIC_LABELS.get(result.field, result.field)
    group = " and ".join(f'"{base}"' for base in result.base_labels)
    lines = [
        f"Breakdown by {label} of the {result.base_total} respondents who chose {group}:",
        "",
        f"| {label.capitalize()} | Count | Percentage |",
        "| --- | ---: | ---: |",
    ]
    lines.extend(f"| {row.value} | {row.count} | {row.percentage}% |" for row in result.rows)
    lines.extend(["", result.insight])
    return "\n".join(lines)
