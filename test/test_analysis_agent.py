from __future__ import annotations

import threading
from typing import List, Sequence

import pytest

from survey_insights.API.survey_data_provider import SurveyDataProvider
from survey_insights.models.analysis import ChatMessage
from survey_insights.models.survey import SurveyData
from survey_insights.services.analysis_agent import (
    ERROR_REPLY,
    GREETING,
    ConversationLog,
    SurveyAnalysisAgent,
)
from survey_insights.services.LLM import CompletionServiceError
from survey_insights.services.survey_context import SYSTEM_PROMPT


class _RecordingLLM:
    def __init__(self, reply: str = "Cruises are the least popular trip type.") -> None:
        self._reply = reply
        self.calls: List[List[ChatMessage]] = []

    def __call__(self, messages: Sequence[ChatMessage]) -> str:
        self.calls.append(list(messages))
        return self._reply


class _FailingLLM:
    def __call__(self, messages: Sequence[ChatMessage]) -> str:
        raise CompletionServiceError("503 Service Unavailable")


class _GatedLLM:
    def __init__(self) -> None:
        self.gates: dict[str, threading.Event] = {}

    def __call__(self, messages: Sequence[ChatMessage]) -> str:
        query = messages[-1].content
        gate = self.gates.get(query)
        if gate is not None:
            gate.wait(timeout=5)
        return f"answer to {query}"


@pytest.fixture
def provider(travel_questions, make_response) -> SurveyDataProvider:
    responses = (
        [make_response({"Q1": "Q1_1", "Q2": "Q2_1"}, age_group="18-24") for _ in range(2)]
        + [make_response({"Q1": "Q1_1", "Q2": "Q2_2"}, age_group="25-34") for _ in range(2)]
        + [make_response({"Q1": "Q1_2", "Q2": "Q2_1", "Q3": ["Q3_1"]}, age_group="25-34")]
    )
    return SurveyDataProvider(SurveyData(questions=travel_questions, responses=responses))


def test_crosstab_questions_are_answered_locally(provider) -> None:
    llm = _RecordingLLM()
    agent = SurveyAnalysisAgent(provider, llm=llm)

    reply = agent.answer("Among Domestic only travellers, how many chose a Beach vacation?")

    assert llm.calls == []
    assert not reply.is_error
    assert 'Respondents who chose "Domestic only": 4' in reply.content
    assert "(50% of the group)" in reply.content
    assert "Notable" in reply.content


def test_demographic_split_is_rendered_as_table(provider) -> None:
    agent = SurveyAnalysisAgent(provider, llm=_RecordingLLM())

    reply = agent.answer("Show the age split for Beach vacation")

    assert "| Age group | Count | Percentage |" in reply.content
    assert "| 18-24 | 2 | 67% |" in reply.content
    assert "| 25-34 | 1 | 33% |" in reply.content


def test_unresolved_questions_go_to_llm_with_context(provider) -> None:
    llm = _RecordingLLM()
    agent = SurveyAnalysisAgent(provider, llm=llm)

    reply = agent.answer("Which option is most popular overall?")

    assert reply.content == "Cruises are the least popular trip type."
    messages = llm.calls[0]
    assert messages[0].role == "system"
    assert messages[0].content.startswith(SYSTEM_PROMPT)
    assert "Total responses: 5" in messages[0].content
    assert "multi-select question" in messages[0].content
    assert [m.role for m in messages[1:]] == ["assistant", "user"]
    assert messages[-1].content == "Which option is most popular overall?"
    assert [m.content for m in agent.messages] == [
        GREETING,
        "Which option is most popular overall?",
        "Cruises are the least popular trip type.",
    ]


def test_demographic_keyword_adds_breakdown_to_context(provider) -> None:
    llm = _RecordingLLM()
    agent = SurveyAnalysisAgent(provider, llm=llm)

    agent.answer("How do answers differ by region?")

    assert "breakdown by region" in llm.calls[0][0].content


def test_completion_errors_become_inline_messages(provider) -> None:
    agent = SurveyAnalysisAgent(provider, llm=_FailingLLM())
    steps: list[str] = []

    reply = agent.answer("Which option is most popular overall?", status_callback=lambda step, _: steps.append(step))

    assert reply.is_error
    assert reply.content == ERROR_REPLY
    assert agent.messages[-1] == reply
    assert steps == ["resolving", "thinking", "completed"]
    assert provider.question_result("Q1").total == 5


def test_error_messages_are_not_sent_as_history(provider) -> None:
    agent = SurveyAnalysisAgent(provider, llm=_FailingLLM())
    agent.answer("first open question")

    llm = _RecordingLLM()
    agent._llm = llm
    agent.answer("second open question")

    sent = [message.content for message in llm.calls[0]]
    assert ERROR_REPLY not in sent
    assert "first open question" in sent


def test_empty_query_is_rejected(provider) -> None:
    agent = SurveyAnalysisAgent(provider, llm=_RecordingLLM())

    with pytest.raises(ValueError):
        agent.answer("   ")


def test_replies_are_logged_in_submission_order(provider) -> None:
    llm = _GatedLLM()
    gate = threading.Event()
    llm.gates["first open question"] = gate
    agent = SurveyAnalysisAgent(provider, llm=llm)

    first = agent.submit("first open question")
    second = agent.submit("second open question")
    second.result(timeout=5)

    assert [m.content for m in agent.messages] == [GREETING, "first open question", "second open question"]

    gate.set()
    first.result(timeout=5)
    agent.shutdown()

    assert [m.content for m in agent.messages] == [
        GREETING,
        "first open question",
        "second open question",
        "answer to first open question",
        "answer to second open question",
    ]


def test_conversation_log_flushes_contiguous_tickets() -> None:
    log = ConversationLog(greeting=None)
    first, _ = log.open_turn(ChatMessage(role="user", content="a"))
    second, history = log.open_turn(ChatMessage(role="user", content="b"))

    assert [m.content for m in history] == ["a"]

    log.complete_turn(second, ChatMessage(role="assistant", content="B"))
    assert log.pending_count == 2

    log.complete_turn(first, ChatMessage(role="assistant", content="A"))
    assert [m.content for m in log.messages] == ["a", "b", "A", "B"]
    assert log.pending_count == 0


class _BrokenLLM:
    def __call__(self, messages: Sequence[ChatMessage]) -> str:
        raise TimeoutError("read timed out")


def test_unexpected_llm_errors_do_not_block_later_replies(provider) -> None:
    agent = SurveyAnalysisAgent(provider, llm=_BrokenLLM())

    failed = agent.submit("tell me something interesting").result(timeout=5)
    reply = agent.answer("Domestic only and Beach vacation")
    agent.shutdown()

    assert failed.is_error
    assert failed.content == ERROR_REPLY
    assert not reply.is_error
    assert agent.messages[1:] == [
        ChatMessage(role="user", content="tell me something interesting"),
        failed,
        ChatMessage(role="user", content="Domestic only and Beach vacation"),
        reply,
    ]


def test_failed_turn_still_releases_its_slot(provider, monkeypatch) -> None:
    agent = SurveyAnalysisAgent(provider, llm=_RecordingLLM())

    def explode(*args, **kwargs):
        raise RuntimeError("engine unavailable")

    with monkeypatch.context() as patch:
        patch.setattr(provider.query_engine, "resolve", explode)
        with pytest.raises(RuntimeError):
            agent.answer("first open question")

    reply = agent.answer("second open question")

    assert agent.messages[-1] == reply
    assert [m.is_error for m in agent.messages[-3:]] == [True, False, False]


def test_worker_pool_is_created_on_first_submit(provider) -> None:
    agent = SurveyAnalysisAgent(provider, llm=_RecordingLLM())

    agent.answer("Which option is most popular overall?")
    assert agent._executor is None

    agent.submit("second open question").result(timeout=5)
    assert agent._executor is not None

    agent.shutdown()
    assert agent._executor is None
