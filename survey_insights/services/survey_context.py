from __future__ import annotations

import json
from textwrap import dedent
from typing import Dict, Iterable, List, Sequence

from survey_insights.models.analysis import ChatMessage
from survey_insights.models.survey import DEMOGRAPHIC_FIELDS, Question, Response
from survey_insights.services.aggregator import aggregate_all

SYSTEM_PROMPT = dedent(
    """
    You are a travel survey data assistant.
    Answer using ONLY the survey data provided below.
    Your numbers MUST match the charts exactly: quote counts and percentages as given.

    IMPORTANT: questions marked "multi-select question" let respondents pick several options,
    so their percentages can add up to more than 100%. That is expected and correct.

    Never mention question or choice ids (such as Q3_1); use the question text and option labels.
    Format any demographic split as a markdown table with a blank line before and after it.
    Always present percentages as whole numbers (24%, not 24.3%).
    After the data, add one short insight highlighting the most significant finding.
    Only explain your method when asked. Use the earlier conversation for follow-up questions.
    """
).strip()

MULTI_SELECT_NOTE = " (multi-select question - percentages may sum to >100%)"


def build_survey_context(
    questions: Sequence[Question],
    responses: Sequence[Response],
    demographic: str | None = None,
) -> str:
    """Render the aggregate summary handed to the completion service.

    Numbers come from the same aggregation the charts use, so the assistant
    quotes what the dashboard shows.
    """

    lines: List[str] = []
    for result in aggregate_all(questions, responses):
        counts = {
            choice.label: {"count": choice.count, "percentage": choice.percentage}
            for choice in result.compact()
        }
        line = f"{result.question_text}: {json.dumps(counts)}"
        if result.is_multi_select:
            line += MULTI_SELECT_NOTE
        lines.append(line)

    context = (
        "Survey Questions with Response Counts:\n"
        + "\n".join(lines)
        + f"\n\nDemographic fields: {', '.join(DEMOGRAPHIC_FIELDS)}"
        + f"\nTotal responses: {len(responses)}"
    )

    if demographic:
        breakdown: Dict[str, int] = {}
        for response in responses:
            value = response.demographics.value_of(demographic)
            if value:
                breakdown[value] = breakdown.get(value, 0) + 1
        context += f"\nIf the user asks for a breakdown by {demographic}, use this data: {json.dumps(breakdown)}"

    return context


def build_messages(history: Iterable[ChatMessage], query: str, context: str) -> List[ChatMessage]:
    """Assemble the message list for one completion request.

    A fresh system message carrying the instructions and the current context
    replaces any earlier system message; error notices are not sent.
    """

    messages = [ChatMessage(role="system", content=f"{SYSTEM_PROMPT}\n\n{context}")]
    messages.extend(
        message for message in history if message.role != "system" and not message.is_error
    )
    messages.append(ChatMessage(role="user", content=query))
    return messages
