from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Sequence, Set

from survey_insights.models.analysis import AggregateResult, ChoiceStat
from survey_insights.models.survey import (
    MultiAnswer,
    Question,
    Response,
    ScaleAnswer,
    SingleAnswer,
    UnknownAnswer,
)
from survey_insights.services.rounding import percent, round_half_up

logger = logging.getLogger(__name__)


def aggregate(question: Question, responses: Iterable[Response]) -> AggregateResult:
    """Compute weighted per-choice counts and percentages for one question.

    Each respondent adds its weight to ``total`` at most once, however many
    choices a multi-select or scale answer touches. Responses without an
    answer, or with an unrecognised answer shape, are skipped.
    """

    counts: Dict[str, float] = {choice.id: 0.0 for choice in question.choices}
    counted: Set[str] = set()
    total = 0.0

    for response in responses:
        answer = response.answer_for(question.id)
        if answer is None:
            continue

        weight = response.weight
        if isinstance(answer, MultiAnswer):
            for choice_id in answer.choice_ids:
                counts[choice_id] = counts.get(choice_id, 0.0) + weight
        elif isinstance(answer, ScaleAnswer):
            for choice_id, value in answer.values.items():
                counts[choice_id] = counts.get(choice_id, 0.0) + value * weight
        elif isinstance(answer, SingleAnswer):
            counts[answer.choice_id] = counts.get(answer.choice_id, 0.0) + weight
        elif isinstance(answer, UnknownAnswer):
            logger.debug(
                "Skipping unrecognised answer for %s in response %s", question.id, response.id
            )
            continue
        else:  # pragma: no cover - exhaustive over the Answer variants
            continue

        if response.id not in counted:
            counted.add(response.id)
            total += weight

    stats = [
        ChoiceStat(
            choice_id=choice.id,
            label=choice.text,
            count=round_half_up(counts[choice.id]),
            percentage=percent(counts[choice.id], total),
            raw_count=counts[choice.id],
        )
        for choice in question.choices
    ]

    return AggregateResult(
        question_id=question.id,
        question_text=question.text,
        question_type=question.type,
        choices=stats,
        total=round_half_up(total),
        raw_total=total,
    )


def aggregate_all(questions: Sequence[Question], responses: Sequence[Response]) -> List[AggregateResult]:
    """Aggregate every question in ``questions`` over the same response set."""

    return [aggregate(question, responses) for question in questions]
