from __future__ import annotations

import logging
from typing import Sequence

from survey_insights.models.analysis import Criterion, CrossTabResult
from survey_insights.models.survey import Response, SingleAnswer
from survey_insights.services.rounding import percent
from survey_insights.services.schema_index import SchemaIndex

logger = logging.getLogger(__name__)


def _matches(response: Response, criterion: Criterion) -> bool:
    answer = response.answer_for(criterion.question_id)
    return isinstance(answer, SingleAnswer) and answer.choice_id == criterion.choice_id


def crosstab(query: str, responses: Sequence[Response], index: SchemaIndex) -> CrossTabResult | None:
    """Intersect two or more criteria resolved from ``query``.

    The first resolved criterion is the base; the rest must all hold as well.
    Matching is plain equality on single-choice answers and counts are
    unweighted. Returns ``None`` when fewer than two questions resolve.
    """

    resolved = index.extract_criteria(query)
    if len(resolved) < 2:
        return None

    criteria = [Criterion(question_id, choice_id) for question_id, choice_id in resolved.items()]
    base, intersections = criteria[0], criteria[1:]

    base_group = [response for response in responses if _matches(response, base)]
    matching = [
        response
        for response in base_group
        if all(_matches(response, criterion) for criterion in intersections)
    ]

    base_count = len(base_group)
    intersection_count = len(matching)
    base_label = index.label_for(*base)
    intersection_labels = index.labels_for(intersections)
    percent_of_base = percent(intersection_count, base_count)

    logger.info(
        "Cross-tab %s x %s: base=%d intersection=%d",
        base,
        intersections,
        base_count,
        intersection_count,
    )

    joined = " and ".join(f'"{label}"' for label in intersection_labels)
    insight = (
        f"Notable: {percent_of_base}% of respondents who chose \"{base_label}\" "
        f"also chose {joined}."
    )

    return CrossTabResult(
        base=base,
        intersections=intersections,
        base_label=base_label,
        base_count=base_count,
        intersection_labels=intersection_labels,
        intersection_count=intersection_count,
        percent_of_base=percent_of_base,
        percent_of_all=percent(intersection_count, len(responses)),
        total_responses=len(responses),
        insight=insight,
    )
