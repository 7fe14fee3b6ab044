from __future__ import annotations

import logging
from typing import Dict, FrozenSet, List, Sequence, Union

from survey_insights.models.analysis import DemographicSplitResult, DemographicSplitRow
from survey_insights.models.survey import MultiAnswer, Response, SingleAnswer
from survey_insights.services.filters import demographic_values
from survey_insights.services.rounding import percent
from survey_insights.services.schema_index import SchemaIndex

logger = logging.getLogger(__name__)

# Checked in this order; the first keyword found in the query wins.
DEMOGRAPHIC_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("age", "age_group"),
    ("gender", "gender"),
    ("income", "income_range"),
    ("region", "region"),
    ("family", "family_composition"),
)

DEMOGRAPHIC_LABELS: Dict[str, str] = {
    "age_group": "age group",
    "gender": "gender",
    "income_range": "income range",
    "region": "region",
    "family_composition": "family composition",
}

# "Domestic" travellers include those planning both domestic and international trips.
TRAVEL_SCOPE_QUESTION_ID = "Q1"
DOMESTIC_ONLY_CHOICE_ID = "Q1_1"
DOMESTIC_AND_INTERNATIONAL_CHOICE_ID = "Q1_3"

CriterionValue = Union[str, FrozenSet[str]]


def detect_demographic(query: str) -> str | None:
    """Return the demographic field named in ``query``, if any."""

    lowered = (query or "").lower()
    for keyword, field_name in DEMOGRAPHIC_KEYWORDS:
        if keyword in lowered:
            return field_name
    return None


def base_criteria(query: str, resolved: Dict[str, str]) -> Dict[str, CriterionValue]:
    """Turn resolved criteria into base predicates, widening "domestic" travel."""

    criteria: Dict[str, CriterionValue] = dict(resolved)
    if (
        len(resolved) == 1
        and resolved.get(TRAVEL_SCOPE_QUESTION_ID) == DOMESTIC_ONLY_CHOICE_ID
        and "domestic" in (query or "").lower()
    ):
        criteria[TRAVEL_SCOPE_QUESTION_ID] = frozenset(
            {DOMESTIC_ONLY_CHOICE_ID, DOMESTIC_AND_INTERNATIONAL_CHOICE_ID}
        )
    return criteria


def matches_criterion(response: Response, question_id: str, expected: CriterionValue) -> bool:
    """Check a response's answer against a scalar or set-valued criterion."""

    answer = response.answer_for(question_id)
    if isinstance(answer, SingleAnswer):
        if isinstance(expected, frozenset):
            return answer.choice_id in expected
        return answer.choice_id == expected
    if isinstance(answer, MultiAnswer):
        if isinstance(expected, frozenset):
            return any(choice_id in expected for choice_id in answer.choice_ids)
        return expected in answer.choice_ids
    return False


def demographic_split(
    query: str,
    responses: Sequence[Response],
    all_responses: Sequence[Response],
    index: SchemaIndex,
) -> DemographicSplitResult | None:
    """Break the group selected by ``query`` down by the demographic it names.

    ``responses`` is the filtered view used for counting; ``all_responses`` is
    the whole dataset and only supplies the list of demographic values, so a
    value absent from the filtered view still gets a zero row. Counts are
    unweighted. Returns ``None`` when no demographic keyword or no criterion
    is found.
    """

    field_name = detect_demographic(query)
    if field_name is None:
        return None

    resolved = index.extract_criteria(query)
    if not resolved:
        return None

    criteria = base_criteria(query, resolved)
    base_group = [
        response
        for response in responses
        if all(
            matches_criterion(response, question_id, expected)
            for question_id, expected in criteria.items()
        )
    ]
    base_total = len(base_group)

    rows: List[DemographicSplitRow] = []
    for value in demographic_values(all_responses, field_name):
        count = sum(1 for response in base_group if response.demographics.value_of(field_name) == value)
        rows.append(DemographicSplitRow(value=value, count=count, percentage=percent(count, base_total)))

    base_labels: List[str] = []
    for question_id, expected in criteria.items():
        if isinstance(expected, frozenset):
            base_labels.append(
                " or ".join(index.label_for(question_id, choice_id) for choice_id in sorted(expected))
            )
        else:
            base_labels.append(index.label_for(question_id, expected))

    logger.info("Demographic split by %s: base=%d rows=%d", field_name, base_total, len(rows))

    return DemographicSplitResult(
        field=field_name,
        base_labels=base_labels,
        base_total=base_total,
        rows=rows,
        insight=_insight(field_name, base_labels, base_total, rows),
    )


def _insight(field_name: str, base_labels: List[str], base_total: int, rows: List[DemographicSplitRow]) -> str:
    group = " and ".join(f'"{label}"' for label in base_labels)
    label = DEMOGRAPHIC_LABELS.get(field_name, field_name)
    if base_total == 0 or not rows:
        return f"No respondents matched {group}, so there is no {label} breakdown to report."
    top = max(rows, key=lambda row: row.percentage)
    return (
        f"Insight: {top.value} is the largest {label} among respondents who chose {group} "
        f"({top.percentage}%)."
    )
