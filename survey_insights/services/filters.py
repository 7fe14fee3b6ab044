from __future__ import annotations

from typing import Dict, Iterable, List, Sequence

from survey_insights.models.survey import DEMOGRAPHIC_FIELDS, FilterSet, Response


def apply_filters(responses: Iterable[Response], filter_set: FilterSet) -> List[Response]:
    """Return the responses matching ``filter_set``, preserving their order.

    Selections on different fields are combined with AND, values within one
    field with OR. Empty selections and unknown field names impose no
    constraint. The input is never mutated.
    """

    constraints = [
        (field_name, filter_set.selections[field_name])
        for field_name in filter_set.active_fields()
        if field_name in DEMOGRAPHIC_FIELDS
    ]
    if not constraints:
        return list(responses)

    return [
        response
        for response in responses
        if all(
            getattr(response.demographics, field_name) in allowed
            for field_name, allowed in constraints
        )
    ]


def demographic_values(responses: Iterable[Response], field_name: str) -> List[str]:
    """Distinct values of one demographic field in first-encounter order."""

    seen: Dict[str, None] = {}
    for response in responses:
        value = response.demographics.value_of(field_name)
        if value is not None:
            seen.setdefault(value, None)
    return list(seen)


def filter_options(responses: Sequence[Response]) -> Dict[str, List[str]]:
    """Return the selectable values for every demographic field."""

    return {field_name: demographic_values(responses, field_name) for field_name in DEMOGRAPHIC_FIELDS}
