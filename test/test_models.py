from __future__ import annotations

import pytest
from pydantic import ValidationError

from survey_insights.models.survey import (
    FilterSet,
    MultiAnswer,
    Response,
    ScaleAnswer,
    SingleAnswer,
    SurveyData,
    UnknownAnswer,
    coerce_answer,
)


def test_raw_answer_shapes_become_tagged_variants() -> None:
    response = Response(
        id="resp_1",
        answers={
            "Q1": "Q1_1",
            "Q3": ["Q3_1", "Q3_2"],
            "Q4": {"Q4_1": 4, "Q4_2": 2.5},
            "Q9": 42,
        },
    )

    assert response.answer_for("Q1") == SingleAnswer(choice_id="Q1_1")
    assert response.answer_for("Q3") == MultiAnswer(choice_ids=["Q3_1", "Q3_2"])
    assert response.answer_for("Q4") == ScaleAnswer(values={"Q4_1": 4.0, "Q4_2": 2.5})
    assert isinstance(response.answer_for("Q9"), UnknownAnswer)


def test_empty_and_null_answers_are_dropped() -> None:
    response = Response(id="resp_1", answers={"Q1": "", "Q2": None})

    assert response.answers == {}


def test_coerce_answer_marks_mixed_shapes_unknown() -> None:
    assert isinstance(coerce_answer(["Q3_1", 7]), UnknownAnswer)
    assert isinstance(coerce_answer({"Q4_1": "high"}), UnknownAnswer)
    assert isinstance(coerce_answer(True), UnknownAnswer)


def test_serialised_response_round_trips() -> None:
    original = Response(id="resp_1", answers={"Q1": "Q1_2", "Q3": ["Q3_5"]}, weight=1.25)

    restored = Response.model_validate(original.model_dump())

    assert restored == original


def test_weight_defaults_to_one_and_must_be_positive() -> None:
    assert Response(id="a").weight == 1.0
    assert Response(id="b", weight=None).weight == 1.0
    assert Response(id="c", weight=0).weight == 1.0
    with pytest.raises(ValidationError):
        Response(id="d", weight=-2)


def test_demographics_accept_camel_case_and_default_unknown() -> None:
    response = Response.model_validate(
        {"id": 7, "demographics": {"ageGroup": "25-34", "incomeRange": "$30k-$60k", "gender": None}}
    )

    assert response.id == "7"
    assert response.demographics.age_group == "25-34"
    assert response.demographics.value_of("incomeRange") == "$30k-$60k"
    assert response.demographics.gender == "Unknown"
    assert response.demographics.region == "Unknown"
    assert response.demographics.value_of("shoe_size") is None


def test_survey_question_lookup_raises_for_unknown_id(travel_questions) -> None:
    survey = SurveyData(questions=travel_questions)

    assert survey.question("Q2").choice_text("Q2_4") == "Cruise"
    with pytest.raises(KeyError):
        survey.question("Q99")


def test_filter_set_normalises_field_names() -> None:
    filters = FilterSet.from_mapping({"ageGroup": ["25-34"], "gender": []})

    assert filters.selected("age_group") == frozenset({"25-34"})
    assert filters.active_fields() == ["age_group"]
    assert not filters.is_empty
    assert FilterSet().is_empty


def test_filter_set_merge_prefers_later_selection() -> None:
    merged = FilterSet.from_mapping({"gender": ["Male"]}).merge(
        FilterSet.from_mapping({"gender": ["Female"], "region": ["West"]})
    )

    assert merged.selected("gender") == frozenset({"Female"})
    assert merged.selected("region") == frozenset({"West"})


def test_invalid_tagged_answer_is_kept_as_unknown() -> None:
    response = Response(
        id="resp_1",
        answers={"Q1": "Q1_1", "Q2": {"kind": "ranking", "order": ["Q2_1"]}, "Q3": {"kind": "single"}},
    )

    assert response.answer_for("Q1") == SingleAnswer(choice_id="Q1_1")
    assert response.answer_for("Q2") == UnknownAnswer(raw={"kind": "ranking", "order": ["Q2_1"]})
    assert isinstance(response.answer_for("Q3"), UnknownAnswer)
