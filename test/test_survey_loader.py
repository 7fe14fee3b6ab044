from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from survey_insights.models.survey import MultiAnswer, ScaleAnswer, SingleAnswer
from survey_insights.services.aggregator import aggregate
from survey_insights.services.mock_data import generate_mock_survey
from survey_insights.services.survey_loader import SurveyLoader


def _write(tmp_path: Path, payload: object) -> Path:
    path = tmp_path / "survey.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_loader_reads_questions_and_answer_shapes(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        {
            "title": "Imported Survey",
            "questions": [
                {"id": "Q1", "text": "Scope?", "choices": [{"id": "Q1_1", "text": "Domestic only"}]},
                {"id": "Q3", "text": "Resources?", "type": "multiple_choice", "choices": None},
            ],
            "responses": [
                {
                    "id": "resp_0",
                    "demographics": {"ageGroup": "25-34", "region": "West"},
                    "answers": {"Q1": "Q1_1", "Q3": ["Q3_1"], "Q4": {"Q4_1": 3}},
                    "weight": 1.25,
                }
            ],
        },
    )

    survey = SurveyLoader(path).survey

    assert survey.title == "Imported Survey"
    assert survey.questions[0].type == "single_choice"
    assert survey.questions[1].choices == []
    response = survey.responses[0]
    assert response.demographics.age_group == "25-34"
    assert response.answer_for("Q1") == SingleAnswer(choice_id="Q1_1")
    assert response.answer_for("Q3") == MultiAnswer(choice_ids=["Q3_1"])
    assert response.answer_for("Q4") == ScaleAnswer(values={"Q4_1": 3.0})
    assert response.weight == 1.25


def test_loader_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        SurveyLoader(tmp_path / "missing.json")


def test_loader_rejects_invalid_document(tmp_path: Path) -> None:
    path = _write(tmp_path, {"questions": [{"text": "no id"}]})

    with pytest.raises(ValidationError):
        SurveyLoader(path)


def test_mock_survey_is_reproducible_with_seed() -> None:
    first = generate_mock_survey(25, seed=7)
    second = generate_mock_survey(25, seed=7)

    assert first.responses == second.responses
    assert len(first.questions) == 8
    assert len(first.responses) == 25


def test_mock_survey_answers_are_well_formed() -> None:
    survey = generate_mock_survey(60, seed=3)

    for response in survey.responses:
        assert 1.0 <= response.weight <= 1.5
        assert isinstance(response.answer_for("Q3"), MultiAnswer)
        assert 1 <= len(response.answer_for("Q3").choice_ids) <= 3
        assert isinstance(response.answer_for("Q4"), ScaleAnswer)

    q1 = aggregate(survey.question("Q1"), survey.responses)
    assert q1.raw_total == pytest.approx(sum(r.weight for r in survey.responses))
