from __future__ import annotations

from survey_insights.models.analysis import CrossTabResult, DemographicSplitResult
from survey_insights.services.query_engine import QueryEngine


def test_two_criteria_resolve_to_crosstab(travel_questions, make_response) -> None:
    engine = QueryEngine(travel_questions)
    responses = [make_response({"Q1": "Q1_1", "Q2": "Q2_1"}, age_group="25-34")]

    result = engine.resolve("age split of Domestic only travellers wanting a Beach vacation", responses)

    assert isinstance(result, CrossTabResult)


def test_single_criterion_with_demographic_resolves_to_split(travel_questions, make_response) -> None:
    engine = QueryEngine(travel_questions)
    responses = [make_response({"Q2": "Q2_4"}, gender="Female")]

    result = engine.resolve("gender split for Cruise", responses)

    assert isinstance(result, DemographicSplitResult)
    assert result.base_total == 1


def test_split_uses_full_dataset_for_values(travel_questions, make_response) -> None:
    engine = QueryEngine(travel_questions)
    everyone = [make_response({"Q2": "Q2_4"}, gender="Female"), make_response({"Q2": "Q2_4"}, gender="Male")]

    result = engine.resolve("gender split for Cruise", everyone[:1], everyone)

    assert isinstance(result, DemographicSplitResult)
    assert [row.value for row in result.rows] == ["Female", "Male"]


def test_unresolved_queries_return_none(travel_questions, make_response) -> None:
    engine = QueryEngine(travel_questions)
    responses = [make_response({"Q2": "Q2_4"})]

    assert engine.resolve("What do people think overall?", responses) is None
    assert engine.resolve("   ", responses) is None
    assert engine.resolve("How many picked a Cruise?", responses) is None
