from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from survey_insights.models.analysis import AggregateResult
from survey_insights.models.survey import FilterSet, Question, Response, SurveyData
from survey_insights.services.aggregator import aggregate
from survey_insights.services.filters import apply_filters, filter_options
from survey_insights.services.query_engine import QueryEngine

logger = logging.getLogger(__name__)


class SurveyDataProvider:
    """Hold the loaded survey and the active filters, exposing the filtered view.

    Both the survey and the filter set are replaced wholesale; every
    replacement recomputes the filtered view from scratch.
    """

    def __init__(self, data: SurveyData, *, filters: FilterSet | None = None) -> None:
        self._data = data
        self._filters = filters or FilterSet()
        self._query_engine = QueryEngine(data.questions)
        self._filtered = apply_filters(data.responses, self._filters)

    @property
    def data(self) -> SurveyData:
        return self._data

    @property
    def questions(self) -> List[Question]:
        return list(self._data.questions)

    @property
    def filters(self) -> FilterSet:
        return self._filters

    @property
    def query_engine(self) -> QueryEngine:
        return self._query_engine

    @property
    def all_responses(self) -> List[Response]:
        return list(self._data.responses)

    @property
    def filtered_responses(self) -> List[Response]:
        """Responses passing the active filters, in original order."""

        return list(self._filtered)

    def replace_data(self, data: SurveyData) -> None:
        """Swap in a newly loaded survey, keeping the active filters."""

        self._data = data
        self._query_engine = QueryEngine(data.questions)
        self._refresh()
        logger.info(
            "Loaded survey %r with %d questions and %d responses",
            data.title,
            len(data.questions),
            len(data.responses),
        )

    def set_filters(self, filters: FilterSet) -> None:
        self._filters = filters
        self._refresh()

    def reset_filters(self) -> None:
        self.set_filters(FilterSet())

    def filter_options(self) -> Dict[str, List[str]]:
        """Selectable values per demographic field across the whole dataset."""

        return filter_options(self._data.responses)

    def question_result(self, question_id: str) -> AggregateResult:
        """Aggregate one question over the filtered view; unknown ids raise ``KeyError``."""

        return aggregate(self._data.question(question_id), self._filtered)

    def question_results(self, question_ids: Sequence[str] | None = None) -> List[AggregateResult]:
        ids = list(question_ids) if question_ids is not None else [q.id for q in self._data.questions]
        return [self.question_result(question_id) for question_id in ids]

    def _refresh(self) -> None:
        self._filtered = apply_filters(self._data.responses, self._filters)
        logger.debug(
            "Filtered view: %d of %d responses (active fields: %s)",
            len(self._filtered),
            len(self._data.responses),
            ", ".join(self._filters.active_fields()) or "none",
        )
