from __future__ import annotations

import logging
from typing import Sequence, Union

from survey_insights.models.analysis import CrossTabResult, DemographicSplitResult
from survey_insights.models.survey import Question, Response
from survey_insights.services.crosstab import crosstab
from survey_insights.services.demographic_split import demographic_split
from survey_insights.services.schema_index import SchemaIndex

logger = logging.getLogger(__name__)

StructuredAnswer = Union[CrossTabResult, DemographicSplitResult]


class QueryEngine:
    """Resolve free-text questions into structured survey answers.

    Resolution order is cross-tabulation, then demographic split. ``None``
    means neither applied and the caller should fall back to the completion
    service.
    """

    def __init__(self, questions: Sequence[Question]) -> None:
        self._index = SchemaIndex.build(questions)

    @property
    def index(self) -> SchemaIndex:
        return self._index

    def resolve(
        self,
        query: str,
        responses: Sequence[Response],
        all_responses: Sequence[Response] | None = None,
    ) -> StructuredAnswer | None:
        """Return a cross-tab or demographic split for ``query``, or ``None``."""

        cleaned = (query or "").strip()
        if not cleaned:
            return None

        result: StructuredAnswer | None = crosstab(cleaned, responses, self._index)
        if result is not None:
            return result

        result = demographic_split(
            cleaned,
            responses,
            all_responses if all_responses is not None else responses,
            self._index,
        )
        if result is None:
            logger.debug("Query did not resolve to a structured answer: %r", cleaned)
        return result
