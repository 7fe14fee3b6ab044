from __future__ import annotations

import logging
from pathlib import Path

from survey_insights.models.survey import SurveyData

logger = logging.getLogger(__name__)


class SurveyLoader:
    """Load a survey (questions plus responses) from a JSON document.

    The document mirrors :class:`SurveyData`::

        {
          "title": "Travel Survey 2025",
          "questions": [{"id": "Q1", "text": "...", "type": "single_choice",
                         "choices": [{"id": "Q1_1", "text": "Domestic only"}]}],
          "responses": [{"id": "resp_0", "demographics": {"ageGroup": "25-34"},
                         "answers": {"Q1": "Q1_1", "Q3": ["Q3_1", "Q3_2"],
                                     "Q4": {"Q4_1": 4}},
                         "weight": 1.2}]
        }

    Answer values may be a choice id, a list of choice ids or a mapping of
    choice id to rating.
    """

    def __init__(self, source: str | Path) -> None:
        self._path = Path(source)
        if not self._path.is_file():
            raise FileNotFoundError(f"Survey file not found: {self._path}")

        self._survey = SurveyData.model_validate_json(self._path.read_text(encoding="utf-8"))
        logger.info(
            "Loaded %s: %d questions, %d responses",
            self._path.name,
            len(self._survey.questions),
            len(self._survey.responses),
        )

    @property
    def survey(self) -> SurveyData:
        """Return the survey loaded from the file."""

        return self._survey
