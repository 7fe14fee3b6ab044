from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Callable, Dict

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("LLM_API_KEY", "test-key")
os.environ.setdefault("LLM_MODEL", "openai/gpt-4.1")

from survey_insights.models.survey import Question, Response  # noqa: E402
from survey_insights.services.mock_data import travel_survey_questions  # noqa: E402

ResponseFactory = Callable[..., Response]


@pytest.fixture
def travel_questions() -> list[Question]:
    return travel_survey_questions()


@pytest.fixture
def question_by_id(travel_questions: list[Question]) -> Dict[str, Question]:
    return {question.id: question for question in travel_questions}


@pytest.fixture
def make_response() -> ResponseFactory:
    counter = {"next": 0}

    def _make(
        answers: Dict[str, Any] | None = None,
        *,
        id: str | None = None,
        weight: float = 1.0,
        **demographics: str,
    ) -> Response:
        response_id = id or f"r{counter['next']}"
        counter["next"] += 1
        return Response(
            id=response_id,
            demographics=demographics,
            answers=answers or {},
            weight=weight,
        )

    return _make
