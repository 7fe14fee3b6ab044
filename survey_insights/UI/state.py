from __future__ import annotations

from typing import Callable, List

import streamlit as st

from survey_insights.API.survey_data_provider import SurveyDataProvider
from survey_insights.models.survey import SurveyData
from survey_insights.services.analysis_agent import SurveyAnalysisAgent

PROVIDER_KEY = "survey_provider"
AGENT_KEY = "analysis_agent"
SELECTED_QUESTIONS_KEY = "selected_questions"


def ensure_defaults(load_survey: Callable[[], SurveyData]) -> None:
    """Create the per-session provider, agent and question selection on first run."""

    if PROVIDER_KEY not in st.session_state:
        provider = SurveyDataProvider(load_survey())
        st.session_state[PROVIDER_KEY] = provider
        st.session_state[AGENT_KEY] = SurveyAnalysisAgent(provider)
        st.session_state[SELECTED_QUESTIONS_KEY] = [question.id for question in provider.questions]


def get_provider() -> SurveyDataProvider:
    """Return this session's data provider."""

    return st.session_state[PROVIDER_KEY]


def get_agent() -> SurveyAnalysisAgent:
    """Return this session's analysis agent."""

    return st.session_state[AGENT_KEY]


def get_selected_questions() -> List[str]:
    return list(st.session_state[SELECTED_QUESTIONS_KEY])


def set_selected_questions(question_ids: List[str]) -> None:
    st.session_state[SELECTED_QUESTIONS_KEY] = list(question_ids)
