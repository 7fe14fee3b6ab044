from __future__ import annotations

import streamlit as st

from survey_insights.services.analysis_agent import SurveyAnalysisAgent

_AGENT_PROMPT_KEY = "analysis_agent_prompt"
_AGENT_FORM_KEY = "analysis_agent_form"


def render_analysis(agent: SurveyAnalysisAgent) -> None:
    """Render the conversation with the survey analysis agent."""

    st.header("Travel Data Assistant")

    with st.form(_AGENT_FORM_KEY, clear_on_submit=True):
        prompt = st.text_input(
            "Ask about the travel data",
            key=_AGENT_PROMPT_KEY,
            placeholder='Try: "Show age-wise split for travel websites"',
        )
        submitted = st.form_submit_button("Ask")

    if submitted:
        cleaned_prompt = (prompt or "").strip()
        if not cleaned_prompt:
            st.warning("Please provide a question for the assistant.")
        else:
            message_placeholder = st.empty()

            def handle_status(step: str, message: str) -> None:
                if step == "completed":
                    message_placeholder.empty()
                    return
                message_placeholder.info(message)

            agent.answer(cleaned_prompt, status_callback=handle_status)

    for message in agent.messages:
        if message.is_error:
            st.error(message.content)
            continue
        with st.chat_message(message.role):
            st.markdown(message.content)
