from __future__ import annotations

import logging

import pandas as pd
import streamlit as st

from survey_insights.core.config import settings
from survey_insights.core.log_config import configure_logging
from survey_insights.models.survey import DEMOGRAPHIC_FIELDS, FilterSet, SurveyData
from survey_insights.services.charts import ChartData, ChartType, SurveyChartBuilder
from survey_insights.services.demographic_split import DEMOGRAPHIC_LABELS
from survey_insights.services.mock_data import QUESTION_GROUPS, generate_mock_survey
from survey_insights.services.survey_loader import SurveyLoader

from . import analysis, state

logger = logging.getLogger(__name__)


def _load_survey() -> SurveyData:
    if settings.survey_file_path is None:
        return generate_mock_survey(settings.mock_response_count)
    try:
        return SurveyLoader(settings.survey_file_path).survey
    except FileNotFoundError as exc:
        logger.warning("%s; falling back to generated data", exc)
        st.warning(f"{exc}. Showing generated sample data instead.")
        return generate_mock_survey(settings.mock_response_count)


def run_app() -> None:
    """Entry point for the Streamlit survey dashboard."""

    st.set_page_config(page_title="Survey Insights", page_icon="📊", layout="wide")
    configure_logging(settings.log_level)

    state.ensure_defaults(_load_survey)
    provider = state.get_provider()

    _render_filters()
    _render_question_selector()

    st.title(provider.data.title or "Survey Insights")
    if provider.data.description:
        st.caption(provider.data.description)

    builder = SurveyChartBuilder(provider)
    overview = builder.response_overview(state.get_selected_questions())
    columns = st.columns(3)
    columns[0].metric("Total responses", overview.metadata["total_responses"])
    columns[1].metric("Filtered responses", overview.metadata["filtered_responses"])
    columns[2].metric("Selected questions", overview.metadata["selected_questions"])

    _render_charts(builder)
    analysis.render_analysis(state.get_agent())


def _render_filters() -> None:
    provider = state.get_provider()
    options = provider.filter_options()

    st.sidebar.header("Filters")
    filters = FilterSet()
    for field_name in DEMOGRAPHIC_FIELDS:
        selected = st.sidebar.multiselect(
            DEMOGRAPHIC_LABELS[field_name].capitalize(),
            options=options.get(field_name, []),
            key=f"filter_{field_name}",
        )
        filters = filters.with_selection(field_name, selected)

    if filters != provider.filters:
        provider.set_filters(filters)


def _render_question_selector() -> None:
    provider = state.get_provider()
    labels = {question.id: f"{question.id}: {question.text}" for question in provider.questions}
    selected = st.sidebar.multiselect(
        "Questions",
        options=list(labels),
        default=state.get_selected_questions(),
        format_func=lambda question_id: labels[question_id],
    )
    state.set_selected_questions(selected)


def _render_charts(builder: SurveyChartBuilder) -> None:
    selected = state.get_selected_questions()
    grouped = {name: [qid for qid in ids if qid in selected] for name, ids in QUESTION_GROUPS.items()}
    ungrouped = [qid for qid in selected if not any(qid in ids for ids in QUESTION_GROUPS.values())]
    if ungrouped:
        grouped["Other questions"] = ungrouped

    for group, question_ids in grouped.items():
        if not question_ids:
            continue
        st.subheader(group)
        for chart in builder.all_question_charts(question_ids):
            _render_chart(builder, chart)


def _render_chart(builder: SurveyChartBuilder, chart: ChartData) -> None:
    with st.container(border=True):
        st.markdown(f"**{chart.title}**")
        st.caption(f"Showing data from {chart.metadata['filtered_responses']} responses")
        question_id = chart.question_id or ""
        options = builder.available_chart_types(question_id)
        if len(options) > 1:
            picked = st.radio(
                "Chart type",
                options=options,
                format_func=lambda option: option.value.capitalize(),
                horizontal=True,
                key=f"chart_type_{question_id}",
                label_visibility="collapsed",
            )
            if picked != chart.chart_type:
                chart = builder.question_chart(question_id, chart_type=picked)

        if chart.chart_type == ChartType.PIE:
            _render_pie(chart)
        else:
            frame = pd.DataFrame({"Count": list(chart.values)}, index=list(chart.labels))
            st.bar_chart(frame, horizontal=True)

        panel = builder.summary_panel(question_id)
        with st.expander("Summary"):
            st.write(f"Total responses: {panel.total}")
            st.table(
                pd.DataFrame(
                    {
                        "Option": [row.label for row in panel.rows],
                        "Percentage": [f"{row.percentage}%" for row in panel.rows],
                    }
                )
            )
            if panel.note:
                st.caption(panel.note)


def _render_pie(chart: ChartData) -> None:
    frame = pd.DataFrame(
        {
            "Option": list(chart.labels),
            "Count": list(chart.values),
            "Percentage": [f"{value}%" for value in chart.percentages],
        }
    )
    st.vega_lite_chart(
        frame,
        {
            "mark": {"type": "arc", "innerRadius": 0},
            "encoding": {
                "theta": {"field": "Count", "type": "quantitative"},
                "color": {"field": "Option", "type": "nominal", "sort": None},
                "tooltip": [
                    {"field": "Option", "type": "nominal"},
                    {"field": "Percentage", "type": "nominal"},
                    {"field": "Count", "type": "quantitative"},
                ],
            },
        },
        use_container_width=True,
    )
