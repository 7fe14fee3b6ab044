from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Sequence, Tuple

from survey_insights.API.survey_data_provider import SurveyDataProvider
from survey_insights.models.analysis import AggregateResult, ChoiceStat
from survey_insights.services.rounding import percent


class ChartType(str, Enum):
    """Supported chart shapes for survey visualisations."""

    BAR = "bar"
    PIE = "pie"


@dataclass(frozen=True)
class ChartData:
    """Structured payload describing a chart for the rendering layer."""

    chart_type: ChartType
    labels: Tuple[str, ...]
    values: Tuple[int, ...]
    percentages: Tuple[int, ...]
    title: str
    total: int
    question_id: str | None = None
    question_text: str | None = None
    description: str | None = None
    metadata: dict[str, int | float | str] = field(default_factory=dict)

    def to_series(self) -> List[Tuple[str, int]]:
        """Return data as a list of (label, value) tuples."""

        return list(zip(self.labels, self.values))

    def as_dict(self) -> dict[str, int]:
        """Return data as a simple label -> value mapping."""

        return {label: value for label, value in zip(self.labels, self.values)}

    def tooltip(self, index: int) -> str:
        """Tooltip text for one slice or bar, e.g. ``"Cruise: 11% (55)"``."""

        return f"{self.labels[index]}: {self.percentages[index]}% ({self.values[index]})"


@dataclass(frozen=True)
class SummaryPanel:
    """Total plus per-choice percentages shown beside a chart."""

    question_id: str
    total: int
    rows: Tuple[ChoiceStat, ...]
    note: str | None = None


class SurveyChartBuilder:
    """Prepare chart-ready data from the provider's filtered view."""

    def __init__(self, data_provider: SurveyDataProvider) -> None:
        if data_provider is None:
            raise ValueError("data_provider must be provided")

        self._provider = data_provider

    def response_overview(self, selected_question_ids: Sequence[str] | None = None) -> ChartData:
        """Return a chart comparing all responses with the filtered view."""

        total = len(self._provider.data.responses)
        filtered = len(self._provider.filtered_responses)
        selected = (
            len(selected_question_ids)
            if selected_question_ids is not None
            else len(self._provider.questions)
        )
        labels = ("Total responses", "Filtered responses")
        values = (total, filtered)
        return ChartData(
            chart_type=ChartType.BAR,
            labels=labels,
            values=values,
            percentages=(percent(total, total), percent(filtered, total)),
            title="Survey overview",
            total=total,
            description="Responses in the dataset versus the current filtered view.",
            metadata={
                "total_responses": total,
                "filtered_responses": filtered,
                "selected_questions": selected,
            },
        )

    def question_chart(
        self,
        question_id: str,
        *,
        chart_type: ChartType | str | None = None,
    ) -> ChartData:
        """Return chart data for a single survey question."""

        result = self._provider.question_result(question_id)
        resolved_type = self._resolve_chart_type(chart_type, result)
        shown = result.compact()
        return ChartData(
            chart_type=resolved_type,
            labels=tuple(choice.label for choice in shown),
            values=tuple(choice.count for choice in shown),
            percentages=tuple(choice.percentage for choice in shown),
            title=f"{result.question_id}: {result.question_text}",
            total=result.total,
            question_id=result.question_id,
            question_text=result.question_text,
            description=self._describe(result),
            metadata={
                "question_type": result.question_type,
                "filtered_responses": len(self._provider.filtered_responses),
                "options": len(shown),
            },
        )

    def available_chart_types(self, question_id: str) -> List[ChartType]:
        """Chart types offered for a question, its default first."""

        result = self._provider.question_result(question_id)
        default = self._resolve_chart_type(None, result)
        options = [default]
        for candidate in ChartType:
            if candidate == default:
                continue
            if candidate == ChartType.PIE and result.question_type == "open_ended":
                continue
            options.append(candidate)
        return options

    def all_question_charts(
        self,
        question_ids: Sequence[str] | None = None,
        *,
        chart_type: ChartType | str | None = None,
    ) -> List[ChartData]:
        """Return chart data for each selected question that has any answers."""

        ids = list(question_ids) if question_ids is not None else [q.id for q in self._provider.questions]
        charts: List[ChartData] = []
        for question_id in ids:
            chart = self.question_chart(question_id, chart_type=chart_type)
            if chart.total > 0:
                charts.append(chart)
        return charts

    def summary_panel(self, question_id: str, *, detailed: bool = False) -> SummaryPanel:
        """Return the summary rows; ``detailed`` includes zero counts sorted by count."""

        result = self._provider.question_result(question_id)
        rows = result.detailed() if detailed else result.compact()
        note = "Percentages may sum to more than 100%." if result.is_multi_select else None
        return SummaryPanel(question_id=question_id, total=result.total, rows=tuple(rows), note=note)

    def _resolve_chart_type(
        self,
        chart_type: ChartType | str | None,
        result: AggregateResult,
    ) -> ChartType:
        if chart_type is None:
            return ChartType.PIE if result.question_type == "single_choice" else ChartType.BAR

        if isinstance(chart_type, str):
            try:
                resolved = ChartType(chart_type)
            except ValueError as exc:
                raise ValueError(f"Unknown chart type: {chart_type}") from exc
        else:
            resolved = chart_type

        if resolved == ChartType.PIE and result.question_type == "open_ended":
            raise ValueError("Pie charts are not supported for open-ended questions.")

        return resolved

    @staticmethod
    def _describe(result: AggregateResult) -> str:
        if result.question_type == "multiple_choice":
            return "Share of respondents selecting each option; respondents may select several."
        if result.question_type == "scale":
            return "Weighted sum of ratings per statement."
        return "Choice distribution across respondents."
