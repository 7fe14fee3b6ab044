from __future__ import annotations

from typing import List, Literal, NamedTuple

from pydantic import BaseModel, Field

from survey_insights.models.survey import QuestionType


class Criterion(NamedTuple):
    """A resolved ``question_id == choice_id`` predicate."""

    question_id: str
    choice_id: str


class ChoiceStat(BaseModel):
    """Presentation-ready statistics for one choice of a question."""

    choice_id: str
    label: str
    count: int
    percentage: int
    raw_count: float = 0.0

    model_config = {"extra": "forbid", "frozen": True}


class AggregateResult(BaseModel):
    """Per-choice counts and percentages for one question over one response set.

    ``choices`` is kept in the schema's declared order. Percentages of a
    multi-select question are relative to ``total`` (distinct respondents) and
    may therefore add up to more than 100.
    """

    question_id: str
    question_text: str
    question_type: QuestionType
    choices: List[ChoiceStat] = Field(default_factory=list)
    total: int = 0
    raw_total: float = 0.0

    model_config = {"extra": "forbid", "frozen": True}

    @property
    def is_multi_select(self) -> bool:
        return self.question_type == "multiple_choice"

    def compact(self) -> List[ChoiceStat]:
        """Return non-zero choices in schema order."""

        return [choice for choice in self.choices if choice.raw_count > 0]

    def detailed(self) -> List[ChoiceStat]:
        """Return every choice sorted by count descending, ties in schema order."""

        return sorted(self.choices, key=lambda choice: -choice.count)

    def stat(self, choice_id: str) -> ChoiceStat:
        for choice in self.choices:
            if choice.choice_id == choice_id:
                return choice
        raise KeyError(f"Unknown choice id: {choice_id}")


class CrossTabResult(BaseModel):
    """Counts of respondents matching a base criterion and further criteria."""

    base: Criterion
    intersections: List[Criterion]
    base_label: str
    base_count: int
    intersection_labels: List[str]
    intersection_count: int
    percent_of_base: int
    percent_of_all: int
    total_responses: int
    insight: str

    model_config = {"extra": "forbid", "frozen": True}


class DemographicSplitRow(BaseModel):
    value: str
    count: int
    percentage: int

    model_config = {"extra": "forbid", "frozen": True}


class DemographicSplitResult(BaseModel):
    """Breakdown of a criterion's base group by the values of one demographic field."""

    field: str
    base_labels: List[str]
    base_total: int
    rows: List[DemographicSplitRow] = Field(default_factory=list)
    insight: str

    model_config = {"extra": "forbid", "frozen": True}

    @property
    def top_row(self) -> DemographicSplitRow | None:
        """Row with the highest percentage; the first encountered wins ties."""

        if not self.rows:
            return None
        return max(self.rows, key=lambda row: row.percentage)


class ChatMessage(BaseModel):
    """One entry of the analysis conversation."""

    role: Literal["system", "user", "assistant"]
    content: str
    is_error: bool = False

    model_config = {"extra": "forbid", "frozen": True}

    def to_payload(self) -> dict[str, str]:
        """Return the ``{role, content}`` record sent to the completion endpoint."""

        return {"role": self.role, "content": self.content}
