from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, Any, Dict, FrozenSet, Iterable, List, Literal, Mapping, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

QuestionType = Literal["single_choice", "multiple_choice", "scale", "open_ended"]

DEMOGRAPHIC_FIELDS: tuple[str, ...] = (
    "age_group",
    "gender",
    "family_composition",
    "income_range",
    "region",
)

_DEMOGRAPHIC_ALIASES: Dict[str, str] = {
    "ageGroup": "age_group",
    "familyComposition": "family_composition",
    "incomeRange": "income_range",
}

UNKNOWN_DEMOGRAPHIC = "Unknown"


def resolve_demographic_field(name: str) -> str | None:
    """Map a snake_case or camelCase demographic name to the model attribute."""

    if name in DEMOGRAPHIC_FIELDS:
        return name
    return _DEMOGRAPHIC_ALIASES.get(name)


class Choice(BaseModel):
    """One selectable option of a question."""

    id: str
    text: str

    model_config = {"extra": "forbid"}


class Question(BaseModel):
    """A survey question; choice order drives display and tie-break order."""

    id: str
    text: str
    type: QuestionType = "single_choice"
    choices: List[Choice] = Field(default_factory=list)

    model_config = {"extra": "forbid"}

    @field_validator("choices", mode="before")
    @classmethod
    def _default_choices(cls, value: Iterable[Any] | None) -> Iterable[Any]:
        if value is None:
            return []
        return value

    def choice_text(self, choice_id: str) -> str | None:
        """Return the display text of ``choice_id`` or ``None`` if undeclared."""

        for choice in self.choices:
            if choice.id == choice_id:
                return choice.text
        return None


class SingleAnswer(BaseModel):
    """A single selected choice id."""

    kind: Literal["single"] = Field(default="single", frozen=True)
    choice_id: str

    model_config = {"extra": "forbid", "frozen": True}


class MultiAnswer(BaseModel):
    """Several selected choice ids (multi-select questions)."""

    kind: Literal["multi"] = Field(default="multi", frozen=True)
    choice_ids: List[str]

    model_config = {"extra": "forbid", "frozen": True}


class ScaleAnswer(BaseModel):
    """Numeric rating per choice id (Likert-scale-per-item questions)."""

    kind: Literal["scale"] = Field(default="scale", frozen=True)
    values: Dict[str, float]

    model_config = {"extra": "forbid", "frozen": True}


class UnknownAnswer(BaseModel):
    """An answer whose shape could not be recognised; aggregation skips it."""

    kind: Literal["unknown"] = Field(default="unknown", frozen=True)
    raw: Any = None

    model_config = {"extra": "forbid", "frozen": True}


Answer = Annotated[
    Union[SingleAnswer, MultiAnswer, ScaleAnswer, UnknownAnswer],
    Field(discriminator="kind"),
]

_ANSWER_ADAPTER: TypeAdapter[Any] = TypeAdapter(Answer)
_ANSWER_TYPES = (SingleAnswer, MultiAnswer, ScaleAnswer, UnknownAnswer)


def coerce_answer(value: Any) -> SingleAnswer | MultiAnswer | ScaleAnswer | UnknownAnswer | None:
    """Convert a raw answer payload into its tagged variant.

    Strings become :class:`SingleAnswer`, sequences of strings become
    :class:`MultiAnswer` and mappings of numbers become :class:`ScaleAnswer`.
    ``None`` and empty strings mean "not answered" and return ``None``.
    Anything else is wrapped in :class:`UnknownAnswer`.
    """

    if value is None:
        return None
    if isinstance(value, _ANSWER_TYPES):
        return value
    if isinstance(value, str):
        return SingleAnswer(choice_id=value) if value else None
    if isinstance(value, (list, tuple)):
        if all(isinstance(item, str) for item in value):
            return MultiAnswer(choice_ids=list(value))
        return UnknownAnswer(raw=list(value))
    if isinstance(value, Mapping):
        if "kind" in value:
            try:
                return _ANSWER_ADAPTER.validate_python(dict(value))
            except ValidationError:
                return UnknownAnswer(raw=dict(value))
        values: Dict[str, float] = {}
        for key, item in value.items():
            if isinstance(item, bool) or not isinstance(item, (int, float)):
                return UnknownAnswer(raw=dict(value))
            values[str(key)] = float(item)
        return ScaleAnswer(values=values)
    return UnknownAnswer(raw=value)


class Demographics(BaseModel):
    """Fixed demographic profile of a respondent."""

    age_group: str = Field(default=UNKNOWN_DEMOGRAPHIC, alias="ageGroup")
    gender: str = UNKNOWN_DEMOGRAPHIC
    family_composition: str = Field(default=UNKNOWN_DEMOGRAPHIC, alias="familyComposition")
    income_range: str = Field(default=UNKNOWN_DEMOGRAPHIC, alias="incomeRange")
    region: str = UNKNOWN_DEMOGRAPHIC

    model_config = {"extra": "ignore", "frozen": True, "populate_by_name": True}

    @field_validator("*", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str:
        if value is None or value == "":
            return UNKNOWN_DEMOGRAPHIC
        return str(value)

    def value_of(self, field_name: str) -> str | None:
        """Return the value for a demographic field, or ``None`` if unknown."""

        attribute = resolve_demographic_field(field_name)
        if attribute is None:
            return None
        return getattr(self, attribute)


class Response(BaseModel):
    """One respondent: demographics, answers keyed by question id and a weight."""

    id: str
    demographics: Demographics = Field(default_factory=Demographics)
    answers: Dict[str, Answer] = Field(default_factory=dict)
    weight: float = Field(default=1.0, gt=0)

    model_config = {"extra": "forbid", "frozen": True}

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("answers", mode="before")
    @classmethod
    def _coerce_answers(cls, value: Mapping[str, Any] | None) -> Dict[str, Any]:
        if value is None:
            return {}
        coerced: Dict[str, Any] = {}
        for question_id, raw in value.items():
            answer = coerce_answer(raw)
            if answer is not None:
                coerced[str(question_id)] = answer.model_dump()
        return coerced

    @field_validator("weight", mode="before")
    @classmethod
    def _default_weight(cls, value: Any) -> Any:
        if value is None or value == 0 or value == "":
            return 1.0
        return value

    def answer_for(self, question_id: str) -> SingleAnswer | MultiAnswer | ScaleAnswer | UnknownAnswer | None:
        """Return the recorded answer for ``question_id`` if present."""

        return self.answers.get(question_id)


class SurveyData(BaseModel):
    """Questions plus responses; replaced wholesale whenever a new survey is loaded."""

    title: str = ""
    description: str = ""
    questions: List[Question] = Field(default_factory=list)
    responses: List[Response] = Field(default_factory=list)

    model_config = {"extra": "ignore"}

    def question(self, question_id: str) -> Question:
        """Return the question with ``question_id`` or raise ``KeyError``."""

        for question in self.questions:
            if question.id == question_id:
                return question
        raise KeyError(f"Unknown question id: {question_id}")


@dataclass(frozen=True)
class FilterSet:
    """Selected demographic values per field; an empty selection is unconstrained."""

    selections: Mapping[str, FrozenSet[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        selections: Dict[str, FrozenSet[str]] = {}
        for name, values in self.selections.items():
            key = resolve_demographic_field(name) or name
            selections[key] = frozenset(str(value) for value in values)
        object.__setattr__(self, "selections", selections)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Iterable[str]] | None = None) -> "FilterSet":
        """Build a filter set, normalising camelCase field names."""

        return cls(selections=dict(raw or {}))

    def selected(self, field_name: str) -> FrozenSet[str]:
        key = resolve_demographic_field(field_name) or field_name
        return self.selections.get(key, frozenset())

    def with_selection(self, field_name: str, values: Iterable[str]) -> "FilterSet":
        """Return a copy with ``field_name`` replaced by ``values``."""

        updated = dict(self.selections)
        key = resolve_demographic_field(field_name) or field_name
        updated[key] = frozenset(str(value) for value in values)
        return FilterSet(selections=updated)

    def merge(self, other: "FilterSet") -> "FilterSet":
        """Combine two filter sets; fields present in ``other`` take precedence."""

        updated = dict(self.selections)
        updated.update(other.selections)
        return FilterSet(selections=updated)

    def active_fields(self) -> List[str]:
        """Return field names with a non-empty selection."""

        return [name for name, values in self.selections.items() if values]

    @property
    def is_empty(self) -> bool:
        return not self.active_fields()
