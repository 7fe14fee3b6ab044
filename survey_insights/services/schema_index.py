from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Tuple

from survey_insights.models.analysis import Criterion
from survey_insights.models.survey import Question

logger = logging.getLogger(__name__)

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")
_MIN_KEY_LENGTH = 3


class SchemaIndex:
    """Keyword lookup from free-text fragments to ``(question_id, choice_id)`` pairs.

    Every choice registers three keys: its lowercased text, that text with
    non-alphanumeric characters stripped, and the lowercased question text
    followed by the choice text. A later registration overwrites an earlier one
    with the same key, so near-duplicate option text across questions resolves
    to the question declared last.
    """

    def __init__(self, entries: Dict[str, Criterion], labels: Dict[Criterion, str]) -> None:
        self._entries = dict(entries)
        self._labels = dict(labels)

    @classmethod
    def build(cls, questions: Iterable[Question]) -> "SchemaIndex":
        """Build the index from the schema's questions in declared order."""

        entries: Dict[str, Criterion] = {}
        labels: Dict[Criterion, str] = {}
        for question in questions:
            for choice in question.choices:
                criterion = Criterion(question.id, choice.id)
                labels[criterion] = choice.text
                lowered = choice.text.lower()
                for key in (
                    lowered,
                    _NON_ALPHANUMERIC.sub("", lowered),
                    f"{question.text} {choice.text}".lower(),
                ):
                    entries[key] = criterion

        logger.debug("Built schema index with %d keys", len(entries))
        return cls(entries, labels)

    @property
    def keys(self) -> List[str]:
        return list(self._entries)

    def lookup(self, key: str) -> Criterion | None:
        return self._entries.get(key)

    def extract_criteria(self, text: str) -> Dict[str, str]:
        """Return ``question_id -> choice_id`` for every key contained in ``text``.

        Keys shorter than three characters are ignored. When several keys hit
        the same question the one iterated last wins, so the result holds at
        most one choice per question.
        """

        haystack = (text or "").lower()
        criteria: Dict[str, str] = {}
        for key, criterion in self._entries.items():
            if len(key) < _MIN_KEY_LENGTH:
                continue
            if key in haystack:
                criteria[criterion.question_id] = criterion.choice_id
        return criteria

    def label_for(self, question_id: str, choice_id: str) -> str:
        """Return the choice text for a criterion, falling back to the choice id."""

        return self._labels.get(Criterion(question_id, choice_id), choice_id)

    def labels_for(self, criteria: Iterable[Tuple[str, str]]) -> List[str]:
        return [self.label_for(question_id, choice_id) for question_id, choice_id in criteria]
