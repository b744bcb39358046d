"""Skip graph over a set of questions (``goto`` branching)."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from .errors import ValidationError
from .question import Question
from .value_objects import QuestionCode


class QuestionFlow:
    """Navigates questions in order, following option ``goto`` targets.

    Questions are ordered by code number when every code has the ``Q<n>``
    form; otherwise the given order is kept.

    Example:
        >>> flow = QuestionFlow([q1, q2, q3])
        >>> flow.next_code("Q1", "oui")
        'Q3'
    """

    def __init__(self, questions: Iterable[Question]):
        ordered = list(questions)
        if ordered and all(QuestionCode.is_valid_format(q.code) for q in ordered):
            ordered.sort(key=lambda q: QuestionCode(q.code).number)
        self._questions: dict[str, Question] = {}
        for question in ordered:
            if question.code in self._questions:
                raise ValidationError("Code de question dupliqué", field="code", value=question.code)
            self._questions[question.code] = question
        self._order = list(self._questions)
        self._position = {code: index for index, code in enumerate(self._order)}

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, code: object) -> bool:
        return code in self._questions

    @property
    def codes(self) -> list[str]:
        return list(self._order)

    @property
    def first_code(self) -> str | None:
        return self._order[0] if self._order else None

    def question(self, code: str) -> Question:
        try:
            return self._questions[code]
        except KeyError:
            raise ValidationError("Question introuvable", field="code", value=code) from None

    def next_code(self, code: str, response: Any = None) -> str | None:
        """Code following ``code`` given ``response``; None at the end."""
        target = self.question(code).get_next_question_code(response)
        if target:
            return target
        index = self._position[code] + 1
        return self._order[index] if index < len(self._order) else None

    def dangling_targets(self) -> list[tuple[str, str]]:
        """(source, target) pairs whose target is not a question of the flow."""
        return [(source, target) for source, target in self._edges() if target not in self._questions]

    def backward_jumps(self) -> list[tuple[str, str]]:
        return [
            (source, target)
            for source, target in self._edges()
            if target in self._position and self._position[target] <= self._position[source]
        ]

    def path(self, responses: Mapping[str, Any]) -> list[str]:
        """Codes visited from the first question, stopping on a cycle or an unknown target."""
        visited: list[str] = []
        seen: set[str] = set()
        code = self.first_code
        while code is not None and code in self._questions and code not in seen:
            visited.append(code)
            seen.add(code)
            code = self.next_code(code, responses.get(code))
        return visited

    def _edges(self):
        for source in self._order:
            for option in self._questions[source].options:
                if option.goto:
                    yield source, option.goto
