"""Tests for question skip-graph navigation."""

from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))
from fieldsurvey.domain.errors import ValidationError  # noqa: E402
from fieldsurvey.domain.flow import QuestionFlow  # noqa: E402
from fieldsurvey.domain.question import Question  # noqa: E402


def question(identity, code, options=(), qtype="single_choice"):
    return Question(
        identity=identity(),
        code=code,
        texte=f"Question {code}",
        type=qtype if options else "text",
        options=list(options),
    )


@pytest.fixture
def flow(identity):
    return QuestionFlow(
        [
            question(identity, "Q3"),
            question(
                identity,
                "Q1",
                [{"libelle": "Oui", "valeur": "oui", "goto": "Q3"}, {"libelle": "Non", "valeur": "non"}],
            ),
            question(identity, "Q2"),
            question(identity, "Q10", [{"libelle": "Recommencer", "valeur": "r", "goto": "Q1"}]),
        ]
    )


def test_codes_are_ordered_by_number(flow):
    assert flow.codes == ["Q1", "Q2", "Q3", "Q10"]
    assert flow.first_code == "Q1"
    assert len(flow) == 4
    assert "Q2" in flow


def test_next_code_follows_goto_or_sequence(flow):
    assert flow.next_code("Q1", "oui") == "Q3"
    assert flow.next_code("Q1", "non") == "Q2"
    assert flow.next_code("Q2") == "Q3"
    assert flow.next_code("Q10") is None


def test_unknown_code_fails(flow):
    with pytest.raises(ValidationError):
        flow.next_code("Q99")


def test_path_skips_and_stops_on_cycle(flow):
    assert flow.path({"Q1": "oui"}) == ["Q1", "Q3", "Q10"]
    assert flow.path({"Q1": "oui", "Q10": "r"}) == ["Q1", "Q3", "Q10"]
    assert flow.path({}) == ["Q1", "Q2", "Q3", "Q10"]


def test_graph_diagnostics(identity, flow):
    assert flow.backward_jumps() == [("Q10", "Q1")]
    assert flow.dangling_targets() == []

    broken = QuestionFlow([question(identity, "Q1", [{"libelle": "Oui", "goto": "Q42"}])])
    assert broken.dangling_targets() == [("Q1", "Q42")]
    assert broken.path({"Q1": "Oui"}) == ["Q1"]


def test_non_numbered_codes_keep_given_order(identity):
    flow = QuestionFlow([question(identity, "B"), question(identity, "A")])
    assert flow.codes == ["B", "A"]


def test_duplicate_codes_are_rejected(identity):
    with pytest.raises(ValidationError):
        QuestionFlow([question(identity, "Q1"), question(identity, "Q1")])
