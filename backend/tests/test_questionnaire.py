"""Tests for the Questionnaire aggregate."""

from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))
from fieldsurvey.domain.errors import ValidationError  # noqa: E402
from fieldsurvey.domain.questionnaire import Questionnaire, QuestionnaireStatus  # noqa: E402


@pytest.fixture
def questionnaire(identity):
    return Questionnaire(identity=identity("qn-1"), titre="Diagnostic cacao", duree_estimee=90)


def fill(questionnaire):
    section_id = questionnaire.add_section({"titre": "Identification"})
    questionnaire.add_question({"texte": "Nom du village ?", "section_id": section_id})
    questionnaire.add_question(
        {
            "texte": "Culture principale ?",
            "type": "single_choice",
            "section_id": section_id,
            "options": [{"libelle": "Cacao", "valeur": "cacao"}],
        }
    )
    return section_id


def to_published(questionnaire):
    fill(questionnaire)
    questionnaire.submit_for_review()
    questionnaire.validate_questionnaire("validateur-1")
    questionnaire.publish()


def test_title_is_required(identity):
    with pytest.raises(ValidationError):
        Questionnaire(identity=identity(), titre="  ")


def test_unknown_status_is_rejected(identity):
    with pytest.raises(ValidationError):
        Questionnaire(identity=identity(), titre="Enquête", statut="en_cours")


def test_sections_are_sorted_by_ordre(questionnaire):
    questionnaire.add_section({"titre": "C", "ordre": 3})
    questionnaire.add_section({"titre": "A", "ordre": 1})
    questionnaire.add_section({"titre": "B", "ordre": 2})
    assert [s.ordre for s in questionnaire.sections] == [1, 2, 3]
    assert [s.titre for s in questionnaire.sections] == ["A", "B", "C"]


def test_generated_ids_come_from_id_factory(questionnaire):
    section_id = questionnaire.add_section({"titre": "Parcelles"})
    question_id = questionnaire.add_question({"texte": "Superficie ?", "section_id": section_id})
    assert section_id == "id-1"
    assert question_id == "id-2"


def test_update_section_and_question(questionnaire):
    section_id = fill(questionnaire)
    questionnaire.update_section(section_id, {"titre": "Producteur"})
    assert questionnaire.sections[0].titre == "Producteur"

    question_id = questionnaire.questions[0].id
    questionnaire.update_question(question_id, {"obligatoire": True})
    assert questionnaire.questions[0].obligatoire is True

    with pytest.raises(ValidationError):
        questionnaire.update_question(question_id, {"couleur": "rouge"})
    with pytest.raises(ValidationError):
        questionnaire.update_section("absent", {"titre": "X"})


def test_removing_a_section_removes_its_questions(questionnaire):
    section_id = fill(questionnaire)
    other = questionnaire.add_section({"titre": "Autre"})
    kept = questionnaire.add_question({"texte": "Commentaires ?", "section_id": other})

    questionnaire.remove_section(section_id)

    assert [s.id for s in questionnaire.sections] == [other]
    assert [q.id for q in questionnaire.questions] == [kept]


def test_reorder_requires_the_exact_id_set(questionnaire):
    fill(questionnaire)
    first, second = (q.id for q in questionnaire.questions)

    with pytest.raises(ValidationError):
        questionnaire.reorder_questions([first])
    with pytest.raises(ValidationError):
        questionnaire.reorder_questions([first, first])
    with pytest.raises(ValidationError):
        questionnaire.reorder_questions([first, "inconnu"])

    questionnaire.reorder_questions([second, first])
    assert [q.id for q in questionnaire.questions] == [second, first]
    assert [q.ordre for q in questionnaire.questions] == [1, 2]


def test_submit_requires_questions(questionnaire):
    with pytest.raises(ValidationError):
        questionnaire.submit_for_review()
    assert questionnaire.statut is QuestionnaireStatus.BROUILLON


def test_lifecycle_records_validator(questionnaire, clock):
    fill(questionnaire)
    questionnaire.submit_for_review()
    clock.advance(days=1)
    questionnaire.validate_questionnaire("validateur-1")
    assert questionnaire.valide_par == "validateur-1"
    assert questionnaire.date_validation == clock()
    questionnaire.publish()
    assert questionnaire.is_published
    questionnaire.suspend()
    assert questionnaire.is_suspended
    questionnaire.archive()
    assert questionnaire.is_archived


@pytest.mark.parametrize("transition", ["publish", "suspend", "validate_questionnaire"])
def test_illegal_transitions_leave_status_unchanged(questionnaire, transition):
    fill(questionnaire)
    method = getattr(questionnaire, transition)
    with pytest.raises(ValidationError):
        if transition == "validate_questionnaire":
            method("v")
        else:
            method()
    assert questionnaire.statut is QuestionnaireStatus.BROUILLON


def test_archive_twice_fails(questionnaire):
    questionnaire.archive()
    with pytest.raises(ValidationError):
        questionnaire.archive()
    assert questionnaire.is_archived


def test_feedback_average(questionnaire):
    to_published(questionnaire)
    questionnaire.add_feedback(4, "Clair")
    questionnaire.add_feedback(2)
    assert questionnaire.feedback_moyen == 3
    with pytest.raises(ValidationError):
        questionnaire.add_feedback(6)
    assert len(questionnaire.feedbacks) == 2


def test_usage_requires_usable_questionnaire(questionnaire, clock):
    with pytest.raises(ValidationError):
        questionnaire.record_usage()
    with pytest.raises(ValidationError):
        questionnaire.add_feedback(4)
    to_published(questionnaire)
    questionnaire.record_usage()
    assert questionnaire.utilise_compte == 1
    assert questionnaire.dernier_utilise == clock()
    assert questionnaire.popularity_score > 0


def test_duplicate_gets_fresh_ids(questionnaire):
    section_id = fill(questionnaire)
    to_copy_ids = {q.id for q in questionnaire.questions} | {section_id}

    copy = questionnaire.duplicate()

    assert copy.id != questionnaire.id
    assert copy.titre == "Diagnostic cacao (Copie)"
    assert copy.statut is QuestionnaireStatus.BROUILLON
    new_ids = {q.id for q in copy.questions} | {s.id for s in copy.sections}
    assert not new_ids & to_copy_ids
    assert all(q.section_id == copy.sections[0].id for q in copy.questions)

    copy.add_question({"texte": "Nouvelle ?"})
    assert questionnaire.total_questions == 2


def test_derived_metrics(questionnaire):
    fill(questionnaire)
    assert questionnaire.total_questions == 2
    assert questionnaire.sections_count == 1
    assert questionnaire.questions_types == ["text", "single_choice"]
    assert questionnaire.estimated_duration_text == "1h 30min"
    assert questionnaire.complexity == "Simple"
    assert not questionnaire.has_conditional_logic
    assert questionnaire.popularity_score == 0


def test_plain_object_round_trip(questionnaire, clock):
    to_published(questionnaire)
    questionnaire.add_feedback(5, "Très utile")
    clock.advance(hours=2)
    questionnaire.record_usage()

    plain = questionnaire.to_plain_object()
    assert plain["totalQuestions"] == 2
    assert plain["canBeUsed"] is True

    restored = Questionnaire.from_api_data(plain, clock=clock)
    assert restored == questionnaire
    assert restored.statut is questionnaire.statut
    assert restored.sections == questionnaire.sections
    assert restored.questions == questionnaire.questions
    assert restored.feedbacks == questionnaire.feedbacks
    assert restored.feedback_moyen == questionnaire.feedback_moyen
    assert restored.utilise_compte == 1
    assert restored.updated_at == questionnaire.updated_at


def test_from_api_data_reads_legacy_feedbacks():
    questionnaire = Questionnaire.from_api_data(
        {
            "_id": "legacy",
            "titre": "Ancien",
            "statut": "publie",
            "metadonnees": {"feedbacks": [{"rating": 4}, {"rating": 5}], "source": "import"},
        }
    )
    assert len(questionnaire.feedbacks) == 2
    assert questionnaire.feedback_moyen == 4.5
    assert dict(questionnaire.metadonnees) == {"source": "import"}


def test_score_minimum_may_not_exceed_maximum(identity):
    with pytest.raises(ValidationError) as excinfo:
        Questionnaire(identity=identity(), titre="Évaluation", score_minimum=80, score_maximum=50)
    assert excinfo.value.field == "scoreMinimum"
    bounded = Questionnaire(identity=identity(), titre="Évaluation", score_minimum=50, score_maximum=50)
    assert bounded.score_minimum == bounded.score_maximum == 50


@pytest.mark.parametrize("setup", ["archive", "suspend"])
def test_suspend_only_from_usable_states(questionnaire, setup):
    to_published(questionnaire)
    getattr(questionnaire, setup)()
    expected = questionnaire.statut
    with pytest.raises(ValidationError):
        questionnaire.suspend()
    assert questionnaire.statut is expected


def test_fields_cannot_be_assigned_directly(questionnaire):
    with pytest.raises(AttributeError):
        questionnaire.statut = QuestionnaireStatus.PUBLIE
    with pytest.raises(AttributeError):
        questionnaire.questions = ()
    assert questionnaire.is_draft
