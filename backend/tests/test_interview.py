"""Tests for the Interview entity."""

from datetime import datetime, timedelta
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))
from fieldsurvey.domain.clock import local_tz  # noqa: E402
from fieldsurvey.domain.errors import ValidationError  # noqa: E402
from fieldsurvey.domain.interview import Interview, InterviewStatus, Recommendation  # noqa: E402


@pytest.fixture
def interview(identity, clock):
    return Interview(
        identity=identity("int-1"),
        candidate_name="Awa Koné",
        candidate_email="Awa.Kone@Example.CI",
        position="Agronome",
        department="Recherche",
        scheduled_date=clock() + timedelta(days=2),
    )


def test_email_is_normalized(interview):
    assert interview.candidate_email.value == "awa.kone@example.ci"


@pytest.mark.parametrize(
    "field, value",
    [
        ("candidate_name", ""),
        ("candidate_email", "pas-un-email"),
        ("candidate_email", None),
        ("duration", 0),
        ("status", "en_pause"),
        ("scheduled_date", "demain"),
    ],
)
def test_invalid_construction_fails(identity, clock, field, value):
    data = dict(
        identity=identity(),
        candidate_name="Awa Koné",
        candidate_email="awa@example.ci",
        position="Agronome",
        department="Recherche",
        scheduled_date=clock(),
    )
    data[field] = value
    with pytest.raises(ValidationError):
        Interview(**data)


def test_happy_path(interview):
    interview.start()
    assert interview.is_in_progress
    interview.complete(4, "recommande", "Très bon profil")
    assert interview.is_completed
    assert interview.overall_rating == 4
    assert interview.recommendation is Recommendation.RECOMMANDE


def test_complete_with_out_of_range_rating_keeps_status(interview):
    interview.start()
    with pytest.raises(ValidationError):
        interview.complete(6, "recommande")
    assert interview.status is InterviewStatus.EN_COURS
    with pytest.raises(ValidationError):
        interview.complete(4, "peut-etre")
    assert interview.status is InterviewStatus.EN_COURS


def test_start_requires_planifie(interview):
    interview.cancel()
    with pytest.raises(ValidationError):
        interview.start()
    assert interview.is_cancelled


def test_cancel_after_completion_fails(interview):
    interview.start()
    interview.complete()
    with pytest.raises(ValidationError):
        interview.cancel()
    assert interview.is_completed


def test_reschedule_requires_future_date(interview, clock):
    interview.postpone()
    assert interview.is_postponed
    with pytest.raises(ValidationError):
        interview.reschedule(clock())
    assert interview.is_postponed

    new_date = clock() + timedelta(days=7)
    interview.reschedule(new_date)
    assert interview.is_scheduled
    assert interview.scheduled_date == new_date


def test_reschedule_completed_interview_fails(interview, clock):
    interview.start()
    interview.complete(3)
    with pytest.raises(ValidationError):
        interview.reschedule(clock() + timedelta(days=1))
    assert interview.is_completed


def test_question_answers_and_metrics(interview):
    first = interview.add_question({"question": "Parlez-nous de vous"})
    interview.add_question({"question": "Pourquoi ce poste ?"})
    assert interview.completion_percentage == 0
    assert interview.average_question_rating is None

    interview.update_question_answer(first, "Ingénieure agronome", rating=4)
    assert interview.completion_percentage == 50
    assert interview.average_question_rating == 4

    with pytest.raises(ValidationError):
        interview.update_question_answer(first, "x", rating=0)
    with pytest.raises(ValidationError):
        interview.update_question_answer("inconnue", "x")
    assert interview.questions[0].answer == "Ingénieure agronome"


def test_update_candidate_info_is_all_or_nothing(interview):
    with pytest.raises(ValidationError):
        interview.update_candidate_info("Nouveau Nom", "invalide")
    assert interview.candidate_name == "Awa Koné"
    interview.update_candidate_info("Awa K.", "awa.k@example.ci", "+225 0700000000")
    assert interview.candidate_email.value == "awa.k@example.ci"
    assert interview.candidate_phone == "+225 0700000000"


def test_attach_cv_uses_clock(interview, clock):
    clock.advance(minutes=10)
    interview.attach_cv({"filename": "cv.pdf", "path": "/uploads/cv.pdf"})
    assert interview.cv.upload_date == clock()
    with pytest.raises(ValidationError):
        interview.attach_cv({"path": "/uploads/sans-nom.pdf"})


def test_plain_object_round_trip(interview, clock):
    interview.add_question({"question": "Expérience ?", "answer": "5 ans", "rating": 5})
    interview.attach_cv({"filename": "cv.pdf"})
    interview.start()

    plain = interview.to_plain_object()
    assert plain["completionPercentage"] == 100
    assert plain["durationInHours"] == 1

    restored = Interview.from_api_data(plain, clock=clock)
    assert restored == interview
    assert restored.status is InterviewStatus.EN_COURS
    assert restored.candidate_email == interview.candidate_email
    assert restored.scheduled_date == interview.scheduled_date
    assert restored.questions == interview.questions
    assert restored.cv == interview.cv
    assert restored.updated_at == interview.updated_at


def test_from_api_data_reads_nested_interviewer():
    interview = Interview.from_api_data(
        {
            "_id": "int-9",
            "candidateName": "Yao",
            "candidateEmail": "yao@example.ci",
            "position": "Technicien",
            "department": "Terrain",
            "scheduledDate": "2024-05-02T10:00:00",
            "interviewer": {"_id": "user-3", "name": "Mariam"},
        }
    )
    assert interview.interviewer_id == "user-3"
    assert interview.scheduled_date == local_tz().localize(datetime(2024, 5, 2, 10, 0))
    assert interview.duration == 60


def test_question_rating_of_zero_is_rejected(interview):
    with pytest.raises(ValidationError) as excinfo:
        interview.add_question({"question": "Expérience terrain ?", "rating": 0})
    assert excinfo.value.field == "rating"
    assert not interview.has_questions
    interview.add_question({"question": "Expérience terrain ?", "rating": None})
    assert interview.questions[0].rating is None


def test_attach_cv_requires_a_mapping(interview):
    with pytest.raises(ValidationError):
        interview.attach_cv("cv.pdf")
    assert interview.cv is None


def test_fields_cannot_be_assigned_directly(interview):
    with pytest.raises(AttributeError):
        interview.status = InterviewStatus.TERMINE
    assert interview.is_scheduled
