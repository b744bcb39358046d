"""Interview entity: a scheduled session with its question/answer records."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from ._checks import check_rating, coerce_enum, coerce_optional_enum, enum_value, is_blank, require_text
from .attachments import Attachment
from .clock import Clock, IdFactory, ensure_aware, new_id, to_iso, utc_now
from .errors import ValidationError
from .identity import EntityMixin, Identity
from .schemas import InterviewRecord, parse_record
from .value_objects import Email


class InterviewStatus(str, Enum):
    PLANIFIE = "planifie"
    EN_COURS = "en_cours"
    TERMINE = "termine"
    ANNULE = "annule"
    REPORTE = "reporte"


class InterviewType(str, Enum):
    PRESENTIEL = "presentiel"
    VISIO = "visio"
    TELEPHONIQUE = "telephonique"


class Recommendation(str, Enum):
    RECOMMANDE = "recommande"
    PAS_RECOMMANDE = "pas_recommande"
    RESERVE = "reserve"


@dataclass(frozen=True)
class InterviewQuestion:
    id: str
    question: str
    answer: str = ""
    rating: float | None = None
    notes: str = ""

    @property
    def is_answered(self) -> bool:
        return not is_blank(self.answer)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "question": self.question,
            "answer": self.answer,
            "rating": self.rating,
            "notes": self.notes,
        }


def _build_interview_question(data: Any, id_factory: IdFactory) -> InterviewQuestion:
    if isinstance(data, InterviewQuestion):
        data = dataclasses.asdict(data)
    raw = data if isinstance(data, Mapping) else {}
    text = raw.get("question")
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Les données de la question sont requises", field="question", value=data)
    rating = raw.get("rating")
    check_rating(rating, "La note doit être entre 1 et 5", "rating")
    return InterviewQuestion(
        id=raw.get("id") or id_factory(),
        question=text,
        answer=raw.get("answer") or "",
        rating=rating,
        notes=raw.get("notes") or "",
    )


@dataclass(eq=False, kw_only=True, frozen=True)
class Interview(EntityMixin):
    """An interview session.

    ``planifie -> en_cours -> termine``; ``annule`` from any state except
    ``termine``; ``reschedule`` puts the interview back to ``planifie``.
    """

    identity: Identity = field(default_factory=Identity.new)
    candidate_name: str
    candidate_email: Email
    candidate_phone: str = ""
    position: str
    department: str
    scheduled_date: datetime
    duration: int = 60
    status: InterviewStatus = InterviewStatus.PLANIFIE
    type: InterviewType = InterviewType.PRESENTIEL
    location: str = ""
    meeting_link: str = ""
    interviewer: Any = None
    interviewer_id: str | None = None
    questions: tuple[InterviewQuestion, ...] = ()
    overall_rating: float | None = None
    recommendation: Recommendation | None = None
    notes: str = ""
    cv: Attachment | None = None
    created_by: Any = None

    def __post_init__(self) -> None:
        if not isinstance(self.candidate_email, Email):
            if is_blank(self.candidate_email):
                raise ValidationError("L'email du candidat est requis", field="candidateEmail")
            self._update(candidate_email=Email(self.candidate_email))
        if not isinstance(self.scheduled_date, datetime):
            raise ValidationError(
                "Une date d'entretien valide est requise", field="scheduledDate", value=self.scheduled_date
            )
        self._update(
            scheduled_date=ensure_aware(self.scheduled_date),
            status=coerce_enum(InterviewStatus, self.status, "Statut d'entretien invalide", "status"),
            type=coerce_enum(InterviewType, self.type, "Type d'entretien invalide", "type"),
            recommendation=coerce_optional_enum(
                Recommendation, self.recommendation, "Type de recommandation invalide", "recommendation"
            ),
        )
        id_factory = self.identity.id_factory
        self._update(questions=tuple(_build_interview_question(q, id_factory) for q in self.questions or ()))
        self.validate()

    # ------------------------------------------------------------------ #
    #  State
    # ------------------------------------------------------------------ #

    @property
    def is_scheduled(self) -> bool:
        return self.status is InterviewStatus.PLANIFIE

    @property
    def is_in_progress(self) -> bool:
        return self.status is InterviewStatus.EN_COURS

    @property
    def is_completed(self) -> bool:
        return self.status is InterviewStatus.TERMINE

    @property
    def is_cancelled(self) -> bool:
        return self.status is InterviewStatus.ANNULE

    @property
    def is_postponed(self) -> bool:
        return self.status is InterviewStatus.REPORTE

    @property
    def duration_in_hours(self) -> float:
        return self.duration / 60

    @property
    def has_questions(self) -> bool:
        return bool(self.questions)

    @property
    def average_question_rating(self) -> float | None:
        ratings = [q.rating for q in self.questions if q.rating is not None]
        if not ratings:
            return None
        return sum(ratings) / len(ratings)

    @property
    def completion_percentage(self) -> int:
        if not self.questions:
            return 0
        answered = sum(1 for q in self.questions if q.is_answered)
        return round(answered / len(self.questions) * 100)

    # ------------------------------------------------------------------ #
    #  Candidate and job
    # ------------------------------------------------------------------ #

    def update_candidate_info(self, name: str, email: str, phone: str | None = None) -> None:
        """Replace name and e-mail; the phone changes only when given."""
        new_name = require_text(name, "Le nom du candidat est requis", "candidateName")
        if is_blank(email):
            raise ValidationError("L'email du candidat est requis", field="candidateEmail")
        new_email = Email(email)
        self._update(candidate_name=new_name, candidate_email=new_email)
        if phone is not None:
            self._update(candidate_phone=phone.strip())
        self.touch()

    def update_job_info(self, position: str, department: str) -> None:
        """Replace position and department."""
        new_position = require_text(position, "Le poste est requis", "position")
        new_department = require_text(department, "Le département est requis", "department")
        self._update(position=new_position, department=new_department)
        self.touch()

    # ------------------------------------------------------------------ #
    #  Lifecycle
    # ------------------------------------------------------------------ #

    def postpone(self) -> None:
        """Mark a planned interview as postponed until it is rescheduled."""
        if self.status is not InterviewStatus.PLANIFIE:
            raise ValidationError(
                "Seuls les entretiens planifiés peuvent être reportés", field="status", value=self.status.value
            )
        self._update(status=InterviewStatus.REPORTE)
        self.touch()

    def reschedule(self, new_date: datetime) -> None:
        """Move to a future date and return to planifie."""
        if self.status is InterviewStatus.TERMINE:
            raise ValidationError(
                "Un entretien terminé ne peut pas être replanifié", field="status", value=self.status.value
            )
        if not isinstance(new_date, datetime):
            raise ValidationError("Une date valide est requise", field="scheduledDate", value=new_date)
        new_date = ensure_aware(new_date)
        if new_date <= self.now():
            raise ValidationError(
                "La date d'entretien doit être dans le futur", field="scheduledDate", value=new_date.isoformat()
            )
        self._update(scheduled_date=new_date, status=InterviewStatus.PLANIFIE)
        self.touch()

    def start(self) -> None:
        """planifie -> en_cours."""
        if self.status is not InterviewStatus.PLANIFIE:
            raise ValidationError(
                "Seuls les entretiens planifiés peuvent être démarrés", field="status", value=self.status.value
            )
        self._update(status=InterviewStatus.EN_COURS)
        self.touch()

    def complete(
        self,
        overall_rating: float | None = None,
        recommendation: str | None = None,
        notes: str = "",
    ) -> None:
        """en_cours -> termine with an optional rating and recommendation."""
        if self.status is not InterviewStatus.EN_COURS:
            raise ValidationError(
                "Seuls les entretiens en cours peuvent être terminés", field="status", value=self.status.value
            )
        check_rating(overall_rating, "La note globale doit être entre 1 et 5", "overallRating")
        new_recommendation = coerce_optional_enum(
            Recommendation, recommendation, "Type de recommandation invalide", "recommendation"
        )
        self._update(
            status=InterviewStatus.TERMINE,
            overall_rating=overall_rating,
            recommendation=new_recommendation,
            notes=notes or "",
        )
        self.touch()

    def cancel(self) -> None:
        """Cancel any interview that is not finished."""
        if self.status is InterviewStatus.TERMINE:
            raise ValidationError(
                "Un entretien terminé ne peut pas être annulé", field="status", value=self.status.value
            )
        self._update(status=InterviewStatus.ANNULE)
        self.touch()

    # ------------------------------------------------------------------ #
    #  Questions and attachments
    # ------------------------------------------------------------------ #

    def add_question(self, question_data: Mapping[str, Any]) -> str:
        """Append a question record and return its id."""
        question = _build_interview_question(question_data, self.identity.id_factory)
        if any(q.id == question.id for q in self.questions):
            raise ValidationError("Identifiant de question dupliqué", field="questions", value=question.id)
        self._update(questions=self.questions + (question,))
        self.touch()
        return question.id

    def update_question_answer(
        self,
        question_id: str,
        answer: str,
        rating: float | None = None,
        notes: str = "",
    ) -> None:
        """Record the answer, rating and notes of one question."""
        index = next((i for i, q in enumerate(self.questions) if q.id == question_id), -1)
        if index == -1:
            raise ValidationError("Question non trouvée", field="questionId", value=question_id)
        check_rating(rating, "La note doit être entre 1 et 5", "rating")
        updated = dataclasses.replace(self.questions[index], answer=answer or "", rating=rating, notes=notes or "")
        self._update(questions=self.questions[:index] + (updated,) + self.questions[index + 1 :])
        self.touch()

    def attach_cv(self, cv_data: Mapping[str, Any]) -> None:
        """Attach a CV stamped with the current upload date."""
        self._update(cv=Attachment.uploaded(cv_data, self.now(), "Les données du CV sont requises", "cv"))
        self.touch()

    # ------------------------------------------------------------------ #
    #  Validation and boundary contracts
    # ------------------------------------------------------------------ #

    def validate(self) -> None:
        """Raise ValidationError on the first broken invariant."""
        self.identity.validate()
        require_text(self.candidate_name, "Le nom du candidat est requis", "candidateName")
        require_text(self.position, "Le poste est requis", "position")
        require_text(self.department, "Le département est requis", "department")
        if not isinstance(self.duration, (int, float)) or isinstance(self.duration, bool) or self.duration <= 0:
            raise ValidationError("La durée doit être positive", field="duration", value=self.duration)
        check_rating(self.overall_rating, "La note globale doit être entre 1 et 5", "overallRating")

    def to_plain_object(self) -> dict[str, Any]:
        """camelCase dict for storage and transport, with derived keys."""
        return {
            **self.identity.to_dict(),
            "candidateName": self.candidate_name,
            "candidateEmail": self.candidate_email.value,
            "candidatePhone": self.candidate_phone,
            "position": self.position,
            "department": self.department,
            "scheduledDate": to_iso(self.scheduled_date),
            "duration": self.duration,
            "status": self.status.value,
            "type": self.type.value,
            "location": self.location,
            "meetingLink": self.meeting_link,
            "interviewer": self.interviewer,
            "interviewerId": self.interviewer_id,
            "questions": [q.to_dict() for q in self.questions],
            "overallRating": self.overall_rating,
            "recommendation": enum_value(self.recommendation),
            "notes": self.notes,
            "cv": self.cv.to_dict() if self.cv else None,
            "createdBy": self.created_by,
            "isScheduled": self.is_scheduled,
            "isInProgress": self.is_in_progress,
            "isCompleted": self.is_completed,
            "isCancelled": self.is_cancelled,
            "isPostponed": self.is_postponed,
            "durationInHours": self.duration_in_hours,
            "hasQuestions": self.has_questions,
            "averageQuestionRating": self.average_question_rating,
            "completionPercentage": self.completion_percentage,
        }

    @classmethod
    def from_api_data(
        cls,
        data: Mapping[str, Any],
        *,
        clock: Clock = utc_now,
        id_factory: IdFactory = new_id,
    ) -> "Interview":
        """Rebuild an interview from a stored or transported record."""
        record = parse_record(InterviewRecord, data)
        interviewer_id = record.interviewer_id
        if interviewer_id is None and isinstance(record.interviewer, Mapping):
            interviewer_id = record.interviewer.get("_id") or record.interviewer.get("id")
        now = clock()
        cv = None
        if record.cv is not None:
            cv = Attachment.build(record.cv.model_dump(), now, "Les données du CV sont requises", "cv")
        return cls(
            identity=Identity.new(
                record.id,
                created_at=record.created_at,
                updated_at=record.updated_at,
                clock=clock,
                id_factory=id_factory,
            ),
            candidate_name=record.candidate_name,
            candidate_email=record.candidate_email,
            candidate_phone=record.candidate_phone or "",
            position=record.position,
            department=record.department,
            scheduled_date=record.scheduled_date,
            duration=record.duration if record.duration is not None else 60,
            status=record.status or InterviewStatus.PLANIFIE,
            type=record.type or InterviewType.PRESENTIEL,
            location=record.location or "",
            meeting_link=record.meeting_link or "",
            interviewer=record.interviewer,
            interviewer_id=str(interviewer_id) if interviewer_id is not None else None,
            questions=[q.model_dump() for q in record.questions or ()],
            overall_rating=record.overall_rating,
            recommendation=record.recommendation,
            notes=record.notes or "",
            cv=cv,
            created_by=record.created_by,
        )
