"""Questionnaire aggregate: sections, questions and a publication lifecycle.

A questionnaire owns lightweight copies of its sections and questions
(:class:`QuestionnaireSection`, :class:`QuestionnaireQuestion`) rather than
:class:`~fieldsurvey.domain.question.Question` entities. Both collections are
kept sorted by ``ordre``.

Lifecycle::

    brouillon -> en_revision -> valide -> publie
    valide | publie -> suspendu
    any state but archive -> archive
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any

from ._checks import coerce_enum, coerce_optional_enum, enum_value, is_number, require_text
from .clock import Clock, IdFactory, ensure_aware, new_id, to_iso, utc_now
from .errors import ValidationError
from .identity import EntityMixin, Identity
from .question import QuestionOption, QuestionType, build_options
from .schemas import FeedbackRecord, QuestionnaireRecord, parse_record

SECONDS_PER_MONTH = 60 * 60 * 24 * 30


class QuestionnaireStatus(str, Enum):
    BROUILLON = "brouillon"
    EN_REVISION = "en_revision"
    VALIDE = "valide"
    PUBLIE = "publie"
    ARCHIVE = "archive"
    SUSPENDU = "suspendu"


class QuestionnaireType(str, Enum):
    EVALUATION_AGRICOLE = "evaluation_agricole"
    ENQUETE_TERRAIN = "enquete_terrain"
    DIAGNOSTIC_EXPLOITATION = "diagnostic_exploitation"
    FORMATION_AGRICOLE = "formation_agricole"
    CERTIFICATION = "certification"
    RECHERCHE = "recherche"


class NiveauDifficulte(str, Enum):
    FACILE = "facile"
    MOYEN = "moyen"
    DIFFICILE = "difficile"
    EXPERT = "expert"


class DomaineApplication(str, Enum):
    CEREALES = "cereales"
    LEGUMINEUSES = "legumineuses"
    TUBERCULES = "tubercules"
    FRUITS_LEGUMES = "fruits_legumes"
    ELEVAGE = "elevage"
    PECHE = "peche"
    FORESTERIE = "foresterie"
    TRANSFORMATION = "transformation"
    COMMERCIALISATION = "commercialisation"
    FINANCEMENT = "financement"


# --------------------------------------------------------------------------- #
#  Owned records
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class QuestionnaireSection:
    id: str
    titre: str
    ordre: int
    description: str = ""
    obligatoire: bool = False
    conditions_affichage: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "titre": self.titre,
            "description": self.description,
            "ordre": self.ordre,
            "obligatoire": self.obligatoire,
            "conditionsAffichage": self.conditions_affichage,
        }


@dataclass(frozen=True)
class QuestionnaireQuestion:
    id: str
    texte: str
    ordre: int
    type: QuestionType = QuestionType.TEXT
    section_id: str | None = None
    obligatoire: bool = False
    options: tuple[QuestionOption, ...] = ()
    validation: Any = None
    placeholder: str = ""
    aide: str = ""
    conditions_affichage: Any = None
    logic_saut: Any = None
    score_points: float = 0
    categorie_analyse: str = ""
    table_reference: Any = None

    @property
    def is_conditional(self) -> bool:
        return bool(self.conditions_affichage or self.logic_saut)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "texte": self.texte,
            "type": self.type.value,
            "sectionId": self.section_id,
            "ordre": self.ordre,
            "obligatoire": self.obligatoire,
            "options": [option.to_dict() for option in self.options],
            "validation": self.validation,
            "placeholder": self.placeholder,
            "aide": self.aide,
            "conditionsAffichage": self.conditions_affichage,
            "logicSaut": self.logic_saut,
            "scorePoints": self.score_points,
            "categorieAnalyse": self.categorie_analyse,
            "tableReference": self.table_reference,
        }


@dataclass(frozen=True)
class Feedback:
    rating: float
    commentaire: str
    date: datetime

    def to_dict(self) -> dict[str, Any]:
        return {"rating": self.rating, "commentaire": self.commentaire, "date": to_iso(self.date)}


_SECTION_KEYS = frozenset(f.name for f in dataclasses.fields(QuestionnaireSection))
_QUESTION_KEYS = frozenset(f.name for f in dataclasses.fields(QuestionnaireQuestion))


def _check_keys(updates: Mapping[str, Any], allowed: frozenset[str], what: str) -> None:
    unknown = set(updates) - allowed
    if unknown:
        raise ValidationError(f"Champs de {what} inconnus", field=what, value=sorted(unknown))


def _as_mapping(data: Any) -> Mapping[str, Any]:
    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        return {f.name: getattr(data, f.name) for f in dataclasses.fields(data)}
    if isinstance(data, Mapping):
        return data
    return {}


def build_section(data: Any, position: int, id_factory: IdFactory) -> QuestionnaireSection:
    raw = _as_mapping(data)
    titre = raw.get("titre")
    if not isinstance(titre, str) or not titre.strip():
        raise ValidationError("Le titre de la section est requis", field="titre", value=titre)
    return QuestionnaireSection(
        id=raw.get("id") or id_factory(),
        titre=titre,
        description=raw.get("description") or "",
        ordre=raw.get("ordre") or position,
        obligatoire=bool(raw.get("obligatoire")),
        conditions_affichage=raw.get("conditions_affichage"),
    )


def build_question(data: Any, position: int, id_factory: IdFactory) -> QuestionnaireQuestion:
    raw = _as_mapping(data)
    texte = raw.get("texte")
    if not isinstance(texte, str) or not texte.strip():
        raise ValidationError("Le texte de la question est requis", field="texte", value=texte)
    return QuestionnaireQuestion(
        id=raw.get("id") or id_factory(),
        texte=texte,
        type=coerce_enum(QuestionType, raw.get("type") or QuestionType.TEXT, "Type de question invalide", "type"),
        section_id=raw.get("section_id"),
        ordre=raw.get("ordre") or position,
        obligatoire=bool(raw.get("obligatoire")),
        options=build_options(raw.get("options")),
        validation=raw.get("validation"),
        placeholder=raw.get("placeholder") or "",
        aide=raw.get("aide") or "",
        conditions_affichage=raw.get("conditions_affichage"),
        logic_saut=raw.get("logic_saut"),
        score_points=raw.get("score_points") or 0,
        categorie_analyse=raw.get("categorie_analyse") or "",
        table_reference=raw.get("table_reference"),
    )


def _by_ordre(items: Iterable[Any]) -> tuple[Any, ...]:
    return tuple(sorted(items, key=lambda item: item.ordre))


def _average(feedbacks: tuple[Feedback, ...]) -> float:
    return sum(f.rating for f in feedbacks) / len(feedbacks)


def _check_unique_ids(items: Iterable[Any], what: str) -> None:
    seen: set[str] = set()
    for item in items:
        if item.id in seen:
            raise ValidationError(f"Identifiant de {what} dupliqué", field=what, value=item.id)
        seen.add(item.id)


@dataclass(eq=False, kw_only=True, frozen=True)
class Questionnaire(EntityMixin):
    """An agricultural questionnaire.

    Usage counts and feedback are only recorded while the questionnaire can
    be used (validated or published).
    """

    identity: Identity = field(default_factory=Identity.new)
    titre: str
    description: str = ""
    version: str = "1.0"
    statut: QuestionnaireStatus = QuestionnaireStatus.BROUILLON
    type_questionnaire: QuestionnaireType | None = None
    domaine_application: tuple[DomaineApplication, ...] = ()
    questions: tuple[QuestionnaireQuestion, ...] = ()
    sections: tuple[QuestionnaireSection, ...] = ()
    parametres: Mapping[str, Any] = field(default_factory=dict)
    duree_estimee: int = 30
    niveau_difficulte: NiveauDifficulte | None = NiveauDifficulte.MOYEN
    languages_prises: tuple[str, ...] = ("fr",)
    metadonnees: Mapping[str, Any] = field(default_factory=dict)
    tags_recherche: tuple[str, ...] = ()
    instructions_speciales: str = ""
    score_minimum: float | None = None
    score_maximum: float | None = None
    critere_validation: Any = None
    modele_reponse: Any = None
    valide_par: str | None = None
    date_validation: datetime | None = None
    utilise_compte: int = 0
    dernier_utilise: datetime | None = None
    feedback_moyen: float | None = None
    feedbacks: tuple[Feedback, ...] = ()
    created_by: Any = None

    def __post_init__(self) -> None:
        id_factory = self.identity.id_factory
        feedbacks = tuple(self.feedbacks or ())
        self._update(
            statut=coerce_enum(QuestionnaireStatus, self.statut, "Statut invalide", "statut"),
            type_questionnaire=coerce_optional_enum(
                QuestionnaireType, self.type_questionnaire, "Type de questionnaire invalide", "typeQuestionnaire"
            ),
            niveau_difficulte=coerce_optional_enum(
                NiveauDifficulte, self.niveau_difficulte, "Niveau de difficulté invalide", "niveauDifficulte"
            ),
            domaine_application=self._coerce_domaines(self.domaine_application),
            sections=_by_ordre(
                build_section(section, index, id_factory) for index, section in enumerate(self.sections, start=1)
            ),
            questions=_by_ordre(
                build_question(question, index, id_factory)
                for index, question in enumerate(self.questions, start=1)
            ),
            parametres=MappingProxyType(dict(self.parametres or {})),
            metadonnees=MappingProxyType(dict(self.metadonnees or {})),
            languages_prises=tuple(self.languages_prises or ("fr",)),
            tags_recherche=tuple(self.tags_recherche or ()),
            feedbacks=feedbacks,
            feedback_moyen=_average(feedbacks) if feedbacks else self.feedback_moyen,
            date_validation=ensure_aware(self.date_validation) if self.date_validation else None,
            dernier_utilise=ensure_aware(self.dernier_utilise) if self.dernier_utilise else None,
        )
        self.validate()

    @staticmethod
    def _coerce_domaines(values: Iterable[Any] | None) -> tuple[DomaineApplication, ...]:
        return tuple(
            coerce_enum(DomaineApplication, value, "Domaine d'application invalide", "domaineApplication")
            for value in values or ()
        )

    # ------------------------------------------------------------------ #
    #  State
    # ------------------------------------------------------------------ #

    @property
    def is_draft(self) -> bool:
        return self.statut is QuestionnaireStatus.BROUILLON

    @property
    def is_in_review(self) -> bool:
        return self.statut is QuestionnaireStatus.EN_REVISION

    @property
    def is_validated(self) -> bool:
        return self.statut is QuestionnaireStatus.VALIDE

    @property
    def is_published(self) -> bool:
        return self.statut is QuestionnaireStatus.PUBLIE

    @property
    def is_archived(self) -> bool:
        return self.statut is QuestionnaireStatus.ARCHIVE

    @property
    def is_suspended(self) -> bool:
        return self.statut is QuestionnaireStatus.SUSPENDU

    @property
    def can_be_used(self) -> bool:
        return self.is_validated or self.is_published

    # ------------------------------------------------------------------ #
    #  Structure metrics
    # ------------------------------------------------------------------ #

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def sections_count(self) -> int:
        return len(self.sections)

    @property
    def questions_by_sections(self) -> dict[str, tuple[QuestionnaireQuestion, ...]]:
        return {
            section.id: tuple(q for q in self.questions if q.section_id == section.id)
            for section in self.sections
        }

    @property
    def questions_types(self) -> list[str]:
        return list(dict.fromkeys(q.type.value for q in self.questions))

    @property
    def has_conditional_logic(self) -> bool:
        return any(q.is_conditional for q in self.questions)

    @property
    def complexity(self) -> str:
        score = self.total_questions * 0.5 + self.sections_count * 2
        if self.has_conditional_logic:
            score += 10
        if self.duree_estimee > 60:
            score += 5
        if score < 10:
            return "Simple"
        if score < 25:
            return "Modéré"
        if score < 50:
            return "Complexe"
        return "Très complexe"

    @property
    def estimated_duration_text(self) -> str:
        hours, minutes = divmod(int(self.duree_estimee), 60)
        if hours > 0:
            return f"{hours}h {minutes}min" if minutes > 0 else f"{hours}h"
        return f"{minutes}min"

    @property
    def popularity_score(self) -> int:
        """Blend of usage (40), average feedback (40) and recency (20)."""
        if self.utilise_compte == 0:
            return 0
        usage_score = min(self.utilise_compte / 100, 1) * 40
        feedback_score = (self.feedback_moyen / 5) * 40 if self.feedback_moyen else 0
        freshness_score = 0.0
        if self.dernier_utilise is not None:
            months = (self.now() - self.dernier_utilise).total_seconds() / SECONDS_PER_MONTH
            freshness_score = max(0.0, 20 - months)
        return round(usage_score + feedback_score + freshness_score)

    # ------------------------------------------------------------------ #
    #  Basic info
    # ------------------------------------------------------------------ #

    def update_basic_info(
        self,
        titre: str,
        description: str | None = None,
        type_questionnaire: str | None = None,
        domaine_application: Iterable[str] | None = None,
    ) -> None:
        """Replace title, description, type and application domains."""
        new_titre = require_text(titre, "Le titre est requis", "titre")
        new_type = coerce_optional_enum(
            QuestionnaireType, type_questionnaire, "Type de questionnaire invalide", "typeQuestionnaire"
        )
        new_domaines = self._coerce_domaines(domaine_application)
        self._update(
            titre=new_titre,
            description=description or "",
            type_questionnaire=new_type,
            domaine_application=new_domaines,
        )
        self.touch()

    # ------------------------------------------------------------------ #
    #  Sections
    # ------------------------------------------------------------------ #

    def _section_index(self, section_id: str) -> int:
        for index, section in enumerate(self.sections):
            if section.id == section_id:
                return index
        raise ValidationError("Section non trouvée", field="sectionId", value=section_id)

    def add_section(self, section_data: Mapping[str, Any]) -> str:
        """Add a section and return its id; ``ordre`` defaults to the end."""
        section = build_section(section_data, len(self.sections) + 1, self.identity.id_factory)
        if any(s.id == section.id for s in self.sections):
            raise ValidationError("Identifiant de section dupliqué", field="sections", value=section.id)
        self._update(sections=_by_ordre(self.sections + (section,)))
        self.touch()
        return section.id

    def update_section(self, section_id: str, updates: Mapping[str, Any]) -> None:
        """Merge ``updates`` into a section; unknown keys are rejected."""
        index = self._section_index(section_id)
        _check_keys(updates, _SECTION_KEYS, "section")
        current = self.sections[index]
        merged = {**_as_mapping(current), **updates, "id": section_id}
        updated = build_section(merged, current.ordre, self.identity.id_factory)
        sections = self.sections[:index] + (updated,) + self.sections[index + 1 :]
        self._update(sections=_by_ordre(sections))
        self.touch()

    def remove_section(self, section_id: str) -> None:
        """Remove a section together with the questions it holds."""
        index = self._section_index(section_id)
        self._update(
            questions=tuple(q for q in self.questions if q.section_id != section_id),
            sections=self.sections[:index] + self.sections[index + 1 :],
        )
        self.touch()

    # ------------------------------------------------------------------ #
    #  Questions
    # ------------------------------------------------------------------ #

    def _question_index(self, question_id: str) -> int:
        for index, question in enumerate(self.questions):
            if question.id == question_id:
                return index
        raise ValidationError("Question non trouvée", field="questionId", value=question_id)

    def add_question(self, question_data: Mapping[str, Any]) -> str:
        """Add a question and return its id."""
        question = build_question(question_data, len(self.questions) + 1, self.identity.id_factory)
        if any(q.id == question.id for q in self.questions):
            raise ValidationError("Identifiant de question dupliqué", field="questions", value=question.id)
        self._update(questions=_by_ordre(self.questions + (question,)))
        self.touch()
        return question.id

    def update_question(self, question_id: str, updates: Mapping[str, Any]) -> None:
        """Merge ``updates`` into a question; unknown keys are rejected."""
        index = self._question_index(question_id)
        _check_keys(updates, _QUESTION_KEYS, "question")
        current = self.questions[index]
        merged = {**_as_mapping(current), **updates, "id": question_id}
        updated = build_question(merged, current.ordre, self.identity.id_factory)
        questions = self.questions[:index] + (updated,) + self.questions[index + 1 :]
        self._update(questions=_by_ordre(questions))
        self.touch()

    def remove_question(self, question_id: str) -> None:
        """Drop a question by id."""
        index = self._question_index(question_id)
        self._update(questions=self.questions[:index] + self.questions[index + 1 :])
        self.touch()

    def reorder_questions(self, question_ids: Iterable[str]) -> None:
        """Renumber questions following ``question_ids``.

        The ids must be exactly the current question ids, each once.
        """
        ids = list(question_ids)
        if len(ids) != len(self.questions) or len(set(ids)) != len(ids):
            raise ValidationError("Tous les IDs de questions doivent être fournis", field="questionIds", value=ids)
        by_id = {q.id: q for q in self.questions}
        reordered = []
        for position, question_id in enumerate(ids, start=1):
            question = by_id.get(question_id)
            if question is None:
                raise ValidationError(
                    f"Question avec ID {question_id} non trouvée", field="questionIds", value=question_id
                )
            reordered.append(dataclasses.replace(question, ordre=position))
        self._update(questions=tuple(reordered))
        self.touch()

    def duplicate(self, new_titre: str | None = None) -> "Questionnaire":
        """Draft copy with a fresh identity and fresh section/question ids."""
        id_factory = self.identity.id_factory
        section_ids = {section.id: id_factory() for section in self.sections}
        sections = [dataclasses.replace(s, id=section_ids[s.id]) for s in self.sections]
        questions = [
            dataclasses.replace(q, id=id_factory(), section_id=section_ids.get(q.section_id, q.section_id))
            for q in self.questions
        ]
        return Questionnaire(
            identity=Identity.new(clock=self.identity.clock, id_factory=id_factory),
            titre=new_titre or f"{self.titre} (Copie)",
            description=self.description,
            type_questionnaire=self.type_questionnaire,
            domaine_application=self.domaine_application,
            questions=questions,
            sections=sections,
            parametres=dict(self.parametres),
            duree_estimee=self.duree_estimee,
            niveau_difficulte=self.niveau_difficulte,
            languages_prises=self.languages_prises,
            tags_recherche=self.tags_recherche,
            instructions_speciales=self.instructions_speciales,
            score_minimum=self.score_minimum,
            score_maximum=self.score_maximum,
            created_by=self.created_by,
        )

    # ------------------------------------------------------------------ #
    #  Lifecycle
    # ------------------------------------------------------------------ #

    def submit_for_review(self) -> None:
        """brouillon -> en_revision; needs at least one question."""
        if not self.is_draft:
            raise ValidationError(
                "Seuls les questionnaires en brouillon peuvent être soumis pour révision",
                field="statut",
                value=self.statut.value,
            )
        if not self.questions:
            raise ValidationError("Le questionnaire doit contenir au moins une question", field="questions")
        self._update(statut=QuestionnaireStatus.EN_REVISION)
        self.touch()

    def validate_questionnaire(self, validateur: str) -> None:
        """en_revision -> valide, recording the validator and the date."""
        if not self.is_in_review:
            raise ValidationError(
                "Seuls les questionnaires en révision peuvent être validés",
                field="statut",
                value=self.statut.value,
            )
        self._update(
            statut=QuestionnaireStatus.VALIDE,
            valide_par=validateur,
            date_validation=self.now(),
        )
        self.touch()

    def publish(self) -> None:
        """valide -> publie."""
        if not self.is_validated:
            raise ValidationError(
                "Seuls les questionnaires validés peuvent être publiés", field="statut", value=self.statut.value
            )
        self._update(statut=QuestionnaireStatus.PUBLIE)
        self.touch()

    def archive(self) -> None:
        """Archive from any state except archive."""
        if self.is_archived:
            raise ValidationError("Le questionnaire est déjà archivé", field="statut", value=self.statut.value)
        self._update(statut=QuestionnaireStatus.ARCHIVE)
        self.touch()

    def suspend(self) -> None:
        """Suspend a validated or published questionnaire."""
        if not self.can_be_used:
            raise ValidationError(
                "Seuls les questionnaires validés ou publiés peuvent être suspendus",
                field="statut",
                value=self.statut.value,
            )
        self._update(statut=QuestionnaireStatus.SUSPENDU)
        self.touch()

    # ------------------------------------------------------------------ #
    #  Usage and feedback
    # ------------------------------------------------------------------ #

    def _require_usable(self) -> None:
        if not self.can_be_used:
            raise ValidationError(
                "Le questionnaire doit être validé ou publié pour être utilisé",
                field="statut",
                value=self.statut.value,
            )

    def record_usage(self) -> None:
        """Count one more use and stamp ``dernier_utilise``."""
        self._require_usable()
        self._update(utilise_compte=self.utilise_compte + 1, dernier_utilise=self.now())
        self.touch()

    def add_feedback(self, rating: float, commentaire: str = "") -> None:
        """Store a 1-5 rating and refresh the average."""
        if not is_number(rating) or not 1 <= rating <= 5:
            raise ValidationError("La note doit être entre 1 et 5", field="rating", value=rating)
        self._require_usable()
        feedbacks = self.feedbacks + (Feedback(rating=rating, commentaire=commentaire or "", date=self.now()),)
        self._update(feedbacks=feedbacks, feedback_moyen=_average(feedbacks))
        self.touch()

    # ------------------------------------------------------------------ #
    #  Validation and boundary contracts
    # ------------------------------------------------------------------ #

    def validate(self) -> None:
        """Raise ValidationError on the first broken invariant."""
        self.identity.validate()
        if not isinstance(self.titre, str) or not self.titre.strip():
            raise ValidationError("Le titre est requis", field="titre", value=self.titre)
        if not is_number(self.duree_estimee) or self.duree_estimee < 0:
            raise ValidationError(
                "La durée estimée ne peut pas être négative", field="dureeEstimee", value=self.duree_estimee
            )
        if (
            self.score_minimum is not None
            and self.score_maximum is not None
            and self.score_minimum > self.score_maximum
        ):
            raise ValidationError(
                "Le score minimum ne peut pas être supérieur au score maximum",
                field="scoreMinimum",
                value=self.score_minimum,
            )
        if not is_number(self.utilise_compte) or self.utilise_compte < 0:
            raise ValidationError(
                "Le compteur d'utilisation ne peut pas être négatif", field="utiliseCompte", value=self.utilise_compte
            )
        for feedback in self.feedbacks:
            if not is_number(feedback.rating) or not 1 <= feedback.rating <= 5:
                raise ValidationError("La note doit être entre 1 et 5", field="feedbacks", value=feedback.rating)
        _check_unique_ids(self.sections, "section")
        _check_unique_ids(self.questions, "question")

    def to_plain_object(self) -> dict[str, Any]:
        """camelCase dict for storage and transport, with derived keys."""
        return {
            **self.identity.to_dict(),
            "titre": self.titre,
            "description": self.description,
            "version": self.version,
            "statut": self.statut.value,
            "typeQuestionnaire": enum_value(self.type_questionnaire),
            "domaineApplication": [d.value for d in self.domaine_application],
            "questions": [q.to_dict() for q in self.questions],
            "sections": [s.to_dict() for s in self.sections],
            "parametres": dict(self.parametres),
            "dureeEstimee": self.duree_estimee,
            "niveauDifficulte": enum_value(self.niveau_difficulte),
            "languagesPrises": list(self.languages_prises),
            "metadonnees": dict(self.metadonnees),
            "tagsRecherche": list(self.tags_recherche),
            "instructionsSpeciales": self.instructions_speciales,
            "scoreMinimum": self.score_minimum,
            "scoreMaximum": self.score_maximum,
            "critereValidation": self.critere_validation,
            "modeleReponse": self.modele_reponse,
            "validePar": self.valide_par,
            "dateValidation": to_iso(self.date_validation),
            "utiliseCompte": self.utilise_compte,
            "dernierUtilise": to_iso(self.dernier_utilise),
            "feedbackMoyen": self.feedback_moyen,
            "feedbacks": [f.to_dict() for f in self.feedbacks],
            "createdBy": self.created_by,
            "isDraft": self.is_draft,
            "isInReview": self.is_in_review,
            "isValidated": self.is_validated,
            "isPublished": self.is_published,
            "isArchived": self.is_archived,
            "isSuspended": self.is_suspended,
            "canBeUsed": self.can_be_used,
            "totalQuestions": self.total_questions,
            "sectionsCount": self.sections_count,
            "questionsBySections": {
                section_id: [q.to_dict() for q in questions]
                for section_id, questions in self.questions_by_sections.items()
            },
            "questionsTypes": self.questions_types,
            "hasConditionalLogic": self.has_conditional_logic,
            "complexity": self.complexity,
            "estimatedDurationText": self.estimated_duration_text,
            "popularityScore": self.popularity_score,
        }

    @classmethod
    def from_api_data(
        cls,
        data: Mapping[str, Any],
        *,
        clock: Clock = utc_now,
        id_factory: IdFactory = new_id,
    ) -> "Questionnaire":
        """Rebuild a questionnaire from a stored or transported record."""
        record = parse_record(QuestionnaireRecord, data)
        metadonnees = dict(record.metadonnees or {})
        feedback_records = record.feedbacks
        if feedback_records is None and isinstance(metadonnees.get("feedbacks"), list):
            # older documents kept feedback inside metadonnees
            feedback_records = [parse_record(FeedbackRecord, f) for f in metadonnees.pop("feedbacks")]
        now = clock()
        feedbacks = [
            Feedback(
                rating=f.rating,
                commentaire=f.commentaire or "",
                date=ensure_aware(f.date) if f.date else now,
            )
            for f in feedback_records or ()
        ]
        return cls(
            identity=Identity.new(
                record.id,
                created_at=record.created_at,
                updated_at=record.updated_at,
                clock=clock,
                id_factory=id_factory,
            ),
            titre=record.titre,
            description=record.description or "",
            version=record.version or "1.0",
            statut=record.statut or QuestionnaireStatus.BROUILLON,
            type_questionnaire=record.type_questionnaire,
            domaine_application=record.domaine_application,
            questions=[q.model_dump() for q in record.questions or ()],
            sections=[s.model_dump() for s in record.sections or ()],
            parametres=record.parametres,
            duree_estimee=record.duree_estimee if record.duree_estimee is not None else 30,
            niveau_difficulte=record.niveau_difficulte or NiveauDifficulte.MOYEN,
            languages_prises=record.languages_prises,
            metadonnees=metadonnees,
            tags_recherche=record.tags_recherche,
            instructions_speciales=record.instructions_speciales or "",
            score_minimum=record.score_minimum,
            score_maximum=record.score_maximum,
            critere_validation=record.critere_validation,
            modele_reponse=record.modele_reponse,
            valide_par=record.valide_par,
            date_validation=record.date_validation,
            utilise_compte=record.utilise_compte or 0,
            dernier_utilise=record.dernier_utilise,
            feedback_moyen=record.feedback_moyen,
            feedbacks=feedbacks,
            created_by=record.created_by,
        )
